"""Unwrapping of MCP text content blocks into untyped result records.

Providers are inconsistent about how they serialize results:
- a JSON array in the block text
- the same array, JSON-encoded a second time (a JSON string holding JSON)
- a wrapper object holding the array under ``items``, ``results`` or ``data``

Anything that does not decode degrades to "no records" for that block.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from typing import Any

MAX_DECODE_ROUNDS = 2
RECORD_CONTAINER_KEYS = ("items", "results", "data")


def decode_nested_json(text: str, max_rounds: int = MAX_DECODE_ROUNDS) -> Any:
    """Decode ``text`` as JSON, decoding again while the result is still a string.

    Stops after ``max_rounds`` or at the first decode failure, returning the last
    successfully decoded value (or ``text`` itself).
    """
    value: Any = text
    for _ in range(max_rounds):
        if not isinstance(value, str):
            break
        try:
            value = json.loads(value)
        except (ValueError, RecursionError):
            break
    return value


def block_text(block: Any) -> str | None:
    """Return the text of a ``type == "text"`` block, or None for any other block."""
    if isinstance(block, Mapping):
        kind, text = block.get("type"), block.get("text")
    else:
        kind, text = getattr(block, "type", None), getattr(block, "text", None)
    if kind != "text" or not isinstance(text, str):
        return None
    return text


def _records_from_value(value: Any) -> list[Any]:
    if isinstance(value, list):
        return value
    if isinstance(value, Mapping):
        for key in RECORD_CONTAINER_KEYS:
            nested = value.get(key)
            if isinstance(nested, list):
                return nested
    return []


def extract_records(blocks: Iterable[Any] | None) -> list[Any]:
    """Flatten the result records of all text blocks, in block order.

    Pure and total: never raises on malformed payloads.
    """
    records: list[Any] = []
    for block in blocks or ():
        text = block_text(block)
        if text is None:
            continue
        records.extend(_records_from_value(decode_nested_json(text)))
    return records
