"""Normalization of provider records into SearchItem objects.

Field aliasing is expressed as ordered accessor lists: each accessor pulls one
candidate value out of a record, and ``first_present`` returns the first one
that is not None.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any, TypeAlias

from .models import SearchItem

Record: TypeAlias = Mapping[str, Any]
Accessor: TypeAlias = Callable[[Record], Any]


def field(name: str) -> Accessor:
    """Accessor returning the raw value under ``name`` (None when absent)."""

    def get(record: Record) -> Any:
        return record.get(name)

    return get


def text_field(name: str) -> Accessor:
    """Accessor returning the value under ``name`` only if it is a non-empty string."""

    def get(record: Record) -> str | None:
        value = record.get(name)
        if isinstance(value, str) and value:
            return value
        return None

    return get


def first_present(*accessors: Accessor) -> Accessor:
    """Combine accessors: the first non-None result wins."""

    def get(record: Record) -> Any:
        for accessor in accessors:
            value = accessor(record)
            if value is not None:
                return value
        return None

    return get


URL = first_present(text_field("link"), text_field("url"), text_field("href"), text_field("sourceUrl"))
TITLE = first_present(text_field("title"), text_field("name"), text_field("page_title"))
SUMMARY = first_present(text_field("content"), text_field("summary"), text_field("description"))
ICON = first_present(text_field("icon"), text_field("favicon"))
SITE_NAME = first_present(text_field("website"), text_field("site"), text_field("siteName"))
PUBLISHED_AT = first_present(text_field("publish_date"), text_field("published_at"), text_field("date"))
MEDIA = field("media")
REFER = field("refer")


def normalize_record(record: Record) -> SearchItem | None:
    """Map one record to a SearchItem, or None when it has no usable URL."""
    url = URL(record)
    if url is None:
        return None
    return SearchItem(
        title=TITLE(record) or url,
        url=url,
        summary=SUMMARY(record),
        icon=ICON(record),
        site_name=SITE_NAME(record),
        media=MEDIA(record),
        published_at=PUBLISHED_AT(record),
        refer=REFER(record),
        raw=dict(record),
    )


def normalize_items(records: Iterable[Any]) -> list[SearchItem]:
    """Normalize records, dropping non-objects and URL-less records.

    Items are deduplicated by exact URL; the first occurrence wins and order
    of first appearance is preserved.
    """
    seen: set[str] = set()
    items: list[SearchItem] = []
    for record in records:
        if not isinstance(record, Mapping):
            continue
        item = normalize_record(record)
        if item is None or item.url in seen:
            continue
        seen.add(item.url)
        items.append(item)
    return items
