"""Tests for unwrapping MCP content blocks into result records."""

import json

from mcp.types import ImageContent, TextContent

from bigmodel_search_mcp.payload import block_text, decode_nested_json, extract_records


def _block(text):
    return {"type": "text", "text": text}


class TestDecodeNestedJson:
    def test_single_encoding(self):
        assert decode_nested_json('[{"url": "a"}]') == [{"url": "a"}]

    def test_double_encoding(self):
        text = json.dumps(json.dumps([{"url": "a"}]))
        assert decode_nested_json(text) == [{"url": "a"}]

    def test_stops_after_two_rounds(self):
        """A triple-encoded payload is still a string after two rounds."""
        text = json.dumps(json.dumps(json.dumps([1])))
        assert decode_nested_json(text) == json.dumps([1])

    def test_invalid_json_returns_original_text(self):
        assert decode_nested_json("not json") == "not json"

    def test_second_round_failure_keeps_first_decode(self):
        text = json.dumps("plain words")
        assert decode_nested_json(text) == "plain words"


class TestBlockText:
    def test_mapping_block(self):
        assert block_text({"type": "text", "text": "x"}) == "x"

    def test_protocol_block(self):
        assert block_text(TextContent(type="text", text="x")) == "x"

    def test_non_text_block_ignored(self):
        assert block_text(ImageContent(type="image", data="AAAA", mimeType="image/png")) is None

    def test_non_string_text_ignored(self):
        assert block_text({"type": "text", "text": 42}) is None


class TestExtractRecords:
    def test_array_payload(self):
        records = extract_records([_block(json.dumps([{"link": "a"}, {"link": "b"}]))])
        assert records == [{"link": "a"}, {"link": "b"}]

    def test_double_encoded_equals_single(self):
        payload = [{"url": "a"}]
        single = extract_records([_block(json.dumps(payload))])
        double = extract_records([_block(json.dumps(json.dumps(payload)))])
        assert single == double == payload

    def test_wrapper_keys_in_priority_order(self):
        payload = {"data": [{"url": "d"}], "results": [{"url": "r"}], "items": [{"url": "i"}]}
        assert extract_records([_block(json.dumps(payload))]) == [{"url": "i"}]

        payload = {"data": [{"url": "d"}], "results": [{"url": "r"}]}
        assert extract_records([_block(json.dumps(payload))]) == [{"url": "r"}]

        payload = {"data": [{"url": "d"}]}
        assert extract_records([_block(json.dumps(payload))]) == [{"url": "d"}]

    def test_wrapper_key_with_non_list_value_skipped(self):
        payload = {"items": {"url": "x"}, "data": [{"url": "d"}]}
        assert extract_records([_block(json.dumps(payload))]) == [{"url": "d"}]

    def test_object_without_known_keys_contributes_nothing(self):
        assert extract_records([_block(json.dumps({"other": [1, 2]}))]) == []

    def test_malformed_text_contributes_nothing(self):
        assert extract_records([_block("{oops"), _block("[")]) == []

    def test_records_concatenated_across_blocks(self):
        blocks = [
            _block(json.dumps([{"url": "a"}])),
            {"type": "image", "data": "..."},
            _block(json.dumps({"results": [{"url": "b"}]})),
        ]
        assert extract_records(blocks) == [{"url": "a"}, {"url": "b"}]

    def test_none_and_empty_input(self):
        assert extract_records(None) == []
        assert extract_records([]) == []

    def test_idempotent(self):
        blocks = [_block(json.dumps(json.dumps([{"url": "a"}, 3, "x"])))]
        assert extract_records(blocks) == extract_records(blocks)
