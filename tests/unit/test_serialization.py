"""Unit tests for the metadata mapping codec."""

import json
import logging

import pytest

from mcp_graph_memory.utils.serialization import dumps_mapping, loads_mapping


class TestDumpsMapping:
    def test_round_trip_preserves_nesting(self):
        value = {"tags": ["a", "b"], "owner": {"name": "sam"}, "n": 1}
        assert json.loads(dumps_mapping(value)) == value

    @pytest.mark.parametrize("value", [None, {}])
    def test_empty(self, value):
        assert dumps_mapping(value) == "{}"

    def test_unserializable_gives_empty_object(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert dumps_mapping({"when": object()}) == "{}"
        assert "Failed to serialize" in caplog.text

    def test_nan_rejected(self):
        assert dumps_mapping({"x": float("nan")}) == "{}"


class TestLoadsMapping:
    @pytest.mark.parametrize("raw", [None, ""])
    def test_empty(self, raw):
        assert loads_mapping(raw) == {}

    def test_string(self):
        assert loads_mapping('{"env": "prod"}') == {"env": "prod"}

    def test_bytes(self):
        assert loads_mapping(b'{"env": "prod"}') == {"env": "prod"}

    def test_mapping_passthrough(self):
        assert loads_mapping({"env": "prod"}) == {"env": "prod"}

    def test_invalid_json_logged_with_context(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert loads_mapping("{broken", memory_id="m1") == {}

        record = caplog.records[-1]
        assert record.memory_id == "m1"
        assert record.metadata_length == len("{broken")
        assert record.metadata_error

    def test_non_object_json(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert loads_mapping("[1, 2]", memory_id="m1") == {}
        assert "not an object" in caplog.text

    def test_unexpected_type(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert loads_mapping(12, memory_id="m1") == {}
        assert "unexpected type int" in caplog.text
