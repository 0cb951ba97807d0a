"""
Unit tests for graph schema definitions.

Validates the index statements and the label / relation type whitelists
that guard every token formatted into query text.
"""

import pytest

from mcp_graph_memory.graph.schema import (
    MEMORY_LABELS,
    RELATION_TYPES,
    SCHEMA_STATEMENTS,
    validate_identifier,
    validate_label,
    validate_relation_type,
)
from mcp_graph_memory.models.memory import MemoryKind, RelationType


class TestGraphSchema:
    """Test graph schema definitions."""

    def test_one_index_per_kind(self):
        assert len(SCHEMA_STATEMENTS) == len(MemoryKind)

    def test_all_statements_are_id_index_creation(self):
        for stmt in SCHEMA_STATEMENTS:
            assert stmt.startswith("CREATE INDEX FOR (n:")
            assert stmt.endswith("ON (n.id)")

    def test_every_label_is_indexed(self):
        for kind in MemoryKind:
            assert any(f"(n:{kind.value})" in stmt for stmt in SCHEMA_STATEMENTS), f"Missing index for {kind.value}"


class TestWhitelists:
    """Test the label and relationship whitelists."""

    def test_whitelists_are_frozensets(self):
        """Must be immutable to prevent runtime modification."""
        assert isinstance(MEMORY_LABELS, frozenset)
        assert isinstance(RELATION_TYPES, frozenset)

    def test_labels_match_kinds(self):
        assert MEMORY_LABELS == {
            "Conversation",
            "Topic",
            "Project",
            "Task",
            "Issue",
            "Config",
            "Finance",
            "Todo",
        }

    def test_relation_types_count(self):
        assert len(RELATION_TYPES) == 7

    def test_relation_types_are_uppercase(self):
        for t in RELATION_TYPES:
            assert t == t.upper(), f"{t} should be uppercase"


class TestValidators:
    def test_validate_label_accepts_enum_and_string(self):
        assert validate_label(MemoryKind.TASK) == "Task"
        assert validate_label("Issue") == "Issue"

    def test_validate_label_rejects_unknown(self):
        with pytest.raises(ValueError, match="Invalid memory type"):
            validate_label("Task) DETACH DELETE (m")

    def test_validate_relation_type_uppercases_strings(self):
        assert validate_relation_type("depends_on") == "DEPENDS_ON"
        assert validate_relation_type(RelationType.PART_OF) == "PART_OF"

    def test_validate_relation_type_rejects_unknown(self):
        with pytest.raises(ValueError, match="Invalid relation type"):
            validate_relation_type("KNOWS")

    @pytest.mark.parametrize("name", ["created", "metadata_env", "_private", "dueDate"])
    def test_validate_identifier_accepts(self, name):
        assert validate_identifier(name) == name

    @pytest.mark.parametrize("name", ["", "1abc", "created DESC", "a.b", "x}) RETURN n //"])
    def test_validate_identifier_rejects(self, name):
        with pytest.raises(ValueError, match="Invalid property name"):
            validate_identifier(name)
