"""
Unit tests for memory record models.

Covers kind pinning, alias handling, timestamp clamping and the
search / pagination input models.
"""

import pytest
from pydantic import ValidationError

from mcp_graph_memory.models.memory import (
    MEMORY_MODELS,
    ConfigMemory,
    ConversationMemory,
    FinanceMemory,
    MemoryKind,
    MemoryQueryOptions,
    MemoryRecord,
    MemoryRelation,
    MemorySearchCriteria,
    MemoryUpdate,
    RelationType,
    TaskMemory,
    TodoMemory,
    memory_model_for,
)


class TestMemoryKinds:
    def test_every_kind_has_a_model(self):
        assert set(MEMORY_MODELS) == set(MemoryKind)

    def test_models_pin_their_kind(self):
        for kind, model in MEMORY_MODELS.items():
            assert model.KIND is kind
            assert model(id="m1").kind is kind

    def test_memory_model_for_accepts_strings(self):
        assert memory_model_for("Task") is TaskMemory
        assert memory_model_for(MemoryKind.TODO) is TodoMemory

    def test_memory_model_for_rejects_unknown(self):
        with pytest.raises(ValueError):
            memory_model_for("Recipe")

    def test_subclass_rejects_foreign_kind(self):
        with pytest.raises(ValidationError, match="requires kind"):
            TaskMemory(id="m1", kind=MemoryKind.ISSUE)


class TestMemoryRecord:
    def test_defaults(self):
        memory = ConversationMemory(id="m1")
        assert memory.content == ""
        assert memory.metadata == {}
        assert memory.created > 0
        assert memory.updated >= memory.created

    def test_none_content_and_metadata_become_empty(self):
        memory = ConversationMemory(id="m1", content=None, metadata=None)
        assert memory.content == ""
        assert memory.metadata == {}

    def test_empty_id_rejected(self):
        with pytest.raises(ValidationError):
            ConversationMemory(id="")

    def test_updated_clamped_to_created(self):
        memory = ConversationMemory(id="m1", created=2_000, updated=1_000)
        assert memory.updated == 2_000

    def test_type_alias_accepted(self):
        memory = TaskMemory.model_validate({"id": "t1", "type": "Task", "dueDate": 1_700_000_000_000})
        assert memory.kind is MemoryKind.TASK
        assert memory.due_date == 1_700_000_000_000

    def test_to_dict_uses_wire_names(self):
        memory = TaskMemory(id="t1", title="Ship", due_date=5, created=1, updated=1)
        data = memory.to_dict()
        assert data["type"] == "Task"
        assert data["dueDate"] == 5
        assert "kind" not in data
        assert "due_date" not in data
        # Unset optional fields are dropped
        assert "severity" not in data

    def test_property_name(self):
        assert MemoryRecord.property_name("due_date") == "dueDate"
        assert MemoryRecord.property_name("title") == "title"

    def test_todo_keeps_false_completed(self):
        memory = TodoMemory(id="t1", completed=False)
        assert memory.to_dict()["completed"] is False

    def test_finance_fields(self):
        memory = FinanceMemory(id="f1", category="travel", amount=120.5, currency="EUR")
        assert FinanceMemory.SPECIFIC_FIELDS == ("category", "amount", "currency")
        assert memory.amount == 120.5


class TestMemoryUpdate:
    def test_changes_only_includes_set_fields(self):
        update = MemoryUpdate(content="new", completed=False)
        assert update.changes() == {"content": "new", "completed": False}

    def test_alias_accepted(self):
        update = MemoryUpdate.model_validate({"dueDate": 10})
        assert update.changes() == {"due_date": 10}

    @pytest.mark.parametrize("field", ["id", "kind", "type", "created"])
    def test_identity_fields_rejected(self, field):
        with pytest.raises(ValidationError):
            MemoryUpdate.model_validate({field: "x"})


class TestMemoryRelation:
    def test_aliases(self):
        relation = MemoryRelation.model_validate({"from": "a", "to": "b", "type": "DEPENDS_ON"})
        assert relation.from_id == "a"
        assert relation.to_id == "b"
        assert relation.type is RelationType.DEPENDS_ON

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            MemoryRelation(from_id="a", to_id="b", type="KNOWS")


class TestSearchModels:
    def test_criteria_defaults(self):
        criteria = MemorySearchCriteria()
        assert criteria.fuzzy_search is True
        assert criteria.top_results is None
        assert criteria.has_keyword is False

    def test_blank_keyword_is_not_a_keyword(self):
        assert MemorySearchCriteria(keyword="   ").has_keyword is False
        assert MemorySearchCriteria(keyword="payment").has_keyword is True

    def test_criteria_aliases(self):
        criteria = MemorySearchCriteria.model_validate(
            {"type": "Issue", "startDate": 1, "endDate": 2, "fuzzySearch": False, "topResults": 3}
        )
        assert criteria.kind is MemoryKind.ISSUE
        assert (criteria.start_date, criteria.end_date) == (1, 2)
        assert criteria.fuzzy_search is False
        assert criteria.top_results == 3

    def test_metadata_keys_must_be_identifiers(self):
        with pytest.raises(ValidationError, match="Invalid metadata key"):
            MemorySearchCriteria(metadata={"env) OR 1=1 //": "prod"})

    def test_options_defaults(self):
        options = MemoryQueryOptions()
        assert options.order_by == "created"
        assert options.direction == "DESC"
        assert options.limit is None
        assert options.offset is None

    def test_direction_case_insensitive(self):
        assert MemoryQueryOptions(direction="asc").direction == "ASC"

    def test_invalid_direction_rejected(self):
        with pytest.raises(ValidationError):
            MemoryQueryOptions(direction="SIDEWAYS")

    def test_order_by_must_be_identifier(self):
        with pytest.raises(ValidationError, match="Invalid order_by"):
            MemoryQueryOptions(order_by="created; DROP")

    def test_negative_limit_rejected(self):
        with pytest.raises(ValidationError):
            MemoryQueryOptions(limit=-1)


class TestFieldValues:
    def test_numeric_and_boolean_values_kept_as_given(self):
        memory = ConfigMemory(id="c1", key="port", value=8080, environment="prod")
        assert memory.value == 8080
        assert isinstance(memory.value, int)
        assert ConfigMemory(id="c2", key="debug", value=True).value is True
        assert ConfigMemory(id="c3", key="ratio", value=0.25).value == 0.25

    def test_numeric_priority(self):
        assert TodoMemory(id="t1", priority=1).priority == 1

    def test_strings_stay_strings(self):
        assert ConfigMemory(id="c1", value="8080").value == "8080"

    def test_update_accepts_numeric_values(self):
        assert MemoryUpdate(value=8080, priority=2).changes() == {"value": 8080, "priority": 2}
