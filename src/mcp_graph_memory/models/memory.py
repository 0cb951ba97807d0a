"""Memory record models.

One pydantic class per memory kind, all sharing the ``MemoryRecord`` base.
The base carries every optional attribute any kind uses, so a record read
back from the graph keeps whatever fields were stored on its node. Each
subclass pins its kind and lists the fields persisted for that kind.

Adding a kind means adding a ``MemoryKind`` member, one subclass, and one
entry in ``MEMORY_MODELS``.
"""

import logging
import re
import time
from enum import Enum
from typing import Any, ClassVar, Literal, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

# Identifiers safe to interpolate into Cypher (property names, ORDER BY fields)
IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Kind-specific attribute values are stored as given: strings, numbers or booleans
FieldValue = str | int | float | bool


def now_ms() -> int:
    """Current time as integer milliseconds since the epoch."""
    return int(time.time() * 1000)


class MemoryKind(str, Enum):
    """Closed set of memory kinds. The value doubles as the node label."""

    CONVERSATION = "Conversation"
    TOPIC = "Topic"
    PROJECT = "Project"
    TASK = "Task"
    ISSUE = "Issue"
    CONFIG = "Config"
    FINANCE = "Finance"
    TODO = "Todo"


class RelationType(str, Enum):
    """Closed set of relationship types. The value doubles as the edge type."""

    CONTAINS = "CONTAINS"
    RELATED_TO = "RELATED_TO"
    DEPENDS_ON = "DEPENDS_ON"
    PART_OF = "PART_OF"
    RESOLVED_BY = "RESOLVED_BY"
    CREATED_AT = "CREATED_AT"
    UPDATED_AT = "UPDATED_AT"


# Optional attributes shared by all kinds, as python field names.
# Order matters only for readability of generated queries.
OPTIONAL_FIELDS: tuple[str, ...] = (
    "name",
    "title",
    "description",
    "summary",
    "status",
    "severity",
    "key",
    "value",
    "environment",
    "category",
    "amount",
    "currency",
    "completed",
    "priority",
    "due_date",
)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


class MemoryRecord(BaseModel):
    """A stored unit of knowledge, persisted as one labeled node."""

    model_config = ConfigDict(populate_by_name=True)

    # Kind pinned by each subclass; None on the base class
    KIND: ClassVar[MemoryKind | None] = None
    # Python field names persisted as node properties for this kind
    SPECIFIC_FIELDS: ClassVar[tuple[str, ...]] = ()

    id: str = Field(min_length=1)
    kind: MemoryKind = Field(alias="type")
    content: str = ""
    created: int = Field(default_factory=now_ms)
    updated: int = Field(default_factory=now_ms)
    metadata: dict[str, Any] = Field(default_factory=dict)

    name: FieldValue | None = None
    title: FieldValue | None = None
    description: FieldValue | None = None
    summary: FieldValue | None = None
    status: FieldValue | None = None
    severity: FieldValue | None = None
    key: FieldValue | None = None
    value: FieldValue | None = None
    environment: FieldValue | None = None
    category: FieldValue | None = None
    amount: float | None = None
    currency: FieldValue | None = None
    completed: bool | None = None
    priority: FieldValue | None = None
    due_date: int | None = Field(default=None, alias="dueDate")

    @field_validator("content", mode="before")
    @classmethod
    def default_content(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("metadata", mode="before")
    @classmethod
    def default_metadata(cls, v: Any) -> Any:
        return {} if v is None else v

    @model_validator(mode="after")
    def check_kind_and_timestamps(self) -> Self:
        """Enforce the subclass kind and keep ``updated >= created``."""
        expected = type(self).KIND
        if expected is not None and self.kind != expected:
            raise ValueError(f"{type(self).__name__} requires kind {expected.value!r}, got {self.kind.value!r}")
        if self.updated < self.created:
            logger.debug("Raising updated (%s) to created (%s) for memory %s", self.updated, self.created, self.id)
            self.updated = self.created
        return self

    @classmethod
    def property_name(cls, field_name: str) -> str:
        """Graph property name for a python field name (``due_date`` -> ``dueDate``)."""
        alias = cls.model_fields[field_name].alias
        return alias or field_name

    def to_dict(self) -> dict[str, Any]:
        """Wire representation: aliased names, unset optional fields dropped."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ConversationMemory(MemoryRecord):
    KIND: ClassVar[MemoryKind] = MemoryKind.CONVERSATION
    SPECIFIC_FIELDS: ClassVar[tuple[str, ...]] = ("summary",)

    kind: MemoryKind = Field(default=MemoryKind.CONVERSATION, alias="type")


class TopicMemory(MemoryRecord):
    KIND: ClassVar[MemoryKind] = MemoryKind.TOPIC
    SPECIFIC_FIELDS: ClassVar[tuple[str, ...]] = ()

    kind: MemoryKind = Field(default=MemoryKind.TOPIC, alias="type")


class ProjectMemory(MemoryRecord):
    KIND: ClassVar[MemoryKind] = MemoryKind.PROJECT
    SPECIFIC_FIELDS: ClassVar[tuple[str, ...]] = ("name", "description", "status")

    kind: MemoryKind = Field(default=MemoryKind.PROJECT, alias="type")


class TaskMemory(MemoryRecord):
    KIND: ClassVar[MemoryKind] = MemoryKind.TASK
    SPECIFIC_FIELDS: ClassVar[tuple[str, ...]] = ("title", "status", "due_date")

    kind: MemoryKind = Field(default=MemoryKind.TASK, alias="type")


class IssueMemory(MemoryRecord):
    KIND: ClassVar[MemoryKind] = MemoryKind.ISSUE
    SPECIFIC_FIELDS: ClassVar[tuple[str, ...]] = ("title", "severity", "status")

    kind: MemoryKind = Field(default=MemoryKind.ISSUE, alias="type")


class ConfigMemory(MemoryRecord):
    KIND: ClassVar[MemoryKind] = MemoryKind.CONFIG
    SPECIFIC_FIELDS: ClassVar[tuple[str, ...]] = ("key", "value", "environment")

    kind: MemoryKind = Field(default=MemoryKind.CONFIG, alias="type")


class FinanceMemory(MemoryRecord):
    KIND: ClassVar[MemoryKind] = MemoryKind.FINANCE
    SPECIFIC_FIELDS: ClassVar[tuple[str, ...]] = ("category", "amount", "currency")

    kind: MemoryKind = Field(default=MemoryKind.FINANCE, alias="type")


class TodoMemory(MemoryRecord):
    KIND: ClassVar[MemoryKind] = MemoryKind.TODO
    SPECIFIC_FIELDS: ClassVar[tuple[str, ...]] = ("title", "completed", "priority")

    kind: MemoryKind = Field(default=MemoryKind.TODO, alias="type")


MEMORY_MODELS: dict[MemoryKind, type[MemoryRecord]] = {
    MemoryKind.CONVERSATION: ConversationMemory,
    MemoryKind.TOPIC: TopicMemory,
    MemoryKind.PROJECT: ProjectMemory,
    MemoryKind.TASK: TaskMemory,
    MemoryKind.ISSUE: IssueMemory,
    MemoryKind.CONFIG: ConfigMemory,
    MemoryKind.FINANCE: FinanceMemory,
    MemoryKind.TODO: TodoMemory,
}


def memory_model_for(kind: MemoryKind | str) -> type[MemoryRecord]:
    """Return the record class for a kind. Raises ValueError for unknown kinds."""
    return MEMORY_MODELS[MemoryKind(kind)]


# ---------------------------------------------------------------------------
# Partial updates
# ---------------------------------------------------------------------------


class MemoryUpdate(BaseModel):
    """Partial field set for ``update_memory``.

    ``id``, ``kind`` and ``created`` are deliberately absent: no update can
    change them.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    content: str | None = None
    metadata: dict[str, Any] | None = None
    name: FieldValue | None = None
    title: FieldValue | None = None
    description: FieldValue | None = None
    summary: FieldValue | None = None
    status: FieldValue | None = None
    severity: FieldValue | None = None
    key: FieldValue | None = None
    value: FieldValue | None = None
    environment: FieldValue | None = None
    category: FieldValue | None = None
    amount: float | None = None
    currency: FieldValue | None = None
    completed: bool | None = None
    priority: FieldValue | None = None
    due_date: int | None = Field(default=None, alias="dueDate")

    def changes(self) -> dict[str, Any]:
        """Fields the caller actually set, keyed by python field name."""
        return self.model_dump(exclude_unset=True)


# ---------------------------------------------------------------------------
# Relations
# ---------------------------------------------------------------------------


class MemoryRelation(BaseModel):
    """Directed, typed edge between two records, identified by their ids."""

    model_config = ConfigDict(populate_by_name=True)

    from_id: str = Field(min_length=1, alias="from")
    to_id: str = Field(min_length=1, alias="to")
    type: RelationType
    properties: dict[str, Any] | None = None


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


class MemorySearchCriteria(BaseModel):
    """Conjunctive search filters. Every field is optional."""

    model_config = ConfigDict(populate_by_name=True)

    kind: MemoryKind | None = Field(default=None, alias="type")
    keyword: str | None = None
    start_date: int | None = Field(default=None, alias="startDate")
    end_date: int | None = Field(default=None, alias="endDate")
    metadata: dict[str, Any] | None = None
    fuzzy_search: bool = Field(default=True, alias="fuzzySearch")
    top_results: int | None = Field(default=None, alias="topResults")

    @field_validator("metadata")
    @classmethod
    def metadata_keys_are_identifiers(cls, v: dict[str, Any] | None) -> dict[str, Any] | None:
        if v:
            for key in v:
                if not IDENTIFIER_PATTERN.match(key):
                    raise ValueError(f"Invalid metadata key for search: {key!r}")
        return v

    @property
    def has_keyword(self) -> bool:
        return bool(self.keyword and self.keyword.strip())


class MemoryQueryOptions(BaseModel):
    """Ordering and pagination for ``search_memories``."""

    model_config = ConfigDict(populate_by_name=True)

    limit: int | None = Field(default=None, ge=0)
    offset: int | None = Field(default=None, ge=0)
    order_by: str = Field(default="created", alias="orderBy")
    direction: Literal["ASC", "DESC"] = "DESC"

    @field_validator("order_by")
    @classmethod
    def order_by_is_identifier(cls, v: str) -> str:
        if not IDENTIFIER_PATTERN.match(v):
            raise ValueError(f"Invalid order_by field: {v!r}")
        return v

    @field_validator("direction", mode="before")
    @classmethod
    def uppercase_direction(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v
