"""MCP tool input models.

Each MCP tool validates its inputs by constructing the corresponding
model, so enum checks, range limits and identifier rules live here as
declarative constraints rather than inline in ``mcp_server.py``.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

from .memory import FieldValue, MemoryKind, RelationType

IdStr = Annotated[str, Field(min_length=1)]
"""Non-empty memory id."""


class KindSpecificFields(BaseModel):
    """Optional attributes accepted by create and update."""

    name: FieldValue | None = None
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
    due_date: int | None = None

    def provided(self) -> dict[str, Any]:
        """Kind-specific fields the caller supplied (non-None)."""
        return self.model_dump(include=set(KindSpecificFields.model_fields), exclude_none=True)


class CreateMemoryParams(KindSpecificFields):
    """Validated input for the ``create_memory`` MCP tool."""

    type: MemoryKind
    content: str = ""
    title: FieldValue | None = None
    metadata: dict[str, Any] | None = None


class RetrieveMemoryParams(BaseModel):
    """Validated input for the ``retrieve_memory`` MCP tool."""

    id: IdStr


class SearchMemoriesParams(BaseModel):
    """Validated input for the ``search_memories`` MCP tool."""

    type: MemoryKind | None = None
    keyword: str | None = None
    fuzzy_search: bool = True
    top_results: int | None = Field(default=None, ge=0, le=100)
    start_date: int | None = None
    end_date: int | None = None
    metadata: dict[str, Any] | None = None
    limit: int = Field(default=10, ge=1, le=100)
    offset: int = Field(default=0, ge=0)
    order_by: str = "created"
    direction: Literal["ASC", "DESC", "asc", "desc"] = "DESC"


class UpdateMemoryParams(KindSpecificFields):
    """Validated input for the ``update_memory`` MCP tool."""

    id: IdStr
    content: str | None = None
    title: FieldValue | None = None
    metadata: dict[str, Any] | None = None

    def updates(self) -> dict[str, Any]:
        """Partial field set: everything supplied except the id."""
        return self.model_dump(exclude={"id"}, exclude_none=True)


class DeleteMemoryParams(BaseModel):
    """Validated input for the ``delete_memory`` MCP tool."""

    id: IdStr


class CreateRelationParams(BaseModel):
    """Validated input for the ``create_relation`` MCP tool."""

    from_id: IdStr
    to_id: IdStr
    type: RelationType
    properties: dict[str, Any] | None = None


class RelatedMemoriesParams(BaseModel):
    """Validated input for the ``get_related_memories`` MCP tool."""

    id: IdStr
    relation_type: RelationType | None = None
