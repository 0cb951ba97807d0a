"""
Memory Service - orchestration of memory operations against the graph.

Each public operation is one query built by ``graph.queries``, executed on
the shared GraphClient, with rows mapped back through ``graph.normalizer``.
Search additionally runs the relevance ranker. Operations keep no state of
their own between calls; isolation between concurrent calls is FalkorDB's.
"""

import logging
import uuid
from collections.abc import Mapping
from typing import Any

from ..errors import PersistenceError
from ..graph.client import GraphClient
from ..graph.normalizer import normalize_row, normalize_rows
from ..graph.queries import (
    build_create_query,
    build_create_relation_query,
    build_delete_query,
    build_fetch_by_id_query,
    build_related_query,
    build_search_query,
    build_update_query,
)
from ..graph.schema import SCHEMA_STATEMENTS
from ..models.memory import (
    MemoryKind,
    MemoryQueryOptions,
    MemoryRecord,
    MemoryRelation,
    MemorySearchCriteria,
    MemoryUpdate,
    RelationType,
    memory_model_for,
    now_ms,
)
from ..utils.relevance import DEFAULT_TOP_RESULTS, rank_memories, truncate

logger = logging.getLogger(__name__)

# Assigned by create_memory, never taken from caller-supplied fields
_RESERVED_FIELDS = frozenset({"id", "kind", "type", "created", "updated"})
# Persisted for every kind, on top of the kind's SPECIFIC_FIELDS
_COMMON_FIELDS = frozenset({"content", "metadata", "title"})


def _writable(model: type[MemoryRecord], fields: Mapping[str, Any], memory_id: str | None = None) -> dict[str, Any]:
    """Keep the fields the kind persists; log and drop the rest."""
    allowed = _COMMON_FIELDS | set(model.SPECIFIC_FIELDS)
    ignored = sorted(name for name in fields if name not in allowed)
    if ignored:
        logger.warning(
            "Ignoring fields not stored for %s memories: %s",
            model.KIND.value,
            ", ".join(ignored),
            extra={"memory_id": memory_id, "ignored_fields": ignored},
        )
    return {name: value for name, value in fields.items() if name in allowed}


class MemoryService:
    """
    Create, fetch, search, update, delete and relate memory records.

    ``initialize()`` should complete before other operations are used; the
    operations themselves do not check it.
    """

    def __init__(self, graph_client: GraphClient, default_top_results: int = DEFAULT_TOP_RESULTS):
        self._graph = graph_client
        self.default_top_results = default_top_results

    async def initialize(self) -> None:
        """Create the per-kind ``id`` indices. Safe to call repeatedly."""
        await self._graph.apply_schema(SCHEMA_STATEMENTS)
        logger.info(f"Memory graph indices ensured for {len(SCHEMA_STATEMENTS)} kinds")

    # ── Writes ──────────────────────────────────────────────────────────

    async def create_memory(
        self,
        kind: MemoryKind | str,
        content: str = "",
        title: str | None = None,
        metadata: Mapping[str, Any] | None = None,
        **fields: Any,
    ) -> MemoryRecord:
        """
        Create a memory node with a new id and timestamps.

        Args:
            kind: Memory kind; becomes the node label
            content: Free-text body
            title: Optional title, stored for every kind
            metadata: Open mapping, stored as one serialized property
            **fields: Kind-specific attributes (status, due_date, ...); attributes the
                kind does not store are dropped with a warning

        Returns:
            The created record.

        Raises:
            ValueError: If the kind or a field value is invalid.
            PersistenceError: If the engine returned no created node.
        """
        now = now_ms()
        model = memory_model_for(kind)
        extra_fields = _writable(model, {name: value for name, value in fields.items() if name not in _RESERVED_FIELDS})
        memory = model.model_validate(
            {
                **extra_fields,
                "id": str(uuid.uuid4()),
                "kind": MemoryKind(kind),
                "content": content or "",
                "title": title,
                "metadata": dict(metadata or {}),
                "created": now,
                "updated": now,
            }
        )

        query = build_create_query(memory)
        result = await self._graph.run(query.text, query.params)
        if not result.rows and result.nodes_created == 0:
            logger.error(f"Failed to create {memory.kind.value} memory {memory.id}: no node returned")
            raise PersistenceError(f"Failed to create {memory.kind.value} memory node")

        logger.info(f"Created {memory.kind.value} memory {memory.id}")
        return memory

    async def update_memory(self, memory_id: str, updates: MemoryUpdate | Mapping[str, Any]) -> MemoryRecord | None:
        """
        Merge a partial field set over a stored memory.

        ``updated`` is refreshed; ``id``, kind and ``created`` never change.
        Attributes the kind does not store are dropped with a warning.

        Returns:
            The full merged record, or None if no memory has this id.
        """
        if not isinstance(updates, MemoryUpdate):
            updates = MemoryUpdate.model_validate(dict(updates))

        current = await self.get_memory_by_id(memory_id)
        if current is None:
            return None

        changes = _writable(type(current), updates.changes(), memory_id)
        merged_fields = {**current.model_dump(), **changes, "updated": now_ms()}
        merged = type(current).model_validate(merged_fields)

        query = build_update_query(merged, previous_metadata=current.metadata)
        await self._graph.run(query.text, query.params)

        logger.info(f"Updated memory {memory_id} ({', '.join(sorted(changes)) or 'timestamp only'})")
        return merged

    async def delete_memory(self, memory_id: str) -> bool:
        """Delete a memory and every edge touching it. True iff a node was removed."""
        query = build_delete_query(memory_id)
        result = await self._graph.run(query.text, query.params)

        deleted = result.nodes_deleted
        row = result.first
        if row:
            try:
                deleted = max(deleted, int(row.get("deleted", 0) or 0))
            except (TypeError, ValueError):
                logger.warning(f"Unexpected delete count for memory {memory_id}: {row!r}")

        if deleted > 0:
            logger.info(f"Deleted memory {memory_id}")
        return deleted > 0

    async def create_relation(self, relation: MemoryRelation) -> None:
        """
        Create a typed edge between two memories.

        If either endpoint does not exist nothing is created and no error is
        raised; the miss is only logged.
        """
        query = build_create_relation_query(relation)
        result = await self._graph.run(query.text, query.params)

        created = result.relationships_created
        row = result.first
        if row:
            try:
                created = max(created, int(row.get("created", 0) or 0))
            except (TypeError, ValueError):
                pass

        if created == 0:
            logger.warning(
                "Relation %s from %s to %s not created: endpoint missing",
                relation.type.value,
                relation.from_id,
                relation.to_id,
                extra={"from_id": relation.from_id, "to_id": relation.to_id, "relation_type": relation.type.value},
            )
        else:
            logger.info(f"Created relation {relation.from_id} -[{relation.type.value}]-> {relation.to_id}")

    # ── Reads ───────────────────────────────────────────────────────────

    async def get_memory_by_id(self, memory_id: str) -> MemoryRecord | None:
        """
        Fetch one memory by id, whatever its kind.

        Raises:
            NormalizationError: If the stored node cannot be mapped to a record.
        """
        query = build_fetch_by_id_query(memory_id)
        result = await self._graph.run(query.text, query.params)
        if not result.rows:
            return None
        return normalize_row(result.rows[0])

    async def search_memories(
        self,
        criteria: MemorySearchCriteria | None = None,
        options: MemoryQueryOptions | None = None,
    ) -> list[MemoryRecord]:
        """
        Search memories by kind, keyword, created range and metadata.

        With a keyword and fuzzy matching (the default), results are re-ranked
        by relevance and cut to ``top_results`` (default 10). Without fuzzy
        matching the engine order is kept and only an explicit positive
        ``top_results`` truncates. Rows that fail to parse are skipped.
        """
        criteria = criteria or MemorySearchCriteria()
        options = options or MemoryQueryOptions()

        query = build_search_query(criteria, options)
        result = await self._graph.run(query.text, query.params)
        memories = normalize_rows(result.rows)

        if criteria.has_keyword and criteria.fuzzy_search and memories:
            top_n = criteria.top_results if criteria.top_results is not None else self.default_top_results
            return rank_memories(memories, criteria.keyword, top_n=top_n)
        return truncate(memories, criteria.top_results)

    async def get_related_memories(
        self,
        memory_id: str,
        relation_type: RelationType | str | None = None,
    ) -> list[MemoryRecord]:
        """Targets of a memory's outgoing edges, optionally of one relation type."""
        query = build_related_query(memory_id, relation_type)
        result = await self._graph.run(query.text, query.params)
        return normalize_rows(result.rows)
