#!/usr/bin/env python3
"""FastMCP server for the graph memory service.

Exposes the seven memory operations as MCP tools. Each tool handler
validates its arguments through an input model, calls the MemoryService
held in the lifespan context, and returns a ``{"success": ...}`` dict.
Exceptions never cross the tool boundary: they become
``{"success": False, "error": ...}``.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from fastmcp import Context, FastMCP
from pydantic import ValidationError

from .config import settings
from .graph.client import GraphClient
from .models.mcp_inputs import (
    CreateMemoryParams,
    CreateRelationParams,
    DeleteMemoryParams,
    RelatedMemoriesParams,
    RetrieveMemoryParams,
    SearchMemoriesParams,
    UpdateMemoryParams,
)
from .models.memory import FieldValue, MemoryQueryOptions, MemoryRecord, MemoryRelation, MemorySearchCriteria
from .services.memory_service import MemoryService

logging.basicConfig(level=settings.server.log_level)
logger = logging.getLogger(__name__)


@dataclass
class MCPServerContext:
    """Application context for the MCP server."""

    graph_client: GraphClient
    memory_service: MemoryService


@asynccontextmanager
async def mcp_server_lifespan(server: FastMCP) -> AsyncIterator[MCPServerContext]:
    """Connect to FalkorDB, ensure indices, and close the pool on shutdown."""
    from .graph.factory import create_memory_service

    graph_client, memory_service = await create_memory_service()
    try:
        yield MCPServerContext(graph_client=graph_client, memory_service=memory_service)
    finally:
        logger.info("Shutting down graph memory service...")
        await graph_client.close()


mcp = FastMCP("Graph Memory Service", lifespan=mcp_server_lifespan)


def _service(ctx: Context) -> MemoryService:
    return ctx.request_context.lifespan_context.memory_service


def _describe(memory: MemoryRecord) -> str:
    """One-line summary used in list responses."""
    label = memory.title or memory.name or memory.content[:50]
    return f"- {memory.kind.value}: {label}... (ID: {memory.id})"


def _failure(action: str, error: Exception | str) -> dict[str, Any]:
    return {"success": False, "error": f"Failed to {action}: {error}"}


# =============================================================================
# CORE MEMORY OPERATIONS
# =============================================================================


@mcp.tool()
async def create_memory(
    type: str,
    ctx: Context,
    content: str = "",
    title: FieldValue | None = None,
    metadata: dict[str, Any] | None = None,
    name: FieldValue | None = None,
    description: FieldValue | None = None,
    summary: FieldValue | None = None,
    status: FieldValue | None = None,
    severity: FieldValue | None = None,
    key: FieldValue | None = None,
    value: FieldValue | None = None,
    environment: FieldValue | None = None,
    category: FieldValue | None = None,
    amount: float | None = None,
    currency: FieldValue | None = None,
    completed: bool | None = None,
    priority: FieldValue | None = None,
    due_date: int | None = None,
) -> dict[str, Any]:
    """Create a new memory node.

    Args:
        type: Memory kind - Conversation, Topic, Project, Task, Issue, Config, Finance or Todo
        content: Free-text body of the memory
        title: Optional title (stored for every kind)
        metadata: Additional metadata; scalar entries become searchable
        name, description, summary, status, severity, key, value, environment,
        category, amount, currency, completed, priority, due_date:
            Kind-specific attributes. Only the ones belonging to the kind are stored.

    Returns:
        {success, message, memory} or {success: false, error}
    """
    try:
        params = CreateMemoryParams(
            type=type,
            content=content,
            title=title,
            metadata=metadata,
            name=name,
            description=description,
            summary=summary,
            status=status,
            severity=severity,
            key=key,
            value=value,
            environment=environment,
            category=category,
            amount=amount,
            currency=currency,
            completed=completed,
            priority=priority,
            due_date=due_date,
        )
    except ValidationError as e:
        return {"success": False, "error": str(e)}

    try:
        memory = await _service(ctx).create_memory(
            params.type,
            content=params.content,
            title=params.title,
            metadata=params.metadata,
            **params.provided(),
        )
    except Exception as e:
        logger.error(f"Error creating memory: {e}")
        return _failure("create memory", e)

    return {
        "success": True,
        "message": f"Successfully created {memory.kind.value} memory with ID: {memory.id}",
        "memory": memory.to_dict(),
    }


@mcp.tool()
async def retrieve_memory(id: str, ctx: Context) -> dict[str, Any]:
    """Retrieve a memory by its ID.

    Args:
        id: The ID of the memory to retrieve

    Returns:
        {success, message, memory} or {success: false, error}
    """
    try:
        params = RetrieveMemoryParams(id=id)
    except ValidationError as e:
        return {"success": False, "error": str(e)}

    try:
        memory = await _service(ctx).get_memory_by_id(params.id)
    except Exception as e:
        logger.error(f"Error retrieving memory: {e}")
        return _failure("retrieve memory", e)

    if memory is None:
        return {"success": False, "error": f"Memory not found with ID: {params.id}"}
    return {
        "success": True,
        "message": f"Retrieved memory of type {memory.kind.value}",
        "memory": memory.to_dict(),
    }


@mcp.tool()
async def search_memories(
    ctx: Context,
    type: str | None = None,
    keyword: str | None = None,
    fuzzy_search: bool = True,
    top_results: int | None = None,
    start_date: int | None = None,
    end_date: int | None = None,
    metadata: dict[str, Any] | None = None,
    limit: int | None = None,
    offset: int = 0,
    order_by: str = "created",
    direction: str = "DESC",
) -> dict[str, Any]:
    """Search memories by type, keyword, creation date range and metadata.

    Args:
        type: Filter by memory kind
        keyword: Words to look for in content or title (case-insensitive)
        fuzzy_search: Match any word and rank by relevance (default: True).
            False matches the whole phrase only, in engine order.
        top_results: Keep this many ranked results (default: 10, 0 = all)
        start_date: Only memories created at or after this timestamp (ms)
        end_date: Only memories created at or before this timestamp (ms)
        metadata: Metadata filters; strings match by substring, other values by equality
        limit: Page size (default: 10, max: 100)
        offset: Number of results to skip
        order_by: Property to order by (default: created)
        direction: ASC or DESC (default: DESC)

    Returns:
        {success, message, count, memories, summaries} or {success: false, error}
    """
    try:
        params = SearchMemoriesParams(
            type=type,
            keyword=keyword,
            fuzzy_search=fuzzy_search,
            top_results=top_results,
            start_date=start_date,
            end_date=end_date,
            metadata=metadata,
            limit=limit if limit is not None else settings.search.default_limit,
            offset=offset,
            order_by=order_by,
            direction=direction,
        )
        criteria = MemorySearchCriteria(
            kind=params.type,
            keyword=params.keyword,
            fuzzy_search=params.fuzzy_search,
            top_results=params.top_results,
            start_date=params.start_date,
            end_date=params.end_date,
            metadata=params.metadata,
        )
        options = MemoryQueryOptions(
            limit=params.limit,
            offset=params.offset,
            order_by=params.order_by,
            direction=params.direction,
        )
    except ValidationError as e:
        return {"success": False, "error": str(e)}

    try:
        memories = await _service(ctx).search_memories(criteria, options)
    except Exception as e:
        logger.error(f"Error searching memories: {e}")
        return _failure("search memories", e)

    return {
        "success": True,
        "message": f"Found {len(memories)} memories",
        "count": len(memories),
        "memories": [memory.to_dict() for memory in memories],
        "summaries": [_describe(memory) for memory in memories],
    }


@mcp.tool()
async def update_memory(
    id: str,
    ctx: Context,
    content: str | None = None,
    title: FieldValue | None = None,
    metadata: dict[str, Any] | None = None,
    name: FieldValue | None = None,
    description: FieldValue | None = None,
    summary: FieldValue | None = None,
    status: FieldValue | None = None,
    severity: FieldValue | None = None,
    key: FieldValue | None = None,
    value: FieldValue | None = None,
    environment: FieldValue | None = None,
    category: FieldValue | None = None,
    amount: float | None = None,
    currency: FieldValue | None = None,
    completed: bool | None = None,
    priority: FieldValue | None = None,
    due_date: int | None = None,
) -> dict[str, Any]:
    """Update fields of an existing memory. Omitted fields keep their value.

    Args:
        id: The ID of the memory to update
        content: Updated content
        title: Updated title
        metadata: Replacement metadata (replaces the whole mapping)
        name, description, summary, status, severity, key, value, environment,
        category, amount, currency, completed, priority, due_date:
            Updated kind-specific attributes

    Returns:
        {success, message, memory} or {success: false, error}
    """
    try:
        params = UpdateMemoryParams(
            id=id,
            content=content,
            title=title,
            metadata=metadata,
            name=name,
            description=description,
            summary=summary,
            status=status,
            severity=severity,
            key=key,
            value=value,
            environment=environment,
            category=category,
            amount=amount,
            currency=currency,
            completed=completed,
            priority=priority,
            due_date=due_date,
        )
    except ValidationError as e:
        return {"success": False, "error": str(e)}

    try:
        memory = await _service(ctx).update_memory(params.id, params.updates())
    except Exception as e:
        logger.error(f"Error updating memory: {e}")
        return _failure("update memory", e)

    if memory is None:
        return {"success": False, "error": f"Memory not found with ID: {params.id}"}
    return {
        "success": True,
        "message": f"Memory updated successfully with ID: {params.id}",
        "memory": memory.to_dict(),
    }


@mcp.tool()
async def delete_memory(id: str, ctx: Context) -> dict[str, Any]:
    """Delete a memory and all of its relationships.

    Args:
        id: The ID of the memory to delete

    Returns:
        {success, message} or {success: false, error}
    """
    try:
        params = DeleteMemoryParams(id=id)
    except ValidationError as e:
        return {"success": False, "error": str(e)}

    try:
        deleted = await _service(ctx).delete_memory(params.id)
    except Exception as e:
        logger.error(f"Error deleting memory: {e}")
        return _failure("delete memory", e)

    if not deleted:
        return {"success": False, "error": f"Memory not found or could not be deleted with ID: {params.id}"}
    return {"success": True, "message": f"Memory deleted successfully with ID: {params.id}"}


# =============================================================================
# RELATIONSHIPS
# =============================================================================


@mcp.tool()
async def create_relation(
    from_id: str,
    to_id: str,
    type: str,
    ctx: Context,
    properties: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Create a directed relationship between two memories.

    Args:
        from_id: The ID of the source memory
        to_id: The ID of the target memory
        type: CONTAINS, RELATED_TO, DEPENDS_ON, PART_OF, RESOLVED_BY, CREATED_AT or UPDATED_AT
        properties: Additional properties stored on the relationship

    Returns:
        {success, message} or {success: false, error}
    """
    try:
        params = CreateRelationParams(from_id=from_id, to_id=to_id, type=type, properties=properties)
    except ValidationError as e:
        return {"success": False, "error": str(e)}

    relation = MemoryRelation(
        from_id=params.from_id,
        to_id=params.to_id,
        type=params.type,
        properties=params.properties,
    )
    try:
        await _service(ctx).create_relation(relation)
    except Exception as e:
        logger.error(f"Error creating relationship: {e}")
        return _failure("create relationship", e)

    return {
        "success": True,
        "message": f"Relationship created successfully from {params.from_id} to {params.to_id} with type {params.type.value}",
    }


@mcp.tool()
async def get_related_memories(id: str, ctx: Context, relation_type: str | None = None) -> dict[str, Any]:
    """Get the memories a memory points to, optionally filtered by relationship type.

    Args:
        id: The ID of the memory to find relations for
        relation_type: Only follow relationships of this type

    Returns:
        {success, message, count, memories, summaries} or {success: false, error}
    """
    try:
        params = RelatedMemoriesParams(id=id, relation_type=relation_type)
    except ValidationError as e:
        return {"success": False, "error": str(e)}

    try:
        memories = await _service(ctx).get_related_memories(params.id, params.relation_type)
    except Exception as e:
        logger.error(f"Error getting related memories: {e}")
        return _failure("get related memories", e)

    return {
        "success": True,
        "message": f"Found {len(memories)} related memories for ID: {params.id}",
        "count": len(memories),
        "memories": [memory.to_dict() for memory in memories],
        "summaries": [_describe(memory) for memory in memories],
    }


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================


def main():
    """Main entry point for the graph memory MCP server."""
    config = settings.server

    if config.transport == "stdio":
        logger.info("Starting graph memory MCP server on stdio")
        mcp.run(transport="stdio")
    else:
        logger.info(f"Starting graph memory MCP server on {config.host}:{config.port}")
        mcp.run(transport="http", host=config.host, port=config.port)


if __name__ == "__main__":
    main()
