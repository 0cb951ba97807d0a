"""Pydantic models for memory records and MCP tool inputs."""

from .memory import (
    MEMORY_MODELS,
    MemoryKind,
    MemoryQueryOptions,
    MemoryRecord,
    MemoryRelation,
    MemorySearchCriteria,
    MemoryUpdate,
    RelationType,
    memory_model_for,
)

__all__ = [
    "MEMORY_MODELS",
    "MemoryKind",
    "MemoryQueryOptions",
    "MemoryRecord",
    "MemoryRelation",
    "MemorySearchCriteria",
    "MemoryUpdate",
    "RelationType",
    "memory_model_for",
]
