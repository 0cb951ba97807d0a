"""
Result normalization: graph rows -> memory records.

The engine hands back a matched node in several shapes depending on the
query and client:

1. a row keyed by result alias (``{"n": node}``, ``{"related": node}``)
   whose value carries ``properties`` and ``labels``;
2. the node itself, as a ``falkordb.Node`` (attributes) or a mapping with
   ``properties`` and ``labels`` keys;
3. a flat property mapping with an ``id`` (legacy rows).

Shape matchers are tried in that order. Each returns ``(properties,
labels)`` or ``None``; new shapes are added by appending a matcher.
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from ..errors import NormalizationError
from ..models.memory import OPTIONAL_FIELDS, MemoryKind, MemoryRecord, memory_model_for, now_ms
from ..utils.serialization import loads_mapping
from .queries import NODE_ALIAS, RELATED_ALIAS

logger = logging.getLogger(__name__)

NodeParts = tuple[Mapping[str, Any], list[str]]
ShapeMatcher = Callable[[Any], NodeParts | None]

# Aliases checked before falling back to any node-like value in the row
KNOWN_ALIASES: tuple[str, ...] = (NODE_ALIAS, RELATED_ALIAS)


def _labels(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        return [raw]
    return [str(label) for label in raw]


def _node_parts(value: Any) -> NodeParts | None:
    """Properties and labels of a node-like value, or None if it is not one."""
    if isinstance(value, Mapping):
        if "properties" in value and "labels" in value:
            return value["properties"] or {}, _labels(value["labels"])
        return None
    properties = getattr(value, "properties", None)
    if isinstance(properties, Mapping) and hasattr(value, "labels"):
        return properties, _labels(value.labels)
    return None


def match_aliased(row: Any) -> NodeParts | None:
    """Shape 1: a node nested under a result alias."""
    if not isinstance(row, Mapping) or _node_parts(row) is not None:
        return None
    for alias in KNOWN_ALIASES:
        if alias in row:
            parts = _node_parts(row[alias])
            if parts is not None:
                return parts
    for value in row.values():
        parts = _node_parts(value)
        if parts is not None:
            return parts
    return None


def match_node(row: Any) -> NodeParts | None:
    """Shape 2: the node itself."""
    return _node_parts(row)


def match_flat(row: Any) -> NodeParts | None:
    """Shape 3: a flat property mapping that already has an id."""
    if isinstance(row, Mapping) and "id" in row and "properties" not in row:
        return row, []
    return None


SHAPE_MATCHERS: tuple[ShapeMatcher, ...] = (match_aliased, match_node, match_flat)


def _resolve_kind(properties: Mapping[str, Any], labels: Iterable[str]) -> MemoryKind:
    """Kind from the first label naming one, else the ``type`` property, else Conversation."""
    for label in labels:
        try:
            return MemoryKind(label)
        except ValueError:
            continue
    raw_type = properties.get("type")
    if raw_type is None:
        return MemoryKind.CONVERSATION
    try:
        return MemoryKind(raw_type)
    except ValueError:
        raise NormalizationError(f"Unknown memory type: {raw_type!r}") from None


def _timestamp(value: Any, fallback: int) -> int:
    if value is None:
        return fallback
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Invalid timestamp %r, using current time", value)
        return fallback


def normalize_row(row: Any) -> MemoryRecord:
    """
    Map one raw result row onto a typed memory record.

    Raises:
        NormalizationError: if no shape matcher recognizes the row, the node
            has no id, or its properties do not form a valid record.
    """
    if isinstance(row, (list, tuple)):
        if not row:
            raise NormalizationError("Empty result row", row)
        row = row[0]

    parts: NodeParts | None = None
    for matcher in SHAPE_MATCHERS:
        parts = matcher(row)
        if parts is not None:
            break
    if parts is None:
        raise NormalizationError(f"Unrecognized result row shape: {type(row).__name__}", row)

    properties, labels = parts
    memory_id = properties.get("id")
    if memory_id is None or memory_id == "":
        raise NormalizationError("Node has no id property", row)
    memory_id = str(memory_id)

    kind = _resolve_kind(properties, labels)
    now = now_ms()
    fields: dict[str, Any] = {
        "id": memory_id,
        "kind": kind,
        "content": properties.get("content") or "",
        "created": _timestamp(properties.get("created"), now),
        "updated": _timestamp(properties.get("updated"), now),
        "metadata": loads_mapping(properties.get("metadata"), memory_id=memory_id),
    }

    model = memory_model_for(kind)
    # Copy every known optional field that is present, whatever the kind
    for field_name in OPTIONAL_FIELDS:
        value = properties.get(model.property_name(field_name))
        if value is not None:
            fields[field_name] = value

    try:
        return model.model_validate(fields)
    except ValidationError as e:
        raise NormalizationError(f"Invalid properties for memory {memory_id}: {e}", row) from e


def normalize_rows(rows: Iterable[Any]) -> list[MemoryRecord]:
    """Normalize many rows, dropping (and logging) the ones that fail."""
    memories: list[MemoryRecord] = []
    for index, row in enumerate(rows):
        try:
            memories.append(normalize_row(row))
        except NormalizationError as e:
            logger.warning("Skipping result row %d: %s", index, e)
    return memories
