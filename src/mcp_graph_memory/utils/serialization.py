"""
Mapping <-> string codec for node metadata and edge properties.

The graph stores open-ended mappings as one JSON string property. Reads
never fail because of a bad blob: anything that does not decode to a JSON
object becomes ``{}`` and a warning is logged so the loss is visible to
operators.
"""

import json
import logging
from collections.abc import Mapping
from typing import Any

logger = logging.getLogger(__name__)

EMPTY_MAPPING = "{}"


def dumps_mapping(value: Mapping[str, Any] | None) -> str:
    """Serialize a mapping to a JSON string; ``None`` or unserializable input gives ``"{}"``."""
    if not value:
        return EMPTY_MAPPING
    try:
        return json.dumps(dict(value), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        logger.warning("Failed to serialize mapping, storing empty object instead: %s", e)
        return EMPTY_MAPPING


def loads_mapping(raw: Any, memory_id: str | None = None) -> dict[str, Any]:
    """Deserialize a stored mapping, degrading to ``{}`` on any failure."""
    if raw is None or raw == "":
        return {}
    if isinstance(raw, Mapping):
        return dict(raw)
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    if not isinstance(raw, str):
        _warn_unparseable(memory_id, f"unexpected type {type(raw).__name__}", raw)
        return {}

    try:
        parsed = json.loads(raw)
    except ValueError as e:
        _warn_unparseable(memory_id, str(e), raw)
        return {}

    if not isinstance(parsed, dict):
        _warn_unparseable(memory_id, f"decoded to {type(parsed).__name__}, not an object", raw)
        return {}
    return parsed


def _warn_unparseable(memory_id: str | None, reason: str, raw: Any) -> None:
    logger.warning(
        "Discarding unparseable metadata for memory %s: %s",
        memory_id or "<unknown>",
        reason,
        extra={"memory_id": memory_id, "metadata_error": reason, "metadata_length": len(str(raw))},
    )
