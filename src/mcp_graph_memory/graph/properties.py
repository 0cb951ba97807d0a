"""
Property extraction: which record fields become node properties.

Used both for the parameter map of a create/update query and for the
literal ``key: $key`` / ``n.key = $key`` text of the same query, so the
two always agree.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from ..models.memory import IDENTIFIER_PATTERN, MemoryRecord
from .schema import validate_identifier

# Prefix for metadata entries copied onto the node as searchable properties
METADATA_PROPERTY_PREFIX = "metadata_"

_SCALAR_TYPES = (str, int, float, bool)


def extract_specific_properties(memory: MemoryRecord) -> dict[str, Any]:
    """
    Return the kind-specific properties of a record, keyed by graph property name.

    Empty values are omitted, except ``completed``: an explicit ``False``
    is a real value for a Todo and must be persisted.
    """
    properties: dict[str, Any] = {}
    for field_name in memory.SPECIFIC_FIELDS:
        value = getattr(memory, field_name)
        if field_name == "completed":
            if value is None:
                continue
        elif not value:
            continue
        properties[memory.property_name(field_name)] = value
    return properties


def flatten_metadata(metadata: Mapping[str, Any] | None) -> dict[str, Any]:
    """
    Copy scalar metadata entries into ``metadata_<key>`` properties.

    Only identifier-safe keys with str/int/float/bool values qualify; the
    full mapping is always kept in the serialized ``metadata`` property.
    """
    if not metadata:
        return {}
    return {
        f"{METADATA_PROPERTY_PREFIX}{key}": value
        for key, value in metadata.items()
        if isinstance(key, str) and IDENTIFIER_PATTERN.match(key) and isinstance(value, _SCALAR_TYPES)
    }


def build_property_map(keys: Iterable[str]) -> str:
    """Render ``key: $key`` pairs for a CREATE node pattern."""
    return ", ".join(f"{validate_identifier(key)}: ${key}" for key in keys)


def build_set_clause(keys: Iterable[str], variable: str = "n") -> str:
    """Render ``n.key = $key`` assignments for a SET clause."""
    return ", ".join(f"{variable}.{validate_identifier(key)} = ${key}" for key in keys)
