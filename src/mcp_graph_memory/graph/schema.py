"""
Graph schema for the memory store.

Node Labels:
    One label per memory kind (:Conversation, :Topic, :Project, :Task,
    :Issue, :Config, :Finance, :Todo). Every node also carries its kind in
    a ``type`` property so it can be read back without label metadata.

Relationship Types:
    :CONTAINS, :RELATED_TO, :DEPENDS_ON, :PART_OF, :RESOLVED_BY,
    :CREATED_AT, :UPDATED_AT. Each edge stores its properties as one
    serialized ``properties`` string.

Indices:
    <Label>(id) - exact-match lookup for every kind
"""

from ..models.memory import IDENTIFIER_PATTERN, MemoryKind, RelationType

# Labels and relationship types cannot be passed as Cypher parameters, so
# they are checked against these whitelists before being formatted into
# query text.
MEMORY_LABELS: frozenset[str] = frozenset(kind.value for kind in MemoryKind)
RELATION_TYPES: frozenset[str] = frozenset(rel.value for rel in RelationType)

# Executed on every initialize(). Re-creating an existing index makes
# FalkorDB report "already indexed", which the client ignores.
SCHEMA_STATEMENTS: list[str] = [f"CREATE INDEX FOR (n:{kind.value}) ON (n.id)" for kind in MemoryKind]


def validate_label(kind: MemoryKind | str) -> str:
    """Validate a memory kind and return it as a node label."""
    value = kind.value if isinstance(kind, MemoryKind) else str(kind)
    if value not in MEMORY_LABELS:
        raise ValueError(f"Invalid memory type: {kind!r}. Must be one of: {', '.join(sorted(MEMORY_LABELS))}")
    return value


def validate_relation_type(relation_type: RelationType | str) -> str:
    """Validate and normalize a relation type against the whitelist."""
    value = relation_type.value if isinstance(relation_type, RelationType) else str(relation_type).upper()
    if value not in RELATION_TYPES:
        raise ValueError(f"Invalid relation type: {relation_type!r}. Must be one of: {', '.join(sorted(RELATION_TYPES))}")
    return value


def validate_identifier(name: str) -> str:
    """Validate a property name that will be formatted into query text."""
    if not isinstance(name, str) or not IDENTIFIER_PATTERN.match(name):
        raise ValueError(f"Invalid property name: {name!r}")
    return name
