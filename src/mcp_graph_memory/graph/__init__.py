"""
Graph layer for the memory store.

FalkorDB-backed property graph: one labeled node per memory record, one
typed edge per relation. Query text is built in ``queries``, rows are
mapped back to records in ``normalizer``.
"""

from .client import GraphClient, GraphResult
from .queries import CypherQuery
from .schema import MEMORY_LABELS, RELATION_TYPES, SCHEMA_STATEMENTS

__all__ = [
    "CypherQuery",
    "GraphClient",
    "GraphResult",
    "MEMORY_LABELS",
    "RELATION_TYPES",
    "SCHEMA_STATEMENTS",
]
