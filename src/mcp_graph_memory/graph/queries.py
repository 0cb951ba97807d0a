"""
Cypher query construction for memory operations.

Every builder returns a ``CypherQuery``: query text with ``$name``
placeholders plus the parameter map bound to them. Caller-supplied values
(ids, content, keywords, metadata values) only ever travel as parameters.
The tokens formatted into the text are node labels and relation types
checked against the schema whitelists, and property names checked against
the identifier pattern.
"""

from collections.abc import Mapping
from typing import Any, NamedTuple

from ..models.memory import (
    MemoryQueryOptions,
    MemoryRecord,
    MemoryRelation,
    MemorySearchCriteria,
    RelationType,
)
from ..utils.serialization import dumps_mapping
from .properties import (
    build_property_map,
    build_set_clause,
    extract_specific_properties,
    flatten_metadata,
)
from .schema import validate_identifier, validate_label, validate_relation_type

# Result aliases; the normalizer looks for these first
NODE_ALIAS = "n"
RELATED_ALIAS = "related"


class CypherQuery(NamedTuple):
    """Query text and its bound parameters."""

    text: str
    params: dict[str, Any]


def _persisted_properties(memory: MemoryRecord) -> dict[str, Any]:
    """Properties written on create and update besides the fixed columns."""
    properties: dict[str, Any] = {}
    if memory.title:
        properties["title"] = memory.title
    properties.update(extract_specific_properties(memory))
    properties.update(flatten_metadata(memory.metadata))
    return properties


# ── Writes ──────────────────────────────────────────────────────────────


def build_create_query(memory: MemoryRecord) -> CypherQuery:
    """CREATE a node labeled with the record's kind and return it."""
    label = validate_label(memory.kind)

    params: dict[str, Any] = {
        "id": memory.id,
        "type": label,
        "content": memory.content or "",
        "created": memory.created,
        "updated": memory.updated,
        "metadata": dumps_mapping(memory.metadata),
    }
    params.update(_persisted_properties(memory))

    text = f"CREATE ({NODE_ALIAS}:{label} {{{build_property_map(params)}}}) RETURN {NODE_ALIAS}"
    return CypherQuery(text, params)


def build_update_query(memory: MemoryRecord, previous_metadata: Mapping[str, Any] | None = None) -> CypherQuery:
    """
    SET every mutable property of an already merged record.

    ``previous_metadata`` is the metadata stored before the merge; flattened
    keys it had that the new metadata lacks are set to NULL, which removes
    them from the node.
    """
    params: dict[str, Any] = {
        "content": memory.content or "",
        "updated": memory.updated,
        "metadata": dumps_mapping(memory.metadata),
    }
    params.update(_persisted_properties(memory))

    assignments = [build_set_clause(params, NODE_ALIAS)]
    stale = sorted(set(flatten_metadata(previous_metadata)) - set(params))
    if stale:
        assignments.append(", ".join(f"{NODE_ALIAS}.{validate_identifier(key)} = NULL" for key in stale))

    params["id"] = memory.id
    text = f"MATCH ({NODE_ALIAS}) WHERE {NODE_ALIAS}.id = $id SET {', '.join(assignments)} RETURN {NODE_ALIAS}"
    return CypherQuery(text, params)


def build_delete_query(memory_id: str) -> CypherQuery:
    """DETACH DELETE a node (and all its edges) and report how many were removed."""
    text = f"MATCH ({NODE_ALIAS}) WHERE {NODE_ALIAS}.id = $id DETACH DELETE {NODE_ALIAS} RETURN count({NODE_ALIAS}) AS deleted"
    return CypherQuery(text, {"id": memory_id})


def build_create_relation_query(relation: MemoryRelation) -> CypherQuery:
    """
    Create a typed edge between two nodes matched by id, whatever their labels.

    If either endpoint is missing the MATCH yields no rows and nothing is
    created; the returned count is then 0.
    """
    rel = validate_relation_type(relation.type)
    params = {
        "fromId": relation.from_id,
        "toId": relation.to_id,
        "properties": dumps_mapping(relation.properties),
    }
    text = (
        "MATCH (a), (b) WHERE a.id = $fromId AND b.id = $toId "
        f"CREATE (a)-[r:{rel} {{properties: $properties}}]->(b) "
        "RETURN count(r) AS created"
    )
    return CypherQuery(text, params)


# ── Reads ───────────────────────────────────────────────────────────────


def build_fetch_by_id_query(memory_id: str) -> CypherQuery:
    """Match a node of any label by id."""
    text = f"MATCH ({NODE_ALIAS}) WHERE {NODE_ALIAS}.id = $id RETURN {NODE_ALIAS} LIMIT 1"
    return CypherQuery(text, {"id": memory_id})


def build_related_query(memory_id: str, relation_type: RelationType | str | None = None) -> CypherQuery:
    """Match the targets of a node's outgoing edges, optionally of one type."""
    rel_filter = f":{validate_relation_type(relation_type)}" if relation_type is not None else ""
    text = f"MATCH ({NODE_ALIAS})-[r{rel_filter}]->({RELATED_ALIAS}) WHERE {NODE_ALIAS}.id = $id RETURN {RELATED_ALIAS}"
    return CypherQuery(text, {"id": memory_id})


def keyword_terms(keyword: str) -> list[str]:
    """Lower-cased whitespace-separated terms of a keyword phrase."""
    return keyword.strip().lower().split()


def _contains_clause(param: str) -> str:
    return f"toLower({NODE_ALIAS}.content) CONTAINS ${param} OR toLower(toString({NODE_ALIAS}.title)) CONTAINS ${param}"


def _keyword_clause(keyword: str, fuzzy: bool, params: dict[str, Any]) -> str:
    """
    Case-insensitive containment against content or title.

    Fuzzy: one test per term, plus the whole phrase when there are several
    terms, all OR'ed. Exact: the whole phrase only.
    """
    phrase = keyword.strip().lower()
    terms = keyword_terms(keyword)

    if not fuzzy or not terms:
        params["keyword"] = phrase
        return f"({_contains_clause('keyword')})"

    conditions = []
    for index, term in enumerate(terms):
        name = f"keyword{index}"
        params[name] = term
        conditions.append(_contains_clause(name))
    if len(terms) > 1:
        params["exactPhrase"] = phrase
        conditions.append(_contains_clause("exactPhrase"))
    return f"({' OR '.join(conditions)})"


def _metadata_clause(metadata: Mapping[str, Any], params: dict[str, Any]) -> str:
    """One test per metadata entry: substring of the stored text for strings, equality otherwise."""
    conditions = []
    for index, (key, value) in enumerate(metadata.items()):
        prop = f"{NODE_ALIAS}.metadata_{validate_identifier(key)}"
        name = f"metadataValue{index}"
        if isinstance(value, str):
            params[name] = value.lower()
            conditions.append(f"({prop} IS NOT NULL AND toLower(toString({prop})) CONTAINS ${name})")
        else:
            params[name] = value
            conditions.append(f"({prop} IS NOT NULL AND {prop} = ${name})")
    return f"({' AND '.join(conditions)})"


def build_search_query(
    criteria: MemorySearchCriteria | None = None,
    options: MemoryQueryOptions | None = None,
) -> CypherQuery:
    """
    Build the search query.

    The kind narrows the MATCH label; keyword, created range and metadata
    filters are AND'ed in the WHERE clause. Results are ordered by
    ``options.order_by`` (default ``created DESC``), then SKIP/LIMIT apply.
    """
    criteria = criteria or MemorySearchCriteria()
    options = options or MemoryQueryOptions()
    params: dict[str, Any] = {}
    clauses: list[str] = []

    label = f":{validate_label(criteria.kind)}" if criteria.kind is not None else ""

    if criteria.has_keyword:
        clauses.append(_keyword_clause(criteria.keyword, criteria.fuzzy_search, params))

    if criteria.start_date is not None:
        params["startDate"] = criteria.start_date
        clauses.append(f"{NODE_ALIAS}.created >= $startDate")

    if criteria.end_date is not None:
        params["endDate"] = criteria.end_date
        clauses.append(f"{NODE_ALIAS}.created <= $endDate")

    if criteria.metadata:
        clauses.append(_metadata_clause(criteria.metadata, params))

    parts = [f"MATCH ({NODE_ALIAS}{label})"]
    if clauses:
        parts.append(f"WHERE {' AND '.join(clauses)}")
    parts.append(f"RETURN {NODE_ALIAS}")
    parts.append(f"ORDER BY {NODE_ALIAS}.{validate_identifier(options.order_by)} {options.direction}")

    if options.offset:
        params["skip"] = options.offset
        parts.append("SKIP $skip")
    if options.limit:
        params["limit"] = options.limit
        parts.append("LIMIT $limit")

    return CypherQuery(" ".join(parts), params)
