"""
FalkorDB graph client for the memory store.

Owns the Redis connection pool and the selected graph, and exposes the one
primitive the service needs: run a parameterized Cypher statement and get
its rows back keyed by result alias. Concurrency between queries is left
to FalkorDB; this client adds no locking and no retries.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from falkordb.asyncio import FalkorDB
from redis.asyncio import BlockingConnectionPool

logger = logging.getLogger(__name__)


@dataclass
class GraphResult:
    """Rows and write statistics of one executed statement."""

    rows: list[dict[str, Any]] = field(default_factory=list)
    nodes_created: int = 0
    nodes_deleted: int = 0
    relationships_created: int = 0

    @property
    def first(self) -> dict[str, Any] | None:
        return self.rows[0] if self.rows else None


def _column_names(result: Any, width: int) -> list[str]:
    """Result aliases from the QueryResult header, positional names as fallback."""
    names: list[str] = []
    for index, column in enumerate(getattr(result, "header", None) or []):
        name = column[1] if isinstance(column, (list, tuple)) and len(column) > 1 else column
        if isinstance(name, bytes):
            name = name.decode()
        names.append(name if isinstance(name, str) else f"col{index}")
    names.extend(f"col{index}" for index in range(len(names), width))
    return names


def _stat(result: Any, name: str) -> int:
    try:
        return int(getattr(result, name, 0) or 0)
    except (TypeError, ValueError):
        return 0


def to_graph_result(result: Any) -> GraphResult:
    """Convert a falkordb QueryResult into a GraphResult."""
    raw_rows = list(getattr(result, "result_set", None) or [])
    width = max((len(row) for row in raw_rows), default=0)
    names = _column_names(result, width)
    rows = [dict(zip(names, row, strict=False)) for row in raw_rows]
    return GraphResult(
        rows=rows,
        nodes_created=_stat(result, "nodes_created"),
        nodes_deleted=_stat(result, "nodes_deleted"),
        relationships_created=_stat(result, "relationships_created"),
    )


class GraphClient:
    """
    Async FalkorDB client for the memory graph.

    ``initialize()`` must be awaited before ``run()``; ``close()`` releases
    the pool.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        password: str | None = None,
        graph_name: str = "memory",
        max_connections: int = 16,
        url: str | None = None,
    ):
        self.host = host
        self.port = port
        self.password = password
        self.graph_name = graph_name
        self.max_connections = max_connections
        self.url = url

        self._pool: BlockingConnectionPool | None = None
        self._db: FalkorDB | None = None
        self._graph = None
        self._initialized = False

    async def initialize(self) -> None:
        """Create the connection pool and select the graph."""
        if self._initialized:
            return

        if self.url:
            self._pool = BlockingConnectionPool.from_url(
                self.url,
                max_connections=self.max_connections,
                timeout=None,
                decode_responses=True,
            )
        else:
            self._pool = BlockingConnectionPool(
                host=self.host,
                port=self.port,
                password=self.password,
                max_connections=self.max_connections,
                timeout=None,
                decode_responses=True,
            )

        self._db = FalkorDB(connection_pool=self._pool)
        self._graph = self._db.select_graph(self.graph_name)
        self._initialized = True
        logger.info(f"GraphClient initialized: {self.url or f'{self.host}:{self.port}'}/{self.graph_name}")

    @property
    def graph(self):
        """Expose graph for direct query access."""
        if self._graph is None:
            raise RuntimeError("GraphClient not initialized. Call initialize() first.")
        return self._graph

    async def run(self, query: str, params: dict[str, Any] | None = None) -> GraphResult:
        """Execute one parameterized statement. Engine errors propagate unchanged."""
        logger.debug("Cypher: %s | params=%s", query, sorted(params or {}))
        result = await self.graph.query(query, params=params or None)
        return to_graph_result(result)

    async def apply_schema(self, statements: list[str]) -> None:
        """
        Run schema statements idempotently.

        An index that already exists is not an error; anything else is
        raised to the caller.
        """
        for stmt in statements:
            try:
                await self.graph.query(stmt)
            except Exception as e:
                if "already indexed" not in str(e).lower():
                    logger.error(f"Schema statement failed: {stmt} -> {e}")
                    raise
                logger.debug(f"Schema statement skipped (already indexed): {stmt}")

    async def close(self) -> None:
        """Close the connection pool."""
        if self._pool is not None:
            try:
                await self._pool.aclose()
                logger.info("GraphClient connection pool closed")
            except Exception as e:
                logger.warning(f"Error closing GraphClient pool: {e}")
            finally:
                self._pool = None
                self._db = None
                self._graph = None
                self._initialized = False
