"""
Factory for creating and initializing the graph layer.

Creates a connected GraphClient from FalkorDBSettings and wraps it in a
MemoryService with the configured search defaults.
"""

import logging

from ..config import settings
from ..services.memory_service import MemoryService
from .client import GraphClient

logger = logging.getLogger(__name__)


async def create_graph_client() -> GraphClient:
    """Create and connect a GraphClient from the MCP_FALKORDB_* settings."""
    config = settings.falkordb
    password = config.password.get_secret_value() if config.password else None

    client = GraphClient(
        host=config.host,
        port=config.port,
        password=password,
        graph_name=config.graph_name,
        max_connections=config.max_connections,
        url=config.url,
    )
    await client.initialize()
    return client


async def create_memory_service() -> tuple[GraphClient, MemoryService]:
    """
    Create the graph client and an initialized MemoryService.

    Returns:
        Tuple of (GraphClient, MemoryService). The caller owns the client
        and must close it on shutdown.
    """
    client = await create_graph_client()
    service = MemoryService(client, default_top_results=settings.search.default_top_results)
    try:
        await service.initialize()
    except Exception:
        await client.close()
        raise

    logger.info(f"Memory service ready on graph '{client.graph_name}'")
    return client, service
