"""
Graph memory service.

Typed memory records (conversations, projects, tasks, issues, ...) stored
as labeled nodes in a FalkorDB property graph, with keyword search,
relevance ranking and typed relationships, exposed over MCP.
"""

__version__ = "0.1.0"
