"""
Unit tests for settings.

Validates defaults, env var loading, and SecretStr handling.
"""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError


class TestFalkorDBSettings:
    """Test FalkorDBSettings pydantic model."""

    def test_defaults(self):
        from mcp_graph_memory.config import FalkorDBSettings

        with patch.dict(os.environ, {}, clear=True):
            cfg = FalkorDBSettings()
        assert cfg.url is None
        assert cfg.host == "localhost"
        assert cfg.port == 6379
        assert cfg.password is None
        assert cfg.graph_name == "memory"
        assert cfg.max_connections == 16

    def test_env_override(self):
        from mcp_graph_memory.config import FalkorDBSettings

        env = {
            "MCP_FALKORDB_HOST": "graphhost",
            "MCP_FALKORDB_PORT": "6380",
            "MCP_FALKORDB_PASSWORD": "s3cret",
            "MCP_FALKORDB_GRAPH_NAME": "custom_graph",
            "MCP_FALKORDB_MAX_CONNECTIONS": "32",
        }

        with patch.dict(os.environ, env, clear=False):
            cfg = FalkorDBSettings()

        assert cfg.host == "graphhost"
        assert cfg.port == 6380
        assert cfg.graph_name == "custom_graph"
        assert cfg.max_connections == 32

    def test_password_is_secret(self):
        from mcp_graph_memory.config import FalkorDBSettings

        with patch.dict(os.environ, {"MCP_FALKORDB_PASSWORD": "s3cret"}, clear=False):
            cfg = FalkorDBSettings()

        assert "s3cret" not in repr(cfg)
        assert cfg.password.get_secret_value() == "s3cret"

    def test_port_out_of_range_rejected(self):
        from mcp_graph_memory.config import FalkorDBSettings

        with patch.dict(os.environ, {"MCP_FALKORDB_PORT": "70000"}, clear=False):
            with pytest.raises(ValidationError):
                FalkorDBSettings()


class TestSearchSettings:
    def test_defaults(self):
        from mcp_graph_memory.config import SearchSettings

        with patch.dict(os.environ, {}, clear=True):
            cfg = SearchSettings()
        assert cfg.default_top_results == 10
        assert cfg.default_limit == 10

    def test_zero_top_results_allowed(self):
        from mcp_graph_memory.config import SearchSettings

        with patch.dict(os.environ, {"MCP_SEARCH_DEFAULT_TOP_RESULTS": "0"}, clear=False):
            cfg = SearchSettings()
        assert cfg.default_top_results == 0

    def test_limit_above_max_rejected(self):
        from mcp_graph_memory.config import SearchSettings

        with patch.dict(os.environ, {"MCP_SEARCH_DEFAULT_LIMIT": "500"}, clear=False):
            with pytest.raises(ValidationError):
                SearchSettings()


class TestServerSettings:
    def test_defaults(self):
        from mcp_graph_memory.config import ServerSettings

        with patch.dict(os.environ, {}, clear=True):
            cfg = ServerSettings()
        assert cfg.transport == "stdio"
        assert cfg.port == 8000
        assert cfg.log_level == "INFO"

    def test_log_level_normalized(self):
        from mcp_graph_memory.config import ServerSettings

        with patch.dict(os.environ, {"MCP_SERVER_LOG_LEVEL": " debug "}, clear=False):
            cfg = ServerSettings()
        assert cfg.log_level == "DEBUG"

    def test_invalid_log_level_rejected(self):
        from mcp_graph_memory.config import ServerSettings

        with patch.dict(os.environ, {"MCP_SERVER_LOG_LEVEL": "chatty"}, clear=False):
            with pytest.raises(ValidationError):
                ServerSettings()

    def test_invalid_transport_rejected(self):
        from mcp_graph_memory.config import ServerSettings

        with patch.dict(os.environ, {"MCP_SERVER_TRANSPORT": "carrier-pigeon"}, clear=False):
            with pytest.raises(ValidationError):
                ServerSettings()


class TestAggregatedSettings:
    def test_sections_present(self):
        from mcp_graph_memory.config import Settings

        cfg = Settings()
        assert cfg.falkordb.graph_name
        assert cfg.search.default_limit >= 1
        assert cfg.server.transport in ("stdio", "http")
