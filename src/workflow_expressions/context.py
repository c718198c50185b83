"""Shared context types for MCP server.

This module contains context types used across server and tools modules,
separated to avoid circular imports.
"""

from dataclasses import dataclass

from mcp.server.fastmcp import Context
from mcp.server.session import ServerSession

from .engine import ExpressionConfig, HelperRegistry, TemplateEvaluator


@dataclass
class AppContext:
    """Application context containing shared resources for MCP tools.

    Created during server startup. The registry is frozen at that point, so
    tools only ever read from it.
    """

    registry: HelperRegistry
    evaluator: TemplateEvaluator
    config: ExpressionConfig
    env: dict[str, str]


# Type alias for MCP tool context parameter
AppContextType = Context[ServerSession, AppContext]


__all__ = ["AppContext", "AppContextType"]
