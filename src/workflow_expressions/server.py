"""FastMCP server initialization for workflow-expressions.

This module initializes the MCP server and builds the shared expression engine
resources via lifespan context. All tool implementations are in the tools
module.
"""

import logging
import os
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from mcp.server.fastmcp import FastMCP

from .context import AppContext, AppContextType
from .engine import (
    ExpressionConfigLoader,
    TemplateEvaluator,
    create_default_registry,
    safe_environment,
)

logger = logging.getLogger(__name__)

# =============================================================================
# Shared Resources and Lifespan Management
# =============================================================================


def create_app_context(loader: ExpressionConfigLoader | None = None) -> AppContext:
    """Build the frozen helper registry, evaluator and allow-listed environment.

    Args:
        loader: Config loader (defaults to standard config file resolution)

    Returns:
        AppContext shared by all tools

    Raises:
        ValueError: If the config file is invalid
        ExpressionConfigError: If the helper registry cannot be built
    """
    config = (loader or ExpressionConfigLoader()).load_config()
    registry = create_default_registry(config.helper_families)
    env = safe_environment(config)

    if config.env_allowlist:
        logger.info(f"Exposing {len(env)} of {len(config.env_allowlist)} allow-listed variables")
        # Names only, values may be sensitive
        logger.debug(f"Environment variables: {', '.join(sorted(env))}")

    return AppContext(
        registry=registry,
        evaluator=TemplateEvaluator(registry, config),
        config=config,
        env=env,
    )


@asynccontextmanager
async def app_lifespan(_server: FastMCP) -> AsyncIterator[AppContext]:
    """Build engine resources at startup and make them available to tools.

    Environment Variables:
        WORKFLOW_EXPRESSIONS_CONFIG: Path to the YAML config file

    Args:
        _server: FastMCP server instance (unused, required by FastMCP signature)

    Yields:
        AppContext with the frozen registry and evaluator
    """
    logger.info("Initializing expression engine...")
    app_context = create_app_context()
    logger.info(
        f"Expression engine ready: {len(app_context.registry)} helpers in "
        f"{len(app_context.registry.families())} families"
    )

    try:
        yield app_context
    finally:
        # Nothing to release: the registry and evaluator are in-memory only
        logger.info("Shutting down MCP server...")


mcp = FastMCP("workflow_expressions", lifespan=app_lifespan)


# =============================================================================
# Server Entry Point
# =============================================================================


def main() -> None:
    """Entry point for running the MCP server.

    This function is called when the server is run directly via:
    - python -m workflow_expressions
    - workflow-expressions (console script)

    Defaults to stdio transport for MCP protocol communication.
    """
    valid_log_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    log_level_str = os.getenv("WORKFLOW_EXPRESSIONS_LOG_LEVEL", "INFO").upper()

    if log_level_str not in valid_log_levels:
        print(
            f"Warning: Invalid WORKFLOW_EXPRESSIONS_LOG_LEVEL '{log_level_str}'. "
            f"Valid levels: {', '.join(sorted(valid_log_levels))}. "
            "Using INFO.",
            file=sys.stderr,
        )
        log_level_str = "INFO"

    log_level = getattr(logging, log_level_str)

    # Configure logging to stderr (stdout carries the MCP protocol)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    logger.info("Starting MCP server (press Ctrl+C to stop)...")

    try:
        mcp.run()
    except KeyboardInterrupt:
        logger.info("Received interrupt signal, shutting down gracefully...")
    except Exception as e:
        logger.exception(f"Server error: {e}")
        sys.exit(1)

    logger.info("Server shutdown complete")


__all__ = [
    "mcp",
    "main",
    "AppContext",
    "AppContextType",
    "create_app_context",
]
