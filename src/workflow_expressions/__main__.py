"""Entry point for the workflow-expressions MCP server.

Imports the tools module first so the @mcp.tool() decorators are registered
before the server starts.
"""


def main() -> None:
    """Register tools, then start the MCP server."""
    from . import tools  # noqa: F401 - imported for side effects (decorator registration)
    from .server import main as server_main

    server_main()


if __name__ == "__main__":
    main()
