"""Shared formatting utilities for MCP tool responses.

Markdown output is for humans reading tool results; JSON output is for
programmatic access.
"""

from typing import Any

from .engine import Helper

# =============================================================================
# Markdown Formatting Utilities
# =============================================================================


def format_helper_list_markdown(helpers: list[Helper], family: str | None = None) -> str:
    """Format helper list as markdown, grouped by family.

    Args:
        helpers: Helpers in registration order
        family: Optional family used for filtering (for display)

    Returns:
        Markdown-formatted helper list with one section per family
    """
    if not helpers:
        family_msg = f" in family: {family}" if family else ""
        return f"No helpers found{family_msg}"

    lines = [f"## Available Helpers ({len(helpers)})"]
    current_family: str | None = None
    for helper in helpers:
        if helper.family != current_family:
            current_family = helper.family
            lines.append("")
            lines.append(f"### {current_family}")
        entry = f"- **{helper.name}**"
        if helper.context_aware:
            entry += " (context)"
        if helper.description:
            entry += f" - {helper.description}"
        lines.append(entry)

    return "\n".join(lines)


def helper_info(helper: Helper) -> dict[str, Any]:
    """JSON-friendly description of one helper."""
    return {
        "name": helper.name,
        "family": helper.family,
        "description": helper.description,
        "context_aware": helper.context_aware,
        "max_args": helper.max_args,
    }


def format_family_not_found_error(
    family: str, available: list[str], format_type: str = "json"
) -> dict[str, Any] | str:
    """Format unknown helper family error with the available families.

    Args:
        family: The family name that was not found
        available: Registered family names
        format_type: Response format ("json" or "markdown")

    Returns:
        Error message in requested format
    """
    if format_type == "markdown":
        family_list = "\n".join(f"- {name}" for name in available)
        return (
            f"**Error**: Helper family not found: `{family}`\n\n"
            f"**Available families:**\n{family_list}"
        )
    else:
        return {
            "status": "failure",
            "error": f"Helper family not found: {family}",
            "available_families": available,
        }


__all__ = [
    "format_helper_list_markdown",
    "helper_info",
    "format_family_not_found_error",
]
