"""MCP tool implementations for template evaluation.

Following official Anthropic MCP Python SDK patterns:
- Tool functions decorated with @mcp.tool()
- Flat parameter signatures with Annotated types for validation
- Async functions for all tools
- Clear docstrings (become tool descriptions)

Tools are thin wrappers: all semantics live in the engine. Expression errors
are reported as ``{"status": "failure", "error": ...}`` responses.
"""

import json
import logging
from typing import Annotated, Any, Literal

from mcp.types import ToolAnnotations
from pydantic import Field

from .context import AppContextType
from .engine import (
    ContextSnapshot,
    ExecutionInfo,
    ExpressionError,
    NodeRecord,
    WorkflowInfo,
    extract_expressions,
    kind_of,
)
from .engine.values import to_json_compatible
from .formatting import format_family_not_found_error, format_helper_list_markdown, helper_info
from .server import mcp

logger = logging.getLogger(__name__)


def build_snapshot(
    node_outputs: dict[str, Any] | None,
    node_metadata: dict[str, dict[str, Any]] | None,
    variables: dict[str, Any] | None,
    env: dict[str, str],
    workflow_id: str | None = None,
    workflow_name: str | None = None,
    execution_id: str | None = None,
) -> ContextSnapshot:
    """Assemble a snapshot from tool arguments.

    Every node named in either outputs or metadata gets a record; its
    metadata always carries its name.

    Raises:
        ValueError: If variables use the reserved ``$`` prefix or a value is
            outside the expression value model
    """
    outputs = node_outputs or {}
    metadata = node_metadata or {}

    nodes: dict[str, NodeRecord] = {}
    for name in dict.fromkeys([*outputs, *metadata]):
        record_metadata = {**metadata.get(name, {}), "name": name}
        if name in outputs:
            nodes[name] = NodeRecord(output=outputs[name], metadata=record_metadata)
        else:
            nodes[name] = NodeRecord(metadata=record_metadata)

    return ContextSnapshot(
        nodes=nodes,
        workflow=WorkflowInfo(id=workflow_id, name=workflow_name or "Untitled Workflow")
        if workflow_id
        else None,
        execution=ExecutionInfo(id=execution_id) if execution_id else None,
        env=env,
        variables=variables or {},
    )


# =============================================================================
# MCP Tools (following official SDK decorator pattern)
# =============================================================================


@mcp.tool(
    annotations=ToolAnnotations(
        title="Evaluate Template",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=False,  # $now/$today read the clock
        openWorldHint=False,
    )
)
async def evaluate_template(
    template: Annotated[
        str,
        Field(description="Template text with {{ }} expressions", max_length=10_000_000),
    ],
    node_outputs: Annotated[
        dict[str, Any] | None,
        Field(description="Upstream node outputs by node name (for $json)"),
    ] = None,
    node_metadata: Annotated[
        dict[str, dict[str, Any]] | None,
        Field(description="Upstream node metadata by node name (for $node)"),
    ] = None,
    variables: Annotated[
        dict[str, Any] | None,
        Field(description="Extra variables for bare paths like {{ items }}"),
    ] = None,
    workflow_id: Annotated[
        str | None,
        Field(description="Workflow id exposed as $workflow.id", max_length=200),
    ] = None,
    workflow_name: Annotated[
        str | None,
        Field(description="Workflow name exposed as $workflow.name", max_length=200),
    ] = None,
    execution_id: Annotated[
        str | None,
        Field(description="Execution id exposed as $execution.id", max_length=200),
    ] = None,
    render: Annotated[
        bool,
        Field(description="Always return the rendered string instead of the native value"),
    ] = False,
    *,
    ctx: AppContextType,
) -> dict[str, Any]:
    """Evaluate a template. Required: template. Optional: node_outputs, variables, render."""
    if ctx is None:
        return {
            "status": "failure",
            "error": "Server context not available. Tool requires context to access resources.",
        }

    app_ctx = ctx.request_context.lifespan_context
    evaluator = app_ctx.evaluator

    try:
        snapshot = build_snapshot(
            node_outputs,
            node_metadata,
            variables,
            app_ctx.env,
            workflow_id=workflow_id,
            workflow_name=workflow_name,
            execution_id=execution_id,
        )
        if render:
            result = evaluator.render(template, snapshot)
        else:
            result = evaluator.evaluate(template, snapshot)
    except (ExpressionError, ValueError) as e:
        logger.debug(f"Template evaluation failed: {e}")
        return {"status": "failure", "error": str(e)}

    return {
        "status": "success",
        "result": to_json_compatible(result),
        "kind": kind_of(result).value,
    }


@mcp.tool(
    annotations=ToolAnnotations(
        title="Validate Template",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def validate_template(
    template: Annotated[
        str,
        Field(description="Template text to validate", max_length=10_000_000),
    ],
    *,
    ctx: AppContextType,
) -> dict[str, Any]:
    """Check template syntax and helper names without evaluating. Required: template."""
    app_ctx = ctx.request_context.lifespan_context

    try:
        compiled = app_ctx.evaluator.compile(template)
    except ExpressionError as e:
        return {
            "valid": False,
            "errors": [str(e)],
            "expressions": [],
            "helpers_used": [],
            "single_expression": False,
        }

    return {
        "valid": True,
        "errors": [],
        "expressions": extract_expressions(template),
        "helpers_used": sorted(compiled.helper_names()),
        "single_expression": compiled.single_expression is not None,
    }


@mcp.tool(
    annotations=ToolAnnotations(
        title="List Helpers",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def list_helpers(
    family: Annotated[
        str | None,
        Field(description="Only list helpers of this family (data, array, logic, ...)"),
    ] = None,
    format: Annotated[  # noqa: A002
        Literal["json", "markdown"],
        Field(description="Output format"),
    ] = "json",
    *,
    ctx: AppContextType,
) -> dict[str, Any] | str:
    """List template helpers. Optional: family (filter), format (json|markdown)."""
    app_ctx = ctx.request_context.lifespan_context
    registry = app_ctx.registry
    family = family or None

    if family is not None and family not in registry.families():
        return format_family_not_found_error(family, registry.families(), format)

    helpers = [
        helper for helper in registry.list_helpers() if family is None or helper.family == family
    ]

    if format == "markdown":
        return format_helper_list_markdown(helpers, family)
    else:
        return json.dumps([helper_info(helper) for helper in helpers])
