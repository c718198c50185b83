"""Shared test configuration for workflow-expressions tests.

Provides:
- A frozen default helper registry and an evaluator built on it
- A context snapshot with a few upstream nodes and variables
- A mock MCP context carrying an AppContext for tool tests
"""

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest

from workflow_expressions.context import AppContext
from workflow_expressions.engine import (
    ContextSnapshot,
    ExpressionConfig,
    HelperRegistry,
    TemplateEvaluator,
    create_default_registry,
    create_snapshot,
)

FIXED_NOW = datetime(2024, 3, 15, 12, 30, 45, 123000, tzinfo=UTC)


@pytest.fixture
def registry() -> HelperRegistry:
    """Frozen registry with every built-in helper family."""
    return create_default_registry()


@pytest.fixture
def evaluator(registry: HelperRegistry) -> TemplateEvaluator:
    return TemplateEvaluator(registry)


@pytest.fixture
def snapshot() -> ContextSnapshot:
    """
    Snapshot with three upstream nodes.

    - "HTTP Request": output {"data": {"users": [...]}} and a full response
    - "User": output {"name": "Ada", ...}
    - "Empty": ran without producing output
    """
    return create_snapshot(
        node_results={
            "HTTP Request_data": {
                "data": {
                    "users": [
                        {"id": 1, "email": "a@b.com", "status": "active"},
                        {"id": 2, "email": "c@d.com", "status": "closed"},
                    ]
                }
            },
            "HTTP Request_response": {"status": 200, "headers": {"x-id": "abc"}},
            "User": {"name": "Ada", "age": 36, "tags": ["admin", "ops"]},
        },
        nodes=[
            {"id": "n1", "name": "HTTP Request", "type": "HTTP_REQUEST"},
            {"id": "n2", "type": "CODE", "data": {"name": "User"}},
            {"id": "Empty", "type": "NOOP"},
        ],
        workflow_id="wf-123",
        execution_id="ex-456",
        workflow_name="Onboarding",
        env={"API_URL": "https://api.example.com"},
        variables={
            "items": [1, 2, 3],
            "users": [
                {"name": "Bob", "status": "active"},
                {"name": "Eve", "status": "closed"},
            ],
        },
        now=FIXED_NOW,
    )


@pytest.fixture
def mock_context(registry: HelperRegistry) -> MagicMock:
    """Create mock MCP context with AppContext for testing tools."""
    config = ExpressionConfig(env_allowlist=["API_URL"])
    app_context = AppContext(
        registry=registry,
        evaluator=TemplateEvaluator(registry, config),
        config=config,
        env={"API_URL": "https://api.example.com"},
    )

    mock_ctx = MagicMock()
    mock_ctx.request_context.lifespan_context = app_context
    return mock_ctx
