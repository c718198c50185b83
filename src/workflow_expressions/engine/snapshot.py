"""Context snapshot: the read-only view of upstream nodes for one evaluation.

A snapshot is assembled by the workflow execution engine before a node's
configuration is resolved and discarded afterwards. The expression engine
never mutates it; container values handed back to callers are copies.

Structure:
    ContextSnapshot
      nodes:      {node_name: NodeRecord(output, metadata)}
      workflow:   WorkflowInfo(id, name)
      execution:  ExecutionInfo(id, started_at)
      env:        allow-listed environment variables
      variables:  extra root-scope values for bare path references
      now:        evaluation clock used by $now/$today

Bare paths in templates resolve against ``root_scope``:
    {{ $workflow.name }}         - workflow metadata
    {{ $execution.id }}          - execution metadata
    {{ $env.API_URL }}           - environment variables
    {{ $json.Fetch.items }}      - node outputs by name
    {{ $node.Fetch.type }}       - node metadata by name
    {{ items }}                  - caller-supplied variables
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .values import UNDEFINED, to_value


def _ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def format_timestamp(value: datetime) -> str:
    """ISO 8601 UTC timestamp with millisecond precision and a Z suffix."""
    utc_value = _ensure_utc(value).astimezone(UTC)
    return utc_value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class NodeRecord(BaseModel):
    """Recorded output and metadata of one upstream node."""

    model_config = ConfigDict(frozen=True)

    output: Any = Field(default=UNDEFINED, description="Node output value")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Node metadata (id, name, type, executor-specific fields)",
    )

    @field_validator("output", mode="before")
    @classmethod
    def normalize_output(cls, v: Any) -> Any:
        return to_value(v)

    @field_validator("metadata", mode="before")
    @classmethod
    def normalize_metadata(cls, v: Any) -> Any:
        if v is None:
            return {}
        if not isinstance(v, Mapping):
            raise ValueError(f"metadata must be a mapping, got {type(v).__name__}")
        return to_value(v)


class WorkflowInfo(BaseModel):
    """Workflow metadata exposed as $workflow."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = "Untitled Workflow"


class ExecutionInfo(BaseModel):
    """Execution metadata exposed as $execution."""

    model_config = ConfigDict(frozen=True)

    id: str
    started_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("started_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        return _ensure_utc(v)


class ContextSnapshot(BaseModel):
    """
    Immutable per-evaluation context.

    Each evaluation should receive its own snapshot instance; any number of
    evaluations may share one concurrently because nothing writes to it.

    Example:
        snapshot = ContextSnapshot(
            nodes={"HTTP Request": NodeRecord(output={"data": {"id": 7}})},
            variables={"items": [1, 2, 3]},
        )
    """

    model_config = ConfigDict(frozen=True)

    nodes: dict[str, NodeRecord] = Field(default_factory=dict)
    workflow: WorkflowInfo | None = None
    execution: ExecutionInfo | None = None
    env: dict[str, str] = Field(default_factory=dict)
    variables: dict[str, Any] = Field(default_factory=dict)
    now: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("variables", mode="before")
    @classmethod
    def normalize_variables(cls, v: Any) -> Any:
        if v is None:
            return {}
        if not isinstance(v, Mapping):
            raise ValueError(f"variables must be a mapping, got {type(v).__name__}")
        reserved = [key for key in v if isinstance(key, str) and key.startswith("$")]
        if reserved:
            raise ValueError(
                f"Variable names starting with '$' are reserved: {', '.join(sorted(reserved))}"
            )
        return to_value(v)

    @field_validator("now")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        return _ensure_utc(v)

    def get_node(self, node_name: str) -> NodeRecord | None:
        """Get recorded node by name, or None if it never ran."""
        return self.nodes.get(node_name)

    def root_scope(self) -> dict[str, Any]:
        """Root mapping for bare path references (see module docstring)."""
        scope: dict[str, Any] = {
            "$json": {name: record.output for name, record in self.nodes.items()},
            "$node": {name: record.metadata for name, record in self.nodes.items()},
            "$workflow": self.workflow.model_dump() if self.workflow else UNDEFINED,
            "$execution": (
                {
                    "id": self.execution.id,
                    "startedAt": format_timestamp(self.execution.started_at),
                }
                if self.execution
                else UNDEFINED
            ),
            "$env": dict(self.env),
        }
        scope.update(self.variables)
        return scope


class NodeDescriptor(BaseModel):
    """Workflow node as described by the editor (id, type, optional name/data)."""

    id: str
    type: str
    name: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)

    @property
    def display_name(self) -> str:
        """Name shown in the editor: data.name, then name, then id."""
        data_name = self.data.get("name")
        if isinstance(data_name, str) and data_name:
            return data_name
        return self.name or self.id


def create_snapshot(
    node_results: Mapping[str, Any],
    nodes: list[NodeDescriptor | Mapping[str, Any]],
    workflow_id: str,
    execution_id: str,
    workflow_name: str | None = None,
    env: Mapping[str, str] | None = None,
    variables: Mapping[str, Any] | None = None,
    now: datetime | None = None,
) -> ContextSnapshot:
    """
    Build a snapshot from raw execution results.

    Node outputs are looked up by display name: ``"<name>_data"`` first, then
    ``"<name>"``. A ``"<name>_response"`` result (full HTTP response, for
    example) is recorded as an extra node named ``"<name>_response"``.

    Args:
        node_results: Raw results keyed by node name (with optional suffixes)
        nodes: Node descriptors (dicts or NodeDescriptor instances)
        workflow_id: Workflow identifier
        execution_id: Execution identifier
        workflow_name: Optional workflow name
        env: Allow-listed environment variables for $env
        variables: Extra root-scope variables
        now: Evaluation clock (defaults to current UTC time)

    Returns:
        Frozen ContextSnapshot

    Example:
        >>> snapshot = create_snapshot(
        ...     node_results={"HTTP Request_data": {"users": [{"name": "John"}]}},
        ...     nodes=[{"id": "1", "name": "HTTP Request", "type": "HTTP_REQUEST"}],
        ...     workflow_id="wf-123",
        ...     execution_id="ex-456",
        ... )
        >>> snapshot.nodes["HTTP Request"].output
        {'users': [{'name': 'John'}]}
    """
    current_time = _ensure_utc(now) if now else datetime.now(UTC)
    records: dict[str, NodeRecord] = {}

    for raw_node in nodes:
        node = (
            raw_node
            if isinstance(raw_node, NodeDescriptor)
            else NodeDescriptor.model_validate(raw_node)
        )
        name = node.display_name

        output: Any = UNDEFINED
        if f"{name}_data" in node_results:
            output = node_results[f"{name}_data"]
        elif name in node_results:
            output = node_results[name]

        extra_metadata = node.data.get("metadata")
        metadata: dict[str, Any] = (
            dict(extra_metadata) if isinstance(extra_metadata, Mapping) else {}
        )
        metadata.update({"id": node.id, "name": name, "type": node.type})
        records[name] = NodeRecord(output=output, metadata=metadata)

        if f"{name}_response" in node_results:
            records[f"{name}_response"] = NodeRecord(
                output=node_results[f"{name}_response"],
                metadata={"id": node.id, "name": f"{name}_response", "type": node.type},
            )

    return ContextSnapshot(
        nodes=records,
        workflow=WorkflowInfo(id=workflow_id, name=workflow_name or "Untitled Workflow"),
        execution=ExecutionInfo(id=execution_id, started_at=current_time),
        env=dict(env or {}),
        variables=dict(variables or {}),
        now=current_time,
    )
