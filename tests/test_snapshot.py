"""Tests for context snapshots and the snapshot factory."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from workflow_expressions.engine import (
    UNDEFINED,
    ContextSnapshot,
    NodeDescriptor,
    NodeRecord,
    create_snapshot,
)
from workflow_expressions.engine.snapshot import format_timestamp


class TestCreateSnapshot:
    def test_outputs_are_found_by_suffix_then_name(self, snapshot: ContextSnapshot) -> None:
        assert snapshot.nodes["HTTP Request"].output["data"]["users"][0]["email"] == "a@b.com"
        assert snapshot.nodes["User"].output["name"] == "Ada"

    def test_data_suffix_wins_over_plain_name(self) -> None:
        snap = create_snapshot(
            node_results={"Fetch_data": "from data", "Fetch": "plain"},
            nodes=[{"id": "1", "name": "Fetch", "type": "HTTP"}],
            workflow_id="wf",
            execution_id="ex",
        )
        assert snap.nodes["Fetch"].output == "from data"

    def test_null_output_is_kept(self) -> None:
        snap = create_snapshot(
            node_results={"Fetch": None},
            nodes=[{"id": "1", "name": "Fetch", "type": "HTTP"}],
            workflow_id="wf",
            execution_id="ex",
        )
        assert snap.nodes["Fetch"].output is None

    def test_node_without_result_is_undefined(self, snapshot: ContextSnapshot) -> None:
        assert snapshot.nodes["Empty"].output is UNDEFINED

    def test_response_is_recorded_as_extra_node(self, snapshot: ContextSnapshot) -> None:
        response = snapshot.nodes["HTTP Request_response"]
        assert response.output["status"] == 200
        assert response.metadata["name"] == "HTTP Request_response"

    def test_node_name_prefers_data_name(self) -> None:
        node = NodeDescriptor(id="n1", type="CODE", name="plain", data={"name": "From Data"})
        assert node.display_name == "From Data"
        assert NodeDescriptor(id="n1", type="CODE", name="plain").display_name == "plain"
        assert NodeDescriptor(id="n1", type="CODE").display_name == "n1"

    def test_metadata_includes_identity_and_extras(self) -> None:
        snap = create_snapshot(
            node_results={},
            nodes=[
                {
                    "id": "n1",
                    "type": "HTTP",
                    "data": {"name": "Fetch", "metadata": {"retries": 2}},
                }
            ],
            workflow_id="wf",
            execution_id="ex",
        )
        assert snap.nodes["Fetch"].metadata == {
            "retries": 2,
            "id": "n1",
            "name": "Fetch",
            "type": "HTTP",
        }

    def test_workflow_and_execution(self, snapshot: ContextSnapshot) -> None:
        assert snapshot.workflow is not None
        assert snapshot.workflow.name == "Onboarding"
        assert snapshot.execution is not None
        assert snapshot.execution.id == "ex-456"

    def test_default_workflow_name(self) -> None:
        snap = create_snapshot({}, [], workflow_id="wf", execution_id="ex")
        assert snap.workflow is not None
        assert snap.workflow.name == "Untitled Workflow"


class TestContextSnapshot:
    def test_is_frozen(self, snapshot: ContextSnapshot) -> None:
        with pytest.raises(ValidationError):
            snapshot.variables = {}  # type: ignore[misc]

    def test_reserved_variable_names(self) -> None:
        with pytest.raises(ValueError, match="reserved"):
            ContextSnapshot(variables={"$json": 1})

    def test_values_are_normalized(self) -> None:
        snap = ContextSnapshot(
            nodes={"A": NodeRecord(output=(1, 2))},
            variables={"pair": ("a", "b")},
        )
        assert snap.nodes["A"].output == [1, 2]
        assert snap.variables["pair"] == ["a", "b"]

    def test_naive_clock_is_utc(self) -> None:
        snap = ContextSnapshot(now=datetime(2024, 1, 1, 12, 0))
        assert snap.now.tzinfo is UTC

    def test_root_scope(self, snapshot: ContextSnapshot) -> None:
        scope = snapshot.root_scope()
        assert scope["$json"]["User"]["name"] == "Ada"
        assert scope["$node"]["HTTP Request"]["type"] == "HTTP_REQUEST"
        assert scope["$workflow"] == {"id": "wf-123", "name": "Onboarding"}
        assert scope["$execution"] == {"id": "ex-456", "startedAt": "2024-03-15T12:30:45.123Z"}
        assert scope["$env"] == {"API_URL": "https://api.example.com"}
        assert scope["items"] == [1, 2, 3]

    def test_root_scope_without_workflow(self) -> None:
        scope = ContextSnapshot().root_scope()
        assert scope["$workflow"] is UNDEFINED
        assert scope["$execution"] is UNDEFINED


def test_format_timestamp() -> None:
    assert format_timestamp(datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)) == "2024-01-02T03:04:05.000Z"
    assert format_timestamp(datetime(2024, 1, 2)) == "2024-01-02T00:00:00.000Z"
