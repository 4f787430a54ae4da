"""
API tests for the canvas and health endpoints.

System role: Verification of the canvas HTTP contract
"""

import json

import pytest
from fastapi.testclient import TestClient

from flowchart_ai import __version__
from flowchart_ai.api.main import app

SCENE = [
    {"id": "a", "kind": "node", "shape": "rectangle", "geometry": {"x": 0, "y": 0, "width": 100, "height": 50}, "text": "Start"},
    {"id": "b", "kind": "node", "shape": "rectangle", "geometry": {"x": 0, "y": 120, "width": 100, "height": 50}, "text": "End"},
    {"id": "e", "kind": "edge", "shape": "arrow", "sourceId": "a", "targetId": "b"},
]


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


class TestHealth:
    def test_health_should_report_version(self, client: TestClient) -> None:
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "message": "Server Healthy", "version": __version__}


class TestAnalyze:
    """Test suite for POST /canvas/analyze."""

    def test_analyze_should_return_camel_case_snapshot(self, client: TestClient) -> None:
        response = client.post("/api/v1/canvas/analyze", json={"elements": SCENE})

        assert response.status_code == 200
        body = response.json()
        assert body["elementCount"] == 3
        assert body["hasPriorAiDiagram"] is False
        assert body["connections"][0]["from"] == "a"
        assert body["description"].startswith("The canvas contains 3 elements in total.")

    def test_analyze_should_reject_node_with_endpoints(self, client: TestClient) -> None:
        bad = [{"id": "n", "kind": "node", "sourceId": "x"}]

        assert client.post("/api/v1/canvas/analyze", json={"elements": bad}).status_code == 422


class TestInspect:
    def test_inspect_should_return_tool_message(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/canvas/inspect",
            json={"toolCallId": "call_3", "elements": SCENE, "lastSynthesizedDdl": "flowchart TD\n  A --> B"},
        )

        assert response.status_code == 200
        message = response.json()
        assert message["role"] == "tool"
        assert message["toolCallId"] == "call_3"
        assert json.loads(message["content"])["lastSynthesizedDdl"] == "flowchart TD\n  A --> B"

    def test_inspect_should_require_tool_call_id(self, client: TestClient) -> None:
        assert client.post("/api/v1/canvas/inspect", json={"elements": SCENE}).status_code == 422


class TestMerge:
    """Test suite for POST /canvas/merge."""

    def test_merge_should_extend_scene(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/canvas/merge",
            json={"elements": SCENE, "diagram": {"ddlText": "flowchart TD\n  X --> Y", "mergeMode": "extend"}},
        )

        assert response.status_code == 200
        body = response.json()
        assert [e["id"] for e in body["elements"][:3]] == ["a", "b", "e"]
        assert len(body["addedIds"]) == 3
        assert body["removedIds"] == []
        assert body["boundingBox"]["minX"] >= 200

    def test_merge_should_report_conversion_error_with_line(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/canvas/merge",
            json={"elements": [], "diagram": {"ddlText": "flowchart TD\n  A --> B[oops"}},
        )

        assert response.status_code == 422
        assert response.json()["detail"] == "Unclosed shape for node 'B' (line 2)"
