"""
Tests for the HTTP surface.
"""

import time
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from testgenie.agents.project_test_agent import ProjectTestAgent
from testgenie.agents.project_test_agent.tools.analyze_results import TestResultsAnalyzer
from testgenie.app import create_app

from conftest import FakeAIService, FakeGenerationService, FakeStructureProvider, write_files

BASE = "/api/v1/project-test-agent"


class FakeRunner:
    def run(self, project_type, workspace_root, test_root="tests"):
        return {"success": True, "message": "Running pytest tests", "command": "python -m pytest tests/ -v"}


@pytest.fixture
def agent() -> ProjectTestAgent:
    return ProjectTestAgent(
        generation_service=FakeGenerationService(),
        structure_provider=FakeStructureProvider(),
        test_runner=FakeRunner(),
        results_analyzer=TestResultsAnalyzer(FakeAIService()),
    )


@pytest.fixture
def client(agent) -> TestClient:
    return TestClient(create_app(agent))


def poll(client: TestClient, task_id: str, timeout: float = 10.0) -> dict:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        body = client.get(f"{BASE}/task/{task_id}").json()
        if body["status"] != "running":
            return body
        time.sleep(0.02)
    raise AssertionError(f"task {task_id} did not finish")


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestSessionEndpoints:
    def test_session_lifecycle(self, client, agent, python_workspace: Path):
        assert client.get(f"{BASE}/session/abc").json()["state"] == "absent"
        assert agent.sessions == {}

        response = client.post(f"{BASE}/session", json={
            "session_id": "abc", "workspace_roots": [str(python_workspace)],
        })
        assert response.status_code == 200
        assert response.json()["state"] == "active"
        assert response.json()["project_type"] == "python"

        assert client.delete(f"{BASE}/session/abc").json()["success"] is True
        assert client.delete(f"{BASE}/session/abc").status_code == 404

    def test_session_without_workspace(self, client, tmp_path: Path):
        response = client.post(f"{BASE}/session", json={"workspace_roots": [str(tmp_path / "nope")]})
        assert response.status_code == 400
        assert "No workspace folder found" in response.json()["detail"]


class TestGenerateEndpoints:
    def test_no_workspace(self, client):
        response = client.post(f"{BASE}/generate", json={})
        assert response.status_code == 400
        assert "No workspace folder found" in response.json()["detail"]

    def test_undetected_project(self, client, workspace: Path):
        write_files(workspace, {"notes.txt": ""})
        response = client.post(f"{BASE}/generate", json={"workspace_roots": [str(workspace)]})
        assert response.status_code == 400
        assert "Could not detect project type" in response.json()["detail"]

    def test_no_relevant_files(self, client, workspace: Path):
        write_files(workspace, {"domain/order.py": ""})
        response = client.post(f"{BASE}/generate", json={"workspace_roots": [str(workspace)]})
        assert response.status_code == 400
        assert response.json()["detail"] == "No relevant files found for test generation."

    def test_generate_and_run(self, client, python_workspace: Path):
        response = client.post(f"{BASE}/generate", json={"workspace_roots": [str(python_workspace)]})
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["project_type"] == "python"
        assert body["file_count"] == 2

        status = poll(client, body["task_id"])
        assert status["status"] == "completed"
        assert status["offer_test_run"] is True
        assert len(status["results"]) == 2
        assert "Project Test Generation Complete" in status["response"]

        run = client.post(f"{BASE}/task/{body['task_id']}/run-tests")
        assert run.status_code == 200
        assert run.json()["success"] is True

    def test_generate_from_session(self, client, python_workspace: Path):
        client.post(f"{BASE}/session", json={"session_id": "s", "workspace_roots": [str(python_workspace)]})
        response = client.post(f"{BASE}/generate", json={"session_id": "s"})
        assert response.status_code == 200
        poll(client, response.json()["task_id"])

    def test_unknown_task(self, client):
        assert client.get(f"{BASE}/task/missing").status_code == 404
        assert client.post(f"{BASE}/task/missing/cancel").status_code == 404
        assert client.post(f"{BASE}/task/missing/run-tests").status_code == 404

    def test_run_tests_conflict_when_nothing_written(self, agent, client, python_workspace: Path):
        agent.generation_service = FakeGenerationService(fail_on={"service/billing.py", "service/pricing.py"})
        response = client.post(f"{BASE}/generate", json={"workspace_roots": [str(python_workspace)]})
        status = poll(client, response.json()["task_id"])
        assert status["offer_test_run"] is False

        run = client.post(f"{BASE}/task/{status['task_id']}/run-tests")
        assert run.status_code == 409


class TestGenerateFileEndpoint:
    def test_generate_file(self, client, python_workspace: Path):
        response = client.post(f"{BASE}/generate-file", json={
            "workspace_roots": [str(python_workspace)], "file_path": "service/billing.py",
        })
        assert response.status_code == 200
        assert response.json()["file_count"] == 1

        status = poll(client, response.json()["task_id"])
        assert status["status"] == "completed"
        assert [r["source_path"] for r in status["results"]] == ["service/billing.py"]
        assert (python_workspace / "tests" / "service" / "billing_test.py").exists()

    def test_unsupported_file(self, client, python_workspace: Path):
        write_files(python_workspace, {"README.md": "# readme"})
        response = client.post(f"{BASE}/generate-file", json={
            "workspace_roots": [str(python_workspace)], "file_path": "README.md",
        })
        assert response.status_code == 400
        assert response.json()["detail"] == "Unsupported file type for test generation."


class TestAnalyzeResultsEndpoints:
    def test_analyze_workspace(self, client, workspace: Path):
        write_files(workspace, {"test-results.xml": "<testsuite/>"})
        response = client.post(f"{BASE}/analyze-results", json={"workspace_roots": [str(workspace)]})
        assert response.status_code == 200
        body = response.json()
        assert body["analysis"].startswith("# Test Analysis")
        assert Path(body["report_path"]).is_file()

    def test_missing_results(self, client, workspace: Path):
        response = client.post(f"{BASE}/analyze-results", json={"workspace_roots": [str(workspace)]})
        assert response.status_code == 400
        assert response.json()["detail"] == "No test-results.xml file found. Please run tests first."

    def test_unknown_task(self, client):
        assert client.post(f"{BASE}/task/missing/analyze-results").status_code == 404
