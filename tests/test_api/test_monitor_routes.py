"""
Tests for /api/monitor.
"""

from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient


class TestMonitorRoutes:

    def test_stopped_at_startup(self, client: TestClient):
        assert client.get("/api/monitor/status").json() == {"active": False}

    def test_start_and_stop(self, client: TestClient):
        response = client.post("/api/monitor/start")
        assert response.status_code == 200
        assert response.json() == {"message": "Monitoring service started successfully"}
        assert client.get("/api/monitor/status").json() == {"active": True}

        response = client.post("/api/monitor/stop")
        assert response.json() == {"message": "Monitoring service stopped"}
        assert client.get("/api/monitor/status").json() == {"active": False}

    def test_start_twice(self, client: TestClient):
        client.post("/api/monitor/start")
        response = client.post("/api/monitor/start")

        assert response.status_code == 200
        assert response.json() == {"message": "Monitoring service is already running"}
        client.post("/api/monitor/stop")

    def test_stop_when_stopped(self, client: TestClient):
        response = client.post("/api/monitor/stop")

        assert response.status_code == 200
        assert response.json() == {"message": "Monitoring service is already stopped"}

    def test_details(self, client: TestClient):
        client.post("/api/monitor/start")

        details = client.get("/api/monitor/details").json()

        assert details["active"] is True
        assert details["demoMode"] is True
        assert details["startedAt"] is not None
        assert "security_checks" in details["scheduler"]["tasks"]
        client.post("/api/monitor/stop")

    def test_start_failure(self, client: TestClient, guardian):
        with patch.object(guardian.monitor, "start", AsyncMock(return_value=False)):
            response = client.post("/api/monitor/start")

        assert response.status_code == 500
        assert response.json() == {"message": "Failed to start monitoring service"}

    def test_start_exception(self, client: TestClient, guardian):
        with patch.object(
            guardian.monitor, "start", AsyncMock(side_effect=RuntimeError("boom"))
        ):
            response = client.post("/api/monitor/start")

        assert response.status_code == 500
        assert response.json() == {"message": "Error starting monitoring service: boom"}


class TestTaskRoutes:

    def test_run_task(self, client: TestClient):
        client.post("/api/monitor/start")

        response = client.post("/api/monitor/tasks/security_checks/run")

        assert response.status_code == 200
        assert response.json() == {"message": "Task security_checks completed"}
        details = client.get("/api/monitor/details").json()
        assert details["scheduler"]["tasks"]["security_checks"]["run_count"] == 1
        client.post("/api/monitor/stop")

    def test_run_failing_task(self, client: TestClient, guardian):
        client.post("/api/monitor/start")

        with patch.object(guardian.monitor, "run_task_now", AsyncMock(return_value=False)):
            response = client.post("/api/monitor/tasks/ai_analysis/run")

        assert response.status_code == 500
        assert response.json() == {"message": "Task ai_analysis failed"}
        client.post("/api/monitor/stop")

    def test_reset_task(self, client: TestClient):
        client.post("/api/monitor/start")

        response = client.post("/api/monitor/tasks/ai_analysis/reset")

        assert response.status_code == 200
        assert response.json() == {"message": "Task ai_analysis reset"}
        client.post("/api/monitor/stop")

    def test_unknown_task(self, client: TestClient):
        client.post("/api/monitor/start")

        response = client.post("/api/monitor/tasks/event_poll/reset")

        assert response.status_code == 404
        assert response.json() == {"message": "Task not found"}
        client.post("/api/monitor/stop")

    def test_requires_running_monitor(self, client: TestClient):
        response = client.post("/api/monitor/tasks/security_checks/run")

        assert response.status_code == 409
        assert response.json() == {"message": "Monitoring service is not running"}
