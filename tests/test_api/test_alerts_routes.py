"""
Tests for /api/alerts.

Demo mode seeds one alert per Guardian contract at startup.
"""

from fastapi.testclient import TestClient


class TestListAlerts:

    def test_all_alerts(self, client: TestClient):
        response = client.get("/api/alerts")

        assert response.status_code == 200
        data = response.json()
        assert len(data) == 3
        assert data[0]["title"] == "Suspicious Transfer Pattern Detected"
        assert data[0]["aiAnalysis"]
        assert data[0]["resolved"] is False
        assert "createdAt" in data[0]

    def test_active_alerts(self, client: TestClient):
        client.post("/api/alerts/1/resolve")

        active = client.get("/api/alerts/active").json()

        assert [a["id"] for a in active] == [2, 3]

    def test_by_contract(self, client: TestClient):
        response = client.get("/api/alerts/contract/2")

        assert response.status_code == 200
        assert [a["contractId"] for a in response.json()] == [2]

    def test_by_unknown_contract(self, client: TestClient):
        assert client.get("/api/alerts/contract/42").json() == []

    def test_by_contract_invalid_id(self, client: TestClient):
        response = client.get("/api/alerts/contract/x")

        assert response.status_code == 400
        assert response.json() == {"message": "Invalid contract ID"}


class TestResolveAlert:

    def test_resolve(self, client: TestClient):
        response = client.post("/api/alerts/3/resolve")

        assert response.status_code == 200
        assert response.json()["id"] == 3
        assert response.json()["resolved"] is True

    def test_resolve_twice(self, client: TestClient):
        client.post("/api/alerts/3/resolve")
        response = client.post("/api/alerts/3/resolve")

        assert response.status_code == 200
        assert response.json()["resolved"] is True

    def test_invalid_id(self, client: TestClient):
        response = client.post("/api/alerts/abc/resolve")

        assert response.status_code == 400
        assert response.json() == {"message": "Invalid alert ID"}

    def test_missing(self, client: TestClient):
        response = client.post("/api/alerts/99/resolve")

        assert response.status_code == 404
        assert response.json() == {"message": "Alert not found"}
