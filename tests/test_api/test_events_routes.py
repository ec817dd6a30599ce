"""
Tests for /api/events.
"""

from datetime import datetime

from fastapi.testclient import TestClient


class TestEvents:

    def test_newest_first(self, client: TestClient):
        response = client.get("/api/events")

        assert response.status_code == 200
        data = response.json()
        assert len(data) == 3
        timestamps = [datetime.fromisoformat(e["timestamp"]) for e in data]
        assert timestamps == sorted(timestamps, reverse=True)
        assert {"eventName", "blockNumber", "transactionHash", "eventData"} <= set(data[0])

    def test_limit(self, client: TestClient):
        assert len(client.get("/api/events?limit=2").json()) == 2

    def test_zero_limit_returns_all(self, client: TestClient):
        assert len(client.get("/api/events?limit=0").json()) == 3

    def test_non_numeric_limit(self, client: TestClient):
        response = client.get("/api/events?limit=abc")

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid request data"

    def test_by_contract(self, client: TestClient):
        data = client.get("/api/events/contract/2").json()

        assert len(data) == 1
        assert data[0]["eventName"] == "ProposalCreated"
        assert data[0]["contractId"] == 2

    def test_by_contract_invalid_id(self, client: TestClient):
        response = client.get("/api/events/contract/two")

        assert response.status_code == 400
        assert response.json() == {"message": "Invalid contract ID"}
