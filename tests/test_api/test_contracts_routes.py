"""
Tests for /api/contracts.
"""

from fastapi.testclient import TestClient

NEW_ADDRESS = "0x1234567890abcdef1234567890abcdef12345678"
FEED_ADDRESS = "0xea1Ad2Ebf76b490a327eF1885863c9209994F015"


class TestListContracts:

    def test_list_seeded(self, client: TestClient):
        response = client.get("/api/contracts")

        assert response.status_code == 200
        data = response.json()
        assert [c["name"] for c in data] == ["Guardian Feed", "Guardian DAO", "Guardian Badge"]
        assert set(data[0]) == {"id", "name", "address", "type", "abi", "status", "addedAt"}


class TestGetContract:

    def test_get(self, client: TestClient):
        response = client.get("/api/contracts/2")

        assert response.status_code == 200
        assert response.json()["name"] == "Guardian DAO"
        assert response.json()["status"] == "WARNING"

    def test_invalid_id(self, client: TestClient):
        response = client.get("/api/contracts/abc")

        assert response.status_code == 400
        assert response.json() == {"message": "Invalid contract ID"}

    def test_missing(self, client: TestClient):
        response = client.get("/api/contracts/99")

        assert response.status_code == 404
        assert response.json() == {"message": "Contract not found"}


class TestCreateContract:

    def test_create(self, client: TestClient):
        response = client.post(
            "/api/contracts",
            json={"name": "Treasury", "address": NEW_ADDRESS, "type": "DAO"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["id"] == 4
        assert data["status"] == "HEALTHY"
        assert data["abi"] is None
        assert client.get("/api/contracts/4").json()["name"] == "Treasury"

    def test_duplicate_address(self, client: TestClient):
        response = client.post(
            "/api/contracts",
            json={"name": "Copy", "address": FEED_ADDRESS.lower(), "type": "FEED"},
        )

        assert response.status_code == 409
        assert "already registered" in response.json()["message"]

    def test_invalid_body(self, client: TestClient):
        response = client.post(
            "/api/contracts",
            json={"name": "Bad", "address": "0x12", "type": "FEED"},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid request data"
