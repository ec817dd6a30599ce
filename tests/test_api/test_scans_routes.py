"""
Tests for /api/scans.
"""

from fastapi.testclient import TestClient

ADDRESS = "0x1234567890abcdef1234567890abcdef12345678"


class TestScanRoute:

    def test_scan(self, client: TestClient):
        response = client.post("/api/scans", json={"address": ADDRESS})

        assert response.status_code == 200
        data = response.json()
        assert set(data) == {"source", "report"}
        assert "pragma solidity" in data["source"]
        report = data["report"]
        assert report["contract_address"] == ADDRESS
        assert report["scan_id"].startswith("SCAN-")
        assert 0 <= report["overall_score"] <= 100
        assert len(report["vulnerabilities"]) == sum(report["vulnerability_count"].values())

    def test_missing_address(self, client: TestClient):
        response = client.post("/api/scans", json={})

        assert response.status_code == 400
        assert response.json() == {"message": "Contract address is required"}

    def test_bad_prefix(self, client: TestClient):
        response = client.post("/api/scans", json={"address": "1x" + "0" * 40})

        assert response.status_code == 400
        assert response.json() == {"message": "Contract address must start with 0x"}

    def test_bad_length(self, client: TestClient):
        response = client.post("/api/scans", json={"address": "0x1234"})

        assert response.status_code == 400
        assert response.json() == {"message": "Contract address must be 42 characters long"}
