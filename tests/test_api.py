"""Tests for the FastAPI REST endpoints."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from src.api.app import app


@pytest.fixture
def client() -> TestClient:
    """Create a FastAPI test client."""
    return TestClient(app)


class TestHealthEndpoint:
    """Tests for the /health endpoint."""

    def test_health_returns_ok(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "1.0.0"
        assert isinstance(data["dictionary_available"], bool)
        assert isinstance(data["correction_enabled"], bool)


class TestDocumentTypesEndpoint:
    """Tests for the /document-types endpoint."""

    def test_list_document_types(self, client: TestClient) -> None:
        response = client.get("/document-types")
        assert response.status_code == 200
        types = {t["name"]: t for t in response.json()["document_types"]}
        assert set(types) == {
            "business_registration",
            "id_card",
            "driver_license",
            "unknown",
        }
        business = types["business_registration"]
        assert business["detection_threshold"] == pytest.approx(0.35)
        assert "head_address" in business["supported_fields"]
        assert "rrn" in types["id_card"]["supported_fields"]


class TestCorrectEndpoint:
    """Tests for the /correct endpoint."""

    def test_correct_text(self, client: TestClient) -> None:
        response = client.post("/correct", json={"text": "내표자 : 홍길동"})
        assert response.status_code == 200
        data = response.json()
        assert data["corrected"] == "대표자 : 홍길동"
        assert data["corrections"][0]["method"] == "dictionary"
        assert 0.0 <= data["confidence"] <= 1.0

    def test_missing_text(self, client: TestClient) -> None:
        response = client.post("/correct", json={})
        assert response.status_code == 422


class TestParseEndpoint:
    """Tests for the /parse endpoint."""

    def test_parse_certificate(self, client: TestClient, certificate_text: str) -> None:
        response = client.post("/parse", json={"text": certificate_text})
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["document_type"] == "business_registration"
        assert data["fields"]["registration_number"] == "123-45-67891"
        assert data["fields"]["corporate_registration_number"] == "110111-1234569"
        assert data["validation_passed"] is True
        assert data["processing_time_ms"] >= 0

    def test_parse_without_correction(self, client: TestClient) -> None:
        response = client.post(
            "/parse", json={"text": "내표자 : 홍길동", "correct": False}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["corrected_text"] == "내표자 : 홍길동"
        assert data["corrections"] == []

    def test_parse_reports_validation_failures(self, client: TestClient) -> None:
        response = client.post("/parse", json={"text": "등록번호 : 111-22-33333"})
        assert response.status_code == 200
        data = response.json()
        assert data["validation_passed"] is False
        failed = [v["rule_name"] for v in data["validation"] if not v["is_valid"]]
        assert "business_number" in failed

    def test_parse_id_card(self, client: TestClient) -> None:
        response = client.post(
            "/parse", json={"text": "성명 : 홍길동", "document_type": "id_card"}
        )
        assert response.status_code == 200
        assert response.json()["fields"]["name"] == ""

    def test_invalid_document_type(self, client: TestClient) -> None:
        response = client.post(
            "/parse", json={"text": "x", "document_type": "passport"}
        )
        assert response.status_code == 422

    def test_parse_failure_returns_500(self, client: TestClient) -> None:
        with patch("src.api.app._get_components", side_effect=RuntimeError("boom")):
            response = client.post("/parse", json={"text": "대표자 : 홍길동"})
        assert response.status_code == 500
        assert response.json()["detail"] == "boom"


class TestBatchEndpoint:
    """Tests for the /parse/batch endpoint."""

    def test_batch(self, client: TestClient, certificate_text: str) -> None:
        response = client.post(
            "/parse/batch",
            json={
                "documents": [
                    {"text": certificate_text, "name": "cert.txt"},
                    {"text": "대표자 : 김철수"},
                ]
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["total_documents"] == 2
        assert data["successful"] == 2
        names = [item["name"] for item in data["results"]]
        assert names == ["cert.txt", "document_2"]
        second = data["results"][1]["result"]
        assert second["fields"]["representative"] == "김철수"

    def test_batch_records_failures(self, client: TestClient) -> None:
        with patch("src.api.app._get_components", side_effect=RuntimeError("boom")):
            response = client.post(
                "/parse/batch", json={"documents": [{"text": "대표자 : 홍길동"}]}
            )
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert data["failed"] == 1
        assert data["results"][0]["error"] == "boom"

    def test_empty_batch_rejected(self, client: TestClient) -> None:
        response = client.post("/parse/batch", json={"documents": []})
        assert response.status_code == 422


class TestServerEntryPoint:
    """Tests for the uvicorn entry point."""

    @patch("src.main.uvicorn.run")
    def test_main_uses_configured_address(self, mock_run) -> None:
        from src.main import main

        main()
        mock_run.assert_called_once_with(app, host="0.0.0.0", port=8000)
