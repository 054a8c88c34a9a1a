"""Tests for API endpoints."""

import pytest
from fastapi.testclient import TestClient

from label_review.config import Settings
from label_review.main import create_app
from label_review.models import ApplicationStatus
from label_review.services.extraction import ExtractionError, ExtractionErrorKind

from conftest import FakeExtractor, make_application, make_extracted, write_applications


@pytest.fixture
def extractor():
    """Extractor returning a clean match."""
    return FakeExtractor()


@pytest.fixture
def app(data_file, labels_dir, extractor):
    """App instance over temporary data."""
    settings = Settings(data_path=data_file, labels_dir=labels_dir, openai_api_key=None)
    app = create_app(settings)
    app.state.review_service.extractor = extractor
    return app


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)


def verify(client, app_id="app-001"):
    return client.post("/api/v1/verify", json={"applicationId": app_id})


class TestHealthEndpoint:
    """Test /health endpoint."""

    def test_health_response_format(self, client):
        """Health reports status, version and extraction readiness."""
        response = client.get("/api/v1/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "version" in data
        assert data["extraction_configured"] is True


class TestRootEndpoint:
    """Test root endpoint."""

    def test_root_contains_version(self, client):
        """Root lists version and docs."""
        data = client.get("/").json()
        assert "version" in data
        assert "docs" in data


class TestApplicationsEndpoints:
    """Test application listing and lookup."""

    def test_list(self, client):
        """All applications are listed with the pending count."""
        data = client.get("/api/v1/applications").json()
        assert [a["id"] for a in data["applications"]] == ["app-001", "app-002", "app-003"]
        assert data["pendingCount"] == 3
        assert data["applications"][0]["brandName"] == "Eagle Ridge"

    def test_pending_count_excludes_decided(self, client, data_file):
        """Decided records on disk are not counted as pending."""
        write_applications(data_file, [
            make_application("app-001", status=ApplicationStatus.PASSED),
            make_application("app-002", status=ApplicationStatus.FAILED),
            make_application("app-003"),
        ])
        assert client.get("/api/v1/applications").json()["pendingCount"] == 1

    def test_store_failure(self, client, data_file):
        """An unreadable store is a 500."""
        data_file.write_text("[{not json", encoding="utf-8")
        assert client.get("/api/v1/applications").status_code == 500

    def test_get_one(self, client):
        """A single application is returned in camelCase."""
        response = client.get("/api/v1/applications/app-002")
        assert response.status_code == 200
        assert response.json()["labelImagePath"] == "/labels/app-002.png"

    def test_get_unknown(self, client):
        """Unknown ids are 404."""
        response = client.get("/api/v1/applications/app-404")
        assert response.status_code == 404


class TestVerifyEndpoint:
    """Test /verify endpoint."""

    def test_requires_application_id(self, client):
        """Missing or empty ids fail validation."""
        assert client.post("/api/v1/verify", json={}).status_code == 422
        assert client.post("/api/v1/verify", json={"applicationId": ""}).status_code == 422

    def test_verify_success(self, client):
        """A verification returns every field in camelCase."""
        response = verify(client)
        assert response.status_code == 200
        data = response.json()
        assert data["cached"] is False
        result = data["result"]
        assert result["overallResult"] == "pass"
        assert len(result["fields"]) == 10
        assert result["fields"][0]["fieldName"] == "Brand Name"
        assert result["fields"][0]["applicationValue"] == "Eagle Ridge"

    def test_second_request_cached(self, client, extractor):
        """A repeat request is served from the cache."""
        first = verify(client).json()
        second = verify(client).json()
        assert second["cached"] is True
        assert second["result"] == first["result"]
        assert len(extractor.calls) == 1

    def test_unknown_application(self, client):
        """Unknown ids are 404."""
        response = verify(client, "app-404")
        assert response.status_code == 404
        assert response.json()["detail"] == "Application not found"

    def test_extraction_error(self, client, extractor):
        """Extraction failures are 502."""
        extractor.error = ExtractionError(ExtractionErrorKind.UPSTREAM, "AI service error - please try again")
        response = verify(client)
        assert response.status_code == 502
        assert "try again" in response.json()["detail"]

    def test_malformed_extraction(self, client, extractor):
        """Malformed extractor answers are 502 as well."""
        extractor.error = ExtractionError(ExtractionErrorKind.MALFORMED_RESPONSE, "AI returned no content")
        response = verify(client)
        assert response.status_code == 502
        assert response.json()["detail"] == "AI returned no content"

    def test_missing_label_image(self, client, labels_dir):
        """Unreadable label images are 500."""
        (labels_dir / "labels" / "app-001.png").unlink()
        assert verify(client).status_code == 500

    def test_not_found_field(self, client, extractor):
        """Missing label fields surface as not_found."""
        extractor.fields = make_extracted(make_application(), age_statement=None)
        result = verify(client).json()["result"]
        assert result["overallResult"] == "fail"
        age = next(f for f in result["fields"] if f["fieldName"] == "Age Statement")
        assert age["result"] == "not_found"


class TestStatusEndpoint:
    """Test /status endpoint."""

    def test_records_decision(self, client, extractor):
        """A decision is persisted with derived notes."""
        extractor.fields = make_extracted(make_application(), abv="46")
        result = verify(client).json()["result"]

        response = client.post("/api/v1/status", json={
            "applicationId": "app-001",
            "status": "failed",
            "verificationResult": result,
        })

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["notes"] == "ABV: ABV mismatch: application says 45%, label says 46%"

        application = client.get("/api/v1/applications/app-001").json()
        assert application["status"] == "failed"
        assert application["notes"] == data["notes"]
        assert client.get("/api/v1/applications").json()["pendingCount"] == 2

    def test_unknown_application(self, client):
        """Unknown ids are 404."""
        result = verify(client).json()["result"]
        response = client.post("/api/v1/status", json={
            "applicationId": "app-404",
            "status": "passed",
            "verificationResult": result,
        })
        assert response.status_code == 404

    def test_rejects_not_done(self, client):
        """Only passed or failed can be recorded."""
        result = verify(client).json()["result"]
        response = client.post("/api/v1/status", json={
            "applicationId": "app-001",
            "status": "not_done",
            "verificationResult": result,
        })
        assert response.status_code == 422

    def test_rejects_malformed_result(self, client):
        """A result with an unknown classification fails validation."""
        response = client.post("/api/v1/status", json={
            "applicationId": "app-001",
            "status": "passed",
            "verificationResult": {
                "fields": [{
                    "fieldName": "Brand Name",
                    "applicationValue": "A",
                    "labelValue": "A",
                    "result": "maybe",
                    "note": "",
                }],
                "overallResult": "pass",
                "timestamp": "2024-01-01T00:00:00+00:00",
            },
        })
        assert response.status_code == 422
