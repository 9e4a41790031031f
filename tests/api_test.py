from functools import partial
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from model_viewer.connections.html_viewer_widget import HtmlViewerWidget
from model_viewer.domain.models import AccessToken, JobStatus, SourceFile
from model_viewer.main import app
from model_viewer.services.viewer_session import ViewerSession

from .conftest import manifest


@pytest.fixture
def derivative(sample_manifest):
    derivative = AsyncMock()
    derivative.get_manifest.return_value = sample_manifest
    return derivative


@pytest.fixture
def translator():
    translator = AsyncMock()
    translator.upload.return_value = "abc"
    return translator


@pytest.fixture
def job_service():
    job_service = AsyncMock()
    job_service.submit_job.return_value = "job-1"
    return job_service


@pytest.fixture
def client(derivative, translator, job_service, settings):
    tokens = AsyncMock()
    tokens.get_access_token.return_value = AccessToken(access_token="tok-1", expires_in=3599)
    widget_factory = partial(HtmlViewerWidget, script_url="https://cdn.test/viewer3D.min.js", style_url="https://cdn.test/style.css")

    # No lifespan: wire the state by hand
    app.state.session_factory = lambda: ViewerSession("viewer", tokens, translator, derivative, widget_factory, settings)
    app.state.translator = translator
    app.state.job_service = job_service

    return TestClient(app, raise_server_exceptions=False)


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_load_without_file_or_document_is_rejected(client, translator):
    response = client.post("/api/v1/models", data={"bucket_key": "user-bucket"})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "File not provided"}
    translator.upload.assert_not_awaited()


def test_load_known_document(client, derivative):
    response = client.post("/api/v1/models", data={"document_id": "urn:abc"})

    assert response.status_code == 200
    body = response.json()
    assert body["document_id"] == "urn:abc"
    assert [v["guid"] for v in body["viewables"]] == ["sheet-1", "model-3d"]
    assert body["viewer_url"] == "/viewer/urn:abc"
    derivative.get_manifest.assert_awaited_once_with("abc")


def test_upload_dispatches_translation_job(client, translator, job_service):
    response = client.post(
        "/api/v1/models",
        data={"bucket_key": "user-bucket"},
        files={"file": ("house.dwg", b"drawing", "application/octet-stream")},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["job_id"] == "job-1"
    assert body["status_url"] == "/api/v1/jobs/job-1"

    translator.upload.assert_awaited_once_with(SourceFile(name="house.dwg", content=b"drawing"), "user-bucket")
    job_service.submit_job.assert_awaited_once_with("abc", "dwg")


def test_job_status(client, job_service):
    job_service.get_job_status.return_value = JobStatus(
        job_id="job-1", status="completed", document_id="urn:abc", viewables=[{"guid": "model-3d"}]
    )

    response = client.get("/api/v1/jobs/job-1")

    assert response.status_code == 200
    assert response.json()["document_id"] == "urn:abc"


def test_unknown_job_is_404(client, job_service):
    job_service.get_job_status.return_value = JobStatus(job_id="nope", status="unknown")

    response = client.get("/api/v1/jobs/nope")

    assert response.status_code == 404


def test_viewables_endpoint(client):
    response = client.get("/api/v1/documents/urn:abc/viewables")

    assert response.status_code == 200
    assert [v["role"] for v in response.json()["viewables"]] == ["2d", "3d"]


def test_viewer_page_loads_requested_viewable(client):
    response = client.get("/viewer/urn:abc", params={"viewable": "sheet-1"})

    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]
    assert 'var nodeGuids = ["sheet-1"];' in response.text


def test_viewer_page_unknown_viewable_is_422(client):
    response = client.get("/viewer/urn:abc", params={"viewable": "missing"})

    assert response.status_code == 422


def test_document_without_viewables_is_422(client, derivative):
    derivative.get_manifest.return_value = manifest(derivatives=[])

    response = client.post("/api/v1/models", data={"document_id": "urn:abc"})

    assert response.status_code == 422
