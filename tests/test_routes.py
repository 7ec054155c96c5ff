"""Tests for the recordings API."""

import base64
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from voice_memo.app import create_app
from voice_memo.config import IngressConfig
from voice_memo.dependencies import get_ingress
from voice_memo.domain import TaskMarker, TaskQueue, TaskStatus
from voice_memo.exceptions import (
    ConflictError,
    EventPublishError,
    InvalidChunkError,
    SessionNotFoundError,
    StorageUploadError,
)
from voice_memo.handlers import RecordingIngress


@pytest.fixture
def ingress(store, trigger):
    return RecordingIngress(
        store,
        TaskQueue(store),
        trigger,
        IngressConfig(document_ids=("d1",), redirect_url="https://docs.test/d1"),
    )


@pytest.fixture
def client(ingress):
    app = create_app()
    app.dependency_overrides[get_ingress] = lambda: ingress
    return TestClient(app)


@pytest.fixture
def mock_ingress():
    return MagicMock(spec=RecordingIngress)


@pytest.fixture
def mock_client(mock_ingress):
    app = create_app()
    app.dependency_overrides[get_ingress] = lambda: mock_ingress
    return TestClient(app)


def _chunk(session_id="s1", index=0, data=b"AB"):
    return {
        "payload_base64": base64.b64encode(data).decode(),
        "session_id": session_id,
        "index": index,
        "mime_type": "audio/wav",
    }


def test_upload_then_finalize(client, store, trigger):
    assert client.post("/recordings/chunks", json=_chunk(index=0)).json() == {
        "success": True
    }
    assert client.post("/recordings/chunks", json=_chunk(index=1, data=b"CD")).status_code == 200

    response = client.post("/recordings/finalize", json={"session_id": "s1"})

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Recording queued for transcription into 'd1'",
        "redirect_url": "https://docs.test/d1",
    }
    assert store.names("s1") == {"chunk_0000", "chunk_0001", TaskStatus.PENDING.blob_name}
    assert len(trigger.scheduled) == 1


def test_invalid_chunk_is_422(client):
    response = client.post("/recordings/chunks", json=_chunk(session_id="bad/id"))

    assert response.status_code == 422
    assert response.json()["success"] is False


def test_missing_field_is_422_with_error_shape(client):
    response = client.post("/recordings/chunks", json={"session_id": "s1", "index": 0})

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert "payload_base64" in body["message"]


def test_finalize_unknown_session_is_404(client):
    response = client.post("/recordings/finalize", json={"session_id": "nope"})

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Session 'nope' not found"}


def test_finalize_unknown_destination_is_422(client):
    client.post("/recordings/chunks", json=_chunk())

    response = client.post(
        "/recordings/finalize", json={"session_id": "s1", "destination_id": "other"}
    )

    assert response.status_code == 422


def test_finalize_twice_is_409(client):
    client.post("/recordings/chunks", json=_chunk())
    client.post("/recordings/finalize", json={"session_id": "s1"})

    response = client.post("/recordings/finalize", json={"session_id": "s1"})

    assert response.status_code == 409
    assert response.json()["success"] is False


def test_status_endpoint(client):
    client.post("/recordings/chunks", json=_chunk())
    assert client.get("/recordings/s1").json() == {"session_id": "s1", "status": None}

    client.post("/recordings/finalize", json={"session_id": "s1"})
    assert client.get("/recordings/s1").json() == {"session_id": "s1", "status": "pending"}

    assert client.get("/recordings/nope").status_code == 404


def test_retry_endpoint(client, store):
    client.post("/recordings/chunks", json=_chunk())
    client.post("/recordings/finalize", json={"session_id": "s1"})

    assert client.post("/recordings/s1/retry").status_code == 409

    store.rename("s1", TaskStatus.PENDING.blob_name, TaskStatus.ERROR.blob_name)
    response = client.post("/recordings/s1/retry")

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert client.get("/recordings/s1").json()["status"] == "pending"


def test_storage_failure_is_500(mock_client, mock_ingress):
    mock_ingress.upload_chunk.side_effect = StorageUploadError("s1/chunk_0000")

    response = mock_client.post("/recordings/chunks", json=_chunk())

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Chunk upload failed"}


def test_schedule_failure_after_enqueue_is_500(mock_client, mock_ingress):
    mock_ingress.finalize.side_effect = EventPublishError("transcription.tick")

    response = mock_client.post("/recordings/finalize", json={"session_id": "s1"})

    assert response.status_code == 500


def test_route_passes_request_fields_to_ingress(mock_client, mock_ingress):
    mock_ingress.finalize.return_value = TaskMarker(
        session_id="s1",
        destination_id="d9",
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )
    mock_ingress.redirect_url = ""

    response = mock_client.post(
        "/recordings/finalize", json={"session_id": "s1", "destination_id": "d9"}
    )

    assert response.status_code == 200
    mock_ingress.finalize.assert_called_once_with("s1", "d9")


@pytest.mark.parametrize(
    "error,status",
    [
        (SessionNotFoundError("s1"), 404),
        (ConflictError("s1", "task is pending"), 409),
    ],
)
def test_retry_error_mapping(mock_client, mock_ingress, error, status):
    mock_ingress.retry.side_effect = error

    assert mock_client.post("/recordings/s1/retry").status_code == status


def test_chunk_error_message_is_returned(mock_client, mock_ingress):
    mock_ingress.upload_chunk.side_effect = InvalidChunkError("s1", "payload is empty")

    response = mock_client.post("/recordings/chunks", json=_chunk())

    assert response.json()["message"] == "Invalid chunk for session 's1': payload is empty"
