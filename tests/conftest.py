"""Shared fixtures: in-memory blob store, recording sink and trigger, HTTP fakes."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
import requests

from voice_memo.config import GeminiConfig
from voice_memo.domain.models import Blob, BlobInfo, InvocationContext
from voice_memo.exceptions import StorageDownloadError, StorageRenameError
from voice_memo.infrastructure.interfaces import BlobStore, TaskTrigger, TextSink


class InMemoryBlobStore(BlobStore):
    """Dict-backed store keeping insertion order for sessions."""

    def __init__(self):
        self.sessions: dict[str, dict[str, dict]] = {}
        self.renames: list[tuple[str, str, str]] = []

    def ensure_bucket_exists(self) -> None:
        pass

    def list_sessions(self) -> list[str]:
        return [sid for sid, blobs in self.sessions.items() if blobs]

    def session_exists(self, session_id: str) -> bool:
        return bool(self.sessions.get(session_id))

    def list_blobs(self, session_id: str) -> list[BlobInfo]:
        return [
            BlobInfo(name=name, size=len(entry["data"]), last_modified=entry["modified"])
            for name, entry in self.sessions.get(session_id, {}).items()
        ]

    def get(self, session_id: str, name: str) -> Blob:
        try:
            entry = self.sessions[session_id][name]
        except KeyError as e:
            raise StorageDownloadError(f"{session_id}/{name}", e) from e
        return Blob(name=name, data=entry["data"], content_type=entry["content_type"])

    def put(self, session_id: str, name: str, data: bytes, content_type: str) -> None:
        self.sessions.setdefault(session_id, {})[name] = {
            "data": data,
            "content_type": content_type,
            "modified": datetime.now(timezone.utc),
        }

    def rename(self, session_id: str, old_name: str, new_name: str) -> None:
        blobs = self.sessions.get(session_id, {})
        if old_name not in blobs:
            raise StorageRenameError(f"{session_id}/{old_name}")
        entry = blobs.pop(old_name)
        entry["modified"] = datetime.now(timezone.utc)
        blobs[new_name] = entry
        self.renames.append((session_id, old_name, new_name))

    def delete(self, session_id: str, name: str) -> None:
        self.sessions.get(session_id, {}).pop(name, None)

    def delete_session(self, session_id: str) -> None:
        self.sessions.pop(session_id, None)

    def names(self, session_id: str) -> set[str]:
        return set(self.sessions.get(session_id, {}))

    def set_modified(self, session_id: str, name: str, when: datetime) -> None:
        self.sessions[session_id][name]["modified"] = when


class RecordingSink(TextSink):
    def __init__(self):
        self.appends: list[tuple[str, str, str]] = []

    def append(self, document_id: str, timestamp: str, text: str) -> None:
        self.appends.append((document_id, timestamp, text))


class RecordingTrigger(TaskTrigger):
    def __init__(self):
        self.scheduled: list[InvocationContext] = []
        self.deregistered: list[InvocationContext] = []

    def schedule(self) -> InvocationContext:
        invocation = InvocationContext(invocation_id=f"inv-{len(self.scheduled) + 1}")
        self.scheduled.append(invocation)
        return invocation

    def deregister(self, invocation: InvocationContext) -> None:
        self.deregistered.append(invocation)


@pytest.fixture
def store():
    """Create an empty in-memory blob store."""
    return InMemoryBlobStore()


@pytest.fixture
def sink():
    """Create a sink that records appends."""
    return RecordingSink()


@pytest.fixture
def trigger():
    """Create a trigger that records schedule/deregister calls."""
    return RecordingTrigger()


@pytest.fixture
def gemini_config():
    """Create a test Gemini config."""
    return GeminiConfig(
        api_key="test-key",
        model_name="gemini-test",
        base_url="https://gemini.test",
        http_timeout_seconds=5,
        poll_interval_seconds=1,
        max_poll_attempts=30,
    )


@pytest.fixture
def make_response():
    """Factory for fake ``requests.Response`` objects."""

    def _make(status_code=200, json_body=None, headers=None, text=""):
        response = MagicMock(spec=requests.Response)
        response.status_code = status_code
        response.ok = 200 <= status_code < 300
        response.headers = headers or {}
        response.text = text
        if json_body is None:
            response.json.side_effect = ValueError("no json")
        else:
            response.json.return_value = json_body
        return response

    return _make
