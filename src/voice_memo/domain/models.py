"""Domain models for the voice memo pipeline."""

import re
from datetime import datetime
from enum import Enum

from pydantic import BaseModel

CHUNK_INDEX_WIDTH = 4
MAX_CHUNK_INDEX = 10**CHUNK_INDEX_WIDTH - 1
CHUNK_NAME_PATTERN = re.compile(r"^chunk_\d{%d}$" % CHUNK_INDEX_WIDTH)
SESSION_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


def chunk_blob_name(index: int) -> str:
    """Zero-padded chunk name; lexicographic order equals numeric order."""
    return f"chunk_{index:0{CHUNK_INDEX_WIDTH}d}"


class TaskStatus(str, Enum):
    """Queue state of a session, encoded in the marker blob's name."""

    PENDING = "pending"
    PROCESSING = "processing"
    ERROR = "error"

    @property
    def blob_name(self) -> str:
        return f"task_{self.value}.json"

    @classmethod
    def from_blob_name(cls, name: str) -> "TaskStatus | None":
        for status in cls:
            if status.blob_name == name:
                return status
        return None


class TaskMarker(BaseModel, frozen=True):
    """Queue membership record stored next to a session's chunks."""

    session_id: str
    destination_id: str
    created_at: datetime
    status: TaskStatus = TaskStatus.PENDING

    def to_blob(self) -> bytes:
        """Serializes the marker body; the status lives in the blob name."""
        return self.model_dump_json(exclude={"status"}).encode("utf-8")

    @classmethod
    def from_blob(cls, name: str, data: bytes) -> "TaskMarker":
        status = TaskStatus.from_blob_name(name)
        if status is None:
            raise ValueError(f"'{name}' is not a task marker")
        marker = cls.model_validate_json(data)
        return marker.model_copy(update={"status": status})


class ClaimedTask(BaseModel, frozen=True):
    """A task owned by the current worker invocation."""

    session_id: str
    marker: TaskMarker


class BlobInfo(BaseModel, frozen=True):
    """Listing entry for a blob inside a session bucket."""

    name: str
    size: int = 0
    last_modified: datetime | None = None


class Blob(BaseModel, frozen=True):
    """A downloaded blob."""

    name: str
    data: bytes
    content_type: str = "application/octet-stream"


class AssembledPayload(BaseModel, frozen=True):
    """Concatenated audio ready for upload."""

    data: bytes
    content_type: str
    display_name: str

    @property
    def size(self) -> int:
        return len(self.data)


class RemoteFileState(str, Enum):
    PROCESSING = "PROCESSING"
    ACTIVE = "ACTIVE"
    FAILED = "FAILED"


class RemoteFile(BaseModel, frozen=True):
    """File handle in the Gemini Files API namespace."""

    name: str = ""
    uri: str
    mime_type: str = ""
    state: str = RemoteFileState.PROCESSING.value


class InvocationContext(BaseModel, frozen=True):
    """One firing of the task trigger."""

    invocation_id: str
    scheduled_at: datetime | None = None
    delivery_tag: int | None = None


class TickMessage(BaseModel, frozen=True):
    """Body of a trigger message on the broker."""

    invocation_id: str
    scheduled_at: datetime
