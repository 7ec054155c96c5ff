"""Producer side of the queue: chunk writes and session finalization."""

import base64
import binascii

from voice_memo.config import IngressConfig
from voice_memo.domain import TaskMarker, TaskQueue, TaskStatus, chunk_blob_name
from voice_memo.domain.models import MAX_CHUNK_INDEX, SESSION_ID_PATTERN
from voice_memo.exceptions import (
    InvalidChunkError,
    InvalidDestinationError,
    SessionNotFoundError,
)
from voice_memo.infrastructure.interfaces import BlobStore, TaskTrigger
from voice_memo.logging import setup_logging

logger = setup_logging()

DEFAULT_MIME_TYPE = "application/octet-stream"


def decode_chunk(payload_base64: str) -> bytes:
    """Decodes a base64 chunk, accepting an optional ``data:...;base64,`` prefix."""
    if payload_base64.startswith("data:") and "," in payload_base64:
        payload_base64 = payload_base64.split(",", 1)[1]
    return base64.b64decode(payload_base64, validate=True)


class RecordingIngress:
    """Writes chunk blobs and task markers on behalf of the recording client."""

    def __init__(
        self,
        store: BlobStore,
        queue: TaskQueue,
        trigger: TaskTrigger,
        config: IngressConfig,
    ):
        self._store = store
        self._queue = queue
        self._trigger = trigger
        self._config = config

    @property
    def redirect_url(self) -> str:
        return self._config.redirect_url

    def upload_chunk(
        self, session_id: str, index: int, payload_base64: str, mime_type: str
    ) -> str:
        """
        Stores one audio chunk under its zero-padded index.

        Re-uploading an index replaces the earlier blob.

        Returns:
            The chunk blob name.

        Raises:
            InvalidChunkError: On a bad session id, index or payload.
            StorageUploadError: If the write fails.
        """
        if not SESSION_ID_PATTERN.match(session_id):
            raise InvalidChunkError(session_id, "malformed session id")
        if not 0 <= index <= MAX_CHUNK_INDEX:
            raise InvalidChunkError(
                session_id, f"index must be between 0 and {MAX_CHUNK_INDEX}"
            )
        try:
            data = decode_chunk(payload_base64)
        except (binascii.Error, ValueError) as e:
            raise InvalidChunkError(session_id, "payload is not valid base64") from e
        if not data:
            raise InvalidChunkError(session_id, "payload is empty")

        name = chunk_blob_name(index)
        self._store.put(session_id, name, data, mime_type or DEFAULT_MIME_TYPE)
        logger.info(
            "Chunk stored",
            extra={"session_id": session_id, "index": index, "size": len(data)},
        )
        return name

    def finalize(self, session_id: str, destination_id: str | None = None) -> TaskMarker:
        """
        Queues a recorded session for transcription and schedules the worker.

        Raises:
            SessionNotFoundError: If no chunk was uploaded for the session.
            InvalidDestinationError: If the destination is not configured.
            ConflictError: If the session is already queued.
            EventPublishError: If the worker invocation cannot be scheduled.
        """
        destination = destination_id or self._config.document_ids[0]
        if destination not in self._config.document_ids:
            raise InvalidDestinationError(destination)
        self._require_session(session_id)

        marker = self._queue.enqueue(session_id, destination)
        invocation = self._trigger.schedule()
        logger.info(
            "Session finalized",
            extra={
                "session_id": session_id,
                "destination_id": destination,
                "invocation_id": invocation.invocation_id,
            },
        )
        return marker

    def retry(self, session_id: str) -> None:
        """Requeues a failed session and schedules the worker."""
        self._require_session(session_id)
        self._queue.requeue(session_id)
        self._trigger.schedule()

    def status(self, session_id: str) -> TaskStatus | None:
        """Returns the marker status, None for a session not finalized yet."""
        self._require_session(session_id)
        return self._queue.status(session_id)

    def _require_session(self, session_id: str) -> None:
        if not SESSION_ID_PATTERN.match(session_id) or not self._store.session_exists(
            session_id
        ):
            raise SessionNotFoundError(session_id)
