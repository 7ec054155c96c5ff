"""Work queue kept as one marker blob per session bucket."""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from pydantic import ValidationError

from voice_memo.domain.models import BlobInfo, ClaimedTask, TaskMarker, TaskStatus
from voice_memo.exceptions import ConflictError, SessionNotFoundError, StorageRenameError
from voice_memo.logging import setup_logging

if TYPE_CHECKING:
    from voice_memo.infrastructure.interfaces import BlobStore

logger = setup_logging()

MARKER_CONTENT_TYPE = "application/json"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TaskQueue:
    """
    Queue state machine over the blob store.

    A session's marker is named ``task_<status>.json``; renaming it is the
    claim. ``pending`` -> ``processing`` -> deleted with the bucket, or
    ``error`` until an operator requeues it. A ``processing`` marker older than
    the lease timeout is considered abandoned and can be claimed again.
    """

    def __init__(
        self,
        store: "BlobStore",
        lease_timeout_seconds: int = 0,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self._store = store
        self._lease_timeout = timedelta(seconds=max(lease_timeout_seconds, 0))
        self._clock = clock

    def enqueue(self, session_id: str, destination_id: str) -> TaskMarker:
        """
        Writes the pending marker for a session.

        Raises:
            ConflictError: If the session already has a marker.
        """
        existing = self._marker_status(self._store.list_blobs(session_id))
        if existing is not None:
            raise ConflictError(session_id, f"task already {existing.value}")

        marker = TaskMarker(
            session_id=session_id,
            destination_id=destination_id,
            created_at=self._clock(),
        )
        self._store.put(
            session_id,
            TaskStatus.PENDING.blob_name,
            marker.to_blob(),
            MARKER_CONTENT_TYPE,
        )
        logger.info(
            "Task enqueued",
            extra={"session_id": session_id, "destination_id": destination_id},
        )
        return marker

    def claim_next(self) -> ClaimedTask | None:
        """
        Claims at most one task.

        Pending markers win over abandoned ones within a scan. Returns None when
        nothing is claimable.
        """
        stale_session: str | None = None
        for session_id in self._store.list_sessions():
            blobs = {blob.name: blob for blob in self._store.list_blobs(session_id)}
            if TaskStatus.PENDING.blob_name in blobs:
                claimed = self._claim(session_id)
                if claimed is not None:
                    return claimed
                continue
            processing = blobs.get(TaskStatus.PROCESSING.blob_name)
            if stale_session is None and processing and self._lease_expired(processing):
                stale_session = session_id

        if stale_session is not None:
            logger.warning("Reclaiming abandoned task", extra={"session_id": stale_session})
            try:
                self._store.rename(
                    stale_session,
                    TaskStatus.PROCESSING.blob_name,
                    TaskStatus.PENDING.blob_name,
                )
            except StorageRenameError:
                logger.warning(
                    "Abandoned task taken by another worker",
                    extra={"session_id": stale_session},
                )
                return None
            return self._claim(stale_session)

        logger.info("No pending task")
        return None

    def complete(self, task: ClaimedTask) -> None:
        """Deletes the whole session bucket; a missing bucket is fine."""
        self._store.delete_session(task.session_id)
        logger.info("Task completed", extra={"session_id": task.session_id})

    def fail(self, task: ClaimedTask) -> None:
        """Parks the task in ``error``, keeping its chunks for inspection."""
        status = self._marker_status(self._store.list_blobs(task.session_id))
        if status is TaskStatus.ERROR:
            logger.info("Task already failed", extra={"session_id": task.session_id})
            return
        if status is not TaskStatus.PROCESSING:
            logger.warning(
                "Cannot fail task without a processing marker",
                extra={
                    "session_id": task.session_id,
                    "status": status.value if status else None,
                },
            )
            return
        self._store.rename(
            task.session_id,
            TaskStatus.PROCESSING.blob_name,
            TaskStatus.ERROR.blob_name,
        )
        logger.warning("Task failed", extra={"session_id": task.session_id})

    def requeue(self, session_id: str) -> None:
        """
        Moves a failed task back to ``pending``.

        Raises:
            SessionNotFoundError: If the session has no marker.
            ConflictError: If the marker is not in ``error``.
        """
        status = self.status(session_id)
        if status is None:
            raise SessionNotFoundError(session_id)
        if status is not TaskStatus.ERROR:
            raise ConflictError(session_id, f"task is {status.value}, not error")
        self._store.rename(
            session_id, TaskStatus.ERROR.blob_name, TaskStatus.PENDING.blob_name
        )
        logger.info("Task requeued", extra={"session_id": session_id})

    def status(self, session_id: str) -> TaskStatus | None:
        return self._marker_status(self._store.list_blobs(session_id))

    def _claim(self, session_id: str) -> ClaimedTask | None:
        try:
            self._store.rename(
                session_id,
                TaskStatus.PENDING.blob_name,
                TaskStatus.PROCESSING.blob_name,
            )
        except StorageRenameError:
            logger.warning(
                "Task claimed by another worker", extra={"session_id": session_id}
            )
            return None

        blob = self._store.get(session_id, TaskStatus.PROCESSING.blob_name)
        try:
            marker = TaskMarker.from_blob(blob.name, blob.data)
        except (ValidationError, ValueError):
            logger.exception("Unreadable task marker", extra={"session_id": session_id})
            self._store.rename(
                session_id,
                TaskStatus.PROCESSING.blob_name,
                TaskStatus.ERROR.blob_name,
            )
            return None

        logger.info(
            "Task claimed",
            extra={"session_id": session_id, "destination_id": marker.destination_id},
        )
        return ClaimedTask(session_id=session_id, marker=marker)

    def _lease_expired(self, blob: BlobInfo) -> bool:
        if not self._lease_timeout or blob.last_modified is None:
            return False
        return self._clock() - blob.last_modified > self._lease_timeout

    @staticmethod
    def _marker_status(blobs) -> TaskStatus | None:
        for blob in blobs:
            status = TaskStatus.from_blob_name(blob.name)
            if status is not None:
                return status
        return None
