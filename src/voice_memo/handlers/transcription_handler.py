"""Worker loop: one claimed task per invocation."""

from collections.abc import Callable
from datetime import datetime, timezone
from enum import Enum
from zoneinfo import ZoneInfo

from voice_memo.domain import (
    ClaimedTask,
    InvocationContext,
    SessionAssembler,
    TaskQueue,
)
from voice_memo.infrastructure.interfaces import (
    TaskTrigger,
    TextSink,
    TranscriptionService,
)
from voice_memo.logging import setup_logging

logger = setup_logging()

HEADING_TIME_FORMAT = "%Y/%m/%d %H:%M:%S"


class TaskOutcome(str, Enum):
    IDLE = "idle"
    COMPLETED = "completed"
    FAILED = "failed"


class TranscriptionTaskHandler:
    """Drives a claimed session through assembly, transcription and the sink."""

    def __init__(
        self,
        queue: TaskQueue,
        assembler: SessionAssembler,
        transcription_service: TranscriptionService,
        sink: TextSink,
        trigger: TaskTrigger,
        timezone_name: str = "Asia/Tokyo",
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._queue = queue
        self._assembler = assembler
        self._transcription_service = transcription_service
        self._sink = sink
        self._trigger = trigger
        self._zone = ZoneInfo(timezone_name)
        self._clock = clock

    def run(self, invocation: InvocationContext) -> TaskOutcome:
        """
        Handles one worker invocation.

        Claims at most one task. On success the session bucket is deleted, on
        any failure the marker is parked in ``error`` with the chunks left in
        place. The invocation is deregistered in every case and nothing is
        raised to the caller.

        Args:
            invocation: The trigger firing that started this run.

        Returns:
            What happened to the claimed task, IDLE when nothing was pending.
        """
        logger.info(
            "Worker invocation started",
            extra={"invocation_id": invocation.invocation_id},
        )
        try:
            task = self._claim()
            if task is None:
                return TaskOutcome.IDLE
            return self._process(task)
        finally:
            self._deregister(invocation)

    def _claim(self) -> ClaimedTask | None:
        try:
            return self._queue.claim_next()
        except Exception:
            logger.exception("Task claim failed")
            return None

    def _process(self, task: ClaimedTask) -> TaskOutcome:
        session_id = task.session_id
        try:
            payload = self._assembler.assemble(session_id)
            text = self._transcription_service.transcribe(payload)
            self._sink.append(task.marker.destination_id, self._timestamp(), text)
        except Exception:
            logger.exception("Task processing failed", extra={"session_id": session_id})
            try:
                self._queue.fail(task)
            except Exception:
                logger.exception(
                    "Could not mark task as failed", extra={"session_id": session_id}
                )
            return TaskOutcome.FAILED

        try:
            self._queue.complete(task)
        except Exception:
            logger.exception(
                "Session cleanup failed after delivery",
                extra={"session_id": session_id},
            )
        logger.info(
            "Transcript delivered",
            extra={
                "session_id": session_id,
                "destination_id": task.marker.destination_id,
            },
        )
        return TaskOutcome.COMPLETED

    def _deregister(self, invocation: InvocationContext) -> None:
        try:
            self._trigger.deregister(invocation)
        except Exception:
            logger.exception(
                "Invocation deregistration failed",
                extra={"invocation_id": invocation.invocation_id},
            )

    def _timestamp(self) -> str:
        return self._clock().astimezone(self._zone).strftime(HEADING_TIME_FORMAT)
