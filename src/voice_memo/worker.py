"""Worker that turns trigger messages into transcription runs."""

import json
from typing import Any

from pydantic import ValidationError

from voice_memo.config import RabbitMQConfig
from voice_memo.domain import InvocationContext, TickMessage
from voice_memo.exceptions import EventPublishError
from voice_memo.handlers import TaskOutcome, TranscriptionTaskHandler
from voice_memo.infrastructure import LocalScheduler
from voice_memo.infrastructure.interfaces import MessageBroker, TaskTrigger
from voice_memo.logging import setup_logging

logger = setup_logging()


class Worker:
    """Consumes tick messages from the queue and runs one task per tick."""

    def __init__(
        self,
        broker: MessageBroker,
        handler: TranscriptionTaskHandler,
        config: RabbitMQConfig,
        trigger: TaskTrigger | None = None,
    ):
        self._broker = broker
        self._handler = handler
        self._config = config
        self._trigger = trigger

    def start(self) -> None:
        """Starts consuming messages from the queue."""
        logger.info("Worker initialized, starting message consumption")
        # Picks up tasks left pending or abandoned while no worker was running.
        self._schedule_tick("startup")
        try:
            self._broker.consume(self._on_message)
        except KeyboardInterrupt:
            logger.info("Worker interrupted, stopping consumption")
            self._broker.stop()

    def _on_message(
        self, body: bytes, delivery_tag: int, headers: dict[str, Any] | None
    ) -> None:
        """Callback for each received tick."""
        delivery_count = headers.get("x-delivery-count", 1) if headers else 1

        try:
            message = TickMessage.model_validate(json.loads(body))
        except (ValidationError, ValueError) as e:
            logger.exception("Invalid message format", extra={"error": str(e)})
            self._broker.reject(delivery_tag)
            return

        logger.info(
            "Tick received",
            extra={
                "invocation_id": message.invocation_id,
                "attempt": delivery_count,
                "max_attempts": self._config.queue_config.max_delivery_count,
            },
        )

        # The handler acknowledges the delivery through the trigger.
        outcome = self._handler.run(
            InvocationContext(
                invocation_id=message.invocation_id,
                scheduled_at=message.scheduled_at,
                delivery_tag=delivery_tag,
            )
        )
        logger.info(
            "Tick processed",
            extra={"invocation_id": message.invocation_id, "outcome": outcome.value},
        )
        if outcome is not TaskOutcome.IDLE:
            self._schedule_tick("follow-up")

    def _schedule_tick(self, reason: str) -> None:
        if self._trigger is None:
            return
        try:
            invocation = self._trigger.schedule()
        except EventPublishError as e:
            logger.exception(
                "Failed to schedule tick", extra={"reason": reason, "error": str(e)}
            )
            return
        logger.info(
            "Tick scheduled",
            extra={"reason": reason, "invocation_id": invocation.invocation_id},
        )


def drain(scheduler: LocalScheduler) -> int:
    """Ticks the local scheduler until the queue is idle; returns the tasks handled."""
    handled = 0
    while scheduler.tick() not in (TaskOutcome.IDLE, None):
        handled += 1
    logger.info("Queue drained", extra={"handled": handled})
    return handled
