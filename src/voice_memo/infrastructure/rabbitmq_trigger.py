"""RabbitMQ implementation of the TaskTrigger interface."""

import uuid
from datetime import datetime, timezone

from voice_memo.domain.models import InvocationContext, TickMessage
from voice_memo.infrastructure.interfaces import MessageBroker, TaskTrigger
from voice_memo.logging import setup_logging

logger = setup_logging()


class RabbitMQTrigger(TaskTrigger):
    """
    Schedules worker invocations as tick messages on the broker.

    Each tick is one invocation; the worker acknowledges the delivery that
    carried it once the run is over, which retires the invocation.
    """

    def __init__(self, broker: MessageBroker, routing_key: str):
        self._broker = broker
        self._routing_key = routing_key

    def schedule(self) -> InvocationContext:
        message = TickMessage(
            invocation_id=str(uuid.uuid4()),
            scheduled_at=datetime.now(timezone.utc),
        )
        self._broker.publish(self._routing_key, message.model_dump(mode="json"))
        logger.info(
            "Worker invocation scheduled",
            extra={"invocation_id": message.invocation_id},
        )
        return InvocationContext(
            invocation_id=message.invocation_id,
            scheduled_at=message.scheduled_at,
        )

    def deregister(self, invocation: InvocationContext) -> None:
        if invocation.delivery_tag is None:
            logger.warning(
                "Invocation has no delivery to acknowledge",
                extra={"invocation_id": invocation.invocation_id},
            )
            return
        self._broker.acknowledge(invocation.delivery_tag)
        logger.info(
            "Worker invocation deregistered",
            extra={"invocation_id": invocation.invocation_id},
        )
