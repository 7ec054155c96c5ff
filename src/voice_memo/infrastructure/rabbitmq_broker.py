"""RabbitMQ message broker carrying worker tick messages."""

import json
from collections.abc import Callable
from typing import Any

import pika
from pika.adapters.blocking_connection import BlockingChannel

from voice_memo.config import QueueConfig, RabbitMQConfig
from voice_memo.exceptions import EventPublishError
from voice_memo.infrastructure.interfaces import MessageBroker
from voice_memo.logging import setup_logging

logger = setup_logging()

PERSISTENT_DELIVERY = 2


class RabbitMQBroker(MessageBroker):
    """
    Publishes and consumes ticks on a quorum queue.

    Deliveries are taken one at a time (prefetch 1) so a consumer never holds
    a second tick while a transcription is running. Rejected ticks are not
    requeued; the quorum queue's delivery limit and the dead letter exchange
    catch ticks whose consumer died before acknowledging.
    """

    def __init__(self, channel: BlockingChannel, config: RabbitMQConfig):
        self._channel = channel
        self._config = config

    @property
    def _queue(self) -> QueueConfig:
        return self._config.queue_config

    def publish(self, routing_key: str, payload: dict) -> None:
        """
        Publishes a persistent JSON message to the configured exchange.

        Raises:
            EventPublishError: If publishing fails.
        """
        properties = pika.BasicProperties(
            content_type="application/json",
            delivery_mode=PERSISTENT_DELIVERY,
        )
        try:
            self._channel.basic_publish(
                exchange=self._config.exchange_name,
                routing_key=routing_key,
                body=json.dumps(payload),
                properties=properties,
            )
        except Exception as e:
            logger.exception(
                "Failed to publish tick", extra={"routing_key": routing_key}
            )
            raise EventPublishError(routing_key, cause=e) from e
        logger.info(
            "Tick published",
            extra={"exchange": self._config.exchange_name, "routing_key": routing_key},
        )

    def acknowledge(self, delivery_tag: int) -> None:
        self._channel.basic_ack(delivery_tag=delivery_tag)

    def reject(self, delivery_tag: int) -> None:
        """Drops a delivery to the dead letter queue."""
        self._channel.basic_nack(delivery_tag=delivery_tag, requeue=False)

    def consume(
        self, callback: Callable[[bytes, int, dict[str, Any] | None], None]
    ) -> None:
        """
        Blocks consuming the tick queue until ``stop`` is called.

        Args:
            callback: Called per delivery with (body, delivery_tag, headers).
        """

        def on_message(ch, method, properties, body):
            callback(body, method.delivery_tag, properties.headers if properties else None)

        self._channel.basic_qos(prefetch_count=1)
        self._channel.basic_consume(
            queue=self._queue.name,
            on_message_callback=on_message,
        )
        logger.info("Started consuming", extra={"queue": self._queue.name})
        self._channel.start_consuming()

    def stop(self) -> None:
        """Stops a running ``consume`` loop after the current delivery."""
        self._channel.stop_consuming()
        logger.info("Stopped consuming", extra={"queue": self._queue.name})

    def setup(self) -> None:
        """Declares the dead letter route, the tick exchange and the tick queue."""
        self._declare_dead_letter_route()
        self._declare_tick_queue()
        logger.info(
            "Queue infrastructure ready",
            extra={"queue": self._queue.name, "exchange": self._config.exchange_name},
        )

    def _declare_dead_letter_route(self) -> None:
        self._channel.exchange_declare(
            exchange=self._queue.dlq_exchange_name,
            exchange_type="direct",
            durable=True,
        )
        self._channel.queue_declare(queue=self._queue.dlq_name, durable=True)
        self._channel.queue_bind(
            queue=self._queue.dlq_name,
            exchange=self._queue.dlq_exchange_name,
            routing_key=self._queue.dlq_routing_key,
        )

    def _declare_tick_queue(self) -> None:
        self._channel.exchange_declare(
            exchange=self._config.exchange_name,
            exchange_type="topic",
            durable=True,
        )
        self._channel.queue_declare(
            queue=self._queue.name,
            durable=True,
            arguments={
                "x-queue-type": self._queue.queue_type,
                "x-delivery-limit": self._queue.max_delivery_count,
                "x-dead-letter-exchange": self._queue.dlq_exchange_name,
                "x-dead-letter-routing-key": self._queue.dlq_routing_key,
            },
        )
        self._channel.queue_bind(
            queue=self._queue.name,
            exchange=self._config.exchange_name,
            routing_key=self._queue.routing_key,
        )
