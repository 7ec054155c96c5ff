"""Broker seam used by the RabbitMQ trigger and the tick worker."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

DeliveryCallback = Callable[[bytes, int, dict[str, Any] | None], None]


class MessagePublisher(ABC):
    """Publishing side, all the ingress needs to schedule a worker run."""

    @abstractmethod
    def publish(self, routing_key: str, payload: dict) -> None:
        """
        Sends ``payload`` as JSON under ``routing_key``.

        Raises:
            EventPublishError: If the broker does not take the message.
        """


class MessageBroker(MessagePublisher, ABC):
    """Publishing plus the consumer side driven by the worker process."""

    @abstractmethod
    def acknowledge(self, delivery_tag: int) -> None:
        """Retires a delivery once its worker run is over."""

    @abstractmethod
    def reject(self, delivery_tag: int) -> None:
        """Dead-letters a delivery that cannot be run at all."""

    @abstractmethod
    def consume(self, callback: DeliveryCallback) -> None:
        """Blocks, handing each delivery to ``callback(body, delivery_tag, headers)``."""

    @abstractmethod
    def stop(self) -> None:
        """Ends a blocking ``consume``."""

    @abstractmethod
    def setup(self) -> None:
        """Declares exchanges, queues and bindings; safe to call repeatedly."""
