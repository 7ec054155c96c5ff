import logging

import pika
from pika.adapters.blocking_connection import BlockingChannel
from pika.exceptions import AMQPConnectionError

from voice_memo.config import RabbitMQConfig

logger = logging.getLogger(__name__)


def get_rabbit_channel(
    config: RabbitMQConfig,
) -> tuple[pika.BlockingConnection, BlockingChannel]:
    """
    Opens a blocking connection and channel to the tick broker.

    Heartbeats are off: a transcription run blocks the connection thread for
    longer than a heartbeat interval. pika retries the initial connect
    ``connection_attempts`` times, so the worker survives a broker that is
    still starting.

    Returns:
        tuple: (connection, channel)
    """
    parameters = pika.ConnectionParameters(
        host=config.host,
        credentials=pika.PlainCredentials(config.user, config.password),
        heartbeat=0,
        connection_attempts=config.connection_attempts,
        retry_delay=config.retry_delay_seconds,
    )
    try:
        connection = pika.BlockingConnection(parameters)
    except AMQPConnectionError:
        logger.exception(
            "Failed to connect to RabbitMQ",
            extra={"host": config.host, "attempts": config.connection_attempts},
        )
        raise
    return connection, connection.channel()
