"""Tests for client factories and logging setup."""

import json
import logging
from unittest.mock import patch

import pytest
from pika.exceptions import AMQPConnectionError
from pythonjsonlogger import jsonlogger

from voice_memo.config import MinioConfig, RabbitMQConfig
from voice_memo.logging import setup_logging
from voice_memo.minio import get_minio_client
from voice_memo.rabbitmq import get_rabbit_channel


def test_minio_client_uses_config():
    config = MinioConfig(endpoint="minio:9000", user="u", password="p", secure=True)

    with patch("voice_memo.minio.Minio") as minio_cls:
        client = get_minio_client(config)

    assert client is minio_cls.return_value
    minio_cls.assert_called_once_with(
        endpoint="minio:9000", access_key="u", secret_key="p", secure=True
    )


def test_rabbit_channel_retries_and_disables_heartbeat():
    config = RabbitMQConfig(
        host="rabbitmq", user="u", password="p", connection_attempts=7, retry_delay_seconds=3
    )

    with patch("voice_memo.rabbitmq.pika.BlockingConnection") as connection_cls:
        connection, channel = get_rabbit_channel(config)

    parameters = connection_cls.call_args.args[0]
    assert parameters.heartbeat == 0
    assert parameters.connection_attempts == 7
    assert parameters.retry_delay == 3
    assert channel is connection.channel.return_value


def test_rabbit_channel_connect_failure_propagates():
    config = RabbitMQConfig(host="rabbitmq", user="u", password="p")

    with patch(
        "voice_memo.rabbitmq.pika.BlockingConnection",
        side_effect=AMQPConnectionError("refused"),
    ):
        with pytest.raises(AMQPConnectionError):
            get_rabbit_channel(config)


def test_setup_logging_installs_one_json_handler(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")

    root = setup_logging()
    assert setup_logging() is root

    json_handlers = [
        h for h in root.handlers if isinstance(h.formatter, jsonlogger.JsonFormatter)
    ]
    assert len(json_handlers) == 1
    assert root.level == logging.DEBUG
    assert logging.getLogger("pika").level == logging.WARNING

    record = logging.LogRecord("voice_memo.test", logging.INFO, __file__, 1, "hello", None, None)
    record.session_id = "s1"
    body = json.loads(json_handlers[0].formatter.format(record))
    assert body["message"] == "hello"
    assert body["session_id"] == "s1"
