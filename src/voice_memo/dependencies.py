"""Dependency injection configuration for the API and the worker."""

from functools import lru_cache

import requests
from minio import Minio

from voice_memo.config import AppConfig, load_config
from voice_memo.domain import SessionAssembler, TaskQueue
from voice_memo.handlers import RecordingIngress, TranscriptionTaskHandler
from voice_memo.infrastructure import (
    GeminiTranscriber,
    LocalScheduler,
    MinioBlobStore,
    MinioDocumentSink,
    RabbitMQBroker,
    RabbitMQTrigger,
)
from voice_memo.infrastructure.interfaces import BlobStore, TaskTrigger
from voice_memo.logging import setup_logging
from voice_memo.minio import get_minio_client
from voice_memo.rabbitmq import get_rabbit_channel
from voice_memo.worker import Worker

logger = setup_logging()


@lru_cache
def get_config() -> AppConfig:
    """Returns the process-wide configuration, read once."""
    return load_config()


@lru_cache
def get_minio() -> Minio:
    """Returns the MinIO client shared by the store and the sink."""
    return get_minio_client(get_config().minio)


@lru_cache
def get_storage() -> BlobStore:
    """Returns the staging blob store."""
    config = get_config()
    storage = MinioBlobStore(get_minio(), config.minio.staging_bucket)
    storage.ensure_bucket_exists()
    return storage


@lru_cache
def get_task_queue() -> TaskQueue:
    """Returns the marker-based task queue."""
    return TaskQueue(get_storage(), get_config().worker.lease_timeout_seconds)


@lru_cache
def get_broker() -> RabbitMQBroker:
    """Returns the RabbitMQ broker with its queue infrastructure declared."""
    config = get_config()
    _, channel = get_rabbit_channel(config.rabbitmq)
    broker = RabbitMQBroker(channel, config.rabbitmq)
    broker.setup()
    return broker


@lru_cache
def get_trigger() -> TaskTrigger:
    """Returns the trigger selected by TRIGGER_MODE."""
    config = get_config()
    if config.worker.trigger_mode == "local":
        logger.info("Using in-process scheduler")
        return LocalScheduler()
    return RabbitMQTrigger(get_broker(), config.rabbitmq.queue_config.routing_key)


@lru_cache
def get_handler() -> TranscriptionTaskHandler:
    """Returns the worker loop, bound to the local scheduler when one is used."""
    config = get_config()
    sink = MinioDocumentSink(get_minio(), config.minio.documents_bucket)
    sink.ensure_bucket_exists()

    http_session = requests.Session()
    transcriber = GeminiTranscriber(http_session, config.gemini)

    trigger = get_trigger()
    handler = TranscriptionTaskHandler(
        queue=get_task_queue(),
        assembler=SessionAssembler(get_storage()),
        transcription_service=transcriber,
        sink=sink,
        trigger=trigger,
        timezone_name=config.worker.timezone,
    )
    if isinstance(trigger, LocalScheduler):
        trigger.bind(handler.run)
    return handler


def get_ingress() -> RecordingIngress:
    """Returns the recording ingress service."""
    trigger = get_trigger()
    if isinstance(trigger, LocalScheduler):
        get_handler()
    return RecordingIngress(
        get_storage(), get_task_queue(), trigger, get_config().ingress
    )


def get_worker() -> Worker:
    """Returns the configured queue consumer."""
    return Worker(
        get_broker(), get_handler(), get_config().rabbitmq, trigger=get_trigger()
    )
