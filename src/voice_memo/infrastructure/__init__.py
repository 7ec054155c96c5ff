"""Infrastructure layer exports."""

from voice_memo.infrastructure.gemini_transcriber import GeminiTranscriber
from voice_memo.infrastructure.local_scheduler import LocalScheduler
from voice_memo.infrastructure.minio_blob_store import MinioBlobStore
from voice_memo.infrastructure.minio_document_sink import MinioDocumentSink
from voice_memo.infrastructure.rabbitmq_broker import RabbitMQBroker
from voice_memo.infrastructure.rabbitmq_trigger import RabbitMQTrigger

__all__ = [
    "GeminiTranscriber",
    "LocalScheduler",
    "MinioBlobStore",
    "MinioDocumentSink",
    "RabbitMQBroker",
    "RabbitMQTrigger",
]
