from voice_memo.config import AppConfig, GeminiConfig, MinioConfig, RabbitMQConfig
from voice_memo.exceptions import (
    ConflictError,
    EmptyPayloadError,
    RemoteGenerateError,
    RemoteInitError,
    RemoteProcessingError,
    RemoteTimeoutError,
    RemoteTranscriptionError,
    RemoteUploadError,
    SessionNotFoundError,
    StorageError,
)
from voice_memo.logging import setup_logging

__all__ = [
    "setup_logging",
    "AppConfig",
    "GeminiConfig",
    "MinioConfig",
    "RabbitMQConfig",
    "ConflictError",
    "EmptyPayloadError",
    "RemoteGenerateError",
    "RemoteInitError",
    "RemoteProcessingError",
    "RemoteTimeoutError",
    "RemoteTranscriptionError",
    "RemoteUploadError",
    "SessionNotFoundError",
    "StorageError",
]
