"""Infrastructure interface exports."""

from voice_memo.infrastructure.interfaces.blob_store import BlobStore
from voice_memo.infrastructure.interfaces.message_broker import (
    MessageBroker,
    MessagePublisher,
)
from voice_memo.infrastructure.interfaces.task_trigger import TaskTrigger
from voice_memo.infrastructure.interfaces.text_sink import TextSink
from voice_memo.infrastructure.interfaces.transcription_service import (
    TranscriptionService,
)

__all__ = [
    "BlobStore",
    "MessageBroker",
    "MessagePublisher",
    "TaskTrigger",
    "TextSink",
    "TranscriptionService",
]
