"""Domain layer exports."""

from voice_memo.domain.models import (
    AssembledPayload,
    Blob,
    BlobInfo,
    ClaimedTask,
    InvocationContext,
    RemoteFile,
    RemoteFileState,
    TaskMarker,
    TaskStatus,
    TickMessage,
    chunk_blob_name,
)
from voice_memo.domain.session_assembler import SessionAssembler
from voice_memo.domain.task_queue import TaskQueue

__all__ = [
    "AssembledPayload",
    "Blob",
    "BlobInfo",
    "ClaimedTask",
    "InvocationContext",
    "RemoteFile",
    "RemoteFileState",
    "TaskMarker",
    "TaskStatus",
    "TickMessage",
    "chunk_blob_name",
    "SessionAssembler",
    "TaskQueue",
]
