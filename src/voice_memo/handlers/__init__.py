"""Handler layer exports."""

from voice_memo.handlers.recording_handler import RecordingIngress
from voice_memo.handlers.transcription_handler import (
    TaskOutcome,
    TranscriptionTaskHandler,
)

__all__ = ["RecordingIngress", "TaskOutcome", "TranscriptionTaskHandler"]
