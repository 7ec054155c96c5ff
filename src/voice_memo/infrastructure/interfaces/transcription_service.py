"""Abstract interface for transcription service operations."""

from abc import ABC, abstractmethod

from voice_memo.domain.models import AssembledPayload


class TranscriptionService(ABC):
    """Abstract base class for audio transcription backends."""

    @abstractmethod
    def transcribe(self, payload: AssembledPayload) -> str:
        """
        Transcribes an assembled audio payload.

        Args:
            payload: The concatenated audio with its content type.

        Returns:
            The transcript text.

        Raises:
            RemoteTranscriptionError: If any remote step fails.
        """
        pass
