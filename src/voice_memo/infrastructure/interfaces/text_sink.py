"""Abstract interface for the transcript destination."""

from abc import ABC, abstractmethod


class TextSink(ABC):
    """Append-only text destination (a document)."""

    @abstractmethod
    def append(self, document_id: str, timestamp: str, text: str) -> None:
        """
        Appends a recording heading and the transcript paragraph, then persists.

        Args:
            document_id: The target document.
            timestamp: Human readable recording time used in the heading.
            text: The transcript.

        Raises:
            SinkAppendError: If the document cannot be updated.
        """
