"""Abstract interface for scheduling worker invocations."""

from abc import ABC, abstractmethod

from voice_memo.domain.models import InvocationContext


class TaskTrigger(ABC):
    """Fires the transcription worker at least once, soon."""

    @abstractmethod
    def schedule(self) -> InvocationContext:
        """
        Requests one near-immediate worker invocation.

        Returns:
            The context identifying the scheduled invocation.

        Raises:
            EventPublishError: If the invocation cannot be scheduled.
        """

    @abstractmethod
    def deregister(self, invocation: InvocationContext) -> None:
        """Retires the invocation that triggered the current run."""
