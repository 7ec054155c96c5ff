"""Custom exceptions for the voice memo services."""


class ConflictError(Exception):
    """Raised when a session already carries a task marker in an incompatible state."""

    def __init__(self, session_id: str, reason: str):
        self.session_id = session_id
        self.reason = reason
        super().__init__(f"Conflict for session '{session_id}': {reason}")


class SessionNotFoundError(Exception):
    """Raised when a session bucket (or its marker) does not exist."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session '{session_id}' not found")


class InvalidChunkError(Exception):
    """Raised when an uploaded chunk cannot be accepted."""

    def __init__(self, session_id: str, reason: str):
        self.session_id = session_id
        self.reason = reason
        super().__init__(f"Invalid chunk for session '{session_id}': {reason}")


class InvalidDestinationError(Exception):
    """Raised when finalize names a document that is not configured."""

    def __init__(self, destination_id: str):
        self.destination_id = destination_id
        super().__init__(f"Destination '{destination_id}' is not a configured document")


class EmptyPayloadError(Exception):
    """Raised when a session bucket holds no chunk blobs."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session '{session_id}' has no audio chunks")


class RemoteTranscriptionError(Exception):
    """Base class for failures talking to the remote transcription API."""

    def __init__(self, message: str, cause: Exception | None = None):
        self.cause = cause
        super().__init__(message)


class RemoteInitError(RemoteTranscriptionError):
    """Raised when the resumable upload session cannot be started."""


class RemoteUploadError(RemoteTranscriptionError):
    """Raised when pushing the payload bytes fails or returns no file handle."""


class RemoteProcessingError(RemoteTranscriptionError):
    """Raised when the remote file reaches the FAILED state."""


class RemoteTimeoutError(RemoteTranscriptionError):
    """Raised when the remote file does not become ACTIVE within the polling budget."""


class RemoteGenerateError(RemoteTranscriptionError):
    """Raised when the generateContent call is rejected upstream."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        cause: Exception | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, cause=cause)


class StorageError(Exception):
    """Base class for blob store failures."""

    def __init__(self, message: str, object_name: str, cause: Exception | None = None):
        self.object_name = object_name
        self.cause = cause
        super().__init__(message)


class StorageUploadError(StorageError):
    """Raised when file upload to storage fails."""

    def __init__(self, object_name: str, cause: Exception | None = None):
        super().__init__(f"Failed to upload '{object_name}' to storage", object_name, cause)


class StorageDownloadError(StorageError):
    """Raised when downloading a file from storage fails."""

    def __init__(self, object_name: str, cause: Exception | None = None):
        super().__init__(
            f"Failed to download '{object_name}' from storage", object_name, cause
        )


class StorageRenameError(StorageError):
    """Raised when renaming a blob fails."""

    def __init__(self, object_name: str, cause: Exception | None = None):
        super().__init__(f"Failed to rename '{object_name}' in storage", object_name, cause)


class StorageDeleteError(StorageError):
    """Raised when deleting blobs fails."""

    def __init__(self, object_name: str, cause: Exception | None = None):
        super().__init__(
            f"Failed to delete '{object_name}' from storage", object_name, cause
        )


class SinkAppendError(Exception):
    """Raised when appending a transcript to a document fails."""

    def __init__(self, document_id: str, cause: Exception | None = None):
        self.document_id = document_id
        self.cause = cause
        super().__init__(f"Failed to append transcript to document '{document_id}'")


class EventPublishError(Exception):
    """Raised when publishing an event to the message broker fails."""

    def __init__(self, routing_key: str, cause: Exception | None = None):
        self.routing_key = routing_key
        self.cause = cause
        super().__init__(f"Failed to publish event with routing key '{routing_key}'")
