"""Abstract interface for the session blob store."""

from abc import ABC, abstractmethod

from voice_memo.domain.models import Blob, BlobInfo


class BlobStore(ABC):
    """Hierarchical store of named blobs grouped into session buckets."""

    @abstractmethod
    def ensure_bucket_exists(self) -> None:
        """Ensures the backing storage root exists, creating it if necessary."""

    @abstractmethod
    def list_sessions(self) -> list[str]:
        """
        Lists the ids of all session buckets.

        Iteration order is defined by the backend and is not creation order.

        Raises:
            StorageDownloadError: If the listing fails.
        """

    @abstractmethod
    def session_exists(self, session_id: str) -> bool:
        """Returns True if the session bucket holds at least one blob."""

    @abstractmethod
    def list_blobs(self, session_id: str) -> list[BlobInfo]:
        """
        Lists the blobs of one session bucket.

        Raises:
            StorageDownloadError: If the listing fails.
        """

    @abstractmethod
    def get(self, session_id: str, name: str) -> Blob:
        """
        Downloads one blob.

        Raises:
            StorageDownloadError: If the blob is missing or the download fails.
        """

    @abstractmethod
    def put(self, session_id: str, name: str, data: bytes, content_type: str) -> None:
        """
        Writes one blob, replacing any blob with the same name.

        Raises:
            StorageUploadError: If the upload fails.
        """

    @abstractmethod
    def rename(self, session_id: str, old_name: str, new_name: str) -> None:
        """
        Renames a blob inside its session bucket.

        Raises:
            StorageRenameError: If the source is missing or the rename fails.
        """

    @abstractmethod
    def delete(self, session_id: str, name: str) -> None:
        """
        Deletes one blob. Deleting a missing blob is not an error.

        Raises:
            StorageDeleteError: If the delete fails.
        """

    @abstractmethod
    def delete_session(self, session_id: str) -> None:
        """
        Deletes every blob of a session bucket. A missing bucket is not an error.

        Raises:
            StorageDeleteError: If any delete fails.
        """
