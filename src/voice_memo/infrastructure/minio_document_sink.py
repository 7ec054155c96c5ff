"""MinIO-backed Markdown documents implementing the TextSink interface."""

import io

from minio import Minio
from minio.error import S3Error

from voice_memo.exceptions import SinkAppendError
from voice_memo.infrastructure.interfaces import TextSink
from voice_memo.logging import setup_logging

logger = setup_logging()

HEADING_PREFIX = "### 録音："


class MinioDocumentSink(TextSink):
    """Appends transcripts to ``<document_id>.md`` objects in a documents bucket."""

    def __init__(self, client: Minio, bucket_name: str):
        self._client = client
        self._bucket_name = bucket_name

    def ensure_bucket_exists(self) -> None:
        if not self._client.bucket_exists(bucket_name=self._bucket_name):
            self._client.make_bucket(bucket_name=self._bucket_name)
            logger.info("Bucket created", extra={"bucket_name": self._bucket_name})

    def append(self, document_id: str, timestamp: str, text: str) -> None:
        object_name = f"{document_id}.md"
        try:
            current = self._read(object_name)
            entry = f"{HEADING_PREFIX}{timestamp}\n\n{text}\n"
            if current and not current.endswith("\n\n"):
                current = current.rstrip("\n") + "\n\n"
            body = (current + entry).encode("utf-8")
            self._client.put_object(
                bucket_name=self._bucket_name,
                object_name=object_name,
                data=io.BytesIO(body),
                length=len(body),
                content_type="text/markdown; charset=utf-8",
            )
            logger.info(
                "Transcript appended to document",
                extra={"document_id": document_id, "chars": len(text)},
            )
        except Exception as e:
            logger.exception(
                "Document append failed", extra={"document_id": document_id}
            )
            raise SinkAppendError(document_id, e) from e

    def _read(self, object_name: str) -> str:
        """Returns the document body, or an empty string for a new document."""
        try:
            response = self._client.get_object(
                bucket_name=self._bucket_name, object_name=object_name
            )
        except S3Error as e:
            if e.code == "NoSuchKey":
                return ""
            raise
        try:
            return response.data.decode("utf-8")
        finally:
            response.close()
            response.release_conn()
