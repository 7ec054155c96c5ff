"""MinIO implementation of the BlobStore interface."""

import io

from minio import Minio
from minio.commonconfig import CopySource
from minio.error import S3Error

from voice_memo.domain.models import Blob, BlobInfo
from voice_memo.exceptions import (
    StorageDeleteError,
    StorageDownloadError,
    StorageRenameError,
    StorageUploadError,
)
from voice_memo.infrastructure.interfaces import BlobStore
from voice_memo.logging import setup_logging

logger = setup_logging()


class MinioBlobStore(BlobStore):
    """
    Session buckets as prefixes of a single MinIO bucket.

    A session ``s1`` owns every object under ``s1/``. A rename is a server-side
    copy followed by a delete, so a listing taken between the two calls can
    still see the old name.
    """

    def __init__(self, client: Minio, bucket_name: str):
        self._client = client
        self._bucket_name = bucket_name

    def _key(self, session_id: str, name: str) -> str:
        return f"{session_id}/{name}"

    def ensure_bucket_exists(self) -> None:
        if not self._client.bucket_exists(bucket_name=self._bucket_name):
            self._client.make_bucket(bucket_name=self._bucket_name)
            logger.info("Bucket created", extra={"bucket_name": self._bucket_name})
        else:
            logger.info("Bucket already exists", extra={"bucket_name": self._bucket_name})

    def list_sessions(self) -> list[str]:
        try:
            objects = self._client.list_objects(
                bucket_name=self._bucket_name, recursive=False
            )
            return [obj.object_name.rstrip("/") for obj in objects if obj.is_dir]
        except Exception as e:
            logger.exception(
                "MinIO session listing failed",
                extra={"bucket_name": self._bucket_name},
            )
            raise StorageDownloadError(self._bucket_name, e) from e

    def session_exists(self, session_id: str) -> bool:
        try:
            objects = self._client.list_objects(
                bucket_name=self._bucket_name,
                prefix=f"{session_id}/",
                recursive=True,
            )
            return next(iter(objects), None) is not None
        except Exception as e:
            logger.exception(
                "MinIO session lookup failed",
                extra={"bucket_name": self._bucket_name, "session_id": session_id},
            )
            raise StorageDownloadError(f"{session_id}/", e) from e

    def list_blobs(self, session_id: str) -> list[BlobInfo]:
        prefix = f"{session_id}/"
        try:
            objects = self._client.list_objects(
                bucket_name=self._bucket_name,
                prefix=prefix,
                recursive=True,
            )
            return [
                BlobInfo(
                    name=obj.object_name[len(prefix) :],
                    size=obj.size or 0,
                    last_modified=obj.last_modified,
                )
                for obj in objects
                if not obj.is_dir
            ]
        except Exception as e:
            logger.exception(
                "MinIO blob listing failed",
                extra={"bucket_name": self._bucket_name, "session_id": session_id},
            )
            raise StorageDownloadError(prefix, e) from e

    def get(self, session_id: str, name: str) -> Blob:
        object_name = self._key(session_id, name)
        try:
            response = self._client.get_object(
                bucket_name=self._bucket_name, object_name=object_name
            )
            try:
                data = response.data
                content_type = response.headers.get(
                    "Content-Type", "application/octet-stream"
                )
            finally:
                response.close()
                response.release_conn()
            return Blob(name=name, data=data, content_type=content_type)
        except Exception as e:
            logger.exception(
                "MinIO download failed",
                extra={"bucket_name": self._bucket_name, "object_name": object_name},
            )
            raise StorageDownloadError(object_name, e) from e

    def put(self, session_id: str, name: str, data: bytes, content_type: str) -> None:
        object_name = self._key(session_id, name)
        try:
            self._client.put_object(
                bucket_name=self._bucket_name,
                object_name=object_name,
                data=io.BytesIO(data),
                length=len(data),
                content_type=content_type,
            )
            logger.info(
                "File uploaded to MinIO",
                extra={
                    "bucket_name": self._bucket_name,
                    "object_name": object_name,
                    "size": len(data),
                },
            )
        except Exception as e:
            logger.exception(
                "MinIO upload failed",
                extra={"bucket_name": self._bucket_name, "object_name": object_name},
            )
            raise StorageUploadError(object_name, e) from e

    def rename(self, session_id: str, old_name: str, new_name: str) -> None:
        source = self._key(session_id, old_name)
        target = self._key(session_id, new_name)
        try:
            self._client.copy_object(
                bucket_name=self._bucket_name,
                object_name=target,
                source=CopySource(bucket_name=self._bucket_name, object_name=source),
            )
            self._client.remove_object(
                bucket_name=self._bucket_name, object_name=source
            )
            logger.info(
                "Object renamed in MinIO",
                extra={"bucket_name": self._bucket_name, "source": source, "target": target},
            )
        except Exception as e:
            logger.exception(
                "MinIO rename failed",
                extra={"bucket_name": self._bucket_name, "source": source, "target": target},
            )
            raise StorageRenameError(source, e) from e

    def delete(self, session_id: str, name: str) -> None:
        object_name = self._key(session_id, name)
        try:
            self._client.remove_object(
                bucket_name=self._bucket_name, object_name=object_name
            )
        except S3Error as e:
            if e.code == "NoSuchKey":
                return
            logger.exception(
                "MinIO delete failed",
                extra={"bucket_name": self._bucket_name, "object_name": object_name},
            )
            raise StorageDeleteError(object_name, e) from e
        except Exception as e:
            logger.exception(
                "MinIO delete failed",
                extra={"bucket_name": self._bucket_name, "object_name": object_name},
            )
            raise StorageDeleteError(object_name, e) from e

    def delete_session(self, session_id: str) -> None:
        blobs = self.list_blobs(session_id)
        for blob in blobs:
            self.delete(session_id, blob.name)
        logger.info(
            "Session bucket deleted",
            extra={
                "bucket_name": self._bucket_name,
                "session_id": session_id,
                "blob_count": len(blobs),
            },
        )
