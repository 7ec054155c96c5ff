import logging

from minio import Minio

from voice_memo.config import MinioConfig

logger = logging.getLogger(__name__)


def get_minio_client(config: MinioConfig) -> Minio:
    """
    Builds the MinIO client shared by the staging store and the document sink.

    Raises:
        Exception: Whatever the client constructor raises, after logging it.
    """
    try:
        return Minio(
            endpoint=config.endpoint,
            access_key=config.user,
            secret_key=config.password,
            secure=config.secure,
        )
    except Exception:
        logger.exception(
            "MinIO client initialization failed",
            extra={"endpoint": config.endpoint, "secure": config.secure},
        )
        raise
