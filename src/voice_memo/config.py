"""Application configuration loaded from environment variables."""

import os

from pydantic import BaseModel, field_validator, model_validator


class MinioConfig(BaseModel, frozen=True):
    """MinIO connection configuration."""

    endpoint: str
    user: str
    password: str
    staging_bucket: str = "recordings"
    documents_bucket: str = "documents"
    secure: bool = False


class QueueConfig(BaseModel, frozen=True):
    """RabbitMQ queue configuration."""

    name: str = "transcription_tick_queue"
    queue_type: str = "quorum"
    max_delivery_count: int = 3
    routing_key: str = "transcription.tick"
    dlq_name: str = "dlq_transcription_worker"
    dlq_exchange_name: str = "dead_letter_exchange"
    dlq_routing_key: str = "transcription.tick.failed"


class RabbitMQConfig(BaseModel, frozen=True):
    """RabbitMQ connection configuration."""

    host: str
    user: str
    password: str
    exchange_name: str = "events"
    connection_attempts: int = 5
    retry_delay_seconds: float = 2.0
    queue_config: QueueConfig = QueueConfig()


class GeminiConfig(BaseModel, frozen=True):
    """Gemini API configuration."""

    api_key: str
    model_name: str = "gemini-2.5-flash"
    base_url: str = "https://generativelanguage.googleapis.com"
    http_timeout_seconds: float = 60.0
    poll_interval_seconds: float = 1.0
    max_poll_attempts: int = 30

    @property
    def poll_timeout_seconds(self) -> float:
        """Per-request timeout of a status check, kept short so polling stays bounded."""
        return min(self.http_timeout_seconds, self.poll_interval_seconds * 2)

    @property
    def poll_budget_seconds(self) -> float:
        return self.max_poll_attempts * self.poll_interval_seconds

    @property
    def worst_case_seconds(self) -> float:
        """Upper bound of one transcription: four plain requests plus polling."""
        return (
            4 * self.http_timeout_seconds
            + self.poll_budget_seconds
            + self.poll_timeout_seconds
        )


class WorkerConfig(BaseModel, frozen=True):
    """Transcription worker configuration."""

    trigger_mode: str = "rabbitmq"
    lease_timeout_seconds: int = 900
    timezone: str = "Asia/Tokyo"

    @field_validator("trigger_mode")
    @classmethod
    def _check_trigger_mode(cls, value: str) -> str:
        if value not in ("rabbitmq", "local"):
            raise ValueError("trigger_mode must be 'rabbitmq' or 'local'")
        return value


class IngressConfig(BaseModel, frozen=True):
    """Recording ingress configuration."""

    document_ids: tuple[str, ...] = ("inbox",)
    redirect_url: str = ""

    @field_validator("document_ids")
    @classmethod
    def _require_document(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            raise ValueError("at least one target document id is required")
        return value


class AppConfig(BaseModel, frozen=True):
    """Root application configuration."""

    minio: MinioConfig
    rabbitmq: RabbitMQConfig
    gemini: GeminiConfig
    worker: WorkerConfig = WorkerConfig()
    ingress: IngressConfig = IngressConfig()

    @model_validator(mode="after")
    def _lease_outlives_run(self) -> "AppConfig":
        lease = self.worker.lease_timeout_seconds
        if lease and lease <= self.gemini.worst_case_seconds:
            raise ValueError(
                f"lease_timeout_seconds ({lease}) must exceed the worst-case "
                f"transcription time ({self.gemini.worst_case_seconds:.0f}s)"
            )
        return self


def _split_ids(raw: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def load_config() -> AppConfig:
    """Loads configuration from environment variables."""
    return AppConfig(
        minio=MinioConfig(
            endpoint=os.getenv("MINIO_ENDPOINT", "minio:9000"),
            user=os.getenv("MINIO_USER", ""),
            password=os.getenv("MINIO_PASSWORD", ""),
            staging_bucket=os.getenv("STAGING_BUCKET", "recordings"),
            documents_bucket=os.getenv("DOCUMENTS_BUCKET", "documents"),
            secure=os.getenv("MINIO_SECURE", "false").lower() in ("1", "true", "yes"),
        ),
        rabbitmq=RabbitMQConfig(
            host=os.getenv("RABBITMQ_HOST", "rabbitmq"),
            user=os.getenv("RABBITMQ_USER", ""),
            password=os.getenv("RABBITMQ_PASSWORD", ""),
            connection_attempts=int(os.getenv("RABBITMQ_CONNECTION_ATTEMPTS", "5")),
            retry_delay_seconds=float(os.getenv("RABBITMQ_RETRY_DELAY_SECONDS", "2")),
        ),
        gemini=GeminiConfig(
            api_key=os.getenv("GEMINI_API_KEY", ""),
            model_name=os.getenv("GEMINI_MODEL") or "gemini-2.5-flash",
            base_url=os.getenv(
                "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com"
            ),
            http_timeout_seconds=float(os.getenv("GEMINI_HTTP_TIMEOUT_SECONDS", "60")),
            poll_interval_seconds=float(
                os.getenv("GEMINI_POLL_INTERVAL_SECONDS", "1")
            ),
            max_poll_attempts=int(os.getenv("GEMINI_MAX_POLL_ATTEMPTS", "30")),
        ),
        worker=WorkerConfig(
            trigger_mode=os.getenv("TRIGGER_MODE", "rabbitmq"),
            lease_timeout_seconds=int(os.getenv("WORKER_LEASE_TIMEOUT_SECONDS", "900")),
            timezone=os.getenv("WORKER_TIMEZONE", "Asia/Tokyo"),
        ),
        ingress=IngressConfig(
            document_ids=_split_ids(os.getenv("TARGET_DOCUMENT_IDS", "inbox")),
            redirect_url=os.getenv("CLIENT_REDIRECT_URL", ""),
        ),
    )
