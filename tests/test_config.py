"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from voice_memo.config import IngressConfig, WorkerConfig, load_config


def test_defaults(monkeypatch):
    for name in ("GEMINI_MODEL", "TRIGGER_MODE", "TARGET_DOCUMENT_IDS"):
        monkeypatch.delenv(name, raising=False)

    config = load_config()

    assert config.gemini.model_name == "gemini-2.5-flash"
    assert config.gemini.max_poll_attempts == 30
    assert config.worker.trigger_mode == "rabbitmq"
    assert config.worker.lease_timeout_seconds == 900
    assert config.ingress.document_ids == ("inbox",)
    assert config.rabbitmq.queue_config.routing_key == "transcription.tick"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "k")
    monkeypatch.setenv("GEMINI_MODEL", "gemini-custom")
    monkeypatch.setenv("TRIGGER_MODE", "local")
    monkeypatch.setenv("WORKER_LEASE_TIMEOUT_SECONDS", "0")
    monkeypatch.setenv("TARGET_DOCUMENT_IDS", " d1, d2 ,,")
    monkeypatch.setenv("MINIO_SECURE", "true")
    monkeypatch.setenv("RABBITMQ_CONNECTION_ATTEMPTS", "9")

    config = load_config()

    assert config.gemini.api_key == "k"
    assert config.gemini.model_name == "gemini-custom"
    assert config.worker.trigger_mode == "local"
    assert config.worker.lease_timeout_seconds == 0
    assert config.ingress.document_ids == ("d1", "d2")
    assert config.minio.secure is True
    assert config.rabbitmq.connection_attempts == 9


def test_empty_model_falls_back_to_default(monkeypatch):
    monkeypatch.setenv("GEMINI_MODEL", "")

    assert load_config().gemini.model_name == "gemini-2.5-flash"


def test_unknown_trigger_mode_is_rejected():
    with pytest.raises(ValidationError):
        WorkerConfig(trigger_mode="cron")


def test_document_ids_are_required():
    with pytest.raises(ValidationError):
        IngressConfig(document_ids=())


def test_lease_shorter_than_worst_case_run_is_rejected(monkeypatch):
    monkeypatch.setenv("WORKER_LEASE_TIMEOUT_SECONDS", "100")

    with pytest.raises(ValidationError):
        load_config()


def test_default_lease_outlives_worst_case_run(monkeypatch):
    monkeypatch.delenv("WORKER_LEASE_TIMEOUT_SECONDS", raising=False)

    config = load_config()

    assert config.gemini.poll_timeout_seconds == 2
    assert config.gemini.worst_case_seconds < config.worker.lease_timeout_seconds
