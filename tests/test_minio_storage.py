"""Tests for the MinIO blob store and document sink."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from minio import Minio
from minio.error import S3Error

from voice_memo.exceptions import (
    SinkAppendError,
    StorageDeleteError,
    StorageDownloadError,
    StorageRenameError,
    StorageUploadError,
)
from voice_memo.infrastructure import MinioBlobStore, MinioDocumentSink


class NoSuchKey(S3Error):
    """S3Error stand-in whose constructor does not depend on the minio version."""

    def __init__(self):
        Exception.__init__(self, "NoSuchKey")

    def __str__(self):
        return "NoSuchKey"

    @property
    def code(self):
        return "NoSuchKey"


def _obj(name, is_dir=False, size=2, modified=None):
    obj = MagicMock()
    obj.object_name = name
    obj.is_dir = is_dir
    obj.size = size
    obj.last_modified = modified
    return obj


def _response(data: bytes, content_type="audio/wav"):
    response = MagicMock()
    response.data = data
    response.headers = {"Content-Type": content_type}
    return response


@pytest.fixture
def client():
    return MagicMock(spec=Minio)


@pytest.fixture
def blob_store(client):
    return MinioBlobStore(client, "recordings")


@pytest.fixture
def doc_sink(client):
    return MinioDocumentSink(client, "documents")


def test_ensure_bucket_creates_missing_bucket(blob_store, client):
    client.bucket_exists.return_value = False

    blob_store.ensure_bucket_exists()

    client.make_bucket.assert_called_once_with(bucket_name="recordings")


def test_list_sessions_returns_top_level_prefixes(blob_store, client):
    client.list_objects.return_value = [_obj("s1/", is_dir=True), _obj("s2/", is_dir=True)]

    assert blob_store.list_sessions() == ["s1", "s2"]
    client.list_objects.assert_called_once_with(bucket_name="recordings", recursive=False)


def test_list_blobs_strips_session_prefix(blob_store, client):
    when = datetime(2024, 1, 1, tzinfo=timezone.utc)
    client.list_objects.return_value = [
        _obj("s1/chunk_0000", modified=when),
        _obj("s1/task_pending.json", size=40, modified=when),
    ]

    blobs = blob_store.list_blobs("s1")

    assert [b.name for b in blobs] == ["chunk_0000", "task_pending.json"]
    assert blobs[1].size == 40
    assert blobs[0].last_modified == when
    client.list_objects.assert_called_once_with(
        bucket_name="recordings", prefix="s1/", recursive=True
    )


def test_session_exists(blob_store, client):
    client.list_objects.return_value = iter([_obj("s1/chunk_0000")])
    assert blob_store.session_exists("s1") is True

    client.list_objects.return_value = iter([])
    assert blob_store.session_exists("s1") is False


def test_get_reads_data_and_releases_connection(blob_store, client):
    response = _response(b"AB", "audio/ogg")
    client.get_object.return_value = response

    blob = blob_store.get("s1", "chunk_0000")

    assert blob.data == b"AB"
    assert blob.content_type == "audio/ogg"
    client.get_object.assert_called_once_with(
        bucket_name="recordings", object_name="s1/chunk_0000"
    )
    response.close.assert_called_once()
    response.release_conn.assert_called_once()


def test_get_failure_raises_download_error(blob_store, client):
    client.get_object.side_effect = RuntimeError("boom")

    with pytest.raises(StorageDownloadError):
        blob_store.get("s1", "chunk_0000")


def test_put_writes_object(blob_store, client):
    blob_store.put("s1", "chunk_0001", b"CD", "audio/wav")

    kwargs = client.put_object.call_args.kwargs
    assert kwargs["bucket_name"] == "recordings"
    assert kwargs["object_name"] == "s1/chunk_0001"
    assert kwargs["data"].read() == b"CD"
    assert kwargs["length"] == 2
    assert kwargs["content_type"] == "audio/wav"


def test_put_failure_raises_upload_error(blob_store, client):
    client.put_object.side_effect = RuntimeError("boom")

    with pytest.raises(StorageUploadError):
        blob_store.put("s1", "chunk_0001", b"CD", "audio/wav")


def test_rename_copies_then_removes(blob_store, client):
    blob_store.rename("s1", "task_pending.json", "task_processing.json")

    copy_kwargs = client.copy_object.call_args.kwargs
    assert copy_kwargs["object_name"] == "s1/task_processing.json"
    assert copy_kwargs["source"].object_name == "s1/task_pending.json"
    client.remove_object.assert_called_once_with(
        bucket_name="recordings", object_name="s1/task_pending.json"
    )


def test_rename_of_missing_source_fails_without_delete(blob_store, client):
    client.copy_object.side_effect = NoSuchKey()

    with pytest.raises(StorageRenameError):
        blob_store.rename("s1", "task_pending.json", "task_processing.json")

    client.remove_object.assert_not_called()


def test_delete_ignores_missing_object(blob_store, client):
    client.remove_object.side_effect = NoSuchKey()

    blob_store.delete("s1", "chunk_0000")


def test_delete_failure_raises(blob_store, client):
    client.remove_object.side_effect = RuntimeError("boom")

    with pytest.raises(StorageDeleteError):
        blob_store.delete("s1", "chunk_0000")


def test_delete_session_removes_every_blob(blob_store, client):
    client.list_objects.return_value = [_obj("s1/chunk_0000"), _obj("s1/task_processing.json")]

    blob_store.delete_session("s1")

    removed = [c.kwargs["object_name"] for c in client.remove_object.call_args_list]
    assert removed == ["s1/chunk_0000", "s1/task_processing.json"]


def test_sink_creates_new_document(doc_sink, client):
    client.get_object.side_effect = NoSuchKey()

    doc_sink.append("d1", "2024/03/01 09:30:05", "hello world")

    kwargs = client.put_object.call_args.kwargs
    assert kwargs["object_name"] == "d1.md"
    assert kwargs["data"].read().decode("utf-8") == (
        "### 録音：2024/03/01 09:30:05\n\nhello world\n"
    )
    assert kwargs["content_type"] == "text/markdown; charset=utf-8"


def test_sink_appends_after_existing_content(doc_sink, client):
    client.get_object.return_value = _response("# Inbox\n".encode("utf-8"))

    doc_sink.append("d1", "2024/03/01 09:30:05", "hello world")

    body = client.put_object.call_args.kwargs["data"].read().decode("utf-8")
    assert body == "# Inbox\n\n### 録音：2024/03/01 09:30:05\n\nhello world\n"


def test_sink_failure_raises_append_error(doc_sink, client):
    client.get_object.return_value = _response(b"")
    client.put_object.side_effect = RuntimeError("boom")

    with pytest.raises(SinkAppendError):
        doc_sink.append("d1", "2024/03/01 09:30:05", "hello world")
