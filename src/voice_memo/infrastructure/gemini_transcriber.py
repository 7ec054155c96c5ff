"""Gemini Files API + generateContent implementation of TranscriptionService."""

import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

import requests

from voice_memo.config import GeminiConfig
from voice_memo.domain.models import AssembledPayload, RemoteFile, RemoteFileState
from voice_memo.exceptions import (
    RemoteGenerateError,
    RemoteInitError,
    RemoteProcessingError,
    RemoteTimeoutError,
    RemoteUploadError,
)
from voice_memo.infrastructure.interfaces import TranscriptionService
from voice_memo.logging import setup_logging

logger = setup_logging()

TRANSCRIPTION_PROMPT = (
    "この音声を日本語で正確に文字起こししてください。\n"
    "- 話された内容を省略・要約せず、そのまま書き起こしてください。\n"
    "- 「えー」「あのー」「えっと」などのフィラーは削除してください。\n"
    "- 言い間違いや言い直しがある場合は、話者が意図した最終的な表現に整えてください。\n"
    "- 書き起こした文章以外の説明や前置きは出力しないでください。"
)

NO_TRANSCRIPT_TEXT = "（文字起こし結果を取得できませんでした）"


class GeminiTranscriber(TranscriptionService):
    """
    Transcribes audio through the Gemini REST API.

    One call walks the linear protocol start upload -> push bytes -> wait for
    ACTIVE -> generate, and deletes the remote file on every exit path once it
    exists. The upload is single-shot: the resumable session is started and
    finalized in one push, there is no retry from a byte offset.
    """

    def __init__(
        self,
        session: requests.Session,
        config: GeminiConfig,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._session = session
        self._config = config
        self._sleep = sleep
        self._clock = clock

    @property
    def _auth(self) -> dict[str, str]:
        return {"key": self._config.api_key}

    def transcribe(self, payload: AssembledPayload) -> str:
        with self.uploaded_file(payload) as remote_file:
            active_file = self.wait_until_active(remote_file)
            return self.generate(active_file)

    @contextmanager
    def uploaded_file(self, payload: AssembledPayload) -> Iterator[RemoteFile]:
        """Uploads the payload and guarantees a delete attempt for the remote file."""
        upload_url = self.start_upload(payload)
        remote_file = self.push_bytes(upload_url, payload)
        try:
            yield remote_file
        finally:
            self.delete_file(remote_file)

    def start_upload(self, payload: AssembledPayload) -> str:
        """
        Opens a resumable upload session.

        Returns:
            The upload URL taken from the ``X-Goog-Upload-URL`` response header.

        Raises:
            RemoteInitError: On transport errors, non-success status or a missing header.
        """
        url = f"{self._config.base_url}/upload/v1beta/files"
        headers = {
            "X-Goog-Upload-Protocol": "resumable",
            "X-Goog-Upload-Command": "start",
            "X-Goog-Upload-Header-Content-Length": str(payload.size),
            "X-Goog-Upload-Header-Content-Type": payload.content_type,
            "Content-Type": "application/json",
        }
        try:
            response = self._session.post(
                url,
                params=self._auth,
                headers=headers,
                json={"file": {"display_name": payload.display_name}},
                timeout=self._config.http_timeout_seconds,
            )
        except requests.RequestException as e:
            logger.exception("Upload session request failed")
            raise RemoteInitError("Failed to start upload session", cause=e) from e

        if not response.ok:
            logger.error(
                "Upload session rejected",
                extra={"status_code": response.status_code, "body": response.text[:500]},
            )
            raise RemoteInitError(
                f"Upload session start returned HTTP {response.status_code}"
            )

        upload_url = response.headers.get("X-Goog-Upload-URL")
        if not upload_url:
            logger.error("Upload session response has no upload URL header")
            raise RemoteInitError("Upload session response is missing X-Goog-Upload-URL")

        logger.info(
            "Upload session started",
            extra={"display_name": payload.display_name, "size": payload.size},
        )
        return upload_url

    def push_bytes(self, upload_url: str, payload: AssembledPayload) -> RemoteFile:
        """
        Sends the whole payload and finalizes the upload in one request.

        Raises:
            RemoteUploadError: On transport errors, non-success status or a
                response without a file handle.
        """
        headers = {
            "X-Goog-Upload-Command": "upload, finalize",
            "X-Goog-Upload-Offset": "0",
        }
        try:
            response = self._session.post(
                upload_url,
                params=self._auth,
                headers=headers,
                data=payload.data,
                timeout=self._config.http_timeout_seconds,
            )
        except requests.RequestException as e:
            logger.exception("Byte upload request failed")
            raise RemoteUploadError("Failed to upload audio bytes", cause=e) from e

        if not response.ok:
            logger.error(
                "Byte upload rejected",
                extra={"status_code": response.status_code, "body": response.text[:500]},
            )
            raise RemoteUploadError(f"Byte upload returned HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise RemoteUploadError("Byte upload response is not JSON", cause=e) from e

        remote_file = _parse_file(
            body.get("file") if isinstance(body, dict) else None,
            default_mime_type=payload.content_type,
        )
        if remote_file is None:
            raise RemoteUploadError("Byte upload response has no file handle")

        logger.info(
            "Audio uploaded",
            extra={"file_name": remote_file.name, "state": remote_file.state},
        )
        return remote_file

    def wait_until_active(self, remote_file: RemoteFile) -> RemoteFile:
        """
        Polls the file until it is ACTIVE.

        The first check happens immediately; a fixed interval is slept before
        each further check. Non-success responses and unknown states use up an
        attempt like PROCESSING does. Each check uses the short poll timeout,
        and polling also stops once the next check would start past
        ``max_poll_attempts * poll_interval_seconds`` (plus one poll timeout),
        so a hanging status endpoint cannot stretch the wait.

        Raises:
            RemoteProcessingError: As soon as the file reports FAILED.
            RemoteTimeoutError: When every attempt or the time budget is used up.
        """
        max_attempts = self._config.max_poll_attempts
        interval = self._config.poll_interval_seconds
        deadline = (
            self._clock()
            + self._config.poll_budget_seconds
            + self._config.poll_timeout_seconds
        )
        attempt = 0
        while attempt < max_attempts:
            attempt += 1
            state = self._fetch_state(remote_file)
            if state == RemoteFileState.ACTIVE.value:
                logger.info(
                    "Remote file active",
                    extra={"file_name": remote_file.name, "attempt": attempt},
                )
                return remote_file.model_copy(update={"state": state})
            if state == RemoteFileState.FAILED.value:
                logger.error(
                    "Remote file processing failed",
                    extra={"file_name": remote_file.name, "attempt": attempt},
                )
                raise RemoteProcessingError(
                    f"Remote file '{remote_file.name}' reported FAILED"
                )
            if attempt == max_attempts:
                break
            if self._clock() + interval > deadline:
                logger.warning(
                    "Polling time budget exhausted",
                    extra={"file_name": remote_file.name, "attempt": attempt},
                )
                break
            self._sleep(interval)

        logger.error(
            "Remote file did not become active",
            extra={"file_name": remote_file.name, "attempts": attempt},
        )
        raise RemoteTimeoutError(
            f"Remote file '{remote_file.name}' not active after {attempt} attempts"
        )

    def _fetch_state(self, remote_file: RemoteFile) -> str | None:
        try:
            response = self._session.get(
                remote_file.uri,
                params=self._auth,
                timeout=self._config.poll_timeout_seconds,
            )
        except requests.RequestException:
            logger.warning(
                "File status request failed", extra={"file_name": remote_file.name}
            )
            return None
        if not response.ok:
            logger.warning(
                "File status request rejected",
                extra={"file_name": remote_file.name, "status_code": response.status_code},
            )
            return None
        try:
            body = response.json()
        except ValueError:
            return None
        return body.get("state") if isinstance(body, dict) else None

    def generate(self, remote_file: RemoteFile) -> str:
        """
        Runs the transcription prompt against the uploaded file.

        Returns:
            The transcript, or ``NO_TRANSCRIPT_TEXT`` when the model answered
            without any text.

        Raises:
            RemoteGenerateError: On transport errors or non-success status.
        """
        url = (
            f"{self._config.base_url}/v1beta/models/"
            f"{self._config.model_name}:generateContent"
        )
        request_body = {
            "contents": [
                {
                    "parts": [
                        {"text": TRANSCRIPTION_PROMPT},
                        {
                            "file_data": {
                                "mime_type": remote_file.mime_type,
                                "file_uri": remote_file.uri,
                            }
                        },
                    ]
                }
            ]
        }
        try:
            response = self._session.post(
                url,
                params=self._auth,
                json=request_body,
                timeout=self._config.http_timeout_seconds,
            )
        except requests.RequestException as e:
            logger.exception("Generate request failed")
            raise RemoteGenerateError("Generate request failed", cause=e) from e

        if not response.ok:
            message = _error_message(response)
            logger.error(
                "Generate request rejected",
                extra={"status_code": response.status_code, "error": message},
            )
            raise RemoteGenerateError(
                f"Generate returned HTTP {response.status_code}: {message}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError:
            body = None
        text = _extract_text(body)
        if text is None:
            logger.warning(
                "Generate response has no text", extra={"file_name": remote_file.name}
            )
            return NO_TRANSCRIPT_TEXT

        logger.info(
            "Transcript generated",
            extra={"file_name": remote_file.name, "chars": len(text)},
        )
        return text

    def delete_file(self, remote_file: RemoteFile) -> None:
        """Best-effort delete of the remote file; failures are only logged."""
        try:
            response = self._session.delete(
                remote_file.uri,
                params=self._auth,
                timeout=self._config.http_timeout_seconds,
            )
            if response.ok:
                logger.info("Remote file deleted", extra={"file_name": remote_file.name})
            else:
                logger.warning(
                    "Remote file delete rejected",
                    extra={
                        "file_name": remote_file.name,
                        "status_code": response.status_code,
                    },
                )
        except Exception:
            logger.exception(
                "Remote file delete failed", extra={"file_name": remote_file.name}
            )


def _parse_file(data: Any, default_mime_type: str = "") -> RemoteFile | None:
    if not isinstance(data, dict) or not data.get("uri"):
        return None
    return RemoteFile(
        name=data.get("name", ""),
        uri=data["uri"],
        mime_type=data.get("mimeType") or default_mime_type,
        state=data.get("state", RemoteFileState.PROCESSING.value),
    )


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:500]
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return body["error"].get("message", "")
    return ""


def _extract_text(body: Any) -> str | None:
    """Joins the text parts of the first candidate, None if there are none."""
    if not isinstance(body, dict):
        return None
    candidates = body.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None
    if not isinstance(candidates[0], dict):
        return None
    content = candidates[0].get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return None
    texts = [
        part["text"]
        for part in parts
        if isinstance(part, dict) and isinstance(part.get("text"), str)
    ]
    if not texts:
        return None
    return "".join(texts)
