"""Reassembles a session's chunk blobs into one audio payload."""

import mimetypes
from typing import TYPE_CHECKING

from voice_memo.domain.models import CHUNK_NAME_PATTERN, AssembledPayload
from voice_memo.exceptions import EmptyPayloadError
from voice_memo.logging import setup_logging

if TYPE_CHECKING:
    from voice_memo.infrastructure.interfaces import BlobStore

logger = setup_logging()

DEFAULT_CONTENT_TYPE = "application/octet-stream"

_AUDIO_EXTENSIONS = {
    "audio/webm": "webm",
    "audio/ogg": "ogg",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/mpeg": "mp3",
    "audio/mp4": "m4a",
    "audio/aac": "aac",
    "audio/flac": "flac",
}


def extension_for(content_type: str) -> str:
    base_type = content_type.split(";", 1)[0].strip().lower()
    if base_type in _AUDIO_EXTENSIONS:
        return _AUDIO_EXTENSIONS[base_type]
    guessed = mimetypes.guess_extension(base_type)
    return guessed.lstrip(".") if guessed else "bin"


class SessionAssembler:
    """Concatenates chunk blobs in index order."""

    def __init__(self, store: "BlobStore"):
        self._store = store

    def assemble(self, session_id: str) -> AssembledPayload:
        """
        Builds the upload payload for a session.

        Chunk names carry a fixed-width zero-padded index, so sorting the names
        orders the chunks numerically. Every matching chunk is used exactly once.

        Raises:
            EmptyPayloadError: If the session holds no chunk blobs.
            StorageDownloadError: If listing or downloading fails.
        """
        names = sorted(
            blob.name
            for blob in self._store.list_blobs(session_id)
            if CHUNK_NAME_PATTERN.match(blob.name)
        )
        if not names:
            raise EmptyPayloadError(session_id)

        chunks = [self._store.get(session_id, name) for name in names]
        content_type = chunks[0].content_type or DEFAULT_CONTENT_TYPE
        data = b"".join(chunk.data for chunk in chunks)

        logger.info(
            "Session assembled",
            extra={
                "session_id": session_id,
                "chunk_count": len(chunks),
                "size": len(data),
                "content_type": content_type,
            },
        )
        return AssembledPayload(
            data=data,
            content_type=content_type,
            display_name=f"{session_id}.{extension_for(content_type)}",
        )
