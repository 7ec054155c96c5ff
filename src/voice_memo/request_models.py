"""Request models for the recordings API."""

from pydantic import BaseModel, Field


class ChunkUploadRequest(BaseModel):
    """One base64-encoded audio chunk."""

    payload_base64: str = Field(..., min_length=1)
    session_id: str = Field(..., min_length=1, max_length=128)
    index: int = Field(..., ge=0)
    mime_type: str = "application/octet-stream"


class FinalizeRequest(BaseModel):
    """Marks a session as fully uploaded."""

    session_id: str = Field(..., min_length=1, max_length=128)
    destination_id: str | None = None
