"""Response models for the recordings API."""

from pydantic import BaseModel

from voice_memo.domain import TaskStatus


class ChunkUploadResponse(BaseModel):
    """Response returned after a chunk is stored."""

    success: bool = True


class FinalizeResponse(BaseModel):
    """Response returned after a session is queued."""

    success: bool = True
    message: str
    redirect_url: str = ""


class RetryResponse(BaseModel):
    """Response returned after a failed session is requeued."""

    success: bool = True
    message: str


class SessionStatusResponse(BaseModel):
    """Queue state of a session."""

    session_id: str
    status: TaskStatus | None


class ErrorResponse(BaseModel):
    """Body of every failed request."""

    success: bool = False
    message: str
