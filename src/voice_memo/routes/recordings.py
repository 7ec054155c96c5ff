"""Recording ingress endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from voice_memo.dependencies import get_ingress
from voice_memo.exceptions import (
    ConflictError,
    EventPublishError,
    InvalidChunkError,
    InvalidDestinationError,
    SessionNotFoundError,
    StorageError,
)
from voice_memo.handlers import RecordingIngress
from voice_memo.logging import setup_logging
from voice_memo.request_models import ChunkUploadRequest, FinalizeRequest
from voice_memo.response_models import (
    ChunkUploadResponse,
    FinalizeResponse,
    RetryResponse,
    SessionStatusResponse,
)

logger = setup_logging()

router = APIRouter(prefix="/recordings", tags=["recordings"])

IngressDep = Annotated[RecordingIngress, Depends(get_ingress)]


@router.post("/chunks", response_model=ChunkUploadResponse)
def upload_chunk(request: ChunkUploadRequest, ingress: IngressDep) -> ChunkUploadResponse:
    """Stores one audio chunk of a recording session."""
    try:
        ingress.upload_chunk(
            session_id=request.session_id,
            index=request.index,
            payload_base64=request.payload_base64,
            mime_type=request.mime_type,
        )
    except InvalidChunkError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except StorageError:
        raise HTTPException(status_code=500, detail="Chunk upload failed")

    return ChunkUploadResponse()


@router.post("/finalize", response_model=FinalizeResponse)
def finalize_upload(request: FinalizeRequest, ingress: IngressDep) -> FinalizeResponse:
    """
    Queues an uploaded session for transcription.

    The worker runs in the background; the client only learns whether the
    session was accepted.
    """
    try:
        marker = ingress.finalize(request.session_id, request.destination_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidDestinationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except (StorageError, EventPublishError):
        raise HTTPException(status_code=500, detail="Finalize failed")

    return FinalizeResponse(
        message=f"Recording queued for transcription into '{marker.destination_id}'",
        redirect_url=ingress.redirect_url,
    )


@router.post("/{session_id}/retry", response_model=RetryResponse)
def retry_session(session_id: str, ingress: IngressDep) -> RetryResponse:
    """Requeues a session whose transcription failed."""
    try:
        ingress.retry(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except (StorageError, EventPublishError):
        raise HTTPException(status_code=500, detail="Retry failed")

    return RetryResponse(message="Recording requeued for transcription")


@router.get("/{session_id}", response_model=SessionStatusResponse)
def get_session_status(session_id: str, ingress: IngressDep) -> SessionStatusResponse:
    """Returns the queue state of a session."""
    try:
        status = ingress.status(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StorageError:
        raise HTTPException(status_code=500, detail="Status lookup failed")

    return SessionStatusResponse(session_id=session_id, status=status)
