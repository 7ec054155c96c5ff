"""API route exports."""

from voice_memo.routes.recordings import router as recordings_router

__all__ = ["recordings_router"]
