"""FastAPI application factory."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from voice_memo.response_models import ErrorResponse
from voice_memo.routes import recordings_router


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(message=str(exc.detail)).model_dump(),
    )


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{location}: {first.get('msg', 'invalid request')}".lstrip(": ")
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(message=message).model_dump(),
    )


def create_app() -> FastAPI:
    """Builds the recordings API with failures rendered as ``{success, message}``."""
    app = FastAPI(title="Voice Memo Recording Service")
    app.include_router(recordings_router)
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    return app
