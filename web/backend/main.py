from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from music_vault.core.config import ensure_directories
from music_vault.core.output import setup_from_config
from music_vault.domain.library import (
    InvalidSourceURLError,
    InvalidTrackNameError,
    MusicVaultError,
    TrackNotFoundError,
)
from music_vault.domain.library.providers.youtube import init_provider

from .deps import get_config

# Status codes for library errors; anything else is a server-side failure
ERROR_STATUS_CODES: dict[type, int] = {
    TrackNotFoundError: 404,
    InvalidSourceURLError: 400,
    InvalidTrackNameError: 400,
}


def status_for_error(exc: MusicVaultError) -> int:
    """Pure function - HTTP status for a library error."""
    for error_type, status_code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_type):
            return status_code
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = app.dependency_overrides.get(get_config, get_config)()
    setup_from_config(config.logging)
    ensure_directories(config)
    app.state.provider = init_provider(config.youtube, config.storage.chunk_size)
    logger.info(f"Serving tracks from {config.storage.music_dir}")
    yield


app = FastAPI(title="Music Vault Web API", version="0.1.0", lifespan=lifespan)

# Allowed origins are read from the config once, at import; restart to change them
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_config().web.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MusicVaultError)
async def library_error_handler(request: Request, exc: MusicVaultError) -> JSONResponse:
    status_code = status_for_error(exc)
    if isinstance(exc, TrackNotFoundError):
        message = "Song not found"
    else:
        message = str(exc)

    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc}")
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.warning(f"Invalid request to {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error for {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# Include routers
from web.backend.routers import tracks, youtube

app.include_router(tracks.router, prefix="/api", tags=["songs"])
app.include_router(youtube.router, prefix="/api", tags=["youtube"])


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
