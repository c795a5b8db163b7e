"""YouTube download endpoints for Music Vault Web API."""

import asyncio

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from loguru import logger

from music_vault.core.config import Config
from music_vault.domain.library import AudioSourceProvider, TrackStorage, validate_source_url

from ..deps import get_config, get_provider, get_storage
from ..jobs import PENDING, get_job, start_ingest_job
from ..schemas import (
    DownloadRequest,
    DownloadResponse,
    JobAcceptedResponse,
    JobStatusResponse,
)

router = APIRouter()


@router.post(
    "/download-youtube",
    response_model=DownloadResponse,
    responses={202: {"model": JobAcceptedResponse}},
)
async def download_youtube(
    req: DownloadRequest,
    storage: TrackStorage = Depends(get_storage),
    provider: AudioSourceProvider = Depends(get_provider),
    config: Config = Depends(get_config),
):
    """Fetch a YouTube video's audio into the library.

    By default waits for the download and returns the stored filename. The
    ingest runs in its own task, so it finishes even if this client goes
    away. With `wait: false` returns 202 and a job_id to poll at
    /jobs/{job_id}.

    Raises:
        InvalidSourceURLError: 400 for a missing or malformed URL
        MetadataFetchError: 500 when the title cannot be resolved
        AudioStreamError: 500 when the audio stream fails
        StorageError: 500 when the file cannot be written
    """
    url = validate_source_url(req.url)
    job_id, task = start_ingest_job(url, provider, storage, config.storage.audio_extension)

    if not req.wait:
        return JSONResponse(
            status_code=202,
            content=JobAcceptedResponse(job_id=job_id, status=PENDING).model_dump(),
        )

    result = await asyncio.shield(task)
    logger.info(f"Ingest job {job_id} completed: {result.filename}")
    return DownloadResponse(message=result.message, filename=result.filename, job_id=job_id)


@router.get("/jobs/{job_id}", response_model=JobStatusResponse)
async def get_job_status(job_id: str) -> JobStatusResponse:
    """Get status of an ingest job.

    Raises:
        HTTPException: 404 if job not found or expired
    """
    job = get_job(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return JobStatusResponse(job_id=job_id, **job)
