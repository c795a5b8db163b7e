"""In-memory registry of ingest jobs.

Each job runs in its own asyncio task so a client disconnecting from the
download request does not cancel the ingest. Status stays queryable by job
id until JOB_TTL_SECONDS after creation. Nothing survives a restart.
"""

import asyncio
import time
import uuid
from threading import Lock
from typing import Optional

from loguru import logger

from music_vault.domain.library import (
    AudioSourceProvider,
    IngestJob,
    IngestResult,
    IngestState,
    TrackStorage,
    run_ingest,
)

# Job storage (in-memory for single-instance deployment)
_jobs: dict[str, dict] = {}
_jobs_lock = Lock()
JOB_TTL_SECONDS = 3600  # 1 hour

# Strong references so running tasks are not garbage collected
_tasks: set[asyncio.Task] = set()

PENDING = "pending"
FINISHED_STATES = {IngestState.COMPLETED.value, IngestState.FAILED.value}


def _cleanup_old_jobs() -> None:
    """Remove finished jobs older than JOB_TTL_SECONDS. Must be called with _jobs_lock held."""
    cutoff = time.time() - JOB_TTL_SECONDS
    expired_ids = [
        job_id
        for job_id, job in _jobs.items()
        if job.get("created_at", 0) < cutoff and job.get("status") in FINISHED_STATES
    ]
    for job_id in expired_ids:
        del _jobs[job_id]
    if expired_ids:
        logger.debug(f"Cleaned up {len(expired_ids)} expired ingest jobs")


def create_job(url: str) -> str:
    """Create a new ingest job record and return its ID."""
    job_id = str(uuid.uuid4())
    with _jobs_lock:
        _cleanup_old_jobs()
        _jobs[job_id] = {
            "status": PENDING,
            "url": url,
            "title": None,
            "filename": None,
            "bytes_written": 0,
            "error": None,
            "created_at": time.time(),
        }
    return job_id


def update_job(job_id: str, **kwargs) -> None:
    """Update job status and metadata."""
    with _jobs_lock:
        if job_id in _jobs:
            _jobs[job_id].update(kwargs)


def get_job(job_id: str) -> Optional[dict]:
    """Get job status and metadata, without internal fields."""
    with _jobs_lock:
        job = _jobs.get(job_id)
        if job:
            return {k: v for k, v in job.items() if k != "created_at"}
        return None


def make_state_callback(job_id: str):
    """Create a callback mirroring pipeline state into the registry."""

    def callback(job: IngestJob) -> None:
        update_job(
            job_id,
            status=job.state.value,
            title=job.title,
            filename=job.filename,
            bytes_written=job.bytes_written,
            error=job.error,
        )

    return callback


def _retrieve_exception(task: asyncio.Task) -> None:
    """Mark task exceptions as retrieved; the pipeline already logged them."""
    _tasks.discard(task)
    if not task.cancelled():
        task.exception()


def start_ingest_job(
    url: str,
    provider: AudioSourceProvider,
    storage: TrackStorage,
    extension: str = ".mp3",
) -> tuple[str, "asyncio.Task[IngestResult]"]:
    """Register a job and start the ingest in a background task.

    Must be called from a running event loop.

    Returns:
        (job_id, task) - await the task (shielded) to wait for the result
    """
    job_id = create_job(url)

    async def worker() -> IngestResult:
        try:
            return await run_ingest(
                url,
                provider,
                storage,
                extension=extension,
                on_state=make_state_callback(job_id),
            )
        except Exception as e:
            # Failures before the first transition never reach the callback
            job = get_job(job_id)
            if job and job["status"] != IngestState.FAILED.value:
                update_job(job_id, status=IngestState.FAILED.value, error=str(e))
            raise

    task = asyncio.create_task(worker(), name=f"ingest-{job_id}")
    _tasks.add(task)
    task.add_done_callback(_retrieve_exception)
    logger.info(f"Started ingest job {job_id} for URL: {url}")
    return job_id, task
