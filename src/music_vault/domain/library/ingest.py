"""
Ingest pipeline: fetch a track from an external source into storage.

Started -> MetadataFetched -> Streaming -> Completed | Failed

One metadata fetch and one payload fetch per job. Payload bytes are piped
chunk by chunk into an atomic storage writer, so a failed job never leaves a
playable partial file behind. No retries; callers may resubmit.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional
from urllib.parse import urlparse

import anyio
from loguru import logger

from .exceptions import (
    AudioStreamError,
    InvalidSourceURLError,
    MetadataFetchError,
    MusicVaultError,
)
from .provider import AudioSourceProvider
from .storage import TrackStorage

# Characters reserved by common filesystems, plus ASCII control characters
RESERVED_CHARS_RE = re.compile(r'[<>:"/\\|?*\x00-\x1f\x7f]')

# UTF-8 byte limit for sanitized titles, below the 255 byte NAME_MAX
MAX_NAME_BYTES = 200


class IngestState(str, Enum):
    """State of an ingest job."""

    STARTED = "started"
    METADATA_FETCHED = "metadata_fetched"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class IngestJob:
    """Mutable record of a single ingest run."""

    url: str
    state: IngestState = IngestState.STARTED
    title: Optional[str] = None
    filename: Optional[str] = None
    bytes_written: int = 0
    error: Optional[str] = None


@dataclass(frozen=True)
class IngestResult:
    """Outcome of a completed ingest job."""

    filename: str
    title: str
    bytes_written: int
    message: str = "Download complete!"


StateCallback = Callable[[IngestJob], None]


def validate_source_url(url: Optional[str]) -> str:
    """Pure function - returns the stripped URL or raises.

    Raises:
        InvalidSourceURLError: Missing URL, non-http(s) scheme or no host
    """
    if not url or not isinstance(url, str) or not url.strip():
        raise InvalidSourceURLError("URL is required")

    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidSourceURLError(f"Invalid URL: {url}")

    return url


def sanitize_title(title: str, fallback: str = "untitled") -> str:
    """Pure function - turn a source title into a filesystem-safe base name.

    Removes < > : " / \\ | ? * and control characters, trims surrounding
    whitespace, leading dots (hidden files) and trailing dots. The result is
    cut to MAX_NAME_BYTES of UTF-8 on a character boundary.

    Example:
        'AC/DC: "Thunderstruck"' -> 'ACDC Thunderstruck'
    """
    name = RESERVED_CHARS_RE.sub("", title).strip()
    name = name.lstrip(".").rstrip(". ").strip()

    encoded = name.encode("utf-8")
    if len(encoded) > MAX_NAME_BYTES:
        name = encoded[:MAX_NAME_BYTES].decode("utf-8", "ignore").rstrip(". ")

    return name or fallback


def build_filename(title: str, extension: str = ".mp3", fallback: str = "untitled") -> str:
    """Pure function - sanitized title plus the audio extension."""
    return f"{sanitize_title(title, fallback)}{extension}"


async def run_ingest(
    url: Optional[str],
    provider: AudioSourceProvider,
    storage: TrackStorage,
    extension: str = ".mp3",
    on_state: Optional[StateCallback] = None,
) -> IngestResult:
    """Run one ingest job to completion.

    Args:
        url: Resource locator submitted by the client
        provider: Source of metadata and audio bytes
        storage: Destination storage directory
        extension: Extension appended to the sanitized title
        on_state: Called with the job after every state transition

    Returns:
        IngestResult with the stored filename

    Raises:
        InvalidSourceURLError: Locator missing or malformed (nothing fetched)
        MetadataFetchError: Title lookup failed (no file created)
        AudioStreamError: Source stream failed (partial file discarded)
        StorageError: Disk write failed (partial file discarded)
    """
    url = validate_source_url(url)
    job = IngestJob(url=url)

    def transition(state: IngestState, **changes) -> None:
        job.state = state
        for key, value in changes.items():
            setattr(job, key, value)
        if on_state is not None:
            on_state(job)

    transition(IngestState.STARTED)

    try:
        metadata = await provider.fetch_metadata(url)
    except anyio.get_cancelled_exc_class():
        transition(IngestState.FAILED, error="Cancelled")
        raise
    except Exception as e:
        logger.warning(f"Metadata fetch failed for {url}: {e}")
        transition(IngestState.FAILED, error=str(e))
        raise MetadataFetchError(
            "Error fetching video metadata. The URL might be invalid or private."
        ) from e

    filename = build_filename(metadata.title, extension, fallback=metadata.source_id or "untitled")
    transition(IngestState.METADATA_FETCHED, title=metadata.title, filename=filename)

    logger.info(f"Starting download for: {metadata.title} ({url}) -> {filename}")
    transition(IngestState.STREAMING)

    try:
        async with storage.create_for_write(filename) as writer:
            try:
                async with provider.open_audio_stream(url) as chunks:
                    async for chunk in chunks:
                        await writer.write(chunk)
            except MusicVaultError:
                raise
            except Exception as e:
                raise AudioStreamError(f"Error during download process: {e}") from e

            if writer.bytes_written == 0:
                raise AudioStreamError("Source produced no audio data")
            bytes_written = writer.bytes_written
    except anyio.get_cancelled_exc_class():
        logger.warning(f"Download cancelled for: {filename}")
        transition(IngestState.FAILED, error="Cancelled")
        raise
    except MusicVaultError as e:
        logger.error(f"Download failed for {filename} ({url}): {e}")
        transition(IngestState.FAILED, error=str(e))
        raise

    transition(IngestState.COMPLETED, bytes_written=bytes_written)
    logger.info(f"Download finished for: {filename} ({bytes_written} bytes)")

    return IngestResult(filename=filename, title=metadata.title, bytes_written=bytes_written)
