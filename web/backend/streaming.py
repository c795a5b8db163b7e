"""Range-aware audio responses for stored tracks."""

from typing import AsyncIterator, Optional

from fastapi.responses import Response, StreamingResponse
from loguru import logger

from music_vault.domain.library import StorageError, TrackStorage
from music_vault.domain.streaming import RangeNotSatisfiableError, resolve_range

DEFAULT_CHUNK_SIZE = 64 * 1024


async def iter_file_range(
    storage: TrackStorage,
    name: str,
    start: int,
    length: int,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> AsyncIterator[bytes]:
    """Yield `length` bytes of a track starting at `start`.

    The read handle lives inside the generator, so it is closed when the body
    finishes, when the client disconnects (generator closed/cancelled) and
    when a read fails.
    """
    async with storage.open_for_read(name) as handle:
        try:
            await handle.seek(start)
            remaining = length
            while remaining > 0:
                chunk = await handle.read(min(chunk_size, remaining))
                if not chunk:
                    # File shrank after stat; end the body early
                    logger.warning(f"{name} ended {remaining} bytes early")
                    break
                remaining -= len(chunk)
                yield chunk
        except OSError as e:
            logger.error(f"Read error while streaming {name}: {e}")
            raise StorageError(f"Read error while streaming {name}: {e}") from e


def build_stream_response(
    storage: TrackStorage,
    name: str,
    range_header: Optional[str],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Response:
    """Serve a track as 200 (full), 206 (partial) or 416 (unsatisfiable).

    Size is read from the filesystem on every call.

    Raises:
        TrackNotFoundError: Track is not in storage
    """
    track = storage.stat(name)
    size = track.size

    try:
        byte_range = resolve_range(size, range_header)
    except RangeNotSatisfiableError:
        logger.warning(f"Unsatisfiable range {range_header!r} for {name} (size={size})")
        return Response(status_code=416, headers={"Content-Range": f"bytes */{size}"})

    if byte_range is None:
        headers = {
            "Content-Length": str(size),
            "Accept-Ranges": "bytes",
        }
        return StreamingResponse(
            iter_file_range(storage, name, 0, size, chunk_size),
            status_code=200,
            media_type=track.content_type,
            headers=headers,
        )

    headers = {
        "Content-Range": byte_range.content_range(size),
        "Accept-Ranges": "bytes",
        "Content-Length": str(byte_range.length),
    }
    logger.debug(f"Streaming {name} bytes {byte_range.start}-{byte_range.end}/{size}")
    return StreamingResponse(
        iter_file_range(storage, name, byte_range.start, byte_range.length, chunk_size),
        status_code=206,
        media_type=track.content_type,
        headers=headers,
    )
