import re

from fastapi import APIRouter, Depends, File, Request, UploadFile
from loguru import logger

from music_vault.core.config import Config
from music_vault.core.path_security import is_safe_track_name
from music_vault.domain.library import InvalidTrackNameError, TrackStorage, list_songs

from ..deps import get_config, get_storage
from ..schemas import MessageResponse
from ..streaming import build_stream_response

router = APIRouter()


def upload_filename(raw: str | None) -> str:
    """Pure function - base name of a client supplied upload filename.

    Browsers may send full Windows or POSIX paths; only the last component
    is kept.

    Raises:
        InvalidTrackNameError: Nothing usable remains
    """
    name = re.split(r"[\\/]", raw or "")[-1].strip()
    if not is_safe_track_name(name):
        raise InvalidTrackNameError(f"Invalid upload filename: {raw!r}")
    return name


@router.get("/songs", response_model=list[str])
def get_songs(
    storage: TrackStorage = Depends(get_storage), config: Config = Depends(get_config)
) -> list[str]:
    """List playable tracks in directory order."""
    return list_songs(storage, config.storage.audio_extension)


@router.get("/songs/{song_name}")
def stream_song(
    song_name: str,
    request: Request,
    storage: TrackStorage = Depends(get_storage),
    config: Config = Depends(get_config),
):
    """Stream a track, honoring the Range header for seeking."""
    return build_stream_response(
        storage,
        song_name,
        request.headers.get("range"),
        chunk_size=config.storage.chunk_size,
    )


@router.post("/upload", response_model=MessageResponse)
async def upload_song(
    song: UploadFile = File(...),
    storage: TrackStorage = Depends(get_storage),
    config: Config = Depends(get_config),
) -> MessageResponse:
    """Store an uploaded file byte-for-byte under its original name."""
    name = upload_filename(song.filename)
    try:
        async with storage.create_for_write(name) as writer:
            while True:
                chunk = await song.read(config.storage.chunk_size)
                if not chunk:
                    break
                await writer.write(chunk)
    finally:
        await song.close()

    logger.info(f"Uploaded {name} ({writer.bytes_written} bytes)")
    return MessageResponse(message="Song uploaded successfully!")
