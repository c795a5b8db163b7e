"""
YouTube provider for Music Vault.

Resolves titles through the yt-dlp API and streams best-audio bytes from a
yt-dlp subprocess. Optional cookie file or credentials are forwarded for
restricted videos.
"""

import shutil

from loguru import logger

from music_vault.core.config import YouTubeConfig

from .download import (
    YouTubeProvider,
    build_stream_command,
    build_ydl_options,
    extract_metadata,
    fetch_metadata,
    open_audio_stream,
)


def init_provider(config: YouTubeConfig, chunk_size: int = 64 * 1024) -> YouTubeProvider:
    """Initialize YouTube provider.

    Checks for ffmpeg, which yt-dlp needs for some audio formats.

    Args:
        config: YouTube section of the app config
        chunk_size: Bytes per read from the yt-dlp stdout pipe

    Returns:
        Provider implementing AudioSourceProvider
    """
    if not shutil.which("ffmpeg"):
        logger.warning("ffmpeg not found - some YouTube formats may fail to download")

    if config.cookie_file:
        logger.debug(f"YouTube provider using cookie file {config.cookie_file}")

    logger.debug("YouTube provider initialized")
    return YouTubeProvider(config, chunk_size)


__all__ = [
    "init_provider",
    "YouTubeProvider",
    "build_stream_command",
    "build_ydl_options",
    "extract_metadata",
    "fetch_metadata",
    "open_audio_stream",
]
