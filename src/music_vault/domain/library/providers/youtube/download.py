"""YouTube metadata and audio streaming using yt-dlp."""

import asyncio
import contextlib
import sys
from collections import deque
from contextlib import asynccontextmanager
from typing import AsyncIterator

import anyio
import yt_dlp
from loguru import logger

from music_vault.core.config import YouTubeConfig

from ...provider import SourceMetadata
from .exceptions import (
    AgeRestrictedError,
    CopyrightBlockedError,
    InvalidYouTubeURLError,
    StreamProcessError,
    VideoUnavailableError,
    YouTubeError,
)

# Number of trailing stderr lines kept for error reporting
STDERR_TAIL_LINES = 20


def build_ydl_options(config: YouTubeConfig) -> dict:
    """Pure function - yt-dlp API options for metadata extraction.

    Args:
        config: YouTube section of the app config

    Returns:
        Options dict for yt_dlp.YoutubeDL
    """
    opts = {
        "quiet": True,
        "no_warnings": True,
        "noplaylist": True,
        "http_headers": {
            "User-Agent": config.user_agent,
            "Referer": config.referer,
            "Accept-Language": config.accept_language,
        },
        "nocheckcertificate": config.no_check_certificates,
    }
    if config.force_ipv4:
        opts["source_address"] = "0.0.0.0"
    if config.cookie_file:
        opts["cookiefile"] = config.cookie_file
    if config.username:
        opts["username"] = config.username
        opts["password"] = config.password or ""
    return opts


def build_stream_command(url: str, config: YouTubeConfig) -> list[str]:
    """Pure function - yt-dlp command line writing best audio to stdout.

    Runs yt-dlp as a module of the current interpreter so the installed
    package is used regardless of PATH.
    """
    cmd = [
        sys.executable,
        "-m",
        "yt_dlp",
        "--quiet",
        "--no-warnings",
        "--no-playlist",
        "--no-part",
        "-f",
        "bestaudio",
        "-o",
        "-",
        "--add-header",
        f"User-Agent:{config.user_agent}",
        "--add-header",
        f"Referer:{config.referer}",
        "--add-header",
        f"Accept-Language:{config.accept_language}",
    ]
    if config.force_ipv4:
        cmd.append("--force-ipv4")
    if config.no_check_certificates:
        cmd.append("--no-check-certificates")
    if config.cookie_file:
        cmd.extend(["--cookies", config.cookie_file])
    if config.username:
        cmd.extend(["--username", config.username, "--password", config.password or ""])
    cmd.extend(["--", url])
    return cmd


def classify_error(message: str) -> YouTubeError:
    """Map a yt-dlp error message onto the exception hierarchy."""
    error_msg = message.lower()
    if "not a valid url" in error_msg or "unsupported url" in error_msg:
        return InvalidYouTubeURLError(f"Unsupported URL: {message}")
    if "sign in" in error_msg or "confirm your age" in error_msg or "age-restricted" in error_msg:
        return AgeRestrictedError("Video requires age verification or sign-in")
    if "unavailable" in error_msg or "deleted" in error_msg or "private" in error_msg:
        return VideoUnavailableError("Video is unavailable, deleted, or private")
    if "copyright" in error_msg or "blocked" in error_msg:
        return CopyrightBlockedError("Video blocked due to copyright")
    return YouTubeError(f"yt-dlp failed: {message}")


def extract_metadata(url: str, config: YouTubeConfig) -> SourceMetadata:
    """Fetch video metadata without downloading (blocking).

    Args:
        url: YouTube video URL
        config: YouTube section of the app config

    Returns:
        SourceMetadata with title, id, duration and uploader

    Raises:
        InvalidYouTubeURLError: URL resolves to a playlist or nothing usable
        AgeRestrictedError: Video requires age verification
        VideoUnavailableError: Video is unavailable/deleted/private
        CopyrightBlockedError: Video blocked due to copyright
        YouTubeError: Other extraction errors
    """
    try:
        with yt_dlp.YoutubeDL(build_ydl_options(config)) as ydl:
            info = ydl.extract_info(url, download=False)
    except yt_dlp.utils.DownloadError as e:
        raise classify_error(str(e)) from e

    if not info:
        raise VideoUnavailableError("Failed to extract video information")

    if info.get("_type") == "playlist" or "entries" in info:
        raise InvalidYouTubeURLError("Playlist URLs are not supported, use a video URL")

    title = info.get("title")
    if not title:
        raise YouTubeError("Video metadata has no title")

    duration = info.get("duration")
    return SourceMetadata(
        title=title,
        source_id=info.get("id"),
        duration=float(duration) if duration is not None else None,
        uploader=info.get("uploader"),
    )


async def fetch_metadata(url: str, config: YouTubeConfig) -> SourceMetadata:
    """Async wrapper running extract_metadata in a worker thread."""
    return await anyio.to_thread.run_sync(extract_metadata, url, config)


async def _drain_stderr(stream: asyncio.StreamReader, tail: deque, url: str) -> None:
    """Consume yt-dlp stderr so the pipe never fills, keeping the last lines."""
    async for raw in stream:
        line = raw.decode("utf-8", errors="replace").rstrip()
        if line:
            tail.append(line)
            logger.debug(f"yt-dlp stderr [{url}]: {line}")


@asynccontextmanager
async def open_audio_stream(
    url: str,
    config: YouTubeConfig,
    chunk_size: int = 64 * 1024,
) -> AsyncIterator[AsyncIterator[bytes]]:
    """Spawn yt-dlp and expose its stdout as an async iterator of chunks.

    The iterator raises StreamProcessError (or a classified YouTubeError) if
    the process exits non-zero after stdout closes. Leaving the context kills
    and reaps the process on every path.

    Raises:
        YouTubeError: yt-dlp could not be started
    """
    cmd = build_stream_command(url, config)
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise YouTubeError(f"Could not start yt-dlp: {e}") from e

    logger.debug(f"yt-dlp pid {proc.pid} streaming {url}")
    tail: deque = deque(maxlen=STDERR_TAIL_LINES)
    stderr_task = asyncio.create_task(_drain_stderr(proc.stderr, tail, url))

    async def chunks() -> AsyncIterator[bytes]:
        while True:
            chunk = await proc.stdout.read(chunk_size)
            if not chunk:
                break
            yield chunk

        returncode = await proc.wait()
        await stderr_task
        if returncode != 0:
            stderr_text = "\n".join(tail)
            if stderr_text:
                classified = classify_error(stderr_text)
                if type(classified) is not YouTubeError:
                    raise classified
            raise StreamProcessError(returncode, stderr_text)

    stream = chunks()
    try:
        yield stream
    finally:
        await stream.aclose()
        if proc.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()
            logger.debug(f"Killed yt-dlp pid {proc.pid} for {url}")
        if not stderr_task.done():
            stderr_task.cancel()


class YouTubeProvider:
    """AudioSourceProvider backed by yt-dlp."""

    name = "youtube"

    def __init__(self, config: YouTubeConfig, chunk_size: int = 64 * 1024):
        self.config = config
        self.chunk_size = chunk_size

    async def fetch_metadata(self, url: str) -> SourceMetadata:
        return await fetch_metadata(url, self.config)

    def open_audio_stream(self, url: str):
        return open_audio_stream(url, self.config, self.chunk_size)
