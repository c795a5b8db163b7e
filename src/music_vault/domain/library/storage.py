"""
Storage directory access for Music Vault.

The storage directory is a single flat folder; file names double as public
track identifiers. All access goes through TrackStorage so callers never
touch paths directly.

Writes land in a hidden temporary file that is renamed over the final name
only after the payload is flushed to disk, so a half-written track is never
listed or streamed.
"""

import os
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncContextManager, AsyncIterator, Protocol

import anyio
from anyio import AsyncFile
from loguru import logger

from music_vault.core.path_security import is_safe_track_name, resolve_track_path

from .exceptions import InvalidTrackNameError, StorageError, TrackNotFoundError

TEMP_SUFFIX = ".part"
AUDIO_CONTENT_TYPE = "audio/mpeg"


@dataclass(frozen=True)
class TrackInfo:
    """A stored track. Size comes from stat at lookup time and is never cached."""

    name: str
    path: Path
    size: int
    content_type: str = AUDIO_CONTENT_TYPE


class TrackWriter:
    """Write handle for a track that is not yet visible under its final name."""

    def __init__(self, handle: AsyncFile, temp_path: Path):
        self._handle = handle
        self.temp_path = temp_path
        self.bytes_written = 0
        self.closed = False

    async def write(self, chunk: bytes) -> None:
        try:
            await self._handle.write(chunk)
        except OSError as e:
            raise StorageError(f"Failed writing {self.temp_path.name}: {e}") from e
        self.bytes_written += len(chunk)

    async def _finalize(self) -> None:
        """Flush buffers and fsync so the rename publishes complete data."""
        await self._handle.flush()
        await anyio.to_thread.run_sync(os.fsync, self._handle.wrapped.fileno())
        await self.aclose()

    async def aclose(self) -> None:
        if not self.closed:
            self.closed = True
            await self._handle.aclose()


class TrackStorage(Protocol):
    """Storage access contract used by the catalog, responder and ingest."""

    def list_names(self) -> list[str]:
        """Regular file names in enumeration order."""
        ...

    def stat(self, name: str) -> TrackInfo:
        """Current size and path of a track.

        Raises:
            TrackNotFoundError: Track is absent or the name is unsafe
        """
        ...

    def open_for_read(self, name: str) -> AsyncContextManager[AsyncFile]:
        ...

    def create_for_write(self, name: str) -> AsyncContextManager[TrackWriter]:
        ...


class LocalTrackStorage:
    """TrackStorage backed by a local directory."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def ensure_exists(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def resolve(self, name: str) -> Path:
        path = resolve_track_path(name, self.root)
        if path is None:
            raise TrackNotFoundError(name)
        return path

    def list_names(self) -> list[str]:
        try:
            with os.scandir(self.root) as entries:
                return [
                    entry.name
                    for entry in entries
                    if entry.is_file() and is_safe_track_name(entry.name)
                ]
        except OSError as e:
            raise StorageError(f"Error reading music directory {self.root}: {e}") from e

    def stat(self, name: str) -> TrackInfo:
        path = self.resolve(name)
        try:
            st = path.stat()
        except FileNotFoundError:
            raise TrackNotFoundError(name)
        except OSError as e:
            raise StorageError(f"Cannot stat {name}: {e}") from e

        if not path.is_file():
            raise TrackNotFoundError(name)

        return TrackInfo(name=name, path=path, size=st.st_size)

    @asynccontextmanager
    async def open_for_read(self, name: str) -> AsyncIterator[AsyncFile]:
        path = self.resolve(name)
        try:
            handle = await anyio.open_file(path, "rb")
        except FileNotFoundError:
            raise TrackNotFoundError(name)
        except OSError as e:
            raise StorageError(f"Cannot open {name}: {e}") from e

        try:
            yield handle
        finally:
            await handle.aclose()

    @asynccontextmanager
    async def create_for_write(self, name: str) -> AsyncIterator[TrackWriter]:
        """Open a writer whose data appears under `name` only on clean exit.

        Any exception (or cancellation) inside the block discards the
        temporary file; an existing track with the same name is left intact.

        Raises:
            InvalidTrackNameError: Name is not a plain, visible file name
            StorageError: Temp file cannot be created or published
        """
        target = resolve_track_path(name, self.root)
        if target is None:
            raise InvalidTrackNameError(f"Invalid track name: {name!r}")

        temp_path = self.root / f".{uuid.uuid4().hex}{TEMP_SUFFIX}"
        try:
            handle = await anyio.open_file(temp_path, "wb")
        except OSError as e:
            raise StorageError(f"Cannot create {temp_path.name}: {e}") from e

        writer = TrackWriter(handle, temp_path)
        committed = False
        try:
            yield writer
            try:
                await writer._finalize()
                await anyio.to_thread.run_sync(os.replace, temp_path, target)
            except OSError as e:
                raise StorageError(f"Failed to finalize {name}: {e}") from e
            committed = True
            logger.debug(f"Published {name} ({writer.bytes_written} bytes)")
        finally:
            if not committed:
                await writer.aclose()
                temp_path.unlink(missing_ok=True)
                logger.debug(f"Discarded partial write for {name}")
