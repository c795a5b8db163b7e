"""Shared fixtures for domain tests."""

from contextlib import asynccontextmanager
from typing import Optional

import pytest

from music_vault.domain.library import LocalTrackStorage, SourceMetadata


class FakeProvider:
    """In-memory AudioSourceProvider recording every call."""

    name = "fake"

    def __init__(
        self,
        title: str = "Test Song",
        chunks: tuple = (b"ID3", b"audio-bytes"),
        metadata_error: Optional[Exception] = None,
        stream_error: Optional[Exception] = None,
    ):
        self.title = title
        self.chunks = chunks
        self.metadata_error = metadata_error
        self.stream_error = stream_error
        self.metadata_calls: list[str] = []
        self.stream_calls: list[str] = []
        self.stream_closed = False

    async def fetch_metadata(self, url: str) -> SourceMetadata:
        self.metadata_calls.append(url)
        if self.metadata_error:
            raise self.metadata_error
        return SourceMetadata(title=self.title, source_id="dQw4w9WgXcQ")

    @asynccontextmanager
    async def open_audio_stream(self, url: str):
        self.stream_calls.append(url)

        async def chunks():
            for chunk in self.chunks:
                yield chunk
            if self.stream_error:
                raise self.stream_error

        try:
            yield chunks()
        finally:
            self.stream_closed = True


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def music_dir(tmp_path):
    path = tmp_path / "music"
    path.mkdir()
    return path


@pytest.fixture
def storage(music_dir):
    return LocalTrackStorage(music_dir)


@pytest.fixture
def make_provider():
    return FakeProvider
