"""Pytest configuration for backend tests.

Every test runs against a temporary music directory and an in-memory audio
source; nothing touches the network or the developer's config.
"""

from contextlib import asynccontextmanager
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from music_vault.core.config import Config, LoggingConfig, StorageConfig
from music_vault.domain.library import SourceMetadata
from web.backend import jobs
from web.backend.deps import get_config, get_provider
from web.backend.main import app


class FakeProvider:
    """Audio source serving fixed chunks for any URL."""

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

    async def fetch_metadata(self, url: str) -> SourceMetadata:
        self.metadata_calls.append(url)
        if self.metadata_error:
            raise self.metadata_error
        return SourceMetadata(title=self.title, source_id="abc123")

    @asynccontextmanager
    async def open_audio_stream(self, url: str):
        async def chunks():
            for chunk in self.chunks:
                yield chunk
            if self.stream_error:
                raise self.stream_error

        yield chunks()


@pytest.fixture
def music_dir(tmp_path):
    return tmp_path / "music"


@pytest.fixture
def config(tmp_path, music_dir, monkeypatch):
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    return Config(
        storage=StorageConfig(music_dir=str(music_dir), chunk_size=256),
        logging=LoggingConfig(
            level="DEBUG", log_file=str(tmp_path / "logs" / "test.log"), console_output=False
        ),
    )


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture(autouse=True)
def clear_jobs():
    jobs._jobs.clear()
    yield
    jobs._jobs.clear()


@pytest.fixture
def client(config, provider):
    app.dependency_overrides[get_config] = lambda: config
    app.dependency_overrides[get_provider] = lambda: provider
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def make_provider():
    return FakeProvider
