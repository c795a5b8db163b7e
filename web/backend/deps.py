from functools import lru_cache
from pathlib import Path

from fastapi import Depends, Request

from music_vault.core.config import Config, load_config
from music_vault.domain.library import AudioSourceProvider, LocalTrackStorage


@lru_cache(maxsize=1)
def get_config() -> Config:
    """FastAPI dependency for configuration."""
    return load_config()


def get_storage(config: Config = Depends(get_config)) -> LocalTrackStorage:
    """FastAPI dependency for the storage directory."""
    storage = LocalTrackStorage(Path(config.storage.music_dir))
    storage.ensure_exists()
    return storage


def get_provider(request: Request) -> AudioSourceProvider:
    """FastAPI dependency for the ingest source, created at startup."""
    return request.app.state.provider
