"""Catalog listing - the storage directory is the only index."""

from .storage import TrackStorage


def is_audio_file(name: str, extension: str = ".mp3") -> bool:
    """Pure function - case-insensitive extension match."""
    return name.lower().endswith(extension.lower())


def list_songs(storage: TrackStorage, extension: str = ".mp3") -> list[str]:
    """List playable track names in directory enumeration order.

    Raises:
        StorageError: If the directory cannot be read
    """
    return [name for name in storage.list_names() if is_audio_file(name, extension)]
