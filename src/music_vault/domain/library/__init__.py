"""Library domain - the storage directory and what flows in and out of it.

This domain handles:
- Storage directory access with atomic writes
- Catalog listing
- Ingest from external sources
"""

from .catalog import is_audio_file, list_songs
from .exceptions import (
    AudioStreamError,
    IngestError,
    InvalidSourceURLError,
    InvalidTrackNameError,
    MetadataFetchError,
    MusicVaultError,
    StorageError,
    TrackNotFoundError,
)
from .ingest import (
    IngestJob,
    IngestResult,
    IngestState,
    build_filename,
    run_ingest,
    sanitize_title,
    validate_source_url,
)
from .provider import AudioSourceProvider, SourceMetadata
from .storage import LocalTrackStorage, TrackInfo, TrackStorage, TrackWriter

__all__ = [
    # Catalog
    "is_audio_file",
    "list_songs",
    # Exceptions
    "AudioStreamError",
    "IngestError",
    "InvalidSourceURLError",
    "InvalidTrackNameError",
    "MetadataFetchError",
    "MusicVaultError",
    "StorageError",
    "TrackNotFoundError",
    # Ingest
    "IngestJob",
    "IngestResult",
    "IngestState",
    "build_filename",
    "run_ingest",
    "sanitize_title",
    "validate_source_url",
    # Providers
    "AudioSourceProvider",
    "SourceMetadata",
    # Storage
    "LocalTrackStorage",
    "TrackInfo",
    "TrackStorage",
    "TrackWriter",
]
