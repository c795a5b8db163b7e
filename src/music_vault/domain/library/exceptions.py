"""Library exceptions, mapped to HTTP status codes at the web boundary."""


class MusicVaultError(Exception):
    """Base exception for library operations."""

    pass


class TrackNotFoundError(MusicVaultError):
    """Raised when a track is absent from the storage directory."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Track not found: {name}")


class InvalidTrackNameError(MusicVaultError):
    """Raised when a client supplied file name is unusable as a track name."""

    pass


class InvalidSourceURLError(MusicVaultError):
    """Raised when an ingest locator is missing or not an http(s) URL."""

    pass


class StorageError(MusicVaultError):
    """Raised on disk read/write failures in the storage directory."""

    pass


class IngestError(MusicVaultError):
    """Base exception for ingest job failures."""

    pass


class MetadataFetchError(IngestError):
    """Raised when the source cannot resolve a title for the locator."""

    pass


class AudioStreamError(IngestError):
    """Raised when the audio byte stream from the source fails."""

    pass
