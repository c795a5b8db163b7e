"""Music Vault - self-hosted audio library with range streaming and YouTube ingest."""

__version__ = "0.1.0"
