"""
Provider interface for external audio sources.

An ingest job needs exactly two capabilities from a source: resolve a title
for a locator, and open a byte stream of the audio. Everything else about the
source (protocol, authentication, format negotiation) stays behind this
contract so the pipeline can be exercised with in-memory fakes.
"""

from dataclasses import dataclass
from typing import AsyncContextManager, AsyncIterator, Optional, Protocol


@dataclass(frozen=True)
class SourceMetadata:
    """Metadata resolved for a locator before any payload is fetched."""

    title: str
    source_id: Optional[str] = None  # Provider-specific id, e.g. YouTube video id
    duration: Optional[float] = None
    uploader: Optional[str] = None


class AudioSourceProvider(Protocol):
    """Protocol defining the interface for ingest sources.

    Example:

        provider = YouTubeProvider(config.youtube)
        meta = await provider.fetch_metadata(url)
        async with provider.open_audio_stream(url) as chunks:
            async for chunk in chunks:
                ...
    """

    name: str

    async def fetch_metadata(self, url: str) -> SourceMetadata:
        """Resolve display metadata for a locator.

        Raises:
            Exception: Any failure; the pipeline reports it as a metadata error
        """
        ...

    def open_audio_stream(self, url: str) -> AsyncContextManager[AsyncIterator[bytes]]:
        """Open a best-effort audio-only byte stream.

        The iterator raises if the source fails before or at end of stream.
        Leaving the context releases every resource held by the stream.
        """
        ...
