"""YouTube-specific exceptions for error handling."""

from typing import Optional


class YouTubeError(Exception):
    """Base exception for YouTube operations."""

    pass


class InvalidYouTubeURLError(YouTubeError):
    """Raised when URL is not something yt-dlp can resolve to a single video."""

    pass


class VideoUnavailableError(YouTubeError):
    """Raised when video is deleted, private or unavailable."""

    pass


class AgeRestrictedError(YouTubeError):
    """Raised when video requires age verification."""

    pass


class CopyrightBlockedError(YouTubeError):
    """Raised when video is blocked due to copyright."""

    pass


class StreamProcessError(YouTubeError):
    """Raised when the yt-dlp download process exits unsuccessfully."""

    def __init__(self, returncode: int, stderr: Optional[str] = None):
        self.returncode = returncode
        self.stderr = stderr or ""
        detail = f": {self.stderr}" if self.stderr else ""
        super().__init__(f"yt-dlp exited with code {returncode}{detail}")
