"""Tests for YouTube download module."""

import sys
from unittest.mock import MagicMock, patch

import anyio
import pytest
import yt_dlp

from music_vault.core.config import YouTubeConfig
from music_vault.domain.library.providers.youtube import init_provider
from music_vault.domain.library.providers.youtube import download
from music_vault.domain.library.providers.youtube.download import (
    YouTubeProvider,
    build_stream_command,
    build_ydl_options,
    classify_error,
    extract_metadata,
    fetch_metadata,
    open_audio_stream,
)
from music_vault.domain.library.providers.youtube.exceptions import (
    AgeRestrictedError,
    CopyrightBlockedError,
    InvalidYouTubeURLError,
    StreamProcessError,
    VideoUnavailableError,
    YouTubeError,
)

URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


def python_command(script: str) -> list[str]:
    return [sys.executable, "-c", script]


class TestBuildYdlOptions:
    """Tests for yt-dlp API options."""

    def test_defaults(self) -> None:
        opts = build_ydl_options(YouTubeConfig())
        assert opts["quiet"] is True
        assert opts["noplaylist"] is True
        assert opts["nocheckcertificate"] is True
        assert opts["source_address"] == "0.0.0.0"
        assert opts["http_headers"]["Referer"] == "https://www.youtube.com/"
        assert opts["http_headers"]["Accept-Language"] == "en-US,en;q=0.9"
        assert "Mozilla/5.0" in opts["http_headers"]["User-Agent"]
        assert "cookiefile" not in opts
        assert "username" not in opts

    def test_credentials_forwarded(self) -> None:
        config = YouTubeConfig(cookie_file="/tmp/c.txt", username="me", password="pw")
        opts = build_ydl_options(config)
        assert opts["cookiefile"] == "/tmp/c.txt"
        assert opts["username"] == "me"
        assert opts["password"] == "pw"

    def test_ipv4_disabled(self) -> None:
        opts = build_ydl_options(YouTubeConfig(force_ipv4=False))
        assert "source_address" not in opts


class TestBuildStreamCommand:
    """Tests for the yt-dlp command line."""

    def test_streams_best_audio_to_stdout(self) -> None:
        cmd = build_stream_command(URL, YouTubeConfig())
        assert cmd[:3] == [sys.executable, "-m", "yt_dlp"]
        assert cmd[cmd.index("-f") + 1] == "bestaudio"
        assert cmd[cmd.index("-o") + 1] == "-"
        assert "--force-ipv4" in cmd
        assert "--no-check-certificates" in cmd

    def test_url_is_last_after_separator(self) -> None:
        cmd = build_stream_command(URL, YouTubeConfig())
        assert cmd[-2:] == ["--", URL]

    def test_credentials_forwarded(self) -> None:
        config = YouTubeConfig(cookie_file="/tmp/c.txt", username="me", password="pw")
        cmd = build_stream_command(URL, config)
        assert cmd[cmd.index("--cookies") + 1] == "/tmp/c.txt"
        assert cmd[cmd.index("--username") + 1] == "me"
        assert cmd[cmd.index("--password") + 1] == "pw"

    def test_optional_flags_omitted(self) -> None:
        config = YouTubeConfig(force_ipv4=False, no_check_certificates=False)
        cmd = build_stream_command(URL, config)
        assert "--force-ipv4" not in cmd
        assert "--no-check-certificates" not in cmd
        assert "--cookies" not in cmd


class TestClassifyError:
    @pytest.mark.parametrize(
        "message,expected",
        [
            ("ERROR: Unsupported URL: https://example.com", InvalidYouTubeURLError),
            ("ERROR: Sign in to confirm your age", AgeRestrictedError),
            ("ERROR: Private video", VideoUnavailableError),
            ("ERROR: Video unavailable", VideoUnavailableError),
            ("ERROR: blocked it on copyright grounds", CopyrightBlockedError),
            ("ERROR: HTTP Error 503", YouTubeError),
        ],
    )
    def test_maps_messages(self, message, expected) -> None:
        assert type(classify_error(message)) is expected


def mock_youtube_dl(mock_cls: MagicMock, info=None, error=None) -> MagicMock:
    ydl = mock_cls.return_value.__enter__.return_value
    if error is not None:
        ydl.extract_info.side_effect = error
    else:
        ydl.extract_info.return_value = info
    return ydl


class TestExtractMetadata:
    """Tests for metadata extraction with yt-dlp mocked."""

    @patch.object(download.yt_dlp, "YoutubeDL")
    def test_returns_metadata(self, mock_cls) -> None:
        ydl = mock_youtube_dl(
            mock_cls,
            info={"id": "dQw4w9WgXcQ", "title": "Rick Astley - Never", "duration": 213, "uploader": "Rick"},
        )

        meta = extract_metadata(URL, YouTubeConfig())

        assert meta.title == "Rick Astley - Never"
        assert meta.source_id == "dQw4w9WgXcQ"
        assert meta.duration == 213.0
        assert meta.uploader == "Rick"
        ydl.extract_info.assert_called_once_with(URL, download=False)

    @patch.object(download.yt_dlp, "YoutubeDL")
    def test_download_error_classified(self, mock_cls) -> None:
        mock_youtube_dl(mock_cls, error=yt_dlp.utils.DownloadError("ERROR: Private video"))
        with pytest.raises(VideoUnavailableError):
            extract_metadata(URL, YouTubeConfig())

    @patch.object(download.yt_dlp, "YoutubeDL")
    def test_empty_info(self, mock_cls) -> None:
        mock_youtube_dl(mock_cls, info=None)
        with pytest.raises(VideoUnavailableError):
            extract_metadata(URL, YouTubeConfig())

    @patch.object(download.yt_dlp, "YoutubeDL")
    def test_playlist_rejected(self, mock_cls) -> None:
        mock_youtube_dl(mock_cls, info={"_type": "playlist", "title": "Mix", "entries": []})
        with pytest.raises(InvalidYouTubeURLError):
            extract_metadata(URL, YouTubeConfig())

    @patch.object(download.yt_dlp, "YoutubeDL")
    def test_missing_title(self, mock_cls) -> None:
        mock_youtube_dl(mock_cls, info={"id": "x"})
        with pytest.raises(YouTubeError):
            extract_metadata(URL, YouTubeConfig())


@pytest.mark.anyio
class TestFetchMetadata:
    async def test_runs_extraction(self) -> None:
        with patch.object(download, "extract_metadata") as mock_extract:
            mock_extract.return_value = "sentinel"
            result = await fetch_metadata(URL, YouTubeConfig())
        assert result == "sentinel"
        mock_extract.assert_called_once()


@pytest.mark.anyio
class TestOpenAudioStream:
    """Runs a stand-in Python subprocess instead of yt-dlp."""

    async def collect(self, script: str, chunk_size: int = 1024) -> bytes:
        with patch.object(download, "build_stream_command", return_value=python_command(script)):
            data = b""
            async with open_audio_stream(URL, YouTubeConfig(), chunk_size) as chunks:
                async for chunk in chunks:
                    assert len(chunk) <= chunk_size
                    data += chunk
            return data

    async def test_streams_stdout(self) -> None:
        data = await self.collect("import sys; sys.stdout.buffer.write(b'a' * 5000)")
        assert data == b"a" * 5000

    async def test_nonzero_exit_raises(self) -> None:
        with pytest.raises(StreamProcessError) as exc_info:
            await self.collect("import sys; sys.stdout.buffer.write(b'a'); sys.exit(3)")
        assert exc_info.value.returncode == 3

    async def test_stderr_is_classified(self) -> None:
        script = (
            "import sys; sys.stderr.write('ERROR: [youtube] x: Video unavailable\\n'); sys.exit(1)"
        )
        with pytest.raises(VideoUnavailableError):
            await self.collect(script)

    async def test_early_exit_kills_process(self) -> None:
        script = (
            "import sys, time; sys.stdout.buffer.write(b'a' * 10); "
            "sys.stdout.flush(); time.sleep(30)"
        )
        with patch.object(download, "build_stream_command", return_value=python_command(script)):
            with anyio.fail_after(10):
                async with open_audio_stream(URL, YouTubeConfig()) as chunks:
                    async for chunk in chunks:
                        assert chunk == b"a" * 10
                        break

    async def test_missing_executable(self) -> None:
        with patch.object(download, "build_stream_command", return_value=["/nonexistent/yt-dlp"]):
            with pytest.raises(YouTubeError, match="Could not start"):
                async with open_audio_stream(URL, YouTubeConfig()):
                    pass


class TestProvider:
    def test_init_provider(self) -> None:
        config = YouTubeConfig()
        provider = init_provider(config, chunk_size=4096)
        assert isinstance(provider, YouTubeProvider)
        assert provider.name == "youtube"
        assert provider.config is config
        assert provider.chunk_size == 4096


class TestExceptions:
    """Tests for custom YouTube exceptions."""

    @pytest.mark.parametrize(
        "error_cls",
        [InvalidYouTubeURLError, VideoUnavailableError, AgeRestrictedError, CopyrightBlockedError],
    )
    def test_inherits_base(self, error_cls) -> None:
        with pytest.raises(YouTubeError):
            raise error_cls("boom")

    def test_stream_process_error_has_returncode(self) -> None:
        error = StreamProcessError(2, "ERROR: HTTP Error 403")
        assert error.returncode == 2
        assert "403" in str(error)
        assert isinstance(error, YouTubeError)
