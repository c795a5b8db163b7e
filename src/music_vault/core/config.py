"""
Configuration management for Music Vault
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


@dataclass
class StorageConfig:
    """Configuration for the track storage directory."""

    music_dir: str = field(default_factory=lambda: str(Path.cwd() / "music"))
    audio_extension: str = ".mp3"
    chunk_size: int = 64 * 1024  # Bytes per read/write when streaming


@dataclass
class WebConfig:
    """Configuration for the HTTP server."""

    host: str = "0.0.0.0"
    port: int = 3000
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])


@dataclass
class YouTubeConfig:
    """Options forwarded to yt-dlp for metadata and audio fetches."""

    user_agent: str = DEFAULT_USER_AGENT
    referer: str = "https://www.youtube.com/"
    accept_language: str = "en-US,en;q=0.9"
    force_ipv4: bool = True
    no_check_certificates: bool = True
    cookie_file: Optional[str] = None  # Netscape cookie file for restricted videos
    username: Optional[str] = None
    password: Optional[str] = None


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = None  # Default: ~/.local/share/music-vault/music-vault.log
    rotation: str = "10 MB"
    retention: int = 5
    console_output: bool = True


@dataclass
class Config:
    """Main configuration object."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    web: WebConfig = field(default_factory=WebConfig)
    youtube: YouTubeConfig = field(default_factory=YouTubeConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "music-vault"
    return Path.home() / ".config" / "music-vault"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "music-vault"
    return Path.home() / ".local" / "share" / "music-vault"


def _find_project_config() -> Optional[Path]:
    """Find config.toml in project root by looking for pyproject.toml.

    Returns:
        Path to config.toml in project root, or None if not found
    """
    current = Path(__file__).resolve().parent
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            config_path = parent / "config.toml"
            return config_path if config_path.exists() else None
    return None


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the following order:
    1. Project root (detected via pyproject.toml) - for development
    2. Current working directory
    3. XDG_CONFIG_HOME/music-vault (or ~/.config/music-vault)
    """
    project_config = _find_project_config()
    if project_config:
        return project_config

    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return f"""
# Music Vault Configuration

[storage]
# Flat directory holding finished tracks (created on startup)
music_dir = "./music"

# Extension of playable tracks
audio_extension = ".mp3"

# Bytes per chunk when streaming to clients or from YouTube
chunk_size = 65536

[web]
host = "0.0.0.0"
port = 3000

# Origins allowed by CORS ("*" allows any)
allowed_origins = ["*"]

[youtube]
user_agent = "{DEFAULT_USER_AGENT}"
referer = "https://www.youtube.com/"
accept_language = "en-US,en;q=0.9"
force_ipv4 = true
no_check_certificates = true

# Optional credentials for private/restricted videos
# cookie_file = "/path/to/cookies.txt"
# username = ""
# password = ""

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/music-vault/music-vault.log)
# log_file = "/path/to/music-vault.log"

rotation = "10 MB"
retention = 5
console_output = true
""".strip()


def _apply_env_overrides(config: Config) -> Config:
    """Environment variables win over TOML values."""
    music_dir = os.getenv("MUSIC_VAULT_MUSIC_DIR")
    if music_dir:
        config.storage.music_dir = str(Path(music_dir).expanduser())

    port = os.getenv("PORT")
    if port:
        try:
            config.web.port = int(port)
        except ValueError:
            raise ValueError(f"PORT must be an integer, got: {port!r}")

    origins = os.getenv("ALLOWED_ORIGINS")
    if origins:
        config.web.allowed_origins = [o.strip() for o in origins.split(",") if o.strip()]

    config.youtube.cookie_file = os.getenv("YOUTUBE_COOKIE_FILE", config.youtube.cookie_file)
    config.youtube.username = os.getenv("YOUTUBE_USERNAME", config.youtube.username)
    config.youtube.password = os.getenv("YOUTUBE_PASSWORD", config.youtube.password)

    level = os.getenv("MUSIC_VAULT_LOG_LEVEL")
    if level:
        config.logging.level = level.upper()

    return config


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file, falling back to defaults.

    Environment variables override TOML values:
    - MUSIC_VAULT_MUSIC_DIR
    - PORT
    - ALLOWED_ORIGINS (comma separated)
    - YOUTUBE_COOKIE_FILE, YOUTUBE_USERNAME, YOUTUBE_PASSWORD
    - MUSIC_VAULT_LOG_LEVEL

    Raises:
        ValueError: If the config file is not valid TOML
    """
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)
    load_dotenv()

    config_path = config_path or get_config_path()
    config = Config()

    if not config_path.exists():
        return _apply_env_overrides(config)

    try:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in {config_path}: {e}")

    if "storage" in toml_data:
        storage_data = toml_data["storage"]
        config.storage = StorageConfig(
            music_dir=str(
                Path(storage_data.get("music_dir", config.storage.music_dir)).expanduser()
            ),
            audio_extension=storage_data.get(
                "audio_extension", config.storage.audio_extension
            ),
            chunk_size=int(storage_data.get("chunk_size", config.storage.chunk_size)),
        )

    if "web" in toml_data:
        web_data = toml_data["web"]
        config.web = WebConfig(
            host=web_data.get("host", config.web.host),
            port=int(web_data.get("port", config.web.port)),
            allowed_origins=web_data.get("allowed_origins", config.web.allowed_origins),
        )

    if "youtube" in toml_data:
        yt_data = toml_data["youtube"]
        config.youtube = YouTubeConfig(
            user_agent=yt_data.get("user_agent", config.youtube.user_agent),
            referer=yt_data.get("referer", config.youtube.referer),
            accept_language=yt_data.get(
                "accept_language", config.youtube.accept_language
            ),
            force_ipv4=yt_data.get("force_ipv4", config.youtube.force_ipv4),
            no_check_certificates=yt_data.get(
                "no_check_certificates", config.youtube.no_check_certificates
            ),
            cookie_file=yt_data.get("cookie_file"),
            username=yt_data.get("username"),
            password=yt_data.get("password"),
        )

    if "logging" in toml_data:
        logging_data = toml_data["logging"]
        config.logging = LoggingConfig(
            level=logging_data.get("level", config.logging.level),
            log_file=logging_data.get("log_file"),
            rotation=logging_data.get("rotation", config.logging.rotation),
            retention=int(logging_data.get("retention", config.logging.retention)),
            console_output=logging_data.get(
                "console_output", config.logging.console_output
            ),
        )

    return _apply_env_overrides(config)


def ensure_directories(config: Config) -> None:
    """Create the storage and data directories if missing."""
    Path(config.storage.music_dir).mkdir(parents=True, exist_ok=True)
    get_data_dir().mkdir(parents=True, exist_ok=True)
