"""Tests for configuration loading."""

import pytest

from music_vault.core.config import Config, create_default_config, load_config


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep the developer's environment and ~/.config out of these tests."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.chdir(tmp_path)
    for name in (
        "MUSIC_VAULT_MUSIC_DIR",
        "PORT",
        "ALLOWED_ORIGINS",
        "YOUTUBE_COOKIE_FILE",
        "YOUTUBE_USERNAME",
        "YOUTUBE_PASSWORD",
        "MUSIC_VAULT_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


def test_missing_file_returns_defaults(tmp_path) -> None:
    config = load_config(tmp_path / "nope.toml")
    assert isinstance(config, Config)
    assert config.web.port == 3000
    assert config.storage.audio_extension == ".mp3"
    assert config.youtube.force_ipv4 is True
    assert config.youtube.cookie_file is None


def test_toml_sections_parsed(tmp_path) -> None:
    path = tmp_path / "config.toml"
    path.write_text(
        """
[storage]
music_dir = "/srv/music"
chunk_size = 1024

[web]
port = 8080
allowed_origins = ["http://localhost:5173"]

[youtube]
cookie_file = "/etc/cookies.txt"
force_ipv4 = false

[logging]
level = "DEBUG"
console_output = false
"""
    )

    config = load_config(path)

    assert config.storage.music_dir == "/srv/music"
    assert config.storage.chunk_size == 1024
    assert config.web.port == 8080
    assert config.web.allowed_origins == ["http://localhost:5173"]
    assert config.youtube.cookie_file == "/etc/cookies.txt"
    assert config.youtube.force_ipv4 is False
    assert config.logging.level == "DEBUG"
    assert config.logging.console_output is False


def test_env_overrides_toml(tmp_path, monkeypatch) -> None:
    path = tmp_path / "config.toml"
    path.write_text('[web]\nport = 8080\n')
    monkeypatch.setenv("PORT", "9000")
    monkeypatch.setenv("MUSIC_VAULT_MUSIC_DIR", str(tmp_path / "tracks"))
    monkeypatch.setenv("ALLOWED_ORIGINS", "http://a.test, http://b.test")
    monkeypatch.setenv("YOUTUBE_USERNAME", "me")
    monkeypatch.setenv("MUSIC_VAULT_LOG_LEVEL", "debug")

    config = load_config(path)

    assert config.web.port == 9000
    assert config.storage.music_dir == str(tmp_path / "tracks")
    assert config.web.allowed_origins == ["http://a.test", "http://b.test"]
    assert config.youtube.username == "me"
    assert config.logging.level == "DEBUG"


def test_invalid_port_env(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("PORT", "eighty")
    with pytest.raises(ValueError, match="PORT"):
        load_config(tmp_path / "nope.toml")


def test_invalid_toml(tmp_path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("[web\nport = ")
    with pytest.raises(ValueError, match="Invalid TOML"):
        load_config(path)


def test_default_config_is_loadable(tmp_path) -> None:
    path = tmp_path / "config.toml"
    path.write_text(create_default_config())
    config = load_config(path)
    assert config.web.port == 3000
    assert config.storage.chunk_size == 65536
