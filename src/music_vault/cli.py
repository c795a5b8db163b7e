"""
Music Vault CLI - Entry point

Runs the web API under uvicorn and prints configuration.
"""

import argparse
import sys

from music_vault.core.config import create_default_config, get_config_path, load_config


def run_server(host: str | None, port: int | None, reload: bool = False) -> int:
    """Start uvicorn with the FastAPI app.

    Args:
        host: Bind address (default from config)
        port: Listen port (default from config / PORT env)
        reload: Restart on code changes (development)

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    import uvicorn

    try:
        config = load_config()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    uvicorn.run(
        "web.backend.main:app",
        host=host or config.web.host,
        port=port or config.web.port,
        reload=reload,
    )
    return 0


def show_config(default: bool = False) -> int:
    """Print the config file location, or the default config TOML."""
    if default:
        print(create_default_config())
        return 0

    path = get_config_path()
    status = "found" if path.exists() else "not found, using defaults"
    print(f"Config file: {path} ({status})")

    config = load_config()
    print(f"Music directory: {config.storage.music_dir}")
    print(f"Listen: {config.web.host}:{config.web.port}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="music-vault",
        description="Self-hosted audio library with range streaming and YouTube ingest",
    )
    subparsers = parser.add_subparsers(dest="command")

    serve_parser = subparsers.add_parser("serve", help="Run the web API")
    serve_parser.add_argument("--host", help="Bind address")
    serve_parser.add_argument("--port", type=int, help="Listen port")
    serve_parser.add_argument(
        "--reload", action="store_true", help="Reload on code changes"
    )

    config_parser = subparsers.add_parser("config", help="Show configuration")
    config_parser.add_argument(
        "--default", action="store_true", help="Print the default config.toml"
    )

    args = parser.parse_args(argv)

    if args.command == "serve":
        return run_server(args.host, args.port, args.reload)
    if args.command == "config":
        return show_config(args.default)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
