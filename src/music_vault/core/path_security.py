"""
Path security validation utilities for Music Vault.

Provides pure functions to validate track names and keep resolved paths
inside the storage directory, preventing directory traversal attacks
and symlink escapes.
"""

from pathlib import Path
from typing import Optional


def is_safe_track_name(name: str) -> bool:
    """Pure function - checks a client supplied name is a plain file name.

    Rejects empty names, path separators, NUL bytes and hidden names
    (leading dot), which also covers "." and ".." and in-progress
    temporary files.
    """
    if not name or name != name.strip():
        return False
    if "/" in name or "\\" in name or "\x00" in name:
        return False
    if name.startswith("."):
        return False
    return True


def is_path_within_directory(file_path: Path, root: Path) -> bool:
    """Pure function - validates path resolves inside the root directory.

    Args:
        file_path: The file path to validate
        root: Allowed root directory

    Returns:
        True if path is within root, False otherwise
    """
    try:
        resolved_path = file_path.resolve()
        resolved_path.relative_to(root.resolve())
        return True
    except ValueError:
        # relative_to raises ValueError if path is not a subpath
        return False
    except (OSError, RuntimeError):
        # Path.resolve() can raise OSError for invalid paths or RuntimeError for recursion
        return False


def resolve_track_path(name: str, root: Path) -> Optional[Path]:
    """Pure function - returns the path for a track name, or None if unsafe."""
    if not is_safe_track_name(name):
        return None

    candidate = root / name
    if not is_path_within_directory(candidate, root):
        return None

    return candidate
