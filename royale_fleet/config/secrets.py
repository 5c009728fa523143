"""Dotenv loading for deployment-specific overrides.

A dotenv file typically carries ``ROYALE_*`` overrides such as the gateway
base URL or database path. Because it sits next to a database full of
account keys, it is only loaded when it is private to the current user.
"""

from __future__ import annotations

import os
import stat
from pathlib import Path

from dotenv import load_dotenv

ENV_FILE_VARIABLE = "ROYALE_ENV_FILE"


def _candidate_paths(env_file: str | Path | None, base_dir: Path) -> tuple[list[Path], bool]:
    """Dotenv candidates in lookup order, and whether the path was explicit."""
    explicit = env_file or os.environ.get(ENV_FILE_VARIABLE)
    if explicit:
        path = Path(explicit).expanduser()
        if not path.is_absolute():
            path = base_dir / path
        return [path], True

    project_root = Path(__file__).resolve().parents[2]
    return [base_dir / ".env", project_root / ".env"], False


def _check_private(env_file: Path) -> None:
    """Refuse dotenv files other users could read or swap out."""
    if os.name == "nt":
        return
    if env_file.is_symlink():
        raise PermissionError(f"Refusing to load dotenv symlink: {env_file}")

    info = env_file.stat()
    if hasattr(os, "getuid") and info.st_uid != os.getuid():
        raise PermissionError(f"Refusing to load dotenv owned by another user: {env_file}")
    if info.st_mode & (stat.S_IRWXG | stat.S_IRWXO):
        raise PermissionError(f"Insecure dotenv permissions for {env_file}; run chmod 600")


def load_environment_secrets(
    env_file: str | Path | None = None,
    *,
    override: bool = False,
    strict: bool = True,
    start_dir: Path | None = None,
) -> Path | None:
    """Load a dotenv file into the process environment.

    Args:
        env_file: Explicit dotenv path. Falls back to ``ROYALE_ENV_FILE``,
            then ``.env`` in ``start_dir``, then ``.env`` at the project root.
        override: Whether dotenv values replace variables already set.
        strict: Raise when an explicitly named file is missing.
        start_dir: Base directory for relative paths (defaults to cwd).

    Returns:
        The loaded path, or None when nothing was loaded.
    """
    base_dir = (start_dir or Path.cwd()).resolve()
    candidates, explicit = _candidate_paths(env_file, base_dir)

    for path in candidates:
        if not path.exists():
            continue
        if not path.is_file():
            raise ValueError(f"Dotenv path is not a regular file: {path}")
        _check_private(path)
        load_dotenv(dotenv_path=str(path), override=override)
        return path

    if explicit and strict:
        raise FileNotFoundError(f"Dotenv file not found: {candidates[0]}")
    return None
