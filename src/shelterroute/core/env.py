"""
`.env` loading and project-relative paths.

`ORS_API_KEY` usually lives in a `.env` next to `pyproject.toml`, and `catalog.path`
may be relative. Both are looked up from the nearest project root above the working
directory, so `shelterroute serve` behaves the same from any subdirectory.
"""

from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv

_ROOT_MARKERS = (".env", "pyproject.toml")


def find_project_root(start: Path | None = None) -> Path:
    """Nearest directory at or above `start` (default: cwd) holding `.env` or `pyproject.toml`.

    Falls back to `start` itself when no marker is found.
    """
    here = (start or Path.cwd()).resolve()
    for candidate in (here, *here.parents):
        if any((candidate / marker).is_file() for marker in _ROOT_MARKERS):
            return candidate
    return here


def load_dotenv_if_present(root: Path | None = None) -> Path | None:
    """Load `<root>/.env` without overriding variables already set; returns the path loaded."""
    env_path = (root or find_project_root()) / ".env"
    if not env_path.is_file():
        return None
    load_dotenv(dotenv_path=env_path, override=False)
    return env_path


def resolve_project_path(path: str | Path, root: Path | None = None) -> Path:
    p = Path(path).expanduser()
    if p.is_absolute():
        return p
    return ((root or find_project_root()) / p).resolve()
