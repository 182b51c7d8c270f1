"""Resolution of the mdtoimage cache directory."""

from __future__ import annotations

import os
from pathlib import Path


__all__ = [
    "CACHE_DIR_ENV",
    "cache_path",
    "resolve_cache_root",
]

CACHE_DIR_ENV = "MDTOIMAGE_CACHE_DIR"


def resolve_cache_root() -> Path:
    """Return the cache root honouring ``MDTOIMAGE_CACHE_DIR`` and ``XDG_CACHE_HOME``."""
    explicit = os.environ.get(CACHE_DIR_ENV)
    if explicit:
        return Path(explicit).expanduser()
    xdg_cache = os.environ.get("XDG_CACHE_HOME")
    if xdg_cache:
        return Path(xdg_cache).expanduser() / "mdtoimage"
    return Path.home() / ".cache" / "mdtoimage"


def cache_path(*parts: str | Path, create: bool = True) -> Path:
    """Return a path under the cache root, creating parent directories if needed."""
    target = resolve_cache_root().joinpath(*parts)
    if create:
        target.parent.mkdir(parents=True, exist_ok=True)
    return target

