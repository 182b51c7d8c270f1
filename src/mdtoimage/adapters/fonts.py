"""Font loading for the vector renderer.

Configured font files are read from disk. When none of them can be loaded,
Roboto is fetched from public mirrors and cached under the user cache
directory so later renders work offline.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from importlib import metadata as importlib_metadata
import logging
import math
from pathlib import Path
from typing import Any

import requests

from mdtoimage.core.diagnostics import DiagnosticEmitter, ensure_emitter
from mdtoimage.core.exceptions import FontUnavailableError
from mdtoimage.core.theme import FontConfig, ThemeFonts
from mdtoimage.core.user_dir import cache_path


logger = logging.getLogger(__name__)

FALLBACK_FAMILY = "Roboto"
FETCH_TIMEOUT = 10.0

FALLBACK_MIRRORS: tuple[tuple[str, tuple[tuple[int, str], ...]], ...] = (
    (
        "google",
        (
            (400, "https://fonts.gstatic.com/s/roboto/v30/KFOmCnqEu92Fr1Mu4mxP.ttf"),
            (700, "https://fonts.gstatic.com/s/roboto/v30/KFOlCnqEu92Fr1MmWUlfBBc4.ttf"),
        ),
    ),
    (
        "jsdelivr",
        (
            (
                400,
                "https://cdn.jsdelivr.net/npm/@fontsource/roboto@5.0.8/files/"
                "roboto-latin-400-normal.woff",
            ),
            (
                700,
                "https://cdn.jsdelivr.net/npm/@fontsource/roboto@5.0.8/files/"
                "roboto-latin-700-normal.woff",
            ),
        ),
    ),
)

NO_SOURCE_MESSAGE = (
    "No fonts available: none of the configured font files could be loaded and fallback "
    "font downloads are disabled. Provide a TTF, OTF or WOFF file with --font-body, or "
    "allow the Roboto download."
)
NETWORK_MESSAGE = (
    "No fonts available: no font file is configured and downloading the Roboto fallback "
    "failed ({failures}). Check internet access or provide a font file with --font-body."
)

_FORMAT_BY_SUFFIX = {
    ".ttf": "truetype",
    ".otf": "opentype",
    ".woff": "woff",
    ".woff2": "woff2",
}


@dataclass(slots=True)
class LoadedFont:
    """Font payload ready to be embedded in the SVG output."""

    name: str
    data: bytes
    weight: int = 400
    style: str = "normal"
    format: str = "truetype"


def _font_format(location: str) -> str:
    suffix = Path(location.split("?", 1)[0]).suffix.lower()
    return _FORMAT_BY_SUFFIX.get(suffix, "truetype")


def _round_weight(weight: int | None) -> int:
    if not weight:
        return 400
    return max(100, min(900, math.floor(weight / 100 + 0.5) * 100))


def normalize_font_config(
    value: str | Path | Mapping[str, Any] | FontConfig | None, fallback: FontConfig
) -> FontConfig:
    """Overlay a caller supplied font reference on top of ``fallback``."""
    if value is None or value == "":
        return fallback
    if isinstance(value, (str, Path)):
        return fallback.model_copy(update={"path": str(value)})
    if isinstance(value, FontConfig):
        overrides = value.model_dump(exclude_unset=True)
    else:
        overrides = dict(value)
    return FontConfig.model_validate({**fallback.model_dump(), **overrides})


def load_font(config: FontConfig) -> LoadedFont:
    """Read a font file from disk."""
    data = Path(config.path).expanduser().read_bytes()
    return LoadedFont(
        name=config.name or "Font",
        data=data,
        weight=_round_weight(config.weight),
        style=config.style or "normal",
        format=_font_format(config.path),
    )


def _user_agent() -> str:
    try:
        version = importlib_metadata.version("mdtoimage")
    except importlib_metadata.PackageNotFoundError:
        version = "unknown"
    return f"mdtoimage/{version}"


def _download(url: str, *, timeout: float = FETCH_TIMEOUT) -> bytes:
    response = requests.get(url, timeout=timeout, headers={"User-Agent": _user_agent()})
    response.raise_for_status()
    return response.content


def _cached_download(url: str, emitter: DiagnosticEmitter) -> bytes:
    target = cache_path("fonts", Path(url).name)
    if target.exists() and target.stat().st_size > 0:
        emitter.event("font_fallback", {"url": url, "cached": True})
        return target.read_bytes()

    data = _download(url)
    try:
        target.write_bytes(data)
    except OSError as exc:
        logger.debug("Unable to cache font %s: %s", url, exc)
    emitter.event("font_fallback", {"url": url, "cached": False})
    return data


def fetch_fallback_fonts(emitter: DiagnosticEmitter | None = None) -> list[LoadedFont]:
    """Return Roboto regular and bold from the first mirror that serves both."""
    emitter = ensure_emitter(emitter)
    failures: list[str] = []
    for mirror, sources in FALLBACK_MIRRORS:
        try:
            return [
                LoadedFont(
                    name=FALLBACK_FAMILY,
                    data=_cached_download(url, emitter),
                    weight=weight,
                    format=_font_format(url),
                )
                for weight, url in sources
            ]
        except requests.RequestException as exc:
            failures.append(f"{mirror}: {exc}")
            emitter.warning(f"Failed to load fallback fonts from {mirror}", exc)

    raise FontUnavailableError(
        NETWORK_MESSAGE.format(failures="; ".join(failures)), reason=FontUnavailableError.NETWORK
    )


def load_fonts(
    fonts: ThemeFonts,
    *,
    emitter: DiagnosticEmitter | None = None,
    allow_download: bool = True,
) -> list[LoadedFont]:
    """Load the body, heading and code fonts, falling back to Roboto.

    Each configured file that cannot be read is reported and skipped. When
    nothing was loaded, the fallback is downloaded unless ``allow_download``
    is false, in which case :class:`FontUnavailableError` is raised.
    """
    emitter = ensure_emitter(emitter)
    loaded: list[LoadedFont] = []
    roles: Sequence[tuple[str, FontConfig]] = (
        ("body", fonts.body),
        ("heading", fonts.heading),
        ("code", fonts.code),
    )
    for role, config in roles:
        if not config.path:
            continue
        try:
            loaded.append(load_font(config))
        except OSError as exc:
            emitter.warning(f"Failed to load {role} font: {config.path}", exc)

    if loaded:
        return loaded
    if not allow_download:
        raise FontUnavailableError(NO_SOURCE_MESSAGE, reason=FontUnavailableError.NO_SOURCE)
    return fetch_fallback_fonts(emitter)


__all__ = [
    "FALLBACK_FAMILY",
    "FALLBACK_MIRRORS",
    "NETWORK_MESSAGE",
    "NO_SOURCE_MESSAGE",
    "LoadedFont",
    "fetch_fallback_fonts",
    "load_font",
    "load_fonts",
    "normalize_font_config",
]
