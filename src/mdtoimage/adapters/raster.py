"""Rasterisation of rendered SVG markup through CairoSVG."""

from __future__ import annotations

from mdtoimage.core.diagnostics import DiagnosticEmitter, ensure_emitter
from mdtoimage.core.exceptions import RasterEncodingError


def _cairo_dependency_hint() -> str:
    return (
        "CairoSVG requires the system cairo library (package: libcairo2). "
        "Install it via your package manager to enable PNG output."
    )


def encode_png(svg: str, *, emitter: DiagnosticEmitter | None = None) -> bytes:
    """Convert SVG markup into PNG bytes at the SVG's native size."""
    emitter = ensure_emitter(emitter)
    try:
        import cairosvg  # type: ignore[import]
    except ImportError as exc:
        msg = "cairosvg is required to produce PNG output. Install 'cairosvg' or request SVG."
        raise RasterEncodingError(msg) from exc
    except OSError as exc:
        hint = _cairo_dependency_hint()
        emitter.warning(hint)
        raise RasterEncodingError(f"Failed to load CairoSVG: {exc}. {hint}") from exc

    try:
        payload = cairosvg.svg2png(bytestring=svg.encode("utf-8"))
    except OSError as exc:
        hint = _cairo_dependency_hint()
        emitter.warning(hint)
        raise RasterEncodingError(f"Failed to rasterise SVG with CairoSVG: {exc}. {hint}") from exc
    except Exception as exc:
        raise RasterEncodingError(f"Failed to rasterise SVG with CairoSVG: {exc}") from exc
    if not payload:
        raise RasterEncodingError("CairoSVG produced an empty PNG payload.")
    return payload


__all__ = ["encode_png"]
