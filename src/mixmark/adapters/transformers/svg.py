"""Extraction and terminal rendering of SVG embedded directly in a document."""

from __future__ import annotations

from collections.abc import Callable
import logging
from pathlib import Path
import re
from typing import Any

from mixmark.core.profiles import Alignment

from .base import temporary_file
from .graphics import GraphicResult, render_image


logger = logging.getLogger(__name__)

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'

_SVG_BLOCK = re.compile(r"<svg[\s\S]*?</svg>", re.IGNORECASE)
_TEXT_NODE = re.compile(r">([^<]+)<")
_ENTITY = re.compile(r"&(amp|lt|gt|quot|apos);")


def _escape_text_node(match: re.Match[str]) -> str:
    content = match.group(1)
    if "&" in content and not _ENTITY.search(content):
        return ">" + content.replace("&", "&amp;") + "<"
    return match.group(0)


def sanitize_svg(svg: str) -> str:
    """Escape bare ``&`` characters inside text nodes, leaving markup untouched."""
    return _TEXT_NODE.sub(_escape_text_node, svg)


def extract_svg(html: str) -> str | None:
    """Return the first ``<svg>`` element of ``html``, sanitised, or None."""
    match = _SVG_BLOCK.search(html)
    if match is None:
        return None
    return sanitize_svg(match.group(0))


def warning_line(message: str) -> str:
    return f"\n\x1b[33m⚠ Warning: {message}\x1b[0m\n"


def standalone_svg(svg: str) -> str:
    """Prefix an XML declaration when ``svg`` lacks one."""
    content = svg.strip()
    if content.startswith("<?xml"):
        return content
    return XML_DECLARATION + content


def render_embedded_svg(
    svg: str,
    *,
    alignment: Alignment = "center",
    width_percent: float = 0.75,
    render: Callable[..., GraphicResult] = render_image,
    directory: Path | None = None,
    **options: Any,
) -> GraphicResult:
    """Render inline SVG markup through the image adapter.

    The markup is written to a temporary file that is removed whatever the
    outcome. Markup that does not start with ``<svg`` returns a yellow warning
    line rather than raising.
    """
    content = svg.strip()
    if not content.startswith("<svg"):
        reason = "Invalid SVG content (does not start with <svg tag)"
        return GraphicResult(warning_line(reason), ok=False, reason=reason)

    try:
        with temporary_file(
            standalone_svg(content), suffix=".svg", prefix="embedded-svg-", directory=directory
        ) as path:
            return render(path, alignment=alignment, width_percent=width_percent, **options)
    except OSError as exc:
        logger.debug("embedded SVG rendering failed", exc_info=exc)
        reason = f"SVG rendering failed - {exc}"
        return GraphicResult(warning_line(reason), ok=False, reason=reason)


__all__ = [
    "XML_DECLARATION",
    "extract_svg",
    "render_embedded_svg",
    "sanitize_svg",
    "standalone_svg",
    "warning_line",
]
