"""Markdown to HTML conversion for paginated exports."""

from __future__ import annotations

import base64
from dataclasses import dataclass
import logging
import mimetypes
from pathlib import Path
from threading import Lock
from typing import Any

from bs4 import BeautifulSoup
import markdown
from pygments.formatters import HtmlFormatter
import yaml

from mixmark.core.exceptions import MixmarkError


logger = logging.getLogger(__name__)

DEFAULT_MARKDOWN_EXTENSIONS = [
    "tables",
    "pymdownx.highlight",
    "pymdownx.superfences",
    "nl2br",
    "sane_lists",
    "attr_list",
]

DEFAULT_EXTENSION_CONFIGS: dict[str, dict[str, object]] = {
    "pymdownx.highlight": {
        "use_pygments": True,
        "css_class": "highlight",
        "guess_lang": False,
    },
}

MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".webp": "image/webp",
}


class MarkdownConversionError(MixmarkError):
    """Raised when Markdown cannot be converted into HTML."""


@dataclass(slots=True)
class MarkdownDocument:
    """Result of converting Markdown into HTML."""

    html: str


_PROCESSOR: markdown.Markdown | None = None
_PROCESSOR_LOCK = Lock()


def _processor() -> markdown.Markdown:
    global _PROCESSOR
    if _PROCESSOR is None:
        try:
            _PROCESSOR = markdown.Markdown(
                extensions=DEFAULT_MARKDOWN_EXTENSIONS,
                extension_configs=DEFAULT_EXTENSION_CONFIGS,
            )
        except Exception as exc:  # pragma: no cover - library-controlled
            raise MarkdownConversionError(f"Failed to initialize Markdown processor: {exc}") from exc
    return _PROCESSOR


def render_markdown(source: str) -> MarkdownDocument:
    """Convert a Markdown fragment into HTML.

    Fragments are converted as-is: front matter is only split off whole
    documents, so a run of text framed by ``---`` rules stays content.
    """
    with _PROCESSOR_LOCK:
        processor = _processor()
        processor.reset()
        try:
            html = processor.convert(source)
        except Exception as exc:  # pragma: no cover - library-controlled
            raise MarkdownConversionError(f"Failed to convert Markdown source: {exc}") from exc
    return MarkdownDocument(html=html)


def split_front_matter(source: str) -> tuple[dict[str, Any], str]:
    """Split YAML front matter from Markdown content, returning metadata and body."""
    candidate = source.lstrip("\ufeff")
    lines = candidate.splitlines()
    if not lines or lines[0].strip() != "---":
        return {}, source

    closing_index: int | None = None
    for idx, line in enumerate(lines[1:], start=1):
        if line.strip() in {"---", "..."}:
            closing_index = idx
            break
    if closing_index is None:
        return {}, source

    try:
        metadata = yaml.safe_load("\n".join(lines[1:closing_index])) or {}
    except yaml.YAMLError:
        return {}, source
    if not isinstance(metadata, dict):
        metadata = {}

    body = "\n".join(lines[closing_index + 1 :])
    if source.endswith("\n"):
        body += "\n"
    return metadata, body


def mime_type(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix in MIME_TYPES:
        return MIME_TYPES[suffix]
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or "image/png"


def data_uri(data: bytes, mime: str) -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def file_data_uri(path: Path) -> str:
    return data_uri(path.read_bytes(), mime_type(path))


def embed_local_images(html: str, base_dir: Path) -> str:
    """Inline every local ``<img>`` source of ``html`` as a data URI.

    Data URIs and network references are left alone, as are files that cannot
    be read.
    """
    soup = BeautifulSoup(html, "html.parser")
    changed = False
    for image in soup.find_all("img"):
        src = image.get("src")
        if not src or src.startswith(("data:", "http://", "https://", "//")):
            continue
        path = Path(src).expanduser()
        if not path.is_absolute():
            path = base_dir / path
        try:
            image["src"] = file_data_uri(path)
        except OSError as exc:
            logger.warning("Failed to embed image %s: %s", src, exc)
            continue
        changed = True
    return str(soup) if changed else html


def pygments_css(style: str = "default", selector: str = ".highlight") -> str:
    """Return the Pygments stylesheet matching the highlight markup."""
    return HtmlFormatter(style=style).get_style_defs(selector)


__all__ = [
    "DEFAULT_MARKDOWN_EXTENSIONS",
    "MarkdownConversionError",
    "MarkdownDocument",
    "data_uri",
    "embed_local_images",
    "file_data_uri",
    "mime_type",
    "pygments_css",
    "render_markdown",
    "split_front_matter",
]
