"""Compose a standalone HTML document from Markdown and a render profile."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader

from mixmark.adapters.markdown.html import pygments_css, split_front_matter
from mixmark.adapters.targets import HtmlTarget
from mixmark.adapters.transformers.base import CommandRunner
from mixmark.core.capabilities import DependencyProbe
from mixmark.core.diagnostics import DiagnosticEmitter
from mixmark.core.profiles import RenderProfile
from mixmark.core.scanner import BlockScanner, CollectingSink


TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
PYGMENTS_STYLES = {"dark": "monokai", "light": "default"}

_DEFAULT_SIZES = {
    "body": "11pt",
    "h1": "24pt",
    "h2": "20pt",
    "h3": "16pt",
    "h4": "14pt",
    "h5": "12pt",
    "h6": "11pt",
    "code": "10pt",
}
_DEFAULT_COLORS = {"text": "#1a1a1a", "heading": "#000000", "link": "#0066cc"}
_DEFAULT_CODE = {
    "background": "#f6f8fa",
    "text": "#24292e",
    "keyword": "#d73a49",
    "string": "#032f62",
    "comment": "#6a737d",
    "function": "#6f42c1",
    "number": "#005cc5",
}


@dataclass(slots=True)
class HtmlDocument:
    html: str
    title: str
    metadata: dict[str, Any]


@lru_cache(maxsize=1)
def _environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(TEMPLATE_DIR),
        autoescape=False,
        keep_trailing_newline=True,
    )


def _merged(defaults: dict[str, str], values: Any) -> dict[str, str]:
    merged = dict(defaults)
    if values is not None:
        fields = values.model_dump()
        merged.update(
            {key: value for key, value in fields.items() if value and not isinstance(value, dict)}
        )
    return merged


def _font(family: str, fallback: str = "sans-serif") -> str:
    return fallback if family in {"default", "monospace"} else family


def stylesheet_context(profile: RenderProfile) -> dict[str, Any]:
    """Flatten the profile into the values used by the stylesheet template."""
    pdf = profile.pdf
    colors = profile.colors
    images = profile.images
    margins = _merged(
        {"top": "1in", "bottom": "1in", "left": "1in", "right": "1in"}, profile.margins
    )
    return {
        "page_size": pdf.page_size if pdf else "A4",
        "orientation": pdf.orientation if pdf else "portrait",
        "margins": margins,
        "fonts": {
            "body": _font(profile.fonts.body),
            "heading": _font(profile.fonts.heading),
            "code": _font(profile.fonts.code, "monospace"),
        },
        "sizes": _merged(_DEFAULT_SIZES, profile.font_sizes),
        "colors": _merged(_DEFAULT_COLORS, colors),
        "code": _merged(_DEFAULT_CODE, colors.code if colors else None),
        "images": {
            "max_width": images.max_width or "100%",
            "width": f"{round(images.width_percent * 100)}%",
            "alignment": images.alignment,
            "margin_x": "auto" if images.alignment == "center" else "0",
        },
        "pygments_css": pygments_css(PYGMENTS_STYLES[profile.theme]),
    }


def stylesheet(profile: RenderProfile) -> str:
    return _environment().get_template("style.css.jinja").render(**stylesheet_context(profile))


def compose_document(body: str, profile: RenderProfile, *, title: str, lang: str = "en") -> str:
    """Wrap an HTML body into a full document styled from ``profile``."""
    template = _environment().get_template("document.html.jinja")
    return template.render(body=body, css=stylesheet(profile), title=title, lang=lang)


def render_html_document(
    text: str,
    profile: RenderProfile,
    *,
    base_dir: Path,
    title: str,
    probe: DependencyProbe | None = None,
    emitter: DiagnosticEmitter | None = None,
    runner: CommandRunner | None = None,
) -> HtmlDocument:
    """Scan a Markdown document with the HTML target and wrap the result."""
    metadata, body = split_front_matter(text)
    target = HtmlTarget(profile, base_dir=base_dir, probe=probe, emitter=emitter, runner=runner)
    sink = CollectingSink()
    BlockScanner(target, base_dir=base_dir, emitter=emitter).scan(body, sink)
    resolved_title = str(metadata.get("title") or title)
    html = compose_document(sink.join("\n"), profile, title=resolved_title)
    return HtmlDocument(html=html, title=resolved_title, metadata=metadata)


__all__ = [
    "PYGMENTS_STYLES",
    "TEMPLATE_DIR",
    "HtmlDocument",
    "compose_document",
    "render_html_document",
    "stylesheet",
    "stylesheet_context",
]
