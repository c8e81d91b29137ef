"""Markup engines: rich for the terminal, Python-Markdown for HTML exports."""

from __future__ import annotations

from .html import (
    MarkdownConversionError,
    MarkdownDocument,
    embed_local_images,
    render_markdown,
    split_front_matter,
)
from .terminal import TerminalMarkdown, render_terminal_markdown


__all__ = [
    "MarkdownConversionError",
    "MarkdownDocument",
    "TerminalMarkdown",
    "embed_local_images",
    "render_markdown",
    "render_terminal_markdown",
    "split_front_matter",
]
