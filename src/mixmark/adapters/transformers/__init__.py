"""External renderer adapters: Mermaid, terminal graphics encoders and inline SVG."""

from __future__ import annotations

from .base import CommandResult, CommandRunner, run_cli, subprocess_runner, temporary_file
from .graphics import GraphicResult, image_placeholder, render_image
from .mermaid import DiagramOptions, cleanup_diagram, is_placeholder, render_diagram
from .svg import extract_svg, render_embedded_svg, sanitize_svg, warning_line


__all__ = [
    "CommandResult",
    "CommandRunner",
    "DiagramOptions",
    "GraphicResult",
    "cleanup_diagram",
    "extract_svg",
    "image_placeholder",
    "is_placeholder",
    "render_diagram",
    "render_embedded_svg",
    "render_image",
    "run_cli",
    "sanitize_svg",
    "subprocess_runner",
    "temporary_file",
    "warning_line",
]
