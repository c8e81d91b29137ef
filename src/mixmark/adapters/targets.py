"""Render targets: how the block scanner's text runs and graphics materialise.

``TerminalTarget`` produces ANSI text and terminal graphics escapes,
``HtmlTarget`` produces HTML fragments with data-URI images for the PDF
export, and ``OdtTarget`` keeps Markdown and references graphics written to a
scratch directory for pandoc.
"""

from __future__ import annotations

from html import escape
import itertools
import logging
from pathlib import Path

from mixmark.adapters.markdown.html import (
    data_uri,
    embed_local_images,
    file_data_uri,
    render_markdown,
)
from mixmark.adapters.markdown.terminal import render_terminal_markdown
from mixmark.adapters.transformers.base import CommandRunner
from mixmark.adapters.transformers.graphics import GraphicResult, render_image
from mixmark.adapters.transformers.mermaid import (
    MERMAID_INSTALL_HINT,
    DiagramOptions,
    cleanup_diagram,
    is_placeholder,
    render_diagram,
)
from mixmark.adapters.transformers.svg import (
    render_embedded_svg,
    standalone_svg,
    warning_line,
)
from mixmark.core.capabilities import DependencyProbe, ProtocolVariant, detect_capability
from mixmark.core.diagnostics import DiagnosticEmitter, ensure_emitter
from mixmark.core.profiles import RenderProfile
from mixmark.core.scanner import GraphicBlock, Segment, StyledText
from mixmark.core.sizing import diagram_columns, estimate_row_height, terminal_columns


logger = logging.getLogger(__name__)


class _DiagramMixin:
    profile: RenderProfile
    probe: DependencyProbe | None
    emitter: DiagnosticEmitter
    runner: CommandRunner | None

    def _diagram_file(self, source: str, options: DiagramOptions) -> Path:
        return render_diagram(
            source, options, probe=self.probe, emitter=self.emitter, runner=self.runner
        )


class TerminalTarget(_DiagramMixin):
    """Render segments for an interactive terminal."""

    def __init__(
        self,
        profile: RenderProfile,
        *,
        capability: ProtocolVariant | None = None,
        columns: int | None = None,
        probe: DependencyProbe | None = None,
        emitter: DiagnosticEmitter | None = None,
        runner: CommandRunner | None = None,
    ) -> None:
        self.profile = profile
        self.settings = profile.terminal_settings
        self.capability = capability or detect_capability()
        self.columns = columns or terminal_columns(self.settings.fallback_columns)
        self.probe = probe
        self.emitter = ensure_emitter(emitter)
        self.runner = runner

    def _encode(
        self, path: Path, *, preserve_transparency: bool, columns: int | None = None
    ) -> GraphicResult:
        # An explicit column count is used as-is instead of a share of the terminal.
        return render_image(
            path,
            alignment=self.profile.images.alignment,
            width_percent=self.profile.images.width_percent if columns is None else 1.0,
            preserve_transparency=preserve_transparency,
            settings=self.settings,
            capability=self.capability,
            columns=self.columns if columns is None else columns,
            runner=self.runner,
        )

    def _block(self, result: GraphicResult, kind: str, source: str) -> GraphicBlock:
        rows = estimate_row_height(result.payload) if result.ok else 1
        return GraphicBlock(result.payload, kind, source, placeholder=not result.ok, rows=rows)

    def _diagram_columns(self) -> int:
        return diagram_columns(
            self.profile.mermaid.scale,
            available=self.columns,
            diagram_width=self.profile.mermaid.width,
            pixels_per_column=self.settings.pixels_per_column,
            image_scaling=self.settings.image_scaling,
        )

    def render_text(self, markup: str) -> StyledText:
        return StyledText(
            render_terminal_markdown(
                markup,
                width=self.columns,
                table_settings=self.profile.table_settings,
                theme=self.profile.theme,
            )
        )

    def render_diagram(self, source: str) -> Segment:
        path = self._diagram_file(source, DiagramOptions.from_profile(self.profile))
        try:
            result = self._encode(path, preserve_transparency=True, columns=self._diagram_columns())
        finally:
            cleanup_diagram(path)

        placeholder = is_placeholder(path)
        if result.ok:
            return GraphicBlock(
                result.payload,
                "diagram",
                source,
                placeholder=placeholder,
                rows=estimate_row_height(result.payload),
            )
        if placeholder:
            text = f"[Mermaid diagram - install mermaid-cli: {MERMAID_INSTALL_HINT}]"
        else:
            text = "[Mermaid diagram rendering failed]"
        return GraphicBlock(text, "diagram", source, placeholder=True, rows=1)

    def render_image(self, path: Path, alt: str) -> Segment:
        return self._block(self._encode(path, preserve_transparency=False), "image", str(path))

    def render_svg(self, svg: str) -> Segment:
        result = render_embedded_svg(
            svg,
            alignment=self.profile.images.alignment,
            width_percent=self.profile.images.width_percent,
            settings=self.settings,
            capability=self.capability,
            columns=self.columns,
            runner=self.runner,
        )
        return self._block(result, "svg", svg)

    def external_image(self, alt: str, src: str) -> Segment:
        return StyledText(f"[External image: {alt or src} - {src}]\n\n")

    def missing_image(self, alt: str, src: str) -> Segment:
        return StyledText(f"[Image not found: {alt or src}]\n")

    def diagram_failure(self, source: str, exc: BaseException) -> Segment:
        return StyledText(f"```mermaid\n{source}```\n[Mermaid error: {exc}]\n\n")

    def graphic_failure(self, kind: str, label: str, exc: BaseException) -> Segment:
        return StyledText(warning_line(f"{label} could not be rendered - {exc}"))


def _figure(src: str, alt: str, css_class: str) -> str:
    return (
        f'<figure class="{css_class}">'
        f'<img src="{escape(src, quote=True)}" alt="{escape(alt, quote=True)}">'
        "</figure>\n"
    )


class HtmlTarget(_DiagramMixin):
    """Render segments as HTML fragments with embedded graphics."""

    def __init__(
        self,
        profile: RenderProfile,
        *,
        base_dir: Path,
        probe: DependencyProbe | None = None,
        emitter: DiagnosticEmitter | None = None,
        runner: CommandRunner | None = None,
    ) -> None:
        self.profile = profile
        self.base_dir = base_dir
        self.probe = probe
        self.emitter = ensure_emitter(emitter)
        self.runner = runner

    def render_text(self, markup: str) -> StyledText:
        html = render_markdown(markup).html
        return StyledText(embed_local_images(html, self.base_dir) + "\n")

    def render_diagram(self, source: str) -> Segment:
        options = DiagramOptions.from_profile(self.profile, output_format="svg")
        path = self._diagram_file(source, options)
        try:
            payload = data_uri(path.read_bytes(), "image/svg+xml")
        finally:
            cleanup_diagram(path)
        return GraphicBlock(
            _figure(payload, "Mermaid Diagram", "diagram"),
            "diagram",
            source,
            placeholder=is_placeholder(path),
        )

    def render_image(self, path: Path, alt: str) -> Segment:
        return GraphicBlock(_figure(file_data_uri(path), alt, "image"), "image", str(path))

    def render_svg(self, svg: str) -> Segment:
        payload = data_uri(standalone_svg(svg).encode("utf-8"), "image/svg+xml")
        return GraphicBlock(_figure(payload, "SVG Diagram", "svg"), "svg", svg)

    def external_image(self, alt: str, src: str) -> Segment:
        return GraphicBlock(_figure(src, alt, "image external"), "image", src)

    def missing_image(self, alt: str, src: str) -> Segment:
        return StyledText(f'<p class="missing">[Image not found: {escape(alt or src)}]</p>\n')

    def diagram_failure(self, source: str, exc: BaseException) -> Segment:
        html = render_markdown(f"```mermaid\n{source}```\n").html
        return StyledText(f'{html}\n<p class="error">[Mermaid error: {escape(str(exc))}]</p>\n')

    def graphic_failure(self, kind: str, label: str, exc: BaseException) -> Segment:
        return StyledText(f'<p class="error">[{escape(label)}: {escape(str(exc))}]</p>\n')


class OdtTarget(_DiagramMixin):
    """Keep Markdown and reference graphics saved to ``asset_dir`` for pandoc."""

    def __init__(
        self,
        profile: RenderProfile,
        *,
        asset_dir: Path,
        probe: DependencyProbe | None = None,
        emitter: DiagnosticEmitter | None = None,
        runner: CommandRunner | None = None,
    ) -> None:
        self.profile = profile
        self.asset_dir = asset_dir
        self.probe = probe
        self.emitter = ensure_emitter(emitter)
        self.runner = runner
        self._counter = itertools.count(1)

    def _asset(self, stem: str, content: bytes) -> Path:
        self.asset_dir.mkdir(parents=True, exist_ok=True)
        target = self.asset_dir / f"{stem}-{next(self._counter)}.svg"
        target.write_bytes(content)
        return target

    def render_text(self, markup: str) -> StyledText:
        return StyledText(markup)

    def render_diagram(self, source: str) -> Segment:
        options = DiagramOptions.from_profile(
            self.profile, output_format="svg", opaque_background=True
        )
        path = self._diagram_file(source, options)
        try:
            asset = self._asset("mermaid", path.read_bytes())
        finally:
            cleanup_diagram(path)
        return GraphicBlock(
            f"![Mermaid Diagram]({asset.as_posix()}){{width=90%}}\n\n",
            "diagram",
            source,
            placeholder=is_placeholder(path),
        )

    def render_image(self, path: Path, alt: str) -> Segment:
        return GraphicBlock(f"![{alt}]({path.as_posix()})\n", "image", str(path))

    def render_svg(self, svg: str) -> Segment:
        asset = self._asset("svg", svg.encode("utf-8"))
        return GraphicBlock(f"![SVG Diagram]({asset.as_posix()}){{width=90%}}\n\n", "svg", svg)

    def external_image(self, alt: str, src: str) -> Segment:
        return GraphicBlock(f"![{alt}]({src})\n", "image", src)

    def missing_image(self, alt: str, src: str) -> Segment:
        return StyledText(f"[Image not found: {alt or src}]\n")

    def diagram_failure(self, source: str, exc: BaseException) -> Segment:
        return StyledText(f"```mermaid\n{source}```\n\n[Mermaid error: {exc}]\n\n")

    def graphic_failure(self, kind: str, label: str, exc: BaseException) -> Segment:
        return StyledText(f"[{label}: {exc}]\n")


__all__ = ["HtmlTarget", "OdtTarget", "TerminalTarget"]
