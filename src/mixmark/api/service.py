"""High-level rendering and export entry points for the CLI and embedders."""

from __future__ import annotations

from pathlib import Path
import sys
from typing import TextIO

from mixmark.adapters.export.odt import export_odt_document
from mixmark.adapters.export.pdf import PdfPrinter, export_pdf_document
from mixmark.adapters.targets import TerminalTarget
from mixmark.adapters.transformers.base import CommandRunner
from mixmark.core.capabilities import DependencyProbe, ProtocolVariant, get_probe
from mixmark.core.diagnostics import DiagnosticEmitter, ensure_emitter
from mixmark.core.profiles import ConfigurationStore, RenderProfile, resolve_profile
from mixmark.core.scanner import BlockScanner, StreamSink

from .document import Document, coerce_document


GRAPHICS_MISSING_WARNING = (
    "No terminal graphics tool found (chafa, img2sixel or kitty). "
    "Images and diagrams will be shown as placeholders. "
    "Install chafa: sudo apt install chafa | brew install chafa | sudo pacman -S chafa"
)

ProfileRef = RenderProfile | str | None


def _profile(ref: ProfileRef, store: ConfigurationStore | None, fallback: str | None) -> RenderProfile:
    if isinstance(ref, RenderProfile):
        return ref
    return resolve_profile(ref or fallback, store=store)


def render_terminal(
    source: Document | str | Path,
    *,
    profile: ProfileRef = None,
    store: ConfigurationStore | None = None,
    stream: TextIO | None = None,
    capability: ProtocolVariant | None = None,
    columns: int | None = None,
    probe: DependencyProbe | None = None,
    emitter: DiagnosticEmitter | None = None,
    runner: CommandRunner | None = None,
) -> int:
    """Render a document to ``stream`` and return the number of segments written.

    Segments are written as soon as they are produced, so text before a slow
    diagram is already visible while the diagram compiles.
    """
    document = coerce_document(source)
    resolved = _profile(profile, store, None)
    probe = probe or get_probe()
    emitter = ensure_emitter(emitter)

    target = TerminalTarget(
        resolved,
        capability=capability,
        columns=columns,
        probe=probe,
        emitter=emitter,
        runner=runner,
    )
    if target.capability is not ProtocolVariant.INLINE and not probe.status().has_image_support:
        probe.warn_once("graphics", GRAPHICS_MISSING_WARNING, emitter)

    sink = StreamSink(stream or sys.stdout)
    scanner = BlockScanner(target, base_dir=document.base_dir, emitter=emitter)
    return scanner.scan(document.body, sink)


def export_pdf(
    source: Document | str | Path,
    output: str | Path | None = None,
    *,
    profile: ProfileRef = None,
    store: ConfigurationStore | None = None,
    printer: PdfPrinter | None = None,
    probe: DependencyProbe | None = None,
    emitter: DiagnosticEmitter | None = None,
    runner: CommandRunner | None = None,
) -> Path:
    """Export a document to PDF, defaulting to the ``pdf`` profile."""
    document = coerce_document(source)
    target = Path(output) if output is not None else document.default_output(".pdf")
    return export_pdf_document(
        document.text,
        target,
        _profile(profile, store, "pdf"),
        base_dir=document.base_dir,
        title=document.title,
        printer=printer,
        probe=probe,
        emitter=emitter,
        runner=runner,
    )


def export_odt(
    source: Document | str | Path,
    output: str | Path | None = None,
    *,
    profile: ProfileRef = None,
    store: ConfigurationStore | None = None,
    probe: DependencyProbe | None = None,
    emitter: DiagnosticEmitter | None = None,
    runner: CommandRunner | None = None,
) -> Path:
    """Export a document to ODT, defaulting to the ``odt`` profile."""
    document = coerce_document(source)
    target = Path(output) if output is not None else document.default_output(".odt")
    return export_odt_document(
        document.text,
        target,
        _profile(profile, store, "odt"),
        base_dir=document.base_dir,
        probe=probe,
        emitter=emitter,
        runner=runner,
    )


__all__ = [
    "GRAPHICS_MISSING_WARNING",
    "export_odt",
    "export_pdf",
    "render_terminal",
]
