"""Export a document to PDF or ODT."""

from __future__ import annotations

from mixmark.api import export_odt, export_pdf
from mixmark.core.exceptions import MixmarkError

from .._options import DocumentArgument, OutputArgument, ProfileOption
from ..diagnostics import CliEmitter
from ..state import get_cli_state
from .view import fail


def pdf(
    document: DocumentArgument,
    output: OutputArgument = None,
    profile: ProfileOption = None,
) -> None:
    """Export a Markdown document to PDF through headless Chromium."""
    try:
        written = export_pdf(document, output, profile=profile or "pdf", emitter=CliEmitter())
    except MixmarkError as exc:
        raise fail(exc) from exc
    get_cli_state().console.print(f"[green]PDF generated:[/] {written}")


def odt(
    document: DocumentArgument,
    output: OutputArgument = None,
    profile: ProfileOption = None,
) -> None:
    """Export a Markdown document to ODT through pandoc."""
    try:
        written = export_odt(document, output, profile=profile or "odt", emitter=CliEmitter())
    except MixmarkError as exc:
        raise fail(exc) from exc
    get_cli_state().console.print(f"[green]ODT generated:[/] {written}")


__all__ = ["odt", "pdf"]
