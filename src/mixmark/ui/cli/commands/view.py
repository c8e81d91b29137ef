"""Render a document in the terminal."""

from __future__ import annotations

import typer

from mixmark.api import render_terminal
from mixmark.core.exceptions import CorruptConfigError, MixmarkError

from .._options import DocumentArgument, ProfileOption
from ..diagnostics import CliEmitter
from ..state import emit_error


CONFIG_RESET_HINT = "Run `mixmark config reset` to restore the default configuration."


def fail(exc: MixmarkError) -> typer.Exit:
    """Report ``exc`` on stderr and return the exit to raise."""
    message = str(exc)
    if isinstance(exc, CorruptConfigError):
        message = f"{message}\n{CONFIG_RESET_HINT}"
    emit_error(message, exception=exc)
    return typer.Exit(code=1)


def view(document: DocumentArgument, profile: ProfileOption = None) -> None:
    """Render a Markdown document with images and diagrams in the terminal."""
    emitter = CliEmitter()
    try:
        render_terminal(document, profile=profile, emitter=emitter)
    except MixmarkError as exc:
        raise fail(exc) from exc


__all__ = ["fail", "view"]
