"""Shared Typer option definitions for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer


INPUTS_PANEL = "Input Handling"
OUTPUT_PANEL = "Output"
DIAGNOSTICS_PANEL = "Diagnostics"

DocumentArgument = Annotated[
    Path,
    typer.Argument(
        metavar="FILE",
        help="Markdown document to render.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        resolve_path=True,
        rich_help_panel=INPUTS_PANEL,
    ),
]

OutputArgument = Annotated[
    Path | None,
    typer.Argument(
        metavar="[OUTPUT]",
        help="Destination file. Defaults to the input path with the new extension.",
        dir_okay=False,
        rich_help_panel=OUTPUT_PANEL,
    ),
]

ProfileOption = Annotated[
    str | None,
    typer.Option(
        "--profile",
        "-p",
        help="Render profile name from the configuration file.",
        rich_help_panel=INPUTS_PANEL,
    ),
]

VerboseOption = Annotated[
    int,
    typer.Option(
        "--verbose",
        "-v",
        count=True,
        help="Increase CLI verbosity. Combine multiple times for additional diagnostics.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]

DebugOption = Annotated[
    bool,
    typer.Option(
        "--debug",
        help="Show full tracebacks when an unexpected error occurs.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]


__all__ = [
    "DebugOption",
    "DocumentArgument",
    "OutputArgument",
    "ProfileOption",
    "VerboseOption",
]
