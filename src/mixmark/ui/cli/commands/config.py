"""Inspect and reset the persisted render profiles."""

from __future__ import annotations

import json
from typing import Annotated

from rich import box
from rich.table import Table
import typer

from mixmark.core.exceptions import MixmarkError
from mixmark.core.profiles import config_path, initialize_config, load_config

from .._options import ProfileOption
from ..diagnostics import CliEmitter
from ..state import get_cli_state
from .view import fail


config_app = typer.Typer(
    help="Manage render profiles stored in the configuration file.",
    no_args_is_help=True,
)


@config_app.command("path")
def show_path() -> None:
    """Print the location of the configuration file."""
    typer.echo(str(config_path()))


@config_app.command("init")
def init(
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite an existing configuration file."),
    ] = False,
) -> None:
    """Write the default configuration file."""
    target = config_path()
    if target.exists() and not force:
        get_cli_state().console.print(f"Configuration already exists at: {target}")
        return
    written = initialize_config(target, force=force)
    CliEmitter().event("config_initialised", {"path": str(written)})
    get_cli_state().console.print(f"[green]Created default config at:[/] {written}")


@config_app.command("reset")
def reset() -> None:
    """Replace the configuration file with the built-in defaults."""
    written = initialize_config(config_path(), force=True)
    CliEmitter().event("config_initialised", {"path": str(written)})
    get_cli_state().console.print(f"[green]Configuration reset:[/] {written}")


@config_app.command("show")
def show(profile: ProfileOption = None) -> None:
    """Print the merged configuration, or a single profile, as JSON."""
    try:
        store = load_config()
        if profile:
            document = store.resolve(profile).model_dump(by_alias=True, exclude_none=True)
        else:
            document = store.to_document()
    except MixmarkError as exc:
        raise fail(exc) from exc
    get_cli_state().console.print_json(json.dumps(document))


@config_app.command("profiles")
def profiles() -> None:
    """List the available render profiles."""
    try:
        store = load_config()
    except MixmarkError as exc:
        raise fail(exc) from exc

    table = Table(title="Profiles", box=box.SQUARE, header_style="bold cyan")
    table.add_column("Name", style="bold")
    table.add_column("Output")
    table.add_column("Default", justify="center")
    for name, entry in store.profiles.items():
        table.add_row(name, entry.output, "*" if name == store.default_profile else "")
    get_cli_state().console.print(table)


__all__ = ["config_app"]
