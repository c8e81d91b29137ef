"""Typer application wiring for the mixmark CLI."""

from __future__ import annotations

from typing import Annotated

import typer

from mixmark.version import get_version

from ._options import DebugOption, VerboseOption
from .commands import check, config_app, odt, pdf, view
from .state import configure_logging, debug_enabled, emit_error, get_cli_state, set_cli_state


app = typer.Typer(
    help="Render mixed-media Markdown in the terminal or export it to PDF and ODT.",
    context_settings={"help_option_names": ["--help", "-h"]},
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"mixmark {get_version()}")
        raise typer.Exit()


@app.callback()
def _main(
    ctx: typer.Context,
    verbose: VerboseOption = 0,
    debug: DebugOption = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show the version and exit.",
        ),
    ] = False,
) -> None:
    state = set_cli_state(ctx=ctx, verbosity=verbose, debug=debug)
    configure_logging(state)


app.command()(view)
app.command()(pdf)
app.command()(odt)
app.command()(check)
app.add_typer(config_app, name="config")


def main() -> None:
    """Entry point compatible with console scripts."""
    try:
        app()
    except typer.Exit:
        raise
    except KeyboardInterrupt as exc:
        if debug_enabled():
            raise
        emit_error("Operation cancelled by user.", exception=exc)
        raise typer.Exit(code=1) from exc
    except SystemExit:
        raise
    except Exception as exc:  # pragma: no cover - last-resort reporting
        state = get_cli_state()
        if state.show_tracebacks:
            from rich.traceback import Traceback

            tb = Traceback.from_exception(
                type(exc),
                exc,
                exc.__traceback__,
                show_locals=state.verbosity >= 2,
            )
            state.err_console.print(tb)
        else:
            emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc


__all__ = ["app", "main"]
