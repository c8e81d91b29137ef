"""Report which external tools are available."""

from __future__ import annotations

from rich import box
from rich.table import Table
import typer

from mixmark.core.capabilities import detect_capability, get_probe

from ..state import get_cli_state


_TOOLS = (
    ("chafa", "chafa", "Sixel images and diagrams"),
    ("img2sixel", "img2sixel", "Sixel fallback encoder"),
    ("kitty", "kitty", "Kitty graphics protocol"),
    ("mermaid_cli", "mmdc", "Mermaid diagrams"),
    ("pandoc", "pandoc", "ODT export"),
    ("playwright", None, "PDF export"),
)

CHAFA_INSTALL_HINTS = (
    "Ubuntu/Debian:  sudo apt install chafa",
    "macOS:          brew install chafa",
    "Arch:           sudo pacman -S chafa",
)


def check() -> None:
    """Show the external dependency status and the detected graphics protocol."""
    probe = get_probe()
    status = probe.status()
    console = get_cli_state().console

    table = Table(title="Dependencies", box=box.SQUARE, header_style="bold cyan")
    table.add_column("Tool", style="bold")
    table.add_column("Status")
    table.add_column("Location", overflow="fold")
    table.add_column("Used for")
    for field_name, executable, purpose in _TOOLS:
        available = getattr(status, field_name)
        location = probe.executable(executable) if executable else None
        table.add_row(
            field_name.replace("_", "-"),
            "[green]found[/]" if available else "[red]missing[/]",
            location or "-",
            purpose,
        )
    console.print(table)
    console.print(f"Graphics protocol: [bold]{detect_capability().value}[/]")

    if not status.has_image_support:
        console.print("[yellow]No terminal graphics tool found. Install chafa:[/]")
        for hint in CHAFA_INSTALL_HINTS:
            console.print(f"  {hint}")
        raise typer.Exit(code=1)


__all__ = ["check"]
