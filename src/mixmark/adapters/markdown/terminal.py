"""Markdown to ANSI rendering built on ``rich.markdown``."""

from __future__ import annotations

from collections.abc import Iterable
from io import StringIO
from typing import Any, ClassVar

from markdown_it.token import Token
from rich import box
from rich.console import Console, ConsoleOptions, RenderResult
from rich.constrain import Constrain
from rich.markdown import CodeBlock, Markdown, MarkdownElement, TableElement
from rich.padding import Padding
from rich.table import Table
from rich.theme import Theme

from mixmark.core.highlight import highlight
from mixmark.core.profiles import TableSettings


class HighlightedCodeBlock(CodeBlock):
    """Fenced code rendered with the regex highlight table instead of Pygments."""

    def __rich_console__(self, console: Console, options: ConsoleOptions) -> RenderResult:
        code = str(self.text).rstrip()
        language = None if self.lexer_name == "text" else self.lexer_name
        yield Padding(highlight(code, language), (0, 2))


class ProfileTableElement(TableElement):
    """Table honouring the profile's width fraction and wrapping flags."""

    settings: TableSettings = TableSettings()

    @classmethod
    def create(cls, markdown: Markdown, token: Token) -> MarkdownElement:
        element = cls()
        element.settings = getattr(markdown, "table_settings", None) or TableSettings()
        return element

    def __rich_console__(self, console: Console, options: ConsoleOptions) -> RenderResult:
        settings = self.settings
        # Long words fold at any character unless whole words must be kept.
        overflow = "ellipsis" if settings.wrap_on_word_boundary else "fold"
        table = Table(
            box=box.SIMPLE_HEAVY,
            header_style="bold cyan",
            border_style="bright_black",
        )
        if self.header is not None and self.header.row is not None:
            for column in self.header.row.cells:
                table.add_column(
                    column.content,
                    no_wrap=not settings.word_wrap,
                    overflow=overflow if settings.word_wrap else "ellipsis",
                )
        if self.body is not None:
            for row in self.body.rows:
                table.add_row(*(element.content for element in row.cells))
        width = max(10, int(options.max_width * settings.width_percent))
        yield Constrain(table, width)


# Overrides of rich's default Markdown styles for light backgrounds.
LIGHT_THEME = Theme(
    {
        "markdown.code": "bold dark_red",
        "markdown.code_block": "dark_red",
        "markdown.link": "blue",
        "markdown.link_url": "underline blue",
        "markdown.block_quote": "dark_magenta",
        "markdown.hr": "grey50",
        "markdown.item.bullet": "bold dark_blue",
        "markdown.item.number": "bold dark_blue",
    }
)


def _hard_breaks(tokens: Iterable[Token]) -> None:
    for token in tokens:
        if token.children:
            _hard_breaks(token.children)
        if token.type == "softbreak":
            token.type = "hardbreak"


class TerminalMarkdown(Markdown):
    """``rich`` Markdown with newline line breaks, profile tables and custom highlighting."""

    elements: ClassVar[dict[str, type[MarkdownElement]]] = {
        **Markdown.elements,
        "fence": HighlightedCodeBlock,
        "code_block": HighlightedCodeBlock,
        "table_open": ProfileTableElement,
    }

    def __init__(
        self,
        markup: str,
        *,
        table_settings: TableSettings | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(markup, **kwargs)
        self.table_settings = table_settings or TableSettings()
        _hard_breaks(self.parsed)


def render_terminal_markdown(
    markup: str,
    *,
    width: int = 80,
    table_settings: TableSettings | None = None,
    color_system: str | None = "auto",
    theme: str = "dark",
) -> str:
    """Render ``markup`` to a string of ANSI-styled text ``width`` columns wide.

    ``theme`` picks the palette: ``"dark"`` keeps rich's defaults and
    ``"light"`` applies :data:`LIGHT_THEME`.
    """
    buffer = StringIO()
    console = Console(
        file=buffer,
        force_terminal=True,
        width=width,
        color_system=color_system,
        highlight=False,
        emoji=True,
        theme=LIGHT_THEME if theme == "light" else None,
    )
    console.print(TerminalMarkdown(markup, table_settings=table_settings))
    return buffer.getvalue()


__all__ = [
    "HighlightedCodeBlock",
    "LIGHT_THEME",
    "ProfileTableElement",
    "TerminalMarkdown",
    "render_terminal_markdown",
]
