"""Facade over the rendering pipeline.

`Document` wraps Markdown text together with the directory its relative image
references resolve against. `render_terminal` streams segments to a text
stream as they are produced; `export_pdf` and `export_odt` write paginated
documents through Playwright and pandoc respectively.

Usage Example
:
    >>> import io
    >>> from mixmark.api import Document, render_terminal
    >>> from mixmark.core.capabilities import ProtocolVariant
    >>> from mixmark.core.profiles import default_store
    >>> stream = io.StringIO()
    >>> render_terminal(
    ...     Document.from_text("# Demo"),
    ...     store=default_store(),
    ...     stream=stream,
    ...     capability=ProtocolVariant.INLINE,
    ...     columns=40,
    ... )
    1
"""

from __future__ import annotations

from .document import Document
from .service import GRAPHICS_MISSING_WARNING, export_odt, export_pdf, render_terminal


__all__ = [
    "GRAPHICS_MISSING_WARNING",
    "Document",
    "export_odt",
    "export_pdf",
    "render_terminal",
]
