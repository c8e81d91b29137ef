"""Export backends: HTML composition, PDF printing and ODT conversion."""

from __future__ import annotations

from .html import HtmlDocument, compose_document, render_html_document, stylesheet
from .odt import PANDOC_INSTALL_HINT, add_image_width_attributes, export_odt_document
from .pdf import PLAYWRIGHT_INSTALL_HINT, export_pdf_document, pdf_options


__all__ = [
    "PANDOC_INSTALL_HINT",
    "PLAYWRIGHT_INSTALL_HINT",
    "HtmlDocument",
    "add_image_width_attributes",
    "compose_document",
    "export_odt_document",
    "export_pdf_document",
    "pdf_options",
    "render_html_document",
    "stylesheet",
]
