"""PDF export: print the composed HTML document with headless Chromium."""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from html import escape
import logging
import os
from pathlib import Path
import subprocess
import sys
from threading import Lock
from typing import Any, ClassVar

from mixmark.adapters.transformers.base import CommandRunner
from mixmark.core.capabilities import DependencyProbe
from mixmark.core.diagnostics import DiagnosticEmitter, ensure_emitter
from mixmark.core.exceptions import ExportError
from mixmark.core.profiles import RenderProfile

from .html import render_html_document


logger = logging.getLogger(__name__)

PLAYWRIGHT_INSTALL_HINT = "pip install playwright && playwright install chromium"
HEADER_FOOTER_MARGIN = "1.5in"

PdfPrinter = Callable[[str, Path, dict[str, Any]], None]


class _PlaywrightManager:
    """Start Playwright and Chromium, installing the browser on first use."""

    _lock: ClassVar[Lock] = Lock()

    @classmethod
    def print_pdf(cls, html: str, output: Path, options: dict[str, Any]) -> None:
        try:
            from playwright.sync_api import Error as PlaywrightError
            from playwright.sync_api import sync_playwright
        except ModuleNotFoundError as exc:
            raise ExportError(
                f"Playwright is not installed. Install it with: {PLAYWRIGHT_INSTALL_HINT}"
            ) from exc

        existing_node_opts = os.environ.get("NODE_OPTIONS", "")
        if "--no-deprecation" not in existing_node_opts:
            os.environ["NODE_OPTIONS"] = (existing_node_opts + " --no-deprecation").strip()

        with cls._lock, sync_playwright() as playwright:
            try:
                browser = playwright.chromium.launch(headless=True)
            except PlaywrightError as exc:
                if "Executable doesn't exist" not in str(exc):
                    raise ExportError(f"Failed to launch Chromium: {exc}") from exc
                logger.info("Chromium is missing, installing it with Playwright")
                subprocess.run(
                    [sys.executable, "-m", "playwright", "install", "chromium"],
                    env=os.environ,
                    check=True,
                )
                browser = playwright.chromium.launch(headless=True)
            try:
                page = browser.new_page()
                page.set_content(html, wait_until="networkidle")
                page.pdf(path=str(output), **options)
            except PlaywrightError as exc:
                raise ExportError(f"Chromium failed to print the document: {exc}") from exc
            finally:
                browser.close()


def _header_template(title: str, font_size: str) -> str:
    return (
        f'<div style="font-size: {font_size}; width: 100%; text-align: center;">'
        f'<span class="title">{escape(title)}</span></div>'
    )


def _footer_template(*, show_date: bool, show_page_numbers: bool, font_size: str) -> str:
    parts: list[str] = []
    if show_date:
        parts.append(f"<span>{date.today().isoformat()}</span>")
    if show_page_numbers:
        parts.append(
            'Page <span class="pageNumber"></span> of <span class="totalPages"></span>'
        )
    return (
        f'<div style="font-size: {font_size}; width: 100%; text-align: center;">'
        f"{' • '.join(parts)}</div>"
    )


def pdf_options(profile: RenderProfile, *, title: str) -> dict[str, Any]:
    """Translate the profile's page settings into ``page.pdf`` keyword arguments."""
    pdf = profile.pdf
    margins = profile.margins
    margin = {
        "top": (margins.top if margins else None) or "1in",
        "bottom": (margins.bottom if margins else None) or "1in",
        "left": (margins.left if margins else None) or "1in",
        "right": (margins.right if margins else None) or "1in",
    }
    options: dict[str, Any] = {
        "format": pdf.page_size if pdf else "A4",
        "landscape": bool(pdf and pdf.orientation == "landscape"),
        "print_background": True,
        "margin": margin,
        "display_header_footer": False,
    }

    header_footer = pdf.header_footer if pdf else None
    if header_footer is None or not header_footer.enabled:
        return options

    font_size = header_footer.font_size or "9pt"
    options["display_header_footer"] = True
    options["header_template"] = (
        _header_template(title, font_size) if header_footer.show_title else "<span></span>"
    )
    options["footer_template"] = _footer_template(
        show_date=header_footer.show_date,
        show_page_numbers=header_footer.show_page_numbers,
        font_size=font_size,
    )
    margin["top"] = HEADER_FOOTER_MARGIN
    margin["bottom"] = HEADER_FOOTER_MARGIN
    return options


def export_pdf_document(
    text: str,
    output: Path,
    profile: RenderProfile,
    *,
    base_dir: Path,
    title: str,
    printer: PdfPrinter | None = None,
    probe: DependencyProbe | None = None,
    emitter: DiagnosticEmitter | None = None,
    runner: CommandRunner | None = None,
) -> Path:
    """Render ``text`` to HTML and print it to ``output`` as a PDF file."""
    if profile.output != "pdf":
        raise ExportError(
            f'Profile "{profile.name}" targets {profile.output} output, not pdf.'
        )
    emitter = ensure_emitter(emitter)
    document = render_html_document(
        text,
        profile,
        base_dir=base_dir,
        title=title,
        probe=probe,
        emitter=emitter,
        runner=runner,
    )
    output.parent.mkdir(parents=True, exist_ok=True)
    (printer or _PlaywrightManager.print_pdf)(
        document.html, output, pdf_options(profile, title=document.title)
    )
    emitter.event("export_written", {"format": "PDF", "path": str(output)})
    return output


__all__ = [
    "PLAYWRIGHT_INSTALL_HINT",
    "PdfPrinter",
    "export_pdf_document",
    "pdf_options",
]
