"""CLI command implementations exposed via `mixmark.ui.cli`."""

from __future__ import annotations

from .check import check
from .config import config_app
from .export import odt, pdf
from .view import view


__all__ = ["check", "config_app", "odt", "pdf", "view"]
