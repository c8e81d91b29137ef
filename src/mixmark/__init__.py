"""Render mixed-media Markdown to the terminal, PDF and ODT."""

from __future__ import annotations

from mixmark.api import Document, export_odt, export_pdf, render_terminal
from mixmark.core.capabilities import ProtocolVariant, check_dependencies, detect_capability
from mixmark.core.exceptions import (
    ConfigurationError,
    CorruptConfigError,
    DocumentReadError,
    ExportError,
    MixmarkError,
    ProfileNotFoundError,
)
from mixmark.core.profiles import (
    ConfigurationStore,
    RenderProfile,
    initialize_config,
    load_config,
    resolve_profile,
)
from mixmark.core.user_dir import configure_user_dir, get_user_dir, user_dir_context
from mixmark.version import get_version


__version__ = get_version()

__all__ = [
    "ConfigurationError",
    "ConfigurationStore",
    "CorruptConfigError",
    "Document",
    "DocumentReadError",
    "ExportError",
    "MixmarkError",
    "ProfileNotFoundError",
    "ProtocolVariant",
    "RenderProfile",
    "__version__",
    "check_dependencies",
    "configure_user_dir",
    "detect_capability",
    "export_odt",
    "export_pdf",
    "get_version",
    "get_user_dir",
    "initialize_config",
    "load_config",
    "render_terminal",
    "resolve_profile",
    "user_dir_context",
]
