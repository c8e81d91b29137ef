"""Custom exception hierarchy for the mixed-media rendering pipeline."""

from __future__ import annotations

from collections.abc import Iterable


class MixmarkError(RuntimeError):
    """Base exception for rendering failures."""


class ConfigurationError(MixmarkError):
    """Raised when the persisted configuration cannot be used."""


class CorruptConfigError(ConfigurationError):
    """Raised when the configuration file exists but cannot be parsed or validated."""


class ProfileNotFoundError(ConfigurationError, LookupError):
    """Raised when a render profile is requested by an unknown name."""

    def __init__(self, name: str, available: Iterable[str]) -> None:
        self.name = name
        self.available = list(available)
        listing = ", ".join(self.available) or "<none>"
        super().__init__(f'Profile "{name}" not found. Available profiles: {listing}')


class TransformerExecutionError(MixmarkError):
    """Raised when an external converter fails to execute properly."""


class ExportError(MixmarkError):
    """Raised when a document export cannot be produced."""


class DocumentReadError(MixmarkError):
    """Raised when the input document cannot be read."""


def exception_messages(exc: BaseException) -> list[str]:
    """Return the collected message chain for an exception and its causes."""
    messages: list[str] = []
    visited: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        text = str(current).strip()
        if text:
            first_line = text.splitlines()[0].strip()
            if first_line:
                messages.append(first_line)
        current = current.__cause__ or current.__context__
    return messages


def exception_hint(exc: BaseException) -> str | None:
    """Return the most specific message available for an exception chain."""
    messages = exception_messages(exc)
    return messages[-1] if messages else None


__all__ = [
    "ConfigurationError",
    "CorruptConfigError",
    "DocumentReadError",
    "ExportError",
    "MixmarkError",
    "ProfileNotFoundError",
    "TransformerExecutionError",
    "exception_hint",
    "exception_messages",
]
