"""Terminal graphics capability detection and external tool probing."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
import importlib.util
import logging
import os
from pathlib import Path
import shutil
from threading import Lock

from .diagnostics import DiagnosticEmitter


logger = logging.getLogger(__name__)

MERMAID_CLI_HINT_PATHS: tuple[Path, ...] = (Path("/snap/bin/mmdc"),)
GRAPHICS_OVERRIDE_ENV = "MIXMARK_GRAPHICS"


class ProtocolVariant(str, Enum):
    """Terminal graphics protocol families."""

    INLINE = "inline"
    HELPER = "helper"
    SIXEL = "sixel"


def detect_capability(environ: Mapping[str, str] | None = None) -> ProtocolVariant:
    """Select the graphics protocol family from environment variables.

    ``MIXMARK_GRAPHICS`` forces a family. Otherwise iTerm2 uses its inline
    escape, WezTerm and kitty use ``kitty +kitten icat`` and every other
    terminal gets sixel output.
    """
    env = os.environ if environ is None else environ
    forced = (env.get(GRAPHICS_OVERRIDE_ENV) or "").strip().lower()
    if forced:
        try:
            return ProtocolVariant(forced)
        except ValueError:
            logger.debug("ignoring unknown %s value %r", GRAPHICS_OVERRIDE_ENV, forced)

    term_program = env.get("TERM_PROGRAM", "")
    if term_program == "iTerm.app":
        return ProtocolVariant.INLINE
    if term_program == "WezTerm" or env.get("KITTY_WINDOW_ID"):
        return ProtocolVariant.HELPER
    return ProtocolVariant.SIXEL


@dataclass(frozen=True, slots=True)
class DependencyStatus:
    """Availability of every optional external tool."""

    chafa: bool = False
    img2sixel: bool = False
    kitty: bool = False
    mermaid_cli: bool = False
    pandoc: bool = False
    playwright: bool = False

    @property
    def has_image_support(self) -> bool:
        return self.chafa or self.img2sixel or self.kitty


def resolve_cli(
    names: Sequence[str],
    hints: Sequence[Path] = (),
    *,
    which: Callable[[str], str | None] = shutil.which,
) -> str | None:
    """Return an executable path found on ``$PATH`` or at a known location."""
    for name in names:
        resolved = which(name)
        if resolved:
            return resolved
    for candidate in hints:
        if candidate.exists():
            return str(candidate)
    return None


def _playwright_installed() -> bool:
    return importlib.util.find_spec("playwright") is not None


class DependencyProbe:
    """Process-wide, lazily computed dependency status.

    The first call to :meth:`status` runs the probe under a lock; later calls
    return the cached value. Warnings issued through :meth:`warn_once` are
    tracked here as well so each missing tool is reported once per process.
    """

    def __init__(
        self,
        *,
        which: Callable[[str], str | None] = shutil.which,
        playwright_check: Callable[[], bool] = _playwright_installed,
    ) -> None:
        self._which = which
        self._playwright_check = playwright_check
        self._lock = Lock()
        self._status: DependencyStatus | None = None
        self._executables: dict[str, str | None] = {}
        self._warned: set[str] = set()
        self.probe_count = 0

    def status(self) -> DependencyStatus:
        with self._lock:
            if self._status is None:
                self._status = self._probe()
            return self._status

    def executable(self, tool: str) -> str | None:
        """Return the resolved path of a probed tool (``mmdc``, ``chafa``...)."""
        self.status()
        return self._executables.get(tool)

    def _probe(self) -> DependencyStatus:
        self.probe_count += 1
        found = {
            "chafa": resolve_cli(["chafa"], which=self._which),
            "img2sixel": resolve_cli(["img2sixel"], which=self._which),
            "kitty": resolve_cli(["kitty"], which=self._which),
            "mmdc": resolve_cli(["mmdc"], MERMAID_CLI_HINT_PATHS, which=self._which),
            "pandoc": resolve_cli(["pandoc"], which=self._which),
        }
        self._executables = found
        status = DependencyStatus(
            chafa=found["chafa"] is not None,
            img2sixel=found["img2sixel"] is not None,
            kitty=found["kitty"] is not None,
            mermaid_cli=found["mmdc"] is not None,
            pandoc=found["pandoc"] is not None,
            playwright=self._playwright_check(),
        )
        logger.debug("dependency probe: %s", status)
        return status

    def warn_once(self, key: str, message: str, emitter: DiagnosticEmitter | None) -> bool:
        """Emit ``message`` unless a warning for ``key`` was already issued."""
        with self._lock:
            if key in self._warned:
                return False
            self._warned.add(key)
        if emitter is not None:
            emitter.warning(message)
        else:
            logger.warning(message)
        return True

    def reset(self) -> None:
        """Forget the cached status and issued warnings."""
        with self._lock:
            self._status = None
            self._executables = {}
            self._warned.clear()


_DEFAULT_PROBE = DependencyProbe()


def get_probe() -> DependencyProbe:
    """Return the process-wide dependency probe."""
    return _DEFAULT_PROBE


def check_dependencies(probe: DependencyProbe | None = None) -> DependencyStatus:
    return (probe or _DEFAULT_PROBE).status()


__all__ = [
    "GRAPHICS_OVERRIDE_ENV",
    "MERMAID_CLI_HINT_PATHS",
    "DependencyProbe",
    "DependencyStatus",
    "ProtocolVariant",
    "check_dependencies",
    "detect_capability",
    "get_probe",
    "resolve_cli",
]
