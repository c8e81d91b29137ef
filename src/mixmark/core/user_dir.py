"""Centralised resolution of the mixmark configuration and scratch directories."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
import os
from pathlib import Path
import tempfile
from threading import RLock


__all__ = [
    "CONFIG_FILENAME",
    "MixmarkUserDir",
    "configure_user_dir",
    "get_user_dir",
    "set_user_dir",
    "user_dir_context",
]

CONFIG_FILENAME = "config.json"

_USER_DIR: MixmarkUserDir | None = None
_LOCK: RLock = RLock()


def _resolve_root(root: str | Path | None) -> tuple[Path, bool]:
    if root is not None:
        return Path(root).expanduser(), True
    env_root = os.environ.get("MIXMARK_HOME")
    if env_root:
        return Path(env_root).expanduser(), True
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config).expanduser() / "mixmark", False
    return Path.home() / ".config" / "mixmark", False


def _resolve_scratch_root(scratch_root: str | Path | None) -> tuple[Path, bool]:
    if scratch_root is not None:
        return Path(scratch_root).expanduser(), True
    env_scratch = os.environ.get("MIXMARK_SCRATCH_DIR")
    if env_scratch:
        return Path(env_scratch).expanduser(), True
    return Path(tempfile.gettempdir()) / "mixmark", False


@dataclass(slots=True)
class MixmarkUserDir:
    """Resolved configuration and scratch roots plus helpers to manage them."""

    root: Path
    scratch_root: Path
    root_is_explicit: bool = False
    scratch_is_explicit: bool = False

    @property
    def config_path(self) -> Path:
        """Location of the persisted configuration document."""
        return self.root / CONFIG_FILENAME

    def scratch_dir(self, *parts: str | Path, create: bool = True) -> Path:
        """Return a directory under the scratch root, creating it when requested."""
        target = self.scratch_root.joinpath(*parts)
        if create:
            target.mkdir(parents=True, exist_ok=True)
        return target


def configure_user_dir(
    *,
    root: str | Path | None = None,
    scratch_root: str | Path | None = None,
) -> MixmarkUserDir:
    """Replace the global user dir singleton with a freshly resolved instance."""
    user_root, root_was_explicit = _resolve_root(root)
    resolved_scratch, scratch_was_explicit = _resolve_scratch_root(scratch_root)
    return set_user_dir(
        MixmarkUserDir(
            root=user_root,
            scratch_root=resolved_scratch,
            root_is_explicit=root_was_explicit,
            scratch_is_explicit=scratch_was_explicit,
        )
    )


def get_user_dir() -> MixmarkUserDir:
    """Return the lazily created user dir singleton."""
    global _USER_DIR
    with _LOCK:
        if _USER_DIR is None:
            _USER_DIR = configure_user_dir()
            return _USER_DIR
        current_root, root_was_explicit = _resolve_root(None)
        current_scratch, scratch_was_explicit = _resolve_scratch_root(None)
        if (not _USER_DIR.root_is_explicit and _USER_DIR.root != current_root) or (
            not _USER_DIR.scratch_is_explicit and _USER_DIR.scratch_root != current_scratch
        ):
            _USER_DIR = MixmarkUserDir(
                root=current_root,
                scratch_root=current_scratch,
                root_is_explicit=root_was_explicit,
                scratch_is_explicit=scratch_was_explicit,
            )
        return _USER_DIR


def set_user_dir(user_dir: MixmarkUserDir) -> MixmarkUserDir:
    """Replace the current user dir singleton and return it."""
    global _USER_DIR
    with _LOCK:
        _USER_DIR = user_dir
        return _USER_DIR


@contextmanager
def user_dir_context(
    *,
    root: str | Path | None = None,
    scratch_root: str | Path | None = None,
) -> Iterator[MixmarkUserDir]:
    """Temporarily override the global user dir singleton."""
    global _USER_DIR
    with _LOCK:
        previous = _USER_DIR
    current = configure_user_dir(root=root, scratch_root=scratch_root)
    try:
        yield current
    finally:
        with _LOCK:
            _USER_DIR = previous
