"""Subprocess and scratch-file helpers shared by the external renderer adapters."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
import contextlib
from dataclasses import dataclass
import logging
import os
from pathlib import Path
import subprocess
import tempfile
from typing import Protocol

from mixmark.core.exceptions import TransformerExecutionError
from mixmark.core.user_dir import get_user_dir


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Captured outcome of an external command."""

    returncode: int
    stdout: bytes = b""
    stderr: bytes = b""

    @property
    def detail(self) -> str:
        text = self.stderr.decode("utf-8", errors="replace").strip()
        return text or self.stdout.decode("utf-8", errors="replace").strip()[:500]


class CommandRunner(Protocol):
    def __call__(
        self,
        command: Sequence[str],
        *,
        timeout: float,
        cwd: Path | None = None,
    ) -> CommandResult: ...


def subprocess_runner(
    command: Sequence[str],
    *,
    timeout: float,
    cwd: Path | None = None,
) -> CommandResult:
    """Run ``command`` and capture its output, translating launch failures."""
    name = Path(command[0]).name if command else "<empty>"
    logger.debug("running %s", " ".join(str(part) for part in command))
    try:
        completed = subprocess.run(
            list(command),
            check=False,
            capture_output=True,
            timeout=timeout,
            cwd=cwd,
        )
    except subprocess.TimeoutExpired as exc:
        raise TransformerExecutionError(f"{name} timed out after {timeout:g}s") from exc
    except OSError as exc:
        raise TransformerExecutionError(f"Failed to execute {name}: {exc}") from exc
    return CommandResult(completed.returncode, completed.stdout or b"", completed.stderr or b"")


def run_cli(
    command: Sequence[str],
    *,
    description: str,
    timeout: float = DEFAULT_TIMEOUT,
    cwd: Path | None = None,
    runner: CommandRunner | None = None,
) -> CommandResult:
    """Execute a local CLI, raising a transformer error on failure."""
    result = (runner or subprocess_runner)(command, timeout=timeout, cwd=cwd)
    if result.returncode != 0:
        message = f"{description} exited with status {result.returncode}"
        detail = result.detail
        if detail:
            message = f"{message}: {detail}"
        raise TransformerExecutionError(message)
    return result


def scratch_dir(*parts: str) -> Path:
    """Return (and create) a directory under the per-user scratch root."""
    return get_user_dir().scratch_dir(*parts)


def remove_file(path: Path | None) -> None:
    """Best-effort removal of a file."""
    if path is None:
        return
    with contextlib.suppress(OSError):
        path.unlink()


@contextlib.contextmanager
def temporary_file(
    content: str | bytes,
    *,
    suffix: str,
    prefix: str = "mixmark-",
    directory: Path | None = None,
) -> Iterator[Path]:
    """Write ``content`` to a uniquely named file that is removed on exit."""
    target_dir = directory or scratch_dir("tmp")
    target_dir.mkdir(parents=True, exist_ok=True)
    fd, name = tempfile.mkstemp(suffix=suffix, prefix=prefix, dir=target_dir)
    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(content.encode("utf-8") if isinstance(content, str) else content)
        yield path
    finally:
        remove_file(path)


__all__ = [
    "DEFAULT_TIMEOUT",
    "CommandResult",
    "CommandRunner",
    "remove_file",
    "run_cli",
    "scratch_dir",
    "subprocess_runner",
    "temporary_file",
]
