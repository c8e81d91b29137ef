from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
import logging
from pathlib import Path
from typing import Any

import pytest

from mixmark.adapters.transformers.base import CommandResult
from mixmark.core.capabilities import DependencyProbe
from mixmark.core.user_dir import user_dir_context


SIXEL_PAYLOAD = b'\x1bPq"1;1;160;96#0;2;0;0;0#0~~~~\x1b\\'


class RecordingEmitter:
    debug_enabled = False

    def __init__(self) -> None:
        self.warnings: list[str] = []
        self.errors: list[str] = []
        self.events: list[tuple[str, dict[str, Any]]] = []

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        self.warnings.append(message)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        self.errors.append(message)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        self.events.append((name, dict(payload)))


class FakeRunner:
    """Command runner double recording every invocation."""

    def __init__(
        self, handler: Callable[[list[str]], CommandResult] | None = None
    ) -> None:
        self.handler = handler
        self.calls: list[list[str]] = []
        self.cwds: list[Path | None] = []

    def __call__(
        self, command: Sequence[str], *, timeout: float, cwd: Path | None = None
    ) -> CommandResult:
        self.calls.append([str(part) for part in command])
        self.cwds.append(cwd)
        if self.handler is not None:
            return self.handler(self.calls[-1])
        return CommandResult(0, SIXEL_PAYLOAD)

    def programs(self) -> list[str]:
        return [Path(call[0]).name for call in self.calls]


def option_value(command: Sequence[str], flag: str) -> str:
    return command[list(command).index(flag) + 1]


def mmdc_writes_output(command: list[str]) -> CommandResult:
    """Behave like mmdc: write the requested output file."""
    if Path(command[0]).name == "mmdc":
        output = Path(option_value(command, "-o"))
        output.write_text("<svg xmlns='http://www.w3.org/2000/svg'></svg>", encoding="utf-8")
        return CommandResult(0)
    return CommandResult(0, SIXEL_PAYLOAD)


def make_probe(available: Iterable[str] = (), *, playwright: bool = False) -> DependencyProbe:
    tools = set(available)

    def which(name: str) -> str | None:
        return f"/usr/bin/{name}" if name in tools else None

    return DependencyProbe(which=which, playwright_check=lambda: playwright)


@pytest.fixture(autouse=True)
def isolated_user_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    for name in ("MIXMARK_HOME", "MIXMARK_SCRATCH_DIR", "MIXMARK_GRAPHICS", "KITTY_WINDOW_ID"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("TERM_PROGRAM", "xterm")
    with user_dir_context(root=tmp_path / "config", scratch_root=tmp_path / "scratch"):
        yield tmp_path


@pytest.fixture
def emitter() -> RecordingEmitter:
    return RecordingEmitter()


@pytest.fixture(autouse=True)
def restore_package_logger() -> Iterator[None]:
    logger = logging.getLogger("mixmark")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers = handlers
    logger.setLevel(level)
    logger.propagate = propagate
