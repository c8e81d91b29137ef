from __future__ import annotations

import base64
from pathlib import Path

import pytest

from mixmark.adapters.transformers.base import CommandResult
from mixmark.adapters.transformers.graphics import (
    MAX_OUTPUT_BYTES,
    chafa_command,
    img2sixel_command,
    kitty_command,
    render_image,
)
from mixmark.core.capabilities import ProtocolVariant
from mixmark.core.profiles import TerminalSettings, TransparencySettings

from conftest import SIXEL_PAYLOAD, FakeRunner, option_value


@pytest.fixture
def picture(tmp_path: Path) -> Path:
    path = tmp_path / "photo.png"
    path.write_bytes(b"\x89PNG\r\n\x1a\nfake")
    return path


def test_missing_file_yields_placeholder(tmp_path: Path) -> None:
    runner = FakeRunner()

    result = render_image(tmp_path / "nope.png", runner=runner)

    assert not result.ok
    assert result.payload == "[Image: nope.png - File not found]"
    assert runner.calls == []


def test_sixel_render_uses_chafa_with_fraction_of_columns(picture: Path) -> None:
    runner = FakeRunner()

    result = render_image(
        picture,
        alignment="left",
        width_percent=0.75,
        capability=ProtocolVariant.SIXEL,
        columns=81,
        runner=runner,
    )

    assert result.ok
    assert result.payload == SIXEL_PAYLOAD.decode()
    assert runner.calls == [
        ["chafa", "--format=sixels", "--align=left", "--size=60", str(picture)]
    ]


def test_transparency_flags_only_for_transparent_graphics(picture: Path) -> None:
    settings = TerminalSettings(transparency=TransparencySettings(enabled=True, threshold=0.5))

    preserved = chafa_command(
        picture, alignment="center", columns=40, preserve_transparency=True, settings=settings
    )
    opaque = chafa_command(
        picture, alignment="center", columns=40, preserve_transparency=False, settings=settings
    )
    disabled = chafa_command(
        picture,
        alignment="center",
        columns=40,
        preserve_transparency=True,
        settings=TerminalSettings(transparency=TransparencySettings(enabled=False)),
    )

    assert preserved[-4:-1] == ["--fg-only", "-t", "0.5"]
    assert "--fg-only" not in opaque
    assert "--fg-only" not in disabled


def test_img2sixel_backend_sizes_in_pixels(picture: Path) -> None:
    settings = TerminalSettings(backend="img2sixel", pixels_per_column=10)
    runner = FakeRunner()

    result = render_image(
        picture,
        width_percent=0.5,
        preserve_transparency=True,
        settings=settings,
        capability=ProtocolVariant.SIXEL,
        columns=100,
        runner=runner,
    )

    assert result.ok
    command = runner.calls[0]
    assert command[0] == "img2sixel"
    assert option_value(command, "-w") == "500"
    assert option_value(command, "-B") == "#00000000"
    assert command == img2sixel_command(
        picture, columns=50, preserve_transparency=True, settings=settings
    )


def test_encoder_failure_yields_placeholder(picture: Path) -> None:
    runner = FakeRunner(lambda command: CommandResult(1, b"", b"chafa: cannot load"))

    result = render_image(picture, capability=ProtocolVariant.SIXEL, columns=80, runner=runner)

    assert not result.ok
    assert result.payload == "[Image: photo.png - Chafa rendering failed]"


def test_malformed_output_is_a_failure(picture: Path) -> None:
    runner = FakeRunner(lambda command: CommandResult(0, b"not a graphic"))

    result = render_image(
        picture,
        settings=TerminalSettings(backend="img2sixel"),
        capability=ProtocolVariant.SIXEL,
        columns=80,
        runner=runner,
    )

    assert not result.ok
    assert result.reason == "img2sixel rendering failed"


def test_oversized_output_is_a_failure(picture: Path) -> None:
    runner = FakeRunner(lambda command: CommandResult(0, b"\x1b" * (MAX_OUTPUT_BYTES + 1)))

    result = render_image(picture, capability=ProtocolVariant.SIXEL, columns=80, runner=runner)

    assert not result.ok


def test_inline_protocol_is_composed_in_process(picture: Path) -> None:
    runner = FakeRunner()

    result = render_image(
        picture, width_percent=0.5, capability=ProtocolVariant.INLINE, columns=80, runner=runner
    )

    assert result.ok
    assert runner.calls == []
    assert result.payload.startswith("\x1b]1337;File=")
    assert "width=40;" in result.payload
    assert result.payload.endswith(base64.b64encode(picture.read_bytes()).decode() + "\x07")


def test_helper_protocol_falls_back_to_sixel(picture: Path) -> None:
    def handler(command: list[str]) -> CommandResult:
        if command[0] == "kitty":
            return CommandResult(1, b"", b"not a kitty terminal")
        return CommandResult(0, SIXEL_PAYLOAD)

    runner = FakeRunner(handler)

    result = render_image(picture, capability=ProtocolVariant.HELPER, columns=80, runner=runner)

    assert result.ok
    assert runner.programs() == ["kitty", "chafa"]
    assert runner.calls[0] == kitty_command(picture, alignment="center")


def test_helper_and_sixel_failures_name_both_encoders(picture: Path) -> None:
    runner = FakeRunner(lambda command: CommandResult(1, b"", b"unsupported"))

    result = render_image(picture, capability=ProtocolVariant.HELPER, columns=80, runner=runner)

    assert not result.ok
    assert runner.programs() == ["kitty", "chafa"]
    assert result.reason == "kitty icat and Chafa rendering failed"
