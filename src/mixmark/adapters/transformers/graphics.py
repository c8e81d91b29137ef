"""Terminal graphics encoding through chafa, img2sixel, kitty or the iTerm2 escape."""

from __future__ import annotations

import base64
from dataclasses import dataclass
import logging
from pathlib import Path

from mixmark.core.capabilities import ProtocolVariant, detect_capability
from mixmark.core.exceptions import TransformerExecutionError
from mixmark.core.profiles import Alignment, TerminalSettings
from mixmark.core.sizing import columns_for_width, pixels_for_columns, terminal_columns

from .base import DEFAULT_TIMEOUT, CommandRunner, run_cli


logger = logging.getLogger(__name__)

MAX_OUTPUT_BYTES = 50 * 1024 * 1024
ESC = "\x1b"


@dataclass(frozen=True, slots=True)
class GraphicResult:
    """Encoded graphic or a bracketed textual placeholder."""

    payload: str
    ok: bool
    reason: str | None = None


def image_placeholder(name: str, reason: str) -> str:
    return f"[Image: {name} - {reason}]"


def _failure(path: Path, reason: str) -> GraphicResult:
    return GraphicResult(image_placeholder(path.name, reason), ok=False, reason=reason)


def _check_output(raw: bytes, label: str) -> str:
    if len(raw) > MAX_OUTPUT_BYTES:
        raise TransformerExecutionError(f"{label} output exceeds {MAX_OUTPUT_BYTES // (1024 * 1024)} MiB")
    payload = raw.decode("utf-8", errors="replace")
    if not payload.startswith(ESC):
        raise TransformerExecutionError(f"{label} produced no terminal graphics")
    return payload


def encode_inline(path: Path, columns: int) -> str:
    """Compose the iTerm2 ``OSC 1337`` inline image escape."""
    data = path.read_bytes()
    if len(data) * 4 // 3 > MAX_OUTPUT_BYTES:
        raise TransformerExecutionError("image is too large for inline display")
    name = base64.b64encode(path.name.encode("utf-8")).decode("ascii")
    body = base64.b64encode(data).decode("ascii")
    return f"{ESC}]1337;File=name={name};width={columns};inline=1:{body}\x07"


def chafa_command(
    path: Path,
    *,
    alignment: Alignment,
    columns: int,
    preserve_transparency: bool,
    settings: TerminalSettings,
) -> list[str]:
    command = ["chafa", "--format=sixels", f"--align={alignment}", f"--size={columns}"]
    if preserve_transparency and settings.transparency.enabled:
        command.extend(["--fg-only", "-t", f"{settings.transparency.threshold:g}"])
    command.append(str(path))
    return command


def img2sixel_command(
    path: Path,
    *,
    columns: int,
    preserve_transparency: bool,
    settings: TerminalSettings,
) -> list[str]:
    command = ["img2sixel", "-w", str(pixels_for_columns(columns, settings.pixels_per_column))]
    if preserve_transparency and settings.transparency.enabled:
        command.extend(["-B", "#00000000"])
    command.append(str(path))
    return command


def kitty_command(path: Path, *, alignment: Alignment) -> list[str]:
    return ["kitty", "+kitten", "icat", "--align", alignment, str(path)]


def _encode(command: list[str], label: str, runner: CommandRunner | None) -> str:
    result = run_cli(command, description=label, timeout=DEFAULT_TIMEOUT, runner=runner)
    return _check_output(result.stdout, label)


def _encode_sixel(
    path: Path,
    *,
    alignment: Alignment,
    columns: int,
    preserve_transparency: bool,
    settings: TerminalSettings,
    runner: CommandRunner | None,
) -> str:
    if settings.backend == "img2sixel":
        command = img2sixel_command(
            path, columns=columns, preserve_transparency=preserve_transparency, settings=settings
        )
        return _encode(command, "img2sixel", runner)
    command = chafa_command(
        path,
        alignment=alignment,
        columns=columns,
        preserve_transparency=preserve_transparency,
        settings=settings,
    )
    return _encode(command, "Chafa", runner)


def render_image(
    path: Path | str,
    *,
    alignment: Alignment = "center",
    width_percent: float = 0.75,
    preserve_transparency: bool = False,
    settings: TerminalSettings | None = None,
    capability: ProtocolVariant | None = None,
    columns: int | None = None,
    runner: CommandRunner | None = None,
) -> GraphicResult:
    """Encode an image file for the current terminal.

    Failures never raise: a missing file, a failing or absent encoder, or
    output that is oversized or not a terminal escape all produce an
    ``[Image: <name> - <reason>]`` placeholder with ``ok=False``.
    """
    image = Path(path)
    settings = settings or TerminalSettings()
    if not image.is_file():
        return _failure(image, "File not found")

    capability = capability or detect_capability()
    available = columns if columns is not None else terminal_columns(settings.fallback_columns)
    target_columns = columns_for_width(available, width_percent)
    sixel_options = {
        "alignment": alignment,
        "columns": target_columns,
        "preserve_transparency": preserve_transparency,
        "settings": settings,
        "runner": runner,
    }

    helper_error: TransformerExecutionError | None = None
    try:
        if capability is ProtocolVariant.INLINE:
            payload = encode_inline(image, target_columns)
        elif capability is ProtocolVariant.HELPER:
            try:
                payload = _encode(kitty_command(image, alignment=alignment), "kitty icat", runner)
            except TransformerExecutionError as exc:
                logger.debug("kitty icat failed, falling back to sixel: %s", exc)
                helper_error = exc
                payload = _encode_sixel(image, **sixel_options)
        else:
            payload = _encode_sixel(image, **sixel_options)
    except (TransformerExecutionError, OSError) as exc:
        logger.debug("graphics encoding failed for %s", image, exc_info=exc)
        if capability is ProtocolVariant.INLINE:
            label = "Inline image"
        else:
            label = "Chafa" if settings.backend == "chafa" else "img2sixel"
            if helper_error is not None:
                label = f"kitty icat and {label}"
        return _failure(image, f"{label} rendering failed")

    return GraphicResult(payload, ok=True)


__all__ = [
    "MAX_OUTPUT_BYTES",
    "GraphicResult",
    "chafa_command",
    "encode_inline",
    "image_placeholder",
    "img2sixel_command",
    "kitty_command",
    "render_image",
]
