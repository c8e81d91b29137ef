"""Terminal sizing helpers shared by the graphics adapters."""

from __future__ import annotations

import math
import re
import shutil


PIXELS_PER_ROW = 6
DEFAULT_ROW_ESTIMATE = 5

# Sixel raster attributes: `"Pan;Pad;Ph;Pv`
_SIXEL_RASTER = re.compile(r'"\d+;\d+;(\d+);(\d+)')
_HEIGHT_FIELD = re.compile(r"(?<![a-z])height=(\d+)(px)?", re.IGNORECASE)


def columns_for_width(terminal_columns: int, width_percent: float) -> int:
    """Return the column width for a fraction of the terminal, never below 1."""
    if terminal_columns <= 0 or width_percent <= 0:
        return 1
    return max(1, math.floor(terminal_columns * width_percent))


def diagram_columns(
    scale: str | float,
    *,
    available: int,
    diagram_width: int,
    pixels_per_column: int,
    image_scaling: float,
) -> int:
    """Return the columns a compiled diagram occupies for a Mermaid ``scale``.

    ``"fit"`` sizes the diagram to ``image_scaling`` of the terminal. A number
    multiplies the configured diagram width, and ``"none"`` keeps it as
    rendered. Results never exceed the available columns.
    """
    if scale == "fit":
        return columns_for_width(available, image_scaling)
    factor = 1.0 if scale == "none" else float(scale)
    pixels = math.floor(diagram_width * factor)
    columns = math.ceil(pixels / max(1, pixels_per_column))
    return max(1, min(columns, max(1, available)))


def pixels_for_columns(columns: int, pixels_per_column: int) -> int:
    return max(1, columns) * max(1, pixels_per_column)


def estimate_row_height(encoded: str | bytes) -> int:
    """Estimate the rows a graphic occupies from its protocol metadata.

    Only the sixel raster header and ``height=`` fields of the inline and
    helper protocols are understood. Anything else yields
    :data:`DEFAULT_ROW_ESTIMATE`.
    """
    if isinstance(encoded, bytes):
        encoded = encoded.decode("latin-1", errors="ignore")

    match = _SIXEL_RASTER.search(encoded)
    if match:
        height = int(match.group(2))
    else:
        match = _HEIGHT_FIELD.search(encoded)
        if not match:
            return DEFAULT_ROW_ESTIMATE
        height = int(match.group(1))

    if height <= 0:
        return DEFAULT_ROW_ESTIMATE
    return max(1, math.ceil(height / PIXELS_PER_ROW))


def terminal_columns(fallback: int = 80) -> int:
    """Return the current terminal width, or ``fallback`` when it is unknown."""
    size = shutil.get_terminal_size(fallback=(fallback, 24))
    return size.columns if size.columns > 0 else fallback


__all__ = [
    "DEFAULT_ROW_ESTIMATE",
    "PIXELS_PER_ROW",
    "columns_for_width",
    "diagram_columns",
    "estimate_row_height",
    "pixels_for_columns",
    "terminal_columns",
]
