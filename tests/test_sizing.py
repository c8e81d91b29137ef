from __future__ import annotations

import os

import pytest

from mixmark.core import sizing
from mixmark.core.sizing import (
    DEFAULT_ROW_ESTIMATE,
    columns_for_width,
    diagram_columns,
    estimate_row_height,
    pixels_for_columns,
    terminal_columns,
)


@pytest.mark.parametrize(
    ("columns", "fraction", "expected"),
    [
        (100, 0.75, 75),
        (81, 0.75, 60),
        (80, 1.0, 80),
        (10, 0.01, 1),
        (1, 0.5, 1),
        (0, 0.5, 1),
    ],
)
def test_columns_for_width(columns: int, fraction: float, expected: int) -> None:
    assert columns_for_width(columns, fraction) == expected


@pytest.mark.parametrize(
    ("scale", "available", "expected"),
    [
        ("fit", 120, 90),
        ("none", 120, 100),
        ("none", 60, 60),
        (0.5, 120, 50),
        (2, 120, 120),
    ],
)
def test_diagram_columns_follow_mermaid_scale(scale, available: int, expected: int) -> None:
    columns = diagram_columns(
        scale, available=available, diagram_width=800, pixels_per_column=8, image_scaling=0.75
    )

    assert columns == expected


def test_pixels_for_columns_uses_pixels_per_column() -> None:
    assert pixels_for_columns(60, 8) == 480
    assert pixels_for_columns(0, 8) == 8


def test_estimate_row_height_reads_sixel_raster() -> None:
    payload = '\x1bPq"1;1;320;120#0;2;0;0;0#0~~\x1b\\'

    assert estimate_row_height(payload) == 20
    assert estimate_row_height(payload.encode("latin-1")) == 20


def test_estimate_row_height_reads_height_fields() -> None:
    assert estimate_row_height("\x1b]1337;File=inline=1;height=13:AAAA\x07") == 3


def test_estimate_row_height_defaults_without_metadata() -> None:
    assert estimate_row_height("\x1bPq#0~~\x1b\\") == DEFAULT_ROW_ESTIMATE
    assert estimate_row_height(b"") == DEFAULT_ROW_ESTIMATE


def test_estimate_row_height_is_monotonic() -> None:
    heights = [estimate_row_height(f'\x1bPq"1;1;10;{px}#0~') for px in range(1, 200, 7)]

    assert heights == sorted(heights)


def test_terminal_columns_falls_back(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        sizing.shutil,
        "get_terminal_size",
        lambda fallback: os.terminal_size((0, 24)),
    )

    assert terminal_columns(72) == 72
