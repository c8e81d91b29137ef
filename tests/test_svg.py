from __future__ import annotations

from pathlib import Path
from typing import Any

from mixmark.adapters.transformers.graphics import GraphicResult
from mixmark.adapters.transformers.svg import (
    XML_DECLARATION,
    extract_svg,
    render_embedded_svg,
    sanitize_svg,
    standalone_svg,
)


def test_extract_svg_from_wrapping_container() -> None:
    html = '<div align="center">\n<svg width="10"><rect/></svg>\n</div>'

    assert extract_svg(html) == '<svg width="10"><rect/></svg>'
    assert extract_svg("<div>no graphics</div>") is None


def test_sanitize_svg_escapes_bare_ampersands_in_text() -> None:
    svg = "<svg><text>R&D</text><text>Q&amp;A</text></svg>"

    assert sanitize_svg(svg) == "<svg><text>R&amp;D</text><text>Q&amp;A</text></svg>"


def test_standalone_svg_adds_declaration_once() -> None:
    assert standalone_svg("<svg/>") == XML_DECLARATION + "<svg/>"
    assert standalone_svg(XML_DECLARATION + "<svg/>") == XML_DECLARATION.strip() + "\n<svg/>"


def test_invalid_markup_returns_warning_line() -> None:
    result = render_embedded_svg("<g></g>")

    assert not result.ok
    assert "\x1b[33m" in result.payload
    assert "Invalid SVG content" in result.payload


def test_temporary_file_is_removed_after_render(tmp_path: Path) -> None:
    workdir = tmp_path / "svg"
    seen: dict[str, Any] = {}

    def fake_render(path: Path, **options: Any) -> GraphicResult:
        seen["path"] = path
        seen["content"] = path.read_text(encoding="utf-8")
        seen["options"] = options
        return GraphicResult("\x1bPq~\x1b\\", ok=True)

    result = render_embedded_svg(
        "<svg><circle r='4'/></svg>",
        alignment="right",
        width_percent=0.5,
        render=fake_render,
        directory=workdir,
        columns=80,
    )

    assert result.ok
    assert seen["content"].startswith("<?xml")
    assert seen["options"] == {"alignment": "right", "width_percent": 0.5, "columns": 80}
    assert not seen["path"].exists()
    assert list(workdir.iterdir()) == []
