from __future__ import annotations

import io
from pathlib import Path

import pytest

from mixmark.core.scanner import (
    BlockScanner,
    CollectingSink,
    GraphicBlock,
    LookaheadPolicy,
    ScanMode,
    ScanState,
    StreamSink,
    StyledText,
    find_vector_block,
    split_vector_block,
)

from conftest import RecordingEmitter


class RecordingTarget:
    """Target that labels every segment so tests can read the dispatch order."""

    def __init__(self, *, fail_diagrams: bool = False, fail_images: bool = False) -> None:
        self.fail_diagrams = fail_diagrams
        self.fail_images = fail_images
        self.images: list[tuple[Path, str]] = []

    def render_text(self, markup: str) -> StyledText:
        return StyledText(markup)

    def render_diagram(self, source: str) -> GraphicBlock:
        if self.fail_diagrams:
            raise RuntimeError("compiler exploded")
        return GraphicBlock(f"<diagram:{source.strip()}>", "diagram", source)

    def render_image(self, path: Path, alt: str) -> GraphicBlock:
        if self.fail_images:
            raise OSError("unreadable")
        self.images.append((path, alt))
        return GraphicBlock(f"<image:{alt}>", "image", str(path))

    def render_svg(self, svg: str) -> GraphicBlock:
        return GraphicBlock(f"<svg:{len(svg)}>", "svg", svg)

    def external_image(self, alt: str, src: str) -> StyledText:
        return StyledText(f"[external {src}]")

    def missing_image(self, alt: str, src: str) -> StyledText:
        return StyledText(f"[missing {src}]")

    def diagram_failure(self, source: str, exc: BaseException) -> StyledText:
        return StyledText(f"[diagram failed: {exc}]")

    def graphic_failure(self, kind: str, label: str, exc: BaseException) -> StyledText:
        return StyledText(f"[{kind} failed: {label}]")


def _scan(text: str, target: RecordingTarget | None = None, **kwargs) -> list:
    sink = CollectingSink()
    BlockScanner(target or RecordingTarget(), **kwargs).scan(text, sink)
    return sink.segments


def _kinds(segments: list) -> list[str]:
    return ["text" if isinstance(item, StyledText) else item.kind for item in segments]


def test_segments_follow_document_order(tmp_path: Path) -> None:
    (tmp_path / "pic.png").write_bytes(b"png")
    text = (
        "# Title\n"
        "```mermaid\ngraph TD\nA-->B\n```\n"
        "between\n"
        "![Picture](pic.png)\n"
        "<svg><rect/></svg>\n"
        "tail\n"
    )

    segments = _scan(text, base_dir=tmp_path)

    assert _kinds(segments) == ["text", "diagram", "text", "image", "svg", "text"]
    assert segments[0].text == "# Title\n"
    assert segments[1].payload == "<diagram:graph TD\nA-->B>"
    assert segments[2].text == "between\n"
    assert segments[5].text == "tail\n"


def test_code_fence_content_is_opaque(tmp_path: Path) -> None:
    (tmp_path / "y.png").write_bytes(b"png")
    target = RecordingTarget()
    text = "```text\n![x](y.png)\n<svg><rect/></svg>\n```mermaid\n```\n"

    segments = _scan(text, target, base_dir=tmp_path)

    assert _kinds(segments) == ["text"]
    assert segments[0].text == text
    assert target.images == []


def test_unclosed_code_fence_swallows_the_rest_as_text() -> None:
    segments = _scan("```python\nprint(1)\n![a](b.png)\n<svg><g/></svg>\n")

    assert _kinds(segments) == ["text"]


def test_diagram_fence_requires_exact_marker() -> None:
    segments = _scan("```mermaidx\ngraph TD\n```\n```  mermaid\ngraph LR\n```\n")

    assert _kinds(segments) == ["text", "diagram"]
    assert "graph TD" in segments[0].text
    assert segments[1].payload == "<diagram:graph LR>"


def test_unclosed_diagram_fence_is_emitted_as_text() -> None:
    segments = _scan("intro\n```mermaid\ngraph TD\nA-->B\n")

    assert _kinds(segments) == ["text"]
    assert segments[0].text == "intro\n```mermaid\ngraph TD\nA-->B\n"


def test_whitespace_only_runs_are_not_flushed() -> None:
    segments = _scan("\n\n```mermaid\nA\n```\n\n   \n```mermaid\nB\n```\n\n")

    assert _kinds(segments) == ["diagram", "diagram"]


def test_state_exclusivity_during_scan() -> None:
    observed: list[tuple[bool, bool]] = []

    class Watcher(RecordingTarget):
        def render_text(self, markup: str) -> StyledText:
            observed.append((scanner.state.in_code_fence, scanner.state.in_diagram_fence))
            return super().render_text(markup)

        def render_diagram(self, source: str) -> GraphicBlock:
            observed.append((scanner.state.in_code_fence, scanner.state.in_diagram_fence))
            return super().render_diagram(source)

    scanner = BlockScanner(Watcher())
    scanner.scan("a\n```py\nx\n```\n```mermaid\nA\n```\nb\n", CollectingSink())

    assert observed
    assert all(not (code and diagram) for code, diagram in observed)
    assert scanner.state.mode is ScanMode.TEXT


def test_svg_without_closing_tag_falls_back_to_text() -> None:
    lines = ["<svg width='10'>"] + [f"line {n}" for n in range(150)] + ["</svg>"]
    segments = _scan("\n".join(lines) + "\n")

    assert _kinds(segments) == ["text"]
    assert segments[0].text.startswith("<svg width='10'>\nline 0\n")


def test_lookahead_window_is_configurable() -> None:
    text = "<svg>\n<g/>\n<g/>\n<g/>\n</svg>\n"

    assert _kinds(_scan(text)) == ["svg"]
    assert _kinds(_scan(text, lookahead=LookaheadPolicy(max_lines=3))) == ["text"]


def test_svg_inside_container_consumes_the_wrapper() -> None:
    text = '<div align="center">\n<svg><rect/></svg>\n</div>\nafter\n'

    segments = _scan(text)

    assert _kinds(segments) == ["svg", "text"]
    assert segments[0].source == "<svg><rect/></svg>"
    assert segments[1].text == "after\n"


def test_text_around_inline_svg_is_kept() -> None:
    text = "Legend: <svg><rect/></svg> see above\nnext\n"

    segments = _scan(text)

    assert _kinds(segments) == ["text", "svg", "text"]
    assert segments[0].text == "Legend:\n"
    assert segments[1].source == "<svg><rect/></svg>"
    assert segments[2].text == "see above\nnext\n"


def test_split_vector_block_keeps_wrapper_with_markup() -> None:
    assert split_vector_block('pre <div class="c">\n<svg/></svg>\n</div> post') == (
        "pre ",
        '<div class="c">\n<svg/></svg>\n</div>',
        " post",
    )
    assert split_vector_block("no graphics here") is None


def test_find_vector_block_bounds() -> None:
    policy = LookaheadPolicy(max_lines=100, container_lines=5)

    assert find_vector_block(["<svg/></svg>"], 0, policy) == 0
    assert find_vector_block(["<div>", "<svg>", "</svg>", "x", "</div>"], 0, policy) == 4
    assert find_vector_block(["<div>", "<svg>", "</svg>"], 0, policy) is None
    assert find_vector_block(["<div>", "text"], 0, policy) is None
    assert find_vector_block(["plain"], 0, policy) is None


def test_image_lines_dispatch_by_source(tmp_path: Path) -> None:
    (tmp_path / "here.png").write_bytes(b"png")
    target = RecordingTarget()
    text = (
        "![Local](here.png)\n"
        "![Angle](<here.png>)\n"
        "![Remote](https://example.com/a.png)\n"
        "![Gone](missing.png)\n"
        "inline ![not alone](here.png) text\n"
    )

    segments = _scan(text, target, base_dir=tmp_path)

    assert _kinds(segments) == ["image", "image", "text", "text", "text"]
    assert target.images == [(tmp_path / "here.png", "Local"), (tmp_path / "here.png", "Angle")]
    assert segments[2].text == "[external https://example.com/a.png]"
    assert segments[3].text == "[missing missing.png]"
    assert segments[4].text.startswith("inline ![not alone]")


def test_block_failures_become_inline_output(tmp_path: Path) -> None:
    (tmp_path / "pic.png").write_bytes(b"png")
    emitter = RecordingEmitter()
    target = RecordingTarget(fail_diagrams=True, fail_images=True)

    segments = _scan(
        "```mermaid\nA\n```\n![Pic](pic.png)\nafter\n",
        target,
        base_dir=tmp_path,
        emitter=emitter,
    )

    assert [getattr(item, "text", None) for item in segments] == [
        "[diagram failed: compiler exploded]",
        "[image failed: Pic]",
        "after\n",
    ]
    assert emitter.warnings == ["Mermaid diagram failed: compiler exploded"]


def test_stream_sink_writes_text_before_slow_graphics() -> None:
    stream = io.StringIO()

    class Slow(RecordingTarget):
        def render_diagram(self, source: str) -> GraphicBlock:
            assert stream.getvalue() == "before\n"
            return super().render_diagram(source)

    count = BlockScanner(Slow()).scan("before\n```mermaid\nA\n```\nafter\n", StreamSink(stream))

    assert count == 3
    assert stream.getvalue() == "before\n\n<diagram:A>\nafter\n"


def test_scan_state_take_helpers() -> None:
    state = ScanState()
    state.text_lines.extend(["a", ""])
    state.diagram_lines.extend(["graph TD", "A-->B"])

    assert state.take_text() == "a\n\n"
    assert state.take_diagram() == "graph TD\nA-->B\n"
    assert state.text_lines == [] and state.diagram_lines == []


@pytest.mark.parametrize("source", ["", "\n", "\n\n\n"])
def test_empty_documents_emit_nothing(source: str) -> None:
    assert _scan(source) == []
