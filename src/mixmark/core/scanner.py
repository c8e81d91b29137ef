"""Single-pass block scanner interleaving rendered text with graphics.

The scanner walks a Markdown document line by line. Ordinary lines are
accumulated and handed to the target's markup engine in runs; fenced Mermaid
diagrams, standalone image lines and inline ``<svg>`` blocks are detected in
the raw source and dispatched to the target in place. Text pending before a
graphic is always flushed first, so segments come out in document order.

Lines are classified in this order:

1. fence delimiters (```` ``` ````) open or close code and diagram fences;
2. lines inside a diagram fence feed the diagram body;
3. lines inside a code fence are kept verbatim as text;
4. ``<svg`` openers (optionally inside a ``<div``) trigger a bounded lookahead
   for the closing tags;
5. a line holding nothing but ``![alt](src)`` is an image;
6. anything else is text.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from enum import Enum
import logging
from pathlib import Path
import re
from typing import Literal, Protocol, TextIO, Union

from mixmark.adapters.transformers.svg import extract_svg

from .diagnostics import DiagnosticEmitter, ensure_emitter


logger = logging.getLogger(__name__)

FENCE = "```"
DIAGRAM_MARKER = "mermaid"
EXTERNAL_PREFIXES = ("http://", "https://", "//")

_FENCE_LANGUAGE = re.compile(r"^```\s*([\w+#.-]+)?")
_IMAGE_LINE = re.compile(r"^\s*!\[([^\]]*)\]\(([^)]+)\)\s*$")
_SVG_OPEN = re.compile(r"<svg\b", re.IGNORECASE)
_SVG_CLOSE = re.compile(r"</svg\s*>", re.IGNORECASE)
_DIV_OPEN = re.compile(r"<div\b", re.IGNORECASE)
_DIV_CLOSE = re.compile(r"</div\s*>", re.IGNORECASE)
_VECTOR_BLOCK = re.compile(
    r"(<div\b[^>]*>\s*)?<svg\b[\s\S]*?</svg\s*>(\s*</div\s*>)?", re.IGNORECASE
)


class ScanMode(Enum):
    TEXT = "text"
    CODE_FENCE = "code"
    DIAGRAM_FENCE = "diagram"


@dataclass(slots=True)
class ScanState:
    """Mutable state of one render pass."""

    index: int = 0
    mode: ScanMode = ScanMode.TEXT
    fence_language: str | None = None
    fence_line: str = ""
    diagram_lines: list[str] = field(default_factory=list)
    text_lines: list[str] = field(default_factory=list)

    @property
    def in_code_fence(self) -> bool:
        return self.mode is ScanMode.CODE_FENCE

    @property
    def in_diagram_fence(self) -> bool:
        return self.mode is ScanMode.DIAGRAM_FENCE

    def take_text(self) -> str:
        text = "".join(f"{line}\n" for line in self.text_lines)
        self.text_lines.clear()
        return text

    def take_diagram(self) -> str:
        body = "".join(f"{line}\n" for line in self.diagram_lines)
        self.diagram_lines.clear()
        return body


@dataclass(frozen=True, slots=True)
class StyledText:
    """Output of the markup engine for one run of text."""

    text: str


@dataclass(frozen=True, slots=True)
class GraphicBlock:
    """Target-specific rendering of a diagram, image or inline SVG."""

    payload: str
    kind: Literal["diagram", "image", "svg"]
    source: str = ""
    placeholder: bool = False
    rows: int = 0


Segment = Union[StyledText, GraphicBlock]


@dataclass(frozen=True, slots=True)
class LookaheadPolicy:
    """Windows bounding the search for the end of an inline SVG block."""

    max_lines: int = 100
    container_lines: int = 5


class RenderTarget(Protocol):
    """How text runs and graphics materialise for one output surface."""

    def render_text(self, markup: str) -> StyledText: ...

    def render_diagram(self, source: str) -> Segment: ...

    def render_image(self, path: Path, alt: str) -> Segment: ...

    def render_svg(self, svg: str) -> Segment: ...

    def external_image(self, alt: str, src: str) -> Segment: ...

    def missing_image(self, alt: str, src: str) -> Segment: ...

    def diagram_failure(self, source: str, exc: BaseException) -> Segment: ...

    def graphic_failure(self, kind: str, label: str, exc: BaseException) -> Segment: ...


class SegmentSink(Protocol):
    def emit_text(self, segment: StyledText) -> None: ...

    def emit_graphic(self, segment: GraphicBlock) -> None: ...


class StreamSink:
    """Write segments to a text stream as soon as they are produced."""

    def __init__(self, stream: TextIO, *, graphic_spacing: bool = True) -> None:
        self.stream = stream
        self.graphic_spacing = graphic_spacing

    def emit_text(self, segment: StyledText) -> None:
        self.stream.write(segment.text)

    def emit_graphic(self, segment: GraphicBlock) -> None:
        if self.graphic_spacing:
            self.stream.write("\n")
        self.stream.write(segment.payload)
        if self.graphic_spacing or not segment.payload.endswith("\n"):
            self.stream.write("\n")
        self.stream.flush()


class CollectingSink:
    """Keep every segment in order; used by exports and tests."""

    def __init__(self) -> None:
        self.segments: list[Segment] = []

    def emit_text(self, segment: StyledText) -> None:
        self.segments.append(segment)

    def emit_graphic(self, segment: GraphicBlock) -> None:
        self.segments.append(segment)

    def join(self, separator: str = "") -> str:
        return separator.join(
            item.text if isinstance(item, StyledText) else item.payload for item in self.segments
        )


def emit(segment: Segment, sink: SegmentSink) -> None:
    if isinstance(segment, GraphicBlock):
        sink.emit_graphic(segment)
    else:
        sink.emit_text(segment)


def fence_language(line: str) -> str | None:
    match = _FENCE_LANGUAGE.match(line)
    return match.group(1) if match else None


def is_external(src: str) -> bool:
    return src.startswith(EXTERNAL_PREFIXES)


def find_vector_block(
    lines: Sequence[str], start: int, policy: LookaheadPolicy
) -> int | None:
    """Return the index of the last line of an SVG block opening at ``start``.

    The opening line either contains ``<svg`` or is a ``<div`` opener whose
    next line contains it. ``</svg>`` must appear within ``policy.max_lines``
    lines of the opener and, when a ``<div`` was opened, ``</div>`` within
    ``policy.container_lines`` lines after that. None means no complete
    block was found and the opener is plain text.
    """
    line = lines[start]
    svg_open = _SVG_OPEN.search(line)
    svg_line = start
    if svg_open is None:
        if not line.lstrip().startswith("<div") or start + 1 >= len(lines):
            return None
        svg_open = _SVG_OPEN.search(lines[start + 1])
        if svg_open is None:
            return None
        svg_line = start + 1
        container = True
    else:
        container = _DIV_OPEN.search(line, 0, svg_open.start()) is not None

    limit = min(len(lines), start + policy.max_lines)
    close_line: int | None = None
    for index in range(svg_line, limit):
        offset = svg_open.end() if index == svg_line else 0
        if _SVG_CLOSE.search(lines[index], offset):
            close_line = index
            break
    if close_line is None:
        return None
    if not container:
        return close_line

    tail = _SVG_CLOSE.search(lines[close_line], svg_open.end() if close_line == svg_line else 0)
    div_limit = min(len(lines), close_line + policy.container_lines + 1)
    for index in range(close_line, div_limit):
        offset = tail.end() if index == close_line and tail else 0
        if _DIV_CLOSE.search(lines[index], offset):
            return index
    return None


def split_vector_block(block: str) -> tuple[str, str, str] | None:
    """Split ``block`` into the text before the SVG, the SVG markup and the text after.

    A ``<div>`` wrapping the SVG with nothing but whitespace in between is part
    of the markup.
    """
    match = _VECTOR_BLOCK.search(block)
    if match is None:
        return None
    return block[: match.start()], match.group(0), block[match.end() :]


class BlockScanner:
    """Scan a document and produce rendered segments through a target."""

    def __init__(
        self,
        target: RenderTarget,
        *,
        base_dir: Path | str = ".",
        lookahead: LookaheadPolicy | None = None,
        emitter: DiagnosticEmitter | None = None,
    ) -> None:
        self.target = target
        self.base_dir = Path(base_dir)
        self.lookahead = lookahead or LookaheadPolicy()
        self.emitter = ensure_emitter(emitter)
        self.state = ScanState()

    def scan(self, text: str, sink: SegmentSink) -> int:
        """Write every segment of ``text`` to ``sink`` and return how many were written."""
        count = 0
        for segment in self.iter_segments(text):
            emit(segment, sink)
            count += 1
        return count

    def iter_segments(self, text: str) -> Iterator[Segment]:
        lines = text.split("\n")
        if lines and lines[-1] == "":
            lines.pop()
        state = self.state = ScanState()

        while state.index < len(lines):
            line = lines[state.index]

            if line.startswith(FENCE):
                yield from self._on_fence(line, state)
                state.index += 1
                continue

            if state.in_diagram_fence:
                state.diagram_lines.append(line)
                state.index += 1
                continue

            if state.in_code_fence:
                state.text_lines.append(line)
                state.index += 1
                continue

            end = find_vector_block(lines, state.index, self.lookahead)
            if end is not None:
                parts = split_vector_block("\n".join(lines[state.index : end + 1]))
                svg = extract_svg(parts[1]) if parts is not None else None
                if parts is not None and svg is not None:
                    before, _, after = parts
                    if before.strip():
                        state.text_lines.append(before.rstrip())
                    yield from self._flush(state)
                    yield self._dispatch_svg(svg)
                    # The remainder joins the next text run.
                    if after.strip():
                        state.text_lines.append(after.strip())
                    state.index = end + 1
                    continue

            image = _IMAGE_LINE.match(line)
            if image:
                yield from self._flush(state)
                yield self._dispatch_image(image.group(1), image.group(2).strip())
                state.index += 1
                continue

            state.text_lines.append(line)
            state.index += 1

        if state.in_diagram_fence:
            logger.debug("unclosed diagram fence, emitting its source as text")
            state.text_lines.append(state.fence_line)
            state.text_lines.extend(state.diagram_lines)
            state.diagram_lines.clear()
            state.mode = ScanMode.TEXT
        yield from self._flush(state)

    def _on_fence(self, line: str, state: ScanState) -> Iterator[Segment]:
        if state.in_diagram_fence:
            state.mode = ScanMode.TEXT
            state.fence_language = None
            yield from self._flush(state)
            yield self._dispatch_diagram(state.take_diagram())
            return

        if state.in_code_fence:
            state.mode = ScanMode.TEXT
            state.fence_language = None
            state.text_lines.append(line)
            return

        language = fence_language(line)
        state.fence_language = language
        if language == DIAGRAM_MARKER:
            state.mode = ScanMode.DIAGRAM_FENCE
            state.fence_line = line
            state.diagram_lines.clear()
            return

        state.mode = ScanMode.CODE_FENCE
        state.text_lines.append(line)

    def _flush(self, state: ScanState) -> Iterator[Segment]:
        markup = state.take_text()
        if markup.strip():
            yield self.target.render_text(markup)

    def _dispatch_diagram(self, source: str) -> Segment:
        try:
            return self.target.render_diagram(source)
        except Exception as exc:
            logger.debug("diagram dispatch failed", exc_info=exc)
            self.emitter.warning(f"Mermaid diagram failed: {exc}")
            return self.target.diagram_failure(source, exc)

    def _dispatch_svg(self, svg: str) -> Segment:
        try:
            return self.target.render_svg(svg)
        except Exception as exc:
            logger.debug("inline SVG dispatch failed", exc_info=exc)
            return self.target.graphic_failure("svg", "inline SVG", exc)

    def _dispatch_image(self, alt: str, src: str) -> Segment:
        if src.startswith("<") and src.endswith(">"):
            src = src[1:-1]
        if is_external(src):
            return self.target.external_image(alt, src)

        path = Path(src).expanduser()
        if not path.is_absolute():
            path = self.base_dir / path
        if not path.is_file():
            return self.target.missing_image(alt, src)

        try:
            return self.target.render_image(path, alt)
        except Exception as exc:
            logger.debug("image dispatch failed for %s", path, exc_info=exc)
            return self.target.graphic_failure("image", alt or path.name, exc)


__all__ = [
    "DIAGRAM_MARKER",
    "BlockScanner",
    "CollectingSink",
    "GraphicBlock",
    "LookaheadPolicy",
    "RenderTarget",
    "ScanMode",
    "ScanState",
    "Segment",
    "SegmentSink",
    "StreamSink",
    "StyledText",
    "find_vector_block",
    "split_vector_block",
    "is_external",
]
