from __future__ import annotations

from io import StringIO
from pathlib import Path

import pytest

from mixmark.api import GRAPHICS_MISSING_WARNING, Document, export_odt, export_pdf, render_terminal
from mixmark.adapters.transformers.base import CommandResult
from mixmark.core.capabilities import ProtocolVariant
from mixmark.core.exceptions import DocumentReadError, ProfileNotFoundError
from mixmark.core.profiles import default_store
from mixmark.core.user_dir import get_user_dir

from conftest import SIXEL_PAYLOAD, FakeRunner, RecordingEmitter, make_probe, option_value


MIXED_DOCUMENT = "intro\n\n```mermaid\ngraph TD\nA-->B\n```\n\nmore text\n"


def test_render_terminal_mixed_document_without_mermaid_cli() -> None:
    stream = StringIO()
    emitter = RecordingEmitter()
    runner = FakeRunner()

    written = render_terminal(
        Document.from_text(MIXED_DOCUMENT),
        store=default_store(),
        stream=stream,
        capability=ProtocolVariant.SIXEL,
        columns=80,
        probe=make_probe(["chafa"]),
        emitter=emitter,
        runner=runner,
    )

    output = stream.getvalue()
    assert written == 3
    assert output.index("intro") < output.index(SIXEL_PAYLOAD.decode()) < output.index("more text")
    assert len(emitter.warnings) == 1
    assert "mmdc" in emitter.warnings[0]
    assert runner.programs() == ["chafa"]
    assert list(get_user_dir().scratch_dir("diagrams").iterdir()) == []


def test_render_terminal_warns_once_without_graphics_tools() -> None:
    emitter = RecordingEmitter()
    probe = make_probe()
    runner = FakeRunner(lambda command: CommandResult(127))

    for _ in range(2):
        render_terminal(
            Document.from_text("plain words\n"),
            store=default_store(),
            stream=StringIO(),
            capability=ProtocolVariant.SIXEL,
            columns=80,
            probe=probe,
            emitter=emitter,
            runner=runner,
        )

    assert emitter.warnings == [GRAPHICS_MISSING_WARNING]


def test_render_terminal_inline_needs_no_tools(tmp_path: Path) -> None:
    (tmp_path / "dot.png").write_bytes(b"\x89PNG")
    stream = StringIO()
    emitter = RecordingEmitter()

    render_terminal(
        Document.from_text("![Dot](dot.png)\n", base_dir=tmp_path),
        store=default_store(),
        stream=stream,
        capability=ProtocolVariant.INLINE,
        columns=80,
        probe=make_probe(),
        emitter=emitter,
    )

    assert "\x1b]1337;File=" in stream.getvalue()
    assert "width=60" in stream.getvalue()
    assert emitter.warnings == []


def test_render_terminal_strips_front_matter() -> None:
    stream = StringIO()

    render_terminal(
        Document.from_text("---\ntitle: Hidden\n---\nVisible body\n"),
        store=default_store(),
        stream=stream,
        capability=ProtocolVariant.INLINE,
        columns=80,
        probe=make_probe(),
    )

    assert "Visible body" in stream.getvalue()
    assert "title: Hidden" not in stream.getvalue()


def test_render_terminal_unknown_profile() -> None:
    with pytest.raises(ProfileNotFoundError):
        render_terminal(
            Document.from_text("x\n"),
            profile="missing",
            store=default_store(),
            stream=StringIO(),
            probe=make_probe(),
        )


def test_document_from_path(tmp_path: Path) -> None:
    source = tmp_path / "notes.md"
    source.write_text("# Notes\n", encoding="utf-8")

    document = Document.from_path(source)

    assert document.base_dir == tmp_path.resolve()
    assert document.title == "notes"
    assert document.default_output(".pdf") == source.with_suffix(".pdf")


def test_document_title_from_front_matter() -> None:
    document = Document.from_text("---\ntitle: Handbook\n---\nbody\n")

    assert document.title == "Handbook"
    assert document.body == "body\n"
    assert Document.from_text("body\n").title == "Document"


def test_missing_document_raises(tmp_path: Path) -> None:
    with pytest.raises(DocumentReadError, match="Document not found"):
        Document.from_path(tmp_path / "absent.md")


def test_export_pdf_defaults_output_next_to_source(tmp_path: Path) -> None:
    source = tmp_path / "guide.md"
    source.write_text("# Guide\n", encoding="utf-8")
    printed: list[Path] = []

    result = export_pdf(
        source,
        store=default_store(),
        printer=lambda html, output, options: printed.append(output),
        probe=make_probe(),
    )

    assert result == tmp_path / "guide.pdf"
    assert printed == [tmp_path / "guide.pdf"]


def test_export_odt_defaults_to_odt_profile(tmp_path: Path) -> None:
    source = tmp_path / "guide.md"
    source.write_text("# Guide\n", encoding="utf-8")

    def handler(command: list[str]) -> CommandResult:
        Path(option_value(command, "-o")).write_bytes(b"PK")
        return CommandResult(0)

    result = export_odt(
        source,
        tmp_path / "out.odt",
        store=default_store(),
        probe=make_probe(["pandoc"]),
        runner=FakeRunner(handler),
    )

    assert result == (tmp_path / "out.odt").resolve()
    assert result.read_bytes() == b"PK"
