from __future__ import annotations

import logging

import pytest

from mixmark.core.diagnostics import LoggingEmitter, NullEmitter, format_event_message
from mixmark.core.exceptions import (
    DocumentReadError,
    ExportError,
    TransformerExecutionError,
    exception_hint,
    exception_messages,
)
from mixmark.ui.cli.diagnostics import CliEmitter
from mixmark.ui.cli.state import set_cli_state


def _raise_nested_export_error() -> None:
    try:
        raise TransformerExecutionError("pandoc exited with status 64")
    except TransformerExecutionError as exc:
        raise ExportError("Failed to generate ODT") from exc


def test_null_emitter_is_noop(caplog: pytest.LogCaptureFixture) -> None:
    emitter = NullEmitter()
    with caplog.at_level(logging.WARNING):
        emitter.warning("nothing to see")
        emitter.error("still quiet")
    assert not caplog.records
    emitter.event("ignored", {"value": 1})
    assert emitter.debug_enabled is False


def test_logging_emitter_logs_messages(caplog: pytest.LogCaptureFixture) -> None:
    emitter = LoggingEmitter(debug_enabled=True)
    with caplog.at_level(logging.INFO):
        emitter.error("boom")
        emitter.event("export_written", {"format": "PDF", "path": "out.pdf"})
    messages = [record.getMessage() for record in caplog.records]
    assert "boom" in messages
    assert "Wrote PDF: out.pdf" in messages
    assert emitter.debug_enabled is True


def test_cli_emitter_bridges_state(capsys: pytest.CaptureFixture[str]) -> None:
    state = set_cli_state(verbosity=1, debug=False)
    state.events.clear()
    emitter = CliEmitter(state=state)

    emitter.warning("Heads up", exc=None)
    emitter.error("Boom", exc=None)
    emitter.event("custom", {"flag": True})

    captured = capsys.readouterr()
    combined_output = f"{captured.out}\n{captured.err}"
    assert "Heads up" in combined_output
    assert "Boom" in combined_output
    assert state.consume_events("custom") == [{"flag": True}]
    assert state.consume_events("custom") == []


def test_cli_emitter_hides_info_when_quiet(capsys: pytest.CaptureFixture[str]) -> None:
    state = set_cli_state(verbosity=0, debug=False)
    state.events.clear()

    CliEmitter(state=state).event("diagram_rendered", {"output": "d.svg", "placeholder": True})

    assert "Rendered diagram" not in capsys.readouterr().err
    assert state.consume_events("diagram_rendered") == [{"output": "d.svg", "placeholder": True}]


def test_format_event_message() -> None:
    assert format_event_message("diagram_rendered", {"output": "a.png"}) == "Rendered diagram: a.png"
    assert (
        format_event_message("diagram_rendered", {"output": "a.svg", "placeholder": True})
        == "Rendered diagram: a.svg (placeholder)"
    )
    assert format_event_message("unknown", {}) is None


def test_exception_messages_follow_causes() -> None:
    with pytest.raises(ExportError) as excinfo:
        _raise_nested_export_error()

    assert exception_messages(excinfo.value) == [
        "Failed to generate ODT",
        "pandoc exited with status 64",
    ]
    assert exception_hint(excinfo.value) == "pandoc exited with status 64"
    assert exception_hint(DocumentReadError("")) is None
