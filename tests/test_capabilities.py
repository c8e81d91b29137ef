from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from mixmark.core.capabilities import (
    DependencyProbe,
    DependencyStatus,
    ProtocolVariant,
    detect_capability,
)

from conftest import RecordingEmitter, make_probe


@pytest.mark.parametrize(
    ("environ", "expected"),
    [
        ({"TERM_PROGRAM": "iTerm.app"}, ProtocolVariant.INLINE),
        ({"TERM_PROGRAM": "WezTerm"}, ProtocolVariant.HELPER),
        ({"KITTY_WINDOW_ID": "1"}, ProtocolVariant.HELPER),
        ({"TERM_PROGRAM": "vscode"}, ProtocolVariant.SIXEL),
        ({}, ProtocolVariant.SIXEL),
        ({"TERM_PROGRAM": "iTerm.app", "MIXMARK_GRAPHICS": "sixel"}, ProtocolVariant.SIXEL),
        ({"MIXMARK_GRAPHICS": "Helper"}, ProtocolVariant.HELPER),
        ({"TERM_PROGRAM": "iTerm.app", "MIXMARK_GRAPHICS": "bogus"}, ProtocolVariant.INLINE),
    ],
)
def test_detect_capability(environ: dict[str, str], expected: ProtocolVariant) -> None:
    assert detect_capability(environ) is expected


def test_detect_capability_reads_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TERM_PROGRAM", "iTerm.app")

    assert detect_capability() is ProtocolVariant.INLINE


def test_probe_runs_once() -> None:
    lookups: list[str] = []

    def which(name: str) -> str | None:
        lookups.append(name)
        return "/usr/bin/chafa" if name == "chafa" else None

    probe = DependencyProbe(which=which, playwright_check=lambda: False)

    first = probe.status()
    second = probe.status()

    assert first is second
    assert probe.probe_count == 1
    assert lookups.count("chafa") == 1
    assert first.chafa and not first.mermaid_cli
    assert probe.executable("chafa") == "/usr/bin/chafa"
    assert probe.executable("mmdc") is None


def test_probe_is_single_flight_across_threads() -> None:
    probe = make_probe(["chafa", "mmdc"])

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: probe.status(), range(32)))

    assert probe.probe_count == 1
    assert all(result is results[0] for result in results)


def test_probe_reset_forgets_status_and_warnings() -> None:
    probe = make_probe()
    emitter = RecordingEmitter()
    probe.status()

    assert probe.warn_once("mmdc", "missing", emitter) is True
    assert probe.warn_once("mmdc", "missing", emitter) is False

    probe.reset()
    probe.status()

    assert probe.probe_count == 2
    assert probe.warn_once("mmdc", "missing", emitter) is True
    assert emitter.warnings == ["missing", "missing"]


def test_has_image_support() -> None:
    assert not DependencyStatus(pandoc=True, mermaid_cli=True).has_image_support
    assert DependencyStatus(img2sixel=True).has_image_support
    assert make_probe(["kitty"]).status().has_image_support
