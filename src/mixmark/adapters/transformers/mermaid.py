"""Mermaid diagram rendering through the ``mmdc`` command line tool."""

from __future__ import annotations

from dataclasses import dataclass
import hashlib
from html import escape
import json
import logging
from pathlib import Path
from typing import Any, Literal

from mixmark.core.capabilities import DependencyProbe, get_probe
from mixmark.core.diagnostics import DiagnosticEmitter, ensure_emitter
from mixmark.core.exceptions import TransformerExecutionError
from mixmark.core.profiles import RenderProfile

from .base import CommandRunner, remove_file, run_cli, scratch_dir


logger = logging.getLogger(__name__)

MERMAID_INSTALL_HINT = "npm install -g @mermaid-js/mermaid-cli"
PLACEHOLDER_PREFIX = "mermaid-placeholder-"
BASE_DPI = 96


@dataclass(frozen=True, slots=True)
class DiagramOptions:
    """Settings forwarded to ``mmdc``."""

    width: int = 1200
    height: int = 800
    theme: str = "dark"
    background: str = "transparent"
    font_family: str | None = None
    font_size: str | None = None
    dpi: int | None = None
    output_format: Literal["png", "svg"] = "png"
    timeout: float = 30.0
    output_dir: Path | None = None

    @classmethod
    def from_profile(
        cls,
        profile: RenderProfile,
        *,
        output_format: Literal["png", "svg"] = "png",
        output_dir: Path | None = None,
        opaque_background: bool = False,
    ) -> DiagramOptions:
        settings = profile.mermaid
        background = settings.background_color
        if opaque_background and background == "transparent":
            background = "#ffffff"
        return cls(
            width=settings.width,
            height=settings.height,
            theme=settings.theme,
            background=background,
            font_family=settings.font_family or profile.fonts.mermaid,
            font_size=settings.font_size,
            dpi=settings.dpi,
            output_format=output_format,
            output_dir=output_dir,
        )

    @property
    def scale(self) -> float | None:
        return self.dpi / BASE_DPI if self.dpi else None


def diagram_hash(source: str) -> str:
    """Return the short content hash used to name diagram files."""
    return hashlib.md5(source.encode("utf-8")).hexdigest()[:8]  # noqa: S324


def build_config(options: DiagramOptions) -> dict[str, Any]:
    """Return the Mermaid configuration document for ``options``."""
    variables: dict[str, str] = {}
    if options.font_family is not None:
        variables["fontFamily"] = options.font_family
    if options.font_size is not None:
        variables["fontSize"] = options.font_size
    return {
        "theme": options.theme,
        "themeVariables": variables,
        "flowchart": {"htmlLabels": False},
    }


def build_command(
    executable: str,
    source_path: Path,
    output_path: Path,
    config_path: Path,
    options: DiagramOptions,
) -> list[str]:
    command = [
        executable,
        "-i",
        str(source_path),
        "-o",
        str(output_path),
        "-w",
        str(options.width),
        "-H",
        str(options.height),
        "-t",
        options.theme,
        "-b",
        options.background,
    ]
    if options.scale is not None:
        command.extend(["-s", f"{options.scale:g}"])
    command.extend(["-c", str(config_path)])
    return command


def placeholder_svg(reason: str, options: DiagramOptions | None = None) -> str:
    """Return a small SVG explaining why the real diagram is missing."""
    dark = options is not None and options.theme == "dark"
    fill = "#1e1e1e" if dark else "#f6f8fa"
    ink = "#d4d4d4" if dark else "#24292e"
    return (
        '<svg xmlns="http://www.w3.org/2000/svg" width="480" height="120" viewBox="0 0 480 120">'
        f'<rect x="1" y="1" width="478" height="118" rx="6" fill="{fill}" stroke="{ink}" '
        'stroke-dasharray="6 4"/>'
        f'<text x="240" y="50" fill="{ink}" font-family="sans-serif" font-size="16" '
        f'text-anchor="middle">Mermaid diagram</text>'
        f'<text x="240" y="80" fill="{ink}" font-family="sans-serif" font-size="12" '
        f'text-anchor="middle">{escape(reason)}</text>'
        "</svg>\n"
    )


def is_placeholder(path: Path) -> bool:
    """Return True when ``path`` names a placeholder written by this module."""
    return path.name.startswith(PLACEHOLDER_PREFIX)


def _output_dir(options: DiagramOptions) -> Path:
    if options.output_dir is not None:
        options.output_dir.mkdir(parents=True, exist_ok=True)
        return options.output_dir
    return scratch_dir("diagrams")


def _write_placeholder(digest: str, reason: str, options: DiagramOptions) -> Path:
    target = _output_dir(options) / f"{PLACEHOLDER_PREFIX}{digest}.svg"
    target.write_text(placeholder_svg(reason, options), encoding="utf-8")
    return target


def render_diagram(
    source: str,
    options: DiagramOptions | None = None,
    *,
    probe: DependencyProbe | None = None,
    emitter: DiagnosticEmitter | None = None,
    runner: CommandRunner | None = None,
) -> Path:
    """Render Mermaid ``source`` and return the generated file.

    When ``mmdc`` is unavailable or fails, a placeholder SVG is returned
    instead; no exception escapes for compiler problems. Files are named after
    a short hash of the source, so identical diagrams overwrite each other
    rather than being reused. The returned file belongs to the caller, who
    removes it with :func:`cleanup_diagram`.
    """
    if not source.strip():
        raise ValueError("Mermaid diagram source is empty.")

    options = options or DiagramOptions()
    probe = probe or get_probe()
    emitter = ensure_emitter(emitter)
    digest = diagram_hash(source)

    executable = probe.executable("mmdc") if probe.status().mermaid_cli else None
    if executable is None:
        probe.warn_once(
            "mmdc",
            f"Mermaid CLI (mmdc) not found; diagrams are shown as placeholders. "
            f"Install with: {MERMAID_INSTALL_HINT}",
            emitter,
        )
        target = _write_placeholder(digest, f"Install mermaid-cli: {MERMAID_INSTALL_HINT}", options)
        emitter.event("diagram_rendered", {"output": target, "placeholder": True})
        return target

    directory = _output_dir(options)
    source_path = directory / f"mermaid-{digest}.mmd"
    config_path = directory / f"mermaid-config-{digest}.json"
    output_path = directory / f"mermaid-{digest}.{options.output_format}"

    try:
        source_path.write_text(source, encoding="utf-8")
        config_path.write_text(json.dumps(build_config(options)), encoding="utf-8")
        run_cli(
            build_command(executable, source_path, output_path, config_path, options),
            description="Mermaid CLI",
            timeout=options.timeout,
            runner=runner,
        )
        if not output_path.exists():
            raise TransformerExecutionError(f"Mermaid CLI did not produce '{output_path.name}'.")
    except (TransformerExecutionError, OSError) as exc:
        remove_file(output_path)
        logger.debug("mermaid rendering failed", exc_info=exc)
        emitter.warning(f"Mermaid rendering failed: {exc}")
        target = _write_placeholder(digest, "Diagram rendering failed", options)
        emitter.event("diagram_rendered", {"output": target, "placeholder": True})
        return target
    finally:
        remove_file(source_path)
        remove_file(config_path)

    emitter.event("diagram_rendered", {"output": output_path, "placeholder": False})
    return output_path


def cleanup_diagram(path: Path | str | None) -> None:
    """Remove a diagram file returned by :func:`render_diagram`."""
    if path is not None:
        remove_file(Path(path))


__all__ = [
    "MERMAID_INSTALL_HINT",
    "DiagramOptions",
    "build_command",
    "build_config",
    "cleanup_diagram",
    "diagram_hash",
    "is_placeholder",
    "placeholder_svg",
    "render_diagram",
]
