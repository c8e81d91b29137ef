"""ODT export: Markdown with rendered graphics handed to pandoc."""

from __future__ import annotations

from pathlib import Path
import re
import shutil
import tempfile

import yaml

from mixmark.adapters.markdown.html import split_front_matter
from mixmark.adapters.targets import OdtTarget
from mixmark.adapters.transformers.base import (
    CommandRunner,
    run_cli,
    scratch_dir,
    temporary_file,
)
from mixmark.core.capabilities import DependencyProbe, get_probe
from mixmark.core.diagnostics import DiagnosticEmitter, ensure_emitter
from mixmark.core.exceptions import ExportError, TransformerExecutionError
from mixmark.core.profiles import RenderProfile
from mixmark.core.scanner import BlockScanner, CollectingSink


PANDOC_INSTALL_HINT = (
    "Pandoc is not installed. Please install pandoc to generate ODT files: "
    "https://pandoc.org/installing.html"
)
PANDOC_TIMEOUT = 120.0
DEFAULT_IMAGE_DPI = 72

_IMAGE = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)(?:\{[^}]+\})?")
_NUMBER = re.compile(r"\d+(?:\.\d+)?")


def add_image_width_attributes(markdown: str, width_percent: float) -> str:
    """Give every Markdown image without attributes a ``{width=N%}`` suffix."""
    width = round(width_percent * 100)

    def replace(match: re.Match[str]) -> str:
        if "{" in match.group(0):
            return match.group(0)
        return f"![{match.group(1)}]({match.group(2)}){{width={width}%}}"

    return _IMAGE.sub(replace, markdown)


def metadata_block(profile: RenderProfile) -> str:
    """YAML header carrying the profile's fonts for pandoc."""
    body_size = (profile.font_sizes.body if profile.font_sizes else None) or "11pt"
    number = _NUMBER.search(body_size)
    metadata = {
        "fontsize": f"{number.group(0) if number else 11}pt",
        "mainfont": profile.fonts.body,
        "monofont": profile.fonts.code,
    }
    dumped = yaml.safe_dump(metadata, sort_keys=False, allow_unicode=True)
    return f"---\n{dumped}---\n\n"


def pandoc_command(executable: str, source: Path, output: Path, *, dpi: int) -> list[str]:
    return [
        executable,
        "-f",
        "markdown",
        "-t",
        "odt",
        "--standalone",
        "--embed-resources",
        f"--dpi={dpi}",
        "--wrap=preserve",
        "-o",
        str(output),
        str(source),
    ]


def export_odt_document(
    text: str,
    output: Path,
    profile: RenderProfile,
    *,
    base_dir: Path,
    probe: DependencyProbe | None = None,
    emitter: DiagnosticEmitter | None = None,
    runner: CommandRunner | None = None,
) -> Path:
    """Convert a Markdown document to ODT at ``output``."""
    probe = probe or get_probe()
    emitter = ensure_emitter(emitter)
    pandoc = probe.executable("pandoc")
    if pandoc is None:
        raise ExportError(PANDOC_INSTALL_HINT)
    if profile.output != "odt":
        raise ExportError(f'Profile "{profile.name}" is not configured for ODT output')

    _, body = split_front_matter(text)
    asset_dir = Path(tempfile.mkdtemp(prefix="odt-", dir=scratch_dir("odt")))
    try:
        target = OdtTarget(
            profile, asset_dir=asset_dir, probe=probe, emitter=emitter, runner=runner
        )
        sink = CollectingSink()
        BlockScanner(target, base_dir=base_dir, emitter=emitter).scan(body, sink)
        markdown = add_image_width_attributes(sink.join("\n"), profile.images.width_percent)

        output = output.resolve()
        output.parent.mkdir(parents=True, exist_ok=True)
        with temporary_file(metadata_block(profile) + markdown, suffix=".md") as source:
            command = pandoc_command(
                pandoc, source, output, dpi=profile.images.dpi or DEFAULT_IMAGE_DPI
            )
            try:
                run_cli(
                    command,
                    description="pandoc",
                    timeout=PANDOC_TIMEOUT,
                    cwd=base_dir,
                    runner=runner,
                )
            except TransformerExecutionError as exc:
                raise ExportError(f"Failed to generate ODT: {exc}") from exc
    finally:
        shutil.rmtree(asset_dir, ignore_errors=True)

    emitter.event("export_written", {"format": "ODT", "path": str(output)})
    return output


__all__ = [
    "PANDOC_INSTALL_HINT",
    "add_image_width_attributes",
    "export_odt_document",
    "metadata_block",
    "pandoc_command",
]
