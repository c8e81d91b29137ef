"""Source documents handed to the rendering entry points."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from mixmark.adapters.markdown.html import split_front_matter
from mixmark.core.exceptions import DocumentReadError


@dataclass(slots=True)
class Document:
    """Markdown text plus the directory its relative references resolve against."""

    text: str
    base_dir: Path
    source_path: Path | None = None
    front_matter: dict[str, Any] = field(default_factory=dict)
    body: str = ""

    def __post_init__(self) -> None:
        self.front_matter, self.body = split_front_matter(self.text)

    @classmethod
    def from_path(cls, path: str | Path) -> Document:
        """Read a Markdown file, raising :class:`DocumentReadError` on failure."""
        source = Path(path).expanduser()
        try:
            text = source.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise DocumentReadError(f"Document not found: {source}") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise DocumentReadError(f"Failed to read {source}: {exc}") from exc
        return cls(text=text, base_dir=source.resolve().parent, source_path=source)

    @classmethod
    def from_text(cls, text: str, *, base_dir: str | Path = ".") -> Document:
        return cls(text=text, base_dir=Path(base_dir).resolve())

    @property
    def title(self) -> str:
        """Front matter title, else the file stem, else ``Document``."""
        value = self.front_matter.get("title")
        if value:
            return str(value)
        if self.source_path is not None:
            return self.source_path.stem
        return "Document"

    def default_output(self, suffix: str) -> Path:
        """Sibling of the source file with ``suffix``, or ``document<suffix>``."""
        if self.source_path is None:
            return Path.cwd() / f"document{suffix}"
        return self.source_path.with_suffix(suffix)


def coerce_document(source: Document | str | Path) -> Document:
    if isinstance(source, Document):
        return source
    return Document.from_path(source)


__all__ = ["Document", "coerce_document"]
