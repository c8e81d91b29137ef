"""Render profiles and the persisted configuration store.

RenderProfile

`name` (`str`)
: Identifier of the profile. Must match the key under which the profile is
  stored.

`output` (`"terminal" | "pdf" | "odt"`)
: Output surface the profile drives.

`images` (`ImageSettings`)
: `widthPercent` is a fraction of the available width in `(0, 1]`;
  `alignment` is one of `left`, `center`, `right`.

`mermaid` (`DiagramSettings`)
: Pixel canvas, Mermaid theme, background and scale handed to the diagram
  compiler. `dpi` is converted to an `mmdc` scale factor (`dpi / 96`).

`terminal` (`TerminalSettings | None`)
: Graphics encoder, alpha threshold and pixels-per-column used when sizing
  sixel output. Only meaningful for terminal profiles.

`tables` (`TableSettings | None`)
: Word wrapping and width fraction for terminal tables.

`pdf` (`PdfSettings | None`)
: Page size, orientation and header/footer options for paginated exports.

ConfigurationStore

`defaultProfile` (`str`)
: Profile used when no name is requested.

`profiles` (`dict[str, RenderProfile]`)
: Every available profile, keyed by name.

The persisted document at ``<config dir>/config.json`` only needs to carry the
keys a user wants to change; it is deep-merged over the built-in defaults.
"""

from __future__ import annotations

from collections.abc import Mapping
import copy
import json
import logging
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from .exceptions import CorruptConfigError, ProfileNotFoundError
from .user_dir import get_user_dir


logger = logging.getLogger(__name__)

Alignment = Literal["left", "center", "right"]
OutputTarget = Literal["terminal", "pdf", "odt"]
Fraction = Annotated[float, Field(gt=0, le=1)]
PositiveInt = Annotated[int, Field(gt=0)]


class _Settings(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class FontSettings(_Settings):
    """Font families; ``default`` and ``monospace`` are sentinels for the host default."""

    body: str = "default"
    heading: str = "default"
    code: str = "monospace"
    mermaid: str | None = None


class FontSizes(_Settings):
    body: str | None = None
    h1: str | None = None
    h2: str | None = None
    h3: str | None = None
    h4: str | None = None
    h5: str | None = None
    h6: str | None = None
    code: str | None = None


class CodePalette(_Settings):
    background: str | None = None
    text: str | None = None
    keyword: str | None = None
    string: str | None = None
    comment: str | None = None
    function: str | None = None
    number: str | None = None


class ColorPalette(_Settings):
    text: str | None = None
    heading: str | None = None
    link: str | None = None
    code: CodePalette | None = None


class Margins(_Settings):
    top: str | None = None
    bottom: str | None = None
    left: str | None = None
    right: str | None = None


class ImageSettings(_Settings):
    """Sizing and placement applied to images and rendered diagrams."""

    width_percent: Fraction = 0.75
    alignment: Alignment = "center"
    max_width: str | None = None
    dpi: PositiveInt | None = None


class DiagramSettings(_Settings):
    """Options forwarded to the Mermaid compiler."""

    width: PositiveInt = 1200
    height: PositiveInt = 800
    theme: Literal["dark", "light", "default", "forest", "neutral"] = "dark"
    background_color: str = "transparent"
    scale: Literal["none", "fit"] | Annotated[float, Field(gt=0)] = "none"
    font_family: str | None = None
    font_size: str | None = None
    dpi: PositiveInt | None = None


class TransparencySettings(_Settings):
    enabled: bool = True
    threshold: Annotated[float, Field(ge=0, le=1)] = 0.95


class TerminalSettings(_Settings):
    """Terminal graphics encoder configuration."""

    backend: Literal["chafa", "img2sixel"] = "chafa"
    transparency: TransparencySettings = Field(default_factory=TransparencySettings)
    pixels_per_column: PositiveInt = 8
    image_scaling: float = 0.75
    fallback_columns: PositiveInt = 80


class TableSettings(_Settings):
    word_wrap: bool = True
    wrap_on_word_boundary: bool = True
    width_percent: Fraction = 0.95


class HeaderFooterSettings(_Settings):
    enabled: bool = False
    font_size: str | None = None
    show_page_numbers: bool = False
    show_date: bool = False
    show_title: bool = False


class PdfSettings(_Settings):
    page_size: Literal["A4", "Letter", "Legal", "A3"] = "A4"
    orientation: Literal["portrait", "landscape"] = "portrait"
    header_footer: HeaderFooterSettings | None = None


class RenderProfile(_Settings):
    """Complete set of rendering parameters for one output target."""

    name: Annotated[str, Field(min_length=1)]
    output: OutputTarget
    theme: Literal["dark", "light"] = "dark"
    fonts: FontSettings = Field(default_factory=FontSettings)
    font_sizes: FontSizes | None = None
    colors: ColorPalette | None = None
    margins: Margins | None = None
    images: ImageSettings = Field(default_factory=ImageSettings)
    mermaid: DiagramSettings = Field(default_factory=DiagramSettings)
    terminal: TerminalSettings | None = None
    tables: TableSettings | None = None
    pdf: PdfSettings | None = None

    @property
    def terminal_settings(self) -> TerminalSettings:
        """Return terminal settings, falling back to defaults for non-terminal profiles."""
        return self.terminal or TerminalSettings()

    @property
    def table_settings(self) -> TableSettings:
        return self.tables or TableSettings()


class ConfigurationStore(_Settings):
    """Keyed collection of profiles plus the default-profile pointer."""

    model_config = ConfigDict(
        extra="ignore",
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    default_profile: str
    profiles: dict[str, RenderProfile]

    @model_validator(mode="after")
    def check_keys(self) -> ConfigurationStore:
        """Ensure profile names match their keys and the default pointer resolves."""
        for key, profile in self.profiles.items():
            if profile.name != key:
                raise ValueError(f'profile stored under "{key}" is named "{profile.name}"')
        if self.default_profile not in self.profiles:
            raise ValueError(
                f'default profile "{self.default_profile}" is not defined '
                f"(available: {', '.join(self.profiles)})"
            )
        return self

    def resolve(self, name: str | None = None) -> RenderProfile:
        """Return the named profile, or the default one when ``name`` is empty."""
        key = name or self.default_profile
        try:
            return self.profiles[key]
        except KeyError:
            raise ProfileNotFoundError(key, self.profiles) from None

    def to_document(self) -> dict[str, Any]:
        """Serialise the store in its persisted (camelCase) form."""
        return self.model_dump(by_alias=True, exclude_none=True)


_SANS = 'Inter, -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, "Helvetica Neue", Arial, sans-serif'
_MONO = '"Fira Code", "Cascadia Code", "JetBrains Mono", Consolas, "Courier New", monospace'
_DIAGRAM_FONT = "Inter, -apple-system, BlinkMacSystemFont, sans-serif"

_TERMINAL_PROFILE: dict[str, Any] = {
    "name": "terminal",
    "output": "terminal",
    "theme": "dark",
    "fonts": {"body": "default", "heading": "default", "code": "monospace", "mermaid": "monospace"},
    "images": {"widthPercent": 0.75, "alignment": "center"},
    "mermaid": {
        "width": 1600,
        "height": 1200,
        "theme": "dark",
        "backgroundColor": "transparent",
        "scale": "none",
        "fontFamily": _DIAGRAM_FONT,
        "fontSize": "14px",
        "dpi": 96,
    },
    "terminal": {
        "backend": "chafa",
        "transparency": {"enabled": True, "threshold": 0.95},
        "pixelsPerColumn": 8,
        "imageScaling": 0.75,
        "fallbackColumns": 80,
    },
    "tables": {"wordWrap": True, "wrapOnWordBoundary": True, "widthPercent": 0.95},
}

_PDF_PROFILE: dict[str, Any] = {
    "name": "pdf",
    "output": "pdf",
    "theme": "light",
    "fonts": {
        "body": _SANS,
        "heading": _SANS,
        "code": _MONO,
        "mermaid": 'Inter, -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif',
    },
    "fontSizes": {
        "body": "11pt",
        "h1": "24pt",
        "h2": "20pt",
        "h3": "16pt",
        "h4": "14pt",
        "h5": "12pt",
        "h6": "11pt",
        "code": "10pt",
    },
    "colors": {
        "text": "#1a1a1a",
        "heading": "#000000",
        "link": "#0066cc",
        "code": {
            "background": "#f6f8fa",
            "text": "#24292e",
            "keyword": "#d73a49",
            "string": "#032f62",
            "comment": "#6a737d",
            "function": "#6f42c1",
            "number": "#005cc5",
        },
    },
    "margins": {"top": "1in", "bottom": "1in", "left": "1in", "right": "1in"},
    "images": {"widthPercent": 0.8, "alignment": "center", "maxWidth": "100%", "dpi": 150},
    "mermaid": {
        "width": 2400,
        "height": 1600,
        "theme": "default",
        "backgroundColor": "transparent",
        "scale": 1,
        "fontFamily": _DIAGRAM_FONT,
        "fontSize": "14px",
        "dpi": 300,
    },
    "pdf": {
        "pageSize": "Letter",
        "orientation": "portrait",
        "headerFooter": {
            "enabled": True,
            "fontSize": "9pt",
            "showPageNumbers": True,
            "showDate": True,
            "showTitle": True,
        },
    },
}

_PRINT_OVERRIDES: dict[str, Any] = {
    "name": "print",
    "fonts": {"body": 'Georgia, "Times New Roman", serif', "heading": 'Georgia, "Times New Roman", serif'},
    "colors": {
        "text": "#000000",
        "heading": "#000000",
        "link": "#000000",
        "code": {
            "background": "#ffffff",
            "text": "#000000",
            "keyword": "#000000",
            "string": "#000000",
            "comment": "#666666",
            "function": "#000000",
            "number": "#000000",
        },
    },
    "mermaid": {"theme": "neutral", "backgroundColor": "#ffffff"},
}

_ODT_PROFILE: dict[str, Any] = {
    "name": "odt",
    "output": "odt",
    "theme": "light",
    "fonts": {
        "body": "Liberation Sans, Arial, sans-serif",
        "heading": "Liberation Sans, Arial, sans-serif",
        "code": "Liberation Mono, Courier New, monospace",
        "mermaid": "Liberation Sans, Arial, sans-serif",
    },
    "fontSizes": {
        "body": "12pt",
        "h1": "20pt",
        "h2": "18pt",
        "h3": "16pt",
        "h4": "14pt",
        "h5": "12pt",
        "h6": "12pt",
        "code": "10pt",
    },
    "colors": {
        "text": "#000000",
        "heading": "#000080",
        "link": "#0000ff",
        "code": {
            "background": "#f5f5f5",
            "text": "#333333",
            "keyword": "#0000ff",
            "string": "#008000",
            "comment": "#808080",
            "function": "#800080",
            "number": "#098658",
        },
    },
    "images": {"widthPercent": 0.9, "alignment": "center", "maxWidth": "100%", "dpi": 150},
    "mermaid": {
        "width": 2400,
        "height": 1600,
        "theme": "default",
        "backgroundColor": "#ffffff",
        "scale": 1,
        "fontFamily": _DIAGRAM_FONT,
        "fontSize": "14px",
        "dpi": 300,
    },
}


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``.

    Mappings are merged key by key, recursively. Any other value in
    ``override`` (scalars, lists, ``None``) replaces the base value wholesale.
    Neither input is mutated.
    """
    merged: dict[str, Any] = copy.deepcopy(dict(base))
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


DEFAULT_CONFIG: dict[str, Any] = {
    "defaultProfile": "terminal",
    "profiles": {
        "terminal": _TERMINAL_PROFILE,
        "pdf": _PDF_PROFILE,
        "print": deep_merge(_PDF_PROFILE, _PRINT_OVERRIDES),
        "odt": _ODT_PROFILE,
    },
}


def default_store() -> ConfigurationStore:
    """Return a freshly validated copy of the built-in configuration."""
    return ConfigurationStore.model_validate(copy.deepcopy(DEFAULT_CONFIG))


def config_path() -> Path:
    """Location of the persisted user configuration."""
    return get_user_dir().config_path


def _write_document(document: Mapping[str, Any], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")
    return path


def initialize_config(path: Path | None = None, *, force: bool = False) -> Path:
    """Write the built-in configuration when no user document exists yet."""
    target = path or config_path()
    if target.exists() and not force:
        return target
    logger.debug("writing default configuration to %s", target)
    return _write_document(default_store().to_document(), target)


def save_config(store: ConfigurationStore, path: Path | None = None) -> Path:
    """Persist a full configuration store."""
    return _write_document(store.to_document(), path or config_path())


def load_config(path: Path | None = None) -> ConfigurationStore:
    """Load the user configuration, merged over the built-in defaults.

    A missing file is initialised with the defaults. A file that cannot be
    parsed or validated raises :class:`CorruptConfigError`; repairing it is left
    to the caller.
    """
    target = path or config_path()
    try:
        raw = target.read_text(encoding="utf-8")
    except FileNotFoundError:
        initialize_config(target)
        return default_store()
    except OSError as exc:
        raise CorruptConfigError(f"Unable to read configuration '{target}': {exc}") from exc

    try:
        overrides = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise CorruptConfigError(f"Configuration '{target}' is not valid JSON: {exc}") from exc
    if not isinstance(overrides, Mapping):
        raise CorruptConfigError(f"Configuration '{target}' must contain a JSON object.")

    try:
        return ConfigurationStore.model_validate(deep_merge(DEFAULT_CONFIG, overrides))
    except ValidationError as exc:
        raise CorruptConfigError(f"Configuration '{target}' is invalid: {exc}") from exc


def resolve_profile(
    name: str | None = None, *, store: ConfigurationStore | None = None
) -> RenderProfile:
    """Return the named profile, or the store's default profile when ``name`` is empty."""
    return (store or load_config()).resolve(name)


__all__ = [
    "DEFAULT_CONFIG",
    "ColorPalette",
    "ConfigurationStore",
    "DiagramSettings",
    "FontSettings",
    "FontSizes",
    "HeaderFooterSettings",
    "ImageSettings",
    "Margins",
    "PdfSettings",
    "RenderProfile",
    "TableSettings",
    "TerminalSettings",
    "TransparencySettings",
    "config_path",
    "deep_merge",
    "default_store",
    "initialize_config",
    "load_config",
    "resolve_profile",
    "save_config",
]
