"""Regex-driven syntax highlighting for terminal code blocks.

Each language maps to an ordered list of :class:`HighlightRule`. Rules are
applied in order; the first rule to claim a span wins and later matches
overlapping a claimed span are skipped. Styling never changes the characters
of the code, only the spans of the returned :class:`rich.text.Text`.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import PurePath
import re

from rich.text import Text


_M = re.MULTILINE
_I = re.IGNORECASE

COMMENT = "dim bright_black"
STRING = "green"
KEYWORD = "bold cyan"
BUILTIN = "bold yellow"
NUMBER = "magenta"
OPERATOR = "bright_blue"
CALL = "italic bright_white"
DECORATOR = "bright_magenta"
TYPE_NAME = "bold underline yellow"
DEF_NAME = "bold underline bright_white"

_QUOTED = r"""(["'`])(?:\\[\s\S]|(?!\1)[^\\])*?\1"""
_QUOTED_NO_BACKTICK = r"""(["'])(?:\\[\s\S]|(?!\1)[^\\])*?\1"""
_SLASH_COMMENTS = r"(//.*$)|(/\*[\s\S]*?\*/)"


@dataclass(frozen=True, slots=True)
class HighlightRule:
    """A compiled pattern with either a whole-match style or per-group styles."""

    pattern: re.Pattern[str]
    style: str | None = None
    groups: Mapping[int, str] | None = field(default=None)

    def apply(self, text: Text, match: re.Match[str]) -> None:
        if self.groups:
            for index, style in self.groups.items():
                start, end = match.span(index)
                if start >= 0 and end > start:
                    text.stylize(style, start, end)
        if self.style:
            text.stylize(self.style, match.start(), match.end())


def _rule(
    pattern: str, style: str | None = None, flags: int = 0, **groups: str
) -> HighlightRule:
    mapping = {int(key.lstrip("g")): value for key, value in groups.items()} or None
    return HighlightRule(re.compile(pattern, flags), style, mapping)


_JAVASCRIPT = [
    _rule(_SLASH_COMMENTS, COMMENT, _M),
    _rule(_QUOTED, STRING),
    _rule(r"\$\{[^}]+\}", "bright_yellow"),
    _rule(r"\b(class)\s+(\w+)", g1=KEYWORD, g2=TYPE_NAME),
    _rule(r"\b(function)\s+(\w+)", g1=KEYWORD, g2=DEF_NAME),
    _rule(r"\b(const|let|var)\s+(\w+)", g1=KEYWORD, g2="italic"),
    _rule(r"\(([^)]*)\)\s*=>", g1="italic"),
    _rule(
        r"\b(const|let|var|function|class|if|else|for|while|return|import|export|from|async|await"
        r"|new|this|super|extends|implements|interface|type|enum|namespace|module|declare|abstract"
        r"|static|public|private|protected|readonly|override)\b",
        KEYWORD,
    ),
    _rule(
        r"\b(console|process|window|document|Array|Object|String|Number|Boolean|Date|Math|JSON"
        r"|Promise|Map|Set|Symbol|undefined|null|true|false)\b",
        BUILTIN,
    ),
    _rule(r"^\s*(async\s+)?(\w+)\s*\(", flags=_M, g1=KEYWORD, g2="bold bright_white"),
    _rule(r"\.(\w+)(?=\s*\()", g1=CALL),
    _rule(r"(?<!function\s)(?<!class\s)(?<!new\s)\b(\w+)(?=\s*\()", CALL),
    _rule(r"\b\d+\.?\d*\b", NUMBER),
    _rule(r"([+\-*/%=<>!&|^~?:]|\.{3}|=>)", OPERATOR),
    _rule(r"@\w+", DECORATOR),
    _rule(r"\.(\w+)(?!\s*\()", g1="white"),
    _rule(r"(\w+):", g1="italic cyan"),
]

_PYTHON = [
    _rule(r"\b(class)\s+(\w+)", g1=KEYWORD, g2=TYPE_NAME),
    _rule(r"\b(def)\s+(\w+)", g1=KEYWORD, g2=DEF_NAME),
    _rule(r"def\s+\w+\s*\(([^)]*)\)", g1="italic"),
    _rule(
        r"\b(def|class|if|elif|else|for|while|return|import|from|as|try|except|finally|raise|with"
        r"|pass|break|continue|lambda|yield|global|nonlocal|assert|async|await|del|and|or|not|in"
        r"|is)\b",
        KEYWORD,
    ),
    _rule(
        r"\b(print|len|range|enumerate|zip|map|filter|sorted|reversed|str|int|float|bool|list|dict"
        r"|set|tuple|type|isinstance|hasattr|getattr|setattr|delattr|open|file|input|eval|exec"
        r"|compile|globals|locals|vars|dir|help|id|hex|oct|bin|format|round|abs|all|any|sum|min"
        r"|max|None|True|False|self|cls|__\w+__)\b",
        BUILTIN,
    ),
    _rule(r"(\w+)\s*=", g1="italic"),
    _rule(r"(\w+)(?=\s*\()", CALL),
    _rule(r"""([rfbu]?)?(["'])((?:\\.|(?!\2).)*)\2""", STRING, _I),
    _rule(r"\{[^}]+\}", "bright_yellow"),
    _rule(r"""('''|\"\"\")[\s\S]*?\1""", STRING),
    _rule(r"\b\d+\.?\d*([eE][+-]?\d+)?\b", NUMBER),
    _rule(r"#.*$", COMMENT, _M),
    _rule(r"@\w+(\.\w+)*", "underline bright_magenta"),
    _rule(r"([+\-*/%=<>!&|^~:]|//|\*\*)", OPERATOR),
    _rule(r"""['"](\w+)['"]\s*:""", "italic cyan"),
]

_JAVA = [
    _rule(
        r"\b(public|private|protected|static|final|abstract|synchronized|volatile|transient|native"
        r"|strictfp|class|interface|enum|extends|implements|import|package|if|else|for|while|do"
        r"|switch|case|default|break|continue|return|try|catch|finally|throw|throws|new|this|super"
        r"|instanceof|void|boolean|byte|char|short|int|long|float|double)\b",
        KEYWORD,
    ),
    _rule(r"@\w+", DECORATOR),
    _rule(r"\b[A-Z][a-zA-Z0-9_]*\b", BUILTIN),
    _rule(r"(\w+)(?=\s*\()", CALL),
    _rule(r'"(?:[^"\\]|\\.)*"', STRING),
    _rule(r"\b\d+[lLfFdD]?\b", NUMBER),
    _rule(_SLASH_COMMENTS, COMMENT, _M),
    _rule(r"([+\-*/%=<>!&|^~?:]|\.\.\.|->)", OPERATOR),
]

_CPP = [
    _rule(
        r"\b(auto|break|case|char|const|continue|default|do|double|else|enum|extern|float|for|goto"
        r"|if|inline|int|long|register|restrict|return|short|signed|sizeof|static|struct|switch"
        r"|typedef|union|unsigned|void|volatile|while|bool|true|false|class|private|protected"
        r"|public|virtual|explicit|export|friend|mutable|namespace|operator|template|this|throw|try"
        r"|catch|typename|using|new|delete)\b",
        KEYWORD,
    ),
    _rule(r"^#\s*\w+", DECORATOR, _M),
    _rule(r"\b(std|cout|cin|endl|vector|string|map|set|nullptr|NULL)\b", BUILTIN),
    _rule(r"(\w+)(?=\s*\()", CALL),
    _rule(r'"(?:[^"\\]|\\.)*"', STRING),
    _rule(r"'(?:[^'\\]|\\.)*'", STRING),
    _rule(r"\b\d+(\.\d+)?([eE][+-]?\d+)?[ulULfF]?\b", NUMBER),
    _rule(_SLASH_COMMENTS, COMMENT, _M),
    _rule(r"([+\-*/%=<>!&|^~?:]|<<|>>|->|\.\*|::)", OPERATOR),
]

_GO = [
    _rule(r"\b(type)\s+(\w+)", g1=KEYWORD, g2=TYPE_NAME),
    _rule(r"\b(func)\s+(\w+)", g1=KEYWORD, g2=DEF_NAME),
    _rule(r"func\s*\((\w+\s+\*?\w+)\)", g1="italic"),
    _rule(
        r"\b(break|case|chan|const|continue|default|defer|else|fallthrough|for|func|go|goto|if"
        r"|import|interface|map|package|range|return|select|struct|switch|type|var)\b",
        KEYWORD,
    ),
    _rule(
        r"\b(bool|byte|complex64|complex128|error|float32|float64|int|int8|int16|int32|int64|rune"
        r"|string|uint|uint8|uint16|uint32|uint64|uintptr|true|false|nil|append|cap|close|copy"
        r"|delete|len|make|new|panic|recover|print|println)\b",
        BUILTIN,
    ),
    _rule(r"\b(var|const)\s+(\w+)", g1=KEYWORD, g2="italic"),
    _rule(r"(\w+)\s*:=", g1="italic"),
    _rule(r"(\w+)(?=\s*\()", CALL),
    _rule(_QUOTED, STRING),
    _rule(r"\b\d+(\.\d+)?([eE][+-]?\d+)?\b", NUMBER),
    _rule(_SLASH_COMMENTS, COMMENT, _M),
    _rule(r"([+\-*/%=<>!&|^~?:]|:=|\.\.\.|<-)", OPERATOR),
    _rule(r"`[^`]+`", "bright_cyan"),
]

_RUST = [
    _rule(r"\b(struct|enum|trait)\s+(\w+)", g1=KEYWORD, g2=TYPE_NAME),
    _rule(r"\b(fn)\s+(\w+)", g1=KEYWORD, g2=DEF_NAME),
    _rule(r"\b(impl)\s+(\w+)", g1=KEYWORD, g2=BUILTIN),
    _rule(
        r"\b(as|break|const|continue|crate|else|enum|extern|false|fn|for|if|impl|in|let|loop|match"
        r"|mod|move|mut|pub|ref|return|self|Self|static|struct|super|trait|true|type|unsafe|use"
        r"|where|while|async|await|dyn)\b",
        KEYWORD,
    ),
    _rule(r"\b(let|const)\s+(mut\s+)?(\w+)", g1=KEYWORD, g2=KEYWORD, g3="italic"),
    _rule(r"\w+!", "underline bright_magenta"),
    _rule(r"\b[A-Z][a-zA-Z0-9_]*\b", BUILTIN),
    _rule(r"'[a-z]\w*", "italic bright_red"),
    _rule(r"(\w+)(?=\s*\()", CALL),
    _rule(r"\.(\w+)(?=\s*\()", g1=CALL),
    _rule(r'"(?:[^"\\]|\\.)*"', STRING),
    _rule(r'r#+".*?"#+', STRING),
    _rule(r"\b\d+(\.\d+)?([eE][+-]?\d+)?[iuf]?\d*\b", NUMBER),
    _rule(_SLASH_COMMENTS, COMMENT, _M),
    _rule(r"///.*$", "dim white", _M),
    _rule(r"([+\-*/%=<>!&|^~?:]|\.\.=?|=>|->)", OPERATOR),
    _rule(r"#\[[\s\S]*?\]", DECORATOR),
]

_RUBY = [
    _rule(
        r"\b(BEGIN|END|alias|and|begin|break|case|class|def|defined\?|do|else|elsif|end|ensure"
        r"|false|for|if|in|module|next|nil|not|or|redo|rescue|retry|return|self|super|then|true"
        r"|undef|unless|until|when|while|yield)\b",
        KEYWORD,
    ),
    _rule(r":\w+", "bright_yellow"),
    _rule(r"[@$]\w+", "bright_cyan"),
    _rule(r"\b[A-Z][A-Z_]*\b", BUILTIN),
    _rule(r"(\w+)(?=\s*\()", CALL),
    _rule(_QUOTED_NO_BACKTICK, STRING),
    _rule(r"/(?:[^/\\]|\\.)*/", "bright_green"),
    _rule(r"\b\d+(\.\d+)?([eE][+-]?\d+)?\b", NUMBER),
    _rule(r"#.*$", COMMENT, _M),
    _rule(r"([+\-*/%=<>!&|^~?:]|\.\.\.?|=>|<=>)", OPERATOR),
]

_BASH = [
    _rule(
        r"\b(if|then|else|elif|fi|for|while|do|done|case|esac|function|return|break|continue|exit"
        r"|shift|export|source|alias|unset|readonly|local|declare|typeset|trap|exec|eval)\b",
        KEYWORD,
    ),
    _rule(
        r"\b(echo|printf|read|cd|pwd|ls|cp|mv|rm|mkdir|rmdir|touch|cat|grep|sed|awk|cut|sort|uniq"
        r"|find|xargs|chmod|chown|ps|kill|date|sleep|test|true|false)\b",
        BUILTIN,
    ),
    _rule(r"\$\{?\w+\}?", "bright_cyan"),
    _rule(r"\$\([^)]+\)|`[^`]+`", DECORATOR),
    _rule(_QUOTED_NO_BACKTICK, STRING),
    _rule(r"#.*$", COMMENT, _M),
    _rule(r"([|&;<>]|&&|\|\||>>|<<|;;&|;&)", OPERATOR),
]

_SQL = [
    _rule(
        r"\b(SELECT|FROM|WHERE|JOIN|INNER|LEFT|RIGHT|OUTER|ON|AS|INSERT|INTO|VALUES|UPDATE|SET"
        r"|DELETE|CREATE|ALTER|DROP|TABLE|DATABASE|INDEX|VIEW|PROCEDURE|FUNCTION|TRIGGER|IF|EXISTS"
        r"|NOT|NULL|PRIMARY|KEY|FOREIGN|REFERENCES|UNIQUE|DEFAULT|CHECK|CONSTRAINT|GROUP|BY|ORDER"
        r"|HAVING|LIMIT|OFFSET|UNION|ALL|DISTINCT|CASE|WHEN|THEN|ELSE|END|AND|OR|IN|BETWEEN|LIKE"
        r"|IS|ASC|DESC|COUNT|SUM|AVG|MIN|MAX|CAST|CONVERT)\b",
        KEYWORD,
        _I,
    ),
    _rule(
        r"\b(INT|INTEGER|BIGINT|SMALLINT|TINYINT|DECIMAL|NUMERIC|FLOAT|DOUBLE|REAL|BOOLEAN|BOOL"
        r"|CHAR|VARCHAR|TEXT|DATE|TIME|TIMESTAMP|DATETIME|BLOB|CLOB)\b",
        BUILTIN,
        _I,
    ),
    _rule(r"(\w+)(?=\s*\()", CALL),
    _rule(r"'(?:[^'\\]|\\.)*'", STRING),
    _rule(r"\b\d+(\.\d+)?\b", NUMBER),
    _rule(r"--.*$", COMMENT, _M),
    _rule(r"/\*[\s\S]*?\*/", COMMENT),
    _rule(r"([+\-*/%=<>!]|<>|<=|>=|!=)", OPERATOR),
]

_YAML = [
    _rule(r"^(\s*)([a-zA-Z_][\w-]*)\s*:", flags=_M, g2=KEYWORD),
    _rule(r"\b(true|false|yes|no|on|off)\b", BUILTIN, _I),
    _rule(r"\b\d+(\.\d+)?([eE][+-]?\d+)?\b", NUMBER),
    _rule(_QUOTED_NO_BACKTICK, STRING),
    _rule(r"[&*]\w+", DECORATOR),
    _rule(r"^\s*-\s+", OPERATOR, _M),
    _rule(r"#.*$", COMMENT, _M),
]

_JSON = [
    _rule(r'("[^"]+")\s*:', g1=KEYWORD),
    _rule(r':\s*("[^"]*")', g1=STRING),
    _rule(r":\s*(-?\d+(\.\d+)?([eE][+-]?\d+)?)", g1=NUMBER),
    _rule(r":\s*(true|false)", g1=BUILTIN),
    _rule(r":\s*(null)", g1="bold red"),
]

_MARKDOWN = [
    _rule(r"^#{1,6}\s+.+$", "bold bright_white", _M),
    _rule(r"\*\*([^*]+)\*\*", g1="bold"),
    _rule(r"\*([^*]+)\*", g1="italic"),
    _rule(r"`([^`]+)`", g1="black on yellow"),
    _rule(r"\[([^\]]+)\]\(([^)]+)\)", g1="underline blue"),
    _rule(r"^\s*[-*+]\s+", OPERATOR, _M),
    _rule(r"^>\s+.+$", "dim", _M),
]

LANGUAGE_RULES: dict[str, Sequence[HighlightRule] | str] = {
    "javascript": _JAVASCRIPT,
    "typescript": "javascript",
    "python": _PYTHON,
    "java": _JAVA,
    "cpp": _CPP,
    "c": "cpp",
    "go": _GO,
    "rust": _RUST,
    "ruby": _RUBY,
    "bash": _BASH,
    "sh": "bash",
    "zsh": "bash",
    "sql": _SQL,
    "yaml": _YAML,
    "yml": "yaml",
    "json": _JSON,
    "markdown": _MARKDOWN,
    "md": "markdown",
}

DEFAULT_RULES: Sequence[HighlightRule] = [
    _rule(
        r"\b(if|else|for|while|return|function|class|import|export|const|let|var|def|end|begin)\b",
        KEYWORD,
    ),
    _rule(_QUOTED_NO_BACKTICK, STRING),
    _rule(r"\b\d+\.?\d*\b", NUMBER),
    _rule(r"(//.*$)|(#.*$)|(/\*[\s\S]*?\*/)", COMMENT, _M),
    _rule(r"([+\-*/%=<>!&|^~?:])", OPERATOR),
]

EXTENSION_LANGUAGES: dict[str, str] = {
    "js": "javascript",
    "jsx": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
    "py": "python",
    "rb": "ruby",
    "java": "java",
    "cpp": "cpp",
    "cc": "cpp",
    "cxx": "cpp",
    "c": "c",
    "h": "c",
    "hpp": "cpp",
    "cs": "csharp",
    "go": "go",
    "rs": "rust",
    "sh": "bash",
    "bash": "bash",
    "zsh": "zsh",
    "sql": "sql",
    "yml": "yaml",
    "yaml": "yaml",
    "json": "json",
    "md": "markdown",
    "markdown": "markdown",
}

_SHEBANG_LANGUAGES = (
    ("python", "python"),
    ("node", "javascript"),
    ("bash", "bash"),
    ("sh", "sh"),
    ("ruby", "ruby"),
)


def rules_for(language: str | None) -> Sequence[HighlightRule]:
    """Return the rule list for a language name, following aliases."""
    entry = LANGUAGE_RULES.get((language or "").strip().lower())
    if isinstance(entry, str):
        entry = LANGUAGE_RULES.get(entry)
    if entry is None or isinstance(entry, str):
        return DEFAULT_RULES
    return entry


def highlight(code: str, language: str | None = None) -> Text:
    """Return ``code`` as styled text using the rules of ``language``."""
    text = Text(code)
    claimed: list[tuple[int, int]] = []
    for rule in rules_for(language):
        for match in rule.pattern.finditer(code):
            start, end = match.span()
            if start == end:
                continue
            if any(start < other_end and end > other_start for other_start, other_end in claimed):
                continue
            claimed.append((start, end))
            rule.apply(text, match)
    return text


def detect_language(code: str, filename: str | None = None) -> str | None:
    """Guess a language from a filename extension, then from a shebang line."""
    if filename:
        suffix = PurePath(filename).suffix.lstrip(".").lower()
        if suffix in EXTENSION_LANGUAGES:
            return EXTENSION_LANGUAGES[suffix]

    if code.startswith("#!"):
        first_line = code.split("\n", 1)[0]
        for needle, language in _SHEBANG_LANGUAGES:
            if needle in first_line:
                return language
    return None


__all__ = [
    "DEFAULT_RULES",
    "EXTENSION_LANGUAGES",
    "LANGUAGE_RULES",
    "HighlightRule",
    "detect_language",
    "highlight",
    "rules_for",
]
