"""Line-level recognisers for environment variable references."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, List, Pattern, Sequence, Tuple

STRICT_KEY = re.compile(r"^[A-Z][A-Z0-9_]*$")
LOOSE_KEY = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_IDENT = r"(?P<key>[A-Za-z_][A-Za-z0-9_]*)"
_QUOTED = r"[\"'`]" + _IDENT + r"[\"'`]"

_DECLARATION = re.compile(r"^\s*(?:export\s+)?" + _IDENT + r"\s*=")

_C_STYLE = ("//", "/*", "*")
_HASH_STYLE = ("#",)
_MARKUP_STYLE = ("<!--",) + _C_STYLE

# Used when the file type is unknown.
_DEFAULT_COMMENT_PREFIXES = ("//", "#", "/*", "*", "<!--")

_COMMENT_PREFIXES_BY_SUFFIX = {
    **dict.fromkeys(
        (".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx", ".mts", ".cts", ".go", ".rs", ".java", ".kt"),
        _C_STYLE,
    ),
    **dict.fromkeys((".vue", ".svelte", ".astro", ".html"), _MARKUP_STYLE),
    **dict.fromkeys((".py", ".rb", ".sh", ".bash", ".zsh", ".yml", ".yaml", ".toml"), _HASH_STYLE),
    ".php": _C_STYLE + _HASH_STYLE,
    ".json": (),
}


@dataclass(frozen=True)
class AccessPattern:
    """One idiom for reading an environment variable by name."""

    name: str
    regex: Pattern[str]
    group: str = "key"


@dataclass(frozen=True)
class KeyMatch:
    """A candidate key extracted from a single line."""

    key: str
    column: int


# Ordered; new idioms are appended here without touching the scanner.
ACCESS_PATTERNS: Sequence[AccessPattern] = (
    AccessPattern("process.env.KEY", re.compile(r"\bprocess\.env\." + _IDENT)),
    AccessPattern("process.env['KEY']", re.compile(r"\bprocess\.env\[\s*" + _QUOTED + r"\s*\]")),
    AccessPattern("import.meta.env.KEY", re.compile(r"\bimport\.meta\.env\." + _IDENT)),
    AccessPattern("Bun.env.KEY", re.compile(r"\bBun\.env\." + _IDENT)),
    AccessPattern("Deno.env.get('KEY')", re.compile(r"\bDeno\.env\.get\(\s*" + _QUOTED)),
    AccessPattern(
        "os.environ['KEY']",
        re.compile(r"\bos\.environ(?:\.get\(\s*|\[\s*|\.setdefault\(\s*)" + _QUOTED),
    ),
    AccessPattern("os.getenv('KEY')", re.compile(r"\bos\.getenv\(\s*" + _QUOTED)),
    AccessPattern("os.Getenv(\"KEY\")", re.compile(r"\bos\.(?:Getenv|LookupEnv)\(\s*" + _QUOTED)),
    AccessPattern("ENV['KEY']", re.compile(r"(?<![\w.])ENV(?:\[\s*|\.fetch\(\s*)" + _QUOTED)),
    AccessPattern("env::var(\"KEY\")", re.compile(r"\benv::var(?:_os)?\(\s*" + _QUOTED)),
    AccessPattern("System.getenv(\"KEY\")", re.compile(r"\bSystem\.getenv\(\s*" + _QUOTED)),
)


def key_policy(include_lowercase: bool) -> Pattern[str]:
    """Return the acceptance regex for candidate names."""
    return LOOSE_KEY if include_lowercase else STRICT_KEY


def is_declaration_file(filename: str) -> bool:
    return filename == ".env" or filename.startswith(".env.")


def comment_prefixes(suffix: str = "") -> Tuple[str, ...]:
    """Return the line-comment markers for a file suffix such as `.ts`."""
    if not suffix:
        return _DEFAULT_COMMENT_PREFIXES
    return _COMMENT_PREFIXES_BY_SUFFIX.get(suffix.lower(), _DEFAULT_COMMENT_PREFIXES)


def is_comment(line: str, suffix: str = "") -> bool:
    prefixes = comment_prefixes(suffix)
    return bool(prefixes) and line.lstrip().startswith(prefixes)


class KeyMatcher:
    """Extracts candidate keys from lines of declaration or source files."""

    def __init__(
        self,
        *,
        include_lowercase: bool = False,
        patterns: Sequence[AccessPattern] = ACCESS_PATTERNS,
    ) -> None:
        self.policy = key_policy(include_lowercase)
        self.patterns = tuple(patterns)

    def match_declaration(self, line: str) -> List[KeyMatch]:
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            return []
        match = _DECLARATION.match(line)
        if match is None:
            return []
        return list(self._accepted([KeyMatch(match.group("key"), match.start("key"))]))

    def match_source(self, line: str, suffix: str = "") -> List[KeyMatch]:
        if not line.strip() or is_comment(line, suffix):
            return []
        candidates: List[KeyMatch] = []
        seen_columns = set()
        for pattern in self.patterns:
            for match in pattern.regex.finditer(line):
                column = match.start(pattern.group)
                if column in seen_columns:
                    continue
                seen_columns.add(column)
                candidates.append(KeyMatch(match.group(pattern.group), column))
        candidates.sort(key=lambda item: item.column)
        return list(self._accepted(candidates))

    def match(self, line: str, *, declaration: bool, suffix: str = "") -> List[KeyMatch]:
        if declaration:
            return self.match_declaration(line)
        return self.match_source(line, suffix)

    def _accepted(self, candidates: Sequence[KeyMatch]) -> Iterator[KeyMatch]:
        for candidate in candidates:
            if self.policy.match(candidate.key):
                yield candidate


__all__ = [
    "ACCESS_PATTERNS",
    "AccessPattern",
    "KeyMatch",
    "KeyMatcher",
    "LOOSE_KEY",
    "STRICT_KEY",
    "comment_prefixes",
    "is_comment",
    "is_declaration_file",
    "key_policy",
]
