"""Groups keys by naming convention and renders env templates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set

from ..models import EnvDoc, Group, ScanResult

OTHER_HEADING = "Other"

SECRET_NOTE = "Secret value. Do not commit."
NON_SECRET_NOTE = "Non-secret value (verify before committing)."


@dataclass(frozen=True)
class PrefixRule:
    """Assigns keys starting with `prefix` to the `heading` group."""

    prefix: str
    heading: str

    def matches(self, key: str) -> bool:
        return key.startswith(self.prefix)


# Evaluated in order; the first matching rule claims the key.
GROUP_RULES: Sequence[PrefixRule] = (
    PrefixRule("DB_", "Database"),
    PrefixRule("REDIS_", "Redis"),
    PrefixRule("AWS_", "AWS"),
    PrefixRule("SMTP_", "SMTP"),
    PrefixRule("NEXT_PUBLIC_", "Next.js public env"),
    PrefixRule("VITE_", "Vite env"),
)


def group_keys(
    keys: Iterable[str], rules: Sequence[PrefixRule] = GROUP_RULES
) -> List[Group]:
    """Partition keys into non-empty groups in rule priority order."""
    buckets: Dict[str, List[str]] = {rule.heading: [] for rule in rules}
    other: List[str] = []
    for key in sorted(set(keys)):
        for rule in rules:
            if rule.matches(key):
                buckets[rule.heading].append(key)
                break
        else:
            other.append(key)

    groups = [Group(heading=rule.heading, keys=buckets[rule.heading]) for rule in rules]
    groups.append(Group(heading=OTHER_HEADING, keys=other))
    return [group for group in groups if group.keys]


def render_placeholder(name: str = ".env.example") -> str:
    return f"# {name}\n# Add your environment variables below (e.g. PORT=3000)\n"


def render_template(
    result: ScanResult,
    docs: Optional[Iterable[EnvDoc]] = None,
    *,
    name: str = ".env.example",
) -> str:
    """Render the `.env.example` body, enriched when docs are supplied."""
    if not result.keys:
        return render_placeholder(name)

    docs_by_key: Mapping[str, EnvDoc] = {doc.key: doc for doc in docs or ()}
    lines: List[str] = []
    for group in group_keys(result.keys):
        lines.append(f"# {group.heading}")
        for key in group.keys:
            doc = docs_by_key.get(key)
            if doc is None:
                lines.append(f"{key}=")
                continue
            lines.extend(_doc_block(key, doc))
            lines.append("")
        if lines[-1] != "":
            lines.append("")
    return _finalise(lines)


def render_env_file(keys: Iterable[str]) -> str:
    """Render a bare `KEY=` skeleton for a real env file."""
    return _finalise([f"{key}=" for key in sorted(set(keys))])


def parse_template_keys(content: str) -> Set[str]:
    """Return keys assigned in an existing template, ignoring comments and blanks."""
    keys: Set[str] = set()
    for raw in content.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        index = line.find("=")
        if index <= 0:
            continue
        key = line[:index].strip()
        if key:
            keys.add(key)
    return keys


def _doc_block(key: str, doc: EnvDoc) -> List[str]:
    note = SECRET_NOTE if doc.is_secret else NON_SECRET_NOTE
    return [
        f"# {key}",
        f"# {_one_line(doc.description)}",
        f"# Where to get it: {_one_line(doc.where_to_get)}",
        f"# {note}",
        f"{key}={_one_line(doc.example_value)}",
    ]


def _one_line(value: str) -> str:
    return " ".join(str(value or "").split())


def _finalise(lines: List[str]) -> str:
    text = "\n".join(line.rstrip() for line in lines).rstrip()
    return text + "\n"


__all__ = [
    "GROUP_RULES",
    "NON_SECRET_NOTE",
    "OTHER_HEADING",
    "PrefixRule",
    "SECRET_NOTE",
    "group_keys",
    "parse_template_keys",
    "render_env_file",
    "render_placeholder",
    "render_template",
]
