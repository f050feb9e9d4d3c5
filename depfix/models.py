"""Core data models shared across depfix components."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple

SNIPPET_LIMIT = 220
DEFAULT_MAX_CONTEXT = 2


@dataclass(frozen=True)
class KeyContext:
    """A single source location where an environment variable was referenced."""

    file: str
    line: int
    snippet: str


@dataclass(frozen=True)
class ScanResult:
    """Immutable outcome of scanning one directory tree."""

    keys: FrozenSet[str]
    files_scanned: int
    contexts: Mapping[str, Tuple[KeyContext, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def build(
        cls,
        keys: Sequence[str] | FrozenSet[str],
        files_scanned: int,
        contexts: Mapping[str, Sequence[KeyContext]] | None = None,
    ) -> "ScanResult":
        frozen_contexts = {
            key: tuple(entries) for key, entries in (contexts or {}).items()
        }
        return cls(
            keys=frozenset(keys),
            files_scanned=files_scanned,
            contexts=MappingProxyType(frozen_contexts),
        )

    def sorted_keys(self) -> List[str]:
        return sorted(self.keys)

    def first_context(self, key: str) -> Optional[KeyContext]:
        entries = self.contexts.get(key)
        return entries[0] if entries else None


@dataclass(frozen=True)
class EnvDoc:
    """Machine-generated documentation for one environment variable."""

    key: str
    description: str
    where_to_get: str
    example_value: str
    is_secret: bool


@dataclass
class Group:
    """Rendered section of the template: a heading and its keys."""

    heading: str
    keys: List[str]


@dataclass
class GenerateOptions:
    """Effective settings for one `env generate` invocation."""

    root: Path
    out: str = ".env.example"
    env_file: str = ".env"
    check: bool = False
    create: bool = False
    force: bool = False
    dry_run: bool = False
    include_lowercase: bool = False
    max_context: int = DEFAULT_MAX_CONTEXT
    exclude_dirs: List[str] = field(default_factory=list)
    ai: bool = False
    provider: str = "openai"
    model: Optional[str] = None
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    request_timeout: Optional[float] = None
    project_hint: Optional[str] = None
    monorepo: bool = False
    workspaces: List[str] = field(default_factory=list)
    skip_root: bool = False


@dataclass
class CheckOutcome:
    """Result of comparing scanned keys against an existing template."""

    path: Path
    ok: bool
    missing: List[str] = field(default_factory=list)
    reason: Optional[str] = None


@dataclass
class CreateOutcome:
    """Result of attempting to write the real env file skeleton."""

    path: Path
    written: bool
    reason: Optional[str] = None


@dataclass
class TargetOutcome:
    """Per-directory result of a generate run."""

    label: str
    root: Path
    output: Path
    scan: ScanResult
    written: bool
    content: str
    documented: int = 0
    check: Optional[CheckOutcome] = None
    create: Optional[CreateOutcome] = None


@dataclass
class GenerateOutcome:
    """Aggregate result across all generate targets."""

    targets: List[TargetOutcome]
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        return all(target.check is None or target.check.ok for target in self.targets)

    def missing_by_target(self) -> Dict[str, List[str]]:
        return {
            target.label: list(target.check.missing)
            for target in self.targets
            if target.check is not None and target.check.missing
        }
