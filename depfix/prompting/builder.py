"""Builds the enrichment prompt from Jinja templates."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..models import KeyContext


@dataclass(frozen=True)
class PromptMessage:
    """Represents a single chat message for the generation backend."""

    role: str
    content: str

    def as_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class KeyPromptEntry:
    key: str
    location: str
    snippet: str


class PromptBuilder:
    """Assembles the two-message (system + user) enrichment prompt."""

    SYSTEM_TEMPLATE = "system.j2"
    USER_TEMPLATE = "user.j2"

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir or Path(__file__).with_name("templates")
        self._env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=False,
            keep_trailing_newline=False,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )

    def build(
        self,
        keys: Sequence[str],
        contexts: Mapping[str, Sequence[KeyContext]],
        *,
        project_hint: str,
    ) -> List[PromptMessage]:
        entries = [self._entry(key, contexts.get(key) or ()) for key in keys]
        system = self._env.get_template(self.SYSTEM_TEMPLATE).render()
        user = self._env.get_template(self.USER_TEMPLATE).render(
            entries=entries,
            project_hint=project_hint.strip(),
        )
        return [
            PromptMessage(role="system", content=system.strip()),
            PromptMessage(role="user", content=user.strip()),
        ]

    @staticmethod
    def _entry(key: str, contexts: Sequence[KeyContext]) -> KeyPromptEntry:
        if not contexts:
            return KeyPromptEntry(key=key, location="", snippet="")
        first = contexts[0]
        return KeyPromptEntry(key=key, location=f"{first.file}:{first.line}", snippet=first.snippet)


__all__ = ["KeyPromptEntry", "PromptBuilder", "PromptMessage"]
