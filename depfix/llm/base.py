"""Capability interface and errors for documentation generators."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence

from ..models import EnvDoc, KeyContext

DEFAULT_PROJECT_HINT = "Practical guidance for developers setting env vars."


class GenerationError(RuntimeError):
    """Raised when documentation could not be generated."""


class SchemaError(GenerationError):
    """Raised when a response does not match the required `{"items": [...]}` shape."""


class NetworkError(GenerationError):
    """Raised when the generation endpoint fails or answers with a non-2xx status."""

    def __init__(self, message: str, *, status: Optional[int] = None, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body


@dataclass
class EnrichmentOptions:
    """Per-call settings passed to a generator."""

    api_key: str
    model: str
    project_hint: str = DEFAULT_PROJECT_HINT


class DocsGenerator(ABC):
    """Contract for backends that document environment variables in one batch."""

    provider: str = ""
    default_model: str = ""
    api_key_env: str = ""

    @abstractmethod
    def generate_docs(
        self,
        keys: Sequence[str],
        contexts: Mapping[str, Sequence[KeyContext]],
        options: EnrichmentOptions,
    ) -> List[EnvDoc]:
        """Return one EnvDoc per key the backend documented."""


__all__ = [
    "DEFAULT_PROJECT_HINT",
    "DocsGenerator",
    "EnrichmentOptions",
    "GenerationError",
    "NetworkError",
    "SchemaError",
]
