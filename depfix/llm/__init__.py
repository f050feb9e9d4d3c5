"""Documentation generators for discovered environment variables."""

from __future__ import annotations

from typing import Dict, Optional, Type

from .base import (
    DEFAULT_PROJECT_HINT,
    DocsGenerator,
    EnrichmentOptions,
    GenerationError,
    NetworkError,
    SchemaError,
)
from .google import GoogleDocsGenerator
from .openai import OpenAIDocsGenerator

GENERATORS: Dict[str, Type[DocsGenerator]] = {
    OpenAIDocsGenerator.provider: OpenAIDocsGenerator,
    GoogleDocsGenerator.provider: GoogleDocsGenerator,
}


def generator_class(provider: str) -> Type[DocsGenerator]:
    try:
        return GENERATORS[provider.lower()]
    except KeyError:
        choices = ", ".join(sorted(GENERATORS))
        raise ValueError(f"Unknown AI provider '{provider}'. Choose one of: {choices}") from None


def build_generator(
    provider: str,
    *,
    base_url: Optional[str] = None,
    request_timeout: Optional[float] = None,
) -> DocsGenerator:
    """Instantiate the generator registered for `provider`."""
    cls = generator_class(provider)
    return cls(base_url=base_url, request_timeout=request_timeout)  # type: ignore[call-arg]


__all__ = [
    "DEFAULT_PROJECT_HINT",
    "DocsGenerator",
    "EnrichmentOptions",
    "GENERATORS",
    "GenerationError",
    "GoogleDocsGenerator",
    "NetworkError",
    "OpenAIDocsGenerator",
    "SchemaError",
    "build_generator",
    "generator_class",
]
