"""Generator backed by the OpenAI Responses API with strict structured output."""

from __future__ import annotations

import os
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..logging import get_logger
from ..models import EnvDoc, KeyContext
from ..prompting.builder import PromptBuilder
from .base import DocsGenerator, EnrichmentOptions, SchemaError
from .schema import ENV_DOCS_SCHEMA, extract_openai_text, parse_docs
from .transport import post_json

logger = get_logger("llm.openai")


class OpenAIDocsGenerator(DocsGenerator):
    """Documents keys with a single `POST /responses` call."""

    provider = "openai"
    default_model = "gpt-4o-mini"
    api_key_env = "OPENAI_API_KEY"
    DEFAULT_BASE_URL = "https://api.openai.com/v1"
    ENV_BASE_URL_KEYS = ("OPENAI_BASE_URL",)

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        request_timeout: Optional[float] = None,
        prompt_builder: PromptBuilder | None = None,
    ) -> None:
        self.base_url = self._resolve_base_url(base_url)
        self.request_timeout = request_timeout
        self.prompt_builder = prompt_builder or PromptBuilder()

    def generate_docs(
        self,
        keys: Sequence[str],
        contexts: Mapping[str, Sequence[KeyContext]],
        options: EnrichmentOptions,
    ) -> List[EnvDoc]:
        if not keys:
            return []
        payload = self.build_payload(keys, contexts, options)
        logger.debug("Requesting docs for %d keys from %s", len(keys), self.base_url)
        response = post_json(
            f"{self.base_url}/responses",
            payload,
            headers={"Authorization": f"Bearer {options.api_key}"},
            timeout=self.request_timeout,
            label="OpenAI API",
        )
        text = extract_openai_text(response)
        if not text:
            raise SchemaError("OpenAI API response contained no output text")
        return parse_docs(text, keys)

    def build_payload(
        self,
        keys: Sequence[str],
        contexts: Mapping[str, Sequence[KeyContext]],
        options: EnrichmentOptions,
    ) -> Dict[str, Any]:
        messages = self.prompt_builder.build(keys, contexts, project_hint=options.project_hint)
        return {
            "model": options.model or self.default_model,
            "input": [message.as_dict() for message in messages],
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": "env_docs",
                    "strict": True,
                    "schema": ENV_DOCS_SCHEMA,
                }
            },
        }

    @classmethod
    def _resolve_base_url(cls, base_url: Optional[str]) -> str:
        if base_url:
            return base_url.rstrip("/")
        for key in cls.ENV_BASE_URL_KEYS:
            value = os.getenv(key)
            if value:
                return value.rstrip("/")
        return cls.DEFAULT_BASE_URL


__all__ = ["OpenAIDocsGenerator"]
