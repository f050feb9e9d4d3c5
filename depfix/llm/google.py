"""Generator backed by the Gemini `generateContent` endpoint."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence
from urllib.parse import quote

from ..logging import get_logger
from ..models import EnvDoc, KeyContext
from ..prompting.builder import PromptBuilder
from .base import DocsGenerator, EnrichmentOptions, SchemaError
from .schema import GOOGLE_RESPONSE_SCHEMA, extract_google_text, parse_docs
from .transport import post_json

logger = get_logger("llm.google")


class GoogleDocsGenerator(DocsGenerator):
    """Documents keys with a single JSON-mode Gemini request."""

    provider = "google"
    default_model = "gemini-2.5-flash"
    api_key_env = "GOOGLE_API_KEY"
    DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        request_timeout: Optional[float] = None,
        prompt_builder: PromptBuilder | None = None,
    ) -> None:
        self.base_url = (base_url or self.DEFAULT_BASE_URL).rstrip("/")
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
        model = options.model or self.default_model
        payload = self.build_payload(keys, contexts, options)
        logger.debug("Requesting docs for %d keys from Gemini model %s", len(keys), model)
        response = post_json(
            f"{self.base_url}/models/{quote(model, safe='.-_')}:generateContent",
            payload,
            headers={"x-goog-api-key": options.api_key},
            timeout=self.request_timeout,
            label="Google AI API",
        )
        text = extract_google_text(response)
        if not text:
            raise SchemaError("Google AI API response contained no candidate text")
        return parse_docs(text, keys)

    def build_payload(
        self,
        keys: Sequence[str],
        contexts: Mapping[str, Sequence[KeyContext]],
        options: EnrichmentOptions,
    ) -> Dict[str, Any]:
        system, user = self.prompt_builder.build(keys, contexts, project_hint=options.project_hint)
        return {
            "systemInstruction": {"parts": [{"text": system.content}]},
            "contents": [{"role": "user", "parts": [{"text": user.content}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": GOOGLE_RESPONSE_SCHEMA,
            },
        }


__all__ = ["GoogleDocsGenerator"]
