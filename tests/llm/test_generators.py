"""Tests for the OpenAI and Google documentation generators."""

from __future__ import annotations

import io
import json
from http.client import IncompleteRead
from urllib.error import HTTPError

import pytest

from depfix.llm import (
    EnrichmentOptions,
    GoogleDocsGenerator,
    NetworkError,
    OpenAIDocsGenerator,
    SchemaError,
    build_generator,
)
from depfix.models import KeyContext

_ITEMS = {
    "items": [
        {
            "key": "STRIPE_SECRET_KEY",
            "description": "Server-side Stripe key.",
            "where_to_get": "Stripe dashboard > Developers > API keys.",
            "example_value": "sk_test_xxx",
            "is_secret": True,
        }
    ]
}

_CONTEXTS = {
    "STRIPE_SECRET_KEY": (
        KeyContext(file="src/pay.ts", line=4, snippet="new Stripe(process.env.STRIPE_SECRET_KEY)"),
    )
}


class FakeResponse:
    def __init__(self, payload):
        self._payload = payload

    def read(self):
        return json.dumps(self._payload).encode("utf-8")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


def _capture(monkeypatch, payload) -> dict:
    captured: dict = {"calls": 0}

    def fake_urlopen(request, timeout=None):
        captured["calls"] += 1
        captured["url"] = request.full_url
        captured["headers"] = {k.lower(): v for k, v in request.header_items()}
        captured["payload"] = json.loads(request.data.decode("utf-8"))
        captured["timeout"] = timeout
        return FakeResponse(payload)

    monkeypatch.setattr("depfix.llm.transport.urlopen", fake_urlopen)
    return captured


def _options() -> EnrichmentOptions:
    return EnrichmentOptions(api_key="test-key", model="test-model", project_hint="Payments service.")


def test_openai_generator_posts_strict_schema_request(monkeypatch) -> None:
    captured = _capture(monkeypatch, {"output_text": json.dumps(_ITEMS)})
    generator = OpenAIDocsGenerator(base_url="https://llm.example.test/v1/", request_timeout=12.0)

    docs = generator.generate_docs(["STRIPE_SECRET_KEY"], _CONTEXTS, _options())

    assert [doc.key for doc in docs] == ["STRIPE_SECRET_KEY"]
    assert docs[0].is_secret is True
    assert captured["calls"] == 1
    assert captured["url"] == "https://llm.example.test/v1/responses"
    assert captured["headers"]["authorization"] == "Bearer test-key"
    assert captured["timeout"] == 12.0
    payload = captured["payload"]
    assert payload["model"] == "test-model"
    assert [message["role"] for message in payload["input"]] == ["system", "user"]
    assert "src/pay.ts:4" in payload["input"][1]["content"]
    assert "Payments service." in payload["input"][1]["content"]
    fmt = payload["text"]["format"]
    assert fmt["type"] == "json_schema"
    assert fmt["strict"] is True
    assert fmt["schema"]["required"] == ["items"]


def test_openai_generator_reads_nested_output(monkeypatch) -> None:
    nested = {"output": [{"content": [{"type": "output_text", "text": json.dumps(_ITEMS)}]}]}
    _capture(monkeypatch, nested)

    docs = OpenAIDocsGenerator().generate_docs(["STRIPE_SECRET_KEY"], {}, _options())

    assert docs[0].example_value == "sk_test_xxx"


def test_openai_generator_uses_env_base_url(monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_BASE_URL", "http://localhost:8080/v1/")

    assert OpenAIDocsGenerator().base_url == "http://localhost:8080/v1"


def test_google_generator_posts_json_mode_request(monkeypatch) -> None:
    response = {"candidates": [{"content": {"parts": [{"text": json.dumps(_ITEMS)}]}}]}
    captured = _capture(monkeypatch, response)

    docs = GoogleDocsGenerator().generate_docs(["STRIPE_SECRET_KEY"], _CONTEXTS, _options())

    assert docs[0].where_to_get.startswith("Stripe dashboard")
    assert captured["url"] == (
        "https://generativelanguage.googleapis.com/v1beta/models/test-model:generateContent"
    )
    assert captured["headers"]["x-goog-api-key"] == "test-key"
    payload = captured["payload"]
    assert "systemInstruction" in payload
    assert payload["contents"][0]["role"] == "user"
    assert payload["generationConfig"]["responseMimeType"] == "application/json"
    assert payload["generationConfig"]["responseSchema"]["required"] == ["items"]


def test_http_error_raises_network_error_with_status(monkeypatch) -> None:
    def failing_urlopen(request, timeout=None):
        raise HTTPError(
            request.full_url, 429, "Too Many Requests", hdrs=None, fp=io.BytesIO(b"rate limited")
        )

    monkeypatch.setattr("depfix.llm.transport.urlopen", failing_urlopen)

    with pytest.raises(NetworkError) as excinfo:
        OpenAIDocsGenerator().generate_docs(["A"], {}, _options())

    assert excinfo.value.status == 429
    assert "429" in str(excinfo.value)
    assert "rate limited" in str(excinfo.value)


def test_missing_items_in_model_output_raises_schema_error(monkeypatch) -> None:
    _capture(monkeypatch, {"output_text": json.dumps({"result": []})})

    with pytest.raises(SchemaError):
        OpenAIDocsGenerator().generate_docs(["A"], {}, _options())


def test_empty_output_raises_schema_error(monkeypatch) -> None:
    _capture(monkeypatch, {"candidates": []})

    with pytest.raises(SchemaError):
        GoogleDocsGenerator().generate_docs(["A"], {}, _options())


def test_no_keys_means_no_request(monkeypatch) -> None:
    captured = _capture(monkeypatch, {"output_text": "{}"})

    assert OpenAIDocsGenerator().generate_docs([], {}, _options()) == []
    assert captured["calls"] == 0


def test_build_generator_selects_by_provider() -> None:
    assert isinstance(build_generator("openai"), OpenAIDocsGenerator)
    assert isinstance(build_generator("Google"), GoogleDocsGenerator)
    with pytest.raises(ValueError):
        build_generator("unknown")


class _FailingReadResponse(FakeResponse):
    def __init__(self, exc: BaseException) -> None:
        super().__init__({})
        self._exc = exc

    def read(self):
        raise self._exc


@pytest.mark.parametrize(
    "exc",
    [
        TimeoutError("The read operation timed out"),
        IncompleteRead(b"{\"output", 120),
        ConnectionResetError(104, "Connection reset by peer"),
    ],
)
def test_failures_while_reading_body_raise_network_error(monkeypatch, exc) -> None:
    monkeypatch.setattr(
        "depfix.llm.transport.urlopen",
        lambda request, timeout=None: _FailingReadResponse(exc),
    )

    with pytest.raises(NetworkError) as excinfo:
        OpenAIDocsGenerator().generate_docs(["A"], {}, _options())

    assert excinfo.value.status is None
    assert excinfo.value.__cause__ is exc


def test_timeout_opening_connection_raises_network_error(monkeypatch) -> None:
    def slow_urlopen(request, timeout=None):
        raise TimeoutError("timed out")

    monkeypatch.setattr("depfix.llm.transport.urlopen", slow_urlopen)

    with pytest.raises(NetworkError, match="Google AI API request failed"):
        GoogleDocsGenerator().generate_docs(["A"], {}, _options())
