"""JSON-over-HTTPS helper used by the generation backends."""

from __future__ import annotations

import json
from http.client import HTTPException
from typing import Any, Dict, Mapping, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .base import NetworkError, SchemaError

DEFAULT_TIMEOUT = 120.0


def post_json(
    url: str,
    payload: Mapping[str, Any],
    *,
    headers: Optional[Mapping[str, str]] = None,
    timeout: Optional[float] = None,
    label: str = "Generation API",
) -> Dict[str, Any]:
    """POST `payload` as JSON and return the decoded JSON object."""
    data = json.dumps(payload).encode("utf-8")
    request_headers = {"Content-Type": "application/json"}
    request_headers.update(headers or {})
    http_request = Request(url, data=data, headers=request_headers, method="POST")

    try:
        with urlopen(http_request, timeout=timeout or DEFAULT_TIMEOUT) as response:  # type: ignore[arg-type]
            raw = response.read()
    except HTTPError as exc:
        detail = exc.read().decode("utf-8", errors="ignore") if hasattr(exc, "read") else ""
        body = detail.strip()
        raise NetworkError(
            f"{label} error {exc.code}: {body or exc.reason}",
            status=exc.code,
            body=body,
        ) from exc
    except URLError as exc:
        raise NetworkError(f"{label} request failed: {exc.reason}") from exc
    except (HTTPException, OSError) as exc:
        # Timeouts, resets and truncated bodies while reading the response.
        raise NetworkError(f"{label} request failed: {exc!r}") from exc

    try:
        decoded = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise SchemaError(f"{label} returned a body that is not JSON") from exc
    if not isinstance(decoded, dict):
        raise SchemaError(f"{label} returned a JSON body that is not an object")
    return decoded


__all__ = ["DEFAULT_TIMEOUT", "post_json"]
