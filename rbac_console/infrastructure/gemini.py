"""Client for the Gemini ``generateContent`` endpoint.

One call per command, no retries. Every failure mode is reported as an
``UpstreamError`` so the HTTP layer can tell it apart from parse and domain
failures.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, assert_never

import httpx
from fastapi import status

from ..config import Settings
from ..errors import UpstreamError

logger = logging.getLogger(__name__)

UPSTREAM_LOG_PREVIEW_CHARS = 500


@dataclass(frozen=True, slots=True)
class CandidatesResponse:
    """``{"candidates": [{"content": {"parts": [{"text": ...}]}}]}``"""

    text: str


@dataclass(frozen=True, slots=True)
class ErrorResponse:
    """``{"error": {...}}`` returned with a 2xx status."""

    error: Any


@dataclass(frozen=True, slots=True)
class EchoResponse:
    """Legacy ``{"contents": [{"parts": [{"text": ...}]}]}`` shape."""

    text: str


GenerationResponse = CandidatesResponse | ErrorResponse | EchoResponse


def _first_part_text(container: Any) -> str:
    if not isinstance(container, Mapping):
        return ""
    parts = container.get("parts")
    if not isinstance(parts, list):
        return ""
    for part in parts:
        if isinstance(part, Mapping) and isinstance(part.get("text"), str):
            return part["text"]
    return ""


def _first_item(value: Any) -> Any:
    if isinstance(value, list) and value:
        return value[0]
    return None


def decode_response(payload: Any) -> GenerationResponse:
    if not isinstance(payload, Mapping):
        raise UpstreamError("Unexpected response from text generation API")

    if payload.get("error"):
        return ErrorResponse(error=payload["error"])

    if "candidates" in payload:
        candidate = _first_item(payload.get("candidates"))
        content = candidate.get("content") if isinstance(candidate, Mapping) else None
        return CandidatesResponse(text=_first_part_text(content))

    if "contents" in payload:
        return EchoResponse(text=_first_part_text(_first_item(payload.get("contents"))))

    raise UpstreamError("Unexpected response from text generation API")


def response_text(response: GenerationResponse) -> str:
    if isinstance(response, ErrorResponse):
        raise UpstreamError(
            f"Text generation error: {json.dumps(response.error, default=str)}",
            details={"upstream_error": response.error},
        )
    if isinstance(response, (CandidatesResponse, EchoResponse)):
        text = response.text
    else:
        assert_never(response)

    if not text.strip():
        raise UpstreamError("No response from text generation API")
    return text


class GeminiClient:
    def __init__(
        self,
        *,
        api_key: str | None,
        model: str,
        base_url: str,
        timeout_seconds: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    @classmethod
    def from_settings(
        cls, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None
    ) -> "GeminiClient":
        return cls(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            base_url=settings.gemini_api_base_url,
            timeout_seconds=settings.ai_request_timeout_seconds,
            transport=transport,
        )

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/models/{self._model}:generateContent"

    async def generate(self, prompt: str) -> str:
        if not self._api_key:
            raise UpstreamError(
                "Text generation API is not configured",
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            )

        body = {"contents": [{"parts": [{"text": prompt}]}]}
        headers = {"x-goog-api-key": self._api_key}
        logger.info("Calling text generation API model=%s", self._model)
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_seconds, transport=self._transport
            ) as client:
                response = await client.post(self.endpoint, json=body, headers=headers)
        except httpx.TimeoutException as exc:
            logger.error("Text generation API timed out after %ss", self._timeout_seconds)
            raise UpstreamError(
                "Text generation API timed out",
                status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            ) from exc
        except httpx.RequestError as exc:
            logger.error("Text generation API request failed: %s", exc)
            raise UpstreamError("Text generation API is unreachable") from exc

        if response.is_error:
            logger.error(
                "Text generation API returned %s: %s",
                response.status_code,
                response.text[:UPSTREAM_LOG_PREVIEW_CHARS],
            )
            raise UpstreamError(
                f"Text generation API error: {response.status_code}",
                details={"upstream_status": response.status_code},
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamError("Text generation API returned invalid JSON") from exc

        return response_text(decode_response(payload))
