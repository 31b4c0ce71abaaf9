"""Gemini client used to turn a prompt into raw summary text."""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from smartbrief.errors import ErrorKind, ProviderError
from smartbrief.models import OutputStyle

logger = logging.getLogger(__name__)

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
GEMINI_MODEL = "gemini-2.0-flash"
TIMEOUT_SECONDS = 30.0

# Paragraph answers run longer than the marker format.
MAX_OUTPUT_TOKENS: dict[OutputStyle, int] = {"structured": 1024, "paragraph": 2048}

SAFETY_CATEGORIES = [
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
]
SAFETY_THRESHOLD = "BLOCK_MEDIUM_AND_ABOVE"
BLOCKED_FINISH_REASONS = {"SAFETY", "PROHIBITED_CONTENT", "BLOCKLIST", "SPII"}

RETRYABLE_STATUS = {500, 502, 503, 504}

NOT_CONFIGURED_MESSAGE = "AI service is not configured. Please contact support."
TIMEOUT_MESSAGE = "Request timed out. Please try again with shorter content."


@dataclass
class RawModelResponse:
    text: str | None
    finish_reason: str | None = None
    model: str | None = None


class SummarizationClient(Protocol):
    async def complete(self, prompt: str, style: OutputStyle = "structured") -> RawModelResponse:
        ...


def build_payload(prompt: str, style: OutputStyle) -> dict[str, Any]:
    return {
        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        "generationConfig": {
            "temperature": 0.3,
            "topK": 40,
            "topP": 0.95,
            "maxOutputTokens": MAX_OUTPUT_TOKENS[style],
        },
        "safetySettings": [{"category": c, "threshold": SAFETY_THRESHOLD} for c in SAFETY_CATEGORIES],
    }


def _safety_blocked(reason: str) -> ProviderError:
    return ProviderError(
        ErrorKind.SAFETY_BLOCKED,
        "The content was blocked by the AI provider's safety filters. Please try different content.",
        detail={"reason": reason},
    )


def _error_from_response(r: httpx.Response) -> ProviderError:
    try:
        err = r.json().get("error", {}) or {}
    except ValueError:
        err = {}
    provider_message = str(err.get("message") or "Unknown error")
    provider_status = str(err.get("status") or "")
    detail = {"status": r.status_code, "provider_message": provider_message}

    if r.status_code == 429 or provider_status == "RESOURCE_EXHAUSTED" or "quota" in provider_message.lower():
        return ProviderError(
            ErrorKind.RATE_LIMITED,
            "Service temporarily unavailable. Please try again later.",
            detail=detail,
        )
    return ProviderError(
        ErrorKind.API_ERROR,
        f"AI service error ({r.status_code}). Please try again later.",
        detail=detail,
    )


def parse_generate_response(data: dict[str, Any], model: str | None = None) -> RawModelResponse:
    """Pull the first candidate's text out of a ``generateContent`` body."""
    block_reason = (data.get("promptFeedback") or {}).get("blockReason")
    if block_reason:
        raise _safety_blocked(block_reason)

    candidates = data.get("candidates") or []
    if not candidates:
        return RawModelResponse(text=None, model=model)

    first = candidates[0]
    finish_reason = first.get("finishReason")
    if finish_reason in BLOCKED_FINISH_REASONS:
        raise _safety_blocked(finish_reason)

    parts = (first.get("content") or {}).get("parts") or []
    text = "".join(p.get("text", "") for p in parts)
    return RawModelResponse(text=text, finish_reason=finish_reason, model=model)


class GeminiClient:
    """Async Gemini ``generateContent`` client.

    The whole call, retries included, is bounded by ``timeout`` seconds.
    Retries are off by default and only apply to 5xx answers and transport
    timeouts.
    """

    def __init__(
        self,
        api_key: str | None,
        model: str = GEMINI_MODEL,
        api_base: str = GEMINI_API_BASE,
        timeout: float = TIMEOUT_SECONDS,
        max_retries: int = 0,
        retry_backoff: float = 0.5,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.max_retries = max(0, max_retries)
        self.retry_backoff = retry_backoff
        self.transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.api_base}/models/{self.model}:generateContent"

    async def complete(self, prompt: str, style: OutputStyle = "structured") -> RawModelResponse:
        """Send ``prompt`` and return the raw model answer.

        Raises:
            ProviderError: ``NOT_CONFIGURED`` without a key, ``TIMEOUT`` past the
                budget, ``RATE_LIMITED``/``API_ERROR`` on non-2xx answers and
                ``SAFETY_BLOCKED`` when the provider filters the request.
        """
        if not self.api_key:
            raise ProviderError(ErrorKind.NOT_CONFIGURED, NOT_CONFIGURED_MESSAGE)
        try:
            return await asyncio.wait_for(self._complete(prompt, style), timeout=self.timeout)
        except asyncio.TimeoutError:
            raise ProviderError(ErrorKind.TIMEOUT, TIMEOUT_MESSAGE, detail={"timeout_seconds": self.timeout})

    async def _complete(self, prompt: str, style: OutputStyle) -> RawModelResponse:
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key or "",
        }
        payload = build_payload(prompt, style)

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            attempt = 0
            while True:
                try:
                    r = await client.post(self.endpoint, headers=headers, json=payload)
                except httpx.TimeoutException:
                    if attempt < self.max_retries:
                        await self._backoff(attempt, "transport timeout")
                        attempt += 1
                        continue
                    raise ProviderError(ErrorKind.TIMEOUT, TIMEOUT_MESSAGE, detail={"timeout_seconds": self.timeout})
                except httpx.RequestError as e:
                    raise ProviderError(
                        ErrorKind.API_ERROR,
                        "Could not reach the AI service. Please try again later.",
                        detail={"reason": e.__class__.__name__},
                    )

                if r.status_code in RETRYABLE_STATUS and attempt < self.max_retries:
                    await self._backoff(attempt, f"status {r.status_code}")
                    attempt += 1
                    continue
                if not r.is_success:
                    raise _error_from_response(r)

                try:
                    data = r.json()
                except ValueError:
                    raise ProviderError(ErrorKind.API_ERROR, "Invalid response from AI service.")
                return parse_generate_response(data, model=self.model)

    async def _backoff(self, attempt: int, reason: str) -> None:
        delay = self.retry_backoff * (2 ** attempt) + random.uniform(0, self.retry_backoff)
        logger.warning("Gemini call failed (%s), retry %d/%d in %.2fs", reason, attempt + 1, self.max_retries, delay)
        await asyncio.sleep(delay)
