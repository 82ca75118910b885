"""Summarizer backed by Google's Gemini generateContent API."""
from __future__ import annotations

import logging
from typing import Any

import httpx

from backend.config import Settings
from backend.errors import ConfigurationError, InternalError, UpstreamError, UpstreamTimeoutError
from backend.models.summary_model import MeetingSummary, summary_json_schema
from backend.services.summarization import Summarizer, build_prompt, parse_summary

logger = logging.getLogger(__name__)


class GeminiSummarizer(Summarizer):
    name = "gemini"

    def __init__(self, settings: Settings, http: httpx.AsyncClient | None = None):
        self.settings = settings
        self._base_url = settings.gemini_base_url.rstrip("/")
        self._http = http or httpx.AsyncClient(timeout=settings.llm_timeout_seconds)

    def _url(self) -> str:
        model_name = self.settings.gemini_model
        if not model_name.startswith("models/"):
            model_name = f"models/{model_name}"
        return f"{self._base_url}/v1beta/{model_name}:generateContent"

    def build_request(self, transcript_text: str) -> dict[str, Any]:
        return {
            "contents": [{"role": "user", "parts": [{"text": build_prompt(transcript_text)}]}],
            "generationConfig": {
                "temperature": 0.2,
                "responseMimeType": "application/json",
                "responseJsonSchema": summary_json_schema(),
            },
        }

    async def summarize(self, transcript_text: str) -> MeetingSummary:
        if not self.settings.google_api_key:
            raise ConfigurationError("GOOGLE_API_KEY is not configured")
        try:
            response = await self._http.post(
                self._url(),
                headers={"x-goog-api-key": self.settings.google_api_key},
                json=self.build_request(transcript_text),
            )
        except httpx.TimeoutException as exc:
            raise UpstreamTimeoutError("Gemini API timed out") from exc
        except httpx.RequestError as exc:
            raise UpstreamError(f"Failed to reach Gemini API: {exc}") from exc

        if response.is_error:
            logger.error("Gemini error: %s - %s", response.status_code, response.text[:500])
            raise UpstreamError(f"Gemini error: {response.status_code}", status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as exc:
            raise InternalError("Gemini returned a non-JSON envelope") from exc
        return parse_summary(_extract_text(data))

    async def aclose(self) -> None:
        await self._http.aclose()


def _extract_text(data: dict[str, Any]) -> str:
    candidates = data.get("candidates") or []
    if not candidates:
        raise UpstreamError("No response from Gemini.")
    parts = (candidates[0].get("content") or {}).get("parts") or []
    if not parts:
        raise UpstreamError("Gemini response missing parts")
    return "".join(part.get("text", "") for part in parts if isinstance(part, dict))
