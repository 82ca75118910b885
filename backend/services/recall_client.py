from __future__ import annotations

import logging
from typing import Any

import httpx

from backend.config import Settings
from backend.errors import ConfigurationError, UpstreamError, UpstreamTimeoutError

logger = logging.getLogger(__name__)


class RecallClient:
    """Creates and removes meeting bots through the Recall.ai bot API."""

    def __init__(self, settings: Settings, http: httpx.AsyncClient | None = None):
        self.settings = settings
        self.base_url = settings.recall_api_url.rstrip("/")
        self._http = http or httpx.AsyncClient(timeout=settings.http_timeout_seconds)

    def _headers(self) -> dict[str, str]:
        if not self.settings.recall_api_key:
            raise ConfigurationError("Recall API key not configured")
        return {
            "Authorization": f"Token {self.settings.recall_api_key}",
            "Content-Type": "application/json",
        }

    def build_bot_payload(self, meeting_url: str, bot_name: str, webhook_url: str) -> dict[str, Any]:
        return {
            "meeting_url": meeting_url,
            "bot_name": bot_name,
            "event_webhook_url": webhook_url,
            "recording_config": {
                "transcript": {
                    "provider": {
                        "recallai_streaming": {
                            "mode": self.settings.transcript_mode,
                            "language_code": self.settings.transcript_language,
                        },
                    },
                },
            },
        }

    async def create_bot(self, meeting_url: str, bot_name: str, webhook_url: str) -> str:
        payload = self.build_bot_payload(meeting_url, bot_name, webhook_url)
        logger.info("Dispatching bot %r to %s (webhook %s)", bot_name, meeting_url, webhook_url)
        response = await self._send("POST", self.base_url, json=payload)
        if response.is_error:
            raise UpstreamError(
                _error_detail(response, "Failed to send bot to meeting."),
                status_code=response.status_code,
            )
        bot_id = _json_body(response).get("id")
        if not bot_id:
            raise UpstreamError("Recall response did not include a bot id")
        logger.info("Bot created: %s", bot_id)
        return str(bot_id)

    async def delete_bot(self, bot_handle: str) -> None:
        response = await self._send("DELETE", f"{self.base_url}/{bot_handle}")
        if response.is_error:
            raise UpstreamError(
                _error_detail(response, "Failed to make the bot leave the meeting."),
                status_code=response.status_code,
            )
        logger.info("Bot %s told to leave", bot_handle)

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        headers = self._headers()
        try:
            return await self._http.request(method, url, headers=headers, **kwargs)
        except httpx.TimeoutException as exc:
            raise UpstreamTimeoutError(f"Recall API timed out on {method} {url}") from exc
        except httpx.RequestError as exc:
            raise UpstreamError(f"Failed to reach Recall API: {exc}") from exc

    async def aclose(self) -> None:
        await self._http.aclose()


def _json_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _error_detail(response: httpx.Response, fallback: str) -> str:
    detail = _json_body(response).get("detail")
    if isinstance(detail, str) and detail:
        return detail
    if detail:
        return str(detail)
    logger.error("Recall API error %s: %s", response.status_code, response.text[:500])
    return fallback
