from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    ReadTimeoutError,
)

from backend.config import Settings
from backend.errors import UpstreamError, UpstreamTimeoutError
from backend.models.summary_model import MeetingSummary
from backend.services.summarization import Summarizer, build_prompt, parse_summary

logger = logging.getLogger(__name__)


def create_bedrock_client(settings: Settings) -> Any:
    session_kwargs = {"region_name": settings.aws_region}
    if settings.aws_access_key_id and settings.aws_secret_access_key:
        session_kwargs.update(
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
        )
    session = boto3.Session(**session_kwargs)
    timeout = settings.llm_timeout_seconds
    return session.client(
        "bedrock-runtime",
        region_name=settings.aws_region,
        config=Config(connect_timeout=min(timeout, 10), read_timeout=timeout, retries={"max_attempts": 2}),
    )


def _load_json_body(response: dict[str, Any]) -> dict[str, Any]:
    body = response.get("body")
    if hasattr(body, "read"):
        raw = body.read()
    elif isinstance(body, (bytes, bytearray)):
        raw = body
    elif body is None:
        return {}
    else:
        raw = str(body).encode("utf-8")
    try:
        return json.loads(raw.decode("utf-8"))
    except json.JSONDecodeError:
        return {"outputText": raw.decode("utf-8")}


def _model_uses_messages(model_id: str) -> bool:
    lowered = (model_id or "").lower()
    return "claude-3" in lowered or "claude-sonnet" in lowered or "claude-haiku" in lowered or "claude-opus" in lowered


def _build_body(model_id: str, prompt: str, max_tokens: int, temperature: float) -> dict[str, Any]:
    if _model_uses_messages(model_id):
        return {
            "anthropic_version": "bedrock-2023-05-31",
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "text",
                            "text": prompt,
                        }
                    ],
                }
            ],
        }
    return {
        "prompt": prompt,
        "maxTokens": max_tokens,
        "temperature": temperature,
    }


def _extract_text_from_content(content: dict[str, Any]) -> str:
    for key in ("outputText", "completion", "response"):
        value = content.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    message_content = content.get("content")
    if isinstance(message_content, list):
        pieces: list[str] = []
        for item in message_content:
            if not isinstance(item, dict):
                continue
            text = item.get("text")
            if isinstance(text, str) and text.strip():
                pieces.append(text.strip())
        if pieces:
            return "\n".join(pieces)
    return ""


class BedrockSummarizer(Summarizer):
    name = "bedrock"

    def __init__(self, settings: Settings, client: Any | None = None, max_tokens: int = 2048):
        self.settings = settings
        self.model_id = settings.bedrock_model_id
        self.max_tokens = max_tokens
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = create_bedrock_client(self.settings)
        return self._client

    def _invoke(self, prompt: str) -> dict[str, Any]:
        body = _build_body(self.model_id, prompt, max_tokens=self.max_tokens, temperature=0.2)
        response = self.client.invoke_model(
            modelId=self.model_id,
            contentType="application/json",
            accept="application/json",
            body=json.dumps(body).encode("utf-8"),
        )
        return _load_json_body(response)

    async def summarize(self, transcript_text: str) -> MeetingSummary:
        prompt = build_prompt(transcript_text)
        try:
            content = await asyncio.to_thread(self._invoke, prompt)
        except (ReadTimeoutError, ConnectTimeoutError) as exc:
            raise UpstreamTimeoutError(f"Bedrock timed out: {exc}") from exc
        except ClientError as exc:
            error = exc.response.get("Error", {})
            status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
            logger.error("Bedrock error %s: %s", error.get("Code"), error.get("Message"))
            raise UpstreamError(
                f"Bedrock error {error.get('Code', 'Unknown')}: {error.get('Message', '')}".strip(),
                status_code=status,
            ) from exc
        except BotoCoreError as exc:
            raise UpstreamError(f"Failed to reach Bedrock: {exc}") from exc
        return parse_summary(_extract_text_from_content(content))
