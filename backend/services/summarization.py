from __future__ import annotations

import json
import logging
import re

from pydantic import ValidationError as PydanticValidationError

from backend.errors import InternalError
from backend.models.summary_model import SUMMARY_SCHEMA_VERSION, MeetingSummary, summary_json_schema

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def build_prompt(transcript_text: str) -> str:
    schema = json.dumps(summary_json_schema(), indent=2)
    return (
        "You are an expert meeting summarizer. Analyze the following meeting transcript "
        "and respond with a single JSON object that matches the schema below. "
        "Do not include any text outside the JSON object.\n"
        f"\nJSON schema (version {SUMMARY_SCHEMA_VERSION}):\n{schema}\n"
        f"\nTranscript:\n---\n{transcript_text}\n---\n"
    )


def parse_summary(raw: str) -> MeetingSummary:
    """Parse an LLM reply into a ``MeetingSummary`` or raise ``InternalError``."""
    text = (raw or "").strip()
    fenced = _FENCE_RE.match(text)
    if fenced:
        text = fenced.group(1)
    if not text:
        raise InternalError("LLM returned an empty response")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.error("Unparseable LLM response: %s", text[:500])
        raise InternalError(f"LLM response is not valid JSON: {exc.msg}") from exc
    try:
        return MeetingSummary.model_validate(payload)
    except PydanticValidationError as exc:
        raise InternalError(f"LLM response does not match the summary schema: {exc.error_count()} error(s)") from exc


class Summarizer:
    """Turns transcript text into a structured ``MeetingSummary``."""

    name = "base"

    async def summarize(self, transcript_text: str) -> MeetingSummary:
        raise NotImplementedError

    async def aclose(self) -> None:
        return None
