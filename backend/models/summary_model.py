"""Structured meeting summary returned by the LLM.

This model is the one definition of the summary contract: the JSON schema sent
to the LLM is generated from it, and replies are validated against it.
Bump ``SUMMARY_SCHEMA_VERSION`` whenever a field changes.
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

SUMMARY_SCHEMA_VERSION = 1


class ParticipantContribution(BaseModel):
    model_config = ConfigDict(extra="ignore")

    speaker: str = Field(description="The speaker's label as it appears in the transcript.")
    contribution: str = Field(description="What this participant contributed to the meeting.")


class MeetingSummary(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str = Field(description="A concise, 5-10 word title for the meeting.")
    summary_points: list[str] = Field(description="Bullet points covering the purpose and key outcomes.")
    action_items: list[str] = Field(description="Specific, actionable tasks, each naming its owner when known.")
    sentiment: str = Field(description="Overall sentiment of the meeting: Positive, Negative, Neutral or Mixed.")
    participants: list[ParticipantContribution] | None = Field(
        default=None,
        description="Optional per-participant analysis.",
    )


def summary_json_schema() -> dict[str, Any]:
    """JSON schema of ``MeetingSummary`` with definitions inlined."""
    schema = MeetingSummary.model_json_schema()
    definitions = schema.pop("$defs", {})
    return _inline_refs(schema, definitions)


def _inline_refs(node: Any, definitions: dict[str, Any]) -> Any:
    if isinstance(node, dict):
        ref = node.get("$ref")
        if isinstance(ref, str) and ref.startswith("#/$defs/"):
            return _inline_refs(definitions[ref.rsplit("/", 1)[-1]], definitions)
        return {key: _inline_refs(value, definitions) for key, value in node.items()}
    if isinstance(node, list):
        return [_inline_refs(item, definitions) for item in node]
    return node
