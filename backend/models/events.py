"""Bot provider webhook events, decoded once at the HTTP boundary.

Every payload is turned into exactly one of the event classes below. Known
event types get their ``data`` checked for required fields; anything else
becomes an ``UnknownEvent`` so new provider events never fault the handler.
"""
from __future__ import annotations

from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from backend.errors import ValidationError
from backend.models.meeting_model import UNKNOWN_SPEAKER, TranscriptEntry


class _EventData(BaseModel):
    model_config = ConfigDict(extra="ignore")


class SentenceData(_EventData):
    speaker_id: str | None = None
    text: str
    start_timestamp: float | str | None = None

    @field_validator("speaker_id", mode="before")
    @classmethod
    def coerce_speaker(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class MeetingEndedData(_EventData):
    transcript_text: str | None = None


class MeetingErrorData(_EventData):
    error_message: str | None = None


class PartialTranscriptEvent(BaseModel):
    type: str


class TranscriptSentenceEvent(BaseModel):
    type: str
    data: SentenceData

    def to_entry(self) -> TranscriptEntry:
        return TranscriptEntry(
            speaker=self.data.speaker_id or UNKNOWN_SPEAKER,
            text=self.data.text,
            timestamp=self.data.start_timestamp,
        )


class MeetingEndedEvent(BaseModel):
    type: str
    data: MeetingEndedData = Field(default_factory=MeetingEndedData)

    @property
    def transcript_text(self) -> str | None:
        text = self.data.transcript_text
        if text is None or not text.strip():
            return None
        return text


class MeetingErrorEvent(BaseModel):
    type: str
    data: MeetingErrorData = Field(default_factory=MeetingErrorData)

    @property
    def message(self) -> str:
        return self.data.error_message or "The meeting bot reported an unspecified error."


class UnknownEvent(BaseModel):
    type: str


RecallEvent = Union[
    PartialTranscriptEvent,
    TranscriptSentenceEvent,
    MeetingEndedEvent,
    MeetingErrorEvent,
    UnknownEvent,
]

EVENT_TYPES: dict[str, type[BaseModel]] = {
    "transcript.partial_data": PartialTranscriptEvent,
    "transcript.word": PartialTranscriptEvent,
    "transcript.sentence": TranscriptSentenceEvent,
    "transcript.data": TranscriptSentenceEvent,
    "meeting.ended": MeetingEndedEvent,
    "meeting.error": MeetingErrorEvent,
}


def parse_event(payload: Any) -> RecallEvent:
    if not isinstance(payload, dict):
        raise ValidationError("Webhook body must be a JSON object")
    event_type = payload.get("type")
    if not isinstance(event_type, str) or not event_type:
        raise ValidationError("Webhook body is missing the event type")
    data = payload.get("data")
    if data is not None and not isinstance(data, dict):
        raise ValidationError(f"Event {event_type} has a non-object data field")

    model = EVENT_TYPES.get(event_type, UnknownEvent)
    body: dict[str, Any] = {"type": event_type}
    if data is not None:
        body["data"] = data
    try:
        return model.model_validate(body)
    except PydanticValidationError as exc:
        fields = ", ".join(".".join(str(part) for part in err["loc"]) for err in exc.errors())
        raise ValidationError(f"Malformed {event_type} event: invalid {fields}") from exc


class TranscriptChunk(BaseModel):
    """Free-form chunk posted to the generic transcript webhook."""

    model_config = ConfigDict(extra="allow")

    type: str | None = None
    speaker: str | None = None
    speaker_label: str | None = None
    text: str | None = None
    transcript: str | None = None
    timestamp: float | str | None = None
    start_time: float | str | None = None

    @field_validator("speaker", "speaker_label", mode="before")
    @classmethod
    def coerce_speaker(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def is_meeting_ended(self) -> bool:
        return self.type == "meeting_ended"

    def to_entry(self) -> TranscriptEntry | None:
        text = self.text if self.text is not None else self.transcript
        if not text:
            return None
        timestamp = self.timestamp if self.timestamp is not None else self.start_time
        return TranscriptEntry(
            speaker=self.speaker or self.speaker_label or UNKNOWN_SPEAKER,
            text=text,
            timestamp=timestamp,
        )
