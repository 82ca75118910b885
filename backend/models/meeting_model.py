from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from backend.models.summary_model import MeetingSummary

UNKNOWN_SPEAKER = "Unknown"


class MeetingStatus(str, Enum):
    JOINING = "JOINING"
    TRANSCRIBING = "TRANSCRIBING"
    SUMMARIZING = "SUMMARIZING"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"


# Forward-only lifecycle. COMPLETED may re-enter SUMMARIZING because leaving a
# call marks the meeting COMPLETED before the provider's meeting.ended arrives.
ALLOWED_TRANSITIONS: dict[MeetingStatus, frozenset[MeetingStatus]] = {
    MeetingStatus.JOINING: frozenset(
        {MeetingStatus.TRANSCRIBING, MeetingStatus.SUMMARIZING, MeetingStatus.COMPLETED, MeetingStatus.ERROR}
    ),
    MeetingStatus.TRANSCRIBING: frozenset(
        {MeetingStatus.TRANSCRIBING, MeetingStatus.SUMMARIZING, MeetingStatus.COMPLETED, MeetingStatus.ERROR}
    ),
    MeetingStatus.SUMMARIZING: frozenset({MeetingStatus.COMPLETED, MeetingStatus.ERROR}),
    MeetingStatus.COMPLETED: frozenset({MeetingStatus.SUMMARIZING, MeetingStatus.ERROR}),
    MeetingStatus.ERROR: frozenset({MeetingStatus.SUMMARIZING, MeetingStatus.ERROR}),
}


def can_transition(current: MeetingStatus, target: MeetingStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


class TranscriptEntry(BaseModel):
    speaker: str = UNKNOWN_SPEAKER
    text: str
    timestamp: float | str | None = None

    def key(self) -> tuple[str, str, float | str | None]:
        return (self.speaker, self.text, self.timestamp)


class Meeting(BaseModel):
    id: str
    meeting_url: str
    bot_name: str | None = None
    bot_handle: str | None = None
    status: MeetingStatus = MeetingStatus.JOINING
    transcript: list[TranscriptEntry] = Field(default_factory=list)
    summary: MeetingSummary | None = None
    error: str | None = None
    created_at: str
    updated_at: str | None = None
    processed_at: str | None = None
