from __future__ import annotations

import logging

from backend.config import Settings
from backend.errors import AppError, InternalError, StaleStatusError, ValidationError
from backend.models.meeting_model import Meeting, MeetingStatus
from backend.models.summary_model import MeetingSummary
from backend.services.repository import MeetingRepository
from backend.services.summarization import Summarizer
from backend.utils.time_utils import format_clock, now_iso


def format_transcript(meeting: Meeting) -> str:
    return "\n".join(
        f"[{entry.speaker} at {format_clock(entry.timestamp)}]: {entry.text}" for entry in meeting.transcript
    )


class SummaryController:
    def __init__(self, repository: MeetingRepository, summarizer: Summarizer, settings: Settings):
        self.repository = repository
        self.summarizer = summarizer
        self.settings = settings
        self.logger = logging.getLogger(__name__)

    async def summarize_meeting(self, meeting_id: str | None) -> MeetingSummary:
        """Summarize a meeting from its stored transcript."""
        if not meeting_id:
            raise ValidationError("meetingId is required")
        meeting = self.repository.require_meeting(meeting_id)
        transcript_text = self._stored_transcript(meeting)
        self._claim(meeting_id)
        return await self.summarize_text(meeting_id, transcript_text)

    async def summarize_claimed(self, meeting_id: str) -> MeetingSummary:
        """Summarize a meeting the caller may already have moved to SUMMARIZING.

        Used by the summary queue: the first attempt finds the record claimed by
        the webhook, retries find it in ERROR and claim it again.
        """
        meeting = self.repository.require_meeting(meeting_id)
        if meeting.status != MeetingStatus.SUMMARIZING:
            self._claim(meeting_id)
        return await self.summarize_text(meeting_id, self._stored_transcript(meeting))

    def _stored_transcript(self, meeting: Meeting) -> str:
        transcript_text = format_transcript(meeting)
        if len(transcript_text) < self.settings.min_transcript_chars:
            raise ValidationError("Transcript too short")
        return transcript_text

    def _claim(self, meeting_id: str) -> None:
        if self.repository.transition(meeting_id, MeetingStatus.SUMMARIZING) is None:
            raise StaleStatusError(f"Meeting {meeting_id} is already being summarized")

    async def summarize_text(self, meeting_id: str, transcript_text: str) -> MeetingSummary:
        """Run the LLM on ``transcript_text`` for a meeting already in SUMMARIZING.

        Failures are written to the record before being raised.
        """
        self.logger.info("Summarizing meeting %s with %s (%d chars)", meeting_id, self.summarizer.name, len(transcript_text))
        try:
            summary = await self.summarizer.summarize(transcript_text)
        except AppError as exc:
            self.logger.error("Summarization failed for meeting %s: %s", meeting_id, exc.message)
            self.repository.transition(meeting_id, MeetingStatus.ERROR, error=exc.message)
            raise
        except Exception as exc:
            self.logger.exception("Unexpected summarization fault for meeting %s", meeting_id)
            self.repository.transition(meeting_id, MeetingStatus.ERROR, error=str(exc) or type(exc).__name__)
            raise InternalError(f"Summarization failed: {exc}") from exc

        try:
            self.repository.update_meeting(
                meeting_id,
                expected_status=[MeetingStatus.SUMMARIZING],
                status=MeetingStatus.COMPLETED,
                summary=summary,
                processed_at=now_iso(),
            )
        except StaleStatusError:
            self.logger.warning("Discarding summary for meeting %s: status changed while summarizing", meeting_id)
            raise
        self.logger.info("Summary for %s saved successfully.", meeting_id)
        return summary
