from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from backend.errors import AppError, InternalError, ValidationError
from backend.models.events import (
    MeetingEndedEvent,
    MeetingErrorEvent,
    PartialTranscriptEvent,
    RecallEvent,
    TranscriptChunk,
    TranscriptSentenceEvent,
    UnknownEvent,
    parse_event,
)
from backend.models.meeting_model import Meeting, MeetingStatus, TranscriptEntry
from backend.services.repository import MeetingRepository
from backend.services.summary_queue import SummaryTaskQueue
from backend.summary.controller import SummaryController

MISSING_TRANSCRIPT_MESSAGE = "Meeting ended but no transcript text was provided."
WAKE_PHRASE = "hey bot"


class WebhookController:
    """Applies bot provider push events to meeting records."""

    def __init__(self, repository: MeetingRepository, summaries: SummaryController, queue: SummaryTaskQueue):
        self.repository = repository
        self.summaries = summaries
        self.queue = queue
        self.logger = logging.getLogger(__name__)

    async def handle_recall_event(self, meeting_id: str | None, payload: Any) -> dict:
        if not meeting_id:
            raise ValidationError("Meeting ID is required")
        meeting = self.repository.require_meeting(meeting_id)
        event = parse_event(payload)

        try:
            await self._apply(meeting, event)
        except AppError:
            raise
        except Exception as exc:
            self.logger.exception("Error in Recall webhook for meeting %s", meeting_id)
            self._mark_error(meeting_id, str(exc) or type(exc).__name__)
            raise InternalError(str(exc) or "Webhook processing failed") from exc
        return {"received": True}

    async def _apply(self, meeting: Meeting, event: RecallEvent) -> None:
        if isinstance(event, PartialTranscriptEvent):
            return
        if isinstance(event, TranscriptSentenceEvent):
            self._append(meeting.id, event.to_entry())
        elif isinstance(event, MeetingEndedEvent):
            await self._meeting_ended(meeting, event)
        elif isinstance(event, MeetingErrorEvent):
            self.logger.error("Meeting error for %s: %s", meeting.id, event.message)
            self.repository.transition(meeting.id, MeetingStatus.ERROR, error=event.message)
        elif isinstance(event, UnknownEvent):
            self.logger.info("Received Recall event: %s", event.type)

    def _append(self, meeting_id: str, entry: TranscriptEntry) -> None:
        if not self.repository.append_transcript(meeting_id, entry):
            self.logger.debug("Duplicate transcript entry for meeting %s ignored", meeting_id)

    async def _meeting_ended(self, meeting: Meeting, event: MeetingEndedEvent) -> None:
        if meeting.status == MeetingStatus.COMPLETED and meeting.summary is not None:
            self.logger.info("Meeting %s already summarized, ignoring repeated meeting.ended", meeting.id)
            return

        self.logger.info("Meeting %s has ended. Generating summary...", meeting.id)
        if self.repository.transition(meeting.id, MeetingStatus.SUMMARIZING) is None:
            return

        transcript_text = event.transcript_text
        if transcript_text is None:
            self.logger.error("Meeting %s ended without transcript text", meeting.id)
            self.repository.transition(meeting.id, MeetingStatus.ERROR, error=MISSING_TRANSCRIPT_MESSAGE)
            return

        try:
            await self.summaries.summarize_text(meeting.id, transcript_text)
        except AppError as exc:
            # Already recorded on the meeting; acknowledge so the provider does not retry.
            self.logger.warning("Summary for meeting %s not completed: %s", meeting.id, exc.message)

    async def handle_transcript_chunk(self, meeting_id: str | None, payload: Any) -> dict:
        if not meeting_id:
            raise ValidationError("meetingId is required")
        if not isinstance(payload, dict):
            raise ValidationError("Transcript chunk must be a JSON object")
        try:
            chunk = TranscriptChunk.model_validate(payload)
        except PydanticValidationError as exc:
            raise ValidationError(f"Malformed transcript chunk: {exc.error_count()} error(s)") from exc
        meeting = self.repository.require_meeting(meeting_id)
        entry = chunk.to_entry()

        if chunk.is_meeting_ended:
            if entry is not None:
                self._append(meeting_id, entry)
            self._queue_summary(meeting)
            return {"success": True}

        if entry is None:
            raise ValidationError("Transcript chunk has no text")
        self._append(meeting_id, entry)
        if WAKE_PHRASE in entry.text.lower():
            self.logger.info("WAKE WORD DETECTED in meeting %s!", meeting_id)
        return {"success": True}

    def _queue_summary(self, meeting: Meeting) -> None:
        if meeting.status == MeetingStatus.COMPLETED and meeting.summary is not None:
            self.logger.info("Meeting %s already summarized, ignoring repeated meeting_ended", meeting.id)
            return
        if self.repository.transition(meeting.id, MeetingStatus.SUMMARIZING) is None:
            return
        self.logger.info("Meeting %s ended, queueing summary", meeting.id)
        self.queue.submit(meeting.id)

    def _mark_error(self, meeting_id: str, message: str) -> None:
        try:
            self.repository.transition(meeting_id, MeetingStatus.ERROR, error=message)
        except Exception:
            self.logger.exception("Could not record error on meeting %s", meeting_id)
