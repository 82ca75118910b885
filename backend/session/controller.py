from __future__ import annotations

import logging
from urllib.parse import urlencode

from backend.config import BOT_DISPATCH_SETTINGS, Settings
from backend.errors import (
    AppError,
    InternalError,
    InvalidStateError,
    StaleStatusError,
    UpstreamError,
    ValidationError,
)
from backend.models.meeting_model import MeetingStatus
from backend.services.recall_client import RecallClient
from backend.services.repository import MeetingRepository


class SessionController:
    def __init__(self, repository: MeetingRepository, recall: RecallClient, settings: Settings):
        self.repository = repository
        self.recall = recall
        self.settings = settings
        self.logger = logging.getLogger(__name__)

    def webhook_url(self, meeting_id: str) -> str:
        return f"{self.settings.public_app_url}/api/webhook/recall?{urlencode({'id': meeting_id})}"

    async def join_meeting(self, meeting_url: str | None, bot_name: str | None = None) -> dict:
        meeting_url = (meeting_url or "").strip()
        if not meeting_url:
            raise ValidationError("Meeting URL is required")
        self.settings.require(*BOT_DISPATCH_SETTINGS)

        bot_name = (bot_name or "").strip() or self.settings.default_bot_name
        meeting_id: str | None = None
        try:
            meeting = self.repository.create_meeting(meeting_url=meeting_url, bot_name=bot_name)
            meeting_id = meeting.id
            bot_handle = await self.recall.create_bot(
                meeting_url=meeting_url,
                bot_name=bot_name,
                webhook_url=self.webhook_url(meeting_id),
            )
            self.repository.update_meeting(meeting_id, bot_handle=bot_handle)
        except UpstreamError as exc:
            self.logger.error("Recall API error for meeting %s: %s", meeting_id, exc.message)
            self._mark_error(meeting_id, exc.message)
            raise
        except AppError:
            raise
        except Exception as exc:
            self.logger.exception("Failed to join meeting %s", meeting_url)
            self._mark_error(meeting_id, str(exc) or "Failed to join meeting")
            raise InternalError(str(exc) or "Failed to join meeting") from exc

        return {"id": meeting_id}

    async def leave_meeting(self, meeting_id: str | None) -> dict:
        self.settings.require("recall_api_key")
        if not meeting_id:
            raise ValidationError("Meeting ID is required")

        self.logger.info("Attempting to make bot leave meeting: %s", meeting_id)
        meeting = self.repository.require_meeting(meeting_id)
        if not meeting.bot_handle:
            raise InvalidStateError("Bot ID not found for this meeting.")

        await self.recall.delete_bot(meeting.bot_handle)

        # Optimistic; the provider's meeting.ended supersedes it.
        try:
            self.repository.update_meeting(
                meeting_id,
                expected_status=[MeetingStatus.JOINING, MeetingStatus.TRANSCRIBING],
                status=MeetingStatus.COMPLETED,
            )
        except StaleStatusError as exc:
            self.logger.info("Leaving status untouched: %s", exc.message)
        return {"success": True, "botId": meeting.bot_handle}

    def _mark_error(self, meeting_id: str | None, message: str) -> None:
        if meeting_id is None:
            return
        try:
            self.repository.transition(meeting_id, MeetingStatus.ERROR, error=message)
        except Exception:
            self.logger.exception("Could not record error on meeting %s", meeting_id)
