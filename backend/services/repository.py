from __future__ import annotations

import json
import logging
import threading
import uuid
from pathlib import Path
from typing import Any, Callable, Iterable, List

from backend.errors import NotFoundError, StaleStatusError
from backend.models.meeting_model import Meeting, MeetingStatus, TranscriptEntry, can_transition
from backend.utils.time_utils import now_iso

logger = logging.getLogger(__name__)


class MeetingRepository:
    """JSON-file backed store for meeting records.

    Every mutation is a read-modify-write under one lock, so a check of the
    stored status and the write that depends on it happen atomically.
    """

    def __init__(self, storage_path: Path | None = None):
        self.storage_path = storage_path or Path(__file__).resolve().parents[2] / "data" / "meetings.json"
        self.storage_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _read_raw(self) -> dict[str, dict]:
        if not self.storage_path.exists():
            return {}
        try:
            payload = json.loads(self.storage_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("Meeting store %s is not valid JSON, starting empty", self.storage_path)
            return {}
        return payload if isinstance(payload, dict) else {}

    def _write_raw(self, payload: dict[str, dict]) -> None:
        tmp_path = self.storage_path.with_suffix(".tmp")
        tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        tmp_path.replace(self.storage_path)

    def _mutate(self, meeting_id: str, change: Callable[[Meeting], Meeting | None]) -> Meeting | None:
        with self._lock:
            data = self._read_raw()
            item = data.get(meeting_id)
            if item is None:
                raise NotFoundError(f"Meeting {meeting_id} not found")
            updated = change(Meeting.model_validate(item))
            if updated is None:
                return None
            updated.updated_at = now_iso()
            data[meeting_id] = updated.model_dump(mode="json")
            self._write_raw(data)
            return updated

    def create_meeting(self, meeting_url: str, bot_name: str | None = None) -> Meeting:
        meeting = Meeting(
            id=uuid.uuid4().hex,
            meeting_url=meeting_url,
            bot_name=bot_name,
            status=MeetingStatus.JOINING,
            created_at=now_iso(),
        )
        with self._lock:
            data = self._read_raw()
            data[meeting.id] = meeting.model_dump(mode="json")
            self._write_raw(data)
        logger.info("Created meeting %s for %s", meeting.id, meeting_url)
        return meeting

    def list_meetings(self) -> List[Meeting]:
        with self._lock:
            payload = self._read_raw()
        return [Meeting.model_validate(item) for item in payload.values()]

    def get_meeting(self, meeting_id: str) -> Meeting | None:
        with self._lock:
            item = self._read_raw().get(meeting_id)
        return Meeting.model_validate(item) if item is not None else None

    def require_meeting(self, meeting_id: str) -> Meeting:
        meeting = self.get_meeting(meeting_id)
        if meeting is None:
            raise NotFoundError(f"Meeting {meeting_id} not found")
        return meeting

    def update_meeting(
        self,
        meeting_id: str,
        expected_status: Iterable[MeetingStatus] | None = None,
        **updates: Any,
    ) -> Meeting:
        """Overwrite fields, optionally only if the stored status is one of ``expected_status``."""
        expected = frozenset(expected_status) if expected_status is not None else None

        def change(current: Meeting) -> Meeting:
            if expected is not None and current.status not in expected:
                raise StaleStatusError(
                    f"Meeting {meeting_id} is {current.status.value}, expected one of "
                    f"{sorted(status.value for status in expected)}"
                )
            return current.model_copy(update=updates)

        updated = self._mutate(meeting_id, change)
        assert updated is not None
        return updated

    def transition(self, meeting_id: str, status: MeetingStatus, **updates: Any) -> Meeting | None:
        """Move to ``status`` if the lifecycle allows it; returns None when refused."""

        def change(current: Meeting) -> Meeting | None:
            if not can_transition(current.status, status):
                logger.warning(
                    "Refusing status change %s -> %s for meeting %s",
                    current.status.value,
                    status.value,
                    meeting_id,
                )
                return None
            changes = {**updates, "status": status}
            if status != MeetingStatus.COMPLETED:
                # A summary only stands on a COMPLETED record.
                changes.setdefault("summary", None)
                changes.setdefault("processed_at", None)
            return current.model_copy(update=changes)

        return self._mutate(meeting_id, change)

    def append_transcript(self, meeting_id: str, entry: TranscriptEntry) -> bool:
        """Append ``entry`` unless an identical one is stored; returns whether it was added."""
        appended = False

        def change(current: Meeting) -> Meeting | None:
            nonlocal appended
            if any(existing.key() == entry.key() for existing in current.transcript):
                return None
            appended = True
            updates: dict[str, Any] = {"transcript": [*current.transcript, entry]}
            if can_transition(current.status, MeetingStatus.TRANSCRIBING):
                updates["status"] = MeetingStatus.TRANSCRIBING
            return current.model_copy(update=updates)

        self._mutate(meeting_id, change)
        return appended
