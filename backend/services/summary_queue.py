from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from backend.errors import (
    AppError,
    ConfigurationError,
    NotFoundError,
    StaleStatusError,
    ValidationError,
)
from backend.models.meeting_model import MeetingStatus
from backend.services.repository import MeetingRepository

logger = logging.getLogger(__name__)

# Retrying cannot change the outcome of these.
PERMANENT_ERRORS = (ValidationError, NotFoundError, ConfigurationError, StaleStatusError)


class SummaryTaskQueue:
    """Tracked background summarization with retries.

    Each submitted meeting runs in its own asyncio task; the task is kept until
    it finishes so shutdown can wait for it and a meeting is never queued twice.
    """

    def __init__(
        self,
        runner: Callable[[str], Awaitable[object]],
        repository: MeetingRepository,
        attempts: int = 3,
        retry_delay: float = 2.0,
    ):
        self.runner = runner
        self.repository = repository
        self.attempts = max(1, attempts)
        self.retry_delay = retry_delay
        self._tasks: dict[str, asyncio.Task] = {}

    @property
    def pending(self) -> list[str]:
        return sorted(self._tasks)

    def submit(self, meeting_id: str) -> bool:
        if meeting_id in self._tasks:
            logger.info("Summary for meeting %s already queued", meeting_id)
            return False
        task = asyncio.create_task(self._run(meeting_id), name=f"summary-{meeting_id}")
        self._tasks[meeting_id] = task
        task.add_done_callback(lambda done: self._forget(meeting_id, done))
        return True

    def _forget(self, meeting_id: str, task: asyncio.Task) -> None:
        if self._tasks.get(meeting_id) is task:
            del self._tasks[meeting_id]

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*self._tasks.values(), return_exceptions=True)

    async def _run(self, meeting_id: str) -> None:
        for attempt in range(1, self.attempts + 1):
            try:
                await self.runner(meeting_id)
                return
            except PERMANENT_ERRORS as exc:
                logger.error("Summary for meeting %s failed permanently: %s", meeting_id, exc.message)
                if not isinstance(exc, StaleStatusError):
                    self._record_failure(meeting_id, exc.message)
                return
            except AppError as exc:
                logger.warning(
                    "Summary attempt %d/%d for meeting %s failed: %s",
                    attempt,
                    self.attempts,
                    meeting_id,
                    exc.message,
                )
            except Exception as exc:
                logger.exception("Summary attempt %d/%d for meeting %s crashed", attempt, self.attempts, meeting_id)
                self._record_failure(meeting_id, str(exc) or type(exc).__name__)
            if attempt < self.attempts:
                await asyncio.sleep(self.retry_delay * attempt)
        logger.error("Giving up on summary for meeting %s after %d attempts", meeting_id, self.attempts)

    def _record_failure(self, meeting_id: str, message: str) -> None:
        try:
            self.repository.transition(meeting_id, MeetingStatus.ERROR, error=message)
        except NotFoundError:
            logger.warning("Cannot record summary failure: meeting %s not found", meeting_id)
