"""Application context: every client and controller built once per app.

Routers read the context from ``app.state.ctx`` instead of module globals, so
tests can build an app around fake clients.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Request

from backend.config import BOT_DISPATCH_SETTINGS, Settings
from backend.services.bedrock_utils import BedrockSummarizer
from backend.services.gemini_client import GeminiSummarizer
from backend.services.recall_client import RecallClient
from backend.services.repository import MeetingRepository
from backend.services.summarization import Summarizer
from backend.services.summary_queue import SummaryTaskQueue
from backend.session.controller import SessionController
from backend.summary.controller import SummaryController
from backend.webhook.controller import WebhookController

logger = logging.getLogger(__name__)

SUMMARIZER_SETTINGS = {
    "gemini": ("google_api_key",),
    "bedrock": ("aws_region", "bedrock_model_id"),
}


def build_summarizer(settings: Settings) -> Summarizer:
    if settings.summarizer_provider == "bedrock":
        return BedrockSummarizer(settings)
    return GeminiSummarizer(settings)


@dataclass
class AppContext:
    settings: Settings
    repository: MeetingRepository
    recall: RecallClient
    summarizer: Summarizer
    queue: SummaryTaskQueue
    sessions: SessionController
    summaries: SummaryController
    webhooks: WebhookController

    async def aclose(self) -> None:
        await self.queue.drain()
        await self.recall.aclose()
        await self.summarizer.aclose()


def build_context(
    settings: Settings,
    repository: MeetingRepository | None = None,
    recall: RecallClient | None = None,
    summarizer: Summarizer | None = None,
) -> AppContext:
    repository = repository or MeetingRepository(settings.meetings_store_path)
    recall = recall or RecallClient(settings)
    summarizer = summarizer or build_summarizer(settings)

    summaries = SummaryController(repository, summarizer, settings)
    queue = SummaryTaskQueue(
        summaries.summarize_claimed,
        repository,
        attempts=settings.summary_retry_attempts,
        retry_delay=settings.summary_retry_delay_seconds,
    )
    return AppContext(
        settings=settings,
        repository=repository,
        recall=recall,
        summarizer=summarizer,
        queue=queue,
        sessions=SessionController(repository, recall, settings),
        summaries=summaries,
        webhooks=WebhookController(repository, summaries, queue),
    )


def warn_missing_settings(settings: Settings) -> list[str]:
    missing = settings.missing(*BOT_DISPATCH_SETTINGS, *SUMMARIZER_SETTINGS[settings.summarizer_provider])
    for name in missing:
        logger.warning("%s is not configured; requests that need it will fail", name.upper())
    return missing


def get_context(request: Request) -> AppContext:
    return request.app.state.ctx
