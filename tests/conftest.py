import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.config import Settings  # noqa: E402
from backend.context import build_context  # noqa: E402
from backend.errors import UpstreamError  # noqa: E402
from backend.main import create_app  # noqa: E402
from backend.models.summary_model import MeetingSummary  # noqa: E402
from backend.services.repository import MeetingRepository  # noqa: E402
from backend.services.summarization import Summarizer  # noqa: E402

SAMPLE_SUMMARY = {
    "title": "Quarterly roadmap sync",
    "summary_points": ["Agreed on the Q3 roadmap", "Hiring plan deferred"],
    "action_items": ["Speaker 1 to circulate the roadmap doc"],
    "sentiment": "Positive",
    "participants": [{"speaker": "1", "contribution": "Led the discussion"}],
}


class FakeRecallClient:
    def __init__(self, bot_id: str = "bot-123"):
        self.bot_id = bot_id
        self.created: list[dict] = []
        self.deleted: list[str] = []
        self.create_error: Exception | None = None
        self.delete_error: Exception | None = None
        self.closed = False

    async def create_bot(self, meeting_url: str, bot_name: str, webhook_url: str) -> str:
        self.created.append({"meeting_url": meeting_url, "bot_name": bot_name, "webhook_url": webhook_url})
        if self.create_error:
            raise self.create_error
        return self.bot_id

    async def delete_bot(self, bot_handle: str) -> None:
        self.deleted.append(bot_handle)
        if self.delete_error:
            raise self.delete_error

    async def aclose(self) -> None:
        self.closed = True


class FakeSummarizer(Summarizer):
    name = "fake"

    def __init__(self):
        self.calls: list[str] = []
        self.errors: list[Exception] = []

    async def summarize(self, transcript_text: str) -> MeetingSummary:
        self.calls.append(transcript_text)
        if self.errors:
            raise self.errors.pop(0)
        return MeetingSummary.model_validate(SAMPLE_SUMMARY)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        recall_api_key="test-recall-key",
        public_app_url="https://notes.example.com/",
        google_api_key="test-google-key",
        meetings_store_path=tmp_path / "meetings.json",
        summary_retry_attempts=3,
        summary_retry_delay_seconds=0,
    )


@pytest.fixture
def repository(settings):
    return MeetingRepository(settings.meetings_store_path)


@pytest.fixture
def recall():
    return FakeRecallClient()


@pytest.fixture
def summarizer():
    return FakeSummarizer()


@pytest.fixture
def ctx(settings, repository, recall, summarizer):
    return build_context(settings, repository=repository, recall=recall, summarizer=summarizer)


@pytest.fixture
def client(settings, repository, recall, summarizer):
    app = create_app(settings, repository=repository, recall=recall, summarizer=summarizer)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def meeting(repository):
    return repository.create_meeting("https://meet.example.com/abc", bot_name="Notetaker")


def upstream_error(message: str = "Bot cannot join", status_code: int = 400) -> UpstreamError:
    return UpstreamError(message, status_code=status_code)
