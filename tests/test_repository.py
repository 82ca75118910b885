import json

import pytest

from backend.errors import NotFoundError, StaleStatusError
from backend.models.meeting_model import MeetingStatus, TranscriptEntry, can_transition
from backend.services.repository import MeetingRepository


def test_create_meeting_starts_joining_with_empty_transcript(repository):
    meeting = repository.create_meeting("https://meet.example.com/abc", bot_name="Notetaker")

    stored = repository.get_meeting(meeting.id)
    assert stored.status == MeetingStatus.JOINING
    assert stored.transcript == []
    assert stored.summary is None
    assert stored.bot_handle is None
    assert stored.meeting_url == "https://meet.example.com/abc"


def test_meeting_ids_are_unique(repository):
    ids = {repository.create_meeting(f"https://meet.example.com/{idx}").id for idx in range(5)}
    assert len(ids) == 5
    assert len(repository.list_meetings()) == 5


def test_records_survive_a_new_repository_instance(settings, meeting):
    reopened = MeetingRepository(settings.meetings_store_path)
    assert reopened.get_meeting(meeting.id).meeting_url == meeting.meeting_url


def test_corrupt_store_reads_as_empty(settings):
    settings.meetings_store_path.write_text("{not json", encoding="utf-8")
    assert MeetingRepository(settings.meetings_store_path).list_meetings() == []


def test_require_meeting_raises_not_found(repository):
    with pytest.raises(NotFoundError):
        repository.require_meeting("missing")
    with pytest.raises(NotFoundError):
        repository.update_meeting("missing", bot_handle="bot-1")


def test_append_transcript_keeps_existing_entries(repository, meeting):
    first = TranscriptEntry(speaker="1", text="Let's begin.", timestamp=12.3)
    second = TranscriptEntry(speaker="2", text="Sounds good.", timestamp=14.0)

    assert repository.append_transcript(meeting.id, first)
    assert repository.append_transcript(meeting.id, second)

    stored = repository.get_meeting(meeting.id)
    assert [entry.text for entry in stored.transcript] == ["Let's begin.", "Sounds good."]
    assert stored.status == MeetingStatus.TRANSCRIBING


def test_append_transcript_suppresses_exact_duplicates(repository, meeting):
    entry = TranscriptEntry(speaker="1", text="Let's begin.", timestamp=12.3)

    assert repository.append_transcript(meeting.id, entry)
    assert not repository.append_transcript(meeting.id, entry)
    # Same words at a different time are a new utterance.
    assert repository.append_transcript(meeting.id, entry.model_copy(update={"timestamp": 40.0}))

    assert len(repository.get_meeting(meeting.id).transcript) == 2


def test_late_transcript_does_not_regress_status(repository, meeting):
    repository.transition(meeting.id, MeetingStatus.SUMMARIZING)

    repository.append_transcript(meeting.id, TranscriptEntry(speaker="1", text="late", timestamp=99))

    stored = repository.get_meeting(meeting.id)
    assert stored.status == MeetingStatus.SUMMARIZING
    assert stored.transcript[-1].text == "late"


def test_transition_refuses_backwards_moves(repository, meeting):
    assert repository.transition(meeting.id, MeetingStatus.SUMMARIZING) is not None
    assert repository.transition(meeting.id, MeetingStatus.TRANSCRIBING) is None
    assert repository.get_meeting(meeting.id).status == MeetingStatus.SUMMARIZING


def test_update_meeting_compare_and_set(repository, meeting):
    updated = repository.update_meeting(
        meeting.id, expected_status=[MeetingStatus.JOINING], status=MeetingStatus.COMPLETED
    )
    assert updated.status == MeetingStatus.COMPLETED

    with pytest.raises(StaleStatusError):
        repository.update_meeting(meeting.id, expected_status=[MeetingStatus.JOINING], bot_handle="bot-9")
    assert repository.get_meeting(meeting.id).bot_handle is None


def test_store_file_is_json_keyed_by_id(settings, repository, meeting):
    payload = json.loads(settings.meetings_store_path.read_text(encoding="utf-8"))
    assert payload[meeting.id]["status"] == "JOINING"


@pytest.mark.parametrize(
    "current,target,allowed",
    [
        (MeetingStatus.JOINING, MeetingStatus.TRANSCRIBING, True),
        (MeetingStatus.TRANSCRIBING, MeetingStatus.JOINING, False),
        (MeetingStatus.SUMMARIZING, MeetingStatus.TRANSCRIBING, False),
        (MeetingStatus.SUMMARIZING, MeetingStatus.SUMMARIZING, False),
        (MeetingStatus.COMPLETED, MeetingStatus.SUMMARIZING, True),
        (MeetingStatus.COMPLETED, MeetingStatus.TRANSCRIBING, False),
        (MeetingStatus.ERROR, MeetingStatus.ERROR, True),
    ],
)
def test_lifecycle_table(current, target, allowed):
    assert can_transition(current, target) is allowed
