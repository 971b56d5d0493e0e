import json
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from mnemos.domain.errors import RecordFormatError
from mnemos.domain.scheduling.models import ItemState, ItemStatus
from mnemos.infrastructure.record_store import RecordStore, load_document, load_state, save_state
from mnemos.infrastructure.schemas import (
    ItemStateSchema,
    ResponseSchema,
    ReviewContextSchema,
    SessionItemSchema,
    validate_record,
)
from mnemos.infrastructure.serialization import state_to_dict

RECORDS = """\
learners:
  alice:
    items:
      - id: card-1
        estimated_minutes: 1.5
        difficulty: 0.4
        state:
          ease_factor: 2.6
          interval: 6
          repetitions: 2
          last_review: 2024-02-20T09:00:00Z
      - id: card-2
    responses:
      - {correct: true, question_difficulty: 0.3, subject: math}
      - {correct: false, subject: art, timestamp: "2024-02-28T10:00:00+00:00"}
  bob:
"""


@pytest.fixture
def records(tmp_path):
    path = tmp_path / "records.yaml"
    path.write_text(RECORDS)
    return path


@pytest.mark.asyncio
async def test_get_items(records):
    items = await RecordStore(records).get_items("alice")
    assert [i.item_id for i in items] == ["card-1", "card-2"]
    first = items[0]
    assert first.estimated_minutes == 1.5
    assert first.difficulty == 0.4
    assert first.state.repetitions == 2
    assert first.state.last_review == datetime(2024, 2, 20, 9, tzinfo=timezone.utc)
    assert items[1].state is None


@pytest.mark.asyncio
async def test_get_responses_by_subject(records):
    store = RecordStore(records)
    assert len(await store.get_responses("alice")) == 2
    art = await store.get_responses("alice", "art")
    assert len(art) == 1
    assert art[0].correct is False
    assert art[0].timestamp.tzinfo is not None


@pytest.mark.asyncio
async def test_unknown_and_empty_learners(records):
    store = RecordStore(records)
    assert await store.get_items("carol") == []
    assert await store.get_responses("bob") == []
    assert sorted(store.learner_ids()) == ["alice", "bob"]


@pytest.mark.asyncio
async def test_item_without_id(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("learners:\n  alice:\n    items:\n      - {difficulty: 0.2}\n")
    with pytest.raises(RecordFormatError):
        await RecordStore(path).get_items("alice")


def test_duplicate_keys_rejected(tmp_path):
    path = tmp_path / "dup.yaml"
    path.write_text("interval: 3\ninterval: 4\n")
    with pytest.raises(RecordFormatError, match="duplicate key"):
        load_document(path)


def test_top_level_must_be_mapping(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n")
    with pytest.raises(RecordFormatError):
        load_document(path)


def test_missing_or_empty_state_is_new(tmp_path):
    assert load_state(tmp_path / "missing.yaml") is None
    empty = tmp_path / "empty.yaml"
    empty.write_text("")
    assert load_state(empty) is None


def test_save_state_as_json(tmp_path):
    path = tmp_path / "card.json"
    state = ItemState(
        repetitions=3,
        interval=16,
        ease_factor=2.6,
        last_review=datetime(2024, 3, 1, tzinfo=timezone.utc),
    )
    save_state(path, state)

    data = json.loads(path.read_text())
    assert data["status"] == "review"
    assert data["last_review"] == "2024-03-01T00:00:00+00:00"
    assert load_state(path) == state


def test_save_state_as_yaml(tmp_path):
    path = tmp_path / "card.yaml"
    state = ItemState(lapses=8, is_leech=True)
    save_state(path, state)
    loaded = load_state(path)
    assert loaded.status is ItemStatus.LEECH


def test_stored_stats_are_ignored():
    record = {"interval": 3, "stats": {"mastery": 99}, "status": "graduated"}
    state = ItemStateSchema.model_validate(record).to_domain()
    assert state.stats is None
    assert state.status is ItemStatus.NEW
    assert "stats" not in state_to_dict(state)


def test_unknown_state_field_is_ignored():
    assert ItemStateSchema.model_validate({"interval": 2, "color": "red"}).interval == 2


def test_timestamps_are_utc():
    schema = ItemStateSchema.model_validate({"last_review": "2024-01-01T12:00:00"})
    assert schema.last_review.tzinfo is timezone.utc
    assert ItemStateSchema.model_validate({"last_review": None}).last_review is None
    with pytest.raises(ValidationError):
        ItemStateSchema.model_validate({"last_review": "yesterday"})


@pytest.mark.parametrize(
    "field,value",
    [
        ("ease_factor", "2.6"),
        ("interval", None),
        ("repetitions", 2.5),
        ("lapses", -1),
        ("is_leech", "true"),
        ("last_quality", 9),
    ],
)
def test_state_field_types_are_strict(field, value):
    with pytest.raises(RecordFormatError):
        validate_record(ItemStateSchema, {field: value}, "card.yaml")


def test_int_is_accepted_for_float_fields():
    state = ItemStateSchema.model_validate({"ease_factor": 2, "interval": 6}).to_domain()
    assert state.ease_factor == 2.0
    assert state.interval == 6.0


def test_response_correct_must_be_boolean():
    with pytest.raises(ValidationError):
        ResponseSchema.model_validate({"correct": "false"})
    with pytest.raises(ValidationError):
        ResponseSchema.model_validate({"correct": 0})
    with pytest.raises(ValidationError):
        ResponseSchema.model_validate({"question_difficulty": 0.5})


def test_response_subject_alias():
    record = ResponseSchema.model_validate({"correct": False, "subject": "math"}).to_domain()
    assert record.correct is False
    assert record.subject_id == "math"
    assert ResponseSchema.model_validate({"correct": True, "subject_id": "art"}).subject_id == "art"


def test_session_item_schema():
    item = SessionItemSchema.model_validate(
        {"item_id": "card-9", "estimated_minutes": 2, "state": {"interval": 4}}
    ).to_domain()
    assert item.item_id == "card-9"
    assert item.estimated_minutes == 2.0
    assert item.state.interval == 4.0
    with pytest.raises(ValidationError):
        SessionItemSchema.model_validate({"id": "x", "difficulty": 1.5})


def test_review_context_schema():
    ctx = ReviewContextSchema.model_validate({"time_of_day": "night", "study_streak": 4})
    assert ctx.to_domain().time_of_day.value == "night"
    with pytest.raises(ValidationError):
        ReviewContextSchema.model_validate({"time_of_day": "noon"})


def test_state_file_with_string_ease_factor(tmp_path):
    path = tmp_path / "card.yaml"
    path.write_text('repetitions: 2\ninterval: 6\nease_factor: "2.6"\n')
    with pytest.raises(RecordFormatError, match="ease_factor"):
        load_state(path)


@pytest.mark.asyncio
async def test_quoted_boolean_response_is_rejected(tmp_path):
    path = tmp_path / "records.yaml"
    path.write_text('learners:\n  alice:\n    responses:\n      - {correct: "false"}\n')
    with pytest.raises(RecordFormatError, match="correct"):
        await RecordStore(path).get_responses("alice")


@pytest.mark.asyncio
async def test_scalar_item_record_is_rejected(tmp_path):
    path = tmp_path / "records.yaml"
    path.write_text("learners:\n  alice:\n    items:\n      - card-1\n")
    with pytest.raises(RecordFormatError):
        await RecordStore(path).get_items("alice")
