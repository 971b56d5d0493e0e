"""
pydantic schemas for records crossing the process boundary.

Record files and HTTP bodies are validated against these models and then
converted into the frozen domain dataclasses. Numbers and flags are strict:
"2.6" is not an ease factor and "false" is not a boolean.
"""

from datetime import datetime
from typing import Any, TypeVar

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    ValidationError,
    field_validator,
)

from mnemos.application.utils.time import ensure_aware
from mnemos.domain import constants as c
from mnemos.domain.ability.models import ResponseRecord
from mnemos.domain.errors import RecordFormatError
from mnemos.domain.scheduling.models import (
    ItemState,
    PreviousResult,
    ReviewContext,
    SessionItem,
    TimeOfDay,
)

S = TypeVar("S", bound=BaseModel)


class _Schema(BaseModel):
    # Derived fields (stats, status) and foreign keys are dropped on load
    model_config = ConfigDict(extra="ignore")


class ItemStateSchema(_Schema):
    """Stored scheduling state of one item."""

    ease_factor: StrictFloat = c.INITIAL_EASE_FACTOR
    interval: StrictFloat = Field(default=c.INITIAL_INTERVAL, ge=0)
    repetitions: StrictInt = Field(default=0, ge=0)
    lapses: StrictInt = Field(default=0, ge=0)
    streak: StrictInt = Field(default=0, ge=0)
    reviews: StrictInt = Field(default=0, ge=0)
    last_quality: StrictInt | None = Field(default=None, ge=0, le=5)

    last_review: datetime | None = None
    next_review: datetime | None = None

    is_leech: StrictBool = False
    leech_at: datetime | None = None
    graduated: StrictBool = False
    graduated_at: datetime | None = None

    @field_validator("last_review", "next_review", "leech_at", "graduated_at")
    @classmethod
    def _as_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_aware(value) if value is not None else None

    def to_domain(self) -> ItemState:
        return ItemState(**self.model_dump())


class ReviewContextSchema(_Schema):
    time_of_day: TimeOfDay | None = None
    study_streak: StrictInt | None = None
    previous_result: PreviousResult | None = None
    subject_difficulty: StrictFloat | None = None

    def to_domain(self) -> ReviewContext:
        # Range checks live on ReviewContext and raise InvalidContextError
        return ReviewContext(**self.model_dump())


class ResponseSchema(_Schema):
    """One answered question, as exported by the quiz side."""

    correct: StrictBool
    question_difficulty: StrictFloat = c.DEFAULT_DIFFICULTY
    question_discrimination: StrictFloat = c.DEFAULT_DISCRIMINATION
    timestamp: datetime | None = None
    accuracy: StrictFloat | None = Field(default=None, ge=0, le=1)
    subject_id: str | None = Field(
        default=None, validation_alias=AliasChoices("subject_id", "subject")
    )

    @field_validator("timestamp")
    @classmethod
    def _as_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_aware(value) if value is not None else None

    def to_domain(self) -> ResponseRecord:
        return ResponseRecord(**self.model_dump())


class SessionItemSchema(_Schema):
    item_id: str = Field(min_length=1, validation_alias=AliasChoices("id", "item_id"))
    state: ItemStateSchema | None = None
    estimated_minutes: StrictFloat | None = None
    difficulty: StrictFloat | None = Field(default=None, ge=0, le=1)

    def to_domain(self) -> SessionItem:
        return SessionItem(
            item_id=self.item_id,
            state=self.state.to_domain() if self.state is not None else None,
            estimated_minutes=self.estimated_minutes,
            difficulty=self.difficulty,
        )


def validate_record(schema: type[S], data: Any, source: str) -> S:
    """
    Validate one raw record, reporting failures as RecordFormatError.

    Args:
        schema: Schema the record must satisfy.
        data: Parsed YAML/JSON value.
        source: Where the record came from, used in the error message.
    """
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        raise RecordFormatError(f"{source}: invalid {schema.__name__}: {e}") from e
