"""
Domain models for item scheduling.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from mnemos.domain import constants as c
from mnemos.domain.errors import InvalidContextError


class ItemStatus(str, Enum):
    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    GRADUATED = "graduated"
    LEECH = "leech"


class TimeOfDay(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"

    @classmethod
    def from_hour(cls, hour: int) -> "TimeOfDay":
        """Bucket a 0-23 wall-clock hour."""
        if 6 <= hour < 12:
            return cls.MORNING
        if 12 <= hour < 18:
            return cls.AFTERNOON
        if 18 <= hour < 22:
            return cls.EVENING
        return cls.NIGHT


class PreviousResult(str, Enum):
    CORRECT = "correct"
    WRONG = "wrong"


class Trend(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


@dataclass(frozen=True)
class ReviewContext:
    """
    Optional circumstances of a review that bend the next interval.

    Attributes:
        time_of_day: When the review happened.
        study_streak: Consecutive days the learner has studied.
        previous_result: Outcome of the learner's previous review in this session.
        subject_difficulty: Difficulty of the subject on a 0-10 scale.
    """

    time_of_day: TimeOfDay | None = None
    study_streak: int | None = None
    previous_result: PreviousResult | None = None
    subject_difficulty: float | None = None

    def __post_init__(self):
        d = self.subject_difficulty
        if d is not None and not 0 <= d <= c.MAX_SUBJECT_DIFFICULTY:
            raise InvalidContextError(
                f"subject_difficulty must be within [0, {c.MAX_SUBJECT_DIFFICULTY}], got {d}"
            )
        if self.study_streak is not None and self.study_streak < 0:
            raise InvalidContextError(f"study_streak must be >= 0, got {self.study_streak}")


@dataclass(frozen=True)
class ItemStats:
    """
    Metrics derived from an ItemState.

    Attributes:
        retention: (repetitions - lapses) / repetitions, 0 for an unrepeated item.
        difficulty: 0.0 (easiest ease factor) to 1.0 (hardest).
        stability: Days the memory is expected to hold.
        retrievability: Recall probability one day into the interval.
        mastery: 0-100 composite of ease, interval, streak and retention.
        trend: Direction of the latest review.
        time_saved: Minutes saved by spacing, negative when lapses dominate.
    """

    retention: float
    difficulty: float
    stability: float
    retrievability: float
    mastery: int
    trend: Trend = Trend.STABLE
    time_saved: int = 0


@dataclass(frozen=True)
class ItemState:
    """
    Scheduling state of one item for one learner.

    Only the scheduler produces new states; every update returns a fresh
    instance with its stats recomputed.
    """

    ease_factor: float = c.INITIAL_EASE_FACTOR
    interval: float = c.INITIAL_INTERVAL  # days
    repetitions: int = 0  # Consecutive successes since the last lapse
    lapses: int = 0
    streak: int = 0
    reviews: int = 0  # Total answered reviews
    last_quality: int | None = None

    last_review: datetime | None = None
    next_review: datetime | None = None

    # Sticky flags
    is_leech: bool = False
    leech_at: datetime | None = None
    graduated: bool = False
    graduated_at: datetime | None = None

    stats: ItemStats | None = None

    @classmethod
    def new(cls, ease_factor: float = c.INITIAL_EASE_FACTOR) -> "ItemState":
        return cls(ease_factor=ease_factor)

    @property
    def is_new(self) -> bool:
        return self.repetitions == 0 and self.lapses == 0 and self.reviews == 0

    @property
    def due_at(self) -> datetime | None:
        """
        When the item is next due.

        A failed review leaves next_review untouched, so the due date is
        derived from the last review and the current interval instead.
        """
        if self.last_review is not None:
            return self.last_review + timedelta(days=self.interval)
        return self.next_review

    @property
    def status(self) -> ItemStatus:
        return item_status(self)


def item_status(
    state: ItemState,
    leech_threshold: int = c.LEECH_THRESHOLD,
    graduation_interval: float = c.GRADUATION_INTERVAL,
) -> ItemStatus:
    """
    Lifecycle position of an item, derived from its counters.

    New -> Learning -> Review -> Graduated, with Leech reachable from any
    state. A lapse drops the item back to Learning without clearing flags.
    """
    if state.is_leech or state.lapses >= leech_threshold:
        return ItemStatus.LEECH
    if state.repetitions == 0:
        return ItemStatus.NEW if state.lapses == 0 else ItemStatus.LEARNING
    if state.interval >= graduation_interval:
        return ItemStatus.GRADUATED
    if state.repetitions >= 3:
        return ItemStatus.REVIEW
    return ItemStatus.LEARNING


@dataclass(frozen=True)
class ForecastPoint:
    day: int
    retention: float
    probability: int  # percent
    recommended: bool


@dataclass(frozen=True)
class SessionItem:
    """
    A candidate for a study session.

    Attributes:
        item_id: Caller-side identifier, returned untouched.
        state: Scheduling state, None for an item never reviewed.
        estimated_minutes: Expected time to answer; the session default when unknown.
        difficulty: Catalog difficulty on a 0-1 scale, used to match new items to ability.
    """

    item_id: str
    state: ItemState | None = None
    estimated_minutes: float | None = None
    difficulty: float | None = None


@dataclass(frozen=True)
class PrioritizedItem:
    item: SessionItem
    priority: float
    minutes: float


@dataclass
class SessionPlan:
    """Result of composing a session."""

    selected: list[PrioritizedItem] = field(default_factory=list)
    estimated_time: float = 0.0
    skipped_count: int = 0

    @property
    def item_ids(self) -> list[str]:
        return [p.item.item_id for p in self.selected]
