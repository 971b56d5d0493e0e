"""
Immutable tuning for the scheduler and the session composer.

Each pure function takes one of these structs; the module-level defaults
are frozen instances, so tests can substitute alternate tuning without
touching process state.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from mnemos.domain import constants as c


@dataclass(frozen=True)
class ContextModifiers:
    """Multiplicative interval modifiers applied from the review context."""

    morning: float = c.MORNING_BONUS
    night: float = c.NIGHT_PENALTY
    daily_streak_days: int = c.DAILY_STREAK_DAYS
    daily_streak: float = c.DAILY_STREAK_BONUS
    frequent_streak_days: int = c.FREQUENT_STREAK_DAYS
    frequent_streak: float = c.FREQUENT_STREAK_BONUS
    after_correct: float = c.AFTER_CORRECT_BONUS
    after_wrong: float = c.AFTER_WRONG_PENALTY


@dataclass(frozen=True)
class SchedulerConfig:
    """
    SM-2+ tuning.

    Attributes:
        quality_factors: Interval multiplier per review quality (0-5).
        initial_ease_factor: Ease factor assigned to a new item.
        min_ease_factor / max_ease_factor: Ease factor bounds.
        max_interval: Longest interval in days.
        leech_threshold: Lapses at which an item becomes a leech.
        graduation_interval: Interval in days at which an item graduates.
        fuzz_range: Bounds of the uniform fuzz factor on grown intervals.
    """

    quality_factors: Mapping[int, float] = field(
        default_factory=lambda: MappingProxyType(dict(c.QUALITY_FACTORS))
    )
    initial_ease_factor: float = c.INITIAL_EASE_FACTOR
    initial_interval: float = c.INITIAL_INTERVAL
    min_ease_factor: float = c.MIN_EASE_FACTOR
    max_ease_factor: float = c.MAX_EASE_FACTOR
    min_interval: float = c.MIN_INTERVAL
    max_interval: float = c.MAX_INTERVAL
    leech_threshold: int = c.LEECH_THRESHOLD
    graduation_interval: float = c.GRADUATION_INTERVAL
    fuzz_range: tuple[float, float] = c.FUZZ_RANGE
    modifiers: ContextModifiers = field(default_factory=ContextModifiers)

    def __post_init__(self):
        low, high = self.fuzz_range
        if low > high:
            raise ValueError(f"fuzz_range lower bound {low} exceeds upper bound {high}")
        if self.min_ease_factor > self.max_ease_factor:
            raise ValueError("min_ease_factor must not exceed max_ease_factor")

    @property
    def ease_span(self) -> float:
        return self.max_ease_factor - self.min_ease_factor


@dataclass(frozen=True)
class SessionConfig:
    """Priority weights and time defaults used to compose a study session."""

    overdue_base: float = c.OVERDUE_BASE_PRIORITY
    overdue_per_day: float = c.OVERDUE_DAILY_PRIORITY
    leech_bonus: float = c.LEECH_PRIORITY
    low_retention_threshold: float = c.LOW_RETENTION_THRESHOLD
    low_retention_bonus: float = c.LOW_RETENTION_PRIORITY
    new_item_bonus: float = c.NEW_ITEM_PRIORITY
    default_item_minutes: float = c.DEFAULT_ITEM_MINUTES


DEFAULT_SCHEDULER_CONFIG = SchedulerConfig()
DEFAULT_SESSION_CONFIG = SessionConfig()
