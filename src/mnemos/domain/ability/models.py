"""
Domain models for learner ability estimation.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from mnemos.domain import constants as c
from mnemos.domain.scheduling.models import Trend


class Zone(str, Enum):
    """How the current difficulty sits against the learner's ability."""

    COMFORT = "COMFORT"
    LEARNING = "LEARNING"
    CHALLENGE = "CHALLENGE"
    FRUSTRATION = "FRUSTRATION"


class BloomLevel(str, Enum):
    REMEMBER = "REMEMBER"
    UNDERSTAND = "UNDERSTAND"
    APPLY = "APPLY"
    ANALYZE = "ANALYZE"
    EVALUATE = "EVALUATE"
    CREATE = "CREATE"


BLOOM_LEVELS: tuple[BloomLevel, ...] = tuple(BloomLevel)


@dataclass(frozen=True)
class ResponseRecord:
    """
    A single answered question.

    Attributes:
        correct: Whether the answer was right.
        question_difficulty: IRT difficulty parameter of the question.
        question_discrimination: IRT discrimination parameter of the question.
        timestamp: When the answer was given; undated records are never aged out.
        accuracy: Graded score in [0, 1]; falls back to 1.0/0.0 from `correct`.
        subject_id: Subject the question belongs to.
    """

    correct: bool
    question_difficulty: float = c.DEFAULT_DIFFICULTY
    question_discrimination: float = c.DEFAULT_DISCRIMINATION
    timestamp: datetime | None = None
    accuracy: float | None = None
    subject_id: str | None = None

    @property
    def score(self) -> float:
        if self.accuracy is not None:
            return self.accuracy
        return 1.0 if self.correct else 0.0


@dataclass(frozen=True)
class AbilityProfile:
    """
    Ability of one learner in one subject.

    Never mutated: a fresh estimate replaces the previous profile.
    """

    ability: float
    confidence: float
    zone: Zone
    trend: Trend
    bloom_level: BloomLevel
    response_count: int = 0
    subject_id: str | None = None
