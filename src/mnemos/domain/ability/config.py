"""Immutable tuning for the ability estimator."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from mnemos.domain import constants as c

from .models import Zone


def _default_zone_bounds() -> Mapping[Zone, tuple[float, float]]:
    return MappingProxyType(
        {
            Zone.COMFORT: (0.0, 0.6),
            Zone.LEARNING: (0.6, 0.85),
            Zone.CHALLENGE: (0.85, 0.95),
            Zone.FRUSTRATION: (0.95, 1.0),
        }
    )


def _default_zone_adjustments() -> Mapping[Zone, float]:
    return MappingProxyType(
        {
            Zone.COMFORT: -0.2,
            Zone.LEARNING: 0.0,
            Zone.CHALLENGE: 0.1,
            Zone.FRUSTRATION: -0.3,
        }
    )


@dataclass(frozen=True)
class AbilityConfig:
    """
    2PL IRT estimation tuning.

    Attributes:
        window_days: Only responses newer than this are used.
        max_records: Most-recent responses kept after windowing.
        iterations: Newton-Raphson iterations.
        learning_rate: Damping applied to each Newton step.
        theta_bound: Latent ability is clamped to [-bound, bound].
        tolerance: Stop early once a step moves theta less than this; None runs
            every iteration.
        zone_bounds: Half-open [low, high) ability ranges; the last zone also
            includes its upper bound.
        zone_adjustments: Offset from ability to the difficulty worth serving next.
    """

    window_days: int = c.ABILITY_WINDOW_DAYS
    max_records: int = c.ABILITY_MAX_RECORDS
    iterations: int = c.NEWTON_ITERATIONS
    learning_rate: float = c.NEWTON_LEARNING_RATE
    theta_bound: float = c.THETA_BOUND
    tolerance: float | None = None
    confidence_records: int = c.CONFIDENCE_RECORDS
    trend_window: int = c.TREND_WINDOW
    trend_margin: float = c.TREND_MARGIN
    default_ability: float = 0.5
    default_confidence: float = 0.1
    default_zone: Zone = Zone.LEARNING
    zone_bounds: Mapping[Zone, tuple[float, float]] = field(
        default_factory=_default_zone_bounds
    )
    zone_adjustments: Mapping[Zone, float] = field(default_factory=_default_zone_adjustments)
    difficulty_band: float = c.DIFFICULTY_BAND

    def __post_init__(self):
        if self.iterations < 0:
            raise ValueError("iterations must be >= 0")
        if self.max_records <= 0:
            raise ValueError("max_records must be positive")


DEFAULT_ABILITY_CONFIG = AbilityConfig()
