"""
Learner ability estimation with a two-parameter logistic IRT model.

This is a pure computation module with no I/O: the caller supplies the
response history, the estimator windows it and fits a single latent
ability by damped Newton-Raphson.
"""

import logging
import math
from collections.abc import Iterable
from datetime import timedelta

from mnemos.application.utils.time import Clock, ensure_aware, utcnow
from mnemos.domain.ability.config import DEFAULT_ABILITY_CONFIG, AbilityConfig
from mnemos.domain.ability.models import (
    BLOOM_LEVELS,
    AbilityProfile,
    BloomLevel,
    ResponseRecord,
    Zone,
)
from mnemos.domain.scheduling.models import Trend

logger = logging.getLogger(__name__)


def response_probability(theta: float, difficulty: float, discrimination: float) -> float:
    """P(correct | theta) under the 2PL model."""
    z = discrimination * (theta - difficulty)
    if z >= 0:
        return 1 / (1 + math.exp(-z))
    # Same value, without overflowing exp() for large negative z
    e = math.exp(z)
    return e / (1 + e)


class AbilityEstimator:
    """
    Estimates an AbilityProfile from a learner's recent responses.

    Stateless and side-effect free.
    """

    def __init__(self, config: AbilityConfig = DEFAULT_ABILITY_CONFIG, clock: Clock = utcnow):
        self._config = config
        self._clock = clock

    def estimate(
        self,
        responses: Iterable[ResponseRecord],
        subject_id: str | None = None,
    ) -> AbilityProfile:
        """
        Fit the learner's ability.

        Args:
            responses: Response history in any order.
            subject_id: Only responses of this subject count when given.

        Returns:
            A new AbilityProfile. An empty window yields the default profile.
        """
        window = self.select_window(responses, subject_id)
        if not window:
            return self.default_profile(subject_id)

        theta = self._fit_theta(window)
        ability = (theta + self._config.theta_bound) / (2 * self._config.theta_bound)

        logger.debug(f"Estimated theta={theta:.3f} from {len(window)} responses")
        return AbilityProfile(
            ability=ability,
            confidence=min(len(window) / self._config.confidence_records, 1.0),
            zone=self.zone_for(ability),
            trend=self._compute_trend(window),
            bloom_level=bloom_level_for(ability),
            response_count=len(window),
            subject_id=subject_id,
        )

    def default_profile(self, subject_id: str | None = None) -> AbilityProfile:
        cfg = self._config
        return AbilityProfile(
            ability=cfg.default_ability,
            confidence=cfg.default_confidence,
            zone=cfg.default_zone,
            trend=Trend.STABLE,
            bloom_level=bloom_level_for(cfg.default_ability),
            response_count=0,
            subject_id=subject_id,
        )

    def select_window(
        self,
        responses: Iterable[ResponseRecord],
        subject_id: str | None = None,
    ) -> list[ResponseRecord]:
        """
        Most-recent-first slice of the history used for estimation.

        Responses older than the window are dropped; undated responses are
        kept and ordered after dated ones.
        """
        cfg = self._config
        cutoff = self._clock() - timedelta(days=cfg.window_days)

        kept = []
        for record in responses:
            if subject_id is not None and record.subject_id != subject_id:
                continue
            if record.timestamp is not None and ensure_aware(record.timestamp) < cutoff:
                continue
            kept.append(record)

        kept.sort(key=_recency_key, reverse=True)
        return kept[: cfg.max_records]

    def zone_for(self, ability: float) -> Zone:
        """
        Bucket a normalized ability; the top zone includes its upper bound.
        """
        bounds = self._config.zone_bounds
        for zone, (low, high) in bounds.items():
            if low <= ability < high:
                return zone
        last_zone = list(bounds)[-1]
        if ability >= bounds[last_zone][1]:
            return last_zone
        return self._config.default_zone

    def _fit_theta(self, window: list[ResponseRecord]) -> float:
        """
        Damped Newton-Raphson on the 2PL log-likelihood.

        A zero Hessian skips that iteration's step. Theta is clamped after
        every iteration.
        """
        cfg = self._config
        theta = 0.0

        for _ in range(cfg.iterations):
            gradient = 0.0
            hessian = 0.0
            for record in window:
                disc = record.question_discrimination
                p = response_probability(theta, record.question_difficulty, disc)
                observed = 1.0 if record.correct else 0.0
                gradient += disc * (observed - p)
                hessian -= disc * disc * p * (1 - p)

            previous = theta
            if hessian != 0:
                theta -= cfg.learning_rate * (gradient / hessian)
            theta = max(-cfg.theta_bound, min(cfg.theta_bound, theta))

            if cfg.tolerance is not None and abs(theta - previous) < cfg.tolerance:
                break

        return theta

    def _compute_trend(self, window: list[ResponseRecord]) -> Trend:
        """
        Compare mean accuracy of the latest responses against the ones before.
        """
        size = self._config.trend_window
        margin = self._config.trend_margin
        if len(window) < size:
            return Trend.STABLE

        recent = window[:size]
        older = window[size : 2 * size]
        if not older:
            return Trend.STABLE

        recent_mean = sum(r.score for r in recent) / len(recent)
        # Mean over the older responses actually present, not over a fixed
        # window size: a short history is not padded with misses.
        older_mean = sum(r.score for r in older) / len(older)

        if recent_mean > older_mean + margin:
            return Trend.IMPROVING
        if recent_mean < older_mean - margin:
            return Trend.DECLINING
        return Trend.STABLE


def bloom_level_for(ability: float) -> BloomLevel:
    index = max(0, math.floor(ability * len(BLOOM_LEVELS)))
    return BLOOM_LEVELS[min(index, len(BLOOM_LEVELS) - 1)]


def _recency_key(record: ResponseRecord) -> tuple[int, float]:
    if record.timestamp is None:
        return (0, 0.0)
    return (1, ensure_aware(record.timestamp).timestamp())


def estimate_ability(
    responses: Iterable[ResponseRecord],
    subject_id: str | None = None,
    *,
    config: AbilityConfig = DEFAULT_ABILITY_CONFIG,
    clock: Clock = utcnow,
) -> AbilityProfile:
    return AbilityEstimator(config, clock).estimate(responses, subject_id)
