"""
Forgetting-curve predictor: retention metrics and forecasts from item state.

This is a pure computation module with no I/O.
"""

import math
from collections.abc import Sequence

from mnemos.application.utils.numeric import clamp, round_half_up
from mnemos.domain import constants as c
from mnemos.domain.scheduling.config import DEFAULT_SCHEDULER_CONFIG, SchedulerConfig
from mnemos.domain.scheduling.models import ForecastPoint, ItemState, ItemStats, Trend


class RetentionForecast(Sequence[ForecastPoint]):
    """
    Day-by-day recall forecast for one item.

    Points are computed on access, so the forecast can be iterated any
    number of times and always yields the same `days_ahead` points.
    """

    def __init__(self, interval: float, days_ahead: int):
        if days_ahead < 0:
            raise ValueError(f"days_ahead must be >= 0, got {days_ahead}")
        self.interval = interval if interval > 0 else 1
        self.days_ahead = days_ahead

    def __len__(self) -> int:
        return self.days_ahead

    def __getitem__(self, index):
        if isinstance(index, slice):
            return [self[i] for i in range(*index.indices(len(self)))]
        if index < 0:
            index += len(self)
        if not 0 <= index < len(self):
            raise IndexError("forecast index out of range")
        return self._point(index + 1)

    def __repr__(self) -> str:
        return f"RetentionForecast(interval={self.interval}, days_ahead={self.days_ahead})"

    def _point(self, day: int) -> ForecastPoint:
        retention = max(0.0, math.exp(-day / self.interval))
        return ForecastPoint(
            day=day,
            retention=retention,
            probability=round_half_up(retention * 100),
            recommended=day == self.interval,
        )


class ForgettingCurvePredictor:
    """
    Derives retention metrics from ItemState objects.

    Stateless and side-effect free.
    """

    def __init__(self, config: SchedulerConfig = DEFAULT_SCHEDULER_CONFIG):
        self._config = config

    def stats(self, state: ItemState) -> ItemStats:
        """
        Compute the derived stats of a state.
        """
        retention = self._compute_retention(state)
        return ItemStats(
            retention=retention,
            difficulty=self._compute_difficulty(state),
            stability=state.interval * c.STABILITY_MULTIPLIER,
            retrievability=math.exp(-1 / max(state.interval, 1)),
            mastery=self._compute_mastery(state, retention),
            trend=self._compute_trend(state),
            time_saved=round_half_up(state.repetitions * 2 - state.lapses * 5),
        )

    def predict(self, state: ItemState | None, days_ahead: int = c.DEFAULT_FORECAST_DAYS):
        """
        Forecast recall probability for each of the next `days_ahead` days.

        R(day) = exp(-day / interval); the day equal to the interval is flagged
        as the recommended review day.
        """
        interval = state.interval if state is not None else self._config.initial_interval
        return RetentionForecast(interval, days_ahead)

    def _compute_retention(self, state: ItemState) -> float:
        if state.repetitions == 0:
            return 0.0
        return (state.repetitions - state.lapses) / state.repetitions

    def _compute_difficulty(self, state: ItemState) -> float:
        """
        Map the ease factor onto 0 (easiest) .. 1 (hardest).
        """
        cfg = self._config
        return 1 - (state.ease_factor - cfg.min_ease_factor) / cfg.ease_span

    def _compute_mastery(self, state: ItemState, retention: float) -> int:
        """
        Weighted 0-100 score: ease 40%, interval 30%, streak 20%, retention 10%.
        """
        cfg = self._config
        mastery = (state.ease_factor - cfg.min_ease_factor) / cfg.ease_span * 40
        mastery += min(state.interval / c.MASTERY_INTERVAL_DAYS, 1) * 30
        mastery += min(state.streak / c.MASTERY_STREAK, 1) * 20
        mastery += retention * 10
        return round_half_up(clamp(mastery, 0, 100))

    def _compute_trend(self, state: ItemState) -> Trend:
        if state.last_quality is None:
            return Trend.STABLE
        if state.last_quality >= c.PASSING_QUALITY:
            return Trend.IMPROVING
        return Trend.DECLINING


def compute_stats(
    state: ItemState, config: SchedulerConfig = DEFAULT_SCHEDULER_CONFIG
) -> ItemStats:
    return ForgettingCurvePredictor(config).stats(state)


def predict_performance(
    state: ItemState | None,
    days_ahead: int = c.DEFAULT_FORECAST_DAYS,
    config: SchedulerConfig = DEFAULT_SCHEDULER_CONFIG,
) -> RetentionForecast:
    return ForgettingCurvePredictor(config).predict(state, days_ahead)
