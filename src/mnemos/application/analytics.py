"""
Collection-level analytics for dashboards.

This is a pure computation module with no I/O.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta

from mnemos.application.forgetting_curve import ForgettingCurvePredictor
from mnemos.application.utils.time import ensure_aware, utcnow
from mnemos.domain.scheduling.models import ItemState


@dataclass
class CollectionSummary:
    """
    Counts and averages over a learner's items.

    Averages are taken over every item, reviewed or not, so a collection of
    mostly new items reports low averages.
    """

    total: int = 0
    due: int = 0
    new: int = 0
    learning: int = 0
    graduated: int = 0
    leeches: int = 0
    avg_ease_factor: float = 0.0
    avg_interval: float = 0.0
    avg_retention: float = 0.0
    due_tomorrow: int = 0
    due_within_week: int = 0


def summarize_collection(
    states: Iterable[ItemState | None],
    now: datetime | None = None,
    predictor: ForgettingCurvePredictor | None = None,
) -> CollectionSummary:
    """
    Summarize item states; None stands for an item never reviewed.
    """
    now = ensure_aware(now or utcnow())
    predictor = predictor or ForgettingCurvePredictor()
    tomorrow = (now + timedelta(days=1)).date()
    week_ahead = now + timedelta(days=7)

    summary = CollectionSummary()
    ease_total = 0.0
    interval_total = 0.0
    retention_total = 0.0

    for state in states:
        summary.total += 1
        if state is None or state.repetitions == 0:
            summary.new += 1
        if state is None:
            continue

        if state.repetitions > 0 and not state.graduated:
            summary.learning += 1
        if state.graduated:
            summary.graduated += 1
        if state.is_leech:
            summary.leeches += 1

        if not state.is_new:
            ease_total += state.ease_factor
            interval_total += state.interval
            retention_total += predictor.stats(state).retention

        due = state.due_at
        if due is None:
            continue
        due = ensure_aware(due)
        if due <= now:
            summary.due += 1
        if due.date() == tomorrow:
            summary.due_tomorrow += 1
        if due <= week_ahead:
            summary.due_within_week += 1

    if summary.total:
        summary.avg_ease_factor = ease_total / summary.total
        summary.avg_interval = interval_total / summary.total
        summary.avg_retention = retention_total / summary.total

    return summary
