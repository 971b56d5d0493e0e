"""
Session composer for time-boxed study sessions.

Builds a session by:
1. Scoring each candidate item (overdue, leech, weak retention, new)
2. Sorting by priority, highest first
3. Greedily accepting items until the next one would overflow the budget
"""

import logging
import math
from collections.abc import Iterable
from datetime import datetime

from mnemos.application.forgetting_curve import ForgettingCurvePredictor
from mnemos.application.guidance import target_difficulty
from mnemos.application.utils.time import Clock, days_between, ensure_aware, utcnow
from mnemos.domain.ability.config import DEFAULT_ABILITY_CONFIG, AbilityConfig
from mnemos.domain.ability.models import AbilityProfile
from mnemos.domain.scheduling.config import DEFAULT_SESSION_CONFIG, SessionConfig
from mnemos.domain.scheduling.models import PrioritizedItem, SessionItem, SessionPlan

logger = logging.getLogger(__name__)


class SessionComposer:
    """
    Selects which items to present within a time budget.

    Greedy only: the first item that does not fit ends the selection, even
    if a shorter item further down would still fit.
    """

    def __init__(
        self,
        config: SessionConfig = DEFAULT_SESSION_CONFIG,
        predictor: ForgettingCurvePredictor | None = None,
        clock: Clock = utcnow,
        ability_config: AbilityConfig = DEFAULT_ABILITY_CONFIG,
    ):
        self._config = config
        self._predictor = predictor or ForgettingCurvePredictor()
        self._clock = clock
        self._ability_config = ability_config

    def priority(self, item: SessionItem, now: datetime | None = None) -> float:
        """
        Additive priority of one candidate.

        - overdue: base + 10 per whole day overdue
        - leech: +50
        - reviewed item with retention below 0.8: +30
        - new (no current run of successes): +20
        """
        cfg = self._config
        now = ensure_aware(now or self._clock())
        state = item.state
        priority = 0.0

        if state is None:
            return priority + cfg.new_item_bonus

        due = state.due_at
        if due is not None and now > ensure_aware(due):
            days_overdue = math.floor(days_between(due, now))
            priority += cfg.overdue_base + days_overdue * cfg.overdue_per_day

        if state.is_leech:
            priority += cfg.leech_bonus

        # Never-reviewed items have no retention to speak of
        if not state.is_new:
            retention = self._predictor.stats(state).retention
            if retention < cfg.low_retention_threshold:
                priority += cfg.low_retention_bonus

        if state.repetitions == 0:
            priority += cfg.new_item_bonus

        return priority

    def is_due_or_new(self, item: SessionItem, now: datetime | None = None) -> bool:
        state = item.state
        if state is None or state.is_new:
            return True
        due = state.due_at
        if due is None:
            return True
        return ensure_aware(due) <= ensure_aware(now or self._clock())

    def rank(
        self,
        items: Iterable[SessionItem],
        profile: AbilityProfile | None = None,
        now: datetime | None = None,
    ) -> list[PrioritizedItem]:
        """
        Score and order candidates, highest priority first.

        Ties keep their input order. With an ability profile, tied items of
        known difficulty come first, closest to the learner's target
        difficulty leading.
        """
        now = now or self._clock()
        scored = [
            PrioritizedItem(
                item=item,
                priority=self.priority(item, now),
                minutes=self._minutes(item),
            )
            for item in items
        ]

        if profile is None:
            return sorted(scored, key=lambda p: -p.priority)

        target = target_difficulty(profile, self._ability_config)

        def key(p: PrioritizedItem):
            if p.item.difficulty is None:
                return (-p.priority, 1, 0.0)
            return (-p.priority, 0, abs(p.item.difficulty - target))

        return sorted(scored, key=key)

    def compose(
        self,
        items: Iterable[SessionItem],
        max_time_minutes: float,
        profile: AbilityProfile | None = None,
        due_only: bool = False,
    ) -> SessionPlan:
        """
        Select items for a session.

        Args:
            items: Candidates; states may be None for never-reviewed items.
            max_time_minutes: Session budget.
            profile: Optional learner ability used to order new items.
            due_only: Drop items that are neither due nor new before ranking.
                Dropped items are not counted as skipped.

        Returns:
            SessionPlan whose estimated_time never exceeds the budget.
        """
        if max_time_minutes < 0:
            raise ValueError(f"max_time_minutes must be >= 0, got {max_time_minutes}")

        candidates = list(items)
        if due_only:
            now = self._clock()
            candidates = [i for i in candidates if self.is_due_or_new(i, now)]
        ranked = self.rank(candidates, profile)

        selected: list[PrioritizedItem] = []
        time_used = 0.0
        if max_time_minutes > 0:
            for entry in ranked:
                if time_used + entry.minutes > max_time_minutes:
                    break
                selected.append(entry)
                time_used += entry.minutes

        plan = SessionPlan(
            selected=selected,
            estimated_time=time_used,
            skipped_count=len(candidates) - len(selected),
        )
        logger.debug(
            f"Composed session: {len(selected)}/{len(candidates)} items, "
            f"{time_used:.1f}/{max_time_minutes} min"
        )
        return plan

    def _minutes(self, item: SessionItem) -> float:
        if item.estimated_minutes is None:
            return self._config.default_item_minutes
        if item.estimated_minutes < 0:
            raise ValueError(
                f"estimated_minutes must be >= 0 for item {item.item_id!r}, "
                f"got {item.estimated_minutes}"
            )
        return item.estimated_minutes


def compose_session(
    items: Iterable[SessionItem],
    max_time_minutes: float,
    profile: AbilityProfile | None = None,
    *,
    config: SessionConfig = DEFAULT_SESSION_CONFIG,
    clock: Clock = utcnow,
) -> SessionPlan:
    return SessionComposer(config, clock=clock).compose(items, max_time_minutes, profile)
