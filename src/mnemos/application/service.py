"""
Learning Service: application layer facade.

Exposes the scheduling core to route handlers and the CLI, and coordinates
fetching records through the repository ports when a caller wants the
service to load them.
"""

import logging
import random

from mnemos.application.ability_estimator import AbilityEstimator
from mnemos.application.analytics import CollectionSummary, summarize_collection
from mnemos.application.config import AppConfig
from mnemos.application.forgetting_curve import ForgettingCurvePredictor, RetentionForecast
from mnemos.application.guidance import (
    AccuracyPrediction,
    Feedback,
    Guidance,
    adaptive_feedback,
    guidance_for,
    predict_accuracy,
    score_response,
)
from mnemos.application.scheduler import CardScheduler, reset_leech
from mnemos.application.session_composer import SessionComposer
from mnemos.application.utils.time import Clock, utcnow
from mnemos.domain import constants as c
from mnemos.domain.ability.config import DEFAULT_ABILITY_CONFIG, AbilityConfig
from mnemos.domain.ability.models import AbilityProfile, ResponseRecord
from mnemos.domain.ports import ItemStateRepository, ResponseHistoryRepository
from mnemos.domain.scheduling.config import (
    DEFAULT_SCHEDULER_CONFIG,
    DEFAULT_SESSION_CONFIG,
    SchedulerConfig,
    SessionConfig,
)
from mnemos.domain.scheduling.models import (
    ItemState,
    ItemStats,
    ReviewContext,
    SessionItem,
    SessionPlan,
)

logger = logging.getLogger(__name__)


class LearningService:
    """
    What should this learner study next, and when.

    Follows Dependency Inversion: record loading goes through the
    ItemStateRepository / ResponseHistoryRepository abstractions, which are
    optional; the pure operations work on records passed in directly.
    """

    def __init__(
        self,
        scheduler_config: SchedulerConfig = DEFAULT_SCHEDULER_CONFIG,
        ability_config: AbilityConfig = DEFAULT_ABILITY_CONFIG,
        session_config: SessionConfig = DEFAULT_SESSION_CONFIG,
        rng: random.Random | None = None,
        clock: Clock = utcnow,
        items_repo: ItemStateRepository | None = None,
        history_repo: ResponseHistoryRepository | None = None,
    ):
        self._scheduler_config = scheduler_config
        self._ability_config = ability_config
        self._clock = clock
        self._predictor = ForgettingCurvePredictor(scheduler_config)
        self._scheduler = CardScheduler(scheduler_config, rng=rng, clock=clock)
        self._estimator = AbilityEstimator(ability_config, clock=clock)
        self._composer = SessionComposer(
            session_config,
            predictor=self._predictor,
            clock=clock,
            ability_config=ability_config,
        )
        self._items_repo = items_repo
        self._history_repo = history_repo

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        items_repo: ItemStateRepository | None = None,
        history_repo: ResponseHistoryRepository | None = None,
        clock: Clock = utcnow,
    ) -> "LearningService":
        return cls(
            scheduler_config=config.scheduler_config(),
            ability_config=config.ability_config(),
            session_config=config.session_config(),
            rng=config.rng(),
            clock=clock,
            items_repo=items_repo,
            history_repo=history_repo,
        )

    # ----- Pure operations -----

    def schedule_review(
        self,
        state: ItemState | None,
        quality: int,
        context: ReviewContext | None = None,
    ) -> ItemState:
        """Called after a learner answers; the caller persists the result."""
        return self._scheduler.update(state, quality, context)

    def compute_stats(self, state: ItemState) -> ItemStats:
        return self._predictor.stats(state)

    def predict_performance(
        self, state: ItemState | None, days: int = c.DEFAULT_FORECAST_DAYS
    ) -> RetentionForecast:
        return self._predictor.predict(state, days)

    def estimate_ability(
        self,
        responses: list[ResponseRecord],
        subject_id: str | None = None,
    ) -> AbilityProfile:
        return self._estimator.estimate(responses, subject_id)

    def guidance(self, profile: AbilityProfile) -> Guidance:
        return guidance_for(profile, self._ability_config)

    def predict_accuracy(self, profile: AbilityProfile, difficulty: float) -> AccuracyPrediction:
        return predict_accuracy(profile.ability, difficulty)

    def feedback(self, profile: AbilityProfile, correct: bool, hints_used: int = 0) -> Feedback:
        """Learner-facing feedback on one answer, discounted for hints."""
        return adaptive_feedback(score_response(correct, hints_used), profile)

    def compose_session(
        self,
        items: list[SessionItem],
        max_time_minutes: float,
        profile: AbilityProfile | None = None,
        due_only: bool = False,
    ) -> SessionPlan:
        return self._composer.compose(items, max_time_minutes, profile, due_only=due_only)

    def summarize(self, states: list[ItemState | None]) -> CollectionSummary:
        return summarize_collection(states, now=self._clock(), predictor=self._predictor)

    def reset_leech(self, state: ItemState) -> ItemState:
        return reset_leech(state, self._scheduler_config)

    # ----- Repository-backed operations -----

    async def learner_profile(
        self, learner_id: str, subject_id: str | None = None
    ) -> AbilityProfile:
        """
        Load a learner's history and estimate their ability.
        """
        if self._history_repo is None:
            raise RuntimeError("LearningService has no response history repository")

        responses = await self._history_repo.get_responses(learner_id, subject_id)
        return self._estimator.estimate(responses, subject_id)

    async def plan_session(
        self,
        learner_id: str,
        max_time_minutes: float,
        subject_id: str | None = None,
        due_only: bool = False,
    ) -> SessionPlan:
        """
        Load a learner's items and compose a session.

        When a history repository is configured, the learner's ability
        orders new items by difficulty. By default every item competes on
        priority; due_only restricts the candidates to due and new items.
        """
        if self._items_repo is None:
            raise RuntimeError("LearningService has no item state repository")

        items = await self._items_repo.get_items(learner_id)
        if not items:
            return SessionPlan()

        profile = None
        if self._history_repo is not None:
            profile = await self.learner_profile(learner_id, subject_id)

        plan = self._composer.compose(items, max_time_minutes, profile, due_only=due_only)
        logger.info(
            f"Session for {learner_id}: {len(plan.selected)} items, "
            f"{plan.estimated_time:.1f} min, {plan.skipped_count} skipped"
        )
        return plan
