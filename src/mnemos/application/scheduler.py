"""
SM-2+ card scheduler.

Maps (item state, review quality, review context) to the next item state.
Pure apart from two injected dependencies: a clock for timestamps and a
random source for the interval fuzz.
"""

import logging
import random
from dataclasses import replace
from datetime import timedelta

from mnemos.application.forgetting_curve import ForgettingCurvePredictor
from mnemos.application.utils.numeric import clamp, round_half_up
from mnemos.application.utils.time import Clock, utcnow
from mnemos.domain import constants as c
from mnemos.domain.errors import InvalidQualityError
from mnemos.domain.scheduling.config import DEFAULT_SCHEDULER_CONFIG, SchedulerConfig
from mnemos.domain.scheduling.models import (
    ItemState,
    PreviousResult,
    ReviewContext,
    TimeOfDay,
)

logger = logging.getLogger(__name__)

_EMPTY_CONTEXT = ReviewContext()


def validate_quality(quality: object) -> int:
    """
    Reject anything but an integer grade in [0, 5].

    Out-of-range grades would index past the quality-factor table, so they
    are refused instead of clamped.
    """
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidQualityError(quality)
    if not c.MIN_QUALITY <= quality <= c.MAX_QUALITY:
        raise InvalidQualityError(quality)
    return quality


class CardScheduler:
    """
    Computes the next ItemState after a review.

    A new instance per learner or request is cheap; instances hold no state
    besides their injected collaborators, so concurrent calls never share
    anything but the random source they were given.
    """

    def __init__(
        self,
        config: SchedulerConfig = DEFAULT_SCHEDULER_CONFIG,
        rng: random.Random | None = None,
        clock: Clock = utcnow,
    ):
        """
        Args:
            config: Scheduler tuning.
            rng: Source of the interval fuzz; a system RNG when not provided.
            clock: Returns the current timezone-aware time.
        """
        self._config = config
        self._rng = rng if rng is not None else random.SystemRandom()
        self._clock = clock
        self._predictor = ForgettingCurvePredictor(config)

    def new_state(self) -> ItemState:
        return ItemState(
            ease_factor=self._config.initial_ease_factor,
            interval=self._config.initial_interval,
        )

    def update(
        self,
        state: ItemState | None,
        quality: int,
        context: ReviewContext | None = None,
    ) -> ItemState:
        """
        Apply one review to an item.

        Args:
            state: Current state, or None for an item reviewed for the first time.
            quality: Grade of the answer, 0 (blackout) to 5 (easy).
            context: Optional review circumstances.

        Returns:
            A fresh ItemState with stats recomputed.

        Raises:
            InvalidQualityError: If quality is not an integer in [0, 5].
        """
        quality = validate_quality(quality)
        current = state if state is not None else self.new_state()
        now = self._clock()

        if quality < c.PASSING_QUALITY:
            updated = self._apply_lapse(current, quality, now)
        else:
            updated = self._apply_success(current, quality, context or _EMPTY_CONTEXT, now)

        logger.debug(
            f"Reviewed item: quality={quality} interval={updated.interval} "
            f"ease={updated.ease_factor:.2f} lapses={updated.lapses}"
        )
        return replace(updated, stats=self._predictor.stats(updated))

    def _apply_lapse(self, current: ItemState, quality: int, now) -> ItemState:
        cfg = self._config
        lapses = current.lapses + 1
        ease = clamp(
            current.ease_factor - (0.2 + 0.04 * (2 - quality)),
            cfg.min_ease_factor,
            cfg.max_ease_factor,
        )

        is_leech = current.is_leech
        leech_at = current.leech_at
        if lapses >= cfg.leech_threshold and not is_leech:
            is_leech = True
            leech_at = now
            logger.info(f"Item became a leech after {lapses} lapses")

        # next_review is left as is; callers schedule from last_review + interval.
        return replace(
            current,
            repetitions=0,
            interval=cfg.initial_interval,
            lapses=lapses,
            streak=0,
            ease_factor=ease,
            reviews=current.reviews + 1,
            last_quality=quality,
            last_review=now,
            is_leech=is_leech,
            leech_at=leech_at,
        )

    def _apply_success(
        self, current: ItemState, quality: int, context: ReviewContext, now
    ) -> ItemState:
        cfg = self._config
        repetitions = current.repetitions + 1
        quality_factor = cfg.quality_factors[quality]

        ease = current.ease_factor + (0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02))
        ease = clamp(ease, cfg.min_ease_factor, cfg.max_ease_factor)

        if repetitions == 1:
            interval = c.FIRST_SUCCESS_INTERVAL * quality_factor
        elif repetitions == 2:
            interval = c.SECOND_SUCCESS_INTERVAL * quality_factor
        else:
            interval = current.interval * ease * quality_factor
            interval = self._apply_modifiers(interval, context)
            interval = round_half_up(interval * self._fuzz())
        interval = clamp(interval, cfg.min_interval, cfg.max_interval)

        graduated = current.graduated
        graduated_at = current.graduated_at
        if interval >= cfg.graduation_interval and not graduated:
            graduated = True
            graduated_at = now
            logger.info(f"Item graduated with a {interval}-day interval")

        return replace(
            current,
            repetitions=repetitions,
            streak=current.streak + 1,
            ease_factor=ease,
            interval=interval,
            reviews=current.reviews + 1,
            last_quality=quality,
            last_review=now,
            next_review=now + timedelta(days=interval),
            graduated=graduated,
            graduated_at=graduated_at,
        )

    def _apply_modifiers(self, interval: float, context: ReviewContext) -> float:
        """
        Scale a grown interval by the review circumstances.
        """
        m = self._config.modifiers
        modified = interval

        if context.time_of_day is TimeOfDay.MORNING:
            modified *= m.morning
        elif context.time_of_day is TimeOfDay.NIGHT:
            modified *= m.night

        # Consistency bonus
        if context.study_streak:
            if context.study_streak >= m.daily_streak_days:
                modified *= m.daily_streak
            elif context.study_streak >= m.frequent_streak_days:
                modified *= m.frequent_streak

        if context.previous_result is PreviousResult.CORRECT:
            modified *= m.after_correct
        elif context.previous_result is PreviousResult.WRONG:
            modified *= m.after_wrong

        # 0 means "no difficulty recorded", same as None
        if context.subject_difficulty:
            modified *= 1.5 - context.subject_difficulty * 0.1

        return modified

    def _fuzz(self) -> float:
        low, high = self._config.fuzz_range
        return self._rng.uniform(low, high)


def reset_leech(
    state: ItemState, config: SchedulerConfig = DEFAULT_SCHEDULER_CONFIG
) -> ItemState:
    """
    Manual reset of a leech, as performed by a curator.

    Clears lapses and the leech flag and restarts the schedule. The scheduler
    itself never clears the flag.
    """
    reset = replace(
        state,
        lapses=0,
        is_leech=False,
        leech_at=None,
        ease_factor=config.initial_ease_factor,
        interval=config.initial_interval,
    )
    return replace(reset, stats=ForgettingCurvePredictor(config).stats(reset))


def schedule_review(
    state: ItemState | None,
    quality: int,
    context: ReviewContext | None = None,
    *,
    config: SchedulerConfig = DEFAULT_SCHEDULER_CONFIG,
    rng: random.Random | None = None,
    clock: Clock = utcnow,
) -> ItemState:
    return CardScheduler(config, rng=rng, clock=clock).update(state, quality, context)
