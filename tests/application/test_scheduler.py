import random
from datetime import timedelta

import pytest

from mnemos.application.forgetting_curve import compute_stats
from mnemos.application.scheduler import (
    CardScheduler,
    reset_leech,
    schedule_review,
    validate_quality,
)
from mnemos.domain.errors import InvalidQualityError
from mnemos.domain.scheduling.config import SchedulerConfig
from mnemos.domain.scheduling.models import (
    ItemState,
    ItemStatus,
    PreviousResult,
    ReviewContext,
    TimeOfDay,
)


@pytest.fixture
def scheduler(no_fuzz_config, clock):
    return CardScheduler(no_fuzz_config, rng=random.Random(0), clock=clock)


# --- Reference reviews ---


def test_first_review_perfect(scheduler):
    state = scheduler.update(None, 5)
    assert state.repetitions == 1
    assert state.interval == pytest.approx(1.3)
    assert state.ease_factor == pytest.approx(2.6)


def test_second_review_good(scheduler):
    state = ItemState(repetitions=1, interval=1.3, ease_factor=2.6)
    updated = scheduler.update(state, 4)
    assert updated.repetitions == 2
    assert updated.interval == pytest.approx(6)


def test_third_review_grows_by_ease(scheduler):
    state = ItemState(repetitions=2, interval=6, ease_factor=2.6)
    updated = scheduler.update(state, 4)
    assert updated.repetitions == 3
    assert updated.interval == 16


def test_lapse_turns_item_into_leech(scheduler, now):
    state = ItemState(lapses=7, repetitions=4, interval=20)
    updated = scheduler.update(state, 1)
    assert updated.lapses == 8
    assert updated.is_leech is True
    assert updated.leech_at == now
    assert updated.interval == 1
    assert updated.repetitions == 0
    assert updated.status is ItemStatus.LEECH


# --- Success path ---


def test_first_review_hard_is_clamped_to_one_day(scheduler):
    # 1 day x 0.8 falls below the minimum interval
    assert scheduler.update(None, 3).interval == 1


def test_success_sets_next_review(scheduler, now):
    updated = scheduler.update(ItemState(repetitions=2, interval=6, ease_factor=2.6), 4)
    assert updated.last_review == now
    assert updated.next_review == now + timedelta(days=16)
    assert updated.reviews == 1
    assert updated.streak == 1
    assert updated.last_quality == 4


def test_ease_factor_upper_bound(scheduler):
    assert scheduler.update(ItemState(ease_factor=4.0), 5).ease_factor == 4.0


def test_ease_factor_lower_bound(scheduler):
    assert scheduler.update(ItemState(ease_factor=1.3), 3).ease_factor == 1.3
    assert scheduler.update(ItemState(ease_factor=1.3), 0).ease_factor == 1.3


def test_interval_upper_bound(scheduler):
    state = ItemState(repetitions=5, interval=300, ease_factor=2.5)
    assert scheduler.update(state, 5).interval == 365


def test_graduation_is_recorded_once(scheduler, now):
    state = ItemState(repetitions=2, interval=6, ease_factor=2.6)
    graduated = scheduler.update(state, 5)
    assert graduated.interval == 21
    assert graduated.graduated is True
    assert graduated.graduated_at == now
    assert graduated.status is ItemStatus.GRADUATED

    later = CardScheduler(
        SchedulerConfig(fuzz_range=(1.0, 1.0)), clock=lambda: now + timedelta(days=21)
    ).update(graduated, 5)
    assert later.graduated_at == now


def test_graduated_flag_survives_a_lapse(scheduler):
    state = ItemState(repetitions=4, interval=30, graduated=True)
    lapsed = scheduler.update(state, 0)
    assert lapsed.graduated is True
    assert lapsed.status is ItemStatus.LEARNING


# --- Lapse path ---


def test_lapse_penalises_ease(scheduler):
    assert scheduler.update(None, 1).ease_factor == pytest.approx(2.26)
    assert scheduler.update(None, 0).ease_factor == pytest.approx(2.22)
    assert scheduler.update(None, 2).ease_factor == pytest.approx(2.3)


def test_lapse_leaves_next_review_untouched(scheduler, now):
    earlier = now - timedelta(days=3)
    state = ItemState(repetitions=3, interval=10, streak=3, next_review=earlier)
    lapsed = scheduler.update(state, 2)
    assert lapsed.next_review == earlier
    assert lapsed.last_review == now
    assert lapsed.streak == 0
    assert lapsed.due_at == now + timedelta(days=1)


def test_leech_timestamp_is_sticky(scheduler, now):
    first = now - timedelta(days=10)
    state = ItemState(lapses=8, is_leech=True, leech_at=first)
    assert scheduler.update(state, 0).leech_at == first


def test_leech_survives_successful_reviews(scheduler, now):
    state = ItemState(lapses=8, is_leech=True, leech_at=now)
    for quality in (5, 4, 3, 5):
        state = scheduler.update(state, quality)
        assert state.is_leech is True
        assert state.leech_at == now
        assert state.status is ItemStatus.LEECH
    assert state.lapses == 8


def test_leech_flag_set_exactly_at_threshold(scheduler):
    six = ItemState(lapses=6, repetitions=3, interval=10)
    seven = scheduler.update(six, 0)
    assert seven.lapses == 7
    assert seven.is_leech is False
    assert seven.leech_at is None

    eight = scheduler.update(seven, 0)
    assert eight.lapses == 8
    assert eight.is_leech is True


# --- Context modifiers ---


@pytest.mark.parametrize(
    "context,expected",
    [
        (ReviewContext(), 24),
        (ReviewContext(time_of_day=TimeOfDay.MORNING), 26),
        (ReviewContext(time_of_day=TimeOfDay.AFTERNOON), 24),
        (ReviewContext(time_of_day=TimeOfDay.EVENING), 24),
        (ReviewContext(time_of_day=TimeOfDay.NIGHT), 22),
        (ReviewContext(study_streak=7), 29),
        (ReviewContext(study_streak=3), 26),
        (ReviewContext(study_streak=2), 24),
        (ReviewContext(study_streak=0), 24),
        (ReviewContext(previous_result=PreviousResult.CORRECT), 25),
        (ReviewContext(previous_result=PreviousResult.WRONG), 23),
        (ReviewContext(subject_difficulty=10), 12),
        (ReviewContext(subject_difficulty=5), 24),
        (ReviewContext(subject_difficulty=0), 24),
    ],
)
def test_context_modifiers(scheduler, context, expected):
    state = ItemState(repetitions=2, interval=10, ease_factor=2.4)
    assert scheduler.update(state, 4, context).interval == expected


def test_modifiers_do_not_touch_early_intervals(scheduler):
    ctx = ReviewContext(time_of_day=TimeOfDay.MORNING, study_streak=10)
    assert scheduler.update(None, 4, ctx).interval == 1


# --- Fuzz ---


def test_fuzz_stays_within_range(clock):
    scheduler = CardScheduler(rng=random.Random(3), clock=clock)
    state = ItemState(repetitions=2, interval=10, ease_factor=2.4)
    intervals = {scheduler.update(state, 4).interval for _ in range(50)}
    assert intervals <= {23, 24, 25}


def test_seeded_fuzz_is_replayable(clock):
    state = ItemState(repetitions=2, interval=10, ease_factor=2.4)
    first = [CardScheduler(rng=random.Random(7), clock=clock).update(state, 5) for _ in range(3)]
    assert len({s.interval for s in first}) == 1


# --- Validation ---


@pytest.mark.parametrize("quality", [-1, 6, 2.5, True, "3", None])
def test_invalid_quality_rejected(scheduler, quality):
    with pytest.raises(InvalidQualityError) as exc:
        scheduler.update(None, quality)
    assert exc.value.quality == quality


def test_validate_quality_accepts_grades():
    assert [validate_quality(q) for q in range(6)] == [0, 1, 2, 3, 4, 5]


# --- Bounds over long histories ---


def test_bounds_hold_over_random_history(clock):
    rng = random.Random(1234)
    scheduler = CardScheduler(rng=rng, clock=clock)
    state = None
    for _ in range(300):
        state = scheduler.update(state, rng.randint(0, 5))
        assert 1.3 <= state.ease_factor <= 4.0
        assert 1 <= state.interval <= 365
        assert state.stats is not None


def test_stats_are_recomputed(scheduler):
    updated = scheduler.update(ItemState(repetitions=2, interval=6, ease_factor=2.6), 4)
    assert updated.stats == compute_stats(updated)


def test_new_state_uses_config():
    config = SchedulerConfig(initial_ease_factor=2.0, initial_interval=2)
    state = CardScheduler(config).new_state()
    assert state.ease_factor == 2.0
    assert state.interval == 2


def test_schedule_review_function(no_fuzz_config, clock):
    state = schedule_review(None, 5, config=no_fuzz_config, clock=clock)
    assert state.interval == pytest.approx(1.3)


# --- Leech reset ---


def test_reset_leech(now):
    leech = ItemState(lapses=9, is_leech=True, leech_at=now, ease_factor=1.3, interval=1)
    reset = reset_leech(leech)
    assert reset.lapses == 0
    assert reset.is_leech is False
    assert reset.leech_at is None
    assert reset.ease_factor == 2.5
    assert reset.status is not ItemStatus.LEECH
    assert reset.stats is not None
