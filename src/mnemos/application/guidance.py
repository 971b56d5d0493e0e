"""
Adaptive guidance derived from an AbilityProfile.

Turns an ability estimate into the difficulty worth serving next, an
expected accuracy for a given item, and learner-facing feedback.
"""

import math
from dataclasses import dataclass, field
from enum import Enum

from mnemos.application.utils.numeric import clamp, round_half_up
from mnemos.domain.ability.config import DEFAULT_ABILITY_CONFIG, AbilityConfig
from mnemos.domain.ability.models import AbilityProfile, Zone
from mnemos.domain.scheduling.models import Trend

HINT_PENALTY = 0.9
BASE_ANSWER_SECONDS = 30


class FeedbackKind(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    MODERATE = "moderate"
    NEEDS_IMPROVEMENT = "needs_improvement"


@dataclass(frozen=True)
class AccuracyPrediction:
    accuracy: float
    confidence: float
    estimated_seconds: int | None  # None when ability is zero


@dataclass
class Feedback:
    kind: FeedbackKind
    message: str
    suggestions: list[str] = field(default_factory=list)


def target_difficulty(
    profile: AbilityProfile, config: AbilityConfig = DEFAULT_ABILITY_CONFIG
) -> float:
    """
    Difficulty (0-1) of the next new item: ability shifted by the zone adjustment.

    Comfort and frustration pull the target down; challenge nudges it up.
    """
    adjustment = config.zone_adjustments.get(profile.zone, 0.0)
    return clamp(profile.ability + adjustment, 0.0, 1.0)


def difficulty_band(
    profile: AbilityProfile, config: AbilityConfig = DEFAULT_ABILITY_CONFIG
) -> tuple[float, float]:
    """Catalog difficulty range worth considering for this learner."""
    return (
        max(0.0, profile.ability - config.difficulty_band),
        min(1.0, profile.ability + config.difficulty_band),
    )


def predict_accuracy(ability: float, difficulty: float) -> AccuracyPrediction:
    """
    Expected accuracy of a learner on an item, both on the 0-1 scale.
    """
    accuracy = 1 / (1 + math.exp(-(ability - difficulty)))
    seconds = round_half_up(BASE_ANSWER_SECONDS * difficulty / ability) if ability > 0 else None
    return AccuracyPrediction(accuracy=accuracy, confidence=0.8, estimated_seconds=seconds)


def score_response(correct: bool, hints_used: int = 0) -> float:
    """Graded accuracy of an answer, discounted 10% per hint."""
    if hints_used < 0:
        raise ValueError(f"hints_used must be >= 0, got {hints_used}")
    return (1.0 if correct else 0.0) * HINT_PENALTY**hints_used


def adaptive_feedback(score: float, profile: AbilityProfile) -> Feedback:
    if score >= 0.9:
        if profile.zone is Zone.COMFORT:
            return Feedback(
                FeedbackKind.EXCELLENT,
                "Perfect! Ready for a bigger challenge.",
                ["Try harder content"],
            )
        return Feedback(FeedbackKind.EXCELLENT, "Excellent! You are mastering this level.")
    if score >= 0.7:
        return Feedback(FeedbackKind.GOOD, "Good! Keep going.")
    if score >= 0.5:
        return Feedback(FeedbackKind.MODERATE, "Almost there!", ["Review the core concepts"])

    suggestions = []
    if profile.zone is Zone.FRUSTRATION:
        suggestions.append("Try simpler content first")
    return Feedback(
        FeedbackKind.NEEDS_IMPROVEMENT, "Don't worry, mistakes are how we learn.", suggestions
    )


def recommendations(profile: AbilityProfile) -> list[str]:
    recs = []
    if profile.zone is Zone.COMFORT:
        recs.append("Increase difficulty")
    if profile.zone is Zone.FRUSTRATION:
        recs.append("Review prerequisites")
    if profile.trend is Trend.DECLINING:
        recs.append("Take a break")
    return recs


@dataclass(frozen=True)
class Guidance:
    """What to serve a learner next, given their ability profile."""

    target_difficulty: float
    difficulty_band: tuple[float, float]
    recommendations: list[str] = field(default_factory=list)


def guidance_for(
    profile: AbilityProfile, config: AbilityConfig = DEFAULT_ABILITY_CONFIG
) -> Guidance:
    return Guidance(
        target_difficulty=target_difficulty(profile, config),
        difficulty_band=difficulty_band(profile, config),
        recommendations=recommendations(profile),
    )
