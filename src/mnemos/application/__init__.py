# Application Package
from .ability_estimator import AbilityEstimator, estimate_ability
from .forgetting_curve import ForgettingCurvePredictor, compute_stats, predict_performance
from .scheduler import CardScheduler, reset_leech, schedule_review
from .service import LearningService
from .session_composer import SessionComposer, compose_session

__all__ = [
    "AbilityEstimator",
    "CardScheduler",
    "ForgettingCurvePredictor",
    "LearningService",
    "SessionComposer",
    "compose_session",
    "compute_stats",
    "estimate_ability",
    "predict_performance",
    "reset_leech",
    "schedule_review",
]
