# Domain Scheduling Package
from .config import (
    DEFAULT_SCHEDULER_CONFIG,
    DEFAULT_SESSION_CONFIG,
    ContextModifiers,
    SchedulerConfig,
    SessionConfig,
)
from .models import (
    ForecastPoint,
    ItemState,
    ItemStats,
    ItemStatus,
    PreviousResult,
    PrioritizedItem,
    ReviewContext,
    SessionItem,
    SessionPlan,
    TimeOfDay,
    Trend,
    item_status,
)

__all__ = [
    "ContextModifiers",
    "SchedulerConfig",
    "SessionConfig",
    "DEFAULT_SCHEDULER_CONFIG",
    "DEFAULT_SESSION_CONFIG",
    "ForecastPoint",
    "ItemState",
    "ItemStats",
    "ItemStatus",
    "PreviousResult",
    "PrioritizedItem",
    "ReviewContext",
    "SessionItem",
    "SessionPlan",
    "TimeOfDay",
    "Trend",
    "item_status",
]
