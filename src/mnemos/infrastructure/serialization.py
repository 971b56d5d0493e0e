"""
Plain-dict output for the domain records.

Inbound records are validated by the schemas module; this is the other
direction, shared by the CLI, the server and the record files.
"""

from dataclasses import asdict
from datetime import datetime
from enum import Enum
from typing import Any

from mnemos.domain.ability.models import AbilityProfile
from mnemos.domain.scheduling.models import ItemState, SessionPlan


def to_plain(value: Any) -> Any:
    """Recursively turn datetimes and enums into JSON/YAML friendly values."""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    return value


def state_to_dict(state: ItemState) -> dict[str, Any]:
    data = asdict(state)
    if state.stats is None:
        data.pop("stats")
    data["status"] = state.status
    return to_plain(data)


def profile_to_dict(profile: AbilityProfile) -> dict[str, Any]:
    return to_plain(asdict(profile))


def plan_to_dict(plan: SessionPlan) -> dict[str, Any]:
    return {
        "selected": [
            {"id": p.item.item_id, "priority": p.priority, "minutes": p.minutes}
            for p in plan.selected
        ],
        "estimated_time": plan.estimated_time,
        "skipped_count": plan.skipped_count,
    }
