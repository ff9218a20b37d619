'''Goal progress, derived from validated activities only.

Pure functions: nothing here reads or writes storage, so progress can be
recomputed whenever either collection changes.
'''
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Iterable, Mapping, Optional

import pendulum

from smartroutine.models.types import ActivityStatus, GoalType, enum_text

WEEK = timedelta(days=7)


@dataclass(frozen=True)
class GoalProgress:
    progress: float  # 0..100
    raw_value: int  # minutes for daily_duration, sessions for weekly_frequency


NO_PROGRESS = GoalProgress(progress=0.0, raw_value=0)


def _local(dt: datetime, tz: str) -> pendulum.DateTime:
    # naive timestamps are taken as UTC
    return pendulum.instance(dt).in_timezone(tz)


def counted_activities(
    goal: Mapping[str, Any], activities: Iterable[Mapping[str, Any]]
) -> list[Mapping[str, Any]]:
    '''Validated activities whose type matches the goal's category.'''
    category = enum_text(goal['activity_category'])
    return [
        a
        for a in activities
        if enum_text(a['activity_type']) == category
        and enum_text(a['status']) == ActivityStatus.VALIDATED.value
    ]


def evaluate(
    goal: Mapping[str, Any],
    activities: Iterable[Mapping[str, Any]],
    now: Optional[datetime] = None,
    tz: str = 'UTC',
) -> GoalProgress:
    try:
        goal_type = GoalType(enum_text(goal['goal_type']))
    except ValueError:
        return NO_PROGRESS

    current = _local(now, tz) if now is not None else pendulum.now(tz)
    relevant = counted_activities(goal, activities)

    if goal_type is GoalType.DAILY_DURATION:
        today = current.date()
        raw = sum(
            int(a['duration_minutes'])
            for a in relevant
            if _local(a['created_at'], tz).date() == today
        )
    else:
        window_start = current - WEEK
        raw = sum(1 for a in relevant if _local(a['created_at'], tz) >= window_start)

    # target_value > 0 is enforced at goal creation; 0 raises ZeroDivisionError
    progress = min(raw / goal['target_value'] * 100, 100.0)
    return GoalProgress(progress=float(progress), raw_value=raw)


def evaluate_all(
    goals: Iterable[Mapping[str, Any]],
    activities: Iterable[Mapping[str, Any]],
    now: Optional[datetime] = None,
    tz: str = 'UTC',
) -> dict[Any, GoalProgress]:
    '''Progress per goal id. Tolerates either collection being empty.'''
    acts = list(activities)
    return {g['id']: evaluate(g, acts, now=now, tz=tz) for g in goals}
