from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional

import pendulum

from smartroutine.models.types import ActivityStatus, ActivityType, enum_text


@dataclass(frozen=True)
class DayTotal:
    name: str  # short weekday, e.g. 'Mon'
    total: int


@dataclass(frozen=True)
class WeeklyStatistics:
    daily: list[DayTotal]
    by_type: dict[str, int] = field(default_factory=dict)
    total_minutes: int = 0
    best_day: DayTotal = DayTotal('N/A', 0)
    most_frequent_type: str = 'N/A'

    @property
    def is_empty(self) -> bool:
        return self.total_minutes == 0 and not self.by_type


def week_start(now: Optional[datetime] = None, tz: str = 'UTC') -> pendulum.DateTime:
    '''Local midnight six days ago: the first day of the trailing week.'''
    current = pendulum.instance(now).in_timezone(tz) if now else pendulum.now(tz)
    return current.start_of('day').subtract(days=6)


def weekly_statistics(
    activities: Iterable[Mapping[str, Any]],
    now: Optional[datetime] = None,
    tz: str = 'UTC',
) -> WeeklyStatistics:
    '''Minutes per day and per type over the trailing seven local days.

    Only validated activities count, matching goal progress.
    '''
    start = week_start(now, tz)
    days = [start.add(days=i) for i in range(7)]
    per_day = {d.date(): 0 for d in days}
    by_type = {t.value: 0 for t in ActivityType}
    total = 0

    for a in activities:
        if enum_text(a['status']) != ActivityStatus.VALIDATED.value:
            continue
        local_day = pendulum.instance(a['created_at']).in_timezone(tz).date()
        if local_day not in per_day:
            continue
        minutes = int(a['duration_minutes'])
        per_day[local_day] += minutes
        atype = enum_text(a['activity_type'])
        if atype in by_type:
            by_type[atype] += minutes
        total += minutes

    daily = [DayTotal(d.format('ddd'), per_day[d.date()]) for d in days]
    used_types = {k: v for k, v in by_type.items() if v > 0}
    best = max(daily, key=lambda d: d.total) if total else DayTotal('N/A', 0)
    top_type = max(used_types, key=lambda k: used_types[k]) if used_types else 'N/A'
    return WeeklyStatistics(
        daily=daily,
        by_type=used_types,
        total_minutes=total,
        best_day=best,
        most_frequent_type=top_type,
    )
