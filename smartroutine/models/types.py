from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any, Mapping, Union

from smartroutine.errors import ValidationError


class ActivityType(str, Enum):
    STUDY = 'Study'
    WORKOUT = 'Workout'
    BREAK = 'Break'


class ActivityStatus(str, Enum):
    PENDING = 'pending'
    VALIDATED = 'validated'
    REJECTED = 'rejected'


class GoalType(str, Enum):
    DAILY_DURATION = 'daily_duration'
    WEEKLY_FREQUENCY = 'weekly_frequency'


class GoalStatus(str, Enum):
    ACTIVE = 'active'
    COMPLETED = 'completed'


class Role(str, Enum):
    USER = 'user'
    ADMIN = 'admin'


LEVELS = ('high', 'medium', 'low')
FOCUS_LEVELS = ('full', 'medium', 'low')


def enum_text(value: Any) -> str:
    '''Stored text of a column value, whether a raw string or one of the enums above.'''
    # str() of a str-enum member is its qualified name on 3.11+
    return value.value if isinstance(value, Enum) else str(value)


def parse_enum(enum_cls: type[Enum], value: Any, label: str):
    '''Coerce a raw value into ``enum_cls`` or raise ValidationError.'''
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ', '.join(str(m.value) for m in enum_cls)  # type: ignore[attr-defined]
        raise ValidationError(f'{label} must be one of: {allowed}.') from None


def _choice(value: Any, allowed: tuple[str, ...], label: str) -> str:
    v = str(value).strip().lower()
    if v not in allowed:
        raise ValidationError(f'{label} must be one of: {", ".join(allowed)}.')
    return v


@dataclass(frozen=True)
class StudyDetails:
    focus_level: str = 'full'
    priority: str = 'high'
    note: str | None = None

    def __post_init__(self):
        object.__setattr__(
            self, 'focus_level', _choice(self.focus_level, FOCUS_LEVELS, 'Focus level')
        )
        object.__setattr__(self, 'priority', _choice(self.priority, LEVELS, 'Priority'))
        if self.note is not None:
            note = str(self.note).strip()
            if len(note) > 500:
                raise ValidationError('Focus note must be at most 500 characters.')
            object.__setattr__(self, 'note', note or None)


@dataclass(frozen=True)
class WorkoutDetails:
    intensity: str = 'medium'

    def __post_init__(self):
        object.__setattr__(
            self, 'intensity', _choice(self.intensity, LEVELS, 'Intensity')
        )


@dataclass(frozen=True)
class BreakDetails:
    quality: int = 3

    def __post_init__(self):
        try:
            quality = int(self.quality)
        except (TypeError, ValueError):
            raise ValidationError('Break quality must be a number from 1 to 5.') from None
        if not 1 <= quality <= 5:
            raise ValidationError('Break quality must be a number from 1 to 5.')
        object.__setattr__(self, 'quality', quality)


ActivityDetails = Union[StudyDetails, WorkoutDetails, BreakDetails]

DETAILS_BY_TYPE: dict[ActivityType, type] = {
    ActivityType.STUDY: StudyDetails,
    ActivityType.WORKOUT: WorkoutDetails,
    ActivityType.BREAK: BreakDetails,
}


def parse_details(
    activity_type: ActivityType | str, raw: Mapping[str, Any] | None = None
) -> ActivityDetails:
    '''Build the detail payload for ``activity_type`` from a plain mapping.

    Keys that do not belong to the type's payload are rejected; missing keys
    take the payload defaults. None values are treated as missing.
    '''
    atype = parse_enum(ActivityType, activity_type, 'Activity type')
    cls = DETAILS_BY_TYPE[atype]
    values = {k: v for k, v in (raw or {}).items() if v is not None}
    allowed = {f.name for f in fields(cls)}
    unknown = sorted(set(values) - allowed)
    if unknown:
        raise ValidationError(
            f'{atype.value} details do not accept: {", ".join(unknown)}.'
        )
    return cls(**values)


def details_to_dict(details: ActivityDetails) -> dict[str, Any]:
    return {k: v for k, v in asdict(details).items() if v is not None}
