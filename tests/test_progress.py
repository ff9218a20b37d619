from datetime import timedelta

import pytest

from conftest import NOW, make_activity
from smartroutine.models.types import ActivityStatus, ActivityType, GoalType
from smartroutine.services.progress import NO_PROGRESS, evaluate, evaluate_all


def _goal(**overrides):
    goal = {
        'id': 1,
        'goal_type': 'daily_duration',
        'activity_category': 'Study',
        'target_value': 60,
        'status': 'active',
    }
    goal.update(overrides)
    return goal


def test_daily_duration_counts_only_validated_minutes_today():
    activities = [
        make_activity(duration_minutes=40),
        make_activity(id=2, duration_minutes=100, status='pending'),
    ]
    result = evaluate(_goal(), activities, now=NOW)
    assert result.raw_value == 40
    assert result.progress == pytest.approx(66.67, abs=0.01)


def test_weekly_frequency_clamps_at_100():
    goal = _goal(goal_type='weekly_frequency', activity_category='Workout', target_value=3)
    activities = [
        make_activity(id=i, activity_type='Workout', created_at=NOW - timedelta(days=i))
        for i in range(4)
    ]
    activities.append(
        make_activity(id=10, activity_type='Workout', created_at=NOW - timedelta(days=10))
    )
    result = evaluate(goal, activities, now=NOW)
    assert result.raw_value == 4
    assert result.progress == 100.0


def test_other_categories_and_rejected_do_not_count():
    activities = [
        make_activity(activity_type='Workout', duration_minutes=50),
        make_activity(id=2, status='rejected', duration_minutes=50),
        make_activity(id=3, duration_minutes=15),
    ]
    assert evaluate(_goal(), activities, now=NOW).raw_value == 15


def test_daily_excludes_yesterday():
    activities = [make_activity(created_at=NOW - timedelta(days=1))]
    assert evaluate(_goal(), activities, now=NOW) == NO_PROGRESS


def test_daily_uses_local_calendar_day():
    # 02:00 UTC on the 15th is still the 14th in New York
    late = NOW.replace(hour=23) + timedelta(hours=3)
    activities = [make_activity(created_at=NOW)]
    assert evaluate(_goal(), activities, now=late, tz='America/New_York').raw_value == 30
    assert evaluate(_goal(), activities, now=late, tz='UTC').raw_value == 0


def test_empty_activities_give_zero():
    assert evaluate(_goal(), [], now=NOW) == NO_PROGRESS


def test_unknown_goal_type_gives_zero():
    assert evaluate(_goal(goal_type='monthly'), [make_activity()], now=NOW) == NO_PROGRESS


def test_zero_target_raises():
    with pytest.raises(ZeroDivisionError):
        evaluate(_goal(target_value=0), [make_activity()], now=NOW)


def test_evaluate_is_repeatable():
    activities = [make_activity(duration_minutes=20)]
    assert evaluate(_goal(), activities, now=NOW) == evaluate(_goal(), activities, now=NOW)


def test_evaluate_all_keys_by_goal_id():
    goals = [_goal(id=1), _goal(id=2, target_value=30)]
    result = evaluate_all(goals, iter([make_activity(duration_minutes=30)]), now=NOW)
    assert result[1].progress == pytest.approx(50.0)
    assert result[2].progress == 100.0


def test_evaluate_all_with_no_goals():
    assert evaluate_all([], [make_activity()], now=NOW) == {}


def test_enum_members_match_like_stored_text():
    goal = _goal(goal_type=GoalType.DAILY_DURATION, activity_category=ActivityType.STUDY)
    activities = [
        make_activity(
            activity_type=ActivityType.STUDY,
            status=ActivityStatus.VALIDATED,
            duration_minutes=40,
        ),
        make_activity(id=2, activity_type=ActivityType.STUDY, status=ActivityStatus.PENDING),
    ]
    assert evaluate(goal, activities, now=NOW).raw_value == 40


def test_weekly_window_includes_exactly_seven_days_ago():
    goal = _goal(goal_type='weekly_frequency', target_value=5)
    activities = [
        make_activity(id=1, created_at=NOW - timedelta(days=7)),
        make_activity(id=2, created_at=NOW - timedelta(days=7, seconds=1)),
    ]
    assert evaluate(goal, activities, now=NOW).raw_value == 1


def test_reaching_target_exactly_is_100():
    activities = [make_activity(duration_minutes=60)]
    result = evaluate(_goal(target_value=60), activities, now=NOW)
    assert result.raw_value == 60
    assert result.progress == 100.0
