import pytest

from smartroutine.errors import NotFoundError, PermissionDenied, ValidationError
from smartroutine.models.goal import Goal


def _goal(**overrides):
    goal = {
        'id': 3,
        'user_id': 1001,
        'title': 'Study daily',
        'goal_type': 'daily_duration',
        'activity_category': 'Study',
        'target_value': 60,
        'status': 'active',
    }
    goal.update(overrides)
    return goal


def test_create_goal(models_db, member):
    models_db.fetchall_results = [[_goal()]]
    row = Goal.create_goal(member, ' Study daily ', 'daily_duration', 'Study', 60)
    assert row['id'] == 3
    _, params = models_db.queries[-1]
    assert params == (1001, 'Study daily', 'daily_duration', 'Study', 60, 'active')


@pytest.mark.parametrize(
    'title,goal_type,category,target',
    [
        ('', 'daily_duration', 'Study', 60),
        ('Goal', 'monthly', 'Study', 60),
        ('Goal', 'daily_duration', 'Studdy', 60),
        ('Goal', 'daily_duration', 'Study', 0),
        ('Goal', 'daily_duration', 'Study', -5),
        ('Goal', 'daily_duration', 'Study', 2.5),
        ('Goal', 'daily_duration', 'Study', True),
    ],
)
def test_create_goal_validation(models_db, member, title, goal_type, category, target):
    with pytest.raises(ValidationError):
        Goal.create_goal(member, title, goal_type, category, target)
    assert models_db.queries == []


def test_mark_completed(models_db, member):
    models_db.fetchone_results = [_goal()]
    models_db.fetchall_results = [[_goal(status='completed')]]
    row = Goal.mark_completed(3, member)
    assert row['status'] == 'completed'
    query, params = models_db.queries[-1]
    assert 'completed_at = %s' in query
    assert params[0] == 'completed'
    assert params[-2:] == (3, 'active')


def test_mark_completed_twice(models_db, member):
    models_db.fetchone_results = [_goal(status='completed')]
    with pytest.raises(ValidationError):
        Goal.mark_completed(3, member)


def test_goal_changes_are_owner_only(models_db, member):
    models_db.fetchone_results = [_goal(user_id=42), _goal(user_id=42)]
    with pytest.raises(PermissionDenied):
        Goal.mark_completed(3, member)
    with pytest.raises(PermissionDenied):
        Goal.delete_for_owner(3, member)
    assert models_db.executed == []


def test_delete_goal(models_db, member):
    models_db.fetchone_results = [_goal()]
    Goal.delete_for_owner(3, member)
    assert models_db.executed == [
        ('DELETE FROM goals WHERE id = %s AND user_id = %s', (3, 1001))
    ]


def test_delete_missing_goal(models_db, member):
    with pytest.raises(NotFoundError):
        Goal.delete_for_owner(3, member)
