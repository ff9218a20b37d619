import pytest
from psycopg.types.json import Json

from conftest import make_activity
from smartroutine.errors import NotFoundError, PermissionDenied, ValidationError
from smartroutine.models.activity import Activity
from smartroutine.models.types import StudyDetails


class FakeStorage:
    def __init__(self):
        self.deleted: list[str] = []

    def delete(self, url):
        self.deleted.append(url)
        return True


def test_insert_creates_pending_row(models_db):
    models_db.fetchall_results = [[make_activity(id=5, status='pending')]]
    row = Activity.insert(1001, 'Read', 'Study', 25, StudyDetails(note='ch. 3'))

    assert row['id'] == 5
    query, params = models_db.queries[-1]
    assert query.startswith('INSERT INTO activities')
    assert 'RETURNING *' in query
    assert 'pending' in params
    details = next(p for p in params if isinstance(p, Json))
    assert details.obj == {'focus_level': 'full', 'priority': 'high', 'note': 'ch. 3'}


def test_insert_rejects_negative_duration(models_db):
    with pytest.raises(ValidationError):
        Activity.insert(1001, 'Read', 'Study', -1, StudyDetails())
    assert models_db.queries == []


def test_recent_for_user_orders_newest_first(models_db):
    Activity.recent_for_user(1001, 50)
    query, params = models_db.queries[-1]
    assert 'ORDER BY created_at DESC' in query
    assert params == (1001, 50)


def test_for_user_filters(models_db):
    Activity.for_user(1001, status='validated')
    query, params = models_db.queries[-1]
    assert 'status = %s' in query
    assert params == (1001, 'validated')


def test_pending_oldest_first(models_db):
    Activity.pending()
    query, params = models_db.queries[-1]
    assert 'ORDER BY created_at ASC' in query
    assert params == ('pending', 25)


def test_set_status_requires_admin(models_db, member):
    with pytest.raises(PermissionDenied):
        Activity.set_status(1, 'validated', member)
    assert models_db.queries == []


def test_set_status_validates_pending(models_db, reviewer):
    models_db.fetchall_results = [[make_activity(status='validated')]]
    row = Activity.set_status(1, 'validated', reviewer)
    assert row['status'] == 'validated'
    query, params = models_db.queries[-1]
    assert query.startswith('UPDATE activities SET status = %s')
    assert params == ('validated', 1, 'pending')


def test_set_status_cannot_return_to_pending(models_db, reviewer):
    with pytest.raises(ValidationError):
        Activity.set_status(1, 'pending', reviewer)


def test_set_status_on_reviewed_activity(models_db, reviewer):
    models_db.fetchone_results = [make_activity(status='rejected')]
    with pytest.raises(ValidationError, match='already rejected'):
        Activity.set_status(1, 'validated', reviewer)


def test_set_status_missing_activity(models_db, reviewer):
    with pytest.raises(NotFoundError):
        Activity.set_status(404, 'rejected', reviewer)


def test_delete_for_owner_releases_evidence(models_db, member):
    storage = FakeStorage()
    models_db.fetchone_results = [make_activity(evidence_url='https://files.test/a.png')]
    Activity.delete_for_owner(1, member, storage)

    query, params = models_db.queries[0]
    assert query.startswith('DELETE FROM activities')
    assert params == (1, member.user_id)
    assert storage.deleted == ['https://files.test/a.png']


def test_delete_for_owner_without_evidence(models_db, member):
    storage = FakeStorage()
    models_db.fetchone_results = [make_activity()]
    Activity.delete_for_owner(1, member, storage)
    assert storage.deleted == []


def test_delete_someone_elses_activity(models_db, member):
    models_db.fetchone_results = [None, {'?column?': 1}]
    with pytest.raises(PermissionDenied):
        Activity.delete_for_owner(1, member)


def test_delete_missing_activity(models_db, member):
    with pytest.raises(NotFoundError):
        Activity.delete_for_owner(1, member)
