import contextlib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterator

import pytest

from smartroutine.models.types import ActivityStatus, Role
from smartroutine.services.session import SessionContext


@dataclass
class FakeDB:
    fetchone_results: list[Any] = field(default_factory=list)
    fetchall_results: list[Any] = field(default_factory=list)
    executed: list[tuple[str, tuple[Any, ...]]] = field(default_factory=list)
    queries: list[tuple[str, tuple[Any, ...]]] = field(default_factory=list)
    last_query: str | None = None
    last_params: tuple[Any, ...] | None = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def _record(self, query: str, params) -> None:
        self.last_query = query
        self.last_params = tuple(params or ())
        self.queries.append((query, self.last_params))

    def fetchone(self, query: str, params=None):
        self._record(query, params)
        if self.fetchone_results:
            return self.fetchone_results.pop(0)

    def fetchall(self, query: str, params=None):
        self._record(query, params)
        if self.fetchall_results:
            return self.fetchall_results.pop(0)
        return []

    def execute(self, query: str, params=None) -> None:
        self.executed.append((query, tuple(params or ())))


class FakeDBManager:
    def __init__(self, db: FakeDB):
        self._db = db

    def __call__(self):
        return self._db


@contextlib.contextmanager
def patched_dbmanager(monkeypatch, target_module, db: FakeDB) -> Iterator[FakeDB]:
    monkeypatch.setattr(target_module, 'DBManager', FakeDBManager(db))
    yield db


@pytest.fixture()
def fake_db() -> FakeDB:
    return FakeDB()


@pytest.fixture()
def models_db(monkeypatch, fake_db) -> FakeDB:
    '''Route every model's DBManager to one FakeDB.'''
    from smartroutine.models import activity, base, goal, user

    for module in (base, activity, goal, user):
        monkeypatch.setattr(module, 'DBManager', FakeDBManager(fake_db))
    return fake_db


@pytest.fixture()
def member() -> SessionContext:
    return SessionContext(user_id=1001, username='ana')


@pytest.fixture()
def reviewer() -> SessionContext:
    return SessionContext(user_id=9, username='rev', role=Role.ADMIN)


NOW = datetime(2026, 10, 14, 15, 0, tzinfo=timezone.utc)


def make_activity(**overrides) -> dict[str, Any]:
    row = {
        'id': 1,
        'user_id': 1001,
        'name': 'Read',
        'activity_type': 'Study',
        'duration_minutes': 30,
        'details': {'focus_level': 'full', 'priority': 'high'},
        'evidence_url': None,
        'status': ActivityStatus.VALIDATED.value,
        'created_at': NOW,
    }
    row.update(overrides)
    return row
