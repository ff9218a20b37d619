import logging

import pytest

from smartroutine.utils.logs import resolve_level


@pytest.mark.parametrize(
    'level,env,expected',
    [
        (logging.DEBUG, 'ERROR', logging.DEBUG),
        ('warning', None, logging.WARNING),
        (None, 'debug', logging.DEBUG),
        (None, None, logging.INFO),
        (None, 'chatty', logging.INFO),
    ],
)
def test_resolve_level(monkeypatch, level, env, expected):
    if env is None:
        monkeypatch.delenv('LOG_LEVEL', raising=False)
    else:
        monkeypatch.setenv('LOG_LEVEL', env)
    assert resolve_level(level) == expected
