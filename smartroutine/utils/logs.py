import logging
import os
import sys

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


def resolve_level(level: int | str | None = None) -> int:
    '''Explicit level, else LOG_LEVEL, else INFO. Unknown names fall back to INFO.'''
    if isinstance(level, int):
        return level
    name = (level or os.getenv('LOG_LEVEL') or 'INFO').upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: int | str | None = None):
    '''Configure root logger for the entire codebase.'''
    resolved = resolve_level(level)
    logging.basicConfig(
        level=resolved,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],  # logs to console
    )
    # discord.py is chatty at INFO (gateway heartbeats, reconnects)
    logging.getLogger('discord').setLevel(max(resolved, logging.WARNING))
