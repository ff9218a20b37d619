import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

PROJECT_MARKERS = ('pyproject.toml', '.git')
ENV_FILES = {
    'local': '.env.local',
    'test': '.env.test',
    'prod': '.env.prod',
    'production': '.env.prod',
}


def _find_project_root(start: Optional[Path] = None) -> Path:
    here = start or Path(__file__).resolve().parent
    for candidate in (here, *here.parents):
        if any((candidate / m).exists() for m in PROJECT_MARKERS):
            return candidate
    return here


def _resolve_env_filename() -> str:
    '''ENV_FILE wins; otherwise ENV (or SMARTROUTINE_ENV) picks a known file.'''
    explicit = os.getenv('ENV_FILE')
    if explicit:
        return explicit
    env = (os.getenv('ENV') or os.getenv('SMARTROUTINE_ENV') or 'local').lower()
    return ENV_FILES.get(env, '.env.local')


def load_env(override: bool = False) -> Path:
    '''Load the env file for the current environment, falling back to .env.

    Returns the path that was looked up first, whether or not it existed.
    '''
    root = _find_project_root()
    selected = Path(_resolve_env_filename())
    if not selected.is_absolute():
        selected = root / selected

    for path in (selected, root / '.env'):
        if path.exists():
            load_dotenv(dotenv_path=path, override=override)
            logger.debug(f'Loaded environment from {path}')
            break
    return selected
