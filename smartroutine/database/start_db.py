import importlib.util
import logging
import os
from types import ModuleType

from smartroutine.database.db_manager import DBManager
from smartroutine.database.init_schema import init_schema

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'migrations')


def pending_migrations(applied: set[str], migrations_dir: str = MIGRATIONS_DIR):
    '''Migration filenames not yet applied, in timestamp order.'''
    if not os.path.exists(migrations_dir):
        return []
    return sorted(
        f
        for f in os.listdir(migrations_dir)
        if f.endswith('.py') and not f.startswith('__') and f not in applied
    )


def load_migration(path: str) -> ModuleType:
    stem = os.path.splitext(os.path.basename(path))[0]
    loader_spec = importlib.util.spec_from_file_location(f'migration_{stem}', path)
    if loader_spec is None or loader_spec.loader is None:
        raise ImportError(f'Could not load migration module: {path}')
    module = importlib.util.module_from_spec(loader_spec)
    loader_spec.loader.exec_module(module)
    return module


def apply_migration(db: DBManager, filename: str, migrations_dir: str = MIGRATIONS_DIR) -> bool:
    '''Run one migration's up() and record it. Returns False when it has no up().'''
    migration = load_migration(os.path.join(migrations_dir, filename))
    up = getattr(migration, 'up', None)
    if up is None:
        logger.error(f'⚠️ Skipping {filename}: no `up()` function found.')
        return False
    logger.info(f'Running migration: {filename}')
    up(db)
    db.execute('INSERT INTO migrations (filename) VALUES (%s)', (filename,))
    return True


def run(db: DBManager, migrations_dir: str = MIGRATIONS_DIR):
    '''Create the schema if needed, then apply pending migrations in order.'''
    init_schema(db)
    tables = db.fetchall(
        "SELECT table_name FROM information_schema.tables "
        "WHERE table_schema = 'public' ORDER BY table_name"
    )
    logger.info(f'Schema ready, tables: {[t["table_name"] for t in tables]}')

    applied = {row['filename'] for row in db.fetchall('SELECT filename FROM migrations')}
    pending = pending_migrations(applied, migrations_dir)
    for filename in pending:
        try:
            apply_migration(db, filename, migrations_dir)
        except Exception:
            logger.error(f'❌ Error running migration {filename}', exc_info=True)
            raise

    logger.info(f'Migrations complete ({len(pending)} pending at start).')


if __name__ == '__main__':
    from smartroutine.utils.env import load_env
    from smartroutine.utils.logs import setup_logging

    load_env()
    setup_logging()
    with DBManager() as _db:
        run(_db)
