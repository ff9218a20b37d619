import asyncio

from smartroutine.bot import main as run
from smartroutine.database import start_db
from smartroutine.database.db_manager import DBManager
from smartroutine.utils.env import load_env
from smartroutine.utils.logs import setup_logging


def prepare_database() -> None:
    '''Create the schema and apply pending migrations before the bot connects.'''
    with DBManager() as db:
        start_db.run(db)


if __name__ == '__main__':
    load_env()
    setup_logging()
    prepare_database()
    asyncio.run(run())
