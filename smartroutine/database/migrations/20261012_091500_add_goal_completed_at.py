import argparse

from smartroutine.database.db_manager import DBManager


def up(db_manager: DBManager):
    # Stamp when a goal was marked complete
    db_manager.execute(
        'ALTER TABLE goals ADD COLUMN IF NOT EXISTS completed_at TIMESTAMPTZ'
    )


def down(db_manager: DBManager):
    db_manager.execute('ALTER TABLE goals DROP COLUMN IF EXISTS completed_at')
    db_manager.execute(
        'DELETE FROM migrations WHERE filename = %s',
        ('20261012_091500_add_goal_completed_at.py',),
    )


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument('command', choices=['up', 'down'])
    args = parser.parse_args()

    if args.command == 'up':
        with DBManager() as _db:
            up(_db)
    elif args.command == 'down':
        with DBManager() as _db:
            down(_db)


if __name__ == '__main__':
    main()
