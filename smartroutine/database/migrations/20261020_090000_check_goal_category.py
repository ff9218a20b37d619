import argparse

from smartroutine.database.db_manager import DBManager

CONSTRAINT = 'goals_activity_category_check'


def up(db_manager: DBManager):
    # Goals may only track the three activity types
    db_manager.execute(f'ALTER TABLE goals DROP CONSTRAINT IF EXISTS {CONSTRAINT}')
    db_manager.execute(
        f'ALTER TABLE goals ADD CONSTRAINT {CONSTRAINT} '
        "CHECK (activity_category IN ('Study', 'Workout', 'Break'))"
    )


def down(db_manager: DBManager):
    db_manager.execute(f'ALTER TABLE goals DROP CONSTRAINT IF EXISTS {CONSTRAINT}')
    db_manager.execute(
        'DELETE FROM migrations WHERE filename = %s',
        ('20261020_090000_check_goal_category.py',),
    )


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument('command', choices=['up', 'down'])
    args = parser.parse_args()

    with DBManager() as _db:
        if args.command == 'up':
            up(_db)
        else:
            down(_db)


if __name__ == '__main__':
    main()
