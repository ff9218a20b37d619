import logging

from smartroutine.database.db_manager import DBManager

logger = logging.getLogger(__name__)


def init_schema(db: DBManager):
    '''Create the database schema if it doesn't already exist.'''

    # --- USERS TABLE ---
    db.execute(
        '''
        CREATE TABLE IF NOT EXISTS users (
            id BIGINT PRIMARY KEY,
            username TEXT NOT NULL,
            email TEXT NOT NULL,
            role TEXT NOT NULL DEFAULT 'user'
                CHECK (role IN ('user', 'admin')),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        '''
    )

    # --- ACTIVITIES TABLE ---
    db.execute(
        '''
        CREATE TABLE IF NOT EXISTS activities (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            name TEXT NOT NULL,
            activity_type TEXT NOT NULL
                CHECK (activity_type IN ('Study', 'Workout', 'Break')),
            duration_minutes INTEGER NOT NULL CHECK (duration_minutes >= 0),
            details JSONB NOT NULL DEFAULT '{}'::jsonb,
            evidence_url TEXT DEFAULT NULL,
            status TEXT NOT NULL DEFAULT 'pending'
                CHECK (status IN ('pending', 'validated', 'rejected')),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        '''
    )

    # --- GOALS TABLE ---
    db.execute(
        '''
        CREATE TABLE IF NOT EXISTS goals (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            title TEXT NOT NULL,
            goal_type TEXT NOT NULL
                CHECK (goal_type IN ('daily_duration', 'weekly_frequency')),
            activity_category TEXT NOT NULL
                CONSTRAINT goals_activity_category_check
                CHECK (activity_category IN ('Study', 'Workout', 'Break')),
            target_value INTEGER NOT NULL CHECK (target_value > 0),
            status TEXT NOT NULL DEFAULT 'active'
                CHECK (status IN ('active', 'completed')),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        '''
    )

    # --- MIGRATIONS TABLE ---
    db.execute(
        '''
        CREATE TABLE IF NOT EXISTS migrations (
            id BIGSERIAL PRIMARY KEY,
            filename TEXT NOT NULL UNIQUE,
            applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        '''
    )

    # --- INDEXES ---
    db.execute(
        'CREATE INDEX IF NOT EXISTS idx_activities_user_created '
        'ON activities(user_id, created_at);'
    )
    db.execute(
        'CREATE INDEX IF NOT EXISTS idx_activities_status_created '
        'ON activities(status, created_at);'
    )
    db.execute('CREATE INDEX IF NOT EXISTS idx_goals_user_id ON goals(user_id);')
