from typing import Any, Iterable, Optional, cast

from smartroutine.database.db_manager import DBManager
from smartroutine.errors import NotFoundError, ValidationError
from smartroutine.models.base import BaseModel
from smartroutine.models.types import Role, parse_enum


class User(BaseModel):
    table = 'users'
    pk = 'id'

    @classmethod
    def register(cls, user_id: int | str, username: str, email: str) -> dict[str, Any]:
        username = (username or '').strip()
        email = (email or '').strip()
        if not username:
            raise ValidationError('Username cannot be empty.')
        if '@' not in email or email.startswith('@') or email.endswith('@'):
            raise ValidationError('Please provide a valid email address.')
        if cls.exists('id = %s', (user_id,)):
            raise ValidationError('You are already registered.')
        return cls.create(
            {
                'id': user_id,
                'username': username,
                'email': email,
                'role': Role.USER.value,
            }
        )

    @classmethod
    def get_profile(cls, user_id: int | str) -> Optional[dict[str, Any]]:
        with DBManager() as db:
            row = db.fetchone(
                'SELECT id, username, email, role, created_at FROM users WHERE id = %s',
                (user_id,),
            )
        return cast(Optional[dict[str, Any]], row)

    @classmethod
    def set_role(cls, user_id: int | str, role: Role | str) -> dict[str, Any]:
        new_role = parse_enum(Role, role, 'Role')
        rows = cls.update_where({'role': new_role.value}, 'id = %s', (user_id,))
        if not rows:
            raise NotFoundError('That user is not registered.')
        return rows[0]

    @classmethod
    def usernames(cls, user_ids: Iterable[int | str]) -> dict[Any, str]:
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return {}
        with DBManager() as db:
            rows = db.fetchall(
                'SELECT id, username FROM users WHERE id = ANY(%s)', (ids,)
            )
        return {r['id']: r['username'] for r in rows}
