from dataclasses import dataclass

from smartroutine.errors import NotRegisteredError, PermissionDenied
from smartroutine.models.types import Role, parse_enum
from smartroutine.models.user import User


@dataclass(frozen=True)
class SessionContext:
    '''The acting user, passed explicitly into every scoped operation.'''

    user_id: int
    username: str
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def require_admin(self) -> None:
        if not self.is_admin:
            raise PermissionDenied('Only reviewers can do that.')


def session_for(user_id: int) -> SessionContext:
    profile = User.get_profile(user_id)
    if profile is None:
        raise NotRegisteredError()
    return SessionContext(
        user_id=profile['id'],
        username=profile['username'],
        role=parse_enum(Role, profile['role'], 'Role'),
    )
