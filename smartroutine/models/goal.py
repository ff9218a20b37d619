from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from smartroutine.database.db_manager import DBManager
from smartroutine.errors import NotFoundError, PermissionDenied, ValidationError
from smartroutine.models.base import BaseModel
from smartroutine.models.types import ActivityType, GoalStatus, GoalType, parse_enum

if TYPE_CHECKING:
    from smartroutine.services.session import SessionContext

logger = logging.getLogger(__name__)


class Goal(BaseModel):
    table = 'goals'

    @classmethod
    def create_goal(
        cls,
        session: SessionContext,
        title: str,
        goal_type: GoalType | str,
        activity_category: ActivityType | str,
        target_value: int,
    ) -> dict[str, Any]:
        title = (title or '').strip()
        if not title:
            raise ValidationError('Goal title cannot be empty.')
        gtype = parse_enum(GoalType, goal_type, 'Goal type')
        category = parse_enum(ActivityType, activity_category, 'Activity category')
        if isinstance(target_value, bool) or not isinstance(target_value, int):
            raise ValidationError('Target value must be a whole number.')
        if target_value <= 0:
            raise ValidationError('Target value must be greater than 0.')

        return cls.create(
            {
                'user_id': session.user_id,
                'title': title,
                'goal_type': gtype.value,
                'activity_category': category.value,
                'target_value': target_value,
                'status': GoalStatus.ACTIVE.value,
            }
        )

    @classmethod
    def for_user(cls, user_id: int | str) -> list[dict[str, Any]]:
        return cls.get_many('user_id = %s', (user_id,), order_by='created_at ASC, id ASC')

    @classmethod
    def _require_owned(cls, goal_id: int, session: SessionContext) -> dict[str, Any]:
        goal = cls.get(goal_id)
        if goal is None:
            raise NotFoundError(f'Goal {goal_id} does not exist.')
        if goal['user_id'] != session.user_id:
            raise PermissionDenied('You can only change your own goals.')
        return goal

    @classmethod
    def delete_for_owner(cls, goal_id: int, session: SessionContext) -> None:
        cls._require_owned(goal_id, session)
        with DBManager() as db:
            db.execute(
                'DELETE FROM goals WHERE id = %s AND user_id = %s',
                (goal_id, session.user_id),
            )

    @classmethod
    def mark_completed(cls, goal_id: int, session: SessionContext) -> dict[str, Any]:
        goal = cls._require_owned(goal_id, session)
        if goal['status'] == GoalStatus.COMPLETED.value:
            raise ValidationError(f'Goal "{goal["title"]}" is already completed.')
        rows = cls.update_where(
            {
                'status': GoalStatus.COMPLETED.value,
                'completed_at': datetime.now(timezone.utc),
            },
            'id = %s AND status = %s',
            (goal_id, GoalStatus.ACTIVE.value),
        )
        if not rows:
            raise ValidationError(f'Goal "{goal["title"]}" is already completed.')
        logger.info(f'Goal {goal_id} completed by user {session.user_id}')
        return rows[0]
