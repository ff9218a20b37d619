from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional, cast

from smartroutine.database.db_manager import DBManager
from smartroutine.errors import NotFoundError, PermissionDenied, ValidationError
from smartroutine.models.base import BaseModel
from smartroutine.models.types import (
    ActivityDetails,
    ActivityStatus,
    ActivityType,
    details_to_dict,
    parse_enum,
)

if TYPE_CHECKING:
    from smartroutine.services.evidence_storage import EvidenceStorage
    from smartroutine.services.session import SessionContext

logger = logging.getLogger(__name__)

REVIEW_OUTCOMES = (ActivityStatus.VALIDATED, ActivityStatus.REJECTED)


class Activity(BaseModel):
    table = 'activities'

    @classmethod
    def insert(
        cls,
        user_id: int | str,
        name: str,
        activity_type: ActivityType | str,
        duration_minutes: int,
        details: ActivityDetails,
        evidence_url: str | None = None,
    ) -> dict[str, Any]:
        '''Append a new pending activity. created_at is set by the server.'''
        atype = parse_enum(ActivityType, activity_type, 'Activity type')
        if duration_minutes < 0:
            raise ValidationError('Duration cannot be negative.')
        return cls.create(
            {
                'user_id': user_id,
                'name': name,
                'activity_type': atype.value,
                'duration_minutes': int(duration_minutes),
                'details': details_to_dict(details),
                'evidence_url': evidence_url,
                'status': ActivityStatus.PENDING.value,
            }
        )

    @classmethod
    def recent_for_user(cls, user_id: int | str, limit: int) -> list[dict[str, Any]]:
        '''Newest first.'''
        return cls.get_many(
            'user_id = %s', (user_id,), order_by='created_at DESC, id DESC', limit=limit
        )

    @classmethod
    def for_user(
        cls,
        user_id: int | str,
        status: ActivityStatus | str | None = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> list[dict[str, Any]]:
        '''Activities of one user, oldest first, optionally filtered.'''
        clauses = ['user_id = %s']
        params: list[Any] = [user_id]
        if status is not None:
            clauses.append('status = %s')
            params.append(parse_enum(ActivityStatus, status, 'Status').value)
        if since is not None:
            clauses.append('created_at >= %s')
            params.append(since)
        if until is not None:
            clauses.append('created_at < %s')
            params.append(until)
        return cls.get_many(
            ' AND '.join(clauses), params, order_by='created_at ASC, id ASC'
        )

    @classmethod
    def pending(cls, limit: int = 25) -> list[dict[str, Any]]:
        '''Review queue, oldest submission first.'''
        return cls.get_many(
            'status = %s',
            (ActivityStatus.PENDING.value,),
            order_by='created_at ASC, id ASC',
            limit=limit,
        )

    @classmethod
    def set_status(
        cls,
        activity_id: int,
        status: ActivityStatus | str,
        session: SessionContext,
    ) -> dict[str, Any]:
        '''Reviewer transition pending -> validated/rejected.'''
        session.require_admin()
        target = parse_enum(ActivityStatus, status, 'Status')
        if target not in REVIEW_OUTCOMES:
            raise ValidationError('An activity can only be validated or rejected.')

        # Only a pending row matches, so a reviewed activity is never changed again
        rows = cls.update_where(
            {'status': target.value},
            'id = %s AND status = %s',
            (activity_id, ActivityStatus.PENDING.value),
        )
        if rows:
            logger.info(
                f'Activity {activity_id} {target.value} by reviewer {session.user_id}'
            )
            return rows[0]

        current = cls.get(activity_id)
        if current is None:
            raise NotFoundError(f'Activity {activity_id} does not exist.')
        raise ValidationError(
            f'Activity {activity_id} was already {current["status"]}.'
        )

    @classmethod
    def delete_for_owner(
        cls,
        activity_id: int,
        session: SessionContext,
        storage: Optional[EvidenceStorage] = None,
    ) -> dict[str, Any]:
        '''Delete one of the caller's activities and release its evidence.'''
        with DBManager() as db:
            row = db.fetchone(
                'DELETE FROM activities WHERE id = %s AND user_id = %s RETURNING *',
                (activity_id, session.user_id),
            )
        if row is None:
            if cls.exists('id = %s', (activity_id,)):
                raise PermissionDenied('You can only delete your own activities.')
            raise NotFoundError(f'Activity {activity_id} does not exist.')

        row = cast(dict[str, Any], row)
        evidence_url = row.get('evidence_url')
        if evidence_url and storage is not None:
            # best-effort: delete() logs and swallows its own failures
            storage.delete(evidence_url)
        return row
