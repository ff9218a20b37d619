'''Timer-driven activity recording.

A recorder belongs to one user and walks a small state machine:

    Idle --start--> Tracking --finish (ok)--> Idle
                    Tracking --finish (error)--> Tracking
                    Tracking --cancel--> Idle

``finish`` uploads any attached evidence before writing the activity, so an
activity is never stored without the evidence it claims to have.
'''
from __future__ import annotations

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping, Optional, Protocol

from discord.ext import tasks

from smartroutine.errors import UploadError, ValidationError
from smartroutine.models.activity import Activity
from smartroutine.models.types import (
    ActivityDetails,
    ActivityType,
    parse_details,
    parse_enum,
)
from smartroutine.services.evidence_storage import EvidenceStorage
from smartroutine.utils.constants import (
    DEFAULT_EVIDENCE_MAX_BYTES,
    DEFAULT_TIMER_TICK_SECONDS,
    EVIDENCE_CONTENT_TYPES,
)
from smartroutine.utils.tracing import annotate, trace_span

logger = logging.getLogger(__name__)

MS_PER_MINUTE = 60_000
MAX_NAME_LENGTH = 100


class RecorderState(str, Enum):
    IDLE = 'idle'
    TRACKING = 'tracking'


@dataclass(frozen=True)
class EvidenceFile:
    filename: str
    content: bytes
    content_type: str


class Ticker(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


def compute_duration_minutes(elapsed_ms: int, policy: str = 'clamp') -> int:
    '''Whole minutes elapsed. ``clamp`` never returns less than 1.'''
    minutes = max(0, int(elapsed_ms)) // MS_PER_MINUTE
    if policy == 'clamp':
        return max(1, minutes)
    if policy == 'floor':
        return minutes
    raise ValueError(f'Unknown duration policy: {policy!r}')


class ElapsedTicker:
    '''Once-per-interval display tick while a session is tracked.

    Purely cosmetic; cancelling it never affects what gets recorded.
    '''

    def __init__(
        self,
        elapsed_ms: Callable[[], int],
        on_tick: Callable[[int], Awaitable[None] | None],
        seconds: float = DEFAULT_TIMER_TICK_SECONDS,
    ):
        self._elapsed_ms = elapsed_ms
        self._on_tick = on_tick
        self._loop = tasks.loop(seconds=seconds)(self._tick)
        self._owner: Optional[asyncio.AbstractEventLoop] = None

    async def _tick(self) -> None:
        try:
            result = self._on_tick(self._elapsed_ms())
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.warning('Timer display update failed', exc_info=True)

    @property
    def running(self) -> bool:
        return self._loop.is_running()

    def start(self) -> None:
        if not self._loop.is_running():
            self._owner = asyncio.get_running_loop()
            self._loop.start()

    def cancel(self) -> None:
        '''Stop ticking. Safe to call from a worker thread.'''
        try:
            current = asyncio.get_running_loop()
        except RuntimeError:
            current = None
        if self._owner is not None and current is not self._owner:
            self._owner.call_soon_threadsafe(self._loop.cancel)
        else:
            self._loop.cancel()


class ActivityRecorder:
    def __init__(
        self,
        user_id: int,
        storage: Optional[EvidenceStorage] = None,
        *,
        duration_policy: str = 'clamp',
        max_evidence_bytes: int = DEFAULT_EVIDENCE_MAX_BYTES,
        clock: Callable[[], float] = time.time,
        ticker_factory: Optional[Callable[['ActivityRecorder'], Ticker]] = None,
    ):
        if duration_policy not in ('clamp', 'floor'):
            raise ValueError(f'Unknown duration policy: {duration_policy!r}')
        self.user_id = user_id
        self.storage = storage
        self.duration_policy = duration_policy
        self.max_evidence_bytes = max_evidence_bytes
        self._clock = clock
        self._ticker_factory = ticker_factory
        self._ticker: Optional[Ticker] = None
        self._reset()

    def _reset(self) -> None:
        self.name: Optional[str] = None
        self.activity_type: Optional[ActivityType] = None
        self.details: Optional[ActivityDetails] = None
        self.evidence: Optional[EvidenceFile] = None
        self._started_at: Optional[float] = None

    @property
    def state(self) -> RecorderState:
        return RecorderState.IDLE if self._started_at is None else RecorderState.TRACKING

    @property
    def is_tracking(self) -> bool:
        return self.state is RecorderState.TRACKING

    def elapsed_ms(self) -> int:
        if self._started_at is None:
            return 0
        return max(0, int((self._clock() - self._started_at) * 1000))

    def start(
        self,
        name: str,
        activity_type: ActivityType | str,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        if self.is_tracking:
            raise ValidationError(
                f'Already tracking "{self.name}". Finish or cancel it first.'
            )
        name = (name or '').strip()
        if not name:
            raise ValidationError('Please give the activity a name.')
        if len(name) > MAX_NAME_LENGTH:
            raise ValidationError(
                f'Activity name must be at most {MAX_NAME_LENGTH} characters.'
            )
        atype = parse_enum(ActivityType, activity_type, 'Activity type')
        parsed = parse_details(atype, details)

        self.name = name
        self.activity_type = atype
        self.details = parsed
        self.evidence = None
        self._started_at = self._clock()
        logger.info(f'User {self.user_id} started {atype.value} "{name}"')

        if self._ticker_factory is not None:
            self._ticker = self._ticker_factory(self)
            self._ticker.start()

    def attach_evidence(self, filename: str, content: bytes, content_type: str) -> None:
        if not self.is_tracking:
            raise ValidationError('Start an activity before attaching evidence.')
        filename = (filename or '').strip().replace('/', '_')
        if not filename:
            raise ValidationError('Evidence file needs a name.')
        if not content:
            raise ValidationError('Evidence file is empty.')
        if len(content) > self.max_evidence_bytes:
            limit_mb = self.max_evidence_bytes / (1024 * 1024)
            raise ValidationError(f'Evidence file is larger than {limit_mb:.0f} MB.')
        content_type = (content_type or '').split(';')[0].strip().lower()
        if content_type not in EVIDENCE_CONTENT_TYPES:
            raise ValidationError(
                'Evidence must be an image, a PDF, or a plain text file.'
            )
        self.evidence = EvidenceFile(filename, content, content_type)

    def _upload_evidence(self, evidence: EvidenceFile) -> str:
        if self.storage is None:
            raise UploadError('Evidence uploads are not configured.')
        annotate('evidence_bytes', len(evidence.content))
        path = (
            f'uploads/{self.user_id}/{int(self._clock() * 1000)}_{evidence.filename}'
        )
        return self.storage.upload(path, evidence.content, evidence.content_type)

    def finish(self) -> dict[str, Any]:
        '''Record the tracked session as a pending activity.

        On any failure the recorder stays in Tracking so the caller may retry.
        '''
        activity_type, details = self.activity_type, self.details
        if not self.is_tracking or activity_type is None or details is None:
            raise ValidationError('No activity is being tracked.')

        with trace_span(
            'recorder.finish',
            {'user_id': self.user_id, 'evidence': self.evidence is not None},
        ) as span:
            minutes = compute_duration_minutes(self.elapsed_ms(), self.duration_policy)
            evidence_url = None
            if self.evidence is not None:
                evidence_url = self._upload_evidence(self.evidence)

            try:
                activity = Activity.insert(
                    user_id=self.user_id,
                    name=self.name or '',
                    activity_type=activity_type,
                    duration_minutes=minutes,
                    details=details,
                    evidence_url=evidence_url,
                )
            except Exception:
                # a retry uploads again under a fresh path
                if evidence_url is not None and self.storage is not None:
                    self.storage.delete(evidence_url)
                raise
            span.metadata['duration_minutes'] = minutes

        logger.info(
            f'User {self.user_id} finished "{self.name}" after {minutes} min '
            f'(activity {activity.get("id")})'
        )
        self._stop_ticker()
        self._reset()
        return activity

    def cancel(self) -> None:
        '''Discard the in-progress session without recording anything.'''
        if not self.is_tracking:
            raise ValidationError('No activity is being tracked.')
        logger.info(f'User {self.user_id} cancelled "{self.name}"')
        self._stop_ticker()
        self._reset()

    def close(self) -> None:
        '''Teardown: release the ticker whatever state we are in.'''
        self._stop_ticker()

    def _stop_ticker(self) -> None:
        ticker, self._ticker = self._ticker, None
        if ticker is not None:
            ticker.cancel()
