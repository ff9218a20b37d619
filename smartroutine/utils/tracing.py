import logging
import time
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional

logger = logging.getLogger(__name__)

_current_span: ContextVar[Optional['Span']] = ContextVar('current_span', default=None)


@dataclass
class Span:
    '''Timed section of work, nested under whatever span was open when it began.'''

    name: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    parent: Optional['Span'] = None
    started: float = field(default_factory=time.perf_counter)
    ended: Optional[float] = None
    failed: bool = False

    @property
    def elapsed_ms(self) -> Optional[float]:
        if self.ended is None:
            return None
        return (self.ended - self.started) * 1000

    @property
    def path(self) -> str:
        return f'{self.parent.path} > {self.name}' if self.parent else self.name

    def close(self) -> None:
        self.ended = time.perf_counter()
        meta = ', '.join(f'{k}={v}' for k, v in self.metadata.items())
        outcome = 'failed' if self.failed else 'ok'
        logger.info(f'⏱️  {self.path}: {self.elapsed_ms:.2f}ms {outcome} [{meta}]')


@contextmanager
def trace_span(name: str, metadata: Optional[Dict[str, Any]] = None) -> Iterator[Span]:
    '''Time a block of work and log it on exit.

    Example:
        with trace_span('recorder.finish', {'user_id': user_id}) as span:
            ...
            span.metadata['duration_minutes'] = minutes
    '''
    span = Span(name=name, metadata=dict(metadata or {}), parent=_current_span.get())
    token = _current_span.set(span)
    try:
        yield span
    except BaseException:
        span.failed = True
        raise
    finally:
        span.close()
        _current_span.reset(token)


def annotate(key: str, value: Any) -> None:
    '''Attach metadata to the innermost open span, if any.'''
    span = _current_span.get()
    if span is not None:
        span.metadata[key] = value
