"""Bounded access log kept on every token record"""

from collections import deque
from typing import Iterable, Iterator, List, Optional

from tokengate.core.models.token import ACCESS_LOG_LIMIT, AccessEvent


class AccessLogBuffer:
    """Ring buffer of access events, oldest first.

    Appending to a full buffer evicts the oldest event in the same step, so
    the retention bound holds after every append.
    """

    def __init__(self, events: Iterable[AccessEvent] = (), limit: int = ACCESS_LOG_LIMIT):
        if limit < 1:
            raise ValueError("Access log limit must be at least 1")
        self._events: deque = deque(events, maxlen=limit)

    @property
    def limit(self) -> int:
        return self._events.maxlen

    def append(self, event: AccessEvent) -> Optional[AccessEvent]:
        """Append an event and return the evicted one, if any"""
        evicted = self._events[0] if len(self._events) == self.limit else None
        self._events.append(event)
        return evicted

    def to_list(self) -> List[AccessEvent]:
        return list(self._events)

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[AccessEvent]:
        return iter(self._events)
