"""
Zero-capacity hand-off queue between caller threads and the dispatcher.

``put()`` does not return until the consumer has taken the item, so at
most one item is ever waiting and items are taken in the order they were
placed.  ``queue.Queue(maxsize=0)`` is unbounded, which is why this is
not built on it.
"""

import threading
from typing import Any, Optional

from .errors import BridgeStoppedError

_EMPTY = object()


class HandoffQueue:
    """A rendezvous channel with a single consumer."""

    def __init__(self):
        self._cond = threading.Condition()
        self._slot: Any = _EMPTY
        self._closed = False
        self._placed = 0
        self._taken = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, item: Any) -> None:
        """Offer ``item`` and block until the consumer takes it.

        Raises:
            BridgeStoppedError: If the queue is closed before the item
                could be placed.
        """
        if item is None:
            raise ValueError("None is reserved as the end-of-queue marker")
        with self._cond:
            while self._slot is not _EMPTY and not self._closed:
                self._cond.wait()
            if self._closed:
                raise BridgeStoppedError("Bridge is stopping; no further calls accepted")
            self._slot = item
            self._placed += 1
            ticket = self._placed
            self._cond.notify_all()
            # A placed item is delivered even if close() happens meanwhile.
            while self._taken < ticket:
                self._cond.wait()

    def get(self) -> Optional[Any]:
        """Take the next item, or return None once closed and drained."""
        with self._cond:
            while self._slot is _EMPTY and not self._closed:
                self._cond.wait()
            if self._slot is _EMPTY:
                return None
            item = self._slot
            self._slot = _EMPTY
            self._taken += 1
            self._cond.notify_all()
            return item

    def close(self) -> None:
        """Refuse further puts.  Idempotent."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()
