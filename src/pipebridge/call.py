"""
A single outstanding request and its blocking wait.
"""

import threading
from typing import Any, Optional

from .values import Record, from_python


class PendingCall:
    """
    A request awaiting its response from the child process.

    The response slot moves from empty to filled exactly once, by the
    dispatcher's worker.  Any number of threads may ``wait()`` on the same
    call; all of them are released together and see the same record.

    Usage:
        call = PendingCall("resources", {"path": "/books"})
        dispatcher.send(call)
        response = call.wait()
    """

    def __init__(self, call_id: str, payload: Optional[Any] = None):
        if not isinstance(call_id, str):
            raise TypeError(f"Call id must be str, got {type(call_id).__name__}")
        self.id = call_id
        payload = Record() if payload is None else from_python(payload)
        if not isinstance(payload, Record):
            raise TypeError(f"Call payload must be a record, got {payload.kind}")
        self.payload = payload
        # Held by the dispatcher while this call is on the wire.
        self.condition = threading.Condition()
        self._response: Optional[Record] = None

    def __repr__(self) -> str:
        state = "resolved" if self.done else "pending"
        return f"PendingCall({self.id!r}, {state})"

    @property
    def done(self) -> bool:
        return self._response is not None

    @property
    def response(self) -> Optional[Record]:
        """The response record, or None while the call is pending."""
        return self._response

    def resolve(self, response: Record) -> None:
        """Store the response and wake every waiter.

        Raises:
            RuntimeError: If the call was already resolved.
        """
        with self.condition:
            if self._response is not None:
                raise RuntimeError(f"Call {self.id!r} already resolved")
            self._response = response
            self.condition.notify_all()

    def wait(self) -> Record:
        """Block until the response arrives and return it."""
        with self.condition:
            while self._response is None:
                self.condition.wait()
            return self._response
