"""
Single-worker dispatcher that owns both ends of the child process pipe.

Callers hand ``PendingCall`` objects to ``send()``.  One daemon thread
takes them one at a time, writes the request, reads exactly one response
and resolves the call.  No two requests are ever in flight.

Any failure while writing a request or reading its response is fatal: the
worker logs it and, by default, ends the whole process.  There is no
per-call recovery.
"""

import enum
import logging
import os
import threading
from typing import BinaryIO, Callable, Optional

from .call import PendingCall
from .codec import DEFAULT_ENCODING, check_request, read_response, write_request
from .handoff import HandoffQueue

logger = logging.getLogger(__name__)

FATAL_EXIT_CODE = 1
DEFAULT_QUIT_COMMAND = "quit"


class DispatcherState(enum.Enum):
    CREATED = "created"
    STARTED = "started"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


def exit_process(exc: BaseException) -> None:
    """Default fatal handler: flush logging and end the process immediately."""
    logging.shutdown()
    os._exit(FATAL_EXIT_CODE)


class Dispatcher:
    """Serializes all pipe traffic through one worker thread."""

    def __init__(
        self,
        writer: BinaryIO,
        reader: BinaryIO,
        *,
        on_exit: Optional[Callable[[], object]] = None,
        on_fatal: Optional[Callable[[BaseException], None]] = None,
        encoding: str = DEFAULT_ENCODING,
        quit_command: str = DEFAULT_QUIT_COMMAND,
    ):
        """
        Args:
            writer: Buffered binary stream connected to the child's stdin.
            reader: Buffered binary stream connected to the child's stdout.
            on_exit: Called after both pipe ends are closed; should block
                until the child process has exited.
            on_fatal: Called with the exception when the pipe fails.
                Defaults to ``exit_process``.
            encoding: Text encoding used on the wire.
            quit_command: Line written to the child on shutdown.
        """
        self._writer = writer
        self._reader = reader
        self._on_exit = on_exit
        self._on_fatal = on_fatal or exit_process
        self._encoding = encoding
        self._quit_command = quit_command
        self._queue = HandoffQueue()
        self._thread: Optional[threading.Thread] = None
        self._finished = threading.Event()
        self._state_lock = threading.Lock()
        self._state = DispatcherState.CREATED

    @property
    def state(self) -> DispatcherState:
        return self._state

    def _set_state(self, state: DispatcherState) -> None:
        with self._state_lock:
            logger.debug("Dispatcher %s -> %s", self._state.value, state.value)
            self._state = state

    def start(self) -> None:
        """Launch the worker thread."""
        with self._state_lock:
            if self._state is not DispatcherState.CREATED:
                raise RuntimeError(f"Dispatcher already {self._state.value}")
            self._state = DispatcherState.STARTED

        self._thread = threading.Thread(
            target=self._run,
            daemon=True,
            name="bridge-dispatcher",
        )
        self._thread.start()

    def send(self, call: PendingCall) -> PendingCall:
        """Hand ``call`` to the worker.  Blocks until the worker accepts it.

        Returns the same call; use ``call.wait()`` for the response.

        Raises:
            ProtocolError: If the call cannot be encoded.
            BridgeStoppedError: If stop() has already begun.
            RuntimeError: If the dispatcher was never started.
        """
        with self._state_lock:
            if self._state is DispatcherState.CREATED:
                raise RuntimeError("Dispatcher is not running")
        check_request(call)
        self._queue.put(call)
        return call

    def stop(self) -> None:
        """Close the queue and block until the child has been shut down.

        Calls already accepted are processed first.  Idempotent.
        """
        with self._state_lock:
            if self._state is DispatcherState.CREATED:
                raise RuntimeError("Dispatcher was never started")
            if self._state in (DispatcherState.STARTED, DispatcherState.RUNNING):
                self._state = DispatcherState.STOPPING
        self._queue.close()
        self._finished.wait()
        if self._thread is not None:
            self._thread.join()

    # -- Worker thread -----------------------------------------------------

    def _run(self) -> None:
        try:
            with self._state_lock:
                if self._state is DispatcherState.STARTED:
                    self._state = DispatcherState.RUNNING
            while True:
                call = self._queue.get()
                if call is None:
                    break
                if not self._process(call):
                    self._abandon()
                    return
            self._shutdown()
        finally:
            self._finished.set()

    def _process(self, call: PendingCall) -> bool:
        """Write one call and read its response.  False after a fatal error."""
        with call.condition:
            try:
                write_request(self._writer, call, self._encoding)
                self._writer.flush()
            except Exception as exc:
                self._fatal(f"Failed writing request {call.id!r}", exc)
                return False
            logger.debug("Wrote request %r", call.id)

            try:
                response = read_response(self._reader, self._encoding)
            except Exception as exc:
                self._fatal(f"Failed reading response to {call.id!r}", exc)
                return False
            logger.debug("Received response to %r (%d fields)", call.id, len(response))

            call.resolve(response)
        return True

    def _fatal(self, message: str, exc: BaseException) -> None:
        logger.critical("%s: %s", message, exc)
        self._on_fatal(exc)

    def _shutdown(self) -> None:
        """Send the quit command, close both pipe ends and wait for the child."""
        with self._state_lock:
            self._state = DispatcherState.STOPPING
        try:
            self._writer.write(self._quit_command.encode(self._encoding) + b"\n\n")
            self._writer.flush()
        except (OSError, ValueError) as exc:
            logger.warning("Could not send %r to child: %s", self._quit_command, exc)

        self._close_pipes()
        if self._on_exit is not None:
            self._on_exit()
        self._set_state(DispatcherState.STOPPED)

    def _abandon(self) -> None:
        """Tear down after a fatal error whose handler returned.

        Refuses further calls and releases any caller already blocked in
        send().  Those calls are never resolved.
        """
        self._queue.close()
        while self._queue.get() is not None:
            pass
        self._close_pipes()
        if self._on_exit is not None:
            self._on_exit()
        self._set_state(DispatcherState.STOPPED)

    def _close_pipes(self) -> None:
        for stream in (self._reader, self._writer):
            try:
                stream.close()
            except OSError as exc:
                logger.warning("Error closing pipe: %s", exc)
