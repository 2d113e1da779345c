"""
Launches the child process and exposes the request/response API.

The child talks the nested line protocol on stdin/stdout.  Its stderr is
forwarded to this process's logger via a daemon thread.
"""

import logging
import subprocess
import threading
from typing import Any, Optional

from .call import PendingCall
from .config import BridgeConfig, load_config
from .dispatcher import Dispatcher, DispatcherState
from .errors import StartupError
from .values import Record

logger = logging.getLogger(__name__)


class Bridge:
    """Owns one child process and the dispatcher that talks to it.

    Usage:
        with Bridge() as bridge:
            call = bridge.send("resources")
            response = bridge.wait(call)
    """

    def __init__(self, config: Optional[BridgeConfig] = None):
        self._config = config or load_config()
        self._proc: Optional[subprocess.Popen] = None
        self._dispatcher: Optional[Dispatcher] = None
        self._stderr_thread: Optional[threading.Thread] = None

    @property
    def config(self) -> BridgeConfig:
        return self._config

    @property
    def state(self) -> DispatcherState:
        if self._dispatcher is None:
            return DispatcherState.CREATED
        return self._dispatcher.state

    @property
    def alive(self) -> bool:
        return self._proc is not None and self._proc.poll() is None

    def start(self) -> "Bridge":
        """Spawn the child and start dispatching.

        Raises:
            StartupError: If the process cannot be launched or its pipes
                are unavailable.
        """
        if self._dispatcher is not None:
            raise RuntimeError("Bridge already started")

        cmd = list(self._config.command)
        if not cmd:
            raise StartupError("No child command configured")
        logger.debug("Starting child: %s", " ".join(cmd))

        try:
            self._proc = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE if self._config.forward_stderr else None,
                cwd=self._config.cwd,
                env=self._config.env,
            )
        except (OSError, ValueError) as exc:
            raise StartupError(f"Failed starting {cmd[0]}: {exc}") from exc

        if self._proc.stdin is None:
            self._kill()
            raise StartupError("Failed opening child stdin")
        if self._proc.stdout is None:
            self._kill()
            raise StartupError("Failed opening child stdout")

        if self._config.forward_stderr:
            self._stderr_thread = threading.Thread(
                target=self._forward_stderr,
                daemon=True,
                name="child-stderr",
            )
            self._stderr_thread.start()

        self._dispatcher = Dispatcher(
            self._proc.stdin,
            self._proc.stdout,
            on_exit=self._wait_child,
            encoding=self._config.encoding,
            quit_command=self._config.quit_command,
        )
        self._dispatcher.start()
        logger.info("Bridge started (pid=%d)", self._proc.pid)
        return self

    def send(self, call_id: str, payload: Optional[Any] = None) -> PendingCall:
        """Submit a request.  Blocks only until the dispatcher accepts it."""
        if self._dispatcher is None:
            raise RuntimeError("Bridge is not running")
        return self._dispatcher.send(PendingCall(call_id, payload))

    def wait(self, call: PendingCall) -> Record:
        """Block until ``call`` is resolved and return its response."""
        return call.wait()

    def request(self, call_id: str, payload: Optional[Any] = None) -> Record:
        """Send a request and wait for its response."""
        return self.wait(self.send(call_id, payload))

    def stop(self) -> None:
        """Graceful shutdown.  Blocks until the child process has exited."""
        if self._dispatcher is None or self._dispatcher.state is DispatcherState.STOPPED:
            return
        self._dispatcher.stop()
        logger.info("Bridge stopped")

    def __enter__(self) -> "Bridge":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    # -- Internal helpers --------------------------------------------------

    def _wait_child(self) -> None:
        returncode = self._proc.wait()
        if self._stderr_thread is not None:
            self._stderr_thread.join()
        logger.debug("Child exited with code %s", returncode)

    def _kill(self) -> None:
        if self._proc is not None:
            self._proc.kill()
            self._proc.wait()

    def _forward_stderr(self) -> None:
        """Read child stderr and log it."""
        stream = self._proc.stderr
        for raw in iter(stream.readline, b""):
            line = raw.decode(self._config.encoding, errors="replace").rstrip("\r\n")
            if line:
                logger.info("[child] %s", line)
        stream.close()


def start(config: Optional[BridgeConfig] = None) -> Bridge:
    """Create and start a bridge.

    Raises:
        StartupError: If the child cannot be launched.
    """
    return Bridge(config).start()
