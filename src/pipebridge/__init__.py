"""
pipebridge: synchronous request/response bridge to a long-lived child process.

Quick start:
    from pipebridge import Bridge, BridgeConfig

    with Bridge(BridgeConfig(command=["bookr.exe"])) as bridge:
        response = bridge.request("resources")

Concurrent callers:
    call = bridge.send("open", {"path": "/books/moby.epub"})
    ...
    response = bridge.wait(call)
"""

__version__ = "0.1.0"

from .bridge import Bridge, start
from .call import PendingCall
from .config import BridgeConfig, load_config, save_config
from .dispatcher import Dispatcher, DispatcherState
from .errors import (
    BridgeError,
    BridgeStoppedError,
    PipeError,
    ProtocolError,
    StartupError,
)
from .values import Record, Scalar, Value, ValueList, from_python

__all__ = [
    "Bridge",
    "BridgeConfig",
    "BridgeError",
    "BridgeStoppedError",
    "Dispatcher",
    "DispatcherState",
    "PendingCall",
    "PipeError",
    "ProtocolError",
    "Record",
    "Scalar",
    "StartupError",
    "Value",
    "ValueList",
    "__version__",
    "from_python",
    "load_config",
    "save_config",
    "start",
]
