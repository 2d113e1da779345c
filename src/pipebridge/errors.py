"""
Error taxonomy for the bridge.

Startup errors are reported to the caller of ``start()``.  Pipe errors
raised once the dispatcher is running are fatal to the whole process.
"""


class BridgeError(Exception):
    """Base class for all bridge errors."""
    pass


class StartupError(BridgeError):
    """The child process could not be launched or its pipes opened."""
    pass


class PipeError(BridgeError, OSError):
    """The pipe failed or closed in the middle of a message."""
    pass


class ProtocolError(BridgeError, ValueError):
    """A value cannot be represented in the line encoding."""
    pass


class BridgeStoppedError(BridgeError):
    """A call was submitted after the bridge began stopping."""
    pass
