"""Tests that pipebridge works correctly as a pip-installed library.

Validates the public API surface and exports.
"""

import pytest

import pipebridge
from pipebridge import (
    Bridge,
    BridgeError,
    BridgeStoppedError,
    PipeError,
    ProtocolError,
    StartupError,
    __version__,
)


# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

class TestPublicExports:
    def test_version_is_string(self):
        assert isinstance(__version__, str)
        assert __version__  # non-empty

    def test_all_exports_importable(self):
        for name in pipebridge.__all__:
            assert hasattr(pipebridge, name), f"__all__ lists '{name}' but it is missing"

    def test_start_is_callable(self):
        assert callable(pipebridge.start)
        assert isinstance(Bridge, type)


# ---------------------------------------------------------------------------
# Error taxonomy
# ---------------------------------------------------------------------------

class TestErrors:
    @pytest.mark.parametrize("exc", [StartupError, PipeError, ProtocolError, BridgeStoppedError])
    def test_all_derive_from_bridge_error(self, exc):
        assert issubclass(exc, BridgeError)

    def test_pipe_error_is_os_error(self):
        err = PipeError("broken")
        assert isinstance(err, OSError)
        assert str(err) == "broken"

    def test_protocol_error_is_value_error(self):
        assert issubclass(ProtocolError, ValueError)
