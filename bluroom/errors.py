"""
Exception taxonomy for Bluroom.

Discovery is designed to degrade rather than fail: most of these errors are
raised deep in the stack and caught again at a component boundary (the
prober or the discovery orchestrator), where they are logged and turned into
"device omitted" or "fall back to a slower path".
"""

from __future__ import annotations


class BluroomError(Exception):
    """Base class for all Bluroom errors."""


class DecodeError(BluroomError):
    """A device payload was structurally invalid (e.g. missing root element)."""


class Unreachable(BluroomError):
    """A device did not answer within its timeout (treated as offline)."""

    def __init__(self, address: str, port: int, reason: str = "") -> None:
        self.address = address
        self.port = port
        self.reason = reason
        message = f"{address}:{port} unreachable"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class SweepFailure(BluroomError):
    """The multicast discovery mechanism itself failed (socket error etc.)."""


class StoreError(BluroomError):
    """The known-device store could not be used."""


class ConfigError(BluroomError):
    """The configuration file is invalid."""
