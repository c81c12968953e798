"""
Internal DB subpackage for the known-device store.

External code should import `KnownDeviceStore` from
`bluroom.core.known_devices`.
"""

from __future__ import annotations

from .models import KnownDevice
from .schema import SCHEMA_VERSION, ensure_schema, migrate

__all__ = [
    "KnownDevice",
    "SCHEMA_VERSION",
    "ensure_schema",
    "migrate",
]
