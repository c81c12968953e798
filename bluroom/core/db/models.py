"""
Row models for the known-device store.

Pure dataclasses plus small conversion helpers; no SQL and no connection
knowledge.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping


@dataclass(frozen=True, slots=True)
class KnownDevice:
    """
    A device seen at least once, as stored in SQLite.

    Notes:
    - `hardware_address` (MAC) is the preferred identity; `address` is the
      fallback because DHCP may move a device to a new IP.
    - Records are never removed automatically. Going offline only flips
      `is_online`.
    """

    id: int
    address: str
    port: int
    hardware_address: str | None
    name: str
    model_name: str | None
    brand: str | None
    discovered_at: datetime
    last_seen_at: datetime
    is_online: bool

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> KnownDevice:
        return cls(
            id=int(row["id"]),
            address=str(row["address"]),
            port=int(row["port"]),
            hardware_address=row["hardware_address"],
            name=str(row["name"]),
            model_name=row["model_name"],
            brand=row["brand"],
            discovered_at=parse_timestamp(row["discovered_at"]),
            last_seen_at=parse_timestamp(row["last_seen_at"]),
            is_online=bool(row["is_online"]),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "ipAddress": self.address,
            "port": self.port,
            "macAddress": self.hardware_address,
            "name": self.name,
            "modelName": self.model_name,
            "brand": self.brand,
            "discoveredAt": self.discovered_at.isoformat(),
            "lastSeenAt": self.last_seen_at.isoformat(),
            "isOnline": self.is_online,
        }


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Store timestamps as UTC ISO-8601 text."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def normalize_text(value: str | None) -> str | None:
    """
    Normalize optional text fields:
    - strip whitespace
    - coerce empty strings to None
    """
    if value is None:
        return None
    v = value.strip()
    return v if v else None
