"""
Player data model for Bluroom.

These records are immutable snapshots: every probe of a device produces a new
`Player`, which replaces the previous one wherever it was cached. Groups are
derived from a list of players on demand and are never stored.

JSON serialization (`to_dict`) uses camelCase keys because the consumers are
browser clients.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

DEFAULT_DEVICE_PORT = 11000


def host_of(address: str) -> str:
    """
    Strip an optional ``:port`` suffix from an address.

    Devices report peers as ``"192.168.1.20:11000"``; topology matching only
    compares hosts. IPv6 literals (more than one colon) are returned as-is.
    """
    if address.count(":") == 1:
        return address.split(":", 1)[0]
    return address


@dataclass(frozen=True, slots=True)
class Player:
    """
    One audio endpoint as it described itself in its last sync status.

    Grouping fields are self-reported and asymmetric: a master lists its
    slaves in `slave_addresses`, a slave points at its master through
    `master_address`. A player is never a master and a slave at once.
    """

    id: str
    address: str
    port: int = DEFAULT_DEVICE_PORT
    name: str = "Unknown"
    model_name: str = ""
    model: str = ""
    brand: str = ""
    hardware_address: str = ""

    volume: int = 0
    is_fixed_volume: bool = False

    is_grouped: bool = False
    is_master: bool = False
    group_name: str | None = None
    master_address: str | None = None
    slave_addresses: tuple[str, ...] = ()

    is_stereo_paired: bool = False
    channel_mode: str | None = None
    is_secondary_stereo_pair_speaker: bool = False

    def __post_init__(self) -> None:
        if self.is_master and self.master_address:
            raise ValueError(
                f"Player {self.id} cannot be a master and report a master ({self.master_address})"
            )

    @property
    def host_key(self) -> str:
        """Host part of the address, used to match peer references."""
        return host_of(self.address)

    @property
    def display_status(self) -> str:
        if self.is_stereo_paired:
            return f"Stereo pair ({self.channel_mode})"
        if self.is_grouped:
            role = "master" if self.is_master else "slave"
            return f"Group: {self.group_name or '?'} ({role})"
        return "Single"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "ipAddress": self.address,
            "port": self.port,
            "modelName": self.model_name,
            "model": self.model,
            "brand": self.brand,
            "macAddress": self.hardware_address,
            "volume": self.volume,
            "isFixedVolume": self.is_fixed_volume,
            "isGrouped": self.is_grouped,
            "isMaster": self.is_master,
            "groupName": self.group_name,
            "masterIp": self.master_address,
            "slaveIps": list(self.slave_addresses),
            "isStereoPaired": self.is_stereo_paired,
            "channelMode": self.channel_mode,
            "isSecondaryStereoPairSpeaker": self.is_secondary_stereo_pair_speaker,
            "displayStatus": self.display_status,
        }


class PlaybackState(Enum):
    """Transport state reported by a device."""

    STOPPED = "stop"
    PLAYING = "play"
    PAUSED = "pause"
    STREAMING = "stream"

    @classmethod
    def from_wire(cls, value: str | None) -> PlaybackState:
        """Map a raw ``<state>`` value; unknown or missing values read as stopped."""
        if not value:
            return cls.STOPPED
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.STOPPED


@dataclass(frozen=True, slots=True)
class PlaybackStatus:
    """What a player is doing right now. Fetched on demand, never persisted."""

    state: PlaybackState = PlaybackState.STOPPED
    title: str | None = None
    artist: str | None = None
    album: str | None = None
    image_url: str | None = None
    service_name: str | None = None
    stream_url: str | None = None
    current_seconds: int | None = None
    total_seconds: int | None = None

    @property
    def is_playing(self) -> bool:
        return self.state in (PlaybackState.PLAYING, PlaybackState.STREAMING)

    @property
    def progress_percent(self) -> float:
        if not self.total_seconds or self.current_seconds is None:
            return 0.0
        return self.current_seconds / self.total_seconds * 100

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "isPlaying": self.is_playing,
            "title": self.title,
            "artist": self.artist,
            "album": self.album,
            "imageUrl": self.image_url,
            "service": self.service_name,
            "streamUrl": self.stream_url,
            "currentSeconds": self.current_seconds,
            "totalSeconds": self.total_seconds,
            "progressPercent": round(self.progress_percent, 1),
        }


class GroupType(Enum):
    """Kind of room. Declaration order is the output sort order."""

    SINGLE = "single"
    STEREO_PAIR = "stereo_pair"
    MULTI_ROOM = "multi_room"

    @property
    def sort_order(self) -> int:
        return _GROUP_TYPE_ORDER[self]


_GROUP_TYPE_ORDER = {group_type: index for index, group_type in enumerate(GroupType)}


@dataclass(frozen=True, slots=True)
class Group:
    """
    A resolved room: a representative player plus, for multi-room groups,
    the additional players that follow it.
    """

    id: str
    name: str
    type: GroupType
    master: Player
    members: tuple[Player, ...] = ()

    @property
    def total_members(self) -> int:
        return len(self.members) + 1

    @property
    def players(self) -> tuple[Player, ...]:
        return (self.master, *self.members)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "master": self.master.to_dict(),
            "members": [member.to_dict() for member in self.members],
            "totalMembers": self.total_members,
        }


@dataclass(frozen=True, slots=True)
class SelectorMember:
    """Compact summary of a group member for the player selector."""

    id: str
    name: str
    address: str
    port: int
    brand: str
    model_name: str
    volume: int
    is_fixed_volume: bool
    is_stereo_paired: bool
    channel_mode: str | None

    @classmethod
    def from_player(cls, player: Player) -> SelectorMember:
        return cls(
            id=player.id,
            name=player.name,
            address=player.address,
            port=player.port,
            brand=player.brand,
            model_name=player.model_name,
            volume=player.volume,
            is_fixed_volume=player.is_fixed_volume,
            is_stereo_paired=player.is_stereo_paired,
            channel_mode=player.channel_mode,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "ipAddress": self.address,
            "port": self.port,
            "brand": self.brand,
            "modelName": self.model_name,
            "volume": self.volume,
            "isFixedVolume": self.is_fixed_volume,
            "isStereoPaired": self.is_stereo_paired,
            "channelMode": self.channel_mode,
        }


@dataclass(frozen=True, slots=True)
class SelectorItem:
    """One entry of the player selector: a room, represented by its master."""

    id: str
    name: str
    address: str
    port: int
    model: str
    brand: str
    volume: int
    is_fixed_volume: bool
    is_group: bool
    is_stereo_paired: bool
    channel_mode: str | None
    members: tuple[SelectorMember, ...] = field(default_factory=tuple)

    @property
    def member_count(self) -> int:
        return len(self.members) + 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "ipAddress": self.address,
            "port": self.port,
            "model": self.model,
            "brand": self.brand,
            "volume": self.volume,
            "isFixedVolume": self.is_fixed_volume,
            "isGroup": self.is_group,
            "isStereoPaired": self.is_stereo_paired,
            "channelMode": self.channel_mode,
            "memberCount": self.member_count,
            "members": [member.to_dict() for member in self.members],
        }
