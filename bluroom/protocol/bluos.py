"""
BluOS status payload decoding.

BluOS devices answer plain HTTP GETs with small XML documents:

    GET /SyncStatus  ->  <SyncStatus id=".." name=".." volume=".." ...>
                             <master port="11000">192.168.1.10</master>   (slave)
                             <slave id="192.168.1.11" port="11000"/>       (master)
                         </SyncStatus>
    GET /Status      ->  <status><state>play</state><title1>..</title1>...</status>

This module turns those documents into `Player` / `PlaybackStatus` records.
It does no I/O. Optional fields may be missing (absence is not an error);
only a missing or wrong root element raises `DecodeError`.

Conventions worth knowing:
- ``volume="-1"`` means fixed volume (controlled by an external amplifier).
  It decodes to ``is_fixed_volume=True`` and ``volume=0``.
- A ``channelMode`` attribute marks a stereo pair. The silent half of a pair
  reports ``pairSlaveOnly="true"`` or ``managedZoneSlave="true"``; a model
  name of "Stereo Pair" is the controlling (primary) half, not the secondary.
"""

from __future__ import annotations

import logging
from xml.etree import ElementTree

from bluroom.errors import DecodeError
from bluroom.player.models import (
    DEFAULT_DEVICE_PORT,
    PlaybackState,
    PlaybackStatus,
    Player,
)

logger = logging.getLogger(__name__)

SYNC_STATUS_ROOT = "SyncStatus"
PLAYBACK_STATUS_ROOT = "status"

DEFAULT_BRAND = "Bluesound"


def _parse_root(xml: str | bytes, expected: str) -> ElementTree.Element:
    if not xml:
        raise DecodeError(f"Empty payload (expected <{expected}>)")
    try:
        root = ElementTree.fromstring(xml)
    except ElementTree.ParseError as e:
        raise DecodeError(f"Malformed XML (expected <{expected}>): {e}") from e
    if root.tag != expected:
        raise DecodeError(f"Unexpected root element <{root.tag}> (expected <{expected}>)")
    return root


def _text(root: ElementTree.Element, tag: str) -> str | None:
    """Stripped text of a child element, or None when missing/empty."""
    el = root.find(tag)
    if el is None or el.text is None:
        return None
    value = el.text.strip()
    return value or None


def _int_maybe(value: str | None) -> int | None:
    """Parse ints leniently ("245", "245.7" -> 245); garbage or non-finite -> None."""
    if value is None:
        return None
    try:
        return int(float(value.strip()))
    except (ValueError, OverflowError):
        return None


def _port(value: str | None) -> int:
    port = _int_maybe(value)
    return port if port and port > 0 else DEFAULT_DEVICE_PORT


def _is_true(value: str | None) -> bool:
    return value is not None and value.strip().lower() == "true"


def decode_sync_status(xml: str | bytes, address: str, port: int = DEFAULT_DEVICE_PORT) -> Player:
    """
    Decode a ``/SyncStatus`` document into a `Player`.

    Args:
        xml: Raw response body.
        address: Address the payload was fetched from.
        port: Port the payload was fetched from.

    Returns:
        A new `Player` snapshot.

    Raises:
        DecodeError: The payload is not XML or has no ``<SyncStatus>`` root.
    """
    root = _parse_root(xml, SYNC_STATUS_ROOT)
    attrs = root.attrib

    hardware_address = (attrs.get("mac") or "").strip()
    player_id = hardware_address or (attrs.get("id") or "").strip() or f"{address}:{port}"

    raw_volume = _int_maybe(attrs.get("volume"))
    if raw_volume is None:
        raw_volume = 0
    is_fixed_volume = raw_volume < 0
    volume = 0 if is_fixed_volume else min(raw_volume, 100)

    master_address: str | None = None
    master_el = root.find("master")
    if master_el is not None and master_el.text and master_el.text.strip():
        master_address = f"{master_el.text.strip()}:{_port(master_el.get('port'))}"

    slave_addresses: list[str] = []
    for slave_el in root.findall("slave"):
        slave_host = (slave_el.get("id") or "").strip()
        if slave_host:
            slave_addresses.append(f"{slave_host}:{_port(slave_el.get('port'))}")

    is_master = bool(slave_addresses)
    if is_master and master_address:
        logger.warning(
            "Device %s reports both slaves and a master (%s); treating it as master",
            address,
            master_address,
        )
        master_address = None

    channel_mode = (attrs.get("channelMode") or "").strip() or None
    is_secondary = _is_true(attrs.get("pairSlaveOnly")) or _is_true(attrs.get("managedZoneSlave"))

    player = Player(
        id=player_id,
        address=address,
        port=port,
        name=attrs.get("name") or "Unknown",
        model_name=attrs.get("modelName") or "",
        model=attrs.get("model") or "",
        brand=attrs.get("brand") or DEFAULT_BRAND,
        hardware_address=hardware_address,
        volume=volume,
        is_fixed_volume=is_fixed_volume,
        is_grouped=is_master or master_address is not None,
        is_master=is_master,
        group_name=attrs.get("group") or None,
        master_address=master_address,
        slave_addresses=tuple(slave_addresses),
        is_stereo_paired=channel_mode is not None,
        channel_mode=channel_mode,
        is_secondary_stereo_pair_speaker=is_secondary,
    )

    logger.debug(
        "Decoded player %s at %s (master=%s grouped=%s master_ip=%s slaves=%d stereo=%s secondary=%s)",
        player.name,
        address,
        player.is_master,
        player.is_grouped,
        player.master_address,
        len(player.slave_addresses),
        player.is_stereo_paired,
        player.is_secondary_stereo_pair_speaker,
    )
    return player


def decode_playback_status(
    xml: str | bytes,
    address: str | None = None,
    port: int = DEFAULT_DEVICE_PORT,
) -> PlaybackStatus:
    """
    Decode a ``/Status`` document into a `PlaybackStatus`.

    Relative image paths (``/Artwork?...``) are made absolute against the
    device when `address` is given. A reported position past the reported
    length is clamped to the length.

    Raises:
        DecodeError: The payload is not XML or has no ``<status>`` root.
    """
    root = _parse_root(xml, PLAYBACK_STATUS_ROOT)

    image_url = _text(root, "image")
    if image_url and image_url.startswith("/") and address:
        image_url = f"http://{address}:{port}{image_url}"

    total_seconds = _int_maybe(_text(root, "totlen"))
    current_seconds = _int_maybe(_text(root, "secs"))
    if total_seconds is not None and current_seconds is not None and current_seconds > total_seconds:
        current_seconds = total_seconds

    return PlaybackStatus(
        state=PlaybackState.from_wire(_text(root, "state")),
        title=_text(root, "title1"),
        artist=_text(root, "title2"),
        album=_text(root, "title3"),
        image_url=image_url,
        service_name=_text(root, "service"),
        stream_url=_text(root, "streamUrl"),
        current_seconds=current_seconds,
        total_seconds=total_seconds,
    )
