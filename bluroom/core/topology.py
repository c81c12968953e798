"""
Topology resolution: flat player list -> rooms.

Devices describe their grouping from their own point of view, and the two
sides do not always agree: a master lists its slaves, a slave names its
master. Both signals are checked here. A player found through either one is
claimed exactly once (first match wins), so every visible player ends up in
exactly one group.

Resolution order:
1. Secondary stereo-pair speakers are claimed up front and never shown.
2. Each grouped master (in input order) starts a multi-room group. Members
   come from the master's slave list, then from unclaimed players whose
   master pointer names this master. A master already claimed as somebody
   else's member does not start its own group.
3. Unclaimed, ungrouped players become single rooms (or stereo pairs).
4. Whatever is still unclaimed (e.g. a slave whose master is offline) is
   shown as its own room as well.

Output is sorted by group type (single, stereo pair, multi-room), then by
name using plain ordinal string comparison, then by id.
"""

from __future__ import annotations

import logging
from typing import Iterable

from bluroom.player.models import (
    Group,
    GroupType,
    Player,
    SelectorItem,
    SelectorMember,
    host_of,
)

logger = logging.getLogger(__name__)

STEREO_PAIR_MODEL = "Stereo Pair"


def _single_group(player: Player) -> Group:
    group_type = GroupType.STEREO_PAIR if player.is_stereo_paired else GroupType.SINGLE
    return Group(id=player.id, name=player.name, type=group_type, master=player)


def group_sort_key(group: Group) -> tuple[int, str, str]:
    return (group.type.sort_order, group.name, group.id)


def organize_into_groups(players: Iterable[Player]) -> list[Group]:
    """
    Resolve players into rooms.

    Args:
        players: Current player snapshots. Duplicate ids are collapsed
            (the first occurrence wins).

    Returns:
        Groups, sorted by type then name.
    """
    all_players = list(players)
    claimed: set[str] = set()
    visible: list[Player] = []
    seen_ids: set[str] = set()

    for player in all_players:
        if player.is_secondary_stereo_pair_speaker:
            claimed.add(player.id)
            continue
        if player.id in seen_ids:
            continue
        seen_ids.add(player.id)
        visible.append(player)

    logger.debug("Visible players: %d, total players: %d", len(visible), len(all_players))

    # A secondary never hides a visible player that shares its id.
    claimed.difference_update(seen_ids)

    groups: list[Group] = []

    for master in visible:
        if not (master.is_master and master.is_grouped) or master.id in claimed:
            continue

        members: list[Player] = []

        # Method 1: the master's own slave list
        for slave_address in master.slave_addresses:
            slave_host = host_of(slave_address)
            slave = next(
                (
                    p
                    for p in visible
                    if p.host_key == slave_host and p.id != master.id and p.id not in claimed
                ),
                None,
            )
            if slave is not None:
                members.append(slave)
                claimed.add(slave.id)
                logger.debug("Found slave via slave list: %s", slave.name)

        # Method 2: players pointing back at this master
        for candidate in visible:
            if (
                candidate.id in claimed
                or candidate.id == master.id
                or candidate.is_master
                or not candidate.is_grouped
                or not candidate.master_address
            ):
                continue
            if host_of(candidate.master_address) == master.host_key:
                members.append(candidate)
                claimed.add(candidate.id)
                logger.debug("Found slave via master pointer: %s", candidate.name)

        claimed.add(master.id)
        groups.append(
            Group(
                id=master.id,
                name=master.name,
                type=GroupType.MULTI_ROOM,
                master=master,
                members=tuple(members),
            )
        )
        logger.debug("Created group '%s' with %d members", master.name, len(members))

    for player in visible:
        if player.id not in claimed and not player.is_grouped:
            groups.append(_single_group(player))
            claimed.add(player.id)

    for player in visible:
        if player.id not in claimed:
            logger.debug("Player %s is grouped but no master claimed it", player.name)
            groups.append(_single_group(player))
            claimed.add(player.id)

    groups.sort(key=group_sort_key)
    return groups


def selector_items(groups: Iterable[Group]) -> list[SelectorItem]:
    """
    Compact one-entry-per-room view for the player picker.

    Multi-room groups come first, then everything else; each block by name.
    """
    items: list[SelectorItem] = []
    for group in groups:
        master = group.master
        is_group = group.type is GroupType.MULTI_ROOM
        items.append(
            SelectorItem(
                id=master.id,
                name=master.name,
                address=master.address,
                port=master.port,
                model=STEREO_PAIR_MODEL if master.is_stereo_paired else master.model_name,
                brand=master.brand,
                volume=master.volume,
                is_fixed_volume=master.is_fixed_volume,
                is_group=is_group,
                is_stereo_paired=master.is_stereo_paired,
                channel_mode=master.channel_mode,
                members=tuple(SelectorMember.from_player(m) for m in group.members),
            )
        )

    items.sort(key=lambda item: (not item.is_group, item.name, item.id))
    return items
