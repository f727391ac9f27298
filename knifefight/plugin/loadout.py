"""Strip a contender down to a single melee weapon."""

from __future__ import annotations

import logging
from typing import Sequence

from knifefight.plugin.host import Player

logger = logging.getLogger(__name__)

DEFAULT_MELEE_ITEM = "weapon_knife"
DEFAULT_MELEE_MARKERS = ("knife", "bayonet")


def is_melee(designer_name: str, markers: Sequence[str] = DEFAULT_MELEE_MARKERS) -> bool:
    lowered = designer_name.lower()
    return any(marker.lower() in lowered for marker in markers)


def strip_weapons(player: Player, markers: Sequence[str] = DEFAULT_MELEE_MARKERS) -> list[str]:
    """Detach and destroy every non-melee item; return the removed names."""
    pawn = player.pawn
    if pawn is None or not pawn.is_valid:
        return []

    removed: list[str] = []
    for weapon in list(pawn.weapons):
        if weapon is None or not weapon.is_valid:
            continue
        if is_melee(weapon.designer_name, markers):
            continue
        name = weapon.designer_name
        pawn.remove_player_item(weapon)
        weapon.remove()
        removed.append(name)
    return removed


def prepare_for_duel(
    player: Player | None,
    melee_item: str = DEFAULT_MELEE_ITEM,
    markers: Sequence[str] = DEFAULT_MELEE_MARKERS,
) -> bool:
    """Leave the player holding exactly one selected melee item.

    Returns False without touching anything when the player is not embodied.
    ``melee_item`` is kept when already held, otherwise the first held melee
    item is; any further melee items are destroyed. ``melee_item`` is granted
    only when nothing melee remains.
    """
    if player is None or not player.is_valid:
        return False
    pawn = player.pawn
    if pawn is None or not pawn.is_valid:
        logger.debug("Skipping loadout for %s: no pawn", player.name)
        return False

    removed = strip_weapons(player, markers)
    melee = [
        weapon
        for weapon in pawn.weapons
        if weapon is not None and weapon.is_valid and is_melee(weapon.designer_name, markers)
    ]
    if melee:
        kept = next((weapon for weapon in melee if weapon.designer_name == melee_item), melee[0])
        for weapon in melee:
            if weapon is kept:
                continue
            removed.append(weapon.designer_name)
            pawn.remove_player_item(weapon)
            weapon.remove()
        selected = kept.designer_name
    else:
        player.give_named_item(melee_item)
        selected = melee_item
    player.select_item(selected)
    logger.debug("Prepared %s: removed %s, selected %s", player.name, removed, selected)
    return True
