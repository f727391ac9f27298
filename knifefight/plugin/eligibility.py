"""Selection of players that are still in play."""

from __future__ import annotations

from typing import Iterable

from knifefight.plugin.host import PLAYING_TEAMS, Player, Team


def is_active(player: Player | None) -> bool:
    if player is None or not player.is_valid:
        return False
    pawn = player.pawn
    if pawn is None or not pawn.is_valid:
        return False
    return bool(player.pawn_is_alive) and player.team in PLAYING_TEAMS


def select_active(players: Iterable[Player | None]) -> list[Player]:
    """Return valid, alive players on a playing team in host order."""
    return [player for player in players if is_active(player)]


def split_by_team(players: Iterable[Player]) -> dict[Team, list[Player]]:
    sides: dict[Team, list[Player]] = {team: [] for team in PLAYING_TEAMS}
    for player in players:
        if player.team in PLAYING_TEAMS:
            sides[Team(player.team)].append(player)
    return sides
