"""Collaborator interfaces the duel core consumes from its match host."""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Callable, Protocol

from knifefight.plugin.models import QAngle, Vector


class Team(IntEnum):
    NONE = 0
    SPECTATOR = 1
    TERRORIST = 2
    COUNTER_TERRORIST = 3


PLAYING_TEAMS = (Team.TERRORIST, Team.COUNTER_TERRORIST)

EVENT_ROUND_START = "round_start"
EVENT_MATCH_START = "round_announce_match_start"
EVENT_ROUND_END = "round_end"
EVENT_PLAYER_DEATH = "player_death"
EVENT_MAP_START = "map_start"

EventHandler = Callable[[dict[str, Any]], None]


class Weapon(Protocol):
    @property
    def is_valid(self) -> bool:
        """False once the item entity has been destroyed."""

    @property
    def designer_name(self) -> str:
        """Host class name of the item, e.g. ``weapon_ak47``."""

    def remove(self) -> None:
        """Destroy the item entity."""


class Pawn(Protocol):
    @property
    def is_valid(self) -> bool:
        """False while the player is not embodied."""

    @property
    def weapons(self) -> list[Weapon]:
        """Items currently held by the pawn."""

    @property
    def origin(self) -> Vector | None:
        """Absolute world position, when known."""

    @property
    def eye_angles(self) -> QAngle | None:
        """Current facing, when known."""

    def remove_player_item(self, weapon: Weapon) -> None:
        """Detach a held item from the pawn."""

    def teleport(self, position: Vector, angles: QAngle, velocity: Vector) -> None:
        """Move the pawn and overwrite its facing and velocity."""


class Player(Protocol):
    money: int | None

    @property
    def is_valid(self) -> bool:
        """False once the player has disconnected."""

    @property
    def name(self) -> str:
        """Display name."""

    @property
    def team(self) -> int:
        """Team number, see ``Team``."""

    @property
    def pawn(self) -> Pawn | None:
        """Controlled body, or None when not embodied."""

    @property
    def pawn_is_alive(self) -> bool:
        """Whether the controlled body is alive."""

    def give_named_item(self, name: str) -> None:
        """Grant an item by designer name."""

    def select_item(self, name: str) -> None:
        """Make a held item the active selection."""

    def play_sound(self, sound: str) -> None:
        """Start a named audio cue on the player's client."""

    def stop_sounds(self) -> None:
        """Stop every audio cue on the player's client."""

    def print_to_center(self, text: str) -> None:
        """Show a short center-screen prompt."""

    def commit_suicide(self) -> None:
        """Force-eliminate the player."""


class TimerHandle(Protocol):
    def kill(self) -> None:
        """Cancel the pending callback."""


class Host(Protocol):
    def get_players(self) -> list[Player]:
        """Return every known player in host enumeration order."""

    def print_to_chat_all(self, text: str) -> None:
        """Send a chat line to everybody."""

    def add_timer(self, seconds: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` once after ``seconds``."""

    def next_frame(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` at the start of the next processing tick."""

    def register_event_handler(self, event: str, handler: EventHandler) -> None:
        """Subscribe ``handler`` to a host event."""

    def unregister_event_handler(self, event: str, handler: EventHandler) -> None:
        """Remove a previously registered handler."""
