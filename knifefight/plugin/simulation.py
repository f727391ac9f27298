"""In-memory match host used by the sandbox API and the test suite."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
import itertools
from typing import Any, Callable

from knifefight.plugin.host import EVENT_PLAYER_DEATH, EventHandler, Team
from knifefight.plugin.models import NEUTRAL_ANGLES, ORIGIN, ZERO_VELOCITY, QAngle, Vector


@dataclass(eq=False)
class InMemoryWeapon:
    designer_name: str
    is_valid: bool = True

    def remove(self) -> None:
        self.is_valid = False


@dataclass
class InMemoryPawn:
    weapons: list[InMemoryWeapon] = field(default_factory=list)
    origin: Vector | None = ORIGIN
    eye_angles: QAngle | None = NEUTRAL_ANGLES
    velocity: Vector = ZERO_VELOCITY
    is_valid: bool = True
    active_weapon: str | None = None

    def remove_player_item(self, weapon: InMemoryWeapon) -> None:
        if weapon in self.weapons:
            self.weapons.remove(weapon)
        if self.active_weapon == weapon.designer_name:
            self.active_weapon = None

    def teleport(self, position: Vector, angles: QAngle, velocity: Vector) -> None:
        self.origin = position
        self.eye_angles = angles
        self.velocity = velocity

    def weapon_names(self) -> list[str]:
        return [weapon.designer_name for weapon in self.weapons if weapon.is_valid]


@dataclass(eq=False)
class InMemoryPlayer:
    player_id: int
    name: str
    team: int = Team.NONE
    money: int | None = 800
    pawn: InMemoryPawn | None = field(default_factory=InMemoryPawn)
    pawn_is_alive: bool = True
    is_valid: bool = True
    host: InMemoryHost | None = None

    def __post_init__(self) -> None:
        self.center_messages: list[str] = []
        self.sounds: list[str] = []
        self.stop_sound_calls = 0

    def give_named_item(self, name: str) -> None:
        if self.pawn is None:
            return
        self.pawn.weapons.append(InMemoryWeapon(designer_name=name))

    def select_item(self, name: str) -> None:
        if self.pawn is None:
            return
        if name in self.pawn.weapon_names():
            self.pawn.active_weapon = name

    def play_sound(self, sound: str) -> None:
        self.sounds.append(sound)

    def stop_sounds(self) -> None:
        self.stop_sound_calls += 1

    def print_to_center(self, text: str) -> None:
        self.center_messages.append(text)

    def kill(self) -> None:
        if not self.pawn_is_alive:
            return
        self.pawn_is_alive = False
        if self.host is not None:
            self.host.fire_event(EVENT_PLAYER_DEATH, {"userid": self.player_id})

    def commit_suicide(self) -> None:
        self.kill()

    def disconnect(self) -> None:
        self.is_valid = False
        self.pawn = None
        self.pawn_is_alive = False

    def to_dict(self) -> dict[str, Any]:
        pawn = self.pawn
        return {
            "id": self.player_id,
            "name": self.name,
            "team": int(self.team),
            "money": self.money,
            "alive": self.pawn_is_alive,
            "valid": self.is_valid,
            "weapons": pawn.weapon_names() if pawn is not None else [],
            "activeWeapon": pawn.active_weapon if pawn is not None else None,
            "position": pawn.origin.to_list() if pawn is not None and pawn.origin is not None else None,
        }


@dataclass(eq=False)
class ScheduledTimer:
    deadline: float
    callback: Callable[[], None]
    sequence: int
    fired: bool = False
    killed: bool = False

    def kill(self) -> None:
        self.killed = True


class FrameScheduler:
    """Manual clock with a next-frame queue and one-shot timers."""

    def __init__(self) -> None:
        self.now = 0.0
        self.frame = 0
        self._next_frame: list[Callable[[], None]] = []
        self._timers: list[ScheduledTimer] = []
        self._sequence = itertools.count()

    def next_frame(self, callback: Callable[[], None]) -> None:
        self._next_frame.append(callback)

    def add_timer(self, seconds: float, callback: Callable[[], None]) -> ScheduledTimer:
        timer = ScheduledTimer(deadline=self.now + seconds, callback=callback, sequence=next(self._sequence))
        self._timers = self.pending_timers
        self._timers.append(timer)
        return timer

    @property
    def pending_timers(self) -> list[ScheduledTimer]:
        return [timer for timer in self._timers if not timer.fired and not timer.killed]

    def run_frame(self) -> int:
        """Drain callbacks queued before this frame; return how many ran."""
        self.frame += 1
        callbacks, self._next_frame = self._next_frame, []
        for callback in callbacks:
            callback()
        return len(callbacks)

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [timer for timer in self.pending_timers if timer.deadline <= target]
            if not due:
                break
            timer = min(due, key=lambda item: (item.deadline, item.sequence))
            self.now = max(self.now, timer.deadline)
            timer.fired = True
            timer.callback()
        self._timers = self.pending_timers
        self.now = target
        self.run_frame()


class InMemoryHost:
    def __init__(self) -> None:
        self.scheduler = FrameScheduler()
        self.chat: list[str] = []
        self.map_name: str | None = None
        self._players: list[InMemoryPlayer] = []
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self._ids = itertools.count(1)

    def add_player(
        self,
        name: str,
        team: int,
        money: int | None = 800,
        weapons: list[str] | None = None,
        position: Vector | None = None,
    ) -> InMemoryPlayer:
        pawn = InMemoryPawn(
            weapons=[InMemoryWeapon(designer_name=weapon) for weapon in (weapons or [])],
            origin=position if position is not None else ORIGIN,
        )
        player = InMemoryPlayer(
            player_id=next(self._ids),
            name=name,
            team=team,
            money=money,
            pawn=pawn,
            host=self,
        )
        self._players.append(player)
        return player

    def find_player(self, player_id: int) -> InMemoryPlayer | None:
        for player in self._players:
            if player.player_id == player_id:
                return player
        return None

    def get_players(self) -> list[InMemoryPlayer]:
        return list(self._players)

    def print_to_chat_all(self, text: str) -> None:
        self.chat.append(text)

    def add_timer(self, seconds: float, callback: Callable[[], None]) -> ScheduledTimer:
        return self.scheduler.add_timer(seconds, callback)

    def next_frame(self, callback: Callable[[], None]) -> None:
        self.scheduler.next_frame(callback)

    def run_frame(self) -> int:
        return self.scheduler.run_frame()

    def advance(self, seconds: float) -> None:
        self.scheduler.advance(seconds)

    def register_event_handler(self, event: str, handler: EventHandler) -> None:
        self._handlers[event].append(handler)

    def unregister_event_handler(self, event: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event)
        if handlers is None:
            return
        if handler in handlers:
            handlers.remove(handler)
        if not handlers:
            self._handlers.pop(event, None)

    def handler_count(self, event: str) -> int:
        return len(self._handlers.get(event, []))

    def fire_event(self, event: str, payload: dict[str, Any] | None = None) -> None:
        for handler in list(self._handlers.get(event, [])):
            handler(dict(payload or {}))

    def respawn_all(self) -> None:
        for player in self._players:
            if player.is_valid and player.pawn is not None:
                player.pawn_is_alive = True
