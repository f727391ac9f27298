"""Duel state machine driven by host round and death events."""

from __future__ import annotations

from collections import deque
import logging
import time
from typing import Any, Callable

from knifefight.plugin import messages
from knifefight.plugin.config import KnifeFightConfig
from knifefight.plugin.eligibility import is_active, select_active, split_by_team
from knifefight.plugin.host import (
    EVENT_MAP_START,
    EVENT_MATCH_START,
    EVENT_PLAYER_DEATH,
    EVENT_ROUND_END,
    EVENT_ROUND_START,
    PLAYING_TEAMS,
    EventHandler,
    Host,
    Player,
    Team,
)
from knifefight.plugin.loadout import prepare_for_duel
from knifefight.plugin.positioner import place_near
from knifefight.plugin.session import (
    REASON_MUTUAL_ELIMINATION,
    REASON_SURVIVOR,
    REASON_TIMEOUT,
    DuelOutcome,
    DuelResult,
    DuelSession,
)
from knifefight.plugin.timer import DuelTimer

logger = logging.getLogger(__name__)

EVENT_LOG_LIMIT = 50


class DuelController:
    """Owns the single duel session and its transitions.

    Host callbacks only decide whether something should happen; the state
    mutation itself runs from a single-slot deferred action drained on the
    host's next frame.
    """

    def __init__(
        self,
        host: Host,
        config: KnifeFightConfig | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.host = host
        self.config = config if config is not None else KnifeFightConfig()
        self.session: DuelSession | None = None
        self.last_result: DuelResult | None = None
        self.events: deque[dict[str, Any]] = deque(maxlen=EVENT_LOG_LIMIT)
        self._timer = DuelTimer(host)
        self._clock = clock
        self._deferred: Callable[[], None] | None = None
        self._handlers: dict[str, EventHandler] = {}

    @property
    def active(self) -> bool:
        return self.session is not None

    @property
    def timer_armed(self) -> bool:
        return self._timer.armed

    # ------------------------------------------------------------ lifecycle
    def load(self, hot_reload: bool = False) -> None:
        self._handlers = {
            EVENT_ROUND_END: self.on_round_end,
            EVENT_PLAYER_DEATH: self.on_player_death,
            EVENT_ROUND_START: self.on_round_start,
            EVENT_MATCH_START: self.on_match_start,
            EVENT_MAP_START: self.on_map_start,
        }
        for event, handler in self._handlers.items():
            self.host.register_event_handler(event, handler)
        logger.info("Knife fight plugin loaded (hot_reload=%s)", hot_reload)

    def unload(self, hot_reload: bool = False) -> None:
        self.reset(reason="unload")
        for event, handler in self._handlers.items():
            self.host.unregister_event_handler(event, handler)
        self._handlers = {}
        logger.info("Knife fight plugin unloaded (hot_reload=%s)", hot_reload)

    def update_config(self, config: KnifeFightConfig) -> None:
        self.config = config

    # --------------------------------------------------------- host events
    def on_round_start(self, payload: dict[str, Any]) -> None:
        self.reset(reason="round_start")

    def on_match_start(self, payload: dict[str, Any]) -> None:
        self.reset(reason="match_start")

    def on_map_start(self, payload: dict[str, Any]) -> None:
        self.reset(reason="map_start")
        logger.info("Map started: %s", payload.get("map_name"))

    def on_round_end(self, payload: dict[str, Any]) -> None:
        if self.active:
            return
        pair = self._qualifying_pair()
        if pair is None:
            return
        first, second = pair
        self._defer(lambda: self.start(first, second))

    def on_player_death(self, payload: dict[str, Any]) -> None:
        if not self.active:
            return
        if len(select_active(self.host.get_players())) <= 1:
            self._defer(self._resolve_after_death)

    # --------------------------------------------------------- transitions
    def start(self, first: Player, second: Player) -> bool:
        if self.active:
            return False
        if not is_active(first) or not is_active(second):
            logger.debug("Skipping duel start: contender no longer in play")
            return False

        config = self.config
        self.session = DuelSession(
            contender_a=first,
            contender_b=second,
            duration_seconds=config.knife_fight_duration,
            started_at=self._clock(),
        )

        if config.announce_messages:
            for line in messages.last_two_lines(first.name, second.name):
                self.host.print_to_chat_all(line)

        if config.enable_music:
            self._play_music()

        prepare_for_duel(first, config.melee_item, config.melee_markers)
        prepare_for_duel(second, config.melee_item, config.melee_markers)

        if config.enable_teleport:
            place_near(first, second, config.offset_vector())

        self._timer.arm(config.knife_fight_duration, self._on_deadline)
        self._announce_start()

        self.events.append({"kind": "duel_started", "contenders": [first.name, second.name]})
        logger.info("Knife fight started: %s vs %s", first.name, second.name)
        return True

    def resolve_win(self, winner: Player) -> DuelResult | None:
        session = self.session
        if session is None:
            return None
        if winner is None or not winner.is_valid:
            logger.debug("Skipping duel win: survivor no longer valid")
            return None

        self.session = None
        self._timer.cancel()
        self._stop_music(session)
        self._play_victory_sound()

        reward = self.config.reward_money
        if winner.money is not None:
            winner.money += reward
        else:
            reward = 0

        if self.config.announce_messages:
            for line in messages.win_lines(winner.name, self.config.reward_money):
                self.host.print_to_chat_all(line)

        for player in self.host.get_players():
            if player is None or not player.is_valid:
                continue
            if player is winner:
                player.print_to_center(messages.winner_prompt(self.config.reward_money))
            else:
                player.print_to_center(messages.spectator_prompt(winner.name))

        result = DuelResult(
            outcome=DuelOutcome.WIN,
            reason=REASON_SURVIVOR,
            winner_name=winner.name,
            reward=reward,
        )
        self._finish(result)
        return result

    def resolve_timeout(self) -> DuelResult | None:
        session = self.session
        if session is None:
            return None

        self.session = None
        self._timer.cancel()
        self._stop_music(session)

        if self.config.announce_messages:
            self.host.print_to_chat_all(messages.timeout_line())

        # Suicides below fire death events; the cleared session makes them no-ops.
        for player in select_active(self.host.get_players()):
            player.commit_suicide()

        result = DuelResult(outcome=DuelOutcome.DRAW, reason=REASON_TIMEOUT)
        self._finish(result)
        return result

    def resolve_mutual_elimination(self) -> DuelResult | None:
        session = self.session
        if session is None:
            return None
        if select_active(self.host.get_players()):
            return None

        self.session = None
        self._timer.cancel()
        self._stop_music(session)

        if self.config.announce_messages:
            self.host.print_to_chat_all(messages.mutual_elimination_line())

        result = DuelResult(outcome=DuelOutcome.DRAW, reason=REASON_MUTUAL_ELIMINATION)
        self._finish(result)
        return result

    def reset(self, reason: str = "round_start") -> None:
        """Abort any duel and return to idle, whatever the current state."""
        session = self.session
        self._timer.cancel()
        self._deferred = None
        self.session = None
        if session is None:
            return
        self._stop_music(session)
        result = DuelResult(outcome=DuelOutcome.ABORTED, reason=reason)
        self.last_result = result
        self.events.append({"kind": "duel_aborted", **result.to_dict()})
        logger.info("Knife fight aborted: %s", reason)

    # ------------------------------------------------------------ snapshot
    def snapshot(self) -> dict[str, Any]:
        return {
            "active": self.active,
            "timerArmed": self._timer.armed,
            "session": self.session.to_dict() if self.session is not None else None,
            "lastResult": self.last_result.to_dict() if self.last_result is not None else None,
            "events": list(self.events),
            "config": self.config.to_json_dict(),
        }

    # ------------------------------------------------------------- helpers
    def _qualifying_pair(self) -> tuple[Player, Player] | None:
        active_players = select_active(self.host.get_players())
        if len(active_players) != self.config.min_players_for_fight:
            return None
        sides = split_by_team(active_players)
        if any(len(sides[team]) != 1 for team in PLAYING_TEAMS):
            return None
        return sides[Team.COUNTER_TERRORIST][0], sides[Team.TERRORIST][0]

    def _defer(self, action: Callable[[], None]) -> None:
        if self._deferred is not None:
            logger.debug("Dropping deferred duel action: one is already queued this frame")
            return
        self._deferred = action
        self.host.next_frame(self._drain_deferred)

    def _drain_deferred(self) -> None:
        action = self._deferred
        self._deferred = None
        if action is not None:
            action()

    def _resolve_after_death(self) -> None:
        # Recount on drain: more deaths may have landed in the same tick.
        remaining = select_active(self.host.get_players())
        if len(remaining) == 1:
            self.resolve_win(remaining[0])
        elif not remaining:
            self.resolve_mutual_elimination()

    def _on_deadline(self) -> None:
        if self.active:
            self.resolve_timeout()

    def _finish(self, result: DuelResult) -> None:
        self.last_result = result
        self.events.append({"kind": "duel_resolved", **result.to_dict()})
        logger.info("Knife fight resolved: %s (%s) winner=%s", result.outcome.value, result.reason, result.winner_name)

    def _valid_players(self) -> list[Player]:
        return [player for player in self.host.get_players() if player is not None and player.is_valid]

    def _play_music(self) -> None:
        session = self.session
        if session is None or session.music_playing:
            return
        session.music_playing = True
        for player in self._valid_players():
            player.play_sound(self.config.music_sound)
        if self.config.announce_messages:
            self.host.print_to_chat_all(messages.music_line())

    def _stop_music(self, session: DuelSession) -> None:
        if not session.music_playing:
            return
        session.music_playing = False
        for player in self._valid_players():
            player.stop_sounds()

    def _play_victory_sound(self) -> None:
        if not self.config.enable_music:
            return
        for player in self._valid_players():
            player.play_sound(self.config.victory_sound)

    def _announce_start(self) -> None:
        if not self.config.announce_messages:
            return
        for line in messages.start_lines(self.config.knife_fight_duration):
            self.host.print_to_chat_all(line)
        for player in self._valid_players():
            player.print_to_center(messages.start_prompt())
