from knifefight.plugin import messages
from knifefight.plugin.config import KnifeFightConfig
from knifefight.plugin.controller import EVENT_LOG_LIMIT, DuelController
from knifefight.plugin.host import (
    EVENT_MAP_START,
    EVENT_MATCH_START,
    EVENT_PLAYER_DEATH,
    EVENT_ROUND_END,
    EVENT_ROUND_START,
    Team,
)
from knifefight.plugin.models import Vector
from knifefight.plugin.session import DuelOutcome
from knifefight.plugin.simulation import InMemoryHost


def _setup(**overrides):
    host = InMemoryHost()
    controller = DuelController(
        host=host,
        config=KnifeFightConfig(**overrides),
        clock=lambda: host.scheduler.now,
    )
    controller.load()
    alice = host.add_player(
        "Alice",
        Team.COUNTER_TERRORIST,
        money=1000,
        weapons=["weapon_m4a1", "weapon_usp_silencer", "weapon_knife"],
        position=Vector(100.0, 200.0, 0.0),
    )
    bob = host.add_player(
        "Bob",
        Team.TERRORIST,
        money=500,
        weapons=["weapon_ak47", "weapon_glock"],
        position=Vector(-1500.0, 40.0, 16.0),
    )
    return host, controller, alice, bob


def _arm(host: InMemoryHost) -> None:
    host.fire_event(EVENT_ROUND_END, {})
    host.run_frame()


def _started_count(controller: DuelController) -> int:
    return sum(1 for event in controller.events if event["kind"] == "duel_started")


def test_round_end_with_one_player_per_side_arms_on_next_frame() -> None:
    host, controller, alice, bob = _setup()

    host.fire_event(EVENT_ROUND_END, {})

    assert controller.active is False

    host.run_frame()

    assert controller.active is True
    assert controller.session.contender_names() == ["Alice", "Bob"]
    assert controller.session.music_playing is True
    assert controller.timer_armed is True
    assert [timer.deadline for timer in host.scheduler.pending_timers] == [30.0]


def test_arming_prepares_loadouts_positions_and_announces_once() -> None:
    host, controller, alice, bob = _setup()

    _arm(host)

    assert alice.pawn.weapon_names() == ["weapon_knife"]
    assert bob.pawn.weapon_names() == ["weapon_knife"]
    assert alice.pawn.active_weapon == bob.pawn.active_weapon == "weapon_knife"
    assert alice.pawn.origin == Vector(100.0, 200.0, 0.0)
    assert bob.pawn.origin == Vector(400.0, 200.0, 0.0)
    assert (bob.pawn.origin - alice.pawn.origin).length() == 300.0
    assert host.chat == [
        *messages.last_two_lines("Alice", "Bob"),
        messages.music_line(),
        *messages.start_lines(30),
    ]
    assert alice.center_messages == [messages.start_prompt()]
    assert bob.center_messages == [messages.start_prompt()]
    assert alice.sounds == ["sounds/music/knife_fight.mp3"]


def test_non_qualifying_distributions_never_arm() -> None:
    host = InMemoryHost()
    controller = DuelController(host=host)
    controller.load()
    host.add_player("T1", Team.TERRORIST)
    host.add_player("T2", Team.TERRORIST)

    _arm(host)
    assert controller.active is False

    host.add_player("CT1", Team.COUNTER_TERRORIST)
    _arm(host)
    assert controller.active is False
    assert list(controller.events) == []
    assert host.chat == []


def test_spectators_and_dead_players_do_not_block_arming() -> None:
    host, controller, alice, bob = _setup()
    host.add_player("Watcher", Team.SPECTATOR)
    fallen = host.add_player("Fallen", Team.TERRORIST)
    fallen.pawn_is_alive = False

    _arm(host)

    assert controller.active is True


def test_threshold_other_than_two_never_arms_a_one_versus_one() -> None:
    host, controller, alice, bob = _setup(min_players_for_fight=3)

    _arm(host)

    assert controller.active is False


def test_repeated_round_end_arms_exactly_once() -> None:
    host, controller, alice, bob = _setup()

    host.fire_event(EVENT_ROUND_END, {})
    host.fire_event(EVENT_ROUND_END, {})
    host.run_frame()
    host.fire_event(EVENT_ROUND_END, {})
    host.run_frame()

    assert _started_count(controller) == 1
    assert len(host.scheduler.pending_timers) == 1


def test_contender_disconnecting_before_the_frame_cancels_arming() -> None:
    host, controller, alice, bob = _setup()

    host.fire_event(EVENT_ROUND_END, {})
    bob.disconnect()
    host.run_frame()

    assert controller.active is False
    assert host.scheduler.pending_timers == []


def test_death_leaving_one_survivor_resolves_with_reward() -> None:
    host, controller, alice, bob = _setup()
    _arm(host)
    chat_before = len(host.chat)

    bob.kill()

    assert controller.active is True

    host.run_frame()

    assert controller.active is False
    assert controller.timer_armed is False
    assert host.scheduler.pending_timers == []
    assert alice.money == 2000
    assert bob.money == 500
    assert controller.last_result.outcome is DuelOutcome.WIN
    assert controller.last_result.winner_name == "Alice"
    assert controller.last_result.reward == 1000
    assert host.chat[chat_before:] == messages.win_lines("Alice", 1000)
    assert alice.center_messages[-1] == messages.winner_prompt(1000)
    assert bob.center_messages[-1] == messages.spectator_prompt("Alice")
    assert alice.stop_sound_calls == 1
    assert alice.sounds[-1] == "sounds/music/victory.mp3"


def test_duplicate_death_events_in_one_tick_pay_once() -> None:
    host, controller, alice, bob = _setup()
    _arm(host)

    bob.pawn_is_alive = False
    host.fire_event(EVENT_PLAYER_DEATH, {"userid": bob.player_id})
    host.fire_event(EVENT_PLAYER_DEATH, {"userid": bob.player_id})
    host.run_frame()
    host.run_frame()

    assert alice.money == 2000
    assert host.chat.count(messages.win_lines("Alice", 1000)[0]) == 1
    assert sum(1 for event in controller.events if event["kind"] == "duel_resolved") == 1
    assert controller.resolve_win(alice) is None
    assert alice.money == 2000


def test_death_of_a_bystander_with_two_contenders_left_is_ignored() -> None:
    host, controller, alice, bob = _setup()
    _arm(host)
    bystander = host.add_player("Late", Team.TERRORIST)

    bystander.kill()
    host.run_frame()

    assert controller.active is True


def test_both_contenders_dying_in_one_tick_is_a_draw_without_reward() -> None:
    host, controller, alice, bob = _setup()
    _arm(host)

    bob.kill()
    alice.kill()
    host.run_frame()

    assert controller.active is False
    assert controller.last_result.outcome is DuelOutcome.DRAW
    assert controller.last_result.reason == "mutual_elimination"
    assert (alice.money, bob.money) == (1000, 500)
    assert host.chat[-1] == messages.mutual_elimination_line()
    assert host.scheduler.pending_timers == []


def test_deadline_resolves_as_draw_and_eliminates_remaining_players() -> None:
    host, controller, alice, bob = _setup()
    _arm(host)

    host.advance(29.9)
    assert controller.active is True

    host.advance(0.2)

    assert controller.active is False
    assert controller.last_result.outcome is DuelOutcome.DRAW
    assert controller.last_result.reason == "timeout"
    assert alice.pawn_is_alive is False
    assert bob.pawn_is_alive is False
    assert (alice.money, bob.money) == (1000, 500)
    assert messages.timeout_line() in host.chat
    assert "sounds/music/victory.mp3" not in alice.sounds
    assert sum(1 for event in controller.events if event["kind"] == "duel_resolved") == 1


def test_win_cancels_deadline_so_it_never_fires_later() -> None:
    host, controller, alice, bob = _setup()
    _arm(host)
    bob.kill()
    host.run_frame()

    host.advance(60)

    assert alice.pawn_is_alive is True
    assert controller.last_result.outcome is DuelOutcome.WIN


def test_round_start_aborts_and_stale_timer_fire_is_ignored() -> None:
    host, controller, alice, bob = _setup()
    _arm(host)
    handle = host.scheduler.pending_timers[0]

    host.fire_event(EVENT_ROUND_START, {})
    handle.callback()

    assert controller.active is False
    assert controller.last_result.outcome is DuelOutcome.ABORTED
    assert controller.last_result.reason == "round_start"
    assert alice.pawn_is_alive is True
    assert messages.timeout_line() not in host.chat
    assert alice.stop_sound_calls == 1


def test_reset_drops_pending_arming() -> None:
    host, controller, alice, bob = _setup()

    host.fire_event(EVENT_ROUND_END, {})
    host.fire_event(EVENT_MATCH_START, {})
    host.run_frame()

    assert controller.active is False
    assert list(controller.events) == []


def test_map_start_resets_and_fresh_round_arms_new_pair() -> None:
    host, controller, alice, bob = _setup()
    _arm(host)
    bob.kill()
    host.run_frame()

    host.fire_event(EVENT_MAP_START, {"map_name": "de_dust2"})
    alice.disconnect()
    bob.disconnect()
    carol = host.add_player("Carol", Team.COUNTER_TERRORIST, money=0)
    dave = host.add_player("Dave", Team.TERRORIST, money=0)
    _arm(host)

    assert controller.session.contender_names() == ["Carol", "Dave"]

    carol.kill()
    host.run_frame()

    assert dave.money == 1000
    assert carol.money == 0
    assert alice.money == 2000
    assert controller.last_result.winner_name == "Dave"


def test_winner_without_money_services_gets_no_credit() -> None:
    host, controller, alice, bob = _setup()
    alice.money = None
    _arm(host)

    bob.kill()
    host.run_frame()

    assert alice.money is None
    assert controller.last_result.outcome is DuelOutcome.WIN
    assert controller.last_result.reward == 0


def test_disabled_features_skip_music_teleport_and_announcements() -> None:
    host, controller, alice, bob = _setup(enable_music=False, enable_teleport=False, announce_messages=False)

    _arm(host)

    assert controller.active is True
    assert host.chat == []
    assert alice.sounds == []
    assert alice.center_messages == []
    assert bob.pawn.origin == Vector(-1500.0, 40.0, 16.0)
    assert bob.pawn.weapon_names() == ["weapon_knife"]


def test_custom_duration_reward_and_offset() -> None:
    host, controller, alice, bob = _setup(knife_fight_duration=10, reward_money=250, teleport_offset=(0.0, -128.0, 0.0))
    _arm(host)

    assert bob.pawn.origin == Vector(100.0, 72.0, 0.0)

    host.advance(10)

    assert controller.last_result.reason == "timeout"
    assert alice.money == 1000


def test_unload_aborts_and_unregisters_handlers() -> None:
    host, controller, alice, bob = _setup()
    _arm(host)

    controller.unload()

    assert controller.active is False
    assert controller.last_result.reason == "unload"
    assert alice.stop_sound_calls == 1
    assert host.handler_count(EVENT_ROUND_END) == 0
    assert host.handler_count(EVENT_PLAYER_DEATH) == 0

    _arm(host)

    assert controller.active is False


def test_snapshot_reports_session_and_last_result() -> None:
    host, controller, alice, bob = _setup()
    idle = controller.snapshot()

    _arm(host)
    active = controller.snapshot()

    assert idle["active"] is False
    assert idle["session"] is None
    assert active["active"] is True
    assert active["timerArmed"] is True
    assert active["session"]["contenders"] == ["Alice", "Bob"]
    assert active["config"]["KnifeFightDuration"] == 30


def test_event_log_keeps_only_the_most_recent_entries() -> None:
    host, controller, alice, bob = _setup()

    for _ in range(EVENT_LOG_LIMIT):
        _arm(host)
        host.fire_event(EVENT_ROUND_START, {})

    assert len(controller.events) == EVENT_LOG_LIMIT
    assert controller.events[-1]["kind"] == "duel_aborted"
    assert len(controller.snapshot()["events"]) == EVENT_LOG_LIMIT
