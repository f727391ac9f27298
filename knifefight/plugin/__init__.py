"""Knife fight duel plugin for round-based match hosts."""

from .config import KnifeFightConfig, PluginSettings, load_config, load_settings, save_config
from .controller import DuelController
from .eligibility import select_active, split_by_team
from .loadout import prepare_for_duel
from .positioner import place_near
from .session import DuelOutcome, DuelResult, DuelSession
from .simulation import InMemoryHost
from .timer import DuelTimer

__all__ = [
    "DuelController",
    "DuelOutcome",
    "DuelResult",
    "DuelSession",
    "DuelTimer",
    "InMemoryHost",
    "KnifeFightConfig",
    "load_config",
    "load_settings",
    "place_near",
    "PluginSettings",
    "prepare_for_duel",
    "save_config",
    "select_active",
    "split_by_team",
]
