"""Duel session record and resolution outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from knifefight.plugin.host import Player


class DuelOutcome(str, Enum):
    WIN = "win"
    DRAW = "draw"
    ABORTED = "aborted"


REASON_SURVIVOR = "survivor"
REASON_TIMEOUT = "timeout"
REASON_MUTUAL_ELIMINATION = "mutual_elimination"


@dataclass
class DuelSession:
    contender_a: Player
    contender_b: Player
    duration_seconds: int
    started_at: float
    music_playing: bool = False

    def contender_names(self) -> list[str]:
        return [self.contender_a.name, self.contender_b.name]

    def to_dict(self) -> dict[str, Any]:
        return {
            "contenders": self.contender_names(),
            "durationSeconds": self.duration_seconds,
            "startedAt": self.started_at,
            "musicPlaying": self.music_playing,
        }


@dataclass(frozen=True)
class DuelResult:
    outcome: DuelOutcome
    reason: str
    winner_name: str | None = None
    reward: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "reason": self.reason,
            "winner": self.winner_name,
            "reward": self.reward,
        }
