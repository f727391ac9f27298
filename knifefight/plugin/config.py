"""Configuration helpers for the knife fight plugin."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from knifefight.plugin.models import Vector

logger = logging.getLogger(__name__)


class KnifeFightConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    knife_fight_duration: int = Field(default=30, gt=0, alias="KnifeFightDuration")
    enable_music: bool = Field(default=True, alias="EnableMusic")
    reward_money: int = Field(default=1000, ge=0, alias="RewardMoney")
    min_players_for_fight: int = Field(default=2, ge=2, alias="MinPlayersForFight")
    enable_teleport: bool = Field(default=True, alias="EnableTeleport")
    announce_messages: bool = Field(default=True, alias="AnnounceMessages")
    music_sound: str = Field(default="sounds/music/knife_fight.mp3", alias="MusicSound")
    victory_sound: str = Field(default="sounds/music/victory.mp3", alias="VictorySound")
    teleport_offset: tuple[float, float, float] = Field(default=(300.0, 0.0, 0.0), alias="TeleportOffset")
    melee_item: str = Field(default="weapon_knife", min_length=1, alias="MeleeItem")
    melee_markers: tuple[Annotated[str, Field(min_length=1)], ...] = Field(
        default=("knife", "bayonet"), min_length=1, alias="MeleeMarkers"
    )

    def offset_vector(self) -> Vector:
        x, y, z = self.teleport_offset
        return Vector(x, y, z)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def save_config(config: KnifeFightConfig, path: Path) -> bool:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(config.to_json_dict(), indent=2), encoding="utf-8")
    except OSError as exc:
        logger.error("Error saving config %s: %s", path, exc)
        return False
    return True


def load_config(path: Path) -> KnifeFightConfig:
    """Read the plugin config, falling back to defaults on any problem.

    A missing file is created with the defaults so it can be edited.
    """
    if not path.exists():
        config = KnifeFightConfig()
        save_config(config, path)
        logger.warning("Config file created at %s, please edit it", path)
        return config

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        config = KnifeFightConfig.model_validate(raw)
    except (OSError, ValueError, ValidationError) as exc:
        logger.error("Error loading config %s: %s", path, exc)
        return KnifeFightConfig()

    logger.info(
        "Config loaded: duration=%ss, reward=$%s",
        config.knife_fight_duration,
        config.reward_money,
    )
    return config


@dataclass(frozen=True)
class PluginSettings:
    config_path: Path | None
    host: str
    port: int
    log_level: str


def load_settings() -> PluginSettings:
    port_raw = os.getenv("KNIFEFIGHT_PORT", "8000")
    config_raw = os.getenv("KNIFEFIGHT_CONFIG_PATH")
    return PluginSettings(
        config_path=Path(config_raw) if config_raw else None,
        host=os.getenv("KNIFEFIGHT_HOST", "127.0.0.1"),
        port=int(port_raw),
        log_level=os.getenv("KNIFEFIGHT_LOG_LEVEL", "INFO").upper(),
    )
