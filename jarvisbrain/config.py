"""
Jarvisbrain Configuration

Loads configuration from environment variables with sensible defaults, and
defines ``BrainConfig``: every tunable of the planner, memory and idle layers.
"""

from __future__ import annotations

import os
from typing import Dict, FrozenSet, Optional, Tuple

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, model_validator

# Load .env file if it exists
load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(float(raw))
    except ValueError:
        return default


def _env_flag(name: str, default: bool = True) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() != "false"


class BrainConfigError(ValueError):
    """Raised when brain settings are inconsistent or malformed."""


class Config:
    """Process configuration loaded from environment variables."""

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "info")

    # Dialogue provider
    AI_ENABLED: bool = _env_flag("AI_ENABLED", default=bool(os.getenv("OPENAI_API_KEY")))
    LLM_PROVIDER: str = os.getenv("LLM_PROVIDER", "openai")
    LLM_MODEL: str = os.getenv("LLM_MODEL", os.getenv("OPENAI_MODEL", "gpt-4o-mini"))
    OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY")
    AI_SYSTEM_PROMPT: str = os.getenv(
        "AI_SYSTEM_PROMPT",
        "You are Jarvis, a friendly Minecraft player. Be concise and casual.",
    )
    AI_HISTORY: int = _env_int("AI_HISTORY", 10)

    # Agent identity
    AGENT_USERNAME: str = os.getenv("MC_USERNAME", "JarvisBot")

    # Behavior switches
    ALLOW_MINING: bool = _env_flag("ALLOW_MINING")
    ALLOW_COLLECT: bool = _env_flag("ALLOW_COLLECT")
    ALLOW_WOOD: bool = _env_flag("ALLOW_WOOD")
    REMOTE_SEEK_ENABLED: bool = _env_flag("REMOTE_SEEK_ENABLED")

    # Autonomy cadence
    AUTONOMOUS_ENABLED: bool = _env_flag("AUTONOMOUS_MODE")
    AUTONOMOUS_SCAN_INTERVAL_MS: int = _env_int("AUTONOMOUS_SCAN_INTERVAL_MS", 8000)
    AUTONOMOUS_FOLLOW_DISTANCE: int = _env_int("AUTONOMOUS_FOLLOW_DISTANCE", 3)
    AUTONOMOUS_WANDER_RADIUS: int = _env_int("AUTONOMOUS_WANDER_RADIUS", 16)
    AUTONOMOUS_IDLE_PAUSE_MS: int = _env_int("AUTONOMOUS_IDLE_PAUSE_MS", 15000)
    AMBIENT_CHAT_INTERVAL_MS: int = _env_int("AMBIENT_CHAT_INTERVAL_MS", 45000)

    @classmethod
    def validate(cls) -> None:
        """Raise if the dialogue provider is enabled but cannot authenticate."""
        if cls.AI_ENABLED and cls.LLM_PROVIDER == "openai" and not cls.OPENAI_API_KEY:
            raise ValueError(
                "OPENAI_API_KEY is required when AI_ENABLED is on with the 'openai' provider. "
                "Set AI_ENABLED=false to run with canned chat lines only."
            )

    @classmethod
    def display(cls) -> str:
        """Return a formatted string showing current configuration."""
        lines = [
            "Jarvisbrain Configuration:",
            f"  Agent: {cls.AGENT_USERNAME}",
            f"  Dialogue: {'on' if cls.AI_ENABLED else 'off'} ({cls.LLM_PROVIDER}/{cls.LLM_MODEL})",
            f"  Mining: {cls.ALLOW_MINING}, Collect: {cls.ALLOW_COLLECT}, Wood: {cls.ALLOW_WOOD}",
            f"  Scan interval: {cls.AUTONOMOUS_SCAN_INTERVAL_MS}ms",
            f"  Log level: {cls.LOG_LEVEL}",
        ]
        return "\n".join(lines)


DEFAULT_WEAPON_PRIORITY: Dict[str, int] = {
    "netherite_sword": 100,
    "diamond_sword": 90,
    "netherite_axe": 85,
    "iron_sword": 80,
    "diamond_axe": 75,
    "stone_sword": 60,
    "iron_axe": 55,
    "golden_sword": 50,
    "wooden_sword": 40,
    "stone_axe": 35,
    "golden_axe": 25,
    "wooden_axe": 20,
    "trident": 70,
}

DEFAULT_RESOURCE_PRIORITY: Dict[str, int] = {
    "ancient_debris": 100,
    "diamond_ore": 95,
    "deepslate_diamond_ore": 95,
    "emerald_ore": 90,
    "deepslate_emerald_ore": 90,
    "gold_ore": 70,
    "deepslate_gold_ore": 70,
    "iron_ore": 65,
    "deepslate_iron_ore": 65,
    "redstone_ore": 50,
    "deepslate_redstone_ore": 50,
    "lapis_ore": 50,
    "deepslate_lapis_ore": 50,
    "copper_ore": 40,
    "deepslate_copper_ore": 40,
    "coal_ore": 35,
    "deepslate_coal_ore": 35,
    "oak_log": 10,
    "birch_log": 10,
    "spruce_log": 10,
    "jungle_log": 10,
    "acacia_log": 10,
    "dark_oak_log": 10,
    "mangrove_log": 10,
    "cherry_log": 10,
}
"""Ores outrank every log, so mining is always preferred over wood."""


class BrainConfig(BaseModel):
    """All brain tunables. Times are milliseconds, distances are blocks."""

    # Cycle intervals
    scan_interval_ms: int = Field(2000, gt=0)
    decision_interval_ms: int = Field(6000, ge=2000)
    social_interval_ms: int = Field(45000, ge=12000)
    micro_gesture_interval_ms: int = Field(4500, gt=0)
    idle_pause_ms: int = Field(15000, ge=0)
    manual_activity_pause_ms: int = Field(20000, ge=0)
    death_pause_ms: int = Field(5000, ge=0)
    task_timeout_ms: int = Field(60000, gt=0)

    # Memory TTLs
    player_forget_ms: int = 90_000
    remote_player_forget_ms: int = 300_000
    remote_hint_forget_ms: int = 120_000
    hostile_forget_ms: int = 20_000
    item_forget_ms: int = 12_000
    resource_forget_ms: int = 60_000
    poi_forget_ms: int = 60_000
    max_resource_targets: int = Field(12, gt=0)
    max_pois: int = Field(6, gt=0)

    # Movement
    follow_distance: float = Field(3, gt=0)
    follow_max_distance: float = 18
    wander_radius: float = Field(32, gt=0)
    investigation_radius: float = 24
    item_pickup_radius: float = 12

    # Threats
    low_health_threshold: float = 12
    danger_cooldown_ms: int = 15_000
    evade_trigger_distance: float = 8
    evade_distance: float = 8
    engage_range: float = 10
    engage_health_threshold: float = 14
    disengage_health_threshold: float = 8
    max_chase_distance: float = 16
    melee_range: float = 3.2
    combat_look_interval_ms: int = Field(150, gt=0)
    combat_attack_interval_ms: int = Field(650, gt=0)
    combat_jump_chance: float = Field(0.3, ge=0, le=1)
    combat_cooldown_ms: int = 5000
    excluded_mobs: FrozenSet[str] = frozenset({"Creeper", "Enderman", "Warden", "Ghast", "Elder Guardian"})
    weapon_priority: Dict[str, int] = Field(default_factory=lambda: dict(DEFAULT_WEAPON_PRIORITY))

    # Resources
    allow_mining: bool = True
    allow_wood: bool = True
    allow_collect: bool = True
    resource_scan_radius: float = 32
    resource_scan_count: int = Field(6, gt=0)
    resource_priority: Dict[str, int] = Field(default_factory=lambda: dict(DEFAULT_RESOURCE_PRIORITY))

    # Groups
    group_min_players: int = Field(2, ge=2)
    group_radius: float = 10
    group_comfort_distance: float = 5
    group_leash_distance: float = 40
    group_refresh_ms: int = Field(4000, gt=0)
    group_anchor: Optional[str] = None

    # Remote seeking
    remote_seek_enabled: bool = True
    remote_seek_cooldown_ms: int = 60_000
    remote_seek_radius_range: Tuple[float, float] = (48, 96)

    # Idle behaviors
    observation_chance: float = Field(0.3, ge=0, le=1)
    observation_duration_range: Tuple[int, int] = (4000, 9000)
    observation_cooldown_ms: int = 30_000
    stroll_chance: float = Field(0.55, ge=0, le=1)
    stroll_duration_range: Tuple[int, int] = (5000, 9000)
    stroll_cooldown_ms: int = 25_000

    # Gestures
    look_at_player_range: float = 10

    @model_validator(mode="after")
    def _check_ranges(self) -> "BrainConfig":
        if self.follow_max_distance <= self.follow_distance:
            raise ValueError("follow_max_distance must exceed follow_distance")
        if self.disengage_health_threshold > self.engage_health_threshold:
            raise ValueError("disengage_health_threshold must not exceed engage_health_threshold")
        if self.group_leash_distance <= self.group_comfort_distance:
            raise ValueError("group_leash_distance must exceed group_comfort_distance")
        for label, (low, high) in (
            ("observation_duration_range", self.observation_duration_range),
            ("stroll_duration_range", self.stroll_duration_range),
            ("remote_seek_radius_range", self.remote_seek_radius_range),
        ):
            if low > high:
                raise ValueError(f"{label} must be (min, max)")
        return self

    @classmethod
    def build(cls, **overrides) -> "BrainConfig":
        """Construct a config, converting validation failures to BrainConfigError."""
        try:
            return cls(**overrides)
        except ValidationError as exc:
            raise BrainConfigError(str(exc)) from exc

    @classmethod
    def from_env(cls, **overrides) -> "BrainConfig":
        """Merge environment settings (see ``Config``) with explicit overrides."""
        values = {
            "decision_interval_ms": max(2000, Config.AUTONOMOUS_SCAN_INTERVAL_MS or 6000),
            "social_interval_ms": max(12000, Config.AMBIENT_CHAT_INTERVAL_MS or 45000),
            "idle_pause_ms": Config.AUTONOMOUS_IDLE_PAUSE_MS,
            "follow_distance": Config.AUTONOMOUS_FOLLOW_DISTANCE or 3,
            "wander_radius": Config.AUTONOMOUS_WANDER_RADIUS or 32,
            "allow_mining": Config.ALLOW_MINING,
            "allow_collect": Config.ALLOW_COLLECT,
            "allow_wood": Config.ALLOW_WOOD,
            "remote_seek_enabled": Config.REMOTE_SEEK_ENABLED,
        }
        values.update(overrides)
        return cls.build(**values)
