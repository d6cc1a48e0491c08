"""Tests for brain configuration validation and environment loading."""

import pytest

from jarvisbrain.config import BrainConfig, BrainConfigError, Config


def test_defaults_are_consistent():
    config = BrainConfig.build()

    assert config.follow_max_distance > config.follow_distance
    assert config.weapon_priority["diamond_sword"] > config.weapon_priority["iron_axe"]
    assert "Creeper" in config.excluded_mobs


@pytest.mark.parametrize(
    "overrides",
    [
        {"decision_interval_ms": 500},
        {"social_interval_ms": 1000},
        {"follow_distance": 5, "follow_max_distance": 4},
        {"disengage_health_threshold": 16},
        {"group_comfort_distance": 50},
        {"stroll_duration_range": (9000, 1000)},
        {"combat_jump_chance": 1.5},
    ],
)
def test_invalid_settings_raise(overrides):
    with pytest.raises(BrainConfigError):
        BrainConfig.build(**overrides)


def test_per_instance_weapon_table():
    first = BrainConfig.build()
    second = BrainConfig.build()

    first.weapon_priority["stick"] = 1

    assert "stick" not in second.weapon_priority


def test_from_env_clamps_intervals(monkeypatch):
    monkeypatch.setattr(Config, "AUTONOMOUS_SCAN_INTERVAL_MS", 100)
    monkeypatch.setattr(Config, "AMBIENT_CHAT_INTERVAL_MS", 0)
    monkeypatch.setattr(Config, "AUTONOMOUS_WANDER_RADIUS", 20)
    monkeypatch.setattr(Config, "ALLOW_MINING", False)

    config = BrainConfig.from_env()

    assert config.decision_interval_ms == 2000
    assert config.social_interval_ms == 45000
    assert config.wander_radius == 20
    assert config.allow_mining is False


def test_from_env_overrides_win(monkeypatch):
    monkeypatch.setattr(Config, "ALLOW_WOOD", True)

    config = BrainConfig.from_env(allow_wood=False, group_anchor="Alex")

    assert config.allow_wood is False
    assert config.group_anchor == "Alex"


def test_validate_requires_key_for_openai(monkeypatch):
    monkeypatch.setattr(Config, "AI_ENABLED", True)
    monkeypatch.setattr(Config, "LLM_PROVIDER", "openai")
    monkeypatch.setattr(Config, "OPENAI_API_KEY", None)

    with pytest.raises(ValueError, match="OPENAI_API_KEY"):
        Config.validate()

    monkeypatch.setattr(Config, "AI_ENABLED", False)
    Config.validate()
    assert "Dialogue: off" in Config.display()
