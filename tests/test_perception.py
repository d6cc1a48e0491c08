"""Tests for turning world snapshots and events into memory updates."""

import pytest

from jarvisbrain.config import BrainConfig
from jarvisbrain.environment import BlockInfo, ItemEntity, SandboxWorld, Vec3
from jarvisbrain.memory import WorldMemory
from jarvisbrain.perception import (
    parse_coordinates,
    perceive_block_update,
    perceive_chat,
    perceive_gone,
    scan_environment,
)


NOW = 1_000_000.0


def make_memory(**overrides) -> WorldMemory:
    return WorldMemory(BrainConfig.build(**overrides), "JarvisBot")


@pytest.mark.parametrize(
    "text, expected",
    [
        ("meet me at x: 120 y: 70 z: -45", Vec3(120, 70, -45)),
        ("X=10, Y=64, Z=-3 please", Vec3(10, 64, -3)),
        ("base is at 100 64 -200", Vec3(100, 64, -200)),
        ("try 12.5, 70, 8", Vec3(12.5, 70, 8)),
    ],
)
def test_parse_coordinates_formats(text, expected):
    assert parse_coordinates(text) == expected


@pytest.mark.parametrize("text", ["hello there", "I have 3 apples", "1 9000 2", "version 1.20.4"])
def test_parse_coordinates_rejects_noise(text):
    assert parse_coordinates(text) is None


def test_scan_splits_rendered_and_remote_players():
    world = SandboxWorld()
    world.add_player("Steve", Vec3(5, 64, 0))
    world.add_player("Alex", None)
    memory = make_memory()

    scan_environment(world, memory, memory.config, NOW)

    assert set(memory.players) == {"Steve"}
    assert set(memory.remote_players) == {"Alex"}


def test_scan_demotes_player_that_left_render_range():
    world = SandboxWorld()
    world.add_player("Steve", Vec3(5, 64, 0))
    memory = make_memory()
    scan_environment(world, memory, memory.config, NOW)

    world.move_player("Steve", None)
    scan_environment(world, memory, memory.config, NOW + 2000)

    assert "Steve" not in memory.players
    contact = memory.remote_players["Steve"]
    assert contact.hint_position == Vec3(5, 64, 0)
    assert contact.hint_source == "last_seen"


def test_scan_records_hostiles_items_and_resources():
    world = SandboxWorld()
    zombie = world.add_hostile("Zombie", Vec3(6, 64, 0))
    world.add_hostile("Skeleton", Vec3(9, 64, 0), health=0)
    world.add_item(Vec3(2, 64, 2), name="bread")
    world.set_block(Vec3(4, 60, 0), "iron_ore")
    world.set_block(Vec3(3, 64, 3), "oak_log")
    world.set_block(Vec3(1, 63, 0), "stone")
    memory = make_memory()

    scan_environment(world, memory, memory.config, NOW)

    assert list(memory.hostiles) == [zombie.entity_id]
    assert [item.name for item in memory.items.values()] == ["bread"]
    assert [t.block_kind for t in memory.resource_targets] == ["iron_ore", "oak_log"]


def test_scan_skips_resources_when_harvest_disabled():
    world = SandboxWorld()
    world.set_block(Vec3(4, 60, 0), "iron_ore")
    memory = make_memory(allow_mining=False, allow_wood=False)

    scan_environment(world, memory, memory.config, NOW)

    assert memory.resource_targets == []


def test_scan_drops_mined_out_target_before_ttl():
    world = SandboxWorld()
    world.set_block(Vec3(4, 60, 0), "iron_ore")
    memory = make_memory()
    scan_environment(world, memory, memory.config, NOW)

    world.set_block(Vec3(4, 60, 0), None)
    scan_environment(world, memory, memory.config, NOW + 2000)

    assert memory.resource_targets == []


def test_chat_hint_from_remote_contact():
    memory = make_memory()

    observation = perceive_chat(memory, "Alex", "meet me at x: 120 y: 70 z: -45", NOW, "JarvisBot")

    assert observation.hint == Vec3(120, 70, -45)
    contact = memory.remote_players["Alex"]
    assert contact.hint_position == Vec3(120, 70, -45)
    assert contact.hint_source == "chat"
    assert memory.latest_poi().position == Vec3(120, 70, -45)


def test_follow_request_marks_speaker_position():
    world = SandboxWorld()
    world.add_player("Steve", Vec3(7, 64, 1))
    memory = make_memory()
    scan_environment(world, memory, memory.config, NOW)

    observation = perceive_chat(memory, "Steve", "jarvisbot come here", NOW, "JarvisBot")

    assert observation.follow_request
    assert observation.mentions_self
    poi = memory.latest_poi()
    assert poi.description == "chat request"
    assert poi.position == Vec3(7, 64, 1)


def test_own_chat_is_ignored():
    memory = make_memory()
    observation = perceive_chat(memory, "JarvisBot", "x: 1 y: 2 z: 3", NOW, "JarvisBot")
    assert observation.hint is None
    assert memory.pois == []


def test_block_update_marks_workstation_and_forgets_resource():
    memory = make_memory()
    memory.note_resource(BlockInfo(name="coal_ore", position=(2, 60, 2)), None, NOW)

    perceive_block_update(memory, None, BlockInfo(name="furnace", position=(1, 64, 1)), NOW)
    perceive_block_update(
        memory,
        BlockInfo(name="coal_ore", position=(2, 60, 2)),
        BlockInfo(name="air", position=(2, 60, 2)),
        NOW,
    )

    assert memory.latest_poi().description == "furnace"
    assert memory.resource_targets == []


def test_despawned_item_is_forgotten():
    memory = make_memory()
    item = ItemEntity(entity_id=4, position=(1, 64, 1))
    memory.remember_item(item, NOW)

    perceive_gone(memory, item, NOW)

    assert memory.items == {}
