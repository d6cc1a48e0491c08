"""End-to-end behavior of the brain against the sandbox world."""

import asyncio
import random

import pytest

from jarvisbrain import CognitiveBrain
from jarvisbrain.cognition import TaskType
from jarvisbrain.config import BrainConfig
from jarvisbrain.dialogue import DEFAULT_LINES
from jarvisbrain.environment import ManualClock, SandboxWorld, Vec3


def make_brain(dialogue=None, **overrides):
    clock = ManualClock()
    world = SandboxWorld()
    config = BrainConfig.build(**{"observation_chance": 0, "stroll_chance": 0, **overrides})
    brain = CognitiveBrain(
        world,
        config=config,
        dialogue=dialogue,
        clock=clock,
        rng=random.Random(5),
        call_later=clock.call_later,
    )
    return brain, world, clock


async def settle():
    for _ in range(5):
        await asyncio.sleep(0)


class ScriptedDialogue:
    def __init__(self, reply="", error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    async def chat(self, prompt, context=""):
        self.prompts.append((prompt, context))
        if self.error is not None:
            raise self.error
        return self.reply


def test_chat_hint_sends_agent_to_exact_coordinates():
    brain, world, clock = make_brain()

    brain.on_chat("Alex", "meet me at x: 120 y: 70 z: -45")
    task = brain.decision_tick()

    assert task.type is TaskType.SEEK_REMOTE_PLAYER
    assert world.goal.position == Vec3(120, 70, -45)
    assert brain.memory.remote_players["Alex"].last_seek_target == Vec3(120, 70, -45)


def test_chat_hint_beats_fresher_last_seen_hint():
    brain, world, clock = make_brain()
    brain.on_chat("Alex", "meet me at x: 120 y: 70 z: -45")
    clock.advance(1000)
    bob = {"type": "player", "id": 7, "username": "Bob", "position": (30, 64, 30)}
    brain.on_entity_spawn(bob)
    brain.on_entity_gone(bob)
    assert brain.memory.remote_players["Bob"].hint_source == "last_seen"

    task = brain.decision_tick()

    assert task.type is TaskType.SEEK_REMOTE_PLAYER
    assert world.goal.position == Vec3(120, 70, -45)


def test_scan_then_decide_follows_visible_player():
    brain, world, clock = make_brain()
    world.add_player("Steve", Vec3(10, 64, 0))

    brain.scan_tick()
    task = brain.decision_tick()

    assert task.type is TaskType.FOLLOW_PLAYER
    assert world.goal.username == "Steve"


def test_pause_never_shortens_and_cancels_task():
    brain, world, clock = make_brain()
    task = brain.decision_tick()
    start = clock()

    assert brain.pause(5000) == start + 5000
    assert brain.pause(1000) == start + 5000
    assert brain.current_task is None
    assert task.cleaned_up

    clock.advance(4000)
    assert brain.decision_tick() is None
    clock.advance(1001)
    assert brain.decision_tick() is not None


def test_resume_lifts_pause():
    brain, world, clock = make_brain()
    brain.pause(60_000)

    brain.resume()

    assert brain.decision_tick() is not None


def test_hurt_event_only_counts_for_self():
    brain, world, clock = make_brain()

    brain.on_entity_hurt(99)
    assert brain.state.last_damage_time == float("-inf")

    brain.on_entity_hurt(world.self_id)
    assert brain.state.last_damage_time == clock()
    assert brain.decision_tick().type is TaskType.EVADE_THREAT


def test_spawn_and_gone_accept_adapter_mappings():
    brain, world, clock = make_brain()
    raw = {"type": "mob", "displayName": "Zombie", "id": 42, "position": {"x": 4, "y": 64, "z": 0}}

    brain.on_entity_spawn(raw)
    assert 42 in brain.memory.hostiles

    brain.on_entity_gone(raw)
    assert brain.memory.hostiles == {}

    brain.on_entity_spawn({"type": "mob", "displayName": "Cow", "id": 43, "position": (1, 64, 1)})
    brain.on_entity_spawn({"kind": "hostile", "entity_id": "nope"})
    assert brain.memory.hostiles == {}


def test_player_list_events():
    brain, world, clock = make_brain()

    brain.on_player_joined({"username": "Alex"})
    brain.on_player_joined({"username": "Steve", "entity": {"entity_id": 3, "username": "Steve", "position": (5, 64, 0)}})
    assert "Alex" in brain.memory.remote_players
    assert "Steve" in brain.memory.players

    brain.on_player_updated({"username": "Steve"})
    assert "Steve" not in brain.memory.players
    assert brain.memory.remote_players["Steve"].hint_position == Vec3(5, 64, 0)

    brain.on_player_left("Alex")
    assert "Alex" not in brain.memory.remote_players


def test_other_players_collecting_marks_poi():
    brain, world, clock = make_brain()

    brain.on_player_collect(world.username, Vec3(1, 64, 1))
    assert brain.memory.pois == []

    brain.on_player_collect("Steve", Vec3(3, 64, 3))
    poi = brain.memory.latest_poi()
    assert poi.description == "collection"
    assert poi.position == Vec3(3, 64, 3)


def test_being_mentioned_pauses_autonomy():
    brain, world, clock = make_brain()

    brain.on_chat("Steve", "hey jarvisbot how are you")

    assert brain.state.paused_until == clock() + brain.config.idle_pause_ms


def test_death_resets_everything():
    brain, world, clock = make_brain()
    world.give("iron_sword")
    hostile = world.add_hostile("Zombie", Vec3(3, 64, 0))
    brain.memory.remember_hostile(hostile, clock())
    brain.state.last_damage_time = clock() - 10_000
    task = brain.decision_tick()
    assert task.type is TaskType.COMBAT

    brain.on_death()

    assert task.cleaned_up
    assert brain.current_task is None
    assert brain.timers.pending_count == 0
    assert brain.memory.hostiles == {}
    assert brain.state.last_damage_time == float("-inf")
    assert brain.state.paused_until == clock() + brain.config.death_pause_ms


class EveryRollSucceeds(random.Random):
    def random(self):
        return 0.0


def test_death_releases_held_gesture_controls():
    brain, world, clock = make_brain()
    brain.context.rng = EveryRollSucceeds()
    brain.gesture_tick()
    assert {"jump", "sneak"} <= {c for c, active in world.controls.items() if active}

    brain.on_death()
    clock.advance(60_000)

    assert not any(world.controls.values())


@pytest.mark.asyncio
async def test_stop_releases_held_gesture_controls():
    brain, world, clock = make_brain()
    brain.context.rng = EveryRollSucceeds()
    brain.gesture_tick()
    assert any(world.controls.values())

    await brain.stop()

    assert not any(world.controls.values())


def test_respawn_starts_with_fresh_memory():
    brain, world, clock = make_brain()
    brain.on_player_joined({"username": "Alex"})

    brain.on_respawn()

    assert brain.memory.remote_players == {}
    assert brain.state.is_paused(clock())


@pytest.mark.asyncio
async def test_social_tick_uses_canned_line_and_respects_interval():
    brain, world, clock = make_brain()

    task = await brain.social_tick()

    assert task.type is TaskType.SOCIALIZE
    assert world.chat_log[0] in DEFAULT_LINES
    assert brain.current_task is None
    assert await brain.social_tick() is None

    clock.advance(brain.config.social_interval_ms)
    assert await brain.social_tick() is not None
    assert len(world.chat_log) == 2


@pytest.mark.asyncio
async def test_social_tick_prefers_provider_and_survives_failure():
    dialogue = ScriptedDialogue(reply="  nice day for mining  ")
    brain, world, clock = make_brain(dialogue=dialogue)
    await brain.social_tick()
    assert world.chat_log == ["nice day for mining"]

    broken = ScriptedDialogue(error=RuntimeError("offline"))
    brain2, world2, clock2 = make_brain(dialogue=broken)
    await brain2.social_tick()
    assert world2.chat_log[0] in DEFAULT_LINES


@pytest.mark.asyncio
async def test_social_tick_does_not_replace_current_task():
    brain, world, clock = make_brain()
    world.add_player("Steve", Vec3(10, 64, 0))
    brain.scan_tick()
    follow = brain.decision_tick()

    await brain.social_tick()

    assert brain.current_task is follow
    assert world.goal is follow.goal


@pytest.mark.asyncio
async def test_social_tick_quiet_while_paused():
    brain, world, clock = make_brain()
    brain.pause(10_000)

    assert await brain.social_tick() is None
    assert world.chat_log == []


@pytest.mark.asyncio
async def test_chat_command_runs_in_background():
    brain, world, clock = make_brain()

    brain.on_chat("Steve", "!status")
    await settle()

    assert world.chat_log[-1].startswith("task idle")
    assert brain.state.is_paused(clock())


def test_chat_command_without_loop_is_dropped():
    brain, world, clock = make_brain()

    brain.on_chat("Steve", "!status")

    assert world.chat_log == []


@pytest.mark.asyncio
async def test_start_and_stop():
    brain, world, clock = make_brain()

    await brain.start()
    assert brain.running
    await brain.start()
    assert len(brain._cycles) == 4

    await brain.stop()
    assert not brain.running
    assert brain.timers.pending_count == 0


@pytest.mark.asyncio
async def test_cycle_keeps_running_after_errors():
    brain, world, clock = make_brain()
    calls = []

    def body():
        calls.append(len(calls))
        if len(calls) == 1:
            raise RuntimeError("first tick fails")

    cycle = asyncio.create_task(brain._cycle("test", 1, body))
    for _ in range(50):
        await asyncio.sleep(0.002)
        if len(calls) >= 3:
            break
    cycle.cancel()
    with pytest.raises(asyncio.CancelledError):
        await cycle

    assert len(calls) >= 3


def test_no_position_skips_everything():
    brain, world, clock = make_brain()
    world.position = None
    world.add_player("Steve", Vec3(10, 64, 0))

    brain.scan_tick()
    brain.gesture_tick()

    assert brain.decision_tick() is None
    assert brain.memory.players == {}
    assert world.calls == []
