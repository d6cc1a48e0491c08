"""Tests for the ``!command`` chat interface."""

import random

import pytest

from jarvisbrain import CognitiveBrain
from jarvisbrain.commands import CommandError, parse_goto_args
from jarvisbrain.config import BrainConfig
from jarvisbrain.environment import GoalNear, ManualClock, SandboxWorld, Vec3


def make_brain(dialogue=None, **overrides):
    clock = ManualClock()
    world = SandboxWorld()
    brain = CognitiveBrain(
        world,
        config=BrainConfig.build(**overrides),
        dialogue=dialogue,
        clock=clock,
        rng=random.Random(1),
        call_later=clock.call_later,
    )
    return brain, world, clock


class EchoDialogue:
    async def chat(self, prompt, context=""):
        return f"you asked: {prompt}"


def test_parse_goto_args():
    assert parse_goto_args(["1", "64", "-2.5"]) == Vec3(1, 64, -2.5)
    with pytest.raises(CommandError, match="Usage"):
        parse_goto_args(["1", "2"])
    with pytest.raises(CommandError, match="numbers"):
        parse_goto_args(["a", "b", "c"])


@pytest.mark.asyncio
async def test_non_command_and_unknown_command():
    brain, world, clock = make_brain()

    assert await brain.commands.execute("Steve", "hello") is None
    reply = await brain.commands.execute("Steve", "!dance")

    assert reply == "Unknown command dance. Try !help"
    assert world.chat_log == [reply]
    assert not brain.state.is_paused(clock())


@pytest.mark.asyncio
async def test_goto_sets_goal_and_pauses_autonomy():
    brain, world, clock = make_brain()
    task = brain.decision_tick()

    reply = await brain.commands.execute("Steve", "!goto 10 64 -5")

    assert reply == "Navigating to (10, 64, -5)"
    assert isinstance(world.goal, GoalNear)
    assert world.goal.position == Vec3(10, 64, -5)
    assert task.cleaned_up
    assert brain.state.paused_until == clock() + brain.config.manual_activity_pause_ms
    assert brain.decision_tick() is None


@pytest.mark.asyncio
async def test_bad_usage_is_reported_in_chat():
    brain, world, clock = make_brain()

    reply = await brain.commands.execute("Steve", "!goto north")

    assert reply == "Usage: !goto <x> <y> <z>"
    assert world.chat_log == [reply]


@pytest.mark.asyncio
async def test_look_needs_a_player():
    brain, world, clock = make_brain()
    assert await brain.commands.execute("Steve", "!look") == "No players nearby"

    world.add_player("Steve", Vec3(4, 64, 0))
    brain.scan_tick()
    assert await brain.commands.execute("Steve", "!look") == "Looking at Steve"
    assert world.commands("look_at")


@pytest.mark.asyncio
async def test_pause_and_resume():
    brain, world, clock = make_brain()

    assert await brain.commands.execute("Steve", "!pause 90") == "Pausing for 90s"
    assert brain.state.paused_until == clock() + 90_000
    assert await brain.commands.execute("Steve", "!pause -1") == "Pause must be positive"
    assert await brain.commands.execute("Steve", "!pause soon") == "Usage: !pause [seconds]"

    assert await brain.commands.execute("Steve", "!resume") == "Back to my own thing"
    assert not brain.state.is_paused(clock())


@pytest.mark.asyncio
async def test_status_reports_counts():
    brain, world, clock = make_brain()
    world.add_player("Steve", Vec3(4, 64, 0))
    world.add_player("Alex", None)
    world.add_hostile("Zombie", Vec3(20, 64, 0))
    brain.scan_tick()

    reply = await brain.commands.execute("Steve", "!status")

    assert reply == "task idle | health 20 | paused 20s | 1 players nearby | 1 remote | 1 hostiles"


@pytest.mark.asyncio
async def test_mine_uses_collect_block():
    brain, world, clock = make_brain()
    world.set_block(Vec3(2, 63, 0), "diamond_ore")

    assert await brain.commands.execute("Steve", "!mine diamond_ore") == "Finished mining diamond_ore"
    assert world.block_at(Vec3(2, 63, 0)) is None
    assert await brain.commands.execute("Steve", "!mine diamond_ore") == "Could not find block diamond_ore nearby"
    assert await brain.commands.execute("Steve", "!mine") == "Usage: !mine <block name>"


@pytest.mark.asyncio
async def test_mine_failure_and_world_errors():
    brain, world, clock = make_brain()
    world.set_block(Vec3(2, 63, 0), "gold_ore")
    world.collect_outcome = False
    assert await brain.commands.execute("Steve", "!mine gold_ore") == "Failed to mine gold_ore"

    world.collect_outcome = RuntimeError("pathfinder exploded")
    assert await brain.commands.execute("Steve", "!mine gold_ore") == "pathfinder exploded"


def test_optional_commands_follow_config():
    brain, world, clock = make_brain(allow_mining=False)
    assert "mine" not in brain.commands.commands
    assert "ai" not in brain.commands.commands

    brain2, _, _ = make_brain(dialogue=EchoDialogue())
    assert "ai" in brain2.commands.commands


@pytest.mark.asyncio
async def test_ai_command_routes_to_dialogue():
    brain, world, clock = make_brain(dialogue=EchoDialogue())

    assert await brain.commands.execute("Steve", "!ai where is iron") == "you asked: where is iron"
    assert await brain.commands.execute("Steve", "!ai") == "Usage: !ai <question>"


@pytest.mark.asyncio
async def test_help_lists_commands():
    brain, world, clock = make_brain()

    reply = await brain.commands.execute("Steve", "!HELP")

    assert "!goto <x> <y> <z>" in reply
    assert "!status" in reply
