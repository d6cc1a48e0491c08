"""Tests for the cosmetic gesture layer."""

import random

from jarvisbrain.cognition import BrainContext, BrainState, GestureLayer, Task, TaskType
from jarvisbrain.config import BrainConfig
from jarvisbrain.environment import GoalNear, ManualClock, PlayerEntity, SandboxWorld, Vec3
from jarvisbrain.memory import WorldMemory
from jarvisbrain.timers import TimerRegistry


class EagerRandom(random.Random):
    """Every roll succeeds."""

    def random(self):
        return 0.0


def make_layer():
    clock = ManualClock()
    world = SandboxWorld()
    config = BrainConfig.build()
    ctx = BrainContext(
        world=world,
        memory=WorldMemory(config, world.username),
        state=BrainState(),
        config=config,
        timers=TimerRegistry(clock.call_later),
        clock=clock,
        rng=EagerRandom(),
    )
    return GestureLayer(ctx), ctx, world, clock


def stub_task(ctx, task_type):
    class Stub(Task):
        type = task_type

        def _engage(self):
            pass

        def continue_predicate(self):
            return True

    task = Stub(ctx)
    ctx.state.current_task = task
    return task


def pulsed(world):
    return {control for control, active in world.commands("set_control_state") if active}


def test_gestures_never_touch_the_goal():
    layer, ctx, world, clock = make_layer()
    ctx.memory.remember_player(PlayerEntity(entity_id=5, username="Steve", position=(4, 64, 0)), clock())

    for _ in range(10):
        layer.tick()
        clock.advance(ctx.config.micro_gesture_interval_ms)

    assert world.commands("set_goal") == []
    assert any(p.distance_to(Vec3(4, 65.6, 0)) < 1e-6 for p in world.commands("look_at"))
    assert {"jump", "sneak"} <= pulsed(world)


def test_pulses_release_on_their_own():
    layer, ctx, world, clock = make_layer()

    layer.tick()
    clock.advance(2000)

    assert not any(world.controls.values())
    assert ctx.timers.pending_count == 0


def test_suppressed_during_combat_evade_and_pause():
    for task_type in (TaskType.COMBAT, TaskType.EVADE_THREAT):
        layer, ctx, world, clock = make_layer()
        stub_task(ctx, task_type)
        layer.tick()
        assert world.calls == []

    layer, ctx, world, clock = make_layer()
    ctx.state.extend_pause(clock() + 1000)
    layer.tick()
    assert world.calls == []


def test_no_strafe_or_jump_while_navigating():
    layer, ctx, world, clock = make_layer()
    stub_task(ctx, TaskType.EXPLORE)
    goal = GoalNear(Vec3(10, 64, 10))
    world.goal = goal

    layer.tick()

    assert pulsed(world) == {"sneak"}
    assert world.goal is goal


def test_stroll_allows_movement_pulses():
    layer, ctx, world, clock = make_layer()
    stub_task(ctx, TaskType.STROLL)
    world.goal = GoalNear(Vec3(10, 64, 10))

    layer.tick()

    assert "jump" in pulsed(world)


def test_stop_cancels_pending_pulses():
    layer, ctx, world, clock = make_layer()
    layer.tick()
    assert ctx.timers.pending_count > 0

    layer.stop()

    assert ctx.timers.pending_count == 0
    assert not any(world.controls.values())
    layer.tick()
    assert ctx.timers.pending_count > 0


def test_no_position_means_no_gestures():
    layer, ctx, world, clock = make_layer()
    world.position = None

    layer.tick()

    assert world.calls == []
