"""Offline walkthrough of the brain against the in-memory sandbox world.

Run deterministically (canned chat lines):

    python -m examples.sandbox.run --ticks 12 --seed 7

Let an LLM write the ambient chat (requires provider/model + API key):

    python -m examples.sandbox.run --llm --ticks 12

The script plays a short scripted story: a player wanders nearby, a zombie
shows up, an ore vein is spotted and a distant friend shares coordinates in
chat. Every decision the brain makes is printed as it happens.
"""

from __future__ import annotations

import argparse
import asyncio
import random
from typing import Callable, Dict, List

from jarvisbrain import CognitiveBrain, LLMDialogueProvider
from jarvisbrain.config import BrainConfig, Config
from jarvisbrain.environment import ManualClock, SandboxWorld, Vec3
from jarvisbrain.logging_utils import log_info


Event = Callable[[CognitiveBrain, SandboxWorld], None]


def _steve_arrives(brain: CognitiveBrain, world: SandboxWorld) -> None:
    world.add_player("Steve", Vec3(10, 64, 4))


def _zombie_attacks(brain: CognitiveBrain, world: SandboxWorld) -> None:
    world.give("iron_sword")
    world.add_hostile("Zombie", Vec3(4, 64, -2))
    brain.on_entity_hurt(world.self_id)


def _zombie_dies(brain: CognitiveBrain, world: SandboxWorld) -> None:
    for entity_id, entity in list(world.entity_map.items()):
        if getattr(entity, "name", None) == "Zombie":
            world.remove_entity(entity_id)
            brain.on_entity_gone(entity)


def _ore_spotted(brain: CognitiveBrain, world: SandboxWorld) -> None:
    world.move_player("Steve", None)
    world.set_block(Vec3(6, 60, 3), "iron_ore")


def _friend_shares_coordinates(brain: CognitiveBrain, world: SandboxWorld) -> None:
    world.add_player("Alex", None)
    brain.on_chat("Alex", "come find me at x: 120 y: 70 z: -45")


STORY: Dict[int, Event] = {
    1: _steve_arrives,
    3: _zombie_attacks,
    5: _zombie_dies,
    7: _ore_spotted,
    9: _friend_shares_coordinates,
}


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Jarvis brain sandbox walkthrough")
    parser.add_argument("--ticks", type=int, default=12, help="Number of decision ticks to simulate")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible runs")
    parser.add_argument("--llm", action="store_true", help="Use the LLM dialogue provider for ambient chat")
    return parser.parse_args()


async def run_sandbox(ticks: int, *, seed: int | None = None, use_llm: bool = False) -> List[str]:
    """Drive the brain tick by tick. Returns the task chosen at each tick."""
    if use_llm:
        Config.validate()
    dialogue = LLMDialogueProvider() if use_llm else None

    clock = ManualClock()
    world = SandboxWorld(username=Config.AGENT_USERNAME)
    config = BrainConfig.from_env()
    brain = CognitiveBrain(
        world,
        config=config,
        dialogue=dialogue,
        clock=clock,
        rng=random.Random(seed),
        call_later=clock.call_later,
    )
    print(Config.display())

    timeline: List[str] = []
    for tick in range(ticks):
        event = STORY.get(tick)
        if event is not None:
            event(brain, world)

        brain.scan_tick()
        brain.decision_tick()
        brain.gesture_tick()
        await brain.social_tick()
        # let pending collect calls finish
        for _ in range(5):
            await asyncio.sleep(0)

        task = brain.current_task
        label = task.type.value if task is not None else "idle"
        timeline.append(label)
        log_info(f"tick {tick}: {label} at {world.position}")

        clock.advance(config.decision_interval_ms)
        # the sandbox has no pathfinder, so arrive instantly
        if world.goal is not None and hasattr(world.goal, "position"):
            world.position = world.goal.position

    await brain.stop()
    return timeline


def main() -> None:
    args = parse_args()
    if not Config.AUTONOMOUS_ENABLED:
        log_info("AUTONOMOUS_MODE=false; nothing to run.")
        return
    timeline = asyncio.run(run_sandbox(args.ticks, seed=args.seed, use_llm=args.llm))
    log_info(" -> ".join(timeline))


if __name__ == "__main__":
    main()
