"""
Chat commands.

Messages starting with ``!`` are routed here by the brain. Every command
counts as manual activity, so autonomy pauses (and the current task is
cancelled) before the handler runs. Handler failures never escape: usage
errors and world errors are both reported back in chat.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import TYPE_CHECKING, Awaitable, Callable, Dict, List, Optional, Union

from .environment.world import GoalNear
from .environment.geometry import Vec3
from .logging_utils import log_debug, log_warn

if TYPE_CHECKING:  # pragma: no cover
    from .brain import CognitiveBrain


MINE_SEARCH_RADIUS = 64


class CommandError(Exception):
    """Bad usage or a command that could not be carried out."""


Handler = Callable[[str, List[str]], Union[str, None, Awaitable[Optional[str]]]]


@dataclass
class Command:
    name: str
    description: str
    usage: str
    handler: Handler


def parse_goto_args(args: List[str]) -> Vec3:
    if len(args) != 3:
        raise CommandError("Usage: !goto <x> <y> <z>")
    try:
        x, y, z = (float(value) for value in args)
    except ValueError as exc:
        raise CommandError("Coordinates must be numbers") from exc
    return Vec3(x, y, z)


class CommandRegistry:
    """The ``!command`` table for one brain."""

    def __init__(self, brain: "CognitiveBrain") -> None:
        self.brain = brain
        self.commands: Dict[str, Command] = {}
        self._register_defaults()

    def register(self, name: str, description: str, usage: str, handler: Handler) -> None:
        self.commands[name] = Command(name=name, description=description, usage=usage, handler=handler)

    def _register_defaults(self) -> None:
        cfg = self.brain.config
        self.register("help", "List available commands", "!help", self._help)
        self.register("goto", "Walk to coordinates", "!goto <x> <y> <z>", self._goto)
        self.register("look", "Look at the nearest player", "!look", self._look)
        self.register("pause", "Pause autonomy", "!pause [seconds]", self._pause)
        self.register("resume", "Resume autonomy now", "!resume", self._resume)
        self.register("status", "Show what I'm doing", "!status", self._status)
        if cfg.allow_mining:
            self.register("mine", "Mine the nearest block of a given type", "!mine <block name>", self._mine)
        if self.brain.dialogue is not None:
            self.register("ai", "Ask the integrated AI for help", "!ai <question>", self._ai)

    async def execute(self, username: str, message: str) -> Optional[str]:
        """Run one chat command. Returns the reply that was sent, if any."""
        if not message.startswith("!"):
            return None
        parts = message[1:].split()
        if not parts:
            return None
        name, args = parts[0].lower(), parts[1:]
        command = self.commands.get(name)
        safe = self.brain.context.safe
        if command is None:
            reply = f"Unknown command {name}. Try !help"
            safe.chat(reply)
            return reply

        self.brain.notify_manual_activity()
        log_debug(f"{username} ran !{name} {' '.join(args)}".rstrip())
        try:
            result = command.handler(username, args)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            log_warn(f"Command !{name} failed: {exc}")
            reply = str(exc) or "Command failed"
            safe.chat(reply)
            return reply
        if result:
            safe.chat(result)
        return result

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------
    def _help(self, username: str, args: List[str]) -> str:
        return ", ".join(f"{cmd.usage} - {cmd.description}" for cmd in self.commands.values())

    def _goto(self, username: str, args: List[str]) -> str:
        target = parse_goto_args(args)
        self.brain.context.safe.set_goal(GoalNear(target, 1))
        return f"Navigating to {target}"

    def _look(self, username: str, args: List[str]) -> str:
        ctx = self.brain.context
        player = ctx.memory.nearest_player(ctx.position())
        if player is None:
            raise CommandError("No players nearby")
        ctx.safe.look_at(player.position.offset(0, 1.6, 0))
        return f"Looking at {player.username}"

    def _pause(self, username: str, args: List[str]) -> str:
        if args:
            try:
                seconds = float(args[0])
            except ValueError as exc:
                raise CommandError("Usage: !pause [seconds]") from exc
            if seconds <= 0:
                raise CommandError("Pause must be positive")
            duration_ms = seconds * 1000
        else:
            duration_ms = self.brain.config.idle_pause_ms
        self.brain.pause(duration_ms)
        return f"Pausing for {duration_ms / 1000:g}s"

    def _resume(self, username: str, args: List[str]) -> str:
        self.brain.resume()
        return "Back to my own thing"

    def _status(self, username: str, args: List[str]) -> str:
        ctx = self.brain.context
        now = ctx.now()
        task = ctx.state.current_task
        label = task.type.value if task is not None else "idle"
        parts = [f"task {label}", f"health {ctx.health():g}"]
        if ctx.state.is_paused(now):
            parts.append(f"paused {(ctx.state.paused_until - now) / 1000:.0f}s")
        parts.append(f"{len(ctx.memory.players)} players nearby")
        parts.append(f"{len(ctx.memory.remote_players)} remote")
        parts.append(f"{len(ctx.memory.hostiles)} hostiles")
        return " | ".join(parts)

    async def _mine(self, username: str, args: List[str]) -> str:
        block_name = " ".join(args).strip()
        if not block_name:
            raise CommandError("Usage: !mine <block name>")
        world = self.brain.world
        found = world.find_blocks(lambda block: block.name == block_name, MINE_SEARCH_RADIUS, 1)
        if not found:
            raise CommandError(f"Could not find block {block_name} nearby")
        collected = await world.collect_block(found[0])
        if collected is False:
            raise CommandError(f"Failed to mine {block_name}")
        self.brain.memory.forget_resource(found[0])
        return f"Finished mining {block_name}"

    async def _ai(self, username: str, args: List[str]) -> str:
        prompt = " ".join(args).strip()
        if not prompt:
            raise CommandError("Usage: !ai <question>")
        position = self.brain.context.position()
        return await self.brain.dialogue.chat(prompt, f"Bot position: {position}; asked by {username}")


__all__ = ["Command", "CommandError", "CommandRegistry", "parse_goto_args"]
