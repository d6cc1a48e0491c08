"""
Perception: turning world snapshots and events into memory updates.

The scan cycle calls :func:`scan_environment` every ``scan_interval_ms``. It
first purges stale memory, then folds the current snapshot in:

- Connected players are split by render state. A rendered avatar becomes a
  ``PlayerSighting`` (and leaves the remote contacts); a connected player that
  is not rendered becomes (or stays) a ``RemoteContact``. A player that was
  visible on the previous scan but is no longer rendered is demoted.
- Rendered hostiles and dropped items are upserted with a fresh timestamp.
- When harvesting is allowed, nearby ore/log blocks become resource targets
  and every remembered target is re-checked against ``block_at``.

Event helpers (:func:`perceive_spawn`, :func:`perceive_chat`, ...) apply the
same rules to individual events between scans.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from .config import BrainConfig
from .environment.geometry import Vec3
from .environment.schemas import BlockInfo, HostileEntity, ItemEntity, ObservedEntity, PlayerEntity
from .logging_utils import log_debug
from .memory import WorldMemory, harvest_categories, resource_category


POI_BLOCKS = frozenset(
    {
        "crafting_table",
        "furnace",
        "blast_furnace",
        "smoker",
        "chest",
        "barrel",
        "ender_chest",
        "smithing_table",
        "anvil",
        "enchanting_table",
    }
)

FOLLOW_PHRASES = ("come here", "follow")

_NUMBER = r"(-?\d+(?:\.\d+)?)"
_LABELLED = re.compile(
    rf"\bx\s*[:=]?\s*{_NUMBER}\s*,?\s*y\s*[:=]?\s*{_NUMBER}\s*,?\s*z\s*[:=]?\s*{_NUMBER}",
    re.IGNORECASE,
)
_BARE = re.compile(rf"(?<![\w.-]){_NUMBER}\s*[,\s]\s*{_NUMBER}\s*[,\s]\s*{_NUMBER}(?![\w.])")

MIN_BUILD_HEIGHT = -64
MAX_BUILD_HEIGHT = 320


@dataclass(frozen=True)
class ChatObservation:
    """What the brain took away from one chat line."""

    hint: Optional[Vec3] = None
    follow_request: bool = False
    mentions_self: bool = False


def parse_coordinates(text: str) -> Optional[Vec3]:
    """Extract a coordinate triple from free text.

    Accepts ``x: 120 y: 70 z: -45`` style (labels, optional ``:``/``=`` and
    commas) and bare ``120 70 -45`` / ``120, 70, -45`` triples. The middle
    value must be a plausible build height.
    """
    for pattern in (_LABELLED, _BARE):
        for match in pattern.finditer(text):
            x, y, z = (float(group) for group in match.groups())
            if MIN_BUILD_HEIGHT <= y <= MAX_BUILD_HEIGHT:
                return Vec3(x, y, z)
    return None


def perceive_entity(memory: WorldMemory, entity: ObservedEntity, now: float) -> None:
    """Fold one observed entity into memory."""
    if isinstance(entity, PlayerEntity):
        memory.remember_player(entity, now)
    elif isinstance(entity, HostileEntity):
        if entity.alive:
            memory.remember_hostile(entity, now)
        else:
            memory.forget_hostile(entity.entity_id)
    elif isinstance(entity, ItemEntity):
        memory.remember_item(entity, now)


def scan_environment(world, memory: WorldMemory, config: BrainConfig, now: float) -> None:
    """Refresh memory from the current world snapshot."""
    memory.forget_stale(now)

    for username, entry in world.players().items():
        if username == world.username:
            continue
        if entry.entity is not None:
            memory.remember_player(entry.entity, now)
        elif username in memory.players:
            memory.demote_player(username, now)
            memory.remember_remote_contact(entry, now)
        else:
            memory.remember_remote_contact(entry, now)

    for entity in world.entities():
        if isinstance(entity, PlayerEntity) and entity.username == world.username:
            continue
        perceive_entity(memory, entity, now)

    categories = harvest_categories(config)
    if not categories:
        return

    origin = world.self_position()
    try:
        positions = world.find_blocks(
            lambda block: resource_category(block.name) in categories,
            config.resource_scan_radius,
            config.resource_scan_count,
        )
        for position in positions:
            block = world.block_at(position)
            if block is not None:
                memory.note_resource(block, origin, now)
        memory.revalidate_resources(world.block_at)
    except Exception as exc:
        log_debug(f"Failed scanning for resources: {exc}")


def perceive_spawn(memory: WorldMemory, entity: ObservedEntity, now: float, self_username: str) -> None:
    if isinstance(entity, PlayerEntity) and entity.username == self_username:
        return
    perceive_entity(memory, entity, now)


def perceive_gone(memory: WorldMemory, entity: ObservedEntity, now: float) -> None:
    """Handle a despawn: hostiles/items vanish immediately, players are demoted."""
    if isinstance(entity, HostileEntity):
        memory.forget_hostile(entity.entity_id)
    elif isinstance(entity, ItemEntity):
        memory.forget_item(entity.entity_id)
    elif isinstance(entity, PlayerEntity) and entity.username in memory.players:
        memory.demote_player(entity.username, now)


def perceive_block_update(
    memory: WorldMemory,
    old: Optional[BlockInfo],
    new: Optional[BlockInfo],
    now: float,
) -> None:
    """Mark workstation placements as POIs and drop mined-out resource targets."""
    block = new or old
    if block is None:
        return
    if block.name in POI_BLOCKS and (new is not None and new.name == block.name):
        memory.mark_poi(block.position, block.name, now)
    if old is not None and (new is None or new.name != old.name):
        memory.forget_resource(old.position)


def perceive_chat(
    memory: WorldMemory,
    username: str,
    text: str,
    now: float,
    self_username: str,
) -> ChatObservation:
    """Apply a chat line to memory and report what it contained."""
    if username == self_username or not text:
        return ChatObservation()

    lowered = text.lower()
    mentions_self = self_username.lower() in lowered
    follow_request = any(phrase in lowered for phrase in FOLLOW_PHRASES)

    hint = parse_coordinates(text)
    if hint is not None:
        memory.set_hint(username, hint, "chat", now)
        memory.mark_poi(hint, f"chat hint from {username}", now)
    else:
        memory.note_chat_from(username, now)

    if follow_request:
        sighting = memory.players.get(username)
        if sighting is not None:
            memory.mark_poi(sighting.position, "chat request", now)

    return ChatObservation(hint=hint, follow_request=follow_request, mentions_self=mentions_self)


__all__ = [
    "POI_BLOCKS",
    "ChatObservation",
    "parse_coordinates",
    "perceive_entity",
    "scan_environment",
    "perceive_spawn",
    "perceive_gone",
    "perceive_block_update",
    "perceive_chat",
]
