"""
Decaying short-term world memory.

The brain remembers what it has recently seen: players (rendered and merely
connected), hostile mobs, dropped items, harvestable blocks and points of
interest. Every entry is timestamped and silently forgotten once it is older
than its class TTL; ``forget_stale`` runs at the start of every scan cycle.

All operations are synchronous snapshots. Nothing here talks to the world
except ``revalidate_resources``, which receives a ``block_at`` callable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional

from .config import BrainConfig
from .environment.geometry import Vec3, nearest
from .environment.schemas import BlockInfo, HostileEntity, ItemEntity, PlayerEntity, PlayerListEntry


@dataclass
class PlayerSighting:
    username: str
    position: Vec3
    last_seen: float
    velocity: Optional[Vec3] = None
    entity_id: Optional[int] = None


@dataclass
class RemoteContact:
    """A connected player whose avatar is not rendered locally."""

    username: str
    last_heard_at: float
    ping: int = 0
    gamemode: int = 0
    listed: bool = True
    hint_position: Optional[Vec3] = None
    hint_source: Optional[str] = None
    hint_at: Optional[float] = None
    last_seek_at: Optional[float] = None
    last_seek_target: Optional[Vec3] = None

    def has_hint(self) -> bool:
        return self.hint_position is not None

    def clear_hint(self) -> None:
        self.hint_position = None
        self.hint_source = None
        self.hint_at = None


@dataclass
class HostileSighting:
    entity_id: int
    name: str
    position: Vec3
    last_seen: float


@dataclass
class ItemSighting:
    entity_id: int
    name: str
    position: Vec3
    last_seen: float


class ResourceCategory(str, Enum):
    ORE = "ore"
    WOOD = "wood"


@dataclass
class ResourceTarget:
    position: Vec3
    block_kind: str
    category: ResourceCategory
    priority: int
    noted_at: float


@dataclass
class PointOfInterest:
    position: Vec3
    description: str
    noted_at: float


def resource_category(block_name: str) -> Optional[ResourceCategory]:
    """Classify a block name as ore, wood, or neither."""
    if block_name.endswith("_ore") or block_name == "ancient_debris":
        return ResourceCategory.ORE
    if block_name.endswith("_log") or block_name.endswith("_stem"):
        return ResourceCategory.WOOD
    return None


def harvest_categories(config: BrainConfig) -> set:
    """Resource categories the agent is currently allowed to gather."""
    categories = set()
    if config.allow_mining:
        categories.add(ResourceCategory.ORE)
    if config.allow_wood:
        categories.add(ResourceCategory.WOOD)
    return categories


@dataclass
class WorldMemory:
    """Per-session memory owned by a single brain instance."""

    config: BrainConfig
    self_username: str
    players: Dict[str, PlayerSighting] = field(default_factory=dict)
    remote_players: Dict[str, RemoteContact] = field(default_factory=dict)
    hostiles: Dict[int, HostileSighting] = field(default_factory=dict)
    items: Dict[int, ItemSighting] = field(default_factory=dict)
    resource_targets: List[ResourceTarget] = field(default_factory=list)
    pois: List[PointOfInterest] = field(default_factory=list)

    # ------------------------------------------------------------------
    # Players
    # ------------------------------------------------------------------
    def remember_player(self, entity: PlayerEntity, now: float) -> Optional[PlayerSighting]:
        """Upsert a rendered player, promoting it out of the remote contacts."""
        if entity.username == self.self_username:
            return None
        sighting = PlayerSighting(
            username=entity.username,
            position=entity.position,
            velocity=entity.velocity,
            last_seen=now,
            entity_id=entity.entity_id,
        )
        self.players[entity.username] = sighting
        self.remote_players.pop(entity.username, None)
        return sighting

    def remember_remote_contact(self, entry: PlayerListEntry, now: float) -> Optional[RemoteContact]:
        """Upsert a connected-but-not-rendered player, keeping hint and seek history."""
        if entry.username == self.self_username or entry.username in self.players:
            return None
        contact = self.remote_players.get(entry.username)
        if contact is None:
            contact = RemoteContact(username=entry.username, last_heard_at=now)
            self.remote_players[entry.username] = contact
        contact.ping = entry.ping
        contact.gamemode = entry.gamemode
        contact.listed = entry.listed
        contact.last_heard_at = now
        return contact

    def demote_player(self, username: str, now: float) -> Optional[RemoteContact]:
        """Move a player that left render range back into the remote contacts.

        The last sighting becomes a ``last_seen`` hint unless a fresher hint
        (e.g. from chat) already exists.
        """
        sighting = self.players.pop(username, None)
        if username == self.self_username:
            return None
        contact = self.remote_players.get(username)
        if contact is None:
            contact = RemoteContact(username=username, last_heard_at=now)
            self.remote_players[username] = contact
        if sighting is not None and not contact.has_hint():
            contact.hint_position = sighting.position
            contact.hint_source = "last_seen"
            contact.hint_at = now
        return contact

    def note_chat_from(self, username: str, now: float) -> Optional[RemoteContact]:
        """Refresh a remote contact's ``last_heard_at`` when it speaks."""
        if username == self.self_username or username in self.players:
            return None
        contact = self.remote_players.get(username)
        if contact is None:
            contact = RemoteContact(username=username, last_heard_at=now)
            self.remote_players[username] = contact
        contact.last_heard_at = now
        return contact

    def set_hint(self, username: str, position: Vec3, source: str, now: float) -> Optional[RemoteContact]:
        """Attach a position hint to a remote contact. Visible players get none."""
        contact = self.note_chat_from(username, now)
        if contact is None:
            return None
        contact.hint_position = position
        contact.hint_source = source
        contact.hint_at = now
        return contact

    def forget_player(self, username: str) -> None:
        self.players.pop(username, None)
        self.remote_players.pop(username, None)

    # ------------------------------------------------------------------
    # Hostiles and items
    # ------------------------------------------------------------------
    def remember_hostile(self, entity: HostileEntity, now: float) -> HostileSighting:
        sighting = HostileSighting(
            entity_id=entity.entity_id,
            name=entity.name,
            position=entity.position,
            last_seen=now,
        )
        self.hostiles[entity.entity_id] = sighting
        return sighting

    def forget_hostile(self, entity_id: int) -> None:
        self.hostiles.pop(entity_id, None)

    def remember_item(self, entity: ItemEntity, now: float) -> ItemSighting:
        sighting = ItemSighting(
            entity_id=entity.entity_id,
            name=entity.name,
            position=entity.position,
            last_seen=now,
        )
        self.items[entity.entity_id] = sighting
        return sighting

    def forget_item(self, entity_id: int) -> None:
        self.items.pop(entity_id, None)

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------
    def note_resource(self, block: BlockInfo, origin: Optional[Vec3], now: float) -> Optional[ResourceTarget]:
        """Record a harvestable block, deduplicated by position."""
        category = resource_category(block.name)
        if category is None:
            return None
        position = block.position.floored()
        priority = self.config.resource_priority.get(block.name, 30 if category is ResourceCategory.ORE else 5)
        target = ResourceTarget(
            position=position,
            block_kind=block.name,
            category=category,
            priority=priority,
            noted_at=now,
        )
        self.resource_targets = [t for t in self.resource_targets if t.position != position]
        self.resource_targets.append(target)
        self._sort_resources(origin)
        return target

    def _sort_resources(self, origin: Optional[Vec3]) -> None:
        def sort_key(target: ResourceTarget):
            dist = origin.distance_squared(target.position) if origin is not None else 0.0
            return (-target.priority, dist)

        self.resource_targets.sort(key=sort_key)
        del self.resource_targets[self.config.max_resource_targets:]

    def revalidate_resources(self, block_at: Callable[[Vec3], Optional[BlockInfo]]) -> int:
        """Drop targets whose block no longer matches. Returns how many were dropped."""
        kept: List[ResourceTarget] = []
        for target in self.resource_targets:
            block = block_at(target.position)
            if block is not None and block.name == target.block_kind:
                kept.append(target)
        dropped = len(self.resource_targets) - len(kept)
        self.resource_targets = kept
        return dropped

    def forget_resource(self, position: Vec3) -> None:
        position = position.floored()
        self.resource_targets = [t for t in self.resource_targets if t.position != position]

    def best_resource_target(self, categories: Optional[set] = None) -> Optional[ResourceTarget]:
        for target in self.resource_targets:
            if categories is None or target.category in categories:
                return target
        return None

    # ------------------------------------------------------------------
    # Points of interest
    # ------------------------------------------------------------------
    def mark_poi(self, position: Vec3, description: str, now: float) -> PointOfInterest:
        poi = PointOfInterest(position=position, description=description, noted_at=now)
        self.pois.insert(0, poi)
        del self.pois[self.config.max_pois:]
        return poi

    def forget_poi(self, poi: PointOfInterest) -> None:
        self.pois = [p for p in self.pois if p is not poi]

    def latest_poi(self) -> Optional[PointOfInterest]:
        return self.pois[0] if self.pois else None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def nearest_player(self, origin: Optional[Vec3]) -> Optional[PlayerSighting]:
        return nearest(origin, self.players.values())

    def nearest_hostile(self, origin: Optional[Vec3]) -> Optional[HostileSighting]:
        return nearest(origin, self.hostiles.values())

    def nearest_item(self, origin: Optional[Vec3]) -> Optional[ItemSighting]:
        return nearest(origin, self.items.values())

    # ------------------------------------------------------------------
    # Decay
    # ------------------------------------------------------------------
    def forget_stale(self, now: float) -> None:
        """Purge every entry older than its class TTL."""
        cfg = self.config
        self.players = {
            name: info for name, info in self.players.items()
            if now - info.last_seen <= cfg.player_forget_ms
        }
        self.remote_players = {
            name: contact for name, contact in self.remote_players.items()
            if now - contact.last_heard_at <= cfg.remote_player_forget_ms
        }
        for contact in self.remote_players.values():
            if contact.hint_at is not None and now - contact.hint_at > cfg.remote_hint_forget_ms:
                contact.clear_hint()
        self.hostiles = {
            key: info for key, info in self.hostiles.items()
            if now - info.last_seen <= cfg.hostile_forget_ms
        }
        self.items = {
            key: info for key, info in self.items.items()
            if now - info.last_seen <= cfg.item_forget_ms
        }
        self.resource_targets = [
            target for target in self.resource_targets
            if now - target.noted_at <= cfg.resource_forget_ms
        ]
        self.pois = [poi for poi in self.pois if now - poi.noted_at <= cfg.poi_forget_ms]

    def clear_volatile(self) -> None:
        """Forget hostiles, items and resource targets (stale after a death)."""
        self.hostiles.clear()
        self.items.clear()
        self.resource_targets.clear()
