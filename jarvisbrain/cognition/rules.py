"""
The arbitration ladder as data.

Each :class:`Rule` pairs a side-effect free ``match`` (returns a candidate or
None) with a ``build`` step that turns the candidate into a task. The planner
walks :data:`DEFAULT_RULES` top to bottom; the first rule that both matches
and builds a task wins.

Order:

1. combat, then evade (threat response)
2. collect a nearby dropped item
3. harvest the best valid resource target (ore outranks wood)
4. investigate the latest nearby point of interest
5. tag along with a group of players
6. follow a single player
7. seek a connected player who is out of render range
8. idle breaks: observe, then stroll
9. explore (always matches)

Matchers may consume randomness (idle rolls) but never touch the world or
memory beyond reading it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple

from ..environment.geometry import Vec3, distance
from ..logging_utils import log_debug
from ..memory import HostileSighting, PlayerSighting, RemoteContact, harvest_categories
from .state import BrainContext
from .task import Task
from .tasks import (
    CollectItemTask,
    CombatTask,
    EvadeTask,
    ExploreTask,
    FollowPlayerTask,
    GroupFollowTask,
    InvestigatePOITask,
    ObserveTask,
    SeekRemotePlayerTask,
    StrollTask,
    best_weapon,
    current_group,
    harvest_task,
)


@dataclass
class PlanningSnapshot:
    """Facts computed once per planning tick and shared by every rule."""

    ctx: BrainContext
    now: float
    position: Vec3
    health: float
    nearest_player: Optional[PlayerSighting]
    nearest_hostile: Optional[HostileSighting]

    @classmethod
    def take(cls, ctx: BrainContext) -> Optional["PlanningSnapshot"]:
        position = ctx.position()
        if position is None:
            return None
        return cls(
            ctx=ctx,
            now=ctx.now(),
            position=position,
            health=ctx.health(),
            nearest_player=ctx.memory.nearest_player(position),
            nearest_hostile=ctx.memory.nearest_hostile(position),
        )

    @property
    def player_distance(self) -> float:
        if self.nearest_player is None:
            return float("inf")
        return distance(self.position, self.nearest_player.position)

    @property
    def hostile_distance(self) -> float:
        if self.nearest_hostile is None:
            return float("inf")
        return distance(self.position, self.nearest_hostile.position)


@dataclass(frozen=True)
class Rule:
    name: str
    match: Callable[[PlanningSnapshot], Any]
    build: Callable[[PlanningSnapshot, Any], Optional[Task]]


# ----------------------------------------------------------------------
# Threat response
# ----------------------------------------------------------------------
def match_combat(snap: PlanningSnapshot) -> Optional[Tuple[HostileSighting, str]]:
    cfg = snap.ctx.config
    hostile = snap.nearest_hostile
    if hostile is None or snap.hostile_distance > cfg.engage_range:
        return None
    if snap.now < snap.ctx.state.combat_cooldown_until:
        return None
    if snap.health <= cfg.engage_health_threshold:
        return None
    if hostile.name in cfg.excluded_mobs:
        return None
    weapon = best_weapon(snap.ctx.inventory(), cfg.weapon_priority)
    if weapon is None:
        return None
    return hostile, weapon


def build_combat(snap: PlanningSnapshot, candidate) -> Task:
    hostile, weapon = candidate
    return CombatTask(snap.ctx, hostile, weapon)


def match_evade(snap: PlanningSnapshot):
    """Returns ``(threat,)`` so that an unknown threat (None) still matches."""
    cfg = snap.ctx.config
    recently_hurt = snap.now - snap.ctx.state.last_damage_time < cfg.danger_cooldown_ms
    threat_close = snap.hostile_distance < cfg.evade_trigger_distance
    weak = snap.health < cfg.low_health_threshold and snap.nearest_hostile is not None
    if recently_hurt or threat_close or weak:
        return (snap.nearest_hostile,)
    return None


def build_evade(snap: PlanningSnapshot, candidate) -> Task:
    return EvadeTask(snap.ctx, snap.position, candidate[0])


# ----------------------------------------------------------------------
# Items and resources
# ----------------------------------------------------------------------
def match_item(snap: PlanningSnapshot):
    cfg = snap.ctx.config
    if not cfg.allow_collect:
        return None
    item = snap.ctx.memory.nearest_item(snap.position)
    if item is None or distance(snap.position, item.position) >= cfg.item_pickup_radius:
        return None
    return item


def build_item(snap: PlanningSnapshot, item) -> Task:
    return CollectItemTask(snap.ctx, item)


def match_resource(snap: PlanningSnapshot):
    categories = harvest_categories(snap.ctx.config)
    if not categories:
        return None
    for target in snap.ctx.memory.resource_targets:
        if target.category not in categories:
            continue
        try:
            block = snap.ctx.world.block_at(target.position)
        except Exception as exc:
            log_debug(f"block_at failed: {exc}")
            block = None
        if block is not None and block.name == target.block_kind:
            return target
    return None


def build_resource(snap: PlanningSnapshot, target) -> Task:
    return harvest_task(snap.ctx, target)


# ----------------------------------------------------------------------
# Points of interest and people
# ----------------------------------------------------------------------
def match_poi(snap: PlanningSnapshot):
    poi = snap.ctx.memory.latest_poi()
    if poi is None:
        return None
    if distance(snap.position, poi.position) > snap.ctx.config.investigation_radius:
        return None
    return poi


def build_poi(snap: PlanningSnapshot, poi) -> Task:
    return InvestigatePOITask(snap.ctx, poi)


def match_group(snap: PlanningSnapshot):
    cfg = snap.ctx.config
    group = current_group(snap.ctx)
    if group is None:
        return None
    gap = distance(snap.position, group.centroid)
    if cfg.group_comfort_distance < gap <= cfg.group_leash_distance:
        return group
    return None


def build_group(snap: PlanningSnapshot, group) -> Task:
    return GroupFollowTask(snap.ctx, group)


def match_follow(snap: PlanningSnapshot):
    cfg = snap.ctx.config
    gap = snap.player_distance
    if cfg.follow_distance < gap < cfg.follow_max_distance:
        return snap.nearest_player
    return None


def build_follow(snap: PlanningSnapshot, player) -> Task:
    return FollowPlayerTask(snap.ctx, player)


def pick_remote_contact(snap: PlanningSnapshot) -> Optional[RemoteContact]:
    """Prefer chat hints, then last-seen hints, freshest first.

    Without any usable hint, fall back to the least recently sought contact.
    """
    cfg = snap.ctx.config
    contacts = list(snap.ctx.memory.remote_players.values())

    def cooled(contact: RemoteContact) -> bool:
        return contact.last_seek_at is None or snap.now - contact.last_seek_at >= cfg.remote_seek_cooldown_ms

    hinted = [
        c for c in contacts
        if c.has_hint() and (c.last_seek_target != c.hint_position or cooled(c))
    ]
    if hinted:
        return max(hinted, key=lambda c: (c.hint_source == "chat", c.hint_at or 0.0))

    ready = [c for c in contacts if cooled(c)]
    if not ready:
        return None
    return min(ready, key=lambda c: (c.last_seek_at is not None, c.last_seek_at or 0.0, c.username))


def match_remote(snap: PlanningSnapshot):
    cfg = snap.ctx.config
    if not cfg.remote_seek_enabled:
        return None
    if snap.player_distance <= cfg.follow_max_distance:
        return None
    return pick_remote_contact(snap)


def build_remote(snap: PlanningSnapshot, contact) -> Task:
    return SeekRemotePlayerTask(snap.ctx, contact, snap.position)


# ----------------------------------------------------------------------
# Idle
# ----------------------------------------------------------------------
def match_observe(snap: PlanningSnapshot):
    cfg = snap.ctx.config
    if snap.now - snap.ctx.state.last_observation_break < cfg.observation_cooldown_ms:
        return None
    if not cfg.observation_chance or snap.ctx.memory.hostiles:
        return None
    chance = cfg.observation_chance * 0.5 if snap.nearest_player is not None else cfg.observation_chance
    return True if snap.ctx.rng.random() < chance else None


def build_observe(snap: PlanningSnapshot, _candidate) -> Task:
    return ObserveTask(snap.ctx)


def match_stroll(snap: PlanningSnapshot):
    cfg = snap.ctx.config
    if snap.now - snap.ctx.state.last_stroll < cfg.stroll_cooldown_ms:
        return None
    if not cfg.stroll_chance:
        return None
    chance = cfg.stroll_chance
    if snap.nearest_player is not None:
        chance = min(0.9, chance + 0.15)
    return True if snap.ctx.rng.random() < chance else None


def build_stroll(snap: PlanningSnapshot, _candidate) -> Task:
    return StrollTask(snap.ctx)


def build_explore(snap: PlanningSnapshot, _candidate) -> Task:
    return ExploreTask(snap.ctx, snap.position)


DEFAULT_RULES: Tuple[Rule, ...] = (
    Rule("combat", match_combat, build_combat),
    Rule("evade", match_evade, build_evade),
    Rule("collect_item", match_item, build_item),
    Rule("harvest", match_resource, build_resource),
    Rule("investigate_poi", match_poi, build_poi),
    Rule("group_follow", match_group, build_group),
    Rule("follow_player", match_follow, build_follow),
    Rule("seek_remote_player", match_remote, build_remote),
    Rule("observe", match_observe, build_observe),
    Rule("stroll", match_stroll, build_stroll),
    Rule("explore", lambda snap: True, build_explore),
)


def select_task(snap: PlanningSnapshot, rules: Tuple[Rule, ...] = DEFAULT_RULES) -> Optional[Tuple[Rule, Task]]:
    for rule in rules:
        candidate = rule.match(snap)
        if candidate is None:
            continue
        task = rule.build(snap, candidate)
        if task is not None:
            return rule, task
    return None
