"""Goal-driven tasks: explore, investigate, collect, evade, follow, seek."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional

from ...environment.geometry import Vec3, add_noise, centroid, distance, escape_point, stable_angle
from ...environment.world import GoalFollow, GoalNear
from ...logging_utils import log_debug, log_decision, log_warn
from ...memory import HostileSighting, ItemSighting, PlayerSighting, PointOfInterest, RemoteContact
from ..state import BrainContext
from ..task import GoalTask, TaskType


class ExploreTask(GoalTask):
    """Walk to a random point within the wander radius."""

    type = TaskType.EXPLORE

    def __init__(self, ctx: BrainContext, origin: Vec3) -> None:
        destination = add_noise(origin, ctx.config.wander_radius, ctx.rng)
        super().__init__(ctx, destination, GoalNear(destination, ctx.config.follow_distance))

    def continue_predicate(self) -> bool:
        return self.goal_active()

    def _engage(self) -> None:
        super()._engage()
        log_debug(f"Exploring towards {self.target}")


class InvestigatePOITask(GoalTask):
    """Walk over to the most recently noted point of interest."""

    type = TaskType.INVESTIGATE_POI

    def __init__(self, ctx: BrainContext, poi: PointOfInterest) -> None:
        super().__init__(ctx, poi, GoalNear(poi.position, ctx.config.follow_distance))

    def continue_predicate(self) -> bool:
        poi = self.target
        if not any(p is poi for p in self.ctx.memory.pois):
            return False
        if self.ctx.now() - poi.noted_at >= self.ctx.config.poi_forget_ms:
            return False
        return self.goal_active()

    def _engage(self) -> None:
        super()._engage()
        log_decision(f"Investigating {self.target.description} at {self.target.position}")

    def _cleanup(self) -> None:
        super()._cleanup()
        here = self.ctx.position()
        if distance(here, self.target.position) <= self.ctx.config.follow_distance + 1:
            self.ctx.memory.forget_poi(self.target)


class CollectItemTask(GoalTask):
    """Walk onto a dropped item so it gets picked up."""

    type = TaskType.COLLECT_ITEM

    def __init__(self, ctx: BrainContext, item: ItemSighting) -> None:
        super().__init__(ctx, item, GoalNear(item.position, 1))

    def continue_predicate(self) -> bool:
        item_id = self.target.entity_id
        if item_id not in self.ctx.memory.items:
            return False
        try:
            return self.ctx.world.entity(item_id) is not None
        except Exception as exc:
            log_debug(f"entity lookup failed: {exc}")
            return False

    def _engage(self) -> None:
        super()._engage()
        log_decision(f"Moving to collect dropped {self.target.name}")


def evade_destination(ctx: BrainContext, origin: Vec3, threat: Optional[HostileSighting]) -> Vec3:
    if threat is None or threat.position is None:
        return add_noise(origin, ctx.config.wander_radius, ctx.rng)
    return escape_point(origin, threat.position, ctx.config.evade_distance)


class EvadeTask(GoalTask):
    """Run away from the nearest threat (or anywhere, if none is known)."""

    type = TaskType.EVADE_THREAT

    def __init__(self, ctx: BrainContext, origin: Vec3, threat: Optional[HostileSighting]) -> None:
        destination = evade_destination(ctx, origin, threat)
        super().__init__(ctx, threat, GoalNear(destination, ctx.config.follow_distance))
        self.destination = destination

    def continue_predicate(self) -> bool:
        if not self.goal_active():
            return False
        cfg = self.ctx.config
        now = self.ctx.now()
        if now - self.ctx.state.last_damage_time < cfg.danger_cooldown_ms:
            return True
        here = self.ctx.position()
        threat = self.ctx.memory.nearest_hostile(here)
        return threat is not None and distance(here, threat.position) < cfg.evade_trigger_distance

    def _engage(self) -> None:
        super()._engage()
        label = self.target.name if self.target is not None else "unknown threat"
        log_warn(f"Evading {label}, heading to {self.destination}")


class FollowPlayerTask(GoalTask):
    """Tail a single visible player at ``follow_distance``."""

    type = TaskType.FOLLOW_PLAYER

    def __init__(self, ctx: BrainContext, player: PlayerSighting) -> None:
        goal = GoalFollow(username=player.username, tolerance=ctx.config.follow_distance)
        super().__init__(ctx, player.username, goal)

    def continue_predicate(self) -> bool:
        info = self.ctx.memory.players.get(self.target)
        if info is None:
            return False
        return distance(self.ctx.position(), info.position) <= self.ctx.config.follow_max_distance

    def _engage(self) -> None:
        super()._engage()
        log_decision(f"Following {self.target}")


@dataclass
class PlayerGroup:
    members: List[str]
    centroid: Vec3
    anchor: Optional[str] = None


def find_group(
    players: List[PlayerSighting],
    radius: float,
    min_players: int,
    anchor: Optional[str] = None,
) -> Optional[PlayerGroup]:
    """Largest set of players within ``radius`` of one member.

    Ties go to the cluster containing ``anchor``, then to the first seed in
    username order so the result is stable between ticks.
    """
    best: Optional[List[PlayerSighting]] = None
    for seed in sorted(players, key=lambda p: p.username):
        members = [p for p in players if p.position.distance_to(seed.position) <= radius]
        if best is None or len(members) > len(best):
            best = members
        elif len(members) == len(best) and anchor is not None:
            if any(p.username == anchor for p in members) and not any(p.username == anchor for p in best):
                best = members
    if best is None or len(best) < min_players:
        return None
    positions = [p.position for p in best]
    names = sorted(p.username for p in best)
    return PlayerGroup(
        members=names,
        centroid=centroid(positions),
        anchor=anchor if anchor in names else None,
    )


def current_group(ctx: BrainContext) -> Optional[PlayerGroup]:
    cfg = ctx.config
    return find_group(
        list(ctx.memory.players.values()),
        cfg.group_radius,
        cfg.group_min_players,
        cfg.group_anchor,
    )


class GroupFollowTask(GoalTask):
    """Stay with a cluster of players, re-targeting as the group drifts."""

    type = TaskType.GROUP_FOLLOW

    def __init__(self, ctx: BrainContext, group: PlayerGroup) -> None:
        super().__init__(ctx, group, self._goal_for(ctx, group))

    @staticmethod
    def _goal_for(ctx: BrainContext, group: PlayerGroup):
        if group.anchor is not None:
            return GoalFollow(username=group.anchor, tolerance=ctx.config.group_comfort_distance)
        return GoalNear(group.centroid, ctx.config.group_comfort_distance)

    def continue_predicate(self) -> bool:
        group = current_group(self.ctx)
        if group is None:
            return False
        return distance(self.ctx.position(), group.centroid) <= self.ctx.config.group_leash_distance

    def _engage(self) -> None:
        super()._engage()
        anchor = f" anchored on {self.target.anchor}" if self.target.anchor else ""
        log_decision(f"Tagging along with {', '.join(self.target.members)}{anchor}")
        self.schedule(self.ctx.config.group_refresh_ms, self._refresh)

    def _refresh(self) -> None:
        group = current_group(self.ctx)
        if group is not None:
            self.target = group
            if group.anchor is None or not isinstance(self.goal, GoalFollow) or self.goal.username != group.anchor:
                self.replace_goal(self._goal_for(self.ctx, group))
        self.schedule(self.ctx.config.group_refresh_ms, self._refresh)


def seek_destination(ctx: BrainContext, contact: RemoteContact, origin: Vec3) -> Vec3:
    """Hint position if known, else a point on the username's stable bearing."""
    if contact.hint_position is not None:
        return contact.hint_position
    low, high = ctx.config.remote_seek_radius_range
    radius = ctx.rng.uniform(low, high)
    angle = stable_angle(contact.username)
    return Vec3(
        math.floor(origin.x + math.cos(angle) * radius),
        origin.y,
        math.floor(origin.z + math.sin(angle) * radius),
    )


class SeekRemotePlayerTask(GoalTask):
    """Head towards a connected player who is outside render range."""

    type = TaskType.SEEK_REMOTE_PLAYER

    def __init__(self, ctx: BrainContext, contact: RemoteContact, origin: Vec3) -> None:
        destination = seek_destination(ctx, contact, origin)
        super().__init__(ctx, contact, GoalNear(destination, ctx.config.follow_distance))
        self.destination = destination
        self.guided = contact.hint_position is not None

    def continue_predicate(self) -> bool:
        if self.target.username not in self.ctx.memory.remote_players:
            return False
        return self.goal_active()

    def _engage(self) -> None:
        super()._engage()
        self.target.last_seek_at = self.ctx.now()
        self.target.last_seek_target = self.destination
        how = f"{self.target.hint_source} hint" if self.guided else "search bearing"
        log_decision(f"Looking for {self.target.username} at {self.destination} ({how})")
