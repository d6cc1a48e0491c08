"""Melee combat against a single hostile.

The task moves through three phases: *engage* equips gear and locks a follow
goal onto the target, *attacking* runs two timer loops (look-at and swing)
in the task bucket, and *disengaged* is reached through ``cleanup`` whatever
the reason: predicate failure, timeout, pause, death or preemption.
"""

from __future__ import annotations

from typing import Dict, Iterable, Optional

from ...environment.geometry import distance
from ...environment.schemas import HostileEntity, InventoryItem
from ...environment.world import GoalFollow
from ...logging_utils import log_debug, log_info, log_warn
from ...memory import HostileSighting
from ..state import BrainContext
from ..task import GoalTask, TaskType


SHIELD = "shield"
JUMP_RELEASE_MS = 250
TARGET_EYE_HEIGHT = 1.0


def best_weapon(inventory: Iterable[InventoryItem], priority: Dict[str, int]) -> Optional[str]:
    """Highest-priority weapon name in ``inventory``, if any."""
    best_name = None
    best_score = None
    for item in inventory:
        score = priority.get(item.name)
        if score is None:
            continue
        if best_score is None or score > best_score:
            best_name, best_score = item.name, score
    return best_name


def has_shield(inventory: Iterable[InventoryItem]) -> bool:
    return any(item.name == SHIELD for item in inventory)


class CombatTask(GoalTask):
    """Chase and strike a hostile until it dies, escapes or we get hurt."""

    type = TaskType.COMBAT

    def __init__(self, ctx: BrainContext, hostile: HostileSighting, weapon: str) -> None:
        goal = GoalFollow(entity_id=hostile.entity_id, tolerance=max(1.0, ctx.config.melee_range - 1))
        super().__init__(ctx, hostile, goal)
        self.weapon = weapon
        self.shield = has_shield(ctx.inventory())
        self.shield_raised = False
        self.strikes = 0

    def _live_target(self) -> Optional[HostileEntity]:
        try:
            entity = self.ctx.world.entity(self.target.entity_id)
        except Exception as exc:
            log_debug(f"entity lookup failed: {exc}")
            return None
        if isinstance(entity, HostileEntity) and entity.alive:
            return entity
        return None

    def continue_predicate(self) -> bool:
        entity = self._live_target()
        if entity is None:
            return False
        cfg = self.ctx.config
        if distance(self.ctx.position(), entity.position) > cfg.max_chase_distance:
            return False
        return self.ctx.health() > cfg.disengage_health_threshold

    def _engage(self) -> None:
        safe = self.ctx.safe
        safe.equip(self.weapon, "hand")
        if self.shield:
            safe.equip(SHIELD, "off-hand")
        super()._engage()
        log_warn(f"Engaging {self.target.name} with {self.weapon}")
        self._look_loop()
        self.schedule(self.ctx.config.combat_attack_interval_ms, self._swing_loop)

    def _look_loop(self) -> None:
        entity = self._live_target()
        if entity is not None:
            self.ctx.safe.look_at(entity.position.offset(0, TARGET_EYE_HEIGHT, 0))
        self.schedule(self.ctx.config.combat_look_interval_ms, self._look_loop)

    def _swing_loop(self) -> None:
        cfg = self.ctx.config
        entity = self._live_target()
        if entity is not None:
            in_reach = distance(self.ctx.position(), entity.position) <= cfg.melee_range
            if in_reach:
                self._lower_shield()
                self.ctx.safe.attack(entity.entity_id)
                self.ctx.safe.swing_arm("right")
                self.strikes += 1
                if self.ctx.rng.random() < cfg.combat_jump_chance:
                    self.ctx.safe.set_control("jump", True)
                    self.schedule(JUMP_RELEASE_MS, lambda: self.ctx.safe.set_control("jump", False))
            elif self.shield and not self.shield_raised:
                self.ctx.safe.activate_item(off_hand=True)
                self.shield_raised = True
        self.schedule(cfg.combat_attack_interval_ms, self._swing_loop)

    def _lower_shield(self) -> None:
        if self.shield_raised:
            self.ctx.safe.deactivate_item()
            self.shield_raised = False

    def _cleanup(self) -> None:
        super()._cleanup()
        safe = self.ctx.safe
        safe.deactivate_item()
        self.shield_raised = False
        safe.set_control("jump", False)
        self.ctx.state.combat_cooldown_until = self.ctx.now() + self.ctx.config.combat_cooldown_ms
        self.ctx.memory.forget_hostile(self.target.entity_id)
        log_info(f"Disengaged from {self.target.name} after {self.strikes} strikes")
