"""Pydantic schemas for everything the world interface hands to the brain.

Observations arrive as loosely shaped objects from the game adapter. They are
validated here, once, into a small tagged union so the planner never has to
guess which attributes an entity carries.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, BeforeValidator, Field, TypeAdapter, ValidationError

from .geometry import Vec3


HOSTILE_MOBS = frozenset(
    {
        "Creeper",
        "Skeleton",
        "Spider",
        "Cave Spider",
        "Zombie",
        "Zombie Villager",
        "Drowned",
        "Husk",
        "Enderman",
        "Witch",
        "Wither Skeleton",
        "Piglin Brute",
        "Pillager",
        "Vindicator",
        "Evoker",
        "Ravager",
        "Guardian",
        "Elder Guardian",
        "Vex",
        "Phantom",
        "Stray",
        "Zoglin",
        "Zombified Piglin",
        "Breeze",
        "Bogged",
        "Blaze",
        "Ghast",
        "Slime",
        "Magma Cube",
        "Silverfish",
        "Warden",
    }
)
"""Display names of mobs treated as threats."""


def _coerce_vec(value: Any) -> Any:
    if value is None or isinstance(value, Vec3):
        return value
    if isinstance(value, Mapping):
        return Vec3(float(value["x"]), float(value["y"]), float(value["z"]))
    if isinstance(value, (tuple, list)):
        if len(value) != 3:
            raise ValueError("position needs exactly three coordinates")
        return Vec3(float(value[0]), float(value[1]), float(value[2]))
    if all(hasattr(value, axis) for axis in ("x", "y", "z")):
        return Vec3(float(value.x), float(value.y), float(value.z))
    raise ValueError(f"cannot interpret {value!r} as a position")


Position = Annotated[Vec3, BeforeValidator(_coerce_vec)]


class PlayerEntity(BaseModel):
    """A locally rendered player avatar."""

    kind: Literal["player"] = "player"
    entity_id: int
    username: str
    position: Position
    velocity: Optional[Position] = None


class HostileEntity(BaseModel):
    """A rendered mob whose display name is in ``HOSTILE_MOBS``."""

    kind: Literal["hostile"] = "hostile"
    entity_id: int
    name: str
    position: Position
    health: Optional[float] = Field(None, description="None when the server does not report it")

    @property
    def alive(self) -> bool:
        return self.health is None or self.health > 0


class ItemEntity(BaseModel):
    """A dropped item lying in the world."""

    kind: Literal["item"] = "item"
    entity_id: int
    name: str = "item"
    position: Position


class BlockInfo(BaseModel):
    """A single block as returned by ``block_at``."""

    kind: Literal["block"] = "block"
    name: str
    position: Position


ObservedEntity = Annotated[
    Union[PlayerEntity, HostileEntity, ItemEntity, BlockInfo],
    Field(discriminator="kind"),
]

_ENTITY_ADAPTER: TypeAdapter = TypeAdapter(ObservedEntity)


class PlayerListEntry(BaseModel):
    """A connected player from the server's player list.

    ``entity`` is only set while the avatar is inside render range.
    """

    username: str
    ping: int = 0
    gamemode: int = 0
    listed: bool = True
    entity: Optional[PlayerEntity] = None


class InventoryItem(BaseModel):
    name: str
    count: int = 1
    slot: Optional[int] = None


def parse_entity(payload: Any) -> ObservedEntity:
    """Validate a tagged mapping (``kind`` key) into the entity union."""
    if isinstance(payload, (PlayerEntity, HostileEntity, ItemEntity, BlockInfo)):
        return payload
    return _ENTITY_ADAPTER.validate_python(payload)


def classify_entity(raw: Mapping[str, Any]) -> Optional[ObservedEntity]:
    """Convert a loose adapter mapping into an observed entity.

    The mapping follows the usual client conventions: ``type`` is one of
    ``player``, ``mob`` or ``object``; mobs and objects expose ``displayName``
    and/or ``name``. Passive mobs, unknown objects and malformed payloads map
    to ``None``.
    """
    entity_type = raw.get("type")
    label = raw.get("displayName") or raw.get("name")
    payload: dict[str, Any]
    if entity_type == "player":
        payload = {
            "kind": "player",
            "entity_id": raw.get("id"),
            "username": raw.get("username"),
            "position": raw.get("position"),
            "velocity": raw.get("velocity"),
        }
    elif entity_type in ("mob", "hostile") and label in HOSTILE_MOBS:
        payload = {
            "kind": "hostile",
            "entity_id": raw.get("id"),
            "name": label,
            "position": raw.get("position"),
            "health": raw.get("health"),
        }
    elif entity_type == "object" and label == "Item":
        payload = {
            "kind": "item",
            "entity_id": raw.get("id"),
            "name": raw.get("itemName") or "item",
            "position": raw.get("position"),
        }
    else:
        return None

    try:
        return parse_entity(payload)
    except (ValidationError, ValueError, KeyError):
        return None


__all__ = [
    "HOSTILE_MOBS",
    "Position",
    "PlayerEntity",
    "HostileEntity",
    "ItemEntity",
    "BlockInfo",
    "ObservedEntity",
    "PlayerListEntry",
    "InventoryItem",
    "parse_entity",
    "classify_entity",
]
