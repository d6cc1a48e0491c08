"""Unit tests for observation schemas and geometry helpers."""

import math
import random

import pytest
from pydantic import ValidationError

from jarvisbrain.environment import (
    BlockInfo,
    HostileEntity,
    ItemEntity,
    PlayerEntity,
    PlayerListEntry,
    Vec3,
    centroid,
    classify_entity,
    distance,
    escape_point,
    look_point,
    parse_entity,
    stable_angle,
)
from jarvisbrain.environment.geometry import add_noise, nearest


def test_position_coercion():
    from_dict = PlayerEntity(entity_id=1, username="Steve", position={"x": 1, "y": 2, "z": 3})
    from_tuple = PlayerEntity(entity_id=1, username="Steve", position=(1, 2, 3))

    assert from_dict.position == from_tuple.position == Vec3(1, 2, 3)
    with pytest.raises(ValidationError):
        PlayerEntity(entity_id=1, username="Steve", position=(1, 2))


def test_parse_entity_discriminates_on_kind():
    hostile = parse_entity({"kind": "hostile", "entity_id": 3, "name": "Zombie", "position": (0, 64, 0)})
    block = parse_entity({"kind": "block", "name": "furnace", "position": (1, 64, 1)})

    assert isinstance(hostile, HostileEntity) and hostile.alive
    assert isinstance(block, BlockInfo)
    with pytest.raises(ValidationError):
        parse_entity({"kind": "dragon", "entity_id": 1})


def test_hostile_alive_flag():
    assert HostileEntity(entity_id=1, name="Zombie", position=(0, 0, 0)).alive
    assert not HostileEntity(entity_id=1, name="Zombie", position=(0, 0, 0), health=0).alive


@pytest.mark.parametrize(
    "raw, expected",
    [
        ({"type": "player", "id": 1, "username": "Steve", "position": (0, 64, 0)}, PlayerEntity),
        ({"type": "mob", "id": 2, "displayName": "Skeleton", "position": (0, 64, 0)}, HostileEntity),
        ({"type": "object", "id": 3, "name": "Item", "itemName": "bread", "position": (0, 64, 0)}, ItemEntity),
        ({"type": "mob", "id": 4, "displayName": "Cow", "position": (0, 64, 0)}, None),
        ({"type": "object", "id": 5, "name": "Arrow", "position": (0, 64, 0)}, None),
        ({"type": "player", "id": 6, "username": "Steve"}, None),
    ],
)
def test_classify_entity(raw, expected):
    entity = classify_entity(raw)
    if expected is None:
        assert entity is None
    else:
        assert isinstance(entity, expected)


def test_classified_item_keeps_item_name():
    item = classify_entity({"type": "object", "id": 3, "name": "Item", "itemName": "bread", "position": (0, 64, 0)})
    assert item.name == "bread"


def test_player_list_entry_nested_entity():
    entry = PlayerListEntry.model_validate(
        {"username": "Steve", "entity": {"entity_id": 9, "username": "Steve", "position": (1, 64, 1)}}
    )
    assert entry.entity.position == Vec3(1, 64, 1)
    assert PlayerListEntry(username="Alex").entity is None


def test_distance_and_centroid():
    assert distance(Vec3(0, 0, 0), Vec3(3, 4, 0)) == 5
    assert distance(None, Vec3(0, 0, 0)) == math.inf
    assert centroid([Vec3(0, 64, 0), Vec3(4, 64, 8)]) == Vec3(2, 64, 4)
    assert centroid([]) is None


def test_escape_point_runs_directly_away():
    assert escape_point(Vec3(0, 64, 0), Vec3(5, 64, 0), 8) == Vec3(-8, 64, 0)
    assert escape_point(Vec3(0, 64, 0), Vec3(0, 64, 0), 8) == Vec3(8, 64, 0)


def test_add_noise_stays_in_radius_and_level():
    rng = random.Random(4)
    origin = Vec3(10, 64, -10)
    for _ in range(50):
        point = add_noise(origin, 16, rng)
        assert point.y == 64
        assert abs(point.x - origin.x) <= 16
        assert abs(point.z - origin.z) <= 16


def test_stable_angle_is_deterministic():
    assert stable_angle("Alex") == stable_angle("Alex")
    assert stable_angle("Alex") != stable_angle("Steve")
    assert 0 <= stable_angle("Alex") < 2 * math.pi


def test_nearest_skips_unknown_positions():
    class Spot:
        def __init__(self, position):
            self.position = position

    spots = [Spot(None), Spot(Vec3(9, 0, 0)), Spot(Vec3(2, 0, 0))]

    assert nearest(Vec3(0, 0, 0), spots) is spots[2]
    assert nearest(None, spots) is None


def test_look_point_follows_yaw_at_eye_height():
    origin = Vec3(0, 64, 0)

    assert look_point(origin, 0, 4).distance_to(Vec3(4, 65.6, 0)) < 1e-9
    assert look_point(origin, math.pi / 2, 3, height=0).distance_to(Vec3(0, 64, 3)) < 1e-9
