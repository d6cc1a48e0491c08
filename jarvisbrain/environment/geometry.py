"""Vector helpers for world-space positions."""

from __future__ import annotations

import hashlib
import math
import random
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence


@dataclass(frozen=True)
class Vec3:
    """Immutable 3D position or offset in block units."""

    x: float
    y: float
    z: float

    def plus(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def offset(self, dx: float, dy: float, dz: float) -> "Vec3":
        return Vec3(self.x + dx, self.y + dy, self.z + dz)

    def distance_squared(self, other: "Vec3") -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        dz = self.z - other.z
        return dx * dx + dy * dy + dz * dz

    def distance_to(self, other: "Vec3") -> float:
        return math.sqrt(self.distance_squared(other))

    def floored(self) -> "Vec3":
        return Vec3(math.floor(self.x), math.floor(self.y), math.floor(self.z))

    def __str__(self) -> str:
        return f"({self.x:g}, {self.y:g}, {self.z:g})"


def distance(a: Optional[Vec3], b: Optional[Vec3]) -> float:
    """Euclidean distance, ``inf`` when either side is unknown."""
    if a is None or b is None:
        return math.inf
    return a.distance_to(b)


def centroid(points: Sequence[Vec3]) -> Optional[Vec3]:
    if not points:
        return None
    count = len(points)
    return Vec3(
        sum(p.x for p in points) / count,
        sum(p.y for p in points) / count,
        sum(p.z for p in points) / count,
    )


def add_noise(position: Vec3, radius: float, rng: random.Random) -> Vec3:
    """Return a horizontal jitter of ``position`` within ``radius`` blocks."""
    offset = Vec3(
        math.floor((rng.random() - 0.5) * radius * 2),
        0,
        math.floor((rng.random() - 0.5) * radius * 2),
    )
    return position.plus(offset)


def escape_point(origin: Vec3, threat: Vec3, length: float) -> Vec3:
    """Point ``length`` blocks away from ``threat``, measured from ``origin``.

    Only the horizontal plane is used. When the agent stands exactly on the
    threat the escape heads along +x.
    """
    dx = origin.x - threat.x
    dz = origin.z - threat.z
    norm = math.sqrt(dx * dx + dz * dz)
    if norm == 0:
        dx, norm = 1.0, 1.0
    return origin.plus(Vec3(math.floor(dx / norm * length), 0, math.floor(dz / norm * length)))


def look_point(origin: Vec3, yaw: float, reach: float, height: float = 1.6) -> Vec3:
    """Point at eye height ``reach`` blocks along ``yaw`` (radians)."""
    return origin.offset(math.cos(yaw) * reach, height, math.sin(yaw) * reach)


def stable_angle(key: str) -> float:
    """Map ``key`` to a reproducible angle in ``[0, 2*pi)``.

    Uses a content hash so the result survives interpreter restarts, unlike
    the builtin ``hash``.
    """
    digest = hashlib.sha1(key.encode("utf-8")).digest()
    bucket = int.from_bytes(digest[:4], "big")
    return (bucket / 2**32) * 2 * math.pi


def nearest(origin: Optional[Vec3], candidates: Iterable, key=lambda item: item.position):
    """Return the candidate whose position is closest to ``origin``."""
    if origin is None:
        return None
    best = None
    best_dist = math.inf
    for candidate in candidates:
        pos = key(candidate)
        if pos is None:
            continue
        dist = origin.distance_squared(pos)
        if dist < best_dist:
            best_dist = dist
            best = candidate
    return best
