# eco_sim/sim/world.py
from __future__ import annotations
from typing import List, Optional, Tuple
import logging
import math

from .models import Resource
from .rng import RNG
from .config import ResourceConfig

logger = logging.getLogger(__name__)


class World:
    """
    Toroidal field plus the resource collection.
    Owned by the engine; every resource spawn path goes through `spawn_resource`
    so the cap and the spawn counter stay consistent.
    """
    def __init__(self, width: float, height: float, limits: ResourceConfig):
        self.width = width
        self.height = height
        self.limits = limits
        self.resources: List[Resource] = []
        self.spawned = 0
        self._next_id = 0

    def clear(self) -> None:
        self.resources = []
        self.spawned = 0

    def next_id(self) -> int:
        self._next_id += 1
        return self._next_id

    # --- capacity ---
    @property
    def soft_cap(self) -> float:
        return self.limits.max_count * self.limits.enforcement_threshold

    def room(self) -> int:
        return max(0, int(math.ceil(self.soft_cap - len(self.resources))))

    def has_room(self) -> bool:
        return len(self.resources) < self.soft_cap

    # --- placement helpers ---
    def random_point(self, rng: RNG) -> Tuple[float, float]:
        return (rng.uniform(0.0, self.width), rng.uniform(0.0, self.height))

    def wrap(self, x: float, y: float) -> Tuple[float, float]:
        return (x % self.width, y % self.height)

    def scatter(self, cx: float, cy: float, radius: float, rng: RNG,
                inner: float = 0.0) -> Tuple[float, float]:
        """Random point in the annulus [inner, radius] around (cx, cy), wrapped."""
        r = inner + rng.random() * (radius - inner)
        a = rng.angle()
        return self.wrap(cx + math.cos(a) * r, cy + math.sin(a) * r)

    # --- resources ---
    def spawn_resource(self, x: float, y: float, energy: float, day: int) -> Optional[Resource]:
        if not self.has_room():
            return None
        r = Resource.make(self.next_id(), x, y, energy, day)
        self.resources.append(r)
        self.spawned += 1
        return r

    def spawn_uniform(self, n: int, energy: float, day: int, rng: RNG) -> int:
        made = 0
        for _ in range(n):
            x, y = self.random_point(rng)
            if self.spawn_resource(x, y, energy, day) is None:
                break
            made += 1
        return made

    def spawn_cluster(self, cx: float, cy: float, n: int, radius: float, energy: float,
                      day: int, rng: RNG, inner: float = 0.0) -> int:
        made = 0
        for _ in range(n):
            x, y = self.scatter(cx, cy, radius, rng, inner)
            if self.spawn_resource(x, y, energy, day) is None:
                break
            made += 1
        return made

    def nearest_resource_index(self, x: float, y: float, radius: float) -> Optional[int]:
        best = None
        best_d2 = radius * radius
        for i, f in enumerate(self.resources):
            d2 = (f.x - x) ** 2 + (f.y - y) ** 2
            if d2 < best_d2:
                best = i
                best_d2 = d2
        return best

    def nearest_resource_within(self, x: float, y: float, radius: float) -> Optional[Resource]:
        i = self.nearest_resource_index(x, y, radius)
        return None if i is None else self.resources[i]

    def remove_resource_at(self, index: int) -> Resource:
        return self.resources.pop(index)

    def remove_random(self, rng: RNG) -> Optional[Resource]:
        if not self.resources:
            return None
        return self.resources.pop(rng.index(len(self.resources)))

    def decay_old(self, day: int, rng: RNG) -> int:
        """Age-based decay: resources older than the lifespan vanish with a small per-tick chance."""
        if not self.limits.enable_decay:
            return 0
        removed = 0
        for i in range(len(self.resources) - 1, -1, -1):
            r = self.resources[i]
            if day - r.created_day >= self.limits.decay_lifespan_days and rng.chance(self.limits.decay_chance_per_frame):
                self.resources.pop(i)
                removed += 1
        return removed

    def enforce_cap(self) -> int:
        excess = len(self.resources) - self.limits.max_count
        if excess <= 0:
            return 0
        # oldest first; sort is stable so ties keep insertion order
        self.resources.sort(key=lambda r: r.created_day)
        del self.resources[:excess]
        logger.debug("resource cap enforced: dropped %d oldest", excess)
        return excess
