# eco_sim/sim/spawning.py
from __future__ import annotations
from typing import Iterator, List, Sequence, Tuple

from .config import Archetype, SpawnConfig
from .models import GeneticAttributes, TRAITS
from .rng import RNG
from .world import World


def prey_cluster_count(count: int, n_archetypes: int) -> int:
    return min(n_archetypes, 5 if count > 25 else 3)

def predator_cluster_count(count: int, n_archetypes: int) -> int:
    if count > 8:
        k = 4
    elif count > 4:
        k = 3
    else:
        k = 2
    return min(n_archetypes, max(2, k))

def partition(count: int, clusters: int) -> List[int]:
    """Even split; the first `count % clusters` clusters take one extra."""
    if clusters <= 0:
        return []
    per, rem = divmod(count, clusters)
    return [per + 1 if i < rem else per for i in range(clusters)]

def jittered_attributes(arch: Archetype, spawning: SpawnConfig, rng: RNG) -> GeneticAttributes:
    attrs = GeneticAttributes(*(getattr(arch, name) + rng.spread(spawning.trait_jitter) for name in TRAITS))
    return attrs.clamp(spawning.trait_min, spawning.trait_max)

def jittered_capacity(species_default: float, arch: Archetype, spawning: SpawnConfig, rng: RNG) -> float:
    j = spawning.energy_jitter
    return species_default * arch.energy_mod * rng.uniform(1.0 - j, 1.0 + j)

def clustered_placements(count: int, archetypes: Sequence[Archetype], clusters: int, radius: float,
                         world: World, rng: RNG) -> Iterator[Tuple[Archetype, float, float]]:
    """Yield (archetype, x, y) for every individual, cluster by cluster."""
    for arch, n in zip(archetypes, partition(count, clusters)):
        cx, cy = world.random_point(rng)
        for _ in range(n):
            x, y = world.scatter(cx, cy, radius, rng)
            yield arch, x, y
