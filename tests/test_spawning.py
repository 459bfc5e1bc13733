from collections import Counter

import pytest

from eco_sim.sim.config import PREY_ARCHETYPES
from eco_sim.sim.rng import RNG
from eco_sim.sim.spawning import (
    clustered_placements, jittered_attributes, jittered_capacity, partition,
    predator_cluster_count, prey_cluster_count,
)
from eco_sim.sim.world import World
from eco_sim.sim.models import TRAITS


@pytest.mark.parametrize("count,clusters,expected", [
    (10, 3, [4, 3, 3]),
    (50, 5, [10, 10, 10, 10, 10]),
    (2, 3, [1, 1, 0]),
    (7, 0, []),
])
def test_partition(count, clusters, expected):
    assert partition(count, clusters) == expected


@pytest.mark.parametrize("count,expected", [(10, 3), (25, 3), (26, 5), (100, 5)])
def test_prey_cluster_count(count, expected):
    assert prey_cluster_count(count, 5) == expected


@pytest.mark.parametrize("count,expected", [(1, 2), (4, 2), (5, 3), (8, 3), (9, 4)])
def test_predator_cluster_count(count, expected):
    assert predator_cluster_count(count, 4) == expected


def test_ten_prey_split_four_three_three(cfg):
    world = World(cfg.world.width, cfg.world.height, cfg.resources)
    placed = list(clustered_placements(10, PREY_ARCHETYPES, 3, 80.0, world, RNG(2)))
    per_arch = Counter(arch.name for arch, _, _ in placed)
    assert [per_arch[a.name] for a in PREY_ARCHETYPES[:3]] == [4, 3, 3]
    assert all(0.0 <= x < world.width and 0.0 <= y < world.height for _, x, y in placed)


def test_jitter_respects_trait_clamp(cfg):
    rng = RNG(6)
    sc = cfg.spawning
    for arch in sc.prey_archetypes + sc.predator_archetypes:
        for _ in range(100):
            attrs = jittered_attributes(arch, sc, rng)
            assert all(sc.trait_min <= getattr(attrs, n) <= sc.trait_max for n in TRAITS)


def test_capacity_jitter_follows_archetype(cfg):
    rng = RNG(6)
    brute = cfg.spawning.predator_archetypes[0]
    for _ in range(100):
        cap = jittered_capacity(560.0, brute, cfg.spawning, rng)
        assert 560.0 * 1.2 * 0.85 <= cap <= 560.0 * 1.2 * 1.15
