# eco_sim/sim/genetics.py
from __future__ import annotations
from typing import Sequence

from .models import Creature, GeneticAttributes, TRAITS, LEARNABLE_TRAITS, clamp
from .config import LearningConfig, ReproConfig, SimConfig
from .rng import RNG


def mutate_attributes(parent: GeneticAttributes, repro: ReproConfig, rng: RNG) -> GeneticAttributes:
    """Small noise on every trait, plus an occasional large jump on one of them."""
    child = parent.copy()
    half = repro.mutation_range / 2.0
    for name in TRAITS:
        setattr(child, name, getattr(child, name) + rng.spread(half))
    if rng.chance(repro.mutation_chance):
        name = rng.choice(TRAITS)
        setattr(child, name, getattr(child, name) + rng.spread(repro.significant_mutation_range / 2.0))
    return child.clamp(0.0, 1.0)

def mutate_capacity(parent_max: float, species_default: float, repro: ReproConfig, rng: RNG) -> float:
    m = parent_max * (1.0 + rng.spread(repro.energy_capacity_mutation_range / 2.0))
    if rng.chance(repro.mutation_chance):
        m *= 1.0 + rng.spread(repro.significant_energy_capacity_mutation_range / 2.0)
    return clamp(m, species_default * repro.min_energy_capacity, species_default * repro.max_energy_capacity)

def reproduce(parent: Creature, child_id: int, cfg: SimConfig, rng: RNG) -> Creature:
    """
    Asexual offspring of the same species, placed next to the parent.
    The parent pays by keeping only its species' `reproduction_keep` share of energy.
    """
    species = parent.species(cfg)
    repro = cfg.reproduction
    attrs = mutate_attributes(parent.attributes, repro, rng)
    max_energy = mutate_capacity(parent.max_energy, species.max_energy, repro, rng)

    x = (parent.x + rng.spread(repro.offspring_spread)) % cfg.world.width
    y = (parent.y + rng.spread(repro.offspring_spread)) % cfg.world.height
    child = type(parent).spawn(child_id, x, y, max_energy, attrs, cfg.creatures, rng,
                               generation=parent.generation + 1)

    parent.energy *= species.reproduction_keep
    parent.offspring += 1
    return child

def learn_from_peers(creatures: Sequence[Creature], learning: LearningConfig, rng: RNG) -> int:
    """
    Social learning within one species. A learner copies part of a better
    peer's trait and pays energy for it. Learnability itself is never learned.
    Returns the number of learning events.
    """
    n = len(creatures)
    if n <= 1:
        return 0
    events = 0
    for i, learner in enumerate(creatures):
        if not learner.alive:
            continue
        la = learner.attributes
        if not rng.chance(la.learnability * learning.chance_multiplier):
            continue
        j = rng.index(n - 1)
        if j >= i:
            j += 1
        peer = creatures[j]
        if not peer.alive:
            continue
        trait = rng.choice(LEARNABLE_TRAITS)
        diff = getattr(peer.attributes, trait) - getattr(la, trait)
        if diff <= 0:
            continue
        amount = min(diff * la.learnability * learning.learning_rate, learning.max_learning_amount)
        setattr(la, trait, clamp(getattr(la, trait) + amount, 0.0, 1.0))
        learner.drain_energy(amount * learning.energy_cost, "learning_exhaustion")
        events += 1
    return events
