# eco_sim/sim/engine.py
from __future__ import annotations
from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Optional
import logging
import math

from .models import (
    Creature, EntitySnapshot, Predator, Prey, TRAITS, default_attributes,
)
from .world import World
from .behaviors import (
    WorldView, update_creature, can_catch_prey, can_escape_with_stealth, feed, nearest_within,
)
from .genetics import reproduce, learn_from_peers
from .spawning import (
    clustered_placements, jittered_attributes, jittered_capacity,
    predator_cluster_count, prey_cluster_count,
)
from .config import DEFAULT_CONFIG, SimConfig
from .rng import RNG

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtinctionEvent:
    kind: str                 # "prey" | "predator"
    day: int
    prey_count: int
    predator_count: int
    resource_count: int


def average_attributes(creatures: List[Creature]) -> Dict[str, float]:
    if not creatures:
        return {name: 0.0 for name in TRAITS}
    n = len(creatures)
    return {name: sum(getattr(c.attributes, name) for c in creatures) / n for name in TRAITS}


class SimulationEngine:
    """
    Owns the prey, predator and resource collections and advances them one tick
    per `update`. Stages run in a fixed order and only `_remove_dead` takes
    creatures out of their lists.

    Everything random goes through `self.rng`, so two engines built with the
    same config and seed replay the same history for the same commands.
    """
    def __init__(self, config: SimConfig = DEFAULT_CONFIG, seed: Optional[int] = None,
                 rng: Optional[RNG] = None):
        self.cfg = config.validate()
        if rng is None:
            rng = RNG(config.world.seed if seed is None else seed)
        self.rng = rng
        self.world = World(config.world.width, config.world.height, config.resources)
        self.prey: List[Prey] = []
        self.predators: List[Predator] = []
        self.initial_prey_count = config.population.prey

        self._running = False
        self._reset_counters()

    def _reset_counters(self) -> None:
        self.days = 0
        self.frame_count = 0
        self.tick = 0
        self.bloom_ticks_left = 0
        self.extinction_events: List[ExtinctionEvent] = []
        self.spawned = {"prey": 0, "predators": 0}
        self.births = {"prey": 0, "predators": 0}
        self.deaths: Counter = Counter()
        self._last_prey_count = 0
        self._last_predator_count = 0

    # ------------------------------------------------------------------
    # commands
    # ------------------------------------------------------------------
    def initialize(self) -> None:
        pop = self.cfg.population
        self.prey = []
        self.predators = []
        self.world.clear()
        self._reset_counters()

        # initial resources: a few dense patches, the rest uniform
        target = min(pop.resources, self.cfg.resources.max_count)
        per_cluster = target // pop.resource_clusters if pop.resource_clusters > 0 else 0
        energy = self.cfg.resources.default_energy
        for _ in range(pop.resource_clusters):
            cx, cy = self.world.random_point(self.rng)
            n = min(per_cluster, target - len(self.world.resources))
            self.world.spawn_cluster(cx, cy, n, pop.resource_cluster_radius, energy, self.days, self.rng)
        self.world.spawn_uniform(target - len(self.world.resources), energy, self.days, self.rng)

        self.spawn_prey(pop.prey, clustered=True)
        self.spawn_predators(pop.predators, clustered=True)

        logger.info("=== SIMULATION INITIALIZED ===")
        logger.info("resources=%d prey=%d predators=%d",
                    len(self.world.resources), len(self.prey), len(self.predators))
        logger.info("prey attributes: %s", _fmt(average_attributes(self.prey)))
        logger.info("predator attributes: %s", _fmt(average_attributes(self.predators)))

        self._last_prey_count = len(self.prey)
        self._last_predator_count = len(self.predators)

    def start(self) -> None:
        self._running = True

    def pause(self) -> None:
        self._running = False

    def reset(self) -> None:
        self.initialize()

    @property
    def is_running(self) -> bool:
        return self._running

    def _add_prey(self, c: Prey) -> None:
        self.prey.append(c)
        self.spawned["prey"] += 1

    def _add_predator(self, c: Predator) -> None:
        self.predators.append(c)
        self.spawned["predators"] += 1

    def _spawn_clustered(self, cls, count: int, archetypes, clusters: int, radius: float, add) -> None:
        species = cls.species(self.cfg)
        sc = self.cfg.spawning
        for arch, x, y in clustered_placements(count, archetypes, clusters, radius, self.world, self.rng):
            attrs = jittered_attributes(arch, sc, self.rng)
            cap = jittered_capacity(species.max_energy, arch, sc, self.rng)
            add(cls.spawn(self.world.next_id(), x, y, cap, attrs, self.cfg.creatures, self.rng))

    def _spawn_random(self, cls, count: int, add) -> None:
        species = cls.species(self.cfg)
        for _ in range(count):
            x, y = self.world.random_point(self.rng)
            add(cls.spawn(self.world.next_id(), x, y, species.max_energy,
                          default_attributes(species), self.cfg.creatures, self.rng))

    def spawn_prey(self, count: int = 10, clustered: bool = True) -> None:
        if count <= 0:
            return
        if clustered:
            archetypes = self.cfg.spawning.prey_archetypes
            k = prey_cluster_count(count, len(archetypes))
            logger.info("spawning %d prey in %d clusters", count, k)
            self._spawn_clustered(Prey, count, archetypes, k, self.cfg.spawning.prey_cluster_radius, self._add_prey)
        else:
            self._spawn_random(Prey, count, self._add_prey)
            logger.info("spawned %d prey randomly, total %d", count, len(self.prey))

    def spawn_predators(self, count: int = 5, clustered: bool = True) -> None:
        if count <= 0:
            return
        if clustered:
            archetypes = self.cfg.spawning.predator_archetypes
            k = predator_cluster_count(count, len(archetypes))
            logger.info("spawning %d predators in %d clusters", count, k)
            self._spawn_clustered(Predator, count, archetypes, k,
                                  self.cfg.spawning.predator_cluster_radius, self._add_predator)
        else:
            self._spawn_random(Predator, count, self._add_predator)
            logger.info("spawned %d predators randomly, total %d", count, len(self.predators))

    def spawn_resources(self, count: int = 20) -> int:
        made = self.world.spawn_uniform(max(0, count), self.cfg.resources.default_energy, self.days, self.rng)
        if made < count:
            logger.debug("resource cap limited spawn to %d of %d", made, count)
        return made

    # ------------------------------------------------------------------
    # tick
    # ------------------------------------------------------------------
    def update(self, delta_time: float) -> None:
        if not self._running:
            return
        self._update_creatures(delta_time)
        self._handle_resource_consumption()
        self._handle_predation()
        self._handle_reproduction()
        self._handle_learning()
        self._remove_dead()
        self._regenerate_resources()
        self._check_extinction()
        self._advance_clock()

    def _update_creatures(self, dt: float) -> None:
        view = WorldView(self.world, self.prey, self.predators)
        for c in self.prey:
            update_creature(c, view, self.cfg, self.rng, dt)
        for c in self.predators:
            update_creature(c, view, self.cfg, self.rng, dt)

    def _predator_nearby(self, prey: Prey, distance: float) -> bool:
        return nearest_within(prey, self.predators, distance) is not None

    def _handle_resource_consumption(self) -> None:
        cc = self.cfg.creatures
        ceiling = self.cfg.prey.feeding_energy_ceiling
        for prey in self.prey:
            if not prey.alive or prey.energy >= prey.max_energy * ceiling:
                continue
            if self._predator_nearby(prey, cc.predator_safety_range):
                continue
            i = self.world.nearest_resource_index(prey.x, prey.y, cc.resource_consumption_range)
            if i is None:
                continue
            feed(prey, self.world.remove_resource_at(i), self.cfg.prey)

    def _handle_predation(self) -> None:
        pc = self.cfg.predator
        reach = self.cfg.creatures.prey_capture_range
        for pred in self.predators:
            if not pred.alive or pred.energy >= pred.max_energy * pc.hunt_energy_ceiling:
                continue
            # newest prey first; a failed catch moves on, any successful catch ends the hunt
            for target in reversed(self.prey):
                if not target.alive or pred.distance_to(target) >= reach:
                    continue
                if not can_catch_prey(pred, target, self.rng):
                    continue
                if can_escape_with_stealth(target, pred, self.cfg.prey, self.rng):
                    target.set_heading(target.x - pred.x, target.y - pred.y, self.cfg.prey.escape_speed, self.rng)
                else:
                    pred.add_energy(target.energy * pc.energy_gain_from_prey)
                    target.die("predation")
                break

    def _handle_reproduction(self) -> None:
        # scan first, append after, so newborns wait a tick
        new_prey = [reproduce(p, self.world.next_id(), self.cfg, self.rng)
                    for p in self.prey if p.can_reproduce()]
        new_predators = [reproduce(p, self.world.next_id(), self.cfg, self.rng)
                         for p in self.predators if p.can_reproduce()]
        for c in new_prey:
            self._add_prey(c)
        for c in new_predators:
            self._add_predator(c)
        self.births["prey"] += len(new_prey)
        self.births["predators"] += len(new_predators)

    def _handle_learning(self) -> None:
        learn_from_peers(self.prey, self.cfg.learning, self.rng)
        learn_from_peers(self.predators, self.cfg.learning, self.rng)

    def _remove_dead(self) -> None:
        sc = self.cfg.spawning
        self._remove_dead_from(self.prey, sc.prey_death_spread)
        self._remove_dead_from(self.predators, sc.predator_death_spread)

    def _remove_dead_from(self, creatures: List[Creature], spread: float) -> None:
        sc = self.cfg.spawning
        energy = self.cfg.resources.default_energy
        for i in range(len(creatures) - 1, -1, -1):
            c = creatures[i]
            if c.alive:
                continue
            # the body goes back into the food supply
            n = math.ceil(c.max_energy * sc.death_energy_fraction / energy)
            self.world.spawn_cluster(c.x, c.y, n, spread, energy, self.days, self.rng)
            self.deaths[(c.kind.value, c.cause_of_death or "unknown")] += 1
            logger.debug("%s %d died (%s) at age %.1f", c.kind.value, c.id, c.cause_of_death, c.age)
            del creatures[i]

    def _regenerate_resources(self) -> None:
        rc = self.cfg.resources
        world = self.world
        world.decay_old(self.days, self.rng)

        if self.prey and world.has_room():
            if self.is_resource_bloom():
                if self.rng.chance(rc.bloom_regeneration_chance):
                    energy = rc.default_energy * rc.bloom_energy_multiplier
                    cx, cy = world.random_point(self.rng)
                    if self.rng.chance(rc.bloom_cluster_chance):
                        world.spawn_cluster(cx, cy, self.rng.randint(3, 5), rc.bloom_cluster_radius,
                                            energy, self.days, self.rng)
                    else:
                        world.spawn_resource(cx, cy, energy, self.days)
            elif self.rng.chance(rc.regeneration_chance):
                cx, cy = world.random_point(self.rng)
                world.spawn_resource(cx, cy, rc.default_energy, self.days)

            # recovery aid for a collapsing prey population
            if len(self.prey) < self.initial_prey_count * rc.emergency_threshold and self.rng.chance(rc.emergency_chance):
                cx, cy = world.random_point(self.rng)
                world.spawn_cluster(cx, cy, self.rng.randint(2, 4), rc.emergency_cluster_radius,
                                    rc.default_energy * rc.emergency_energy_multiplier, self.days, self.rng)
        elif not self.prey:
            if world.resources and self.rng.chance(rc.decay_chance):
                world.remove_random(self.rng)

        world.enforce_cap()

    def _check_extinction(self) -> None:
        prey_n, pred_n, res_n = len(self.prey), len(self.predators), len(self.world.resources)
        if self._last_prey_count > 0 and prey_n == 0:
            self.extinction_events.append(ExtinctionEvent("prey", self.days, prey_n, pred_n, res_n))
            logger.info("=== PREY EXTINCTION === day=%d predators=%d resources=%d predator attributes: %s",
                        self.days, pred_n, res_n, _fmt(average_attributes(self.predators)))
        if self._last_predator_count > 0 and pred_n == 0:
            self.extinction_events.append(ExtinctionEvent("predator", self.days, prey_n, pred_n, res_n))
            logger.info("=== PREDATOR EXTINCTION === day=%d prey=%d resources=%d prey attributes: %s",
                        self.days, prey_n, res_n, _fmt(average_attributes(self.prey)))
        self._last_prey_count = prey_n
        self._last_predator_count = pred_n

    def _advance_clock(self) -> None:
        self.tick += 1
        if self.bloom_ticks_left > 0:
            self.bloom_ticks_left -= 1
            if self.bloom_ticks_left == 0:
                logger.info("day %d: resource bloom has ended", self.days)
        self.frame_count += 1
        if self.frame_count >= self.cfg.world.frames_per_day:
            self.days += 1
            self.frame_count = 0
            if self.days % self.cfg.world.season_length == 0:
                self._start_bloom()

    def _start_bloom(self) -> None:
        b = self.cfg.bloom
        energy = self.cfg.resources.default_energy
        amount = min(b.resources_per_bloom, self.world.room())
        per_cluster = amount // b.cluster_count
        made = 0
        for _ in range(b.cluster_count):
            cx, cy = self.world.random_point(self.rng)
            primary = int(per_cluster * b.primary_density)
            made += self.world.spawn_cluster(cx, cy, primary, b.primary_cluster_radius,
                                             energy * b.primary_energy_multiplier, self.days, self.rng)
            made += self.world.spawn_cluster(cx, cy, per_cluster - primary, b.secondary_cluster_radius,
                                             energy * b.secondary_energy_multiplier, self.days, self.rng,
                                             inner=b.primary_cluster_radius)
        self.bloom_ticks_left = b.duration_days * self.cfg.world.frames_per_day
        logger.info("=== day %d: SEASONAL RESOURCE BLOOM === %d resources in %d clusters, lasts %d days",
                    self.days, made, b.cluster_count, b.duration_days)

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------
    def get_all_entities(self) -> List[EntitySnapshot]:
        return ([r.snapshot() for r in self.world.resources]
                + [c.snapshot() for c in self.prey]
                + [c.snapshot() for c in self.predators])

    def get_stats(self) -> Dict:
        return dict(
            resource_count=len(self.world.resources),
            prey_count=len(self.prey),
            predator_count=len(self.predators),
            prey_attributes=average_attributes(self.prey),
            predator_attributes=average_attributes(self.predators),
        )

    def get_days(self) -> int:
        return self.days

    def get_extinction_events(self) -> List[ExtinctionEvent]:
        return list(self.extinction_events)

    def get_total_spawned(self) -> Dict[str, int]:
        return dict(prey=self.spawned["prey"], predators=self.spawned["predators"], resources=self.world.spawned)

    def is_resource_bloom(self) -> bool:
        return self.bloom_ticks_left > 0

    def get_reproduction_stats(self) -> Dict[str, Dict[str, int]]:
        return dict(
            prey=dict(ready=sum(1 for c in self.prey if c.can_reproduce()), total=len(self.prey)),
            predator=dict(ready=sum(1 for c in self.predators if c.can_reproduce()), total=len(self.predators)),
        )


def _fmt(attrs: Dict[str, float]) -> str:
    return " ".join(f"{k}={v:.2f}" for k, v in attrs.items())
