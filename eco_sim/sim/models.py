# eco_sim/sim/models.py
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, NamedTuple, Optional, Sequence
import math

from .config import (
    CreatureConfig, PredatorConfig, PreyConfig, SimConfig, StarvationConfig, StarvationThreshold,
)
from .rng import RNG

TRAITS = ("strength", "stealth", "learnability", "longevity")
LEARNABLE_TRAITS = ("strength", "stealth", "longevity")


def clamp(v: float, lo: float, hi: float) -> float:
    return lo if v < lo else (hi if v > hi else v)


class EntityKind(str, Enum):
    RESOURCE = "resource"
    PREY = "prey"
    PREDATOR = "predator"


class EntitySnapshot(NamedTuple):
    """Read-only view handed to renderers and UI panels."""
    id: int
    kind: EntityKind
    x: float
    y: float
    energy: float
    max_energy: float
    alive: bool
    age: float = 0.0
    vx: float = 0.0
    vy: float = 0.0
    strength: float = 0.0
    stealth: float = 0.0
    learnability: float = 0.0
    longevity: float = 0.0


@dataclass
class GeneticAttributes:
    strength: float = 0.5
    stealth: float = 0.5
    learnability: float = 0.3
    longevity: float = 0.5

    def copy(self) -> "GeneticAttributes":
        return GeneticAttributes(self.strength, self.stealth, self.learnability, self.longevity)

    def clamp(self, lo: float = 0.0, hi: float = 1.0) -> "GeneticAttributes":
        for name in TRAITS:
            setattr(self, name, clamp(getattr(self, name), lo, hi))
        return self


@dataclass(eq=False)
class Entity:
    id: int
    x: float
    y: float
    energy: float = 0.0
    max_energy: float = 0.0
    alive: bool = True

    kind: ClassVar[EntityKind]

    def distance_to(self, other: "Entity") -> float:
        return math.hypot(other.x - self.x, other.y - self.y)

    def energy_ratio(self) -> float:
        if self.max_energy <= 0:
            return 0.0
        return self.energy / self.max_energy

    def die(self, cause: Optional[str] = None) -> None:
        self.alive = False

    def snapshot(self) -> EntitySnapshot:
        return EntitySnapshot(self.id, self.kind, self.x, self.y, self.energy, self.max_energy, self.alive)


@dataclass(eq=False)
class Resource(Entity):
    created_day: int = 0

    kind: ClassVar[EntityKind] = EntityKind.RESOURCE

    @classmethod
    def make(cls, id: int, x: float, y: float, energy: float, day: int = 0) -> "Resource":
        return cls(id=id, x=x, y=y, energy=energy, max_energy=energy, created_day=day)


def match_starvation_threshold(ratio: float,
                               table: Sequence[StarvationThreshold]) -> Optional[StarvationThreshold]:
    """
    Tightest bracket containing `ratio`: the smallest energy_percent >= ratio.
    Tables are ordered high -> low, so walk them from the tail.
    """
    for t in reversed(table):
        if ratio <= t.energy_percent:
            return t
    return None


@dataclass(eq=False)
class Creature(Entity):
    attributes: GeneticAttributes = field(default_factory=GeneticAttributes)
    vx: float = 0.0
    vy: float = 0.0
    speed: float = 8.0
    age: float = 0.0
    activity_cost: float = 0.0      # surcharge accrued by this tick's behaviour step
    generation: int = 0
    offspring: int = 0
    cause_of_death: Optional[str] = None

    # ---- construction ----
    @classmethod
    def spawn(cls, id: int, x: float, y: float, max_energy: float,
              attributes: GeneticAttributes, creatures: CreatureConfig, rng: RNG,
              generation: int = 0) -> "Creature":
        # start at half capacity, heading somewhere random
        vx, vy = rng.unit_vector()
        return cls(id=id, x=x, y=y, energy=max_energy * 0.5, max_energy=max_energy,
                   attributes=attributes, vx=vx, vy=vy, speed=creatures.base_speed,
                   generation=generation)

    # ---- species hooks ----
    @staticmethod
    def species(cfg: SimConfig):
        raise NotImplementedError

    def type_multiplier(self, creatures: CreatureConfig) -> float:
        raise NotImplementedError

    def starvation_table(self, starvation: StarvationConfig) -> Sequence[StarvationThreshold]:
        raise NotImplementedError

    # ---- state helpers ----
    def hunger(self) -> float:
        return 1.0 - self.energy_ratio()

    def velocity_magnitude(self) -> float:
        return math.hypot(self.vx, self.vy)

    def set_heading(self, dx: float, dy: float, factor: float, rng: RNG) -> None:
        """Point velocity along (dx, dy) with magnitude `factor`; degenerate vectors pick a random heading."""
        n = math.hypot(dx, dy)
        if n <= 1e-9 or not math.isfinite(n):
            dx, dy = rng.unit_vector()
            n = 1.0
        self.vx = dx / n * factor
        self.vy = dy / n * factor

    def die(self, cause: Optional[str] = None) -> None:
        if self.alive:
            self.cause_of_death = cause
        self.alive = False

    def add_energy(self, amount: float) -> None:
        self.energy = clamp(self.energy + amount, 0.0, self.max_energy)

    def drain_energy(self, amount: float, cause: str = "starvation") -> None:
        self.energy = clamp(self.energy - amount, 0.0, self.max_energy)
        if self.energy <= 0:
            self.die(cause)

    # ---- metabolism ----
    def max_lifespan(self, creatures: CreatureConfig) -> float:
        return creatures.lifespan_base + self.attributes.longevity * creatures.lifespan_longevity_bonus

    def metabolic_cost(self, dt: float, creatures: CreatureConfig) -> float:
        a = self.attributes
        metabolic_efficiency = 0.7 + a.longevity * 0.5
        base = creatures.base_cost / metabolic_efficiency * dt
        movement = a.strength * creatures.movement_cost_multiplier * self.velocity_magnitude() * dt

        age_ratio = self.age / self.max_lifespan(creatures)
        age_efficiency = max(0.7, 1.0 - age_ratio * (1.0 - a.longevity))
        activity_efficiency = max(0.6, 1.0 - age_ratio * 0.8 * (1.0 - a.longevity))

        total = base / age_efficiency + (movement + self.activity_cost) / activity_efficiency
        return total * self.type_multiplier(creatures)

    def consume_energy(self, dt: float, creatures: CreatureConfig) -> None:
        cost = self.metabolic_cost(dt, creatures)
        self.activity_cost = 0.0
        self.drain_energy(cost, "starvation")
        if self.age > self.max_lifespan(creatures):
            self.die("old_age")

    def check_starvation(self, table: Sequence[StarvationThreshold], rng: RNG) -> bool:
        """Roll against the single matching threshold. Returns True if the creature died."""
        t = match_starvation_threshold(self.energy_ratio(), table)
        if t is None:
            return False
        if rng.random() < t.probability:
            self.die("starvation_roll")
            return True
        return False

    # ---- movement ----
    def wrap(self, width: float, height: float) -> None:
        self.x %= width
        self.y %= height

    def update(self, dt: float, cfg: SimConfig, rng: RNG) -> None:
        """Move along the current velocity, pay metabolism, wrap, age, then roll starvation."""
        step = self.speed * self.attributes.strength * dt
        self.x += self.vx * step
        self.y += self.vy * step
        self.consume_energy(dt, cfg.creatures)
        self.wrap(cfg.world.width, cfg.world.height)
        self.age += dt
        if self.alive:
            self.check_starvation(self.starvation_table(cfg.starvation), rng)

    # ---- reproduction ----
    def can_reproduce(self) -> bool:
        return self.alive and self.energy >= self.max_energy

    def snapshot(self) -> EntitySnapshot:
        a = self.attributes
        return EntitySnapshot(self.id, self.kind, self.x, self.y, self.energy, self.max_energy, self.alive,
                              self.age, self.vx, self.vy, a.strength, a.stealth, a.learnability, a.longevity)


@dataclass(eq=False)
class Prey(Creature):
    kind: ClassVar[EntityKind] = EntityKind.PREY

    @staticmethod
    def species(cfg: SimConfig) -> PreyConfig:
        return cfg.prey

    def type_multiplier(self, creatures: CreatureConfig) -> float:
        return creatures.prey_consumption

    def starvation_table(self, starvation: StarvationConfig):
        return starvation.prey


@dataclass(eq=False)
class Predator(Creature):
    kind: ClassVar[EntityKind] = EntityKind.PREDATOR

    @staticmethod
    def species(cfg: SimConfig) -> PredatorConfig:
        return cfg.predator

    def type_multiplier(self, creatures: CreatureConfig) -> float:
        return creatures.predator_consumption

    def starvation_table(self, starvation: StarvationConfig):
        return starvation.predator


def default_attributes(species) -> GeneticAttributes:
    """Default trait vector from a PreyConfig / PredatorConfig."""
    return GeneticAttributes(species.strength, species.stealth, species.learnability, species.longevity)
