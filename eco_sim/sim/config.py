# eco_sim/sim/config.py
from __future__ import annotations
from dataclasses import dataclass, field, fields, is_dataclass
from typing import Tuple


class ConfigError(ValueError):
    """Raised when a SimConfig holds values the engine cannot run with."""


# ------------------------------------------------------------
# WORLD / CLOCK
# ------------------------------------------------------------
@dataclass(frozen=True)
class WorldConfig:
    width: float = 1000.0
    height: float = 600.0
    frames_per_day: int = 10      # ticks per simulated day
    season_length: int = 90       # days between seasonal blooms
    seed: int = 42

# ------------------------------------------------------------
# INITIAL POPULATION
# ------------------------------------------------------------
@dataclass(frozen=True)
class PopulationConfig:
    resources: int = 250
    prey: int = 50
    predators: int = 8
    resource_clusters: int = 4
    resource_cluster_radius: float = 100.0

# ------------------------------------------------------------
# RESOURCES
# ------------------------------------------------------------
@dataclass(frozen=True)
class ResourceConfig:
    default_energy: float = 12.0
    regeneration_chance: float = 0.005      # per tick, outside blooms
    bloom_regeneration_chance: float = 0.1
    bloom_cluster_chance: float = 0.3       # mini-cluster vs single resource
    bloom_cluster_radius: float = 30.0
    bloom_energy_multiplier: float = 1.5
    emergency_threshold: float = 0.2        # fraction of initial prey
    emergency_chance: float = 0.03
    emergency_cluster_radius: float = 25.0
    emergency_energy_multiplier: float = 2.0
    decay_chance: float = 0.1               # random removal while prey are extinct
    # limits
    max_count: int = 2000
    enforcement_threshold: float = 0.9      # spawning stops at 90% of max_count
    enable_decay: bool = True
    decay_lifespan_days: int = 30
    decay_chance_per_frame: float = 0.005

# ------------------------------------------------------------
# SEASONAL BLOOM
# ------------------------------------------------------------
@dataclass(frozen=True)
class BloomConfig:
    cluster_count: int = 5
    primary_energy_multiplier: float = 2.0
    secondary_energy_multiplier: float = 1.5
    primary_cluster_radius: float = 60.0
    secondary_cluster_radius: float = 160.0
    duration_days: int = 10
    resources_per_bloom: int = 75
    primary_density: float = 0.6

# ------------------------------------------------------------
# CREATURE BASELINE (shared by both species)
# ------------------------------------------------------------
@dataclass(frozen=True)
class CreatureConfig:
    base_speed: float = 8.0
    base_cost: float = 1.0
    movement_cost_multiplier: float = 2.0
    lifespan_base: float = 60.0
    lifespan_longevity_bonus: float = 40.0
    # energy consumption multipliers by type
    predator_consumption: float = 0.9
    prey_consumption: float = 0.7
    # interaction ranges
    resource_consumption_range: float = 10.0
    prey_capture_range: float = 15.0
    prey_detection_range: float = 80.0
    prey_resource_detection_range: float = 50.0
    prey_predator_detection_range: float = 100.0
    predator_safety_range: float = 70.0     # prey skip food with a predator this close
    # activity surcharges (per second, scaled by strength)
    flee_cost: float = 1.5
    pursuit_cost: float = 2.0

# ------------------------------------------------------------
# PREDATOR
# ------------------------------------------------------------
@dataclass(frozen=True)
class PredatorConfig:
    max_energy: float = 560.0
    strength: float = 0.5
    stealth: float = 0.4
    learnability: float = 0.1
    longevity: float = 0.5
    energy_gain_from_prey: float = 0.85
    hunting_speed_multiplier: float = 0.5
    detection_range_multiplier: float = 0.5
    hunger_threshold: float = 0.25
    hunt_energy_ceiling: float = 0.8        # no predation at or above this energy ratio
    personal_space: float = 30.0
    repulsion_weight: float = 0.3          # scaled by energy ratio
    opportunistic_chance: float = 0.5
    opportunistic_range: float = 40.0
    opportunistic_speed: float = 0.7
    wander_turn_chance: float = 0.01
    reproduction_keep: float = 0.4          # parent keeps 40% of its energy

# ------------------------------------------------------------
# PREY
# ------------------------------------------------------------
@dataclass(frozen=True)
class PreyConfig:
    max_energy: float = 175.0
    strength: float = 0.5
    stealth: float = 0.5
    learnability: float = 0.05
    longevity: float = 0.5
    resource_energy_bonus: float = 1.2
    predator_avoidance_multiplier: float = 1.0
    predator_detection_multiplier: float = 1.1
    escape_base_chance: float = 0.2
    escape_energy_cost: float = 5.0
    hunger_threshold: float = 0.3
    feeding_energy_ceiling: float = 0.9     # no feeding at or above this energy ratio
    foraging_speed_multiplier: float = 0.3
    opportunistic_chance: float = 0.1
    opportunistic_range: float = 20.0
    escape_speed: float = 2.0
    wander_turn_chance: float = 0.02
    reproduction_keep: float = 0.5

# ------------------------------------------------------------
# LEARNING
# ------------------------------------------------------------
@dataclass(frozen=True)
class LearningConfig:
    chance_multiplier: float = 0.1
    learning_rate: float = 0.2
    max_learning_amount: float = 0.05
    energy_cost: float = 10.0

# ------------------------------------------------------------
# REPRODUCTION / MUTATION
# ------------------------------------------------------------
@dataclass(frozen=True)
class ReproConfig:
    mutation_range: float = 0.1                          # ±0.05
    mutation_chance: float = 0.1
    significant_mutation_range: float = 0.4              # ±0.2
    energy_capacity_mutation_range: float = 0.1          # ±5%
    significant_energy_capacity_mutation_range: float = 0.4
    min_energy_capacity: float = 0.5                     # × species default
    max_energy_capacity: float = 2.0
    offspring_spread: float = 10.0

# ------------------------------------------------------------
# STARVATION TABLES (energy ratio : death probability per tick)
# ------------------------------------------------------------
@dataclass(frozen=True)
class StarvationThreshold:
    energy_percent: float
    probability: float


PREY_STARVATION: Tuple[StarvationThreshold, ...] = (
    StarvationThreshold(0.5, 0.0001),
    StarvationThreshold(0.4, 0.0001),
    StarvationThreshold(0.3, 0.001),
    StarvationThreshold(0.2, 0.005),
    StarvationThreshold(0.1, 0.02),
    StarvationThreshold(0.05, 0.01),
)

PREDATOR_STARVATION: Tuple[StarvationThreshold, ...] = (
    StarvationThreshold(0.5, 0.001),
    StarvationThreshold(0.4, 0.002),
    StarvationThreshold(0.3, 0.005),
    StarvationThreshold(0.2, 0.02),
    StarvationThreshold(0.1, 0.08),
    StarvationThreshold(0.05, 0.25),
)


@dataclass(frozen=True)
class StarvationConfig:
    prey: Tuple[StarvationThreshold, ...] = PREY_STARVATION
    predator: Tuple[StarvationThreshold, ...] = PREDATOR_STARVATION

# ------------------------------------------------------------
# CLUSTERED SPAWNING ARCHETYPES
# ------------------------------------------------------------
@dataclass(frozen=True)
class Archetype:
    name: str
    strength: float
    stealth: float
    learnability: float
    longevity: float
    energy_mod: float = 1.0


PREY_ARCHETYPES: Tuple[Archetype, ...] = (
    Archetype("Strength-Focused", 0.9, 0.1, 0.3, 0.4, 1.2),
    Archetype("Stealth-Focused",  0.1, 0.9, 0.3, 0.4, 0.9),
    Archetype("Resilient",        0.5, 0.5, 0.1, 0.8, 1.1),
    Archetype("Balanced",         0.5, 0.5, 0.5, 0.5, 1.0),
    Archetype("Adaptive",         0.4, 0.4, 0.9, 0.3, 0.8),
)

PREDATOR_ARCHETYPES: Tuple[Archetype, ...] = (
    Archetype("Brute Force",      0.9, 0.1, 0.3, 0.5, 1.2),
    Archetype("Stealthy Hunter",  0.3, 0.9, 0.4, 0.4, 0.9),
    Archetype("Endurance Hunter", 0.6, 0.4, 0.1, 0.9, 1.15),
    Archetype("Balanced Hunter",  0.5, 0.5, 0.5, 0.5, 1.0),
)


@dataclass(frozen=True)
class SpawnConfig:
    prey_archetypes: Tuple[Archetype, ...] = PREY_ARCHETYPES
    predator_archetypes: Tuple[Archetype, ...] = PREDATOR_ARCHETYPES
    prey_cluster_radius: float = 80.0
    predator_cluster_radius: float = 60.0
    trait_jitter: float = 0.1
    energy_jitter: float = 0.15
    trait_min: float = 0.05
    trait_max: float = 0.95
    prey_death_spread: float = 20.0
    predator_death_spread: float = 30.0
    death_energy_fraction: float = 0.7

# ------------------------------------------------------------
# BUNDLE
# ------------------------------------------------------------
_PROBABILITY_FIELDS = {
    ResourceConfig: ("regeneration_chance", "bloom_regeneration_chance", "bloom_cluster_chance",
                     "emergency_threshold", "emergency_chance", "decay_chance", "decay_chance_per_frame"),
    BloomConfig: ("primary_density",),
    ReproConfig: ("mutation_chance",),
    PreyConfig: ("escape_base_chance", "opportunistic_chance", "wander_turn_chance", "reproduction_keep", "hunger_threshold", "feeding_energy_ceiling"),
    PredatorConfig: ("opportunistic_chance", "wander_turn_chance", "reproduction_keep", "hunger_threshold", "hunt_energy_ceiling"),
    SpawnConfig: ("death_energy_fraction",),
}


@dataclass(frozen=True)
class SimConfig:
    world: WorldConfig = field(default_factory=WorldConfig)
    population: PopulationConfig = field(default_factory=PopulationConfig)
    resources: ResourceConfig = field(default_factory=ResourceConfig)
    bloom: BloomConfig = field(default_factory=BloomConfig)
    creatures: CreatureConfig = field(default_factory=CreatureConfig)
    predator: PredatorConfig = field(default_factory=PredatorConfig)
    prey: PreyConfig = field(default_factory=PreyConfig)
    learning: LearningConfig = field(default_factory=LearningConfig)
    reproduction: ReproConfig = field(default_factory=ReproConfig)
    starvation: StarvationConfig = field(default_factory=StarvationConfig)
    spawning: SpawnConfig = field(default_factory=SpawnConfig)

    def validate(self) -> "SimConfig":
        """Check the values the engine divides by or rolls against. Returns self."""
        w = self.world
        if w.width <= 0 or w.height <= 0:
            raise ConfigError(f"world size must be positive, got {w.width}x{w.height}")
        if w.frames_per_day <= 0:
            raise ConfigError("world.frames_per_day must be positive")
        if w.season_length <= 0:
            raise ConfigError("world.season_length must be positive")
        if self.prey.max_energy <= 0 or self.predator.max_energy <= 0:
            raise ConfigError("species max_energy must be positive")
        if self.resources.default_energy <= 0:
            raise ConfigError("resources.default_energy must be positive")
        if self.resources.max_count <= 0:
            raise ConfigError("resources.max_count must be positive")
        if not 0.0 < self.resources.enforcement_threshold <= 1.0:
            raise ConfigError("resources.enforcement_threshold must be in (0, 1]")
        p = self.population
        if min(p.prey, p.predators, p.resources, p.resource_clusters) < 0:
            raise ConfigError("population counts must not be negative")
        if self.bloom.cluster_count <= 0:
            raise ConfigError("bloom.cluster_count must be positive")
        if self.creatures.lifespan_base <= 0:
            raise ConfigError("creatures.lifespan_base must be positive")
        r = self.reproduction
        if not 0.0 < r.min_energy_capacity <= r.max_energy_capacity:
            raise ConfigError("reproduction energy capacity bounds are inverted")

        for section in (getattr(self, f.name) for f in fields(self)):
            for name in _PROBABILITY_FIELDS.get(type(section), ()):
                value = getattr(section, name)
                if not 0.0 <= value <= 1.0:
                    raise ConfigError(f"{type(section).__name__}.{name} must be in [0, 1], got {value}")

        for label, table in (("prey", self.starvation.prey), ("predator", self.starvation.predator)):
            if not table:
                raise ConfigError(f"starvation.{label} table is empty")
            percents = [t.energy_percent for t in table]
            if percents != sorted(percents, reverse=True) or len(set(percents)) != len(percents):
                raise ConfigError(f"starvation.{label} thresholds must be strictly descending")
            for t in table:
                if not 0.0 <= t.probability <= 1.0:
                    raise ConfigError(f"starvation.{label} probability {t.probability} out of [0, 1]")

        if not self.spawning.prey_archetypes or not self.spawning.predator_archetypes:
            raise ConfigError("spawning archetype tables must not be empty")
        if not 0.0 <= self.spawning.trait_min <= self.spawning.trait_max <= 1.0:
            raise ConfigError("spawning trait clamp must lie inside [0, 1]")
        return self

    def as_dict(self) -> dict:
        def _flat(obj):
            if is_dataclass(obj):
                return {f.name: _flat(getattr(obj, f.name)) for f in fields(obj)}
            if isinstance(obj, tuple):
                return [_flat(o) for o in obj]
            return obj
        return _flat(self)

# ------------------------------------------------------------
# EXPORT SINGLETON (read-only; build your own SimConfig to change values)
# ------------------------------------------------------------
DEFAULT_CONFIG = SimConfig()
