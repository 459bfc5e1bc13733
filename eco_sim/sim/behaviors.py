# eco_sim/sim/behaviors.py
from __future__ import annotations
from typing import NamedTuple, Optional, Sequence, Tuple
import math

from .models import Creature, EntityKind, GeneticAttributes, Predator, Prey, Resource, clamp
from .config import SimConfig, PreyConfig
from .rng import RNG
from .world import World

Vec = Tuple[float, float]

MEDIAN = 0.5
SPECIALIST_TRAIT = 0.7
MIN_INTERACTION_CHANCE = 0.15
MAX_INTERACTION_CHANCE = 0.75


class WorldView(NamedTuple):
    """What a creature may look at during its behaviour step."""
    world: World
    prey: Sequence[Prey]
    predators: Sequence[Predator]


# ---------------- vector helpers ----------------
def _rotate(v: Vec, angle: float) -> Vec:
    c, s = math.cos(angle), math.sin(angle)
    return (v[0] * c - v[1] * s, v[0] * s + v[1] * c)

def nearest_within(me: Creature, others: Sequence[Creature], radius: float) -> Optional[Creature]:
    best = None
    best_d = radius
    for o in others:
        if o is me or not o.alive:
            continue
        d = me.distance_to(o)
        if d < best_d:
            best = o
            best_d = d
    return best

# ---------------- specialization ----------------
def best_deviation(a: GeneticAttributes) -> float:
    """How far the more extreme of strength/stealth sits from the median."""
    return max(abs(a.strength - MEDIAN), abs(a.stealth - MEDIAN))

def _specialist_bonus(a: GeneticAttributes, weight: float) -> float:
    return max(0.0, (a.strength - SPECIALIST_TRAIT) * weight, (a.stealth - SPECIALIST_TRAIT) * weight)

# ---------------- predator side ----------------
def detection_chance(pred: Predator, prey: Prey) -> float:
    stealth_diff = pred.attributes.stealth - prey.attributes.stealth
    chance = stealth_diff + 0.25
    if prey.attributes.stealth > SPECIALIST_TRAIT:
        chance -= (prey.attributes.stealth - SPECIALIST_TRAIT) * 2.0
    return chance

def detect_prey(pred: Predator, prey_list: Sequence[Prey], detection_range: float, rng: RNG) -> Optional[Prey]:
    """
    Stochastic sighting: every prey inside the stealth-extended range gets one
    visibility roll; survivors are scored on closeness and stealth advantage.
    Ties keep the earliest candidate.
    """
    adjusted = detection_range * (1.0 + pred.attributes.stealth * 0.5)
    best: Optional[Prey] = None
    best_score = -math.inf
    for prey in prey_list:
        if not prey.alive:
            continue
        d = pred.distance_to(prey)
        if d >= adjusted:
            continue
        if not rng.random() < detection_chance(pred, prey):
            continue
        stealth_diff = pred.attributes.stealth - prey.attributes.stealth
        score = 0.7 * (1.0 - d / adjusted) + 0.3 * max(0.0, stealth_diff)
        if score > best_score:
            best = prey
            best_score = score
    return best

def capture_chance(pred: Predator, prey: Prey) -> float:
    p, q = pred.attributes, prey.attributes
    advantage = best_deviation(p) - best_deviation(q)
    stealth_diff = p.stealth - q.stealth
    strength_diff = p.strength - q.strength
    if stealth_diff > strength_diff:
        primary = stealth_diff * 0.4
    else:
        primary = strength_diff * 0.5
    chance = 0.35 + primary + _specialist_bonus(p, 0.8) + advantage * 0.3
    return clamp(chance, MIN_INTERACTION_CHANCE, MAX_INTERACTION_CHANCE)

def can_catch_prey(pred: Predator, prey: Prey, rng: RNG) -> bool:
    return rng.random() < capture_chance(pred, prey)

# ---------------- prey side ----------------
def escape_chance(prey: Prey, pred: Predator, prey_cfg: PreyConfig) -> float:
    q, p = prey.attributes, pred.attributes
    advantage = best_deviation(q) - best_deviation(p)
    stealth_diff = q.stealth - p.stealth
    strength_diff = q.strength - p.strength
    if stealth_diff > strength_diff:
        primary = stealth_diff * 0.8
    else:
        primary = strength_diff * 0.5
    chance = prey_cfg.escape_base_chance + primary + _specialist_bonus(q, 1.5) + advantage * 0.3
    return clamp(chance, MIN_INTERACTION_CHANCE, MAX_INTERACTION_CHANCE)

def can_escape_with_stealth(prey: Prey, pred: Predator, prey_cfg: PreyConfig, rng: RNG) -> bool:
    """One escape roll; the attempt costs energy whether or not it works."""
    escaped = rng.random() < escape_chance(prey, pred, prey_cfg)
    prey.drain_energy(prey_cfg.escape_energy_cost, "exhaustion")
    return escaped

def detect_predator(prey: Prey, predators: Sequence[Predator], cfg: SimConfig) -> Optional[Predator]:
    r = cfg.creatures.prey_predator_detection_range * (
        1.0 + prey.attributes.stealth * cfg.prey.predator_detection_multiplier)
    return nearest_within(prey, predators, r)

def feed(prey: Prey, resource: Resource, prey_cfg: PreyConfig) -> float:
    gain = resource.energy * prey_cfg.resource_energy_bonus
    before = prey.energy
    prey.add_energy(gain)
    return prey.energy - before

def flee(me: Prey, threat: Predator, cfg: SimConfig, rng: RNG, dt: float) -> None:
    a = me.attributes
    away = (me.x - threat.x, me.y - threat.y)
    if math.hypot(*away) <= 1e-9:
        away = rng.unit_vector()

    # stealthy prey zig-zag
    stealth_bonus = 0.0
    if a.stealth > 0.6:
        angle = rng.spread(math.pi / 4) * a.stealth
        stealth_bonus = (a.stealth - 0.6) * 0.5
        if a.stealth > SPECIALIST_TRAIT:
            angle += rng.spread(math.pi / 8)
            stealth_bonus += (a.stealth - SPECIALIST_TRAIT) * 0.5
        away = _rotate(away, angle)

    strength_bonus = a.strength * 0.3
    if a.strength > SPECIALIST_TRAIT:
        strength_bonus += (a.strength - SPECIALIST_TRAIT) * 0.5

    factor = (1.0 + max(stealth_bonus, strength_bonus)) * cfg.prey.predator_avoidance_multiplier
    me.set_heading(away[0], away[1], factor, rng)
    me.activity_cost += cfg.creatures.flee_cost * a.strength * dt

# ---------------- per-species steps ----------------
def _maybe_turn(me: Creature, p_turn: float, rng: RNG) -> None:
    if rng.chance(p_turn):
        me.set_heading(*rng.unit_vector(), 1.0, rng)

def predator_step(me: Predator, view: WorldView, cfg: SimConfig, rng: RNG, dt: float) -> None:
    pc = cfg.predator
    _maybe_turn(me, pc.wander_turn_chance, rng)

    hunger = me.hunger()
    target: Optional[Prey] = None
    factor = 1.0
    if hunger < pc.hunger_threshold:
        # fed: mostly wander, sometimes snap at something close
        if rng.chance(pc.opportunistic_chance):
            target = detect_prey(me, view.prey, pc.opportunistic_range, rng)
            factor = pc.opportunistic_speed
    else:
        scan = cfg.creatures.prey_detection_range * (1.0 + hunger * pc.detection_range_multiplier)
        target = detect_prey(me, view.prey, scan, rng)
        factor = 1.0 + hunger * pc.hunting_speed_multiplier

    if target is not None:
        me.set_heading(target.x - me.x, target.y - me.y, factor, rng)
        if factor > 1.0:
            me.activity_cost += cfg.creatures.pursuit_cost * me.attributes.strength * (factor - 1.0) * dt

    # personal space
    rx = ry = 0.0
    for other in view.predators:
        if other is me or not other.alive:
            continue
        d = me.distance_to(other)
        if d >= pc.personal_space:
            continue
        if d <= 1e-9:
            ux, uy = rng.unit_vector()
        else:
            ux, uy = (me.x - other.x) / d, (me.y - other.y) / d
        push = 1.0 - d / pc.personal_space
        rx += ux * push
        ry += uy * push
    if rx or ry:
        w = pc.repulsion_weight * me.energy_ratio()
        me.vx += rx * w
        me.vy += ry * w

def prey_step(me: Prey, view: WorldView, cfg: SimConfig, rng: RNG, dt: float) -> None:
    pc = cfg.prey
    _maybe_turn(me, pc.wander_turn_chance, rng)

    threat = detect_predator(me, view.predators, cfg)
    if threat is not None:
        flee(me, threat, cfg, rng, dt)
        return

    # survival first: never walk toward food with a hunter this close
    near = nearest_within(me, view.predators, cfg.creatures.predator_safety_range)
    if near is not None:
        me.set_heading(me.x - near.x, me.y - near.y, 1.0, rng)
        return

    hunger = me.hunger()
    food: Optional[Resource] = None
    factor = 1.0
    if hunger < pc.hunger_threshold:
        if rng.chance(pc.opportunistic_chance):
            food = view.world.nearest_resource_within(me.x, me.y, pc.opportunistic_range)
    else:
        scan = cfg.creatures.prey_resource_detection_range * (1.0 + hunger)
        food = view.world.nearest_resource_within(me.x, me.y, scan)
        factor = 1.0 + hunger * pc.foraging_speed_multiplier
    if food is not None:
        me.set_heading(food.x - me.x, food.y - me.y, factor, rng)

def step_behavior(me: Creature, view: WorldView, cfg: SimConfig, rng: RNG, dt: float) -> None:
    """Pick this tick's velocity for `me`; does not move it."""
    if not me.alive:
        return
    if me.kind is EntityKind.PREDATOR:
        predator_step(me, view, cfg, rng, dt)
    else:
        prey_step(me, view, cfg, rng, dt)

def update_creature(me: Creature, view: WorldView, cfg: SimConfig, rng: RNG, dt: float) -> None:
    """Species behaviour, then the shared movement/metabolism step."""
    if not me.alive:
        return
    step_behavior(me, view, cfg, rng, dt)
    me.update(dt, cfg, rng)
