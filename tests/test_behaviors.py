import math

import pytest

from eco_sim.sim.behaviors import (
    WorldView, can_catch_prey, can_escape_with_stealth, capture_chance, detect_predator, detection_chance,
    detect_prey, escape_chance, feed, flee, predator_step, prey_step,
)
from eco_sim.sim.models import Resource
from eco_sim.sim.rng import RNG
from eco_sim.sim.world import World

from conftest import make_config, make_predator, make_prey


def _view(cfg, prey=(), predators=()):
    return WorldView(World(cfg.world.width, cfg.world.height, cfg.resources), list(prey), list(predators))


def test_capture_chance_strength_specialist_hits_ceiling():
    pred = make_predator(strength=0.9, stealth=0.1)
    prey = make_prey(strength=0.1, stealth=0.1)
    assert capture_chance(pred, prey) == pytest.approx(0.75)


def test_capture_trials_match_closed_form():
    pred = make_predator(strength=0.9, stealth=0.1)
    prey = make_prey(strength=0.1, stealth=0.1)
    rng = RNG(2024)
    hits = sum(can_catch_prey(pred, prey, rng) for _ in range(10_000))
    assert hits / 10_000 == pytest.approx(capture_chance(pred, prey), abs=0.02)


@pytest.mark.parametrize("pred_traits,prey_traits", [
    ((0.9, 0.1), (0.1, 0.1)),
    ((0.1, 0.1), (0.9, 0.9)),
    ((0.5, 0.5), (0.5, 0.5)),
    ((1.0, 1.0), (0.0, 0.0)),
    ((0.0, 0.0), (1.0, 1.0)),
])
def test_interaction_chances_stay_clamped(cfg, pred_traits, prey_traits):
    pred = make_predator(strength=pred_traits[0], stealth=pred_traits[1])
    prey = make_prey(strength=prey_traits[0], stealth=prey_traits[1])
    assert 0.15 <= capture_chance(pred, prey) <= 0.75
    assert 0.15 <= escape_chance(prey, pred, cfg.prey) <= 0.75


def test_escape_chance_even_match_is_base(cfg):
    pred = make_predator(strength=0.5, stealth=0.5)
    prey = make_prey(strength=0.5, stealth=0.5)
    assert escape_chance(prey, pred, cfg.prey) == pytest.approx(cfg.prey.escape_base_chance)


def test_stealth_specialist_escapes_more_often(cfg):
    pred = make_predator(strength=0.5, stealth=0.5)
    sneaky = make_prey(strength=0.1, stealth=0.9)
    plain = make_prey(strength=0.5, stealth=0.5)
    assert escape_chance(sneaky, pred, cfg.prey) > escape_chance(plain, pred, cfg.prey)


def test_escape_attempt_costs_energy(cfg, rng):
    pred = make_predator()
    prey = make_prey(energy=50.0)
    can_escape_with_stealth(prey, pred, cfg.prey, rng)
    assert prey.energy == pytest.approx(50.0 - cfg.prey.escape_energy_cost)


def test_exhausted_escape_attempt_kills(cfg, rng):
    prey = make_prey(energy=3.0)
    can_escape_with_stealth(prey, make_predator(), cfg.prey, rng)
    assert not prey.alive
    assert prey.cause_of_death == "exhaustion"


def test_detect_prey_always_sees_obvious_target(rng):
    pred = make_predator(x=0.0, y=0.0, stealth=1.0)
    near = make_prey(id=10, x=20.0, y=0.0, stealth=0.0)
    far = make_prey(id=11, x=60.0, y=0.0, stealth=0.0)
    assert detect_prey(pred, [far, near], 80.0, rng) is near


def test_detect_prey_ignores_out_of_range_and_dead(rng):
    pred = make_predator(x=0.0, y=0.0, stealth=1.0)
    dead = make_prey(id=10, x=5.0, y=0.0, stealth=0.0)
    dead.die("predation")
    away = make_prey(id=11, x=500.0, y=0.0, stealth=0.0)
    assert detect_prey(pred, [dead, away], 80.0, rng) is None


def test_detect_predator_range_grows_with_stealth(cfg):
    pred = make_predator(x=205.0, y=100.0)
    blind = make_prey(x=100.0, y=100.0, stealth=0.0)
    keen = make_prey(x=100.0, y=100.0, stealth=0.5)
    assert detect_predator(blind, [pred], cfg) is None
    assert detect_predator(keen, [pred], cfg) is pred


def test_feed_applies_bonus_and_clamps(cfg):
    prey = make_prey(energy=50.0)
    gained = feed(prey, Resource.make(1, 0.0, 0.0, 12.0), cfg.prey)
    assert gained == pytest.approx(12.0 * 1.2)
    full = make_prey(energy=170.0)
    feed(full, Resource.make(2, 0.0, 0.0, 12.0), cfg.prey)
    assert full.energy == full.max_energy


def test_flee_from_same_point_picks_a_direction(cfg, rng):
    prey = make_prey(x=50.0, y=50.0, strength=0.4, stealth=0.3)
    pred = make_predator(x=50.0, y=50.0)
    flee(prey, pred, cfg, rng, 0.1)
    assert math.isfinite(prey.vx) and math.isfinite(prey.vy)
    assert prey.velocity_magnitude() > 0.0
    assert prey.activity_cost == pytest.approx(cfg.creatures.flee_cost * 0.4 * 0.1)


def test_prey_flees_away_from_close_predator(cfg):
    prey = make_prey(x=100.0, y=100.0, strength=0.4, stealth=0.3)
    pred = make_predator(x=130.0, y=100.0)
    # flee overrides any wander turn; no zig-zag below stealth 0.6
    rng = RNG(5)
    prey_step(prey, _view(cfg, [prey], [pred]), cfg, rng, 0.1)
    assert prey.vx < 0.0
    assert prey.vy == pytest.approx(0.0, abs=1e-9)
    assert prey.activity_cost > 0.0


def test_prey_forages_when_hungry_and_safe(cfg):
    view = _view(cfg)
    view.world.spawn_resource(140.0, 100.0, 12.0, 0)
    prey = make_prey(x=100.0, y=100.0, energy=30.0, stealth=0.3)
    prey_step(prey, view, cfg, RNG(3), 0.1)
    assert prey.vx > 0.0
    assert prey.vy == pytest.approx(0.0, abs=1e-9)
    assert prey.velocity_magnitude() > 1.0


def test_hungry_predator_heads_for_prey(cfg):
    pred = make_predator(x=100.0, y=100.0, energy=100.0, stealth=1.0)
    prey = make_prey(x=100.0, y=150.0, stealth=0.0)
    predator_step(pred, _view(cfg, [prey], [pred]), cfg, RNG(8), 0.1)
    assert pred.vy > 0.0
    assert pred.velocity_magnitude() > 1.0
    assert pred.activity_cost > 0.0


def test_crowded_predators_push_apart():
    cfg = make_config(predator={"wander_turn_chance": 0.0})
    a = make_predator(id=1, x=100.0, y=100.0, energy=560.0)
    b = make_predator(id=2, x=110.0, y=100.0, energy=560.0)
    a.vx = a.vy = 0.0
    rng = RNG(11)
    # sated, nothing to hunt
    predator_step(a, _view(cfg, [], [a, b]), cfg, rng, 0.1)
    # push (1 - 10/30) scaled by repulsion_weight at full energy
    assert a.vx == pytest.approx(-(1.0 - 10.0 / 30.0) * 0.3)
    assert a.vy == pytest.approx(0.0)


def test_detection_chance_penalises_very_stealthy_prey():
    pred = make_predator(stealth=0.7)
    assert detection_chance(pred, make_prey(stealth=0.7)) == pytest.approx(0.25)
    # (0.7 - 0.9) + 0.25 - (0.9 - 0.7) * 2.0
    assert detection_chance(pred, make_prey(stealth=0.9)) == pytest.approx(-0.35)


def test_detect_prey_tie_keeps_first_candidate(rng):
    pred = make_predator(x=0.0, y=0.0, stealth=1.0)
    east = make_prey(id=10, x=20.0, y=0.0, stealth=0.0)
    south = make_prey(id=11, x=0.0, y=20.0, stealth=0.0)
    assert detect_prey(pred, [east, south], 80.0, rng) is east
    assert detect_prey(pred, [south, east], 80.0, rng) is south


def test_prey_backs_off_from_predator_inside_safety_range():
    # short sight: the predator at 50 is not detected, but it is inside the safety range of 70
    cfg = make_config(creatures={"prey_predator_detection_range": 20.0})
    prey = make_prey(x=100.0, y=100.0, energy=30.0, stealth=0.3)
    pred = make_predator(x=150.0, y=100.0)
    view = _view(cfg, [prey], [pred])
    view.world.spawn_resource(130.0, 100.0, 12.0, 0)
    prey_step(prey, view, cfg, RNG(4), 0.1)
    assert prey.vx == pytest.approx(-1.0)
    assert prey.vy == pytest.approx(0.0, abs=1e-9)
    assert prey.activity_cost == 0.0
