from eco_sim.sim.models import Resource
from eco_sim.sim.rng import RNG
from eco_sim.sim.world import World

from conftest import make_config


def _world(**resources):
    cfg = make_config(resources=resources) if resources else make_config()
    return World(cfg.world.width, cfg.world.height, cfg.resources)


def test_spawning_stops_at_soft_cap():
    world = _world(max_count=20, enforcement_threshold=0.5)
    made = world.spawn_uniform(50, 12.0, 0, RNG(1))
    assert made == 10
    assert world.spawn_resource(1.0, 1.0, 12.0, 0) is None
    assert world.spawned == 10


def test_enforce_cap_drops_oldest_first():
    world = _world(max_count=3)
    world.resources = [Resource.make(world.next_id(), 0.0, 0.0, 12.0, day) for day in (5, 1, 3, 2, 4)]
    assert world.enforce_cap() == 2
    assert sorted(r.created_day for r in world.resources) == [3, 4, 5]


def test_decay_only_touches_old_resources():
    world = _world(decay_chance_per_frame=1.0, decay_lifespan_days=30)
    world.spawn_resource(1.0, 1.0, 12.0, 0)
    world.spawn_resource(2.0, 2.0, 12.0, 20)
    assert world.decay_old(35, RNG(1)) == 1
    assert [r.created_day for r in world.resources] == [20]


def test_scatter_annulus_and_wrap():
    world = _world()
    rng = RNG(9)
    for _ in range(200):
        x, y = world.scatter(0.0, 0.0, 160.0, rng, inner=60.0)
        assert 0.0 <= x < world.width and 0.0 <= y < world.height
        dx = min(x, world.width - x)
        dy = min(y, world.height - y)
        assert 60.0 - 1e-6 <= (dx * dx + dy * dy) ** 0.5 <= 160.0 + 1e-6


def test_nearest_resource_within_radius():
    world = _world()
    world.spawn_resource(10.0, 0.0, 12.0, 0)
    world.spawn_resource(4.0, 3.0, 12.0, 0)
    assert world.nearest_resource_index(0.0, 0.0, 10.0) == 1
    assert world.nearest_resource_within(0.0, 0.0, 4.9) is None


def test_ids_are_unique_across_spawns():
    world = _world()
    world.spawn_uniform(5, 12.0, 0, RNG(2))
    ids = [r.id for r in world.resources] + [world.next_id(), world.next_id()]
    assert len(set(ids)) == len(ids)
