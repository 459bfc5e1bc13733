import dataclasses

import pytest

from eco_sim.sim.config import DEFAULT_CONFIG
from eco_sim.sim.engine import SimulationEngine
from eco_sim.sim.models import GeneticAttributes, Predator, Prey
from eco_sim.sim.rng import RNG


def make_config(**sections):
    """DEFAULT_CONFIG with individual fields replaced, e.g. world={"frames_per_day": 2}."""
    replaced = {
        name: dataclasses.replace(getattr(DEFAULT_CONFIG, name), **values)
        for name, values in sections.items()
    }
    return dataclasses.replace(DEFAULT_CONFIG, **replaced)


EMPTY_WORLD = dict(population={"prey": 0, "predators": 0, "resources": 0})


def make_prey(id=1, x=100.0, y=100.0, energy=80.0, max_energy=175.0, **traits):
    return Prey(id=id, x=x, y=y, energy=energy, max_energy=max_energy,
                attributes=GeneticAttributes(**traits))


def make_predator(id=2, x=100.0, y=100.0, energy=200.0, max_energy=560.0, **traits):
    return Predator(id=id, x=x, y=y, energy=energy, max_energy=max_energy,
                    attributes=GeneticAttributes(**traits))


@pytest.fixture
def rng():
    return RNG(1234)


@pytest.fixture
def cfg():
    return DEFAULT_CONFIG


@pytest.fixture
def empty_engine():
    engine = SimulationEngine(make_config(**EMPTY_WORLD), seed=7)
    engine.initialize()
    return engine
