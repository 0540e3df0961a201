import numpy as np
import pytest

from neurons import NeuronTaxonomy
from world import World


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def taxonomy():
    return NeuronTaxonomy(num_inner_neurons=3)


@pytest.fixture
def make_world():
    """
    Build a small, quiet world: no starting lifeforms, no top-up, no food
    spawn, no danger damage, no mutation. Tests switch on what they need.
    """
    worlds = []

    def _make(**kwargs):
        props = dict(
            size=10,
            num_initial_lifeforms=0,
            genome_size=12,
            mutation_rate=0.0,
            food_density=1000,
            num_inner_neurons=3,
            minimum_number_lifeforms=0,
            danger_delay=1000,
            danger_damage=0.0,
            seed=7,
            max_threads=2,
        )
        props.update(kwargs)
        world = World(**props)
        worlds.append(world)
        return world

    yield _make
    for world in worlds:
        world.close()
