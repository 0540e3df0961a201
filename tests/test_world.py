import math

import pytest

from config import HUNGER_PER_TIC, OSCILLATOR_PERIOD, ATTACK_HUNGER_COST
from genome import Gene, Genome
from geometry import Direction, dist_rel
from neurons import ActuatorType, SensorType
from world import EventType, World


def _kinds(world):
    return [kind for kind, _ in world.events]


@pytest.mark.parametrize("kwargs", [
    {"size": 0},
    {"food_density": 0},
    {"danger_delay": 0},
    {"mutation_rate": 1.5},
    {"danger_damage": -1.0},
    {"num_initial_lifeforms": -1},
    {"num_inner_neurons": 500},
])
def test_bad_configuration_is_rejected(kwargs):
    with pytest.raises(ValueError):
        World(**kwargs)


def test_initial_population(make_world):
    world = make_world(num_initial_lifeforms=6, genome_size=9)
    assert sorted(world.lifeforms) == list(range(6))
    for lf_id, lf in world.lifeforms.items():
        assert lf.id == lf_id
        assert len(lf.genome) == 9
        assert 0 <= lf.location[0] < 10 and 0 <= lf.location[1] < 10
        assert lf.health == 1.0
    assert world.events == []


def test_environment_update(make_world):
    world = make_world(food_density=1, danger_delay=1)
    danger = world.danger

    world.update_environment()

    assert world.tics == 1
    assert world.oscillator == pytest.approx(math.sin(1 / OSCILLATOR_PERIOD))
    assert len(world.food) == 1
    assert abs(world.danger[0] - danger[0]) + abs(world.danger[1] - danger[1]) == 1


def test_food_spawns_on_its_period(make_world):
    world = make_world(food_density=3)
    for _ in range(2):
        world.update_environment()
    assert not world.food
    world.update_environment()
    assert len(world.food) == 1


def test_sensor_refresh(make_world):
    world = make_world(num_initial_lifeforms=2)
    a, b = world.lifeforms[0], world.lifeforms[1]
    a.location, b.location = (1, 1), (1, 2)
    b.health = 0.4
    world.danger = (9, 9)
    world.food = {(4, 5)}

    world.update_inputs()

    net = a.neural_net
    assert net.sensor(SensorType.DISTANCE_TO_FOOD) == pytest.approx(dist_rel(10, (1, 1), (4, 5)))
    assert net.sensor(SensorType.DIRECTION_TO_FOOD) == 0.75
    assert net.sensor(SensorType.DIRECTION_TO_DANGER) == 0.75
    assert net.sensor(SensorType.HEALTHIEST_LF_HEALTH) == 1.0
    assert net.sensor(SensorType.CLOSEST_LF_HEALTH) == 0.4
    assert net.sensor(SensorType.DISTANCE_TO_CLOSEST_LF) == pytest.approx(dist_rel(10, (1, 1), (1, 2)))
    assert net.sensor(SensorType.POPULATION_DENSITY) == pytest.approx(2 / 100)
    assert net.sensor(SensorType.NEIGHBORHOOD_DENSITY) == pytest.approx(1 / 8)
    assert 0.0 <= net.sensor(SensorType.RANDOM) < 1.0
    assert b.neural_net.sensor(SensorType.HEALTH) == 0.4


def test_sensor_refresh_without_food_or_peers(make_world):
    world = make_world(num_initial_lifeforms=1)
    world.update_inputs()
    net = world.lifeforms[0].neural_net
    assert net.sensor(SensorType.DISTANCE_TO_FOOD) == 1.0
    assert net.sensor(SensorType.DIRECTION_TO_FOOD) == 0.0
    assert net.sensor(SensorType.DISTANCE_TO_CLOSEST_LF) == 1.0
    assert net.sensor(SensorType.CLOSEST_LF_HEALTH) == 0.0
    assert net.sensor(SensorType.NEIGHBORHOOD_DENSITY) == 0.0


def test_danger_damage_falls_off_with_distance_squared(make_world):
    world = make_world(num_initial_lifeforms=2, danger_damage=0.9)
    world.danger = (0, 0)
    near, far = world.lifeforms[0], world.lifeforms[1]
    near.location, far.location = (0, 0), (0, 3)

    has_died, has_split = world.apply_environment_effects()

    assert has_died == [] and has_split == []
    assert near.health == pytest.approx(1.0 - HUNGER_PER_TIC - 0.9)
    assert far.health == pytest.approx(1.0 - HUNGER_PER_TIC - 0.1)
    assert near.lifespan == far.lifespan == 1


def test_hunger_kills(make_world):
    world = make_world(num_initial_lifeforms=2)
    world.lifeforms[1].hunger = 2.0
    has_died, _ = world.apply_environment_effects()
    assert has_died == [1]
    world.apply_deaths_and_births(has_died, [])
    assert list(world.lifeforms) == [0]
    assert _kinds(world) == [EventType.DEATH]


def test_population_floor_after_everything_dies(make_world):
    world = make_world(num_initial_lifeforms=5, minimum_number_lifeforms=15, genome_size=7)
    for lf in world.lifeforms.values():
        lf.hunger = 5.0

    has_died, has_split = world.apply_environment_effects()
    world.apply_deaths_and_births(has_died, has_split)
    assert world.lifeforms == {}

    world.ensure_lifeform_count()

    assert len(world.lifeforms) == 15
    genomes = [lf.genome for lf in world.lifeforms.values()]
    assert all(len(g) == 7 for g in genomes)
    assert len({id(g) for g in genomes}) == 15
    assert all(lf.lifespan == 0 and lf.health == 1.0 for lf in world.lifeforms.values())
    assert _kinds(world).count(EventType.CREATION) == 15


def test_population_floor_clones_the_fittest(make_world):
    world = make_world(num_initial_lifeforms=2, minimum_number_lifeforms=5, genome_size=6)
    world.lifeforms[0].lifespan = 10
    world.lifeforms[1].lifespan = 30
    fittest = world.lifeforms[1]

    world.ensure_lifeform_count()

    assert len(world.lifeforms) == 6
    clones = [world.lifeforms[i] for i in (2, 3, 4)]
    for clone in clones:
        assert clone.location == fittest.location
        assert len(clone.genome) == 6
        assert clone.genome is not fittest.genome
    assert world.most_fit_lifeform() is fittest
    creation_texts = [text for kind, text in world.events if kind is EventType.CREATION]
    assert len(creation_texts) == 4
    assert sum("based on lifeform 1" in t for t in creation_texts) == 3


def test_population_floor_tolerates_empty_genomes(make_world):
    world = make_world(num_initial_lifeforms=1, minimum_number_lifeforms=3, genome_size=0)
    world.ensure_lifeform_count()
    assert len(world.lifeforms) == 5
    assert all(len(lf.genome) == 0 for lf in world.lifeforms.values())


def test_no_top_up_when_population_is_enough(make_world):
    world = make_world(num_initial_lifeforms=3, minimum_number_lifeforms=3)
    world.ensure_lifeform_count()
    assert len(world.lifeforms) == 3
    assert world.events == []


def test_reproduction_by_eating(make_world):
    world = make_world(num_initial_lifeforms=1, mutation_rate=0.0)
    parent = world.lifeforms[0]
    world.food.add(parent.location)

    world.step()

    assert len(world.lifeforms) == 2
    assert not world.food
    child = world.lifeforms[1]
    assert child.genome == parent.genome
    assert child.genome is not parent.genome
    assert _kinds(world).count(EventType.ASEXUALLY_REPRODUCE) == 1


def test_reproduction_with_mutation_keeps_gene_count(make_world):
    world = make_world(num_initial_lifeforms=1, mutation_rate=1.0, genome_size=10)
    parent = world.lifeforms[0]
    world.food.add(parent.location)

    has_died, has_split = world.apply_environment_effects()
    world.apply_deaths_and_births(has_died, has_split)

    assert len(world.lifeforms) == 2
    assert len(world.lifeforms[1].genome) == 10
    assert parent.hunger == 0.0


def test_reproduction_with_mutation_changes_the_child(make_world):
    changed = []
    for seed in range(6):
        world = make_world(num_initial_lifeforms=1, mutation_rate=1.0,
                           genome_size=10, seed=seed)
        parent = world.lifeforms[0]
        world.food.add(parent.location)

        has_died, has_split = world.apply_environment_effects()
        world.apply_deaths_and_births(has_died, has_split)

        assert _kinds(world).count(EventType.ASEXUALLY_REPRODUCE) == 1
        changed.append(world.lifeforms[1].genome != parent.genome)
    assert any(changed)


def test_attack_halves_both_combatants(make_world):
    world = make_world(num_initial_lifeforms=2)
    a, b = world.lifeforms[0], world.lifeforms[1]
    a.location = b.location = (4, 4)
    a.health, b.health = 1.0, 0.8

    world.apply_actions({a.id: [(ActuatorType.ATTACK, 1.0)], b.id: []})

    assert a.health == pytest.approx(0.5)
    assert b.health == pytest.approx(0.4)
    assert a.hunger == pytest.approx(ATTACK_HUNGER_COST)
    assert _kinds(world) == [EventType.ATTACK]
    assert a.most_recent_output_values == [(ActuatorType.ATTACK, 1.0)]


def test_attack_needs_company(make_world):
    world = make_world(num_initial_lifeforms=2)
    a, b = world.lifeforms[0], world.lifeforms[1]
    a.location, b.location = (1, 1), (2, 2)
    world.apply_actions({a.id: [(ActuatorType.ATTACK, 1.0)]})
    assert a.health == b.health == 1.0
    assert world.events == []


def test_outputs_for_missing_lifeforms_are_skipped(make_world):
    world = make_world(num_initial_lifeforms=1)
    world.apply_actions({99: [(ActuatorType.ATTACK, 1.0)]})
    assert world.events == []


def test_move_and_turn(make_world):
    world = make_world(num_initial_lifeforms=1)
    lf = world.lifeforms[0]
    lf.location = (3, 3)
    lf.orientation = Direction(2)   # east

    world.apply_actions({0: [(ActuatorType.MOVE_FORWARD, 1.0),
                             (ActuatorType.TURN_RIGHT, 1.0)]})

    assert lf.location == (4, 3)
    assert lf.orientation.name == "south_east"


def test_movement_stops_at_the_edge(make_world):
    world = make_world(num_initial_lifeforms=1)
    lf = world.lifeforms[0]
    lf.location = (9, 3)
    lf.orientation = Direction(2)
    world.apply_actions({0: [(ActuatorType.MOVE_FORWARD, 1.0)]})
    assert lf.location == (9, 3)


def test_non_positive_output_ends_the_turn(make_world):
    world = make_world(num_initial_lifeforms=1)
    lf = world.lifeforms[0]
    lf.location = (3, 3)
    lf.orientation = Direction(2)
    world.apply_actions({0: [(ActuatorType.TURN_LEFT, -0.2),
                             (ActuatorType.MOVE_FORWARD, 1.0)]})
    assert lf.location == (3, 3)
    assert lf.orientation.name == "east"


def test_failed_roll_ends_the_turn(make_world):
    world = make_world(num_initial_lifeforms=1)
    lf = world.lifeforms[0]
    lf.location = (3, 3)
    lf.orientation = Direction(2)
    world.apply_actions({0: [(ActuatorType.TURN_LEFT, 1e-12),
                             (ActuatorType.MOVE_FORWARD, 1.0)]})
    assert lf.location == (3, 3)
    assert lf.orientation.name == "east"


def test_run_neural_nets_covers_every_lifeform(make_world):
    world = make_world(num_initial_lifeforms=8, genome_size=20)
    world.update_inputs()

    outputs = world.run_neural_nets()

    assert sorted(outputs) == sorted(world.lifeforms)
    for lf_id, values in outputs.items():
        assert values == world.lifeforms[lf_id].run_neural_net()


def test_available_id_is_the_lowest_free_one(make_world):
    world = make_world(num_initial_lifeforms=4)
    del world.lifeforms[1]
    assert world.available_lifeform_id() == 1
    assert world.lifeform_at_location(world.lifeforms[2].location) is not None


def test_many_steps(make_world):
    world = make_world(num_initial_lifeforms=10, minimum_number_lifeforms=4,
                       food_density=2, danger_delay=3, danger_damage=0.5,
                       mutation_rate=0.5, genome_size=20)
    for _ in range(60):
        world.step()

    assert world.tics == 60
    assert world.lifeforms
    for lf in world.lifeforms.values():
        assert 0 <= lf.location[0] < 10 and 0 <= lf.location[1] < 10
    for kind, text in world.events:
        assert isinstance(kind, EventType)
        assert text.startswith("=>")


def test_step_is_reproducible_with_a_seed(make_world):
    def run():
        world = make_world(num_initial_lifeforms=6, food_density=2, genome_size=15,
                           danger_damage=0.3, minimum_number_lifeforms=3, seed=21)
        for _ in range(25):
            world.step()
        return world.events, {i: lf.location for i, lf in world.lifeforms.items()}

    assert run() == run()


def test_world_as_context_manager():
    with World(size=5, num_initial_lifeforms=2, seed=1, max_threads=1) as world:
        world.step()
    assert world.tics == 1


def test_reproduction_event_names_both_lifeforms(make_world):
    world = make_world(num_initial_lifeforms=1)
    world.apply_deaths_and_births([], [(0, (2, 2), Genome([Gene(0, 100, 300, 1.0)],
                                                           world.taxonomy))])
    (kind, text), = world.events
    assert kind is EventType.ASEXUALLY_REPRODUCE
    assert "Lifeform 0" in text and "lifeform 1" in text
    assert world.lifeforms[1].location == (2, 2)
