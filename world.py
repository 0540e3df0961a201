"""
World for EvoWorld.

The world is a square grid holding lifeforms, food and one radioactive
danger. It owns all of them and changes them only inside step(), which runs
these phases in order:

  1. environment   – tic counter, oscillator, food spawn, danger drift
  2. sensing       – write every lifeform's sensor readings
  3. effects       – hunger, eating, splitting, danger and hunger damage
  4. death / birth – remove the dead, insert split offspring
  5. thinking      – run every neural net, in parallel, read-only
  6. acting        – apply the outputs one lifeform at a time, then attacks
  7. top-up        – keep at least minimum_number_lifeforms on the board

Only phase 5 runs on worker threads; every other phase is sequential.
"""

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from enum import Enum

import numpy as np

from config import (
    WORLD_SIZE, NUM_INITIAL_LIFEFORMS, GENOME_SIZE, MUTATION_RATE,
    FOOD_DENSITY, NUM_INNER_NEURONS, MINIMUM_NUMBER_LIFEFORMS,
    DANGER_DELAY, DANGER_DAMAGE, MAX_THREADS, BACKFILL_CLONES,
    HUNGER_PER_TIC, FOOD_NOURISHMENT, ATTACK_HUNGER_COST,
    OSCILLATOR_PERIOD, VICINITY_RADIUS, VICINITY_CROWD,
)
from evolver import fitness, mutate, should_mutate
from genome import Genome, random_genome
from geometry import (closest_to, direc, dist_abs, dist_rel, randomize,
                      random_location, update_location)
from lifeform import LifeForm
from neurons import ActuatorType, NeuronTaxonomy, SensorType

logger = logging.getLogger(__name__)


class EventType(Enum):
    DEATH               = "death"
    CREATION            = "creation"
    ATTACK              = "attack"
    ASEXUALLY_REPRODUCE = "asexually_reproduce"


def _think(lifeform):
    return lifeform.id, lifeform.run_neural_net()


class World:
    """
    Owns the lifeforms and the environment, and advances them one tic at a
    time. Read the state back through the public attributes:

      lifeforms : dict id → LifeForm
      food      : set of (x, y)
      danger    : (x, y)
      tics      : number of completed steps
      events    : list of (EventType, str), append-only
    """

    def __init__(self,
                 size:                     int   = WORLD_SIZE,
                 num_initial_lifeforms:    int   = NUM_INITIAL_LIFEFORMS,
                 genome_size:              int   = GENOME_SIZE,
                 mutation_rate:            float = MUTATION_RATE,
                 food_density:             int   = FOOD_DENSITY,
                 num_inner_neurons:        int   = NUM_INNER_NEURONS,
                 minimum_number_lifeforms: int   = MINIMUM_NUMBER_LIFEFORMS,
                 danger_delay:             int   = DANGER_DELAY,
                 danger_damage:            float = DANGER_DAMAGE,
                 seed:                     int   = None,
                 max_threads:              int   = MAX_THREADS):
        if size <= 0:
            raise ValueError(f"world size must be positive, got {size}")
        if food_density <= 0:
            raise ValueError(f"food_density must be positive, got {food_density}")
        if danger_delay <= 0:
            raise ValueError(f"danger_delay must be positive, got {danger_delay}")
        if not 0.0 <= mutation_rate <= 1.0:
            raise ValueError(f"mutation_rate must be in [0, 1], got {mutation_rate}")
        if danger_damage < 0:
            raise ValueError(f"danger_damage must be >= 0, got {danger_damage}")
        for name, value in (("num_initial_lifeforms", num_initial_lifeforms),
                            ("genome_size", genome_size),
                            ("minimum_number_lifeforms", minimum_number_lifeforms)):
            if value < 0:
                raise ValueError(f"{name} must be >= 0, got {value}")

        self.size                     = size
        self.genome_size              = genome_size
        self.mutation_rate            = mutation_rate
        self.food_density             = food_density
        self.minimum_number_lifeforms = minimum_number_lifeforms
        self.danger_delay             = danger_delay
        self.danger_damage            = danger_damage

        self.rng      = np.random.default_rng(seed)
        self.taxonomy = NeuronTaxonomy(num_inner_neurons)

        self.lifeforms  = {}
        self.food       = set()
        self.danger     = random_location(size, self.rng)
        self.oscillator = 0.0
        self.tics       = 0
        self.events     = []

        self._executor = ThreadPoolExecutor(max_workers=max_threads)

        for _ in range(num_initial_lifeforms):
            self._insert_random_lifeform()

    # ──────────────────────────────────────────────────────────────────────────
    # Public API
    # ──────────────────────────────────────────────────────────────────────────

    def step(self):
        """Advance the world by one tic."""
        self.update_environment()
        self.update_inputs()
        has_died, has_split = self.apply_environment_effects()
        self.apply_deaths_and_births(has_died, has_split)
        outputs = self.run_neural_nets()
        self.apply_actions(outputs)
        self.ensure_lifeform_count()

    def close(self):
        self._executor.shutdown(wait=True)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # ──────────────────────────────────────────────────────────────────────────
    # Phase 1: environment
    # ──────────────────────────────────────────────────────────────────────────

    def update_environment(self):
        self.tics += 1
        self.oscillator = math.sin(self.tics / OSCILLATOR_PERIOD)

        if self.tics % self.food_density == 0:
            self.food.add(random_location(self.size, self.rng))

        if self.tics % self.danger_delay == 0:
            self.danger = randomize(self.size, self.danger, self.rng)

    # ──────────────────────────────────────────────────────────────────────────
    # Phase 2: sensing
    # ──────────────────────────────────────────────────────────────────────────

    def update_inputs(self):
        """Write every lifeform's sensor readings for this tic."""
        size = self.size
        healthiest_health, healthiest_loc = self.healthiest_lifeform_info()
        population_density = len(self.lifeforms) / size ** 2
        others = [(lf.id, lf.location, lf.health) for lf in self.lifeforms.values()]

        for lf in self.lifeforms.values():
            loc = lf.location
            net = lf.neural_net

            food_loc = closest_to(loc, self.food)
            if food_loc is None:
                net.set_sensor(SensorType.DIRECTION_TO_FOOD, 0.0)
                net.set_sensor(SensorType.DISTANCE_TO_FOOD, 1.0)
            else:
                net.set_sensor(SensorType.DIRECTION_TO_FOOD, direc(loc, food_loc))
                net.set_sensor(SensorType.DISTANCE_TO_FOOD, dist_rel(size, loc, food_loc))

            net.set_sensor(SensorType.DIRECTION_TO_DANGER, direc(loc, self.danger))
            net.set_sensor(SensorType.DISTANCE_TO_DANGER, dist_rel(size, loc, self.danger))

            if healthiest_loc is None:
                net.set_sensor(SensorType.DIRECTION_TO_HEALTHIEST_LF, 0.0)
                net.set_sensor(SensorType.DISTANCE_TO_HEALTHIEST_LF, 1.0)
            else:
                net.set_sensor(SensorType.DIRECTION_TO_HEALTHIEST_LF,
                               direc(loc, healthiest_loc))
                net.set_sensor(SensorType.DISTANCE_TO_HEALTHIEST_LF,
                               dist_rel(size, loc, healthiest_loc))
            net.set_sensor(SensorType.HEALTHIEST_LF_HEALTH, healthiest_health)

            in_vicinity, closest_health, closest_loc = \
                self._close_lifeform_info(lf.id, loc, others)
            if closest_loc is None:
                net.set_sensor(SensorType.DIRECTION_TO_CLOSEST_LF, 0.0)
                net.set_sensor(SensorType.DISTANCE_TO_CLOSEST_LF, 1.0)
            else:
                net.set_sensor(SensorType.DIRECTION_TO_CLOSEST_LF, direc(loc, closest_loc))
                net.set_sensor(SensorType.DISTANCE_TO_CLOSEST_LF,
                               dist_rel(size, loc, closest_loc))
            net.set_sensor(SensorType.CLOSEST_LF_HEALTH, closest_health)

            net.set_sensor(SensorType.HEALTH, lf.health)
            net.set_sensor(SensorType.HUNGER, lf.hunger)
            net.set_sensor(SensorType.POPULATION_DENSITY, population_density)
            net.set_sensor(SensorType.NEIGHBORHOOD_DENSITY,
                           min(1.0, in_vicinity / VICINITY_CROWD))
            net.set_sensor(SensorType.RANDOM, self.rng.random())
            net.set_sensor(SensorType.OSCILLATOR, self.oscillator)

    def healthiest_lifeform_info(self):
        """(health, location) of the healthiest lifeform, (0.0, None) if none."""
        health, location = 0.0, None
        for lf in self.lifeforms.values():
            if location is None or lf.health > health:
                health, location = lf.health, lf.location
        return health, location

    @staticmethod
    def _close_lifeform_info(lf_id, loc, others):
        """(number nearby, health of closest, location of closest) among others."""
        in_vicinity = 0
        closest_health, closest_loc = 0.0, None
        shortest = math.inf
        for other_id, other_loc, other_health in others:
            if other_id == lf_id:
                continue
            d = dist_abs(loc, other_loc)
            if d < shortest:
                shortest = d
                closest_health, closest_loc = other_health, other_loc
            if d < VICINITY_RADIUS:
                in_vicinity += 1
        return in_vicinity, closest_health, closest_loc

    # ──────────────────────────────────────────────────────────────────────────
    # Phase 3: effects of the environment
    # ──────────────────────────────────────────────────────────────────────────

    def apply_environment_effects(self):
        """
        Returns:
            has_died:  ids of lifeforms whose health ran out
            has_split: (parent id, location, genome copy) per asexual split
        """
        has_died = []
        has_split = []

        for lf in self.lifeforms.values():
            lf.hunger += HUNGER_PER_TIC
            lf.lifespan += 1

            if lf.location in self.food:
                self.food.discard(lf.location)
                lf.hunger -= FOOD_NOURISHMENT
                if lf.hunger < 0.0:
                    lf.hunger = 0.0
                    has_split.append((lf.id, lf.location, lf.genome.copy()))

            lf.health -= lf.hunger

            # Radioactive: damage falls off as the square of the distance
            dist = max(1.0, dist_abs(lf.location, self.danger))
            lf.health -= self.danger_damage / dist ** 2

            if lf.health <= 0.0:
                has_died.append(lf.id)

        return has_died, has_split

    # ──────────────────────────────────────────────────────────────────────────
    # Phase 4: death and birth
    # ──────────────────────────────────────────────────────────────────────────

    def apply_deaths_and_births(self, has_died, has_split):
        for lf_id in has_died:
            del self.lifeforms[lf_id]
            self._log_event(EventType.DEATH, f"=> Lifeform {lf_id} has died!")

        for parent_id, location, genome in has_split:
            if should_mutate(self.mutation_rate, self.rng):
                genome = mutate(genome, self.rng)
            child = self._insert_lifeform(genome, location)
            self._log_event(
                EventType.ASEXUALLY_REPRODUCE,
                f"=> Lifeform {parent_id} has reproduced asexually by eating "
                f"enough food, creating lifeform {child.id}!")

    # ──────────────────────────────────────────────────────────────────────────
    # Phase 5: thinking
    # ──────────────────────────────────────────────────────────────────────────

    def run_neural_nets(self) -> dict:
        """
        Evaluate every lifeform's brain on the worker pool.
        Workers only read their own lifeform; nothing is written until
        apply_actions().

        Returns:
            dict lifeform id → list of (ActuatorType, value)
        """
        lifeforms = list(self.lifeforms.values())
        return dict(self._executor.map(_think, lifeforms))

    # ──────────────────────────────────────────────────────────────────────────
    # Phase 6: acting
    # ──────────────────────────────────────────────────────────────────────────

    def apply_actions(self, outputs: dict):
        """
        Apply each lifeform's outputs in turn, then resolve the attacks that
        were queued along the way.
        """
        pending_attacks = []
        for lf_id, values in outputs.items():
            lf = self.lifeforms.get(lf_id)
            if lf is None:
                continue
            lf.most_recent_output_values = values
            pending_attacks.extend(self._process_output_values(lf, values))

        for attacker_id, target_id in pending_attacks:
            self._resolve_attack(attacker_id, target_id)

    def _process_output_values(self, lf, values) -> list:
        """
        Each output value is the probability of doing that action. A value at
        or below zero, or a failed roll, ends this lifeform's turn.
        """
        attacks = []
        for actuator, value in values:
            if value <= 0.0:
                break
            if self.rng.random() >= value:
                break

            if actuator is ActuatorType.TURN_LEFT:
                lf.orientation.turn_left()
            elif actuator is ActuatorType.TURN_RIGHT:
                lf.orientation.turn_right()
            elif actuator is ActuatorType.MOVE_FORWARD:
                lf.location = update_location(self.size, lf.location,
                                              lf.orientation.forward_modifier())
            elif actuator is ActuatorType.ATTACK:
                for other_id in self.other_lf_ids_at_location(lf.id, lf.location):
                    attacks.append((lf.id, other_id))
        return attacks

    def _resolve_attack(self, attacker_id, target_id):
        attacker = self.lifeforms.get(attacker_id)
        target = self.lifeforms.get(target_id)
        if attacker is None or target is None:
            return
        attacker.hunger += ATTACK_HUNGER_COST
        attacker.health /= 2.0
        target.health /= 2.0
        self._log_event(EventType.ATTACK,
                        f"=> {attacker_id} just attacked {target_id}!!")

    # ──────────────────────────────────────────────────────────────────────────
    # Phase 7: population top-up
    # ──────────────────────────────────────────────────────────────────────────

    def ensure_lifeform_count(self):
        """
        Keep a minimum number of lifeforms on the board. With none left, a
        whole batch of random ones is made. Otherwise the fittest lifeform is
        cloned (with a mutation) a few times and one random newcomer added.
        """
        if len(self.lifeforms) >= self.minimum_number_lifeforms:
            return

        if not self.lifeforms:
            for _ in range(self.minimum_number_lifeforms):
                lf = self._insert_random_lifeform()
                self._log_event(
                    EventType.CREATION,
                    f"=> New lifeform {lf.id} has been created with a random "
                    f"genome due to insufficient population")
            return

        most_fit = self.most_fit_lifeform()
        for _ in range(BACKFILL_CLONES):
            genome = mutate(most_fit.genome, self.rng)
            lf = self._insert_lifeform(genome, most_fit.location)
            self._log_event(
                EventType.CREATION,
                f"=> New lifeform {lf.id} has been created based on lifeform "
                f"{most_fit.id} due to insufficient population")

        lf = self._insert_random_lifeform()
        self._log_event(
            EventType.CREATION,
            f"=> New lifeform {lf.id} has been created with a random genome "
            f"due to insufficient population")

    def most_fit_lifeform(self):
        """The lifeform with the longest lifespan; the first one seen wins ties."""
        most_fit = None
        for lf in self.lifeforms.values():
            if most_fit is None or fitness(lf) > fitness(most_fit):
                most_fit = lf
        return most_fit

    # ──────────────────────────────────────────────────────────────────────────
    # Lookups
    # ──────────────────────────────────────────────────────────────────────────

    def available_lifeform_id(self) -> int:
        """The lowest id not held by a living lifeform."""
        lf_id = 0
        while lf_id in self.lifeforms:
            lf_id += 1
        return lf_id

    def other_lf_ids_at_location(self, lf_id: int, location: tuple) -> list:
        return [other.id for other in self.lifeforms.values()
                if other.location == location and other.id != lf_id]

    def lifeform_at_location(self, location: tuple):
        for lf in self.lifeforms.values():
            if lf.location == location:
                return lf
        return None

    def snapshot(self):
        """
        Returns two lists for visualisation:
          positions: (x, y) for every living lifeform
          colors:    (r, g, b) tuples
        """
        positions = [lf.location for lf in self.lifeforms.values()]
        colors    = [lf.color for lf in self.lifeforms.values()]
        return positions, colors

    # ──────────────────────────────────────────────────────────────────────────

    def _insert_lifeform(self, genome: Genome, location: tuple) -> LifeForm:
        lf = LifeForm(self.available_lifeform_id(), genome, location)
        self.lifeforms[lf.id] = lf
        return lf

    def _insert_random_lifeform(self) -> LifeForm:
        genome = random_genome(self.genome_size, self.taxonomy, self.rng)
        return self._insert_lifeform(genome, random_location(self.size, self.rng))

    def _log_event(self, kind: EventType, text: str):
        self.events.append((kind, text))
        logger.debug(text)
