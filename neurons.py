"""
Neuron taxonomy for EvoWorld.

Every neuron a genome can reference has an integer id in one of three
disjoint blocks:

  SENSOR_ID_BASE   + n : sensor (input) neurons, one per SensorType
  INNER_ID_BASE    + n : hidden (inner) neurons, num_inner_neurons of them
  ACTUATOR_ID_BASE + n : actuator (output) neurons, one per ActuatorType

Ids are assigned by enumeration order, so two taxonomies built with the same
inner neuron count are identical.
"""

from enum import Enum

import numpy as np

from config import (SENSOR_ID_BASE, INNER_ID_BASE, ACTUATOR_ID_BASE,
                    MAX_INNER_NEURONS, NUM_INNER_NEURONS)


class NeuronCategory(Enum):
    SENSOR   = "sensor"
    HIDDEN   = "hidden"
    ACTUATOR = "actuator"


class SensorType(Enum):
    """Environment readings written into a lifeform before each evaluation."""
    DIRECTION_TO_FOOD          = 0
    DISTANCE_TO_FOOD           = 1
    DIRECTION_TO_DANGER        = 2
    DISTANCE_TO_DANGER         = 3
    DIRECTION_TO_HEALTHIEST_LF = 4
    DISTANCE_TO_HEALTHIEST_LF  = 5
    HEALTHIEST_LF_HEALTH       = 6
    DIRECTION_TO_CLOSEST_LF    = 7
    DISTANCE_TO_CLOSEST_LF     = 8
    CLOSEST_LF_HEALTH          = 9
    HEALTH                     = 10
    HUNGER                     = 11
    POPULATION_DENSITY         = 12
    NEIGHBORHOOD_DENSITY       = 13
    RANDOM                     = 14
    OSCILLATOR                 = 15


class ActuatorType(Enum):
    """Actions a lifeform may take; the output value is its probability."""
    TURN_LEFT    = 0
    TURN_RIGHT   = 1
    MOVE_FORWARD = 2
    ATTACK       = 3


class NeuronTaxonomy:
    """
    The shared neuron id space referenced by every genome and lifeform.
    Build one per world and hand it around.
    """

    def __init__(self, num_inner_neurons: int = NUM_INNER_NEURONS,
                 sensor_types=SensorType, actuator_types=ActuatorType):
        if not 0 <= num_inner_neurons <= MAX_INNER_NEURONS:
            raise ValueError(
                f"num_inner_neurons must be in [0, {MAX_INNER_NEURONS}], "
                f"got {num_inner_neurons}")

        sensor_types   = list(sensor_types)
        actuator_types = list(actuator_types)
        if not sensor_types or not actuator_types:
            raise ValueError("a taxonomy needs at least one sensor type "
                             "and one actuator type")

        self.num_inner_neurons = num_inner_neurons

        self.sensors   = {SENSOR_ID_BASE + i: t
                          for i, t in enumerate(sensor_types)}
        self.actuators = {ACTUATOR_ID_BASE + i: t
                          for i, t in enumerate(actuator_types)}
        self.sensor_ids   = list(self.sensors)
        self.inner_ids    = [INNER_ID_BASE + i for i in range(num_inner_neurons)]
        self.actuator_ids = list(self.actuators)

        self._sensor_id_of = {t: nid for nid, t in self.sensors.items()}

        self._category = {}
        for nid in self.sensor_ids:
            self._category[nid] = NeuronCategory.SENSOR
        for nid in self.inner_ids:
            self._category[nid] = NeuronCategory.HIDDEN
        for nid in self.actuator_ids:
            self._category[nid] = NeuronCategory.ACTUATOR

        # Where a gene may start from, and where it may go to
        self.source_ids = self.sensor_ids + self.inner_ids
        self.target_ids = self.inner_ids + self.actuator_ids

    # ──────────────────────────────────────────────────────────────────────────

    def category_of(self, neuron_id: int) -> NeuronCategory:
        return self._category[neuron_id]

    def is_sensor(self, neuron_id: int) -> bool:
        return self._category.get(neuron_id) is NeuronCategory.SENSOR

    def is_actuator(self, neuron_id: int) -> bool:
        return self._category.get(neuron_id) is NeuronCategory.ACTUATOR

    def sensor_id(self, sensor_type: SensorType) -> int:
        return self._sensor_id_of[sensor_type]

    def actuator_type(self, neuron_id: int) -> ActuatorType:
        return self.actuators[neuron_id]

    def random_source_neuron(self, rng=None) -> int:
        """A neuron id drawn from sensors ∪ hidden: anywhere a gene can start."""
        if rng is None:
            rng = np.random.default_rng()
        return self.source_ids[int(rng.integers(0, len(self.source_ids)))]

    def random_target_neuron(self, rng=None) -> int:
        """A neuron id drawn from hidden ∪ actuators: anywhere a gene can end."""
        if rng is None:
            rng = np.random.default_rng()
        return self.target_ids[int(rng.integers(0, len(self.target_ids)))]

    def label(self, neuron_id: int) -> str:
        """Short human readable name, used by summaries and diagrams."""
        if neuron_id in self.sensors:
            return self.sensors[neuron_id].name.lower()
        if neuron_id in self.actuators:
            return self.actuators[neuron_id].name.lower()
        return f"inner_{neuron_id - INNER_ID_BASE}"

    def __len__(self):
        return len(self._category)
