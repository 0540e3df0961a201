"""
Neural network brain for EvoWorld.

There is no weight matrix: the brain is the genome's evaluation order
(see genome.compute_evaluation_order) replayed once per tic.

Forward pass:
  1. running_sums = {}
  2. For each gene in the evaluation order:
       - a gene leaving a sensor seeds running_sums[source] with the reading
       - if running_sums has a value for the source, add
         tanh(running_sums[source]) * weight into running_sums[sink]
  3. Every actuator that received a signal fires tanh(running_sums[id]),
     which the world treats as the probability of performing the action.

Actuators that no gene reaches produce nothing at all (not zero).
"""

import math

from neurons import SensorType


class NeuralNetwork:
    """
    Per-lifeform neuron state: the current sensor readings. The wiring lives
    in the genome and is passed to forward().
    """

    def __init__(self, taxonomy):
        self.taxonomy = taxonomy
        self.sensor_values = {nid: 0.0 for nid in taxonomy.sensor_ids}

    def set_sensor(self, sensor_type: SensorType, value: float):
        self.sensor_values[self.taxonomy.sensor_id(sensor_type)] = float(value)

    def sensor(self, sensor_type: SensorType) -> float:
        return self.sensor_values[self.taxonomy.sensor_id(sensor_type)]

    def forward(self, evaluation_order) -> list:
        """
        Run one pass over the evaluation order.

        Returns:
            list of (ActuatorType, value) pairs, value in (-1, 1), one per
            actuator that received a signal, in the order they were first
            reached.
        """
        taxonomy = self.taxonomy
        sensor_values = self.sensor_values
        running_sums = {}

        for gene in evaluation_order:
            source = gene.source
            if source in sensor_values:
                running_sums[source] = sensor_values[source]
            if source in running_sums:
                running_sums[gene.sink] = (running_sums.get(gene.sink, 0.0)
                                           + math.tanh(running_sums[source]) * gene.weight)

        return [(taxonomy.actuator_type(nid), math.tanh(total))
                for nid, total in running_sums.items()
                if taxonomy.is_actuator(nid)]

    def copy(self) -> "NeuralNetwork":
        clone = NeuralNetwork(self.taxonomy)
        clone.sensor_values = dict(self.sensor_values)
        return clone

    # ──────────────────────────────────────────────────────────────────────────

    def summary(self, genome) -> str:
        label = self.taxonomy.label
        lines = [f"NeuralNetwork ({len(genome.genes)} genes, "
                 f"{len(genome.evaluation_order)} steps per pass)"]
        for g in genome.genes:
            lines.append(f"  {label(g.source):>26} → {label(g.sink):<26}"
                         f"  w={g.weight:+.3f}")
        return "\n".join(lines)
