"""
LifeForm class for EvoWorld.

Each lifeform has:
  - an (x, y) location and an orientation
  - a Genome, whose evaluation order is its brain wiring
  - a NeuralNetwork holding its current sensor readings
  - State: health, hunger, lifespan, most recent action outputs

The world owns every lifeform. Each tic it writes sensor readings into the
neural network, calls run_neural_net() (possibly from a worker thread) and
then applies the returned actions itself.
"""

from genome import Genome, genome_to_color
from geometry import Direction
from neural_network import NeuralNetwork


class LifeForm:
    """
    A single agent in the ecosystem.
    """
    __slots__ = (
        "id", "genome", "neural_net", "health", "hunger", "lifespan",
        "location", "orientation", "most_recent_output_values", "color",
    )

    def __init__(self, id: int, genome: Genome, location: tuple,
                 orientation: Direction = None):
        self.id          = id
        self.genome      = genome
        self.neural_net  = NeuralNetwork(genome.taxonomy)
        self.health      = 1.0
        self.hunger      = 0.0
        self.lifespan    = 0                   # tics lived
        self.location    = location
        self.orientation = orientation if orientation is not None else Direction()
        self.most_recent_output_values = None  # list of (ActuatorType, value)
        self.color       = genome_to_color(genome)

    # ──────────────────────────────────────────────────────────────────────────

    def run_neural_net(self) -> list:
        """Actuator outputs for the current sensor readings. Reads only."""
        return self.neural_net.forward(self.genome.evaluation_order)

    def snapshot(self) -> dict:
        """Plain-data view of the lifeform for displays and logs."""
        taxonomy = self.genome.taxonomy
        return {
            "id":          self.id,
            "location":    self.location,
            "health":      self.health,
            "hunger":      self.hunger,
            "lifespan":    self.lifespan,
            "orientation": self.orientation.name,
            "outputs":     list(self.most_recent_output_values or []),
            "sensors":     {taxonomy.sensors[nid]: value
                            for nid, value in self.neural_net.sensor_values.items()},
        }

    def __repr__(self):
        return (f"LifeForm(id={self.id}, loc={self.location}, "
                f"health={self.health:.3f}, hunger={self.hunger:.6f}, "
                f"lifespan={self.lifespan})")
