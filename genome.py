"""
Genome encoding for EvoWorld.

A genome is an unordered list of genes. Each gene is one weighted, directed
connection between two neurons of the taxonomy:

  source : sensor or hidden neuron id   (never an actuator)
  sink   : hidden or actuator neuron id (never a sensor)
  weight : float in [-MAX_WEIGHT, MAX_WEIGHT]

Hidden neurons may feed each other, so the connection graph can contain
cycles. Rather than evaluating it recursively, every genome carries a flat
*evaluation order*: the genes, duplicated and arranged so that one left to
right pass over them propagates signals from the sensors to the actuators up
to a bounded depth. See compute_evaluation_order().
"""

from collections import defaultdict

import numpy as np

from config import GENOME_SIZE, MAX_WEIGHT
from neurons import NeuronTaxonomy


class Gene:
    """One weighted connection source → sink."""
    __slots__ = ("id", "source", "sink", "weight")

    def __init__(self, id: int, source: int, sink: int, weight: float):
        self.id     = id
        self.source = source
        self.sink   = sink
        self.weight = weight

    def copy(self) -> "Gene":
        return Gene(self.id, self.source, self.sink, self.weight)

    def __eq__(self, other):
        if not isinstance(other, Gene):
            return NotImplemented
        return (self.id, self.source, self.sink, self.weight) == \
               (other.id, other.source, other.sink, other.weight)

    def __repr__(self):
        return (f"Gene(id={self.id}, {self.source} -> {self.sink}, "
                f"w={self.weight:+.3f})")


def random_weight(rng=None) -> float:
    if rng is None:
        rng = np.random.default_rng()
    return float(rng.uniform(-MAX_WEIGHT, MAX_WEIGHT))


def max_follow_for(taxonomy) -> int:
    """
    How many times one gene may be followed while flattening the graph.
    Long enough for the longest acyclic chain sensor → every hidden → actuator.
    """
    return taxonomy.num_inner_neurons + 2


# ──────────────────────────────────────────────────────────────────────────────
# Evaluation order
# ──────────────────────────────────────────────────────────────────────────────

def compute_evaluation_order(genes: list, taxonomy) -> tuple:
    """
    Flatten a (possibly cyclic) gene graph into a replayable sequence.

      1. Index the genes by source neuron.
      2. Seed the order with every gene leaving a sensor.
      3. Walk the order with a cursor. For the gene under the cursor, append
         every gene leaving its sink, unless that gene has already been
         followed max_follow times.

    Each gene is followed at most max_follow times and each follow appends at
    most len(genes) entries, so the walk always terminates. The result only
    depends on the gene list and the taxonomy.
    """
    max_follow = max_follow_for(taxonomy)

    by_source = defaultdict(list)
    for gene in genes:
        by_source[gene.source].append(gene)

    order = [gene for gene in genes if taxonomy.is_sensor(gene.source)]
    follows = defaultdict(int)

    cursor = 0
    while cursor < len(order):
        gene = order[cursor]
        cursor += 1
        if follows[gene.id] >= max_follow:
            continue
        follows[gene.id] += 1
        order.extend(by_source.get(gene.sink, ()))

    return tuple(order)


# ──────────────────────────────────────────────────────────────────────────────
# Genome
# ──────────────────────────────────────────────────────────────────────────────

class Genome:
    """
    The genes of one lifeform plus their cached evaluation order.

    Changing the genes is a two step affair: change them (register_gene),
    then call recompute_evaluation_order(). Reading the order in between
    raises, so a stale order is never evaluated.
    """

    def __init__(self, genes: list, taxonomy):
        self.taxonomy = taxonomy
        self.genes    = list(genes)
        for gene in self.genes:
            self._check_gene(gene)
        self._evaluation_order = ()
        self._stale = True
        self.recompute_evaluation_order()

    @classmethod
    def random(cls, size: int, taxonomy, rng=None) -> "Genome":
        """Draw `size` random genes. Duplicate connections are allowed."""
        if size < 0:
            raise ValueError(f"genome size must be >= 0, got {size}")
        if rng is None:
            rng = np.random.default_rng()
        genes = [
            Gene(i,
                 taxonomy.random_source_neuron(rng),
                 taxonomy.random_target_neuron(rng),
                 random_weight(rng))
            for i in range(size)
        ]
        return cls(genes, taxonomy)

    # ──────────────────────────────────────────────────────────────────────────

    @property
    def evaluation_order(self) -> tuple:
        if self._stale:
            raise RuntimeError("genes changed since the evaluation order "
                               "was computed; call recompute_evaluation_order()")
        return self._evaluation_order

    @property
    def max_follow(self) -> int:
        return max_follow_for(self.taxonomy)

    def recompute_evaluation_order(self):
        self._evaluation_order = compute_evaluation_order(self.genes, self.taxonomy)
        self._stale = False

    def register_gene(self, gene: Gene):
        """
        Put `gene` into the genome, replacing the gene with the same id if
        there is one. The evaluation order is stale until recomputed.
        """
        self._check_gene(gene)
        for idx, existing in enumerate(self.genes):
            if existing.id == gene.id:
                self.genes[idx] = gene
                break
        else:
            self.genes.append(gene)
        self._stale = True

    def _check_gene(self, gene: Gene):
        if self.taxonomy.is_actuator(gene.source):
            raise ValueError(f"gene source {gene.source} is an actuator")
        if self.taxonomy.is_sensor(gene.sink):
            raise ValueError(f"gene sink {gene.sink} is a sensor")

    def copy(self) -> "Genome":
        clone = Genome.__new__(Genome)
        clone.taxonomy = self.taxonomy
        clone.genes    = [g.copy() for g in self.genes]
        clone.recompute_evaluation_order()
        return clone

    # ──────────────────────────────────────────────────────────────────────────

    def __len__(self):
        return len(self.genes)

    def __eq__(self, other):
        if not isinstance(other, Genome):
            return NotImplemented
        return self.genes == other.genes

    def __repr__(self):
        return (f"Genome({len(self.genes)} genes, "
                f"{len(self._evaluation_order)} in evaluation order)")


def random_genome(size: int = GENOME_SIZE, taxonomy=None, rng=None) -> Genome:
    """Generate a random genome for the given taxonomy."""
    if taxonomy is None:
        taxonomy = NeuronTaxonomy()
    return Genome.random(size, taxonomy, rng)


def genome_to_color(genome: Genome) -> tuple:
    """
    Map a genome to an RGB colour so that a lineage of clones keeps a similar
    colour (weights are ignored, only the wiring counts).
    """
    if not genome.genes:
        return (128, 128, 128)
    h = 0
    for g in genome.genes:
        h ^= ((g.source * 7919) ^ (g.sink * 104729)) & 0xFFFFFF
    r = max(50, (h >> 16) & 0xFF)
    g = max(50, (h >>  8) & 0xFF)
    b = max(50,  h        & 0xFF)
    return (r, g, b)
