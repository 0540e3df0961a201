"""
Evolutionary operators for EvoWorld.

  mutate        : copy of a genome with one field of one gene redrawn
  should_mutate : Bernoulli trial deciding whether an offspring mutates
  mate          : single-point crossover of two genomes
  fitness       : how well a lifeform is doing (its lifespan)
"""

import logging

import numpy as np

from genome import Gene, Genome, random_weight

logger = logging.getLogger(__name__)


def fitness(lifeform) -> int:
    return lifeform.lifespan


def should_mutate(rate: float, rng=None) -> bool:
    if rng is None:
        rng = np.random.default_rng()
    return bool(rng.random() < rate)


def mutate(genome: Genome, rng=None) -> Genome:
    """
    Return a copy of `genome` with a point mutation: one gene picked at
    random gets a new weight, a new source or a new sink.

    A genome without genes has nothing to mutate; it is copied unchanged.
    """
    if rng is None:
        rng = np.random.default_rng()
    clone = genome.copy()

    if not clone.genes:
        logger.warning("asked to mutate a genome with no genes; leaving it unchanged")
        return clone

    taxonomy = clone.taxonomy
    old = clone.genes[int(rng.integers(0, len(clone.genes)))]
    gene = old.copy()

    field = int(rng.integers(0, 3))
    if field == 0:
        gene.weight = random_weight(rng)
    elif field == 1:
        gene.source = taxonomy.random_source_neuron(rng)
    else:
        gene.sink = taxonomy.random_target_neuron(rng)

    clone.register_gene(gene)
    clone.recompute_evaluation_order()
    return clone


def mate(genome_a: Genome, genome_b: Genome) -> Genome:
    """
    Single-point crossover: the first half of A's genes followed by the
    second half of B's genes (split by position). Gene ids are renumbered so
    they stay unique in the offspring.
    """
    first  = genome_a.genes[:len(genome_a.genes) // 2]
    second = genome_b.genes[len(genome_b.genes) // 2:]
    genes = [Gene(i, g.source, g.sink, g.weight)
             for i, g in enumerate(first + second)]
    return Genome(genes, genome_a.taxonomy)
