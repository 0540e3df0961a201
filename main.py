"""
EvoWorld – Main Entry Point
===========================

Runs the ecosystem headless and saves snapshots, charts and a CSV log.

Usage examples:
  python main.py                              # defaults from config.py
  python main.py --tics 20000 --size 80       # longer run, bigger world
  python main.py --genome_size 40 --num_inner_neurons 8
  python main.py --mutation_rate 0            # clones never mutate
  python main.py --seed 7 --verbose           # reproducible, log every event
"""

import argparse
import logging
import os

from simulation import Simulation
from visualizer import (ensure_dirs, save_world_snapshot,
                        save_population_chart, save_neural_diagram,
                        append_csv)
from evolver import fitness
from config import (SAVE_DIR, SNAPSHOT_INTERVAL, NUM_TICS, PRINT_INTERVAL,
                    WORLD_SIZE, NUM_INITIAL_LIFEFORMS, GENOME_SIZE,
                    MUTATION_RATE, FOOD_DENSITY, NUM_INNER_NEURONS,
                    MINIMUM_NUMBER_LIFEFORMS, DANGER_DELAY, DANGER_DAMAGE,
                    MAX_THREADS)


# ──────────────────────────────────────────────────────────────────────────────
# CLI
# ──────────────────────────────────────────────────────────────────────────────

def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="EvoWorld – an evolutionary ecosystem of lifeforms, food "
                    "and danger")
    p.add_argument("--tics",        type=int,   default=NUM_TICS,
                   help="Number of tics to run")
    p.add_argument("--size",        type=int,   default=WORLD_SIZE,
                   help="Side length of the (square) world")
    p.add_argument("--num_initial_lifeforms", type=int, default=NUM_INITIAL_LIFEFORMS,
                   help="Lifeforms on the board at the start")
    p.add_argument("--genome_size", type=int,   default=GENOME_SIZE,
                   help="Genes per genome = neural connections")
    p.add_argument("--mutation_rate", type=float, default=MUTATION_RATE,
                   help="Chance an offspring of a split is mutated")
    p.add_argument("--food_density", type=int,  default=FOOD_DENSITY,
                   help="A new food item appears every N tics")
    p.add_argument("--num_inner_neurons", type=int, default=NUM_INNER_NEURONS,
                   help="Hidden neurons available to every genome")
    p.add_argument("--minimum_number_lifeforms", type=int,
                   default=MINIMUM_NUMBER_LIFEFORMS,
                   help="Below this many lifeforms the board is topped up")
    p.add_argument("--danger_delay", type=int,  default=DANGER_DELAY,
                   help="The danger moves one cell every N tics")
    p.add_argument("--danger_damage", type=float, default=DANGER_DAMAGE,
                   help="Damage coefficient of the danger (falls off with "
                        "distance squared)")
    p.add_argument("--threads",     type=int,   default=MAX_THREADS,
                   help="Worker threads for the neural net pass")
    p.add_argument("--seed",        type=int,   default=None,
                   help="Random seed for reproducibility")
    p.add_argument("--outdir",      default=SAVE_DIR,
                   help="Output directory")
    p.add_argument("--snapshot_interval", type=int, default=SNAPSHOT_INTERVAL,
                   help="Save a world snapshot every N tics")
    p.add_argument("--print_interval", type=int, default=PRINT_INTERVAL,
                   help="Print a progress line every N tics")
    p.add_argument("--verbose", action="store_true",
                   help="Log every world event")
    return p.parse_args(argv)


# ──────────────────────────────────────────────────────────────────────────────
# Callbacks
# ──────────────────────────────────────────────────────────────────────────────

class SimCallbacks:
    """Bundles the per-tic callbacks used by the simulation."""

    def __init__(self, outdir: str, snapshot_interval: int):
        self.outdir            = outdir
        self.snapshot_interval = snapshot_interval

    def on_step(self, tic, stats, world):
        append_csv(stats, self.outdir)

        if tic % self.snapshot_interval == 0:
            path = save_world_snapshot(world, self.outdir)
            print(f"  → Snapshot: {path}")

            if world.lifeforms:
                oldest = max(world.lifeforms.values(), key=fitness)
                npath = save_neural_diagram(oldest, tic, "oldest", self.outdir)
                if npath:
                    print(f"  → Neural diagram: {npath}")


# ──────────────────────────────────────────────────────────────────────────────
# Main
# ──────────────────────────────────────────────────────────────────────────────

def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    ensure_dirs(args.outdir)

    print("=" * 60)
    print("  EvoWorld – Evolutionary Ecosystem Simulator")
    print("=" * 60)
    print(f"  World size : {args.size} x {args.size}")
    print(f"  Lifeforms  : {args.num_initial_lifeforms} "
          f"(minimum {args.minimum_number_lifeforms})")
    print(f"  Tics       : {args.tics}")
    print(f"  Genome size: {args.genome_size} genes, "
          f"{args.num_inner_neurons} inner neurons")
    print(f"  Mutation   : {args.mutation_rate}")
    print(f"  Output dir : {args.outdir}")
    print("=" * 60)

    cb = SimCallbacks(outdir=args.outdir,
                      snapshot_interval=args.snapshot_interval)

    sim = Simulation(
        num_tics                 = args.tics,
        print_interval           = args.print_interval,
        on_step_callback         = cb.on_step,
        size                     = args.size,
        num_initial_lifeforms    = args.num_initial_lifeforms,
        genome_size              = args.genome_size,
        mutation_rate            = args.mutation_rate,
        food_density             = args.food_density,
        num_inner_neurons        = args.num_inner_neurons,
        minimum_number_lifeforms = args.minimum_number_lifeforms,
        danger_delay             = args.danger_delay,
        danger_damage            = args.danger_damage,
        seed                     = args.seed,
        max_threads              = args.threads,
    )

    sim.run()

    print("\nSaving final population chart …")
    chart_path = save_population_chart(sim.stats, args.outdir)
    print(f"  → {chart_path}")

    snap = save_world_snapshot(sim.world, args.outdir)
    print(f"  → Final snapshot: {snap}")

    print("\nDone! All outputs saved to:", os.path.abspath(args.outdir))


if __name__ == "__main__":
    main()
