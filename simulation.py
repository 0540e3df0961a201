"""
Simulation driver for EvoWorld.

Runs the world headless for a fixed number of tics:
  for each tic:
    1. world.step()
    2. collect per-tic stats (population, health, hunger, events)
    3. call the optional callbacks (for live output / snapshots)
    4. print a progress line every PRINT_INTERVAL tics
"""

import time

from config import NUM_TICS, PRINT_INTERVAL
from world import EventType, World


class Simulation:
    """
    Main simulation controller.
    """

    def __init__(
        self,
        num_tics:         int = NUM_TICS,
        print_interval:   int = PRINT_INTERVAL,
        on_step_callback  = None,    # called every tic with (tic, stats, world)
        verbose:          bool = True,
        **world_kwargs,
    ):
        self.num_tics         = num_tics
        self.print_interval   = print_interval
        self.on_step_callback = on_step_callback
        self.verbose          = verbose
        self.world            = World(**world_kwargs)

        # History
        self.stats = []          # list of dicts, one per tic
        self._events_seen = 0

    # ──────────────────────────────────────────────────────────────────────────
    # Public API
    # ──────────────────────────────────────────────────────────────────────────

    def run(self):
        """Run the world for num_tics tics, then release the worker pool."""
        try:
            for _ in range(self.num_tics):
                self.run_one_tic()
        finally:
            self.world.close()
        if self.verbose:
            print("\n=== Simulation complete ===")

    def run_one_tic(self) -> dict:
        t0 = time.time()
        self.world.step()
        stats = self._compute_stats()
        stats["elapsed_s"] = round(time.time() - t0, 4)
        self.stats.append(stats)

        if self.verbose:
            self._print_stats(stats)
        if self.on_step_callback:
            self.on_step_callback(stats["tic"], stats, self.world)
        return stats

    # ──────────────────────────────────────────────────────────────────────────
    # Stats
    # ──────────────────────────────────────────────────────────────────────────

    def _compute_stats(self) -> dict:
        world = self.world
        lifeforms = list(world.lifeforms.values())
        n_pop = len(lifeforms)

        new_events = world.events[self._events_seen:]
        self._events_seen = len(world.events)
        counts = {kind: 0 for kind in EventType}
        for kind, _text in new_events:
            counts[kind] += 1

        return {
            "tic":          world.tics,
            "population":   n_pop,
            "mean_health":  sum(lf.health for lf in lifeforms) / max(1, n_pop),
            "mean_hunger":  sum(lf.hunger for lf in lifeforms) / max(1, n_pop),
            "max_lifespan": max((lf.lifespan for lf in lifeforms), default=0),
            "deaths":       counts[EventType.DEATH],
            "births":       counts[EventType.ASEXUALLY_REPRODUCE],
            "created":      counts[EventType.CREATION],
            "attacks":      counts[EventType.ATTACK],
            "food":         len(world.food),
        }

    def _print_stats(self, stats: dict):
        tic = stats["tic"]
        if tic % self.print_interval == 0 or tic < 5:
            print(
                f"Tic {tic:>7}  |  "
                f"pop {stats['population']:>4}  |  "
                f"health {stats['mean_health']:.3f}  |  "
                f"oldest {stats['max_lifespan']:>6}  |  "
                f"births {stats['births']:>2}  deaths {stats['deaths']:>2}  "
                f"attacks {stats['attacks']:>2}  |  "
                f"{stats['elapsed_s']:.4f}s"
            )
