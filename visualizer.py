"""
Visualizer for EvoWorld.

Produces:
  1. World snapshots   – lifeforms, food and the danger on the grid
  2. Population chart  – population + mean health + event counts over tics
  3. Neural network diagrams – wiring of a lifeform's genome
  4. CSV log           – per-tic stats
"""

import os
import csv
import matplotlib
matplotlib.use("Agg")          # non-interactive backend (no display needed)
import matplotlib.pyplot as plt

from config import SAVE_DIR, LOG_CSV
from neurons import NeuronCategory


# ──────────────────────────────────────────────────────────────────────────────
# Directory setup
# ──────────────────────────────────────────────────────────────────────────────

def ensure_dirs(base: str = SAVE_DIR):
    for sub in ("snapshots", "charts", "neural"):
        os.makedirs(os.path.join(base, sub), exist_ok=True)


# ──────────────────────────────────────────────────────────────────────────────
# World snapshot
# ──────────────────────────────────────────────────────────────────────────────

def save_world_snapshot(world, base: str = SAVE_DIR):
    """
    Render the current world as a scatter plot.
    Lifeforms in their lineage colour, food in green, the danger in red.
    """
    fig, ax = plt.subplots(figsize=(6, 6), dpi=100)
    ax.set_xlim(-1, world.size)
    ax.set_ylim(world.size, -1)     # (0, 0) is the upper left corner
    ax.set_aspect("equal")
    ax.set_facecolor("#111111")
    fig.patch.set_facecolor("#111111")
    ax.set_title(f"Tic {world.tics}  ({len(world.lifeforms)} lifeforms, "
                 f"{len(world.food)} food)",
                 color="white", fontsize=10)
    ax.tick_params(colors="white")
    for spine in ax.spines.values():
        spine.set_edgecolor("#444444")

    if world.food:
        fx, fy = zip(*world.food)
        ax.scatter(fx, fy, c="#44FF44", s=10, marker="s", linewidths=0)

    ax.scatter([world.danger[0]], [world.danger[1]], c="#FF3333", s=60,
               marker="X", linewidths=0)

    positions, colors = world.snapshot()
    if positions:
        xs = [p[0] for p in positions]
        ys = [p[1] for p in positions]
        rgba = [[r/255, g/255, b/255, 1.0] for (r, g, b) in colors]
        ax.scatter(xs, ys, c=rgba, s=16, linewidths=0)

    path = os.path.join(base, "snapshots", f"tic_{world.tics:07d}.png")
    plt.savefig(path, dpi=100, bbox_inches="tight", facecolor=fig.get_facecolor())
    plt.close(fig)
    return path


# ──────────────────────────────────────────────────────────────────────────────
# Population chart
# ──────────────────────────────────────────────────────────────────────────────

def save_population_chart(stats: list, base: str = SAVE_DIR,
                          filename: str = "population.png"):
    """
    Plot population, births and deaths (left axis) against mean health
    (right axis) across all recorded tics.
    """
    if not stats:
        return
    tics       = [s["tic"]         for s in stats]
    population = [s["population"]  for s in stats]
    health     = [s["mean_health"] for s in stats]
    births     = [s["births"]      for s in stats]
    deaths     = [s["deaths"]      for s in stats]

    fig, ax1 = plt.subplots(figsize=(12, 5), dpi=100)
    fig.patch.set_facecolor("#111111")
    ax1.set_facecolor("#111111")

    ax1.plot(tics, population, color="#44FF44", linewidth=1.2,
             label="Population", zorder=3)
    if any(births):
        ax1.plot(tics, births, color="#4499FF", linewidth=0.8,
                 alpha=0.8, label="Births", zorder=2)
    if any(deaths):
        ax1.plot(tics, deaths, color="#FF8800", linewidth=0.8,
                 alpha=0.8, label="Deaths", zorder=2)
    ax1.set_ylabel("Count", color="white")
    ax1.set_ylim(0, max(population) * 1.05 if max(population) else 1)
    ax1.tick_params(axis="both", colors="white")
    ax1.set_xlabel("Tic", color="white")

    ax2 = ax1.twinx()
    ax2.set_facecolor("#111111")
    ax2.plot(tics, health, color="#CC44FF", linewidth=1.0,
             linestyle="--", label="Mean health", zorder=2)
    ax2.set_ylabel("Mean health (0–1)", color="white")
    ax2.set_ylim(0, 1.05)
    ax2.tick_params(colors="white")

    for spine in ax1.spines.values():
        spine.set_edgecolor("#444444")

    lines1, labels1 = ax1.get_legend_handles_labels()
    lines2, labels2 = ax2.get_legend_handles_labels()
    ax1.legend(lines1 + lines2, labels1 + labels2,
               facecolor="#222222", labelcolor="white",
               loc="lower right", fontsize=8)

    ax1.set_title("Population", color="white", fontsize=12)
    plt.tight_layout()
    path = os.path.join(base, "charts", filename)
    plt.savefig(path, dpi=100, bbox_inches="tight",
                facecolor=fig.get_facecolor())
    plt.close(fig)
    return path


# ──────────────────────────────────────────────────────────────────────────────
# Neural network diagram
# ──────────────────────────────────────────────────────────────────────────────

def save_neural_diagram(lifeform, tic: int, label: str = "",
                        base: str = SAVE_DIR):
    """
    Draw the lifeform's genome as a layered graph.
    Sensors (blue) → inner (grey) → actuators (pink).
    Green edges = positive weights, red edges = negative.
    """
    genes = lifeform.genome.genes
    if not genes:
        return
    taxonomy = lifeform.genome.taxonomy

    columns = {
        NeuronCategory.SENSOR:   (0.0, "#4499FF", "right", -0.03),
        NeuronCategory.HIDDEN:   (0.5, "#AAAAAA", "center", 0.0),
        NeuronCategory.ACTUATOR: (1.0, "#FF88AA", "left", 0.03),
    }

    used = {}
    for g in genes:
        for nid in (g.source, g.sink):
            used.setdefault(taxonomy.category_of(nid), set()).add(nid)

    node_pos = {}
    for category, ids in used.items():
        x = columns[category][0]
        ordered = sorted(ids)
        for idx, nid in enumerate(ordered):
            node_pos[nid] = (x, (idx + 1) / (len(ordered) + 1))

    fig, ax = plt.subplots(figsize=(10, 6), dpi=100)
    fig.patch.set_facecolor("#111111")
    ax.set_facecolor("#111111")
    ax.axis("off")
    ax.set_xlim(-0.35, 1.35)
    ax.set_ylim(-0.05, 1.05)

    for g in genes:
        x1, y1 = node_pos[g.source]
        x2, y2 = node_pos[g.sink]
        color   = "#44FF44" if g.weight >= 0 else "#FF4444"
        lw      = 0.5 + min(3.0, abs(g.weight) / 2)
        if g.source == g.sink:
            ax.add_patch(plt.Circle((x1, y1 + 0.04), 0.03, fill=False,
                                    color=color, lw=lw, alpha=0.7, zorder=1))
            continue
        ax.annotate("", xy=(x2, y2), xytext=(x1, y1),
                    arrowprops=dict(arrowstyle="-|>", color=color, lw=lw,
                                    alpha=0.7, connectionstyle="arc3,rad=0.1"),
                    zorder=1)

    for nid, (x, y) in node_pos.items():
        _, color, ha, offset_x = columns[taxonomy.category_of(nid)]
        ax.add_patch(plt.Circle((x, y), 0.02, color=color, zorder=3))
        ax.text(x + offset_x, y + (0.035 if ha == "center" else 0.0),
                taxonomy.label(nid), color="white", fontsize=6.5,
                ha=ha, va="center", zorder=4)

    for tx, title in [(0.0, "Sensors"), (0.5, "Inner"), (1.0, "Actuators")]:
        ax.text(tx, 1.03, title, color="#CCCCCC", ha="center",
                fontsize=9, fontweight="bold")

    ax.set_title(
        f"Tic {tic} — Brain of lifeform {lifeform.id} {label} "
        f"({len(genes)} genes, {len(lifeform.genome.evaluation_order)} steps)",
        color="white", fontsize=10, pad=4)

    suffix = f"_{label}" if label else ""
    path = os.path.join(base, "neural", f"tic_{tic:07d}_lf{lifeform.id}{suffix}.png")
    plt.savefig(path, dpi=100, bbox_inches="tight",
                facecolor=fig.get_facecolor())
    plt.close(fig)
    return path


# ──────────────────────────────────────────────────────────────────────────────
# CSV log
# ──────────────────────────────────────────────────────────────────────────────

def append_csv(stats: dict, base: str = SAVE_DIR):
    """Append one tic's stats to a CSV file."""
    if not LOG_CSV:
        return
    path = os.path.join(base, "population_log.csv")
    file_exists = os.path.isfile(path)
    with open(path, "a", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(stats.keys()))
        if not file_exists:
            writer.writeheader()
        writer.writerow(stats)
