"""
2-D helpers for EvoWorld.

Locations are (x, y) integer tuples with 0 <= x, y < size. (0, 0) is the
upper left corner, so a smaller y is further north.
"""

import math

import numpy as np

# 8 compass directions (dx, dy), clockwise from north – index 0-7
DIRS = [(0, -1), (1, -1), (1, 0), (1, 1), (0, 1), (-1, 1), (-1, 0), (-1, -1)]
DIR_NAMES = ["north", "north_east", "east", "south_east",
             "south", "south_west", "west", "north_west"]


class Direction:
    """An orientation that can turn in 45° steps."""
    __slots__ = ("index",)

    def __init__(self, index: int = 0):
        self.index = index % len(DIRS)

    def turn_left(self):
        self.index = (self.index - 1) % len(DIRS)

    def turn_right(self):
        self.index = (self.index + 1) % len(DIRS)

    def forward_modifier(self) -> tuple:
        return DIRS[self.index]

    @property
    def name(self) -> str:
        return DIR_NAMES[self.index]

    def copy(self) -> "Direction":
        return Direction(self.index)

    def __eq__(self, other):
        return isinstance(other, Direction) and other.index == self.index

    def __repr__(self):
        return f"Direction({self.name})"


# ──────────────────────────────────────────────────────────────────────────────
# Distances
# ──────────────────────────────────────────────────────────────────────────────

def dist_abs(a: tuple, b: tuple) -> float:
    """Euclidean distance between two locations."""
    return math.hypot(b[0] - a[0], b[1] - a[1])


def dist_rel(size: int, a: tuple, b: tuple) -> float:
    """
    Distance relative to the world size, for use as a sensor value.
    Opposite corners of a size x size world are 1.0 apart, the same point 0.0.
    """
    farthest_possible = math.sqrt(2 * size ** 2)
    return min(1.0, dist_abs(a, b) / farthest_possible)


def direc(a: tuple, b: tuple) -> float:
    """
    Rough compass direction from a to b, as a sensor value:
      0.25 north, 0.50 east, 0.75 south, 1.00 west, 0.00 same point.
    The dominant axis wins; exact diagonals go to the vertical.
    """
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    if dx == 0 and dy == 0:
        return 0.0
    if abs(dy) >= abs(dx):
        return 0.25 if dy < 0 else 0.75
    return 0.5 if dx > 0 else 1.0


def closest_to(subject: tuple, objects):
    """The object location closest to subject, or None if there are none."""
    closest = None
    shortest = math.inf
    for obj in objects:
        d = dist_abs(subject, obj)
        if d < shortest:
            shortest = d
            closest = obj
    return closest


# ──────────────────────────────────────────────────────────────────────────────
# Movement
# ──────────────────────────────────────────────────────────────────────────────

def update_location(size: int, loc: tuple, modifier: tuple) -> tuple:
    """Move loc by modifier, clamped at the world edges."""
    x = max(0, min(size - 1, loc[0] + modifier[0]))
    y = max(0, min(size - 1, loc[1] + modifier[1]))
    return (x, y)


def randomize(size: int, loc: tuple, rng=None) -> tuple:
    """Relocate one step up, down, left or right, staying inside the world."""
    if rng is None:
        rng = np.random.default_rng()
    options = [(loc[0] + dx, loc[1] + dy)
               for dx, dy in ((0, -1), (1, 0), (0, 1), (-1, 0))
               if 0 <= loc[0] + dx < size and 0 <= loc[1] + dy < size]
    if not options:
        return loc
    return options[int(rng.integers(0, len(options)))]


def random_location(size: int, rng) -> tuple:
    return (int(rng.integers(0, size)), int(rng.integers(0, size)))
