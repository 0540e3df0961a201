"""
EvoWorld Configuration
All tunable parameters for the lifeform ecosystem simulation.
"""

import multiprocessing

# ─── World ────────────────────────────────────────────────────────────────────
WORLD_SIZE = 50   # the world is a square of WORLD_SIZE x WORLD_SIZE cells

# ─── Population ───────────────────────────────────────────────────────────────
NUM_INITIAL_LIFEFORMS    = 20   # lifeforms on the board at tic 0
MINIMUM_NUMBER_LIFEFORMS = 5    # below this, the board is topped back up
BACKFILL_CLONES          = 3    # clones of the fittest made per top-up

# ─── Genome / Brain ───────────────────────────────────────────────────────────
GENOME_SIZE       = 25    # number of genes (= neural connections)
NUM_INNER_NEURONS = 5     # available hidden neurons
MUTATION_RATE     = 0.1   # chance a split offspring gets a point mutation
MAX_WEIGHT        = 4.0   # gene weights are drawn from [-MAX_WEIGHT, MAX_WEIGHT]

# Neuron id offsets. Each category owns a block of 100 ids.
SENSOR_ID_BASE   = 100
INNER_ID_BASE    = 200
ACTUATOR_ID_BASE = 300
MAX_INNER_NEURONS = ACTUATOR_ID_BASE - INNER_ID_BASE

# ─── Food / Hunger ────────────────────────────────────────────────────────────
FOOD_DENSITY      = 30         # a new food item appears every N tics
HUNGER_PER_TIC    = 0.000001   # hunger gained every tic
FOOD_NOURISHMENT  = 0.5        # hunger removed by one food item
ATTACK_HUNGER_COST = 0.3       # hunger gained by an attacker per attack

# ─── Danger ───────────────────────────────────────────────────────────────────
# The danger is radioactive: its damage falls off with the square of the
# distance from it (distance is floored at one cell).
DANGER_DELAY  = 10    # the danger moves one cell every N tics
DANGER_DAMAGE = 0.5   # damage coefficient

# ─── Sensing ──────────────────────────────────────────────────────────────────
OSCILLATOR_PERIOD = 10.0   # oscillator = sin(tics / OSCILLATOR_PERIOD)
VICINITY_RADIUS   = 2.0    # cells; lifeforms closer than this are "nearby"
VICINITY_CROWD    = 8      # this many nearby lifeforms reads as density 1.0

# ─── Threading ────────────────────────────────────────────────────────────────
MAX_THREADS = max(4, multiprocessing.cpu_count() - 1)

# ─── Output / Logging ─────────────────────────────────────────────────────────
SAVE_DIR          = "output"   # directory for saved images and charts
NUM_TICS          = 5000       # tics run by the headless driver
SNAPSHOT_INTERVAL = 500        # save a world snapshot every N tics
PRINT_INTERVAL    = 100        # print a progress line every N tics
LOG_CSV           = True       # write per-tic CSV log
