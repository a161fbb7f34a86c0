"""
Fixed constants of the forge lattice.

Grid and population sizes are fixed for the process lifetime.
"""

import math

GRID_SIZE = 24
SHARDS_PER_SITE = 4
N_SITES = GRID_SIZE * GRID_SIZE
N_SHARDS = N_SITES * SHARDS_PER_SITE

# Drive frequency reference (golden ratio)
PHI = (1.0 + math.sqrt(5.0)) / 2.0

# Fixed-precision golden ratio for the static landscape; independent of drive
LANDSCAPE_PHI = 1.6180339887

JITTER_THRESHOLD = 50.0
DETUNING_THRESHOLD = 0.08

# Scaling law: alpha = ALPHA0 * (1 - tanh(U / DELTA))
ALPHA0 = 1.0
DELTA = 2.5

# Lattice seeding
AMPLITUDE_MIN = 0.02
AMPLITUDE_MAX = 2.0
LOCALIZATION_LENGTH_MIN = 0.3

# Shard geometry
OFFSET_HALF_WIDTH = 80.0
SIEVE_IDLE_X = -250.0
SIEVE_END_X = 250.0
AVALANCHE_IDLE_X = -450.0
AVALANCHE_TRIGGER_X = -400.0
AVALANCHE_END_X = 450.0
