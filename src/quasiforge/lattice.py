"""
Quasiperiodic lattice generation.

Potential: V(x, y) = V0 * [cos(2*pi*phi*x) + cos(2*pi*phi*y)] over centered
grid coordinates, or uniform in [-2.5 V0, 2.5 V0] for the random baseline.
"""

import numpy as np
from typing import Optional

from .constants import GRID_SIZE, LANDSCAPE_PHI
from .lattice_state import LatticeState


def grid_coordinates(grid_size: int = GRID_SIZE) -> tuple[np.ndarray, np.ndarray]:
    """
    Centered coordinates for every site id, row-major.

    Site id = i * N + j maps to (x, y) = (i - N/2, j - N/2).
    """
    ids = np.arange(grid_size * grid_size)
    i, j = np.divmod(ids, grid_size)
    half = grid_size / 2
    return (i - half).astype(np.float64), (j - half).astype(np.float64)


def quasiperiodic_potential(x: np.ndarray, y: np.ndarray, potential_depth: float) -> np.ndarray:
    """Deterministic golden-ratio landscape, independent of the live drive frequency."""
    k = 2.0 * np.pi * LANDSCAPE_PHI
    return potential_depth * (np.cos(k * x) + np.cos(k * y))


def generate_lattice(
    potential_depth: float,
    random_mode: bool = False,
    rng: Optional[np.random.Generator] = None,
    grid_size: int = GRID_SIZE
) -> LatticeState:
    """
    Build the lattice arena.

    Args:
        potential_depth: V0 (>= 0).
        random_mode: Use the incoherent uniform landscape instead of the quasiperiodic one.
        rng: Random source for amplitude/phase seeding and the random landscape.
        grid_size: Sites per grid edge.

    Returns:
        LatticeState with grid_size**2 sites.
    """
    if rng is None:
        rng = np.random.default_rng()

    x, y = grid_coordinates(grid_size)
    n = len(x)

    if random_mode:
        bound = potential_depth * 2.5
        potential = rng.uniform(-bound, bound, size=n)
    else:
        potential = quasiperiodic_potential(x, y, potential_depth)

    return LatticeState(
        x=x,
        y=y,
        potential=potential,
        amplitude=rng.uniform(0.15, 0.25, size=n),
        phase=rng.uniform(0.0, 2.0 * np.pi, size=n),
        participation_ratio=np.ones(n),
        localization_length=np.full(n, 0.1),
        is_random=np.full(n, bool(random_mode))
    )
