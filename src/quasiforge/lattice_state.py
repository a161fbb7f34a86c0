"""
Lattice site arena.

Sites are stored as parallel fixed-length arrays indexed by site id
(row-major over the N x N grid). LatticeSite is a read-only view of one row.
"""

import numpy as np
from dataclasses import dataclass
from typing import Iterator

from .exceptions import LatticeShapeError


@dataclass(frozen=True)
class LatticeSite:
    """
    One lattice site.

    Attributes:
        id: Row-major index over the grid.
        x: Centered grid x coordinate.
        y: Centered grid y coordinate.
        potential: Static potential value v.
        amplitude: Oscillation magnitude in [0.02, 2.0].
        phase: Fixed random phase offset.
        participation_ratio: Order parameter (>= 0).
        localization_length: Disorder radius xi.
        is_random_potential: Site was generated with the random landscape.
    """
    id: int
    x: float
    y: float
    potential: float
    amplitude: float
    phase: float
    participation_ratio: float
    localization_length: float
    is_random_potential: bool


@dataclass(frozen=True)
class LatticeState:
    """
    Immutable snapshot of every site.

    Static arrays (x, y, potential, phase, is_random) are shared between
    successive snapshots; only the dynamic arrays are replaced by an update.
    """
    x: np.ndarray
    y: np.ndarray
    potential: np.ndarray
    amplitude: np.ndarray
    phase: np.ndarray
    participation_ratio: np.ndarray
    localization_length: np.ndarray
    is_random: np.ndarray

    def __post_init__(self):
        n = len(self.x)
        for name in ("y", "potential", "amplitude", "phase",
                     "participation_ratio", "localization_length", "is_random"):
            arr = getattr(self, name)
            if arr.shape != (n,):
                raise LatticeShapeError(f"{name} has shape {arr.shape}, expected ({n},)")
            arr.flags.writeable = False
        self.x.flags.writeable = False

    @property
    def n_sites(self) -> int:
        return len(self.x)

    def __len__(self) -> int:
        return self.n_sites

    def site(self, site_id: int) -> LatticeSite:
        """Read-only view of one site."""
        return LatticeSite(
            id=int(site_id),
            x=float(self.x[site_id]),
            y=float(self.y[site_id]),
            potential=float(self.potential[site_id]),
            amplitude=float(self.amplitude[site_id]),
            phase=float(self.phase[site_id]),
            participation_ratio=float(self.participation_ratio[site_id]),
            localization_length=float(self.localization_length[site_id]),
            is_random_potential=bool(self.is_random[site_id])
        )

    def sites(self) -> Iterator[LatticeSite]:
        for i in range(self.n_sites):
            yield self.site(i)

    def with_dynamics(
        self,
        amplitude: np.ndarray,
        participation_ratio: np.ndarray,
        localization_length: np.ndarray
    ) -> "LatticeState":
        """New snapshot sharing static arrays, with replaced dynamic arrays."""
        return LatticeState(
            x=self.x,
            y=self.y,
            potential=self.potential,
            amplitude=amplitude,
            phase=self.phase,
            participation_ratio=participation_ratio,
            localization_length=localization_length,
            is_random=self.is_random
        )
