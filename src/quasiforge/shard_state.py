"""
Shard particle arena.

Population is fixed at construction: n_sites * shards_per_site particles,
particle index = site_id * shards_per_site + local_index. Positions and
velocities are mutable and owned by the integrator; initial offsets are
read-only.
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional

from .constants import OFFSET_HALF_WIDTH
from .exceptions import LatticeShapeError


@dataclass(frozen=True)
class ShardParticle:
    """Read-only view of one shard."""
    index: int
    parent_site: int
    local_index: int
    position: tuple[float, float, float]
    velocity: tuple[float, float, float]
    initial_offset: tuple[float, float, float]


class ShardState:
    """
    Parallel arrays for every shard.

    Attributes:
        positions: (P, 3) array.
        velocities: (P, 3) array.
        initial_offsets: (P, 3) read-only array, uniform in a cube of half-width 80.
        parent_site: (P,) parent site id per shard.
        local_index: (P,) index of the shard within its site.
    """

    def __init__(
        self,
        n_sites: int,
        shards_per_site: int,
        initial_offsets: np.ndarray,
        positions: Optional[np.ndarray] = None,
        velocities: Optional[np.ndarray] = None
    ):
        n = n_sites * shards_per_site
        initial_offsets = np.asarray(initial_offsets, dtype=np.float64)
        if initial_offsets.shape != (n, 3):
            raise LatticeShapeError(
                f"initial_offsets has shape {initial_offsets.shape}, expected ({n}, 3)"
            )
        initial_offsets.flags.writeable = False

        self.n_sites = n_sites
        self.shards_per_site = shards_per_site
        self.initial_offsets = initial_offsets
        self.positions = np.zeros((n, 3)) if positions is None else np.array(positions, dtype=np.float64)
        self.velocities = np.zeros((n, 3)) if velocities is None else np.array(velocities, dtype=np.float64)
        if self.positions.shape != (n, 3) or self.velocities.shape != (n, 3):
            raise LatticeShapeError("positions and velocities must have shape (P, 3)")

        self.parent_site, self.local_index = np.divmod(np.arange(n), shards_per_site)
        self.parent_site.flags.writeable = False
        self.local_index.flags.writeable = False

    @classmethod
    def create(
        cls,
        n_sites: int,
        shards_per_site: int,
        rng: Optional[np.random.Generator] = None
    ) -> "ShardState":
        """All shards at the origin, at rest, with random fixed offsets."""
        if rng is None:
            rng = np.random.default_rng()
        offsets = rng.uniform(
            -OFFSET_HALF_WIDTH, OFFSET_HALF_WIDTH,
            size=(n_sites * shards_per_site, 3)
        )
        return cls(n_sites, shards_per_site, offsets)

    @property
    def n_shards(self) -> int:
        return len(self.positions)

    def __len__(self) -> int:
        return self.n_shards

    def shard(self, index: int) -> ShardParticle:
        return ShardParticle(
            index=int(index),
            parent_site=int(self.parent_site[index]),
            local_index=int(self.local_index[index]),
            position=tuple(self.positions[index].tolist()),
            velocity=tuple(self.velocities[index].tolist()),
            initial_offset=tuple(self.initial_offsets[index].tolist())
        )

    def copy(self) -> "ShardState":
        """Deep copy of the mutable arrays; offsets are shared."""
        return ShardState(
            self.n_sites,
            self.shards_per_site,
            self.initial_offsets,
            positions=self.positions.copy(),
            velocities=self.velocities.copy()
        )

    def read_only_view(self) -> tuple[np.ndarray, np.ndarray]:
        """Positions and velocities as non-writeable copies for readers."""
        positions = self.positions.copy()
        velocities = self.velocities.copy()
        positions.flags.writeable = False
        velocities.flags.writeable = False
        return positions, velocities
