"""
Shard kinetic integrator.

Leaky-integrator / damped-spring hybrid. Each frame every shard is in
exactly one of two regimes, selected by its site's agitation:

    Agitated (agitation > 0.1):
        v += U(-0.5, 0.5) * agitation * (1 - resilience + 0.15)
        v += (target - x) * resilience * 0.5
        v *= 0.48
        x += v

    Snap (otherwise):
        x += (target - x) * (0.05 + 0.9 p) * (0.98 resilience + 0.02)
        v = 0
        x = target exactly when p > 0.999 and resilience > 0.99

Regime switching is part of the intended instability signature, so the
two branches are never blended.

Target:
    xy = site_xy + offset_xy * (1 - p)
    z  = sieve_base_z + 20 + potential * 2.2 * p + offset_z * (1 - p) [+ extrusion]
    sieve_base_z = -250 + 240 p
    extrusion (FOUR_D only) = sin(t * (6 + 1.2 * local_index) + particle_index) * 35
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional

from .constants import JITTER_THRESHOLD
from .control_state import ControlState, ViewMode
from .lattice_state import LatticeSite, LatticeState
from .exceptions import LatticeShapeError
from .regime import resilience
from .shard_state import ShardState

AGITATION_THRESHOLD = 0.1
AVALANCHE_REACH = 75.0
VELOCITY_DAMPING = 0.48
FORGE_WIDTH = 35.0
SIEVE_SAFETY_BUFFER = 20.0


@dataclass
class FrameReport:
    """
    Summary of one integration frame.

    Attributes:
        n_agitated: Shards integrated in the agitated regime.
        n_snapped: Shards integrated in the snap regime.
        max_deviation: Largest |target - position| after the frame.
        resilience: Resilience used for the frame.
        forge_factors: Read-only per-site forge factor the frame was built from.
    """
    n_agitated: int
    n_snapped: int
    max_deviation: float
    resilience: float
    forge_factors: np.ndarray


def sieve_base_z(progress: float) -> float:
    return -250.0 + progress * 240.0


def forge_factors(x: np.ndarray, control: ControlState) -> np.ndarray:
    """
    Per-site forge factor: 0 still amorphous, 1 fully forged.

    Everything counts as forged once progress reaches 0.99.
    """
    x = np.asarray(x, dtype=np.float64)
    if control.progress >= 0.99:
        return np.ones_like(x)
    return np.clip(1.0 - (x - control.sieve_sweep_x) / FORGE_WIDTH, 0.0, 1.0)


def agitation_levels(x: np.ndarray, control: ControlState) -> np.ndarray:
    """Per-site agitation from flare, avalanche proximity and excess jitter."""
    x = np.asarray(x, dtype=np.float64)
    if control.timing_jitter > JITTER_THRESHOLD:
        background = (control.timing_jitter - JITTER_THRESHOLD) * 0.85
    else:
        background = 0.0
    near_avalanche = np.abs(x - control.avalanche_sweep_x) < AVALANCHE_REACH
    return 45.0 * control.flare_excitation + np.where(near_avalanche, 40.0, background)


def _targets(
    site_x, site_y, potential, offsets, particle_index, local_index,
    control: ControlState, elapsed_time: float
) -> np.ndarray:
    p = control.progress
    spread = 1.0 - p
    offsets = np.asarray(offsets, dtype=np.float64)

    tz = (
        sieve_base_z(p) + SIEVE_SAFETY_BUFFER
        + np.asarray(potential) * 2.2 * p
        + offsets[..., 2] * spread
    )
    if control.view_mode is ViewMode.FOUR_D:
        freq = 6.0 + 1.2 * np.asarray(local_index)
        tz = tz + np.sin(elapsed_time * freq + np.asarray(particle_index)) * 35.0

    return np.stack([
        np.asarray(site_x) + offsets[..., 0] * spread,
        np.asarray(site_y) + offsets[..., 1] * spread,
        tz
    ], axis=-1)


def target_position(
    site: LatticeSite,
    shard_index: int,
    initial_offset,
    local_index: int,
    control: ControlState,
    elapsed_time: float = 0.0
) -> np.ndarray:
    """Target of a single shard; same formula as the vectorized path."""
    return _targets(
        site.x, site.y, site.potential, initial_offset,
        shard_index, local_index, control, elapsed_time
    )


class ShardIntegrator:
    """
    Advances every shard one frame, in place.
    """

    def __init__(self, rng: Optional[np.random.Generator] = None):
        self.rng = rng if rng is not None else np.random.default_rng()

    def target_positions(
        self,
        shards: ShardState,
        lattice: LatticeState,
        control: ControlState,
        elapsed_time: float
    ) -> np.ndarray:
        """(P, 3) targets, the single source of truth the shards converge toward."""
        parent = shards.parent_site
        return _targets(
            lattice.x[parent], lattice.y[parent], lattice.potential[parent],
            shards.initial_offsets, np.arange(shards.n_shards), shards.local_index,
            control, elapsed_time
        )

    def advance(
        self,
        shards: ShardState,
        lattice: LatticeState,
        control: ControlState,
        elapsed_time: float
    ) -> FrameReport:
        """
        Integrate one frame.

        Args:
            shards: Shard arena, mutated in place.
            lattice: Lattice snapshot read for this frame.
            control: Control snapshot read once for this frame.
            elapsed_time: Frame clock, drives the FOUR_D extrusion.

        Returns:
            FrameReport for the frame.
        """
        if shards.n_sites != lattice.n_sites:
            raise LatticeShapeError(
                f"shard arena built for {shards.n_sites} sites, lattice has {lattice.n_sites}"
            )

        res = resilience(control.drive_omega)
        p = control.progress
        targets = self.target_positions(shards, lattice, control, elapsed_time)
        pos = shards.positions
        vel = shards.velocities

        agitation = agitation_levels(lattice.x, control)[shards.parent_site]
        agitated = agitation > AGITATION_THRESHOLD
        snapped = ~agitated

        if agitated.any():
            noise = (agitation[agitated] * (1.0 - res + 0.15))[:, None]
            kick = self.rng.uniform(-0.5, 0.5, size=(int(agitated.sum()), 3)) * noise
            v = vel[agitated] + kick + (targets[agitated] - pos[agitated]) * (res * 0.5)
            v *= VELOCITY_DAMPING
            vel[agitated] = v
            pos[agitated] += v

        if snapped.any():
            snap_speed = (0.05 + 0.9 * p) * (0.98 * res + 0.02)
            if p > 0.999 and res > 0.99:
                pos[snapped] = targets[snapped]
            else:
                pos[snapped] += (targets[snapped] - pos[snapped]) * snap_speed
            vel[snapped] = 0.0

        deviation = np.linalg.norm(targets - pos, axis=1)
        factors = forge_factors(lattice.x, control)
        factors.flags.writeable = False
        return FrameReport(
            n_agitated=int(agitated.sum()),
            n_snapped=int(snapped.sum()),
            max_deviation=float(deviation.max()) if len(deviation) else 0.0,
            resilience=res,
            forge_factors=factors
        )
