"""
Control state and its published snapshot cell.

ControlState is immutable. Every tick and every inbound command produces a
whole new value, which is then published through a SnapshotCell so readers
never observe a partially updated state.
"""

import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import Generic, Tuple, TypeVar

from .constants import PHI, SIEVE_IDLE_X, AVALANCHE_IDLE_X


class ViewMode(Enum):
    NORMAL = "NORMAL"
    FOUR_D = "FOUR_D"


class MissionPhase(Enum):
    """Discrete timeline phases in the order they are visited."""
    AMORPHOUS_CHAOS = "PHASE-0: AMORPHOUS_CHAOS"
    FOUR_D_EXTRUSION = "PHASE-1: 4D_EXTRUSION_ENGAGED"
    GOLDEN_SIEVING_SWEEP = "PHASE-2: GOLDEN_SIEVING_SWEEP"
    TOPOLOGICAL_LOCK = "PHASE-3: TOPOLOGICAL_LOCK"
    STABLE_LOCKED = "STABLE_LOCKED"

    @property
    def is_terminal(self) -> bool:
        return self is MissionPhase.STABLE_LOCKED


# Lower bounds, inclusive, checked from the top
PHASE_TABLE = (
    (1.0, MissionPhase.STABLE_LOCKED),
    (0.88, MissionPhase.TOPOLOGICAL_LOCK),
    (0.6, MissionPhase.GOLDEN_SIEVING_SWEEP),
    (0.3, MissionPhase.FOUR_D_EXTRUSION),
    (0.0, MissionPhase.AMORPHOUS_CHAOS),
)

LATE_PHASE_THRESHOLD = 0.8


def phase_for_progress(progress: float) -> MissionPhase:
    """Map progress to its phase via half-open intervals [lower, next)."""
    for lower, phase in PHASE_TABLE:
        if progress >= lower:
            return phase
    return MissionPhase.AMORPHOUS_CHAOS


@dataclass(frozen=True)
class ControlState:
    """
    Immutable per-tick snapshot of every tunable and derived control.

    Attributes:
        interaction_u: Interaction strength U >= 0.
        potential_depth: Potential depth V0 >= 0.
        timing_jitter: Timing jitter >= 0.
        drive_omega: Drive frequency, nominally PHI.
        radiation_burst_active: Extra lattice noise while a flare burst lasts.
        progress: Timeline driver in [0, 1].
        view_mode: NORMAL or FOUR_D.
        sieve_sweep_x: X position of the sieving sweep.
        avalanche_sweep_x: X position of the avalanche sweep.
        flare_excitation: Flare agitation in [0, 1].
        auto_advance: Whether the timeline advances progress by itself.
        late_phase: progress > 0.8, recomputed on manual progress writes.
        avalanche_active: Avalanche sweep is travelling.
        burst_ticks_remaining: Ticks left before the radiation burst clears.
        random_potential: Lattice was generated with the random landscape.
    """
    interaction_u: float = 1.5
    potential_depth: float = 2.5
    timing_jitter: float = 10.0
    drive_omega: float = PHI
    radiation_burst_active: bool = False
    progress: float = 0.0
    view_mode: ViewMode = ViewMode.NORMAL
    sieve_sweep_x: float = SIEVE_IDLE_X
    avalanche_sweep_x: float = AVALANCHE_IDLE_X
    flare_excitation: float = 0.0
    auto_advance: bool = True
    late_phase: bool = False
    avalanche_active: bool = False
    burst_ticks_remaining: int = 0
    random_potential: bool = False

    @property
    def phase(self) -> MissionPhase:
        return phase_for_progress(self.progress)

    def evolve(self, **changes) -> "ControlState":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)


T = TypeVar("T")


class SnapshotCell(Generic[T]):
    """
    Single-writer, multi-reader published value.

    The writer replaces the whole value; readers get the value together
    with the version it was published under.
    """

    def __init__(self, initial: T):
        self._lock = threading.Lock()
        self._value = initial
        self._version = 0

    def publish(self, value: T) -> int:
        """Publish a new value. Returns its version."""
        with self._lock:
            self._value = value
            self._version += 1
            return self._version

    def read(self) -> Tuple[T, int]:
        with self._lock:
            return self._value, self._version

    @property
    def value(self) -> T:
        with self._lock:
            return self._value

    @property
    def version(self) -> int:
        with self._lock:
            return self._version
