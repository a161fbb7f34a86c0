"""
Mission timeline and inbound command transitions.

The timeline is a monotonic state machine over a single progress value.
Every transition, whether a tick or an external command, maps one
ControlState to a whole new ControlState.

Phase table (on the new progress value, lower bound inclusive):
    [0, 0.3)     AMORPHOUS_CHAOS        NORMAL   sieve at -250
    [0.3, 0.6)   FOUR_D_EXTRUSION       FOUR_D   sieve at -250
    [0.6, 0.88)  GOLDEN_SIEVING_SWEEP   FOUR_D   sieve remapped to [-220, 250]
    [0.88, 1.0)  TOPOLOGICAL_LOCK       NORMAL   sieve at 250
    >= 1.0       STABLE_LOCKED          NORMAL   sieve unchanged, auto off
"""

import math
from typing import Optional

from .config import ControlsConfig, TimelineConfig
from .constants import (
    PHI, SIEVE_IDLE_X, SIEVE_END_X,
    AVALANCHE_TRIGGER_X, AVALANCHE_END_X
)
from .control_state import (
    ControlState, MissionPhase, ViewMode, LATE_PHASE_THRESHOLD, phase_for_progress
)
from .regime import resilience

SLOW_WINDOW = (0.6, 0.9)
SWEEP_RANGE = (0.6, 0.88)
SWEEP_X_RANGE = (-220.0, SIEVE_END_X)
AVALANCHE_SPEED = 20.0
FLARE_DECAY = 0.05


def map_linear(value: float, in_lo: float, in_hi: float, out_lo: float, out_hi: float) -> float:
    return out_lo + (value - in_lo) * (out_hi - out_lo) / (in_hi - in_lo)


def clamp_value(value: Optional[float], lo: float, hi: float, previous: float) -> float:
    """Clamp into [lo, hi]; None or NaN keeps the previous value."""
    if value is None or math.isnan(value):
        return previous
    return min(hi, max(lo, float(value)))


class MissionTimeline:
    """
    Advances progress once per fixed tick and applies inbound commands.
    """

    def __init__(
        self,
        config: Optional[TimelineConfig] = None,
        limits: Optional[ControlsConfig] = None
    ):
        self.config = config or TimelineConfig()
        self.limits = limits or ControlsConfig()

    def initial_state(self, random_potential: bool = False) -> ControlState:
        """ControlState built from the configured initial control values."""
        return ControlState(
            interaction_u=self.limits.interaction_u,
            potential_depth=self.limits.potential_depth,
            timing_jitter=self.limits.timing_jitter,
            drive_omega=self.limits.drive_omega,
            auto_advance=self.limits.auto_advance,
            random_potential=random_potential
        )

    def step_size(self, progress: float) -> float:
        """Progress increment, slowed inside the critical sweep window."""
        lo, hi = SLOW_WINDOW
        if lo < progress < hi:
            return self.config.slow_step
        return self.config.base_step

    def advance(self, state: ControlState) -> ControlState:
        """
        One fixed tick.

        Progress only moves while auto_advance is set. The avalanche sweep,
        flare decay and radiation burst countdown move every tick.
        """
        changes = {}
        res = resilience(state.drive_omega)

        if state.auto_advance:
            progress = min(1.0, state.progress + self.step_size(state.progress))
            changes["progress"] = progress
            changes.update(self.phase_fields(progress, state.sieve_sweep_x))

        if state.avalanche_active:
            sweep_x = min(AVALANCHE_END_X, state.avalanche_sweep_x + AVALANCHE_SPEED * res)
            changes["avalanche_sweep_x"] = sweep_x
            changes["avalanche_active"] = sweep_x < AVALANCHE_END_X

        if state.flare_excitation > 0:
            changes["flare_excitation"] = max(0.0, state.flare_excitation - FLARE_DECAY * res)

        if state.burst_ticks_remaining > 0:
            remaining = state.burst_ticks_remaining - 1
            changes["burst_ticks_remaining"] = remaining
            changes["radiation_burst_active"] = remaining > 0

        if not changes:
            return state
        return state.evolve(**changes)

    def phase_fields(self, progress: float, sieve_sweep_x: float) -> dict:
        phase = phase_for_progress(progress)
        if phase is MissionPhase.AMORPHOUS_CHAOS:
            return {"view_mode": ViewMode.NORMAL, "sieve_sweep_x": SIEVE_IDLE_X}
        if phase is MissionPhase.FOUR_D_EXTRUSION:
            return {"view_mode": ViewMode.FOUR_D, "sieve_sweep_x": SIEVE_IDLE_X}
        if phase is MissionPhase.GOLDEN_SIEVING_SWEEP:
            return {
                "view_mode": ViewMode.FOUR_D,
                "sieve_sweep_x": map_linear(progress, *SWEEP_RANGE, *SWEEP_X_RANGE)
            }
        if phase is MissionPhase.TOPOLOGICAL_LOCK:
            return {"view_mode": ViewMode.NORMAL, "sieve_sweep_x": SIEVE_END_X}
        # Terminal: auto advancement switches itself off and stays off
        return {
            "view_mode": ViewMode.NORMAL,
            "sieve_sweep_x": sieve_sweep_x,
            "auto_advance": False
        }

    # ----- inbound commands -----

    def set_parameters(
        self,
        state: ControlState,
        interaction_u: Optional[float] = None,
        potential_depth: Optional[float] = None,
        timing_jitter: Optional[float] = None,
        drive_omega: Optional[float] = None
    ) -> ControlState:
        """Clamp and apply any subset of U, V0, jitter, omega. Stops auto advancement."""
        lim = self.limits
        return state.evolve(
            interaction_u=clamp_value(interaction_u, 0.0, lim.max_interaction_u, state.interaction_u),
            potential_depth=clamp_value(potential_depth, 0.0, lim.max_potential_depth, state.potential_depth),
            timing_jitter=clamp_value(timing_jitter, 0.0, lim.max_jitter, state.timing_jitter),
            drive_omega=clamp_value(drive_omega, lim.min_omega, lim.max_omega, state.drive_omega),
            auto_advance=False
        )

    def set_progress(self, state: ControlState, value: float) -> ControlState:
        """
        Manual progress write.

        Clears auto advancement, recomputes late_phase and rewrites view mode
        and sieve position from the phase table, all in one transition.
        """
        progress = clamp_value(value, 0.0, 1.0, state.progress)
        fields = self.phase_fields(progress, state.sieve_sweep_x)
        fields.pop("auto_advance", None)
        return state.evolve(
            progress=progress,
            auto_advance=False,
            late_phase=progress > LATE_PHASE_THRESHOLD,
            **fields
        )

    def trigger_flare(self, state: ControlState) -> ControlState:
        return state.evolve(
            flare_excitation=1.0,
            radiation_burst_active=True,
            burst_ticks_remaining=self.config.burst_ticks,
            auto_advance=False
        )

    def trigger_avalanche(self, state: ControlState) -> ControlState:
        return state.evolve(
            avalanche_sweep_x=AVALANCHE_TRIGGER_X,
            avalanche_active=True,
            auto_advance=False
        )

    def set_view_mode(self, state: ControlState, mode: ViewMode) -> ControlState:
        return state.evolve(view_mode=ViewMode(mode))

    def set_random_potential(self, state: ControlState, enabled: bool) -> ControlState:
        return state.evolve(random_potential=bool(enabled))

    def set_automatic_advancement(self, state: ControlState, enabled: bool) -> ControlState:
        return state.evolve(auto_advance=bool(enabled))

    def resync_drive(self, state: ControlState) -> ControlState:
        """Put the drive back on resonance."""
        return state.evolve(drive_omega=PHI)
