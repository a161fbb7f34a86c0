"""
Shared drive-regime computation.

Detuning, the heating flag and the interaction scaling law are computed here
once and reused by the lattice update, the MSD law and the level-spacing
histogram. The three call sites apply different detuning multipliers on top
of the base law; those multipliers stay at the call sites.
"""

import math
from dataclasses import dataclass
from enum import Enum

from .constants import (
    PHI, JITTER_THRESHOLD, DETUNING_THRESHOLD, ALPHA0, DELTA
)
from .control_state import ViewMode


class RegimeStatus(Enum):
    """Operator-facing status of the current control state, most severe first."""
    RADIATION = "radiation"
    HEATING = "heating"
    SYNC_WARNING = "sync_warning"
    EXTRUSION = "extrusion"
    LOCKED = "locked"


@dataclass(frozen=True)
class DriveRegime:
    """
    Regime derived from jitter and drive frequency for one tick.

    Attributes:
        detuning: |omega - PHI|.
        is_heating: Delocalized regime flag.
    """
    detuning: float
    is_heating: bool

    def scaling_alpha(self, interaction_u: float, detuning_weight: float) -> float:
        """
        Scaling exponent: 1.0 when heating, else base law plus weighted detuning.

        Args:
            interaction_u: Interaction strength U.
            detuning_weight: Detuning multiplier chosen by the caller.
        """
        if self.is_heating:
            return 1.0
        return scaling_law(interaction_u) + detuning_weight * self.detuning


def drive_detuning(omega: float) -> float:
    return abs(omega - PHI)


def is_heating(jitter: float, detuning: float) -> bool:
    """Strict thresholds: jitter == 50 and detuning == 0.08 are not heating."""
    return jitter > JITTER_THRESHOLD or detuning > DETUNING_THRESHOLD


def classify_drive(jitter: float, omega: float) -> DriveRegime:
    detuning = drive_detuning(omega)
    return DriveRegime(detuning=detuning, is_heating=is_heating(jitter, detuning))


def scaling_law(interaction_u: float) -> float:
    """alpha0 * (1 - tanh(U / delta))."""
    return ALPHA0 * (1.0 - math.tanh(interaction_u / DELTA))


def resilience(omega: float) -> float:
    """Responsiveness damping from drive detuning, floored at 0.005."""
    return max(0.005, 1.0 - 15.0 * drive_detuning(omega))


def validate_jitter_budget(jitter: float) -> bool:
    """True when jitter stays within the non-heating budget. Never clamps or raises."""
    return jitter <= JITTER_THRESHOLD


def classify_status(control) -> RegimeStatus:
    """
    Status shown to operators for a ControlState.

    Order: radiation burst, heating, near-threshold sync warning,
    4D extrusion view, otherwise locked.
    """
    regime = classify_drive(control.timing_jitter, control.drive_omega)
    if control.radiation_burst_active:
        return RegimeStatus.RADIATION
    if regime.is_heating:
        return RegimeStatus.HEATING
    if control.timing_jitter > 30 or regime.detuning > 0.02:
        return RegimeStatus.SYNC_WARNING
    if control.view_mode is ViewMode.FOUR_D:
        return RegimeStatus.EXTRUSION
    return RegimeStatus.LOCKED
