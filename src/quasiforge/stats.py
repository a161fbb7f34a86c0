"""
Diffusion and spectral statistics.

Stateless laws derived from control parameters:
    - Mean-squared displacement: MSD(t) = (t + 1) ** min(1, alpha')
    - Level-spacing histogram: Wigner-like or Poisson-like bins plus noise

alpha' uses detuning weight 4, unlike the lattice-amplitude law (weight 2).
The two exponents are deliberately distinct.

MSDHistory keeps a bounded, append-only window of samples.
"""

import math
import numpy as np
from collections import deque
from dataclasses import dataclass
from typing import List, Optional

from .regime import classify_drive

MSD_DETUNING_WEIGHT = 4.0
LEVEL_SPACING_BINS = 20
LEVEL_SPACING_NOISE = 0.04
MEASUREMENT_SCATTER = 0.05


def mean_squared_displacement(
    time: float,
    interaction_u: float,
    jitter: float,
    drive_omega: float
) -> float:
    """
    MSD growth law.

    At time 0 the result is 1 for any exponent.
    """
    regime = classify_drive(jitter, drive_omega)
    alpha = regime.scaling_alpha(interaction_u, MSD_DETUNING_WEIGHT)
    return math.pow(time + 1.0, min(1.0, alpha))


def level_spacing_histogram(
    heating: bool,
    bins: int = LEVEL_SPACING_BINS,
    rng: Optional[np.random.Generator] = None
) -> List[float]:
    """
    Level-spacing distribution sampled at s = i / (bins / 3).

    Args:
        heating: Selects the Poisson-like form exp(-s); otherwise the
            Wigner-like form (pi/2) s exp(-(pi/4) s^2).
        bins: Number of bins.
        rng: Random source for the additive noise in [0, 0.04).

    Returns:
        List of `bins` non-negative values.
    """
    if rng is None:
        rng = np.random.default_rng()

    s = np.arange(bins) / (bins / 3.0)
    if heating:
        values = np.exp(-s)
    else:
        values = (np.pi / 2.0) * s * np.exp(-(np.pi / 4.0) * s * s)
    values = values + rng.uniform(0.0, LEVEL_SPACING_NOISE, size=bins)
    return values.tolist()


@dataclass(frozen=True)
class MSDSample:
    """One point of the MSD history."""
    time: float
    measured_value: float
    theoretical_value: float


class MSDHistory:
    """
    Bounded MSD history; the oldest sample is evicted first.
    """

    def __init__(self, max_length: int = 120, rng: Optional[np.random.Generator] = None):
        if max_length < 1:
            raise ValueError("max_length must be >= 1")
        self._samples = deque(maxlen=max_length)
        self.rng = rng if rng is not None else np.random.default_rng()

    @property
    def max_length(self) -> int:
        return self._samples.maxlen

    def __len__(self) -> int:
        return len(self._samples)

    def record(self, time: float, interaction_u: float, jitter: float, drive_omega: float) -> MSDSample:
        """Append a sample; the measured value scatters around the law by up to 5%."""
        theoretical = mean_squared_displacement(time, interaction_u, jitter, drive_omega)
        scatter = 1.0 + self.rng.uniform(-MEASUREMENT_SCATTER, MEASUREMENT_SCATTER)
        sample = MSDSample(
            time=time,
            measured_value=theoretical * scatter,
            theoretical_value=theoretical
        )
        self._samples.append(sample)
        return sample

    def snapshot(self) -> tuple:
        """Immutable copy, oldest first."""
        return tuple(self._samples)

    def clear(self) -> None:
        self._samples.clear()
