"""
Configuration loading and validation for the forge engine.

Loads YAML config and validates every section against its documented range.
"""

import math
import yaml
from dataclasses import dataclass, field
from typing import Optional
from pathlib import Path
import numpy as np

from .constants import GRID_SIZE, SHARDS_PER_SITE, PHI


@dataclass
class LatticeConfig:
    """Grid shape and static landscape parameters."""
    grid_size: int = GRID_SIZE
    shards_per_site: int = SHARDS_PER_SITE
    random_potential: bool = False

    def validate(self) -> tuple[bool, Optional[str]]:
        if self.grid_size < 1:
            return False, "grid_size must be >= 1"
        if self.shards_per_site < 1:
            return False, "shards_per_site must be >= 1"
        return True, None

    @property
    def n_sites(self) -> int:
        return self.grid_size * self.grid_size

    @property
    def n_shards(self) -> int:
        return self.n_sites * self.shards_per_site


@dataclass
class ControlsConfig:
    """Initial control values and command-boundary clamp limits."""
    interaction_u: float = 1.5
    potential_depth: float = 2.5
    timing_jitter: float = 10.0
    drive_omega: float = PHI
    auto_advance: bool = True
    max_interaction_u: float = 10.0
    max_potential_depth: float = 12.0
    max_jitter: float = 100.0
    min_omega: float = 1.45
    max_omega: float = 1.75

    def validate(self) -> tuple[bool, Optional[str]]:
        if self.max_interaction_u <= 0:
            return False, "max_interaction_u must be positive"
        if self.max_potential_depth <= 0:
            return False, "max_potential_depth must be positive"
        if self.max_jitter <= 0:
            return False, "max_jitter must be positive"
        if not (0 < self.min_omega < self.max_omega):
            return False, "omega limits must satisfy 0 < min_omega < max_omega"
        if not (0 <= self.interaction_u <= self.max_interaction_u):
            return False, "interaction_u outside [0, max_interaction_u]"
        if not (0 <= self.potential_depth <= self.max_potential_depth):
            return False, "potential_depth outside [0, max_potential_depth]"
        if not (0 <= self.timing_jitter <= self.max_jitter):
            return False, "timing_jitter outside [0, max_jitter]"
        if not (self.min_omega <= self.drive_omega <= self.max_omega):
            return False, "drive_omega outside [min_omega, max_omega]"
        return True, None


@dataclass
class TimelineConfig:
    """Mission timeline pacing."""
    tick_ms: float = 16.0
    base_step: float = 0.0035
    slow_step: float = 0.0018
    clock_step: float = 0.04  # Simulation time per tick
    burst_ticks: int = 125    # 2 s radiation burst at 16 ms ticks

    def validate(self) -> tuple[bool, Optional[str]]:
        if self.tick_ms <= 0:
            return False, "tick_ms must be positive"
        if self.base_step <= 0 or self.slow_step <= 0:
            return False, "progress steps must be positive"
        if self.clock_step <= 0:
            return False, "clock_step must be positive"
        if self.burst_ticks < 1:
            return False, "burst_ticks must be >= 1"
        return True, None

    @property
    def tick_s(self) -> float:
        return self.tick_ms / 1000.0


@dataclass
class StatisticsConfig:
    """MSD history and level-spacing sampling."""
    history_length: int = 120
    sample_every_ticks: int = 25
    level_spacing_bins: int = 20

    def validate(self) -> tuple[bool, Optional[str]]:
        if self.history_length < 1:
            return False, "history_length must be >= 1"
        if self.sample_every_ticks < 1:
            return False, "sample_every_ticks must be >= 1"
        if self.level_spacing_bins < 1:
            return False, "level_spacing_bins must be >= 1"
        return True, None


@dataclass
class RunConfig:
    """Headless run parameters."""
    seed: Optional[int] = 42
    ticks: int = 600
    frames_per_tick: int = 1
    frame_dt_s: float = 0.016

    def validate(self) -> tuple[bool, Optional[str]]:
        if self.seed is not None and self.seed < 0:
            return False, "seed must be non-negative"
        if self.ticks < 1:
            return False, "ticks must be >= 1"
        if self.frames_per_tick < 1:
            return False, "frames_per_tick must be >= 1"
        if self.frame_dt_s <= 0 or not math.isfinite(self.frame_dt_s):
            return False, "frame_dt_s must be positive"
        return True, None

    def make_rng(self) -> np.random.Generator:
        """Random source for the engine; unseeded when seed is None."""
        if self.seed is None:
            return np.random.default_rng()
        return np.random.Generator(np.random.PCG64(self.seed))


@dataclass
class SimulationConfig:
    """Complete engine configuration."""
    lattice: LatticeConfig = field(default_factory=LatticeConfig)
    controls: ControlsConfig = field(default_factory=ControlsConfig)
    timeline: TimelineConfig = field(default_factory=TimelineConfig)
    statistics: StatisticsConfig = field(default_factory=StatisticsConfig)
    run: RunConfig = field(default_factory=RunConfig)

    def validate(self) -> tuple[bool, Optional[str]]:
        for section_name in ["lattice", "controls", "timeline", "statistics", "run"]:
            section = getattr(self, section_name)
            is_valid, error = section.validate()
            if not is_valid:
                return False, f"{section_name}: {error}"
        return True, None


def load_config(path: Path) -> SimulationConfig:
    """
    Load and validate configuration from YAML file.

    Absent sections and keys take their dataclass defaults.

    Args:
        path: Path to YAML config file.

    Returns:
        Validated SimulationConfig.

    Raises:
        ValueError: If config is invalid.
        FileNotFoundError: If file doesn't exist.
    """
    with open(path, 'r') as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError("Invalid configuration: top level must be a mapping")

    try:
        config = SimulationConfig(
            lattice=LatticeConfig(**raw.get("lattice", {})),
            controls=ControlsConfig(**raw.get("controls", {})),
            timeline=TimelineConfig(**raw.get("timeline", {})),
            statistics=StatisticsConfig(**raw.get("statistics", {})),
            run=RunConfig(**raw.get("run", {}))
        )
    except TypeError as e:
        # Unknown key in a section
        raise ValueError(f"Invalid configuration: {e}") from e

    is_valid, error = config.validate()
    if not is_valid:
        raise ValueError(f"Invalid configuration: {error}")

    return config
