"""
Headless simulation runner.

Runs the fixed tick and a fixed number of frames per tick without any
wall-clock pacing, then summarizes the final state.
"""

import numpy as np
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .config import SimulationConfig
from .control_state import ControlState, MissionPhase
from .engine import EngineSnapshot, ForgeEngine
from .stats import MSDSample
from .utils.logger.logger import Logger


@dataclass
class SimulationResult:
    """
    Summary of a headless run.

    Attributes:
        config: Configuration used.
        ticks_run: Ticks executed (may stop early once locked).
        final_control: Last published control state.
        phase_log: (tick, phase) for every phase entered.
        final_snapshot: Last engine snapshot.
        mean_amplitude: Mean site amplitude at the end.
        mean_localization_length: Mean xi at the end.
        max_shard_deviation: Largest shard distance from its target after the last frame.
        msd_history: MSD samples, oldest first.
        level_spacing: Latest level-spacing histogram.
    """
    config: SimulationConfig
    ticks_run: int
    final_control: ControlState
    phase_log: List[Tuple[int, MissionPhase]]
    final_snapshot: EngineSnapshot
    mean_amplitude: float
    mean_localization_length: float
    max_shard_deviation: float
    msd_history: Tuple[MSDSample, ...]
    level_spacing: Tuple[float, ...]

    @property
    def locked(self) -> bool:
        return self.final_control.phase is MissionPhase.STABLE_LOCKED


class SimulationRunner:
    """
    Batch runner around ForgeEngine.
    """

    def __init__(self, config: SimulationConfig, engine: Optional[ForgeEngine] = None):
        self.config = config
        self.engine = engine or ForgeEngine(config)

    def run(self, ticks: Optional[int] = None, stop_when_locked: bool = False) -> SimulationResult:
        """
        Run the configured number of ticks.

        Args:
            ticks: Override for config.run.ticks.
            stop_when_locked: Stop at the first tick that reaches STABLE_LOCKED.
        """
        n_ticks = ticks if ticks is not None else self.config.run.ticks
        frames = self.config.run.frames_per_tick
        frame_dt = self.config.run.frame_dt_s
        Logger.log(f"SimulationRunner: {n_ticks} ticks x {frames} frames", Logger.LogPriority.INFO)

        ticks_run = 0
        for _ in range(n_ticks):
            control = self.engine.tick()
            for _ in range(frames):
                self.engine.frame(frame_dt)
            ticks_run += 1
            if stop_when_locked and control.phase is MissionPhase.STABLE_LOCKED:
                break

        snapshot = self.engine.snapshot()
        last_frame = self.engine.last_frame
        return SimulationResult(
            config=self.config,
            ticks_run=ticks_run,
            final_control=snapshot.control,
            phase_log=list(self.engine.phase_log),
            final_snapshot=snapshot,
            mean_amplitude=float(np.mean(snapshot.lattice.amplitude)),
            mean_localization_length=float(np.mean(snapshot.lattice.localization_length)),
            max_shard_deviation=last_frame.max_deviation if last_frame else float("nan"),
            msd_history=snapshot.msd_history,
            level_spacing=snapshot.level_spacing
        )


def run_simulation(config: SimulationConfig, **kwargs) -> SimulationResult:
    """
    Convenience function to run a headless simulation from config.
    """
    return SimulationRunner(config).run(**kwargs)
