"""
Forge engine - owns every piece of simulation state.

Provides:
    - Fixed-rate tick: timeline, then lattice localization update
    - Per-frame shard integration from one consistent snapshot
    - Atomic inbound commands applied between ticks
    - Read-only snapshots for rendering and statistics consumers

SEPARATION GUARANTEES:
    1. Consumers never receive the engine's own mutable arrays
    2. Every command is a single ControlState transition
    3. A frame reads the control and lattice snapshots exactly once
"""

import threading
import numpy as np
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from .config import SimulationConfig
from .control_state import SnapshotCell, ControlState, MissionPhase, ViewMode
from .exceptions import LatticeShapeError, StateTransitionError
from .lattice import generate_lattice
from .lattice_state import LatticeState
from .localization import LocalizationUpdater
from .regime import RegimeStatus, classify_drive, classify_status
from .shard_integrator import FrameReport, ShardIntegrator, forge_factors
from .shard_state import ShardState
from .stats import MSDHistory, MSDSample, level_spacing_histogram
from .timeline import MissionTimeline
from .utils.logger.logger import Logger


@dataclass(frozen=True)
class EngineSnapshot:
    """Everything a consumer may read for one published tick."""
    control: ControlState
    control_version: int
    lattice: LatticeState
    shard_positions: np.ndarray
    shard_velocities: np.ndarray
    forge_factors: np.ndarray
    msd_history: Tuple[MSDSample, ...]
    level_spacing: Tuple[float, ...]
    tick: int
    sim_time: float
    status: RegimeStatus

    @property
    def phase(self) -> MissionPhase:
        return self.control.phase


class ForgeEngine:
    """
    Simulation engine for the quasiperiodic forge.

    The timeline and lattice advance on the fixed tick; the shards advance
    once per render frame. Commands are the only external mutation path.
    """

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        rng: Optional[np.random.Generator] = None,
        on_phase_changed: Optional[Callable[[MissionPhase], None]] = None
    ):
        """
        Args:
            config: Engine configuration (defaults if None).
            rng: Master random source; per-component generators are derived from it.
            on_phase_changed: Called with the new phase after a tick enters it.
        """
        self.config = config or SimulationConfig()
        is_valid, error = self.config.validate()
        if not is_valid:
            raise ValueError(f"Invalid configuration: {error}")

        self._rng = rng if rng is not None else self.config.run.make_rng()
        self._on_phase_changed = on_phase_changed
        self._lock = threading.RLock()
        self._shut_down = False

        lattice_cfg = self.config.lattice
        self.timeline = MissionTimeline(self.config.timeline, self.config.controls)
        self.updater = LocalizationUpdater(self._child_rng())
        self.integrator = ShardIntegrator(self._child_rng())
        self._lattice_rng = self._child_rng()
        self._stats_rng = self._child_rng()

        control = self.timeline.initial_state(random_potential=lattice_cfg.random_potential)
        self._control = SnapshotCell(control)
        self._lattice = SnapshotCell(self._generate(control))
        self.shards = ShardState.create(
            lattice_cfg.n_sites, lattice_cfg.shards_per_site, self._child_rng()
        )
        if self.shards.n_sites != self._lattice.value.n_sites:
            raise LatticeShapeError("shard arena does not match lattice")

        self.msd_history = MSDHistory(self.config.statistics.history_length, self._stats_rng)
        self._level_spacing = self._compute_level_spacing(control)

        self.tick_count = 0
        self.sim_time = 0.0
        self.frame_time = 0.0
        self._clock_rate = self.config.timeline.clock_step / self.config.timeline.tick_s
        self._last_phase = control.phase
        self._last_status = classify_status(control)
        self.phase_log: List[Tuple[int, MissionPhase]] = [(0, control.phase)]
        self.last_frame: Optional[FrameReport] = None

        Logger.log(
            f"ForgeEngine initialized: {lattice_cfg.n_sites} sites, "
            f"{self.shards.n_shards} shards, random_potential={lattice_cfg.random_potential}",
            Logger.LogPriority.INFO
        )

    # ----- snapshots -----

    @property
    def control(self) -> ControlState:
        return self._control.value

    @property
    def lattice(self) -> LatticeState:
        return self._lattice.value

    @property
    def level_spacing(self) -> Tuple[float, ...]:
        return self._level_spacing

    def snapshot(self) -> EngineSnapshot:
        """Consistent read-only view of the latest published state."""
        with self._lock:
            control, version = self._control.read()
            positions, velocities = self.shards.read_only_view()
            lattice = self._lattice.value
            factors = forge_factors(lattice.x, control)
            factors.flags.writeable = False
            return EngineSnapshot(
                control=control,
                control_version=version,
                lattice=lattice,
                shard_positions=positions,
                shard_velocities=velocities,
                forge_factors=factors,
                msd_history=self.msd_history.snapshot(),
                level_spacing=self._level_spacing,
                tick=self.tick_count,
                sim_time=self.sim_time,
                status=classify_status(control)
            )

    # ----- drivers -----

    def tick(self) -> ControlState:
        """
        One fixed-rate tick: timeline, then lattice, then periodic statistics.

        Returns:
            The ControlState published by this tick.
        """
        with self._lock:
            self._ensure_running()
            control = self.timeline.advance(self._control.value)
            self._control.publish(control)

            self.tick_count += 1
            self.sim_time += self.config.timeline.clock_step
            self._lattice.publish(
                self.updater.advance(self._lattice.value, control, self.sim_time)
            )

            if self.tick_count % self.config.statistics.sample_every_ticks == 0:
                self.sample_statistics(control)

            self._track_transitions(control)
            return control

    def frame(self, dt_s: float) -> FrameReport:
        """
        One render frame: integrate every shard against a single snapshot.

        Args:
            dt_s: Wall-clock seconds since the previous frame.
        """
        with self._lock:
            self._ensure_running()
            control = self._control.value
            lattice = self._lattice.value
            self.frame_time += max(0.0, dt_s) * self._clock_rate
            self.last_frame = self.integrator.advance(self.shards, lattice, control, self.frame_time)
            return self.last_frame

    def sample_statistics(self, control: Optional[ControlState] = None) -> MSDSample:
        """Append an MSD sample and refresh the level-spacing histogram."""
        with self._lock:
            control = control or self._control.value
            sample = self.msd_history.record(
                self.sim_time, control.interaction_u, control.timing_jitter, control.drive_omega
            )
            self._level_spacing = self._compute_level_spacing(control)
            return sample

    # ----- inbound commands -----

    def set_parameters(
        self,
        interaction_u: Optional[float] = None,
        potential_depth: Optional[float] = None,
        timing_jitter: Optional[float] = None,
        drive_omega: Optional[float] = None
    ) -> ControlState:
        control = self._apply(lambda s: self.timeline.set_parameters(
            s, interaction_u, potential_depth, timing_jitter, drive_omega
        ))
        Logger.log(
            f"set_parameters: U={control.interaction_u}, V0={control.potential_depth}, "
            f"jitter={control.timing_jitter}, omega={control.drive_omega}",
            Logger.LogPriority.INFO
        )
        return control

    def set_progress(self, value: float) -> ControlState:
        control = self._apply(lambda s: self.timeline.set_progress(s, value))
        Logger.log(f"set_progress: {value} -> {control.progress} ({control.phase.name})", Logger.LogPriority.INFO)
        return control

    def trigger_flare(self) -> ControlState:
        Logger.log("trigger_flare", Logger.LogPriority.INFO)
        return self._apply(self.timeline.trigger_flare)

    def trigger_avalanche(self) -> ControlState:
        Logger.log("trigger_avalanche", Logger.LogPriority.INFO)
        return self._apply(self.timeline.trigger_avalanche)

    def set_view_mode(self, mode: ViewMode) -> ControlState:
        control = self._apply(lambda s: self.timeline.set_view_mode(s, mode))
        Logger.log(f"set_view_mode: {control.view_mode.name}", Logger.LogPriority.INFO)
        return control

    def set_automatic_advancement(self, enabled: bool) -> ControlState:
        Logger.log(f"set_automatic_advancement: {bool(enabled)}", Logger.LogPriority.INFO)
        return self._apply(lambda s: self.timeline.set_automatic_advancement(s, enabled))

    def resync_drive(self) -> ControlState:
        Logger.log("resync_drive", Logger.LogPriority.INFO)
        return self._apply(self.timeline.resync_drive)

    def set_random_potential(self, enabled: bool) -> ControlState:
        """Switch landscapes; the lattice is regenerated with the current potential depth."""
        with self._lock:
            control = self._apply(lambda s: self.timeline.set_random_potential(s, enabled))
            self._lattice.publish(self._generate(control))
            Logger.log(
                f"Lattice regenerated: random_potential={control.random_potential}, "
                f"V0={control.potential_depth}",
                Logger.LogPriority.INFO
            )
            return control

    def shutdown(self) -> None:
        """Refuse further ticks, frames and commands."""
        with self._lock:
            self._shut_down = True
        Logger.log("ForgeEngine shut down", Logger.LogPriority.INFO)

    @property
    def is_shut_down(self) -> bool:
        return self._shut_down

    # ----- internals -----

    def _apply(self, transition: Callable[[ControlState], ControlState]) -> ControlState:
        with self._lock:
            self._ensure_running()
            before = self._control.value
            after = transition(before)
            self._control.publish(after)
            if (classify_drive(before.timing_jitter, before.drive_omega).is_heating
                    != classify_drive(after.timing_jitter, after.drive_omega).is_heating):
                self._level_spacing = self._compute_level_spacing(after)
            self._track_transitions(after)
            return after

    def _ensure_running(self) -> None:
        if self._shut_down:
            Logger.log("StateTransitionError: engine is shut down", Logger.LogPriority.ERROR)
            raise StateTransitionError("Engine is shut down.")

    def _generate(self, control: ControlState) -> LatticeState:
        return generate_lattice(
            control.potential_depth,
            control.random_potential,
            rng=self._lattice_rng,
            grid_size=self.config.lattice.grid_size
        )

    def _compute_level_spacing(self, control: ControlState) -> Tuple[float, ...]:
        heating = classify_drive(control.timing_jitter, control.drive_omega).is_heating
        return tuple(level_spacing_histogram(
            heating, self.config.statistics.level_spacing_bins, self._stats_rng
        ))

    def _track_transitions(self, control: ControlState) -> None:
        phase = control.phase
        if phase is not self._last_phase:
            self._last_phase = phase
            self.phase_log.append((self.tick_count, phase))
            Logger.log(f"Phase -> {phase.value} at tick {self.tick_count}", Logger.LogPriority.INFO)
            if phase.is_terminal:
                Logger.log("Topological lock reached; automatic advancement off", Logger.LogPriority.INFO)
            if self._on_phase_changed:
                self._on_phase_changed(phase)

        status = classify_status(control)
        if status is not self._last_status:
            self._last_status = status
            level = (
                Logger.LogPriority.WARNING
                if status in (RegimeStatus.RADIATION, RegimeStatus.HEATING)
                else Logger.LogPriority.INFO
            )
            Logger.log(f"Regime status -> {status.name}", level)

    def _child_rng(self) -> np.random.Generator:
        return np.random.Generator(np.random.PCG64(int(self._rng.integers(0, 2**63 - 1))))
