"""
Quasiforge - quasiperiodic lattice forge engine.

Simulates a quasiperiodic lattice driven through an order/disorder
transition and steers a fixed population of shards toward lattice-consistent
targets as a visible proxy for it.

Components:
    - Lattice generation (golden-ratio potential or random baseline)
    - Per-tick localization update
    - Diffusion and level-spacing statistics
    - Mission timeline state machine and inbound commands
    - Shard kinetic integrator
"""

__version__ = "0.1.0"

from .constants import GRID_SIZE, SHARDS_PER_SITE, PHI, JITTER_THRESHOLD
from .control_state import ControlState, SnapshotCell, MissionPhase, ViewMode, phase_for_progress
from .lattice_state import LatticeSite, LatticeState
from .lattice import generate_lattice
from .localization import LocalizationUpdater
from .regime import (
    DriveRegime,
    RegimeStatus,
    classify_drive,
    classify_status,
    resilience,
    validate_jitter_budget
)
from .stats import MSDHistory, MSDSample, mean_squared_displacement, level_spacing_histogram
from .timeline import MissionTimeline
from .shard_state import ShardParticle, ShardState
from .shard_integrator import FrameReport, ShardIntegrator, target_position
from .engine import EngineSnapshot, ForgeEngine
from .scheduler import ForgeScheduler
from .runner import SimulationResult, SimulationRunner, run_simulation
from .exceptions import QuasiforgeError, LatticeShapeError, StateTransitionError

# Config exports
from .config import (
    SimulationConfig,
    LatticeConfig,
    ControlsConfig,
    TimelineConfig,
    StatisticsConfig,
    RunConfig,
    load_config
)
