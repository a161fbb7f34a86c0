"""
Tests for the mission timeline and inbound command transitions.

Tests:
    - Phase table boundaries
    - Step sizes and the slow-down window
    - Terminal lock
    - Manual override atomicity and idempotence
    - Flare, avalanche and radiation burst fields
    - Command-boundary clamping
"""

import math
import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from quasiforge.config import ControlsConfig, TimelineConfig
from quasiforge.constants import PHI
from quasiforge.control_state import ControlState, MissionPhase, ViewMode, phase_for_progress
from quasiforge.timeline import MissionTimeline


def make_timeline(**kwargs):
    return MissionTimeline(TimelineConfig(**kwargs), ControlsConfig())


class TestPhaseTable:
    """Half-open intervals, lower bound inclusive."""

    @pytest.mark.parametrize("progress,phase", [
        (0.0, MissionPhase.AMORPHOUS_CHAOS),
        (0.2999, MissionPhase.AMORPHOUS_CHAOS),
        (0.3, MissionPhase.FOUR_D_EXTRUSION),
        (0.5999, MissionPhase.FOUR_D_EXTRUSION),
        (0.6, MissionPhase.GOLDEN_SIEVING_SWEEP),
        (0.8799, MissionPhase.GOLDEN_SIEVING_SWEEP),
        (0.88, MissionPhase.TOPOLOGICAL_LOCK),
        (0.9999, MissionPhase.TOPOLOGICAL_LOCK),
        (1.0, MissionPhase.STABLE_LOCKED),
    ])
    def test_boundaries(self, progress, phase):
        assert phase_for_progress(progress) is phase

    def test_sieve_start_of_sweep(self):
        fields = make_timeline().phase_fields(0.6, -250.0)
        assert fields["view_mode"] is ViewMode.FOUR_D
        assert fields["sieve_sweep_x"] == pytest.approx(-220.0)

    def test_sieve_mid_sweep(self):
        fields = make_timeline().phase_fields(0.74, -250.0)
        assert fields["sieve_sweep_x"] == pytest.approx(15.0)

    def test_sieve_at_lock(self):
        fields = make_timeline().phase_fields(0.88, 0.0)
        assert fields["view_mode"] is ViewMode.NORMAL
        assert fields["sieve_sweep_x"] == 250.0

    def test_early_phases(self):
        timeline = make_timeline()
        assert timeline.phase_fields(0.1, 0.0) == {"view_mode": ViewMode.NORMAL, "sieve_sweep_x": -250.0}
        assert timeline.phase_fields(0.3, 0.0) == {"view_mode": ViewMode.FOUR_D, "sieve_sweep_x": -250.0}

    def test_terminal_keeps_sieve(self):
        fields = make_timeline().phase_fields(1.0, 123.0)
        assert fields["sieve_sweep_x"] == 123.0
        assert fields["auto_advance"] is False


class TestAdvancement:
    """Automatic progress advancement."""

    def test_base_step(self):
        state = make_timeline().advance(ControlState(progress=0.1))
        assert state.progress == pytest.approx(0.1035)

    def test_slow_window(self):
        timeline = make_timeline()
        assert timeline.step_size(0.7) == 0.0018
        assert timeline.step_size(0.6) == 0.0035
        assert timeline.step_size(0.9) == 0.0035

    def test_monotonic_run_to_lock(self):
        timeline = make_timeline()
        state = ControlState()
        phases = [state.phase]
        previous = state.progress
        for _ in range(1000):
            state = timeline.advance(state)
            assert state.progress >= previous
            previous = state.progress
            if state.phase is not phases[-1]:
                phases.append(state.phase)
            if not state.auto_advance:
                break
        assert phases == list(MissionPhase)
        assert state.progress == 1.0

    def test_terminal_disables_auto(self):
        state = make_timeline().advance(ControlState(progress=0.999, view_mode=ViewMode.FOUR_D))
        assert state.progress == 1.0
        assert state.phase is MissionPhase.STABLE_LOCKED
        assert state.auto_advance is False
        assert state.view_mode is ViewMode.NORMAL

    def test_terminal_never_reenables(self):
        timeline = make_timeline()
        state = timeline.advance(ControlState(progress=0.999))
        for _ in range(20):
            state = timeline.advance(state)
        assert state.auto_advance is False
        assert state.progress == 1.0

    def test_manual_mode_freezes_progress(self):
        state = make_timeline().advance(ControlState(progress=0.4, auto_advance=False))
        assert state.progress == 0.4

    def test_idle_tick_returns_same_state(self):
        state = ControlState(auto_advance=False)
        assert make_timeline().advance(state) is state


class TestManualProgress:
    """set-progress is one combined transition."""

    def test_clears_auto_and_sets_late_phase(self):
        state = make_timeline().set_progress(ControlState(), 0.85)
        assert state.progress == 0.85
        assert state.auto_advance is False
        assert state.late_phase is True

    def test_late_phase_threshold_strict(self):
        assert make_timeline().set_progress(ControlState(), 0.8).late_phase is False

    def test_idempotent(self):
        timeline = make_timeline()
        first = timeline.set_progress(ControlState(), 0.42)
        second = timeline.set_progress(first, 0.42)
        assert second == first

    def test_clamped(self):
        timeline = make_timeline()
        assert timeline.set_progress(ControlState(), 1.5).progress == 1.0
        assert timeline.set_progress(ControlState(), -0.2).progress == 0.0

    def test_nan_keeps_previous(self):
        state = make_timeline().set_progress(ControlState(progress=0.3), math.nan)
        assert state.progress == 0.3

    def test_phase_follows_progress(self):
        state = make_timeline().set_progress(ControlState(), 0.9)
        assert state.phase is MissionPhase.TOPOLOGICAL_LOCK

    @pytest.mark.parametrize("progress,view_mode,sieve_x", [
        (0.1, ViewMode.NORMAL, -250.0),
        (0.45, ViewMode.FOUR_D, -250.0),
        (0.6, ViewMode.FOUR_D, -220.0),
        (0.88, ViewMode.NORMAL, 250.0),
        (0.95, ViewMode.NORMAL, 250.0),
    ])
    def test_view_and_sieve_follow_phase_table(self, progress, view_mode, sieve_x):
        """A manual write leaves no fields behind from the previous phase."""
        start = ControlState(progress=0.4, view_mode=ViewMode.FOUR_D, sieve_sweep_x=-250.0)
        state = make_timeline().set_progress(start, progress)
        assert state.view_mode is view_mode
        assert state.sieve_sweep_x == pytest.approx(sieve_x)

    def test_jump_back_after_auto_run(self):
        timeline = make_timeline()
        state = ControlState()
        for _ in range(100):
            state = timeline.advance(state)
        assert state.view_mode is ViewMode.FOUR_D
        state = timeline.set_progress(state, 0.95)
        for _ in range(50):
            state = timeline.advance(state)
        assert state.view_mode is ViewMode.NORMAL
        assert state.sieve_sweep_x == 250.0
        state = timeline.set_progress(state, 0.6)
        assert state.phase is MissionPhase.GOLDEN_SIEVING_SWEEP
        assert state.view_mode is ViewMode.FOUR_D
        assert state.sieve_sweep_x == pytest.approx(-220.0)

    def test_terminal_write_keeps_sieve(self):
        start = ControlState(progress=0.9, sieve_sweep_x=250.0)
        state = make_timeline().set_progress(start, 1.0)
        assert state.phase is MissionPhase.STABLE_LOCKED
        assert state.view_mode is ViewMode.NORMAL
        assert state.sieve_sweep_x == 250.0
        assert state.auto_advance is False


class TestDecayingFields:
    """Flare, avalanche and burst move every tick, in any mode."""

    def test_flare_trigger(self):
        state = make_timeline().trigger_flare(ControlState())
        assert state.flare_excitation == 1.0
        assert state.radiation_burst_active is True
        assert state.auto_advance is False

    def test_flare_decays_to_zero(self):
        timeline = make_timeline()
        state = timeline.trigger_flare(ControlState())
        previous = state.flare_excitation
        for _ in range(25):
            state = timeline.advance(state)
            assert state.flare_excitation <= previous
            previous = state.flare_excitation
        assert state.flare_excitation == 0.0

    def test_flare_decay_scaled_by_resilience(self):
        timeline = make_timeline()
        state = timeline.trigger_flare(ControlState(drive_omega=PHI + 0.02))
        state = timeline.advance(state)
        assert state.flare_excitation == pytest.approx(1.0 - 0.05 * 0.7)

    def test_burst_clears_after_configured_ticks(self):
        timeline = make_timeline(burst_ticks=3)
        state = timeline.trigger_flare(ControlState())
        state = timeline.advance(state)
        state = timeline.advance(state)
        assert state.radiation_burst_active is True
        state = timeline.advance(state)
        assert state.radiation_burst_active is False

    def test_avalanche_trigger(self):
        state = make_timeline().trigger_avalanche(ControlState())
        assert state.avalanche_sweep_x == -400.0
        assert state.avalanche_active is True
        assert state.auto_advance is False

    def test_avalanche_sweeps_to_end(self):
        timeline = make_timeline()
        state = timeline.trigger_avalanche(ControlState())
        previous = state.avalanche_sweep_x
        for _ in range(60):
            state = timeline.advance(state)
            assert state.avalanche_sweep_x >= previous
            previous = state.avalanche_sweep_x
        assert state.avalanche_sweep_x == 450.0
        assert state.avalanche_active is False

    def test_avalanche_rate(self):
        timeline = make_timeline()
        state = timeline.advance(timeline.trigger_avalanche(ControlState()))
        assert state.avalanche_sweep_x == pytest.approx(-380.0)

    def test_idle_avalanche_does_not_move(self):
        state = make_timeline().advance(ControlState())
        assert state.avalanche_sweep_x == -450.0

    def test_fields_move_while_auto_advancing(self):
        timeline = make_timeline()
        state = ControlState(flare_excitation=0.5, auto_advance=True)
        state = timeline.advance(state)
        assert state.flare_excitation == pytest.approx(0.45)
        assert state.progress == pytest.approx(0.0035)


class TestParameterCommands:
    """Clamping at the command boundary."""

    def test_clamped_values_observable(self):
        state = make_timeline().set_parameters(
            ControlState(), interaction_u=-3.0, potential_depth=50.0,
            timing_jitter=500.0, drive_omega=3.0
        )
        assert state.interaction_u == 0.0
        assert state.potential_depth == 12.0
        assert state.timing_jitter == 100.0
        assert state.drive_omega == 1.75

    def test_partial_update(self):
        state = make_timeline().set_parameters(ControlState(), timing_jitter=20.0)
        assert state.timing_jitter == 20.0
        assert state.interaction_u == 1.5
        assert state.drive_omega == PHI

    def test_stops_auto_advance(self):
        state = make_timeline().set_parameters(ControlState(), interaction_u=2.0)
        assert state.auto_advance is False

    def test_resync_drive(self):
        state = make_timeline().resync_drive(ControlState(drive_omega=1.5))
        assert state.drive_omega == PHI

    def test_view_mode_from_name(self):
        state = make_timeline().set_view_mode(ControlState(), "FOUR_D")
        assert state.view_mode is ViewMode.FOUR_D

    def test_automatic_advancement_toggle(self):
        timeline = make_timeline()
        state = timeline.set_automatic_advancement(ControlState(), False)
        assert state.auto_advance is False
        assert timeline.set_automatic_advancement(state, True).auto_advance is True

    def test_initial_state_from_config(self):
        timeline = MissionTimeline(TimelineConfig(), ControlsConfig(timing_jitter=30.0))
        state = timeline.initial_state(random_potential=True)
        assert state.timing_jitter == 30.0
        assert state.random_potential is True
        assert state.progress == 0.0
