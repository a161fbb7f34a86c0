"""
Tests for the cooperative tick/frame scheduler.
"""

import asyncio
import pytest
import numpy as np
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from quasiforge.engine import ForgeEngine
from quasiforge.exceptions import StateTransitionError
from quasiforge.scheduler import ForgeScheduler


def make_engine(seed=0):
    return ForgeEngine(rng=np.random.Generator(np.random.PCG64(seed)))


class TestScheduler:

    def test_invalid_period(self):
        with pytest.raises(ValueError):
            ForgeScheduler(make_engine(), tick_s=0.0)
        with pytest.raises(ValueError):
            ForgeScheduler(make_engine(), frame_s=-1.0)

    def test_default_tick_from_config(self):
        scheduler = ForgeScheduler(make_engine())
        assert scheduler.tick_s == pytest.approx(0.016)

    def test_run_for_drives_both(self):
        engine = make_engine()
        scheduler = ForgeScheduler(engine, tick_s=0.005, frame_s=0.01)
        asyncio.run(scheduler.run_for(0.15))
        assert not scheduler.is_running
        assert scheduler.ticks_run > 0
        assert scheduler.frames_run > 0
        assert engine.tick_count == scheduler.ticks_run
        assert engine.control.progress > 0.0

    def test_stop_leaves_whole_ticks(self):
        engine = make_engine()
        scheduler = ForgeScheduler(engine, tick_s=0.002, frame_s=0.005)
        asyncio.run(scheduler.run_for(0.05))
        expected = min(1.0, 0.0035 * engine.tick_count)
        assert engine.control.progress == pytest.approx(expected)

    def test_double_start(self):
        async def scenario():
            scheduler = ForgeScheduler(make_engine(), tick_s=0.01)
            await scheduler.start()
            try:
                with pytest.raises(StateTransitionError):
                    await scheduler.start()
            finally:
                await scheduler.stop()

        asyncio.run(scenario())

    def test_stop_when_idle(self):
        scheduler = ForgeScheduler(make_engine())
        with pytest.raises(StateTransitionError):
            asyncio.run(scheduler.stop())

    def test_engine_shutdown_halts_drivers(self):
        async def scenario():
            engine = make_engine()
            scheduler = ForgeScheduler(engine, tick_s=0.005, frame_s=0.005)
            await scheduler.start()
            await asyncio.sleep(0.05)
            engine.shutdown()
            await asyncio.sleep(0.05)
            assert not scheduler.is_running
            ticks = engine.tick_count
            await scheduler.stop()
            return scheduler, ticks, engine

        scheduler, ticks, engine = asyncio.run(scenario())
        assert scheduler.ticks_run == ticks == engine.tick_count
        assert not scheduler.is_running

    def test_driver_error_surfaces_on_stop(self):
        async def scenario():
            engine = make_engine()

            def broken_tick():
                raise RuntimeError("tick failed")

            engine.tick = broken_tick
            scheduler = ForgeScheduler(engine, tick_s=0.005, frame_s=0.005)
            await scheduler.start()
            await asyncio.sleep(0.02)
            await scheduler.stop()

        with pytest.raises(RuntimeError, match="tick failed"):
            asyncio.run(scenario())
