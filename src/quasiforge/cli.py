"""
Command-line interface for headless forge runs.

Usage:
    python -m quasiforge.cli --config examples/default_forge.yaml --ticks 400
"""

import argparse
import sys
from pathlib import Path

from .config import SimulationConfig, load_config
from .runner import run_simulation
from .utils.logger.logger import Logger
from .utils.logger.memory_strategy import MemoryStrategy


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Quasiperiodic lattice forge: headless timeline run"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to YAML configuration file (defaults if omitted)"
    )
    parser.add_argument(
        "--ticks", "-t",
        type=int,
        default=None,
        help="Number of fixed ticks to run (overrides config)"
    )
    parser.add_argument(
        "--seed", "-s",
        type=int,
        default=None,
        help="Random seed (overrides config)"
    )
    parser.add_argument(
        "--random-potential",
        action="store_true",
        help="Start from the random landscape instead of the quasiperiodic one"
    )
    parser.add_argument(
        "--stop-when-locked",
        action="store_true",
        help="Stop as soon as the timeline reaches STABLE_LOCKED"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Print engine log entries after the summary"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress output except errors"
    )
    return parser


def main(argv=None):
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    # Load and validate config
    try:
        config = load_config(args.config) if args.config else SimulationConfig()
    except FileNotFoundError:
        print(f"Error: Config file not found: {args.config}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.seed is not None:
        config.run.seed = args.seed
    if args.ticks is not None:
        config.run.ticks = args.ticks
    if args.random_potential:
        config.lattice.random_potential = True

    is_valid, error = config.validate()
    if not is_valid:
        print(f"Error: Invalid configuration: {error}", file=sys.stderr)
        sys.exit(1)

    memory = None
    if args.verbose:
        memory = MemoryStrategy()
        Logger.set_log_storage_strategy(memory)
    else:
        Logger.initialize()

    if not args.quiet:
        print("Running forge timeline...")
        print(f"  Grid: {config.lattice.grid_size}x{config.lattice.grid_size}, "
              f"{config.lattice.shards_per_site} shards/site")
        print(f"  Ticks: {config.run.ticks} ({config.run.frames_per_tick} frame(s) per tick)")
        print(f"  Seed: {config.run.seed}")

    result = run_simulation(config, stop_when_locked=args.stop_when_locked)

    if not args.quiet:
        control = result.final_control
        print()
        print("=" * 50)
        print("RUN COMPLETE")
        print("=" * 50)
        print(f"  Ticks run: {result.ticks_run}")
        print(f"  Progress: {control.progress:.4f}")
        print(f"  Phase: {control.phase.value}")
        print(f"  Status: {result.final_snapshot.status.name}")
        print(f"  Mean amplitude: {result.mean_amplitude:.4f}")
        print(f"  Mean localization length: {result.mean_localization_length:.4f}")
        print(f"  Max shard deviation: {result.max_shard_deviation:.4f}")
        print(f"  MSD samples: {len(result.msd_history)}")
        print()
        print("Phases:")
        for tick, phase in result.phase_log:
            print(f"  tick {tick:5d}: {phase.value}")

    if memory is not None:
        print()
        print("Log:")
        for timestamp, priority, message in memory.entries:
            print(f"  [{timestamp}] [{priority}] {message}")

    sys.exit(0)


if __name__ == "__main__":
    main()
