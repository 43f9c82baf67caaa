"""Command-line entrypoint for bgrules.

Provides the ``bgrules`` console script from ``pyproject.toml``:

    bgrules --version
    bgrules show
    bgrules simulate --matches 20 --match-length 5 --seed 7
    bgrules simulate --money --jacoby --matches 50 --max-cube-value 8
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

import numpy as np

from bgrules import __version__
from bgrules.agents import random_agent
from bgrules.config import MATCH_LENGTH_OPTIONS, EngineConfig
from bgrules.core.board import board_to_string, initial_board
from bgrules.errors import RulesError
from bgrules.recorder import GameRecorder
from bgrules.simulation import compute_match_statistics, play_match, play_single_game

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Route library logging to stderr at ``level``."""
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level}")
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        stream=sys.stderr,
        force=True,
    )


def build_parser(config: Optional[EngineConfig] = None) -> argparse.ArgumentParser:
    """Build the top-level argument parser.

    Defaults come from ``config`` (environment-driven when omitted).
    """
    if config is None:
        config = EngineConfig()

    parser = argparse.ArgumentParser(
        prog="bgrules",
        description="Backgammon rules engine",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"bgrules {__version__}",
    )
    parser.add_argument(
        "--log-level",
        default=config.log_level,
        help="Logging level (DEBUG, INFO, WARNING, ...)",
    )

    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("show", help="Print the starting position")

    sim = subparsers.add_parser("simulate", help="Play random-agent matches")
    sim.add_argument("--matches", type=int, default=10, help="Number of matches (or money games) to play")
    sim.add_argument(
        "--match-length",
        type=int,
        default=config.default_match_length,
        choices=MATCH_LENGTH_OPTIONS,
        help="Points per match",
    )
    sim.add_argument("--money", action="store_true", help="Play single money games instead of matches")
    sim.add_argument(
        "--jacoby",
        action="store_true",
        default=config.jacoby_rule,
        help="Apply the Jacoby rule in money games",
    )
    sim.add_argument(
        "--max-cube-value",
        type=int,
        default=config.max_cube_value,
        help="Highest value the cube may reach",
    )
    sim.add_argument("--seed", type=int, default=config.seed, help="Random seed")
    sim.add_argument("--log-dir", default=config.log_dir, help="Directory for event logs")
    sim.add_argument("--run-name", default=config.run_name, help="Event log file prefix")
    sim.add_argument("--cube-offer-rate", type=float, default=config.cube_offer_rate)
    sim.add_argument("--cube-take-rate", type=float, default=config.cube_take_rate)
    sim.add_argument("--max-moves", type=int, default=config.max_moves_per_game)
    sim.add_argument(
        "--console-interval",
        type=int,
        default=config.console_interval,
        help="Echo every N events to the console",
    )
    return parser


def run_simulation(args: argparse.Namespace) -> dict:
    """Play ``args.matches`` matches (or money games) and return their statistics."""
    config = EngineConfig(
        default_match_length=args.match_length,
        max_cube_value=args.max_cube_value,
        jacoby_rule=args.jacoby,
        seed=args.seed,
        log_dir=args.log_dir,
        run_name=args.run_name,
        console_interval=args.console_interval,
        max_moves_per_game=args.max_moves,
        cube_offer_rate=args.cube_offer_rate,
        cube_take_rate=args.cube_take_rate,
    )
    config.validate()

    rng = np.random.default_rng(config.seed)
    seed_base = config.seed if config.seed is not None else int(rng.integers(0, 2**31))
    white = random_agent(seed_base + 1, config.cube_offer_rate, config.cube_take_rate)
    black = random_agent(seed_base + 2, config.cube_offer_rate, config.cube_take_rate)

    with GameRecorder(config.log_dir, config.run_name, config.console_interval) as recorder:
        recorder.log_config({"matches": args.matches, "money": args.money, **config.to_dict()})
        if args.money:
            matches = [
                play_single_game(
                    white,
                    black,
                    jacoby_rule=config.jacoby_rule,
                    max_moves=config.max_moves_per_game,
                    rng=rng,
                    recorder=recorder,
                    max_cube_value=config.max_cube_value,
                )
                for _ in range(args.matches)
            ]
        else:
            matches = [
                play_match(
                    white,
                    black,
                    match_length=config.default_match_length,
                    max_moves_per_game=config.max_moves_per_game,
                    rng=rng,
                    recorder=recorder,
                    max_cube_value=config.max_cube_value,
                )
                for _ in range(args.matches)
            ]
        stats = compute_match_statistics(matches)
        recorder.save_summary(stats)

    for key, value in stats.items():
        print(f"{key:>22}: {value:.2f}" if isinstance(value, float) else f"{key:>22}: {value}")
    return stats


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entrypoint used by the `bgrules` console script."""
    try:
        config = EngineConfig.from_env()
    except ValueError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    parser = build_parser(config)
    args = parser.parse_args(argv)

    try:
        configure_logging(args.log_level)
    except ValueError as exc:
        parser.error(str(exc))

    if args.command == "show":
        print(board_to_string(initial_board()))
        return 0

    if args.command == "simulate":
        try:
            run_simulation(args)
        except RulesError as exc:
            logger.error("Simulation stopped on a rules error (%s): %s", exc.reason, exc)
            return 1
        except ValueError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 2
        return 0

    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
