"""CLI entrypoint for the colony base layout planner."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict

from colony_planner.core.exceptions import PlannerError
from colony_planner.data.rooms import load_room
from colony_planner.engine.budget import UnlimitedBudget, WallClockBudget
from colony_planner.engine.planner import CommunePlanner, PlannerConfig
from colony_planner.utils.logger import configure_logging, get_logger
from colony_planner.utils.pretty import print_attempt_stats


LOGGER = get_logger("colony_planner.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Plan a colony base layout for one room",
    )
    parser.add_argument("--room", type=Path, required=True, help="Room text file (50 lines of 50 tiles)")
    parser.add_argument("--output", type=Path, help="Optional path to JSON output")
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument(
        "--phase-budget",
        type=float,
        default=None,
        help="Seconds of compute allowed per invocation (default: unlimited)",
    )
    parser.add_argument(
        "--max-invocations",
        type=int,
        default=10_000,
        help="Stop after this many planner invocations",
    )
    parser.add_argument("--min-cut-depth", type=int, help="Override the interior cut capacity")
    parser.add_argument("--swamp-cost", type=int, help="Override the road planning swamp cost")
    parser.add_argument("--quiet", action="store_true", help="Skip printing the plan map and stats")
    return parser


def build_config(args: argparse.Namespace) -> PlannerConfig:
    config = PlannerConfig()
    if args.min_cut_depth is not None:
        config.min_cut_depth = args.min_cut_depth
    if args.swamp_cost is not None:
        config.swamp_cost = args.swamp_cost
    return config


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    level = getattr(logging, args.log_level.upper(), logging.INFO)
    configure_logging(level)

    if args.max_invocations <= 0:
        parser.error("--max-invocations must be positive")

    try:
        room = load_room(args.room)
    except PlannerError as exc:
        LOGGER.error("%s", exc)
        return 2

    config = build_config(args)
    if args.phase_budget is not None and args.phase_budget < config.min_phase_budget:
        parser.error(f"--phase-budget must be at least {config.min_phase_budget} seconds")

    planner = CommunePlanner(room, config)
    invocations = 0
    while invocations < args.max_invocations:
        budget = WallClockBudget(args.phase_budget) if args.phase_budget is not None else UnlimitedBudget()
        if not planner.run(budget):
            break
        invocations += 1
    LOGGER.info("Planner stopped after %s invocations in state %s", invocations, planner.state.value)

    memory: Dict[str, Any] = {}
    try:
        attempt = planner.choose_plan(memory)
    except PlannerError as exc:
        LOGGER.error("%s", exc)
        return 1

    if not args.quiet:
        print_attempt_stats(attempt, room, planner.attempt_summaries)

    payload: Dict[str, Any] = {
        "room": room.name,
        "memory": memory,
        "attempts": [
            {"start": list(summary.start), "score": summary.score, "failure": summary.failure}
            for summary in planner.attempt_summaries
        ],
        "warnings": list(attempt.warnings),
    }
    output_text = json.dumps(payload, indent=2)
    if args.output:
        args.output.write_text(output_text, encoding="utf-8")
    elif args.quiet:
        print(output_text)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
