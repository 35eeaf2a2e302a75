"""Pretty-print helpers for base plans."""

from __future__ import annotations

import sys
from collections import Counter
from typing import TYPE_CHECKING, Optional, Sequence

from ..core.constants import ROOM_DIMENSIONS, StructureType
from ..engine.plans import STRUCTURE_CODES, BasePlans, RampartPlans

if TYPE_CHECKING:
    from ..core.models import AttemptSummary, PlanAttempt
    from ..data.rooms import RoomInput


def format_plan(attempt: PlanAttempt, room: RoomInput) -> str:
    """Render the plan as a 50x50 character map.

    Buildings use their packed structure code, bare roads ``+``, walls
    ``#`` and fortified tiles without a building ``R``.
    """

    base_plans = BasePlans.unpack(attempt.base_plans)
    rampart_plans = RampartPlans.unpack(attempt.rampart_plans)
    lines = []
    for y in range(ROOM_DIMENSIONS):
        row = []
        for x in range(ROOM_DIMENSIONS):
            structure = base_plans.structure_at((x, y))
            if structure is not None:
                row.append(STRUCTURE_CODES[structure])
            elif (x, y) in rampart_plans:
                row.append("R")
            elif base_plans.has_road((x, y)):
                row.append("+")
            elif room.terrain.is_wall(x, y):
                row.append("#")
            else:
                row.append(".")
        lines.append("".join(row))
    return "\n".join(lines)


def print_attempt_stats(
    attempt: PlanAttempt,
    room: Optional[RoomInput] = None,
    summaries: Sequence[AttemptSummary] = (),
    *,
    stream=None,
) -> None:
    """Print the plan map (when ``room`` is given) and its stats."""

    stream = stream or sys.stdout
    if room is not None:
        print(format_plan(attempt, room), file=stream)

    base_plans = BasePlans.unpack(attempt.base_plans)
    rampart_plans = RampartPlans.unpack(attempt.rampart_plans)
    counts = Counter(entry.structure_type for _, entry in base_plans.entries())

    print(file=stream)
    print("--- Plan ---", file=stream)
    print(f"  Start:         {attempt.start}", file=stream)
    print(f"  Score:         {attempt.score:.2f}", file=stream)
    print(f"  Cut verified:  {'yes' if attempt.cut_verified else 'no'}", file=stream)

    print(file=stream)
    print("--- Structures ---", file=stream)
    for structure_type in StructureType:
        if counts[structure_type]:
            print(f"  {structure_type.value:<14} {counts[structure_type]:>4}", file=stream)

    threat_only = sum(1 for _, entry in rampart_plans.entries() if entry.build_for_threat)
    print(file=stream)
    print("--- Ramparts ---", file=stream)
    print(f"  Total:         {len(rampart_plans)}", file=stream)
    print(f"  Threat only:   {threat_only}", file=stream)

    if summaries:
        print(file=stream)
        print("--- Attempts ---", file=stream)
        for summary in summaries:
            if summary.succeeded:
                print(f"  {summary.start}: {summary.score:.2f}", file=stream)
            else:
                print(f"  {summary.start}: failed ({summary.failure})", file=stream)

    if attempt.warnings:
        print(file=stream)
        print("--- Warnings ---", file=stream)
        for message in attempt.warnings:
            print(f"  {message}", file=stream)
