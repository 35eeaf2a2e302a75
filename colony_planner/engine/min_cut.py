"""Minimum vertex cut between a protected interior and the room exits.

Every walkable tile becomes an in-node and an out-node joined by an arc
whose capacity is the tile's cut cost; moves between tiles are arcs of
unbounded capacity. The interior feeds from the source and tiles next to
an exit drain to the sink, so the min cut of the resulting max-flow
problem is the cheapest set of tiles to fortify.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence, Set

from ortools.graph.python import max_flow

from ..core.constants import DEFAULT_MIN_CUT_DEPTH, IMPASSABLE, MAX_FLOOD_DEPTH, ROOM_AREA
from ..core.exceptions import MinCutError
from ..utils.logger import get_logger
from .flood import generation_flood
from .grid import ADJACENT_NEIGHBORS, new_coord_map


LOGGER = get_logger(__name__)

INFINITE_CAPACITY = 10**9
SOURCE_NODE = 2 * ROOM_AREA
SINK_NODE = SOURCE_NODE + 1


def _in_node(index: int) -> int:
    return 2 * index


def _out_node(index: int) -> int:
    return 2 * index + 1


def build_cut_costs(
    terrain_coords: Sequence[int],
    interior: Iterable[int],
    min_cut_depth: int = DEFAULT_MIN_CUT_DEPTH,
) -> List[int]:
    """Per-tile cut cost escalating with flood depth away from the interior.

    Walls are 255. Interior tiles cost ``min_cut_depth`` and each ring
    outward costs one more, capped below 255, which keeps the cheapest
    cut tight against the interior boundary.
    """

    interior = list(interior)
    costs = [0] * ROOM_AREA
    for index in range(ROOM_AREA):
        if terrain_coords[index] == IMPASSABLE:
            costs[index] = IMPASSABLE

    depths = generation_flood(
        interior,
        lambda index: terrain_coords[index] == IMPASSABLE,
        max_depth=MAX_FLOOD_DEPTH,
    )
    for index, depth in enumerate(depths):
        if not depth:
            continue
        costs[index] = min(min_cut_depth + depth - 1, MAX_FLOOD_DEPTH)
    for index in interior:
        costs[index] = min_cut_depth
    return costs


def min_cut_to_exit(
    interior: Iterable[int],
    costs: Sequence[int],
    exits: Iterable[int],
) -> List[int]:
    """Solve the cut and return the packed indexes of the cut tiles.

    Exit tiles are left out of the graph and the tiles next to them drain
    straight to the sink, so neither can be chosen as a cut tile.
    """

    interior_set = set(interior)
    if not interior_set:
        return []
    exit_set = set(exits)
    to_exit: Set[int] = set()
    for index in exit_set:
        for neighbor in ADJACENT_NEIGHBORS[index]:
            if neighbor not in exit_set and costs[neighbor] != IMPASSABLE:
                to_exit.add(neighbor)

    overlap = interior_set & (to_exit | exit_set)
    if overlap:
        raise MinCutError(f"{len(overlap)} interior tiles touch an exit; no cut can separate them")

    solver = max_flow.SimpleMaxFlow()
    tiles: List[int] = []
    for index in range(ROOM_AREA):
        if costs[index] == IMPASSABLE or index in exit_set:
            continue
        if index in to_exit:
            solver.add_arc_with_capacity(_in_node(index), SINK_NODE, INFINITE_CAPACITY)
            continue
        tiles.append(index)
        solver.add_arc_with_capacity(_in_node(index), _out_node(index), max(costs[index], 1))
        for neighbor in ADJACENT_NEIGHBORS[index]:
            if costs[neighbor] == IMPASSABLE or neighbor in exit_set:
                continue
            solver.add_arc_with_capacity(_out_node(index), _in_node(neighbor), INFINITE_CAPACITY)
        if index in interior_set:
            solver.add_arc_with_capacity(SOURCE_NODE, _in_node(index), INFINITE_CAPACITY)

    status = solver.solve(SOURCE_NODE, SINK_NODE)
    if status != solver.OPTIMAL:
        raise MinCutError(f"Max-flow solver finished with status {status}")

    source_side = set(solver.get_source_side_min_cut())
    cut = [
        index
        for index in tiles
        if _in_node(index) in source_side and _out_node(index) not in source_side
    ]
    LOGGER.debug("Min cut of %s tiles, flow %s", len(cut), solver.optimal_flow())
    return cut


def is_cut_sealed(
    interior: Iterable[int],
    cut: Iterable[int],
    exits: Iterable[int],
    terrain_coords: Sequence[int],
) -> bool:
    """Check that no interior tile outside the cut is reachable from an exit."""

    blocked = new_coord_map()
    for index in cut:
        blocked[index] = 1
    reached = generation_flood(
        (index for index in exits if not blocked[index]),
        lambda index: terrain_coords[index] == IMPASSABLE or blocked[index] == 1,
    )
    for index in interior:
        if blocked[index]:
            continue
        if reached[index]:
            return False
    return True
