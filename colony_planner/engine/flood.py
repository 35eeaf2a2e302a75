"""Flood-fill and frontier-search primitives over packed coord maps.

Searches take an ordered list of :class:`NeighborStrategy` objects. For
each generation the strategies are tried in turn, each against a fresh
copy of the visited map, until one produces a non-empty frontier. The
usual order is cardinal, then eight-way, then unrestricted, so searches
prefer clean expansions but always terminate on a finite room.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from ..core.constants import DYNAMIC_DISTANCE_WEIGHT, IMPASSABLE, MAX_FLOOD_DEPTH, ROOM_AREA
from .grid import ADJACENT_NEIGHBORS, CARDINAL_NEIGHBORS, CoordMap, new_coord_map


IndexPredicate = Callable[[int], bool]


@dataclass(frozen=True)
class NeighborStrategy:
    """Neighbour table plus an optional admissibility filter."""

    name: str
    neighbors: Tuple[Tuple[int, ...], ...]
    admissible: Optional[IndexPredicate] = None

    def admits(self, index: int) -> bool:
        return self.admissible is None or self.admissible(index)


def cardinal(admissible: Optional[IndexPredicate] = None) -> NeighborStrategy:
    return NeighborStrategy("cardinal", CARDINAL_NEIGHBORS, admissible)


def adjacent(admissible: Optional[IndexPredicate] = None) -> NeighborStrategy:
    return NeighborStrategy("adjacent", ADJACENT_NEIGHBORS, admissible)


def unrestricted() -> NeighborStrategy:
    return NeighborStrategy("unrestricted", ADJACENT_NEIGHBORS, None)


def _dedupe(indexes: Iterable[int]) -> List[int]:
    seen = set()
    ordered = []
    for index in indexes:
        if index in seen:
            continue
        seen.add(index)
        ordered.append(index)
    return ordered


# ----------------------------------------------------------------------
# Unweighted floods
# ----------------------------------------------------------------------
def generation_flood(
    seeds: Iterable[int],
    blocked: IndexPredicate,
    neighbors: Sequence[Tuple[int, ...]] = ADJACENT_NEIGHBORS,
    max_depth: int = MAX_FLOOD_DEPTH,
) -> CoordMap:
    """Multi-source BFS; seeds get depth 1 and unreached tiles stay 0.

    Depths are clamped to ``max_depth`` so the result fits a coord map.
    """

    depths = new_coord_map()
    generation = _dedupe(seeds)
    visited = new_coord_map()
    for index in generation:
        visited[index] = 1

    depth = 1
    while generation:
        next_generation: List[int] = []
        for index in generation:
            depths[index] = min(depth, max_depth)
            for neighbor in neighbors[index]:
                if visited[neighbor]:
                    continue
                visited[neighbor] = 1
                if blocked(neighbor):
                    continue
                next_generation.append(neighbor)
        depth += 1
        generation = next_generation
    return depths


def flood_group(
    seed: int,
    member: IndexPredicate,
    visited: CoordMap,
    max_size: Optional[int] = None,
    neighbors: Sequence[Tuple[int, ...]] = ADJACENT_NEIGHBORS,
) -> List[int]:
    """Collect the connected members around ``seed``.

    ``visited`` is shared between calls so consecutive groups never
    overlap. Expansion stops after the generation in which the group
    grows past ``max_size``.
    """

    visited[seed] = 1
    group = [seed]
    generation = [seed]
    while generation:
        next_generation: List[int] = []
        for index in generation:
            for neighbor in neighbors[index]:
                if visited[neighbor]:
                    continue
                visited[neighbor] = 1
                if not member(neighbor):
                    continue
                group.append(neighbor)
                next_generation.append(neighbor)
        if max_size is not None and len(group) - 1 >= max_size:
            break
        generation = next_generation
    return group


def exit_distance_field(terrain_coords: Sequence[int], exits: Iterable[int]) -> CoordMap:
    """Flood depth from the exits through non-wall tiles; exits are 1."""

    return generation_flood(exits, lambda index: terrain_coords[index] == IMPASSABLE)


def exit_cost_field(distance_field: Sequence[int]) -> CoordMap:
    """Invert an exit distance field so tiles near exits cost more."""

    costs = new_coord_map()
    for index, depth in enumerate(distance_field):
        if depth:
            costs[index] = IMPASSABLE - depth
    return costs


def is_close_to_exit(distance_field: Sequence[int], index: int, radius: int) -> bool:
    """True when an exit is reachable within ``radius`` steps of ``index``."""

    depth = distance_field[index]
    return depth != 0 and depth - 1 <= radius


# ----------------------------------------------------------------------
# Frontier searches
# ----------------------------------------------------------------------
def frontier_search(
    starts: Iterable[int],
    strategies: Sequence[NeighborStrategy],
    accept: IndexPredicate,
) -> Optional[int]:
    """Generation by generation search for the first accepted index."""

    generation = _dedupe(starts)
    visited = new_coord_map()
    for index in generation:
        visited[index] = 1

    while generation:
        for index in generation:
            if accept(index):
                return index

        next_generation: List[int] = []
        local_visited = visited
        for strategy in strategies:
            local_visited = bytearray(visited)
            for index in generation:
                for neighbor in strategy.neighbors[index]:
                    if local_visited[neighbor]:
                        continue
                    local_visited[neighbor] = 1
                    if not strategy.admits(neighbor):
                        continue
                    next_generation.append(neighbor)
            if next_generation:
                break

        visited = local_visited
        generation = next_generation
    return None


def weighted_frontier_search(
    starts: Iterable[int],
    cost_map: Sequence[int],
    strategies: Sequence[NeighborStrategy],
    accept: IndexPredicate,
    distance_weight: int = DYNAMIC_DISTANCE_WEIGHT,
) -> Optional[int]:
    """Batched-frontier approximation of a cheapest-first search.

    A tile's cost is ``cost_map[tile]`` plus ``distance_weight`` per step
    from the start. Each round expands every frontier tile costing no more
    than the cheapest tile discovered in the previous round and defers the
    rest to the next round.
    """

    generation = _dedupe(starts)
    visited = new_coord_map()
    for index in generation:
        visited[index] = 1
    from_origin = [0] * ROOM_AREA
    lowest_next_cost = math.inf

    while generation:
        lowest_cost = lowest_next_cost
        lowest_next_cost = math.inf
        next_generation: List[int] = []
        local_visited = visited

        for strategy in strategies:
            local_visited = bytearray(visited)
            next_generation = []
            for index in generation:
                origin_cost = from_origin[index]
                if cost_map[index] + origin_cost > lowest_cost:
                    next_generation.append(index)
                    continue
                if accept(index):
                    return index

                for neighbor in strategy.neighbors[index]:
                    if local_visited[neighbor]:
                        continue
                    local_visited[neighbor] = 1
                    if not strategy.admits(neighbor):
                        continue
                    next_generation.append(neighbor)
                    neighbor_origin_cost = origin_cost + distance_weight
                    from_origin[neighbor] = neighbor_origin_cost
                    lowest_next_cost = min(lowest_next_cost, cost_map[neighbor] + neighbor_origin_cost)
            if next_generation:
                break

        visited = local_visited
        generation = next_generation
    return None
