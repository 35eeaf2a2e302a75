"""Weighted A* pathfinder standing in for the host's path search.

Tile cost starts from terrain (plain or swamp cost, walls and room
objects impassable). Weight maps are then applied in order: a non-zero
value replaces the cost so far, and 255 in any map makes the tile
impassable.
"""

from __future__ import annotations

import heapq
import itertools
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from ..core.constants import (DEFAULT_ROAD_PLANNING_PLAIN_COST, DEFAULT_SWAMP_COST, IMPASSABLE,
                              ROOM_AREA)
from ..core.models import Coord
from .grid import ADJACENT_NEIGHBORS, pack, unpack


@dataclass(frozen=True)
class PathGoal:
    coord: Coord
    range: int = 0


class Pathfinder:
    """Path search over one room's terrain."""

    def __init__(self, terrain, terrain_coords: Sequence[int]) -> None:
        self.terrain = terrain
        self.terrain_coords = terrain_coords

    def cost_map(
        self,
        weight_maps: Sequence[Sequence[int]] = (),
        plain_cost: int = DEFAULT_ROAD_PLANNING_PLAIN_COST,
        swamp_cost: int = DEFAULT_SWAMP_COST,
    ) -> List[int]:
        costs: List[int] = []
        for index in range(ROOM_AREA):
            if self.terrain_coords[index] == IMPASSABLE:
                costs.append(IMPASSABLE)
                continue
            x, y = unpack(index)
            cost = swamp_cost if self.terrain.is_swamp(x, y) else plain_cost
            for weights in weight_maps:
                value = weights[index]
                if value == IMPASSABLE:
                    cost = IMPASSABLE
                    break
                if value:
                    cost = value
            costs.append(cost)
        return costs

    def find_path(
        self,
        origin: Coord,
        goals: Sequence[PathGoal],
        weight_maps: Sequence[Sequence[int]] = (),
        plain_cost: int = DEFAULT_ROAD_PLANNING_PLAIN_COST,
        swamp_cost: int = DEFAULT_SWAMP_COST,
    ) -> Optional[List[Coord]]:
        """Cheapest path from ``origin`` into range of any goal.

        The origin itself is not part of the path. Returns ``[]`` when the
        origin is already in range and ``None`` when no goal is reachable.
        """

        if not goals:
            raise ValueError("find_path needs at least one goal")
        costs = self.cost_map(weight_maps, plain_cost, swamp_cost)
        return _search(pack(origin), goals, costs)


def _remaining(index: int, goals: Sequence[PathGoal]) -> int:
    x, y = unpack(index)
    return min(
        max(0, max(abs(x - goal.coord[0]), abs(y - goal.coord[1])) - goal.range)
        for goal in goals
    )


def _search(origin: int, goals: Sequence[PathGoal], costs: Sequence[int]) -> Optional[List[Coord]]:
    if _remaining(origin, goals) == 0:
        return []

    counter = itertools.count()
    open_heap: List[Tuple[int, int, int]] = [(_remaining(origin, goals), next(counter), origin)]
    best: Dict[int, int] = {origin: 0}
    parents: Dict[int, int] = {}
    closed = set()

    while open_heap:
        _, _, index = heapq.heappop(open_heap)
        if index in closed:
            continue
        closed.add(index)

        if _remaining(index, goals) == 0:
            path = []
            while index != origin:
                path.append(unpack(index))
                index = parents[index]
            path.reverse()
            return path

        cost_so_far = best[index]
        for neighbor in ADJACENT_NEIGHBORS[index]:
            step = costs[neighbor]
            if step >= IMPASSABLE or neighbor in closed:
                continue
            candidate = cost_so_far + step
            if candidate >= best.get(neighbor, candidate + 1):
                continue
            best[neighbor] = candidate
            parents[neighbor] = index
            heapq.heappush(open_heap, (candidate + _remaining(neighbor, goals), next(counter), neighbor))
    return None
