"""Road backbone: diagonal infill plus a period-4 lattice linked to the base.

Both patterns are aligned to an anchor one tile above the fast filler.
Lattice fragments are grouped, each group is connected to the anchor by a
weighted path (or discarded when unreachable), exits are linked the same
way, and dead-end lattice tiles are pruned.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from ..core.constants import (DEFAULT_ROAD_PLANNING_PLAIN_COST, DEFAULT_SWAMP_COST, IMPASSABLE,
                              ROOM_DIMENSIONS)
from ..core.models import Coord
from ..utils.logger import get_logger
from .flood import flood_group
from .grid import ADJACENT_NEIGHBORS, CoordMap, get_range, new_coord_map, pack, pack_xy, unpack
from .pathfinder import PathGoal, Pathfinder


LOGGER = get_logger(__name__)

GRID_SIZE = 4
GRID_INSET = 1
MAX_GRID_GROUP_SIZE = 21
MAX_EXIT_GROUP_SIZE = 11
ANCHOR_RANGE = 3
PATH_COST_MULTIPLIER = 6


@dataclass
class RoadGrid:
    diagonal_coords: CoordMap
    weighted_diagonal_coords: CoordMap
    grid_coords: CoordMap
    by_planned_road: CoordMap

    @property
    def size(self) -> int:
        return sum(1 for value in self.grid_coords if value)


def on_diagonal(x: int, y: int, anchor: Coord, period: int) -> bool:
    rel_x = x - anchor[0]
    rel_y = y - anchor[1]
    return (rel_x - 3 * rel_y) % period == 0 or (rel_x + 3 * rel_y) % period == 0


class RoadGridBuilder:
    """Build the backbone for one planning session."""

    def __init__(
        self,
        terrain,
        terrain_coords: Sequence[int],
        base_coords: Sequence[int],
        by_exit_coords: Sequence[int],
        exits: Sequence[Coord],
        anchor: Coord,
        pathfinder: Pathfinder,
        swamp_cost: int = DEFAULT_SWAMP_COST,
        plain_cost: int = DEFAULT_ROAD_PLANNING_PLAIN_COST,
    ) -> None:
        self.terrain = terrain
        self.terrain_coords = terrain_coords
        self.base_coords = base_coords
        self.by_exit_coords = by_exit_coords
        self.exits = list(exits)
        self.anchor = anchor
        self.pathfinder = pathfinder
        self.swamp_cost = swamp_cost
        self.plain_cost = plain_cost

    def build(self) -> RoadGrid:
        diagonal, weighted = self.diagonal_infill()
        grid_coords = self.lattice()
        self.connect_groups(grid_coords, weighted)
        self.connect_exits(grid_coords, weighted)
        pruned = prune_grid(grid_coords, self.terrain_coords)
        by_planned_road = mark_by_planned_road(grid_coords, self.terrain_coords)
        LOGGER.debug("Road grid built with %s tiles after pruning %s", sum(1 for v in grid_coords if v), pruned)
        return RoadGrid(diagonal, weighted, grid_coords, by_planned_road)

    # ------------------------------------------------------------------
    # Patterns
    # ------------------------------------------------------------------
    def diagonal_infill(self):
        diagonal = new_coord_map()
        weighted = new_coord_map()
        for x in range(ROOM_DIMENSIONS):
            for y in range(ROOM_DIMENSIONS):
                index = pack_xy(x, y)
                if self.terrain_coords[index] == IMPASSABLE:
                    continue
                if not on_diagonal(x, y, self.anchor, GRID_SIZE // 2):
                    continue
                if self.terrain.is_swamp(x, y):
                    diagonal[index] = 3 * self.swamp_cost
                    weighted[index] = 8 * self.swamp_cost
                    continue
                diagonal[index] = 4
                weighted[index] = 8
        return diagonal, weighted

    def lattice(self) -> CoordMap:
        grid_coords = new_coord_map()
        for x in range(GRID_INSET, ROOM_DIMENSIONS - GRID_INSET):
            for y in range(GRID_INSET, ROOM_DIMENSIONS - GRID_INSET):
                index = pack_xy(x, y)
                if self.base_coords[index] == IMPASSABLE or self.by_exit_coords[index]:
                    continue
                if not on_diagonal(x, y, self.anchor, GRID_SIZE):
                    continue
                self._mark(grid_coords, (x, y))
        return grid_coords

    def _mark(self, grid_coords: CoordMap, coord: Coord) -> None:
        grid_coords[pack(coord)] = 2 * self.swamp_cost if self.terrain.is_swamp(*coord) else 2

    # ------------------------------------------------------------------
    # Connectivity
    # ------------------------------------------------------------------
    def connect_groups(self, grid_coords: CoordMap, weighted: CoordMap) -> None:
        visited = new_coord_map()
        groups: List[List[int]] = []
        for index, value in enumerate(grid_coords):
            if not value or visited[index]:
                continue
            groups.append(
                flood_group(
                    index,
                    lambda i: grid_coords[i] > 0 and on_diagonal(*unpack(i), self.anchor, GRID_SIZE),
                    visited,
                    MAX_GRID_GROUP_SIZE,
                )
            )

        groups.sort(key=lambda group: get_range(unpack(group[0]), self.anchor))
        discarded = 0
        for group in groups:
            path = self.pathfinder.find_path(
                unpack(group[0]),
                [PathGoal(self.anchor, ANCHOR_RANGE)],
                weight_maps=[weighted, grid_coords, self.base_coords],
                plain_cost=self.plain_cost * PATH_COST_MULTIPLIER,
                swamp_cost=self.swamp_cost * PATH_COST_MULTIPLIER,
            )
            if path is None:
                for index in group:
                    grid_coords[index] = 0
                discarded += 1
                continue
            for coord in path:
                self._mark(grid_coords, coord)
        if discarded:
            LOGGER.debug("Discarded %s unreachable grid groups", discarded)

    def connect_exits(self, grid_coords: CoordMap, weighted: CoordMap) -> None:
        exit_indexes = {pack(coord) for coord in self.exits}
        visited = new_coord_map()
        for coord in self.exits:
            index = pack(coord)
            if visited[index]:
                continue
            group = flood_group(index, lambda i: i in exit_indexes, visited, MAX_EXIT_GROUP_SIZE)
            path = self.pathfinder.find_path(
                unpack(group[0]),
                [PathGoal(self.anchor, ANCHOR_RANGE)],
                weight_maps=[weighted, grid_coords],
                plain_cost=self.plain_cost * PATH_COST_MULTIPLIER,
                swamp_cost=self.swamp_cost * PATH_COST_MULTIPLIER,
            )
            for step in path or ():
                if self.base_coords[pack(step)] == IMPASSABLE:
                    continue
                self._mark(grid_coords, step)


# ----------------------------------------------------------------------
# Pruning
# ----------------------------------------------------------------------
def prune_grid(grid_coords: CoordMap, terrain_coords: Sequence[int]) -> int:
    """Drop dead-end lattice tiles in one sweep; returns the number pruned."""

    pruned = 0
    for index in range(len(grid_coords)):
        if prune_tile(grid_coords, terrain_coords, index):
            pruned += 1
    return pruned


def prune_tile(grid_coords: CoordMap, terrain_coords: Sequence[int], index: int) -> bool:
    if not grid_coords[index]:
        return False

    grid_neighbors = 0
    served: List[int] = []
    for neighbor in ADJACENT_NEIGHBORS[index]:
        if grid_coords[neighbor]:
            grid_neighbors += 1
            continue
        if terrain_coords[neighbor] == IMPASSABLE:
            continue
        served.append(neighbor)

    if grid_neighbors > 1:
        return False

    if len(served) > 1:
        # Keep the tile when two or more served tiles have no other grid tile.
        without_alternative = 0
        for neighbor in served:
            alternatives = sum(1 for other in ADJACENT_NEIGHBORS[neighbor] if grid_coords[other])
            if alternatives > 1:
                continue
            without_alternative += 1
            if without_alternative > 1:
                return False

    grid_coords[index] = 0
    return True


def mark_by_planned_road(grid_coords: Sequence[int], terrain_coords: Sequence[int]) -> CoordMap:
    """Walkable non-grid tiles that touch the lattice."""

    by_planned_road = new_coord_map()
    for index, value in enumerate(grid_coords):
        if not value:
            continue
        for neighbor in ADJACENT_NEIGHBORS[index]:
            if grid_coords[neighbor] or terrain_coords[neighbor] == IMPASSABLE:
                continue
            by_planned_road[neighbor] = 1
    return by_planned_road
