"""Exposure weighting outside the perimeter cut and the ramparts it drives."""

from __future__ import annotations

from typing import AbstractSet, Iterable, List, Sequence, Tuple

from ..core.constants import (IMPASSABLE, MIN_ONBOARDING_RAMPARTS, RAMPART_MIN_RCL,
                              UNPROTECTED_COORD_WEIGHT)
from ..core.models import Coord
from ..utils.logger import get_logger
from .grid import ADJACENT_NEIGHBORS, CoordMap, coords_in_range, get_range, new_coord_map, pack, unpack
from .plans import RampartPlans


LOGGER = get_logger(__name__)

EXPOSURE_RANGE = 3
RANGED_ATTACK_RANGE = 2


def find_unprotected_coords(
    terrain_coords: Sequence[int],
    exits: Iterable[int],
    cut: AbstractSet[int],
    road_coords: Sequence[int],
    rampart_plans: RampartPlans,
    weight: int = UNPROTECTED_COORD_WEIGHT,
) -> CoordMap:
    """Severity map of tiles an intruder can reach or threaten.

    Tiles reachable from an exit without crossing the cut get 255. Tiles
    within range 3 of those get ``weight`` (one less on roads). Inside the
    cut, tiles within ranged attack range of a cut tile are weighted too,
    and those directly behind it receive threat-only ramparts.
    """

    unprotected = new_coord_map()
    visited = new_coord_map()
    generation: List[int] = []
    for index in exits:
        if visited[index]:
            continue
        visited[index] = 1
        unprotected[index] = IMPASSABLE
        generation.append(index)

    while generation:
        next_generation: List[int] = []
        for index in generation:
            for neighbor in ADJACENT_NEIGHBORS[index]:
                if visited[neighbor]:
                    continue
                visited[neighbor] = 1
                if terrain_coords[neighbor] == IMPASSABLE or neighbor in cut:
                    continue
                unprotected[neighbor] = IMPASSABLE
                next_generation.append(neighbor)
                _weigh_nearby(unprotected, terrain_coords, cut, road_coords, unpack(neighbor), weight)
        generation = next_generation

    for index in sorted(cut):
        cut_coord = unpack(index)
        for coord in coords_in_range(cut_coord, RANGED_ATTACK_RANGE):
            nearby = pack(coord)
            if terrain_coords[nearby] or nearby in cut or unprotected[nearby] == IMPASSABLE:
                continue
            if get_range(cut_coord, coord) == 1:
                rampart_plans.set(coord, RAMPART_MIN_RCL, build_for_threat=True)
            unprotected[nearby] = weight - 1 if road_coords[nearby] == 1 else weight
    return unprotected


def _weigh_nearby(
    unprotected: CoordMap,
    terrain_coords: Sequence[int],
    cut: AbstractSet[int],
    road_coords: Sequence[int],
    coord: Coord,
    weight: int,
) -> None:
    for nearby_coord in coords_in_range(coord, EXPOSURE_RANGE):
        nearby = pack(nearby_coord)
        if terrain_coords[nearby] or nearby in cut:
            continue
        value = weight - 1 if road_coords[nearby] == 1 else weight
        unprotected[nearby] = max(value, unprotected[nearby])


def split_onboarding_path(
    path: Sequence[Coord],
    skip: AbstractSet[int],
    always_count: int = MIN_ONBOARDING_RAMPARTS,
) -> List[Tuple[Coord, bool]]:
    """Order an onboarding path from the hub end and flag threat-only tiles.

    ``path`` runs from the cut towards the hub. The ``always_count`` tiles
    nearest the hub are always fortified; every other tile is returned
    with ``True`` meaning fortify only under threat. Tiles in ``skip``
    are left out.
    """

    ordered: List[Tuple[Coord, bool]] = []
    for coord in reversed(path):
        if pack(coord) in skip:
            continue
        ordered.append((coord, len(ordered) >= always_count))
    return ordered


def shield(
    unprotected: CoordMap,
    rampart_plans: RampartPlans,
    coord: Coord,
    covers_structure: bool = True,
) -> bool:
    """Point-fortify ``coord`` if it is directly reachable by an intruder."""

    index = pack(coord)
    if unprotected[index] != IMPASSABLE:
        return False
    rampart_plans.set(coord, RAMPART_MIN_RCL, covers_structure=covers_structure)
    unprotected[index] = 0
    return True
