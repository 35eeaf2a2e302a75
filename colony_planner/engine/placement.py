"""Stamp placement engine.

Standard stamps search a distance transform of the occupied map for an
anchor with enough free space around it. Dynamic stamps search the exit
cost field cheapest-first and delegate the footprint check to a caller
predicate. Both refuse anchors too close to an exit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from ..core.constants import DYNAMIC_DISTANCE_WEIGHT, IMPASSABLE, StampType
from ..core.models import Coord, Stamp
from ..data.stamps import get_stamp
from ..utils.logger import get_logger
from .flood import (adjacent, cardinal, frontier_search, is_close_to_exit, unrestricted,
                    weighted_frontier_search)
from .grid import CoordMap, diagonal_distance_transform, distance_transform, pack, unpack


LOGGER = get_logger(__name__)

CoordPredicate = Callable[[Coord], bool]


@dataclass
class StampRequest:
    """Arguments for one :meth:`StampPlacer.plan_stamps` call."""

    stamp_type: StampType
    count: int
    start_coords: Sequence[Coord]
    commit: Callable[[Coord], None]
    dynamic: bool = False
    conditions: Optional[CoordPredicate] = None
    cost_map: Optional[Sequence[int]] = None
    min_avoid: int = IMPASSABLE
    cardinal_first: bool = False
    diagonal_transform: bool = False


@dataclass
class PlacementResult:
    stamp_type: StampType
    requested: int
    placed: List[Coord] = field(default_factory=list)

    @property
    def shortfall(self) -> int:
        return max(0, self.requested - len(self.placed))


class StampPlacer:
    """Find and commit stamp anchors against a session's grids.

    The placer reads the grids it is given by reference, so commits made
    by one placement are visible to the next.
    """

    def __init__(
        self,
        base_coords: CoordMap,
        road_coords: CoordMap,
        exit_distance: Sequence[int],
        stamp_anchors: Dict[StampType, List[Coord]],
        distance_weight: int = DYNAMIC_DISTANCE_WEIGHT,
    ) -> None:
        self.base_coords = base_coords
        self.road_coords = road_coords
        self.exit_distance = exit_distance
        self.stamp_anchors = stamp_anchors
        self.distance_weight = distance_weight

    # ------------------------------------------------------------------
    # Viability
    # ------------------------------------------------------------------
    def is_viable_anchor(self, stamp: Stamp, distance_coords: Sequence[int], index: int) -> bool:
        value = distance_coords[index]
        if value == 0 or value == IMPASSABLE:
            return False
        if value < stamp.size:
            return False
        return not is_close_to_exit(self.exit_distance, index, stamp.protection_offset + 1)

    def is_viable_dynamic_anchor(
        self,
        stamp: Stamp,
        index: int,
        conditions: Optional[CoordPredicate],
    ) -> bool:
        if self.base_coords[index] == IMPASSABLE:
            return False
        if self.road_coords[index] > 0:
            return False
        if is_close_to_exit(self.exit_distance, index, stamp.protection_offset + 2):
            return False
        return conditions is None or conditions(unpack(index))

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------
    def place(
        self,
        stamp: Stamp,
        start_coords: Sequence[Coord],
        cost_field: Sequence[int],
        validity: Optional[CoordPredicate] = None,
        dynamic: bool = False,
        cardinal_first: bool = False,
    ) -> Optional[Coord]:
        """Return the first viable anchor near the starts, or ``None``.

        For standard stamps ``cost_field`` is a distance transform; for
        dynamic stamps it is the cost map the weighted search minimises.
        """

        starts = [pack(coord) for coord in start_coords]
        if dynamic:
            strategies = [
                adjacent(lambda index: self.base_coords[index] != IMPASSABLE),
                unrestricted(),
            ]
            found = weighted_frontier_search(
                starts,
                cost_field,
                strategies,
                lambda index: self.is_viable_dynamic_anchor(stamp, index, validity),
                self.distance_weight,
            )
        else:
            def open_space(index: int) -> bool:
                return cost_field[index] != 0

            strategies = [adjacent(open_space), unrestricted()]
            if cardinal_first:
                strategies.insert(0, cardinal(open_space))

            def accept(index: int) -> bool:
                if not self.is_viable_anchor(stamp, cost_field, index):
                    return False
                return validity is None or validity(unpack(index))

            found = frontier_search(starts, strategies, accept)
        return unpack(found) if found is not None else None

    def plan_stamps(self, request: StampRequest) -> PlacementResult:
        """Place anchors until the requested count is met or none remain.

        Anchors already recorded for the stamp type count towards the
        request, so repeating a call after success places nothing.
        """

        stamp = get_stamp(request.stamp_type)
        anchors = self.stamp_anchors.setdefault(request.stamp_type, [])
        remaining = request.count - len(anchors)
        result = PlacementResult(request.stamp_type, max(remaining, 0))

        while remaining > 0:
            if request.dynamic:
                cost_field = request.cost_map if request.cost_map is not None else self.base_coords
                anchor = self.place(
                    stamp,
                    request.start_coords,
                    cost_field,
                    validity=request.conditions,
                    dynamic=True,
                )
            else:
                source_map = request.cost_map if request.cost_map is not None else self.base_coords
                transform = diagonal_distance_transform if request.diagonal_transform else distance_transform
                anchor = self.place(
                    stamp,
                    request.start_coords,
                    transform(source_map, request.min_avoid),
                    validity=request.conditions,
                    cardinal_first=request.cardinal_first,
                )
            if anchor is None:
                break

            request.commit(anchor)
            anchors.append(anchor)
            result.placed.append(anchor)
            remaining -= 1

        if remaining > 0:
            LOGGER.warning(
                "Placed %s of %s %s stamps",
                request.count - remaining,
                request.count,
                request.stamp_type.value,
            )
        else:
            LOGGER.debug("Placed %s %s stamps", len(result.placed), request.stamp_type.value)
        return result
