"""One planning session: the mutable state behind a single plan attempt.

A session is built around one candidate start coordinate and advanced one
:class:`Phase` at a time. Each phase is memoised, so invoking a finished
phase again does nothing. Once every phase has run the session can be
frozen into a :class:`PlanAttempt` and dropped.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Set, Tuple

from ..core.codec import pack_coord, pack_coord_list, pack_stamp_anchors
from ..core.constants import (CARDINAL_OFFSETS, CONTROLLER_STRUCTURES, IMPASSABLE, MAX_CONTROLLER_LEVEL,
                              PHASE_ORDER, RAMPART_MIN_RCL, Phase, StampType, StructureType)
from ..core.exceptions import PlannerError, StampPlacementError
from ..core.models import Coord, PlanAttempt, ScoreInputs
from ..data.rooms import RoomInput
from ..data.stamps import get_stamp
from ..utils.logger import get_logger, room_logger
from .flood import adjacent, cardinal, exit_cost_field, exit_distance_field, flood_group, frontier_search
from .grid import (CoordMap, adjacent_coords, closest_coord, coords_in_range, coords_in_rect,
                   distance_transform, get_range, in_room, new_coord_map, pack, swamp_ratio, unpack)
from .min_cut import build_cut_costs, is_cut_sealed, min_cut_to_exit
from .pathfinder import PathGoal, Pathfinder
from .placement import StampPlacer, StampRequest
from .plans import BasePlans, RampartPlans
from .protection import find_unprotected_coords, shield, split_onboarding_path
from .road_grid import RoadGridBuilder
from .scorer import score_plan

if TYPE_CHECKING:
    from .planner import PlannerConfig


LOGGER = get_logger(__name__)

# Reserved road values: standing tiles and structures.
RESERVED = 20
ROAD = 1

FAST_FILLER_PRIORITY = 8


class PlanningSession:
    """Grids and partial plan for one candidate start."""

    def __init__(
        self,
        room: RoomInput,
        terrain_coords: bytes,
        start: Coord,
        config: "PlannerConfig",
        pathfinder: Optional[Pathfinder] = None,
    ) -> None:
        self.room = room
        self.start = start
        self.config = config
        self.terrain_coords = terrain_coords
        self.log = room_logger(LOGGER, room.name, start)
        self.pathfinder = pathfinder or Pathfinder(room.terrain, terrain_coords)

        self.base_coords = bytearray(terrain_coords)
        self.road_coords = bytearray(terrain_coords)
        self.rampart_coords = new_coord_map()
        self.by_planned_road = new_coord_map()
        self.by_exit_coords = new_coord_map()
        self.exit_indexes = [pack(coord) for coord in room.exits]
        self._record_exits()

        self.base_plans = BasePlans()
        self.rampart_plans = RampartPlans()
        self.stamp_anchors: Dict[StampType, List[Coord]] = {stamp_type: [] for stamp_type in StampType}
        self.warnings: List[str] = []

        self._exit_distance: Optional[CoordMap] = None
        self._exit_cost: Optional[CoordMap] = None
        self.placer = StampPlacer(
            self.base_coords,
            self.road_coords,
            self.exit_distance(),
            self.stamp_anchors,
            config.dynamic_distance_weight,
        )

        self.diagonal_coords: Optional[CoordMap] = None
        self.weighted_diagonal_coords: Optional[CoordMap] = None
        self.grid_coords: Optional[CoordMap] = None

        self.source_harvest_positions: List[List[Coord]] = []
        self.source_paths: List[List[Coord]] = []
        self.center_upgrade_pos: Optional[Coord] = None
        self.upgrade_path: List[Coord] = []
        self.mineral_harvest_positions: List[Coord] = []
        self.mineral_path: List[Coord] = []
        self.protected_interior: List[int] = []
        self.min_cut_coords: Set[int] = set()
        self.grouped_min_cut_coords: List[List[Coord]] = []
        self.unprotected_coords: Optional[CoordMap] = None
        self.cut_verified = True
        self.unprotected_sources = 0
        self.is_controller_protected = True
        self.score_inputs: Optional[ScoreInputs] = None
        self.score: Optional[float] = None

        self._hub_path: List[Coord] = []
        self._lab_layout: Optional[Tuple[Coord, List[Coord]]] = None
        self._completed: Set[Phase] = set()
        self._handlers: Dict[Phase, Callable[[], None]] = {
            Phase.AVOID_SOURCES: self._avoid_sources,
            Phase.FAST_FILLER: self._fast_filler,
            Phase.GENERATE_GRID: self._generate_grid,
            Phase.PRUNE_FAST_FILLER_ROADS: self._prune_fast_filler_roads,
            Phase.CENTER_UPGRADE_POS: self._center_upgrade_pos,
            Phase.PRE_HUB_SOURCES: self._pre_hub_sources,
            Phase.HUB: self._hub,
            Phase.MINERAL: self._mineral,
            Phase.PRE_LAB_SOURCES: self._pre_lab_sources,
            Phase.LABS: self._labs,
            Phase.GRID_EXTENSIONS: self._grid_extensions,
            Phase.GRID_EXTENSION_PATHS: self._grid_extension_paths,
            Phase.NUKER: self._nuker,
            Phase.POWER_SPAWN: self._power_spawn,
            Phase.OBSERVER: self._observer,
            Phase.PLAN_GRID_COORDS: self._plan_grid_coords,
            Phase.PLAN_MINERAL_STRUCTURES: self._plan_mineral_structures,
            Phase.PLAN_SOURCE_STRUCTURES: self._plan_source_structures,
            Phase.MIN_CUT: self._min_cut,
            Phase.TOWERS: self._towers,
            Phase.GROUP_MIN_CUT: self._group_min_cut,
            Phase.UNPROTECTED_COORDS: self._unprotected_coords,
            Phase.ONBOARDING_RAMPARTS: self._onboarding_ramparts,
            Phase.GENERAL_SHIELD: self._general_shield,
            Phase.SCORE: self._score,
        }

    # ------------------------------------------------------------------
    # Phase dispatch
    # ------------------------------------------------------------------
    @property
    def next_phase(self) -> Optional[Phase]:
        for phase in PHASE_ORDER:
            if phase not in self._completed:
                return phase
        return None

    @property
    def finished(self) -> bool:
        return self.next_phase is None

    def is_complete(self, phase: Phase) -> bool:
        return phase in self._completed

    def run_next_phase(self) -> Optional[Phase]:
        """Run the next unfinished phase and return it, or ``None`` if done."""
        phase = self.next_phase
        if phase is None:
            return None
        self.run_phase(phase)
        return phase

    def run_phase(self, phase: Phase) -> bool:
        """Run ``phase`` unless it already ran; returns whether work was done."""
        if phase in self._completed:
            return False
        pending = [earlier for earlier in PHASE_ORDER[: PHASE_ORDER.index(phase)] if earlier not in self._completed]
        if pending:
            raise ValueError(f"Phase {phase.value} requires {pending[0].value} first")
        self.log.debug("Running phase %s", phase.value)
        self._handlers[phase]()
        self._completed.add(phase)
        return True

    def run_all(self) -> None:
        while self.run_next_phase() is not None:
            pass

    # ------------------------------------------------------------------
    # Cached fields
    # ------------------------------------------------------------------
    def exit_distance(self) -> CoordMap:
        if self._exit_distance is None:
            self._exit_distance = exit_distance_field(self.terrain_coords, self.exit_indexes)
        return self._exit_distance

    def exit_cost_field(self) -> CoordMap:
        if self._exit_cost is None:
            self._exit_cost = exit_cost_field(self.exit_distance())
        return self._exit_cost

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _record_exits(self) -> None:
        for index in self.exit_indexes:
            for coord in coords_in_range(unpack(index), 1):
                nearby = pack(coord)
                if self.terrain_coords[nearby] == IMPASSABLE:
                    continue
                self.by_exit_coords[nearby] = IMPASSABLE
                self.base_coords[nearby] = IMPASSABLE

    def _warn(self, message: str) -> None:
        self.log.warning("%s", message)
        self.warnings.append(message)

    def anchor(self, stamp_type: StampType) -> Coord:
        return self.stamp_anchors[stamp_type][0]

    def _find_path(
        self,
        origin: Coord,
        goal: Coord,
        goal_range: int,
        weight_maps=(),
        cost_multiplier: int = 1,
    ) -> Optional[List[Coord]]:
        return self.pathfinder.find_path(
            origin,
            [PathGoal(goal, goal_range)],
            weight_maps=weight_maps,
            plain_cost=self.config.road_plain_cost * cost_multiplier,
            swamp_cost=self.config.swamp_cost * cost_multiplier,
        )

    def _road_weights(self):
        return [self.diagonal_coords, self.grid_coords, self.road_coords]

    def _mark_structure(self, coord: Coord, structure_type: StructureType, priority: int) -> None:
        self.base_plans.set(coord, structure_type, priority)
        index = pack(coord)
        self.base_coords[index] = IMPASSABLE
        self.road_coords[index] = IMPASSABLE

    def _mark_road(self, coord: Coord, priority: int) -> None:
        self.base_plans.set(coord, StructureType.ROAD, priority)
        self.road_coords[pack(coord)] = ROAD

    def _reserve(self, coord: Coord, base_value: int = IMPASSABLE) -> None:
        index = pack(coord)
        self.road_coords[index] = RESERVED
        self.base_coords[index] = base_value

    def _beside_planned_road(self, coord: Coord) -> bool:
        index = pack(coord)
        return self.base_coords[index] != IMPASSABLE and self.by_planned_road[index] == 1

    def _off_grid(self, coord: Coord) -> bool:
        index = pack(coord)
        return self.base_coords[index] != IMPASSABLE and self.grid_coords[index] == 0

    def _plan_singles(
        self,
        stamp_type: StampType,
        structure_type: StructureType,
        count: int,
        priority: int,
        conditions: Callable[[Coord], bool],
    ) -> None:
        result = self.placer.plan_stamps(
            StampRequest(
                stamp_type=stamp_type,
                count=count,
                start_coords=[self.anchor(StampType.HUB)],
                commit=lambda anchor: self._mark_structure(anchor, structure_type, priority),
                dynamic=True,
                conditions=conditions,
                cost_map=self.exit_cost_field(),
            )
        )
        if result.shortfall:
            self._warn(f"{stamp_type.value}: placed {len(result.placed)} of {result.requested}")

    # ------------------------------------------------------------------
    # Sources and fast filler
    # ------------------------------------------------------------------
    def _avoid_sources(self) -> None:
        for source in self.room.sources:
            positions = []
            for coord in adjacent_coords(source):
                index = pack(coord)
                if self.terrain_coords[index] == IMPASSABLE:
                    continue
                self.base_coords[index] = IMPASSABLE
                positions.append(coord)
            self.source_harvest_positions.append(positions)

    def _fast_filler(self) -> None:
        for coord in coords_in_range(self.room.controller, 2):
            self.base_coords[pack(coord)] = IMPASSABLE

        self.placer.plan_stamps(
            StampRequest(
                stamp_type=StampType.FAST_FILLER,
                count=1,
                start_coords=[self.start],
                commit=self._commit_fast_filler,
                cardinal_first=True,
            )
        )
        if not self.stamp_anchors[StampType.FAST_FILLER]:
            raise StampPlacementError(f"No fast filler anchor from start {self.start}")

    def _commit_fast_filler(self, anchor: Coord) -> None:
        for structure_type, coord in get_stamp(StampType.FAST_FILLER).placements(anchor):
            if structure_type == StructureType.ROAD:
                self._mark_road(coord, FAST_FILLER_PRIORITY)
                continue
            self._mark_structure(coord, structure_type, FAST_FILLER_PRIORITY)

        # Harvest tiles and the controller surroundings were only held back
        # for the fast filler search.
        for positions in self.source_harvest_positions:
            for coord in positions:
                self.base_coords[pack(coord)] = 0
        for coord in coords_in_range(self.room.controller, 2):
            index = pack(coord)
            self.base_coords[index] = self.terrain_coords[index]

    def _generate_grid(self) -> None:
        ff_x, ff_y = self.anchor(StampType.FAST_FILLER)
        road_grid = RoadGridBuilder(
            self.room.terrain,
            self.terrain_coords,
            self.base_coords,
            self.by_exit_coords,
            self.room.exits,
            (ff_x, ff_y - 1),
            self.pathfinder,
            swamp_cost=self.config.swamp_cost,
            plain_cost=self.config.road_plain_cost,
        ).build()
        self.diagonal_coords = road_grid.diagonal_coords
        self.weighted_diagonal_coords = road_grid.weighted_diagonal_coords
        self.grid_coords = road_grid.grid_coords
        for index, value in enumerate(road_grid.by_planned_road):
            if value:
                self.by_planned_road[index] = 1

    def _prune_fast_filler_roads(self) -> None:
        ff_x, ff_y = self.anchor(StampType.FAST_FILLER)
        offset = get_stamp(StampType.FAST_FILLER).offset
        for coord in coords_in_rect(ff_x - offset, ff_y - offset, ff_x + offset, ff_y + offset):
            index = pack(coord)
            if self.road_coords[index] != ROAD:
                continue
            if self._redundant_fast_filler_road(coord):
                self.road_coords[index] = 0
                self.base_plans.remove_road(coord)
                continue
            self._mark_road(coord, 3)
            self.by_planned_road[index] = 0

    def _redundant_fast_filler_road(self, coord: Coord) -> bool:
        beside_spawn = False
        for nearby in adjacent_coords(coord):
            index = pack(nearby)
            if self.terrain_coords[index] == IMPASSABLE:
                continue
            if self.road_coords[index] != ROAD and self.grid_coords[index] == 0:
                self.by_planned_road[index] = 1
            if self.base_plans.structure_at(nearby) == StructureType.SPAWN:
                beside_spawn = True
        if beside_spawn:
            return False

        x, y = coord
        cardinal_roads = 0
        for dx, dy in CARDINAL_OFFSETS:
            if not in_room(x + dx, y + dy):
                continue
            index = pack((x + dx, y + dy))
            if self.road_coords[index] == ROAD or self.grid_coords[index] > 0:
                cardinal_roads += 1
        return cardinal_roads >= 3

    # ------------------------------------------------------------------
    # Upgrade position, source paths and hub
    # ------------------------------------------------------------------
    def _center_upgrade_pos(self) -> None:
        cx, cy = self.room.controller
        open_space = distance_transform(self.road_coords, 1, (cx - 2, cy - 2, cx + 2, cy + 2))
        found = frontier_search(
            [pack(self.anchor(StampType.FAST_FILLER))],
            [cardinal(), adjacent()],
            lambda index: open_space[index] >= 2,
        )
        if found is None:
            raise StampPlacementError(f"No upgrade position around controller {self.room.controller}")

        position = unpack(found)
        self.center_upgrade_pos = position
        self._reserve(position)
        self.base_plans.set(position, StructureType.CONTAINER, 2)

        path = self._find_path(
            position,
            self.anchor(StampType.FAST_FILLER),
            3,
            self._road_weights(),
            cost_multiplier=2,
        )
        for coord in adjacent_coords(position):
            if self.terrain_coords[pack(coord)] == IMPASSABLE:
                continue
            self._reserve(coord)
        self.upgrade_path = path or []
        for coord in self.upgrade_path:
            self._mark_road(coord, 3)

    def _pre_hub_sources(self) -> None:
        fast_filler = self.anchor(StampType.FAST_FILLER)

        def path_length(coord: Coord) -> float:
            path = self._find_path(coord, fast_filler, 3, [self.grid_coords, self.road_coords])
            return len(path) if path is not None else math.inf

        for source_index, positions in enumerate(self.source_harvest_positions):
            positions[:] = [coord for coord in positions if self.base_coords[pack(coord)] != IMPASSABLE]
            if not positions:
                self._warn(f"Source {source_index} has no harvest positions")
                self.source_paths.append([])
                continue

            positions.sort(key=path_length)
            harvest_position = positions[0]
            self.base_plans.set(harvest_position, StructureType.CONTAINER, 3)
            self._reserve(harvest_position, RESERVED)

            path = self._find_path(harvest_position, fast_filler, 3, self._road_weights(), cost_multiplier=2)
            if path is None:
                self._warn(f"Source {source_index} cannot reach the fast filler")
                path = []
            self.source_paths.append(path)
            for coord in path:
                self._mark_road(coord, 3)

    def _closest_source(self, goal: Coord) -> Coord:
        best: Optional[Coord] = None
        best_length = math.inf
        for source in self.room.sources:
            path = self._find_path(source, goal, 3)
            length = len(path) if path is not None else math.inf
            if best is None or length < best_length:
                best = source
                best_length = length
        return best

    def _hub(self) -> None:
        fast_filler = self.anchor(StampType.FAST_FILLER)
        if get_range(fast_filler, self.center_upgrade_pos) >= 10:
            origin = self.center_upgrade_pos
        else:
            origin = self._closest_source(fast_filler)

        path = self._find_path(origin, fast_filler, 3, [self.road_coords])
        self._hub_path = path or []
        start = self._hub_path[-1] if self._hub_path else origin

        self.placer.plan_stamps(
            StampRequest(
                stamp_type=StampType.HUB,
                count=1,
                start_coords=[start],
                commit=self._commit_hub,
                dynamic=True,
                conditions=self._hub_conditions,
                cost_map=self.exit_cost_field(),
            )
        )
        if not self.stamp_anchors[StampType.HUB]:
            raise StampPlacementError(f"No hub anchor for start {self.start}")

    def _hub_conditions(self, coord: Coord) -> bool:
        """Off the lattice, with four free cardinal tiles that each touch it."""
        if self.grid_coords[pack(coord)] > 0:
            return False
        x, y = coord
        for dx, dy in CARDINAL_OFFSETS:
            if not in_room(x + dx, y + dy):
                return False
            index = pack((x + dx, y + dy))
            if self.by_planned_road[index] != 1:
                return False
            if self.base_coords[index] == IMPASSABLE or self.road_coords[index] != 0:
                return False
        return True

    def _commit_hub(self, anchor: Coord) -> None:
        self._reserve(anchor)
        ax, ay = anchor
        structure_coords = [(ax + dx, ay + dy) for dx, dy in CARDINAL_OFFSETS]

        storage, index = self._storage_coord(structure_coords)
        structure_coords.pop(index)
        self._mark_structure(storage, StructureType.STORAGE, 4)

        if storage[1] == ay:
            terminal = (2 * ax - storage[0], storage[1])
        else:
            terminal = (storage[0], 2 * ay - storage[1])
        structure_coords.remove(terminal)
        self._mark_structure(terminal, StructureType.TERMINAL, 6)

        link, index = closest_coord(self.room.controller, structure_coords)
        structure_coords.pop(index)
        self._mark_structure(link, StructureType.LINK, 5)

        self._mark_structure(structure_coords[0], StructureType.FACTORY, 7)

        for coord in self._hub_path:
            if self.base_coords[pack(coord)] == IMPASSABLE:
                continue
            self._mark_road(coord, 3)

    def _storage_coord(self, coords: List[Coord]) -> Tuple[Coord, int]:
        for index, coord in enumerate(coords):
            for positions in self.source_harvest_positions:
                if positions and get_range(coord, positions[0]) <= 1:
                    return coord, index
            if get_range(coord, self.center_upgrade_pos) <= 1:
                return coord, index
        return closest_coord(self.anchor(StampType.FAST_FILLER), coords)

    # ------------------------------------------------------------------
    # Mineral, source structures and labs
    # ------------------------------------------------------------------
    def _mineral(self) -> None:
        mineral = self.room.mineral
        path = self._find_path(mineral, self.anchor(StampType.HUB), 1, self._road_weights(), cost_multiplier=2)
        if not path:
            self._warn("Mineral cannot reach the hub")
            return

        harvest_position, rest = path[0], path[1:]
        positions = [harvest_position]
        if rest:
            for coord in adjacent_coords(mineral):
                if coord == harvest_position or self.base_coords[pack(coord)] == IMPASSABLE:
                    continue
                if get_range(rest[0], coord) > 1:
                    continue
                positions.append(coord)

        for coord in positions:
            self._reserve(coord)
        for coord in rest:
            self._mark_road(coord, 6)
        self.mineral_harvest_positions = positions
        self.mineral_path = rest

    def _pre_lab_sources(self) -> None:
        hub = self.anchor(StampType.HUB)
        for source_index, positions in enumerate(self.source_harvest_positions):
            if not positions:
                continue
            candidates = []
            for coord in adjacent_coords(positions[0]):
                index = pack(coord)
                if self.base_coords[index] == IMPASSABLE or self.road_coords[index] > 0:
                    continue
                candidates.append(coord)
            if not candidates:
                self._warn(f"Source {source_index} has no room for a link")
                continue

            link, index = closest_coord(hub, candidates)
            candidates.pop(index)
            for coord in [link, *candidates]:
                index = pack(coord)
                self.base_coords[index] = IMPASSABLE
                self.road_coords[index] = IMPASSABLE
            self.stamp_anchors[StampType.SOURCE_LINK].append(link)
            self.stamp_anchors[StampType.SOURCE_EXTENSION].extend(candidates)

    def _labs(self) -> None:
        result = self.placer.plan_stamps(
            StampRequest(
                stamp_type=StampType.LABS,
                count=1,
                start_coords=[self.anchor(StampType.HUB)],
                commit=self._commit_labs,
                dynamic=True,
                conditions=self._lab_conditions,
                cost_map=self.exit_cost_field(),
            )
        )
        if result.shortfall:
            self._warn("No space for labs")

    def _lab_tile(self, coord: Coord) -> bool:
        index = pack(coord)
        return (
            self.by_planned_road[index] == 1
            and self.base_coords[index] != IMPASSABLE
            and self.road_coords[index] == 0
        )

    def _lab_conditions(self, first_input: Coord) -> bool:
        """Two inputs with eight outputs in range 2 of both."""
        if not self._lab_tile(first_input):
            return False

        around_first = {coord for coord in coords_in_range(first_input, 2) if self._lab_tile(coord)}
        for second_input in coords_in_range(first_input, 2):
            if second_input == first_input or second_input not in around_first:
                continue
            outputs = [
                coord
                for coord in coords_in_range(second_input, 2)
                if coord not in (first_input, second_input) and coord in around_first
            ]
            if len(outputs) >= 8:
                self._lab_layout = (second_input, outputs[:8])
                return True
        return False

    def _commit_labs(self, first_input: Coord) -> None:
        second_input, outputs = self._lab_layout
        self._mark_structure(first_input, StructureType.LAB, 6)
        self._mark_structure(second_input, StructureType.LAB, 6)
        for coord in outputs:
            self._mark_structure(coord, StructureType.LAB, 8)

    # ------------------------------------------------------------------
    # Extensions and singletons
    # ------------------------------------------------------------------
    def _grid_extensions(self) -> None:
        count = (
            CONTROLLER_STRUCTURES[StructureType.EXTENSION][MAX_CONTROLLER_LEVEL]
            - get_stamp(StampType.FAST_FILLER).count(StructureType.EXTENSION)
            - len(self.stamp_anchors[StampType.SOURCE_EXTENSION])
        )
        self._plan_singles(
            StampType.GRID_EXTENSION, StructureType.EXTENSION, count, 8, self._beside_planned_road
        )

    def _grid_extension_paths(self) -> None:
        hub = self.anchor(StampType.HUB)
        extensions = self.stamp_anchors[StampType.GRID_EXTENSION]
        for index in range(len(extensions) - 1, -1, -5):
            path = self._find_path(extensions[index], hub, 2, self._road_weights(), cost_multiplier=2)
            for coord in path or ():
                self._mark_road(coord, 3)

    def _nuker(self) -> None:
        self._plan_singles(StampType.NUKER, StructureType.NUKER, 1, 8, self._beside_planned_road)

    def _power_spawn(self) -> None:
        self._plan_singles(StampType.POWER_SPAWN, StructureType.POWER_SPAWN, 1, 8, self._beside_planned_road)

    def _observer(self) -> None:
        self._plan_singles(StampType.OBSERVER, StructureType.OBSERVER, 1, 8, self._off_grid)

    def _plan_grid_coords(self) -> None:
        for index, value in enumerate(self.grid_coords):
            if not value or self.road_coords[index] == ROAD or self.base_coords[index] == IMPASSABLE:
                continue
            coord = unpack(index)
            if any(self.base_plans.structure_at(nearby) is not None for nearby in adjacent_coords(coord)):
                self._mark_road(coord, 3)

    def _plan_mineral_structures(self) -> None:
        self.base_plans.set(self.room.mineral, StructureType.EXTRACTOR, 6)
        if self.mineral_harvest_positions:
            self.base_plans.set(self.mineral_harvest_positions[0], StructureType.CONTAINER, 6)

    def _plan_source_structures(self) -> None:
        for coord in self.stamp_anchors[StampType.SOURCE_LINK]:
            self.base_plans.set(coord, StructureType.LINK, 6)
        for coord in self.stamp_anchors[StampType.SOURCE_EXTENSION]:
            self.base_plans.set(coord, StructureType.EXTENSION, 7)

    # ------------------------------------------------------------------
    # Fortification
    # ------------------------------------------------------------------
    def _protection_coords(self) -> Set[int]:
        protection: Set[int] = set()
        for stamp_type, anchors in self.stamp_anchors.items():
            radius = get_stamp(stamp_type).protection_offset
            for anchor in anchors:
                for coord in coords_in_range(anchor, radius):
                    index = pack(coord)
                    if self.terrain_coords[index] == IMPASSABLE or self.by_exit_coords[index]:
                        continue
                    protection.add(index)

        path = self._find_path(
            self.anchor(StampType.HUB),
            self.anchor(StampType.FAST_FILLER),
            3,
            self._road_weights(),
            cost_multiplier=2,
        )
        for step in path or ():
            for coord in coords_in_range(step, 3):
                index = pack(coord)
                if self.terrain_coords[index] == IMPASSABLE or self.by_exit_coords[index]:
                    continue
                protection.add(index)
        return protection

    def _min_cut(self) -> None:
        protection = self._protection_coords()
        start = pack(self.anchor(StampType.FAST_FILLER))
        protection.add(start)
        self.protected_interior = flood_group(start, lambda index: index in protection, new_coord_map())

        costs = build_cut_costs(self.terrain_coords, self.protected_interior, self.config.min_cut_depth)
        cut = min_cut_to_exit(self.protected_interior, costs, self.exit_indexes)
        self.cut_verified = is_cut_sealed(self.protected_interior, cut, self.exit_indexes, self.terrain_coords)
        if not self.cut_verified:
            self._warn(f"Perimeter cut of {len(cut)} tiles does not seal the interior")

        self.min_cut_coords = set(cut)
        for index in sorted(cut):
            coord = unpack(index)
            self.rampart_coords[index] = 1
            self.stamp_anchors[StampType.MIN_CUT_RAMPART].append(coord)
            covers = self.base_plans.structure_at(coord) is not None
            if not covers:
                self.base_plans.set(coord, StructureType.ROAD, RAMPART_MIN_RCL)
            self.rampart_plans.set(coord, RAMPART_MIN_RCL, covers_structure=covers)

    def _towers(self) -> None:
        self._plan_singles(
            StampType.TOWER,
            StructureType.TOWER,
            CONTROLLER_STRUCTURES[StructureType.TOWER][MAX_CONTROLLER_LEVEL],
            3,
            self._beside_planned_road,
        )

    def _group_min_cut(self) -> None:
        visited = new_coord_map()
        for index in sorted(self.min_cut_coords):
            if visited[index]:
                continue
            group = flood_group(
                index,
                lambda other: other in self.min_cut_coords,
                visited,
                self.config.max_rampart_group_size,
            )
            self.grouped_min_cut_coords.append([unpack(member) for member in group])

    def _unprotected_coords(self) -> None:
        self.unprotected_coords = find_unprotected_coords(
            self.terrain_coords,
            self.exit_indexes,
            self.min_cut_coords,
            self.road_coords,
            self.rampart_plans,
            self.config.unprotected_weight,
        )

    def _onboarding_ramparts(self) -> None:
        hub = self.anchor(StampType.HUB)
        onboarding: Set[int] = set()
        weights = [self.diagonal_coords, self.road_coords, self.unprotected_coords, self.rampart_coords]

        for group in self.grouped_min_cut_coords:
            closest, _ = closest_coord(hub, group)
            path = self._find_path(closest, hub, 2, weights)
            if path is None:
                self._warn(f"Rampart group at {closest} cannot reach the hub")
                continue

            skip = self.min_cut_coords | onboarding
            for coord, for_threat in split_onboarding_path(path, skip, self.config.min_onboarding_ramparts):
                index = pack(coord)
                covers = self.base_plans.structure_at(coord) is not None
                if not covers:
                    self._mark_road(coord, RAMPART_MIN_RCL)
                self.rampart_coords[index] = 1
                self.rampart_plans.set(
                    coord, RAMPART_MIN_RCL, covers_structure=covers, build_for_threat=for_threat
                )
                onboarding.add(index)

        self.stamp_anchors[StampType.ONBOARDING_RAMPART].extend(unpack(index) for index in sorted(onboarding))

    def _shield(self, coord: Coord, covers_structure: bool = True) -> None:
        if shield(self.unprotected_coords, self.rampart_plans, coord, covers_structure):
            self.stamp_anchors[StampType.SHIELD_RAMPART].append(coord)

    def _general_shield(self) -> None:
        for coord in self.stamp_anchors[StampType.SOURCE_EXTENSION]:
            self._shield(coord)
        for coord in self.stamp_anchors[StampType.SOURCE_LINK]:
            self._shield(coord)

        for positions in self.source_harvest_positions:
            if not positions:
                continue
            if self.unprotected_coords[pack(positions[0])] == IMPASSABLE:
                self.unprotected_sources += 1
            self._shield(positions[0])

        self._shield(self.center_upgrade_pos)

        for coord in adjacent_coords(self.room.controller):
            index = pack(coord)
            if self.terrain_coords[index] == IMPASSABLE:
                continue
            if self.unprotected_coords[index] != IMPASSABLE:
                continue
            self.is_controller_protected = False
            self._shield(coord, covers_structure=False)

    # ------------------------------------------------------------------
    # Scoring and recording
    # ------------------------------------------------------------------
    def _score(self) -> None:
        self.score_inputs = ScoreInputs(
            swamp_ratio=swamp_ratio(self.room.terrain),
            harvest_path_lengths=[len(path) for path in self.source_paths],
            harvest_position_counts=[len(positions) for positions in self.source_harvest_positions],
            unprotected_sources=self.unprotected_sources,
            upgrade_path_length=len(self.upgrade_path),
            mineral_path_length=len(self.mineral_path),
            cut_tiles=len(self.stamp_anchors[StampType.MIN_CUT_RAMPART]),
            shield_tiles=len(self.stamp_anchors[StampType.SHIELD_RAMPART]),
            onboarding_tiles=len(self.stamp_anchors[StampType.ONBOARDING_RAMPART]),
            hub_upgrade_range=get_range(self.anchor(StampType.HUB), self.center_upgrade_pos),
            controller_protected=self.is_controller_protected,
            cut_verified=self.cut_verified,
        )
        self.score = score_plan(self.score_inputs, self.config.score_weights)
        self.log.info("Session scored %.2f", self.score)

    def to_attempt(self) -> PlanAttempt:
        if not self.finished:
            raise PlannerError(f"Session {self.start} cannot be recorded before {self.next_phase.value}")
        return PlanAttempt(
            start=self.start,
            score=self.score,
            base_plans=self.base_plans.pack(),
            rampart_plans=self.rampart_plans.pack(),
            stamp_anchors=pack_stamp_anchors(self.stamp_anchors),
            source_harvest_positions=tuple(pack_coord_list(p) for p in self.source_harvest_positions),
            source_paths=tuple(pack_coord_list(path) for path in self.source_paths),
            mineral_harvest_positions=pack_coord_list(self.mineral_harvest_positions),
            mineral_path=pack_coord_list(self.mineral_path),
            center_upgrade_pos=pack_coord(self.center_upgrade_pos),
            upgrade_path=pack_coord_list(self.upgrade_path),
            cut_verified=self.cut_verified,
            warnings=tuple(self.warnings),
        )
