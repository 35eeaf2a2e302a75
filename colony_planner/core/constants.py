"""Shared constants and enumerations for the colony planner."""

from __future__ import annotations

from enum import Enum
from typing import Dict, Tuple


ROOM_DIMENSIONS = 50
ROOM_AREA = ROOM_DIMENSIONS * ROOM_DIMENSIONS

# Reserved coord map value for impassable / occupied tiles.
IMPASSABLE = 255
MAX_FLOOD_DEPTH = 254


class Terrain(str, Enum):
    """Terrain classes reported by the host for each tile."""

    PLAIN = "PLAIN"
    WALL = "WALL"
    SWAMP = "SWAMP"


class StructureType(str, Enum):
    """Buildings a base plan may assign to a tile."""

    SPAWN = "spawn"
    EXTENSION = "extension"
    ROAD = "road"
    CONTAINER = "container"
    LINK = "link"
    STORAGE = "storage"
    TERMINAL = "terminal"
    FACTORY = "factory"
    LAB = "lab"
    TOWER = "tower"
    OBSERVER = "observer"
    NUKER = "nuker"
    POWER_SPAWN = "powerSpawn"
    EXTRACTOR = "extractor"


class StampType(str, Enum):
    """Catalog entries; also the keys of a plan's stamp anchor lists."""

    FAST_FILLER = "fastFiller"
    HUB = "hub"
    LABS = "labs"
    GRID_EXTENSION = "gridExtension"
    SOURCE_LINK = "sourceLink"
    SOURCE_EXTENSION = "sourceExtension"
    TOWER = "tower"
    OBSERVER = "observer"
    NUKER = "nuker"
    POWER_SPAWN = "powerSpawn"
    MIN_CUT_RAMPART = "minCutRampart"
    ONBOARDING_RAMPART = "onboardingRampart"
    SHIELD_RAMPART = "shieldRampart"


class Phase(str, Enum):
    """Planning session phases, in dependency order."""

    AVOID_SOURCES = "avoid_sources"
    FAST_FILLER = "fast_filler"
    GENERATE_GRID = "generate_grid"
    PRUNE_FAST_FILLER_ROADS = "prune_fast_filler_roads"
    CENTER_UPGRADE_POS = "center_upgrade_pos"
    PRE_HUB_SOURCES = "pre_hub_sources"
    HUB = "hub"
    MINERAL = "mineral"
    PRE_LAB_SOURCES = "pre_lab_sources"
    LABS = "labs"
    GRID_EXTENSIONS = "grid_extensions"
    GRID_EXTENSION_PATHS = "grid_extension_paths"
    NUKER = "nuker"
    POWER_SPAWN = "power_spawn"
    OBSERVER = "observer"
    PLAN_GRID_COORDS = "plan_grid_coords"
    PLAN_MINERAL_STRUCTURES = "plan_mineral_structures"
    PLAN_SOURCE_STRUCTURES = "plan_source_structures"
    MIN_CUT = "min_cut"
    TOWERS = "towers"
    GROUP_MIN_CUT = "group_min_cut"
    UNPROTECTED_COORDS = "unprotected_coords"
    ONBOARDING_RAMPARTS = "onboarding_ramparts"
    GENERAL_SHIELD = "general_shield"
    SCORE = "score"


PHASE_ORDER: Tuple[Phase, ...] = tuple(Phase)


class PlannerState(str, Enum):
    """Lifecycle of the per-room attempt orchestrator."""

    UNINITIALIZED = "UNINITIALIZED"
    SESSION_ACTIVE = "SESSION_ACTIVE"
    RECORDING = "RECORDING"
    COMPLETE = "COMPLETE"


CARDINAL_OFFSETS: Tuple[Tuple[int, int], ...] = ((0, -1), (1, 0), (0, 1), (-1, 0))
ADJACENT_OFFSETS: Tuple[Tuple[int, int], ...] = (
    (-1, -1),
    (0, -1),
    (1, -1),
    (1, 0),
    (1, 1),
    (0, 1),
    (-1, 1),
    (-1, 0),
)

# Structure counts allowed per controller level.
CONTROLLER_STRUCTURES: Dict[StructureType, Dict[int, int]] = {
    StructureType.SPAWN: {0: 0, 1: 1, 2: 1, 3: 1, 4: 1, 5: 1, 6: 1, 7: 2, 8: 3},
    StructureType.EXTENSION: {0: 0, 1: 0, 2: 5, 3: 10, 4: 20, 5: 30, 6: 40, 7: 50, 8: 60},
    StructureType.TOWER: {0: 0, 1: 0, 2: 0, 3: 1, 4: 1, 5: 2, 6: 2, 7: 3, 8: 6},
    StructureType.LINK: {0: 0, 1: 0, 2: 0, 3: 0, 4: 0, 5: 2, 6: 3, 7: 4, 8: 6},
    StructureType.LAB: {0: 0, 1: 0, 2: 0, 3: 0, 4: 0, 5: 0, 6: 3, 7: 6, 8: 10},
    StructureType.NUKER: {0: 0, 1: 0, 2: 0, 3: 0, 4: 0, 5: 0, 6: 0, 7: 0, 8: 1},
    StructureType.OBSERVER: {0: 0, 1: 0, 2: 0, 3: 0, 4: 0, 5: 0, 6: 0, 7: 0, 8: 1},
    StructureType.POWER_SPAWN: {0: 0, 1: 0, 2: 0, 3: 0, 4: 0, 5: 0, 6: 0, 7: 0, 8: 1},
}
MAX_CONTROLLER_LEVEL = 8

# Path and fortification tuning.
DEFAULT_ROAD_PLANNING_PLAIN_COST = 3
DEFAULT_SWAMP_COST = 5
DEFAULT_MIN_CUT_DEPTH = 7
MAX_RAMPART_GROUP_SIZE = 12
MIN_ONBOARDING_RAMPARTS = 2
UNPROTECTED_COORD_WEIGHT = DEFAULT_ROAD_PLANNING_PLAIN_COST * 2
DYNAMIC_DISTANCE_WEIGHT = 2
RAMPART_MIN_RCL = 4
