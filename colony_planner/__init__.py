"""Base layout planner for an autonomous colony agent.

This package exposes the public API surface via:

- ``colony_planner.engine.planner.CommunePlanner``: budgeted plan attempts for one room.
- ``colony_planner.data.rooms``: room terrain model and the text room loader.
- ``colony_planner.io.memory``: writes a chosen plan into host storage.
"""

from .engine.budget import UnlimitedBudget, WallClockBudget
from .engine.planner import CommunePlanner, PlannerConfig
from .data.rooms import RoomInput, RoomTerrain, load_room, parse_room

__all__ = [
    "CommunePlanner",
    "PlannerConfig",
    "RoomInput",
    "RoomTerrain",
    "UnlimitedBudget",
    "WallClockBudget",
    "load_room",
    "parse_room",
]

__version__ = "0.1.0"
