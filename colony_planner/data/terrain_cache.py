"""Process-lifetime cache of per-room terrain coord maps.

Terrain never changes, so the impassable map of a room is computed on
first request and reused by every planning session afterwards.
"""

from __future__ import annotations

from typing import Dict

from ..core.constants import IMPASSABLE, ROOM_DIMENSIONS
from ..engine.grid import new_coord_map, pack, pack_xy
from ..utils.logger import get_logger
from .rooms import RoomInput


LOGGER = get_logger(__name__)


class TerrainCache:
    """Hold one read-only terrain coord map per room name."""

    def __init__(self) -> None:
        self._terrain_coords: Dict[str, bytes] = {}

    def terrain_coords(self, room: RoomInput) -> bytes:
        """Return 255 for walls and movement-blocking objects, 0 elsewhere."""

        cached = self._terrain_coords.get(room.name)
        if cached is not None:
            return cached

        LOGGER.debug("Terrain cache miss: %s", room.name)
        coord_map = new_coord_map()
        for x in range(ROOM_DIMENSIONS):
            for y in range(ROOM_DIMENSIONS):
                if room.terrain.is_wall(x, y):
                    coord_map[pack_xy(x, y)] = IMPASSABLE
        for coord in room.objects:
            coord_map[pack(coord)] = IMPASSABLE

        frozen = bytes(coord_map)
        self._terrain_coords[room.name] = frozen
        return frozen

    def __contains__(self, room_name: str) -> bool:
        return room_name in self._terrain_coords

    def __len__(self) -> int:
        return len(self._terrain_coords)


DEFAULT_TERRAIN_CACHE = TerrainCache()
