"""Packed 50x50 coordinate maps and the geometry helpers built on them.

A coord map is a ``bytearray`` of ``ROOM_AREA`` cells indexed by
``x * ROOM_DIMENSIONS + y``. Many maps are overlaid during a planning
session; ``IMPASSABLE`` (255) always means blocked or occupied.
"""

from __future__ import annotations

from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np
from scipy import ndimage

from ..core.constants import (ADJACENT_OFFSETS, CARDINAL_OFFSETS, IMPASSABLE, ROOM_AREA,
                              ROOM_DIMENSIONS, Terrain)
from ..core.models import Coord


CoordMap = bytearray
Rect = Tuple[int, int, int, int]


def pack_xy(x: int, y: int) -> int:
    return x * ROOM_DIMENSIONS + y


def pack(coord: Coord) -> int:
    return coord[0] * ROOM_DIMENSIONS + coord[1]


def unpack(index: int) -> Coord:
    return divmod(index, ROOM_DIMENSIONS)


def in_room(x: int, y: int) -> bool:
    return 0 <= x < ROOM_DIMENSIONS and 0 <= y < ROOM_DIMENSIONS


def is_border(x: int, y: int) -> bool:
    return x in (0, ROOM_DIMENSIONS - 1) or y in (0, ROOM_DIMENSIONS - 1)


def new_coord_map(fill: int = 0) -> CoordMap:
    return bytearray([fill]) * ROOM_AREA


def get_range(a: Coord, b: Coord) -> int:
    """Chebyshev distance, the movement range between two tiles."""
    return max(abs(a[0] - b[0]), abs(a[1] - b[1]))


def coords_in_rect(x1: int, y1: int, x2: int, y2: int) -> List[Coord]:
    """Coords inside the inclusive rectangle, clipped to the room."""
    x1, y1 = max(x1, 0), max(y1, 0)
    x2, y2 = min(x2, ROOM_DIMENSIONS - 1), min(y2, ROOM_DIMENSIONS - 1)
    return [(x, y) for x in range(x1, x2 + 1) for y in range(y1, y2 + 1)]


def coords_in_range(coord: Coord, radius: int) -> List[Coord]:
    x, y = coord
    return coords_in_rect(x - radius, y - radius, x + radius, y + radius)


def adjacent_coords(coord: Coord) -> List[Coord]:
    x, y = coord
    return [(x + dx, y + dy) for dx, dy in ADJACENT_OFFSETS if in_room(x + dx, y + dy)]


def cardinal_coords(coord: Coord) -> List[Coord]:
    x, y = coord
    return [(x + dx, y + dy) for dx, dy in CARDINAL_OFFSETS if in_room(x + dx, y + dy)]


def closest_coord(target: Coord, coords: Sequence[Coord]) -> Tuple[Coord, int]:
    """Return the coord nearest ``target`` and its index; first wins ties."""
    best_index = 0
    best_range = None
    for index, coord in enumerate(coords):
        distance = get_range(target, coord)
        if best_range is None or distance < best_range:
            best_range = distance
            best_index = index
    return coords[best_index], best_index


def _neighbor_table(offsets: Sequence[Tuple[int, int]]) -> Tuple[Tuple[int, ...], ...]:
    table = []
    for index in range(ROOM_AREA):
        x, y = unpack(index)
        table.append(
            tuple(pack_xy(x + dx, y + dy) for dx, dy in offsets if in_room(x + dx, y + dy))
        )
    return tuple(table)


# Precomputed packed neighbours for every index.
CARDINAL_NEIGHBORS = _neighbor_table(CARDINAL_OFFSETS)
ADJACENT_NEIGHBORS = _neighbor_table(ADJACENT_OFFSETS)


# ----------------------------------------------------------------------
# Distance transforms
# ----------------------------------------------------------------------
def distance_transform(
    coord_map: Sequence[int],
    min_avoid: int = IMPASSABLE,
    rect: Optional[Rect] = None,
) -> CoordMap:
    """Chebyshev distance from every tile to the nearest obstacle.

    Tiles whose value is ``>= min_avoid`` are obstacles and score 0; tiles
    off the room edge count as obstacles too. Only tiles inside ``rect``
    (inclusive ``x1, y1, x2, y2``) are computed, and only obstacles within
    one tile of it are seen. The rest of the result is 0.
    """

    return _chamfer_transform(coord_map, min_avoid, rect, "chessboard")


def diagonal_distance_transform(
    coord_map: Sequence[int],
    min_avoid: int = IMPASSABLE,
    rect: Optional[Rect] = None,
) -> CoordMap:
    """Manhattan variant of :func:`distance_transform` (cardinal steps only)."""

    return _chamfer_transform(coord_map, min_avoid, rect, "taxicab")


def coord_map_array(coord_map: Sequence[int]) -> np.ndarray:
    """View a coord map as a ``[x, y]`` indexed 50x50 array."""
    return np.frombuffer(bytes(coord_map), dtype=np.uint8).reshape(ROOM_DIMENSIONS, ROOM_DIMENSIONS)


def _chamfer_transform(
    coord_map: Sequence[int],
    min_avoid: int,
    rect: Optional[Rect],
    metric: str,
) -> CoordMap:
    x1, y1, x2, y2 = rect if rect is not None else (0, 0, ROOM_DIMENSIONS - 1, ROOM_DIMENSIONS - 1)
    x1, y1 = max(x1, 0), max(y1, 0)
    x2, y2 = min(x2, ROOM_DIMENSIONS - 1), min(y2, ROOM_DIMENSIONS - 1)

    # One tile of padding so the room edge reads as an obstacle.
    walkable = np.zeros((ROOM_DIMENSIONS + 2, ROOM_DIMENSIONS + 2), dtype=bool)
    walkable[1:-1, 1:-1] = coord_map_array(coord_map) < min_avoid
    window = walkable[x1:x2 + 3, y1:y2 + 3]

    if window.all():
        distances = np.full(window.shape, IMPASSABLE)
    else:
        distances = ndimage.distance_transform_cdt(window, metric=metric)

    result = np.zeros((ROOM_DIMENSIONS, ROOM_DIMENSIONS), dtype=np.uint8)
    result[x1:x2 + 1, y1:y2 + 1] = np.minimum(distances[1:-1, 1:-1], IMPASSABLE)
    return bytearray(result.tobytes())


# ----------------------------------------------------------------------
# Terrain statistics
# ----------------------------------------------------------------------
def swamp_ratio(terrain) -> float:
    """Share of walkable tiles that are swamp."""

    plains = swamps = 0
    for x in range(ROOM_DIMENSIONS):
        for y in range(ROOM_DIMENSIONS):
            kind = terrain.cost(x, y)
            if kind == Terrain.PLAIN:
                plains += 1
            elif kind == Terrain.SWAMP:
                swamps += 1
    walkable = plains + swamps
    return swamps / walkable if walkable else 0.0


def iter_marked(coord_map: Sequence[int]) -> Iterator[int]:
    """Yield indexes whose value is non-zero."""

    for index, value in enumerate(coord_map):
        if value:
            yield index
