"""Room terrain model and a plain-text room loader.

Room files hold 50 lines of 50 characters:

- ``#`` wall, ``.`` plain, ``~`` swamp
- ``c`` controller, ``s`` source, ``m`` mineral (objects stand on plain)

Blank lines and lines starting with ``;`` are ignored. Exits are every
non-wall tile on the room border.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

from ..core.constants import ROOM_AREA, ROOM_DIMENSIONS, Terrain
from ..core.exceptions import RoomLoadError
from ..core.models import Coord
from ..engine.grid import is_border, pack_xy
from ..utils.logger import get_logger


LOGGER = get_logger(__name__)

TERRAIN_CHARS: Dict[str, Terrain] = {
    "#": Terrain.WALL,
    ".": Terrain.PLAIN,
    "~": Terrain.SWAMP,
    "c": Terrain.PLAIN,
    "s": Terrain.PLAIN,
    "m": Terrain.PLAIN,
}
_TERRAIN_CODES = {Terrain.PLAIN: 0, Terrain.WALL: 1, Terrain.SWAMP: 2}
_TERRAIN_BY_CODE = {code: terrain for terrain, code in _TERRAIN_CODES.items()}


class RoomTerrain:
    """Static per-tile terrain lookup."""

    def __init__(self, cells: Sequence[Terrain]) -> None:
        if len(cells) != ROOM_AREA:
            raise RoomLoadError(f"Terrain needs {ROOM_AREA} cells, got {len(cells)}")
        self._codes = bytes(_TERRAIN_CODES[Terrain(cell)] for cell in cells)

    @classmethod
    def from_rows(cls, rows: Sequence[str]) -> "RoomTerrain":
        cells = [Terrain.PLAIN] * ROOM_AREA
        for y, row in enumerate(rows):
            for x, char in enumerate(row):
                cells[pack_xy(x, y)] = TERRAIN_CHARS[char]
        return cls(cells)

    def cost(self, x: int, y: int) -> Terrain:
        return _TERRAIN_BY_CODE[self._codes[pack_xy(x, y)]]

    def is_wall(self, x: int, y: int) -> bool:
        return self._codes[pack_xy(x, y)] == 1

    def is_swamp(self, x: int, y: int) -> bool:
        return self._codes[pack_xy(x, y)] == 2


@dataclass
class RoomInput:
    """Everything the planner reads from the host about one room."""

    name: str
    terrain: RoomTerrain
    controller: Coord
    sources: Tuple[Coord, ...]
    mineral: Coord
    exits: Tuple[Coord, ...] = field(default=())

    def __post_init__(self) -> None:
        if not self.exits:
            self.exits = find_exits(self.terrain)

    @property
    def objects(self) -> Tuple[Coord, ...]:
        """Tiles occupied by room objects that block movement."""
        return (self.controller, *self.sources, self.mineral)


def find_exits(terrain: RoomTerrain) -> Tuple[Coord, ...]:
    exits: List[Coord] = []
    for x in range(ROOM_DIMENSIONS):
        for y in range(ROOM_DIMENSIONS):
            if is_border(x, y) and not terrain.is_wall(x, y):
                exits.append((x, y))
    return tuple(exits)


def parse_room(text: str, name: str = "room") -> RoomInput:
    """Parse the text room format into a :class:`RoomInput`."""

    rows = [
        line.rstrip("\n")
        for line in text.splitlines()
        if line.strip() and not line.lstrip().startswith(";")
    ]
    if len(rows) != ROOM_DIMENSIONS:
        raise RoomLoadError(f"Room {name} has {len(rows)} rows, expected {ROOM_DIMENSIONS}")

    controllers: List[Coord] = []
    sources: List[Coord] = []
    minerals: List[Coord] = []
    for y, row in enumerate(rows):
        if len(row) != ROOM_DIMENSIONS:
            raise RoomLoadError(f"Room {name} row {y} has {len(row)} columns")
        for x, char in enumerate(row):
            if char not in TERRAIN_CHARS:
                raise RoomLoadError(f"Room {name} has unknown tile {char!r} at {(x, y)}")
            if char == "c":
                controllers.append((x, y))
            elif char == "s":
                sources.append((x, y))
            elif char == "m":
                minerals.append((x, y))

    if len(controllers) != 1:
        raise RoomLoadError(f"Room {name} needs exactly one controller, found {len(controllers)}")
    if len(sources) != 2:
        raise RoomLoadError(f"Room {name} needs exactly two sources, found {len(sources)}")
    if len(minerals) != 1:
        raise RoomLoadError(f"Room {name} needs exactly one mineral, found {len(minerals)}")
    for coord in (*controllers, *sources, *minerals):
        if is_border(*coord):
            raise RoomLoadError(f"Room {name} has an object on the border at {coord}")

    room = RoomInput(
        name=name,
        terrain=RoomTerrain.from_rows(rows),
        controller=controllers[0],
        sources=tuple(sources),
        mineral=minerals[0],
    )
    LOGGER.debug("Parsed room %s with %s exit tiles", name, len(room.exits))
    return room


def load_room(path: Path | str, name: str | None = None) -> RoomInput:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise RoomLoadError(f"Cannot read room file {path}: {exc}") from exc
    return parse_room(text, name=name or path.stem)
