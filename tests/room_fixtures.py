"""Programmatic test rooms in the text room format."""

from typing import List, Optional

from colony_planner.data.rooms import RoomInput, parse_room

CONTROLLER = (10, 40)
SOURCES = ((44, 10), (44, 40))
MINERAL = (25, 45)
TOP_EXIT = [(x, 0) for x in range(20, 30)]
LEFT_EXIT = [(0, y) for y in range(20, 30)]
PILLAR_ORIGINS = (5, 16, 27, 38)


def blank_rows() -> List[List[str]]:
    """Plain 50x50 room with wall borders and no exits or objects."""
    rows = [["."] * 50 for _ in range(50)]
    for i in range(50):
        rows[0][i] = rows[49][i] = "#"
        rows[i][0] = rows[i][49] = "#"
    return rows


def place_objects(rows: List[List[str]]) -> None:
    for x, y in TOP_EXIT + LEFT_EXIT:
        rows[y][x] = "."
    x, y = CONTROLLER
    rows[y][x] = "c"
    for x, y in SOURCES:
        rows[y][x] = "s"
    x, y = MINERAL
    rows[y][x] = "m"


def open_room_rows(walled_source: Optional[int] = None) -> List[List[str]]:
    rows = blank_rows()
    # A small wall block and a swamp patch away from every object.
    for x in range(15, 18):
        for y in range(10, 13):
            rows[y][x] = "#"
    for x in range(30, 35):
        for y in range(28, 33):
            rows[y][x] = "~"
    place_objects(rows)

    if walled_source is not None:
        sx, sy = SOURCES[walled_source]
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                if dx or dy:
                    rows[sy + dy][sx + dx] = "#"
    return rows


def render(rows: List[List[str]]) -> str:
    return "\n".join("".join(row) for row in rows)


def open_room(name: str = "W1N1", walled_source: Optional[int] = None) -> RoomInput:
    return parse_room(render(open_room_rows(walled_source)), name=name)


def scenario_room(name: str = "W3N3") -> RoomInput:
    """Open room without swamp; each source keeps only its 4 cardinal tiles open."""
    rows = blank_rows()
    place_objects(rows)
    for sx, sy in SOURCES:
        for dx in (-1, 1):
            for dy in (-1, 1):
                rows[sy + dy][sx + dx] = "#"
    return parse_room(render(rows), name=name)


def pillar_room(name: str = "W4N4") -> RoomInput:
    """2x2 wall pillars every 11 tiles, leaving 9-wide corridors between them."""
    rows = blank_rows()
    objects = [CONTROLLER, MINERAL, *SOURCES]
    for x0 in PILLAR_ORIGINS:
        for y0 in PILLAR_ORIGINS:
            block = [(x, y) for x in (x0, x0 + 1) for y in (y0, y0 + 1)]
            if any(max(abs(x - ox), abs(y - oy)) <= 2 for x, y in block for ox, oy in objects):
                continue
            for x, y in block:
                rows[y][x] = "#"
    place_objects(rows)
    return parse_room(render(rows), name=name)
