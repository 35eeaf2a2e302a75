import tempfile
import unittest
from pathlib import Path

from colony_planner.core.constants import IMPASSABLE, Terrain
from colony_planner.core.exceptions import RoomLoadError
from colony_planner.data.rooms import load_room, parse_room
from colony_planner.data.terrain_cache import TerrainCache
from colony_planner.engine.grid import pack

from room_fixtures import CONTROLLER, LEFT_EXIT, MINERAL, SOURCES, TOP_EXIT, open_room, open_room_rows, render


class ParseRoomTests(unittest.TestCase):
    def test_objects_and_exits(self) -> None:
        room = open_room()
        self.assertEqual(room.controller, CONTROLLER)
        self.assertEqual(room.sources, SOURCES)
        self.assertEqual(room.mineral, MINERAL)
        self.assertEqual(sorted(room.exits), sorted(TOP_EXIT + LEFT_EXIT))

    def test_terrain_kinds(self) -> None:
        room = open_room()
        self.assertEqual(room.terrain.cost(0, 0), Terrain.WALL)
        self.assertEqual(room.terrain.cost(31, 30), Terrain.SWAMP)
        self.assertEqual(room.terrain.cost(*CONTROLLER), Terrain.PLAIN)

    def test_comment_and_blank_lines_are_ignored(self) -> None:
        text = "; generated room\n\n" + render(open_room_rows())
        self.assertEqual(parse_room(text).controller, CONTROLLER)

    def test_rejects_wrong_row_count(self) -> None:
        rows = open_room_rows()[:-1]
        with self.assertRaises(RoomLoadError):
            parse_room(render(rows))

    def test_rejects_unknown_tile(self) -> None:
        rows = open_room_rows()
        rows[5][5] = "?"
        with self.assertRaises(RoomLoadError):
            parse_room(render(rows))

    def test_rejects_missing_source(self) -> None:
        rows = open_room_rows()
        x, y = SOURCES[0]
        rows[y][x] = "."
        with self.assertRaises(RoomLoadError):
            parse_room(render(rows))

    def test_load_room_uses_file_stem(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "E5S5.txt"
            path.write_text(render(open_room_rows()), encoding="utf-8")
            self.assertEqual(load_room(path).name, "E5S5")

    def test_missing_file_raises_room_error(self) -> None:
        with self.assertRaises(RoomLoadError):
            load_room("/nonexistent/room.txt")


class TerrainCacheTests(unittest.TestCase):
    def test_walls_and_objects_are_impassable(self) -> None:
        room = open_room()
        terrain_coords = TerrainCache().terrain_coords(room)
        self.assertEqual(terrain_coords[pack((0, 0))], IMPASSABLE)
        self.assertEqual(terrain_coords[pack(CONTROLLER)], IMPASSABLE)
        self.assertEqual(terrain_coords[pack(MINERAL)], IMPASSABLE)
        self.assertEqual(terrain_coords[pack((31, 30))], 0)
        self.assertEqual(terrain_coords[pack(TOP_EXIT[0])], 0)

    def test_cached_per_room_name(self) -> None:
        cache = TerrainCache()
        first = cache.terrain_coords(open_room("W2N2"))
        second = cache.terrain_coords(open_room("W2N2"))
        self.assertIs(first, second)
        self.assertIn("W2N2", cache)
        self.assertEqual(len(cache), 1)


if __name__ == "__main__":
    unittest.main()
