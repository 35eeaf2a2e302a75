import unittest

from colony_planner.core.constants import IMPASSABLE
from colony_planner.data.terrain_cache import TerrainCache
from colony_planner.data.rooms import parse_room
from colony_planner.engine.grid import coords_in_range, coords_in_rect, new_coord_map, pack
from colony_planner.engine.pathfinder import Pathfinder
from colony_planner.engine.road_grid import (GRID_INSET, RoadGridBuilder, mark_by_planned_road, on_diagonal,
                                             prune_tile)

from room_fixtures import open_room, open_room_rows, render


def build_road_grid(room, anchor):
    terrain_coords = TerrainCache().terrain_coords(room)
    by_exit_coords = new_coord_map()
    base_coords = bytearray(terrain_coords)
    for exit_coord in room.exits:
        for coord in coords_in_range(exit_coord, 1):
            if terrain_coords[pack(coord)] != IMPASSABLE:
                by_exit_coords[pack(coord)] = IMPASSABLE
                base_coords[pack(coord)] = IMPASSABLE
    road_grid = RoadGridBuilder(
        room.terrain,
        terrain_coords,
        base_coords,
        by_exit_coords,
        room.exits,
        anchor,
        Pathfinder(room.terrain, terrain_coords),
    ).build()
    return terrain_coords, road_grid


class DiagonalPatternTests(unittest.TestCase):
    def test_lattice_lines_pass_through_anchor(self) -> None:
        anchor = (20, 20)
        self.assertTrue(on_diagonal(20, 20, anchor, 4))
        self.assertTrue(on_diagonal(21, 21, anchor, 4))
        self.assertTrue(on_diagonal(22, 18, anchor, 4))
        self.assertFalse(on_diagonal(21, 20, anchor, 4))
        self.assertFalse(on_diagonal(22, 20, anchor, 4))

    def test_infill_is_parity(self) -> None:
        anchor = (20, 20)
        self.assertTrue(on_diagonal(22, 20, anchor, 2))
        self.assertFalse(on_diagonal(21, 20, anchor, 2))


class PruneTests(unittest.TestCase):
    def setUp(self) -> None:
        self.grid_coords = new_coord_map()
        self.terrain_coords = new_coord_map()

    def test_dead_end_serving_one_tile_is_pruned(self) -> None:
        tile = (10, 10)
        for coord in coords_in_range(tile, 1):
            self.terrain_coords[pack(coord)] = IMPASSABLE
        self.terrain_coords[pack(tile)] = 0
        self.terrain_coords[pack((11, 10))] = 0
        self.terrain_coords[pack((9, 10))] = 0
        self.grid_coords[pack(tile)] = 2
        self.grid_coords[pack((9, 10))] = 2

        self.assertTrue(prune_tile(self.grid_coords, self.terrain_coords, pack(tile)))
        self.assertEqual(self.grid_coords[pack(tile)], 0)

    def test_tile_linking_two_grid_tiles_is_kept(self) -> None:
        for coord in ((9, 9), (10, 10), (11, 11)):
            self.grid_coords[pack(coord)] = 2
        self.assertFalse(prune_tile(self.grid_coords, self.terrain_coords, pack((10, 10))))

    def test_tile_serving_open_ground_is_kept(self) -> None:
        self.grid_coords[pack((10, 10))] = 2
        self.grid_coords[pack((9, 9))] = 2
        self.assertFalse(prune_tile(self.grid_coords, self.terrain_coords, pack((10, 10))))

    def test_by_planned_road_surrounds_lattice(self) -> None:
        self.grid_coords[pack((10, 10))] = 2
        marked = mark_by_planned_road(self.grid_coords, self.terrain_coords)
        self.assertEqual(marked[pack((10, 10))], 0)
        self.assertEqual(sum(marked), 8)


class RoadGridBuilderTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.room = open_room("grid-room")
        cls.anchor = (25, 24)
        cls.terrain_coords, cls.road_grid = build_road_grid(cls.room, cls.anchor)

    def test_grid_avoids_walls_exits_and_border(self) -> None:
        self.assertGreater(self.road_grid.size, 0)
        for index, value in enumerate(self.road_grid.grid_coords):
            if not value:
                continue
            self.assertNotEqual(self.terrain_coords[index], IMPASSABLE)
            x, y = divmod(index, 50)
            self.assertTrue(GRID_INSET <= x < 50 - GRID_INSET)
            self.assertTrue(GRID_INSET <= y < 50 - GRID_INSET)

    def test_swamp_grid_tiles_cost_more(self) -> None:
        for index, value in enumerate(self.road_grid.grid_coords):
            if not value:
                continue
            x, y = divmod(index, 50)
            expected = 10 if self.room.terrain.is_swamp(x, y) else 2
            self.assertEqual(value, expected)

    def test_planned_road_mask_excludes_grid_and_walls(self) -> None:
        for index, value in enumerate(self.road_grid.by_planned_road):
            if not value:
                continue
            self.assertEqual(self.road_grid.grid_coords[index], 0)
            self.assertNotEqual(self.terrain_coords[index], IMPASSABLE)

    def test_diagonal_infill_skips_walls(self) -> None:
        for index, value in enumerate(self.road_grid.diagonal_coords):
            if value:
                self.assertNotEqual(self.terrain_coords[index], IMPASSABLE)
        self.assertEqual(self.road_grid.diagonal_coords[pack(self.anchor)], 4)


class UnreachableGroupTests(unittest.TestCase):
    POCKET = (37, 19, 41, 23)

    @classmethod
    def setUpClass(cls) -> None:
        rows = open_room_rows()
        x1, y1, x2, y2 = cls.POCKET
        for x in range(x1 - 1, x2 + 2):
            for y in range(y1 - 1, y2 + 2):
                if not (x1 <= x <= x2 and y1 <= y <= y2):
                    rows[y][x] = "#"
        cls.room = parse_room(render(rows), name="pocket-room")
        cls.terrain_coords, cls.road_grid = build_road_grid(cls.room, (25, 24))

    def test_walled_off_lattice_is_discarded(self) -> None:
        x1, y1, x2, y2 = self.POCKET
        for coord in coords_in_rect(x1, y1, x2, y2):
            self.assertEqual(self.road_grid.grid_coords[pack(coord)], 0, coord)

    def test_reachable_lattice_survives(self) -> None:
        self.assertGreater(self.road_grid.size, 0)


if __name__ == "__main__":
    unittest.main()
