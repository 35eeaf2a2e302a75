import random
import unittest

from colony_planner.core.constants import IMPASSABLE, ROOM_AREA
from colony_planner.data.rooms import RoomTerrain
from colony_planner.engine.grid import (ADJACENT_NEIGHBORS, CARDINAL_NEIGHBORS, adjacent_coords, closest_coord,
                                        coords_in_range, diagonal_distance_transform, distance_transform,
                                        get_range, new_coord_map, pack, pack_xy, swamp_ratio, unpack)


class PackingTests(unittest.TestCase):
    def test_pack_is_column_major(self) -> None:
        self.assertEqual(pack((1, 2)), 52)
        self.assertEqual(pack_xy(49, 49), ROOM_AREA - 1)
        self.assertEqual(unpack(52), (1, 2))

    def test_pack_round_trips_every_index(self) -> None:
        for index in range(ROOM_AREA):
            self.assertEqual(pack(unpack(index)), index)

    def test_neighbor_tables_clip_to_room(self) -> None:
        self.assertEqual(len(ADJACENT_NEIGHBORS[pack((0, 0))]), 3)
        self.assertEqual(len(ADJACENT_NEIGHBORS[pack((5, 5))]), 8)
        self.assertEqual(len(CARDINAL_NEIGHBORS[pack((0, 7))]), 3)


class GeometryTests(unittest.TestCase):
    def test_range_is_chebyshev(self) -> None:
        self.assertEqual(get_range((2, 3), (5, 4)), 3)

    def test_coords_in_range_clips(self) -> None:
        self.assertEqual(len(coords_in_range((0, 0), 1)), 4)
        self.assertEqual(len(coords_in_range((10, 10), 2)), 25)
        self.assertEqual(len(adjacent_coords((49, 0))), 3)

    def test_closest_coord_first_wins_ties(self) -> None:
        self.assertEqual(closest_coord((0, 0), [(2, 0), (0, 2), (1, 1)]), ((1, 1), 2))
        self.assertEqual(closest_coord((0, 0), [(1, 0), (0, 1)]), ((1, 0), 0))


class DistanceTransformTests(unittest.TestCase):
    def test_empty_room_counts_distance_to_edge(self) -> None:
        distances = distance_transform(new_coord_map())
        self.assertEqual(distances[pack((0, 10))], 1)
        self.assertEqual(distances[pack((3, 20))], 4)
        self.assertEqual(distances[pack((25, 25))], 25)

    def test_obstacles_score_zero_and_radiate(self) -> None:
        coord_map = new_coord_map()
        coord_map[pack((10, 10))] = IMPASSABLE
        distances = distance_transform(coord_map)
        self.assertEqual(distances[pack((10, 10))], 0)
        self.assertEqual(distances[pack((11, 11))], 1)
        self.assertEqual(distances[pack((12, 10))], 2)
        self.assertEqual(distances[pack((12, 12))], 2)

    def test_min_avoid_lowers_obstacle_threshold(self) -> None:
        coord_map = new_coord_map()
        coord_map[pack((10, 10))] = 1
        self.assertEqual(distance_transform(coord_map)[pack((10, 10))], 11)
        self.assertEqual(distance_transform(coord_map, min_avoid=1)[pack((10, 10))], 0)

    def test_diagonal_transform_uses_cardinal_steps(self) -> None:
        coord_map = new_coord_map()
        coord_map[pack((10, 10))] = IMPASSABLE
        distances = diagonal_distance_transform(coord_map)
        self.assertEqual(distances[pack((11, 11))], 2)
        self.assertEqual(distances[pack((12, 12))], 4)
        self.assertEqual(distances[pack((11, 10))], 1)

    def test_rect_limits_computation(self) -> None:
        coord_map = new_coord_map()
        coord_map[pack((6, 5))] = IMPASSABLE
        distances = distance_transform(coord_map, rect=(5, 5, 7, 7))
        self.assertEqual(distances[pack((6, 6))], 1)
        self.assertEqual(distances[pack((6, 7))], 2)
        self.assertEqual(distances[pack((5, 7))], 2)
        self.assertEqual(distances[pack((20, 20))], 0)

    def test_every_side_of_an_obstacle_is_symmetric(self) -> None:
        coord_map = new_coord_map()
        coord_map[pack((25, 20))] = IMPASSABLE
        distances = distance_transform(coord_map)
        self.assertEqual([distances[pack((x, 17))] for x in range(21, 30)], [4, 3, 3, 3, 3, 3, 3, 3, 4])
        for dx, dy in ((2, 2), (-2, 2), (2, -2), (-2, -2)):
            self.assertEqual(distances[pack((25 + dx, 20 + dy))], 2)

        manhattan = diagonal_distance_transform(coord_map)
        for dx, dy in ((1, 2), (-1, 2), (1, -2), (-1, -2), (2, 1), (-2, -1)):
            self.assertEqual(manhattan[pack((25 + dx, 20 + dy))], 3)

    def test_matches_brute_force_on_scattered_obstacles(self) -> None:
        rng = random.Random(11)
        coord_map = new_coord_map()
        obstacles = [(rng.randrange(50), rng.randrange(50)) for _ in range(60)]
        for coord in obstacles:
            coord_map[pack(coord)] = IMPASSABLE

        chebyshev = distance_transform(coord_map)
        manhattan = diagonal_distance_transform(coord_map)
        for x in range(50):
            for y in range(50):
                edge = min(x + 1, y + 1, 50 - x, 50 - y)
                expected_chebyshev = min([edge] + [get_range((x, y), coord) for coord in obstacles])
                expected_manhattan = min([edge] + [abs(x - ox) + abs(y - oy) for ox, oy in obstacles])
                self.assertEqual(chebyshev[pack((x, y))], expected_chebyshev, (x, y))
                self.assertEqual(manhattan[pack((x, y))], expected_manhattan, (x, y))


class TerrainStatisticsTests(unittest.TestCase):
    def test_swamp_ratio_ignores_walls(self) -> None:
        rows = ["#" * 50] + ["~" * 10 + "." * 30 + "#" * 10 for _ in range(49)]
        terrain = RoomTerrain.from_rows(rows)
        self.assertAlmostEqual(swamp_ratio(terrain), 0.25)


if __name__ == "__main__":
    unittest.main()
