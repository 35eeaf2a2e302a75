import unittest

from colony_planner.core.constants import IMPASSABLE
from colony_planner.data.terrain_cache import TerrainCache
from colony_planner.engine.grid import get_range, new_coord_map, pack
from colony_planner.engine.pathfinder import PathGoal, Pathfinder

from room_fixtures import CONTROLLER, SOURCES, open_room


class PathfinderTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.room = open_room("path-room", walled_source=1)
        cls.terrain_coords = TerrainCache().terrain_coords(cls.room)
        cls.pathfinder = Pathfinder(cls.room.terrain, cls.terrain_coords)

    def test_path_ends_in_range_and_steps_are_adjacent(self) -> None:
        origin = (5, 5)
        path = self.pathfinder.find_path(origin, [PathGoal(CONTROLLER, 1)])
        self.assertIsNotNone(path)
        self.assertEqual(get_range(path[-1], CONTROLLER), 1)
        previous = origin
        for step in path:
            self.assertEqual(get_range(previous, step), 1)
            self.assertNotEqual(self.terrain_coords[pack(step)], IMPASSABLE)
            previous = step

    def test_origin_in_range_gives_empty_path(self) -> None:
        self.assertEqual(self.pathfinder.find_path((11, 40), [PathGoal(CONTROLLER, 1)]), [])

    def test_unreachable_goal_gives_none(self) -> None:
        self.assertIsNone(self.pathfinder.find_path((5, 5), [PathGoal(SOURCES[1], 1)]))

    def test_weight_maps_replace_and_block(self) -> None:
        road = new_coord_map()
        road[pack((20, 20))] = 1
        blocked = new_coord_map()
        blocked[pack((20, 20))] = IMPASSABLE
        costs = self.pathfinder.cost_map([road])
        self.assertEqual(costs[pack((20, 20))], 1)
        self.assertEqual(costs[pack((21, 20))], 3)
        self.assertEqual(self.pathfinder.cost_map([blocked, road])[pack((20, 20))], IMPASSABLE)
        self.assertEqual(self.pathfinder.cost_map()[pack((31, 30))], 5)

    def test_path_avoids_blocked_tiles(self) -> None:
        blocked = new_coord_map()
        for y in range(50):
            if y != 45:
                blocked[pack((20, y))] = IMPASSABLE
        path = self.pathfinder.find_path((10, 10), [PathGoal((30, 10))], weight_maps=[blocked])
        self.assertIn((20, 45), path)


if __name__ == "__main__":
    unittest.main()
