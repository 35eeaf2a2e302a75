import unittest

from colony_planner.core.constants import IMPASSABLE
from colony_planner.engine.flood import (adjacent, cardinal, exit_cost_field, exit_distance_field, flood_group,
                                         frontier_search, generation_flood, is_close_to_exit, unrestricted,
                                         weighted_frontier_search)
from colony_planner.engine.grid import new_coord_map, pack


class GenerationFloodTests(unittest.TestCase):
    def test_depths_start_at_one(self) -> None:
        depths = generation_flood([pack((10, 10))], lambda index: False)
        self.assertEqual(depths[pack((10, 10))], 1)
        self.assertEqual(depths[pack((12, 11))], 3)

    def test_blocked_tiles_stay_zero(self) -> None:
        walls = {pack((11, y)) for y in range(50)}
        depths = generation_flood([pack((10, 10))], lambda index: index in walls)
        self.assertEqual(depths[pack((11, 10))], 0)
        self.assertEqual(depths[pack((12, 10))], 0)
        self.assertEqual(depths[pack((5, 10))], 6)

    def test_depth_is_clamped(self) -> None:
        depths = generation_flood([pack((0, 0))], lambda index: False, max_depth=5)
        self.assertEqual(depths[pack((20, 20))], 5)


class ExitFieldTests(unittest.TestCase):
    def setUp(self) -> None:
        self.terrain_coords = new_coord_map()
        self.exits = [pack((25, 0))]

    def test_exit_distance_and_cost(self) -> None:
        distance = exit_distance_field(self.terrain_coords, self.exits)
        costs = exit_cost_field(distance)
        self.assertEqual(distance[pack((25, 0))], 1)
        self.assertEqual(distance[pack((25, 4))], 5)
        self.assertEqual(costs[pack((25, 4))], IMPASSABLE - 5)
        self.assertGreater(costs[pack((25, 1))], costs[pack((25, 10))])

    def test_walled_off_tiles_have_no_cost(self) -> None:
        for x in range(50):
            self.terrain_coords[pack((x, 3))] = IMPASSABLE
        distance = exit_distance_field(self.terrain_coords, self.exits)
        self.assertEqual(exit_cost_field(distance)[pack((25, 10))], 0)

    def test_close_to_exit(self) -> None:
        distance = exit_distance_field(self.terrain_coords, self.exits)
        self.assertTrue(is_close_to_exit(distance, pack((25, 3)), 3))
        self.assertFalse(is_close_to_exit(distance, pack((25, 4)), 3))

    def test_unreached_tiles_are_never_close(self) -> None:
        self.assertFalse(is_close_to_exit(new_coord_map(), pack((25, 3)), 10))


class FloodGroupTests(unittest.TestCase):
    def test_groups_share_visited_map(self) -> None:
        members = {pack((x, 5)) for x in range(10, 20)}
        visited = new_coord_map()
        first = flood_group(pack((10, 5)), lambda index: index in members, visited)
        self.assertEqual(len(first), 10)
        self.assertEqual(flood_group(pack((15, 5)), lambda index: index in members, visited), [pack((15, 5))])

    def test_max_size_caps_expansion(self) -> None:
        members = {pack((x, 5)) for x in range(10, 30)}
        group = flood_group(pack((10, 5)), lambda index: index in members, new_coord_map(), max_size=4)
        self.assertEqual(len(group), 5)


class FrontierSearchTests(unittest.TestCase):
    def test_returns_start_when_accepted(self) -> None:
        start = pack((10, 10))
        self.assertEqual(frontier_search([start], [adjacent()], lambda index: True), start)

    def test_finds_nearest_accepted_tile(self) -> None:
        target = pack((14, 10))
        found = frontier_search([pack((10, 10))], [cardinal(), adjacent()], lambda index: index == target)
        self.assertEqual(found, target)

    def test_falls_back_when_strategy_is_exhausted(self) -> None:
        target = pack((20, 20))
        blocked = cardinal(lambda index: False)
        found = frontier_search([pack((10, 10))], [blocked, unrestricted()], lambda index: index == target)
        self.assertEqual(found, target)

    def test_none_when_nothing_accepted(self) -> None:
        self.assertIsNone(frontier_search([pack((10, 10))], [adjacent()], lambda index: False))


class WeightedFrontierSearchTests(unittest.TestCase):
    def test_prefers_cheap_tiles(self) -> None:
        cost_map = new_coord_map(100)
        cheap = pack((12, 10))
        near = pack((10, 12))
        cost_map[cheap] = 0
        accepted = {cheap, near}
        found = weighted_frontier_search(
            [pack((10, 10))],
            cost_map,
            [adjacent()],
            lambda index: index in accepted,
        )
        self.assertEqual(found, cheap)

    def test_distance_weight_breaks_even_costs(self) -> None:
        cost_map = new_coord_map()
        accepted = {pack((12, 10)), pack((16, 10))}
        found = weighted_frontier_search([pack((10, 10))], cost_map, [adjacent()], lambda index: index in accepted)
        self.assertEqual(found, pack((12, 10)))


if __name__ == "__main__":
    unittest.main()
