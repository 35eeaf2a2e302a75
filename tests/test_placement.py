import unittest

from colony_planner.core.constants import IMPASSABLE, StampType
from colony_planner.data.stamps import get_stamp
from colony_planner.engine.flood import exit_distance_field
from colony_planner.engine.grid import distance_transform, get_range, new_coord_map, pack
from colony_planner.engine.placement import StampPlacer, StampRequest


class StampPlacerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.base_coords = new_coord_map()
        self.road_coords = new_coord_map()
        self.exit_distance = new_coord_map()
        self.stamp_anchors = {}
        self.committed = []

    def placer(self) -> StampPlacer:
        return StampPlacer(self.base_coords, self.road_coords, self.exit_distance, self.stamp_anchors)

    def commit(self, anchor) -> None:
        self.committed.append(anchor)
        self.base_coords[pack(anchor)] = IMPASSABLE

    def test_standard_stamp_accepts_open_start(self) -> None:
        result = self.placer().plan_stamps(
            StampRequest(StampType.FAST_FILLER, 1, [(25, 25)], self.commit)
        )
        self.assertEqual(result.placed, [(25, 25)])
        self.assertEqual(self.stamp_anchors[StampType.FAST_FILLER], [(25, 25)])
        self.assertEqual(self.committed, [(25, 25)])

    def test_existing_anchors_count_towards_request(self) -> None:
        placer = self.placer()
        request = StampRequest(StampType.FAST_FILLER, 1, [(25, 25)], self.commit)
        placer.plan_stamps(request)
        again = placer.plan_stamps(request)
        self.assertEqual(again.requested, 0)
        self.assertEqual(again.placed, [])
        self.assertEqual(len(self.committed), 1)

    def test_standard_anchor_keeps_clear_of_obstacles(self) -> None:
        for x in range(22, 29):
            self.base_coords[pack((x, 25))] = IMPASSABLE
        result = self.placer().plan_stamps(
            StampRequest(StampType.FAST_FILLER, 1, [(25, 25)], self.commit, cardinal_first=True)
        )
        anchor = result.placed[0]
        for x in range(22, 29):
            self.assertGreaterEqual(get_range(anchor, (x, 25)), get_stamp(StampType.FAST_FILLER).size)

    def test_standard_anchor_keeps_away_from_exits(self) -> None:
        self.exit_distance = exit_distance_field(new_coord_map(), [pack((25, 0))])
        result = self.placer().plan_stamps(
            StampRequest(StampType.FAST_FILLER, 1, [(25, 5)], self.commit)
        )
        anchor = result.placed[0]
        protection = get_stamp(StampType.FAST_FILLER).protection_offset
        self.assertGreater(self.exit_distance[pack(anchor)] - 1, protection + 1)

    def test_is_viable_anchor_rejects_small_space(self) -> None:
        self.base_coords[pack((25, 27))] = IMPASSABLE
        distances = distance_transform(self.base_coords)
        stamp = get_stamp(StampType.FAST_FILLER)
        self.assertFalse(self.placer().is_viable_anchor(stamp, distances, pack((25, 25))))
        self.assertTrue(self.placer().is_viable_anchor(stamp, distances, pack((25, 20))))

    def test_dynamic_stamp_honours_conditions_and_roads(self) -> None:
        self.road_coords[pack((30, 25))] = 1
        allowed = {(30, 25), (31, 25)}
        result = self.placer().plan_stamps(
            StampRequest(
                StampType.OBSERVER,
                1,
                [(25, 25)],
                self.commit,
                dynamic=True,
                conditions=lambda coord: coord in allowed,
                cost_map=new_coord_map(),
            )
        )
        self.assertEqual(result.placed, [(31, 25)])

    def test_dynamic_shortfall_is_reported(self) -> None:
        allowed = {(20, 20), (21, 20)}
        result = self.placer().plan_stamps(
            StampRequest(
                StampType.TOWER,
                3,
                [(25, 25)],
                self.commit,
                dynamic=True,
                conditions=lambda coord: coord in allowed,
                cost_map=new_coord_map(),
            )
        )
        self.assertEqual(sorted(result.placed), sorted(allowed))
        self.assertEqual(result.requested, 3)
        self.assertEqual(result.shortfall, 1)


if __name__ == "__main__":
    unittest.main()
