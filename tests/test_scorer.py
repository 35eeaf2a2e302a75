import unittest
from dataclasses import replace

from colony_planner.core.models import ScoreInputs
from colony_planner.engine.scorer import DEFAULT_SCORE_WEIGHTS, ScoreWeights, score_plan


def baseline() -> ScoreInputs:
    return ScoreInputs(
        swamp_ratio=0.2,
        harvest_path_lengths=[10, 14],
        harvest_position_counts=[3, 5],
        unprotected_sources=0,
        upgrade_path_length=6,
        mineral_path_length=20,
        cut_tiles=12,
        shield_tiles=3,
        onboarding_tiles=4,
        hub_upgrade_range=8,
    )


class ScorePlanTests(unittest.TestCase):
    def test_weighted_sum(self) -> None:
        # 2 + 24 + 6 + 2 + 24 + 3 + 4 + 0.8
        self.assertAlmostEqual(score_plan(baseline()), 65.8)

    def test_more_fortification_scores_worse(self) -> None:
        inputs = baseline()
        for field_name in ("cut_tiles", "shield_tiles", "onboarding_tiles"):
            more = replace(inputs, **{field_name: getattr(inputs, field_name) + 1})
            self.assertGreater(score_plan(more), score_plan(inputs))

    def test_harvest_shortfall_penalty(self) -> None:
        scarce = replace(baseline(), harvest_position_counts=[1, 5])
        self.assertAlmostEqual(score_plan(scarce) - score_plan(baseline()), 2 * 12)

    def test_unprotected_sources_scale_with_source_count(self) -> None:
        exposed = replace(baseline(), unprotected_sources=1)
        self.assertAlmostEqual(score_plan(exposed) - score_plan(baseline()), 10)

    def test_unprotected_controller_and_unverified_cut(self) -> None:
        base_score = score_plan(baseline())
        self.assertAlmostEqual(score_plan(replace(baseline(), controller_protected=False)) - base_score, 10)
        self.assertAlmostEqual(score_plan(replace(baseline(), cut_verified=False)) - base_score, 50)

    def test_custom_weights(self) -> None:
        weights = ScoreWeights(cut_tile=0.0)
        self.assertAlmostEqual(
            score_plan(baseline(), DEFAULT_SCORE_WEIGHTS) - score_plan(baseline(), weights),
            24,
        )

    def test_fortified_plan_beats_exposed_controller(self) -> None:
        fortified = replace(baseline(), cut_tiles=16)
        exposed = replace(baseline(), controller_protected=False)
        self.assertLess(score_plan(fortified), score_plan(exposed))


if __name__ == "__main__":
    unittest.main()
