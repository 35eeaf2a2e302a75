"""Plan fitness; lower scores are better."""

from __future__ import annotations

from dataclasses import dataclass

from ..core.models import ScoreInputs


@dataclass(frozen=True)
class ScoreWeights:
    swamp_ratio: float = 10.0
    min_harvest_positions: int = 3
    harvest_shortfall: float = 12.0
    unprotected_sources: float = 20.0
    mineral_path_divisor: float = 10.0
    cut_tile: float = 2.0
    shield_tile: float = 1.0
    onboarding_tile: float = 1.0
    hub_upgrade_divisor: float = 10.0
    unprotected_controller: float = 10.0
    unverified_cut: float = 50.0


DEFAULT_SCORE_WEIGHTS = ScoreWeights()


def score_plan(inputs: ScoreInputs, weights: ScoreWeights = DEFAULT_SCORE_WEIGHTS) -> float:
    """Weighted sum of terrain, path, fortification and exposure terms."""

    score = inputs.swamp_ratio * weights.swamp_ratio
    score += sum(inputs.harvest_path_lengths)

    if inputs.source_count:
        # One unprotected source matters more when there are fewer sources.
        score += inputs.unprotected_sources * (weights.unprotected_sources / inputs.source_count)

    for count in inputs.harvest_position_counts:
        if count >= weights.min_harvest_positions:
            continue
        score += (weights.min_harvest_positions - count) * weights.harvest_shortfall

    score += inputs.upgrade_path_length
    score += inputs.mineral_path_length / weights.mineral_path_divisor
    score += (
        inputs.cut_tiles * weights.cut_tile
        + inputs.shield_tiles * weights.shield_tile
        + inputs.onboarding_tiles * weights.onboarding_tile
    )
    score += inputs.hub_upgrade_range / weights.hub_upgrade_divisor
    if not inputs.controller_protected:
        score += weights.unprotected_controller
    if not inputs.cut_verified:
        score += weights.unverified_cut
    return score
