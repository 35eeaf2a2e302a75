"""Host key-value storage adapter for a chosen base plan.

The host persists a per-room mapping between invocations. A chosen plan
is written under short keys to keep that mapping small; everything stored
is already in packed string form.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, MutableMapping

from ..core.models import PlanAttempt
from ..utils.logger import get_logger


LOGGER = get_logger(__name__)


class RoomMemoryKey(str, Enum):
    SCORE = "S"
    BASE_PLANS = "BPs"
    RAMPART_PLANS = "RPs"
    STAMP_ANCHORS = "SA"
    SOURCE_HARVEST_POSITIONS = "SP"
    SOURCE_PATHS = "SPs"
    MINERAL_HARVEST_POSITIONS = "MP"
    MINERAL_PATH = "MPa"
    CENTER_UPGRADE_POS = "UPs"
    UPGRADE_PATH = "UP"
    PLANNING_COMPLETE = "PC"


def plan_to_memory(attempt: PlanAttempt) -> Dict[str, Any]:
    return {
        RoomMemoryKey.SCORE.value: attempt.score,
        RoomMemoryKey.BASE_PLANS.value: attempt.base_plans,
        RoomMemoryKey.RAMPART_PLANS.value: attempt.rampart_plans,
        RoomMemoryKey.STAMP_ANCHORS.value: dict(attempt.stamp_anchors),
        RoomMemoryKey.SOURCE_HARVEST_POSITIONS.value: list(attempt.source_harvest_positions),
        RoomMemoryKey.SOURCE_PATHS.value: list(attempt.source_paths),
        RoomMemoryKey.MINERAL_HARVEST_POSITIONS.value: attempt.mineral_harvest_positions,
        RoomMemoryKey.MINERAL_PATH.value: attempt.mineral_path,
        RoomMemoryKey.CENTER_UPGRADE_POS.value: attempt.center_upgrade_pos,
        RoomMemoryKey.UPGRADE_PATH.value: attempt.upgrade_path,
        RoomMemoryKey.PLANNING_COMPLETE.value: True,
    }


def write_plan(memory: MutableMapping[str, Any], attempt: PlanAttempt) -> None:
    """Store ``attempt`` in ``memory`` and mark planning complete."""

    memory.update(plan_to_memory(attempt))
    LOGGER.info("Wrote plan from %s (score %.2f) to room memory", attempt.start, attempt.score)


def is_planned(memory: MutableMapping[str, Any]) -> bool:
    return bool(memory.get(RoomMemoryKey.PLANNING_COMPLETE.value))
