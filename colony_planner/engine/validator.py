"""Deterministic rule validation for recorded plan attempts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from ..core.codec import unpack_stamp_anchors
from ..core.constants import StampType, StructureType
from ..core.exceptions import PlanCodecError, ValidationError
from ..core.models import PlanAttempt
from ..data.rooms import RoomInput
from ..utils.logger import get_logger
from .grid import in_room
from .plans import BasePlans, RampartPlans


LOGGER = get_logger(__name__)

SINGLE_ANCHOR_STAMPS = (StampType.FAST_FILLER, StampType.HUB)


@dataclass
class ValidationResult:
    ok: bool
    messages: List[str]


class PlanValidator:
    """Runs structural checks over a finished attempt."""

    def validate(self, attempt: PlanAttempt, room: RoomInput) -> ValidationResult:
        messages: List[str] = []
        try:
            base_plans = BasePlans.unpack(attempt.base_plans)
            rampart_plans = RampartPlans.unpack(attempt.rampart_plans)
            self._check_single_anchors(attempt)
            self._check_structures_walkable(base_plans, room)
            self._check_ramparts_in_room(rampart_plans)
        except (ValidationError, PlanCodecError) as exc:
            messages.append(str(exc))
            LOGGER.error("Validation failed for attempt from %s: %s", attempt.start, exc)
            return ValidationResult(ok=False, messages=messages)

        if not attempt.cut_verified:
            messages.append("Perimeter cut was not verified")
        return ValidationResult(ok=True, messages=messages)

    def _check_single_anchors(self, attempt: PlanAttempt) -> None:
        anchors = unpack_stamp_anchors(attempt.stamp_anchors)
        for stamp_type in SINGLE_ANCHOR_STAMPS:
            count = len(anchors.get(stamp_type, ()))
            if count != 1:
                raise ValidationError(f"Expected one {stamp_type.value} anchor, found {count}")

    def _check_structures_walkable(self, base_plans: BasePlans, room: RoomInput) -> None:
        objects = set(room.objects)
        for (x, y), entry in base_plans.entries():
            if room.terrain.is_wall(x, y):
                raise ValidationError(f"{entry.structure_type.value} planned on a wall at {(x, y)}")
            if (x, y) not in objects:
                continue
            if entry.structure_type == StructureType.EXTRACTOR and (x, y) == room.mineral:
                continue
            raise ValidationError(f"{entry.structure_type.value} planned on a room object at {(x, y)}")

    def _check_ramparts_in_room(self, rampart_plans: RampartPlans) -> None:
        for (x, y), _ in rampart_plans.entries():
            if not in_room(x, y):
                raise ValidationError(f"Rampart outside the room at {(x, y)}")
