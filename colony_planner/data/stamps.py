"""Stamp catalog.

Only the fast filler has a fixed layout; every other stamp is dynamic and
its buildings are written by the phase that places it. The catalog is
built once at import time and never mutated.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Mapping, Tuple

from ..core.constants import StampType, StructureType
from ..core.models import Coord, Stamp


def _fast_filler_structures() -> Dict[StructureType, Tuple[Coord, ...]]:
    # Rows read top to bottom, columns left to right; the ring is road.
    layout = (
        "rrrrrrr",
        "reeseer",
        "re_e_er",
        "rsclcsr",
        "re_e_er",
        "reeeeer",
        "rrrrrrr",
    )
    symbols = {
        "r": StructureType.ROAD,
        "e": StructureType.EXTENSION,
        "s": StructureType.SPAWN,
        "c": StructureType.CONTAINER,
        "l": StructureType.LINK,
    }
    structures: Dict[StructureType, list] = {}
    for y, row in enumerate(layout):
        for x, char in enumerate(row):
            if char in symbols:
                structures.setdefault(symbols[char], []).append((x, y))
    return {structure_type: tuple(coords) for structure_type, coords in structures.items()}


def _dynamic(stamp_type: StampType, size: int, protection_offset: int) -> Stamp:
    return Stamp(
        stamp_type=stamp_type,
        size=size,
        offset=size // 2,
        protection_offset=protection_offset,
    )


STAMPS: Mapping[StampType, Stamp] = MappingProxyType(
    {
        StampType.FAST_FILLER: Stamp(
            stamp_type=StampType.FAST_FILLER,
            size=4,
            offset=3,
            protection_offset=6,
            structures=_fast_filler_structures(),
        ),
        StampType.HUB: _dynamic(StampType.HUB, 3, 5),
        StampType.LABS: _dynamic(StampType.LABS, 5, 3),
        StampType.GRID_EXTENSION: _dynamic(StampType.GRID_EXTENSION, 1, 0),
        StampType.SOURCE_LINK: _dynamic(StampType.SOURCE_LINK, 1, 0),
        StampType.SOURCE_EXTENSION: _dynamic(StampType.SOURCE_EXTENSION, 1, 0),
        StampType.TOWER: _dynamic(StampType.TOWER, 1, 1),
        StampType.OBSERVER: _dynamic(StampType.OBSERVER, 1, 0),
        StampType.NUKER: _dynamic(StampType.NUKER, 1, 1),
        StampType.POWER_SPAWN: _dynamic(StampType.POWER_SPAWN, 1, 1),
        StampType.MIN_CUT_RAMPART: _dynamic(StampType.MIN_CUT_RAMPART, 1, 0),
        StampType.ONBOARDING_RAMPART: _dynamic(StampType.ONBOARDING_RAMPART, 1, 0),
        StampType.SHIELD_RAMPART: _dynamic(StampType.SHIELD_RAMPART, 1, 0),
    }
)


def get_stamp(stamp_type: StampType) -> Stamp:
    return STAMPS[stamp_type]
