"""Base and rampart plan containers with their packed string forms.

Packed base plans are a run of 4 character records: two coordinate
characters, one structure code and one priority digit. Packed rampart
plans use the same coordinate prefix followed by the minimum controller
level digit and a flags digit (bit 0 covers a structure, bit 1 build for
nukes, bit 2 build under threat).
"""

from __future__ import annotations

from typing import Dict, Iterator, Optional, Tuple

from ..core.codec import pack_coord, unpack_coord
from ..core.constants import MAX_CONTROLLER_LEVEL, StructureType
from ..core.exceptions import PlanCodecError
from ..core.models import BasePlanEntry, Coord, RampartPlanEntry
from .grid import pack, unpack


STRUCTURE_CODES: Dict[StructureType, str] = {
    StructureType.SPAWN: "s",
    StructureType.EXTENSION: "e",
    StructureType.ROAD: "r",
    StructureType.CONTAINER: "c",
    StructureType.LINK: "l",
    StructureType.STORAGE: "S",
    StructureType.TERMINAL: "T",
    StructureType.FACTORY: "F",
    StructureType.LAB: "L",
    StructureType.TOWER: "t",
    StructureType.OBSERVER: "o",
    StructureType.NUKER: "n",
    StructureType.POWER_SPAWN: "p",
    StructureType.EXTRACTOR: "x",
}
STRUCTURES_BY_CODE: Dict[str, StructureType] = {code: kind for kind, code in STRUCTURE_CODES.items()}

BASE_RECORD_SIZE = 4
RAMPART_RECORD_SIZE = 4

_COVERS_FLAG = 1
_NUKE_FLAG = 2
_THREAT_FLAG = 4


def _check_level(value: int) -> None:
    if not 0 <= value <= MAX_CONTROLLER_LEVEL:
        raise PlanCodecError(f"Controller level {value} out of range")


def _parse_digit(char: str, upper: int) -> int:
    if not char.isdigit() or int(char) > upper:
        raise PlanCodecError(f"Invalid packed digit {char!r}")
    return int(char)


class BasePlans:
    """Coordinate to planned building mapping.

    Each coordinate holds at most one non-road building, which a later
    assignment replaces, plus an optional road entry alongside it that
    keeps the lowest priority it was given.
    """

    def __init__(self) -> None:
        self._structures: Dict[int, BasePlanEntry] = {}
        self._roads: Dict[int, int] = {}

    def set(self, coord: Coord, structure_type: StructureType, priority: int) -> None:
        _check_level(priority)
        index = pack(coord)
        if structure_type == StructureType.ROAD:
            # Shared roads are built for the earliest plan that needs them.
            self._roads[index] = min(priority, self._roads.get(index, priority))
            return
        self._structures[index] = BasePlanEntry(structure_type, priority)

    def remove_road(self, coord: Coord) -> None:
        self._roads.pop(pack(coord), None)

    def get(self, coord: Coord) -> Optional[BasePlanEntry]:
        """The non-road building at ``coord``, else its road, else ``None``."""
        index = pack(coord)
        entry = self._structures.get(index)
        if entry is not None:
            return entry
        if index in self._roads:
            return BasePlanEntry(StructureType.ROAD, self._roads[index])
        return None

    def structure_at(self, coord: Coord) -> Optional[StructureType]:
        entry = self._structures.get(pack(coord))
        return entry.structure_type if entry is not None else None

    def has_road(self, coord: Coord) -> bool:
        return pack(coord) in self._roads

    def entries(self) -> Iterator[Tuple[Coord, BasePlanEntry]]:
        """Every entry in coordinate order, building before road."""
        for index in sorted(set(self._structures) | set(self._roads)):
            coord = unpack(index)
            if index in self._structures:
                yield coord, self._structures[index]
            if index in self._roads:
                yield coord, BasePlanEntry(StructureType.ROAD, self._roads[index])

    def count(self, structure_type: StructureType) -> int:
        if structure_type == StructureType.ROAD:
            return len(self._roads)
        return sum(1 for entry in self._structures.values() if entry.structure_type == structure_type)

    def __len__(self) -> int:
        return len(self._structures) + len(self._roads)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BasePlans):
            return NotImplemented
        return self._structures == other._structures and self._roads == other._roads

    def pack(self) -> str:
        return "".join(
            pack_coord(coord) + STRUCTURE_CODES[entry.structure_type] + str(entry.priority)
            for coord, entry in self.entries()
        )

    @classmethod
    def unpack(cls, packed: str) -> "BasePlans":
        if len(packed) % BASE_RECORD_SIZE:
            raise PlanCodecError(f"Packed base plan length {len(packed)} is not a multiple of 4")
        plans = cls()
        for start in range(0, len(packed), BASE_RECORD_SIZE):
            record = packed[start : start + BASE_RECORD_SIZE]
            structure_type = STRUCTURES_BY_CODE.get(record[2])
            if structure_type is None:
                raise PlanCodecError(f"Unknown structure code {record[2]!r}")
            plans.set(unpack_coord(record[:2]), structure_type, _parse_digit(record[3], MAX_CONTROLLER_LEVEL))
        return plans


class RampartPlans:
    """Coordinate to fortification attributes; later assignments replace."""

    def __init__(self) -> None:
        self._entries: Dict[int, RampartPlanEntry] = {}

    def set(
        self,
        coord: Coord,
        min_rcl: int,
        covers_structure: bool = False,
        build_for_nuke: bool = False,
        build_for_threat: bool = False,
    ) -> None:
        _check_level(min_rcl)
        self._entries[pack(coord)] = RampartPlanEntry(
            min_rcl, covers_structure, build_for_nuke, build_for_threat
        )

    def get(self, coord: Coord) -> Optional[RampartPlanEntry]:
        return self._entries.get(pack(coord))

    def __contains__(self, coord: Coord) -> bool:
        return pack(coord) in self._entries

    def entries(self) -> Iterator[Tuple[Coord, RampartPlanEntry]]:
        for index in sorted(self._entries):
            yield unpack(index), self._entries[index]

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RampartPlans):
            return NotImplemented
        return self._entries == other._entries

    def pack(self) -> str:
        records = []
        for coord, entry in self.entries():
            flags = (
                (_COVERS_FLAG if entry.covers_structure else 0)
                | (_NUKE_FLAG if entry.build_for_nuke else 0)
                | (_THREAT_FLAG if entry.build_for_threat else 0)
            )
            records.append(pack_coord(coord) + str(entry.min_rcl) + str(flags))
        return "".join(records)

    @classmethod
    def unpack(cls, packed: str) -> "RampartPlans":
        if len(packed) % RAMPART_RECORD_SIZE:
            raise PlanCodecError(f"Packed rampart plan length {len(packed)} is not a multiple of 4")
        plans = cls()
        for start in range(0, len(packed), RAMPART_RECORD_SIZE):
            record = packed[start : start + RAMPART_RECORD_SIZE]
            flags = _parse_digit(record[3], 7)
            plans.set(
                unpack_coord(record[:2]),
                _parse_digit(record[2], MAX_CONTROLLER_LEVEL),
                covers_structure=bool(flags & _COVERS_FLAG),
                build_for_nuke=bool(flags & _NUKE_FLAG),
                build_for_threat=bool(flags & _THREAT_FLAG),
            )
        return plans
