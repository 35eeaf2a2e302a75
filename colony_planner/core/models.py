"""Data models shared by the planning engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, List, Mapping, Optional, Tuple

from .constants import StampType, StructureType


Coord = Tuple[int, int]


@dataclass(frozen=True)
class Stamp:
    """A fixed building template placed relative to an anchor.

    ``size`` is the minimum distance-transform value the anchor needs and
    ``offset`` is the half-size subtracted from the stored offsets.
    """

    stamp_type: StampType
    size: int
    offset: int
    protection_offset: int
    structures: Mapping[StructureType, Tuple[Coord, ...]] = field(default_factory=dict)

    def placements(self, anchor: Coord) -> Iterator[Tuple[StructureType, Coord]]:
        ax, ay = anchor
        for structure_type, offsets in self.structures.items():
            for ox, oy in offsets:
                yield structure_type, (ox + ax - self.offset, oy + ay - self.offset)

    def count(self, structure_type: StructureType) -> int:
        return len(self.structures.get(structure_type, ()))


@dataclass(frozen=True)
class BasePlanEntry:
    """Planned building and the controller level it is built from."""

    structure_type: StructureType
    priority: int


@dataclass(frozen=True)
class RampartPlanEntry:
    """Fortification attributes for one tile."""

    min_rcl: int
    covers_structure: bool = False
    build_for_nuke: bool = False
    build_for_threat: bool = False


@dataclass
class ScoreInputs:
    """Raw measurements a plan is scored from."""

    swamp_ratio: float = 0.0
    harvest_path_lengths: List[int] = field(default_factory=list)
    harvest_position_counts: List[int] = field(default_factory=list)
    unprotected_sources: int = 0
    upgrade_path_length: int = 0
    mineral_path_length: int = 0
    cut_tiles: int = 0
    shield_tiles: int = 0
    onboarding_tiles: int = 0
    hub_upgrade_range: int = 0
    controller_protected: bool = True
    cut_verified: bool = True

    @property
    def source_count(self) -> int:
        return len(self.harvest_position_counts)


@dataclass(frozen=True)
class PlanAttempt:
    """Immutable snapshot of one scored candidate layout.

    Coordinates and plans are held in their packed string forms so an
    attempt can be written to host storage without further conversion.
    """

    start: Coord
    score: float
    base_plans: str
    rampart_plans: str
    stamp_anchors: Mapping[str, str]
    source_harvest_positions: Tuple[str, ...]
    source_paths: Tuple[str, ...]
    mineral_harvest_positions: str
    mineral_path: str
    center_upgrade_pos: str
    upgrade_path: str
    cut_verified: bool = True
    warnings: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # Read-only once recorded.
        object.__setattr__(self, "stamp_anchors", MappingProxyType(dict(self.stamp_anchors)))
        object.__setattr__(self, "source_harvest_positions", tuple(self.source_harvest_positions))
        object.__setattr__(self, "source_paths", tuple(self.source_paths))
        object.__setattr__(self, "warnings", tuple(self.warnings))


@dataclass(frozen=True)
class AttemptSummary:
    """Lightweight record kept for every candidate start."""

    start: Coord
    score: Optional[float]
    failure: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.failure is None
