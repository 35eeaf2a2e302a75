"""Plan attempt orchestration across many budgeted invocations.

One :class:`CommunePlanner` exists per room. Each call to :meth:`run`
does at most one slice of work: one session phase, or recording the
finished session. Candidate start coordinates are tried in turn and the
lowest scoring attempt wins once they are exhausted.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, MutableMapping, Optional

from ..core.constants import (DEFAULT_MIN_CUT_DEPTH, DEFAULT_ROAD_PLANNING_PLAIN_COST, DEFAULT_SWAMP_COST,
                              DYNAMIC_DISTANCE_WEIGHT, MAX_RAMPART_GROUP_SIZE, MIN_ONBOARDING_RAMPARTS,
                              UNPROTECTED_COORD_WEIGHT, PlannerState)
from ..core.exceptions import PlannerError
from ..core.models import AttemptSummary, Coord, PlanAttempt
from ..data.rooms import RoomInput
from ..data.terrain_cache import DEFAULT_TERRAIN_CACHE, TerrainCache
from ..io.memory import write_plan
from ..utils.logger import get_logger, room_logger
from .budget import ComputeBudget
from .pathfinder import PathGoal, Pathfinder
from .scorer import DEFAULT_SCORE_WEIGHTS, ScoreWeights
from .session import PlanningSession
from .validator import PlanValidator


LOGGER = get_logger(__name__)


@dataclass
class PlannerConfig:
    min_phase_budget: float = 0.05
    road_plain_cost: int = DEFAULT_ROAD_PLANNING_PLAIN_COST
    swamp_cost: int = DEFAULT_SWAMP_COST
    min_cut_depth: int = DEFAULT_MIN_CUT_DEPTH
    max_rampart_group_size: int = MAX_RAMPART_GROUP_SIZE
    min_onboarding_ramparts: int = MIN_ONBOARDING_RAMPARTS
    unprotected_weight: int = UNPROTECTED_COORD_WEIGHT
    dynamic_distance_weight: int = DYNAMIC_DISTANCE_WEIGHT
    score_weights: ScoreWeights = field(default_factory=lambda: DEFAULT_SCORE_WEIGHTS)


class CommunePlanner:
    """Resumable state machine producing the best base plan for one room."""

    def __init__(
        self,
        room: RoomInput,
        config: Optional[PlannerConfig] = None,
        terrain_cache: Optional[TerrainCache] = None,
    ) -> None:
        self.room = room
        self.config = config or PlannerConfig()
        self.log = room_logger(LOGGER, room.name)
        self.terrain_cache = terrain_cache or DEFAULT_TERRAIN_CACHE
        self.validator = PlanValidator()
        self.state = PlannerState.UNINITIALIZED
        self.session: Optional[PlanningSession] = None
        self.attempts: List[PlanAttempt] = []
        self.attempt_summaries: List[AttemptSummary] = []
        self.best_attempt: Optional[PlanAttempt] = None
        self._terrain_coords: Optional[bytes] = None
        self._pathfinder: Optional[Pathfinder] = None
        self._start_coords: Optional[List[Coord]] = None
        self._candidate_index = 0

    # ------------------------------------------------------------------
    # Public entrypoint
    # ------------------------------------------------------------------
    def run(self, budget: ComputeBudget) -> bool:
        """Advance planning by one slice; returns whether any work was done."""

        if self.state == PlannerState.COMPLETE:
            return False
        if budget.remaining() < self.config.min_phase_budget:
            self.log.debug(
                "Budget %.3fs of %.3fs is below the %.3fs phase minimum; skipping",
                budget.remaining(),
                budget.limit(),
                self.config.min_phase_budget,
            )
            return False

        if self.state == PlannerState.RECORDING:
            self._record()
            return True

        if self._start_coords is None:
            self._initialise()
            if self._candidate_index >= len(self._start_coords):
                self._finish()
                return True

        if self.session is None:
            start = self._start_coords[self._candidate_index]
            self.log.info(
                "Starting plan attempt %s/%s from %s",
                self._candidate_index + 1,
                len(self._start_coords),
                start,
            )
            self.session = PlanningSession(self.room, self._terrain_coords, start, self.config, self._pathfinder)
            self.state = PlannerState.SESSION_ACTIVE

        try:
            self.session.run_next_phase()
        except PlannerError as exc:
            self.log.warning("Plan attempt from %s aborted: %s", self.session.start, exc)
            self.attempt_summaries.append(AttemptSummary(self.session.start, None, str(exc)))
            self._advance()
            return True

        if self.session.finished:
            self.state = PlannerState.RECORDING
        return True

    @property
    def candidate_starts(self) -> List[Coord]:
        return list(self._start_coords or ())

    def choose_plan(self, memory: MutableMapping[str, object]) -> PlanAttempt:
        """Write the best attempt into ``memory``; only valid once complete."""

        if self.state != PlannerState.COMPLETE:
            raise PlannerError(f"Planning for {self.room.name} is not complete ({self.state.value})")
        if self.best_attempt is None:
            raise PlannerError(f"No viable plan for {self.room.name}")
        write_plan(memory, self.best_attempt)
        return self.best_attempt

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _initialise(self) -> None:
        self._terrain_coords = self.terrain_cache.terrain_coords(self.room)
        self._pathfinder = Pathfinder(self.room.terrain, self._terrain_coords)
        self._start_coords = find_start_coords(self.room, self._pathfinder, self.config.road_plain_cost)
        self.log.info("Planning from %s candidate starts", len(self._start_coords))

    def _record(self) -> None:
        session = self.session
        attempt = session.to_attempt()
        result = self.validator.validate(attempt, self.room)
        if result.ok:
            self.attempts.append(attempt)
            self.attempt_summaries.append(AttemptSummary(attempt.start, attempt.score))
            self.log.info("Recorded attempt from %s with score %.2f", attempt.start, attempt.score)
        else:
            self.log.warning("Dropping attempt from %s: %s", attempt.start, "; ".join(result.messages))
            self.attempt_summaries.append(AttemptSummary(attempt.start, attempt.score, "; ".join(result.messages)))
        self._advance()

    def _advance(self) -> None:
        self.session = None
        self._candidate_index += 1
        if self._candidate_index >= len(self._start_coords):
            self._finish()
            return
        self.state = PlannerState.SESSION_ACTIVE

    def _finish(self) -> None:
        best: Optional[PlanAttempt] = None
        for attempt in self.attempts:
            if best is None or attempt.score < best.score:
                best = attempt
        self.best_attempt = best
        # Sibling attempts are dropped; their summaries remain.
        self.attempts = [best] if best is not None else []
        self.state = PlannerState.COMPLETE
        if best is None:
            self.log.error("No plan attempt survived")
            return
        self.log.info("Best plan starts at %s with score %.2f", best.start, best.score)


def _midpoint(path: Optional[List[Coord]]) -> Optional[Coord]:
    if not path:
        return None
    return path[len(path) // 2]


def find_start_coords(room: RoomInput, pathfinder: Pathfinder, plain_cost: int) -> List[Coord]:
    """Candidate fast filler starts, in the order they are attempted.

    The controller, each source, the midpoint of the shortest source to
    controller path and the midpoint of the path between the first two
    sources. Duplicates and unreachable midpoints are skipped.
    """

    starts: List[Coord] = [room.controller, *room.sources]

    shortest: Optional[List[Coord]] = None
    shortest_length = math.inf
    for source in room.sources:
        path = pathfinder.find_path(source, [PathGoal(room.controller, 1)], plain_cost=plain_cost)
        if path is None or len(path) >= shortest_length:
            continue
        shortest = path
        shortest_length = len(path)
    midpoint = _midpoint(shortest)
    if midpoint is not None:
        starts.append(midpoint)

    if len(room.sources) > 1:
        path = pathfinder.find_path(room.sources[0], [PathGoal(room.sources[1], 1)], plain_cost=plain_cost)
        midpoint = _midpoint(path)
        if midpoint is not None:
            starts.append(midpoint)

    unique: List[Coord] = []
    for coord in starts:
        if coord not in unique:
            unique.append(coord)
    return unique
