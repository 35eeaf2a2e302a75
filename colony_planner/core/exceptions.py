"""Custom exception hierarchy for base planning."""


class PlannerError(Exception):
    """Base exception for planner failures."""


class RoomLoadError(PlannerError):
    """Raised when a room description cannot be parsed."""


class StampPlacementError(PlannerError):
    """Raised when a mandatory stamp finds no valid anchor."""


class MinCutError(PlannerError):
    """Raised when the perimeter cut solver does not reach an optimum."""


class PlanCodecError(PlannerError):
    """Raised when packed plan data is malformed."""


class ValidationError(PlannerError):
    """Raised when a recorded plan attempt fails integrity checks."""
