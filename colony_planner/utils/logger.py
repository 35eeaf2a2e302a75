"""Logging utilities tailored for base planning."""

from __future__ import annotations

import logging
from typing import Optional, Tuple

NO_ROOM = "-"


class RoomContextFilter(logging.Filter):
    """Give every record a ``room`` field so the shared format never fails."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "room"):
            record.room = NO_ROOM
        return True


def configure_logging(level: int = logging.INFO) -> None:
    """Configure root logging with a sensible formatter.

    Planning for one room is spread over many invocations and several
    candidate starts, so each line names the room and, inside a session,
    the start it is planning from. Callers may reconfigure before
    constructing :class:`CommunePlanner`.
    """

    handler = logging.StreamHandler()
    handler.addFilter(RoomContextFilter())
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-7s | %(name)s | %(room)s | %(message)s",
        datefmt="%H:%M:%S",
    )
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a namespaced logger, configuring defaults if needed."""

    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name or "colony_planner")


def room_logger(
    logger: logging.Logger,
    room_name: str,
    start: Optional[Tuple[int, int]] = None,
) -> logging.LoggerAdapter:
    """Wrap ``logger`` so its records carry the room and session start."""

    label = room_name if start is None else f"{room_name}@{start[0]},{start[1]}"
    return logging.LoggerAdapter(logger, {"room": label})
