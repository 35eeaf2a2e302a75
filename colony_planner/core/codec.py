"""Compact string packing for coordinates and coordinate lists.

Each axis value is one character of a 50 symbol alphabet, so a coordinate
always packs to exactly two characters and lists pack by concatenation.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Sequence

from .constants import ROOM_DIMENSIONS, StampType
from .exceptions import PlanCodecError
from .models import Coord


ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMN"
_DECODE: Dict[str, int] = {char: value for value, char in enumerate(ALPHABET)}

assert len(ALPHABET) == ROOM_DIMENSIONS


def encode_value(value: int) -> str:
    if not 0 <= value < ROOM_DIMENSIONS:
        raise PlanCodecError(f"Value {value} outside room bounds")
    return ALPHABET[value]


def decode_value(char: str) -> int:
    try:
        return _DECODE[char]
    except KeyError:
        raise PlanCodecError(f"Unknown packed character {char!r}") from None


def pack_coord(coord: Coord) -> str:
    x, y = coord
    return encode_value(x) + encode_value(y)


def unpack_coord(packed: str) -> Coord:
    if len(packed) != 2:
        raise PlanCodecError(f"Packed coord must be 2 characters, got {packed!r}")
    return decode_value(packed[0]), decode_value(packed[1])


def pack_coord_list(coords: Iterable[Coord]) -> str:
    return "".join(pack_coord(coord) for coord in coords)


def unpack_coord_list(packed: str) -> List[Coord]:
    if len(packed) % 2:
        raise PlanCodecError(f"Packed coord list has odd length {len(packed)}")
    return [unpack_coord(packed[i : i + 2]) for i in range(0, len(packed), 2)]


def pack_stamp_anchors(anchors: Mapping[StampType, Sequence[Coord]]) -> Dict[str, str]:
    return {stamp_type.value: pack_coord_list(coords) for stamp_type, coords in anchors.items()}


def unpack_stamp_anchors(packed: Mapping[str, str]) -> Dict[StampType, List[Coord]]:
    anchors: Dict[StampType, List[Coord]] = {}
    for key, value in packed.items():
        try:
            stamp_type = StampType(key)
        except ValueError:
            raise PlanCodecError(f"Unknown stamp type {key!r}") from None
        anchors[stamp_type] = unpack_coord_list(value)
    return anchors
