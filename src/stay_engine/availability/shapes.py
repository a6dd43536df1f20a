"""Shape detection for upstream availability payloads.

Upstream answers with one of several shapes, optionally wrapped in one or two
``{"data": ...}`` envelopes. :func:`detect_shape` unwraps the envelopes and
returns exactly one variant of :data:`PayloadShape`.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Union

MAX_ENVELOPE_DEPTH = 2

COMPACT_KEYS = ("dailyPrices", "availability", "days")


@dataclass(frozen=True, slots=True)
class SentinelPayload:
    """Upstream's bare string meaning there is nothing to book."""

    message: str


@dataclass(frozen=True, slots=True)
class RowsPayload:
    """One flat row per room type, already priced for the query window."""

    rows: List[Any]


@dataclass(frozen=True, slots=True)
class RoomTypesPayload:
    """Property-wide compact object listing room types to query one by one."""

    body: Dict[str, Any]
    room_types: List[Any]


@dataclass(frozen=True, slots=True)
class CompactRoomPayload:
    """A single room type's window as parallel date-keyed maps."""

    body: Dict[str, Any]


@dataclass(frozen=True, slots=True)
class UnrecognizedPayload:
    value: Any


PayloadShape = Union[SentinelPayload, RowsPayload, RoomTypesPayload, CompactRoomPayload, UnrecognizedPayload]


def _unwrap(payload: Any) -> Any:
    root = payload
    for _ in range(MAX_ENVELOPE_DEPTH):
        if isinstance(root, dict) and "data" in root:
            root = root["data"]
            if isinstance(root, str):
                return root
            continue
        break
    return root


def detect_shape(payload: Any) -> PayloadShape:
    root = _unwrap(payload)
    if isinstance(root, str):
        return SentinelPayload(root)
    if isinstance(root, list):
        return RowsPayload(list(root))
    if isinstance(root, dict):
        rows = root.get("rows")
        if isinstance(rows, list):
            return RowsPayload(list(rows))
        room_types = root.get("roomTypes")
        if isinstance(room_types, list):
            return RoomTypesPayload(body=root, room_types=list(room_types))
        if any(key in root for key in COMPACT_KEYS):
            return CompactRoomPayload(body=root)
    return UnrecognizedPayload(root)
