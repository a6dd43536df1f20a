"""Availability domain models and upstream payload normalization."""

from .models import (
    AvailabilityQuery,
    AvailabilityReason,
    AvailabilityResult,
    CalendarWindow,
    RoomAvailabilityRecord,
    RoomTypeOption,
)
from .normalizer import (
    build_room_record,
    is_available_value,
    normalize_availability,
    record_from_compact,
    records_from_rows,
    room_type_options,
)
from .shapes import (
    CompactRoomPayload,
    PayloadShape,
    RoomTypesPayload,
    RowsPayload,
    SentinelPayload,
    UnrecognizedPayload,
    detect_shape,
)

__all__ = [
    "AvailabilityQuery",
    "AvailabilityReason",
    "AvailabilityResult",
    "CalendarWindow",
    "CompactRoomPayload",
    "PayloadShape",
    "RoomAvailabilityRecord",
    "RoomTypeOption",
    "RoomTypesPayload",
    "RowsPayload",
    "SentinelPayload",
    "UnrecognizedPayload",
    "build_room_record",
    "detect_shape",
    "is_available_value",
    "normalize_availability",
    "record_from_compact",
    "records_from_rows",
    "room_type_options",
]
