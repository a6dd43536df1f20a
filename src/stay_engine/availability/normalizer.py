"""Utilities to transform raw upstream availability payloads into normalised records."""
from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from stay_engine.errors import StayEngineError
from stay_engine.utils.dates import is_iso_date
from stay_engine.utils.money import ZERO, to_amount, to_int

from .models import AvailabilityQuery, AvailabilityReason, AvailabilityResult, RoomAvailabilityRecord, RoomTypeOption
from .shapes import (
    CompactRoomPayload,
    RoomTypesPayload,
    RowsPayload,
    SentinelPayload,
    detect_shape,
)

logger = logging.getLogger(__name__)

PayloadFetcher = Callable[[AvailabilityQuery], Awaitable[Any]]

_ROOM_TYPE_ID_KEYS = ("roomTypeId", "RoomTypeId", "RoomTypeID")
_ROW_TOTAL_KEYS = ("totalPrice", "roomSubtotal", "grossAmountUpstream")
_AVAILABLE_STRINGS = frozenset({"1", "true", "yes"})


def is_available_value(value: Any) -> bool:
    if value is True or (isinstance(value, (int, float)) and not isinstance(value, bool) and value == 1):
        return True
    return str(value if value is not None else "").strip().lower() in _AVAILABLE_STRINGS


def _first_present(mapping: Dict[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = mapping.get(key)
        if value is not None:
            return value
    return None


def _is_mapping(value: Any) -> bool:
    return isinstance(value, dict)


def _pick_amount_map(raw: Any) -> Dict[str, Decimal]:
    if not _is_mapping(raw):
        return {}
    return {key: to_amount(value) for key, value in raw.items() if is_iso_date(key)}


def _pick_int_map(raw: Any) -> Dict[str, int]:
    if not _is_mapping(raw):
        return {}
    return {key: to_int(value) for key, value in raw.items() if is_iso_date(key)}


def _pick_flag_map(raw: Any) -> Dict[str, bool]:
    if not _is_mapping(raw):
        return {}
    return {key: is_available_value(value) for key, value in raw.items() if is_iso_date(key)}


def _pick_from_days(raw_days: Any, field_name: str) -> Dict[str, Any]:
    """Read one field out of a ``{date: {price, available, minStay, maxStay}}`` map."""
    if not _is_mapping(raw_days):
        return {}
    picked: Dict[str, Any] = {}
    for key, day in raw_days.items():
        day = day if _is_mapping(day) else {}
        iso = key if is_iso_date(key) else str(day.get("date") or "")
        if not is_iso_date(iso):
            continue
        value = day.get(field_name)
        if field_name == "available":
            picked[iso] = is_available_value(value)
        elif field_name == "price":
            picked[iso] = to_amount(value)
        elif value is not None:
            # A day without a stay rule falls back to the record default.
            picked[iso] = to_int(value)
    return picked


def _prefer_non_empty(primary: Dict[str, Any], fallback: Dict[str, Any]) -> Dict[str, Any]:
    return primary if primary else fallback


def _normalize_daily_prices(raw: Any, room_type_id: Optional[str]) -> Dict[str, Decimal]:
    """Accept a flat date map, or a map nested per room type."""

    def positive(candidate: Any) -> Dict[str, Decimal]:
        return {key: value for key, value in _pick_amount_map(candidate).items() if value > 0}

    direct = positive(raw)
    if direct or not _is_mapping(raw):
        return direct
    if room_type_id and _is_mapping(raw.get(room_type_id)):
        targeted = positive(raw[room_type_id])
        if targeted:
            return targeted
    for value in raw.values():
        nested = positive(value)
        if nested:
            return nested
    return {}


def _optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    return to_int(value)


def row_room_type_id(row: Dict[str, Any]) -> str:
    value = _first_present(row, _ROOM_TYPE_ID_KEYS)
    return str(value if value is not None else "").strip()


def sum_nightly_prices(daily_prices: Dict[str, Decimal], nights: Iterable[str]) -> Decimal:
    return sum((daily_prices.get(night, ZERO) for night in nights), ZERO)


def row_total(row: Dict[str, Any], nights: List[str]) -> Decimal:
    """Row total as reported upstream, else the sum of the requested nights' prices."""
    direct = to_amount(_first_present(row, _ROW_TOTAL_KEYS))
    if direct > 0:
        return direct
    summed = sum_nightly_prices(_pick_amount_map(row.get("dailyPrices")), nights)
    return summed if summed > 0 else ZERO


def fully_available(record: RoomAvailabilityRecord, nights: Iterable[str]) -> bool:
    return all(record.is_available(night) for night in nights)


def build_room_record(
    body: Dict[str, Any],
    *,
    query: AvailabilityQuery,
    room_type_id: Optional[str] = None,
    room_type_name: Optional[str] = None,
) -> RoomAvailabilityRecord:
    """Build a record from a compact body or a row; both share the same field names."""
    days = body.get("days")
    defaults = body.get("defaults") if _is_mapping(body.get("defaults")) else {}
    resolved_id = room_type_id or row_room_type_id(body) or (query.room_type_id or "")
    name = room_type_name or body.get("roomTypeName") or resolved_id

    daily_prices = _prefer_non_empty(
        _normalize_daily_prices(body.get("dailyPrices"), resolved_id),
        {key: value for key, value in _pick_from_days(days, "price").items() if value > 0},
    )
    availability = _prefer_non_empty(_pick_flag_map(body.get("availability")), _pick_from_days(days, "available"))
    min_stay = _prefer_non_empty(_pick_int_map(body.get("minStay")), _pick_from_days(days, "minStay"))
    max_stay = _prefer_non_empty(_pick_int_map(body.get("maxStay")), _pick_from_days(days, "maxStay"))

    property_id = _first_present(body, ("hotelId", "hotelNo"))
    total = to_amount(_first_present(body, _ROW_TOTAL_KEYS))

    return RoomAvailabilityRecord(
        room_type_id=str(resolved_id).strip(),
        room_type_name=str(name),
        currency_code=str(body.get("currencyCode") or query.currency).upper(),
        daily_prices=daily_prices,
        availability=availability,
        min_stay_by_date=min_stay,
        max_stay_by_date=max_stay,
        default_min_stay=_optional_int(_first_present(defaults, ("minNights",)) or body.get("minNights")),
        default_max_stay=_optional_int(_first_present(defaults, ("maxNights",)) or body.get("maxNights")),
        pet_fee_amount=to_amount(body.get("petFeeAmount")),
        cleaning_fee_amount=to_amount(body.get("cleaningFeeAmount")),
        vat_amount=to_amount(body.get("vatAmount")),
        property_id=str(property_id) if property_id is not None else query.property_id,
        total_price=total if total > 0 else None,
        raw=body,
    )


def records_from_rows(rows: Iterable[Any], query: AvailabilityQuery) -> List[RoomAvailabilityRecord]:
    """Pass row-shaped results through, discarding placeholder rows.

    A row without an availability map is upstream's statement that the room is
    bookable for the whole query window, so every requested night is marked available.
    """
    nights = query.night_keys()
    records: List[RoomAvailabilityRecord] = []
    for row in rows:
        if not _is_mapping(row):
            continue
        if not row_room_type_id(row):
            continue
        total = row_total(row, nights)
        if total <= 0:
            continue
        record = build_room_record(row, query=query)
        if not record.availability:
            record.availability = {night: True for night in nights}
        record.total_price = total
        records.append(record)
    return records


def record_from_compact(
    body: Dict[str, Any],
    query: AvailabilityQuery,
    *,
    room_type_id: Optional[str] = None,
    room_type_name: Optional[str] = None,
    require_full_window: bool = True,
) -> Optional[RoomAvailabilityRecord]:
    """Expand a compact single-room body; ``None`` when it is a placeholder.

    With ``require_full_window`` every requested night must be available and the
    summed price positive, which is what a search needs. The booking calendar loads
    a long window where gaps are expected and passes ``False``.
    """
    record = build_room_record(body, query=query, room_type_id=room_type_id, room_type_name=room_type_name)
    if not record.room_type_id:
        return None
    if not require_full_window:
        return record
    nights = query.night_keys()
    total = sum_nightly_prices(record.daily_prices, nights)
    if total <= 0 or not fully_available(record, nights):
        return None
    record.total_price = total
    return record


def room_type_options(room_types: Iterable[Any]) -> List[RoomTypeOption]:
    options: List[RoomTypeOption] = []
    for entry in room_types:
        if not _is_mapping(entry):
            continue
        room_type_id = str(entry.get("roomTypeId") if entry.get("roomTypeId") is not None else "").strip()
        if not room_type_id:
            continue
        name = entry.get("roomTypeName") or entry.get("name") or room_type_id
        options.append(RoomTypeOption(room_type_id=room_type_id, room_type_name=str(name)))
    return options


async def _fan_out(
    options: List[RoomTypeOption],
    query: AvailabilityQuery,
    fetch: PayloadFetcher,
    *,
    require_full_window: bool,
) -> List[RoomAvailabilityRecord]:
    results = await asyncio.gather(
        *(fetch(query.scoped(option.room_type_id)) for option in options),
        return_exceptions=True,
    )
    records: List[RoomAvailabilityRecord] = []
    for option, result in zip(options, results):
        if isinstance(result, StayEngineError):
            logger.warning(
                "Dropping room type %s from %s: %s", option.room_type_id, query.property_id, result
            )
            continue
        if isinstance(result, BaseException):
            raise result
        records.extend(
            _records_for_shape(
                result,
                query.scoped(option.room_type_id),
                room_type_name=option.room_type_name,
                require_full_window=require_full_window,
            )
        )
    return records


def _records_for_shape(
    payload: Any,
    query: AvailabilityQuery,
    *,
    room_type_name: Optional[str] = None,
    require_full_window: bool = True,
) -> List[RoomAvailabilityRecord]:
    shape = detect_shape(payload)
    if isinstance(shape, RowsPayload):
        return records_from_rows(shape.rows, query)
    if isinstance(shape, (CompactRoomPayload, RoomTypesPayload)):
        record = record_from_compact(
            shape.body,
            query,
            room_type_id=query.room_type_id,
            room_type_name=room_type_name,
            require_full_window=require_full_window,
        )
        return [record] if record else []
    return []


async def normalize_availability(
    payload: Any,
    query: AvailabilityQuery,
    *,
    fetch: Optional[PayloadFetcher] = None,
    require_full_window: bool = True,
) -> AvailabilityResult:
    """Turn any upstream payload shape into zero or more room records.

    ``fetch`` is used for the per-room-type fan-out when upstream returns a
    property-wide ``roomTypes`` listing and the query was not scoped to one room
    type. A room type whose follow-up request fails is dropped on its own.
    """
    shape = detect_shape(payload)
    if isinstance(shape, SentinelPayload):
        logger.debug("Upstream reported no rooms for %s: %s", query.property_id, shape.message)
        return AvailabilityResult.empty(AvailabilityReason.NO_ROOMS)

    if isinstance(shape, RowsPayload):
        records = records_from_rows(shape.rows, query)
    elif isinstance(shape, RoomTypesPayload) and not query.room_type_id:
        if fetch is None:
            raise ValueError("Room-type fan-out requires a payload fetcher")
        options = room_type_options(shape.room_types)
        logger.info("Fanning out availability for %s across %s room types", query.property_id, len(options))
        records = await _fan_out(options, query, fetch, require_full_window=require_full_window)
    elif isinstance(shape, (CompactRoomPayload, RoomTypesPayload)):
        record = record_from_compact(shape.body, query, require_full_window=require_full_window)
        records = [record] if record else []
    else:
        logger.debug("Unrecognised availability payload for %s", query.property_id)
        return AvailabilityResult.empty(AvailabilityReason.NO_AREA_COVERAGE)

    if not records:
        return AvailabilityResult.empty(AvailabilityReason.NO_ROOMS)
    return AvailabilityResult(rooms=records)
