from __future__ import annotations

from datetime import date
from decimal import Decimal

import httpx
import pytest

from stay_engine.availability.models import AvailabilityQuery, AvailabilityReason
from stay_engine.config.settings import Settings
from stay_engine.errors import InvalidDateRange, UpstreamError
from stay_engine.services import AvailabilityClient, AvailabilityService, QuoteRequest


class _FixedTodaySettings(Settings):
    def today(self) -> date:
        return date(2025, 7, 1)


SETTINGS = _FixedTodaySettings(upstream_base_url="http://pms.test", _env_file=None)


def _compact(room_type_id: str = "ROOM-A", **overrides) -> dict:
    body = {
        "roomTypeId": room_type_id,
        "roomTypeName": "Lakeview Suite",
        "dailyPrices": {"2025-07-01": "100", "2025-07-02": "120", "2025-07-03": "120"},
        "availability": {"2025-07-01": True, "2025-07-02": True, "2025-07-03": True},
        "defaults": {"minNights": 1, "maxNights": 14},
        "petFeeAmount": "25",
        "cleaningFeeAmount": "40",
        "vatAmount": "10",
    }
    body.update(overrides)
    return body


def _service(handler) -> AvailabilityService:
    client = AvailabilityClient.from_settings(SETTINGS, transport=httpx.MockTransport(handler))
    return AvailabilityService(client, SETTINGS)


def _request(**overrides) -> QuoteRequest:
    params = {
        "property_id": "CBE",
        "room_type_id": "ROOM-A",
        "check_in": "2025-07-01",
        "check_out": "2025-07-03",
        "adults": 2,
    }
    params.update(overrides)
    return QuoteRequest(**params)


@pytest.mark.asyncio
async def test_search_rejects_inverted_window_before_any_request():
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=[])

    service = _service(handler)
    query = AvailabilityQuery(property_id="CBE", start_date=date(2025, 7, 3), end_date=date(2025, 7, 3))

    with pytest.raises(InvalidDateRange):
        await service.search(query)
    assert calls == []


@pytest.mark.asyncio
async def test_search_fans_out_per_room_type():
    def handler(request: httpx.Request) -> httpx.Response:
        room_type_id = request.url.params.get("roomTypeId")
        if room_type_id is None:
            return httpx.Response(200, json={"data": {"roomTypes": [{"roomTypeId": "ROOM-A"}, {"roomTypeId": "ROOM-B"}]}})
        if room_type_id == "ROOM-B":
            return httpx.Response(500, text="boom")
        return httpx.Response(200, json={"data": _compact(room_type_id)})

    service = _service(handler)
    query = AvailabilityQuery(property_id="CBE", start_date=date(2025, 7, 1), end_date=date(2025, 7, 3))

    result = await service.search(query)

    assert [room.room_type_id for room in result.rooms] == ["ROOM-A"]
    assert result.rooms[0].total_price == Decimal("220")


@pytest.mark.asyncio
async def test_search_propagates_upstream_failure():
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="bad gateway")

    service = _service(handler)
    query = AvailabilityQuery(property_id="CBE", start_date=date(2025, 7, 1), end_date=date(2025, 7, 3))

    with pytest.raises(UpstreamError):
        await service.search(query)


@pytest.mark.asyncio
async def test_quote_prices_bookable_stay():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["roomTypeId"] == "ROOM-A"
        assert request.url.params["pet"] == "yes"
        return httpx.Response(200, json={"data": _compact()})

    result = await _service(handler).quote(_request(pet=True))

    assert result.available is True
    assert result.reason is None
    payload = result.to_dict()
    assert payload["quote"]["roomSubtotal"] == "220.00"
    assert payload["quote"]["grandTotal"] == "295.00"


@pytest.mark.asyncio
async def test_quote_reports_gap_without_hiding_total():
    body = _compact(availability={"2025-07-01": True, "2025-07-02": False})

    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": body})

    result = await _service(handler).quote(_request())

    assert result.available is False
    assert result.reason == "unavailable-nights"
    assert result.to_dict()["quote"]["grandTotal"] == "270.00"


@pytest.mark.asyncio
async def test_quote_rejects_stay_rule_violation():
    body = _compact(minStay={"2025-07-01": 3})

    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=body)

    result = await _service(handler).quote(_request())

    assert result.to_dict() == {"available": False, "reason": "stay-rule-violation"}


@pytest.mark.asyncio
async def test_quote_without_rooms_or_prices():
    def sentinel(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": "No available rooms"})

    def unpriced(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_compact(dailyPrices={}))

    assert (await _service(sentinel).quote(_request())).reason == AvailabilityReason.NO_ROOMS.value
    assert (await _service(unpriced).quote(_request())).reason == "no-pricing"


@pytest.mark.asyncio
async def test_quote_never_prices_a_different_room_type():
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": _compact("ROOM-A")})

    service = _service(handler)
    result = await service.quote(_request(room_type_id="ROOM-B"))

    assert result.to_dict() == {"available": False, "reason": "room-type-mismatch"}
    assert (await service.quote(_request(room_type_id=" room-a "))).available is True


@pytest.mark.asyncio
async def test_quote_rejects_zero_night_range_before_any_request():
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=[])

    with pytest.raises(InvalidDateRange):
        await _service(handler).quote(_request(check_out="2025-07-01"))
    assert calls == []


@pytest.mark.asyncio
async def test_calendar_loads_window_and_room_types():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path.endswith("view-all-rooms"):
            return httpx.Response(200, json={"data": {"roomTypes": [{"roomTypeId": "ROOM-A", "roomTypeName": "Suite"}]}})
        availability = {"2025-07-01": True, "2025-07-02": False, "2025-07-03": True}
        return httpx.Response(200, json={"data": _compact(availability=availability)})

    window = await _service(handler).calendar("CBE", room_type_id="room-a")

    availability_request = next(r for r in seen if r.url.path.endswith("availability"))
    assert availability_request.url.params["startDate"] == "2025-07-01"
    assert availability_request.url.params["endDate"] == "2026-01-02"
    assert window.record is not None
    assert window.record.available_dates() == {"2025-07-01", "2025-07-03"}
    assert [option.room_type_id for option in window.room_types] == ["ROOM-A"]
    assert window.fallback_mode is False


@pytest.mark.asyncio
async def test_calendar_flags_fallback_and_uses_payload_room_types():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("view-all-rooms"):
            return httpx.Response(500, text="down")
        body = _compact("ROOM-A", roomTypes=[{"roomTypeId": "ROOM-A"}, {"roomTypeId": "ROOM-B"}])
        return httpx.Response(200, json={"data": body})

    window = await _service(handler).calendar("CBE", room_type_id="ROOM-B")

    assert window.fallback_mode is True
    assert window.response_room_type_id == "ROOM-A"
    assert [option.room_type_id for option in window.room_types] == ["ROOM-A", "ROOM-B"]
    assert window.to_dict()["fallbackMode"] is True
