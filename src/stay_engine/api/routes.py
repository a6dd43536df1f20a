"""HTTP routes for availability search and quoting."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, Field

from stay_engine.availability.models import AvailabilityQuery
from stay_engine.services.availability_service import AvailabilityService, QuoteRequest

router = APIRouter(prefix="/v1")


def get_service(request: Request) -> AvailabilityService:
    return request.app.state.service


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class QuoteBody(BaseModel):
    """Price a stay for one room type.

    Example:
        {
            "propertyId": "CBE",
            "roomTypeId": "ae50e6a8-29dd-447d-840c-b3f40144635d",
            "checkIn": "2025-07-01",
            "checkOut": "2025-07-03",
            "guests": 2,
            "pet": false
        }
    """

    property_id: str = Field(alias="propertyId")
    room_type_id: str = Field(alias="roomTypeId")
    check_in: date = Field(alias="checkIn")
    check_out: date = Field(alias="checkOut")
    guests: int = Field(default=1, ge=1)
    children: int = Field(default=0, ge=0)
    infants: int = Field(default=0, ge=0)
    pet: bool = False
    currency: Optional[str] = None


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("/availability")
async def get_availability(
    property_id: str = Query(..., alias="propertyId"),
    start_date: date = Query(..., alias="startDate"),
    end_date: date = Query(..., alias="endDate"),
    guests: int = Query(1, ge=1),
    children: int = Query(0, ge=0),
    infants: int = Query(0, ge=0),
    pet: bool = Query(False),
    currency: Optional[str] = Query(None),
    room_type_id: Optional[str] = Query(None, alias="roomTypeId"),
    service: AvailabilityService = Depends(get_service),
) -> dict:
    query = AvailabilityQuery(
        property_id=property_id,
        start_date=start_date,
        end_date=end_date,
        adults=guests,
        children=children,
        infants=infants,
        pet=pet,
        currency=(currency or service.settings.default_currency).upper(),
        room_type_id=room_type_id or None,
    )
    result = await service.search(query)
    return result.to_dict()


@router.post("/quote")
async def post_quote(body: QuoteBody, service: AvailabilityService = Depends(get_service)) -> dict:
    result = await service.quote(
        QuoteRequest(
            property_id=body.property_id,
            room_type_id=body.room_type_id,
            check_in=body.check_in.isoformat(),
            check_out=body.check_out.isoformat(),
            adults=body.guests,
            children=body.children,
            infants=body.infants,
            pet=body.pet,
            currency=body.currency,
        )
    )
    return result.to_dict()
