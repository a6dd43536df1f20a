"""Client for the upstream PMS availability endpoints."""
from __future__ import annotations

import logging
from contextlib import AbstractAsyncContextManager
from typing import Any, Dict, List, Optional

import httpx

from stay_engine.availability.models import AvailabilityQuery, RoomTypeOption
from stay_engine.availability.normalizer import room_type_options
from stay_engine.config.settings import Settings
from stay_engine.errors import MalformedUpstreamResponse, UpstreamError

logger = logging.getLogger(__name__)

_BODY_PREVIEW = 200


class AvailabilityClient(AbstractAsyncContextManager["AvailabilityClient"]):
    """Thin async wrapper around the availability and room-type endpoints.

    Every request is a fresh ``no-store`` GET; retries are left to the caller.
    """

    def __init__(
        self,
        *,
        base_url: str = "http://localhost:5000",
        availability_path: str = "/api/calabogie/availability",
        room_types_path: str = "/api/calabogie/view-all-rooms",
        property_param: str = "hotelNo",
        timeout: float = 10.0,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        default_headers = {
            "Accept": "application/json",
            "Cache-Control": "no-store",
            "User-Agent": "stay-engine/0.1.0",
        }
        if headers:
            default_headers.update(headers)
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers=default_headers,
            transport=transport,
        )
        self._availability_path = availability_path
        self._room_types_path = room_types_path
        self._property_param = property_param

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "AvailabilityClient":
        return cls(
            base_url=settings.upstream_base_url,
            availability_path=settings.availability_path,
            room_types_path=settings.room_types_path,
            property_param=settings.property_param,
            timeout=settings.request_timeout_s,
            **kwargs,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aexit__(self, exc_type, exc, exc_tb) -> None:
        await self.aclose()

    async def fetch_availability(self, query: AvailabilityQuery) -> Any:
        params = query.to_params(self._property_param)
        logger.debug("Availability request %s", params)
        return await self._get(self._availability_path, params=params)

    async def list_room_types(self) -> List[RoomTypeOption]:
        payload = await self._get(self._room_types_path)
        data = payload.get("data") if isinstance(payload, dict) else None
        room_types = data.get("roomTypes") if isinstance(data, dict) else None
        if not isinstance(room_types, list):
            return []
        return room_type_options(room_types)

    async def _get(self, path: str, *, params: Optional[Dict[str, str]] = None) -> Any:
        try:
            response = await self._client.get(path, params=params)
        except httpx.HTTPError as exc:
            logger.warning("Upstream request to %s failed: %s", path, exc)
            raise UpstreamError(0, str(exc)) from exc
        return self._decode(response)

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.is_success:
            logger.warning(
                "Upstream %s answered %s: %s",
                response.request.url.path,
                response.status_code,
                response.text[:_BODY_PREVIEW],
            )
            raise UpstreamError(response.status_code, response.text)
        try:
            return response.json()
        except ValueError as exc:
            logger.warning(
                "Upstream %s returned an unparseable body: %s",
                response.request.url.path,
                response.text[:_BODY_PREVIEW],
            )
            raise MalformedUpstreamResponse(response.text) from exc
