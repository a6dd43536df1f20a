"""Query the upstream PMS from the command line and print normalised JSON."""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import date
from typing import Optional

from stay_engine.availability.models import AvailabilityQuery
from stay_engine.config.settings import Settings
from stay_engine.core.logging import configure_logging
from stay_engine.errors import InvalidDateRange, MalformedUpstreamResponse, UpstreamError
from stay_engine.services.availability_client import AvailabilityClient
from stay_engine.services.availability_service import AvailabilityService, QuoteRequest
from stay_engine.utils.dates import parse_iso

logger = logging.getLogger(__name__)


def _iso_date(value: str) -> date:
    try:
        return parse_iso(value)
    except InvalidDateRange as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Check stay availability against the upstream PMS")
    parser.add_argument("--property", default=None, help="Property id (defaults to STAY_ENGINE_DEFAULT_PROPERTY_ID)")
    parser.add_argument("--currency", default=None, help="ISO 4217 currency code")
    parser.add_argument(
        "--base-url",
        default=None,
        help="Upstream base URL (overrides STAY_ENGINE_UPSTREAM_BASE_URL)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="List bookable room types for a date window")
    search.add_argument("start", type=_iso_date, help="Check-in date (YYYY-MM-DD)")
    search.add_argument("end", type=_iso_date, help="Check-out date (YYYY-MM-DD)")
    search.add_argument("--guests", type=int, default=1)
    search.add_argument("--children", type=int, default=0)
    search.add_argument("--infants", type=int, default=0)
    search.add_argument("--pet", action="store_true")
    search.add_argument("--room-type", default=None, help="Limit the search to one room type id")

    quote = sub.add_parser("quote", help="Price a stay for one room type")
    quote.add_argument("room_type", help="Room type id")
    quote.add_argument("check_in", type=_iso_date)
    quote.add_argument("check_out", type=_iso_date)
    quote.add_argument("--guests", type=int, default=1)
    quote.add_argument("--children", type=int, default=0)
    quote.add_argument("--infants", type=int, default=0)
    quote.add_argument("--pet", action="store_true")

    calendar = sub.add_parser("calendar", help="Load the booking calendar window for a room type")
    calendar.add_argument("--room-type", default=None)
    return parser


async def run(settings: Settings, args: argparse.Namespace) -> dict:
    property_id = args.property or settings.default_property_id
    currency: Optional[str] = (args.currency or settings.default_currency).upper()
    async with AvailabilityClient.from_settings(settings) as client:
        service = AvailabilityService(client, settings)
        if args.command == "search":
            query = AvailabilityQuery(
                property_id=property_id,
                start_date=args.start,
                end_date=args.end,
                adults=args.guests,
                children=args.children,
                infants=args.infants,
                pet=args.pet,
                currency=currency,
                room_type_id=args.room_type,
            )
            return (await service.search(query)).to_dict()
        if args.command == "quote":
            request = QuoteRequest(
                property_id=property_id,
                room_type_id=args.room_type,
                check_in=args.check_in.isoformat(),
                check_out=args.check_out.isoformat(),
                adults=args.guests,
                children=args.children,
                infants=args.infants,
                pet=args.pet,
                currency=currency,
            )
            return (await service.quote(request)).to_dict()
        window = await service.calendar(property_id, room_type_id=args.room_type, currency=currency)
        return window.to_dict()


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    settings = Settings()
    if args.base_url:
        settings.upstream_base_url = args.base_url.rstrip("/")

    configure_logging(settings.log_level, settings.log_dir)

    try:
        result = asyncio.run(run(settings, args))
    except InvalidDateRange as exc:
        parser.error(str(exc))
    except (UpstreamError, MalformedUpstreamResponse) as exc:
        logger.error("Availability check failed: %s", exc)
        print("couldn't check availability, please try again", file=sys.stderr)
        raise SystemExit(1) from exc
    print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()
