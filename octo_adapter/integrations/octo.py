"""
OCTO Integration: reseller-platform operations on top of an OCTO supplier API.

Every operation takes the connection credentials ("token") and a payload, and returns
platform-shaped JSON. Availability keys minted by search_availability are the only
state carried between searching and booking.

Usage:
    adapter = OctoAdapter(PluginConfig.from_settings())
    result = await adapter.search_availability(token, payload)
    booking = await adapter.create_booking(token, {"availabilityKey": ..., "holder": {...}})
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from octo_adapter.config import PluginConfig
from octo_adapter.core.availability import AvailabilityService, ErrorHandler
from octo_adapter.core.booking import BookingService
from octo_adapter.core.credentials import UUID_RE, token_template
from octo_adapter.core.errors import OctoAdapterError, TranslationError
from octo_adapter.core.filters import apply_product_filters, build_product_filters
from octo_adapter.core.schemas import (
    AvailabilityRequest,
    CancelBookingRequest,
    CreateBookingRequest,
    Credentials,
    QuoteRequest,
    SearchBookingRequest,
    parse_request,
)
from octo_adapter.core.translate import translate_pickup_point, translate_product, translate_question
from octo_adapter.integrations.base import IntegrationAdapter, register_integration
from octo_adapter.integrations.octo_client import OctoClient

logger = logging.getLogger(__name__)


def _as_list(result: Any) -> list:
    if result is None:
        return []
    return result if isinstance(result, list) else [result]


@register_integration("octo")
class OctoAdapter(IntegrationAdapter):
    """
    OCTO supplier adapter.

    Args:
        config: immutable deployment config (signing secret, endpoint, concurrency).
        transport: optional httpx transport, shared by every client this adapter opens.
    """

    def __init__(self, config: PluginConfig | None = None, transport: httpx.AsyncBaseTransport | None = None):
        super().__init__(config or PluginConfig())
        self.transport = transport

    def client_for(self, token: Credentials | dict | None) -> OctoClient:
        credentials = parse_request(Credentials, token)
        return OctoClient(credentials, self.config, transport=self.transport)

    async def execute(self, action: str, params: dict) -> dict:
        """
        Dispatch a host action.

        params: {"token": {...credentials}, "payload": {...}}
        """
        handlers = {
            "validate_token": lambda: self.validate_token(params.get("token")),
            "search_products": lambda: self.search_products(params.get("token"), params.get("payload")),
            "search_quote": lambda: self.search_quote(params.get("token"), params.get("payload")),
            "search_availability": lambda: self.search_availability(params.get("token"), params.get("payload")),
            "availability_calendar": lambda: self.availability_calendar(params.get("token"), params.get("payload")),
            "create_booking": lambda: self.create_booking(params.get("token"), params.get("payload")),
            "cancel_booking": lambda: self.cancel_booking(params.get("token"), params.get("payload")),
            "search_booking": lambda: self.search_booking(params.get("token"), params.get("payload")),
            "get_pickup_points": lambda: self.get_pickup_points(params.get("token")),
            "get_create_booking_fields": lambda: self.get_create_booking_fields(
                params.get("token"), params.get("payload")
            ),
        }
        handler = handlers.get(action)
        if handler is None:
            raise ValueError(f"Unknown action: {action}")
        result = await handler()
        if action == "validate_token":
            return {"valid": result}
        return result

    @staticmethod
    def token_template() -> dict[str, dict[str, Any]]:
        return token_template()

    async def validate_token(self, token: Credentials | dict | None) -> bool:
        """True when the supplier recognises the API key (whoami returns a connection UUID)."""
        try:
            async with self.client_for(token) as client:
                if not client.credentials.api_key:
                    return False
                data = await client.get("/whoami", params={"token": client.credentials.api_key})
        except OctoAdapterError as e:
            logger.info("Credential validation failed: %s", e.message)
            return False
        connection_id = ((data or {}).get("connection") or {}).get("id") if isinstance(data, dict) else None
        return bool(isinstance(connection_id, str) and UUID_RE.fullmatch(connection_id))

    async def search_products(self, token, payload: dict | None = None) -> dict:
        payload = payload or {}
        clauses = build_product_filters(payload)
        path = "/products"
        if payload.get("productId"):
            path = f"/products/{quote(str(payload['productId']), safe='')}"

        async with self.client_for(token) as client:
            results = _as_list(await client.get(path))

        products = apply_product_filters([translate_product(p) for p in results], clauses)
        return {"products": [p.to_dict() for p in products]}

    async def search_quote(self, token, payload: dict | None) -> dict:
        request = parse_request(QuoteRequest, payload)
        async with self.client_for(token) as client:
            quotes = await AvailabilityService(client, self.config).quote(request)
        return {"quote": [q.to_dict() for q in quotes]}

    async def search_availability(self, token, payload: dict | None, on_error: ErrorHandler | None = None) -> dict:
        request = parse_request(AvailabilityRequest, payload)
        async with self.client_for(token) as client:
            availability = await AvailabilityService(client, self.config).search(request, on_error=on_error)
        return {"availability": [[a.to_dict() for a in slots] for slots in availability]}

    async def availability_calendar(self, token, payload: dict | None, on_error: ErrorHandler | None = None) -> dict:
        request = parse_request(AvailabilityRequest, payload)
        async with self.client_for(token) as client:
            days = await AvailabilityService(client, self.config).calendar(request, on_error=on_error)
        return {"availability": [[d.to_dict() for d in per_tuple] for per_tuple in days]}

    async def create_booking(self, token, payload: dict | None) -> dict:
        request = parse_request(CreateBookingRequest, payload)
        async with self.client_for(token) as client:
            booking = await BookingService(client, self.config).create(request)
        return {"booking": booking.to_dict()}

    async def cancel_booking(self, token, payload: dict | None) -> dict:
        request = parse_request(CancelBookingRequest, payload)
        async with self.client_for(token) as client:
            booking = await BookingService(client, self.config).cancel(request)
        return {"cancellation": booking.to_dict()}

    async def search_booking(self, token, payload: dict | None) -> dict:
        request = parse_request(SearchBookingRequest, payload)
        async with self.client_for(token) as client:
            bookings = await BookingService(client, self.config).search(request)
        return {"bookings": [b.to_dict() for b in bookings]}

    async def get_pickup_points(self, token) -> dict:
        """Every pickup point offered by any option, unique by id."""
        async with self.client_for(token) as client:
            products = _as_list(await client.get("/products"))

        seen: set[str] = set()
        points = []
        for product in products:
            for option in (product or {}).get("options") or []:
                for point in option.get("pickupPoints") or []:
                    point_id = point.get("id") if isinstance(point, dict) else None
                    if not point_id or point_id in seen:
                        continue
                    seen.add(point_id)
                    points.append(translate_pickup_point(point))
        return {"pickupPoints": [p.to_dict() for p in points]}

    async def get_create_booking_fields(self, token, payload: dict | None = None) -> dict:
        """Custom questions the supplier asks at booking time, unique by question id."""
        product_id = (payload or {}).get("productId")
        path = f"/products/{quote(str(product_id), safe='')}" if product_id else "/products"
        async with self.client_for(token) as client:
            products = _as_list(await client.get(path))

        seen: set[str] = set()
        custom_fields = []
        for product in products:
            if not isinstance(product, dict):
                raise TranslationError("product: expected an object")
            questions = list(product.get("questions") or [])
            for option in product.get("options") or []:
                questions.extend(option.get("questions") or [])
            for question in questions:
                field = translate_question(question)
                if field.id in seen:
                    continue
                seen.add(field.id)
                custom_fields.append(field)
        return {"fields": [], "customFields": [f.to_dict() for f in custom_fields]}
