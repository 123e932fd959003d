"""
Supplier API: one POST endpoint per host operation.

Credentials travel in the request body next to the payload; nothing is stored.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from octo_adapter.api.v1.schemas import OperationRequest, ValidateResponse
from octo_adapter.config import PluginConfig
from octo_adapter.integrations.octo import OctoAdapter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["supplier"])


def get_adapter() -> OctoAdapter:
    return OctoAdapter(PluginConfig.from_settings())


@router.get("/template")
async def credentials_template() -> dict:
    template = OctoAdapter.token_template()
    return {
        key: {**rule, "regExp": rule["regExp"].pattern}
        for key, rule in template.items()
    }


@router.post("/validate", response_model=ValidateResponse)
async def validate(body: OperationRequest, adapter: OctoAdapter = Depends(get_adapter)) -> ValidateResponse:
    return ValidateResponse(valid=await adapter.validate_token(body.token))


@router.post("/products/search")
async def search_products(body: OperationRequest, adapter: OctoAdapter = Depends(get_adapter)) -> dict:
    return await adapter.search_products(body.token, body.payload)


@router.post("/quotes/search")
async def search_quote(body: OperationRequest, adapter: OctoAdapter = Depends(get_adapter)) -> dict:
    return await adapter.search_quote(body.token, body.payload)


@router.post("/availability/search")
async def search_availability(body: OperationRequest, adapter: OctoAdapter = Depends(get_adapter)) -> dict:
    return await adapter.search_availability(body.token, body.payload)


@router.post("/availability/calendar")
async def availability_calendar(body: OperationRequest, adapter: OctoAdapter = Depends(get_adapter)) -> dict:
    return await adapter.availability_calendar(body.token, body.payload)


@router.post("/bookings")
async def create_booking(body: OperationRequest, adapter: OctoAdapter = Depends(get_adapter)) -> dict:
    return await adapter.create_booking(body.token, body.payload)


@router.post("/bookings/cancel")
async def cancel_booking(body: OperationRequest, adapter: OctoAdapter = Depends(get_adapter)) -> dict:
    return await adapter.cancel_booking(body.token, body.payload)


@router.post("/bookings/search")
async def search_booking(body: OperationRequest, adapter: OctoAdapter = Depends(get_adapter)) -> dict:
    return await adapter.search_booking(body.token, body.payload)


@router.post("/pickup-points")
async def pickup_points(body: OperationRequest, adapter: OctoAdapter = Depends(get_adapter)) -> dict:
    return await adapter.get_pickup_points(body.token)


@router.post("/booking-fields")
async def booking_fields(body: OperationRequest, adapter: OctoAdapter = Depends(get_adapter)) -> dict:
    return await adapter.get_create_booking_fields(body.token, body.payload)
