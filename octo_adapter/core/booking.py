"""
Booking Orchestrator: redeems availability keys into supplier bookings.

    [key] --redeem--> create/patch (draft) --confirm(contact, settlement)--> confirmed
                                   |                                            ^
                                   +------ already confirmed / partial order ---+
    confirmed --cancel(reason)--> cancelled

A failed confirm is not rolled back: the draft stays on the supplier side and its id
travels with BookingConfirmationError so the caller can retry the confirm or cancel.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from urllib.parse import quote

from octo_adapter.config import PluginConfig
from octo_adapter.core.dates import to_iso_date
from octo_adapter.core.errors import (
    BookingConfirmationError,
    InvalidRequestError,
    OctoAdapterError,
    SupplierError,
    TranslationError,
)
from octo_adapter.core.schemas import (
    Booking,
    CancelBookingRequest,
    CapabilityTokenPayload,
    CreateBookingRequest,
    Holder,
    SearchBookingRequest,
)
from octo_adapter.core.settlement import pick_settlement_method
from octo_adapter.core.tokens import redeem, require_secret
from octo_adapter.core.translate import translate_booking
from octo_adapter.integrations.octo_client import OctoClient

logger = logging.getLogger(__name__)


def _blank(value: str | None) -> bool:
    return not value or not value.strip()


def validate_holder(holder: Holder | None) -> Holder:
    if holder is None:
        raise InvalidRequestError("holder is required")
    if _blank(holder.name):
        raise InvalidRequestError("First Name is required")
    if _blank(holder.surname):
        raise InvalidRequestError("Last Name is required")
    return holder


class BookingService:
    """Two-phase supplier bookings, cancellation and lookup."""

    def __init__(self, client: OctoClient, config: PluginConfig):
        self.client = client
        self.config = config

    # --- create ---

    def _create_body(
        self,
        request: CreateBookingRequest,
        payload: CapabilityTokenPayload,
        settlement_method: str,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"settlementMethod": settlement_method}
        body.update(payload.to_dict(exclude_none=True, exclude={"settlement_methods"}))
        body["notes"] = request.notes
        if request.order_id:
            body["orderId"] = request.order_id
        if request.reference:
            body["resellerReference"] = request.reference
        if request.pickup_point:
            body["pickupRequested"] = True
            body["pickupPointId"] = request.pickup_point
        return body

    def _confirm_body(self, request: CreateBookingRequest, holder: Holder, settlement_method: str) -> dict:
        contact = {
            "fullName": holder.full_name,
            "emailAddress": holder.email_address,
            "phoneNumber": holder.phone_number,
            "locales": holder.locales,
            "country": holder.country,
            "postalCode": holder.postal_code,
        }
        body: dict[str, Any] = {
            "contact": {k: v for k, v in contact.items() if v is not None},
            "notes": request.notes,
            "resellerReference": request.reference,
            "settlementMethod": settlement_method,
        }
        if request.custom_field_values:
            body["questionAnswers"] = [
                {"questionId": v.field_id, "value": v.value} for v in request.custom_field_values
            ]
        return body

    async def create(self, request: CreateBookingRequest) -> Booking:
        """
        Create (or patch, when rebooking) and confirm a booking.

        Raises:
            ConfigurationError: no signing secret.
            InvalidRequestError: missing key or holder names.
            TokenIntegrityError: the key was forged, altered or expired.
            SupplierError: create failed.
            BookingConfirmationError: create succeeded, confirm failed.
        """
        require_secret(self.config.jwt_key)
        if _blank(request.availability_key):
            raise InvalidRequestError("an availability code is required !")
        holder = validate_holder(request.holder)

        payload = redeem(request.availability_key, self.config.jwt_key)
        settlement_method = pick_settlement_method(
            payload.settlement_methods,
            reference=request.reference,
            requested=request.settlement_method,
        )

        body = self._create_body(request, payload, settlement_method)
        if request.rebooking_id:
            raw = await self.client.patch(f"/bookings/{quote(request.rebooking_id, safe='')}", json=body)
        else:
            raw = await self.client.post("/bookings", json=body)
        if not isinstance(raw, dict):
            raise TranslationError("booking: expected an object from create")
        booking_uuid = raw.get("uuid") or raw.get("id")
        if not booking_uuid:
            raise TranslationError("booking: create response has no uuid")
        logger.info(
            "Booking %s %s for %s/%s (settlement=%s)",
            booking_uuid,
            "patched" if request.rebooking_id else "created",
            payload.product_id,
            payload.option_id,
            settlement_method,
        )

        # A rebooking patch may already be confirmed; cart orders confirm later.
        if raw.get("utcConfirmedAt") or request.partial:
            return translate_booking(raw)

        try:
            raw = await self.client.post(
                f"/bookings/{quote(str(booking_uuid), safe='')}/confirm",
                json=self._confirm_body(request, holder, settlement_method),
            )
        except SupplierError as e:
            logger.error("Booking %s created but confirmation failed: %s", booking_uuid, e.message)
            raise BookingConfirmationError(e, booking_uuid) from e

        logger.info("Booking %s confirmed", booking_uuid)
        return translate_booking(raw)

    # --- cancel ---

    async def cancel(self, request: CancelBookingRequest) -> Booking:
        booking_id = request.booking_id or request.id
        if _blank(booking_id):
            raise InvalidRequestError("Invalid booking id")
        raw = await self.client.delete(
            f"/bookings/{quote(booking_id, safe='')}", json={"reason": request.reason}
        )
        logger.info("Booking %s cancelled", booking_id)
        return translate_booking(raw)

    # --- search ---

    async def _lookup(self, path: str, params: dict | None = None) -> list[dict]:
        """A miss is an expected outcome of a lookup, so supplier errors mean "no results"."""
        try:
            result = await self.client.get(path, params=params)
        except OctoAdapterError as e:
            logger.warning("Booking lookup %s %s returned nothing: %s", path, params or "", e.message)
            return []
        if result is None:
            return []
        return result if isinstance(result, list) else [result]

    async def search(self, request: SearchBookingRequest) -> list[Booking]:
        has_dates = not (_blank(request.travel_date_start) and _blank(request.travel_date_end))
        if (
            _blank(request.booking_id)
            and _blank(request.reseller_reference)
            and _blank(request.supplier_booking_id)
            and not has_dates
        ):
            raise InvalidRequestError("at least one parameter is required")

        if not _blank(request.booking_id):
            booking_id = request.booking_id
            results = await asyncio.gather(
                self._lookup(f"/bookings/{quote(booking_id, safe='')}"),
                self._lookup("/bookings", {"resellerReference": booking_id}),
                self._lookup("/bookings", {"supplierReference": booking_id}),
            )
            raw_bookings = [b for found in results for b in found]
        elif not _blank(request.reseller_reference):
            raw_bookings = await self._lookup("/bookings", {"resellerReference": request.reseller_reference})
        elif not _blank(request.supplier_booking_id):
            raw_bookings = await self._lookup("/bookings", {"supplierReference": request.supplier_booking_id})
        else:
            start = to_iso_date(request.travel_date_start or request.travel_date_end, request.date_format, "travelDateStart")
            end = to_iso_date(request.travel_date_end or request.travel_date_start, request.date_format, "travelDateEnd")
            raw_bookings = await self._lookup("/bookings", {"localDateStart": start, "localDateEnd": end})

        return [translate_booking(b) for b in raw_bookings]
