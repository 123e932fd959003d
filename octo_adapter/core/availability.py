"""
Availability Orchestrator.

Flow per search:
1. Validate the whole request (secret, array lengths, ids, occupancies, dates).
   Nothing goes to the supplier if anything is wrong.
2. Fan out one supplier query per product/option tuple (bounded concurrency).
   Occupancy-based tuples first resolve their units through the Unit Selector.
3. Translate each slot; available slots get a signed availability key.

Results keep the order of the input tuples.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from pydantic import ValidationError

from octo_adapter.config import PluginConfig
from octo_adapter.core.concurrency import gather_bounded
from octo_adapter.core.dates import to_iso_date
from octo_adapter.core.errors import InvalidRequestError, TranslationError
from octo_adapter.core.schemas import (
    Availability,
    AvailabilityRequest,
    CalendarDay,
    CapabilityTokenPayload,
    Occupancy,
    Quote,
    QuoteRequest,
    Unit,
    UnitQuantity,
)
from octo_adapter.core.tokens import mint, require_secret
from octo_adapter.core.translate import translate_availability, translate_calendar_day
from octo_adapter.core.units import resolve_units, to_unit_items, to_unit_quantities
from octo_adapter.integrations.octo_client import OctoClient

logger = logging.getLogger(__name__)

ErrorHandler = Callable[[int, BaseException], Any]


@dataclass
class ResolvedTuple:
    """One product/option pair with the unit composition that will be priced and booked."""

    product_id: str
    option_id: str
    units: list[UnitQuantity]
    settlement_methods: list[str] | None = None


def validate_tuples(
    product_ids: Sequence[str],
    option_ids: Sequence[str],
    per_tuple: Sequence[Any],
    per_tuple_name: str = "units",
) -> None:
    if len(product_ids) != len(option_ids):
        raise InvalidRequestError("mismatched productIds/options length")
    if len(option_ids) != len(per_tuple):
        raise InvalidRequestError(f"mismatched options/{per_tuple_name} length")
    if not all(product_ids):
        raise InvalidRequestError("some invalid productId(s)")
    if not all(option_ids):
        raise InvalidRequestError("some invalid optionId(s)")


def validate_occupancies(occupancies: Sequence[Sequence[Occupancy]]) -> None:
    empty = [ix for ix, occ in enumerate(occupancies) if not occ]
    if empty:
        raise InvalidRequestError(
            f"at least one occupancy is required for product/option #{', #'.join(str(ix) for ix in empty)}"
        )


def _slot_currency(raw: dict) -> str | None:
    pricing = raw.get("pricingFrom") or raw.get("pricing")
    if isinstance(pricing, list):
        pricing = pricing[0] if pricing else None
    if isinstance(pricing, dict):
        return pricing.get("currency")
    return None


class AvailabilityService:
    """Priced, inventory-checked availability for product/option tuples."""

    def __init__(self, client: OctoClient, config: PluginConfig):
        self.client = client
        self.config = config

    def _validate(self, request: AvailabilityRequest) -> tuple[str, str]:
        if request.units is None and request.occupancies is None:
            raise InvalidRequestError("either units or occupancies is required")
        if request.units is not None and request.occupancies is not None:
            raise InvalidRequestError("units and occupancies are mutually exclusive")

        if request.occupancies is not None:
            validate_tuples(request.product_ids, request.option_ids, request.occupancies, "occupancies")
            validate_occupancies(request.occupancies)
        else:
            validate_tuples(request.product_ids, request.option_ids, request.units or [])

        start = to_iso_date(request.start_date, request.date_format, "startDate")
        end = to_iso_date(request.end_date, request.date_format, "endDate")
        if end < start:
            raise InvalidRequestError("endDate must not be before startDate")
        return start, end

    async def _fetch_product(self, product_id: str) -> dict:
        product = await self.client.get(f"/products/{product_id}")
        if not isinstance(product, dict):
            raise TranslationError(f"product {product_id}: expected an object")
        return product

    async def _fetch_units(self, product_id: str, option_id: str) -> tuple[list[Unit], list[str] | None]:
        product = await self._fetch_product(product_id)
        option = next((o for o in product.get("options") or [] if o.get("id") == option_id), None)
        if option is None:
            raise InvalidRequestError(f"option {option_id} not found for product {product_id}")
        try:
            units = [Unit.model_validate(u) for u in option.get("units") or []]
        except ValidationError as e:
            raise TranslationError(f"product {product_id}: invalid units in option {option_id}") from e
        return units, product.get("settlementMethods")

    async def _resolve(
        self,
        product_id: str,
        option_id: str,
        units: list[UnitQuantity] | None,
        occupancies: list[Occupancy] | None,
        with_settlement: bool = False,
    ) -> ResolvedTuple:
        if occupancies is None:
            resolved = ResolvedTuple(product_id, option_id, list(units or []))
            # Keys must carry what the product can settle with; the booking has no other source.
            if with_settlement:
                product = await self._fetch_product(product_id)
                resolved.settlement_methods = product.get("settlementMethods")
            return resolved
        product_units, settlement_methods = await self._fetch_units(product_id, option_id)
        assigned = resolve_units(product_units, occupancies)
        return ResolvedTuple(product_id, option_id, to_unit_quantities(assigned), settlement_methods)

    def _tuples(self, request: AvailabilityRequest) -> list[tuple[str, str, Any, Any]]:
        return [
            (
                product_id,
                request.option_ids[ix],
                request.units[ix] if request.units is not None else None,
                request.occupancies[ix] if request.occupancies is not None else None,
            )
            for ix, product_id in enumerate(request.product_ids)
        ]

    def _query(self, resolved: ResolvedTuple, start: str, end: str, currency: str | None) -> dict:
        data: dict[str, Any] = {
            "productId": resolved.product_id,
            "optionId": resolved.option_id,
            "localDateStart": start,
            "localDateEnd": end,
            "units": [{"id": u.unit_id, "quantity": u.quantity} for u in resolved.units],
        }
        if currency:
            data["currency"] = currency
        return data

    def _mint_key(self, resolved: ResolvedTuple, raw: dict, currency: str | None) -> str:
        payload = CapabilityTokenPayload(
            product_id=resolved.product_id,
            option_id=resolved.option_id,
            availability_id=raw["id"],
            currency=currency or _slot_currency(raw),
            unit_items=to_unit_items(resolved.units),
            settlement_methods=resolved.settlement_methods,
        )
        return mint(payload, self.config.jwt_key, ttl=timedelta(hours=self.config.token_ttl_hours))

    async def search(
        self,
        request: AvailabilityRequest,
        on_error: ErrorHandler | None = None,
    ) -> list[list[Availability]]:
        """
        Search bookable availability; every available slot carries an availability key.

        Args:
            request: product/option tuples with units or occupancies and a date window.
            on_error: optional host hook; its return value replaces a failed tuple's result.
                Without it the first failed tuple fails the whole batch.
        """
        require_secret(self.config.jwt_key)
        start, end = self._validate(request)

        async def one(item: tuple, ix: int) -> list[Availability]:
            product_id, option_id, units, occupancies = item
            resolved = await self._resolve(product_id, option_id, units, occupancies, with_settlement=True)
            slots = await self.client.post(
                "/availability", json=self._query(resolved, start, end, request.currency)
            )
            if not isinstance(slots, list):
                raise TranslationError(f"availability for {product_id}: expected a list")

            out: list[Availability] = []
            for raw in slots:
                translated = translate_availability(raw)
                if translated.available:
                    translated.key = self._mint_key(resolved, raw, request.currency)
                out.append(translated)
            logger.debug(
                "Availability %s/%s: %s slot(s), %s available",
                product_id, option_id, len(out), sum(1 for a in out if a.available),
            )
            return out

        return await gather_bounded(self._tuples(request), one, self.config.concurrency, on_error)

    async def calendar(
        self,
        request: AvailabilityRequest,
        on_error: ErrorHandler | None = None,
    ) -> list[list[CalendarDay]]:
        """Per-day aggregate availability for browsing. Nothing here is bookable, so no keys."""
        start, end = self._validate(request)

        async def one(item: tuple, ix: int) -> list[CalendarDay]:
            product_id, option_id, units, occupancies = item
            resolved = await self._resolve(product_id, option_id, units, occupancies)
            # Units are required here to get total pricing for each day.
            days = await self.client.post(
                "/availability/calendar", json=self._query(resolved, start, end, request.currency)
            )
            if not isinstance(days, list):
                raise TranslationError(f"calendar for {product_id}: expected a list")
            return [translate_calendar_day(d) for d in days]

        return await gather_bounded(self._tuples(request), one, self.config.concurrency, on_error)

    async def quote(self, request: QuoteRequest) -> list[Quote]:
        """Resolve which units each party would buy, without checking availability."""
        validate_tuples(request.product_ids, request.option_ids, request.occupancies, "occupancies")
        validate_occupancies(request.occupancies)

        async def one(item: tuple, ix: int) -> Quote:
            product_id, option_id, occupancies = item
            resolved = await self._resolve(product_id, option_id, None, occupancies)
            return Quote(
                product_id=product_id,
                option_id=option_id,
                units=resolved.units,
                unit_items=to_unit_items(resolved.units),
                settlement_methods=resolved.settlement_methods,
            )

        items = list(zip(request.product_ids, request.option_ids, request.occupancies))
        return await gather_bounded(items, one, self.config.concurrency)
