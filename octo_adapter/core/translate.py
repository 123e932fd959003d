"""
Supplier (OCTO) JSON -> platform models.

One pure function per entity; every output field is listed explicitly. A payload that
is not an object, or lacks the entity id, raises TranslationError.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from octo_adapter.core.errors import TranslationError
from octo_adapter.core.schemas import (
    Availability,
    Booking,
    BookingHolder,
    BookingUnitItem,
    CalendarDay,
    CustomField,
    CustomFieldOption,
    Offer,
    Option,
    PickupPoint,
    PlatformUnit,
    Product,
)

UNAVAILABLE_STATUSES = {"SOLD_OUT", "CLOSED"}

# OCTO question inputType -> platform field type
_QUESTION_TYPES = {
    "text": "short",
    "textarea": "long",
    "select": "extended-option",
    "radio": "extended-option",
    "checkbox": "yes-no",
    "number": "count",
}


def _require_object(raw: Any, entity: str, id_key: str = "id") -> dict:
    if not isinstance(raw, dict):
        raise TranslationError(f"{entity}: expected an object, got {type(raw).__name__}")
    if id_key and not raw.get(id_key):
        raise TranslationError(f"{entity}: missing '{id_key}'")
    return raw


def _title(raw: dict) -> str:
    return raw.get("title") or raw.get("internalName") or ""


def capitalize_status(status: Any) -> str:
    """SUPPLIER_STATUS -> 'Supplier status'."""
    if not isinstance(status, str):
        return ""
    s = status.replace("_", " ")
    return s[:1].upper() + s[1:].lower()


def translate_unit(raw: Any) -> PlatformUnit:
    raw = _require_object(raw, "unit")
    return PlatformUnit(
        unit_id=raw["id"],
        unit_name=_title(raw),
        subtitle=raw.get("subtitle"),
        type=raw.get("type"),
        pricing=raw.get("pricing") or raw.get("pricingFrom"),
        restrictions=raw.get("restrictions"),
    )


def translate_option(raw: Any) -> Option:
    raw = _require_object(raw, "option")
    return Option(
        option_id=raw["id"],
        option_name=_title(raw),
        units=[translate_unit(u) for u in raw.get("units") or []],
    )


def translate_product(raw: Any) -> Product:
    raw = _require_object(raw, "product")
    try:
        return Product(
            product_id=raw["id"],
            product_name=_title(raw),
            available_currencies=raw.get("availableCurrencies") or [],
            default_currency=raw.get("defaultCurrency"),
            settlement_methods=raw.get("settlementMethods"),
            options=[translate_option(o) for o in raw.get("options") or []],
        )
    except ValidationError as e:
        raise TranslationError(f"product {raw['id']}: {e.error_count()} invalid field(s)") from e


def translate_pickup_point(raw: Any) -> PickupPoint:
    raw = _require_object(raw, "pickup point")
    try:
        return PickupPoint(
            id=raw["id"],
            name=raw.get("name"),
            directions=raw.get("directions"),
            address=raw.get("address"),
            postal=raw.get("postal_code") or raw.get("postalCode"),
            latitude=raw.get("latitude"),
            longitude=raw.get("longitude"),
            local_date_time=raw.get("localDateTime"),
        )
    except ValidationError as e:
        raise TranslationError(f"pickup point {raw['id']}: {e.error_count()} invalid field(s)") from e


def is_available(raw: dict) -> bool:
    if raw.get("status") in UNAVAILABLE_STATUSES:
        return False
    if raw.get("available") is False:
        return False
    vacancies = raw.get("vacancies")
    if vacancies is None:
        return raw.get("status") in ("AVAILABLE", "FREESALE", "LIMITED")
    return vacancies > 0


def translate_availability(raw: Any) -> Availability:
    """Translate one availability slot. The availability key is attached by the caller."""
    raw = _require_object(raw, "availability")
    try:
        return Availability(
            availability_id=raw["id"],
            date_time_start=raw.get("localDateTimeStart") or raw.get("localDate"),
            date_time_end=raw.get("localDateTimeEnd") or raw.get("localDate"),
            all_day=raw.get("allDay"),
            vacancies=raw.get("vacancies"),
            available=is_available(raw),
            offers=[
                Offer(offer_id=o.get("code"), title=o.get("title"), description=o.get("description"))
                for o in raw.get("offers") or []
            ],
            pricing=raw.get("pricingFrom") or raw.get("pricing"),
            unit_pricing=raw.get("unitPricingFrom") or raw.get("unitPricing"),
            pickup_available=raw.get("pickupAvailable"),
            pickup_required=raw.get("pickupRequired"),
            pickup_points=[translate_pickup_point(p) for p in raw.get("pickupPoints") or []],
        )
    except ValidationError as e:
        raise TranslationError(f"availability {raw['id']}: {e.error_count()} invalid field(s)") from e


def translate_calendar_day(raw: Any) -> CalendarDay:
    raw = _require_object(raw, "calendar day", id_key="localDate")
    try:
        return CalendarDay(
            date=raw["localDate"],
            status=raw.get("status"),
            vacancies=raw.get("vacancies"),
            available=is_available(raw),
            pricing=raw.get("pricingFrom") or raw.get("pricing"),
        )
    except ValidationError as e:
        raise TranslationError(f"calendar day {raw['localDate']}: {e.error_count()} invalid field(s)") from e


def _holder(raw: dict) -> BookingHolder:
    contact = raw.get("contact") or {}
    full_name = contact.get("fullName") or ""
    parts = full_name.split(" ")
    return BookingHolder(
        name=parts[0],
        surname=parts[-1],
        full_name=full_name,
        phone_number=contact.get("phoneNumber") or "",
        email_address=contact.get("emailAddress") or "",
    )


def _cancel_policy(option: dict) -> str:
    cutoff = option.get("cancellationCutoff")
    if cutoff:
        return f"Cancel up to {cutoff} before activity starts"
    return ""


def translate_booking(raw: Any) -> Booking:
    raw = _require_object(raw, "booking")
    product = raw.get("product") or {}
    option = raw.get("option") or {}
    availability = raw.get("availability") or {}
    pickup_point = raw.get("pickupPoint")
    booking_id = raw["id"]
    try:
        return Booking(
            id=booking_id,
            booking_id=booking_id,
            order_id=raw.get("orderId"),
            order_reference=raw.get("orderReference"),
            supplier_booking_id=raw.get("supplierReference"),
            reseller_reference=raw.get("resellerReference") or "",
            status=capitalize_status(raw.get("status")),
            product_id=product.get("id") or raw.get("productId"),
            product_name=_title(product) or None,
            option_id=option.get("id") or raw.get("optionId"),
            option_name=_title(option) or None,
            cancellable=bool(raw.get("cancellable")),
            editable=bool(raw.get("cancellable")),
            unit_items=[
                BookingUnitItem(
                    unit_item_id=item.get("uuid"),
                    unit_id=item.get("unitId"),
                    unit_name=_title(item) or _title(item.get("unit") or {}) or None,
                )
                for item in raw.get("unitItems") or []
            ],
            start=availability.get("localDateTimeStart"),
            end=availability.get("localDateTimeEnd"),
            all_day=availability.get("allDay"),
            booking_date=raw.get("utcCreatedAt"),
            holder=_holder(raw),
            notes=raw.get("notes") or "",
            price=raw.get("pricing"),
            cancel_policy=_cancel_policy(option),
            confirmed=bool(raw.get("utcConfirmedAt")),
            pickup_requested=raw.get("pickupRequested"),
            pickup_point_id=raw.get("pickupPointId"),
            pickup_point=translate_pickup_point(pickup_point) if pickup_point else None,
        )
    except ValidationError as e:
        raise TranslationError(f"booking {booking_id}: {e.error_count()} invalid field(s)") from e


def translate_question(raw: Any) -> CustomField:
    raw = _require_object(raw, "question")
    return CustomField(
        id=raw["id"],
        title=raw.get("title") or raw.get("label") or "",
        subtitle=raw.get("description"),
        type=_QUESTION_TYPES.get(raw.get("inputType") or "text", "short"),
        is_per_unit_item=bool(raw.get("perUnitItem")),
        is_required=bool(raw.get("required")),
        options=[
            CustomFieldOption(value=str(o.get("value")), label=o.get("label") or str(o.get("value")))
            for o in raw.get("selectOptions") or []
            if isinstance(o, dict) and o.get("value") is not None
        ],
    )
