from __future__ import annotations

import re
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from octo_adapter.core.errors import InvalidRequestError

_COUNTRY_RE = re.compile(r"^[A-Za-z]{2}$")


class CamelModel(BaseModel):
    """Snake-case attributes, camelCase on the wire (platform and supplier JSON)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self, **kwargs: Any) -> dict:
        return self.model_dump(by_alias=True, mode="json", **kwargs)


ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_request(model_cls: type[ModelT], data: Any) -> ModelT:
    """Build a request model, turning pydantic errors into field-specific InvalidRequestError."""
    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data or {})
    except ValidationError as e:
        problems = [
            f"{'.'.join(str(p) for p in err['loc']) or model_cls.__name__}: {err['msg']}"
            for err in e.errors()
        ]
        raise InvalidRequestError("; ".join(problems), details={"errors": problems}) from e


# --- Credentials ---


class Credentials(CamelModel):
    """Per-connection supplier credentials (the host's "token")."""

    api_key: str = ""
    endpoint: Optional[str] = None
    octo_env: Optional[str] = None
    accept_language: Optional[str] = None
    reseller_id: Optional[str] = None


# --- Supplier reference data used by the unit selector ---


class UnitRestrictions(CamelModel):
    min_age: Optional[int] = None
    max_age: Optional[int] = None
    pax_count: Optional[int] = None


class Unit(CamelModel):
    """A purchasable rate class of a product option, as the supplier returns it."""

    id: str
    title: Optional[str] = None
    internal_name: Optional[str] = None
    type: Optional[str] = None
    restrictions: Optional[UnitRestrictions] = None

    @property
    def pax_count(self) -> int:
        if self.restrictions and self.restrictions.pax_count:
            return self.restrictions.pax_count
        return 1

    @property
    def is_group(self) -> bool:
        return self.pax_count > 1

    def admits(self, age: int) -> bool:
        r = self.restrictions
        if r is None:
            return True
        if r.min_age is not None and age < r.min_age:
            return False
        if r.max_age is not None and age > r.max_age:
            return False
        return True


class Occupancy(BaseModel):
    age: int = Field(ge=0)


class UnitQuantity(CamelModel):
    unit_id: str = Field(min_length=1)
    quantity: int = Field(default=1, ge=1)


class UnitItem(CamelModel):
    unit_id: str


class CapabilityTokenPayload(CamelModel):
    """Everything needed to rebuild the supplier booking request for one availability slot."""

    product_id: str
    option_id: str
    availability_id: str
    currency: Optional[str] = None
    unit_items: list[UnitItem]
    settlement_methods: Optional[list[str]] = None


# --- Requests ---


class AvailabilityRequest(CamelModel):
    product_ids: list[str]
    option_ids: list[str]
    units: Optional[list[list[UnitQuantity]]] = None
    occupancies: Optional[list[list[Occupancy]]] = None
    start_date: str
    end_date: str
    date_format: str = "YYYY-MM-DD"
    currency: Optional[str] = None


class QuoteRequest(CamelModel):
    product_ids: list[str]
    option_ids: list[str]
    occupancies: list[list[Occupancy]]


class Holder(CamelModel):
    name: str = ""
    surname: str = ""
    email_address: Optional[EmailStr] = None
    phone_number: Optional[str] = None
    country: Optional[str] = None
    locales: Optional[list[str]] = None
    postal_code: Optional[str] = None

    @field_validator("country")
    @classmethod
    def _country_code(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        if not _COUNTRY_RE.match(v):
            raise ValueError("must be a two-letter ISO 3166 country code")
        return v.upper()

    @property
    def full_name(self) -> str:
        return f"{self.name.strip()} {self.surname.strip()}"


class CustomFieldValue(CamelModel):
    field_id: str
    value: Any = None


class CreateBookingRequest(CamelModel):
    availability_key: Optional[str] = None
    holder: Optional[Holder] = None
    notes: Optional[str] = None
    reference: Optional[str] = None
    settlement_method: Optional[str] = None
    pickup_point: Optional[str] = None
    rebooking_id: Optional[str] = None
    order_id: Optional[str] = None
    # Multi-booking cart: confirmation happens later for the whole order.
    partial: bool = False
    custom_field_values: list[CustomFieldValue] = Field(default_factory=list)


class CancelBookingRequest(CamelModel):
    booking_id: Optional[str] = None
    id: Optional[str] = None
    reason: Optional[str] = None


class SearchBookingRequest(CamelModel):
    booking_id: Optional[str] = None
    reseller_reference: Optional[str] = None
    supplier_booking_id: Optional[str] = None
    travel_date_start: Optional[str] = None
    travel_date_end: Optional[str] = None
    date_format: str = "YYYY-MM-DD"


# --- Platform shapes (translator outputs) ---


class PlatformUnit(CamelModel):
    unit_id: str
    unit_name: str = ""
    subtitle: Optional[str] = None
    type: Optional[str] = None
    pricing: Optional[list[dict]] = None
    restrictions: Optional[dict] = None


class Option(CamelModel):
    option_id: str
    option_name: str = ""
    units: list[PlatformUnit] = Field(default_factory=list)


class Product(CamelModel):
    product_id: str
    product_name: str = ""
    available_currencies: list[str] = Field(default_factory=list)
    default_currency: Optional[str] = None
    settlement_methods: Optional[list[str]] = None
    options: list[Option] = Field(default_factory=list)


class Offer(CamelModel):
    offer_id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None


class PickupPoint(CamelModel):
    id: str
    name: Optional[str] = None
    directions: Optional[str] = None
    address: Optional[str] = None
    postal: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    local_date_time: Optional[str] = None


class Availability(CamelModel):
    key: Optional[str] = None
    availability_id: str
    date_time_start: Optional[str] = None
    date_time_end: Optional[str] = None
    all_day: Optional[bool] = None
    vacancies: Optional[int] = None
    available: bool = False
    offers: list[Offer] = Field(default_factory=list)
    pricing: Optional[Any] = None
    unit_pricing: Optional[list[dict]] = None
    pickup_available: Optional[bool] = None
    pickup_required: Optional[bool] = None
    pickup_points: list[PickupPoint] = Field(default_factory=list)


class CalendarDay(CamelModel):
    date: str
    status: Optional[str] = None
    vacancies: Optional[int] = None
    available: bool = False
    pricing: Optional[Any] = None


class BookingHolder(CamelModel):
    name: str = ""
    surname: str = ""
    full_name: str = ""
    phone_number: str = ""
    email_address: str = ""


class BookingUnitItem(CamelModel):
    unit_item_id: Optional[str] = None
    unit_id: Optional[str] = None
    unit_name: Optional[str] = None


class Booking(CamelModel):
    id: str
    booking_id: str
    order_id: Optional[str] = None
    order_reference: Optional[str] = None
    supplier_booking_id: Optional[str] = None
    reseller_reference: str = ""
    status: str = ""
    product_id: Optional[str] = None
    product_name: Optional[str] = None
    option_id: Optional[str] = None
    option_name: Optional[str] = None
    cancellable: bool = False
    editable: bool = False
    unit_items: list[BookingUnitItem] = Field(default_factory=list)
    start: Optional[str] = None
    end: Optional[str] = None
    all_day: Optional[bool] = None
    booking_date: Optional[str] = None
    holder: BookingHolder = Field(default_factory=BookingHolder)
    notes: str = ""
    price: Optional[Any] = None
    cancel_policy: str = ""
    confirmed: bool = False
    pickup_requested: Optional[bool] = None
    pickup_point_id: Optional[str] = None
    pickup_point: Optional[PickupPoint] = None


class CustomFieldOption(CamelModel):
    value: str
    label: str = ""


class CustomField(CamelModel):
    id: str
    title: str = ""
    subtitle: Optional[str] = None
    type: str = "short"
    is_per_unit_item: bool = False
    is_required: bool = False
    options: list[CustomFieldOption] = Field(default_factory=list)


class Quote(CamelModel):
    """Unit assignment for one product/option before availability is checked."""

    product_id: str
    option_id: str
    units: list[UnitQuantity] = Field(default_factory=list)
    unit_items: list[UnitItem] = Field(default_factory=list)
    settlement_methods: Optional[list[str]] = None
