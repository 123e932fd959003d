from __future__ import annotations

import asyncio
import json
from datetime import date, timedelta

import httpx
import pytest

from octo_adapter.config import PluginConfig
from octo_adapter.core.schemas import Credentials
from octo_adapter.integrations.octo import OctoAdapter
from octo_adapter.integrations.octo_client import OctoClient

API_KEY = "0f6a2b5e-5c1f-4c2a-9d65-0c4b1a7d2e11"
CONNECTION_ID = "f5eb2e1f-4b8f-4b43-a858-4a12d77b8299"
ENDPOINT = "https://octo.example.com/octo"


def _unit(unit_id: str, title: str, min_age=None, max_age=None, pax_count=None) -> dict:
    restrictions = {"minAge": min_age, "maxAge": max_age}
    if pax_count is not None:
        restrictions["paxCount"] = pax_count
    return {
        "id": unit_id,
        "title": title,
        "type": unit_id.upper(),
        "restrictions": restrictions,
        "pricingFrom": [{"original": 2500, "retail": 2500, "currency": "GBP"}],
    }


class FakeOctoSupplier:
    """In-memory OCTO supplier served through httpx.MockTransport."""

    PRODUCT_A = "28ca088b-bc7b-4746-ab06-5971f1ed5a5e"
    OPTION_A = "DEFAULT"
    PRODUCT_B = "3465143f-4902-447a-9c1e-8e5598666663"
    OPTION_B = "dbe73645-2dd9-4cde-ade0-4faa95668d01"

    def __init__(self):
        self.products = [
            {
                "id": self.PRODUCT_A,
                "title": "Edinburgh Pub Crawl Tour",
                "availableCurrencies": ["GBP"],
                "defaultCurrency": "GBP",
                "settlementMethods": ["VOUCHER", "DEFERRED"],
                "questions": [{"id": "q-diet", "title": "Dietary requirements", "inputType": "textarea"}],
                "options": [
                    {
                        "id": self.OPTION_A,
                        "title": "Evening crawl",
                        "cancellationCutoff": "24 hours",
                        "units": [
                            _unit("adult", "Adult", 18, 64, 1),
                            _unit("child", "Child", 3, 17, 1),
                            _unit("senior", "Senior", 65, None, 1),
                            _unit("family", "Family", 0, 99, 4),
                        ],
                        "pickupPoints": [
                            {"id": "pp-castle", "name": "Castle Gate", "postal_code": "EH1 2NG"},
                        ],
                        "questions": [
                            {
                                "id": "q-size",
                                "title": "T-shirt size",
                                "inputType": "select",
                                "required": True,
                                "selectOptions": [{"label": "Small", "value": "S"}, {"label": "Large", "value": "L"}],
                            }
                        ],
                    }
                ],
            },
            {
                "id": self.PRODUCT_B,
                "title": "Hop-on Hop-off Bus",
                "availableCurrencies": ["EUR"],
                "defaultCurrency": "EUR",
                "settlementMethods": ["DEFERRED"],
                "options": [
                    {
                        "id": self.OPTION_B,
                        "title": "24h ticket",
                        "units": [_unit("adult", "Adult", 16, None, 1)],
                        "pickupPoints": [
                            {"id": "pp-castle", "name": "Castle Gate", "postal_code": "EH1 2NG"},
                            {"id": "pp-station", "name": "Waverley Station", "postal_code": "EH1 1BB"},
                        ],
                    }
                ],
            },
        ]
        self.bookings: dict[str, dict] = {}
        self.calls: list[tuple[str, str, dict | None]] = []
        self.requests: list[httpx.Request] = []
        self.latency: dict[str, float] = {}
        self.sold_out_dates: set[str] = set()
        self.fail_products: set[str] = set()
        self.fail_confirm = False
        self.fail_lookups = False
        self.confirm_on_create = False
        self._seq = 0

    # --- helpers ---

    @property
    def call_paths(self) -> list[str]:
        return [f"{m} {p}" for m, p, _ in self.calls]

    def _product(self, product_id: str) -> dict | None:
        return next((p for p in self.products if p["id"] == product_id), None)

    @staticmethod
    def _json(status: int, body) -> httpx.Response:
        return httpx.Response(status, json=body)

    @staticmethod
    def _days(start: str, end: str) -> list[str]:
        first, last = date.fromisoformat(start), date.fromisoformat(end)
        return [(first + timedelta(days=n)).isoformat() for n in range((last - first).days + 1)]

    # --- transport ---

    async def handle(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        path = request.url.path.removeprefix("/octo")
        self.requests.append(request)
        self.calls.append((request.method, path, body))

        if path == "/whoami":
            if request.url.params.get("token") == API_KEY:
                return self._json(200, {"connection": {"id": CONNECTION_ID, "name": "Test"}})
            return self._json(401, {"error": "UNAUTHORIZED", "errorMessage": "Invalid API key"})

        if request.headers.get("Authorization") != f"Bearer {API_KEY}":
            return self._json(401, {"error": "UNAUTHORIZED", "errorMessage": "Invalid API key"})

        parts = [p for p in path.split("/") if p]
        if parts[0] == "products":
            return self._products(parts)
        if parts[0] == "availability":
            return await self._availability(body, calendar=len(parts) > 1)
        if parts[0] == "bookings":
            return self._bookings(request, parts, body)
        return self._json(404, {"errorMessage": f"No route {path}"})

    def _products(self, parts: list[str]) -> httpx.Response:
        if len(parts) == 1:
            return self._json(200, self.products)
        product = self._product(parts[1])
        if product is None:
            return self._json(404, {"error": "INVALID_PRODUCT_ID", "errorMessage": "The productId was invalid"})
        return self._json(200, product)

    async def _availability(self, body: dict, calendar: bool) -> httpx.Response:
        product_id = body["productId"]
        await asyncio.sleep(self.latency.get(product_id, 0))
        if product_id in self.fail_products or self._product(product_id) is None:
            return self._json(400, {"error": "INVALID_PRODUCT_ID", "errorMessage": f"Unknown product {product_id}"})

        out = []
        for day in self._days(body["localDateStart"], body["localDateEnd"]):
            sold_out = day in self.sold_out_dates
            pricing = {"original": 5000, "retail": 5000, "currency": body.get("currency") or "GBP"}
            if calendar:
                out.append(
                    {
                        "localDate": day,
                        "status": "SOLD_OUT" if sold_out else "AVAILABLE",
                        "vacancies": 0 if sold_out else 12,
                        "pricingFrom": pricing,
                    }
                )
                continue
            out.append(
                {
                    "id": f"{day}T20:00:00+00:00",
                    "localDateTimeStart": f"{day}T20:00:00+00:00",
                    "localDateTimeEnd": f"{day}T23:00:00+00:00",
                    "allDay": False,
                    "status": "SOLD_OUT" if sold_out else "AVAILABLE",
                    "vacancies": 0 if sold_out else 12,
                    "pricing": pricing,
                    "unitPricing": [{"unitId": u["id"], "retail": 2500} for u in body.get("units") or []],
                    "offers": [{"code": "EARLY", "title": "Early bird", "description": "10% off"}],
                    "pickupAvailable": True,
                    "pickupRequired": False,
                    "pickupPoints": [{"id": "pp-castle", "name": "Castle Gate", "postal_code": "EH1 2NG"}],
                }
            )
        return self._json(200, out)

    def _new_booking(self, body: dict) -> dict:
        self._seq += 1
        product = self._product(body["productId"]) or {}
        option = next((o for o in product.get("options", []) if o["id"] == body["optionId"]), {})
        booking_uuid = f"b0c1d2e3-0000-4000-8000-{self._seq:012d}"
        return {
            "id": booking_uuid,
            "uuid": booking_uuid,
            "supplierReference": f"SUP-{self._seq:04d}",
            "resellerReference": body.get("resellerReference"),
            "orderId": body.get("orderId") or f"order-{self._seq}",
            "status": "ON_HOLD",
            "utcCreatedAt": "2026-10-18T10:00:00Z",
            "utcConfirmedAt": "2026-10-18T10:00:00Z" if self.confirm_on_create else None,
            "product": {"id": product.get("id"), "title": product.get("title")},
            "option": {
                "id": option.get("id"),
                "title": option.get("title"),
                "cancellationCutoff": option.get("cancellationCutoff"),
            },
            "availabilityId": body["availabilityId"],
            "availability": {
                "id": body["availabilityId"],
                "localDateTimeStart": body["availabilityId"],
                "localDateTimeEnd": body["availabilityId"].replace("T20", "T23"),
                "allDay": False,
            },
            "unitItems": [
                {"uuid": f"ui-{self._seq}-{ix}", "unitId": item["unitId"], "title": item["unitId"].title()}
                for ix, item in enumerate(body.get("unitItems") or [])
            ],
            "settlementMethod": body.get("settlementMethod"),
            "currency": body.get("currency"),
            "notes": body.get("notes"),
            "pickupRequested": body.get("pickupRequested", False),
            "pickupPointId": body.get("pickupPointId"),
            "pickupPoint": {"id": "pp-castle", "name": "Castle Gate", "postal_code": "EH1 2NG"}
            if body.get("pickupPointId")
            else None,
            "contact": {},
            "cancellable": True,
            "pricing": {"original": 10000, "retail": 10000, "currency": "GBP"},
        }

    def _bookings(self, request: httpx.Request, parts: list[str], body: dict | None) -> httpx.Response:
        method = request.method
        if len(parts) == 1 and method == "POST":
            booking = self._new_booking(body)
            self.bookings[booking["uuid"]] = booking
            return self._json(200, booking)

        if len(parts) == 1 and method == "GET":
            if self.fail_lookups:
                return self._json(500, {"errorMessage": "Search is down"})
            params = request.url.params
            found = list(self.bookings.values())
            if "resellerReference" in params:
                found = [b for b in found if b.get("resellerReference") == params["resellerReference"]]
            elif "supplierReference" in params:
                found = [b for b in found if b.get("supplierReference") == params["supplierReference"]]
            elif "localDateStart" in params:
                start, end = params["localDateStart"], params["localDateEnd"]
                found = [b for b in found if start <= b["availabilityId"][:10] <= end]
            return self._json(200, found)

        booking = self.bookings.get(parts[1])
        if booking is None:
            return self._json(404, {"error": "INVALID_BOOKING_UUID", "errorMessage": "Booking not found"})

        if len(parts) == 3 and parts[2] == "confirm":
            if self.fail_confirm:
                return self._json(503, {"errorMessage": "Confirmation service unavailable"})
            booking.update(
                status="CONFIRMED",
                utcConfirmedAt="2026-10-18T10:05:00Z",
                contact=body["contact"],
                resellerReference=body.get("resellerReference"),
                settlementMethod=body.get("settlementMethod"),
                questionAnswers=body.get("questionAnswers"),
            )
            return self._json(200, booking)
        if method == "PATCH":
            booking.update({k: v for k, v in body.items() if k != "unitItems"})
            return self._json(200, booking)
        if method == "DELETE":
            booking.update(status="CANCELLED", cancellable=False, cancellationReason=(body or {}).get("reason"))
            return self._json(200, booking)
        if self.fail_lookups:
            return self._json(500, {"errorMessage": "Search is down"})
        return self._json(200, booking)


@pytest.fixture
def supplier() -> FakeOctoSupplier:
    return FakeOctoSupplier()


@pytest.fixture
def config() -> PluginConfig:
    return PluginConfig(jwt_key="test-signing-secret", endpoint=ENDPOINT)


@pytest.fixture
def token() -> dict:
    return {"apiKey": API_KEY, "octoEnv": "test", "acceptLanguage": "en"}


@pytest.fixture
def transport(supplier: FakeOctoSupplier) -> httpx.MockTransport:
    return httpx.MockTransport(supplier.handle)


@pytest.fixture
def adapter(config: PluginConfig, transport: httpx.MockTransport) -> OctoAdapter:
    return OctoAdapter(config, transport=transport)


@pytest.fixture
def client(config: PluginConfig, transport: httpx.MockTransport, token: dict) -> OctoClient:
    return OctoClient(Credentials.model_validate(token), config, transport=transport)
