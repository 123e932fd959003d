"""
Product search filters.

Only the fields listed in FILTERABLE_FIELDS can be filtered on; anything else in the
payload is rejected instead of silently matching whatever key happens to exist.
"""

from __future__ import annotations

from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import Any, Union

from octo_adapter.core.errors import InvalidRequestError
from octo_adapter.core.schemas import Product


def wildcard_match(pattern: str, value: Any) -> bool:
    """Case-insensitive match where only ``*`` and ``?`` are wildcards. Non-string values never match."""
    if not isinstance(pattern, str) or not isinstance(value, str):
        return False
    # fnmatch would read "[...]" as a character class.
    return fnmatchcase(value.lower(), pattern.lower().replace("[", "[[]"))


@dataclass(frozen=True)
class WildcardFilter:
    field: str
    pattern: str

    def matches(self, value: Any) -> bool:
        return wildcard_match(self.pattern, value)


@dataclass(frozen=True)
class ExactFilter:
    field: str
    value: str

    def matches(self, value: Any) -> bool:
        return isinstance(value, str) and value.lower() == self.value.lower()


ProductFilterClause = Union[WildcardFilter, ExactFilter]

# payload key -> (Product attribute, filter kind)
FILTERABLE_FIELDS: dict[str, tuple[str, type]] = {
    "productName": ("product_name", WildcardFilter),
    "defaultCurrency": ("default_currency", ExactFilter),
}

# Routed to the supplier URL, not filtered locally.
ROUTED_FIELDS = {"productId"}


def build_product_filters(payload: dict | None) -> list[ProductFilterClause]:
    clauses: list[ProductFilterClause] = []
    for key, value in (payload or {}).items():
        if key in ROUTED_FIELDS or value is None or value == "":
            continue
        if key not in FILTERABLE_FIELDS:
            allowed = ", ".join(sorted([*FILTERABLE_FIELDS, *ROUTED_FIELDS]))
            raise InvalidRequestError(f"Unsupported product filter '{key}'. Allowed: {allowed}")
        if not isinstance(value, str):
            raise InvalidRequestError(f"Product filter '{key}' must be a string")
        attr, kind = FILTERABLE_FIELDS[key]
        clauses.append(kind(attr, value))
    return clauses


def apply_product_filters(products: list[Product], clauses: list[ProductFilterClause]) -> list[Product]:
    if not clauses:
        return products
    return [p for p in products if all(c.matches(getattr(p, c.field)) for c in clauses)]
