from __future__ import annotations

from collections.abc import Sequence

VOUCHER = "VOUCHER"
DIRECT = "DIRECT"
DEFERRED = "DEFERRED"

DEFAULT_SETTLEMENT_METHOD = DEFERRED


def pick_settlement_method(
    advertised: Sequence[str] | None,
    reference: str | None = None,
    requested: str | None = None,
) -> str:
    """
    Choose how the booking is settled with the supplier.

    ``advertised`` is the product's settlementMethods list; ``None`` means the product
    did not say, in which case every method is assumed to be supported.

    Order: the caller's explicit choice, VOUCHER then DIRECT when the reseller
    supplied a reference, DEFERRED, the first advertised method, DEFERRED.
    """

    def supported(method: str) -> bool:
        return advertised is None or method in advertised

    if requested and supported(requested):
        return requested
    if reference:
        for method in (VOUCHER, DIRECT):
            if supported(method):
                return method
    if supported(DEFERRED):
        return DEFERRED
    if advertised:
        return advertised[0]
    return DEFAULT_SETTLEMENT_METHOD
