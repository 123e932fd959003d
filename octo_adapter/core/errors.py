"""
Adapter exceptions.

Every error raised by the orchestrators derives from OctoAdapterError so hosts can
map them to a response in one place (see octo_adapter.main).
"""

from __future__ import annotations

from typing import Any


class OctoAdapterError(Exception):
    """Base adapter exception."""

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str = "An error occurred",
        details: dict[str, Any] | None = None,
        status_code: int | None = None,
    ):
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ConfigurationError(OctoAdapterError):
    """Deployment is missing something the operation needs (e.g. the signing secret)."""

    error_code = "CONFIGURATION_ERROR"


class InvalidRequestError(OctoAdapterError):
    """Caller payload failed validation. Raised before any supplier call."""

    status_code = 400
    error_code = "INVALID_REQUEST"


class TokenIntegrityError(OctoAdapterError):
    """Availability key failed signature, expiry or shape verification."""

    status_code = 401
    error_code = "INVALID_TOKEN"

    def __init__(self, message: str = "Invalid or tampered availability key", details: dict | None = None):
        super().__init__(message, details)


class SupplierError(OctoAdapterError):
    """Supplier answered with a non-2xx status or could not be reached."""

    status_code = 502
    error_code = "SUPPLIER_ERROR"

    def __init__(
        self,
        message: str,
        supplier_status: int | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.supplier_status = supplier_status
        # Supplier-side client errors are surfaced with their own status.
        if supplier_status is not None and 400 <= supplier_status < 500:
            self.status_code = supplier_status


class BookingConfirmationError(SupplierError):
    """Phase 2 (confirm) failed after the draft booking was created."""

    error_code = "CONFIRMATION_FAILED"

    def __init__(self, cause: SupplierError, draft_booking_id: str | None):
        super().__init__(
            f"Booking {draft_booking_id} was created but could not be confirmed: {cause.message}",
            supplier_status=cause.supplier_status,
            details={**cause.details, "draft_booking_id": draft_booking_id},
        )
        self.draft_booking_id = draft_booking_id


class TranslationError(OctoAdapterError):
    """Supplier JSON does not have the shape the translators expect."""

    status_code = 502
    error_code = "TRANSLATION_ERROR"
