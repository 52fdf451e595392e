"""Reseller domain exceptions."""

from __future__ import annotations

from typing import Optional


class ResellerError(Exception):
    """Base class for every error raised by the reseller services."""
    pass


class ValidationError(ResellerError):
    """Input rejected before any mutation was attempted."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid input")


class NotFoundError(ResellerError):
    """Referenced record does not exist for this owner."""

    def __init__(self, table: str, record_id: str):
        self.table = table
        self.record_id = record_id
        super().__init__(f"{table} record not found: {record_id}")


class InvalidTransitionError(ResellerError):
    """Inventory item status does not allow the requested operation."""
    pass


class ProfitUnavailableError(ResellerError):
    """Profit cannot be computed because the acquisition cost is unknown."""
    pass


class ReferentialIntegrityError(ResellerError):
    """Delete blocked because other records depend on the target."""
    pass


class StorageError(ResellerError):
    """Backend read or write failed."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        self.cause = cause
        super().__init__(message)


class ConditionFailedError(StorageError):
    """A write precondition did not hold, nothing was written."""
    pass
