# accounting/services/exceptions.py

"""
ACCOUNTING SERVICE ERRORS

Centralized domain errors for accounting services.

Every error may carry a list of field-addressable Violations
(e.g. field="entries[1].account") so callers can render them per field.

Names are prefixed where they would otherwise shadow Django's own
ValidationError / IntegrityError.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Violation:
    """A single broken rule, addressable to the offending field."""

    code: str
    message: str
    field: str | None = None

    def as_dict(self) -> dict:
        return {"code": self.code, "field": self.field, "message": self.message}


class AccountingServiceError(Exception):
    """Base exception for all accounting service failures."""

    def __init__(self, message: str = "", *, violations=None):
        super().__init__(message)
        self.message = message
        self.violations: list[Violation] = list(violations or [])

    def field_errors(self) -> dict[str, list[str]]:
        errors: dict[str, list[str]] = {}
        for v in self.violations:
            errors.setdefault(v.field or "non_field_errors", []).append(v.message)
        return errors

    def as_dict(self) -> dict:
        return {
            "detail": self.message,
            "violations": [v.as_dict() for v in self.violations],
            "errors": self.field_errors(),
        }


class AccountingValidationError(AccountingServiceError):
    """Input or voucher fails a business rule."""


class StateError(AccountingServiceError):
    """Operation is not allowed in the object's current lifecycle state."""


class ConflictError(AccountingServiceError):
    """Concurrent modification, duplicate key, or referential conflict."""


class LedgerIntegrityError(AccountingServiceError):
    """An internal ledger invariant was found broken. Never swallowed."""

    # Set by reconciliation to the ReconciliationReport that triggered it.
    report = None


class NotFoundError(AccountingServiceError):
    """Referenced account or voucher does not exist."""
