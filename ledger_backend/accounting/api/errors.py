# accounting/api/errors.py

"""
Maps service-layer errors onto HTTP responses.

    AccountingValidationError -> 400 (with field-addressable violations)
    NotFoundError             -> 404
    StateError, ConflictError -> 409
    LedgerIntegrityError      -> 500 (logged CRITICAL)
"""

from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.response import Response

from accounting.services.exceptions import (
    AccountingServiceError,
    AccountingValidationError,
    ConflictError,
    LedgerIntegrityError,
    NotFoundError,
    StateError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = (
    (AccountingValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (StateError, status.HTTP_409_CONFLICT),
    (ConflictError, status.HTTP_409_CONFLICT),
    (LedgerIntegrityError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def service_error_response(exc: AccountingServiceError) -> Response:
    code = next(
        (code for cls, code in STATUS_BY_ERROR if isinstance(exc, cls)),
        status.HTTP_400_BAD_REQUEST,
    )
    if isinstance(exc, LedgerIntegrityError):
        logger.critical("Ledger integrity error surfaced to API", extra={"error": str(exc)})
    return Response(exc.as_dict(), status=code)


def forbidden(detail: str) -> Response:
    return Response({"detail": detail}, status=status.HTTP_403_FORBIDDEN)
