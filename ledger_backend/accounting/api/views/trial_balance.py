"""
PATH: accounting/api/views/trial_balance.py

TRIAL BALANCE API VIEW (READ-ONLY)

- Permission-gated: requires accounting.view_ledgerentry
- Computed from the ledger, never from cached balances
- ?as_of=<ISO datetime> or ?as_of_date=<YYYY-MM-DD> (end of day)
"""

from __future__ import annotations

from datetime import datetime, time

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounting.api.errors import forbidden
from accounting.api.params import parse_query_date, parse_query_datetime
from accounting.services.trial_balance_service import TrialBalanceService, resolve_cutoff


@extend_schema(
    tags=["accounting"],
    parameters=[
        OpenApiParameter(
            name="as_of",
            type=str,
            location=OpenApiParameter.QUERY,
            required=False,
            description="ISO datetime snapshot (e.g. 2026-01-15T23:59:59).",
        ),
        OpenApiParameter(
            name="as_of_date",
            type=str,
            location=OpenApiParameter.QUERY,
            required=False,
            description="Convenience alias for end-of-day snapshot (YYYY-MM-DD). If set, overrides as_of.",
        ),
        OpenApiParameter(
            name="include_zero",
            type=bool,
            location=OpenApiParameter.QUERY,
            required=False,
            description="Also list leaf accounts with no balance and no activity.",
        ),
    ],
    responses={200: dict},
)
class TrialBalanceView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        if not request.user.has_perm("accounting.view_ledgerentry"):
            return forbidden("You do not have permission to view trial balance.")

        as_of_param = request.query_params.get("as_of")
        as_of_date_param = request.query_params.get("as_of_date")

        as_of = None

        if as_of_date_param:
            d = parse_query_date(as_of_date_param)
            if d is None:
                return Response(
                    {"detail": "Invalid as_of_date (expected YYYY-MM-DD)"},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            as_of = resolve_cutoff(datetime.combine(d, time.max.replace(microsecond=0)))
        elif as_of_param is not None and str(as_of_param).strip():
            dt = parse_query_datetime(as_of_param)
            if dt is None:
                return Response(
                    {"detail": "Invalid as_of (expected ISO datetime)"},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            as_of = resolve_cutoff(dt)

        include_zero = (request.query_params.get("include_zero") or "").lower() in ("1", "true", "yes")

        report = TrialBalanceService().generate(as_of=as_of, include_zero=include_zero)

        data = report.as_dict()
        data["as_of_date"] = as_of_date_param or None
        return Response(data, status=status.HTTP_200_OK)
