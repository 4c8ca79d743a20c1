"""
PATH: accounting/api/views/balance_sheet.py

BALANCE SHEET API VIEW (READ-ONLY)

- Permission-gated: requires accounting.view_ledgerentry
- ?as_of_date=<YYYY-MM-DD> is an inclusive end-of-day snapshot; default is now
- An unbalanced sheet is returned with balanced=false, not as an error
"""

from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounting.api.errors import forbidden
from accounting.api.params import parse_query_date
from accounting.services.balance_sheet_service import generate_balance_sheet


class BalanceSheetView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["accounting"],
        parameters=[
            OpenApiParameter(
                name="as_of_date",
                type=OpenApiTypes.DATE,
                required=False,
                description="Optional cutoff date (YYYY-MM-DD), inclusive end-of-day.",
            ),
        ],
        responses={200: dict},
    )
    def get(self, request):
        if not request.user.has_perm("accounting.view_ledgerentry"):
            return forbidden("You do not have permission to view financial reports.")

        raw = (request.query_params.get("as_of_date") or "").strip()
        as_of = None
        if raw:
            as_of = parse_query_date(raw)
            if as_of is None:
                return Response(
                    {"detail": "Invalid as_of_date (expected YYYY-MM-DD)"},
                    status=status.HTTP_400_BAD_REQUEST,
                )

        data = generate_balance_sheet(as_of=as_of).as_dict()
        data["as_of_date"] = raw or None
        return Response(data, status=status.HTTP_200_OK)
