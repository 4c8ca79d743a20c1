# PATH: accounting/api/view.py

"""
PATH: accounting/api/view.py

ACCOUNTING API VIEWSETS (READ-ONLY / AUDIT SAFE)

- Ledger entries are append-only: list/retrieve only
- Permission-gated via accounting.view_ledgerentry
- Filtering through django-filter:
    /api/accounting/ledger-entries/?voucher=30
    /api/accounting/ledger-entries/?account=28&date_from=2026-01-01
- Ordering via ?ordering=posted_at or ?ordering=-posted_at
"""

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.viewsets import ReadOnlyModelViewSet

from accounting.api.filters import LedgerEntryFilter
from accounting.api.serializers import LedgerEntrySerializer
from accounting.models.ledger import LedgerEntry

ALLOWED_ORDERING = ("posted_at", "-posted_at")


@extend_schema(
    tags=["accounting"],
    parameters=[
        OpenApiParameter(
            name="ordering",
            type=str,
            required=False,
            description="Order results (allowed: posted_at, -posted_at). Default: -posted_at",
        ),
    ],
)
class LedgerEntryViewSet(ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = LedgerEntrySerializer
    filterset_class = LedgerEntryFilter
    http_method_names = ["get", "head", "options"]

    queryset = LedgerEntry.objects.select_related("voucher", "account")

    def get_queryset(self):
        if not self.request.user.has_perm("accounting.view_ledgerentry"):
            raise PermissionDenied("You do not have permission to view ledger entries.")

        ordering = (self.request.query_params.get("ordering") or "-posted_at").strip()
        if ordering not in ALLOWED_ORDERING:
            ordering = "-posted_at"

        return super().get_queryset().order_by(ordering, ordering.replace("posted_at", "id"))
