"""
PATH: backend/urls.py

PROJECT URLS

Everything the ledger serves is mounted under /api/:
- /api/accounting/   accounts, vouchers, ledger entries, trial balance
- /api/health/       database check plus ledger status (AllowAny)
- /api/schema/, /api/docs/
- /api/auth/jwt/...  SimpleJWT token pair

The admin mount point comes from settings.ADMIN_PATH.
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.contrib import admin
from django.db import DatabaseError
from django.urls import include, path
from django.views.generic import RedirectView
from drf_spectacular.utils import extend_schema
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from accounting.models import Account

logger = logging.getLogger(__name__)

LEDGER_ENDPOINTS = {
    "accounts": "/api/accounting/accounts/",
    "vouchers": "/api/accounting/vouchers/",
    "ledger_entries": "/api/accounting/ledger-entries/",
    "trial_balance": "/api/accounting/trial-balance/",
    "balance_sheet": "/api/accounting/balance-sheet/",
}


@extend_schema(tags=["meta"], responses={200: dict})
@api_view(["GET"])
@permission_classes([AllowAny])
def api_root(request):
    return Response(
        {
            "service": "ledger-backend",
            "auth": {
                "jwt_create": "/api/auth/jwt/create/",
                "jwt_refresh": "/api/auth/jwt/refresh/",
            },
            "docs": "/api/docs/",
            "ledger": LEDGER_ENDPOINTS,
        }
    )


@extend_schema(tags=["meta"], responses={200: dict, 503: dict})
@api_view(["GET"])
@permission_classes([AllowAny])
def health_check(request):
    """
    Liveness for load balancers.

    A frozen account is reported but does not fail the check: the ledger
    still serves reads while an operator investigates.
    """
    try:
        leaf_accounts = Account.objects.filter(is_group=False).count()
        frozen_accounts = Account.objects.filter(is_frozen=True).count()
    except DatabaseError as exc:
        logger.error("Health check: database unavailable", extra={"error": str(exc)})
        return Response({"status": "degraded", "db": "down"}, status=503)

    return Response(
        {
            "status": "ok",
            "db": "ok",
            "chart_seeded": leaf_accounts > 0,
            "frozen_accounts": frozen_accounts,
        }
    )


ADMIN_PATH = getattr(settings, "ADMIN_PATH", "admin/").rstrip("/") + "/"

api_urlpatterns = [
    path("", api_root, name="api-root"),
    path("health/", health_check, name="health-check"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    path("auth/jwt/create/", TokenObtainPairView.as_view(), name="jwt-create"),
    path("auth/jwt/refresh/", TokenRefreshView.as_view(), name="jwt-refresh"),
    path("accounting/", include("accounting.api.urls")),
]

urlpatterns = [
    path(ADMIN_PATH, admin.site.urls),
    path("", RedirectView.as_view(url="/api/docs/", permanent=False), name="root"),
    path("api/", include(api_urlpatterns)),
]
