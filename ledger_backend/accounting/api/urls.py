# accounting/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

# ViewSets live in accounting/api/view.py (singular); import directly to
# avoid circular imports through views/__init__.py.
from accounting.api.view import LedgerEntryViewSet
from accounting.api.views.accounts import (
    AccountBalanceView,
    AccountDeactivateView,
    AccountDetailView,
    AccountListCreateView,
    AccountReactivateView,
    AccountStatementView,
)
from accounting.api.views.balance_sheet import BalanceSheetView
from accounting.api.views.trial_balance import TrialBalanceView
from accounting.api.views.vouchers import (
    VoucherCancelView,
    VoucherDetailView,
    VoucherEntryCreateView,
    VoucherEntryDetailView,
    VoucherListCreateView,
    VoucherPostView,
    VoucherReverseView,
    VoucherValidateView,
)

router = DefaultRouter()
router.register("ledger-entries", LedgerEntryViewSet, basename="ledger-entry")

urlpatterns = [
    # Router endpoints
    path("", include(router.urls)),
    # Reports
    path("trial-balance/", TrialBalanceView.as_view(), name="trial-balance"),
    path("balance-sheet/", BalanceSheetView.as_view(), name="balance-sheet"),
    # Account directory
    path("accounts/", AccountListCreateView.as_view(), name="accounts"),
    path("accounts/<int:pk>/", AccountDetailView.as_view(), name="account-detail"),
    path("accounts/<int:pk>/deactivate/", AccountDeactivateView.as_view(), name="account-deactivate"),
    path("accounts/<int:pk>/reactivate/", AccountReactivateView.as_view(), name="account-reactivate"),
    path("accounts/<int:pk>/balance/", AccountBalanceView.as_view(), name="account-balance"),
    path("accounts/<int:pk>/statement/", AccountStatementView.as_view(), name="account-statement"),
    # Vouchers
    path("vouchers/", VoucherListCreateView.as_view(), name="vouchers"),
    path("vouchers/<int:pk>/", VoucherDetailView.as_view(), name="voucher-detail"),
    path("vouchers/<int:pk>/entries/", VoucherEntryCreateView.as_view(), name="voucher-entries"),
    path(
        "vouchers/<int:pk>/entries/<int:entry_id>/",
        VoucherEntryDetailView.as_view(),
        name="voucher-entry-detail",
    ),
    path("vouchers/<int:pk>/validate/", VoucherValidateView.as_view(), name="voucher-validate"),
    path("vouchers/<int:pk>/post/", VoucherPostView.as_view(), name="voucher-post"),
    path("vouchers/<int:pk>/cancel/", VoucherCancelView.as_view(), name="voucher-cancel"),
    path("vouchers/<int:pk>/reverse/", VoucherReverseView.as_view(), name="voucher-reverse"),
]
