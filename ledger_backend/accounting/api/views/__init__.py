# accounting/api/views/__init__.py

"""
accounting.api.views package

Important:
- ViewSets are defined in accounting.api.view (singular) in this codebase.
- Do NOT import accounting.api.urls from here to avoid circular imports.
"""

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

__all__ = [
    "LedgerEntryViewSet",
    "TrialBalanceView",
    "BalanceSheetView",
    "AccountListCreateView",
    "AccountDetailView",
    "AccountDeactivateView",
    "AccountReactivateView",
    "AccountBalanceView",
    "AccountStatementView",
    "VoucherListCreateView",
    "VoucherDetailView",
    "VoucherEntryCreateView",
    "VoucherEntryDetailView",
    "VoucherValidateView",
    "VoucherPostView",
    "VoucherCancelView",
    "VoucherReverseView",
]
