# accounting/api/serializers/__init__.py

from accounting.api.serializers.accounts import (
    AccountCreateSerializer,
    AccountSerializer,
    AccountUpdateSerializer,
)
from accounting.api.serializers.ledger_entries import LedgerEntrySerializer
from accounting.api.serializers.vouchers import (
    VoucherCancelSerializer,
    VoucherCreateSerializer,
    VoucherEntryInputSerializer,
    VoucherEntrySerializer,
    VoucherEntryUpdateSerializer,
    VoucherReverseSerializer,
    VoucherSerializer,
    VoucherUpdateSerializer,
)

__all__ = [
    "AccountSerializer",
    "AccountCreateSerializer",
    "AccountUpdateSerializer",
    "LedgerEntrySerializer",
    "VoucherSerializer",
    "VoucherEntrySerializer",
    "VoucherCreateSerializer",
    "VoucherUpdateSerializer",
    "VoucherEntryInputSerializer",
    "VoucherEntryUpdateSerializer",
    "VoucherCancelSerializer",
    "VoucherReverseSerializer",
]
