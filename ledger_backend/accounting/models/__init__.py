from accounting.models.account import Account
from accounting.models.ledger import LedgerEntry
from accounting.models.sequence import Sequence
from accounting.models.voucher import Voucher, VoucherEntry

__all__ = [
    "Account",
    "LedgerEntry",
    "Sequence",
    "Voucher",
    "VoucherEntry",
]
