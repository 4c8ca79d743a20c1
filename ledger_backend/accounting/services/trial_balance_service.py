# accounting/services/trial_balance_service.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal

from django.db.models import Sum
from django.utils import timezone

from accounting.models.account import Account
from accounting.models.ledger import LedgerEntry
from accounting.money import ZERO, q2, to_minor_int


def _as_aware_dt(dt):
    if dt is None:
        return None
    if timezone.is_naive(dt):
        return timezone.make_aware(dt, timezone.get_current_timezone())
    return dt


def resolve_cutoff(as_of) -> datetime:
    """None -> now; date -> end of that day (local tz); datetime -> itself (aware)."""
    if as_of is None:
        return timezone.now()
    if isinstance(as_of, datetime):
        return _as_aware_dt(as_of)
    if isinstance(as_of, date):
        return _as_aware_dt(datetime.combine(as_of, time.max))
    raise TypeError(f"as_of must be a date or datetime, got {type(as_of).__name__}")


def split_balance(normal_balance: str, balance: Decimal) -> tuple[Decimal, Decimal]:
    """Put a natural-sign balance on exactly one side: (debit, credit)."""
    if balance == ZERO:
        return ZERO, ZERO
    if normal_balance == Account.DEBIT:
        return (balance, ZERO) if balance > ZERO else (ZERO, -balance)
    return (ZERO, balance) if balance > ZERO else (-balance, ZERO)


@dataclass(frozen=True)
class TrialBalanceRow:
    account_id: int
    account_code: str
    account_name: str
    account_type: str
    normal_balance: str
    opening_balance: Decimal
    period_debit: Decimal
    period_credit: Decimal
    balance: Decimal
    debit: Decimal
    credit: Decimal

    def as_dict(self) -> dict:
        return {
            "account_id": self.account_id,
            "account_code": self.account_code,
            "account_name": self.account_name,
            "account_type": self.account_type,
            "normal_balance": self.normal_balance,
            "opening_balance": str(self.opening_balance),
            "period_debit": str(self.period_debit),
            "period_credit": str(self.period_credit),
            "balance": str(self.balance),
            "debit": str(self.debit),
            "credit": str(self.credit),
            "debit_minor": to_minor_int(self.debit),
            "credit_minor": to_minor_int(self.credit),
        }


@dataclass(frozen=True)
class TrialBalance:
    as_of: datetime
    rows: tuple[TrialBalanceRow, ...]
    total_debit: Decimal
    total_credit: Decimal

    @property
    def difference(self) -> Decimal:
        return q2(self.total_debit - self.total_credit)

    @property
    def balanced(self) -> bool:
        return self.total_debit == self.total_credit

    def row_for(self, code: str) -> TrialBalanceRow | None:
        return next((r for r in self.rows if r.account_code == code), None)

    def as_dict(self) -> dict:
        return {
            "as_of": self.as_of.isoformat(),
            "accounts": [r.as_dict() for r in self.rows],
            "totals": {
                "debit": str(self.total_debit),
                "credit": str(self.total_credit),
                "debit_minor": to_minor_int(self.total_debit),
                "credit_minor": to_minor_int(self.total_credit),
                "difference": str(self.difference),
                "balanced": self.balanced,
            },
        }


class TrialBalanceService:
    """
    Trial Balance computed from the ledger, independent of cached balances.

    Guarantees:
    - Covers every LEAF account (inactive ones too: they may hold history)
    - Replays opening_balance + ledger deltas with posted_at <= cutoff
    - Each row's net sits on exactly one side (debit or credit column)
    - Aggregates in bulk (one query for accounts, one for ledger sums)
    - Money stays Decimal; minor-unit ints are provided for clients
    """

    def __init__(self, account_model=Account, ledger_model=LedgerEntry):
        self.Account = account_model
        self.Ledger = ledger_model

    def replay(self, *, as_of=None, account_ids=None) -> dict[int, tuple[Decimal, Decimal]]:
        """
        {account_id: (debit_sum, credit_sum)} of ledger entries with
        posted_at <= cutoff. as_of=None replays the whole ledger.
        """
        qs = self.Ledger.objects.all()
        if as_of is not None:
            qs = qs.filter(posted_at__lte=resolve_cutoff(as_of))
        if account_ids is not None:
            qs = qs.filter(account_id__in=account_ids)

        sums: dict[int, list[Decimal]] = {}
        for r in qs.values("account_id", "direction").annotate(total=Sum("amount")):
            pair = sums.setdefault(r["account_id"], [ZERO, ZERO])
            if r["direction"] == self.Ledger.DEBIT:
                pair[0] = q2(r["total"])
            elif r["direction"] == self.Ledger.CREDIT:
                pair[1] = q2(r["total"])

        return {acc_id: (pair[0], pair[1]) for acc_id, pair in sums.items()}

    def generate(self, *, as_of=None, include_zero: bool = False) -> TrialBalance:
        cutoff = resolve_cutoff(as_of)

        accounts = list(
            self.Account.objects.filter(is_group=False)
            .only("id", "code", "name", "account_type", "opening_balance")
            .order_by("code")
        )
        sums = self.replay(as_of=cutoff, account_ids=[a.id for a in accounts])

        rows: list[TrialBalanceRow] = []
        total_debit = ZERO
        total_credit = ZERO

        for acc in accounts:
            period_debit, period_credit = sums.get(acc.id, (ZERO, ZERO))
            opening = q2(acc.opening_balance)

            if acc.normal_balance == Account.DEBIT:
                balance = q2(opening + period_debit - period_credit)
            else:
                balance = q2(opening + period_credit - period_debit)

            if (
                not include_zero
                and balance == ZERO
                and opening == ZERO
                and period_debit == ZERO
                and period_credit == ZERO
            ):
                continue

            debit, credit = split_balance(acc.normal_balance, balance)
            rows.append(
                TrialBalanceRow(
                    account_id=acc.id,
                    account_code=acc.code,
                    account_name=acc.name,
                    account_type=acc.account_type,
                    normal_balance=acc.normal_balance,
                    opening_balance=opening,
                    period_debit=period_debit,
                    period_credit=period_credit,
                    balance=balance,
                    debit=debit,
                    credit=credit,
                )
            )
            total_debit += debit
            total_credit += credit

        return TrialBalance(
            as_of=cutoff,
            rows=tuple(rows),
            total_debit=q2(total_debit),
            total_credit=q2(total_credit),
        )


def trial_balance(as_of=None) -> TrialBalance:
    return TrialBalanceService().generate(as_of=as_of)
