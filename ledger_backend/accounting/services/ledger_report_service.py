# accounting/services/ledger_report_service.py

"""
ACCOUNT STATEMENT (GENERAL LEDGER VIEW)

Opening balance at the start date, every posted movement in the range in
business-date order with a running balance, and the closing balance.
Balances are in the account's natural sign.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from django.db.models import Sum

from accounting.models.ledger import LedgerEntry
from accounting.money import ZERO, q2
from accounting.services.account_service import get_account
from accounting.services.exceptions import AccountingValidationError, Violation


@dataclass(frozen=True)
class StatementLine:
    ledger_entry_id: int
    entry_date: date
    voucher_number: str
    voucher_type: str
    narration: str
    description: str
    debit: Decimal
    credit: Decimal
    balance: Decimal

    def as_dict(self) -> dict:
        return {
            "ledger_entry_id": self.ledger_entry_id,
            "entry_date": self.entry_date.isoformat(),
            "voucher_number": self.voucher_number,
            "voucher_type": self.voucher_type,
            "narration": self.narration,
            "description": self.description,
            "debit": str(self.debit),
            "credit": str(self.credit),
            "balance": str(self.balance),
        }


@dataclass(frozen=True)
class AccountStatement:
    account_id: int
    account_code: str
    account_name: str
    normal_balance: str
    start_date: date | None
    end_date: date | None
    opening_balance: Decimal
    lines: tuple[StatementLine, ...]
    total_debit: Decimal
    total_credit: Decimal
    closing_balance: Decimal

    def as_dict(self) -> dict:
        return {
            "account": {
                "id": self.account_id,
                "code": self.account_code,
                "name": self.account_name,
                "normal_balance": self.normal_balance,
            },
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "opening_balance": str(self.opening_balance),
            "entries": [line.as_dict() for line in self.lines],
            "totals": {
                "debit": str(self.total_debit),
                "credit": str(self.total_credit),
            },
            "closing_balance": str(self.closing_balance),
        }


def account_statement(
    account_id,
    *,
    start_date: date | None = None,
    end_date: date | None = None,
) -> AccountStatement:
    account = get_account(account_id)
    if account.is_group:
        raise AccountingValidationError(
            "Statements are only available for leaf accounts",
            violations=[
                Violation("account_is_group", f"Account {account.code} is a group account", "account")
            ],
        )
    if start_date and end_date and start_date > end_date:
        raise AccountingValidationError(
            "Invalid date range",
            violations=[Violation("invalid_range", "start_date must be on or before end_date", "start_date")],
        )

    def _signed(debit, credit) -> Decimal:
        return debit - credit if account.normal_balance == LedgerEntry.DEBIT else credit - debit

    opening = q2(account.opening_balance)
    if start_date:
        before = (
            LedgerEntry.objects.filter(account=account, entry_date__lt=start_date)
            .values("direction")
            .annotate(total=Sum("amount"))
        )
        totals = {r["direction"]: q2(r["total"]) for r in before}
        opening = q2(
            opening + _signed(totals.get(LedgerEntry.DEBIT, ZERO), totals.get(LedgerEntry.CREDIT, ZERO))
        )

    qs = LedgerEntry.objects.filter(account=account).select_related("voucher", "voucher_entry")
    if start_date:
        qs = qs.filter(entry_date__gte=start_date)
    if end_date:
        qs = qs.filter(entry_date__lte=end_date)

    running = opening
    total_debit = ZERO
    total_credit = ZERO
    lines: list[StatementLine] = []

    for entry in qs.order_by("entry_date", "posted_at", "id"):
        debit = entry.amount if entry.direction == LedgerEntry.DEBIT else ZERO
        credit = entry.amount if entry.direction == LedgerEntry.CREDIT else ZERO
        running = q2(running + _signed(debit, credit))
        total_debit += debit
        total_credit += credit

        lines.append(
            StatementLine(
                ledger_entry_id=entry.pk,
                entry_date=entry.entry_date,
                voucher_number=entry.voucher.voucher_number,
                voucher_type=entry.voucher.voucher_type,
                narration=entry.voucher.narration,
                description=entry.voucher_entry.description,
                debit=debit,
                credit=credit,
                balance=running,
            )
        )

    return AccountStatement(
        account_id=account.pk,
        account_code=account.code,
        account_name=account.name,
        normal_balance=account.normal_balance,
        start_date=start_date,
        end_date=end_date,
        opening_balance=opening,
        lines=tuple(lines),
        total_debit=q2(total_debit),
        total_credit=q2(total_credit),
        closing_balance=running,
    )
