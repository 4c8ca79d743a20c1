# accounting/services/balance_sheet_service.py

"""
BALANCE SHEET SERVICE

Read-only snapshot of the accounting equation at a cutoff.

Responsibilities:
- Replay leaf balances (opening_balance + ledger deltas, posted_at <= cutoff)
- Classify assets (current / fixed) and liabilities (current / long-term)
- Fold unclosed revenue and expense into equity as Current Period Earnings
- Report whether Assets == Liabilities + Equity

Important:
- The check is exact on Decimal; an imbalance is reported, not raised,
  so reconciliation can find the cause
- Inactive leaves are included: they may still carry history
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from accounting.models.account import Account
from accounting.money import ZERO, q2, to_minor_int
from accounting.services.trial_balance_service import TrialBalanceService, resolve_cutoff

CURRENT_EARNINGS_CODE = "E-CURR"
CURRENT_EARNINGS_NAME = "Current Period Earnings"


@dataclass(frozen=True)
class BalanceSheetLine:
    account_id: int | None
    code: str
    name: str
    category: str
    balance: Decimal

    def as_dict(self) -> dict:
        return {
            "account_id": self.account_id,
            "code": self.code,
            "name": self.name,
            "category": self.category,
            "balance": str(self.balance),
            "balance_minor": to_minor_int(self.balance),
        }


@dataclass
class BalanceSheetSection:
    lines: list[BalanceSheetLine] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return q2(sum((line.balance for line in self.lines), ZERO))

    def as_dict(self) -> dict:
        return {
            "accounts": [line.as_dict() for line in self.lines],
            "total": str(self.total),
            "total_minor": to_minor_int(self.total),
        }


@dataclass(frozen=True)
class BalanceSheet:
    as_of: datetime
    current_assets: BalanceSheetSection
    fixed_assets: BalanceSheetSection
    current_liabilities: BalanceSheetSection
    long_term_liabilities: BalanceSheetSection
    equity: BalanceSheetSection
    total_revenue: Decimal
    total_expense: Decimal

    @property
    def net_income(self) -> Decimal:
        return q2(self.total_revenue - self.total_expense)

    @property
    def total_assets(self) -> Decimal:
        return q2(self.current_assets.total + self.fixed_assets.total)

    @property
    def total_liabilities(self) -> Decimal:
        return q2(self.current_liabilities.total + self.long_term_liabilities.total)

    @property
    def total_equity(self) -> Decimal:
        return self.equity.total

    @property
    def liabilities_plus_equity(self) -> Decimal:
        return q2(self.total_liabilities + self.total_equity)

    @property
    def difference(self) -> Decimal:
        return q2(self.total_assets - self.liabilities_plus_equity)

    @property
    def balanced(self) -> bool:
        return self.total_assets == self.liabilities_plus_equity

    def as_dict(self) -> dict:
        return {
            "as_of": self.as_of.isoformat(),
            "assets": {
                "current": self.current_assets.as_dict(),
                "fixed": self.fixed_assets.as_dict(),
                "total": str(self.total_assets),
            },
            "liabilities": {
                "current": self.current_liabilities.as_dict(),
                "long_term": self.long_term_liabilities.as_dict(),
                "total": str(self.total_liabilities),
            },
            "equity": self.equity.as_dict(),
            "income_summary": {
                "total_revenue": str(self.total_revenue),
                "total_expense": str(self.total_expense),
                "net_income": str(self.net_income),
            },
            "totals": {
                "assets": str(self.total_assets),
                "liabilities": str(self.total_liabilities),
                "equity": str(self.total_equity),
                "liabilities_plus_equity": str(self.liabilities_plus_equity),
                "assets_minor": to_minor_int(self.total_assets),
                "liabilities_plus_equity_minor": to_minor_int(self.liabilities_plus_equity),
                "difference": str(self.difference),
                "balanced": self.balanced,
            },
        }


def generate_balance_sheet(*, as_of=None) -> BalanceSheet:
    """as_of: None (now), a date (end of that day) or a datetime."""
    cutoff = resolve_cutoff(as_of)
    service = TrialBalanceService()

    accounts = list(
        Account.objects.filter(is_group=False)
        .only("id", "code", "name", "account_type", "category", "opening_balance")
        .order_by("code")
    )
    sums = service.replay(as_of=cutoff, account_ids=[a.id for a in accounts])

    current_assets = BalanceSheetSection()
    fixed_assets = BalanceSheetSection()
    current_liabilities = BalanceSheetSection()
    long_term_liabilities = BalanceSheetSection()
    equity = BalanceSheetSection()
    total_revenue = ZERO
    total_expense = ZERO

    for acc in accounts:
        debit, credit = sums.get(acc.id, (ZERO, ZERO))
        if acc.normal_balance == Account.DEBIT:
            balance = q2(acc.opening_balance + debit - credit)
        else:
            balance = q2(acc.opening_balance + credit - debit)

        if balance == ZERO:
            continue

        if acc.account_type == Account.REVENUE:
            total_revenue += balance
            continue
        if acc.account_type == Account.EXPENSE:
            total_expense += balance
            continue

        line = BalanceSheetLine(
            account_id=acc.id,
            code=acc.code,
            name=acc.name,
            category=acc.category,
            balance=balance,
        )

        if acc.account_type == Account.ASSET:
            section = current_assets if acc.category == "current_asset" else fixed_assets
        elif acc.account_type == Account.LIABILITY:
            section = current_liabilities if acc.category == "current_liability" else long_term_liabilities
        else:
            section = equity
        section.lines.append(line)

    earnings = q2(total_revenue - total_expense)
    if earnings != ZERO:
        equity.lines.append(
            BalanceSheetLine(
                account_id=None,
                code=CURRENT_EARNINGS_CODE,
                name=CURRENT_EARNINGS_NAME,
                category="retained_earnings",
                balance=earnings,
            )
        )

    return BalanceSheet(
        as_of=cutoff,
        current_assets=current_assets,
        fixed_assets=fixed_assets,
        current_liabilities=current_liabilities,
        long_term_liabilities=long_term_liabilities,
        equity=equity,
        total_revenue=q2(total_revenue),
        total_expense=q2(total_expense),
    )
