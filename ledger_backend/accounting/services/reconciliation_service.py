# accounting/services/reconciliation_service.py

"""
======================================================
PATH: accounting/services/reconciliation_service.py
======================================================
LEDGER RECONCILIATION

Compares every leaf account's cached current_balance with:
- the balance replayed from opening_balance + all ledger entries
- the balance_after stamped on its most recent ledger entry
and checks that the whole ledger's debits equal its credits,
and that no stored parent chain loops back on itself.

On any disagreement:
- the mismatching accounts are FROZEN (committed before raising), so the
  posting engine refuses them until someone investigates
- the failure is logged at CRITICAL
- LedgerIntegrityError is raised carrying the report

Call it outside of an enclosing transaction (management command, scheduler),
otherwise a caller's rollback would also undo the freeze.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from decimal import Decimal

from django.db import transaction
from django.db.models import F, Max, Sum
from django.utils import timezone

from accounting.models.account import Account
from accounting.models.ledger import LedgerEntry
from accounting.money import ZERO, q2
from accounting.services.account_service import account_tree
from accounting.services.exceptions import (
    ConflictError,
    LedgerIntegrityError,
    NotFoundError,
    Violation,
)
from accounting.services.trial_balance_service import TrialBalanceService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BalanceMismatch:
    account_id: int
    account_code: str
    cached_balance: Decimal
    replayed_balance: Decimal
    last_balance_after: Decimal | None

    def as_dict(self) -> dict:
        return {
            "account_id": self.account_id,
            "account_code": self.account_code,
            "cached_balance": str(self.cached_balance),
            "replayed_balance": str(self.replayed_balance),
            "last_balance_after": (
                None if self.last_balance_after is None else str(self.last_balance_after)
            ),
        }


@dataclass(frozen=True)
class ReconciliationReport:
    checked_accounts: int
    ledger_debit_total: Decimal
    ledger_credit_total: Decimal
    mismatches: tuple[BalanceMismatch, ...] = ()
    unbalanced_voucher_ids: tuple[int, ...] = ()
    frozen_account_ids: tuple[int, ...] = ()
    hierarchy_cycle_ids: tuple[int, ...] = ()

    @property
    def ok(self) -> bool:
        return (
            not self.mismatches
            and not self.unbalanced_voucher_ids
            and not self.hierarchy_cycle_ids
            and self.ledger_debit_total == self.ledger_credit_total
        )


def _ledger_totals(account_ids=None) -> tuple[Decimal, Decimal]:
    qs = LedgerEntry.objects.all()
    if account_ids is not None:
        qs = qs.filter(account_id__in=account_ids)
    debit = qs.filter(direction=LedgerEntry.DEBIT).aggregate(s=Sum("amount"))["s"]
    credit = qs.filter(direction=LedgerEntry.CREDIT).aggregate(s=Sum("amount"))["s"]
    return q2(debit), q2(credit)


def _unbalanced_vouchers() -> list[int]:
    per_voucher: dict[int, list[Decimal]] = {}
    rows = LedgerEntry.objects.values("voucher_id", "direction").annotate(total=Sum("amount"))
    for r in rows:
        pair = per_voucher.setdefault(r["voucher_id"], [ZERO, ZERO])
        idx = 0 if r["direction"] == LedgerEntry.DEBIT else 1
        pair[idx] = q2(r["total"])
    return sorted(vid for vid, (d, c) in per_voucher.items() if d != c)


def check_balances(account_ids=None) -> ReconciliationReport:
    """Read-only comparison; never freezes, never raises on mismatch."""
    accounts_qs = Account.objects.filter(is_group=False).order_by("code")
    if account_ids is not None:
        accounts_qs = accounts_qs.filter(pk__in=account_ids)
    accounts = list(accounts_qs)
    ids = [a.id for a in accounts]

    sums = TrialBalanceService().replay(account_ids=ids)

    last_ids = (
        LedgerEntry.objects.filter(account_id__in=ids)
        .values("account_id")
        .annotate(last_id=Max("id"))
        .values_list("last_id", flat=True)
    )
    last_after = dict(
        LedgerEntry.objects.filter(id__in=list(last_ids)).values_list("account_id", "balance_after")
    )

    mismatches: list[BalanceMismatch] = []
    for acc in accounts:
        debit, credit = sums.get(acc.id, (ZERO, ZERO))
        if acc.normal_balance == Account.DEBIT:
            replayed = q2(acc.opening_balance + debit - credit)
        else:
            replayed = q2(acc.opening_balance + credit - debit)

        last = last_after.get(acc.id)
        if replayed != acc.current_balance or (last is not None and last != acc.current_balance):
            mismatches.append(
                BalanceMismatch(
                    account_id=acc.id,
                    account_code=acc.code,
                    cached_balance=acc.current_balance,
                    replayed_balance=replayed,
                    last_balance_after=last,
                )
            )

    debit_total, credit_total = _ledger_totals()
    return ReconciliationReport(
        checked_accounts=len(accounts),
        ledger_debit_total=debit_total,
        ledger_credit_total=credit_total,
        mismatches=tuple(mismatches),
        unbalanced_voucher_ids=tuple(_unbalanced_vouchers()),
        hierarchy_cycle_ids=tuple(sorted(account_tree().find_cycles())),
    )


def reconcile_balances(*, account_ids=None, freeze: bool = True) -> ReconciliationReport:
    report = check_balances(account_ids)
    if report.ok:
        logger.info(
            "Ledger reconciled",
            extra={"checked_accounts": report.checked_accounts},
        )
        return report

    frozen: tuple[int, ...] = ()
    if freeze and report.mismatches:
        frozen = tuple(m.account_id for m in report.mismatches)
        with transaction.atomic():
            Account.objects.filter(pk__in=frozen).update(
                is_frozen=True,
                version=F("version") + 1,
                updated_at=timezone.now(),
            )

    report = replace(report, frozen_account_ids=frozen)

    logger.critical(
        "Ledger reconciliation failed",
        extra={
            "mismatched_accounts": [m.account_code for m in report.mismatches],
            "unbalanced_voucher_ids": list(report.unbalanced_voucher_ids),
            "hierarchy_cycle_ids": list(report.hierarchy_cycle_ids),
            "ledger_debit_total": str(report.ledger_debit_total),
            "ledger_credit_total": str(report.ledger_credit_total),
            "frozen_account_ids": list(frozen),
        },
    )

    error = LedgerIntegrityError(
        "Ledger reconciliation failed",
        violations=[
            Violation(
                "balance_mismatch",
                f"Account {m.account_code}: cached={m.cached_balance} replayed={m.replayed_balance}",
                f"accounts[{m.account_id}]",
            )
            for m in report.mismatches
        ]
        + [
            Violation(
                "voucher_unbalanced",
                f"Ledger rows of voucher id={vid} do not balance",
                f"vouchers[{vid}]",
            )
            for vid in report.unbalanced_voucher_ids
        ]
        + [
            Violation(
                "hierarchy_cycle",
                f"Parent chain of account id={aid} loops back on itself",
                f"accounts[{aid}].parent",
            )
            for aid in report.hierarchy_cycle_ids
        ],
    )
    error.report = report
    raise error


@transaction.atomic
def unfreeze_account(account_id) -> Account:
    """Lift a reconciliation freeze once the account's balance agrees with the ledger."""
    account = Account.objects.select_for_update().filter(pk=account_id).first()
    if account is None:
        raise NotFoundError(f"Account id={account_id} not found")
    if not account.is_frozen:
        return account

    report = check_balances([account.pk])
    if report.mismatches:
        raise ConflictError(
            f"Account {account.code} still disagrees with the ledger and stays frozen"
        )

    account.is_frozen = False
    account.version += 1
    account.save(update_fields=["is_frozen", "version", "updated_at"])

    logger.warning(
        "Account unfrozen after reconciliation",
        extra={"account_id": account.id, "account_code": account.code},
    )
    return account
