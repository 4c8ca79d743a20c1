# accounting/services/posting_service.py

"""
======================================================
PATH: accounting/services/posting_service.py
======================================================
LEDGER POSTING ENGINE

This module is the ONLY place allowed to:
- Create LedgerEntry rows
- Change Account.current_balance after creation
- Flip a Voucher from draft to posted

Guarantees:
- All-or-nothing: ledger rows, balance updates and the status flip commit
  in one transaction or not at all
- Idempotent: posting an already-posted voucher returns the existing
  ledger entries and changes nothing
- Posting rules are re-checked unconditionally (voucher_rules), once
  before the transaction and again on LOCKED account rows inside it
- Accounts are locked in primary-key order (no lock-order deadlocks)
- Balance writes are compare-and-swap on Account.version; a lost race
  raises ConflictError and rolls everything back
- Sign convention: debit-normal accounts (asset, expense) grow on debit,
  credit-normal accounts (liability, equity, revenue) grow on credit

Callers that want automatic retry on ConflictError use
post_voucher_with_retry().
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import date, datetime

from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from accounting.conf import LedgerConfig, get_ledger_config
from accounting.models.account import Account
from accounting.models.ledger import LedgerEntry
from accounting.models.voucher import Voucher, VoucherEntry
from accounting.money import ZERO, q2
from accounting.services import voucher_service
from accounting.services.exceptions import (
    AccountingValidationError,
    ConflictError,
    LedgerIntegrityError,
    NotFoundError,
    StateError,
)
from accounting.voucher_rules import AccountState, EntryLine, validate_for_posting

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PostingResult:
    voucher: Voucher
    ledger_entry_ids: tuple[int, ...]
    already_posted: bool = False


def _as_aware_dt(dt: datetime | None) -> datetime:
    if dt is None:
        return timezone.now()
    if timezone.is_naive(dt):
        return timezone.make_aware(dt, timezone.get_current_timezone())
    return dt


def _already_posted(voucher: Voucher) -> PostingResult:
    ids = tuple(
        LedgerEntry.objects.filter(voucher=voucher).order_by("id").values_list("id", flat=True)
    )
    return PostingResult(voucher=voucher, ledger_entry_ids=ids, already_posted=True)


def _lock_accounts(account_ids) -> dict[int, Account]:
    """Row-lock every referenced account, always in ascending id order."""
    locked = Account.objects.select_for_update().filter(pk__in=account_ids).order_by("pk")
    return {acc.pk: acc for acc in locked}


def _apply_balance(account: Account, new_balance) -> None:
    updated = Account.objects.filter(pk=account.pk, version=account.version).update(
        current_balance=new_balance,
        version=F("version") + 1,
        updated_at=timezone.now(),
    )
    if updated != 1:
        raise ConflictError(
            f"Account {account.code} was modified concurrently (expected version {account.version})"
        )


def _assert_ledger_balanced(voucher: Voucher, ledger_rows: list[LedgerEntry]) -> None:
    debit = sum((r.amount for r in ledger_rows if r.direction == LedgerEntry.DEBIT), ZERO)
    credit = sum((r.amount for r in ledger_rows if r.direction == LedgerEntry.CREDIT), ZERO)

    if debit != credit or not ledger_rows:
        logger.critical(
            "Ledger integrity violated while posting",
            extra={
                "voucher_id": voucher.pk,
                "voucher_number": voucher.voucher_number,
                "debit": str(debit),
                "credit": str(credit),
            },
        )
        raise LedgerIntegrityError(
            f"Ledger rows for {voucher.voucher_number} do not balance: "
            f"debits={debit} credits={credit}"
        )


@transaction.atomic
def _commit_posting(
    voucher_pk: int,
    *,
    user,
    posted_at: datetime,
    config: LedgerConfig,
) -> PostingResult:
    voucher = Voucher.objects.select_for_update().filter(pk=voucher_pk).first()
    if voucher is None:
        raise NotFoundError(f"Voucher id={voucher_pk} not found")

    # A concurrent poster may have won between validation and the lock.
    if voucher.status == Voucher.STATUS_POSTED:
        return _already_posted(voucher)
    if voucher.status != Voucher.STATUS_DRAFT:
        raise StateError(f"Voucher {voucher.voucher_number} is {voucher.status} and cannot be posted")

    entries: list[VoucherEntry] = list(voucher.entries.order_by("line_no", "id"))
    accounts = _lock_accounts(sorted({e.account_id for e in entries}))

    violations = validate_for_posting(
        narration=voucher.narration,
        lines=[EntryLine(e.account_id, e.direction, e.amount) for e in entries],
        accounts={pk: AccountState.from_account(a) for pk, a in accounts.items()},
        min_narration_length=config.narration_min_length,
    )
    if violations:
        raise ConflictError(
            f"Voucher {voucher.voucher_number} is no longer postable; accounts changed",
            violations=violations,
        )

    running = {pk: acc.current_balance for pk, acc in accounts.items()}
    ledger_rows: list[LedgerEntry] = []

    for entry in entries:
        account = accounts[entry.account_id]
        running[account.pk] = q2(running[account.pk] + account.signed_delta(entry.direction, entry.amount))

        ledger_rows.append(
            LedgerEntry.objects.create(
                voucher=voucher,
                voucher_entry=entry,
                account=account,
                direction=entry.direction,
                amount=entry.amount,
                balance_after=running[account.pk],
                entry_date=voucher.voucher_date,
                posted_at=posted_at,
            )
        )

    for pk, account in accounts.items():
        _apply_balance(account, running[pk])

    _assert_ledger_balanced(voucher, ledger_rows)

    voucher.status = Voucher.STATUS_POSTED
    voucher.posted_at = posted_at
    voucher.posted_by = user if getattr(user, "is_authenticated", False) else None
    voucher.save(update_fields=["status", "posted_at", "posted_by", "updated_at"])

    return PostingResult(
        voucher=voucher,
        ledger_entry_ids=tuple(r.pk for r in ledger_rows),
    )


def post_voucher(
    voucher_id,
    *,
    user=None,
    now: datetime | None = None,
    config: LedgerConfig | None = None,
) -> PostingResult:
    config = get_ledger_config(config)

    voucher = voucher_service.get_voucher(voucher_id)

    if voucher.status == Voucher.STATUS_POSTED:
        return _already_posted(voucher)
    if voucher.status == Voucher.STATUS_CANCELLED:
        raise StateError(f"Voucher {voucher.voucher_number} is cancelled and cannot be posted")

    violations = voucher_service.validate_for_posting(voucher, config=config)
    if violations:
        raise AccountingValidationError(
            f"Voucher {voucher.voucher_number} failed posting validation",
            violations=violations,
        )

    try:
        result = _commit_posting(
            voucher.pk,
            user=user,
            posted_at=_as_aware_dt(now),
            config=config,
        )
    except ConflictError as exc:
        logger.warning(
            "Voucher posting conflict",
            extra={"voucher_id": voucher.pk, "voucher_number": voucher.voucher_number, "error": str(exc)},
        )
        raise
    except IntegrityError as exc:
        # e.g. a second poster inserting the same one-to-one ledger row
        logger.warning(
            "Voucher posting hit a database constraint",
            extra={"voucher_id": voucher.pk, "voucher_number": voucher.voucher_number},
        )
        raise ConflictError(
            f"Voucher {voucher.voucher_number} could not be posted due to a concurrent change"
        ) from exc

    if not result.already_posted:
        logger.info(
            "Voucher posted",
            extra={
                "voucher_id": result.voucher.pk,
                "voucher_number": result.voucher.voucher_number,
                "ledger_entry_count": len(result.ledger_entry_ids),
            },
        )
    return result


def post_voucher_with_retry(
    voucher_id,
    *,
    user=None,
    now: datetime | None = None,
    max_attempts: int | None = None,
    backoff: float | None = None,
    config: LedgerConfig | None = None,
) -> PostingResult:
    """post_voucher() with bounded exponential backoff on ConflictError."""
    config = get_ledger_config(config)
    attempts = max_attempts if max_attempts is not None else config.posting_max_attempts
    delay = backoff if backoff is not None else config.posting_retry_backoff

    for attempt in range(1, max(1, attempts) + 1):
        try:
            return post_voucher(voucher_id, user=user, now=now, config=config)
        except ConflictError:
            if attempt >= attempts:
                raise
            logger.warning(
                "Retrying voucher posting after conflict",
                extra={"voucher_id": voucher_id, "attempt": attempt, "max_attempts": attempts},
            )
            time.sleep(delay * (2 ** (attempt - 1)))

    raise ConflictError(f"Voucher id={voucher_id} could not be posted")


@transaction.atomic
def reverse_voucher(
    voucher_id,
    *,
    reason: str,
    user=None,
    voucher_date: date | None = None,
    now: datetime | None = None,
    config: LedgerConfig | None = None,
) -> PostingResult:
    """
    Correct a posted voucher by posting its mirror image: same accounts and
    amounts with every direction swapped. The original stays untouched.
    """
    config = get_ledger_config(config)

    original = Voucher.objects.select_for_update().filter(pk=voucher_id).first()
    if original is None:
        raise NotFoundError(f"Voucher id={voucher_id} not found")
    if original.status != Voucher.STATUS_POSTED:
        raise StateError(f"Only posted vouchers can be reversed; {original.voucher_number} is {original.status}")
    if original.reversals.exclude(status=Voucher.STATUS_CANCELLED).exists():
        raise StateError(f"Voucher {original.voucher_number} has already been reversed")

    reason = (reason or "").strip()
    swapped = [
        {
            "account": e.account_id,
            "direction": VoucherEntry.CREDIT if e.direction == VoucherEntry.DEBIT else VoucherEntry.DEBIT,
            "amount": e.amount,
            "description": e.description,
        }
        for e in original.entries.order_by("line_no", "id")
    ]

    reversal = voucher_service.create_draft(
        voucher_type=original.voucher_type,
        voucher_date=voucher_date or timezone.localdate(),
        narration=f"Reversal of {original.voucher_number}: {reason}" if reason else f"Reversal of {original.voucher_number}",
        entries=swapped,
        reference_number=original.voucher_number,
        reference_type=Voucher.REF_REVERSAL,
        reversal_of=original,
        user=user,
        config=config,
    )

    result = post_voucher(reversal.pk, user=user, now=now, config=config)
    logger.info(
        "Voucher reversed",
        extra={
            "voucher_id": original.pk,
            "voucher_number": original.voucher_number,
            "reversal_number": reversal.voucher_number,
        },
    )
    return result
