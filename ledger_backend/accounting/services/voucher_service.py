# accounting/services/voucher_service.py

"""
======================================================
PATH: accounting/services/voucher_service.py
======================================================
VOUCHER SERVICE (DRAFT LIFECYCLE)

Creates and edits draft vouchers, validates them for posting and cancels
them. Posting itself lives in posting_service.

Rules:
- Drafts must always be structurally sound: >= 2 entries, at least one
  debit and one credit, positive amounts, existing accounts.
  Balance is NOT required until posting.
- Only drafts can be edited or cancelled (StateError otherwise)
- validate_for_posting() is the one entry point for posting rules; it is
  what the API calls before submit and what the engine re-runs.
"""

from __future__ import annotations

import logging
from datetime import date

from django.db import transaction
from django.db.models import Max, Q, QuerySet
from django.utils import timezone

from accounting.conf import LedgerConfig, get_ledger_config
from accounting.models.account import Account
from accounting.models.voucher import Voucher, VoucherEntry
from accounting.money import to_money
from accounting.services.exceptions import (
    AccountingValidationError,
    NotFoundError,
    StateError,
    Violation,
)
from accounting.services.sequence_service import (
    fiscal_period_for,
    fiscal_year_for,
    next_voucher_number,
)
from accounting.voucher_rules import (
    AccountState,
    EntryLine,
    structural_violations,
)
from accounting.voucher_rules import validate_for_posting as check_posting_rules

logger = logging.getLogger(__name__)

_UNSET = object()

VOUCHER_TYPES = {value for value, _label in Voucher.VOUCHER_TYPES}
REFERENCE_TYPES = {value for value, _label in Voucher.REFERENCE_TYPES}


# -------------------------
# Helpers
# -------------------------
def _pk(value):
    if isinstance(value, Account):
        return value.pk
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _normalize_entries(raw_entries, violations: list[Violation]) -> list[dict]:
    """
    Accepts dicts: {"account": Account|id, "direction": "debit"|"credit",
    "amount": Decimal|str|int, "description": str}
    """
    normalized: list[dict] = []

    for idx, raw in enumerate(raw_entries or []):
        if not isinstance(raw, dict):
            violations.append(
                Violation("invalid_entry", "Each entry must be an object", f"entries[{idx}]")
            )
            continue

        direction = (raw.get("direction") or "").strip().lower()
        try:
            amount = to_money(raw.get("amount"))
        except ValueError as exc:
            violations.append(Violation("invalid_amount", str(exc), f"entries[{idx}].amount"))
            amount = None

        normalized.append(
            {
                "account_id": _pk(raw.get("account")),
                "direction": direction,
                "amount": amount,
                "description": (raw.get("description") or "").strip(),
            }
        )

    return normalized


def _check_accounts_exist(entries: list[dict], violations: list[Violation]) -> None:
    ids = {e["account_id"] for e in entries if e["account_id"] is not None}
    existing = set(Account.objects.filter(pk__in=ids).values_list("pk", flat=True))
    for idx, entry in enumerate(entries):
        if entry["account_id"] is not None and entry["account_id"] not in existing:
            violations.append(
                Violation(
                    "account_missing",
                    f"Account id={entry['account_id']} does not exist",
                    f"entries[{idx}].account",
                )
            )


def _lines(entries) -> list[EntryLine]:
    lines = []
    for e in entries:
        if isinstance(e, dict):
            lines.append(EntryLine(e["account_id"], e["direction"], e["amount"]))
        else:
            lines.append(EntryLine(e.account_id, e.direction, e.amount))
    return lines


def _check_narration(narration: str, config: LedgerConfig, violations: list[Violation]) -> str:
    narration = (narration or "").strip()
    if not narration:
        violations.append(Violation("narration_required", "Narration is required", "narration"))
    elif len(narration) > config.narration_max_length:
        violations.append(
            Violation(
                "narration_too_long",
                f"Narration cannot exceed {config.narration_max_length} characters",
                "narration",
            )
        )
    return narration


def _lock_draft(voucher_id) -> Voucher:
    voucher = Voucher.objects.select_for_update().filter(pk=voucher_id).first()
    if voucher is None:
        raise NotFoundError(f"Voucher id={voucher_id} not found")
    if voucher.status != Voucher.STATUS_DRAFT:
        raise StateError(
            f"Voucher {voucher.voucher_number} is {voucher.status}; only drafts can be changed"
        )
    return voucher


def _raise_if_structurally_invalid(entries) -> None:
    violations = structural_violations(_lines(entries))
    if violations:
        raise AccountingValidationError("Voucher entries are invalid", violations=violations)


# -------------------------
# Queries
# -------------------------
def get_voucher(voucher_id) -> Voucher:
    try:
        return (
            Voucher.objects.select_related("reversal_of")
            .prefetch_related("entries__account")
            .get(pk=voucher_id)
        )
    except (Voucher.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFoundError(f"Voucher id={voucher_id} not found") from exc


def list_vouchers(
    *,
    voucher_type: str | None = None,
    status: str | None = None,
    search: str | None = None,
) -> QuerySet:
    qs = Voucher.objects.prefetch_related("entries__account").order_by("-voucher_date", "-id")
    if voucher_type:
        qs = qs.filter(voucher_type=voucher_type)
    if status:
        qs = qs.filter(status=status)
    if search:
        term = search.strip()
        qs = qs.filter(
            Q(voucher_number__icontains=term)
            | Q(narration__icontains=term)
            | Q(reference_number__icontains=term)
        )
    return qs


def validate_for_posting(voucher, *, config: LedgerConfig | None = None) -> list[Violation]:
    """
    Every reason the voucher cannot be posted right now (empty == postable).
    Accepts a Voucher or its id.
    """
    config = get_ledger_config(config)
    if not isinstance(voucher, Voucher):
        voucher = get_voucher(voucher)

    entries = list(voucher.entries.all())
    account_ids = {e.account_id for e in entries}
    accounts = {
        a.pk: AccountState.from_account(a)
        for a in Account.objects.filter(pk__in=account_ids)
    }

    return check_posting_rules(
        narration=voucher.narration,
        lines=_lines(entries),
        accounts=accounts,
        min_narration_length=config.narration_min_length,
    )


# -------------------------
# Draft lifecycle
# -------------------------
@transaction.atomic
def create_draft(
    *,
    voucher_type: str,
    narration: str,
    entries: list,
    voucher_date: date | None = None,
    reference_number: str = "",
    reference_type: str = Voucher.REF_MANUAL,
    user=None,
    reversal_of: Voucher | None = None,
    config: LedgerConfig | None = None,
) -> Voucher:
    config = get_ledger_config(config)
    violations: list[Violation] = []

    voucher_type = (voucher_type or "").strip().upper()
    if voucher_type not in VOUCHER_TYPES:
        violations.append(
            Violation("invalid_voucher_type", f"Invalid voucher type {voucher_type!r}", "voucher_type")
        )

    reference_type = (reference_type or Voucher.REF_MANUAL).strip().lower()
    if reference_type not in REFERENCE_TYPES:
        violations.append(
            Violation(
                "invalid_reference_type",
                f"Invalid reference type {reference_type!r}",
                "reference_type",
            )
        )

    narration = _check_narration(narration, config, violations)

    normalized = _normalize_entries(entries, violations)
    violations.extend(structural_violations(_lines(normalized)))
    _check_accounts_exist(normalized, violations)

    if violations:
        raise AccountingValidationError("Invalid voucher", violations=violations)

    voucher_date = voucher_date or timezone.localdate()

    voucher = Voucher.objects.create(
        voucher_number=next_voucher_number(voucher_type, voucher_date),
        voucher_type=voucher_type,
        voucher_date=voucher_date,
        fiscal_year=fiscal_year_for(voucher_date),
        fiscal_period=fiscal_period_for(voucher_date),
        narration=narration,
        reference_number=(reference_number or "").strip(),
        reference_type=reference_type,
        reversal_of=reversal_of,
        created_by=user if getattr(user, "is_authenticated", False) else None,
    )

    for line_no, entry in enumerate(normalized, start=1):
        VoucherEntry.objects.create(
            voucher=voucher,
            line_no=line_no,
            account_id=entry["account_id"],
            direction=entry["direction"],
            amount=entry["amount"],
            description=entry["description"],
        )

    logger.info(
        "Voucher draft created",
        extra={
            "voucher_id": voucher.id,
            "voucher_number": voucher.voucher_number,
            "entry_count": len(normalized),
        },
    )
    return voucher


@transaction.atomic
def update_draft(
    voucher_id,
    *,
    narration=_UNSET,
    voucher_date=_UNSET,
    reference_number=_UNSET,
    config: LedgerConfig | None = None,
) -> Voucher:
    """
    Header edits. A date change moves fiscal year/period but keeps the
    already-issued voucher number.
    """
    config = get_ledger_config(config)
    voucher = _lock_draft(voucher_id)
    violations: list[Violation] = []

    if narration is not _UNSET:
        voucher.narration = _check_narration(narration, config, violations)
    if voucher_date is not _UNSET:
        if not isinstance(voucher_date, date):
            violations.append(
                Violation("invalid_date", "voucher_date must be a date", "voucher_date")
            )
        else:
            voucher.voucher_date = voucher_date
            voucher.fiscal_year = fiscal_year_for(voucher_date)
            voucher.fiscal_period = fiscal_period_for(voucher_date)
    if reference_number is not _UNSET:
        voucher.reference_number = (reference_number or "").strip()

    if violations:
        raise AccountingValidationError("Invalid voucher update", violations=violations)

    voucher.save()
    return voucher


@transaction.atomic
def add_entry(voucher_id, *, account, direction: str, amount, description: str = "") -> VoucherEntry:
    voucher = _lock_draft(voucher_id)
    entries = list(voucher.entries.all())
    idx = len(entries)

    violations: list[Violation] = []
    new = _normalize_entries(
        [{"account": account, "direction": direction, "amount": amount, "description": description}],
        violations,
    )
    violations = [
        Violation(v.code, v.message, (v.field or "").replace("entries[0]", f"entries[{idx}]"))
        for v in violations
    ]
    if violations:
        raise AccountingValidationError("Invalid entry", violations=violations)

    entry = new[0]
    candidate = [*entries, entry]
    _raise_if_structurally_invalid(candidate)

    exist_violations: list[Violation] = []
    _check_accounts_exist([entry], exist_violations)
    if exist_violations:
        raise AccountingValidationError(
            "Invalid entry",
            violations=[
                Violation(v.code, v.message, f"entries[{idx}].account") for v in exist_violations
            ],
        )

    next_line = (voucher.entries.aggregate(m=Max("line_no"))["m"] or 0) + 1
    created = VoucherEntry.objects.create(
        voucher=voucher,
        line_no=next_line,
        account_id=entry["account_id"],
        direction=entry["direction"],
        amount=entry["amount"],
        description=entry["description"],
    )
    voucher.save(update_fields=["updated_at"])
    return created


@transaction.atomic
def update_entry(
    voucher_id,
    entry_id,
    *,
    account=_UNSET,
    direction=_UNSET,
    amount=_UNSET,
    description=_UNSET,
) -> VoucherEntry:
    voucher = _lock_draft(voucher_id)
    entries = list(voucher.entries.all())

    target = next((e for e in entries if e.pk == _pk(entry_id)), None)
    if target is None:
        raise NotFoundError(f"Entry id={entry_id} not found on voucher {voucher.voucher_number}")
    idx = entries.index(target)

    violations: list[Violation] = []
    if account is not _UNSET:
        target.account_id = _pk(account)
    if direction is not _UNSET:
        target.direction = (direction or "").strip().lower()
    if amount is not _UNSET:
        try:
            target.amount = to_money(amount)
        except ValueError as exc:
            violations.append(Violation("invalid_amount", str(exc), f"entries[{idx}].amount"))
    if description is not _UNSET:
        target.description = (description or "").strip()

    if violations:
        raise AccountingValidationError("Invalid entry", violations=violations)

    _raise_if_structurally_invalid(entries)

    candidate = [{"account_id": target.account_id}]
    exist_violations: list[Violation] = []
    _check_accounts_exist(candidate, exist_violations)
    if exist_violations:
        raise AccountingValidationError(
            "Invalid entry",
            violations=[
                Violation(v.code, v.message, f"entries[{idx}].account") for v in exist_violations
            ],
        )

    target.save()
    voucher.save(update_fields=["updated_at"])
    return target


@transaction.atomic
def remove_entry(voucher_id, entry_id) -> None:
    voucher = _lock_draft(voucher_id)
    entries = list(voucher.entries.all())

    target = next((e for e in entries if e.pk == _pk(entry_id)), None)
    if target is None:
        raise NotFoundError(f"Entry id={entry_id} not found on voucher {voucher.voucher_number}")

    _raise_if_structurally_invalid([e for e in entries if e.pk != target.pk])

    target.delete()
    voucher.save(update_fields=["updated_at"])


@transaction.atomic
def cancel_voucher(voucher_id, *, reason: str = "", user=None) -> Voucher:
    voucher = Voucher.objects.select_for_update().filter(pk=voucher_id).first()
    if voucher is None:
        raise NotFoundError(f"Voucher id={voucher_id} not found")

    if voucher.status == Voucher.STATUS_POSTED:
        raise StateError(
            f"Voucher {voucher.voucher_number} is posted; reverse it instead of cancelling"
        )
    if voucher.status == Voucher.STATUS_CANCELLED:
        raise StateError(f"Voucher {voucher.voucher_number} is already cancelled")

    voucher.status = Voucher.STATUS_CANCELLED
    voucher.cancelled_at = timezone.now()
    voucher.cancelled_by = user if getattr(user, "is_authenticated", False) else None
    voucher.cancel_reason = (reason or "").strip()
    voucher.save()

    logger.info(
        "Voucher cancelled",
        extra={"voucher_id": voucher.id, "voucher_number": voucher.voucher_number},
    )
    return voucher
