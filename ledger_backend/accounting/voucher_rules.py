# accounting/voucher_rules.py

"""
PATH: accounting/voucher_rules.py

VOUCHER RULES (FRAMEWORK-AGNOSTIC)

Purpose:
- The single authority on whether a voucher may be posted.
- Used by BOTH:
  - voucher_service.validate_for_posting (API pre-submit check)
  - posting_service.post_voucher (unconditional re-check, before and
    inside the posting transaction)

Rules:
- At least 2 entries, with at least one debit and at least one credit
- Every amount > 0 (2dp money)
- Sum of debits == sum of credits (exact Decimal comparison)
- Every account exists, is a leaf, is active and is not frozen
- The same account may not appear twice on the same side
- Narration is required and at least `min_narration_length` characters

Each broken rule is reported as a Violation addressed to its field,
e.g. "entries[1].account", so callers can show all problems at once.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from accounting.services.exceptions import Violation

DEBIT = "debit"
CREDIT = "credit"
DIRECTIONS = (DEBIT, CREDIT)

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class EntryLine:
    """One voucher line as seen by the rules: account id, side, amount."""

    account_id: Optional[int]
    direction: str
    amount: Decimal


@dataclass(frozen=True)
class AccountState:
    """The account attributes that decide postability."""

    id: int
    code: str
    is_active: bool
    is_group: bool
    is_frozen: bool = False

    @classmethod
    def from_account(cls, account) -> "AccountState":
        return cls(
            id=account.id,
            code=account.code,
            is_active=account.is_active,
            is_group=account.is_group,
            is_frozen=getattr(account, "is_frozen", False),
        )


def totals(lines: Iterable[EntryLine]) -> Tuple[Decimal, Decimal]:
    debit = ZERO
    credit = ZERO
    for line in lines:
        if line.direction == DEBIT:
            debit += line.amount
        elif line.direction == CREDIT:
            credit += line.amount
    return debit, credit


def structural_violations(lines: Sequence[EntryLine]) -> List[Violation]:
    """Shape checks that hold for drafts too (balance is NOT required here)."""
    violations: List[Violation] = []

    if len(lines) < 2:
        violations.append(
            Violation("entries_too_few", "A voucher needs at least 2 entries", "entries")
        )

    for idx, line in enumerate(lines):
        if line.direction not in DIRECTIONS:
            violations.append(
                Violation(
                    "invalid_direction",
                    f"Direction must be 'debit' or 'credit', got {line.direction!r}",
                    f"entries[{idx}].direction",
                )
            )
        if line.amount is None or line.amount <= ZERO:
            violations.append(
                Violation(
                    "invalid_amount",
                    "Amount must be greater than zero",
                    f"entries[{idx}].amount",
                )
            )
        if line.account_id is None:
            violations.append(
                Violation("account_required", "Account is required", f"entries[{idx}].account")
            )

    if lines:
        if not any(line.direction == DEBIT for line in lines):
            violations.append(
                Violation("missing_debit", "At least one debit entry is required", "entries")
            )
        if not any(line.direction == CREDIT for line in lines):
            violations.append(
                Violation("missing_credit", "At least one credit entry is required", "entries")
            )

    return violations


def account_violations(
    lines: Sequence[EntryLine],
    accounts: Mapping[int, AccountState],
) -> List[Violation]:
    violations: List[Violation] = []
    seen_sides = set()

    for idx, line in enumerate(lines):
        field = f"entries[{idx}].account"
        if line.account_id is None:
            continue

        state = accounts.get(line.account_id)
        if state is None:
            violations.append(
                Violation("account_missing", f"Account id={line.account_id} does not exist", field)
            )
            continue

        if state.is_group:
            violations.append(
                Violation(
                    "account_is_group",
                    f"Account {state.code} is a group account and cannot be posted to",
                    field,
                )
            )
        if not state.is_active:
            violations.append(
                Violation("account_inactive", f"Account {state.code} is inactive", field)
            )
        if state.is_frozen:
            violations.append(
                Violation(
                    "account_frozen",
                    f"Account {state.code} is frozen pending reconciliation",
                    field,
                )
            )

        side = (line.account_id, line.direction)
        if side in seen_sides:
            violations.append(
                Violation(
                    "duplicate_account",
                    f"Account {state.code} appears more than once on the {line.direction} side",
                    field,
                )
            )
        seen_sides.add(side)

    return violations


def validate_for_posting(
    *,
    narration: str,
    lines: Sequence[EntryLine],
    accounts: Mapping[int, AccountState],
    min_narration_length: int = 5,
) -> List[Violation]:
    """Every reason this voucher cannot be posted. Empty list == postable."""
    violations: List[Violation] = []

    if len((narration or "").strip()) < min_narration_length:
        violations.append(
            Violation(
                "narration_too_short",
                f"Narration must be at least {min_narration_length} characters",
                "narration",
            )
        )

    violations.extend(structural_violations(lines))
    violations.extend(account_violations(lines, accounts))

    debit, credit = totals(lines)
    if debit != credit:
        violations.append(
            Violation(
                "unbalanced",
                f"Voucher is not balanced: debits={debit} credits={credit}",
                "entries",
            )
        )

    return violations
