# accounting/services/account_service.py

"""
======================================================
PATH: accounting/services/account_service.py
======================================================
ACCOUNT DIRECTORY SERVICE

Owns the Chart of Accounts: creation, lookup, listing, metadata edits,
(de)activation and effective balances.

Rules:
- Codes are unique (trimmed, upper-cased); duplicates raise ConflictError
- Category must belong to the account type
- Parent must exist, be an ACTIVE GROUP of the SAME type, and the resulting
  depth must not exceed config.max_account_depth
- Group accounts carry no opening balance and are never posted to
- Leaf current_balance starts at opening_balance; afterwards it changes
  only through posting_service
- Deactivation requires a zero balance and (for groups) no active children
- Accounts with history are never hard-deleted
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Q

from accounting.chart_tree import AccountTree
from accounting.conf import LedgerConfig, get_ledger_config
from accounting.models.account import Account
from accounting.money import ZERO, to_money
from accounting.services.exceptions import (
    AccountingValidationError,
    ConflictError,
    NotFoundError,
    Violation,
)

logger = logging.getLogger(__name__)

_UNSET = object()


# -------------------------
# Lookup
# -------------------------
def get_account(account_id) -> Account:
    try:
        return Account.objects.select_related("parent").get(pk=account_id)
    except (Account.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFoundError(f"Account id={account_id} not found") from exc


def get_account_by_code(code: str) -> Account:
    normalized = (code or "").strip().upper()
    try:
        return Account.objects.select_related("parent").get(code=normalized)
    except Account.DoesNotExist as exc:
        raise NotFoundError(f"Account code={normalized!r} not found") from exc


def account_tree() -> AccountTree:
    return AccountTree.from_accounts(
        Account.objects.only(
            "id", "code", "parent_id", "is_group", "is_active", "current_balance"
        )
    )


def list_accounts(
    *,
    account_type: str | None = None,
    is_active: bool | None = None,
    is_group: bool | None = None,
    search: str | None = None,
) -> list[Account]:
    """
    Filtered listing ordered by code. `level` on each returned account is
    derived from the parent chain, not trusted from storage.
    """
    qs = Account.objects.select_related("parent").order_by("code")

    if account_type:
        qs = qs.filter(account_type=account_type)
    if is_active is not None:
        qs = qs.filter(is_active=is_active)
    if is_group is not None:
        qs = qs.filter(is_group=is_group)
    if search:
        term = search.strip()
        qs = qs.filter(Q(code__icontains=term) | Q(name__icontains=term))

    accounts = list(qs)
    tree = account_tree()
    for acc in accounts:
        acc.level = tree.level(acc.id)
    return accounts


def effective_balance(account_id) -> Decimal:
    """
    Leaf: the cached current_balance.
    Group: sum of active descendant leaves (computed, never stored).
    """
    account = get_account(account_id)
    if not account.is_group:
        return account.current_balance
    return account_tree().effective_balance(account.id)


# -------------------------
# Validation helpers
# -------------------------
def _resolve_parent(
    parent,
    *,
    account_type: str,
    tree: AccountTree,
    violations: list[Violation],
    config: LedgerConfig,
    subtree_height: int = 1,
) -> Account | None:
    if parent is None or parent == "":
        return None

    parent_id = parent.pk if isinstance(parent, Account) else parent
    parent_obj = Account.objects.filter(pk=parent_id).first()

    if parent_obj is None:
        violations.append(
            Violation("parent_missing", f"Parent account id={parent_id} does not exist", "parent")
        )
        return None

    if not parent_obj.is_group:
        violations.append(
            Violation("parent_not_group", f"Parent {parent_obj.code} is not a group account", "parent")
        )
    if not parent_obj.is_active:
        violations.append(
            Violation("parent_inactive", f"Parent {parent_obj.code} is inactive", "parent")
        )
    if parent_obj.account_type != account_type:
        violations.append(
            Violation(
                "parent_type_mismatch",
                f"Parent {parent_obj.code} is a {parent_obj.account_type} account, "
                f"expected {account_type}",
                "parent",
            )
        )

    depth = tree.level(parent_obj.id) + subtree_height
    if depth > config.max_account_depth:
        violations.append(
            Violation(
                "hierarchy_too_deep",
                f"Account hierarchy cannot exceed {config.max_account_depth} levels",
                "parent",
            )
        )

    return parent_obj


def _check_category(account_type: str, category: str, violations: list[Violation]) -> None:
    if account_type not in Account.CATEGORIES_BY_TYPE:
        violations.append(
            Violation("invalid_type", f"Invalid account type {account_type!r}", "account_type")
        )
        return
    if category not in Account.CATEGORIES_BY_TYPE[account_type]:
        violations.append(
            Violation(
                "invalid_category",
                f"Category {category!r} is not valid for {account_type} accounts",
                "category",
            )
        )


# -------------------------
# Commands
# -------------------------
@transaction.atomic
def create_account(
    *,
    code: str,
    name: str,
    account_type: str,
    category: str,
    parent=None,
    is_group: bool = False,
    opening_balance=None,
    opening_balance_date=None,
    description: str = "",
    is_system_account: bool = False,
    currency_code: str | None = None,
    currency_symbol: str | None = None,
    config: LedgerConfig | None = None,
) -> Account:
    config = get_ledger_config(config)
    violations: list[Violation] = []

    code = (code or "").strip().upper()
    name = (name or "").strip()
    account_type = (account_type or "").strip().lower()
    category = (category or "").strip().lower()

    if not code:
        violations.append(Violation("code_required", "Account code is required", "code"))
    if len(name) < 2:
        violations.append(
            Violation("name_too_short", "Account name must be at least 2 characters", "name")
        )

    _check_category(account_type, category, violations)

    try:
        opening = to_money(opening_balance)
    except ValueError as exc:
        violations.append(Violation("invalid_amount", str(exc), "opening_balance"))
        opening = ZERO

    if is_group and opening != ZERO:
        violations.append(
            Violation(
                "group_opening_balance",
                "Group accounts cannot carry an opening balance",
                "opening_balance",
            )
        )

    tree = account_tree()
    parent_obj = _resolve_parent(
        parent,
        account_type=account_type,
        tree=tree,
        violations=violations,
        config=config,
    )

    if violations:
        raise AccountingValidationError("Invalid account", violations=violations)

    if Account.objects.filter(code=code).exists():
        raise ConflictError(
            f"Account code {code} already exists",
            violations=[Violation("duplicate_code", f"Account code {code} already exists", "code")],
        )

    account = Account.objects.create(
        code=code,
        name=name,
        account_type=account_type,
        category=category,
        parent=parent_obj,
        level=(tree.level(parent_obj.id) + 1) if parent_obj else 1,
        is_group=bool(is_group),
        is_system_account=bool(is_system_account),
        description=(description or "").strip(),
        opening_balance=opening,
        opening_balance_date=opening_balance_date,
        current_balance=opening,
        currency_code=currency_code or config.default_currency_code,
        currency_symbol=currency_symbol or config.default_currency_symbol,
    )

    logger.info(
        "Account created",
        extra={
            "account_id": account.id,
            "account_code": account.code,
            "account_type": account.account_type,
            "is_group": account.is_group,
        },
    )
    return account


@transaction.atomic
def update_account(
    account_id,
    *,
    name=_UNSET,
    category=_UNSET,
    description=_UNSET,
    parent=_UNSET,
    config: LedgerConfig | None = None,
) -> Account:
    """
    Metadata edits only. Type, code and balances are not editable here.
    System accounts accept description changes only.
    """
    config = get_ledger_config(config)

    account = Account.objects.select_for_update().filter(pk=account_id).first()
    if account is None:
        raise NotFoundError(f"Account id={account_id} not found")

    structural_change = any(v is not _UNSET for v in (name, category, parent))
    if account.is_system_account and structural_change:
        raise ConflictError(f"System account {account.code} cannot be modified")

    violations: list[Violation] = []
    update_fields: list[str] = ["updated_at"]

    if name is not _UNSET:
        name = (name or "").strip()
        if len(name) < 2:
            violations.append(
                Violation("name_too_short", "Account name must be at least 2 characters", "name")
            )
        account.name = name
        update_fields.append("name")

    if category is not _UNSET:
        category = (category or "").strip().lower()
        _check_category(account.account_type, category, violations)
        account.category = category
        update_fields.append("category")

    if description is not _UNSET:
        account.description = (description or "").strip()
        update_fields.append("description")

    tree = account_tree()
    relevel: dict[int, int] = {}

    if parent is not _UNSET:
        new_parent_id = parent.pk if isinstance(parent, Account) else parent
        if new_parent_id in ("", None):
            new_parent_id = None

        if tree.would_create_cycle(account.id, new_parent_id):
            violations.append(
                Violation(
                    "hierarchy_cycle",
                    "An account cannot be moved under itself or one of its descendants",
                    "parent",
                )
            )
        else:
            parent_obj = _resolve_parent(
                new_parent_id,
                account_type=account.account_type,
                tree=tree,
                violations=violations,
                config=config,
                subtree_height=tree.subtree_height(account.id),
            )
            new_level = (tree.level(parent_obj.id) + 1) if parent_obj else 1
            old_level = tree.level(account.id)
            for desc_id in tree.descendants(account.id):
                relevel[desc_id] = tree.level(desc_id) - old_level + new_level

            account.parent = parent_obj
            account.level = new_level
            update_fields.extend(["parent", "level"])

    if violations:
        raise AccountingValidationError("Invalid account update", violations=violations)

    account.save(update_fields=update_fields)

    for desc_id, level in relevel.items():
        Account.objects.filter(pk=desc_id).update(level=level)

    logger.info(
        "Account updated",
        extra={"account_id": account.id, "fields": update_fields},
    )
    return account


@transaction.atomic
def deactivate_account(account_id) -> Account:
    account = Account.objects.select_for_update().filter(pk=account_id).first()
    if account is None:
        raise NotFoundError(f"Account id={account_id} not found")

    if not account.is_active:
        return account

    if account.is_system_account:
        raise ConflictError(f"System account {account.code} cannot be deactivated")

    if account.current_balance != ZERO:
        raise ConflictError(
            f"Account {account.code} has a non-zero balance ({account.current_balance}) "
            "and cannot be deactivated"
        )

    if account.is_group and account_tree().has_active_children(account.id):
        raise ConflictError(
            f"Group account {account.code} still has active child accounts"
        )

    account.is_active = False
    account.version += 1
    account.save(update_fields=["is_active", "version", "updated_at"])

    logger.info(
        "Account deactivated",
        extra={"account_id": account.id, "account_code": account.code},
    )
    return account


@transaction.atomic
def reactivate_account(account_id) -> Account:
    account = Account.objects.select_for_update().filter(pk=account_id).first()
    if account is None:
        raise NotFoundError(f"Account id={account_id} not found")

    if account.is_active:
        return account

    if account.parent_id and not account.parent.is_active:
        raise AccountingValidationError(
            "Parent account is inactive",
            violations=[
                Violation(
                    "parent_inactive",
                    f"Parent {account.parent.code} must be reactivated first",
                    "parent",
                )
            ],
        )

    account.is_active = True
    account.version += 1
    account.save(update_fields=["is_active", "version", "updated_at"])

    logger.info(
        "Account reactivated",
        extra={"account_id": account.id, "account_code": account.code},
    )
    return account


@transaction.atomic
def delete_account(account_id) -> None:
    """Hard delete, allowed only for accounts that were never used."""
    account = Account.objects.select_for_update().filter(pk=account_id).first()
    if account is None:
        raise NotFoundError(f"Account id={account_id} not found")

    if account.is_system_account:
        raise ConflictError(f"System account {account.code} cannot be deleted")
    if account.children.exists():
        raise ConflictError(f"Account {account.code} has child accounts")
    if account.ledger_entries.exists() or account.voucher_entries.exists():
        raise ConflictError(
            f"Account {account.code} has transaction history; deactivate it instead"
        )
    if account.opening_balance != ZERO:
        raise ConflictError(
            f"Account {account.code} carries an opening balance; deactivate it instead"
        )

    code = account.code
    account.delete()
    logger.info("Account deleted", extra={"account_id": account_id, "account_code": code})
