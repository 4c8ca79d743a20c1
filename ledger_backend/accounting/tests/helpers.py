# accounting/tests/helpers.py

from __future__ import annotations

from accounting.models.account import Account
from accounting.models.voucher import Voucher
from accounting.services import account_service, voucher_service


def make_account(
    code,
    *,
    name=None,
    account_type=Account.ASSET,
    category=None,
    parent=None,
    is_group=False,
    opening_balance=None,
    **extra,
):
    return account_service.create_account(
        code=code,
        name=name or f"Account {code}",
        account_type=account_type,
        category=category or Account.CATEGORIES_BY_TYPE[account_type][0],
        parent=parent,
        is_group=is_group,
        opening_balance=opening_balance,
        **extra,
    )


def line(account, direction, amount, description=""):
    return {
        "account": account,
        "direction": direction,
        "amount": amount,
        "description": description,
    }


def make_voucher(entries, *, narration="Test voucher", voucher_type=Voucher.JOURNAL, **extra):
    return voucher_service.create_draft(
        voucher_type=voucher_type,
        narration=narration,
        entries=entries,
        **extra,
    )


def codes(exc_or_violations):
    violations = getattr(exc_or_violations, "violations", exc_or_violations)
    return [v.code for v in violations]
