# accounting/services/chart_seed_service.py

"""
STANDARD CHART SEEDING

Idempotent: existing codes are left in place (name/category are refreshed,
balances untouched), missing ones are created as system accounts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from django.db import transaction

from accounting.chart_template import STANDARD_CHART
from accounting.conf import LedgerConfig, get_ledger_config
from accounting.models.account import Account

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeedResult:
    created: int
    updated: int
    unchanged: int


@transaction.atomic
def seed_standard_chart(*, config: LedgerConfig | None = None, rows=STANDARD_CHART) -> SeedResult:
    config = get_ledger_config(config)

    created = updated = unchanged = 0
    by_code: dict[str, Account] = {}

    for code, name, account_type, category, is_group, parent_code in rows:
        parent = by_code.get(parent_code) if parent_code else None
        if parent_code and parent is None:
            parent = Account.objects.get(code=parent_code)

        account, was_created = Account.objects.get_or_create(
            code=code,
            defaults={
                "name": name,
                "account_type": account_type,
                "category": category,
                "is_group": is_group,
                "parent": parent,
                "level": (parent.level + 1) if parent else 1,
                "is_system_account": True,
                "currency_code": config.default_currency_code,
                "currency_symbol": config.default_currency_symbol,
            },
        )

        if was_created:
            created += 1
        else:
            changed = []
            if account.name != name:
                account.name = name
                changed.append("name")
            if account.category != category:
                account.category = category
                changed.append("category")
            if not account.is_system_account:
                account.is_system_account = True
                changed.append("is_system_account")

            if changed:
                account.save(update_fields=[*changed, "updated_at"])
                updated += 1
            else:
                unchanged += 1

        by_code[code] = account

    logger.info(
        "Standard chart seeded",
        extra={
            "accounts_created": created,
            "accounts_updated": updated,
            "accounts_unchanged": unchanged,
        },
    )
    return SeedResult(created=created, updated=updated, unchanged=unchanged)
