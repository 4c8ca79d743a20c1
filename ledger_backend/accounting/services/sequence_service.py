# accounting/services/sequence_service.py

"""
SEQUENCE SERVICE

Gap-free named counters backed by the Sequence table.

- next_value() locks the counter row (SELECT ... FOR UPDATE), so two
  concurrent callers never receive the same number.
- Voucher numbers: "<TYPE>-<FISCAL_YEAR>-<NNNN>", e.g. "JV-2026-0001",
  counted per voucher type and fiscal year.
"""

from __future__ import annotations

from datetime import date

from django.db import IntegrityError, transaction

from accounting.models.sequence import Sequence


def fiscal_year_for(d: date) -> str:
    return f"{d.year:04d}"


def fiscal_period_for(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


@transaction.atomic
def next_value(key: str) -> int:
    seq = Sequence.objects.select_for_update().filter(key=key).first()

    if seq is None:
        # First use of this key; another transaction may create it concurrently.
        try:
            with transaction.atomic():
                seq = Sequence.objects.create(key=key, last_value=0)
        except IntegrityError:
            seq = Sequence.objects.select_for_update().get(key=key)
        else:
            seq = Sequence.objects.select_for_update().get(pk=seq.pk)

    seq.last_value += 1
    seq.save(update_fields=["last_value", "updated_at"])
    return seq.last_value


def next_voucher_number(voucher_type: str, voucher_date: date) -> str:
    fiscal_year = fiscal_year_for(voucher_date)
    value = next_value(f"{voucher_type}-{fiscal_year}")
    return f"{voucher_type}-{fiscal_year}-{value:04d}"
