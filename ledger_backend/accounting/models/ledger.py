# accounting/models/ledger.py

"""
======================================================
PATH: accounting/models/ledger.py
======================================================
LEDGER ENTRY MODEL

Atomic debit or credit movement on a single account, produced only by
posting a Voucher.

Guarantees:
- Immutable once created (no updates, no deletes)
- Amount is always positive; direction carries the side
- One ledger entry per voucher entry (one-to-one)
- Global order is (posted_at, id); id is monotonically increasing
- balance_after is the account's running balance right after this entry
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from accounting.models.account import Account
from accounting.models.voucher import Voucher, VoucherEntry


class LedgerEntry(models.Model):
    DEBIT = Account.DEBIT
    CREDIT = Account.CREDIT

    DIRECTIONS = [
        (DEBIT, "Debit"),
        (CREDIT, "Credit"),
    ]

    id = models.BigAutoField(primary_key=True)

    voucher = models.ForeignKey(
        Voucher,
        on_delete=models.PROTECT,
        related_name="ledger_entries",
    )
    voucher_entry = models.OneToOneField(
        VoucherEntry,
        on_delete=models.PROTECT,
        related_name="ledger_entry",
    )
    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="ledger_entries",
    )

    direction = models.CharField(max_length=6, choices=DIRECTIONS)
    amount = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
        help_text="Positive monetary value",
    )
    balance_after = models.DecimalField(max_digits=18, decimal_places=2)

    entry_date = models.DateField(help_text="Voucher date (business date)")
    posted_at = models.DateTimeField(help_text="Accounting timeline")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Ledger Entry"
        verbose_name_plural = "Ledger Entries"
        ordering = ["posted_at", "id"]
        indexes = [
            models.Index(fields=["account", "posted_at"], name="led_account_posted_idx"),
            models.Index(fields=["voucher"], name="led_voucher_idx"),
            models.Index(fields=["entry_date"], name="led_entry_date_idx"),
            models.Index(fields=["account", "direction"], name="led_account_direction_idx"),
        ]

    def __str__(self):
        return f"{self.direction} {self.amount} → {self.account}"

    def clean(self):
        if self.direction not in (self.DEBIT, self.CREDIT):
            raise ValidationError("Invalid direction")

        if self.amount is None or self.amount <= 0:
            raise ValidationError("Ledger amount must be > 0")

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValidationError("LedgerEntry records are immutable and cannot be modified")

        self.clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("LedgerEntry records are immutable and cannot be deleted")
