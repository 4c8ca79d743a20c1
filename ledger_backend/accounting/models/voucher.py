# accounting/models/voucher.py

"""
======================================================
PATH: accounting/models/voucher.py
======================================================
VOUCHER + VOUCHER ENTRY MODELS

A Voucher is the business document behind a posting:
Journal (JV), Payment (PV), Receipt (RV) or Contra (CV).

Lifecycle:
    draft --post--> posted      (only via posting_service, irreversible)
    draft --cancel--> cancelled (no ledger effect)

Guarantees:
- Once posted or cancelled, the voucher header is immutable
- Entries can only be created/changed/deleted while the voucher is a draft
- Corrections of posted vouchers are new reversing vouchers (reversal_of)
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q

from accounting.models.account import Account


class Voucher(models.Model):
    JOURNAL = "JV"
    PAYMENT = "PV"
    RECEIPT = "RV"
    CONTRA = "CV"

    VOUCHER_TYPES = [
        (JOURNAL, "Journal Voucher"),
        (PAYMENT, "Payment Voucher"),
        (RECEIPT, "Receipt Voucher"),
        (CONTRA, "Contra Voucher"),
    ]

    STATUS_DRAFT = "draft"
    STATUS_POSTED = "posted"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_POSTED, "Posted"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    REF_MANUAL = "manual"
    REF_INVOICE = "invoice"
    REF_PAYMENT = "payment"
    REF_RECEIPT = "receipt"
    REF_PURCHASE = "purchase"
    REF_REVERSAL = "reversal"
    REF_OTHER = "other"

    REFERENCE_TYPES = [
        (REF_MANUAL, "Manual"),
        (REF_INVOICE, "Invoice"),
        (REF_PAYMENT, "Payment"),
        (REF_RECEIPT, "Receipt"),
        (REF_PURCHASE, "Purchase"),
        (REF_REVERSAL, "Reversal"),
        (REF_OTHER, "Other"),
    ]

    voucher_number = models.CharField(max_length=32, unique=True)
    voucher_type = models.CharField(max_length=2, choices=VOUCHER_TYPES)
    voucher_date = models.DateField()

    fiscal_year = models.CharField(max_length=4)
    fiscal_period = models.CharField(max_length=7, help_text="YYYY-MM")

    narration = models.TextField()
    reference_number = models.CharField(max_length=64, blank=True, default="")
    reference_type = models.CharField(
        max_length=16, choices=REFERENCE_TYPES, default=REF_MANUAL
    )

    status = models.CharField(
        max_length=10, choices=STATUS_CHOICES, default=STATUS_DRAFT
    )

    posted_at = models.DateTimeField(null=True, blank=True)
    posted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="posted_vouchers",
    )

    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="cancelled_vouchers",
    )
    cancel_reason = models.TextField(blank=True, default="")

    reversal_of = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="reversals",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="created_vouchers",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-voucher_date", "-id"]
        verbose_name = "Voucher"
        verbose_name_plural = "Vouchers"
        indexes = [
            models.Index(fields=["voucher_type", "fiscal_year"], name="vch_type_year_idx"),
            models.Index(fields=["status"], name="vch_status_idx"),
            models.Index(fields=["voucher_date"], name="vch_date_idx"),
            models.Index(fields=["fiscal_period"], name="vch_fiscal_period_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~Q(status="posted") | Q(posted_at__isnull=False),
                name="chk_voucher_posted_has_timestamp",
            ),
        ]
        permissions = [
            ("post_voucher", "Can post vouchers to the ledger"),
            ("reverse_voucher", "Can reverse posted vouchers"),
        ]

    def __str__(self):
        return f"{self.voucher_number} ({self.status})"

    def save(self, *args, **kwargs):
        # The persisted status decides: a draft may be flipped to posted/cancelled
        # exactly once, after which the row is frozen.
        if self.pk:
            persisted = (
                Voucher.objects.filter(pk=self.pk).values_list("status", flat=True).first()
            )
            if persisted is not None and persisted != self.STATUS_DRAFT:
                raise ValidationError(
                    f"Voucher {self.voucher_number} is {persisted} and cannot be modified"
                )
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.status != self.STATUS_DRAFT:
            raise ValidationError("Only draft vouchers can be deleted")
        return super().delete(*args, **kwargs)


class VoucherEntry(models.Model):
    """One debit or credit line of a voucher."""

    DEBIT = Account.DEBIT
    CREDIT = Account.CREDIT

    DIRECTIONS = [
        (DEBIT, "Debit"),
        (CREDIT, "Credit"),
    ]

    voucher = models.ForeignKey(
        Voucher,
        on_delete=models.CASCADE,
        related_name="entries",
    )
    line_no = models.PositiveIntegerField()

    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="voucher_entries",
    )
    direction = models.CharField(max_length=6, choices=DIRECTIONS)
    amount = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    description = models.CharField(max_length=500, blank=True, default="")

    class Meta:
        ordering = ["line_no", "id"]
        verbose_name = "Voucher Entry"
        verbose_name_plural = "Voucher Entries"
        constraints = [
            models.UniqueConstraint(
                fields=["voucher", "line_no"],
                name="uniq_voucher_entry_line",
            ),
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name="chk_voucher_entry_amount_positive",
            ),
        ]

    def __str__(self):
        return f"{self.direction} {self.amount} → {self.account_id}"

    def _assert_voucher_is_draft(self):
        status = (
            Voucher.objects.filter(pk=self.voucher_id).values_list("status", flat=True).first()
        )
        if status is not None and status != Voucher.STATUS_DRAFT:
            raise ValidationError(
                "Voucher entries can only be changed while the voucher is a draft"
            )

    def save(self, *args, **kwargs):
        self._assert_voucher_is_draft()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        self._assert_voucher_is_draft()
        return super().delete(*args, **kwargs)
