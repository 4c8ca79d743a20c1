# accounting/models/account.py

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


class Account(models.Model):
    """
    A node in the Chart of Accounts.

    Guarantees:
    - Account codes are globally unique, trimmed and upper-cased
    - Group accounts are containers: no postings, zero opening balance
    - current_balance is a cache of opening_balance + posted ledger deltas,
      expressed in the account's natural sign (see normal_balance)
    - version increments on every balance/status change (optimistic CAS)
    """

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"

    ACCOUNT_TYPES = [
        (ASSET, "Asset"),
        (LIABILITY, "Liability"),
        (EQUITY, "Equity"),
        (REVENUE, "Revenue"),
        (EXPENSE, "Expense"),
    ]

    CATEGORIES_BY_TYPE = {
        ASSET: ("current_asset", "fixed_asset", "other_asset"),
        LIABILITY: ("current_liability", "long_term_liability", "other_liability"),
        EQUITY: ("owner_equity", "retained_earnings"),
        REVENUE: ("sales_revenue", "other_revenue"),
        EXPENSE: (
            "cost_of_goods_sold",
            "operating_expense",
            "financial_expense",
            "other_expense",
        ),
    }

    CATEGORY_CHOICES = [
        (category, category.replace("_", " ").title())
        for categories in CATEGORIES_BY_TYPE.values()
        for category in categories
    ]

    DEBIT = "debit"
    CREDIT = "credit"

    DEBIT_NORMAL_TYPES = (ASSET, EXPENSE)

    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=200)

    account_type = models.CharField(max_length=20, choices=ACCOUNT_TYPES)
    category = models.CharField(max_length=32, choices=CATEGORY_CHOICES)

    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="children",
    )
    level = models.PositiveSmallIntegerField(default=1)
    is_group = models.BooleanField(default=False)

    is_active = models.BooleanField(default=True)
    is_system_account = models.BooleanField(default=False)
    is_frozen = models.BooleanField(
        default=False,
        help_text="Set by reconciliation when the cached balance disagrees with the ledger.",
    )

    description = models.TextField(blank=True, default="")

    opening_balance = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    opening_balance_date = models.DateField(null=True, blank=True)
    current_balance = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )

    currency_code = models.CharField(max_length=3, default="PKR")
    currency_symbol = models.CharField(max_length=8, default="Rs")

    version = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]
        verbose_name = "Account"
        verbose_name_plural = "Accounts"
        indexes = [
            models.Index(fields=["account_type"], name="acct_account_type_idx"),
            models.Index(fields=["is_active"], name="acct_is_active_idx"),
            models.Index(fields=["parent"], name="acct_parent_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~Q(code=""),
                name="chk_account_code_not_blank",
            ),
            models.CheckConstraint(
                condition=~Q(name=""),
                name="chk_account_name_not_blank",
            ),
            models.CheckConstraint(
                condition=Q(is_group=False) | Q(opening_balance=0),
                name="chk_account_group_zero_opening",
            ),
        ]

    def __str__(self):
        return f"{self.code} – {self.name}"

    # -------------------------
    # Sign convention
    # -------------------------
    @property
    def normal_balance(self) -> str:
        return self.DEBIT if self.account_type in self.DEBIT_NORMAL_TYPES else self.CREDIT

    def signed_delta(self, direction: str, amount: Decimal) -> Decimal:
        """Balance change caused by posting `amount` on `direction`."""
        return amount if direction == self.normal_balance else -amount

    # -------------------------
    # Validation
    # -------------------------
    def clean(self):
        self.code = (self.code or "").strip().upper()
        self.name = (self.name or "").strip()

        if not self.code:
            raise ValidationError({"code": "Account code is required"})
        if len(self.name) < 2:
            raise ValidationError({"name": "Account name must be at least 2 characters"})

        allowed = self.CATEGORIES_BY_TYPE.get(self.account_type, ())
        if self.category not in allowed:
            raise ValidationError(
                {"category": f"Category {self.category!r} is not valid for {self.account_type} accounts"}
            )

        if self.is_group and self.opening_balance:
            raise ValidationError(
                {"opening_balance": "Group accounts cannot carry an opening balance"}
            )

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
