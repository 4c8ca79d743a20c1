"""
======================================================
PATH: accounting/migrations/0001_initial.py
======================================================
MIGRATION: INITIAL LEDGER SCHEMA

Creates:
- Account (chart of accounts tree, cached balances, CAS version)
- Voucher + VoucherEntry (draft/posted/cancelled documents)
- LedgerEntry (append-only movements, one per voucher entry)
- Sequence (row-locked counters for voucher numbers)
"""

from __future__ import annotations

from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Account",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("code", models.CharField(max_length=20, unique=True)),
                ("name", models.CharField(max_length=200)),
                (
                    "account_type",
                    models.CharField(
                        choices=[
                            ("asset", "Asset"),
                            ("liability", "Liability"),
                            ("equity", "Equity"),
                            ("revenue", "Revenue"),
                            ("expense", "Expense"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "category",
                    models.CharField(
                        choices=[
                            ("current_asset", "Current Asset"),
                            ("fixed_asset", "Fixed Asset"),
                            ("other_asset", "Other Asset"),
                            ("current_liability", "Current Liability"),
                            ("long_term_liability", "Long Term Liability"),
                            ("other_liability", "Other Liability"),
                            ("owner_equity", "Owner Equity"),
                            ("retained_earnings", "Retained Earnings"),
                            ("sales_revenue", "Sales Revenue"),
                            ("other_revenue", "Other Revenue"),
                            ("cost_of_goods_sold", "Cost Of Goods Sold"),
                            ("operating_expense", "Operating Expense"),
                            ("financial_expense", "Financial Expense"),
                            ("other_expense", "Other Expense"),
                        ],
                        max_length=32,
                    ),
                ),
                ("level", models.PositiveSmallIntegerField(default=1)),
                ("is_group", models.BooleanField(default=False)),
                ("is_active", models.BooleanField(default=True)),
                ("is_system_account", models.BooleanField(default=False)),
                (
                    "is_frozen",
                    models.BooleanField(
                        default=False,
                        help_text="Set by reconciliation when the cached balance disagrees with the ledger.",
                    ),
                ),
                ("description", models.TextField(blank=True, default="")),
                (
                    "opening_balance",
                    models.DecimalField(
                        decimal_places=2, default=Decimal("0.00"), max_digits=18
                    ),
                ),
                ("opening_balance_date", models.DateField(blank=True, null=True)),
                (
                    "current_balance",
                    models.DecimalField(
                        decimal_places=2, default=Decimal("0.00"), max_digits=18
                    ),
                ),
                ("currency_code", models.CharField(default="PKR", max_length=3)),
                ("currency_symbol", models.CharField(default="Rs", max_length=8)),
                ("version", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "parent",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="children",
                        to="accounting.account",
                    ),
                ),
            ],
            options={
                "verbose_name": "Account",
                "verbose_name_plural": "Accounts",
                "ordering": ["code"],
                "indexes": [
                    models.Index(fields=["account_type"], name="acct_account_type_idx"),
                    models.Index(fields=["is_active"], name="acct_is_active_idx"),
                    models.Index(fields=["parent"], name="acct_parent_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("code", ""), _negated=True),
                        name="chk_account_code_not_blank",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("name", ""), _negated=True),
                        name="chk_account_name_not_blank",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("is_group", False), ("opening_balance", 0), _connector="OR"),
                        name="chk_account_group_zero_opening",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Sequence",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("key", models.CharField(max_length=32, unique=True)),
                ("last_value", models.PositiveBigIntegerField(default=0)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["key"],
            },
        ),
        migrations.CreateModel(
            name="Voucher",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("voucher_number", models.CharField(max_length=32, unique=True)),
                (
                    "voucher_type",
                    models.CharField(
                        choices=[
                            ("JV", "Journal Voucher"),
                            ("PV", "Payment Voucher"),
                            ("RV", "Receipt Voucher"),
                            ("CV", "Contra Voucher"),
                        ],
                        max_length=2,
                    ),
                ),
                ("voucher_date", models.DateField()),
                ("fiscal_year", models.CharField(max_length=4)),
                ("fiscal_period", models.CharField(help_text="YYYY-MM", max_length=7)),
                ("narration", models.TextField()),
                ("reference_number", models.CharField(blank=True, default="", max_length=64)),
                (
                    "reference_type",
                    models.CharField(
                        choices=[
                            ("manual", "Manual"),
                            ("invoice", "Invoice"),
                            ("payment", "Payment"),
                            ("receipt", "Receipt"),
                            ("purchase", "Purchase"),
                            ("reversal", "Reversal"),
                            ("other", "Other"),
                        ],
                        default="manual",
                        max_length=16,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("posted", "Posted"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="draft",
                        max_length=10,
                    ),
                ),
                ("posted_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("cancel_reason", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "cancelled_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="cancelled_vouchers",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_vouchers",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "posted_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="posted_vouchers",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "reversal_of",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reversals",
                        to="accounting.voucher",
                    ),
                ),
            ],
            options={
                "verbose_name": "Voucher",
                "verbose_name_plural": "Vouchers",
                "ordering": ["-voucher_date", "-id"],
                "permissions": [
                    ("post_voucher", "Can post vouchers to the ledger"),
                    ("reverse_voucher", "Can reverse posted vouchers"),
                ],
                "indexes": [
                    models.Index(
                        fields=["voucher_type", "fiscal_year"],
                        name="vch_type_year_idx",
                    ),
                    models.Index(fields=["status"], name="vch_status_idx"),
                    models.Index(fields=["voucher_date"], name="vch_date_idx"),
                    models.Index(fields=["fiscal_period"], name="vch_fiscal_period_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("status", "posted"), _negated=True),
                            ("posted_at__isnull", False),
                            _connector="OR",
                        ),
                        name="chk_voucher_posted_has_timestamp",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="VoucherEntry",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("line_no", models.PositiveIntegerField()),
                (
                    "direction",
                    models.CharField(
                        choices=[("debit", "Debit"), ("credit", "Credit")],
                        max_length=6,
                    ),
                ),
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=18,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.01"))],
                    ),
                ),
                ("description", models.CharField(blank=True, default="", max_length=500)),
                (
                    "account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="voucher_entries",
                        to="accounting.account",
                    ),
                ),
                (
                    "voucher",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="entries",
                        to="accounting.voucher",
                    ),
                ),
            ],
            options={
                "verbose_name": "Voucher Entry",
                "verbose_name_plural": "Voucher Entries",
                "ordering": ["line_no", "id"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("voucher", "line_no"),
                        name="uniq_voucher_entry_line",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("amount__gt", 0)),
                        name="chk_voucher_entry_amount_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="LedgerEntry",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                (
                    "direction",
                    models.CharField(
                        choices=[("debit", "Debit"), ("credit", "Credit")],
                        max_length=6,
                    ),
                ),
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Positive monetary value",
                        max_digits=18,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.01"))],
                    ),
                ),
                ("balance_after", models.DecimalField(decimal_places=2, max_digits=18)),
                ("entry_date", models.DateField(help_text="Voucher date (business date)")),
                ("posted_at", models.DateTimeField(help_text="Accounting timeline")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="ledger_entries",
                        to="accounting.account",
                    ),
                ),
                (
                    "voucher",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="ledger_entries",
                        to="accounting.voucher",
                    ),
                ),
                (
                    "voucher_entry",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="ledger_entry",
                        to="accounting.voucherentry",
                    ),
                ),
            ],
            options={
                "verbose_name": "Ledger Entry",
                "verbose_name_plural": "Ledger Entries",
                "ordering": ["posted_at", "id"],
                "indexes": [
                    models.Index(
                        fields=["account", "posted_at"],
                        name="led_account_posted_idx",
                    ),
                    models.Index(fields=["voucher"], name="led_voucher_idx"),
                    models.Index(fields=["entry_date"], name="led_entry_date_idx"),
                    models.Index(
                        fields=["account", "direction"],
                        name="led_account_direction_idx",
                    ),
                ],
            },
        ),
    ]
