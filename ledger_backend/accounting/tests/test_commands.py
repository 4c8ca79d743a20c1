# accounting/tests/test_commands.py

from datetime import date
from decimal import Decimal
from io import StringIO

from django.core.management import CommandError, call_command
from django.test import TestCase

from accounting.chart_template import STANDARD_CHART
from accounting.models.account import Account
from accounting.services import posting_service
from accounting.services.chart_seed_service import seed_standard_chart

from .helpers import line, make_account, make_voucher


class SeedStandardChartCommandTests(TestCase):
    def test_seed_is_idempotent(self):
        out = StringIO()
        call_command("seed_standard_chart", stdout=out)
        self.assertEqual(Account.objects.count(), len(STANDARD_CHART))

        out = StringIO()
        call_command("seed_standard_chart", stdout=out)
        self.assertEqual(Account.objects.count(), len(STANDARD_CHART))
        self.assertIn("created=0", out.getvalue())

    def test_seeded_hierarchy(self):
        call_command("seed_standard_chart", stdout=StringIO())

        cash = Account.objects.get(code="1101")
        self.assertEqual(cash.parent.code, "1100")
        self.assertEqual(cash.level, 3)
        self.assertTrue(cash.is_system_account)
        self.assertFalse(cash.is_group)
        self.assertTrue(Account.objects.get(code="1000").is_group)

    def test_seed_logs_counts_at_info(self):
        with self.assertLogs("accounting", level="INFO") as logs:
            result = seed_standard_chart()

        self.assertEqual(result.created, len(STANDARD_CHART))
        self.assertEqual(Account.objects.count(), len(STANDARD_CHART))
        record = next(r for r in logs.records if r.getMessage() == "Standard chart seeded")
        self.assertEqual(record.accounts_created, len(STANDARD_CHART))
        self.assertEqual(record.accounts_unchanged, 0)


class ReconcileLedgerCommandTests(TestCase):
    def setUp(self):
        self.cash = make_account("1101")
        self.sales = make_account("4001", account_type=Account.REVENUE)
        voucher = make_voucher(
            [line(self.cash, "debit", "50.00"), line(self.sales, "credit", "50.00")],
            voucher_date=date(2026, 1, 5),
        )
        posting_service.post_voucher(voucher.pk)

    def test_clean_ledger(self):
        out = StringIO()
        call_command("reconcile_ledger", stdout=out)
        self.assertIn("Ledger reconciled", out.getvalue())

    def test_drift_fails_and_freezes(self):
        Account.objects.filter(pk=self.cash.pk).update(current_balance=Decimal("1.00"))

        with self.assertLogs("accounting.services.reconciliation_service", level="CRITICAL"):
            with self.assertRaises(CommandError):
                call_command("reconcile_ledger", stdout=StringIO())

        self.cash.refresh_from_db()
        self.assertTrue(self.cash.is_frozen)

    def test_no_freeze_reports_only(self):
        Account.objects.filter(pk=self.cash.pk).update(current_balance=Decimal("1.00"))

        out = StringIO()
        with self.assertRaises(CommandError):
            call_command("reconcile_ledger", "--no-freeze", stdout=out)

        self.assertIn("1101", out.getvalue())
        self.cash.refresh_from_db()
        self.assertFalse(self.cash.is_frozen)
