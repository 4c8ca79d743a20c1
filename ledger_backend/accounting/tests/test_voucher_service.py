# accounting/tests/test_voucher_service.py

from datetime import date
from decimal import Decimal

from django.test import TestCase

from accounting.models.account import Account
from accounting.models.voucher import Voucher
from accounting.services import posting_service, voucher_service
from accounting.services.exceptions import (
    AccountingValidationError,
    NotFoundError,
    StateError,
)

from .helpers import codes, line, make_account, make_voucher


class VoucherDraftTests(TestCase):
    def setUp(self):
        self.cash = make_account("1101", name="Cash")
        self.sales = make_account("4001", name="Sales", account_type=Account.REVENUE)
        self.entries = [
            line(self.cash, "debit", "1000.00"),
            line(self.sales, "credit", "1000.00"),
        ]

    def test_numbering_is_per_type_and_fiscal_year(self):
        d = date(2026, 3, 15)
        first = make_voucher(self.entries, voucher_date=d)
        second = make_voucher(self.entries, voucher_date=d)
        payment = make_voucher(self.entries, voucher_date=d, voucher_type=Voucher.PAYMENT)
        next_year = make_voucher(self.entries, voucher_date=date(2027, 1, 2))

        self.assertEqual(first.voucher_number, "JV-2026-0001")
        self.assertEqual(second.voucher_number, "JV-2026-0002")
        self.assertEqual(payment.voucher_number, "PV-2026-0001")
        self.assertEqual(next_year.voucher_number, "JV-2027-0001")
        self.assertEqual(first.fiscal_period, "2026-03")
        self.assertEqual(first.status, Voucher.STATUS_DRAFT)

    def test_draft_may_be_unbalanced_but_is_not_postable(self):
        voucher = make_voucher(
            [line(self.cash, "debit", "500.00"), line(self.sales, "credit", "400.00")]
        )
        self.assertEqual(voucher.status, Voucher.STATUS_DRAFT)
        self.assertEqual(codes(voucher_service.validate_for_posting(voucher.pk)), ["unbalanced"])

    def test_structurally_invalid_drafts_are_rejected(self):
        with self.assertRaises(AccountingValidationError) as ctx:
            make_voucher([line(self.cash, "debit", "10.00")])
        self.assertIn("entries_too_few", codes(ctx.exception))

        with self.assertRaises(AccountingValidationError) as ctx:
            make_voucher([line(self.cash, "debit", "10.00"), line(987654, "credit", "10.00")])
        self.assertEqual(codes(ctx.exception), ["account_missing"])
        self.assertEqual(ctx.exception.violations[0].field, "entries[1].account")

        with self.assertRaises(AccountingValidationError) as ctx:
            make_voucher([line(self.cash, "debit", 10.0), line(self.sales, "credit", "10.00")])
        self.assertIn("invalid_amount", codes(ctx.exception))

        with self.assertRaises(AccountingValidationError) as ctx:
            make_voucher(
                [line(self.cash, "debit", "100.005"), line(self.sales, "credit", "100.005")]
            )
        self.assertEqual(ctx.exception.violations[0].field, "entries[0].amount")
        self.assertIn("invalid_amount", codes(ctx.exception))

        with self.assertRaises(AccountingValidationError) as ctx:
            make_voucher(self.entries, narration="   ")
        self.assertEqual(codes(ctx.exception), ["narration_required"])

        self.assertEqual(Voucher.objects.count(), 0)

    def test_entry_editing(self):
        voucher = make_voucher(self.entries)

        added = voucher_service.add_entry(
            voucher.pk, account=self.cash.pk, direction="credit", amount="5.00"
        )
        self.assertEqual(added.line_no, 3)

        updated = voucher_service.update_entry(voucher.pk, added.pk, amount="7.50")
        self.assertEqual(updated.amount, Decimal("7.50"))

        voucher_service.remove_entry(voucher.pk, added.pk)
        self.assertEqual(voucher.entries.count(), 2)

        first = voucher.entries.order_by("line_no").first()
        with self.assertRaises(AccountingValidationError) as ctx:
            voucher_service.remove_entry(voucher.pk, first.pk)
        self.assertIn("entries_too_few", codes(ctx.exception))

    def test_header_update_moves_fiscal_period_but_keeps_number(self):
        voucher = make_voucher(self.entries, voucher_date=date(2026, 3, 15))
        updated = voucher_service.update_draft(
            voucher.pk, voucher_date=date(2026, 4, 1), narration="Corrected narration"
        )
        self.assertEqual(updated.voucher_number, "JV-2026-0001")
        self.assertEqual(updated.fiscal_period, "2026-04")
        self.assertEqual(updated.narration, "Corrected narration")

    def test_cancel(self):
        voucher = make_voucher(self.entries)
        cancelled = voucher_service.cancel_voucher(voucher.pk, reason="Entered twice")

        self.assertEqual(cancelled.status, Voucher.STATUS_CANCELLED)
        self.assertEqual(cancelled.cancel_reason, "Entered twice")
        self.assertIsNotNone(cancelled.cancelled_at)

        with self.assertRaises(StateError):
            voucher_service.cancel_voucher(voucher.pk)
        with self.assertRaises(StateError):
            voucher_service.update_draft(voucher.pk, narration="Too late now")

    def test_posted_voucher_cannot_be_cancelled_or_edited(self):
        voucher = make_voucher(self.entries)
        posting_service.post_voucher(voucher.pk)

        with self.assertRaises(StateError):
            voucher_service.cancel_voucher(voucher.pk)
        with self.assertRaises(StateError):
            voucher_service.add_entry(
                voucher.pk, account=self.cash.pk, direction="debit", amount="1.00"
            )

    def test_queries(self):
        voucher = make_voucher(self.entries, reference_number="INV-42")

        with self.assertRaises(NotFoundError):
            voucher_service.get_voucher(987654)

        self.assertEqual(list(voucher_service.list_vouchers(search="INV-42")), [voucher])
        self.assertEqual(list(voucher_service.list_vouchers(status=Voucher.STATUS_POSTED)), [])
