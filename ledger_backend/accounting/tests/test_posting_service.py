# accounting/tests/test_posting_service.py

from __future__ import annotations

import threading
from datetime import datetime
from decimal import Decimal
from unittest import mock, skipUnless

from django.core.exceptions import ValidationError
from django.db import connection
from django.db.models import F
from django.test import TestCase, TransactionTestCase
from django.utils import timezone

from accounting.models.account import Account
from accounting.models.ledger import LedgerEntry
from accounting.models.voucher import Voucher
from accounting.services import account_service, posting_service, voucher_service
from accounting.services.exceptions import (
    AccountingValidationError,
    ConflictError,
    StateError,
)
from accounting.services.reconciliation_service import check_balances

from .helpers import codes, line, make_account, make_voucher


class PostingTestMixin:
    def make_chart(self):
        self.cash = make_account("1101", name="Cash in Hand")
        self.sales = make_account("4001", name="Sales Revenue", account_type=Account.REVENUE)
        self.loan = make_account("2401", name="Bank Loan", account_type=Account.LIABILITY)
        self.rent = make_account("5201", name="Rent Expense", account_type=Account.EXPENSE)

    def cash_sale(self, amount="1000.00", **extra):
        return make_voucher(
            [line(self.cash, "debit", amount), line(self.sales, "credit", amount)],
            narration="Cash sale to walk-in customer",
            **extra,
        )

    def balance(self, account):
        account.refresh_from_db()
        return account.current_balance


class PostVoucherTests(PostingTestMixin, TestCase):
    def setUp(self):
        self.make_chart()

    def test_cash_sale_posts_ledger_and_balances(self):
        voucher = self.cash_sale()
        result = posting_service.post_voucher(voucher.pk)

        self.assertFalse(result.already_posted)
        self.assertEqual(len(result.ledger_entry_ids), 2)

        voucher.refresh_from_db()
        self.assertEqual(voucher.status, Voucher.STATUS_POSTED)
        self.assertIsNotNone(voucher.posted_at)

        self.assertEqual(self.balance(self.cash), Decimal("1000.00"))
        self.assertEqual(self.balance(self.sales), Decimal("1000.00"))

        rows = LedgerEntry.objects.filter(voucher=voucher).order_by("id")
        self.assertEqual(
            [(r.account_id, r.direction, r.amount, r.balance_after) for r in rows],
            [
                (self.cash.pk, "debit", Decimal("1000.00"), Decimal("1000.00")),
                (self.sales.pk, "credit", Decimal("1000.00"), Decimal("1000.00")),
            ],
        )
        self.assertTrue(all(r.entry_date == voucher.voucher_date for r in rows))

    def test_posting_twice_is_idempotent(self):
        voucher = self.cash_sale()
        first = posting_service.post_voucher(voucher.pk)
        second = posting_service.post_voucher(voucher.pk)

        self.assertTrue(second.already_posted)
        self.assertEqual(first.ledger_entry_ids, second.ledger_entry_ids)
        self.assertEqual(LedgerEntry.objects.count(), 2)
        self.assertEqual(self.balance(self.cash), Decimal("1000.00"))

    def test_unbalanced_voucher_is_rejected_without_side_effects(self):
        voucher = make_voucher(
            [line(self.cash, "debit", "500.00"), line(self.sales, "credit", "400.00")]
        )

        with self.assertRaises(AccountingValidationError) as ctx:
            posting_service.post_voucher(voucher.pk)

        self.assertIn("unbalanced", codes(ctx.exception))
        self.assertFalse(LedgerEntry.objects.exists())
        voucher.refresh_from_db()
        self.assertEqual(voucher.status, Voucher.STATUS_DRAFT)
        self.assertEqual(self.balance(self.cash), Decimal("0.00"))

    def test_account_deactivated_after_drafting_blocks_posting(self):
        voucher = self.cash_sale()
        account_service.deactivate_account(self.sales.pk)

        with self.assertRaises(AccountingValidationError) as ctx:
            posting_service.post_voucher(voucher.pk)

        self.assertEqual(codes(ctx.exception), ["account_inactive"])
        self.assertEqual(ctx.exception.violations[0].field, "entries[1].account")
        self.assertFalse(LedgerEntry.objects.exists())

    def test_cancelled_voucher_cannot_be_posted(self):
        voucher = self.cash_sale()
        voucher_service.cancel_voucher(voucher.pk)
        with self.assertRaises(StateError):
            posting_service.post_voucher(voucher.pk)

    def test_posted_at_comes_from_the_clock_argument(self):
        now = timezone.make_aware(datetime(2026, 1, 10, 12, 0))
        voucher = self.cash_sale()
        posting_service.post_voucher(voucher.pk, now=now)

        voucher.refresh_from_db()
        self.assertEqual(voucher.posted_at, now)
        self.assertTrue(all(r.posted_at == now for r in LedgerEntry.objects.all()))

    def test_sign_convention_by_account_type(self):
        posting_service.post_voucher(
            make_voucher([line(self.cash, "debit", "5000.00"), line(self.loan, "credit", "5000.00")]).pk
        )
        posting_service.post_voucher(
            make_voucher([line(self.loan, "debit", "1000.00"), line(self.cash, "credit", "1000.00")]).pk
        )
        posting_service.post_voucher(
            make_voucher([line(self.rent, "debit", "250.00"), line(self.cash, "credit", "250.00")]).pk
        )

        self.assertEqual(self.balance(self.loan), Decimal("4000.00"))
        self.assertEqual(self.balance(self.cash), Decimal("3750.00"))
        self.assertEqual(self.balance(self.rent), Decimal("250.00"))

    def test_ledger_rows_and_posted_vouchers_are_immutable(self):
        voucher = self.cash_sale()
        posting_service.post_voucher(voucher.pk)
        row = LedgerEntry.objects.first()

        with self.assertRaises(ValidationError):
            row.save()
        with self.assertRaises(ValidationError):
            row.delete()

        voucher.refresh_from_db()
        voucher.narration = "Rewritten history"
        with self.assertRaises(ValidationError):
            voucher.save()


class ConflictTests(PostingTestMixin, TestCase):
    def setUp(self):
        self.make_chart()

    def _racing_lock(self, times=1):
        """_lock_accounts that lets another writer bump cash's version right after locking."""
        real_lock = posting_service._lock_accounts
        calls = {"n": 0}

        def lock(account_ids):
            locked = real_lock(account_ids)
            calls["n"] += 1
            if calls["n"] <= times:
                Account.objects.filter(pk=self.cash.pk).update(version=F("version") + 1)
            return locked

        return lock

    def test_lost_race_rolls_everything_back(self):
        voucher = self.cash_sale()

        with mock.patch.object(posting_service, "_lock_accounts", side_effect=self._racing_lock()):
            with self.assertRaises(ConflictError):
                posting_service.post_voucher(voucher.pk)

        voucher.refresh_from_db()
        self.assertEqual(voucher.status, Voucher.STATUS_DRAFT)
        self.assertFalse(LedgerEntry.objects.exists())
        self.assertEqual(self.balance(self.cash), Decimal("0.00"))
        self.assertEqual(self.balance(self.sales), Decimal("0.00"))

    def test_retry_succeeds_after_a_conflict(self):
        voucher = self.cash_sale()

        with mock.patch.object(posting_service, "_lock_accounts", side_effect=self._racing_lock()):
            result = posting_service.post_voucher_with_retry(voucher.pk, backoff=0)

        self.assertFalse(result.already_posted)
        self.assertEqual(LedgerEntry.objects.count(), 2)
        self.assertEqual(self.balance(self.cash), Decimal("1000.00"))

    def test_retry_gives_up_after_max_attempts(self):
        voucher = self.cash_sale()

        with mock.patch.object(posting_service, "_lock_accounts", side_effect=self._racing_lock(times=5)):
            with self.assertRaises(ConflictError):
                posting_service.post_voucher_with_retry(voucher.pk, max_attempts=2, backoff=0)

        self.assertFalse(LedgerEntry.objects.exists())

    def test_interleaved_postings_both_land(self):
        first = self.cash_sale("300.00")
        second = self.cash_sale("200.00")

        real_commit = posting_service._commit_posting
        state = {"interleaved": False}

        def commit(voucher_pk, **kwargs):
            # The other voucher commits between our validation and our lock.
            if not state["interleaved"]:
                state["interleaved"] = True
                real_commit(second.pk, **kwargs)
            return real_commit(voucher_pk, **kwargs)

        with mock.patch.object(posting_service, "_commit_posting", side_effect=commit):
            posting_service.post_voucher(first.pk)

        self.assertEqual(self.balance(self.cash), Decimal("500.00"))
        self.assertEqual(self.balance(self.sales), Decimal("500.00"))
        self.assertEqual(
            set(Voucher.objects.values_list("status", flat=True)),
            {Voucher.STATUS_POSTED},
        )

        last = LedgerEntry.objects.filter(account=self.cash).order_by("-id").first()
        self.assertEqual(last.balance_after, Decimal("500.00"))
        self.assertTrue(check_balances().ok)


class ReversalTests(PostingTestMixin, TestCase):
    def setUp(self):
        self.make_chart()
        self.original = self.cash_sale()
        posting_service.post_voucher(self.original.pk)

    def test_reversal_posts_mirror_image(self):
        result = posting_service.reverse_voucher(self.original.pk, reason="Goods returned")

        reversal = result.voucher
        self.assertEqual(reversal.status, Voucher.STATUS_POSTED)
        self.assertEqual(reversal.reversal_of_id, self.original.pk)
        self.assertEqual(reversal.reference_type, Voucher.REF_REVERSAL)
        self.assertEqual(reversal.reference_number, self.original.voucher_number)
        self.assertIn(self.original.voucher_number, reversal.narration)

        directions = dict(
            LedgerEntry.objects.filter(voucher=reversal).values_list("account_id", "direction")
        )
        self.assertEqual(directions, {self.cash.pk: "credit", self.sales.pk: "debit"})

        self.assertEqual(self.balance(self.cash), Decimal("0.00"))
        self.assertEqual(self.balance(self.sales), Decimal("0.00"))

        self.original.refresh_from_db()
        self.assertEqual(self.original.status, Voucher.STATUS_POSTED)

    def test_voucher_can_be_reversed_once(self):
        posting_service.reverse_voucher(self.original.pk, reason="Goods returned")
        with self.assertRaises(StateError):
            posting_service.reverse_voucher(self.original.pk, reason="Again please")

    def test_only_posted_vouchers_can_be_reversed(self):
        draft = self.cash_sale()
        with self.assertRaises(StateError):
            posting_service.reverse_voucher(draft.pk, reason="Not posted yet")


@skipUnless(connection.vendor == "postgresql", "row-level locking needs PostgreSQL")
class ConcurrentPostingTests(PostingTestMixin, TransactionTestCase):
    def setUp(self):
        self.make_chart()

    def _run_parallel(self, voucher_ids):
        errors = []
        barrier = threading.Barrier(len(voucher_ids))

        def worker(voucher_id):
            try:
                barrier.wait()
                posting_service.post_voucher_with_retry(voucher_id, max_attempts=10, backoff=0.01)
            except Exception as exc:  # collected and asserted by the test
                errors.append(exc)
            finally:
                connection.close()

        threads = [threading.Thread(target=worker, args=(vid,)) for vid in voucher_ids]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        return errors

    def test_parallel_postings_on_shared_accounts(self):
        amounts = ["100.00", "250.00", "75.50", "10.00"]
        vouchers = [self.cash_sale(a) for a in amounts]

        errors = self._run_parallel([v.pk for v in vouchers])

        self.assertEqual(errors, [])
        expected = sum((Decimal(a) for a in amounts), Decimal("0.00"))
        self.assertEqual(self.balance(self.cash), expected)
        self.assertEqual(self.balance(self.sales), expected)
        self.assertTrue(check_balances().ok)

    def test_same_voucher_posted_concurrently_lands_once(self):
        voucher = self.cash_sale()

        errors = self._run_parallel([voucher.pk, voucher.pk, voucher.pk])

        self.assertEqual(errors, [])
        self.assertEqual(LedgerEntry.objects.filter(voucher=voucher).count(), 2)
        self.assertEqual(self.balance(self.cash), Decimal("1000.00"))
