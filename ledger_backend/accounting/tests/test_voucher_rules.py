# accounting/tests/test_voucher_rules.py

from decimal import Decimal

from django.test import SimpleTestCase

from accounting.money import to_minor_int, to_money
from accounting.voucher_rules import (
    AccountState,
    EntryLine,
    totals,
    validate_for_posting,
)

from .helpers import codes

ACCOUNTS = {
    1: AccountState(1, "1101", is_active=True, is_group=False),
    2: AccountState(2, "4001", is_active=True, is_group=False),
    3: AccountState(3, "1000", is_active=True, is_group=True),
    4: AccountState(4, "1103", is_active=False, is_group=False),
    5: AccountState(5, "1102", is_active=True, is_group=False, is_frozen=True),
}


def _check(lines, narration="Cash sale to walk-in customer"):
    return validate_for_posting(narration=narration, lines=lines, accounts=ACCOUNTS)


class VoucherRulesTests(SimpleTestCase):
    def test_balanced_voucher_is_postable(self):
        lines = [
            EntryLine(1, "debit", Decimal("1000.00")),
            EntryLine(2, "credit", Decimal("1000.00")),
        ]
        self.assertEqual(_check(lines), [])
        self.assertEqual(totals(lines), (Decimal("1000.00"), Decimal("1000.00")))

    def test_unbalanced_voucher_is_rejected(self):
        violations = _check(
            [
                EntryLine(1, "debit", Decimal("500.00")),
                EntryLine(2, "credit", Decimal("400.00")),
            ]
        )
        self.assertEqual(codes(violations), ["unbalanced"])
        self.assertEqual(violations[0].field, "entries")

    def test_single_entry(self):
        violations = _check([EntryLine(1, "debit", Decimal("10.00"))])
        self.assertIn("entries_too_few", codes(violations))
        self.assertIn("missing_credit", codes(violations))

    def test_non_positive_amount_is_addressed_to_its_line(self):
        violations = _check(
            [
                EntryLine(1, "debit", Decimal("0.00")),
                EntryLine(2, "credit", Decimal("0.00")),
            ]
        )
        fields = [v.field for v in violations if v.code == "invalid_amount"]
        self.assertEqual(fields, ["entries[0].amount", "entries[1].amount"])

    def test_group_inactive_and_frozen_accounts(self):
        violations = _check(
            [
                EntryLine(3, "debit", Decimal("10.00")),
                EntryLine(4, "debit", Decimal("10.00")),
                EntryLine(5, "credit", Decimal("20.00")),
            ]
        )
        by_code = {v.code: v.field for v in violations}
        self.assertEqual(by_code["account_is_group"], "entries[0].account")
        self.assertEqual(by_code["account_inactive"], "entries[1].account")
        self.assertEqual(by_code["account_frozen"], "entries[2].account")

    def test_unknown_account(self):
        violations = _check(
            [
                EntryLine(99, "debit", Decimal("10.00")),
                EntryLine(2, "credit", Decimal("10.00")),
            ]
        )
        self.assertEqual(codes(violations), ["account_missing"])

    def test_same_account_twice_on_one_side(self):
        violations = _check(
            [
                EntryLine(1, "debit", Decimal("5.00")),
                EntryLine(1, "debit", Decimal("5.00")),
                EntryLine(2, "credit", Decimal("10.00")),
            ]
        )
        self.assertEqual(codes(violations), ["duplicate_account"])
        self.assertEqual(violations[0].field, "entries[1].account")

    def test_short_narration(self):
        violations = _check(
            [
                EntryLine(1, "debit", Decimal("5.00")),
                EntryLine(2, "credit", Decimal("5.00")),
            ],
            narration="abc",
        )
        self.assertEqual(codes(violations), ["narration_too_short"])

    def test_all_problems_reported_together(self):
        violations = _check([EntryLine(4, "sideways", Decimal("5.00"))], narration="")
        found = set(codes(violations))
        self.assertTrue(
            {"narration_too_short", "entries_too_few", "invalid_direction", "account_inactive"} <= found
        )


class MoneyTests(SimpleTestCase):
    def test_to_money_normalises_to_two_places(self):
        self.assertEqual(to_money(7), Decimal("7.00"))
        self.assertEqual(to_money("10.5"), Decimal("10.50"))
        self.assertEqual(to_money(Decimal("3.100")), Decimal("3.10"))

    def test_to_money_refuses_sub_cent_precision(self):
        with self.assertRaises(ValueError):
            to_money("100.005")
        with self.assertRaises(ValueError):
            to_money(Decimal("0.001"))

    def test_to_money_rejects_float_and_junk(self):
        with self.assertRaises(ValueError):
            to_money(10.5)
        with self.assertRaises(ValueError):
            to_money("ten")
        with self.assertRaises(ValueError):
            to_money("NaN")

    def test_minor_units(self):
        self.assertEqual(to_minor_int(Decimal("12.34")), 1234)
        self.assertEqual(to_minor_int(None), 0)
