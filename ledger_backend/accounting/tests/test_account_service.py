# accounting/tests/test_account_service.py

from decimal import Decimal

from django.test import TestCase

from accounting.conf import LedgerConfig
from accounting.models.account import Account
from accounting.services import account_service
from accounting.services.exceptions import (
    AccountingValidationError,
    ConflictError,
    NotFoundError,
)

from .helpers import codes, line, make_account, make_voucher


class CreateAccountTests(TestCase):
    def test_child_level_and_code_normalization(self):
        assets = make_account("1000", is_group=True)
        cash = make_account(" ab-1 ", parent=assets.pk)

        self.assertEqual(cash.code, "AB-1")
        self.assertEqual(cash.level, 2)
        self.assertEqual(cash.parent_id, assets.pk)
        self.assertEqual(cash.currency_code, "PKR")
        self.assertEqual(cash.normal_balance, Account.DEBIT)

    def test_opening_balance_seeds_current_balance(self):
        cash = make_account("1101", opening_balance="2500.5")
        self.assertEqual(cash.opening_balance, Decimal("2500.50"))
        self.assertEqual(cash.current_balance, Decimal("2500.50"))

    def test_duplicate_code_conflicts(self):
        make_account("1101")
        with self.assertRaises(ConflictError) as ctx:
            make_account("1101")
        self.assertEqual(codes(ctx.exception), ["duplicate_code"])

    def test_parent_must_be_an_active_group_of_the_same_type(self):
        leaf = make_account("1101")
        revenue = make_account("4000", account_type=Account.REVENUE, is_group=True)

        with self.assertRaises(AccountingValidationError) as ctx:
            make_account("1102", parent=leaf.pk)
        self.assertIn("parent_not_group", codes(ctx.exception))

        with self.assertRaises(AccountingValidationError) as ctx:
            make_account("1103", parent=revenue.pk)
        self.assertIn("parent_type_mismatch", codes(ctx.exception))

        with self.assertRaises(AccountingValidationError) as ctx:
            make_account("1104", parent=987654)
        self.assertIn("parent_missing", codes(ctx.exception))

    def test_category_must_fit_type(self):
        with self.assertRaises(AccountingValidationError) as ctx:
            make_account("1101", category="sales_revenue")
        self.assertEqual(codes(ctx.exception), ["invalid_category"])
        self.assertEqual(ctx.exception.violations[0].field, "category")

    def test_group_cannot_carry_opening_balance(self):
        with self.assertRaises(AccountingValidationError) as ctx:
            make_account("1000", is_group=True, opening_balance="10.00")
        self.assertIn("group_opening_balance", codes(ctx.exception))

    def test_depth_limit(self):
        config = LedgerConfig(max_account_depth=2)
        root = make_account("1000", is_group=True, config=config)
        child = make_account("1100", is_group=True, parent=root.pk, config=config)

        with self.assertRaises(AccountingValidationError) as ctx:
            make_account("1101", parent=child.pk, config=config)
        self.assertIn("hierarchy_too_deep", codes(ctx.exception))


class UpdateAccountTests(TestCase):
    def setUp(self):
        self.assets = make_account("1000", is_group=True)
        self.other = make_account("1900", is_group=True)
        self.current = make_account("1910", is_group=True, parent=self.other.pk)
        self.cash = make_account("1911", parent=self.current.pk)

    def test_rename(self):
        updated = account_service.update_account(self.cash.pk, name="Cash in Hand")
        self.assertEqual(updated.name, "Cash in Hand")

    def test_moving_under_own_descendant_is_a_cycle(self):
        with self.assertRaises(AccountingValidationError) as ctx:
            account_service.update_account(self.other.pk, parent=self.current.pk)
        self.assertEqual(codes(ctx.exception), ["hierarchy_cycle"])

    def test_move_relevels_descendants(self):
        account_service.update_account(self.other.pk, parent=self.assets.pk)

        self.other.refresh_from_db()
        self.current.refresh_from_db()
        self.cash.refresh_from_db()
        self.assertEqual(
            (self.other.level, self.current.level, self.cash.level),
            (2, 3, 4),
        )
        self.assertEqual(account_service.account_tree().level(self.cash.pk), 4)

    def test_system_account_allows_description_only(self):
        system = make_account("1920", parent=self.other.pk, is_system_account=True)

        with self.assertRaises(ConflictError):
            account_service.update_account(system.pk, name="Renamed")

        updated = account_service.update_account(system.pk, description="Main till")
        self.assertEqual(updated.description, "Main till")

    def test_unknown_account(self):
        with self.assertRaises(NotFoundError):
            account_service.update_account(987654, name="Nope")


class AccountStatusTests(TestCase):
    def setUp(self):
        self.assets = make_account("1000", is_group=True)
        self.cash = make_account("1101", parent=self.assets.pk)

    def test_deactivate_and_reactivate(self):
        account = account_service.deactivate_account(self.cash.pk)
        self.assertFalse(account.is_active)
        self.assertEqual(account.version, 1)

        account = account_service.reactivate_account(self.cash.pk)
        self.assertTrue(account.is_active)

    def test_non_zero_balance_blocks_deactivation(self):
        funded = make_account("1102", parent=self.assets.pk, opening_balance="100.00")
        with self.assertRaises(ConflictError):
            account_service.deactivate_account(funded.pk)

    def test_group_with_active_children_cannot_be_deactivated(self):
        with self.assertRaises(ConflictError):
            account_service.deactivate_account(self.assets.pk)

        account_service.deactivate_account(self.cash.pk)
        self.assertFalse(account_service.deactivate_account(self.assets.pk).is_active)

    def test_reactivation_requires_active_parent(self):
        account_service.deactivate_account(self.cash.pk)
        account_service.deactivate_account(self.assets.pk)

        with self.assertRaises(AccountingValidationError) as ctx:
            account_service.reactivate_account(self.cash.pk)
        self.assertEqual(codes(ctx.exception), ["parent_inactive"])

    def test_system_account_cannot_be_deactivated(self):
        system = make_account("1199", parent=self.assets.pk, is_system_account=True)
        with self.assertRaises(ConflictError):
            account_service.deactivate_account(system.pk)


class DeleteAccountTests(TestCase):
    def test_unused_leaf_can_be_deleted(self):
        spare = make_account("1199")
        account_service.delete_account(spare.pk)
        self.assertFalse(Account.objects.filter(pk=spare.pk).exists())

    def test_used_account_cannot_be_deleted(self):
        cash = make_account("1101")
        sales = make_account("4001", account_type=Account.REVENUE)
        make_voucher([line(cash, "debit", "10.00"), line(sales, "credit", "10.00")])

        with self.assertRaises(ConflictError):
            account_service.delete_account(cash.pk)

    def test_group_with_children_cannot_be_deleted(self):
        group = make_account("1000", is_group=True)
        make_account("1101", parent=group.pk)
        with self.assertRaises(ConflictError):
            account_service.delete_account(group.pk)


class DirectoryQueryTests(TestCase):
    def setUp(self):
        self.assets = make_account("1000", name="Assets", is_group=True)
        self.cash = make_account("1101", name="Cash in Hand", parent=self.assets.pk, opening_balance="100.00")
        self.bank = make_account("1102", name="Cash at Bank", parent=self.assets.pk, opening_balance="50.00")
        self.sales = make_account("4001", name="Sales", account_type=Account.REVENUE)

    def test_list_filters(self):
        leaves = account_service.list_accounts(is_group=False, account_type=Account.ASSET)
        self.assertEqual([a.code for a in leaves], ["1101", "1102"])

        found = account_service.list_accounts(search="bank")
        self.assertEqual([a.code for a in found], ["1102"])

    def test_group_balance_is_rolled_up(self):
        self.assertEqual(account_service.effective_balance(self.assets.pk), Decimal("150.00"))
        self.assertEqual(account_service.effective_balance(self.cash.pk), Decimal("100.00"))

    def test_lookup_by_code(self):
        self.assertEqual(account_service.get_account_by_code("4001").pk, self.sales.pk)
        with self.assertRaises(NotFoundError):
            account_service.get_account_by_code("9999")
