# accounting/tests/test_chart_tree.py

from decimal import Decimal

from django.test import SimpleTestCase

from accounting.chart_tree import AccountNode, AccountTree
from accounting.services.exceptions import LedgerIntegrityError


def _tree():
    #   1 Assets (group)
    #   ├── 2 Current Assets (group)
    #   │   ├── 3 Cash         100.00
    #   │   └── 5 Petty Cash    30.00 (inactive)
    #   └── 4 Equipment         50.00
    return AccountTree(
        [
            AccountNode(1, None, True, code="1000"),
            AccountNode(2, 1, True, code="1100"),
            AccountNode(3, 2, False, balance=Decimal("100.00"), code="1101"),
            AccountNode(4, 1, False, balance=Decimal("50.00"), code="1400"),
            AccountNode(5, 2, False, is_active=False, balance=Decimal("30.00"), code="1103"),
        ]
    )


class AccountTreeTests(SimpleTestCase):
    def test_levels_and_ancestors(self):
        tree = _tree()
        self.assertEqual(tree.level(1), 1)
        self.assertEqual(tree.level(3), 3)
        self.assertEqual(tree.ancestors(3), [2, 1])

    def test_descendants_and_subtree_height(self):
        tree = _tree()
        self.assertEqual(set(tree.descendants(1)), {2, 3, 4, 5})
        self.assertEqual(tree.descendants(3), [])
        self.assertEqual(tree.subtree_height(1), 3)
        self.assertEqual(tree.subtree_height(4), 1)

    def test_group_balance_sums_active_leaves_only(self):
        tree = _tree()
        self.assertEqual(tree.effective_balance(1), Decimal("150.00"))
        self.assertEqual(tree.effective_balance(2), Decimal("100.00"))
        self.assertEqual(tree.effective_balance(3), Decimal("100.00"))

    def test_would_create_cycle(self):
        tree = _tree()
        self.assertTrue(tree.would_create_cycle(1, 1))
        self.assertTrue(tree.would_create_cycle(1, 3))
        self.assertFalse(tree.would_create_cycle(2, None))
        self.assertFalse(tree.would_create_cycle(3, 4))

    def test_has_active_children(self):
        tree = _tree()
        self.assertTrue(tree.has_active_children(2))
        self.assertFalse(tree.has_active_children(3))

    def test_stored_cycle_is_detected_not_looped(self):
        tree = AccountTree(
            [
                AccountNode(10, 11, True),
                AccountNode(11, 10, True),
                AccountNode(12, None, False),
            ]
        )
        with self.assertRaises(LedgerIntegrityError):
            tree.ancestors(10)
        self.assertEqual(sorted(tree.find_cycles()), [10, 11])
