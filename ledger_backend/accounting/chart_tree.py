# accounting/chart_tree.py

"""
PATH: accounting/chart_tree.py

CHART OF ACCOUNTS TREE (FRAMEWORK-AGNOSTIC)

Purpose:
- Hold the account hierarchy as an arena of nodes indexed by id with a
  parent -> children index, detached from ORM instances.
- Answer hierarchy questions without recursion:
  depth/level, ancestors, descendants, group effective balances,
  "would this re-parenting create a cycle?"

Rules:
- Traversals are iterative with a visited set; revisiting a node means the
  stored parent links form a cycle and LedgerIntegrityError is raised
- Root accounts are at level 1
- A group's effective balance is the sum of its ACTIVE descendant leaves
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from accounting.services.exceptions import LedgerIntegrityError


@dataclass(frozen=True)
class AccountNode:
    id: int
    parent_id: Optional[int]
    is_group: bool
    is_active: bool = True
    balance: Decimal = Decimal("0.00")
    code: str = ""


class AccountTree:
    """Arena + index view of the chart of accounts."""

    def __init__(self, nodes: Iterable[AccountNode]):
        self._nodes: Dict[int, AccountNode] = {}
        self._children: Dict[int, List[int]] = defaultdict(list)

        for node in nodes:
            self._nodes[node.id] = node

        for node in self._nodes.values():
            if node.parent_id is not None:
                self._children[node.parent_id].append(node.id)

    @classmethod
    def from_accounts(cls, accounts) -> "AccountTree":
        """Build from Account instances (or anything exposing the same attributes)."""
        return cls(
            AccountNode(
                id=a.id,
                parent_id=a.parent_id,
                is_group=a.is_group,
                is_active=a.is_active,
                balance=a.current_balance,
                code=a.code,
            )
            for a in accounts
        )

    def ancestors(self, node_id: int) -> List[int]:
        """Parent chain from the direct parent up to the root."""
        chain: List[int] = []
        seen = {node_id}
        current = self._nodes[node_id].parent_id

        while current is not None:
            if current in seen:
                raise LedgerIntegrityError(
                    f"Cycle detected in account hierarchy at account id={current}"
                )
            seen.add(current)
            chain.append(current)
            parent = self._nodes.get(current)
            current = parent.parent_id if parent else None

        return chain

    def level(self, node_id: int) -> int:
        return len(self.ancestors(node_id)) + 1

    def subtree_height(self, node_id: int) -> int:
        """Number of levels in the subtree rooted at node_id (a leaf is 1)."""
        height = 0
        stack = [(node_id, 1)]
        seen = set()

        while stack:
            current, depth = stack.pop()
            if current in seen:
                raise LedgerIntegrityError(
                    f"Cycle detected in account hierarchy at account id={current}"
                )
            seen.add(current)
            height = max(height, depth)
            stack.extend((child, depth + 1) for child in self._children.get(current, ()))

        return height

    def descendants(self, node_id: int) -> List[int]:
        """All nodes below node_id (excluding itself), depth-first."""
        result: List[int] = []
        seen = {node_id}
        stack = list(reversed(self._children.get(node_id, ())))

        while stack:
            current = stack.pop()
            if current in seen:
                raise LedgerIntegrityError(
                    f"Cycle detected in account hierarchy at account id={current}"
                )
            seen.add(current)
            result.append(current)
            stack.extend(reversed(self._children.get(current, ())))

        return result

    def effective_balance(self, node_id: int) -> Decimal:
        node = self._nodes[node_id]
        if not node.is_group:
            return node.balance

        total = Decimal("0.00")
        for desc_id in self.descendants(node_id):
            desc = self._nodes[desc_id]
            if not desc.is_group and desc.is_active:
                total += desc.balance
        return total

    def would_create_cycle(self, node_id: int, new_parent_id: Optional[int]) -> bool:
        if new_parent_id is None:
            return False
        if new_parent_id == node_id:
            return True
        return new_parent_id in self.descendants(node_id)

    def has_active_children(self, node_id: int) -> bool:
        return any(self._nodes[c].is_active for c in self._children.get(node_id, ()))

    def find_cycles(self) -> List[int]:
        """Ids of nodes whose parent chain loops back on itself."""
        broken: List[int] = []
        for node_id in self._nodes:
            try:
                self.ancestors(node_id)
            except LedgerIntegrityError:
                broken.append(node_id)
        return broken
