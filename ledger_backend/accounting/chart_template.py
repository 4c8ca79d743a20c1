# accounting/chart_template.py

"""
PATH: accounting/chart_template.py

STANDARD CHART OF ACCOUNTS (TEMPLATE)

Rows are ordered parents-first so they can be created in a single pass.
Every templated account is seeded as a system account (cannot be edited,
deactivated or deleted through the directory services).

Row: (code, name, account_type, category, is_group, parent_code)
"""

from __future__ import annotations

from typing import Optional, Tuple

ChartRow = Tuple[str, str, str, str, bool, Optional[str]]

STANDARD_CHART: Tuple[ChartRow, ...] = (
    # ---------------- ASSETS ----------------
    ("1000", "Assets", "asset", "current_asset", True, None),
    ("1100", "Current Assets", "asset", "current_asset", True, "1000"),
    ("1101", "Cash in Hand", "asset", "current_asset", False, "1100"),
    ("1102", "Cash at Bank", "asset", "current_asset", False, "1100"),
    ("1103", "Petty Cash", "asset", "current_asset", False, "1100"),
    ("1200", "Accounts Receivable", "asset", "current_asset", False, "1100"),
    ("1300", "Inventory", "asset", "current_asset", False, "1100"),
    ("1400", "Fixed Assets", "asset", "fixed_asset", True, "1000"),
    ("1401", "Land & Building", "asset", "fixed_asset", False, "1400"),
    ("1402", "Furniture & Fixtures", "asset", "fixed_asset", False, "1400"),
    ("1403", "Vehicles", "asset", "fixed_asset", False, "1400"),
    ("1404", "Office Equipment", "asset", "fixed_asset", False, "1400"),
    ("1405", "Accumulated Depreciation", "asset", "fixed_asset", False, "1400"),
    # ---------------- LIABILITIES ----------------
    ("2000", "Liabilities", "liability", "current_liability", True, None),
    ("2100", "Current Liabilities", "liability", "current_liability", True, "2000"),
    ("2101", "Accounts Payable", "liability", "current_liability", False, "2100"),
    ("2102", "Sales Tax Payable", "liability", "current_liability", False, "2100"),
    ("2103", "Income Tax Payable", "liability", "current_liability", False, "2100"),
    ("2104", "Salary Payable", "liability", "current_liability", False, "2100"),
    ("2400", "Long-term Liabilities", "liability", "long_term_liability", True, "2000"),
    ("2401", "Long-term Loans", "liability", "long_term_liability", False, "2400"),
    # ---------------- EQUITY ----------------
    ("3000", "Equity", "equity", "owner_equity", True, None),
    ("3001", "Owner's Capital", "equity", "owner_equity", False, "3000"),
    ("3002", "Retained Earnings", "equity", "retained_earnings", False, "3000"),
    ("3003", "Current Year Earnings", "equity", "retained_earnings", False, "3000"),
    # ---------------- REVENUE ----------------
    ("4000", "Revenue", "revenue", "sales_revenue", True, None),
    ("4001", "Sales Revenue", "revenue", "sales_revenue", False, "4000"),
    ("4002", "Service Revenue", "revenue", "sales_revenue", False, "4000"),
    ("4100", "Other Income", "revenue", "other_revenue", True, "4000"),
    ("4101", "Interest Income", "revenue", "other_revenue", False, "4100"),
    # ---------------- EXPENSES ----------------
    ("5000", "Expenses", "expense", "operating_expense", True, None),
    ("5100", "Cost of Goods Sold", "expense", "cost_of_goods_sold", True, "5000"),
    ("5101", "Purchases", "expense", "cost_of_goods_sold", False, "5100"),
    ("5102", "Direct Labor", "expense", "cost_of_goods_sold", False, "5100"),
    ("5200", "Operating Expenses", "expense", "operating_expense", True, "5000"),
    ("5201", "Salaries & Wages", "expense", "operating_expense", False, "5200"),
    ("5202", "Rent Expense", "expense", "operating_expense", False, "5200"),
    ("5203", "Utilities", "expense", "operating_expense", False, "5200"),
    ("5204", "Telephone & Internet", "expense", "operating_expense", False, "5200"),
    ("5205", "Office Supplies", "expense", "operating_expense", False, "5200"),
    ("5206", "Depreciation Expense", "expense", "operating_expense", False, "5200"),
    ("5207", "Insurance", "expense", "operating_expense", False, "5200"),
    ("5208", "Repairs & Maintenance", "expense", "operating_expense", False, "5200"),
    ("5800", "Financial Expenses", "expense", "financial_expense", True, "5000"),
    ("5801", "Interest Expense", "expense", "financial_expense", False, "5800"),
    ("5802", "Bank Charges", "expense", "financial_expense", False, "5800"),
)
