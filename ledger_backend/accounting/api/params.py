# accounting/api/params.py

"""
Query-string parsing shared by the report views.

Both helpers return None for malformed input, including well-formed but
impossible values like 2026-02-30.
"""

from __future__ import annotations

from datetime import date, datetime

from django.utils.dateparse import parse_date, parse_datetime


def parse_query_date(raw) -> date | None:
    try:
        return parse_date(str(raw).strip())
    except ValueError:
        return None


def parse_query_datetime(raw) -> datetime | None:
    try:
        return parse_datetime(str(raw).strip())
    except ValueError:
        return None
