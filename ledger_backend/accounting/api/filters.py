# accounting/api/filters.py

import django_filters

from accounting.models.ledger import LedgerEntry
from accounting.models.voucher import Voucher


class VoucherFilter(django_filters.FilterSet):
    date_from = django_filters.DateFilter(field_name="voucher_date", lookup_expr="gte")
    date_to = django_filters.DateFilter(field_name="voucher_date", lookup_expr="lte")

    class Meta:
        model = Voucher
        fields = ["voucher_type", "status", "fiscal_year", "fiscal_period", "reference_type"]


class LedgerEntryFilter(django_filters.FilterSet):
    date_from = django_filters.DateFilter(field_name="entry_date", lookup_expr="gte")
    date_to = django_filters.DateFilter(field_name="entry_date", lookup_expr="lte")

    class Meta:
        model = LedgerEntry
        fields = ["account", "voucher", "direction"]
