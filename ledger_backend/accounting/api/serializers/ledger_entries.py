# accounting/api/serializers/ledger_entries.py

from rest_framework import serializers

from accounting.models.ledger import LedgerEntry


class LedgerEntrySerializer(serializers.ModelSerializer):
    voucher_number = serializers.CharField(source="voucher.voucher_number", read_only=True)
    account_code = serializers.CharField(source="account.code", read_only=True)

    class Meta:
        model = LedgerEntry
        fields = (
            "id",
            "voucher",
            "voucher_number",
            "voucher_entry",
            "account",
            "account_code",
            "direction",
            "amount",
            "balance_after",
            "entry_date",
            "posted_at",
        )
        read_only_fields = fields
