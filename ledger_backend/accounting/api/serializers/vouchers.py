# accounting/api/serializers/vouchers.py

"""
VOUCHER SERIALIZERS

Input serializers only check shape (types, choices, 2dp money > 0).
Business rules (balance, account status, draft-only edits) are enforced
by voucher_service / posting_service and reported as violations.
"""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from accounting.models.voucher import Voucher, VoucherEntry


class VoucherEntrySerializer(serializers.ModelSerializer):
    account_code = serializers.CharField(source="account.code", read_only=True)
    account_name = serializers.CharField(source="account.name", read_only=True)

    class Meta:
        model = VoucherEntry
        fields = (
            "id",
            "line_no",
            "account",
            "account_code",
            "account_name",
            "direction",
            "amount",
            "description",
        )
        read_only_fields = fields


class VoucherSerializer(serializers.ModelSerializer):
    entries = VoucherEntrySerializer(many=True, read_only=True)
    total_debit = serializers.SerializerMethodField()
    total_credit = serializers.SerializerMethodField()
    is_balanced = serializers.SerializerMethodField()

    class Meta:
        model = Voucher
        fields = (
            "id",
            "voucher_number",
            "voucher_type",
            "voucher_date",
            "fiscal_year",
            "fiscal_period",
            "narration",
            "reference_number",
            "reference_type",
            "status",
            "posted_at",
            "posted_by",
            "cancelled_at",
            "cancel_reason",
            "reversal_of",
            "created_by",
            "created_at",
            "updated_at",
            "entries",
            "total_debit",
            "total_credit",
            "is_balanced",
        )
        read_only_fields = fields

    # Sum over the (prefetched) entries instead of issuing aggregate queries.
    def _sum(self, obj, direction) -> Decimal:
        return sum(
            (e.amount for e in obj.entries.all() if e.direction == direction),
            Decimal("0.00"),
        )

    def get_total_debit(self, obj) -> str:
        return str(self._sum(obj, VoucherEntry.DEBIT))

    def get_total_credit(self, obj) -> str:
        return str(self._sum(obj, VoucherEntry.CREDIT))

    def get_is_balanced(self, obj) -> bool:
        return self._sum(obj, VoucherEntry.DEBIT) == self._sum(obj, VoucherEntry.CREDIT)


class VoucherEntryInputSerializer(serializers.Serializer):
    account = serializers.IntegerField()
    direction = serializers.ChoiceField(choices=VoucherEntry.DIRECTIONS)
    amount = serializers.DecimalField(
        max_digits=18,
        decimal_places=2,
        min_value=Decimal("0.01"),
    )
    description = serializers.CharField(
        required=False, allow_blank=True, default="", max_length=500
    )


class VoucherCreateSerializer(serializers.Serializer):
    voucher_type = serializers.ChoiceField(choices=Voucher.VOUCHER_TYPES)
    voucher_date = serializers.DateField(required=False)
    narration = serializers.CharField(max_length=1000)
    reference_number = serializers.CharField(
        required=False, allow_blank=True, default="", max_length=64
    )
    reference_type = serializers.ChoiceField(
        choices=Voucher.REFERENCE_TYPES, default=Voucher.REF_MANUAL
    )
    entries = VoucherEntryInputSerializer(many=True)


class VoucherUpdateSerializer(serializers.Serializer):
    narration = serializers.CharField(max_length=1000, required=False)
    voucher_date = serializers.DateField(required=False)
    reference_number = serializers.CharField(required=False, allow_blank=True, max_length=64)


class VoucherEntryUpdateSerializer(serializers.Serializer):
    account = serializers.IntegerField(required=False)
    direction = serializers.ChoiceField(choices=VoucherEntry.DIRECTIONS, required=False)
    amount = serializers.DecimalField(
        max_digits=18,
        decimal_places=2,
        min_value=Decimal("0.01"),
        required=False,
    )
    description = serializers.CharField(required=False, allow_blank=True, max_length=500)


class VoucherCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class VoucherReverseSerializer(serializers.Serializer):
    reason = serializers.CharField(min_length=5, max_length=500)
    voucher_date = serializers.DateField(required=False)
