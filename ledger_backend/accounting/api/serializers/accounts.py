# accounting/api/serializers/accounts.py

from decimal import Decimal

from rest_framework import serializers

from accounting.models.account import Account


class AccountSerializer(serializers.ModelSerializer):
    """
    Read-only representation of a chart node.
    `level` is derived from the parent chain by the directory service.
    """

    parent_code = serializers.CharField(source="parent.code", read_only=True, default=None)
    normal_balance = serializers.CharField(read_only=True)

    class Meta:
        model = Account
        fields = (
            "id",
            "code",
            "name",
            "account_type",
            "category",
            "parent",
            "parent_code",
            "level",
            "is_group",
            "is_active",
            "is_system_account",
            "is_frozen",
            "normal_balance",
            "description",
            "opening_balance",
            "opening_balance_date",
            "current_balance",
            "currency_code",
            "currency_symbol",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields


class AccountCreateSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=20)
    name = serializers.CharField(max_length=200)
    account_type = serializers.ChoiceField(choices=Account.ACCOUNT_TYPES)
    category = serializers.ChoiceField(choices=Account.CATEGORY_CHOICES)
    parent = serializers.IntegerField(required=False, allow_null=True)
    is_group = serializers.BooleanField(default=False)
    opening_balance = serializers.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    opening_balance_date = serializers.DateField(required=False, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True, default="")


class AccountUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200, required=False)
    category = serializers.ChoiceField(choices=Account.CATEGORY_CHOICES, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    parent = serializers.IntegerField(required=False, allow_null=True)
