# accounting/admin.py

from django.contrib import admin, messages

from accounting.models.account import Account
from accounting.models.ledger import LedgerEntry
from accounting.models.voucher import Voucher, VoucherEntry
from accounting.services import account_service
from accounting.services.exceptions import AccountingServiceError

# ============================================================
# ACCOUNT
# ============================================================


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    """
    Metadata-only view of the chart.

    Rules:
    - Accounts are created through the API or seed_standard_chart
    - Only name, category and description are editable here
      (description only, for system accounts)
    - Saves go through account_service.update_account
    - Never deleted from the admin
    """

    list_display = (
        "code",
        "name",
        "account_type",
        "category",
        "parent",
        "is_group",
        "is_active",
        "is_frozen",
        "current_balance",
    )
    list_filter = ("account_type", "is_group", "is_active", "is_frozen", "is_system_account")
    search_fields = ("code", "name")
    ordering = ("code",)

    EDITABLE_FIELDS = ("name", "category", "description")
    SYSTEM_EDITABLE_FIELDS = ("description",)

    fieldsets = (
        (
            "Account Identity",
            {
                "fields": ("code", "name", "account_type", "category", "parent", "level", "is_group"),
            },
        ),
        (
            "Balances",
            {
                "fields": (
                    "opening_balance",
                    "opening_balance_date",
                    "current_balance",
                    "currency_code",
                    "currency_symbol",
                ),
            },
        ),
        (
            "Status",
            {
                "fields": ("is_active", "is_system_account", "is_frozen", "description"),
            },
        ),
        (
            "System Fields",
            {
                "fields": ("version", "created_at", "updated_at"),
            },
        ),
    )

    def get_readonly_fields(self, request, obj=None):
        editable = self.SYSTEM_EDITABLE_FIELDS if obj and obj.is_system_account else self.EDITABLE_FIELDS
        return tuple(
            field
            for _, options in self.fieldsets
            for field in options["fields"]
            if field not in editable
        )

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def save_model(self, request, obj, form, change):
        changes = {field: form.cleaned_data[field] for field in form.changed_data}
        if not changes:
            return
        try:
            account_service.update_account(obj.pk, **changes)
        except AccountingServiceError as exc:
            self.message_user(request, exc.message, level=messages.ERROR)


# ============================================================
# VOUCHER (READ-ONLY, use the API for lifecycle changes)
# ============================================================


class VoucherEntryInline(admin.TabularInline):
    model = VoucherEntry
    extra = 0
    fields = ("line_no", "account", "direction", "amount", "description")
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Voucher)
class VoucherAdmin(admin.ModelAdmin):
    list_display = (
        "voucher_number",
        "voucher_type",
        "voucher_date",
        "status",
        "reference_number",
        "posted_at",
    )
    list_filter = ("voucher_type", "status", "fiscal_year")
    search_fields = ("voucher_number", "narration", "reference_number")
    ordering = ("-voucher_date", "-id")
    inlines = (VoucherEntryInline,)

    readonly_fields = (
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
        "cancelled_by",
        "cancel_reason",
        "reversal_of",
        "created_by",
        "created_at",
        "updated_at",
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# ============================================================
# LEDGER ENTRY (STRICTLY IMMUTABLE)
# ============================================================


@admin.register(LedgerEntry)
class LedgerEntryAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "voucher",
        "account",
        "direction",
        "amount",
        "balance_after",
        "entry_date",
        "posted_at",
    )
    list_filter = ("direction", "entry_date")
    search_fields = ("voucher__voucher_number", "account__code", "account__name")
    ordering = ("-posted_at", "-id")

    readonly_fields = (
        "voucher",
        "voucher_entry",
        "account",
        "direction",
        "amount",
        "balance_after",
        "entry_date",
        "posted_at",
        "created_at",
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
