# accounting/tests/test_api.py

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from accounting.models.account import Account
from accounting.models.voucher import Voucher

from .helpers import make_account

BASE = "/api/accounting"


class AccountingApiTests(TestCase):
    def setUp(self):
        User = get_user_model()
        self.admin = User.objects.create_superuser("admin", "admin@example.com", "pass12345")
        self.client = APIClient()
        self.client.force_authenticate(self.admin)

        self.cash = make_account("1101", name="Cash in Hand")
        self.sales = make_account("4001", name="Sales Revenue", account_type=Account.REVENUE)

    def _create_voucher(self, debit="1000.00", credit="1000.00"):
        return self.client.post(
            f"{BASE}/vouchers/",
            {
                "voucher_type": "JV",
                "voucher_date": "2026-03-15",
                "narration": "Cash sale to walk-in customer",
                "entries": [
                    {"account": self.cash.pk, "direction": "debit", "amount": debit},
                    {"account": self.sales.pk, "direction": "credit", "amount": credit},
                ],
            },
            format="json",
        )

    def test_requires_authentication(self):
        anon = APIClient()
        self.assertEqual(anon.get(f"{BASE}/vouchers/").status_code, 401)

    def test_requires_model_permissions(self):
        clerk = get_user_model().objects.create_user("clerk", password="pass12345")
        client = APIClient()
        client.force_authenticate(clerk)

        self.assertEqual(client.get(f"{BASE}/vouchers/").status_code, 403)
        self.assertEqual(client.get(f"{BASE}/trial-balance/").status_code, 403)
        self.assertEqual(client.get(f"{BASE}/balance-sheet/").status_code, 403)

    def test_account_create_and_duplicate(self):
        payload = {
            "code": "1102",
            "name": "Cash at Bank",
            "account_type": "asset",
            "category": "current_asset",
        }
        res = self.client.post(f"{BASE}/accounts/", payload, format="json")
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["level"], 1)
        self.assertEqual(res.data["normal_balance"], "debit")

        res = self.client.post(f"{BASE}/accounts/", payload, format="json")
        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["violations"][0]["code"], "duplicate_code")

    def test_account_list_filters(self):
        res = self.client.get(f"{BASE}/accounts/", {"account_type": "revenue"})
        self.assertEqual(res.status_code, 200)
        self.assertEqual([a["code"] for a in res.data], ["4001"])

        res = self.client.get(f"{BASE}/accounts/", {"is_active": "maybe"})
        self.assertEqual(res.status_code, 400)

    def test_voucher_lifecycle(self):
        res = self._create_voucher()
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["voucher_number"], "JV-2026-0001")
        self.assertEqual(res.data["total_debit"], "1000.00")
        self.assertTrue(res.data["is_balanced"])
        voucher_id = res.data["id"]

        res = self.client.get(f"{BASE}/vouchers/{voucher_id}/validate/")
        self.assertTrue(res.data["postable"])

        res = self.client.post(f"{BASE}/vouchers/{voucher_id}/post/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["voucher"]["status"], Voucher.STATUS_POSTED)
        self.assertEqual(len(res.data["ledger_entry_ids"]), 2)
        self.assertFalse(res.data["already_posted"])

        res = self.client.post(f"{BASE}/vouchers/{voucher_id}/post/")
        self.assertEqual(res.status_code, 200)
        self.assertTrue(res.data["already_posted"])

        res = self.client.post(f"{BASE}/vouchers/{voucher_id}/cancel/", {}, format="json")
        self.assertEqual(res.status_code, 409)

        res = self.client.get(f"{BASE}/accounts/{self.cash.pk}/balance/")
        self.assertEqual(res.data["balance"], "1000.00")

        res = self.client.get(f"{BASE}/ledger-entries/", {"account": self.cash.pk})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["count"], 1)
        self.assertEqual(res.data["results"][0]["balance_after"], "1000.00")

        res = self.client.get(f"{BASE}/trial-balance/")
        self.assertEqual(res.status_code, 200)
        self.assertTrue(res.data["totals"]["balanced"])
        self.assertEqual(res.data["totals"]["debit"], "1000.00")

        res = self.client.post(
            f"{BASE}/vouchers/{voucher_id}/reverse/",
            {"reason": "Goods returned"},
            format="json",
        )
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["voucher"]["reversal_of"], voucher_id)

        res = self.client.get(f"{BASE}/accounts/{self.cash.pk}/statement/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["closing_balance"], "0.00")

    def test_unbalanced_post_returns_field_errors(self):
        voucher_id = self._create_voucher(debit="500.00", credit="400.00").data["id"]

        res = self.client.post(f"{BASE}/vouchers/{voucher_id}/post/")
        self.assertEqual(res.status_code, 400)
        self.assertEqual([v["code"] for v in res.data["violations"]], ["unbalanced"])
        self.assertIn("entries", res.data["errors"])

    def test_non_positive_amount_rejected_by_serializer(self):
        res = self._create_voucher(debit="0.00", credit="0.00")
        self.assertEqual(res.status_code, 400)
        self.assertIn("entries", res.data)
        self.assertFalse(Voucher.objects.exists())

    def test_draft_entry_endpoints(self):
        voucher_id = self._create_voucher().data["id"]

        res = self.client.post(
            f"{BASE}/vouchers/{voucher_id}/entries/",
            {"account": self.cash.pk, "direction": "credit", "amount": "5.00"},
            format="json",
        )
        self.assertEqual(res.status_code, 201)
        entry_id = res.data["id"]

        res = self.client.patch(
            f"{BASE}/vouchers/{voucher_id}/entries/{entry_id}/",
            {"amount": "6.00"},
            format="json",
        )
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["amount"], "6.00")

        res = self.client.delete(f"{BASE}/vouchers/{voucher_id}/entries/{entry_id}/")
        self.assertEqual(res.status_code, 204)

        res = self.client.get(f"{BASE}/vouchers/", {"status": "draft"})
        self.assertEqual(res.data["count"], 1)

    def test_missing_voucher_is_404(self):
        self.assertEqual(self.client.get(f"{BASE}/vouchers/987654/").status_code, 404)

    def test_health_reports_ledger_status(self):
        Account.objects.filter(pk=self.cash.pk).update(is_frozen=True)

        res = APIClient().get("/api/health/")
        self.assertEqual(res.status_code, 200)
        self.assertTrue(res.data["chart_seeded"])
        self.assertEqual(res.data["frozen_accounts"], 1)

    def test_impossible_report_dates_are_400(self):
        res = self.client.get(f"{BASE}/trial-balance/", {"as_of_date": "2026-02-30"})
        self.assertEqual(res.status_code, 400)

        res = self.client.get(f"{BASE}/trial-balance/", {"as_of": "2026-13-01T10:00:00"})
        self.assertEqual(res.status_code, 400)

        res = self.client.get(
            f"{BASE}/accounts/{self.cash.pk}/statement/", {"start_date": "2026-04-31"}
        )
        self.assertEqual(res.status_code, 400)

    def test_balance_sheet_endpoint(self):
        voucher_id = self._create_voucher().data["id"]
        self.client.post(f"{BASE}/vouchers/{voucher_id}/post/")

        res = self.client.get(f"{BASE}/balance-sheet/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["assets"]["total"], "1000.00")
        self.assertEqual(res.data["income_summary"]["net_income"], "1000.00")
        self.assertEqual(res.data["totals"]["liabilities_plus_equity"], "1000.00")
        self.assertTrue(res.data["totals"]["balanced"])

        res = self.client.get(f"{BASE}/balance-sheet/", {"as_of_date": "2026-02-30"})
        self.assertEqual(res.status_code, 400)
