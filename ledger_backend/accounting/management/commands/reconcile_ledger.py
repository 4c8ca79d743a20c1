# accounting/management/commands/reconcile_ledger.py

"""
Reconcile cached account balances against the ledger.

Exit status is non-zero when anything disagrees; mismatching accounts are
frozen unless --no-freeze is given.
"""

from django.core.management.base import BaseCommand, CommandError

from accounting.services.exceptions import LedgerIntegrityError
from accounting.services.reconciliation_service import check_balances, reconcile_balances


class Command(BaseCommand):
    help = "Compare cached account balances with the ledger and freeze mismatching accounts"

    def add_arguments(self, parser):
        parser.add_argument(
            "--account",
            action="append",
            type=int,
            dest="account_ids",
            help="Limit the check to this account id (repeatable).",
        )
        parser.add_argument(
            "--no-freeze",
            action="store_true",
            help="Report only; do not freeze mismatching accounts.",
        )

    def handle(self, *args, **options):
        account_ids = options.get("account_ids") or None

        if options["no_freeze"]:
            report = check_balances(account_ids)
        else:
            try:
                report = reconcile_balances(account_ids=account_ids)
            except LedgerIntegrityError as exc:
                report = exc.report

        self.stdout.write(
            f"Checked {report.checked_accounts} accounts; "
            f"ledger debits={report.ledger_debit_total} credits={report.ledger_credit_total}"
        )

        for m in report.mismatches:
            self.stdout.write(
                self.style.ERROR(
                    f"✖ {m.account_code}: cached={m.cached_balance} "
                    f"replayed={m.replayed_balance} last_balance_after={m.last_balance_after}"
                )
            )
        for vid in report.unbalanced_voucher_ids:
            self.stdout.write(self.style.ERROR(f"✖ voucher id={vid} ledger rows do not balance"))
        for aid in report.hierarchy_cycle_ids:
            self.stdout.write(self.style.ERROR(f"✖ account id={aid} parent chain loops"))

        if report.frozen_account_ids:
            self.stdout.write(
                self.style.WARNING(f"Frozen account ids: {list(report.frozen_account_ids)}")
            )

        if not report.ok:
            raise CommandError("Ledger reconciliation failed")

        self.stdout.write(self.style.SUCCESS("✔ Ledger reconciled"))
