# accounting/management/commands/seed_standard_chart.py

from django.core.management.base import BaseCommand

from accounting.services.chart_seed_service import seed_standard_chart


class Command(BaseCommand):
    help = "Seed the standard Chart of Accounts (idempotent; template accounts become system accounts)"

    def handle(self, *args, **options):
        self.stdout.write("Seeding standard Chart of Accounts...")

        result = seed_standard_chart()

        self.stdout.write(
            self.style.SUCCESS(
                "✔ Standard chart ready "
                f"(created={result.created}, updated={result.updated}, unchanged={result.unchanged})"
            )
        )
