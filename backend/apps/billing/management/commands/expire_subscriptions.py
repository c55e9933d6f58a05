"""
Management command to expire lapsed trials and subscriptions.

Run periodically via cron or scheduled task so the active flag on gyms
tracks their trial and paid windows.
Example: ./manage.py expire_subscriptions --dry-run
"""

from django.core.management.base import BaseCommand

from apps.billing.services import expire_lapsed_entitlements


class Command(BaseCommand):
    help = "Deactivate gyms whose trial and subscription window have both ended"

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would be expired without changing anything",
        )

    def handle(self, *args, **options):
        dry_run = options["dry_run"]
        result = expire_lapsed_entitlements(dry_run=dry_run)

        summary = (
            f"{result.expired_trials} trials and "
            f"{result.expired_subscriptions} subscriptions"
        )
        if dry_run:
            self.stdout.write(self.style.WARNING(f"[DRY RUN] Would expire {summary}"))
        else:
            self.stdout.write(self.style.SUCCESS(f"Successfully expired {summary}"))
