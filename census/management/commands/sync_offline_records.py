from django.core.management.base import BaseCommand

from census.services.records import pending_dates, sync_pending


class Command(BaseCommand):
    help = "Push census days kept locally while the database was unavailable."

    def handle(self, *args, **options):
        if not pending_dates():
            self.stdout.write("Nothing to sync.")
            return
        summary = sync_pending()
        for key in ("synced", "discarded", "failed"):
            if summary[key]:
                self.stdout.write(f"{key}: {', '.join(summary[key])}")
        style = self.style.WARNING if summary["failed"] else self.style.SUCCESS
        self.stdout.write(style(
            f"{len(summary['synced'])} synced, {len(summary['discarded'])} discarded, {len(summary['failed'])} failed"
        ))
