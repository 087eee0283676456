from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.core.cache import cache
from django.core.management.base import BaseCommand
from django.utils import timezone

from census.realtime.consumers import record_group
from census.services import records as record_store


class Command(BaseCommand):
    help = "Rebuild the existing-days cache for recent months and notify open census views."

    def add_arguments(self, parser):
        parser.add_argument("--months", type=int, default=2, help="current month plus N-1 previous ones")

    def handle(self, *args, **options):
        now = timezone.localtime()
        year, month = now.year, now.month
        keys_refreshed = []
        for _ in range(max(1, options["months"])):
            ck = record_store.existing_days_key(year, month)
            cache.delete(ck)
            record_store.existing_days(year, month)
            keys_refreshed.append(ck)
            year, month = (year, month - 1) if month > 1 else (year - 1, 12)

        today = now.date().isoformat()
        channel_layer = get_channel_layer()
        if channel_layer is not None:
            event = {"type": "record.updated", "date": today, "lastUpdated": timezone.now().isoformat(),
                     "keys": keys_refreshed}
            async_to_sync(channel_layer.group_send)(record_group(today), event)

        self.stdout.write(self.style.SUCCESS(f"Refreshed {len(keys_refreshed)} keys at {now}"))
