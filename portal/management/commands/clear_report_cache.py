from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.core.management.base import BaseCommand
from django.utils import timezone

from portal.services.bursary import clear_report_cache


class Command(BaseCommand):
    help = "Drop cached bursary report overviews and broadcast a refresh event."

    def handle(self, *args, **options):
        now = timezone.now()
        generation = clear_report_cache()

        channel_layer = get_channel_layer()
        if channel_layer is not None:
            event = {"type": "broadcast.refresh", "generation": generation, "ts": now.isoformat(),
                     "keys": ["bursary:overview"]}
            async_to_sync(channel_layer.group_send)("updates", event)

        self.stdout.write(self.style.SUCCESS(f"Bursary report cache cleared (generation {generation}) at {now}"))
