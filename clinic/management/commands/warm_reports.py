from datetime import timedelta

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.core.management.base import BaseCommand
from django.utils import timezone

from clinic.services.alerts import ALERTS_GROUP
from clinic.services.professionals import professionals_queryset
from clinic.services.reports import get_report, report_cache_key


class Command(BaseCommand):
    help = "Warm the attendance report cache for the last 30 days and broadcast a WebSocket refresh event."

    def handle(self, *args, **options):
        now = timezone.now()
        end = now.date()
        start = end - timedelta(days=29)
        keys_refreshed = []

        for professional_id in professionals_queryset().filter(is_active=True).values_list('id', flat=True):
            get_report('attendance', professional_id, start, end, refresh=True)
            keys_refreshed.append(report_cache_key('attendance', professional_id, start, end))

        channel_layer = get_channel_layer()
        if channel_layer is not None:
            event = {"type": "reports.refreshed", "ts": now.isoformat(), "keys": keys_refreshed[:50]}
            async_to_sync(channel_layer.group_send)(ALERTS_GROUP, event)

        self.stdout.write(self.style.SUCCESS(f"Refreshed {len(keys_refreshed)} keys at {now}"))
