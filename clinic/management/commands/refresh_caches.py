from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.core.cache import cache
from django.core.management.base import BaseCommand
from django.utils import timezone

from clinic.models import Doctor
from clinic.services import billing
from clinic.services.departments import DEPARTMENTS_CACHE_KEY, active_departments_payload, invalidate_department_cache
from clinic.services.reviews import review_stats, stats_cache_key


class Command(BaseCommand):
    help = "Warm API caches, mark overdue bills and broadcast a WebSocket refresh event."

    def handle(self, *args, **options):
        now = timezone.now()
        keys_refreshed = []

        # Active department list
        invalidate_department_cache()
        active_departments_payload()
        keys_refreshed.append(DEPARTMENTS_CACHE_KEY)

        # Review stats per active doctor
        for doctor in Doctor.objects.filter(is_active=True):
            cache.delete(stats_cache_key(doctor.doctor_id))
            review_stats(doctor)
            keys_refreshed.append(stats_cache_key(doctor.doctor_id))

        overdue = billing.mark_overdue()
        if overdue:
            self.stdout.write(f"Marked {overdue} bills overdue")

        channel_layer = get_channel_layer()
        if channel_layer is not None:
            event = {"type": "broadcast.refresh", "version": int(now.timestamp()), "ts": now.isoformat(),
                     "keys": keys_refreshed[:50]}
            async_to_sync(channel_layer.group_send)("updates", event)

        self.stdout.write(self.style.SUCCESS(f"Refreshed {len(keys_refreshed)} keys at {now}"))
