from datetime import timedelta

from django.core.management.base import BaseCommand
from django.utils import timezone

from clinic.models import Appointment, AppointmentReminder

REMINDER_LEAD = timedelta(hours=24)


class Command(BaseCommand):
    help = "Queue WhatsApp reminders for upcoming appointments (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--hours", type=int, default=24, help="Look-ahead window in hours")

    def handle(self, *args, **opts):
        now = timezone.now()
        appointments = Appointment.objects.filter(
            status__in=[Appointment.Status.SCHEDULED, Appointment.Status.CONFIRMED],
            starts_at__gt=now,
            starts_at__lte=now + timedelta(hours=opts["hours"]),
        )
        created = 0
        for appointment in appointments:
            queued = appointment.reminders.filter(
                channel=AppointmentReminder.Channel.WHATSAPP,
                recipient=AppointmentReminder.Recipient.PATIENT,
            )
            if queued.exists():
                continue
            AppointmentReminder.objects.create(
                appointment=appointment,
                channel=AppointmentReminder.Channel.WHATSAPP,
                recipient=AppointmentReminder.Recipient.PATIENT,
                # Appointments booked less than a day ahead are reminded right away
                scheduled_for=max(now, appointment.starts_at - REMINDER_LEAD),
            )
            created += 1
        self.stdout.write(self.style.SUCCESS(f"Queued {created} reminders for {appointments.count()} appointments"))
