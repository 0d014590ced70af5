"""
Report aggregation over a professional's appointments, occurrences and
alerts in a UTC date range. Results are cached for
``REPORTS_CACHE_SECONDS``; ``warm_reports`` pre-fills the attendance
cache.
"""
from __future__ import annotations

from datetime import date
from statistics import median
from typing import Callable, Optional

from django.conf import settings
from django.core.cache import cache

from clinic.models import Alert, Appointment, Occurrence
from clinic.services.alerts import alerts_summary
from clinic.services.common import range_bounds

SECONDS_PER_DAY = 86400


def _period(start: date, end: date) -> dict:
    return {'start': start.isoformat(), 'end': end.isoformat()}


def report_cache_key(name: str, professional_id: int, start: date, end: date) -> str:
    return f'reports:{name}:{professional_id}:{start.isoformat()}:{end.isoformat()}'


def _cached(name: str, professional_id: int, start: date, end: date, build: Callable[[], dict]) -> dict:
    ck = report_cache_key(name, professional_id, start, end)
    cached = cache.get(ck)
    if cached is not None:
        return cached
    payload = build()
    cache.set(ck, payload, settings.REPORTS_CACHE_SECONDS)
    return payload


def _appointments(professional_id: int, start: date, end: date):
    lo, hi = range_bounds(start, end)
    return Appointment.objects.filter(professional_id=professional_id, starts_at__gte=lo, starts_at__lte=hi)


def build_attendance(professional_id: int, start: date, end: date) -> dict:
    counts = {s: 0 for s in Appointment.Status.values}
    for status in _appointments(professional_id, start, end).values_list('status', flat=True):
        counts[status] += 1
    total = sum(counts.values())
    return {
        'period': _period(start, end),
        'totals': {
            'scheduled': counts[Appointment.Status.SCHEDULED],
            'confirmed': counts[Appointment.Status.CONFIRMED],
            'completed': counts[Appointment.Status.COMPLETED],
            'noShow': counts[Appointment.Status.NO_SHOW],
            'canceled': counts[Appointment.Status.CANCELED],
        },
        'cancellationRate': round(counts[Appointment.Status.CANCELED] / total, 4) if total else 0,
    }


def _average(values: list[float]) -> Optional[float]:
    return round(sum(values) / len(values), 2) if values else None


def build_wait_times(professional_id: int, start: date, end: date) -> dict:
    lead: dict[str, list[float]] = {t: [] for t in Appointment.Type.values}
    for type_, starts_at, created_at in _appointments(professional_id, start, end).values_list(
        'type', 'starts_at', 'created_at'
    ):
        days = max(0.0, (starts_at - created_at).total_seconds() / SECONDS_PER_DAY)
        lead[type_].append(days)
    everything = [d for values in lead.values() for d in values]
    return {
        'period': _period(start, end),
        'averageDaysToTriage': _average(lead[Appointment.Type.TRIAGE]),
        'averageDaysToTreatment': _average(lead[Appointment.Type.TREATMENT]),
        'medianQueueTime': round(median(everything), 2) if everything else None,
    }


def build_adherence(professional_id: int, start: date, end: date) -> dict:
    lo, hi = range_bounds(start, end)
    completed = _appointments(professional_id, start, end).filter(status=Appointment.Status.COMPLETED)
    symptoms = Occurrence.objects.filter(
        professional_id=professional_id,
        source=Occurrence.Source.PATIENT,
        created_at__gte=lo,
        created_at__lte=hi,
    )
    with_completed = set(completed.values_list('patient_id', flat=True))
    reporting = set(symptoms.values_list('patient_id', flat=True))
    engaged = with_completed & reporting
    universe = with_completed | reporting
    return {
        'period': _period(start, end),
        'totals': {
            'completedAppointments': completed.count(),
            'symptomReports': symptoms.count(),
        },
        'patients': {
            'withCompletedAppointments': len(with_completed),
            'reportingSymptoms': len(reporting),
            'engaged': len(engaged),
            'engagementRate': round(len(engaged) / len(universe), 4) if universe else 0,
        },
    }


def build_alerts_report(professional_id: int, start: date, end: date) -> dict:
    lo, hi = range_bounds(start, end)
    patient_ids = Appointment.objects.filter(professional_id=professional_id).values('patient_id')
    qs = Alert.objects.filter(patient_id__in=patient_ids, created_at__gte=lo, created_at__lte=hi)
    return {'period': _period(start, end), **alerts_summary(qs)}


BUILDERS: dict[str, Callable[[int, date, date], dict]] = {
    'attendance': build_attendance,
    'wait-times': build_wait_times,
    'adherence': build_adherence,
    'alerts': build_alerts_report,
}


def get_report(name: str, professional_id: int, start: date, end: date, *, refresh: bool = False) -> dict:
    build = BUILDERS[name]
    if refresh:
        cache.delete(report_cache_key(name, professional_id, start, end))
    return _cached(name, professional_id, start, end, lambda: build(professional_id, start, end))
