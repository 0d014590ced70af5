"""
Alert creation, listing and resolution.

Alerts are raised by business rules (patient-reported symptoms and
consecutive missed appointments) and resolved by professionals. Every
change is pushed to the ``alerts`` Channels group once the surrounding
transaction commits.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound

from clinic.models import Alert, Appointment, Patient, User
from clinic.services.audit import log_action
from clinic.services.common import iso

logger = logging.getLogger(__name__)

ALERTS_GROUP = 'alerts'
SYMPTOM_ALERT_KIND = 'patient_symptom'
ABSENCE_ALERT_KIND = 'consecutive_absences'
ABSENCE_THRESHOLD = 2


def format_alert(a: Alert) -> dict:
    return {
        'id': a.id,
        'patientId': a.patient_id,
        'kind': a.kind,
        'severity': a.severity,
        'status': a.status,
        'details': a.details,
        'createdAt': iso(a.created_at),
        'resolvedAt': iso(a.resolved_at),
        'resolvedBy': a.resolved_by_id,
    }


def broadcast_alert(alert: Alert, event: str) -> None:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    message = {'type': 'alert.event', 'event': event, 'alert': format_alert(alert)}
    transaction.on_commit(lambda: async_to_sync(channel_layer.group_send)(ALERTS_GROUP, message))


def create_alert(*, patient: Patient, kind: str, severity: str, details: Optional[str] = None) -> Alert:
    alert = Alert.objects.create(patient=patient, kind=kind, severity=severity, details=details)
    logger.info('Alert %s (%s, %s) raised for patient %s', alert.id, kind, severity, patient.id)
    broadcast_alert(alert, 'created')
    return alert


def symptom_severity(intensity: int) -> str:
    if intensity >= 8:
        return Alert.Severity.HIGH
    if intensity >= 4:
        return Alert.Severity.MEDIUM
    return Alert.Severity.LOW


def list_alerts(*, status: Optional[str] = None, severity: Optional[str] = None, patient_id: Optional[int] = None,
                limit: int = 20, offset: int = 0) -> tuple[list[Alert], int]:
    qs = Alert.objects.all()
    if status:
        qs = qs.filter(status=status)
    if severity:
        qs = qs.filter(severity=severity)
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    total = qs.count()
    return list(qs.order_by('-created_at', '-id')[offset:offset + limit]), total


def get_alert(alert_id: int) -> Alert:
    alert = Alert.objects.filter(id=alert_id).first()
    if alert is None:
        raise NotFound('Alerta não encontrado')
    return alert


def update_alert(user: User, alert_id: int, data: dict[str, Any], *, request=None) -> Alert:
    alert = get_alert(alert_id)

    resolved_at: Optional[datetime] = data.get('resolvedAt')
    if 'status' in data:
        alert.status = data['status']
        if alert.status == Alert.Status.OPEN:
            alert.resolved_at = None
            alert.resolved_by = None
        else:
            alert.resolved_by = user
            alert.resolved_at = resolved_at or timezone.now()
    elif 'resolvedAt' in data:
        alert.resolved_at = resolved_at
    if 'details' in data:
        alert.details = data['details']
    alert.save()

    log_action(user=user, action='ALERT_UPDATED', entity='alert', entity_id=alert.id,
               details={'fields': sorted(data.keys()), 'status': alert.status}, request=request)
    broadcast_alert(alert, 'updated')
    return alert


def check_consecutive_absences(appointment: Appointment) -> Optional[Alert]:
    """Raise an alert when the patient missed the last appointments in a row.

    Looks at the patient's non-canceled appointments up to and including
    ``appointment`` and counts the trailing run of ``no_show``.
    """
    from clinic.services.patients import record_status

    history = (
        Appointment.objects.filter(patient_id=appointment.patient_id, starts_at__lte=appointment.starts_at)
        .exclude(status=Appointment.Status.CANCELED)
        .order_by('-starts_at', '-id')
        .values_list('status', flat=True)
    )
    misses = 0
    for status in history:
        if status != Appointment.Status.NO_SHOW:
            break
        misses += 1
    if misses < ABSENCE_THRESHOLD:
        return None
    if Alert.objects.filter(
        patient_id=appointment.patient_id,
        kind=ABSENCE_ALERT_KIND,
        status__in=[Alert.Status.OPEN, Alert.Status.ACKNOWLEDGED],
    ).exists():
        return None

    patient = appointment.patient
    severity = Alert.Severity.HIGH if misses >= 3 else Alert.Severity.MEDIUM
    alert = create_alert(
        patient=patient,
        kind=ABSENCE_ALERT_KIND,
        severity=severity,
        details=f'Paciente faltou {misses} consultas consecutivas.',
    )
    if patient.status != Patient.Status.AT_RISK:
        patient.status = Patient.Status.AT_RISK
        patient.save(update_fields=['status', 'updated_at'])
        record_status(patient, reason='Faltas consecutivas')
    return alert


def alerts_summary(qs) -> dict:
    """Totals by status and severity plus the five newest alerts of ``qs``."""
    totals = {s: 0 for s in Alert.Status.values}
    by_severity = {s: 0 for s in Alert.Severity.values}
    for status, severity in qs.values_list('status', 'severity'):
        totals[status] = totals.get(status, 0) + 1
        by_severity[severity] = by_severity.get(severity, 0) + 1
    recent = [format_alert(a) for a in qs.order_by('-created_at', '-id')[:5]]
    return {'totals': totals, 'bySeverity': by_severity, 'recent': recent}
