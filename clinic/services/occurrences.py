from __future__ import annotations

import logging
from typing import Optional

from django.conf import settings
from django.db import transaction

from clinic.exceptions import ResponsibleProfessionalNotFound
from clinic.models import Occurrence, Patient, Setting, User
from clinic.services.alerts import SYMPTOM_ALERT_KIND, create_alert, symptom_severity
from clinic.services.audit import log_action
from clinic.services.common import iso
from clinic.services.patients import upcoming_appointments

logger = logging.getLogger(__name__)

FALLBACK_SETTING_KEY = 'patient_occurrence_fallback_professional_id'


def format_occurrence(o: Occurrence) -> dict:
    return {
        'id': o.id,
        'patientId': o.patient_id,
        'professionalId': o.professional_id,
        'kind': o.kind,
        'intensity': o.intensity,
        'source': o.source,
        'notes': o.notes,
        'createdAt': iso(o.created_at),
    }


def list_occurrences(patient: Patient) -> list[Occurrence]:
    return list(Occurrence.objects.filter(patient=patient).order_by('-created_at', '-id'))


def _professional_by_id(raw) -> Optional[User]:
    try:
        pk = int(raw)
    except (TypeError, ValueError):
        return None
    return User.objects.filter(id=pk, is_active=True).first()


def resolve_responsible_professional(patient: Patient) -> User:
    """Who receives a symptom reported by the patient.

    The professional of the next upcoming appointment, then the fallback
    configured in the ``settings`` table, then the environment fallback.
    """
    upcoming = upcoming_appointments(patient, limit=1)
    if upcoming:
        return upcoming[0].professional
    setting = Setting.objects.filter(key=FALLBACK_SETTING_KEY).first()
    if setting is not None:
        professional = _professional_by_id(setting.value)
        if professional is not None:
            return professional
    professional = _professional_by_id(settings.PATIENT_OCCURRENCE_FALLBACK_PROFESSIONAL_ID)
    if professional is not None:
        return professional
    logger.warning('No responsible professional for patient %s', patient.id)
    raise ResponsibleProfessionalNotFound()


def symptom_details(kind: str, intensity: int, notes: Optional[str]) -> str:
    text = f'Paciente relatou "{kind}" com intensidade {intensity}/10.'
    if notes:
        text += f' Observações: {notes}.'
    return text


def create_occurrence(*, patient: Patient, professional: User, kind: str, intensity: int,
                      source: str = Occurrence.Source.PROFESSIONAL, notes: Optional[str] = None,
                      actor: Optional[User] = None, request=None) -> Occurrence:
    """Store an occurrence; patient reports also raise a symptom alert."""
    with transaction.atomic():
        occurrence = Occurrence.objects.create(
            patient=patient,
            professional=professional,
            kind=kind.strip(),
            intensity=intensity,
            source=source,
            notes=notes.strip() if notes and notes.strip() else None,
        )
        if source == Occurrence.Source.PATIENT:
            create_alert(
                patient=patient,
                kind=SYMPTOM_ALERT_KIND,
                severity=symptom_severity(intensity),
                details=symptom_details(occurrence.kind, intensity, occurrence.notes),
            )
        log_action(user=actor, action='OCCURRENCE_CREATED', entity='occurrence', entity_id=occurrence.id,
                   details={'patientId': patient.id, 'source': source, 'intensity': intensity}, request=request)
    return occurrence
