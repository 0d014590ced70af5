from __future__ import annotations

import logging
from typing import Any, Optional

from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework.exceptions import NotFound

from clinic.exceptions import PatientDuplicate
from clinic.models import Alert, Appointment, Occurrence, Patient, PatientContact, PatientStatusHistory, User
from clinic.services.audit import log_action
from clinic.services.common import iso
from clinic.services.sessions import hash_pin

logger = logging.getLogger(__name__)

# Serializer field name -> model attribute
PATIENT_FIELDS = {
    'fullName': 'full_name',
    'cpf': 'cpf',
    'birthDate': 'birth_date',
    'phone': 'phone',
    'emergencyPhone': 'emergency_phone',
    'tumorType': 'tumor_type',
    'clinicalUnit': 'clinical_unit',
    'stage': 'stage',
    'status': 'status',
    'audioMaterialUrl': 'audio_material_url',
}


def format_patient_summary(p: Patient) -> dict:
    return {'id': p.id, 'fullName': p.full_name, 'cpf': p.cpf, 'stage': p.stage, 'status': p.status}


def format_patient(p: Patient) -> dict:
    return {
        'id': p.id,
        'fullName': p.full_name,
        'cpf': p.cpf,
        'birthDate': p.birth_date.isoformat() if p.birth_date else None,
        'phone': p.phone,
        'emergencyPhone': p.emergency_phone,
        'tumorType': p.tumor_type,
        'clinicalUnit': p.clinical_unit,
        'stage': p.stage,
        'status': p.status,
        'audioMaterialUrl': p.audio_material_url,
        'createdAt': iso(p.created_at),
        'updatedAt': iso(p.updated_at),
    }


def format_contact(c: PatientContact) -> dict:
    return {'id': c.id, 'fullName': c.full_name, 'relation': c.relation, 'phone': c.phone, 'isPrimary': c.is_primary}


def get_patient_or_404(patient_id) -> Patient:
    patient = Patient.objects.filter(id=patient_id).first()
    if patient is None:
        raise NotFound('Paciente não encontrado')
    return patient


def list_patients(*, q: Optional[str] = None, status: Optional[str] = None, stage: Optional[str] = None,
                  limit: int = 20, offset: int = 0) -> tuple[list[Patient], int]:
    qs = Patient.objects.all()
    if q:
        qs = qs.filter(Q(full_name__icontains=q) | Q(cpf__icontains=q))
    if status:
        qs = qs.filter(status=status)
    if stage:
        qs = qs.filter(stage=stage)
    total = qs.count()
    return list(qs.order_by('-created_at', '-id')[offset:offset + limit]), total


def search_patients(q: str, limit: int = 10) -> list[Patient]:
    qs = Patient.objects.filter(Q(full_name__icontains=q) | Q(cpf__icontains=q))
    return list(qs.order_by('full_name', 'id')[:limit])


def record_status(patient: Patient, reason: Optional[str] = None) -> PatientStatusHistory:
    return PatientStatusHistory.objects.create(
        patient=patient, stage=patient.stage, status=patient.status, reason=reason,
    )


def create_patient(user: User, data: dict[str, Any], *, request=None) -> Patient:
    """Create a patient, its contacts and the first history row atomically."""
    values = {attr: data[key] for key, attr in PATIENT_FIELDS.items() if key in data}
    contacts: list[dict] = list(data.get('contacts') or [])
    if Patient.objects.filter(cpf=values['cpf']).exists():
        raise PatientDuplicate()
    try:
        with transaction.atomic():
            patient = Patient.objects.create(pin_hash=hash_pin(data['pin']), **values)
            PatientContact.objects.bulk_create([
                PatientContact(
                    patient=patient,
                    full_name=c['fullName'],
                    relation=c['relation'],
                    phone=c['phone'],
                    is_primary=c.get('isPrimary', False),
                )
                for c in contacts
            ])
            record_status(patient, reason='Cadastro inicial')
    except IntegrityError:
        # Concurrent insert of the same CPF
        raise PatientDuplicate()
    log_action(user=user, action='PATIENT_CREATED', entity='patient', entity_id=patient.id,
               details={'cpf': patient.cpf, 'contacts': len(contacts)}, request=request)
    logger.info('Patient %s created by user %s', patient.id, user.id)
    return patient


def update_patient(user: User, patient: Patient, data: dict[str, Any], *, request=None) -> Patient:
    changes: list[str] = []
    for key, attr in PATIENT_FIELDS.items():
        if key in data and getattr(patient, attr) != data[key]:
            setattr(patient, attr, data[key])
            changes.append(key)
    if 'pin' in data:
        patient.pin_hash = hash_pin(data['pin'])
        patient.pin_attempts = 0
        patient.pin_blocked_until = None
        changes.append('pin')
    if 'cpf' in changes and Patient.objects.filter(cpf=patient.cpf).exclude(id=patient.id).exists():
        raise PatientDuplicate()
    if not changes:
        return patient
    with transaction.atomic():
        patient.save()
        if 'stage' in changes or 'status' in changes:
            record_status(patient, reason=data.get('reason'))
    log_action(user=user, action='PATIENT_UPDATED', entity='patient', entity_id=patient.id,
               details={'changes': changes}, request=request)
    return patient


def patient_detail(patient: Patient) -> dict:
    from clinic.services.alerts import format_alert
    from clinic.services.occurrences import format_occurrence

    payload = format_patient(patient)
    payload['contacts'] = [format_contact(c) for c in patient.contacts.order_by('-created_at', '-id')]
    payload['occurrences'] = [
        format_occurrence(o) for o in Occurrence.objects.filter(patient=patient).order_by('-created_at', '-id')
    ]
    payload['alerts'] = [format_alert(a) for a in Alert.objects.filter(patient=patient).order_by('-created_at', '-id')]
    return payload


def upcoming_appointments(patient: Patient, limit: int = 3) -> list[Appointment]:
    return list(
        Appointment.objects.select_related('professional')
        .filter(
            patient=patient,
            status__in=[Appointment.Status.SCHEDULED, Appointment.Status.CONFIRMED],
            starts_at__gte=timezone.now(),
        )
        .order_by('starts_at', 'id')[:limit]
    )


def patient_home(patient: Patient) -> dict:
    """Payload for the mobile app's home screen."""
    from clinic.services.appointments import format_appointment

    audio = []
    if patient.audio_material_url:
        audio.append({'title': 'Material educativo', 'url': patient.audio_material_url})
    return {
        'patient': format_patient(patient),
        'nextAppointments': [format_appointment(a) for a in upcoming_appointments(patient)],
        'audioMaterials': audio,
    }
