"""
Appointment scheduling rules.

A professional cannot hold two live appointments at the same instant;
canceled appointments free the slot. Any transition into ``no_show``
runs the consecutive-absence check.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

from django.db import transaction
from rest_framework.exceptions import NotFound

from clinic.exceptions import AppointmentConflict
from clinic.models import Appointment, Patient, User
from clinic.services.alerts import check_consecutive_absences
from clinic.services.audit import log_action
from clinic.services.common import day_bounds, iso

logger = logging.getLogger(__name__)

APPOINTMENT_FIELDS = {
    'startsAt': 'starts_at',
    'type': 'type',
    'status': 'status',
    'notes': 'notes',
}


def format_appointment(a: Appointment) -> dict:
    return {
        'id': a.id,
        'patientId': a.patient_id,
        'professionalId': a.professional_id,
        'startsAt': iso(a.starts_at),
        'type': a.type,
        'status': a.status,
        'notes': a.notes,
        'createdAt': iso(a.created_at),
        'updatedAt': iso(a.updated_at),
    }


def format_reminder(r) -> dict:
    return {
        'id': r.id,
        'channel': r.channel,
        'recipient': r.recipient,
        'scheduledFor': iso(r.scheduled_for),
        'sentAt': iso(r.sent_at),
        'status': r.status,
        'error': r.error,
    }


def normalize_notes(notes: Optional[str]) -> Optional[str]:
    if notes is None:
        return None
    notes = notes.strip()
    return notes or None


def get_appointment_or_404(appointment_id) -> Appointment:
    appointment = Appointment.objects.select_related('patient', 'professional').filter(id=appointment_id).first()
    if appointment is None:
        raise NotFound('Consulta não encontrada')
    return appointment


def get_professional_or_404(professional_id) -> User:
    professional = User.objects.filter(id=professional_id).first()
    if professional is None:
        raise NotFound('Profissional não encontrado.')
    return professional


def ensure_slot_available(professional_id: int, starts_at, exclude_id: Optional[int] = None) -> None:
    qs = Appointment.objects.filter(professional_id=professional_id, starts_at=starts_at).exclude(
        status=Appointment.Status.CANCELED
    )
    if exclude_id is not None:
        qs = qs.exclude(id=exclude_id)
    if qs.exists():
        logger.info('Slot %s already taken for professional %s', starts_at, professional_id)
        raise AppointmentConflict()


def list_appointments(*, professional_id: Optional[int] = None, patient_id: Optional[int] = None,
                      day: Optional[date] = None, status: Optional[str] = None, limit: int = 20,
                      offset: int = 0) -> list[Appointment]:
    qs = Appointment.objects.all()
    if professional_id:
        qs = qs.filter(professional_id=professional_id)
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    if day:
        start, end = day_bounds(day)
        qs = qs.filter(starts_at__gte=start, starts_at__lt=end)
    if status:
        qs = qs.filter(status=status)
    return list(qs.order_by('-starts_at', '-id')[offset:offset + limit])


def create_appointment(user: User, *, patient_id: int, professional_id: int, starts_at, type: str,
                       notes: Optional[str] = None, request=None) -> Appointment:
    patient = Patient.objects.filter(id=patient_id).first()
    if patient is None:
        raise NotFound('Paciente não encontrado')
    professional = get_professional_or_404(professional_id)
    with transaction.atomic():
        ensure_slot_available(professional.id, starts_at)
        appointment = Appointment.objects.create(
            patient=patient,
            professional=professional,
            starts_at=starts_at,
            type=type,
            notes=normalize_notes(notes),
        )
        log_action(user=user, action='APPOINTMENT_CREATED', entity='appointment', entity_id=appointment.id,
                   details={'patientId': patient.id, 'professionalId': professional.id,
                            'startsAt': iso(starts_at), 'type': type},
                   request=request)
    return appointment


def _set_status(appointment: Appointment, status: str) -> bool:
    """Apply a status; return True when the appointment just became a no-show."""
    became_no_show = status == Appointment.Status.NO_SHOW and appointment.status != status
    appointment.status = status
    return became_no_show


def update_appointment(user: User, appointment: Appointment, data: dict[str, Any], *, request=None) -> Appointment:
    changes: dict[str, Any] = {}
    became_no_show = False
    with transaction.atomic():
        if 'professionalId' in data and data['professionalId'] != appointment.professional_id:
            appointment.professional = get_professional_or_404(data['professionalId'])
            changes['professionalId'] = appointment.professional_id
        for key, attr in APPOINTMENT_FIELDS.items():
            if key not in data:
                continue
            value = normalize_notes(data[key]) if key == 'notes' else data[key]
            if getattr(appointment, attr) == value:
                continue
            if key == 'status':
                became_no_show = _set_status(appointment, value)
            else:
                setattr(appointment, attr, value)
            changes[key] = iso(value) if key == 'startsAt' else value
        if not changes:
            return appointment
        if appointment.status != Appointment.Status.CANCELED and (
            'startsAt' in changes or 'professionalId' in changes or 'status' in changes
        ):
            ensure_slot_available(appointment.professional_id, appointment.starts_at, exclude_id=appointment.id)
        appointment.save()
        log_action(user=user, action='APPOINTMENT_UPDATED', entity='appointment', entity_id=appointment.id,
                   details={'changes': changes}, request=request)
        if became_no_show:
            check_consecutive_absences(appointment)
    return appointment


def cancel_appointment(user: User, appointment: Appointment, reason: Optional[str] = None, *, request=None) -> Appointment:
    reason = normalize_notes(reason)
    appointment.status = Appointment.Status.CANCELED
    if reason:
        appointment.notes = reason
    appointment.save(update_fields=['status', 'notes', 'updated_at'])
    log_action(user=user, action='APPOINTMENT_CANCELED', entity='appointment', entity_id=appointment.id,
               details={'reason': reason}, request=request)
    return appointment


def update_appointment_status(user: User, appointment: Appointment, status: str, notes: Optional[str] = None,
                              *, request=None) -> Appointment:
    previous = appointment.status
    with transaction.atomic():
        if status != Appointment.Status.CANCELED and previous == Appointment.Status.CANCELED:
            ensure_slot_available(appointment.professional_id, appointment.starts_at, exclude_id=appointment.id)
        became_no_show = _set_status(appointment, status)
        notes = normalize_notes(notes)
        if notes is not None:
            appointment.notes = notes
        appointment.save(update_fields=['status', 'notes', 'updated_at'])
        log_action(user=user, action='APPOINTMENT_STATUS_UPDATED', entity='appointment', entity_id=appointment.id,
                   details={'from': previous, 'to': status}, request=request)
        if became_no_show:
            check_consecutive_absences(appointment)
    return appointment


def get_patient_appointment_or_404(patient: Patient, appointment_id) -> Appointment:
    appointment = Appointment.objects.select_related('patient').filter(id=appointment_id, patient=patient).first()
    if appointment is None:
        raise NotFound('Consulta não encontrada')
    return appointment


def confirm_by_patient(patient: Patient, appointment_id, *, request=None) -> Appointment:
    appointment = get_patient_appointment_or_404(patient, appointment_id)
    if appointment.status in (Appointment.Status.CONFIRMED, Appointment.Status.COMPLETED):
        return appointment
    appointment.status = Appointment.Status.CONFIRMED
    appointment.save(update_fields=['status', 'updated_at'])
    log_action(user=None, action='APPOINTMENT_CONFIRMED', entity='appointment', entity_id=appointment.id,
               details={'patientId': patient.id}, request=request)
    return appointment


def decline_by_patient(patient: Patient, appointment_id, reason: Optional[str] = None, *,
                       request=None) -> Appointment:
    appointment = get_patient_appointment_or_404(patient, appointment_id)
    reason = normalize_notes(reason)
    with transaction.atomic():
        became_no_show = _set_status(appointment, Appointment.Status.NO_SHOW)
        if reason:
            appointment.notes = reason
        appointment.save(update_fields=['status', 'notes', 'updated_at'])
        log_action(user=None, action='APPOINTMENT_DECLINED', entity='appointment', entity_id=appointment.id,
                   details={'patientId': patient.id, 'reason': reason}, request=request)
        if became_no_show:
            check_consecutive_absences(appointment)
    return appointment


def appointment_detail(appointment: Appointment) -> dict:
    patient = appointment.patient
    professional = appointment.professional
    return {
        'appointment': format_appointment(appointment),
        'patient': {
            'id': patient.id,
            'fullName': patient.full_name,
            'cpf': patient.cpf,
            'stage': patient.stage,
            'status': patient.status,
        },
        'professional': {
            'id': professional.id,
            'name': professional.name,
            'email': professional.email,
            'specialty': professional.specialty,
        },
        'reminders': [format_reminder(r) for r in appointment.reminders.order_by('-scheduled_for', '-id')],
    }
