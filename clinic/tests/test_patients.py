from datetime import timedelta

import pytest
from django.contrib.auth.hashers import check_password
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APIClient

from clinic.models import Appointment, AuditLog, Patient, PatientStatusHistory
from clinic.tests.factories import client_for, make_appointment, make_patient, make_professional, patient_client

pytestmark = pytest.mark.django_db


def new_patient_payload(**overrides):
    payload = {
        'fullName': '  Maria <b>Souza</b> ',
        'cpf': '123.456.789-09',
        'pin': '4321',
        'birthDate': '1970-05-20',
        'tumorType': 'Mama',
        'stage': 'in_treatment',
        'contacts': [
            {'fullName': 'José Souza', 'relation': 'Esposo', 'phone': '11999990000', 'isPrimary': True},
        ],
    }
    payload.update(overrides)
    return payload


def test_professional_registers_patient(professional):
    client = client_for(professional)
    r = client.post(reverse('patients'), new_patient_payload(), format='json')
    assert r.status_code == 201
    assert r['Location'] == f"/api/patients/{r.data['id']}"
    assert r.data['fullName'] == 'Maria Souza'
    assert r.data['cpf'] == '12345678909'
    assert r.data['status'] == 'active'
    assert r.data['contacts'][0]['isPrimary'] is True
    assert r.data['occurrences'] == [] and r.data['alerts'] == []

    patient = Patient.objects.get(id=r.data['id'])
    assert check_password('4321', patient.pin_hash)
    assert PatientStatusHistory.objects.filter(patient=patient, stage='in_treatment').count() == 1
    log = AuditLog.objects.get(action='PATIENT_CREATED')
    assert log.user_id == professional.id and log.entity_id == str(patient.id)


def test_duplicate_cpf_is_a_conflict(professional, patient):
    client = client_for(professional)
    r = client.post(reverse('patients'), new_patient_payload(cpf=patient.cpf), format='json')
    assert r.status_code == 409
    assert r.data['code'] == 'UNIQUE_CONSTRAINT'


def test_invalid_payload_reports_field_errors(professional):
    client = client_for(professional)
    r = client.post(reverse('patients'), new_patient_payload(cpf='123', pin='12', fullName='A'), format='json')
    assert r.status_code == 400
    assert r.data['code'] == 'VALIDATION_ERROR'
    assert r.data['message'] == 'Payload inválido'
    assert {'cpf', 'pin', 'fullName'} <= set(r.data['details'])


def test_non_ascii_digits_are_not_accepted(professional):
    client = client_for(professional)
    r = client.post(reverse('patients'), new_patient_payload(cpf='١' * 11, pin='١٢٣٤'), format='json')
    assert r.status_code == 400
    assert {'cpf', 'pin'} <= set(r.data['details'])
    assert not Patient.objects.filter(cpf='١' * 11).exists()

    r = APIClient().post(reverse('patient_pin_login_view'), {'cpf': '１２３４５６７８９０１', 'pin': '1234'}, format='json')
    assert r.status_code == 400


def test_list_filters_and_clamps_limit(professional):
    make_patient(full_name='Ana Lima', stage=Patient.Stage.IN_TREATMENT)
    make_patient(full_name='Bruno Lima', status=Patient.Status.AT_RISK)
    make_patient(full_name='Carla Dias')
    client = client_for(professional)

    r = client.get(reverse('patients'), {'q': 'lima'})
    assert r.status_code == 200
    assert r.data['meta']['total'] == 2
    assert {p['fullName'] for p in r.data['data']} == {'Ana Lima', 'Bruno Lima'}

    r = client.get(reverse('patients'), {'status': 'at_risk'})
    assert [p['fullName'] for p in r.data['data']] == ['Bruno Lima']

    r = client.get(reverse('patients'), {'limit': 1000, 'offset': -5})
    assert r.data['meta'] == {'total': 3, 'limit': 100, 'offset': 0}


def test_search_requires_query(professional, patient):
    client = client_for(professional)
    assert client.get(reverse('patients_search')).status_code == 400
    r = client.get(reverse('patients_search'), {'q': '123456'})
    assert r.status_code == 200
    assert [p['id'] for p in r.data['data']] == [patient.id]


def test_update_stage_records_history(professional, patient):
    client = client_for(professional)
    r = client.put(
        reverse('patient_detail', args=[patient.id]),
        {'stage': 'post_treatment', 'reason': 'Fim da quimioterapia'},
        format='json',
    )
    assert r.status_code == 200
    assert r.data['stage'] == 'post_treatment'
    latest = PatientStatusHistory.objects.filter(patient=patient).first()
    assert latest.stage == 'post_treatment'
    assert latest.reason == 'Fim da quimioterapia'
    assert AuditLog.objects.get(action='PATIENT_UPDATED').details == {'changes': ['stage']}


def test_update_requires_a_field(professional, patient):
    client = client_for(professional)
    r = client.put(reverse('patient_detail', args=[patient.id]), {'reason': 'nada'}, format='json')
    assert r.status_code == 400


def test_pin_reset_unblocks_patient(professional, patient):
    Patient.objects.filter(id=patient.id).update(pin_attempts=3, pin_blocked_until=timezone.now() + timedelta(minutes=10))
    client = client_for(professional)
    r = client.put(reverse('patient_detail', args=[patient.id]), {'pin': '987654'}, format='json')
    assert r.status_code == 200
    patient.refresh_from_db()
    assert patient.pin_attempts == 0 and patient.pin_blocked_until is None
    assert check_password('987654', patient.pin_hash)


def test_unknown_patient_is_not_found(professional):
    r = client_for(professional).get(reverse('patient_detail', args=[999]))
    assert r.status_code == 404
    assert r.data == {'code': 'NOT_FOUND', 'message': 'Paciente não encontrado'}


def test_professional_endpoints_reject_anonymous_and_patients(patient):
    r = APIClient().get(reverse('patients'))
    assert r.status_code == 401
    assert r.data['code'] == 'UNAUTHENTICATED'

    r = patient_client(patient).get(reverse('patients'))
    assert r.status_code == 403
    assert r.data['code'] == 'FORBIDDEN'


def test_user_without_role_is_forbidden(patient):
    r = client_for(make_professional(roles=())).get(reverse('patients'))
    assert r.status_code == 403


def test_patient_home_lists_next_appointments(professional, patient):
    patient.audio_material_url = 'https://example.org/audio.mp3'
    patient.save()
    now = timezone.now()
    soon = make_appointment(patient, professional, starts_at=now + timedelta(days=1))
    make_appointment(patient, professional, starts_at=now - timedelta(days=1))
    make_appointment(patient, professional, starts_at=now + timedelta(days=2), status=Appointment.Status.CANCELED)

    r = patient_client(patient).get(reverse('patient_me'))
    assert r.status_code == 200
    assert r.data['patient']['id'] == patient.id
    assert [a['id'] for a in r.data['nextAppointments']] == [soon.id]
    assert r.data['audioMaterials'] == [{'title': 'Material educativo', 'url': 'https://example.org/audio.mp3'}]


def test_patient_me_appointments_are_future_and_ascending(professional, patient):
    now = timezone.now()
    later = make_appointment(patient, professional, starts_at=now + timedelta(days=5))
    sooner = make_appointment(patient, professional, starts_at=now + timedelta(days=1))
    make_appointment(patient, professional, starts_at=now - timedelta(days=1))
    other = make_patient()
    make_appointment(other, professional, starts_at=now + timedelta(days=3))

    r = patient_client(patient).get(reverse('patient_me_appointments'))
    assert r.status_code == 200
    assert [a['id'] for a in r.data['data']] == [sooner.id, later.id]
