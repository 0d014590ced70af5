from datetime import timedelta

import pytest
from django.urls import reverse
from django.utils import timezone

from clinic.models import Alert, AuditLog, Occurrence, Setting
from clinic.services import alerts as alert_service
from clinic.services.alerts import SYMPTOM_ALERT_KIND, symptom_severity
from clinic.tests.factories import client_for, make_appointment, make_patient, make_professional, patient_client

pytestmark = pytest.mark.django_db


@pytest.mark.parametrize('intensity,severity', [(0, 'low'), (3, 'low'), (4, 'medium'), (7, 'medium'), (8, 'high'), (10, 'high')])
def test_symptom_severity_bands(intensity, severity):
    assert symptom_severity(intensity) == severity


def test_professional_logs_occurrence_without_alert(professional, patient):
    client = client_for(professional)
    r = client.post(
        reverse('patient_occurrences', args=[patient.id]),
        {'kind': 'Febre', 'intensity': 6, 'notes': '<b>38.5</b> graus'},
        format='json',
    )
    assert r.status_code == 201
    assert r.data['source'] == 'professional'
    assert r.data['professionalId'] == professional.id
    assert r.data['notes'] == '38.5 graus'
    assert not Alert.objects.exists()

    listed = client.get(reverse('patient_occurrences', args=[patient.id]))
    assert [o['id'] for o in listed.data['data']] == [r.data['id']]


def test_occurrence_intensity_is_bounded(professional, patient):
    r = client_for(professional).post(
        reverse('patient_occurrences', args=[patient.id]), {'kind': 'Dor', 'intensity': 11}, format='json'
    )
    assert r.status_code == 400
    assert 'intensity' in r.data['details']


def test_patient_report_goes_to_next_appointment_professional(professional, patient):
    make_appointment(patient, professional, starts_at=timezone.now() + timedelta(days=2))
    r = patient_client(patient).post(
        reverse('patient_me_occurrences'), {'kind': 'Náusea', 'intensity': 9, 'notes': 'Desde ontem'}, format='json'
    )
    assert r.status_code == 201
    assert r.data['source'] == 'patient'
    assert r.data['professionalId'] == professional.id

    alert = Alert.objects.get(patient=patient)
    assert alert.kind == SYMPTOM_ALERT_KIND
    assert alert.severity == Alert.Severity.HIGH
    assert 'Náusea' in alert.details and '9/10' in alert.details
    log = AuditLog.objects.get(action='OCCURRENCE_CREATED')
    assert log.user_id is None


def test_patient_report_without_responsible_professional(patient, settings):
    settings.PATIENT_OCCURRENCE_FALLBACK_PROFESSIONAL_ID = ''
    r = patient_client(patient).post(reverse('patient_me_occurrences'), {'kind': 'Dor', 'intensity': 2}, format='json')
    assert r.status_code == 409
    assert r.data['code'] == 'PROFESSIONAL_NOT_FOUND'
    assert not Occurrence.objects.exists()


def test_patient_report_uses_configured_fallback(patient, settings):
    from_setting = make_professional()
    from_env = make_professional()
    settings.PATIENT_OCCURRENCE_FALLBACK_PROFESSIONAL_ID = str(from_env.id)
    client = patient_client(patient)

    r = client.post(reverse('patient_me_occurrences'), {'kind': 'Dor', 'intensity': 2}, format='json')
    assert r.status_code == 201
    assert r.data['professionalId'] == from_env.id

    Setting.objects.create(key='patient_occurrence_fallback_professional_id', value=from_setting.id)
    r = client.post(reverse('patient_me_occurrences'), {'kind': 'Dor', 'intensity': 2}, format='json')
    assert r.data['professionalId'] == from_setting.id
    assert Alert.objects.filter(severity=Alert.Severity.LOW).count() == 2


def test_list_alerts_filters(professional, patient):
    other = make_patient()
    Alert.objects.create(patient=patient, kind=SYMPTOM_ALERT_KIND, severity=Alert.Severity.HIGH)
    Alert.objects.create(patient=other, kind=SYMPTOM_ALERT_KIND, severity=Alert.Severity.LOW)
    Alert.objects.create(patient=patient, kind=SYMPTOM_ALERT_KIND, status=Alert.Status.CLOSED)
    client = client_for(professional)

    r = client.get(reverse('alerts'), {'status': 'open'})
    assert r.status_code == 200
    assert r.data['meta']['total'] == 2

    r = client.get(reverse('alerts'), {'status': 'open', 'severity': 'high', 'patientId': patient.id})
    assert len(r.data['data']) == 1
    assert r.data['data'][0]['severity'] == 'high'


def test_resolve_and_reopen_alert(professional, patient):
    alert = Alert.objects.create(patient=patient, kind=SYMPTOM_ALERT_KIND)
    client = client_for(professional)

    r = client.patch(reverse('alert_detail', args=[alert.id]), {'status': 'closed', 'details': 'Contato feito'}, format='json')
    assert r.status_code == 200
    assert r.data['status'] == 'closed'
    assert r.data['resolvedBy'] == professional.id
    assert r.data['resolvedAt'] is not None
    assert r.data['details'] == 'Contato feito'

    r = client.patch(reverse('alert_detail', args=[alert.id]), {'status': 'open'}, format='json')
    assert r.data['resolvedBy'] is None and r.data['resolvedAt'] is None
    assert AuditLog.objects.filter(action='ALERT_UPDATED', entity_id=str(alert.id)).count() == 2


def test_update_unknown_alert(professional):
    r = client_for(professional).patch(reverse('alert_detail', args=[999]), {'status': 'closed'}, format='json')
    assert r.status_code == 404


def test_fetch_single_alert(professional, patient):
    alert = Alert.objects.create(patient=patient, kind=SYMPTOM_ALERT_KIND, severity='high', details='Febre alta')
    client = client_for(professional)

    r = client.get(reverse('alert_detail', args=[alert.id]))
    assert r.status_code == 200
    assert r.data['id'] == alert.id
    assert r.data['severity'] == 'high'
    assert r.data['details'] == 'Febre alta'

    r = client.get(reverse('alert_detail', args=[999]))
    assert r.status_code == 404
    assert r.data['message'] == 'Alerta não encontrado'


def test_alert_changes_are_broadcast_after_commit(professional, patient, monkeypatch,
                                                   django_capture_on_commit_callbacks):
    sent = []

    class FakeLayer:
        async def group_send(self, group, message):
            sent.append((group, message))

    monkeypatch.setattr(alert_service, 'get_channel_layer', lambda: FakeLayer())
    alert = Alert.objects.create(patient=patient, kind=SYMPTOM_ALERT_KIND)

    with django_capture_on_commit_callbacks(execute=True):
        client_for(professional).patch(reverse('alert_detail', args=[alert.id]), {'status': 'acknowledged'}, format='json')

    assert len(sent) == 1
    group, message = sent[0]
    assert group == 'alerts'
    assert message['type'] == 'alert.event'
    assert message['event'] == 'updated'
    assert message['alert']['status'] == 'acknowledged'
