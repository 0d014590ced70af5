"""Runtime settings, request ids, health check and demo seeding."""
import logging

import pytest
from django.core.management import call_command
from django.urls import reverse
from rest_framework.test import APIClient

from clinic.middleware import RequestIdFilter, request_id_var
from clinic.models import Alert, Appointment, AuditLog, Patient, Setting, User
from clinic.tests.factories import client_for

pytestmark = pytest.mark.django_db


def test_admin_upserts_settings(admin):
    client = client_for(admin)
    url = reverse('setting_update', args=['reminders'])

    r = client.put(url, {'value': {'channel': 'whatsapp', 'hoursBefore': 24}, 'description': 'Lembretes'}, format='json')
    assert r.status_code == 200
    assert r.data['value'] == {'channel': 'whatsapp', 'hoursBefore': 24}
    assert r.data['updatedBy'] == admin.id

    r = client.put(url, {'value': False}, format='json')
    assert r.data['value'] is False
    assert r.data['description'] == 'Lembretes'
    assert Setting.objects.count() == 1
    assert AuditLog.objects.filter(action='SETTING_UPDATED', entity_id='reminders').count() == 2

    listed = client.get(reverse('settings'))
    assert [s['key'] for s in listed.data['data']] == ['reminders']


def test_settings_are_admin_only(professional):
    client = client_for(professional)
    assert client.get(reverse('settings')).status_code == 403
    assert client.put(reverse('setting_update', args=['x']), {'value': 1}, format='json').status_code == 403


def test_request_id_is_echoed_or_generated():
    client = APIClient()
    r = client.get('/healthz', HTTP_X_REQUEST_ID='abc-123')
    assert r['X-Request-ID'] == 'abc-123'

    r = client.get('/healthz')
    assert len(r['X-Request-ID']) == 32


def test_request_id_filter_tags_records():
    token = request_id_var.set('req-1')
    try:
        record = logging.LogRecord('clinic', logging.INFO, __file__, 1, 'hello', None, None)
        assert RequestIdFilter().filter(record) is True
        assert record.request_id == 'req-1'
    finally:
        request_id_var.reset(token)


def test_system_check_loads_url_configuration():
    call_command('check')
    assert APIClient().get(reverse('patients')).status_code == 401


def test_healthz_reports_database():
    r = APIClient().get('/healthz')
    assert r.status_code == 200
    assert r.json() == {'ok': True, 'db': True}


def test_unknown_route_under_api_is_404(professional):
    r = client_for(professional).get('/api/patients/abc')
    assert r.status_code == 404


def test_seed_demo_is_idempotent():
    call_command('seed_demo')
    Appointment.objects.filter(status=Appointment.Status.SCHEDULED).update(status=Appointment.Status.CONFIRMED)
    call_command('seed_demo')
    assert User.objects.filter(email='admin@rotaonco.local').get().role_names() == {'admin', 'professional'}
    assert Patient.objects.count() == 2
    assert Appointment.objects.count() == 4
    assert Alert.objects.count() == 2
    at_risk = Patient.objects.get(cpf='98765432100')
    assert at_risk.status == Patient.Status.AT_RISK

    login = APIClient().post(reverse('patient_pin_login_view'), {'cpf': '12345678901', 'pin': '1234'}, format='json')
    assert login.status_code == 204
