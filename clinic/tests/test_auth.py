from datetime import timedelta

import pytest
from django.conf import settings
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APIClient

from clinic.models import AuditLog, Patient, PatientSession
from clinic.tests.factories import PASSWORD, PIN, make_professional, patient_client

pytestmark = pytest.mark.django_db

COOKIE = settings.PATIENT_SESSION_COOKIE_NAME


def pin_login(client, cpf, pin):
    return client.post(reverse('patient_pin_login_view'), {'cpf': cpf, 'pin': pin}, format='json')


def test_pin_login_sets_http_only_cookie(patient):
    client = APIClient()
    r = pin_login(client, '123.456.789-01', PIN)
    assert r.status_code == 204
    cookie = r.cookies[COOKIE]
    assert cookie.value
    assert cookie['httponly'] is True
    assert cookie['samesite'] == 'Strict'
    assert cookie['path'] == '/'

    session = PatientSession.objects.get(patient=patient)
    assert session.revoked_at is None
    assert session.expires_at > timezone.now() + timedelta(hours=settings.PATIENT_SESSION_TTL_HOURS - 1)
    assert AuditLog.objects.filter(action='PATIENT_SESSION_CREATED', entity_id=str(patient.id)).exists()

    # The test client keeps the cookie for later requests
    me = client.get(reverse('me_view'))
    assert me.status_code == 200
    assert me.data['kind'] == 'patient'
    assert me.data['patient']['id'] == patient.id


def test_pin_login_rejects_unknown_cpf_and_bad_payload(patient):
    client = APIClient()
    r = pin_login(client, '99999999999', PIN)
    assert r.status_code == 401
    assert r.data['code'] == 'INVALID_CREDENTIALS'

    r = pin_login(client, '123', 'abcd')
    assert r.status_code == 400
    assert r.data['code'] == 'VALIDATION_ERROR'
    assert set(r.data['details']) == {'cpf', 'pin'}


def test_wrong_pin_blocks_after_max_attempts(patient):
    client = APIClient()
    assert pin_login(client, patient.cpf, '0000').status_code == 401
    assert pin_login(client, patient.cpf, '0000').status_code == 401
    r = pin_login(client, patient.cpf, '0000')
    assert r.status_code == 423
    assert r.data['code'] == 'ACCOUNT_LOCKED'

    patient.refresh_from_db()
    assert patient.pin_attempts == 3
    assert patient.pin_blocked_until > timezone.now()
    assert AuditLog.objects.filter(action='PATIENT_PIN_FAILED').count() == 3

    # Even the right PIN is refused while blocked
    assert pin_login(client, patient.cpf, PIN).status_code == 423


def test_successful_login_resets_attempts(patient):
    client = APIClient()
    pin_login(client, patient.cpf, '0000')
    assert pin_login(client, patient.cpf, PIN).status_code == 204
    patient.refresh_from_db()
    assert patient.pin_attempts == 0
    assert patient.pin_blocked_until is None


def test_expired_block_allows_login(patient):
    Patient.objects.filter(id=patient.id).update(
        pin_attempts=3, pin_blocked_until=timezone.now() - timedelta(minutes=1)
    )
    assert pin_login(APIClient(), patient.cpf, PIN).status_code == 204


def test_pin_login_is_rate_limited(patient):
    client = APIClient()
    for _ in range(5):
        assert pin_login(client, '99999999999', PIN).status_code == 401
    r = pin_login(client, '99999999999', PIN)
    assert r.status_code == 429
    assert r.data['code'] == 'RATE_LIMITED'
    assert 'Retry-After' in r


def test_expired_cookie_is_rejected_and_cleared(patient):
    client = patient_client(patient, expires_in=-timedelta(minutes=5))
    r = client.get(reverse('patient_me'))
    assert r.status_code == 401
    assert r.data['code'] == 'UNAUTHENTICATED'
    assert r.cookies[COOKIE].value == ''


def test_forged_cookie_is_rejected(patient):
    client = APIClient()
    client.cookies[COOKIE] = 'not-a-jwt'
    r = client.get(reverse('patient_me'))
    assert r.status_code == 401


def test_revoked_session_is_rejected(patient):
    client = patient_client(patient)
    PatientSession.objects.filter(patient=patient).update(revoked_at=timezone.now())
    assert client.get(reverse('patient_me')).status_code == 401


def test_patient_logout_revokes_session(patient):
    client = patient_client(patient)
    r = client.post(reverse('logout_view'), {}, format='json')
    assert r.status_code == 204
    assert r.cookies[COOKIE].value == ''
    assert PatientSession.objects.get(patient=patient).revoked_at is not None
    assert AuditLog.objects.filter(action='PATIENT_SESSION_REVOKED').exists()


def test_logout_with_expired_cookie_still_succeeds(patient):
    client = patient_client(patient, expires_in=-timedelta(minutes=1))
    r = client.post(reverse('logout_view'), {}, format='json')
    assert r.status_code == 204
    assert r.cookies[COOKIE].value == ''
    assert not AuditLog.objects.filter(action='PATIENT_SESSION_REVOKED').exists()


def test_logout_ignores_stale_bearer_token():
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION='Bearer garbage')
    r = client.post(reverse('logout_view'), {'refresh': 'garbage'}, format='json')
    assert r.status_code == 204


def test_professional_login_me_refresh_and_logout():
    user = make_professional(email='ana@rotaonco.test')
    client = APIClient()
    r = client.post(reverse('login_view'), {'email': 'ANA@rotaonco.test ', 'password': PASSWORD}, format='json')
    assert r.status_code == 200
    assert r.data['access'] and r.data['refresh']
    assert r.data['user']['id'] == user.id
    assert r.data['user']['roles'] == ['professional']
    refresh = r.data['refresh']

    client.credentials(HTTP_AUTHORIZATION=f"Bearer {r.data['access']}")
    me = client.get(reverse('me_view'))
    assert me.status_code == 200
    assert me.data['kind'] == 'professional'
    assert me.data['user']['email'] == 'ana@rotaonco.test'

    rr = APIClient().post(reverse('jwt_refresh_view'), {'refresh': refresh}, format='json')
    assert rr.status_code == 200
    assert rr.data['access']
    rotated = rr.data['refresh']

    out = client.post(reverse('logout_view'), {'refresh': rotated}, format='json')
    assert out.status_code == 204
    again = APIClient().post(reverse('jwt_refresh_view'), {'refresh': rotated}, format='json')
    assert again.status_code == 401


def test_professional_login_failure_is_audited():
    make_professional(email='ana@rotaonco.test')
    r = APIClient().post(reverse('login_view'), {'email': 'ana@rotaonco.test', 'password': 'wrong'}, format='json')
    assert r.status_code == 401
    assert r.data['code'] == 'INVALID_CREDENTIALS'
    assert r.data['message'] == 'E-mail ou senha inválidos'
    assert AuditLog.objects.filter(action='LOGIN_FAILED').count() == 1


def test_me_requires_authentication():
    r = APIClient().get(reverse('me_view'))
    assert r.status_code == 401
    assert r.data['code'] == 'UNAUTHENTICATED'


def test_stale_cookie_does_not_block_pin_login(patient):
    client = APIClient()
    client.cookies[COOKIE] = 'stale'
    assert pin_login(client, patient.cpf, PIN).status_code == 204
