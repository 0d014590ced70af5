import pytest
from django.conf import settings
from django.core.management import call_command
from django.urls import reverse
from rest_framework.test import APIClient

from clinic.models import AuditLog, Occurrence, User
from clinic.tests.factories import PASSWORD, client_for, make_appointment, make_professional

pytestmark = pytest.mark.django_db

PNG_DATA_URL = 'data:image/png;base64,iVBORw0KGgo='


def invite_payload(**overrides):
    payload = {
        'name': 'Dr. Paulo Reis',
        'email': 'Paulo.Reis@RotaOnco.test',
        'documentId': '529.982.247-25',
        'specialty': 'Radioterapia',
        'phone': '(11) 98888-7777',
    }
    payload.update(overrides)
    return payload


def test_admin_invites_professional(admin):
    r = client_for(admin).post(reverse('professionals'), invite_payload(roles=['admin', 'root']), format='json')
    assert r.status_code == 201
    assert r.data['email'] == 'paulo.reis@rotaonco.test'
    assert r.data['documentId'] == '52998224725'
    assert r.data['phone'] == '11988887777'
    assert r.data['mustChangePassword'] is True
    assert r.data['roles'] == ['admin', 'professional']
    assert AuditLog.objects.filter(action='PROFESSIONAL_CREATED', user=admin).exists()

    login = APIClient().post(
        reverse('login_view'),
        {'email': 'paulo.reis@rotaonco.test', 'password': settings.PROFESSIONAL_DEFAULT_PASSWORD},
        format='json',
    )
    assert login.status_code == 200
    assert login.data['user']['mustChangePassword'] is True


def test_invite_conflicts_and_bad_document(admin):
    client = client_for(admin)
    assert client.post(reverse('professionals'), invite_payload(), format='json').status_code == 201

    r = client.post(reverse('professionals'), invite_payload(documentId='11144477735'), format='json')
    assert r.status_code == 409
    assert r.data['code'] == 'EMAIL_IN_USE'

    r = client.post(reverse('professionals'), invite_payload(email='outro@rotaonco.test'), format='json')
    assert r.status_code == 409
    assert r.data['code'] == 'DOCUMENT_IN_USE'

    r = client.post(reverse('professionals'), invite_payload(email='novo@rotaonco.test', documentId='123'), format='json')
    assert r.status_code == 400
    assert r.data['code'] == 'INVALID_DOCUMENT'


def test_only_admins_invite(professional):
    r = client_for(professional).post(reverse('professionals'), invite_payload(), format='json')
    assert r.status_code == 403


def test_directory_search_and_summary(professional):
    make_professional(name='Beatriz Nunes')
    inactive = make_professional(name='Carlos Mota')
    inactive.is_active = False
    inactive.save()
    make_professional(roles=(), name='Sem Papel')
    client = client_for(professional)

    r = client.get(reverse('professionals'), {'includeSummary': 'true'})
    assert r.status_code == 200
    assert r.data['meta']['total'] == 3
    assert r.data['summary'] == {'total': 3, 'active': 2, 'inactive': 1}

    r = client.get(reverse('professionals'), {'q': 'beatriz'})
    assert [p['name'] for p in r.data['data']] == ['Beatriz Nunes']
    assert 'summary' not in r.data

    r = client.get(reverse('professionals'), {'status': 'inactive'})
    assert [p['id'] for p in r.data['data']] == [inactive.id]


def test_onboarding_grants_professional_role():
    user = make_professional(roles=())
    client = client_for(user)
    payload = {'fullName': 'Dra. Lívia Prado', 'documentId': '390.533.447-05', 'specialty': 'Enfermagem'}

    r = client.post(reverse('professional_onboarding'), payload, format='json')
    assert r.status_code == 200
    assert r.data == {'status': 'created', 'userId': user.id, 'roles': ['professional']}
    user.refresh_from_db()
    assert user.document_id == '39053344705'
    assert user.name == 'Dra. Lívia Prado'

    r = client.post(reverse('professional_onboarding'), {**payload, 'specialty': 'Oncologia'}, format='json')
    assert r.data['status'] == 'updated'


def test_onboarding_rejects_document_of_someone_else(professional):
    user = make_professional(roles=())
    r = client_for(user).post(
        reverse('professional_onboarding'),
        {'fullName': 'Outra Pessoa', 'documentId': professional.document_id, 'specialty': 'Clínica'},
        format='json',
    )
    assert r.status_code == 409
    assert r.data['code'] == 'DOCUMENT_IN_USE'


def test_profile_update_and_avatar_validation(professional):
    client = client_for(professional)
    r = client.patch(
        reverse('professional_me'),
        {'specialty': '  Hematologia ', 'phone': '', 'avatarDataUrl': PNG_DATA_URL},
        format='json',
    )
    assert r.status_code == 200
    assert r.data['specialty'] == 'Hematologia'
    assert r.data['phone'] is None
    assert r.data['avatarUrl'] == PNG_DATA_URL

    r = client.patch(reverse('professional_me'), {'avatarDataUrl': 'data:image/gif;base64,R0lGOD=='}, format='json')
    assert r.status_code == 400
    assert 'avatarDataUrl' in r.data['details']

    r = client.patch(reverse('professional_me'), {'avatarDataUrl': None}, format='json')
    assert r.data['avatarUrl'] is None


def test_password_change(professional):
    User.objects.filter(id=professional.id).update(must_change_password=True)
    professional.refresh_from_db()
    client = client_for(professional)

    r = client.post(reverse('professional_me_password'),
                    {'currentPassword': 'errada', 'newPassword': 'Nova-Senha-2031'}, format='json')
    assert r.status_code == 400
    assert 'currentPassword' in r.data['details']

    r = client.post(reverse('professional_me_password'),
                    {'currentPassword': PASSWORD, 'newPassword': '12345678'}, format='json')
    assert r.status_code == 400
    assert 'newPassword' in r.data['details']

    r = client.post(reverse('professional_me_password'),
                    {'currentPassword': PASSWORD, 'newPassword': 'Nova-Senha-2031'}, format='json')
    assert r.status_code == 204
    professional.refresh_from_db()
    assert professional.check_password('Nova-Senha-2031')
    assert professional.must_change_password is False


def test_delete_professional(admin, patient):
    busy = make_professional()
    make_appointment(patient, busy)
    reporter = make_professional()
    Occurrence.objects.create(patient=patient, professional=reporter, kind='Dor', intensity=2, source='professional')
    free = make_professional()
    client = client_for(admin)

    assert client.delete(reverse('professional_delete', args=[busy.id])).status_code == 409
    assert client.delete(reverse('professional_delete', args=[reporter.id])).data['code'] == 'PROFESSIONAL_IN_USE'
    assert client.delete(reverse('professional_delete', args=[free.id])).status_code == 204
    assert not User.objects.filter(id=free.id).exists()
    log = AuditLog.objects.get(action='PROFESSIONAL_DELETED')
    assert log.entity_id == str(free.id)
    assert log.details['email'] == free.email

    assert client.delete(reverse('professional_delete', args=[free.id])).status_code == 404


def test_grant_role_command():
    user = make_professional(roles=(), email='nova@rotaonco.test')
    call_command('grant_role', 'NOVA@rotaonco.test', 'admin')
    assert user.role_names() == {'admin'}
