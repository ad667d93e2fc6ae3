import re

import pytest

from clinic.models import LoginHistory, User

from .factories import PASSWORD

pytestmark = pytest.mark.django_db


def register(client, **overrides):
    payload = {'email': 'lan@example.com', 'password': PASSWORD, 'full_name': 'Nguyen Thi Lan'}
    payload.update(overrides)
    return client.post('/api/auth/register', payload, format='json')


def test_register_patient_returns_tokens_and_patient_id(api_client):
    r = register(api_client)
    assert r.status_code == 201
    body = r.json()
    assert body['success'] is True
    data = body['data']
    assert data['user']['role'] == 'patient'
    assert re.match(r'^PAT-\d{6}-\d{3}$', data['user']['patient_id'])
    assert data['token_type'] == 'Bearer'
    assert data['access'] and data['refresh'] and data['token']
    assert User.objects.get(email='lan@example.com').patient_profile is not None


def test_register_rejects_duplicate_email(api_client):
    assert register(api_client).status_code == 201
    r = register(api_client, email='LAN@example.com')
    assert r.status_code == 400
    assert r.json()['error']['code'] == 'validation_error'
    assert 'email' in r.json()['error']['details']


def test_staff_registration_requires_admin(api_client):
    r = register(api_client, role='receptionist')
    assert r.status_code == 403
    assert r.json()['error']['code'] == 'forbidden'


def test_admin_can_register_receptionist(client_for, admin_user):
    r = register(client_for(admin_user), role='receptionist', email='desk@example.com')
    assert r.status_code == 201
    assert re.match(r'^REC-\d{6}-\d{3}$', r.json()['data']['user']['staff_id'])


def test_doctor_registration_needs_department_fields(client_for, admin_user):
    r = register(client_for(admin_user), role='doctor', email='doc@example.com')
    assert r.status_code == 400
    details = r.json()['error']['details']
    assert {'department_id', 'specialty', 'license_number'} <= set(details)


def test_admin_registers_doctor_with_coded_id(client_for, admin_user, department):
    r = register(client_for(admin_user), role='doctor', email='doc@example.com',
                 department_id=department.department_id, specialty='Cardiology', license_number='VN-CARD-2001')
    assert r.status_code == 201
    assert r.json()['data']['user']['doctor_id'].startswith('CARD-DOC-')


def test_login_with_email_then_use_bearer_token(api_client, patient):
    r = api_client.post('/api/auth/login', {'email': patient.user.email, 'password': PASSWORD}, format='json')
    assert r.status_code == 200
    data = r.json()['data']
    assert data['user']['patient_id'] == patient.patient_id
    assert {'access', 'refresh', 'token'} <= set(data)
    assert LoginHistory.objects.filter(user=patient.user, success=True).exists()

    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {data['access']}")
    me = api_client.get('/api/auth/me')
    assert me.status_code == 200
    assert me.json()['data']['email'] == patient.user.email


def test_login_with_legacy_token_header(api_client, patient):
    r = api_client.post('/api/auth/login', {'username': patient.user.username, 'password': PASSWORD},
                        format='json')
    api_client.credentials(HTTP_AUTHORIZATION=f"Token {r.json()['data']['token']}")
    assert api_client.get('/api/auth/verify').json()['data']['valid'] is True


def test_bad_credentials_are_401_and_recorded(api_client, patient):
    r = api_client.post('/api/auth/login', {'email': patient.user.email, 'password': 'wrong-pass'}, format='json')
    assert r.status_code == 401
    assert r.json()['error']['code'] == 'unauthorized'
    entry = LoginHistory.objects.get(email=patient.user.email, success=False)
    assert entry.failure_reason == 'invalid credentials'


def test_login_requires_an_identifier(api_client):
    r = api_client.post('/api/auth/login', {'password': PASSWORD}, format='json')
    assert r.status_code == 400


def test_me_requires_authentication(api_client):
    r = api_client.get('/api/auth/me')
    assert r.status_code == 401
    assert r.json()['success'] is False


def test_update_profile(client_for, patient):
    r = client_for(patient.user).patch('/api/auth/me', {'phone_number': '0912345678'}, format='json')
    assert r.status_code == 200
    patient.user.refresh_from_db()
    assert patient.user.phone_number == '0912345678'


def test_change_password(client_for, patient):
    client = client_for(patient.user)
    r = client.post('/api/auth/change-password', {'old_password': 'nope-nope', 'new_password': 'Clinic#2025x'},
                    format='json')
    assert r.status_code == 400
    r = client.post('/api/auth/change-password', {'old_password': PASSWORD, 'new_password': 'Clinic#2025x'},
                    format='json')
    assert r.status_code == 200
    patient.user.refresh_from_db()
    assert patient.user.check_password('Clinic#2025x')


def test_refresh_and_logout(api_client, patient):
    tokens = api_client.post('/api/auth/login', {'email': patient.user.email, 'password': PASSWORD},
                             format='json').json()['data']
    r = api_client.post('/api/auth/refresh', {'refresh': tokens['refresh']}, format='json')
    assert r.status_code == 200
    assert 'access' in r.json()['data']

    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")
    r = api_client.post('/api/auth/logout', {'refresh': tokens['refresh']}, format='json')
    assert r.status_code == 200
    assert r.json()['data']['blacklisted'] == 1
