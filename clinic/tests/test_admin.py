import pytest
from django.utils import timezone

from clinic.models import AuditEvent, LoginHistory, User
from clinic.services.audit import log_action

from .factories import PASSWORD, make_appointment, make_user

pytestmark = pytest.mark.django_db


def test_users_list_includes_inactive_by_default(client_for, admin_user, receptionist, patient):
    User.objects.filter(pk=receptionist.pk).update(is_active=False)
    client = client_for(admin_user)

    everyone = client.get('/api/admin/users').json()
    assert everyone['pagination']['total'] == 3

    inactive = client.get('/api/admin/users?is_active=false').json()['data']
    assert [u['id'] for u in inactive] == [receptionist.id]

    patients = client.get('/api/admin/users?role=patient').json()['data']
    assert [u['patient_id'] for u in patients] == [patient.patient_id]


def test_toggle_active_flips_and_audits(client_for, admin_user, receptionist):
    client = client_for(admin_user)
    r = client.post(f'/api/admin/users/{receptionist.id}/toggle-active')
    assert r.status_code == 200
    assert r.json()['data']['is_active'] is False
    assert r.json()['message'] == 'User deactivated'
    assert AuditEvent.objects.filter(action='user_toggle_active', object_id=str(receptionist.id)).exists()

    again = client.post(f'/api/admin/users/{receptionist.id}/toggle-active').json()
    assert again['data']['is_active'] is True


def test_admin_cannot_deactivate_self(client_for, admin_user):
    r = client_for(admin_user).post(f'/api/admin/users/{admin_user.id}/toggle-active')
    assert r.status_code == 400
    assert r.json()['error']['code'] == 'validation_error'


def test_login_history_filters(api_client, client_for, admin_user, receptionist):
    api_client.post('/api/auth/login', {'email': receptionist.email, 'password': 'wrong-pass'}, format='json')
    api_client.post('/api/auth/login', {'email': receptionist.email, 'password': PASSWORD}, format='json')

    client = client_for(admin_user)
    failed = client.get('/api/admin/login-history?success=false').json()['data']
    assert len(failed) == 1
    assert failed[0]['email'] == receptionist.email
    assert failed[0]['success'] is False

    mine = client.get(f'/api/admin/login-history?email={receptionist.email}').json()
    assert mine['pagination']['total'] == 2


def test_audit_filter_by_action(client_for, admin_user):
    log_action(user=admin_user, action='bill_create', object_type='bill', object_id='BILL00001')
    log_action(user=admin_user, action='doctor_deactivate', object_type='doctor', object_id='DOC00001')

    body = client_for(admin_user).get('/api/admin/audit?action=bill_create').json()
    assert body['pagination']['total'] == 1
    assert body['data'][0]['object_id'] == 'BILL00001'


def test_dashboard_counts(client_for, admin_user, doctor, patient):
    make_appointment(doctor, patient, day=timezone.localdate())
    data = client_for(admin_user).get('/api/admin/dashboard').json()['data']
    assert data['doctors'] == 1
    assert data['patients'] == 1
    assert data['departments'] == 1
    assert data['today_appointments'] == 1
    assert data['appointments_by_status']['scheduled'] == 1
    assert data['monthly_revenue'] == 0.0


@pytest.mark.parametrize('path', ['/api/admin/users', '/api/admin/login-history', '/api/admin/audit'])
def test_non_admin_is_forbidden(client_for, receptionist, path):
    assert client_for(receptionist).get(path).status_code == 403


@pytest.mark.parametrize('forwarded,expected', [
    ('203.0.113.7, 10.0.0.1', '203.0.113.7'),
    ('not-an-ip, 10.0.0.1', '127.0.0.1'),
    ('', '127.0.0.1'),
])
def test_login_history_records_a_valid_ip(api_client, receptionist, forwarded, expected):
    api_client.post('/api/auth/login', {'email': receptionist.email, 'password': PASSWORD}, format='json',
                    HTTP_X_FORWARDED_FOR=forwarded)
    assert LoginHistory.objects.get().ip_address == expected
