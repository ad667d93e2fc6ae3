import pytest

from clinic.models import Notification
from clinic.services import notifications as svc

from .factories import make_user

pytestmark = pytest.mark.django_db


def test_notify_stores_row(patient):
    n = svc.notify(patient.user, title='Reminder', message='See you tomorrow', notification_type='appointment',
                   data={'appointment_id': 'APT001'})
    assert n.recipient == patient.user
    assert not n.is_read
    assert svc.unread_count(patient.user) == 1
    assert svc.notify(None, title='x', message='y') is None


def test_list_filters_unread_and_type(client_for, patient):
    svc.notify(patient.user, title='One', message='a', notification_type='appointment')
    read = svc.notify(patient.user, title='Two', message='b', notification_type='billing')
    svc.mark_read(read)
    client = client_for(patient.user)

    assert client.get('/api/notifications').json()['pagination']['total'] == 2
    unread = client.get('/api/notifications?unread=true').json()['data']
    assert [n['title'] for n in unread] == ['One']
    billing = client.get('/api/notifications?type=billing').json()['data']
    assert [n['title'] for n in billing] == ['Two']
    assert client.get('/api/notifications/unread-count').json()['data'] == {'unread': 1}


def test_mark_read_is_scoped_to_recipient(client_for, patient):
    other = make_user('receptionist')
    theirs = svc.notify(other, title='Private', message='x')
    mine = svc.notify(patient.user, title='Mine', message='y')
    client = client_for(patient.user)

    assert client.post(f'/api/notifications/{theirs.id}/read').status_code == 404
    r = client.post(f'/api/notifications/{mine.id}/read')
    assert r.status_code == 200
    assert r.json()['data']['is_read'] is True
    assert r.json()['data']['read_at'] is not None


def test_read_all_only_touches_own(client_for, patient):
    other = make_user('receptionist')
    svc.notify(patient.user, title='A', message='a')
    svc.notify(patient.user, title='B', message='b')
    svc.notify(other, title='C', message='c')
    r = client_for(patient.user).post('/api/notifications/read-all')
    assert r.json()['data'] == {'updated': 2}
    assert svc.unread_count(other) == 1


def test_broadcast_requires_admin(client_for, receptionist):
    r = client_for(receptionist).post('/api/notifications/broadcast', {'title': 'Hi', 'message': 'All'},
                                      format='json')
    assert r.status_code == 403


def test_broadcast_by_role(client_for, admin_user, doctor, patient):
    r = client_for(admin_user).post('/api/notifications/broadcast',
                                    {'title': 'Staff meeting', 'message': 'Room 2 at 5pm', 'role': 'doctor'},
                                    format='json')
    assert r.status_code == 200
    assert r.json()['data'] == {'recipients': 1}
    assert Notification.objects.filter(recipient=doctor.user, title='Staff meeting').exists()
    assert not Notification.objects.filter(recipient=patient.user).exists()


def test_unauthenticated_is_rejected(api_client):
    assert api_client.get('/api/notifications').status_code == 401
