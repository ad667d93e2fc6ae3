import pytest

from clinic.exceptions import BusinessRuleError
from clinic.models import Department
from clinic.services import departments as svc

from .factories import make_doctor

pytestmark = pytest.mark.django_db


def test_admin_creates_department_with_generated_id(client_for, admin_user, department):
    r = client_for(admin_user).post('/api/departments', {'code': 'NEUR', 'name': 'Neurology'}, format='json')
    assert r.status_code == 201
    assert r.json()['data']['department_id'] == 'DEPT002'


def test_non_admin_cannot_create_department(client_for, receptionist):
    r = client_for(receptionist).post('/api/departments', {'code': 'NEUR', 'name': 'Neurology'}, format='json')
    assert r.status_code == 403


def test_duplicate_or_malformed_code_is_rejected(client_for, admin_user, department):
    client = client_for(admin_user)
    assert client.post('/api/departments', {'code': 'CARD', 'name': 'Again'}, format='json').status_code == 400
    assert client.post('/api/departments', {'code': 'card', 'name': 'Lower'}, format='json').status_code == 400


def test_list_is_paginated_and_filters_inactive(client_for, patient, department):
    Department.objects.create(department_id='DEPT009', code='SURG', name='Surgery', is_active=False)
    client = client_for(patient.user)
    body = client.get('/api/departments').json()
    assert [d['code'] for d in body['data']] == ['CARD']
    assert body['pagination']['total'] == 1
    body = client.get('/api/departments', {'is_active': 'all'}).json()
    assert body['pagination']['total'] == 2


def test_department_cache_is_invalidated_on_create(client_for, admin_user, department):
    client = client_for(admin_user)
    assert client.get('/api/departments').json()['pagination']['total'] == 1
    client.post('/api/departments', {'code': 'PEDI', 'name': 'Pediatrics'}, format='json')
    assert client.get('/api/departments').json()['pagination']['total'] == 2


def test_deactivate_blocked_while_doctors_are_active(client_for, admin_user, department):
    doctor = make_doctor(department)
    client = client_for(admin_user)
    r = client.delete(f'/api/departments/{department.department_id}')
    assert r.status_code == 400
    assert r.json()['error']['code'] == 'business_rule'

    doctor.is_active = False
    doctor.save()
    r = client.delete(f'/api/departments/{department.department_id}')
    assert r.status_code == 200
    department.refresh_from_db()
    assert department.is_active is False


def test_path_and_tree(client_for, patient, department):
    child = svc.create_department(name='Interventional Cardiology', code='INTC', parent=department)
    grandchild = svc.create_department(name='Cath Lab', code='CATH', parent=child)
    client = client_for(patient.user)

    r = client.get(f'/api/departments/{grandchild.department_id}/path')
    assert [d['code'] for d in r.json()['data']] == ['CARD', 'INTC', 'CATH']

    tree = client.get('/api/departments/tree').json()['data']
    assert len(tree) == 1
    assert tree[0]['children'][0]['children'][0]['code'] == 'CATH'

    children = client.get(f'/api/departments/{department.department_id}/children').json()['data']
    assert [d['code'] for d in children] == ['INTC']


def test_department_cannot_become_its_own_ancestor(department):
    child = svc.create_department(name='Child', code='CHLD', parent=department)
    with pytest.raises(BusinessRuleError):
        svc.update_department(department, parent=child)


def test_unknown_department_is_404(client_for, patient):
    r = client_for(patient.user).get('/api/departments/DEPT999')
    assert r.status_code == 404
    assert r.json()['error']['code'] == 'not_found'


def test_specialty_code_is_derived(client_for, admin_user, department):
    r = client_for(admin_user).post('/api/specialties', {'name': 'Internal Medicine'}, format='json')
    assert r.status_code == 201
    assert r.json()['data']['code'] == 'IM'
    assert r.json()['data']['specialty_id'] == 'SPEC001'


def test_room_ids_are_per_department(client_for, admin_user, department):
    client = client_for(admin_user)
    r = client.post('/api/rooms', {'department_id': department.department_id, 'room_number': '101'}, format='json')
    assert r.status_code == 201
    assert r.json()['data']['room_id'] == 'CARD-ROOM-001'
    r = client.post('/api/rooms', {'department_id': department.department_id, 'room_number': '101'}, format='json')
    assert r.status_code == 400


def test_room_availability_and_stats(client_for, patient, department):
    svc.create_room(department=department, room_number='101', room_type='consultation', capacity=1)
    svc.create_room(department=department, room_number='102', room_type='consultation', capacity=2,
                    status='occupied')
    svc.create_room(department=department, room_number='201', room_type='ward', capacity=6)
    client = client_for(patient.user)

    free = client.get(f'/api/rooms/availability?department_id={department.department_id}'
                      '&room_type=consultation').json()['data']
    assert [r['room_number'] for r in free] == ['101']

    stats = client.get('/api/rooms/stats').json()['data']
    assert stats['total'] == 3
    assert stats['available'] == 2
    assert stats['occupied'] == 1
    assert stats['by_type']['consultation'] == 2
    assert stats['average_capacity'] == 3.0
    assert stats['utilization_rate'] == 33.33


def test_update_cannot_deactivate_department_with_doctors(client_for, admin_user, doctor, department):
    client = client_for(admin_user)
    r = client.put(f'/api/departments/{department.department_id}', {'is_active': False}, format='json')
    assert r.status_code == 400
    assert r.json()['error']['details'] == {'doctors': 1}
    assert Department.objects.get(pk=department.pk).is_active is True

    doctor.is_active = False
    doctor.save(update_fields=['is_active'])
    r = client.put(f'/api/departments/{department.department_id}', {'is_active': False}, format='json')
    assert r.status_code == 200
    assert Department.objects.get(pk=department.pk).is_active is False
