import re

import pytest

from clinic.models import Patient

from .factories import make_appointment, make_doctor, make_patient

pytestmark = pytest.mark.django_db


def test_staff_registers_patient_with_generated_password(client_for, receptionist):
    r = client_for(receptionist).post('/api/patients', {
        'email': 'hoa@example.com',
        'full_name': 'Le Thi Hoa',
        'phone_number': '0987654321',
        'gender': 'female',
        'blood_type': 'O+',
        'address': {'city': 'Ha Noi'},
    }, format='json')
    assert r.status_code == 201
    data = r.json()['data']
    assert re.match(r'^PAT-\d{6}-\d{3}$', data['patient_id'])
    assert data['initial_password']
    patient = Patient.objects.get(pk=data['patient_id'])
    assert patient.user.check_password(data['initial_password'])
    assert patient.address == {'city': 'Ha Noi'}


def test_invalid_phone_is_a_validation_error(client_for, receptionist):
    r = client_for(receptionist).post('/api/patients', {
        'email': 'x@example.com', 'full_name': 'Xuan', 'phone_number': '12345',
    }, format='json')
    assert r.status_code == 400
    assert 'phone_number' in r.json()['error']['details']


def test_patients_cannot_list_patients(client_for, patient):
    assert client_for(patient.user).get('/api/patients').status_code == 403


def test_patient_sees_only_own_record(client_for, patient):
    other = make_patient()
    client = client_for(patient.user)
    assert client.get(f'/api/patients/{patient.patient_id}').status_code == 200
    r = client.get(f'/api/patients/{other.patient_id}')
    assert r.status_code == 403
    assert r.json()['error']['code'] == 'forbidden'
    assert client.get('/api/patients/me').json()['data']['patient_id'] == patient.patient_id


def test_patient_updates_profile_but_not_status(client_for, patient):
    client = client_for(patient.user)
    r = client.put(f'/api/patients/{patient.patient_id}', {'allergies': ['penicillin']}, format='json')
    assert r.status_code == 200
    assert r.json()['data']['allergies'] == ['penicillin']
    r = client.put(f'/api/patients/{patient.patient_id}', {'status': 'inactive'}, format='json')
    assert r.status_code == 403


def test_deactivation_is_front_desk_only(client_for, patient, doctor, receptionist):
    assert client_for(doctor.user).delete(f'/api/patients/{patient.patient_id}').status_code == 403
    r = client_for(receptionist).delete(f'/api/patients/{patient.patient_id}')
    assert r.status_code == 200
    patient.refresh_from_db()
    assert patient.status == 'inactive'


def test_patient_search(client_for, receptionist):
    make_patient(full_name='Pham Quoc Bao')
    make_patient(full_name='Vo Thi Mai')
    body = client_for(receptionist).get('/api/patients', {'search': 'bao'}).json()
    assert [p['full_name'] for p in body['data']] == ['Pham Quoc Bao']


def test_doctor_sees_only_own_appointments_of_patient(client_for, patient, doctor, department):
    other = make_doctor(department)
    make_appointment(doctor, patient)
    make_appointment(other, patient)
    body = client_for(doctor.user).get(f'/api/patients/{patient.patient_id}/appointments').json()
    assert [a['doctor_id'] for a in body['data']] == [doctor.doctor_id]


def test_receptionist_cannot_read_medical_records(client_for, patient, receptionist):
    r = client_for(receptionist).get(f'/api/patients/{patient.patient_id}/medical-records')
    assert r.status_code == 403


def test_unknown_patient_is_404(client_for, receptionist):
    assert client_for(receptionist).get('/api/patients/PAT-000000-999').status_code == 404
