from decimal import Decimal

import pytest

from clinic.models import MedicalRecord
from clinic.services import records as svc

from .factories import make_appointment, make_doctor, make_patient

pytestmark = pytest.mark.django_db


def create_record(client, patient, **extra):
    payload = {'patient_id': patient.patient_id, 'chief_complaint': 'Shortness of breath',
               'diagnosis': 'Mild asthma'}
    payload.update(extra)
    return client.post('/api/medical-records', payload, format='json')


@pytest.mark.parametrize('weight,height,expected', [
    (70, 175, Decimal('22.9')),
    (Decimal('55.5'), Decimal('160.0'), Decimal('21.7')),
    (None, 170, None),
    (60, None, None),
])
def test_compute_bmi(weight, height, expected):
    assert svc.compute_bmi(weight, height) == expected


def test_doctor_creates_record_under_own_profile(client_for, doctor, patient):
    r = create_record(client_for(doctor.user), patient, vital_signs={'weight': 70, 'height': 175})
    assert r.status_code == 201
    data = r.json()['data']
    assert data['record_id'].startswith('CARD-MR-')
    assert data['doctor_id'] == doctor.doctor_id
    assert data['vital_signs']['bmi'] == 22.9
    assert len(data['vital_sign_history']) == 1


def test_admin_must_name_the_doctor(client_for, admin_user, doctor, patient):
    client = client_for(admin_user)
    r = create_record(client, patient)
    assert r.status_code == 400
    assert 'doctor_id' in r.json()['error']['details']
    assert create_record(client, patient, doctor_id=doctor.doctor_id).status_code == 201


def test_record_appointment_must_match_patient(client_for, doctor, patient):
    appt = make_appointment(doctor, make_patient())
    r = create_record(client_for(doctor.user), patient, appointment_id=appt.appointment_id)
    assert r.status_code == 400
    assert 'appointment_id' in r.json()['error']['details']


def test_receptionist_cannot_see_records(client_for, receptionist):
    assert client_for(receptionist).get('/api/medical-records').status_code == 403
    r = client_for(receptionist).post('/api/medical-records', {}, format='json')
    assert r.status_code == 403


def test_patient_reads_only_own_records(client_for, doctor, patient):
    mine = svc.create_record(patient=patient, doctor=doctor, created_by=doctor.user, chief_complaint='Cough')
    other = svc.create_record(patient=make_patient(), doctor=doctor, created_by=doctor.user, chief_complaint='Rash')
    client = client_for(patient.user)
    body = client.get('/api/medical-records').json()
    assert [r['record_id'] for r in body['data']] == [mine.record_id]
    assert client.get(f'/api/medical-records/{other.record_id}').status_code == 404
    assert client.put(f'/api/medical-records/{mine.record_id}', {'notes': 'x'}, format='json').status_code == 403


def test_only_treating_doctor_updates(client_for, doctor, patient, department):
    record = svc.create_record(patient=patient, doctor=doctor, created_by=doctor.user, chief_complaint='Cough')
    other = make_doctor(department)
    r = client_for(other.user).put(f'/api/medical-records/{record.record_id}', {'diagnosis': 'Flu'}, format='json')
    assert r.status_code == 403
    r = client_for(doctor.user).put(f'/api/medical-records/{record.record_id}', {'diagnosis': 'Flu'}, format='json')
    assert r.status_code == 200
    assert r.json()['data']['diagnosis'] == 'Flu'


def test_delete_is_soft(client_for, doctor, patient):
    record = svc.create_record(patient=patient, doctor=doctor, created_by=doctor.user, chief_complaint='Cough')
    client = client_for(doctor.user)
    assert client.delete(f'/api/medical-records/{record.record_id}').status_code == 200
    assert MedicalRecord.objects.get(pk=record.pk).status == 'deleted'
    assert client.get(f'/api/medical-records/{record.record_id}').status_code == 404
    assert client.get('/api/medical-records').json()['pagination']['total'] == 0


def test_vital_signs_merge_into_snapshot(client_for, doctor, patient):
    record = svc.create_record(patient=patient, doctor=doctor, created_by=doctor.user, chief_complaint='Fever',
                               vital_signs={'temperature': 38.5})
    client = client_for(doctor.user)
    r = client.post(f'/api/medical-records/{record.record_id}/vital-signs',
                    {'heart_rate': 88, 'blood_pressure_systolic': 120, 'blood_pressure_diastolic': 80},
                    format='json')
    assert r.status_code == 201
    record.refresh_from_db()
    assert record.vital_signs == {'temperature': 38.5, 'heart_rate': 88.0,
                                  'blood_pressure_systolic': 120.0, 'blood_pressure_diastolic': 80.0}


def test_vital_sign_ranges(client_for, doctor, patient):
    record = svc.create_record(patient=patient, doctor=doctor, created_by=doctor.user, chief_complaint='Fever')
    client = client_for(doctor.user)
    url = f'/api/medical-records/{record.record_id}/vital-signs'
    assert client.post(url, {'heart_rate': 250}, format='json').status_code == 400
    assert client.post(url, {}, format='json').status_code == 400
    r = client.post(url, {'blood_pressure_systolic': 90, 'blood_pressure_diastolic': 95}, format='json')
    assert r.status_code == 400


def test_lab_results(client_for, doctor, patient):
    record = svc.create_record(patient=patient, doctor=doctor, created_by=doctor.user, chief_complaint='Fatigue')
    client = client_for(doctor.user)
    r = client.post(f'/api/medical-records/{record.record_id}/lab-results',
                    {'test_name': 'Hemoglobin', 'result_value': '10.2', 'unit': 'g/dL', 'is_abnormal': True},
                    format='json')
    assert r.status_code == 201
    listing = client_for(patient.user).get(f'/api/medical-records/{record.record_id}/lab-results').json()
    assert listing['data'][0]['test_name'] == 'Hemoglobin'
