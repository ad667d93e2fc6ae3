import pytest
from django.utils import timezone

from clinic.exceptions import InvalidTransition
from clinic.models import Appointment
from clinic.services import reception as svc

from .factories import make_appointment, make_patient

pytestmark = pytest.mark.django_db


def test_queue_numbers_increase_per_day(client_for, receptionist, patient):
    client = client_for(receptionist)
    first = client.post('/api/reception/check-ins', {'patient_id': patient.patient_id}, format='json')
    second = client.post('/api/reception/check-ins', {'patient_id': make_patient().patient_id}, format='json')
    assert first.status_code == 201
    assert first.json()['data']['queue_number'] == 1
    assert second.json()['data']['queue_number'] == 2
    assert second.json()['message'] == 'Checked in as #2'

    queue = client.get('/api/reception/queue').json()['data']
    assert queue['total'] == 2
    assert [e['queue_number'] for e in queue['queue']] == [1, 2]


def test_check_in_confirms_scheduled_appointment(client_for, receptionist, patient, doctor):
    appt = make_appointment(doctor, patient, day=timezone.localdate())
    client = client_for(receptionist)
    payload = {'patient_id': patient.patient_id, 'appointment_id': appt.appointment_id}
    assert client.post('/api/reception/check-ins', payload, format='json').status_code == 201
    assert Appointment.objects.get(pk=appt.pk).status == 'confirmed'

    again = client.post('/api/reception/check-ins', payload, format='json')
    assert again.status_code == 400
    assert again.json()['error']['code'] == 'business_rule'


def test_check_in_appointment_must_belong_to_patient(client_for, receptionist, patient, doctor):
    appt = make_appointment(doctor, make_patient())
    r = client_for(receptionist).post('/api/reception/check-ins',
                                      {'patient_id': patient.patient_id, 'appointment_id': appt.appointment_id},
                                      format='json')
    assert r.status_code == 400


def test_doctors_cannot_check_in(client_for, doctor, patient):
    r = client_for(doctor.user).post('/api/reception/check-ins', {'patient_id': patient.patient_id}, format='json')
    assert r.status_code == 403


def test_check_in_status_machine(client_for, doctor, patient):
    entry = svc.check_in(patient=patient)
    client = client_for(doctor.user)
    url = f'/api/reception/check-ins/{entry.id}/status'
    assert client.post(url, {'status': 'in_consultation'}, format='json').status_code == 200
    r = client.post(url, {'status': 'waiting'}, format='json')
    assert r.status_code == 400
    assert r.json()['error']['code'] == 'invalid_transition'
    assert client.post(url, {'status': 'completed'}, format='json').json()['data']['status'] == 'completed'


def test_left_is_terminal(patient):
    entry = svc.check_in(patient=patient)
    svc.change_check_in_status(entry, 'left')
    with pytest.raises(InvalidTransition):
        svc.change_check_in_status(entry, 'in_consultation')


def test_daily_report(client_for, receptionist, patient, doctor):
    today = timezone.localdate()
    appt = make_appointment(doctor, patient, day=today)
    svc.check_in(patient=patient, appointment=appt)
    data = client_for(receptionist).get('/api/reception/reports/daily').json()['data']
    assert data['date'] == today.isoformat()
    assert data['total_appointments'] == 1
    assert data['appointments_by_status']['confirmed'] == 1
    assert data['check_ins'] == 1
    assert data['check_ins_by_status']['waiting'] == 1


def test_weekly_report_requires_start_date(client_for, receptionist):
    r = client_for(receptionist).get('/api/reception/reports/weekly')
    assert r.status_code == 400
    assert 'start_date' in r.json()['error']['details']


def test_weekly_report(client_for, receptionist, patient):
    svc.check_in(patient=patient)
    today = timezone.localdate()
    data = client_for(receptionist).get('/api/reception/reports/weekly',
                                        {'start_date': today.isoformat()}).json()['data']
    assert len(data['days']) == 7
    assert data['days'][0] == {'date': today.isoformat(), 'appointments': 0, 'check_ins': 1}
    assert data['total_check_ins'] == 1


def test_patient_flow(client_for, receptionist, patient):
    svc.check_in(patient=patient)
    data = client_for(receptionist).get('/api/reception/reports/patient-flow').json()['data']
    assert data['total'] == 1
    assert data['busiest_hour'] == timezone.localtime().hour
    assert sum(data['by_hour'].values()) == 1


def test_patient_flow_rejects_inverted_range(client_for, receptionist):
    r = client_for(receptionist).get('/api/reception/reports/patient-flow',
                                     {'date_from': '2024-02-10', 'date_to': '2024-02-01'})
    assert r.status_code == 400
