from datetime import time

import pytest

from clinic.models import Doctor
from clinic.services import reviews, schedules
from clinic.services.appointments import change_status

from .factories import PASSWORD, make_appointment, make_doctor, make_patient, tomorrow

pytestmark = pytest.mark.django_db


def week_payload(open_day: int, **overrides):
    entries = []
    for day in range(7):
        entry = {'start_time': '09:00', 'end_time': '11:00', 'is_available': day == open_day, 'slot_duration': 30}
        if day == open_day:
            entry.update(overrides)
        entries.append(entry)
    return {'schedules': entries}


def completed_appointment(doctor, patient):
    appt = make_appointment(doctor, patient)
    change_status(appt, 'confirmed')
    change_status(appt, 'completed')
    return appt


def test_admin_creates_doctor(client_for, admin_user, department):
    r = client_for(admin_user).post('/api/doctors', {
        'email': 'minh@example.com',
        'password': PASSWORD,
        'full_name': 'Tran Van Minh',
        'specialty': 'Cardiology',
        'license_number': 'VN-CARD-3001',
        'department_id': department.department_id,
    }, format='json')
    assert r.status_code == 201
    assert r.json()['data']['doctor_id'].startswith('CARD-DOC-')


def test_duplicate_license_is_rejected(client_for, admin_user, doctor, department):
    r = client_for(admin_user).post('/api/doctors', {
        'email': 'other@example.com', 'password': PASSWORD, 'full_name': 'Other Doctor',
        'specialty': 'Cardiology', 'license_number': doctor.license_number,
        'department_id': department.department_id,
    }, format='json')
    assert r.status_code == 400
    assert 'license_number' in r.json()['error']['details']


def test_patient_cannot_create_doctor(client_for, patient, department):
    r = client_for(patient.user).post('/api/doctors', {}, format='json')
    assert r.status_code == 403


def test_doctor_edits_only_own_profile(client_for, doctor, department):
    other = make_doctor(department)
    client = client_for(doctor.user)
    r = client.put(f'/api/doctors/{doctor.doctor_id}', {'bio': 'Heart specialist'}, format='json')
    assert r.status_code == 200
    assert r.json()['data']['bio'] == 'Heart specialist'
    r = client.put(f'/api/doctors/{other.doctor_id}', {'bio': 'Nope'}, format='json')
    assert r.status_code == 403


def test_doctor_cannot_change_department(client_for, doctor, department):
    r = client_for(doctor.user).put(f'/api/doctors/{doctor.doctor_id}',
                                    {'department_id': department.department_id}, format='json')
    assert r.status_code == 403


def test_deactivate_doctor(client_for, admin_user, doctor):
    r = client_for(admin_user).delete(f'/api/doctors/{doctor.doctor_id}')
    assert r.status_code == 200
    doctor.refresh_from_db()
    assert doctor.is_active is False
    assert doctor.user.is_active is False


def test_search_by_specialty(client_for, patient, department):
    make_doctor(department, specialty='Cardiology')
    make_doctor(department, specialty='Dermatology')
    body = client_for(patient.user).get('/api/doctors', {'specialty': 'derm'}).json()
    assert [d['specialty'] for d in body['data']] == ['Dermatology']


def test_weekly_schedule_fills_missing_days(client_for, patient, doctor):
    week = client_for(patient.user).get(f'/api/doctors/{doctor.doctor_id}/schedule').json()['data']
    assert len(week) == 7
    assert week[0]['day_name'] == 'Sunday'
    assert all(d['is_available'] is False and d['max_appointments'] == 0 for d in week)
    assert week[3]['start_time'] == '09:00'


def test_schedule_update_and_slots(client_for, doctor, patient):
    day = tomorrow()
    client = client_for(doctor.user)
    r = client.put(f'/api/doctors/{doctor.doctor_id}/schedule',
                   week_payload(schedules.day_index(day), break_start='10:00', break_end='10:30'), format='json')
    assert r.status_code == 200
    assert r.json()['data'][schedules.day_index(day)]['is_available'] is True

    slots = client.get(f'/api/doctors/{doctor.doctor_id}/available-slots', {'date': day.isoformat()})
    assert [s['start_time'] for s in slots.json()['data']['slots']] == ['09:00', '09:30', '10:30']

    make_appointment(doctor, patient, day=day, start=time(9, 0), end=time(9, 30))
    slots = client.get(f'/api/doctors/{doctor.doctor_id}/available-slots', {'date': day.isoformat()})
    assert [s['start_time'] for s in slots.json()['data']['slots']] == ['09:30', '10:30']


def test_schedule_rejects_duplicate_days(client_for, doctor):
    payload = {'schedules': [
        {'day_of_week': 1, 'start_time': '09:00', 'end_time': '12:00'},
        {'day_of_week': 1, 'start_time': '13:00', 'end_time': '17:00'},
    ]}
    r = client_for(doctor.user).put(f'/api/doctors/{doctor.doctor_id}/schedule', payload, format='json')
    assert r.status_code == 400


def test_slots_empty_on_closed_day(doctor):
    day = tomorrow()
    schedules.upsert_schedule(doctor, [{'day_of_week': (schedules.day_index(day) + 1) % 7,
                                        'start_time': time(9, 0), 'end_time': time(17, 0)}])
    assert schedules.available_slots(doctor, day) == []


def test_overlaps_is_half_open():
    assert schedules.overlaps(time(9, 0), time(9, 30), time(9, 15), time(9, 45))
    assert not schedules.overlaps(time(9, 0), time(9, 30), time(9, 30), time(10, 0))
    assert schedules.overlaps(time(9, 0), time(11, 0), time(9, 30), time(10, 0))


def test_verified_review_updates_rating(client_for, doctor, patient):
    appt = completed_appointment(doctor, patient)
    client = client_for(patient.user)
    r = client.post(f'/api/doctors/{doctor.doctor_id}/reviews',
                    {'rating': 4, 'comment': 'Kind and thorough', 'appointment_id': appt.appointment_id},
                    format='json')
    assert r.status_code == 201
    assert r.json()['data']['is_verified'] is True

    other = make_patient()
    reviews.create_review(doctor=doctor, patient=other, rating=5)
    doctor.refresh_from_db()
    assert float(doctor.rating) == 4.5
    assert doctor.total_reviews == 2

    r = client.post(f'/api/doctors/{doctor.doctor_id}/reviews',
                    {'rating': 1, 'appointment_id': appt.appointment_id}, format='json')
    assert r.status_code == 400
    assert r.json()['error']['code'] == 'business_rule'


def test_review_requires_completed_appointment(client_for, doctor, patient):
    appt = make_appointment(doctor, patient)
    r = client_for(patient.user).post(f'/api/doctors/{doctor.doctor_id}/reviews',
                                      {'rating': 5, 'appointment_id': appt.appointment_id}, format='json')
    assert r.status_code == 400


def test_only_patients_review(client_for, doctor, receptionist):
    r = client_for(receptionist).post(f'/api/doctors/{doctor.doctor_id}/reviews', {'rating': 5}, format='json')
    assert r.status_code == 403


def test_review_stats_are_refreshed_after_delete(client_for, doctor, patient):
    review = reviews.create_review(doctor=doctor, patient=patient, rating=3)
    reviews.create_review(doctor=doctor, patient=make_patient(), rating=5)
    client = client_for(patient.user)
    stats = client.get(f'/api/doctors/{doctor.doctor_id}/reviews/stats').json()['data']
    assert stats['total_reviews'] == 2
    assert stats['average_rating'] == 4.0
    assert stats['rating_distribution']['five_star'] == 1

    r = client.delete(f'/api/reviews/{review.id}')
    assert r.status_code == 200
    stats = client.get(f'/api/doctors/{doctor.doctor_id}/reviews/stats').json()['data']
    assert stats['total_reviews'] == 1
    assert Doctor.objects.get(pk=doctor.pk).total_reviews == 1


def test_review_author_check(client_for, doctor, patient):
    review = reviews.create_review(doctor=doctor, patient=patient, rating=3)
    r = client_for(make_patient().user).put(f'/api/reviews/{review.id}', {'rating': 1}, format='json')
    assert r.status_code == 403


def test_dashboard_is_scoped_to_the_doctor(client_for, doctor, department):
    other = make_doctor(department)
    client = client_for(doctor.user)
    assert client.get(f'/api/doctors/{doctor.doctor_id}/dashboard').status_code == 200
    assert client.get(f'/api/doctors/{other.doctor_id}/dashboard').status_code == 403


def test_only_one_current_work_experience(client_for, doctor):
    client = client_for(doctor.user)
    url = f'/api/doctors/{doctor.doctor_id}/experiences'
    first = client.post(url, {'title': 'Resident', 'organization': 'Bach Mai Hospital',
                              'start_date': '2015-01-01', 'is_current': True}, format='json')
    assert first.status_code == 201
    second = client.post(url, {'title': 'Cardiologist', 'organization': 'Cho Ray Hospital',
                               'start_date': '2020-01-01', 'is_current': True}, format='json')
    assert second.status_code == 201
    client.post(url, {'experience_type': 'education', 'title': 'MD', 'organization': 'Hanoi Medical University',
                      'start_date': '2008-09-01', 'end_date': '2014-06-30'}, format='json')

    work = client.get(url + '?type=work').json()['data']
    current = [e['title'] for e in work if e['is_current']]
    assert current == ['Cardiologist']

    summary = client.get(url + '/summary').json()['data']
    assert summary['by_type']['work'] == 2
    assert summary['by_type']['education'] == 1
    assert summary['total_work_years'] > 5
    assert [e['title'] for e in summary['current_positions']] == ['Cardiologist']


def test_experience_end_before_start_is_rejected(client_for, doctor):
    r = client_for(doctor.user).post(f'/api/doctors/{doctor.doctor_id}/experiences',
                                     {'title': 'Fellow', 'organization': 'Hue Central Hospital',
                                      'start_date': '2019-01-01', 'end_date': '2018-01-01'}, format='json')
    assert r.status_code == 400
    assert r.json()['error']['code'] == 'business_rule'


def test_other_doctor_cannot_add_experience(client_for, doctor, department):
    other = make_doctor(department)
    r = client_for(other.user).post(f'/api/doctors/{doctor.doctor_id}/experiences',
                                    {'title': 'Fellow', 'organization': 'X', 'start_date': '2019-01-01'},
                                    format='json')
    assert r.status_code == 403


def test_top_rated_and_helpful(client_for, doctor, patient, department):
    other = make_doctor(department)
    reviews.create_review(doctor=doctor, patient=patient, rating=3)
    review = reviews.create_review(doctor=other, patient=patient, rating=5)
    client = client_for(patient.user)

    top = client.get('/api/doctors/top-rated?limit=5').json()['data']
    assert [d['doctor_id'] for d in top] == [other.doctor_id, doctor.doctor_id]

    r = client.post(f'/api/reviews/{review.id}/helpful')
    assert r.json()['data']['helpful_count'] == 1
    assert client.post(f'/api/reviews/{review.id}/helpful').json()['data']['helpful_count'] == 2
