"""
End-to-end visit flow over real tokens.

A patient books, the front desk confirms, the doctor sees the patient
and writes a record, and the patient leaves a verified review. Every
request authenticates with the access token returned by the login
endpoint instead of forcing a user onto the client.
"""
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from ..models import Appointment, AuditEvent, Department, Doctor
from .factories import PASSWORD, make_doctor, make_patient, make_user, tomorrow


class VisitFlowTests(APITestCase):
    def setUp(self) -> None:
        self.department = Department.objects.create(department_id='DEPT001', code='CARD', name='Cardiology')
        self.doctor = make_doctor(self.department)
        self.patient = make_patient()
        self.receptionist = make_user('receptionist')

    def login(self, user) -> APIClient:
        client = APIClient()
        r = client.post('/api/auth/login', {'email': user.email, 'password': PASSWORD}, format='json')
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {r.json()['data']['access']}")
        return client

    def test_visit_from_booking_to_review(self):
        patient_client = self.login(self.patient.user)
        r = patient_client.post('/api/appointments', {
            'doctor_id': self.doctor.doctor_id,
            'appointment_date': tomorrow().isoformat(),
            'start_time': '10:00',
            'end_time': '10:30',
            'reason': 'Palpitations',
        }, format='json')
        self.assertEqual(r.status_code, status.HTTP_201_CREATED)
        appointment_id = r.json()['data']['appointment_id']

        desk = self.login(self.receptionist)
        r = desk.post(f'/api/appointments/{appointment_id}/confirm')
        self.assertEqual(r.json()['data']['status'], 'confirmed')

        doctor_client = self.login(self.doctor.user)
        r = doctor_client.post(f'/api/appointments/{appointment_id}/status', {'status': 'in_progress'},
                               format='json')
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        r = doctor_client.post('/api/medical-records', {
            'patient_id': self.patient.patient_id,
            'appointment_id': appointment_id,
            'chief_complaint': 'Palpitations after exercise',
            'diagnosis': 'Sinus tachycardia',
        }, format='json')
        self.assertEqual(r.status_code, status.HTTP_201_CREATED)
        r = doctor_client.post(f'/api/appointments/{appointment_id}/status', {'status': 'completed'},
                               format='json')
        self.assertEqual(r.json()['data']['status'], 'completed')
        self.assertEqual(Appointment.objects.get(pk=appointment_id).status, 'completed')

        r = patient_client.post(f'/api/doctors/{self.doctor.doctor_id}/reviews',
                                {'rating': 5, 'comment': 'Clear advice', 'appointment_id': appointment_id},
                                format='json')
        self.assertEqual(r.status_code, status.HTTP_201_CREATED)
        self.assertTrue(r.json()['data']['is_verified'])
        doctor = Doctor.objects.get(pk=self.doctor.pk)
        self.assertEqual(doctor.total_reviews, 1)

        records = patient_client.get('/api/medical-records').json()
        self.assertEqual(records['pagination']['total'], 1)
        self.assertTrue(AuditEvent.objects.filter(action='appointment_status', object_id=appointment_id).exists())

    def test_patient_token_cannot_reach_staff_endpoints(self):
        client = self.login(self.patient.user)
        self.assertEqual(client.get('/api/patients').status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(client.get('/api/reception/queue').status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(client.get('/api/admin/dashboard').status_code, status.HTTP_403_FORBIDDEN)

    def test_garbage_token_is_unauthorized(self):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION='Bearer not-a-token')
        r = client.get('/api/auth/me')
        self.assertEqual(r.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(r.json()['error']['code'], 'unauthorized')
