"""
Management command to seed a development database.

Safe to run repeatedly: rows are looked up by their natural keys
(department id, email, room number) before anything is created.
"""
import random
from datetime import time, timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from clinic.models import (
    Appointment,
    Department,
    Doctor,
    DoctorSchedule,
    Medication,
    Patient,
    Specialty,
    User,
)
from clinic.services import billing, ids, records, reviews
from clinic.services.accounts import create_account
from clinic.services.departments import create_room, create_specialty, invalidate_department_cache
from clinic.services.doctors import create_doctor
from clinic.services.patients import create_patient

SEED_PASSWORD = 'Hospital@2024'

SPECIALTIES = {
    'CARD': ['Interventional Cardiology', 'Heart Failure'],
    'ORTH': ['Sports Medicine', 'Spine Surgery'],
    'PEDI': ['Neonatology', 'Pediatric Allergy'],
    'NEUR': ['Stroke Care', 'Epilepsy'],
    'DERM': ['Cosmetic Dermatology'],
    'GYNE': ['Obstetrics', 'Reproductive Medicine'],
    'EMER': ['Trauma Care'],
    'GENE': ['Family Medicine', 'Internal Medicine'],
    'SURG': ['General Surgery', 'Laparoscopic Surgery'],
    'OPHT': ['Retina', 'Cataract Surgery'],
    'ENT': ['Rhinology'],
    'PSYC': ['Child Psychiatry', 'Addiction Medicine'],
}

ROOMS = [('101', 'consultation', 1), ('102', 'consultation', 1), ('201', 'ward', 6)]

FIRST_NAMES = ['An', 'Binh', 'Chau', 'Dung', 'Giang', 'Hoa', 'Khanh', 'Linh', 'Minh', 'Nam', 'Phuong', 'Quan']
LAST_NAMES = ['Nguyen', 'Tran', 'Le', 'Pham', 'Hoang', 'Vu', 'Dang', 'Bui']

MEDICATIONS = [
    ('Paracetamol', 'Acetaminophen', 'tablet', '500mg', '1500'),
    ('Amoxicillin', 'Amoxicillin', 'capsule', '500mg', '3000'),
    ('Omeprazole', 'Omeprazole', 'capsule', '20mg', '2500'),
    ('Amlodipine', 'Amlodipine besylate', 'tablet', '5mg', '2000'),
    ('Cetirizine', 'Cetirizine', 'tablet', '10mg', '1200'),
]


class Command(BaseCommand):
    help = 'Seed departments, staff, doctors, patients and sample clinical data'

    def add_arguments(self, parser):
        parser.add_argument('--patients', type=int, default=20, help='Number of patients to ensure')
        parser.add_argument('--doctors-per-department', type=int, default=2)
        parser.add_argument('--seed', type=int, default=42, help='Random seed for repeatable data')

    def handle(self, *args, **options):
        self.rng = random.Random(options['seed'])
        with transaction.atomic():
            departments = self.create_departments()
            self.create_staff()
            doctors = self.create_doctors(departments, options['doctors_per_department'])
            patients = self.create_patients(options['patients'])
            self.create_medications()
            if not Appointment.objects.exists():
                self.create_clinical_data(doctors, patients)
        invalidate_department_cache()
        self.stdout.write(self.style.SUCCESS(
            f'Seed complete: {Department.objects.count()} departments, {Doctor.objects.count()} doctors, '
            f'{Patient.objects.count()} patients, {Appointment.objects.count()} appointments'
        ))

    def _name(self) -> str:
        return f'{self.rng.choice(LAST_NAMES)} {self.rng.choice(FIRST_NAMES)}'

    def _phone(self) -> str:
        return '09' + ''.join(str(self.rng.randint(0, 9)) for _ in range(8))

    def create_departments(self) -> list:
        result = []
        for number, (department_id, code) in enumerate(ids.DEPARTMENT_CODES.items(), start=1):
            dept, created = Department.objects.get_or_create(
                department_id=department_id,
                defaults={
                    'code': code,
                    'name': ids.department_name(code),
                    'location': f'Building {"ABC"[number % 3]}, floor {number % 5 + 1}',
                },
            )
            if created:
                for name in SPECIALTIES.get(code, []):
                    create_specialty(name=name, department=dept)
                for room_number, room_type, capacity in ROOMS:
                    create_room(department=dept, room_number=room_number, room_type=room_type, capacity=capacity)
                self.stdout.write(f'  department {department_id} {code}')
            result.append(dept)
        return result

    def create_staff(self):
        for email, role, name in (
            ('admin@hospital.vn', 'admin', 'System Administrator'),
            ('reception@hospital.vn', 'receptionist', 'Front Desk'),
        ):
            if not User.objects.filter(email=email).exists():
                user = create_account(email=email, password=SEED_PASSWORD, role=role, full_name=name,
                                      phone_number=self._phone())
                self.stdout.write(f'  {role} {user.staff_id}')

    def create_doctors(self, departments, per_department: int) -> list:
        result = []
        for dept in departments:
            specialties = list(Specialty.objects.filter(department=dept).values_list('name', flat=True))
            for n in range(1, per_department + 1):
                email = f'doctor{n}.{dept.code.lower()}@hospital.vn'
                doctor = Doctor.objects.filter(user__email=email).first()
                if doctor is None:
                    doctor = create_doctor(
                        email=email,
                        password=SEED_PASSWORD,
                        full_name=f'Dr. {self._name()}',
                        department=dept,
                        specialty=specialties[(n - 1) % len(specialties)] if specialties else dept.name,
                        license_number=f'VN-{dept.code}-{1000 + n}',
                        phone_number=self._phone(),
                        gender=self.rng.choice(['male', 'female']),
                        experience_years=self.rng.randint(2, 30),
                        consultation_fee=Decimal(self.rng.choice([150000, 200000, 300000, 500000])),
                        qualification='MD',
                    )
                    self.create_schedule(doctor)
                result.append(doctor)
        return result

    def create_schedule(self, doctor):
        # Monday to Friday, lunch break at noon; weekends off
        for day in range(7):
            DoctorSchedule.objects.update_or_create(
                doctor=doctor,
                day_of_week=day,
                defaults={
                    'start_time': time(8, 0),
                    'end_time': time(17, 0),
                    'is_available': 1 <= day <= 5,
                    'break_start': time(12, 0),
                    'break_end': time(13, 0),
                    'slot_duration': 30,
                },
            )

    def create_patients(self, count: int) -> list:
        result = []
        for n in range(1, count + 1):
            email = f'patient{n}@example.vn'
            patient = Patient.objects.filter(user__email=email).first()
            if patient is None:
                patient, _ = create_patient(
                    email=email,
                    full_name=self._name(),
                    password=SEED_PASSWORD,
                    phone_number=self._phone(),
                    gender=self.rng.choice(['male', 'female']),
                    date_of_birth=timezone.localdate() - timedelta(days=self.rng.randint(2, 80) * 365),
                    blood_type=self.rng.choice(['A+', 'B+', 'O+', 'AB+', 'O-']),
                )
            result.append(patient)
        return result

    def create_medications(self):
        for name, generic, form, strength, price in MEDICATIONS:
            Medication.objects.get_or_create(
                name=name, strength=strength,
                defaults={'generic_name': generic, 'dosage_form': form, 'unit_price': Decimal(price)},
            )

    def create_clinical_data(self, doctors, patients):
        """Past completed visits with records, reviews and a bill, plus upcoming bookings."""
        if not doctors or not patients:
            return
        today = timezone.localdate()
        for index, patient in enumerate(patients):
            doctor = doctors[index % len(doctors)]
            visit_day = today - timedelta(days=7 + index)
            start = time(9 + index % 3, 0)
            past = Appointment.objects.create(
                appointment_id=ids.generate_appointment_id(doctor.department),
                doctor=doctor,
                patient=patient,
                appointment_date=visit_day,
                start_time=start,
                end_time=time(start.hour, 30),
                appointment_type='consultation',
                reason='General check-up',
                status='completed',
            )
            record = records.create_record(
                patient=patient, doctor=doctor, created_by=doctor.user, appointment=past,
                visit_date=visit_day, chief_complaint='Routine examination', diagnosis='Healthy',
            )
            records.add_vital_signs(record, recorded_by=doctor.user, temperature=Decimal('36.8'),
                                    heart_rate=72, weight=Decimal('62.0'), height=Decimal('165.0'))
            if index % 2 == 0:
                reviews.create_review(doctor=doctor, patient=patient, rating=self.rng.randint(3, 5),
                                      comment='Attentive and clear explanations.', appointment=past)

            upcoming = today + timedelta(days=1 + index % 10)
            if 1 <= (upcoming.weekday() + 1) % 7 <= 5:
                Appointment.objects.create(
                    appointment_id=ids.generate_appointment_id(doctor.department),
                    doctor=doctor,
                    patient=patient,
                    appointment_date=upcoming,
                    start_time=time(14, 0),
                    end_time=time(14, 30),
                    appointment_type='follow_up',
                    reason='Follow-up visit',
                    status='scheduled',
                )

        first = patients[0]
        bill = billing.create_bill(
            patient=first,
            items=[
                {'item_type': 'consultation', 'description': 'Consultation', 'quantity': 1,
                 'unit_price': Decimal('200000')},
                {'item_type': 'lab_test', 'description': 'Blood panel', 'quantity': 1,
                 'unit_price': Decimal('150000')},
            ],
        )
        billing.record_bill_payment(bill, amount=bill.total_amount, payment_method='cash')
        self.stdout.write(f'  bill {bill.bill_id} paid')
