"""Small builders for test data, going through the service layer."""
import itertools
from datetime import time, timedelta

from django.utils import timezone

from clinic.models import User
from clinic.services.accounts import create_account
from clinic.services.appointments import create_appointment
from clinic.services.doctors import create_doctor
from clinic.services.patients import create_patient

PASSWORD = 'Hospital@2024'

_seq = itertools.count(1)


def make_user(role: str, **extra) -> User:
    n = next(_seq)
    return create_account(email=f'{role}{n}@clinic.test', password=PASSWORD, role=role,
                          full_name=extra.pop('full_name', f'{role.title()} {n}'), **extra)


def make_doctor(department, **extra):
    n = next(_seq)
    return create_doctor(
        email=f'doctor{n}@clinic.test',
        password=PASSWORD,
        full_name=extra.pop('full_name', f'Doctor {n}'),
        department=department,
        specialty=extra.pop('specialty', 'Cardiology'),
        license_number=extra.pop('license_number', f'VN-CARD-{1000 + n:04d}'),
        **extra,
    )


def make_patient(**extra):
    n = next(_seq)
    patient, _ = create_patient(email=f'patient{n}@clinic.test', password=PASSWORD,
                                full_name=extra.pop('full_name', f'Patient {n}'), **extra)
    return patient


def tomorrow():
    return timezone.localdate() + timedelta(days=1)


def make_appointment(doctor, patient, day=None, start=time(9, 0), end=time(9, 30), **fields):
    return create_appointment(doctor=doctor, patient=patient, appointment_date=day or tomorrow(),
                              start_time=start, end_time=end, **fields)
