from datetime import datetime

import pytest
from django.utils import timezone

from clinic.exceptions import IdSequenceExhausted
from clinic.models import Department, IdSequence, Room, Specialty
from clinic.services import ids

pytestmark = pytest.mark.django_db

JAN_2024 = timezone.make_aware(datetime(2024, 1, 15, 10, 0))


def test_doctor_ids_are_department_coded_and_sequential(department):
    first = ids.generate_doctor_id(department, now=JAN_2024)
    second = ids.generate_doctor_id(department, now=JAN_2024)
    assert first == 'CARD-DOC-202401-001'
    assert second == 'CARD-DOC-202401-002'
    assert ids.validate_id(first, 'doctor')


def test_sequences_are_separate_per_entity_and_month(department):
    assert ids.generate_appointment_id(department, now=JAN_2024) == 'CARD-APT-202401-001'
    assert ids.generate_medical_record_id(department, now=JAN_2024) == 'CARD-MR-202401-001'
    feb = timezone.make_aware(datetime(2024, 2, 1, 9, 0))
    assert ids.generate_appointment_id(department, now=feb) == 'CARD-APT-202402-001'


def test_fixed_prefix_ids():
    assert ids.generate_patient_id(now=JAN_2024) == 'PAT-202401-001'
    assert ids.generate_staff_id('admin', now=JAN_2024) == 'ADM-202401-001'
    assert ids.generate_staff_id('receptionist', now=JAN_2024) == 'REC-202401-001'
    assert ids.generate_bill_id(now=JAN_2024) == 'BILL-202401-001'


def test_sequence_exhaustion_raises(department):
    IdSequence.objects.create(prefix='CARD-RX-202401', last_value=ids.MAX_SEQUENCE)
    with pytest.raises(IdSequenceExhausted):
        ids.generate_prescription_id(department, now=JAN_2024)


def test_department_code_falls_back_to_known_ids():
    dept = Department(department_id='DEPT002', code='', name='Orthopedics')
    assert ids.department_code(dept) == 'ORTH'


@pytest.mark.parametrize('value,expected', [
    ('CARD-DOC-202401-001', 'CARD'),
    ('ENT-APT-202403-010', 'ENT'),
    ('PAT-202401-001', None),
    ('BILL-202401-003', None),
    ('DEPT001', None),
    ('', None),
])
def test_extract_department(value, expected):
    assert ids.extract_department(value) == expected


def test_extract_entity_and_period():
    assert ids.extract_entity_type('CARD-MR-202405-007') == 'MR'
    assert ids.extract_year_month('CARD-MR-202405-007') == (2024, 5)
    assert ids.extract_year_month('garbage') is None


def test_department_name():
    assert ids.department_name('NEUR') == 'Neurology'
    assert ids.department_name('XXXX') == 'Unknown Department'


def test_validate_id_rejects_unknown_kind():
    with pytest.raises(ValueError):
        ids.validate_id('X', 'spaceship')
    assert not ids.validate_id('CARD-DOC-2024-1', 'doctor')


def test_room_ids_continue_after_highest(department):
    Room.objects.create(room_id='CARD-ROOM-004', room_number='104', department=department)
    assert ids.generate_room_id(department) == 'CARD-ROOM-005'


def test_department_and_specialty_ids(department):
    assert ids.generate_department_id() == 'DEPT002'
    Specialty.objects.create(specialty_id='SPEC007', name='Cardiology', code='CARD')
    assert ids.generate_specialty_id() == 'SPEC008'


@pytest.mark.parametrize('name,code', [
    ('Cardiology', 'CARD'),
    ('Internal Medicine', 'IM'),
    ('ear nose throat', 'ENT'),
    ('', 'SPEC'),
])
def test_specialty_code(name, code):
    assert ids.specialty_code(name) == code


def test_prescription_item_id():
    assert ids.prescription_item_id('CARD-RX-202401-001', 2) == 'CARD-RX-202401-001_002'


@pytest.mark.parametrize('value,kind', [
    ('BILL-202401-001\n', 'bill'),
    ('CARD-DOC-202401-001\n', 'doctor'),
    ('DEPT001\n', 'department'),
])
def test_validate_id_rejects_trailing_newline(value, kind):
    assert ids.validate_id(value.strip(), kind)
    assert not ids.validate_id(value, kind)


def test_room_ids_come_from_a_locked_sequence(department):
    first = ids.generate_room_id(department)
    second = ids.generate_room_id(department)
    assert (first, second) == ('CARD-ROOM-001', 'CARD-ROOM-002')
    assert IdSequence.objects.get(prefix='CARD-ROOM').last_value == 2


def test_department_ids_are_not_reissued(department):
    issued = ids.generate_department_id()
    assert issued == 'DEPT002'
    # reserved even though no department row was saved with it
    assert ids.generate_department_id() == 'DEPT003'
