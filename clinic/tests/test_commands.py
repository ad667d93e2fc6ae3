from decimal import Decimal
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from clinic.models import Department, Doctor, Patient, User

pytestmark = pytest.mark.django_db


def run(*args, **kwargs) -> str:
    out = StringIO()
    call_command(*args, stdout=out, **kwargs)
    return out.getvalue()


def test_check_integrity_clean(doctor, patient):
    assert 'No integrity issues found.' in run('check_integrity')


def test_check_integrity_stale_rating(doctor):
    Doctor.objects.filter(pk=doctor.pk).update(rating=Decimal('4.50'), total_reviews=3)
    output = run('check_integrity')
    assert f'Doctor {doctor.doctor_id} rating' in output
    assert '1 integrity issues found' in output

    with pytest.raises(CommandError):
        run('check_integrity', '--strict')

    output = run('check_integrity', '--fix')
    assert 'Fixed 1 ratings' in output
    doctor.refresh_from_db()
    assert doctor.rating == Decimal('0.00')
    assert doctor.total_reviews == 0


def test_check_integrity_wrong_department_code(doctor):
    other = Department.objects.create(department_id='DEPT002', code='ORTH', name='Orthopedics')
    Doctor.objects.filter(pk=doctor.pk).update(department=other)
    output = run('check_integrity')
    assert f'Doctor {doctor.doctor_id} is coded CARD but belongs to ORTH' in output


def test_check_env_lists_services():
    output = run('check_env')
    assert 'service doctors:' in output


def test_ensure_test_users_is_idempotent():
    run('ensure_test_users')
    run('ensure_test_users')
    assert User.objects.filter(email__endswith='@test.local').count() == 4
    assert User.objects.get(email='doctor@test.local').doctor_profile is not None


def test_seed_data_small_run():
    output = run('seed_data', '--patients', '2', '--doctors-per-department', '1')
    assert 'Seed complete' in output
    assert Department.objects.count() == 12
    assert Doctor.objects.count() == 12
    assert Patient.objects.count() == 2
    run('seed_data', '--patients', '2', '--doctors-per-department', '1')
    assert Doctor.objects.count() == 12
    assert 'No integrity issues found.' in run('check_integrity')
