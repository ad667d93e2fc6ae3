from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from clinic.models import Department, User
from clinic.services import ids
from clinic.services.accounts import create_account
from clinic.services.doctors import create_doctor
from clinic.services.patients import create_patient

TEST_PASSWORD = "Test@12345"

TEST_SET = [
    ("admin@test.local", "admin"),
    ("doctor@test.local", "doctor"),
    ("patient@test.local", "patient"),
    ("receptionist@test.local", "receptionist"),
]


class Command(BaseCommand):
    help = f"Ensure one test account per role exists with password={TEST_PASSWORD} (idempotent)."

    def handle(self, *args, **opts):
        for email, role in TEST_SET:
            user = User.objects.filter(email=email).first()
            if user is None:
                with transaction.atomic():
                    user = self.create(email, role)
            else:
                # Reset password, activation and role on existing accounts
                user.set_password(TEST_PASSWORD)
                user.role = role
                user.is_active = True
                user.save(update_fields=["password", "role", "is_active"])
            self.stdout.write(self.style.SUCCESS(f"ok: {email} ({role})"))
        self.stdout.write(self.style.SUCCESS("All test users ensured."))

    def create(self, email: str, role: str) -> User:
        name = f"Test {role.title()}"
        if role == "patient":
            patient, _ = create_patient(email=email, full_name=name, password=TEST_PASSWORD)
            return patient.user
        if role == "doctor":
            department = Department.objects.filter(is_active=True).order_by("department_id").first()
            if department is None:
                department, _ = Department.objects.get_or_create(
                    department_id="DEPT008",
                    defaults={"code": "GENE", "name": ids.department_name("GENE")},
                )
            if not department.is_active:
                raise CommandError(f"Department {department.department_id} is inactive")
            doctor = create_doctor(
                email=email, password=TEST_PASSWORD, full_name=name, department=department,
                specialty="General Practice", license_number=f"VN-{department.code}-9999",
            )
            return doctor.user
        return create_account(email=email, password=TEST_PASSWORD, role=role, full_name=name)
