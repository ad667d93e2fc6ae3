"""
Database models for the hospital management backend.

Entities carry human-readable primary keys built from the owning
department's code (``CARD-DOC-202401-001``); see
:mod:`clinic.services.ids` for how those keys are generated. Monetary
values are stored as ``Decimal`` with two places.
"""
from __future__ import annotations

from decimal import Decimal

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone

GENDER_CHOICES = [
    ('male', 'Male'),
    ('female', 'Female'),
    ('other', 'Other'),
]

BLOOD_TYPE_CHOICES = [(b, b) for b in ('A+', 'A-', 'B+', 'B-', 'AB+', 'AB-', 'O+', 'O-')]


def default_languages() -> list[str]:
    return ['Vietnamese']


# ---------------------------------------------------------------------------
# Organisation: departments, specialties, rooms
# ---------------------------------------------------------------------------

class Department(models.Model):
    """A hospital department such as Cardiology (``DEPT001`` / ``CARD``).

    ``code`` is the 3-4 letter prefix used in every ID minted for
    doctors, appointments, records and prescriptions of the department.
    Departments may be nested through ``parent``.
    """
    department_id = models.CharField(max_length=10, primary_key=True)
    code = models.CharField(max_length=4, unique=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    parent = models.ForeignKey(
        'self', null=True, blank=True, on_delete=models.SET_NULL, related_name='children'
    )
    location = models.CharField(max_length=255, blank=True)
    phone_number = models.CharField(max_length=15, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['department_id']

    def __str__(self) -> str:
        return f"{self.name} ({self.department_id})"


class Specialty(models.Model):
    specialty_id = models.CharField(max_length=10, primary_key=True)
    name = models.CharField(max_length=100)
    code = models.CharField(max_length=10)
    department = models.ForeignKey(
        Department, null=True, blank=True, on_delete=models.SET_NULL, related_name='specialties'
    )
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']
        verbose_name_plural = 'specialties'

    def __str__(self) -> str:
        return f"{self.name} ({self.code})"


class Room(models.Model):
    TYPE_CHOICES = [
        ('consultation', 'Consultation'),
        ('operating', 'Operating'),
        ('emergency', 'Emergency'),
        ('ward', 'Ward'),
        ('icu', 'ICU'),
        ('laboratory', 'Laboratory'),
    ]
    STATUS_CHOICES = [
        ('available', 'Available'),
        ('occupied', 'Occupied'),
        ('maintenance', 'Maintenance'),
        ('reserved', 'Reserved'),
    ]
    room_id = models.CharField(max_length=20, primary_key=True)
    room_number = models.CharField(max_length=20)
    department = models.ForeignKey(Department, on_delete=models.CASCADE, related_name='rooms')
    room_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='consultation', db_index=True)
    capacity = models.PositiveIntegerField(default=1)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='available', db_index=True)
    location = models.CharField(max_length=255, blank=True)
    notes = models.TextField(blank=True)
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['room_id']
        unique_together = [('department', 'room_number')]

    def __str__(self) -> str:
        return f"{self.room_number} ({self.room_id})"


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------

class User(AbstractUser):
    """Account profile shared by every role.

    Doctors and patients keep their clinical data on :class:`Doctor`
    and :class:`Patient`; admins and receptionists only carry a
    ``staff_id`` (``ADM-…`` / ``REC-…``).
    """
    ROLE_CHOICES = [
        ('admin', 'Administrator'),
        ('doctor', 'Doctor'),
        ('patient', 'Patient'),
        ('receptionist', 'Receptionist'),
    ]
    role = models.CharField(max_length=16, choices=ROLE_CHOICES, default='patient', db_index=True)
    email = models.EmailField(unique=True)
    full_name = models.CharField(max_length=100, blank=True)
    phone_number = models.CharField(max_length=15, blank=True)
    staff_id = models.CharField(max_length=32, unique=True, null=True, blank=True)

    @property
    def is_admin(self) -> bool:
        return self.role == 'admin' or self.is_superuser

    @property
    def display_name(self) -> str:
        return self.full_name or self.get_full_name() or self.username

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class LoginHistory(models.Model):
    user = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='login_history')
    email = models.CharField(max_length=254, blank=True)
    success = models.BooleanField(default=False, db_index=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.CharField(max_length=255, blank=True)
    failure_reason = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self) -> str:
        return f"{self.email} {'ok' if self.success else 'fail'} @ {self.created_at:%F %T}"


# ---------------------------------------------------------------------------
# Doctors
# ---------------------------------------------------------------------------

class Doctor(models.Model):
    AVAILABILITY_CHOICES = [
        ('available', 'Available'),
        ('busy', 'Busy'),
        ('off_duty', 'Off duty'),
        ('on_leave', 'On leave'),
    ]
    doctor_id = models.CharField(max_length=32, primary_key=True)
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='doctor_profile')
    department = models.ForeignKey(Department, on_delete=models.PROTECT, related_name='doctors')
    specialty = models.CharField(max_length=100, db_index=True)
    qualification = models.CharField(max_length=255, blank=True)
    license_number = models.CharField(max_length=20, unique=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, blank=True)
    bio = models.TextField(blank=True)
    experience_years = models.PositiveIntegerField(default=0)
    consultation_fee = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    languages_spoken = models.JSONField(default=default_languages, blank=True)
    availability_status = models.CharField(max_length=16, choices=AVAILABILITY_CHOICES, default='available')
    rating = models.DecimalField(max_digits=3, decimal_places=2, default=Decimal('0'))
    total_reviews = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['user__full_name']

    def __str__(self) -> str:
        return f"{self.user.display_name} ({self.doctor_id})"


class DoctorSchedule(models.Model):
    """Weekly working hours; ``day_of_week`` counts from 0 = Sunday."""
    doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name='schedules')
    day_of_week = models.PositiveSmallIntegerField()
    start_time = models.TimeField()
    end_time = models.TimeField()
    is_available = models.BooleanField(default=True)
    break_start = models.TimeField(null=True, blank=True)
    break_end = models.TimeField(null=True, blank=True)
    max_appointments = models.PositiveIntegerField(default=20)
    slot_duration = models.PositiveIntegerField(default=30)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['day_of_week']
        unique_together = [('doctor', 'day_of_week')]

    def __str__(self) -> str:
        return f"{self.doctor_id} day={self.day_of_week} {self.start_time}-{self.end_time}"


class DoctorExperience(models.Model):
    TYPE_CHOICES = [
        ('work', 'Work'),
        ('education', 'Education'),
        ('certification', 'Certification'),
        ('research', 'Research'),
    ]
    doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name='experiences')
    experience_type = models.CharField(max_length=16, choices=TYPE_CHOICES, default='work', db_index=True)
    title = models.CharField(max_length=255)
    organization = models.CharField(max_length=255)
    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True)
    is_current = models.BooleanField(default=False)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-start_date']

    def __str__(self) -> str:
        return f"{self.title} @ {self.organization}"


# ---------------------------------------------------------------------------
# Patients
# ---------------------------------------------------------------------------

class Patient(models.Model):
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('inactive', 'Inactive'),
        ('deceased', 'Deceased'),
        ('transferred', 'Transferred'),
    ]
    patient_id = models.CharField(max_length=32, primary_key=True)
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='patient_profile')
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, blank=True, db_index=True)
    date_of_birth = models.DateField(null=True, blank=True)
    blood_type = models.CharField(max_length=3, choices=BLOOD_TYPE_CHOICES, blank=True, db_index=True)
    national_id = models.CharField(max_length=12, blank=True)
    address = models.JSONField(default=dict, blank=True)
    emergency_contact = models.JSONField(default=dict, blank=True)
    insurance_info = models.JSONField(default=dict, blank=True)
    allergies = models.JSONField(default=list, blank=True)
    chronic_conditions = models.JSONField(default=list, blank=True)
    medical_history = models.TextField(blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default='active', db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self) -> str:
        return f"{self.user.display_name} ({self.patient_id})"


class DoctorReview(models.Model):
    doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name='reviews')
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='reviews')
    appointment = models.OneToOneField(
        'Appointment', null=True, blank=True, on_delete=models.SET_NULL, related_name='review'
    )
    rating = models.PositiveSmallIntegerField(db_index=True)
    comment = models.TextField(blank=True)
    is_verified = models.BooleanField(default=False)
    helpful_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self) -> str:
        return f"review {self.id} doctor={self.doctor_id} rating={self.rating}"


# ---------------------------------------------------------------------------
# Appointments
# ---------------------------------------------------------------------------

class Appointment(models.Model):
    STATUS_CHOICES = [
        ('scheduled', 'Scheduled'),
        ('confirmed', 'Confirmed'),
        ('in_progress', 'In progress'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
        ('no_show', 'No show'),
    ]
    TYPE_CHOICES = [
        ('consultation', 'Consultation'),
        ('follow_up', 'Follow up'),
        ('emergency', 'Emergency'),
        ('routine_checkup', 'Routine checkup'),
    ]
    ACTIVE_STATUSES = ('scheduled', 'confirmed', 'in_progress')

    appointment_id = models.CharField(max_length=32, primary_key=True)
    doctor = models.ForeignKey(Doctor, on_delete=models.PROTECT, related_name='appointments')
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='appointments')
    appointment_date = models.DateField(db_index=True)
    start_time = models.TimeField()
    end_time = models.TimeField()
    appointment_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='consultation')
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default='scheduled', db_index=True)
    reason = models.TextField(blank=True)
    notes = models.TextField(blank=True)
    room = models.ForeignKey(Room, null=True, blank=True, on_delete=models.SET_NULL, related_name='appointments')
    cancellation_reason = models.TextField(blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-appointment_date', '-start_time']
        indexes = [
            models.Index(fields=['doctor', 'appointment_date'], name='appt_doctor_date_idx'),
            models.Index(fields=['patient', 'appointment_date'], name='appt_patient_date_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.appointment_id} {self.appointment_date} {self.start_time}"


# ---------------------------------------------------------------------------
# Medical records
# ---------------------------------------------------------------------------

class MedicalRecord(models.Model):
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('archived', 'Archived'),
        ('deleted', 'Deleted'),
    ]
    record_id = models.CharField(max_length=32, primary_key=True)
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='medical_records')
    doctor = models.ForeignKey(Doctor, on_delete=models.PROTECT, related_name='medical_records')
    appointment = models.ForeignKey(
        Appointment, null=True, blank=True, on_delete=models.SET_NULL, related_name='medical_records'
    )
    visit_date = models.DateField(default=timezone.localdate)
    chief_complaint = models.TextField()
    present_illness = models.TextField(blank=True)
    past_medical_history = models.TextField(blank=True)
    physical_examination = models.TextField(blank=True)
    vital_signs = models.JSONField(default=dict, blank=True)
    diagnosis = models.TextField(blank=True)
    treatment_plan = models.TextField(blank=True)
    medications = models.JSONField(default=list, blank=True)
    follow_up_instructions = models.TextField(blank=True)
    notes = models.TextField(blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default='active', db_index=True)
    created_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    updated_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-visit_date', '-created_at']

    def __str__(self) -> str:
        return self.record_id


class LabResult(models.Model):
    record = models.ForeignKey(MedicalRecord, on_delete=models.CASCADE, related_name='lab_results')
    test_name = models.CharField(max_length=255)
    test_type = models.CharField(max_length=100, blank=True)
    result_value = models.CharField(max_length=255)
    reference_range = models.CharField(max_length=100, blank=True)
    unit = models.CharField(max_length=32, blank=True)
    is_abnormal = models.BooleanField(default=False)
    test_date = models.DateField(default=timezone.localdate)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-test_date', '-id']

    def __str__(self) -> str:
        return f"{self.test_name}={self.result_value}{self.unit}"


class VitalSigns(models.Model):
    record = models.ForeignKey(MedicalRecord, on_delete=models.CASCADE, related_name='vital_sign_entries')
    temperature = models.DecimalField(max_digits=4, decimal_places=1, null=True, blank=True)
    heart_rate = models.PositiveSmallIntegerField(null=True, blank=True)
    blood_pressure_systolic = models.PositiveSmallIntegerField(null=True, blank=True)
    blood_pressure_diastolic = models.PositiveSmallIntegerField(null=True, blank=True)
    respiratory_rate = models.PositiveSmallIntegerField(null=True, blank=True)
    oxygen_saturation = models.PositiveSmallIntegerField(null=True, blank=True)
    weight = models.DecimalField(max_digits=5, decimal_places=1, null=True, blank=True)
    height = models.DecimalField(max_digits=4, decimal_places=1, null=True, blank=True)
    bmi = models.DecimalField(max_digits=4, decimal_places=1, null=True, blank=True)
    recorded_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    recorded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-recorded_at', '-id']
        verbose_name_plural = 'vital signs'


# ---------------------------------------------------------------------------
# Prescriptions
# ---------------------------------------------------------------------------

class Medication(models.Model):
    name = models.CharField(max_length=255)
    generic_name = models.CharField(max_length=255, blank=True)
    dosage_form = models.CharField(max_length=50, blank=True)
    strength = models.CharField(max_length=50, blank=True)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']

    def __str__(self) -> str:
        return f"{self.name} {self.strength}".strip()


class Prescription(models.Model):
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('dispensed', 'Dispensed'),
        ('cancelled', 'Cancelled'),
    ]
    prescription_id = models.CharField(max_length=32, primary_key=True)
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='prescriptions')
    doctor = models.ForeignKey(Doctor, on_delete=models.PROTECT, related_name='prescriptions')
    appointment = models.ForeignKey(
        Appointment, null=True, blank=True, on_delete=models.SET_NULL, related_name='prescriptions'
    )
    medical_record = models.ForeignKey(
        MedicalRecord, null=True, blank=True, on_delete=models.SET_NULL, related_name='prescriptions'
    )
    prescription_date = models.DateField(default=timezone.localdate)
    notes = models.TextField(blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default='active', db_index=True)
    total_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    dispensed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-prescription_date', '-created_at']

    def __str__(self) -> str:
        return self.prescription_id


class PrescriptionItem(models.Model):
    item_id = models.CharField(max_length=40, primary_key=True)
    prescription = models.ForeignKey(Prescription, on_delete=models.CASCADE, related_name='items')
    medication = models.ForeignKey(
        Medication, null=True, blank=True, on_delete=models.SET_NULL, related_name='prescription_items'
    )
    medication_name = models.CharField(max_length=255)
    dosage = models.CharField(max_length=100)
    frequency = models.CharField(max_length=100)
    duration = models.CharField(max_length=100, blank=True)
    quantity = models.PositiveIntegerField(default=1)
    instructions = models.TextField(blank=True)
    substitution_allowed = models.BooleanField(default=True)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))

    class Meta:
        ordering = ['item_id']

    def __str__(self) -> str:
        return f"{self.item_id} {self.medication_name}"


# ---------------------------------------------------------------------------
# Billing & payments
# ---------------------------------------------------------------------------

class Bill(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('partially_paid', 'Partially paid'),
        ('paid', 'Paid'),
        ('overdue', 'Overdue'),
        ('cancelled', 'Cancelled'),
    ]
    bill_id = models.CharField(max_length=32, primary_key=True)
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='bills')
    appointment = models.ForeignKey(Appointment, null=True, blank=True, on_delete=models.SET_NULL, related_name='bills')
    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0'))
    tax_rate = models.DecimalField(max_digits=5, decimal_places=4, default=Decimal('0.10'))
    tax_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0'))
    discount_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0'))
    insurance_coverage = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0'))
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0'))
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default='pending', db_index=True)
    due_date = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self) -> str:
        return f"{self.bill_id} {self.total_amount}"


class BillItem(models.Model):
    TYPE_CHOICES = [
        ('consultation', 'Consultation'),
        ('medication', 'Medication'),
        ('procedure', 'Procedure'),
        ('lab_test', 'Lab test'),
        ('room', 'Room'),
        ('other', 'Other'),
    ]
    bill = models.ForeignKey(Bill, on_delete=models.CASCADE, related_name='items')
    item_type = models.CharField(max_length=16, choices=TYPE_CHOICES, default='other')
    description = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    amount = models.DecimalField(max_digits=14, decimal_places=2)

    class Meta:
        ordering = ['id']


class Payment(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('success', 'Success'),
        ('failed', 'Failed'),
        ('cancelled', 'Cancelled'),
    ]
    METHOD_CHOICES = [
        ('cash', 'Cash'),
        ('bank_transfer', 'Bank transfer'),
        ('card', 'Card'),
        ('momo', 'MoMo'),
        ('zalopay', 'ZaloPay'),
        ('vnpay', 'VNPay'),
        ('payos', 'PayOS'),
    ]
    order_code = models.BigIntegerField(unique=True)
    bill = models.ForeignKey(Bill, null=True, blank=True, on_delete=models.SET_NULL, related_name='payments')
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='payments')
    appointment = models.ForeignKey(
        Appointment, null=True, blank=True, on_delete=models.SET_NULL, related_name='payments'
    )
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    payment_method = models.CharField(max_length=16, choices=METHOD_CHOICES, default='cash', db_index=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default='pending', db_index=True)
    description = models.CharField(max_length=255, blank=True)
    transaction_id = models.CharField(max_length=100, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self) -> str:
        return f"payment {self.order_code} {self.amount} {self.status}"


# ---------------------------------------------------------------------------
# Reception
# ---------------------------------------------------------------------------

class CheckIn(models.Model):
    STATUS_CHOICES = [
        ('waiting', 'Waiting'),
        ('in_consultation', 'In consultation'),
        ('completed', 'Completed'),
        ('left', 'Left'),
    ]
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='check_ins')
    appointment = models.OneToOneField(
        Appointment, null=True, blank=True, on_delete=models.SET_NULL, related_name='check_in'
    )
    check_in_date = models.DateField(default=timezone.localdate, db_index=True)
    check_in_time = models.DateTimeField(default=timezone.now)
    queue_number = models.PositiveIntegerField()
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default='waiting', db_index=True)
    checked_in_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    notes = models.TextField(blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['check_in_date', 'queue_number']
        unique_together = [('check_in_date', 'queue_number')]

    def __str__(self) -> str:
        return f"#{self.queue_number} {self.patient_id} {self.check_in_date}"


# ---------------------------------------------------------------------------
# Notifications, audit, ID sequences
# ---------------------------------------------------------------------------

class Notification(models.Model):
    TYPE_CHOICES = [
        ('appointment', 'Appointment'),
        ('payment', 'Payment'),
        ('medical_record', 'Medical record'),
        ('system', 'System'),
    ]
    recipient = models.ForeignKey(User, on_delete=models.CASCADE, related_name='notifications')
    title = models.CharField(max_length=255)
    message = models.TextField()
    notification_type = models.CharField(max_length=16, choices=TYPE_CHOICES, default='system')
    data = models.JSONField(default=dict, blank=True)
    is_read = models.BooleanField(default=False, db_index=True)
    read_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [models.Index(fields=['recipient', 'is_read', 'created_at'], name='notif_recipient_read_idx')]

    def __str__(self) -> str:
        return f"notify {self.recipient_id}: {self.title}"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.CharField(max_length=64, blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['action', 'created_at'], name='audit_action_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='audit_object_idx'),
        ]


class IdSequence(models.Model):
    """Last issued number per ID prefix (``CARD-DOC-202401`` → 7)."""
    prefix = models.CharField(max_length=32, unique=True)
    last_value = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.prefix}:{self.last_value}"
