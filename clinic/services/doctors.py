"""Doctor profiles, search, experiences and the per-doctor dashboard."""
from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Optional

from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from clinic.exceptions import BusinessRuleError
from clinic.models import Appointment, Department, Doctor, DoctorExperience
from clinic.services import ids
from clinic.services.accounts import create_account

logger = logging.getLogger(__name__)


def format_doctor(d: Doctor) -> dict:
    u = d.user
    return {
        'doctor_id': d.doctor_id,
        'user_id': u.id,
        'full_name': u.display_name,
        'email': u.email,
        'phone_number': u.phone_number,
        'department_id': d.department_id,
        'department_name': d.department.name if d.department_id else None,
        'specialty': d.specialty,
        'qualification': d.qualification,
        'license_number': d.license_number,
        'gender': d.gender,
        'bio': d.bio,
        'experience_years': d.experience_years,
        'consultation_fee': float(d.consultation_fee),
        'languages_spoken': d.languages_spoken,
        'availability_status': d.availability_status,
        'rating': float(d.rating),
        'total_reviews': d.total_reviews,
        'is_active': d.is_active,
        'created_at': d.created_at.isoformat() if d.created_at else None,
    }


def search_doctors(*, specialty: Optional[str] = None, department_id: Optional[str] = None,
                   gender: Optional[str] = None, search: Optional[str] = None,
                   availability: Optional[str] = None, include_inactive: bool = False):
    qs = Doctor.objects.select_related('user', 'department')
    if not include_inactive:
        qs = qs.filter(is_active=True)
    if specialty:
        qs = qs.filter(specialty__icontains=specialty)
    if department_id:
        qs = qs.filter(department_id=department_id)
    if gender:
        qs = qs.filter(gender=gender)
    if availability:
        qs = qs.filter(availability_status=availability)
    if search:
        qs = qs.filter(Q(user__full_name__icontains=search) | Q(specialty__icontains=search))
    return qs.order_by('user__full_name', 'doctor_id')


def create_doctor(*, email: str, password: str, full_name: str, department: Department,
                  specialty: str, license_number: str, phone_number: str = '', **profile) -> Doctor:
    if not department.is_active:
        raise BusinessRuleError('Department is not active')
    if Doctor.objects.filter(license_number=license_number).exists():
        raise BusinessRuleError('License number already registered')
    with transaction.atomic():
        user = create_account(email=email, password=password, role='doctor',
                              full_name=full_name, phone_number=phone_number)
        doctor = Doctor.objects.create(
            doctor_id=ids.generate_doctor_id(department),
            user=user,
            department=department,
            specialty=specialty,
            license_number=license_number,
            **profile,
        )
    logger.info("doctor %s created in %s", doctor.doctor_id, department.department_id)
    return doctor


USER_FIELDS = ('full_name', 'phone_number')


def update_doctor(doctor: Doctor, **fields) -> Doctor:
    user_changes = {k: fields.pop(k) for k in USER_FIELDS if k in fields}
    with transaction.atomic():
        for key, value in fields.items():
            setattr(doctor, key, value)
        doctor.save()
        if user_changes:
            for key, value in user_changes.items():
                setattr(doctor.user, key, value)
            doctor.user.save(update_fields=list(user_changes))
    return doctor


def deactivate_doctor(doctor: Doctor) -> Doctor:
    with transaction.atomic():
        doctor.is_active = False
        doctor.availability_status = 'off_duty'
        doctor.save(update_fields=['is_active', 'availability_status', 'updated_at'])
        doctor.user.is_active = False
        doctor.user.save(update_fields=['is_active'])
    logger.info("doctor %s deactivated", doctor.doctor_id)
    return doctor


# ---------------------------------------------------------------------------
# Experiences
# ---------------------------------------------------------------------------

def format_experience(e: DoctorExperience) -> dict:
    return {
        'id': e.id,
        'experience_type': e.experience_type,
        'title': e.title,
        'organization': e.organization,
        'start_date': e.start_date.isoformat(),
        'end_date': e.end_date.isoformat() if e.end_date else None,
        'is_current': e.is_current,
        'description': e.description,
    }


def save_experience(doctor: Doctor, instance: Optional[DoctorExperience] = None, **fields) -> DoctorExperience:
    exp = instance or DoctorExperience(doctor=doctor)
    for key, value in fields.items():
        setattr(exp, key, value)
    if exp.is_current:
        exp.end_date = None
    elif exp.end_date and exp.end_date < exp.start_date:
        raise BusinessRuleError('End date must be after start date')
    with transaction.atomic():
        if exp.is_current and exp.experience_type == 'work':
            others = doctor.experiences.filter(experience_type='work', is_current=True)
            if exp.pk:
                others = others.exclude(pk=exp.pk)
            others.update(is_current=False, end_date=timezone.localdate())
        exp.save()
    return exp


def experience_summary(doctor: Doctor, today: Optional[date] = None) -> dict:
    today = today or timezone.localdate()
    counts = {key: 0 for key, _ in DoctorExperience.TYPE_CHOICES}
    work_days = 0
    for e in doctor.experiences.all():
        counts[e.experience_type] += 1
        if e.experience_type == 'work':
            end = today if e.is_current or not e.end_date else e.end_date
            work_days += max((end - e.start_date).days, 0)
    return {
        'total_work_years': round(work_days / 365.25, 1),
        'by_type': counts,
        'current_positions': [
            format_experience(e) for e in doctor.experiences.filter(is_current=True)
        ],
    }


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

def doctor_dashboard(doctor: Doctor, today: Optional[date] = None) -> dict:
    from clinic.services.appointments import format_appointment

    today = today or timezone.localdate()
    qs = Appointment.objects.filter(doctor=doctor).select_related('patient__user', 'doctor__user')
    todays = qs.filter(appointment_date=today).order_by('start_time')
    upcoming = qs.filter(
        appointment_date__gt=today,
        appointment_date__lte=today + timedelta(days=7),
        status__in=('scheduled', 'confirmed'),
    ).order_by('appointment_date', 'start_time')
    by_status = {key: 0 for key, _ in Appointment.STATUS_CHOICES}
    for row in qs.values('status').annotate(n=Count('appointment_id')):
        by_status[row['status']] = row['n']
    return {
        'doctor': format_doctor(doctor),
        'today': [format_appointment(a) for a in todays],
        'upcoming': [format_appointment(a) for a in upcoming[:20]],
        'appointments_by_status': by_status,
        'total_patients': qs.values('patient_id').distinct().count(),
        'rating': float(doctor.rating),
        'total_reviews': doctor.total_reviews,
    }
