"""Patient registration, lookup and statistics."""
from __future__ import annotations

import logging
from typing import Optional

from django.db import transaction
from django.db.models import Count, Q

from clinic.models import Doctor, Patient
from clinic.services import ids
from clinic.services.accounts import checked_password, create_account

logger = logging.getLogger(__name__)

USER_FIELDS = ('full_name', 'phone_number')


def format_patient(p: Patient) -> dict:
    u = p.user
    return {
        'patient_id': p.patient_id,
        'user_id': u.id,
        'full_name': u.display_name,
        'email': u.email,
        'phone_number': u.phone_number,
        'gender': p.gender,
        'date_of_birth': p.date_of_birth.isoformat() if p.date_of_birth else None,
        'blood_type': p.blood_type,
        'national_id': p.national_id,
        'address': p.address,
        'emergency_contact': p.emergency_contact,
        'insurance_info': p.insurance_info,
        'allergies': p.allergies,
        'chronic_conditions': p.chronic_conditions,
        'medical_history': p.medical_history,
        'status': p.status,
        'created_at': p.created_at.isoformat() if p.created_at else None,
        'updated_at': p.updated_at.isoformat() if p.updated_at else None,
    }


def create_patient(*, email: str, full_name: str, password: Optional[str] = None,
                   phone_number: str = '', **profile) -> tuple[Patient, Optional[str]]:
    """Create the user and patient record.

    Returns the patient and, when no password was supplied, the generated
    initial password so staff can hand it over.
    """
    password, generated = checked_password(password)
    with transaction.atomic():
        user = create_account(email=email, password=password, role='patient',
                              full_name=full_name, phone_number=phone_number)
        patient = Patient.objects.create(
            patient_id=ids.generate_patient_id(),
            user=user,
            status='active',
            **profile,
        )
    logger.info("patient %s created", patient.patient_id)
    return patient, (password if generated else None)


def search_patients(*, gender: Optional[str] = None, status: Optional[str] = None,
                    blood_type: Optional[str] = None, search: Optional[str] = None):
    qs = Patient.objects.select_related('user')
    if gender:
        qs = qs.filter(gender=gender)
    if status:
        qs = qs.filter(status=status)
    if blood_type:
        qs = qs.filter(blood_type=blood_type)
    if search:
        qs = qs.filter(
            Q(user__full_name__icontains=search)
            | Q(user__email__icontains=search)
            | Q(user__phone_number__icontains=search)
            | Q(patient_id__icontains=search)
        )
    return qs.order_by('-created_at')


def update_patient(patient: Patient, **fields) -> Patient:
    user_changes = {k: fields.pop(k) for k in USER_FIELDS if k in fields}
    with transaction.atomic():
        for key, value in fields.items():
            setattr(patient, key, value)
        patient.save()
        if user_changes:
            for key, value in user_changes.items():
                setattr(patient.user, key, value)
            patient.user.save(update_fields=list(user_changes))
    return patient


def deactivate_patient(patient: Patient) -> Patient:
    patient.status = 'inactive'
    patient.save(update_fields=['status', 'updated_at'])
    logger.info("patient %s deactivated", patient.patient_id)
    return patient


def patients_for_doctor(doctor: Doctor):
    return (
        Patient.objects.filter(appointments__doctor=doctor)
        .select_related('user')
        .distinct()
        .order_by('user__full_name')
    )


def patient_stats() -> dict:
    qs = Patient.objects.all()

    def counts(field: str) -> dict:
        return {
            (row[field] or 'unknown'): row['n']
            for row in qs.values(field).annotate(n=Count('patient_id')).order_by(field)
        }

    by_status = counts('status')
    return {
        'total': qs.count(),
        'active': by_status.get('active', 0),
        'inactive': by_status.get('inactive', 0),
        'by_status': by_status,
        'by_gender': counts('gender'),
        'by_blood_type': counts('blood_type'),
    }
