"""Medical records, lab results and vital-sign history."""
from __future__ import annotations

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from django.db import transaction

from clinic.models import Doctor, LabResult, MedicalRecord, Patient, User, VitalSigns
from clinic.services import ids
from clinic.services.notifications import notify

logger = logging.getLogger(__name__)

VITAL_FIELDS = (
    'temperature', 'heart_rate', 'blood_pressure_systolic', 'blood_pressure_diastolic',
    'respiratory_rate', 'oxygen_saturation', 'weight', 'height',
)


def compute_bmi(weight, height) -> Optional[Decimal]:
    """Body-mass index to one decimal place; height in centimetres."""
    if not weight or not height:
        return None
    metres = Decimal(str(height)) / 100
    bmi = Decimal(str(weight)) / (metres * metres)
    return bmi.quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)


def _num(value):
    return float(value) if value is not None else None


def format_record(r: MedicalRecord, *, detail: bool = False) -> dict:
    data = {
        'record_id': r.record_id,
        'patient_id': r.patient_id,
        'patient_name': r.patient.user.display_name,
        'doctor_id': r.doctor_id,
        'doctor_name': r.doctor.user.display_name,
        'appointment_id': r.appointment_id,
        'visit_date': r.visit_date.isoformat(),
        'chief_complaint': r.chief_complaint,
        'present_illness': r.present_illness,
        'past_medical_history': r.past_medical_history,
        'physical_examination': r.physical_examination,
        'vital_signs': r.vital_signs,
        'diagnosis': r.diagnosis,
        'treatment_plan': r.treatment_plan,
        'medications': r.medications,
        'follow_up_instructions': r.follow_up_instructions,
        'notes': r.notes,
        'status': r.status,
        'created_by': r.created_by_id,
        'updated_by': r.updated_by_id,
        'created_at': r.created_at.isoformat() if r.created_at else None,
        'updated_at': r.updated_at.isoformat() if r.updated_at else None,
    }
    if detail:
        data['lab_results'] = [format_lab_result(x) for x in r.lab_results.all()]
        data['vital_sign_history'] = [format_vitals(v) for v in r.vital_sign_entries.all()]
    return data


def format_lab_result(x: LabResult) -> dict:
    return {
        'id': x.id,
        'record_id': x.record_id,
        'test_name': x.test_name,
        'test_type': x.test_type,
        'result_value': x.result_value,
        'reference_range': x.reference_range,
        'unit': x.unit,
        'is_abnormal': x.is_abnormal,
        'test_date': x.test_date.isoformat(),
        'notes': x.notes,
    }


def format_vitals(v: VitalSigns) -> dict:
    data = {'id': v.id, 'record_id': v.record_id}
    for field in VITAL_FIELDS:
        data[field] = _num(getattr(v, field))
    data['bmi'] = _num(v.bmi)
    data['recorded_by'] = v.recorded_by_id
    data['recorded_at'] = v.recorded_at.isoformat() if v.recorded_at else None
    return data


def create_record(*, patient: Patient, doctor: Doctor, created_by: Optional[User], **fields) -> MedicalRecord:
    with transaction.atomic():
        record = MedicalRecord.objects.create(
            record_id=ids.generate_medical_record_id(doctor.department),
            patient=patient,
            doctor=doctor,
            created_by=created_by,
            updated_by=created_by,
            status='active',
            **fields,
        )
    logger.info("medical record %s created for %s", record.record_id, patient.patient_id)
    notify(patient.user, title='New medical record',
           message=f'Dr. {doctor.user.display_name} added a record for your visit on {record.visit_date.isoformat()}.',
           notification_type='medical_record', data={'record_id': record.record_id})
    return record


def update_record(record: MedicalRecord, *, updated_by: Optional[User], **fields) -> MedicalRecord:
    for key, value in fields.items():
        setattr(record, key, value)
    record.updated_by = updated_by
    record.save()
    return record


def delete_record(record: MedicalRecord, *, deleted_by: Optional[User]) -> MedicalRecord:
    record.status = 'deleted'
    record.updated_by = deleted_by
    record.save(update_fields=['status', 'updated_by', 'updated_at'])
    logger.info("medical record %s deleted", record.record_id)
    return record


def add_lab_result(record: MedicalRecord, **fields) -> LabResult:
    return LabResult.objects.create(record=record, **fields)


def add_vital_signs(record: MedicalRecord, *, recorded_by: Optional[User], **fields) -> VitalSigns:
    vitals = VitalSigns(record=record, recorded_by=recorded_by, **fields)
    vitals.bmi = compute_bmi(vitals.weight, vitals.height)
    with transaction.atomic():
        vitals.save()
        # Keep the record's snapshot in step with the latest measurement
        latest = {k: _num(getattr(vitals, k)) for k in VITAL_FIELDS if getattr(vitals, k) is not None}
        if vitals.bmi is not None:
            latest['bmi'] = _num(vitals.bmi)
        record.vital_signs = {**(record.vital_signs or {}), **latest}
        record.save(update_fields=['vital_signs', 'updated_at'])
    return vitals
