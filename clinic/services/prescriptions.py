"""Prescriptions with line items priced from the medication catalogue."""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, Optional

from django.db import transaction
from django.utils import timezone

from clinic.exceptions import BusinessRuleError
from clinic.models import Doctor, Medication, Patient, Prescription, PrescriptionItem
from clinic.services import ids
from clinic.services.notifications import notify

logger = logging.getLogger(__name__)


def format_medication(m: Medication) -> dict:
    return {
        'id': m.id,
        'name': m.name,
        'generic_name': m.generic_name,
        'dosage_form': m.dosage_form,
        'strength': m.strength,
        'unit_price': float(m.unit_price),
        'is_active': m.is_active,
    }


def format_item(i: PrescriptionItem) -> dict:
    return {
        'item_id': i.item_id,
        'medication_id': i.medication_id,
        'medication_name': i.medication_name,
        'dosage': i.dosage,
        'frequency': i.frequency,
        'duration': i.duration,
        'quantity': i.quantity,
        'instructions': i.instructions,
        'substitution_allowed': i.substitution_allowed,
        'unit_price': float(i.unit_price),
        'line_total': float(i.unit_price * i.quantity),
    }


def format_prescription(p: Prescription) -> dict:
    return {
        'prescription_id': p.prescription_id,
        'patient_id': p.patient_id,
        'patient_name': p.patient.user.display_name,
        'doctor_id': p.doctor_id,
        'doctor_name': p.doctor.user.display_name,
        'appointment_id': p.appointment_id,
        'medical_record_id': p.medical_record_id,
        'prescription_date': p.prescription_date.isoformat(),
        'notes': p.notes,
        'status': p.status,
        'total_cost': float(p.total_cost),
        'dispensed_at': p.dispensed_at.isoformat() if p.dispensed_at else None,
        'items': [format_item(i) for i in p.items.all()],
        'created_at': p.created_at.isoformat() if p.created_at else None,
    }


def _build_items(prescription: Prescription, items: Iterable[dict]) -> Decimal:
    total = Decimal('0')
    for index, item in enumerate(items, start=1):
        item = dict(item)
        medication: Optional[Medication] = item.pop('medication', None)
        name = item.pop('medication_name', '') or (medication.name if medication else '')
        if not name:
            raise BusinessRuleError('Each item needs a medication or medication_name')
        # catalogue items snapshot the catalogue price; only free-text items take a supplied one
        unit_price = item.pop('unit_price', None)
        if medication is not None:
            unit_price = medication.unit_price
        elif unit_price is None:
            unit_price = Decimal('0')
        line = PrescriptionItem.objects.create(
            item_id=ids.prescription_item_id(prescription.prescription_id, index),
            prescription=prescription,
            medication=medication,
            medication_name=name,
            unit_price=unit_price,
            **item,
        )
        total += line.unit_price * line.quantity
    return total


def create_prescription(*, patient: Patient, doctor: Doctor, items: list[dict], **fields) -> Prescription:
    if not items:
        raise BusinessRuleError('A prescription needs at least one item')
    with transaction.atomic():
        rx = Prescription.objects.create(
            prescription_id=ids.generate_prescription_id(doctor.department),
            patient=patient,
            doctor=doctor,
            **fields,
        )
        rx.total_cost = _build_items(rx, items)
        rx.save(update_fields=['total_cost'])
    logger.info("prescription %s created (%s items)", rx.prescription_id, len(items))
    notify(patient.user, title='New prescription',
           message=f'Dr. {doctor.user.display_name} issued prescription {rx.prescription_id}.',
           notification_type='medical_record', data={'prescription_id': rx.prescription_id})
    return rx


def update_prescription(rx: Prescription, *, items: Optional[list[dict]] = None, **fields) -> Prescription:
    if rx.status != 'active':
        raise BusinessRuleError(f'Cannot modify a {rx.status} prescription')
    with transaction.atomic():
        for key, value in fields.items():
            setattr(rx, key, value)
        if items is not None:
            if not items:
                raise BusinessRuleError('A prescription needs at least one item')
            rx.items.all().delete()
            rx.total_cost = _build_items(rx, items)
        rx.save()
    return rx


def dispense(rx: Prescription) -> Prescription:
    if rx.status != 'active':
        raise BusinessRuleError(f'Cannot dispense a {rx.status} prescription')
    rx.status = 'dispensed'
    rx.dispensed_at = timezone.now()
    rx.save(update_fields=['status', 'dispensed_at', 'updated_at'])
    return rx


def cancel(rx: Prescription) -> Prescription:
    if rx.status == 'dispensed':
        raise BusinessRuleError('Cannot cancel a dispensed prescription')
    rx.status = 'cancelled'
    rx.save(update_fields=['status', 'updated_at'])
    return rx
