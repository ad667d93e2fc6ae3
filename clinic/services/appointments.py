"""
Appointment booking, conflict detection and the status machine.

Only active appointments (scheduled, confirmed, in progress) block a
doctor's time. Two bookings conflict when their ``[start, end)`` windows
on the same date overlap.
"""
from __future__ import annotations

import logging
from datetime import date, time, timedelta
from typing import Optional

from django.db import transaction
from django.db.models import Count
from django.utils import timezone

from clinic.exceptions import BusinessRuleError, ConflictError, InvalidTransition
from clinic.models import Appointment, Doctor, Patient, User
from clinic.services import ids
from clinic.services.notifications import notify
from clinic.services.schedules import active_appointments, check_availability, overlaps

logger = logging.getLogger(__name__)

TRANSITIONS = {
    'scheduled': ['confirmed', 'in_progress', 'cancelled', 'no_show'],
    'confirmed': ['in_progress', 'cancelled', 'no_show', 'completed'],
    'in_progress': ['completed', 'cancelled'],
    'completed': [],
    'cancelled': [],
    'no_show': [],
}


def can_transition(current: str, new: str) -> bool:
    """Return True if an appointment may move from ``current`` to ``new``."""
    return new in TRANSITIONS.get(current, [])


def _t(value: time) -> str:
    return value.strftime('%H:%M')


def format_appointment(a: Appointment) -> dict:
    return {
        'appointment_id': a.appointment_id,
        'doctor_id': a.doctor_id,
        'doctor_name': a.doctor.user.display_name,
        'patient_id': a.patient_id,
        'patient_name': a.patient.user.display_name,
        'appointment_date': a.appointment_date.isoformat(),
        'start_time': _t(a.start_time),
        'end_time': _t(a.end_time),
        'appointment_type': a.appointment_type,
        'status': a.status,
        'reason': a.reason,
        'notes': a.notes,
        'room_id': a.room_id,
        'cancellation_reason': a.cancellation_reason,
        'cancelled_at': a.cancelled_at.isoformat() if a.cancelled_at else None,
        'created_at': a.created_at.isoformat() if a.created_at else None,
        'updated_at': a.updated_at.isoformat() if a.updated_at else None,
    }


def find_conflicts(doctor: Doctor, day: date, start: time, end: time,
                   exclude_id: Optional[str] = None) -> list[Appointment]:
    return [
        a for a in active_appointments(doctor, day, exclude_id).order_by('start_time')
        if overlaps(start, end, a.start_time, a.end_time)
    ]


def _check_slot(doctor: Doctor, day: date, start: time, end: time, exclude_id: Optional[str] = None) -> None:
    if end <= start:
        raise BusinessRuleError('End time must be after start time')
    reason = check_availability(doctor, day, start, end, exclude_id)
    if reason:
        raise BusinessRuleError('Doctor is not available at the requested time', details={'reason': reason})
    conflicts = find_conflicts(doctor, day, start, end, exclude_id)
    if conflicts:
        raise ConflictError(details={
            'conflicting_appointments': [
                {'appointment_id': c.appointment_id, 'start_time': _t(c.start_time), 'end_time': _t(c.end_time)}
                for c in conflicts
            ],
        })


def create_appointment(*, doctor: Doctor, patient: Patient, appointment_date: date, start_time: time,
                       end_time: time, created_by: Optional[User] = None, **fields) -> Appointment:
    with transaction.atomic():
        # Serialise bookings per doctor so two requests cannot take the same slot
        Doctor.objects.select_for_update().filter(pk=doctor.pk).first()
        _check_slot(doctor, appointment_date, start_time, end_time)
        appt = Appointment.objects.create(
            appointment_id=ids.generate_appointment_id(doctor.department),
            doctor=doctor,
            patient=patient,
            appointment_date=appointment_date,
            start_time=start_time,
            end_time=end_time,
            status='scheduled',
            created_by=created_by,
            **fields,
        )
    logger.info("appointment %s booked for %s with %s", appt.appointment_id, patient.patient_id, doctor.doctor_id)
    when = f"{appointment_date.isoformat()} {_t(start_time)}"
    data = {'appointment_id': appt.appointment_id}
    notify(patient.user, title='Appointment booked',
           message=f'Your appointment with {doctor.user.display_name} is scheduled for {when}.',
           notification_type='appointment', data=data)
    notify(doctor.user, title='New appointment',
           message=f'{patient.user.display_name} booked an appointment for {when}.',
           notification_type='appointment', data=data)
    return appt


def update_appointment(appt: Appointment, **fields) -> Appointment:
    if appt.status not in Appointment.ACTIVE_STATUSES:
        raise BusinessRuleError(f'Cannot modify an appointment that is {appt.status}')
    day = fields.get('appointment_date', appt.appointment_date)
    start = fields.get('start_time', appt.start_time)
    end = fields.get('end_time', appt.end_time)
    with transaction.atomic():
        if (day, start, end) != (appt.appointment_date, appt.start_time, appt.end_time):
            _check_slot(appt.doctor, day, start, end, exclude_id=appt.appointment_id)
        for key, value in fields.items():
            setattr(appt, key, value)
        appt.save()
    return appt


def change_status(appt: Appointment, new_status: str, *, reason: str = '') -> Appointment:
    if not can_transition(appt.status, new_status):
        raise InvalidTransition(f'Cannot change status from {appt.status} to {new_status}',
                                details={'from': appt.status, 'to': new_status,
                                         'allowed': TRANSITIONS.get(appt.status, [])})
    with transaction.atomic():
        locked = Appointment.objects.select_for_update().get(pk=appt.pk)
        if locked.status != appt.status:
            raise InvalidTransition('Appointment was modified concurrently')
        appt.status = new_status
        if new_status == 'cancelled':
            appt.cancellation_reason = reason
            appt.cancelled_at = timezone.now()
        appt.save()
    logger.info("appointment %s -> %s", appt.appointment_id, new_status)
    if new_status in ('confirmed', 'cancelled'):
        notify(appt.patient.user, title=f'Appointment {new_status}',
               message=f'Your appointment on {appt.appointment_date.isoformat()} at {_t(appt.start_time)} '
                       f'was {new_status}.',
               notification_type='appointment',
               data={'appointment_id': appt.appointment_id, 'status': new_status})
    return appt


def appointment_stats(qs=None, today: Optional[date] = None) -> dict:
    qs = qs if qs is not None else Appointment.objects.all()
    today = today or timezone.localdate()
    week_start = today - timedelta(days=(today.weekday() + 1) % 7)
    month_start = timezone.localtime().replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    by_status = {key: 0 for key, _ in Appointment.STATUS_CHOICES}
    for row in qs.values('status').annotate(n=Count('appointment_id')):
        by_status[row['status']] = row['n']
    by_type = {key: 0 for key, _ in Appointment.TYPE_CHOICES}
    for row in qs.values('appointment_type').annotate(n=Count('appointment_id')):
        by_type[row['appointment_type']] = row['n']
    return {
        'total': qs.count(),
        'today': qs.filter(appointment_date=today).count(),
        'thisWeek': qs.filter(appointment_date__gte=week_start).count(),
        'thisMonth': qs.filter(created_at__gte=month_start).count(),
        'byStatus': by_status,
        'byType': by_type,
    }


def upcoming_for_doctor(doctor: Doctor, days: int = 7, today: Optional[date] = None):
    today = today or timezone.localdate()
    return (
        Appointment.objects.filter(
            doctor=doctor,
            appointment_date__gte=today,
            appointment_date__lte=today + timedelta(days=days),
            status__in=('scheduled', 'confirmed'),
        )
        .select_related('doctor__user', 'patient__user')
        .order_by('appointment_date', 'start_time')
    )
