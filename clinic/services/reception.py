"""Front-desk check-ins, the daily queue and reception reports."""
from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Optional

from django.db import IntegrityError, transaction
from django.db.models import Count, Max
from django.db.models.functions import ExtractHour
from django.utils import timezone

from clinic.exceptions import BusinessRuleError, InvalidTransition
from clinic.models import Appointment, CheckIn, Patient, User

logger = logging.getLogger(__name__)

CHECK_IN_TRANSITIONS = {
    'waiting': ['in_consultation', 'left'],
    'in_consultation': ['completed'],
    'completed': [],
    'left': [],
}


def format_check_in(c: CheckIn) -> dict:
    return {
        'id': c.id,
        'patient_id': c.patient_id,
        'patient_name': c.patient.user.display_name,
        'appointment_id': c.appointment_id,
        'check_in_date': c.check_in_date.isoformat(),
        'check_in_time': timezone.localtime(c.check_in_time).isoformat(),
        'queue_number': c.queue_number,
        'status': c.status,
        'notes': c.notes,
        'checked_in_by': c.checked_in_by_id,
    }


def check_in(*, patient: Patient, appointment: Optional[Appointment] = None,
             checked_in_by: Optional[User] = None, notes: str = '') -> CheckIn:
    today = timezone.localdate()
    if appointment is not None:
        if appointment.patient_id != patient.pk:
            raise BusinessRuleError('Appointment belongs to a different patient')
        if appointment.status not in ('scheduled', 'confirmed'):
            raise BusinessRuleError(f'Cannot check in to an appointment that is {appointment.status}')
        if CheckIn.objects.filter(appointment=appointment).exists():
            raise BusinessRuleError('Patient already checked in for this appointment')
    try:
        with transaction.atomic():
            last = CheckIn.objects.filter(check_in_date=today).aggregate(m=Max('queue_number'))['m']
            entry = CheckIn.objects.create(
                patient=patient,
                appointment=appointment,
                check_in_date=today,
                queue_number=(last or 0) + 1,
                checked_in_by=checked_in_by,
                notes=notes,
            )
            if appointment is not None and appointment.status == 'scheduled':
                appointment.status = 'confirmed'
                appointment.save(update_fields=['status', 'updated_at'])
    except IntegrityError:
        raise BusinessRuleError('Queue number was taken concurrently, retry the check-in')
    logger.info("check-in #%s for %s", entry.queue_number, patient.patient_id)
    return entry


def change_check_in_status(entry: CheckIn, new_status: str) -> CheckIn:
    if new_status not in CHECK_IN_TRANSITIONS.get(entry.status, []):
        raise InvalidTransition(f'Cannot change check-in from {entry.status} to {new_status}')
    entry.status = new_status
    entry.save(update_fields=['status', 'updated_at'])
    return entry


def daily_queue(day: date):
    return CheckIn.objects.filter(check_in_date=day).select_related('patient__user').order_by('queue_number')


def daily_report(day: date) -> dict:
    appts = Appointment.objects.filter(appointment_date=day)
    by_status = {key: 0 for key, _ in Appointment.STATUS_CHOICES}
    for row in appts.values('status').annotate(n=Count('appointment_id')):
        by_status[row['status']] = row['n']
    check_ins = CheckIn.objects.filter(check_in_date=day)
    check_in_status = {key: 0 for key, _ in CheckIn.STATUS_CHOICES}
    for row in check_ins.values('status').annotate(n=Count('id')):
        check_in_status[row['status']] = row['n']
    return {
        'date': day.isoformat(),
        'total_appointments': appts.count(),
        'completed': by_status['completed'],
        'cancelled': by_status['cancelled'],
        'no_show': by_status['no_show'],
        'appointments_by_status': by_status,
        'check_ins': check_ins.count(),
        'check_ins_by_status': check_in_status,
    }


def weekly_report(start: date) -> dict:
    end = start + timedelta(days=6)
    appts = {
        row['appointment_date']: row['n']
        for row in Appointment.objects.filter(appointment_date__range=(start, end))
        .values('appointment_date').annotate(n=Count('appointment_id'))
    }
    visits = {
        row['check_in_date']: row['n']
        for row in CheckIn.objects.filter(check_in_date__range=(start, end))
        .values('check_in_date').annotate(n=Count('id'))
    }
    days = []
    for offset in range(7):
        day = start + timedelta(days=offset)
        days.append({'date': day.isoformat(), 'appointments': appts.get(day, 0), 'check_ins': visits.get(day, 0)})
    return {
        'start_date': start.isoformat(),
        'end_date': end.isoformat(),
        'days': days,
        'total_appointments': sum(d['appointments'] for d in days),
        'total_check_ins': sum(d['check_ins'] for d in days),
    }


def patient_flow(date_from: date, date_to: date) -> dict:
    qs = CheckIn.objects.filter(check_in_date__range=(date_from, date_to))
    by_hour = {hour: 0 for hour in range(24)}
    tz = timezone.get_current_timezone()
    for row in qs.annotate(hour=ExtractHour('check_in_time', tzinfo=tz)).values('hour').annotate(n=Count('id')):
        by_hour[row['hour']] = row['n']
    by_status = {key: 0 for key, _ in CheckIn.STATUS_CHOICES}
    for row in qs.values('status').annotate(n=Count('id')):
        by_status[row['status']] = row['n']
    busiest = max(by_hour, key=by_hour.get) if qs.exists() else None
    return {
        'date_from': date_from.isoformat(),
        'date_to': date_to.isoformat(),
        'total': qs.count(),
        'by_hour': by_hour,
        'by_status': by_status,
        'busiest_hour': busiest,
    }
