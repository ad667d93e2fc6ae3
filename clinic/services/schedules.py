"""
Doctor weekly schedules, availability checks and free-slot generation.

``day_of_week`` counts from 0 = Sunday; Python's ``date.weekday()``
counts from 0 = Monday, so :func:`day_index` converts between them.
"""
from __future__ import annotations

from datetime import date, time
from typing import Iterable, Optional

from django.db import transaction

from clinic.models import Appointment, Doctor, DoctorSchedule

DAY_NAMES = ('Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday')
DEFAULT_START = time(9, 0)
DEFAULT_END = time(17, 0)
DEFAULT_SLOT = 30


def day_index(day: date) -> int:
    return (day.weekday() + 1) % 7


def to_minutes(t: time) -> int:
    return t.hour * 60 + t.minute


def from_minutes(m: int) -> time:
    return time(m // 60, m % 60)


def overlaps(start: time, end: time, other_start: time, other_end: time) -> bool:
    """True when [start, end) and [other_start, other_end) share any time."""
    return (
        (other_start <= start < other_end)
        or (other_start < end <= other_end)
        or (start <= other_start and end >= other_end)
    )


def _format_time(t: Optional[time]) -> Optional[str]:
    return t.strftime('%H:%M') if t else None


def format_schedule(s: DoctorSchedule) -> dict:
    return {
        'id': s.id,
        'day_of_week': s.day_of_week,
        'day_name': DAY_NAMES[s.day_of_week],
        'start_time': _format_time(s.start_time),
        'end_time': _format_time(s.end_time),
        'is_available': s.is_available,
        'break_start': _format_time(s.break_start),
        'break_end': _format_time(s.break_end),
        'max_appointments': s.max_appointments,
        'slot_duration': s.slot_duration,
    }


def weekly_schedule(doctor: Doctor) -> list[dict]:
    """Seven entries, Sunday first; unconfigured days read as unavailable 09:00-17:00."""
    by_day = {s.day_of_week: s for s in doctor.schedules.all()}
    week = []
    for day in range(7):
        s = by_day.get(day)
        if s is not None:
            week.append(format_schedule(s))
            continue
        week.append({
            'id': None,
            'day_of_week': day,
            'day_name': DAY_NAMES[day],
            'start_time': _format_time(DEFAULT_START),
            'end_time': _format_time(DEFAULT_END),
            'is_available': False,
            'break_start': None,
            'break_end': None,
            'max_appointments': 0,
            'slot_duration': DEFAULT_SLOT,
        })
    return week


def upsert_schedule(doctor: Doctor, entries: Iterable[dict]) -> list[dict]:
    with transaction.atomic():
        for entry in entries:
            fields = dict(entry)
            day = fields.pop('day_of_week')
            DoctorSchedule.objects.update_or_create(doctor=doctor, day_of_week=day, defaults=fields)
    return weekly_schedule(doctor)


def schedule_for(doctor: Doctor, day: date) -> Optional[DoctorSchedule]:
    return doctor.schedules.filter(day_of_week=day_index(day)).first()


def active_appointments(doctor: Doctor, day: date, exclude_id: Optional[str] = None):
    qs = Appointment.objects.filter(doctor=doctor, appointment_date=day, status__in=Appointment.ACTIVE_STATUSES)
    if exclude_id:
        qs = qs.exclude(appointment_id=exclude_id)
    return qs


def check_availability(doctor: Doctor, day: date, start: time, end: time,
                       exclude_id: Optional[str] = None) -> Optional[str]:
    """Return the reason the doctor cannot take the slot, or None when free.

    Doctors without any configured schedule are treated as available.
    """
    if not doctor.is_active or doctor.availability_status == 'on_leave':
        return 'Doctor is not available'
    if not doctor.schedules.exists():
        return None
    s = schedule_for(doctor, day)
    if s is None or not s.is_available:
        return f'Doctor does not work on {DAY_NAMES[day_index(day)]}'
    if start < s.start_time or end > s.end_time:
        return f'Requested time is outside working hours {_format_time(s.start_time)}-{_format_time(s.end_time)}'
    if s.break_start and s.break_end and overlaps(start, end, s.break_start, s.break_end):
        return 'Requested time falls in the doctor\'s break'
    if s.max_appointments and active_appointments(doctor, day, exclude_id).count() >= s.max_appointments:
        return 'Doctor is fully booked on this day'
    return None


def available_slots(doctor: Doctor, day: date, duration: Optional[int] = None) -> list[dict]:
    s = schedule_for(doctor, day)
    if s is None or not s.is_available:
        return []
    step = s.slot_duration or DEFAULT_SLOT
    length = duration or step
    booked = list(active_appointments(doctor, day).values_list('start_time', 'end_time'))
    cursor, end = to_minutes(s.start_time), to_minutes(s.end_time)
    slots = []
    while cursor + length <= end:
        slot_start, slot_end = from_minutes(cursor), from_minutes(cursor + length)
        cursor += step
        if s.break_start and s.break_end and overlaps(slot_start, slot_end, s.break_start, s.break_end):
            continue
        if any(overlaps(slot_start, slot_end, b_start, b_end) for b_start, b_end in booked):
            continue
        slots.append({
            'start_time': _format_time(slot_start),
            'end_time': _format_time(slot_end),
            'slot_duration': length,
        })
    return slots
