"""
Department-coded identifiers.

Clinical entities are keyed ``<CODE>-<TYPE>-<YYYYMM>-<SEQ>``: the owning
department's 3-4 letter code, an entity tag, the year-month of
creation and a zero-padded monthly sequence, for example
``CARD-DOC-202401-001``. Patients, admins, receptionists and bills use a
fixed prefix instead of a department code (``PAT-202401-001``). Rooms
are numbered per department without a period (``CARD-ROOM-004``).
"""
from __future__ import annotations

import re
from typing import Callable, Optional

from django.db import transaction
from django.utils import timezone

from clinic.exceptions import IdSequenceExhausted
from clinic.models import Department, IdSequence, Room, Specialty

MAX_SEQUENCE = 999

DEPARTMENT_CODES = {
    'DEPT001': 'CARD',
    'DEPT002': 'ORTH',
    'DEPT003': 'PEDI',
    'DEPT004': 'NEUR',
    'DEPT005': 'DERM',
    'DEPT006': 'GYNE',
    'DEPT007': 'EMER',
    'DEPT008': 'GENE',
    'DEPT009': 'SURG',
    'DEPT010': 'OPHT',
    'DEPT011': 'ENT',
    'DEPT012': 'PSYC',
}

DEPARTMENT_NAMES = {
    'CARD': 'Cardiology',
    'ORTH': 'Orthopedics',
    'PEDI': 'Pediatrics',
    'NEUR': 'Neurology',
    'DERM': 'Dermatology',
    'GYNE': 'Gynecology',
    'EMER': 'Emergency',
    'GENE': 'General Medicine',
    'SURG': 'Surgery',
    'OPHT': 'Ophthalmology',
    'ENT': 'Otolaryngology',
    'PSYC': 'Psychiatry',
}

# Leading segments that are entity prefixes rather than department codes
FIXED_PREFIXES = {'PAT', 'ADM', 'REC', 'BILL', 'DEPT', 'SPEC'}

ID_PATTERNS = {
    'doctor': re.compile(r'^[A-Z]{3,4}-DOC-\d{6}-\d{3}$'),
    'appointment': re.compile(r'^[A-Z]{3,4}-APT-\d{6}-\d{3}$'),
    'medical_record': re.compile(r'^[A-Z]{3,4}-MR-\d{6}-\d{3}$'),
    'prescription': re.compile(r'^[A-Z]{3,4}-RX-\d{6}-\d{3}$'),
    'patient': re.compile(r'^PAT-\d{6}-\d{3}$'),
    'admin': re.compile(r'^ADM-\d{6}-\d{3}$'),
    'receptionist': re.compile(r'^REC-\d{6}-\d{3}$'),
    'bill': re.compile(r'^BILL-\d{6}-\d{3}$'),
    'room': re.compile(r'^[A-Z]{3,4}-ROOM-\d{3}$'),
    'department': re.compile(r'^DEPT\d{3}$'),
    'specialty': re.compile(r'^SPEC\d{3}$'),
}

_DEPARTMENT_RE = re.compile(r'^([A-Z]{3,4})-')
_ENTITY_RE = re.compile(r'-([A-Z]{2,4})-')
_YEAR_MONTH_RE = re.compile(r'-(\d{4})(\d{2})-')


def validate_id(value: str, kind: str) -> bool:
    pattern = ID_PATTERNS.get(kind)
    if pattern is None:
        raise ValueError(f'unknown id kind: {kind}')
    return bool(value and pattern.fullmatch(value))


def extract_department(value: str) -> Optional[str]:
    m = _DEPARTMENT_RE.match(value or '')
    if not m or m.group(1) in FIXED_PREFIXES:
        return None
    return m.group(1)


def extract_entity_type(value: str) -> Optional[str]:
    m = _ENTITY_RE.search(value or '')
    return m.group(1) if m else None


def extract_year_month(value: str) -> Optional[tuple[int, int]]:
    m = _YEAR_MONTH_RE.search(value or '')
    if not m:
        return None
    return int(m.group(1)), int(m.group(2))


def department_name(code: str) -> str:
    return DEPARTMENT_NAMES.get(code, 'Unknown Department')


def department_code(department: Department) -> str:
    return department.code or DEPARTMENT_CODES.get(department.department_id, 'GENE')


def current_period(now=None) -> str:
    return timezone.localtime(now or timezone.now()).strftime('%Y%m')


def next_sequence(prefix: str, floor: Optional[Callable[[], int]] = None) -> int:
    """Reserve the next number for ``prefix`` under a row lock.

    ``floor`` is evaluated while the lock is held and returns the highest
    number already in use, so rows inserted with explicit IDs are skipped.
    """
    with transaction.atomic():
        seq, _ = IdSequence.objects.select_for_update().get_or_create(prefix=prefix)
        last = seq.last_value if floor is None else max(seq.last_value, floor())
        if last >= MAX_SEQUENCE:
            raise IdSequenceExhausted(details={'prefix': prefix})
        seq.last_value = last + 1
        seq.save(update_fields=['last_value', 'updated_at'])
        return seq.last_value


def _periodic(prefix: str, now=None) -> str:
    head = f'{prefix}-{current_period(now)}'
    return f'{head}-{next_sequence(head):03d}'


def _coded(department: Department, tag: str, now=None) -> str:
    return _periodic(f'{department_code(department)}-{tag}', now)


def generate_doctor_id(department: Department, now=None) -> str:
    return _coded(department, 'DOC', now)


def generate_appointment_id(department: Department, now=None) -> str:
    return _coded(department, 'APT', now)


def generate_medical_record_id(department: Department, now=None) -> str:
    return _coded(department, 'MR', now)


def generate_prescription_id(department: Department, now=None) -> str:
    return _coded(department, 'RX', now)


def generate_patient_id(now=None) -> str:
    return _periodic('PAT', now)


def generate_staff_id(role: str, now=None) -> str:
    return _periodic('ADM' if role == 'admin' else 'REC', now)


def generate_bill_id(now=None) -> str:
    return _periodic('BILL', now)


def prescription_item_id(prescription_id: str, index: int) -> str:
    return f'{prescription_id}_{index:03d}'


def _highest(queryset, field: str, prefix: str):
    def scan() -> int:
        highest = 0
        for value in queryset.filter(**{f'{field}__startswith': prefix}).values_list(field, flat=True):
            tail = value[len(prefix):]
            if tail.isdigit():
                highest = max(highest, int(tail))
        return highest
    return scan


def generate_room_id(department: Department) -> str:
    prefix = f'{department_code(department)}-ROOM-'
    n = next_sequence(prefix.rstrip('-'), floor=_highest(Room.objects.all(), 'room_id', prefix))
    return f'{prefix}{n:03d}'


def generate_department_id() -> str:
    n = next_sequence('DEPT', floor=_highest(Department.objects.all(), 'department_id', 'DEPT'))
    return f'DEPT{n:03d}'


def generate_specialty_id() -> str:
    n = next_sequence('SPEC', floor=_highest(Specialty.objects.all(), 'specialty_id', 'SPEC'))
    return f'SPEC{n:03d}'


def specialty_code(name: str) -> str:
    """Derive a short code from a specialty name: initials, else the first letters."""
    words = re.findall(r'[A-Za-z]+', name or '')
    if len(words) > 1:
        code = ''.join(w[0] for w in words)[:4]
    elif words:
        code = words[0][:4]
    else:
        code = 'SPEC'
    return code.upper()

