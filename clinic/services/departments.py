"""Departments, specialties and rooms."""
from __future__ import annotations

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from django.core.cache import cache
from django.db import transaction
from django.db.models import Avg, Count, Q

from clinic.exceptions import BusinessRuleError
from clinic.models import Department, Room, Specialty
from clinic.services import ids

logger = logging.getLogger(__name__)

DEPARTMENTS_CACHE_KEY = 'departments:active'


def format_department(d: Department) -> dict:
    return {
        'department_id': d.department_id,
        'code': d.code,
        'name': d.name,
        'description': d.description,
        'parent_id': d.parent_id,
        'location': d.location,
        'phone_number': d.phone_number,
        'is_active': d.is_active,
        'created_at': d.created_at.isoformat() if d.created_at else None,
        'updated_at': d.updated_at.isoformat() if d.updated_at else None,
    }


def format_specialty(s: Specialty) -> dict:
    return {
        'specialty_id': s.specialty_id,
        'name': s.name,
        'code': s.code,
        'department_id': s.department_id,
        'description': s.description,
        'is_active': s.is_active,
    }


def format_room(r: Room) -> dict:
    return {
        'room_id': r.room_id,
        'room_number': r.room_number,
        'department_id': r.department_id,
        'room_type': r.room_type,
        'capacity': r.capacity,
        'status': r.status,
        'location': r.location,
        'notes': r.notes,
        'is_active': r.is_active,
    }


def active_departments_payload() -> list[dict]:
    """Active departments as dicts, cached."""
    data = cache.get(DEPARTMENTS_CACHE_KEY)
    if data is None:
        data = [format_department(d) for d in Department.objects.filter(is_active=True)]
        cache.set(DEPARTMENTS_CACHE_KEY, data, 300)
    return data


def invalidate_department_cache() -> None:
    cache.delete(DEPARTMENTS_CACHE_KEY)


def create_department(*, name: str, code: str, department_id: Optional[str] = None, **fields) -> Department:
    with transaction.atomic():
        dept = Department.objects.create(
            department_id=department_id or ids.generate_department_id(),
            code=code,
            name=name,
            **fields,
        )
    invalidate_department_cache()
    logger.info("department %s (%s) created", dept.department_id, dept.code)
    return dept


def update_department(dept: Department, **fields) -> Department:
    parent = fields.get('parent')
    if parent is not None:
        if parent.pk == dept.pk or dept.pk in [a.pk for a in ancestors(parent)]:
            raise BusinessRuleError('A department cannot be its own ancestor')
    if fields.get('is_active') is False and dept.is_active:
        _ensure_no_active_doctors(dept)
    for key, value in fields.items():
        setattr(dept, key, value)
    dept.save()
    invalidate_department_cache()
    return dept


def _ensure_no_active_doctors(dept: Department) -> None:
    active = dept.doctors.filter(is_active=True).count()
    if active:
        raise BusinessRuleError('Department still has active doctors', details={'doctors': active})


def deactivate_department(dept: Department) -> Department:
    _ensure_no_active_doctors(dept)
    dept.is_active = False
    dept.save(update_fields=['is_active', 'updated_at'])
    invalidate_department_cache()
    logger.info("department %s deactivated", dept.department_id)
    return dept


def ancestors(dept: Department) -> list[Department]:
    """Parents from the root down to (excluding) ``dept``."""
    chain: list[Department] = []
    seen = {dept.pk}
    node = dept.parent
    while node is not None and node.pk not in seen:
        chain.append(node)
        seen.add(node.pk)
        node = node.parent
    chain.reverse()
    return chain


def department_tree(include_inactive: bool = False) -> list[dict]:
    qs = Department.objects.all()
    if not include_inactive:
        qs = qs.filter(is_active=True)
    nodes = {d.department_id: {**format_department(d), 'children': []} for d in qs}
    roots = []
    for node in nodes.values():
        parent = nodes.get(node['parent_id'])
        if parent is not None:
            parent['children'].append(node)
        else:
            roots.append(node)
    return roots


def department_stats() -> list[dict]:
    qs = Department.objects.annotate(
        doctor_count=Count('doctors', filter=Q(doctors__is_active=True), distinct=True),
        room_count=Count('rooms', filter=Q(rooms__is_active=True), distinct=True),
        appointment_count=Count('doctors__appointments', distinct=True),
    )
    return [{
        'department_id': d.department_id,
        'code': d.code,
        'name': d.name,
        'is_active': d.is_active,
        'doctors': d.doctor_count,
        'rooms': d.room_count,
        'appointments': d.appointment_count,
    } for d in qs]


# ---------------------------------------------------------------------------
# Specialties
# ---------------------------------------------------------------------------

def create_specialty(*, name: str, code: str = '', department: Optional[Department] = None,
                     description: str = '') -> Specialty:
    spec = Specialty.objects.create(
        specialty_id=ids.generate_specialty_id(),
        name=name,
        code=(code or ids.specialty_code(name)).upper(),
        department=department,
        description=description,
    )
    logger.info("specialty %s (%s) created", spec.specialty_id, spec.code)
    return spec


# ---------------------------------------------------------------------------
# Rooms
# ---------------------------------------------------------------------------

def create_room(*, department: Department, room_number: str, **fields) -> Room:
    if Room.objects.filter(department=department, room_number=room_number).exists():
        raise BusinessRuleError('Room number already exists in this department')
    room = Room.objects.create(
        room_id=ids.generate_room_id(department),
        department=department,
        room_number=room_number,
        **fields,
    )
    logger.info("room %s created", room.room_id)
    return room


def room_stats(department: Optional[Department] = None) -> dict:
    qs = Room.objects.all()
    if department is not None:
        qs = qs.filter(department=department)
    total = qs.count()
    active = qs.filter(is_active=True)
    active_count = active.count()
    available = active.filter(status='available').count()
    occupied = active.filter(status='occupied').count()
    by_type = {key: 0 for key, _ in Room.TYPE_CHOICES}
    for row in active.values('room_type').annotate(n=Count('room_id')):
        by_type[row['room_type']] = row['n']
    avg = active.aggregate(a=Avg('capacity'))['a'] or 0
    utilization = (Decimal(active_count - available) * 100 / active_count) if active_count else Decimal('0')
    return {
        'total': total,
        'active': active_count,
        'available': available,
        'occupied': occupied,
        'by_type': by_type,
        'average_capacity': float(Decimal(str(avg)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)),
        'utilization_rate': float(utilization.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)),
    }
