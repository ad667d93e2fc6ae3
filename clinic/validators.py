"""
Field validators shared by the input serializers.

Formats follow Vietnamese conventions: ten-digit phone numbers starting
with 0, ``VN-XXXX-0000`` medical licences, 12-digit CCCD or 9-digit CMND
national IDs and ``XX0000000000000`` health-insurance (BHYT) numbers.
"""
from __future__ import annotations

import re
from decimal import Decimal

import bleach
from rest_framework import serializers

PHONE_RE = re.compile(r'^0\d{9}$')
LICENSE_RE = re.compile(r'^VN-[A-Z]{2,4}-\d{4}$')
NATIONAL_ID_RE = re.compile(r'^(\d{12}|\d{9})$')
INSURANCE_RE = re.compile(r'^[A-Z]{2}\d{13}$')
DEPARTMENT_CODE_RE = re.compile(r'^[A-Z]{3,4}$')

GENDERS = ('male', 'female', 'other')
BLOOD_TYPES = ('A+', 'A-', 'B+', 'B-', 'AB+', 'AB-', 'O+', 'O-')

RANGES = {
    'age': (0, 120),
    'experience_years': (0, 50),
    'consultation_fee': (Decimal('0'), Decimal('10000000')),
    'slot_duration': (15, 480),
    'room_capacity': (1, 50),
    'temperature': (Decimal('30'), Decimal('45')),
    'heart_rate': (30, 200),
    'blood_pressure_systolic': (60, 250),
    'blood_pressure_diastolic': (40, 150),
    'respiratory_rate': (8, 40),
    'oxygen_saturation': (70, 100),
    'weight': (Decimal('0.5'), Decimal('300')),
    'height': (Decimal('30'), Decimal('250')),
    'rating': (1, 5),
}

NAME_MIN, NAME_MAX = 2, 100


def range_kwargs(name: str) -> dict:
    low, high = RANGES[name]
    return {'min_value': low, 'max_value': high}


def validate_phone_number(value: str) -> str:
    if value and not PHONE_RE.fullmatch(value):
        raise serializers.ValidationError('Phone number must be 10 digits starting with 0.')
    return value


def validate_license_number(value: str) -> str:
    if not LICENSE_RE.fullmatch(value or ''):
        raise serializers.ValidationError('License number must look like VN-XX-0000.')
    return value


def validate_national_id(value: str) -> str:
    if value and not NATIONAL_ID_RE.fullmatch(value):
        raise serializers.ValidationError('National ID must be a 12-digit CCCD or 9-digit CMND.')
    return value


def validate_insurance_number(value: str) -> str:
    if value and not INSURANCE_RE.fullmatch(value):
        raise serializers.ValidationError('Insurance number must be 2 letters followed by 13 digits.')
    return value


def validate_department_code(value: str) -> str:
    if not DEPARTMENT_CODE_RE.fullmatch(value or ''):
        raise serializers.ValidationError('Department code must be 3-4 uppercase letters.')
    return value


def clean_text(value: str | None) -> str:
    """Strip markup from free text."""
    return bleach.clean((value or '').strip(), tags=[], strip=True)


def validate_full_name(value: str) -> str:
    value = clean_text(value)
    if not NAME_MIN <= len(value) <= NAME_MAX:
        raise serializers.ValidationError(f'Name must be {NAME_MIN}-{NAME_MAX} characters.')
    return value


class CleanCharField(serializers.CharField):
    """CharField whose value is passed through :func:`clean_text`."""

    def to_internal_value(self, data):
        return clean_text(super().to_internal_value(data))
