"""User account creation and profile payloads."""
from __future__ import annotations

import logging
import secrets
from typing import Optional

from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from rest_framework import serializers

from clinic.models import User
from clinic.services import ids

logger = logging.getLogger(__name__)


def checked_password(password: Optional[str], user: Optional[User] = None) -> tuple[str, bool]:
    """Validate ``password`` or generate one; returns ``(password, generated)``."""
    if password:
        try:
            validate_password(password, user=user)
        except ValidationError as e:
            raise serializers.ValidationError({'password': e.messages})
        return password, False
    return secrets.token_urlsafe(12), True


def create_account(*, email: str, password: str, role: str, full_name: str = '',
                   phone_number: str = '', username: Optional[str] = None) -> User:
    email = email.lower()
    if User.objects.filter(email__iexact=email).exists():
        raise serializers.ValidationError({'email': ['A user with this email already exists.']})
    user = User.objects.create_user(
        username=username or email,
        email=email,
        password=password,
        role=role,
        full_name=full_name,
        phone_number=phone_number,
    )
    if role in ('admin', 'receptionist'):
        user.staff_id = ids.generate_staff_id(role)
        user.is_staff = role == 'admin'
        user.save(update_fields=['staff_id', 'is_staff'])
    logger.info("account %s created with role %s", user.id, role)
    return user


def role_identifier(user: User) -> Optional[str]:
    """The role-specific ID: patient_id, doctor_id or staff_id."""
    if user.role == 'patient':
        profile = getattr(user, 'patient_profile', None)
        return profile.patient_id if profile else None
    if user.role == 'doctor':
        profile = getattr(user, 'doctor_profile', None)
        return profile.doctor_id if profile else None
    return user.staff_id


def format_user(user: User) -> dict:
    data = {
        'id': user.id,
        'username': user.username,
        'email': user.email,
        'full_name': user.display_name,
        'phone_number': user.phone_number,
        'role': user.role,
        'is_active': user.is_active,
        'date_joined': user.date_joined.isoformat() if user.date_joined else None,
        'last_login': user.last_login.isoformat() if user.last_login else None,
    }
    key = {'patient': 'patient_id', 'doctor': 'doctor_id'}.get(user.role, 'staff_id')
    data[key] = role_identifier(user)
    return data
