from typing import Any, Dict, Optional

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.validators import validate_ipv46_address

from clinic.models import AuditEvent, LoginHistory

User = get_user_model()


def log_action(*, user: Optional[User], action: str, object_type: Optional[str] = None,
               object_id: Optional[Any] = None, detail: Optional[Dict[str, Any]] = None) -> AuditEvent:
    return AuditEvent.objects.create(
        user=user if getattr(user, 'is_authenticated', False) else None,
        action=action,
        object_type=object_type,
        object_id=str(object_id) if object_id is not None else None,
        detail=detail or {},
    )


def _valid_ip(value: Optional[str]) -> Optional[str]:
    value = (value or '').strip()
    try:
        validate_ipv46_address(value)
    except ValidationError:
        return None
    return value


def client_ip(request) -> Optional[str]:
    """First X-Forwarded-For hop when it is a valid address, else REMOTE_ADDR."""
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        ip = _valid_ip(forwarded.split(',')[0])
        if ip:
            return ip
    return _valid_ip(request.META.get('REMOTE_ADDR'))


def record_login(request, *, email: str, user=None, success: bool, reason: str = '') -> LoginHistory:
    return LoginHistory.objects.create(
        user=user,
        email=email or '',
        success=success,
        ip_address=client_ip(request),
        user_agent=(request.META.get('HTTP_USER_AGENT') or '')[:255],
        failure_reason=reason,
    )


def format_audit_event(e: AuditEvent) -> dict:
    return {
        'id': e.id,
        'user_id': e.user_id,
        'action': e.action,
        'object_type': e.object_type,
        'object_id': e.object_id,
        'detail': e.detail,
        'created_at': e.created_at.isoformat(),
    }


def format_login(h: LoginHistory) -> dict:
    return {
        'id': h.id,
        'user_id': h.user_id,
        'email': h.email,
        'success': h.success,
        'ip_address': h.ip_address,
        'user_agent': h.user_agent,
        'failure_reason': h.failure_reason,
        'created_at': h.created_at.isoformat(),
    }
