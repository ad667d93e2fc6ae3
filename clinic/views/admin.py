"""Administrator views: users, login history and the audit trail."""
from __future__ import annotations

from django.db.models import Q
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated

from clinic.models import AuditEvent, LoginHistory, User
from clinic.permissions import IsAdminRole
from clinic.responses import get_or_404, paginated_response, success_response
from clinic.serializers.auth import UserListQuerySerializer
from clinic.services.accounts import format_user
from clinic.services.audit import format_audit_event, format_login, log_action


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def login_history(request):
    qs = LoginHistory.objects.all()
    success = request.query_params.get('success')
    if success in ('true', '1'):
        qs = qs.filter(success=True)
    elif success in ('false', '0'):
        qs = qs.filter(success=False)
    email = request.query_params.get('email')
    if email:
        qs = qs.filter(email__icontains=email)
    return paginated_response(request, qs, format_login)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def list_users(request):
    # plain dict: a QueryDict would read a missing is_active as False
    q = UserListQuerySerializer(data=request.query_params.dict())
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = User.objects.select_related('patient_profile', 'doctor_profile').order_by('id')
    if vd.get('role'):
        qs = qs.filter(role=vd['role'])
    if vd.get('is_active') is not None:
        qs = qs.filter(is_active=vd['is_active'])
    if vd.get('search'):
        term = vd['search']
        qs = qs.filter(Q(full_name__icontains=term) | Q(email__icontains=term) | Q(username__icontains=term))
    return paginated_response(request, qs, format_user)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def toggle_user_active(request, user_id: int):
    user = get_or_404(User.objects.all(), 'User', pk=user_id)
    if user.pk == request.user.pk:
        raise ValidationError({'user': 'You cannot deactivate your own account'})
    user.is_active = not user.is_active
    user.save(update_fields=['is_active'])
    log_action(user=request.user, action='user_toggle_active', object_type='user', object_id=user.id,
               detail={'is_active': user.is_active})
    state = 'activated' if user.is_active else 'deactivated'
    return success_response(format_user(user), message=f'User {state}')


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def audit_events(request):
    qs = AuditEvent.objects.all()
    action = request.query_params.get('action')
    if action:
        qs = qs.filter(action=action)
    object_type = request.query_params.get('object_type')
    if object_type:
        qs = qs.filter(object_type=object_type)
    return paginated_response(request, qs, format_audit_event)
