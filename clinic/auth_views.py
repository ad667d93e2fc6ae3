"""
Authentication views.

Registration, login, token refresh/logout and the caller's own profile.
Login issues both a SimpleJWT pair and a legacy DRF ``Token`` so older
clients that send ``Authorization: Token <key>`` keep working.
"""
from __future__ import annotations

import logging

from django.contrib.auth import authenticate
from django.contrib.auth.models import update_last_login
from django.db import transaction
from django.db.models import Q
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import AuthenticationFailed, PermissionDenied, ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.serializers import TokenRefreshSerializer
from rest_framework_simplejwt.settings import api_settings as jwt_settings
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.tokens import RefreshToken

from clinic.models import User
from clinic.permissions import user_role
from clinic.responses import created_response, success_response
from clinic.serializers.auth import (
    ChangePasswordSerializer,
    LoginSerializer,
    ProfileUpdateSerializer,
    RegisterSerializer,
)
from clinic.services.accounts import checked_password, create_account, format_user
from clinic.services.audit import client_ip, log_action, record_login
from clinic.services.doctors import create_doctor
from clinic.services.patients import create_patient

logger = logging.getLogger(__name__)


def issue_tokens(user: User) -> dict:
    token_obj, _ = Token.objects.get_or_create(user=user)
    refresh = RefreshToken.for_user(user)
    return {
        'access': str(refresh.access_token),
        'refresh': str(refresh),
        'token': token_obj.key,
        'token_type': 'Bearer',
        'expires_in': int(jwt_settings.ACCESS_TOKEN_LIFETIME.total_seconds()),
    }


# ---------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def register_view(request):
    """
    Create an account and its role record in one transaction.

    Anyone may register as a patient; doctor, receptionist and admin
    accounts can only be created by an administrator.
    """
    s = RegisterSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    role = vd['role']
    if role != 'patient' and user_role(request.user) != 'admin':
        raise PermissionDenied('Only administrators can create staff accounts')
    password, _ = checked_password(vd['password'])
    common = {'email': vd['email'], 'full_name': vd['full_name'], 'phone_number': vd.get('phone_number', '')}

    with transaction.atomic():
        if role == 'patient':
            profile = {k: vd[k] for k in ('gender', 'date_of_birth', 'blood_type') if vd.get(k)}
            patient, _ = create_patient(password=password, **common, **profile)
            user = patient.user
        elif role == 'doctor':
            profile = {k: vd[k] for k in ('gender', 'qualification') if vd.get(k)}
            doctor = create_doctor(
                password=password,
                department=vd['department'],
                specialty=vd['specialty'],
                license_number=vd['license_number'],
                **common,
                **profile,
            )
            user = doctor.user
        else:
            user = create_account(password=password, role=role, **common)
        tokens = issue_tokens(user)

    actor = request.user if user_role(request.user) else user
    log_action(user=actor, action='register', object_type='user', object_id=user.id,
               detail={'role': role, 'ip': client_ip(request)})
    return created_response({'user': format_user(user), **tokens}, message='Registration successful')


register_view.cls.throttle_scope = 'register'


# ---------------------------------------------------------------------
# Login (email or username + password, no role bypass)
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    login = s.validated_data['login']
    password = s.validated_data['password']

    candidate = User.objects.filter(Q(email__iexact=login) | Q(username=login)).first()
    user = authenticate(request, username=candidate.username, password=password) if candidate else None
    if user is None:
        reason = 'account disabled' if candidate is not None and not candidate.is_active else 'invalid credentials'
        record_login(request, email=login, user=candidate, success=False, reason=reason)
        log_action(user=None, action='login', object_type='user',
                   object_id=candidate.id if candidate else None,
                   detail={'result': 'fail', 'login': login, 'ip': client_ip(request)})
        logger.info("failed login for %s (%s)", login, reason)
        raise AuthenticationFailed('Invalid email or password')

    update_last_login(None, user)
    record_login(request, email=user.email, user=user, success=True)
    log_action(user=user, action='login', object_type='user', object_id=user.id,
               detail={'result': 'ok', 'ip': client_ip(request)})
    return success_response({'user': format_user(user), **issue_tokens(user)}, message='Login successful')


login_view.cls.throttle_scope = 'login'


# ---------------------------------------------------------------------
# JWT: refresh, logout, verify
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def jwt_refresh_view(request):
    """Return a new access token from a refresh token."""
    s = TokenRefreshSerializer(data=request.data)
    try:
        s.is_valid(raise_exception=True)
    except TokenError as e:
        raise InvalidToken(e.args[0])
    return success_response(s.validated_data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def jwt_logout_view(request):
    """Blacklist the given refresh token, or every outstanding one of the user."""
    refresh = request.data.get('refresh')
    count = 0
    if refresh:
        try:
            RefreshToken(refresh).blacklist()
        except TokenError:
            raise ValidationError({'refresh': 'Invalid or expired token'})
        count = 1
    else:
        for token in OutstandingToken.objects.filter(user=request.user):
            _, created = BlacklistedToken.objects.get_or_create(token=token)
            count += int(created)
    Token.objects.filter(user=request.user).delete()
    log_action(user=request.user, action='logout', object_type='user', object_id=request.user.id,
               detail={'blacklisted': count})
    return success_response({'blacklisted': count}, message='Logged out')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def verify_view(request):
    return success_response({'valid': True, 'user': format_user(request.user)})


# ---------------------------------------------------------------------
# Own profile
# ---------------------------------------------------------------------
@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def me_view(request):
    user = request.user
    if request.method == 'PATCH':
        s = ProfileUpdateSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        for key, value in s.validated_data.items():
            setattr(user, key, value)
        if s.validated_data:
            user.save(update_fields=list(s.validated_data))
        return success_response(format_user(user), message='Profile updated')
    return success_response(format_user(user))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def change_password_view(request):
    s = ChangePasswordSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = request.user
    if not user.check_password(s.validated_data['old_password']):
        raise ValidationError({'old_password': 'Current password is incorrect'})
    new_password, _ = checked_password(s.validated_data['new_password'], user)
    user.set_password(new_password)
    user.save(update_fields=['password'])
    # Old legacy tokens stop working once the password changes
    Token.objects.filter(user=user).delete()
    log_action(user=user, action='change_password', object_type='user', object_id=user.id)
    return success_response(None, message='Password changed')
