from rest_framework import serializers

from clinic.models import BLOOD_TYPE_CHOICES, Department, GENDER_CHOICES, User
from clinic.validators import (
    CleanCharField,
    validate_full_name,
    validate_license_number,
    validate_phone_number,
)


class LoginSerializer(serializers.Serializer):
    email = serializers.CharField(required=False, allow_blank=True)
    username = serializers.CharField(required=False, allow_blank=True)
    password = serializers.CharField()

    def validate(self, attrs):
        login = (attrs.get('email') or attrs.get('username') or '').strip()
        if not login:
            raise serializers.ValidationError({'email': 'Email or username is required'})
        attrs['login'] = login
        return attrs


class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(min_length=8, write_only=True)
    full_name = CleanCharField(validators=[validate_full_name])
    phone_number = serializers.CharField(required=False, allow_blank=True, validators=[validate_phone_number])
    role = serializers.ChoiceField(choices=[r for r, _ in User.ROLE_CHOICES], default='patient')
    gender = serializers.ChoiceField(choices=GENDER_CHOICES, required=False, allow_blank=True)
    # patient
    date_of_birth = serializers.DateField(required=False, allow_null=True)
    blood_type = serializers.ChoiceField(choices=BLOOD_TYPE_CHOICES, required=False, allow_blank=True)
    # doctor
    department_id = serializers.PrimaryKeyRelatedField(
        queryset=Department.objects.filter(is_active=True), source='department', required=False,
        error_messages={'does_not_exist': 'Department not found'},
    )
    specialty = serializers.CharField(required=False, max_length=100)
    license_number = serializers.CharField(required=False, validators=[validate_license_number])
    qualification = serializers.CharField(required=False, allow_blank=True, max_length=255)

    def validate_email(self, v):
        v = v.lower()
        if User.objects.filter(email__iexact=v).exists():
            raise serializers.ValidationError('A user with this email already exists.')
        return v

    def validate(self, attrs):
        if attrs.get('role') == 'doctor':
            missing = [f for f in ('department', 'specialty', 'license_number') if not attrs.get(f)]
            if missing:
                raise serializers.ValidationError({
                    ('department_id' if f == 'department' else f): 'Required for doctors' for f in missing
                })
        return attrs


class ProfileUpdateSerializer(serializers.Serializer):
    full_name = CleanCharField(required=False, validators=[validate_full_name])
    phone_number = serializers.CharField(required=False, allow_blank=True, validators=[validate_phone_number])


class ChangePasswordSerializer(serializers.Serializer):
    old_password = serializers.CharField()
    new_password = serializers.CharField(min_length=8)


class UserListQuerySerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=[r for r, _ in User.ROLE_CHOICES], required=False)
    is_active = serializers.BooleanField(required=False, allow_null=True, default=None)
    search = serializers.CharField(required=False, allow_blank=True)
