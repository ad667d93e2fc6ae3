from rest_framework import serializers

from clinic.models import Department, Room
from clinic.validators import (
    CleanCharField,
    range_kwargs,
    validate_department_code,
    validate_phone_number,
)


class DepartmentSerializer(serializers.Serializer):
    department_id = serializers.RegexField(r'^DEPT\d{3}$', required=False)
    code = serializers.CharField(validators=[validate_department_code])
    name = CleanCharField(max_length=255)
    description = CleanCharField(required=False, allow_blank=True)
    parent_id = serializers.PrimaryKeyRelatedField(
        queryset=Department.objects.all(), source='parent', required=False, allow_null=True,
        error_messages={'does_not_exist': 'Parent department not found'},
    )
    location = CleanCharField(required=False, allow_blank=True, max_length=255)
    phone_number = serializers.CharField(required=False, allow_blank=True, validators=[validate_phone_number])
    is_active = serializers.BooleanField(required=False)

    def validate_department_id(self, v):
        if Department.objects.filter(pk=v).exists():
            raise serializers.ValidationError('Department ID already exists.')
        return v

    def validate_code(self, v):
        qs = Department.objects.filter(code=v)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError('Department code already in use.')
        return v


class SpecialtySerializer(serializers.Serializer):
    name = CleanCharField(max_length=100)
    code = serializers.RegexField(r'^[A-Za-z]{2,10}$', required=False, allow_blank=True)
    department_id = serializers.PrimaryKeyRelatedField(
        queryset=Department.objects.all(), source='department', required=False, allow_null=True,
        error_messages={'does_not_exist': 'Department not found'},
    )
    description = CleanCharField(required=False, allow_blank=True)
    is_active = serializers.BooleanField(required=False)


class RoomSerializer(serializers.Serializer):
    room_number = serializers.CharField(max_length=20)
    department_id = serializers.PrimaryKeyRelatedField(
        queryset=Department.objects.filter(is_active=True), source='department',
        error_messages={'does_not_exist': 'Department not found'},
    )
    room_type = serializers.ChoiceField(choices=Room.TYPE_CHOICES, required=False)
    capacity = serializers.IntegerField(required=False, **range_kwargs('room_capacity'))
    status = serializers.ChoiceField(choices=Room.STATUS_CHOICES, required=False)
    location = CleanCharField(required=False, allow_blank=True, max_length=255)
    notes = CleanCharField(required=False, allow_blank=True)
    is_active = serializers.BooleanField(required=False)
