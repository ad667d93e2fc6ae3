from django.utils import timezone
from rest_framework import serializers

from clinic.models import BLOOD_TYPE_CHOICES, GENDER_CHOICES, Patient
from clinic.validators import (
    CleanCharField,
    validate_full_name,
    validate_insurance_number,
    validate_national_id,
    validate_phone_number,
)


class AddressSerializer(serializers.Serializer):
    street = CleanCharField(required=False, allow_blank=True, max_length=255)
    ward = CleanCharField(required=False, allow_blank=True, max_length=100)
    district = CleanCharField(required=False, allow_blank=True, max_length=100)
    city = CleanCharField(required=False, allow_blank=True, max_length=100)
    country = CleanCharField(required=False, allow_blank=True, max_length=100)


class EmergencyContactSerializer(serializers.Serializer):
    name = CleanCharField(max_length=100)
    relationship = CleanCharField(required=False, allow_blank=True, max_length=50)
    phone_number = serializers.CharField(validators=[validate_phone_number])


class InsuranceSerializer(serializers.Serializer):
    provider = CleanCharField(required=False, allow_blank=True, max_length=100)
    policy_number = serializers.CharField(required=False, allow_blank=True, validators=[validate_insurance_number])
    expiry_date = serializers.DateField(required=False, allow_null=True)

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        if value.get('expiry_date'):
            value['expiry_date'] = value['expiry_date'].isoformat()
        return value


class PatientProfileSerializer(serializers.Serializer):
    full_name = CleanCharField(required=False, validators=[validate_full_name])
    phone_number = serializers.CharField(required=False, allow_blank=True, validators=[validate_phone_number])
    gender = serializers.ChoiceField(choices=GENDER_CHOICES, required=False, allow_blank=True)
    date_of_birth = serializers.DateField(required=False, allow_null=True)
    blood_type = serializers.ChoiceField(choices=BLOOD_TYPE_CHOICES, required=False, allow_blank=True)
    national_id = serializers.CharField(required=False, allow_blank=True, validators=[validate_national_id])
    address = AddressSerializer(required=False)
    emergency_contact = EmergencyContactSerializer(required=False)
    insurance_info = InsuranceSerializer(required=False)
    allergies = serializers.ListField(child=CleanCharField(max_length=100), required=False)
    chronic_conditions = serializers.ListField(child=CleanCharField(max_length=100), required=False)
    medical_history = CleanCharField(required=False, allow_blank=True)

    def validate_date_of_birth(self, v):
        if v and v > timezone.localdate():
            raise serializers.ValidationError('Date of birth cannot be in the future.')
        return v


class PatientCreateSerializer(PatientProfileSerializer):
    email = serializers.EmailField()
    full_name = CleanCharField(validators=[validate_full_name])
    password = serializers.CharField(required=False, allow_blank=True, write_only=True)


class PatientUpdateSerializer(PatientProfileSerializer):
    status = serializers.ChoiceField(choices=Patient.STATUS_CHOICES, required=False)


class PatientListQuerySerializer(serializers.Serializer):
    gender = serializers.ChoiceField(choices=GENDER_CHOICES, required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=Patient.STATUS_CHOICES, required=False, allow_blank=True)
    blood_type = serializers.ChoiceField(choices=BLOOD_TYPE_CHOICES, required=False, allow_blank=True)
    search = serializers.CharField(required=False, allow_blank=True)
