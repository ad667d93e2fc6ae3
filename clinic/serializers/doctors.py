from rest_framework import serializers

from clinic.models import Appointment, Department, Doctor, DoctorExperience, GENDER_CHOICES
from clinic.validators import (
    CleanCharField,
    range_kwargs,
    validate_full_name,
    validate_license_number,
    validate_phone_number,
)


class DoctorListQuerySerializer(serializers.Serializer):
    specialty = serializers.CharField(required=False, allow_blank=True)
    department_id = serializers.CharField(required=False, allow_blank=True)
    gender = serializers.ChoiceField(choices=GENDER_CHOICES, required=False, allow_blank=True)
    availability = serializers.ChoiceField(choices=Doctor.AVAILABILITY_CHOICES, required=False, allow_blank=True)
    search = serializers.CharField(required=False, allow_blank=True)


class DoctorProfileSerializer(serializers.Serializer):
    """Fields a doctor (or an admin on their behalf) may edit."""
    full_name = CleanCharField(required=False, validators=[validate_full_name])
    phone_number = serializers.CharField(required=False, allow_blank=True, validators=[validate_phone_number])
    specialty = CleanCharField(required=False, max_length=100)
    qualification = CleanCharField(required=False, allow_blank=True, max_length=255)
    gender = serializers.ChoiceField(choices=GENDER_CHOICES, required=False, allow_blank=True)
    bio = CleanCharField(required=False, allow_blank=True)
    experience_years = serializers.IntegerField(required=False, **range_kwargs('experience_years'))
    consultation_fee = serializers.DecimalField(max_digits=12, decimal_places=2, required=False,
                                                **range_kwargs('consultation_fee'))
    languages_spoken = serializers.ListField(child=serializers.CharField(max_length=50), required=False)
    availability_status = serializers.ChoiceField(choices=Doctor.AVAILABILITY_CHOICES, required=False)


class DoctorCreateSerializer(DoctorProfileSerializer):
    email = serializers.EmailField()
    password = serializers.CharField(min_length=8, write_only=True)
    full_name = CleanCharField(validators=[validate_full_name])
    specialty = CleanCharField(max_length=100)
    license_number = serializers.CharField(validators=[validate_license_number])
    department_id = serializers.PrimaryKeyRelatedField(
        queryset=Department.objects.filter(is_active=True), source='department',
        error_messages={'does_not_exist': 'Department not found'},
    )

    def validate_license_number(self, v):
        if Doctor.objects.filter(license_number=v).exists():
            raise serializers.ValidationError('License number already registered.')
        return v


class DoctorUpdateSerializer(DoctorProfileSerializer):
    department_id = serializers.PrimaryKeyRelatedField(
        queryset=Department.objects.filter(is_active=True), source='department', required=False,
        error_messages={'does_not_exist': 'Department not found'},
    )


class ScheduleEntrySerializer(serializers.Serializer):
    day_of_week = serializers.IntegerField(min_value=0, max_value=6, required=False)
    start_time = serializers.TimeField()
    end_time = serializers.TimeField()
    is_available = serializers.BooleanField(default=True)
    break_start = serializers.TimeField(required=False, allow_null=True)
    break_end = serializers.TimeField(required=False, allow_null=True)
    max_appointments = serializers.IntegerField(required=False, min_value=0, max_value=200)
    slot_duration = serializers.IntegerField(required=False, **range_kwargs('slot_duration'))

    def validate(self, attrs):
        if attrs['end_time'] <= attrs['start_time']:
            raise serializers.ValidationError({'end_time': 'End time must be after start time.'})
        b_start, b_end = attrs.get('break_start'), attrs.get('break_end')
        if bool(b_start) != bool(b_end):
            raise serializers.ValidationError({'break_end': 'Break needs both a start and an end.'})
        if b_start and not (attrs['start_time'] <= b_start < b_end <= attrs['end_time']):
            raise serializers.ValidationError({'break_start': 'Break must fall inside working hours.'})
        return attrs


class ScheduleSerializer(serializers.Serializer):
    schedules = ScheduleEntrySerializer(many=True)

    def validate_schedules(self, v):
        # entries without a day take their position in the list
        for index, entry in enumerate(v):
            entry.setdefault('day_of_week', index)
        days = [e['day_of_week'] for e in v]
        if any(d > 6 for d in days):
            raise serializers.ValidationError('A week has only seven days.')
        if len(days) != len(set(days)):
            raise serializers.ValidationError('Each day may appear only once.')
        return v


class SlotQuerySerializer(serializers.Serializer):
    date = serializers.DateField()
    duration = serializers.IntegerField(required=False, **range_kwargs('slot_duration'))


class ExperienceSerializer(serializers.Serializer):
    experience_type = serializers.ChoiceField(choices=DoctorExperience.TYPE_CHOICES, default='work')
    title = CleanCharField(max_length=255)
    organization = CleanCharField(max_length=255)
    start_date = serializers.DateField()
    end_date = serializers.DateField(required=False, allow_null=True)
    is_current = serializers.BooleanField(default=False)
    description = CleanCharField(required=False, allow_blank=True)


class ReviewCreateSerializer(serializers.Serializer):
    rating = serializers.IntegerField(**range_kwargs('rating'))
    comment = CleanCharField(required=False, allow_blank=True, max_length=2000)
    appointment_id = serializers.PrimaryKeyRelatedField(
        queryset=Appointment.objects.all(), source='appointment', required=False, allow_null=True,
        error_messages={'does_not_exist': 'Appointment not found'},
    )


class ReviewUpdateSerializer(serializers.Serializer):
    rating = serializers.IntegerField(required=False, **range_kwargs('rating'))
    comment = CleanCharField(required=False, allow_blank=True, max_length=2000)


class ReviewQuerySerializer(serializers.Serializer):
    rating = serializers.IntegerField(required=False, **range_kwargs('rating'))
    search = serializers.CharField(required=False, allow_blank=True)
