from django.utils import timezone
from rest_framework import serializers

from clinic.models import Appointment, Doctor, Patient, Room
from clinic.validators import CleanCharField


class AppointmentCreateSerializer(serializers.Serializer):
    doctor_id = serializers.PrimaryKeyRelatedField(
        queryset=Doctor.objects.filter(is_active=True).select_related('user', 'department'), source='doctor',
        error_messages={'does_not_exist': 'Doctor not found'},
    )
    # Patients book for themselves; staff must name the patient.
    patient_id = serializers.PrimaryKeyRelatedField(
        queryset=Patient.objects.select_related('user'), source='patient', required=False,
        error_messages={'does_not_exist': 'Patient not found'},
    )
    appointment_date = serializers.DateField()
    start_time = serializers.TimeField()
    end_time = serializers.TimeField()
    appointment_type = serializers.ChoiceField(choices=Appointment.TYPE_CHOICES, default='consultation')
    reason = CleanCharField(required=False, allow_blank=True, max_length=1000)
    notes = CleanCharField(required=False, allow_blank=True, max_length=2000)
    room_id = serializers.PrimaryKeyRelatedField(
        queryset=Room.objects.filter(is_active=True), source='room', required=False, allow_null=True,
        error_messages={'does_not_exist': 'Room not found'},
    )

    def validate_appointment_date(self, v):
        if v < timezone.localdate():
            raise serializers.ValidationError('Appointment date cannot be in the past.')
        return v

    def validate(self, attrs):
        if attrs['end_time'] <= attrs['start_time']:
            raise serializers.ValidationError({'end_time': 'End time must be after start time.'})
        return attrs


class AppointmentUpdateSerializer(serializers.Serializer):
    appointment_date = serializers.DateField(required=False)
    start_time = serializers.TimeField(required=False)
    end_time = serializers.TimeField(required=False)
    appointment_type = serializers.ChoiceField(choices=Appointment.TYPE_CHOICES, required=False)
    reason = CleanCharField(required=False, allow_blank=True, max_length=1000)
    notes = CleanCharField(required=False, allow_blank=True, max_length=2000)
    room_id = serializers.PrimaryKeyRelatedField(
        queryset=Room.objects.filter(is_active=True), source='room', required=False, allow_null=True,
        error_messages={'does_not_exist': 'Room not found'},
    )

    def validate_appointment_date(self, v):
        if v < timezone.localdate():
            raise serializers.ValidationError('Appointment date cannot be in the past.')
        return v


class StatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Appointment.STATUS_CHOICES)
    reason = CleanCharField(required=False, allow_blank=True, max_length=1000)


class CancelSerializer(serializers.Serializer):
    reason = CleanCharField(required=False, allow_blank=True, max_length=1000)


class AppointmentQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Appointment.STATUS_CHOICES, required=False, allow_blank=True)
    appointment_type = serializers.ChoiceField(choices=Appointment.TYPE_CHOICES, required=False, allow_blank=True)
    doctor_id = serializers.CharField(required=False, allow_blank=True)
    patient_id = serializers.CharField(required=False, allow_blank=True)
    appointment_date = serializers.DateField(required=False)
    date = serializers.DateField(required=False)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)
    search = serializers.CharField(required=False, allow_blank=True)


class UpcomingQuerySerializer(serializers.Serializer):
    doctor_id = serializers.CharField(required=False, allow_blank=True)
    days = serializers.IntegerField(required=False, min_value=1, max_value=90, default=7)


class AvailableSlotsQuerySerializer(serializers.Serializer):
    doctor_id = serializers.PrimaryKeyRelatedField(
        queryset=Doctor.objects.filter(is_active=True), source='doctor',
        error_messages={'does_not_exist': 'Doctor not found'},
    )
    date = serializers.DateField()
    duration = serializers.IntegerField(required=False, min_value=15, max_value=480)
