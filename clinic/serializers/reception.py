from rest_framework import serializers

from clinic.models import Appointment, CheckIn, Patient, User
from clinic.validators import CleanCharField


class CheckInSerializer(serializers.Serializer):
    patient_id = serializers.PrimaryKeyRelatedField(
        queryset=Patient.objects.select_related('user'), source='patient',
        error_messages={'does_not_exist': 'Patient not found'},
    )
    appointment_id = serializers.PrimaryKeyRelatedField(
        queryset=Appointment.objects.all(), source='appointment', required=False, allow_null=True,
        error_messages={'does_not_exist': 'Appointment not found'},
    )
    notes = CleanCharField(required=False, allow_blank=True)


class CheckInStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=CheckIn.STATUS_CHOICES)


class DayQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)
    status = serializers.ChoiceField(choices=CheckIn.STATUS_CHOICES, required=False, allow_blank=True)


class RangeQuerySerializer(serializers.Serializer):
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)

    def validate(self, attrs):
        if attrs.get('date_from') and attrs.get('date_to') and attrs['date_from'] > attrs['date_to']:
            raise serializers.ValidationError({'date_to': 'Must not be before date_from.'})
        return attrs


class WeeklyQuerySerializer(serializers.Serializer):
    start_date = serializers.DateField()


class BroadcastSerializer(serializers.Serializer):
    title = CleanCharField(max_length=255)
    message = CleanCharField(max_length=2000)
    role = serializers.ChoiceField(choices=[r for r, _ in User.ROLE_CHOICES], required=False)
    data = serializers.DictField(required=False)
