from rest_framework import serializers

from clinic.models import Appointment, Doctor, MedicalRecord, Medication, Patient, Prescription
from clinic.validators import CleanCharField


class MedicationSerializer(serializers.Serializer):
    name = CleanCharField(max_length=255)
    generic_name = CleanCharField(required=False, allow_blank=True, max_length=255)
    dosage_form = CleanCharField(required=False, allow_blank=True, max_length=50)
    strength = CleanCharField(required=False, allow_blank=True, max_length=50)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, default=0)
    is_active = serializers.BooleanField(default=True)


class PrescriptionItemSerializer(serializers.Serializer):
    medication_id = serializers.PrimaryKeyRelatedField(
        queryset=Medication.objects.filter(is_active=True), source='medication', required=False, allow_null=True,
        error_messages={'does_not_exist': 'Medication not found'},
    )
    medication_name = CleanCharField(required=False, allow_blank=True, max_length=255)
    dosage = CleanCharField(max_length=100)
    frequency = CleanCharField(max_length=100)
    duration = CleanCharField(required=False, allow_blank=True, max_length=100)
    quantity = serializers.IntegerField(min_value=1, max_value=1000, default=1)
    instructions = CleanCharField(required=False, allow_blank=True)
    substitution_allowed = serializers.BooleanField(default=True)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)

    def validate(self, attrs):
        if not attrs.get('medication') and not attrs.get('medication_name'):
            raise serializers.ValidationError('Either medication_id or medication_name is required.')
        return attrs


class PrescriptionCreateSerializer(serializers.Serializer):
    patient_id = serializers.PrimaryKeyRelatedField(
        queryset=Patient.objects.select_related('user'), source='patient',
        error_messages={'does_not_exist': 'Patient not found'},
    )
    doctor_id = serializers.PrimaryKeyRelatedField(
        queryset=Doctor.objects.filter(is_active=True).select_related('user', 'department'), source='doctor',
        required=False, error_messages={'does_not_exist': 'Doctor not found'},
    )
    appointment_id = serializers.PrimaryKeyRelatedField(
        queryset=Appointment.objects.all(), source='appointment', required=False, allow_null=True,
        error_messages={'does_not_exist': 'Appointment not found'},
    )
    medical_record_id = serializers.PrimaryKeyRelatedField(
        queryset=MedicalRecord.objects.exclude(status='deleted'), source='medical_record', required=False,
        allow_null=True, error_messages={'does_not_exist': 'Medical record not found'},
    )
    prescription_date = serializers.DateField(required=False)
    notes = CleanCharField(required=False, allow_blank=True)
    items = PrescriptionItemSerializer(many=True, allow_empty=False)


class PrescriptionUpdateSerializer(serializers.Serializer):
    notes = CleanCharField(required=False, allow_blank=True)
    items = PrescriptionItemSerializer(many=True, required=False, allow_empty=False)
    status = serializers.ChoiceField(choices=[('cancelled', 'Cancelled')], required=False)


class PrescriptionQuerySerializer(serializers.Serializer):
    patient_id = serializers.CharField(required=False, allow_blank=True)
    doctor_id = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=Prescription.STATUS_CHOICES, required=False, allow_blank=True)
