from rest_framework import serializers

from clinic.models import Appointment, Doctor, MedicalRecord, Patient
from clinic.validators import CleanCharField, range_kwargs


class MedicationEntrySerializer(serializers.Serializer):
    name = CleanCharField(max_length=255)
    dosage = CleanCharField(required=False, allow_blank=True, max_length=100)
    frequency = CleanCharField(required=False, allow_blank=True, max_length=100)
    duration = CleanCharField(required=False, allow_blank=True, max_length=100)


class VitalSignsSerializer(serializers.Serializer):
    temperature = serializers.DecimalField(max_digits=4, decimal_places=1, required=False, allow_null=True,
                                           **range_kwargs('temperature'))
    heart_rate = serializers.IntegerField(required=False, allow_null=True, **range_kwargs('heart_rate'))
    blood_pressure_systolic = serializers.IntegerField(required=False, allow_null=True,
                                                       **range_kwargs('blood_pressure_systolic'))
    blood_pressure_diastolic = serializers.IntegerField(required=False, allow_null=True,
                                                        **range_kwargs('blood_pressure_diastolic'))
    respiratory_rate = serializers.IntegerField(required=False, allow_null=True, **range_kwargs('respiratory_rate'))
    oxygen_saturation = serializers.IntegerField(required=False, allow_null=True, **range_kwargs('oxygen_saturation'))
    weight = serializers.DecimalField(max_digits=5, decimal_places=1, required=False, allow_null=True,
                                      **range_kwargs('weight'))
    height = serializers.DecimalField(max_digits=4, decimal_places=1, required=False, allow_null=True,
                                      **range_kwargs('height'))

    def validate(self, attrs):
        if not any(v is not None for v in attrs.values()):
            raise serializers.ValidationError('At least one measurement is required.')
        sys_bp, dia_bp = attrs.get('blood_pressure_systolic'), attrs.get('blood_pressure_diastolic')
        if sys_bp is not None and dia_bp is not None and dia_bp >= sys_bp:
            raise serializers.ValidationError({'blood_pressure_diastolic': 'Must be lower than systolic.'})
        return attrs


class RecordFieldsSerializer(serializers.Serializer):
    visit_date = serializers.DateField(required=False)
    chief_complaint = CleanCharField(max_length=2000)
    present_illness = CleanCharField(required=False, allow_blank=True)
    past_medical_history = CleanCharField(required=False, allow_blank=True)
    physical_examination = CleanCharField(required=False, allow_blank=True)
    diagnosis = CleanCharField(required=False, allow_blank=True)
    treatment_plan = CleanCharField(required=False, allow_blank=True)
    medications = MedicationEntrySerializer(many=True, required=False)
    follow_up_instructions = CleanCharField(required=False, allow_blank=True)
    notes = CleanCharField(required=False, allow_blank=True)


class MedicalRecordCreateSerializer(RecordFieldsSerializer):
    patient_id = serializers.PrimaryKeyRelatedField(
        queryset=Patient.objects.select_related('user'), source='patient',
        error_messages={'does_not_exist': 'Patient not found'},
    )
    # Doctors record under their own profile; admins must name one.
    doctor_id = serializers.PrimaryKeyRelatedField(
        queryset=Doctor.objects.filter(is_active=True).select_related('user', 'department'), source='doctor',
        required=False, error_messages={'does_not_exist': 'Doctor not found'},
    )
    appointment_id = serializers.PrimaryKeyRelatedField(
        queryset=Appointment.objects.all(), source='appointment', required=False, allow_null=True,
        error_messages={'does_not_exist': 'Appointment not found'},
    )
    vital_signs = VitalSignsSerializer(required=False)

    def validate(self, attrs):
        appt = attrs.get('appointment')
        if appt is not None and appt.patient_id != attrs['patient'].pk:
            raise serializers.ValidationError({'appointment_id': 'Appointment belongs to a different patient.'})
        return attrs


class MedicalRecordUpdateSerializer(RecordFieldsSerializer):
    chief_complaint = CleanCharField(required=False, max_length=2000)
    status = serializers.ChoiceField(choices=[c for c in MedicalRecord.STATUS_CHOICES if c[0] != 'deleted'],
                                     required=False)


class RecordQuerySerializer(serializers.Serializer):
    patient_id = serializers.CharField(required=False, allow_blank=True)
    doctor_id = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=MedicalRecord.STATUS_CHOICES, required=False, allow_blank=True)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)
    search = serializers.CharField(required=False, allow_blank=True)


class LabResultSerializer(serializers.Serializer):
    test_name = CleanCharField(max_length=255)
    test_type = CleanCharField(required=False, allow_blank=True, max_length=100)
    result_value = CleanCharField(max_length=255)
    reference_range = CleanCharField(required=False, allow_blank=True, max_length=100)
    unit = CleanCharField(required=False, allow_blank=True, max_length=32)
    is_abnormal = serializers.BooleanField(default=False)
    test_date = serializers.DateField(required=False)
    notes = CleanCharField(required=False, allow_blank=True)
