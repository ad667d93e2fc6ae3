from rest_framework import serializers

from clinic.models import Appointment, Bill, BillItem, Patient, Payment
from clinic.validators import CleanCharField


class BillItemSerializer(serializers.Serializer):
    item_type = serializers.ChoiceField(choices=BillItem.TYPE_CHOICES, default='other')
    description = CleanCharField(max_length=255)
    quantity = serializers.IntegerField(min_value=1, max_value=10000, default=1)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)


class BillCreateSerializer(serializers.Serializer):
    patient_id = serializers.PrimaryKeyRelatedField(
        queryset=Patient.objects.select_related('user'), source='patient',
        error_messages={'does_not_exist': 'Patient not found'},
    )
    appointment_id = serializers.PrimaryKeyRelatedField(
        queryset=Appointment.objects.all(), source='appointment', required=False, allow_null=True,
        error_messages={'does_not_exist': 'Appointment not found'},
    )
    items = BillItemSerializer(many=True, allow_empty=False)
    tax_rate = serializers.DecimalField(max_digits=5, decimal_places=4, min_value=0, max_value=1, required=False)
    discount_amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, default=0)
    insurance_coverage = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, default=0)
    due_date = serializers.DateField(required=False)
    notes = CleanCharField(required=False, allow_blank=True)


class BillUpdateSerializer(serializers.Serializer):
    discount_amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, required=False)
    insurance_coverage = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, required=False)
    due_date = serializers.DateField(required=False)
    notes = CleanCharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=[('cancelled', 'Cancelled')], required=False)


class BillQuerySerializer(serializers.Serializer):
    patient_id = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=Bill.STATUS_CHOICES, required=False, allow_blank=True)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)


class BillPaymentSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)
    payment_method = serializers.ChoiceField(choices=Payment.METHOD_CHOICES, default='cash')
    transaction_id = serializers.CharField(required=False, allow_blank=True, max_length=100)
    description = CleanCharField(required=False, allow_blank=True, max_length=255)


class PaymentCreateSerializer(serializers.Serializer):
    # Patients pay for themselves; staff must name the patient.
    patient_id = serializers.PrimaryKeyRelatedField(
        queryset=Patient.objects.select_related('user'), source='patient', required=False,
        error_messages={'does_not_exist': 'Patient not found'},
    )
    bill_id = serializers.PrimaryKeyRelatedField(
        queryset=Bill.objects.all(), source='bill', required=False, allow_null=True,
        error_messages={'does_not_exist': 'Bill not found'},
    )
    appointment_id = serializers.PrimaryKeyRelatedField(
        queryset=Appointment.objects.all(), source='appointment', required=False, allow_null=True,
        error_messages={'does_not_exist': 'Appointment not found'},
    )
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)
    payment_method = serializers.ChoiceField(choices=Payment.METHOD_CHOICES, default='payos')
    description = CleanCharField(required=False, allow_blank=True, max_length=255)


class PaymentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[c for c in Payment.STATUS_CHOICES if c[0] != 'pending'])
    transaction_id = serializers.CharField(required=False, allow_blank=True, max_length=100)


class PaymentQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Payment.STATUS_CHOICES, required=False, allow_blank=True)
    payment_method = serializers.ChoiceField(choices=Payment.METHOD_CHOICES, required=False, allow_blank=True)
    patient_id = serializers.CharField(required=False, allow_blank=True)
