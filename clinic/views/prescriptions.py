"""Medication catalogue and prescription views."""
from __future__ import annotations

from django.db.models import Q
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.permissions import IsAuthenticated

from ..models import Medication, Prescription
from ..permissions import IsAdminOrReadOnly, IsStaffRole, current_doctor, current_patient, user_role
from ..responses import created_response, get_or_404, paginated_response, success_response
from ..serializers.prescriptions import (
    MedicationSerializer,
    PrescriptionCreateSerializer,
    PrescriptionQuerySerializer,
    PrescriptionUpdateSerializer,
)
from ..services import prescriptions as svc
from ..services.audit import log_action

PRESCRIPTIONS = (
    Prescription.objects.select_related('patient__user', 'doctor__user', 'doctor__department')
    .prefetch_related('items')
)


def _visible(user):
    role = user_role(user)
    if role == 'patient':
        return PRESCRIPTIONS.filter(patient=current_patient(user))
    if role == 'doctor':
        return PRESCRIPTIONS.filter(doctor=current_doctor(user))
    return PRESCRIPTIONS


def _prescription(user, prescription_id: str) -> Prescription:
    return get_or_404(_visible(user), 'Prescription', pk=prescription_id)


def _ensure_prescriber(user, rx: Prescription) -> None:
    role = user_role(user)
    if role == 'admin' or (role == 'doctor' and rx.doctor.user_id == user.id):
        return
    raise PermissionDenied('Only the prescribing doctor can change this prescription')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminOrReadOnly])
def medications(request):
    if request.method == 'POST':
        s = MedicationSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        med = Medication.objects.create(**s.validated_data)
        return created_response(svc.format_medication(med), message='Medication added')

    qs = Medication.objects.filter(is_active=True)
    search = request.query_params.get('search')
    if search:
        qs = qs.filter(Q(name__icontains=search) | Q(generic_name__icontains=search))
    return paginated_response(request, qs, svc.format_medication)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def prescriptions(request):
    if request.method == 'POST':
        role = user_role(request.user)
        if role not in ('admin', 'doctor'):
            raise PermissionDenied('Only doctors and administrators can prescribe')
        s = PrescriptionCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        vd = dict(s.validated_data)
        if role == 'doctor':
            vd['doctor'] = current_doctor(request.user)
        elif vd.get('doctor') is None:
            raise ValidationError({'doctor_id': 'Doctor not found'})
        rx = svc.create_prescription(**vd)
        log_action(user=request.user, action='prescription_create', object_type='prescription',
                   object_id=rx.prescription_id)
        return created_response(svc.format_prescription(rx), message='Prescription created')

    q = PrescriptionQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    qs = _visible(request.user)
    for key in ('patient_id', 'doctor_id', 'status'):
        if q.validated_data.get(key):
            qs = qs.filter(**{key: q.validated_data[key]})
    return paginated_response(request, qs, svc.format_prescription)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def prescription_detail(request, prescription_id: str):
    rx = _prescription(request.user, prescription_id)
    if request.method == 'GET':
        return success_response(svc.format_prescription(rx))

    _ensure_prescriber(request.user, rx)
    if request.method == 'DELETE':
        svc.cancel(rx)
        log_action(user=request.user, action='prescription_cancel', object_type='prescription',
                   object_id=rx.prescription_id)
        return success_response(svc.format_prescription(rx), message='Prescription cancelled')

    s = PrescriptionUpdateSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    fields = dict(s.validated_data)
    if fields.pop('status', None) == 'cancelled':
        svc.cancel(rx)
    if fields:
        svc.update_prescription(rx, **fields)
    rx = _prescription(request.user, prescription_id)
    return success_response(svc.format_prescription(rx), message='Prescription updated')


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def prescription_dispense(request, prescription_id: str):
    rx = _prescription(request.user, prescription_id)
    svc.dispense(rx)
    log_action(user=request.user, action='prescription_dispense', object_type='prescription',
               object_id=rx.prescription_id)
    return success_response(svc.format_prescription(rx), message='Prescription dispensed')
