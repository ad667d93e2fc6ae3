"""
Patient management views.

Staff (admins, doctors and receptionists) list and register patients;
a patient may read and update only their own record. Deleting a patient
marks the record inactive.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated

from ..models import Appointment, MedicalRecord, Patient
from ..permissions import (
    IsPatientRole,
    IsStaffRole,
    current_patient,
    ensure_patient_scope,
    user_role,
)
from ..responses import created_response, get_or_404, paginated_response, success_response
from ..serializers.appointments import AppointmentQuerySerializer
from ..serializers.patient import PatientCreateSerializer, PatientListQuerySerializer, PatientUpdateSerializer
from ..services import patients as svc
from ..services.appointments import format_appointment
from ..services.audit import log_action
from ..services.prescriptions import format_prescription
from ..services.records import format_record
from .appointments import filter_appointments

PATIENTS = Patient.objects.select_related('user')


def _patient(user, patient_id: str) -> Patient:
    if user_role(user) not in ('admin', 'doctor', 'receptionist', 'patient'):
        raise PermissionDenied()
    patient = get_or_404(PATIENTS, 'Patient', pk=patient_id)
    ensure_patient_scope(user, patient)
    return patient


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def patients(request):
    """List patients (filters: gender, status, blood_type, search) or register one.

    Registration without a password generates one and returns it once
    as ``initial_password`` so staff can hand it over.
    """
    if request.method == 'POST':
        s = PatientCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        vd = dict(s.validated_data)
        patient, initial_password = svc.create_patient(
            email=vd.pop('email'),
            full_name=vd.pop('full_name'),
            password=vd.pop('password', None) or None,
            phone_number=vd.pop('phone_number', ''),
            **vd,
        )
        log_action(user=request.user, action='patient_create', object_type='patient',
                   object_id=patient.patient_id)
        data = svc.format_patient(patient)
        if initial_password:
            data['initial_password'] = initial_password
        return created_response(data, message='Patient created')

    q = PatientListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    qs = svc.search_patients(**{k: v for k, v in q.validated_data.items() if v})
    return paginated_response(request, qs, svc.format_patient)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPatientRole])
def patient_me(request):
    return success_response(svc.format_patient(current_patient(request.user)))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def patient_stats(request):
    return success_response(svc.patient_stats())


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def patient_detail(request, patient_id: str):
    patient = _patient(request.user, patient_id)
    if request.method == 'GET':
        return success_response(svc.format_patient(patient))
    if request.method == 'DELETE':
        if user_role(request.user) not in ('admin', 'receptionist'):
            raise PermissionDenied('Only front-desk staff can deactivate patients')
        svc.deactivate_patient(patient)
        log_action(user=request.user, action='patient_delete', object_type='patient',
                   object_id=patient.patient_id)
        return success_response(svc.format_patient(patient), message='Patient deactivated')

    s = PatientUpdateSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    fields = dict(s.validated_data)
    if 'status' in fields and user_role(request.user) == 'patient':
        raise PermissionDenied('Patients cannot change their own status')
    svc.update_patient(patient, **fields)
    log_action(user=request.user, action='patient_update', object_type='patient',
               object_id=patient.patient_id, detail={'fields': sorted(fields)})
    return success_response(svc.format_patient(patient), message='Patient updated')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def patient_appointments(request, patient_id: str):
    patient = _patient(request.user, patient_id)
    q = AppointmentQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    qs = Appointment.objects.filter(patient=patient).select_related('doctor__user', 'patient__user')
    if user_role(request.user) == 'doctor':
        qs = qs.filter(doctor__user=request.user)
    return paginated_response(request, filter_appointments(qs, q.validated_data), format_appointment)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def patient_medical_records(request, patient_id: str):
    if user_role(request.user) == 'receptionist':
        raise PermissionDenied('Receptionists cannot view medical records')
    patient = _patient(request.user, patient_id)
    qs = (
        MedicalRecord.objects.filter(patient=patient, status='active')
        .select_related('patient__user', 'doctor__user')
    )
    return paginated_response(request, qs, format_record)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def patient_prescriptions(request, patient_id: str):
    patient = _patient(request.user, patient_id)
    qs = (
        patient.prescriptions.select_related('patient__user', 'doctor__user')
        .prefetch_related('items')
    )
    status = request.query_params.get('status')
    if status:
        qs = qs.filter(status=status)
    return paginated_response(request, qs, format_prescription)
