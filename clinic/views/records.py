"""
Medical record views, with lab results and vital-sign history.

Receptionists never see clinical content. Patients read their own
records; doctors and administrators write them.
"""
from __future__ import annotations

from django.db.models import Q
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.permissions import IsAuthenticated

from ..models import MedicalRecord
from ..permissions import IsClinician, current_doctor, current_patient, user_role
from ..responses import created_response, get_or_404, paginated_response, success_response
from ..serializers.records import (
    LabResultSerializer,
    MedicalRecordCreateSerializer,
    MedicalRecordUpdateSerializer,
    RecordQuerySerializer,
    VitalSignsSerializer,
)
from ..services import records as svc
from ..services.audit import log_action

RECORDS = MedicalRecord.objects.select_related('patient__user', 'doctor__user', 'doctor__department')


def _visible_records(user):
    role = user_role(user)
    if role == 'patient':
        return RECORDS.filter(patient=current_patient(user))
    if role in ('admin', 'doctor'):
        return RECORDS
    raise PermissionDenied('You do not have access to medical records')


def _record(user, record_id: str) -> MedicalRecord:
    return get_or_404(_visible_records(user).exclude(status='deleted'), 'Medical record', pk=record_id)


def _ensure_author(user, record: MedicalRecord) -> None:
    role = user_role(user)
    if role == 'admin':
        return
    if role == 'doctor' and record.doctor.user_id == user.id:
        return
    raise PermissionDenied('Only the treating doctor can change this record')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def medical_records(request):
    if request.method == 'POST':
        return _create(request)

    q = RecordQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = _visible_records(request.user).filter(status=vd.get('status') or 'active')
    if vd.get('status') == 'deleted':
        qs = qs.none()
    if vd.get('patient_id'):
        qs = qs.filter(patient_id=vd['patient_id'])
    if vd.get('doctor_id'):
        qs = qs.filter(doctor_id=vd['doctor_id'])
    if vd.get('date_from'):
        qs = qs.filter(visit_date__gte=vd['date_from'])
    if vd.get('date_to'):
        qs = qs.filter(visit_date__lte=vd['date_to'])
    if vd.get('search'):
        term = vd['search']
        qs = qs.filter(Q(chief_complaint__icontains=term) | Q(diagnosis__icontains=term))
    return paginated_response(request, qs, svc.format_record)


def _create(request):
    if user_role(request.user) not in ('admin', 'doctor'):
        raise PermissionDenied('Only doctors and administrators can create medical records')
    s = MedicalRecordCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = dict(s.validated_data)
    vitals = vd.pop('vital_signs', None)
    if user_role(request.user) == 'doctor':
        vd['doctor'] = current_doctor(request.user)
    elif vd.get('doctor') is None:
        raise ValidationError({'doctor_id': 'Doctor not found'})
    record = svc.create_record(created_by=request.user, **vd)
    if vitals:
        svc.add_vital_signs(record, recorded_by=request.user, **vitals)
    log_action(user=request.user, action='medical_record_create', object_type='medical_record',
               object_id=record.record_id)
    return created_response(svc.format_record(record, detail=True), message='Medical record created')


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def medical_record_detail(request, record_id: str):
    record = _record(request.user, record_id)
    if request.method == 'GET':
        log_action(user=request.user, action='medical_record_view', object_type='medical_record',
                   object_id=record.record_id)
        return success_response(svc.format_record(record, detail=True))

    _ensure_author(request.user, record)
    if request.method == 'DELETE':
        svc.delete_record(record, deleted_by=request.user)
        log_action(user=request.user, action='medical_record_delete', object_type='medical_record',
                   object_id=record.record_id)
        return success_response(None, message='Medical record deleted')

    s = MedicalRecordUpdateSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    svc.update_record(record, updated_by=request.user, **s.validated_data)
    log_action(user=request.user, action='medical_record_update', object_type='medical_record',
               object_id=record.record_id, detail={'fields': sorted(s.validated_data)})
    return success_response(svc.format_record(record, detail=True), message='Medical record updated')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def lab_results(request, record_id: str):
    record = _record(request.user, record_id)
    if request.method == 'POST':
        _ensure_author(request.user, record)
        s = LabResultSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        result = svc.add_lab_result(record, **s.validated_data)
        return created_response(svc.format_lab_result(result), message='Lab result added')
    return success_response([svc.format_lab_result(x) for x in record.lab_results.all()])


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def vital_signs(request, record_id: str):
    record = _record(request.user, record_id)
    if request.method == 'POST':
        if not IsClinician().has_permission(request, None):
            raise PermissionDenied('Only doctors and administrators can record vital signs')
        s = VitalSignsSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        vitals = svc.add_vital_signs(record, recorded_by=request.user, **s.validated_data)
        return created_response(svc.format_vitals(vitals), message='Vital signs recorded')
    return success_response([svc.format_vitals(v) for v in record.vital_sign_entries.all()])
