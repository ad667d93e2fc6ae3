"""
Appointment views.

Patients see and book only their own appointments, doctors see only
theirs, and front-desk staff and administrators see everything. Status
changes go through the transition table in
:mod:`clinic.services.appointments`.
"""
from __future__ import annotations

from django.db.models import Q
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.permissions import IsAuthenticated

from ..models import Appointment, Doctor
from ..permissions import IsStaffRole, current_doctor, current_patient, user_role
from ..responses import created_response, get_or_404, paginated_response, success_response
from ..serializers.appointments import (
    AppointmentCreateSerializer,
    AppointmentQuerySerializer,
    AppointmentUpdateSerializer,
    AvailableSlotsQuerySerializer,
    CancelSerializer,
    StatusSerializer,
    UpcomingQuerySerializer,
)
from ..services import appointments as svc
from ..services.audit import log_action
from ..services.schedules import available_slots as build_slots

APPOINTMENTS = Appointment.objects.select_related('doctor__user', 'doctor__department', 'patient__user')


def filter_appointments(qs, vd: dict):
    if vd.get('status'):
        qs = qs.filter(status=vd['status'])
    if vd.get('appointment_type'):
        qs = qs.filter(appointment_type=vd['appointment_type'])
    if vd.get('doctor_id'):
        qs = qs.filter(doctor_id=vd['doctor_id'])
    if vd.get('patient_id'):
        qs = qs.filter(patient_id=vd['patient_id'])
    day = vd.get('appointment_date') or vd.get('date')
    if day:
        qs = qs.filter(appointment_date=day)
    if vd.get('date_from'):
        qs = qs.filter(appointment_date__gte=vd['date_from'])
    if vd.get('date_to'):
        qs = qs.filter(appointment_date__lte=vd['date_to'])
    if vd.get('search'):
        term = vd['search']
        qs = qs.filter(
            Q(reason__icontains=term)
            | Q(doctor__user__full_name__icontains=term)
            | Q(patient__user__full_name__icontains=term)
        )
    return qs


def scoped_appointments(user):
    role = user_role(user)
    if role == 'patient':
        return APPOINTMENTS.filter(patient=current_patient(user))
    if role == 'doctor':
        return APPOINTMENTS.filter(doctor=current_doctor(user))
    return APPOINTMENTS


def _appointment(user, appointment_id: str) -> Appointment:
    return get_or_404(scoped_appointments(user), 'Appointment', pk=appointment_id)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def appointments(request):
    if request.method == 'POST':
        return _book(request)
    q = AppointmentQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    qs = filter_appointments(scoped_appointments(request.user), q.validated_data)
    return paginated_response(request, qs, svc.format_appointment)


def _book(request):
    s = AppointmentCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = dict(s.validated_data)
    if user_role(request.user) == 'patient':
        own = current_patient(request.user)
        if vd.get('patient') is not None and vd['patient'].pk != own.pk:
            raise PermissionDenied('You can only book appointments for yourself')
        vd['patient'] = own
    elif vd.get('patient') is None:
        raise ValidationError({'patient_id': 'Patient not found'})
    appt = svc.create_appointment(created_by=request.user, **vd)
    log_action(user=request.user, action='appointment_create', object_type='appointment',
               object_id=appt.appointment_id)
    return created_response(svc.format_appointment(appt), message='Appointment booked')


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def appointment_detail(request, appointment_id: str):
    appt = _appointment(request.user, appointment_id)
    if request.method == 'GET':
        return success_response(svc.format_appointment(appt))
    s = AppointmentUpdateSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    start = vd.get('start_time', appt.start_time)
    end = vd.get('end_time', appt.end_time)
    if end <= start:
        raise ValidationError({'end_time': 'End time must be after start time.'})
    svc.update_appointment(appt, **vd)
    log_action(user=request.user, action='appointment_update', object_type='appointment',
               object_id=appt.appointment_id, detail={'fields': sorted(vd)})
    return success_response(svc.format_appointment(appt), message='Appointment updated')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def appointment_cancel(request, appointment_id: str):
    appt = _appointment(request.user, appointment_id)
    s = CancelSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    previous = appt.status
    svc.change_status(appt, 'cancelled', reason=s.validated_data.get('reason', ''))
    log_action(user=request.user, action='appointment_cancel', object_type='appointment',
               object_id=appt.appointment_id, detail={'from': previous, 'reason': appt.cancellation_reason})
    return success_response(svc.format_appointment(appt), message='Appointment cancelled')


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def appointment_confirm(request, appointment_id: str):
    appt = _appointment(request.user, appointment_id)
    svc.change_status(appt, 'confirmed')
    return success_response(svc.format_appointment(appt), message='Appointment confirmed')


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def appointment_status(request, appointment_id: str):
    appt = _appointment(request.user, appointment_id)
    s = StatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    previous = appt.status
    svc.change_status(appt, s.validated_data['status'], reason=s.validated_data.get('reason', ''))
    log_action(user=request.user, action='appointment_status', object_type='appointment',
               object_id=appt.appointment_id, detail={'from': previous, 'to': appt.status})
    return success_response(svc.format_appointment(appt), message=f'Appointment {appt.status}')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def appointment_available_slots(request):
    q = AvailableSlotsQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    doctor, day = q.validated_data['doctor'], q.validated_data['date']
    slots = build_slots(doctor, day, q.validated_data.get('duration'))
    return success_response({'doctor_id': doctor.doctor_id, 'date': day.isoformat(), 'slots': slots})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def appointment_stats(request):
    return success_response(svc.appointment_stats(scoped_appointments(request.user)))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def upcoming_appointments(request):
    q = UpcomingQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    if user_role(request.user) == 'doctor':
        doctor = current_doctor(request.user)
    else:
        doctor_id = q.validated_data.get('doctor_id')
        if not doctor_id:
            raise ValidationError({'doctor_id': 'This field is required.'})
        doctor = get_or_404(Doctor.objects.select_related('user'), 'Doctor', pk=doctor_id)
    qs = svc.upcoming_for_doctor(doctor, q.validated_data['days'])
    return success_response([svc.format_appointment(a) for a in qs])
