"""
Doctor views: profiles, weekly schedules, free slots, experiences,
reviews and the per-doctor dashboard.

Doctors may manage their own profile, schedule and experiences;
administrators may manage every doctor.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated

from ..models import Appointment, Doctor, DoctorExperience, MedicalRecord
from ..permissions import (
    IsAdminOrReadOnly,
    IsDoctorRole,
    IsStaffRole,
    current_doctor,
    current_patient,
    ensure_doctor_scope,
    user_role,
)
from ..responses import created_response, get_or_404, int_param, paginated_response, success_response
from ..serializers.appointments import AppointmentQuerySerializer
from ..serializers.doctors import (
    DoctorCreateSerializer,
    DoctorListQuerySerializer,
    DoctorUpdateSerializer,
    ExperienceSerializer,
    ReviewCreateSerializer,
    ReviewQuerySerializer,
    ScheduleSerializer,
    SlotQuerySerializer,
)
from ..services import doctors as svc
from ..services import reviews, schedules
from ..services.accounts import checked_password
from ..services.appointments import format_appointment
from ..services.audit import log_action
from ..services.patients import format_patient, patients_for_doctor
from ..services.records import format_record
from .appointments import filter_appointments

DOCTORS = Doctor.objects.select_related('user', 'department')


def _doctor(doctor_id: str) -> Doctor:
    return get_or_404(DOCTORS, 'Doctor', pk=doctor_id)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminOrReadOnly])
def doctors(request):
    """List doctors (filters: specialty, department_id, gender, availability, search) or create one."""
    if request.method == 'POST':
        s = DoctorCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        vd = dict(s.validated_data)
        vd['password'], _ = checked_password(vd['password'])
        doctor = svc.create_doctor(**vd)
        log_action(user=request.user, action='doctor_create', object_type='doctor', object_id=doctor.doctor_id)
        return created_response(svc.format_doctor(doctor), message='Doctor created')

    q = DoctorListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    qs = svc.search_doctors(**{k: v for k, v in q.validated_data.items() if v})
    return paginated_response(request, qs, svc.format_doctor)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def doctor_me(request):
    return success_response(svc.format_doctor(current_doctor(request.user)))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def top_rated(request):
    limit = int_param(request.query_params, 'limit', 10, maximum=50)
    return success_response([svc.format_doctor(d) for d in reviews.top_rated(limit)])


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def doctor_detail(request, doctor_id: str):
    doctor = _doctor(doctor_id)
    if request.method == 'GET':
        return success_response(svc.format_doctor(doctor))
    if request.method == 'DELETE':
        if user_role(request.user) != 'admin':
            raise PermissionDenied('Only administrators can deactivate doctors')
        svc.deactivate_doctor(doctor)
        log_action(user=request.user, action='doctor_deactivate', object_type='doctor', object_id=doctor.doctor_id)
        return success_response(svc.format_doctor(doctor), message='Doctor deactivated')

    ensure_doctor_scope(request.user, doctor)
    s = DoctorUpdateSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    fields = dict(s.validated_data)
    if 'department' in fields and user_role(request.user) != 'admin':
        raise PermissionDenied('Only administrators can move a doctor to another department')
    svc.update_doctor(doctor, **fields)
    log_action(user=request.user, action='doctor_update', object_type='doctor', object_id=doctor.doctor_id,
               detail={'fields': sorted(fields)})
    return success_response(svc.format_doctor(doctor), message='Doctor updated')


# ---------------------------------------------------------------------
# Schedule and slots
# ---------------------------------------------------------------------
@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def doctor_schedule(request, doctor_id: str):
    doctor = _doctor(doctor_id)
    if request.method == 'PUT':
        ensure_doctor_scope(request.user, doctor)
        s = ScheduleSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        week = schedules.upsert_schedule(doctor, s.validated_data['schedules'])
        return success_response(week, message='Schedule updated')
    return success_response(schedules.weekly_schedule(doctor))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def doctor_available_slots(request, doctor_id: str):
    doctor = _doctor(doctor_id)
    q = SlotQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    day = q.validated_data['date']
    slots = schedules.available_slots(doctor, day, q.validated_data.get('duration'))
    return success_response({'doctor_id': doctor.doctor_id, 'date': day.isoformat(), 'slots': slots})


# ---------------------------------------------------------------------
# Experiences
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def doctor_experiences(request, doctor_id: str):
    doctor = _doctor(doctor_id)
    if request.method == 'POST':
        ensure_doctor_scope(request.user, doctor)
        s = ExperienceSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        exp = svc.save_experience(doctor, **s.validated_data)
        return created_response(svc.format_experience(exp), message='Experience added')

    qs = doctor.experiences.all()
    kind = request.query_params.get('type')
    if kind:
        qs = qs.filter(experience_type=kind)
    return success_response([svc.format_experience(e) for e in qs])


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def experience_detail(request, doctor_id: str, experience_id: int):
    doctor = _doctor(doctor_id)
    exp = get_or_404(DoctorExperience.objects.filter(doctor=doctor), 'Experience', pk=experience_id)
    if request.method == 'GET':
        return success_response(svc.format_experience(exp))
    ensure_doctor_scope(request.user, doctor)
    if request.method == 'DELETE':
        exp.delete()
        return success_response(None, message='Experience deleted')
    s = ExperienceSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    svc.save_experience(doctor, exp, **s.validated_data)
    return success_response(svc.format_experience(exp), message='Experience updated')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def experience_summary(request, doctor_id: str):
    return success_response(svc.experience_summary(_doctor(doctor_id)))


# ---------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def doctor_reviews(request, doctor_id: str):
    doctor = _doctor(doctor_id)
    if request.method == 'POST':
        patient = current_patient(request.user)
        s = ReviewCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        review = reviews.create_review(doctor=doctor, patient=patient, **s.validated_data)
        return created_response(reviews.format_review(review), message='Review submitted')

    q = ReviewQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    qs = doctor.reviews.select_related('patient__user')
    if q.validated_data.get('rating'):
        qs = qs.filter(rating=q.validated_data['rating'])
    if q.validated_data.get('search'):
        qs = qs.filter(comment__icontains=q.validated_data['search'])
    return paginated_response(request, qs, reviews.format_review)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def doctor_review_stats(request, doctor_id: str):
    return success_response(reviews.review_stats(_doctor(doctor_id)))


# ---------------------------------------------------------------------
# Per-doctor listings
# ---------------------------------------------------------------------
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def doctor_dashboard(request, doctor_id: str):
    doctor = _doctor(doctor_id)
    ensure_doctor_scope(request.user, doctor)
    return success_response(svc.doctor_dashboard(doctor))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def doctor_patients(request, doctor_id: str):
    doctor = _doctor(doctor_id)
    if user_role(request.user) == 'doctor':
        ensure_doctor_scope(request.user, doctor)
    return paginated_response(request, patients_for_doctor(doctor), format_patient)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def doctor_appointments(request, doctor_id: str):
    doctor = _doctor(doctor_id)
    if user_role(request.user) == 'doctor':
        ensure_doctor_scope(request.user, doctor)
    q = AppointmentQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    qs = Appointment.objects.filter(doctor=doctor).select_related('doctor__user', 'patient__user')
    qs = filter_appointments(qs, q.validated_data)
    return paginated_response(request, qs, format_appointment)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def doctor_medical_records(request, doctor_id: str):
    doctor = _doctor(doctor_id)
    ensure_doctor_scope(request.user, doctor)
    qs = (
        MedicalRecord.objects.filter(doctor=doctor, status='active')
        .select_related('patient__user', 'doctor__user')
    )
    return paginated_response(request, qs, format_record)
