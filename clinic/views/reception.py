"""Front-desk views: check-ins, the daily queue and reception reports."""
from __future__ import annotations

from datetime import timedelta

from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from ..models import CheckIn
from ..permissions import IsFrontDesk, IsStaffRole
from ..responses import created_response, get_or_404, success_response
from ..serializers.reception import (
    CheckInSerializer,
    CheckInStatusSerializer,
    DayQuerySerializer,
    RangeQuerySerializer,
    WeeklyQuerySerializer,
)
from ..services import reception as svc
from ..services.audit import log_action


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsFrontDesk])
def check_ins(request):
    s = CheckInSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    entry = svc.check_in(checked_in_by=request.user, **s.validated_data)
    log_action(user=request.user, action='check_in', object_type='patient', object_id=entry.patient_id,
               detail={'queue_number': entry.queue_number, 'appointment_id': entry.appointment_id})
    return created_response(svc.format_check_in(entry), message=f'Checked in as #{entry.queue_number}')


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def check_in_status(request, check_in_id: int):
    entry = get_or_404(CheckIn.objects.select_related('patient__user'), 'Check-in', pk=check_in_id)
    s = CheckInStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    svc.change_check_in_status(entry, s.validated_data['status'])
    return success_response(svc.format_check_in(entry))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def queue(request):
    q = DayQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    day = q.validated_data.get('date') or timezone.localdate()
    qs = svc.daily_queue(day)
    if q.validated_data.get('status'):
        qs = qs.filter(status=q.validated_data['status'])
    entries = [svc.format_check_in(c) for c in qs]
    return success_response({'date': day.isoformat(), 'total': len(entries), 'queue': entries})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsFrontDesk])
def daily_report(request):
    q = DayQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    return success_response(svc.daily_report(q.validated_data.get('date') or timezone.localdate()))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsFrontDesk])
def weekly_report(request):
    q = WeeklyQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    return success_response(svc.weekly_report(q.validated_data['start_date']))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsFrontDesk])
def patient_flow(request):
    q = RangeQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    date_to = q.validated_data.get('date_to') or timezone.localdate()
    date_from = q.validated_data.get('date_from') or date_to - timedelta(days=6)
    return success_response(svc.patient_flow(date_from, date_to))
