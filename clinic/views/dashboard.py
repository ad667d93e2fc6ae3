"""
Administrative dashboard endpoint.

Headline counts for the hospital plus today's appointments and this
month's revenue. Only administrators may access it.
"""
from __future__ import annotations

from django.db.models import Count, Sum
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from ..models import Appointment, Department, Doctor, Patient, Payment
from ..permissions import IsAdminRole
from ..responses import success_response
from ..services.appointments import format_appointment
from ..services.billing import money


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_dashboard(request):
    """Return dashboard metrics for administrators.

    Revenue counts successful payments made since the first day of the
    current month (local time).
    """
    today = timezone.localdate()
    month_start = timezone.localtime().replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    todays = (
        Appointment.objects.filter(appointment_date=today)
        .select_related('doctor__user', 'patient__user')
        .order_by('start_time')
    )
    by_status = {key: 0 for key, _ in Appointment.STATUS_CHOICES}
    for row in Appointment.objects.values('status').annotate(n=Count('appointment_id')):
        by_status[row['status']] = row['n']
    revenue = Payment.objects.filter(status='success', paid_at__gte=month_start).aggregate(s=Sum('amount'))['s']
    return success_response({
        'doctors': Doctor.objects.filter(is_active=True).count(),
        'patients': Patient.objects.filter(status='active').count(),
        'departments': Department.objects.filter(is_active=True).count(),
        'today_appointments': todays.count(),
        'appointments_today': [format_appointment(a) for a in todays[:50]],
        'appointments_by_status': by_status,
        'monthly_revenue': float(money(revenue)),
    })
