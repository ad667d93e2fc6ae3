"""
URL mappings for the hospital backend API.

Trailing slashes are deliberately omitted. Fixed sub-paths such as
``doctors/me`` are listed before the ``<id>`` routes they would
otherwise be captured by.
"""
from django.urls import include, path

from . import auth_views
from .views import (
    admin,
    appointments,
    billing,
    dashboard,
    departments,
    doctors,
    gateway,
    health,
    notifications,
    patients,
    prescriptions,
    reception,
    records,
    reviews,
    rooms,
)

urlpatterns = [
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz),
    path('health', health.health),
    path('health/services', health.services_health),

    # Authentication
    path('api/auth/register', auth_views.register_view),
    path('api/auth/login', auth_views.login_view),
    path('api/auth/refresh', auth_views.jwt_refresh_view),
    path('api/auth/logout', auth_views.jwt_logout_view),
    path('api/auth/verify', auth_views.verify_view),
    path('api/auth/me', auth_views.me_view),
    path('api/auth/change-password', auth_views.change_password_view),

    # Administration
    path('api/admin/dashboard', dashboard.admin_dashboard),
    path('api/admin/login-history', admin.login_history),
    path('api/admin/users', admin.list_users),
    path('api/admin/users/<int:user_id>/toggle-active', admin.toggle_user_active),
    path('api/admin/audit', admin.audit_events),

    # Departments, specialties, rooms
    path('api/departments', departments.departments),
    path('api/departments/tree', departments.department_tree),
    path('api/departments/stats', departments.department_stats),
    path('api/departments/<str:department_id>', departments.department_detail),
    path('api/departments/<str:department_id>/doctors', departments.department_doctors),
    path('api/departments/<str:department_id>/rooms', departments.department_rooms),
    path('api/departments/<str:department_id>/specialties', departments.department_specialties),
    path('api/departments/<str:department_id>/children', departments.department_children),
    path('api/departments/<str:department_id>/path', departments.department_path),
    path('api/specialties', rooms.specialties),
    path('api/specialties/<str:specialty_id>', rooms.specialty_detail),
    path('api/rooms', rooms.rooms),
    path('api/rooms/availability', rooms.room_availability),
    path('api/rooms/stats', rooms.room_stats),
    path('api/rooms/<str:room_id>', rooms.room_detail),

    # Doctors and reviews
    path('api/doctors', doctors.doctors),
    path('api/doctors/me', doctors.doctor_me),
    path('api/doctors/top-rated', doctors.top_rated),
    path('api/doctors/<str:doctor_id>', doctors.doctor_detail),
    path('api/doctors/<str:doctor_id>/schedule', doctors.doctor_schedule),
    path('api/doctors/<str:doctor_id>/available-slots', doctors.doctor_available_slots),
    path('api/doctors/<str:doctor_id>/experiences', doctors.doctor_experiences),
    path('api/doctors/<str:doctor_id>/experiences/summary', doctors.experience_summary),
    path('api/doctors/<str:doctor_id>/experiences/<int:experience_id>', doctors.experience_detail),
    path('api/doctors/<str:doctor_id>/reviews', doctors.doctor_reviews),
    path('api/doctors/<str:doctor_id>/reviews/stats', doctors.doctor_review_stats),
    path('api/doctors/<str:doctor_id>/dashboard', doctors.doctor_dashboard),
    path('api/doctors/<str:doctor_id>/patients', doctors.doctor_patients),
    path('api/doctors/<str:doctor_id>/appointments', doctors.doctor_appointments),
    path('api/doctors/<str:doctor_id>/medical-records', doctors.doctor_medical_records),
    path('api/reviews/<int:review_id>', reviews.review_detail),
    path('api/reviews/<int:review_id>/helpful', reviews.review_helpful),

    # Patients
    path('api/patients', patients.patients),
    path('api/patients/me', patients.patient_me),
    path('api/patients/stats', patients.patient_stats),
    path('api/patients/<str:patient_id>', patients.patient_detail),
    path('api/patients/<str:patient_id>/appointments', patients.patient_appointments),
    path('api/patients/<str:patient_id>/medical-records', patients.patient_medical_records),
    path('api/patients/<str:patient_id>/prescriptions', patients.patient_prescriptions),

    # Appointments
    path('api/appointments', appointments.appointments),
    path('api/appointments/available-slots', appointments.appointment_available_slots),
    path('api/appointments/stats', appointments.appointment_stats),
    path('api/appointments/upcoming', appointments.upcoming_appointments),
    path('api/appointments/<str:appointment_id>', appointments.appointment_detail),
    path('api/appointments/<str:appointment_id>/cancel', appointments.appointment_cancel),
    path('api/appointments/<str:appointment_id>/confirm', appointments.appointment_confirm),
    path('api/appointments/<str:appointment_id>/status', appointments.appointment_status),

    # Medical records
    path('api/medical-records', records.medical_records),
    path('api/medical-records/<str:record_id>', records.medical_record_detail),
    path('api/medical-records/<str:record_id>/lab-results', records.lab_results),
    path('api/medical-records/<str:record_id>/vital-signs', records.vital_signs),

    # Prescriptions
    path('api/medications', prescriptions.medications),
    path('api/prescriptions', prescriptions.prescriptions),
    path('api/prescriptions/<str:prescription_id>', prescriptions.prescription_detail),
    path('api/prescriptions/<str:prescription_id>/dispense', prescriptions.prescription_dispense),

    # Billing and payments
    path('api/billing/bills', billing.bills),
    path('api/billing/bills/<str:bill_id>', billing.bill_detail),
    path('api/billing/bills/<str:bill_id>/payments', billing.bill_payments),
    path('api/billing/summary', billing.billing_summary),
    path('api/payments', billing.payments),
    path('api/payments/history', billing.payment_history),
    path('api/payments/stats', billing.payment_stats),
    path('api/payments/<int:order_code>', billing.payment_detail),
    path('api/payments/<int:order_code>/status', billing.payment_status),

    # Reception
    path('api/reception/check-ins', reception.check_ins),
    path('api/reception/check-ins/<int:check_in_id>/status', reception.check_in_status),
    path('api/reception/queue', reception.queue),
    path('api/reception/reports/daily', reception.daily_report),
    path('api/reception/reports/weekly', reception.weekly_report),
    path('api/reception/reports/patient-flow', reception.patient_flow),

    # Notifications
    path('api/notifications', notifications.notifications),
    path('api/notifications/unread-count', notifications.unread_count),
    path('api/notifications/read-all', notifications.mark_all_read),
    path('api/notifications/broadcast', notifications.broadcast),
    path('api/notifications/<int:notification_id>/read', notifications.mark_read),

    # Gateway
    path('api/gateway/services', gateway.gateway_services),
    path('api/gateway/<str:service>', gateway.proxy),
    path('api/gateway/<str:service>/<path:path>', gateway.proxy),
]
