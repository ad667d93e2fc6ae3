"""
Django admin registrations for the clinic models.

Only minimal configuration is applied: list displays, filters and
search fields that make it quick to verify data during development.
"""

from django.contrib import admin

from .models import (
    Appointment,
    AuditEvent,
    Bill,
    BillItem,
    CheckIn,
    Department,
    Doctor,
    DoctorReview,
    DoctorSchedule,
    IdSequence,
    LoginHistory,
    MedicalRecord,
    Medication,
    Notification,
    Patient,
    Payment,
    Prescription,
    PrescriptionItem,
    Room,
    Specialty,
    User,
)


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ('department_id', 'code', 'name', 'parent', 'is_active')
    list_filter = ('is_active',)
    search_fields = ('department_id', 'code', 'name')


@admin.register(Specialty)
class SpecialtyAdmin(admin.ModelAdmin):
    list_display = ('specialty_id', 'code', 'name', 'department', 'is_active')
    search_fields = ('specialty_id', 'code', 'name')


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ('room_id', 'room_number', 'department', 'room_type', 'status', 'is_active')
    list_filter = ('room_type', 'status', 'department')


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'email', 'full_name', 'role', 'staff_id', 'is_active', 'is_superuser')
    list_filter = ('role', 'is_active')
    search_fields = ('username', 'email', 'full_name', 'staff_id')


class DoctorScheduleInline(admin.TabularInline):
    model = DoctorSchedule
    extra = 0


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ('doctor_id', 'user', 'department', 'specialty', 'rating', 'total_reviews', 'is_active')
    list_filter = ('department', 'is_active', 'availability_status')
    search_fields = ('doctor_id', 'user__full_name', 'license_number', 'specialty')
    inlines = [DoctorScheduleInline]


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('patient_id', 'user', 'gender', 'blood_type', 'status')
    list_filter = ('status', 'gender', 'blood_type')
    search_fields = ('patient_id', 'user__full_name', 'user__email', 'national_id')


@admin.register(DoctorReview)
class DoctorReviewAdmin(admin.ModelAdmin):
    list_display = ('id', 'doctor', 'patient', 'rating', 'is_verified', 'created_at')
    list_filter = ('rating', 'is_verified')


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('appointment_id', 'doctor', 'patient', 'appointment_date', 'start_time', 'status')
    list_filter = ('status', 'appointment_type', 'appointment_date')
    search_fields = ('appointment_id', 'patient__user__full_name', 'doctor__user__full_name')


@admin.register(MedicalRecord)
class MedicalRecordAdmin(admin.ModelAdmin):
    list_display = ('record_id', 'patient', 'doctor', 'visit_date', 'status')
    list_filter = ('status',)
    search_fields = ('record_id', 'patient__user__full_name', 'diagnosis')


@admin.register(Medication)
class MedicationAdmin(admin.ModelAdmin):
    list_display = ('name', 'generic_name', 'strength', 'unit_price', 'is_active')
    search_fields = ('name', 'generic_name')


class PrescriptionItemInline(admin.TabularInline):
    model = PrescriptionItem
    extra = 0


@admin.register(Prescription)
class PrescriptionAdmin(admin.ModelAdmin):
    list_display = ('prescription_id', 'patient', 'doctor', 'prescription_date', 'status', 'total_cost')
    list_filter = ('status',)
    inlines = [PrescriptionItemInline]


class BillItemInline(admin.TabularInline):
    model = BillItem
    extra = 0


@admin.register(Bill)
class BillAdmin(admin.ModelAdmin):
    list_display = ('bill_id', 'patient', 'total_amount', 'status', 'due_date')
    list_filter = ('status',)
    search_fields = ('bill_id', 'patient__user__full_name')
    inlines = [BillItemInline]


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ('order_code', 'patient', 'bill', 'amount', 'payment_method', 'status', 'paid_at')
    list_filter = ('status', 'payment_method')
    search_fields = ('order_code', 'transaction_id')


@admin.register(CheckIn)
class CheckInAdmin(admin.ModelAdmin):
    list_display = ('check_in_date', 'queue_number', 'patient', 'status')
    list_filter = ('status', 'check_in_date')


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('recipient', 'title', 'notification_type', 'is_read', 'created_at')
    list_filter = ('notification_type', 'is_read')


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'user', 'action', 'object_type', 'object_id')
    list_filter = ('action', 'object_type')
    search_fields = ('object_id',)


@admin.register(LoginHistory)
class LoginHistoryAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'email', 'success', 'ip_address')
    list_filter = ('success',)
    search_fields = ('email',)


admin.site.register(IdSequence)
