"""
Consistency checks across department-coded IDs and derived values.

Reports IDs that do not match their format, doctors filed under the
wrong department code, cached ratings and bill totals that disagree
with their source rows, and open appointments held by inactive doctors.
"""
from django.core.management.base import BaseCommand, CommandError
from django.db.models import Avg, Count

from clinic.models import Appointment, Bill, Doctor, MedicalRecord, Patient, Prescription, Room
from clinic.services import billing, ids
from clinic.services.reviews import recompute_rating

ID_CHECKS = [
    (Doctor, 'doctor_id', 'doctor'),
    (Patient, 'patient_id', 'patient'),
    (Appointment, 'appointment_id', 'appointment'),
    (MedicalRecord, 'record_id', 'medical_record'),
    (Prescription, 'prescription_id', 'prescription'),
    (Bill, 'bill_id', 'bill'),
    (Room, 'room_id', 'room'),
]


class Command(BaseCommand):
    help = "Check ID formats, department codes, cached ratings and bill totals."

    def add_arguments(self, parser):
        parser.add_argument('--fix', action='store_true', help='Recompute ratings and bill totals, mark overdue bills')
        parser.add_argument('--strict', action='store_true', help='Exit with an error when issues remain')

    def handle(self, *args, **options):
        self.issues = 0
        self.check_id_formats()
        self.check_doctor_departments()
        stale_doctors = self.check_ratings()
        stale_bills = self.check_bill_totals()
        self.check_inactive_doctor_appointments()

        if options['fix']:
            for doctor in stale_doctors:
                recompute_rating(doctor)
            for bill in stale_bills:
                billing.recalculate_bill(bill)
            overdue = billing.mark_overdue()
            fixed = len(stale_doctors) + len(stale_bills)
            self.issues -= fixed
            self.stdout.write(self.style.SUCCESS(
                f'Fixed {len(stale_doctors)} ratings and {len(stale_bills)} bill totals; {overdue} bills marked overdue'
            ))

        if self.issues:
            message = f'{self.issues} integrity issues found'
            if options['strict']:
                raise CommandError(message)
            self.stdout.write(self.style.WARNING(message))
        else:
            self.stdout.write(self.style.SUCCESS('No integrity issues found.'))

    def report(self, message: str):
        self.issues += 1
        self.stdout.write(self.style.ERROR(f'  {message}'))

    def check_id_formats(self):
        self.stdout.write('Checking ID formats...')
        for model, field, kind in ID_CHECKS:
            for value in model.objects.values_list(field, flat=True):
                if not ids.validate_id(value, kind):
                    self.report(f'{model.__name__} {value!r} does not match the {kind} format')

    def check_doctor_departments(self):
        self.stdout.write('Checking doctor department codes...')
        for doctor in Doctor.objects.select_related('department'):
            code = ids.extract_department(doctor.doctor_id)
            expected = ids.department_code(doctor.department)
            if code != expected:
                self.report(f'Doctor {doctor.doctor_id} is coded {code} but belongs to {expected}')

    def check_ratings(self) -> list:
        self.stdout.write('Checking cached doctor ratings...')
        stale = []
        qs = Doctor.objects.annotate(avg=Avg('reviews__rating'), n=Count('reviews'))
        for doctor in qs:
            expected = billing.money(doctor.avg)
            if doctor.total_reviews != doctor.n or billing.money(doctor.rating) != expected:
                self.report(f'Doctor {doctor.doctor_id} rating {doctor.rating}/{doctor.total_reviews} '
                            f'but reviews give {expected}/{doctor.n}')
                stale.append(doctor)
        return stale

    def check_bill_totals(self) -> list:
        self.stdout.write('Checking bill totals...')
        stale = []
        for bill in Bill.objects.prefetch_related('items'):
            items = [{'unit_price': i.unit_price, 'quantity': i.quantity} for i in bill.items.all()]
            totals = billing.compute_totals(items, tax_rate=bill.tax_rate, discount=bill.discount_amount,
                                            insurance=bill.insurance_coverage)
            if any(getattr(bill, key) != value for key, value in totals.items()):
                self.report(f'Bill {bill.bill_id} total {bill.total_amount} but items give {totals["total_amount"]}')
                stale.append(bill)
        return stale

    def check_inactive_doctor_appointments(self):
        self.stdout.write('Checking appointments with inactive doctors...')
        qs = Appointment.objects.filter(doctor__is_active=False, status__in=Appointment.ACTIVE_STATUSES)
        for appt in qs.only('appointment_id', 'doctor_id'):
            self.report(f'Appointment {appt.appointment_id} is held by inactive doctor {appt.doctor_id}')
