"""
Bills and payments.

Amounts are ``Decimal`` rounded to two places:
``total = subtotal + tax - discount - insurance`` (never below zero),
with ``tax = subtotal * tax_rate``.
"""
from __future__ import annotations

import logging
import secrets
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import Count, Q, Sum
from django.utils import timezone

from clinic.exceptions import BusinessRuleError, InvalidTransition
from clinic.models import Bill, BillItem, Patient, Payment, User
from clinic.services import ids
from clinic.services.notifications import notify

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')
ZERO = Decimal('0')
PAYMENT_TRANSITIONS = {
    'pending': ['success', 'failed', 'cancelled'],
    'success': [],
    'failed': [],
    'cancelled': [],
}


def money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_totals(items: Iterable[dict], *, tax_rate, discount=ZERO, insurance=ZERO) -> dict:
    subtotal = sum((money(i['unit_price']) * int(i.get('quantity', 1)) for i in items), ZERO)
    subtotal = money(subtotal)
    tax = money(subtotal * Decimal(str(tax_rate)))
    total = max(subtotal + tax - money(discount) - money(insurance), ZERO)
    return {'subtotal': subtotal, 'tax_amount': tax, 'total_amount': money(total)}


def total_paid(bill: Bill) -> Decimal:
    return money(bill.payments.filter(status='success').aggregate(s=Sum('amount'))['s'])


def settled_status(bill: Bill, paid: Optional[Decimal] = None) -> str:
    """Status a bill should carry given what has been paid against it.

    Cancelled bills keep their status; an overdue bill stays overdue
    until it is paid in full.
    """
    if bill.status == 'cancelled':
        return bill.status
    paid = total_paid(bill) if paid is None else paid
    if paid >= bill.total_amount:
        return 'paid'
    if bill.status == 'overdue':
        return 'overdue'
    return 'partially_paid' if paid > ZERO else 'pending'


def _open_bill(bill_id: str) -> Bill:
    """Lock a bill for a payment; refuse cancelled or settled ones."""
    bill = Bill.objects.select_for_update().get(pk=bill_id)
    if bill.status == 'cancelled':
        raise BusinessRuleError('Cannot pay a cancelled bill')
    if bill.status == 'paid':
        raise BusinessRuleError('Bill is already paid')
    return bill


def _check_remaining(bill: Bill, amount: Decimal) -> Decimal:
    remaining = bill.total_amount - total_paid(bill)
    if amount > remaining:
        raise BusinessRuleError('Payment exceeds the remaining amount',
                                details={'remaining_amount': float(remaining)})
    return remaining


def format_bill_item(i: BillItem) -> dict:
    return {
        'id': i.id,
        'item_type': i.item_type,
        'description': i.description,
        'quantity': i.quantity,
        'unit_price': float(i.unit_price),
        'amount': float(i.amount),
    }


def format_payment(p: Payment) -> dict:
    return {
        'id': p.id,
        'order_code': p.order_code,
        'bill_id': p.bill_id,
        'patient_id': p.patient_id,
        'appointment_id': p.appointment_id,
        'amount': float(p.amount),
        'payment_method': p.payment_method,
        'status': p.status,
        'description': p.description,
        'transaction_id': p.transaction_id,
        'paid_at': p.paid_at.isoformat() if p.paid_at else None,
        'created_at': p.created_at.isoformat() if p.created_at else None,
    }


def format_bill(b: Bill, *, detail: bool = False) -> dict:
    paid = total_paid(b)
    data = {
        'bill_id': b.bill_id,
        'patient_id': b.patient_id,
        'patient_name': b.patient.user.display_name,
        'appointment_id': b.appointment_id,
        'subtotal': float(b.subtotal),
        'tax_rate': float(b.tax_rate),
        'tax_amount': float(b.tax_amount),
        'discount_amount': float(b.discount_amount),
        'insurance_coverage': float(b.insurance_coverage),
        'total_amount': float(b.total_amount),
        'total_paid': float(paid),
        'remaining_amount': float(max(b.total_amount - paid, ZERO)),
        'status': b.status,
        'due_date': b.due_date.isoformat() if b.due_date else None,
        'notes': b.notes,
        'created_at': b.created_at.isoformat() if b.created_at else None,
    }
    if detail:
        data['items'] = [format_bill_item(i) for i in b.items.all()]
        data['payments'] = [format_payment(p) for p in b.payments.all()]
    return data


def create_bill(*, patient: Patient, items: list[dict], created_by: Optional[User] = None,
                tax_rate=None, discount_amount=ZERO, insurance_coverage=ZERO, **fields) -> Bill:
    if not items:
        raise BusinessRuleError('A bill needs at least one item')
    tax_rate = settings.BILLING_DEFAULT_TAX_RATE if tax_rate is None else Decimal(str(tax_rate))
    totals = compute_totals(items, tax_rate=tax_rate, discount=discount_amount, insurance=insurance_coverage)
    fields.setdefault('due_date', timezone.localdate() + timedelta(days=settings.BILLING_DUE_DAYS))
    # nothing to collect once discount and insurance cover the whole bill
    fields.setdefault('status', 'paid' if totals['total_amount'] == ZERO else 'pending')
    with transaction.atomic():
        bill = Bill.objects.create(
            bill_id=ids.generate_bill_id(),
            patient=patient,
            tax_rate=tax_rate,
            discount_amount=money(discount_amount),
            insurance_coverage=money(insurance_coverage),
            created_by=created_by,
            **totals,
            **fields,
        )
        for item in items:
            quantity = int(item.get('quantity', 1))
            unit_price = money(item['unit_price'])
            BillItem.objects.create(
                bill=bill,
                item_type=item.get('item_type', 'other'),
                description=item['description'],
                quantity=quantity,
                unit_price=unit_price,
                amount=money(unit_price * quantity),
            )
    logger.info("bill %s created for %s total=%s", bill.bill_id, patient.patient_id, bill.total_amount)
    notify(patient.user, title='New bill',
           message=f'Bill {bill.bill_id} of {bill.total_amount} is due {bill.due_date}.',
           notification_type='payment', data={'bill_id': bill.bill_id})
    return bill


def recalculate_bill(bill: Bill) -> Bill:
    items = [{'unit_price': i.unit_price, 'quantity': i.quantity} for i in bill.items.all()]
    totals = compute_totals(items, tax_rate=bill.tax_rate, discount=bill.discount_amount,
                            insurance=bill.insurance_coverage)
    for key, value in totals.items():
        setattr(bill, key, value)
    bill.status = settled_status(bill)
    bill.save(update_fields=list(totals) + ['status', 'updated_at'])
    return bill


def cancel_bill(bill: Bill) -> Bill:
    if bill.payments.filter(status='success').exists():
        raise BusinessRuleError('Cannot cancel a bill that has payments')
    bill.status = 'cancelled'
    bill.save(update_fields=['status', 'updated_at'])
    return bill


def new_order_code() -> int:
    while True:
        code = int(timezone.now().strftime('%y%m%d%H%M%S')) * 1000 + secrets.randbelow(1000)
        if not Payment.objects.filter(order_code=code).exists():
            return code


def record_bill_payment(bill: Bill, *, amount, payment_method: str, created_by: Optional[User] = None,
                        transaction_id: str = '', description: str = '') -> Payment:
    amount = money(amount)
    if amount <= ZERO:
        raise BusinessRuleError('Payment amount must be positive')
    with transaction.atomic():
        bill = _open_bill(bill.pk)
        _check_remaining(bill, amount)
        payment = Payment.objects.create(
            order_code=new_order_code(),
            bill=bill,
            patient=bill.patient,
            appointment=bill.appointment,
            amount=amount,
            payment_method=payment_method,
            status='success',
            paid_at=timezone.now(),
            transaction_id=transaction_id,
            description=description or f'Payment for {bill.bill_id}',
            created_by=created_by,
        )
        bill.status = settled_status(bill)
        bill.save(update_fields=['status', 'updated_at'])
    logger.info("payment %s of %s recorded on %s", payment.order_code, amount, bill.bill_id)
    notify(bill.patient.user, title='Payment received',
           message=f'We received {amount} for bill {bill.bill_id}.',
           notification_type='payment', data={'bill_id': bill.bill_id, 'order_code': payment.order_code})
    return payment


def billing_summary(qs=None) -> dict:
    qs = qs if qs is not None else Bill.objects.all()
    qs = qs.exclude(status='cancelled')
    agg = qs.aggregate(
        n=Count('bill_id'),
        total=Sum('total_amount'),
        pending=Sum('total_amount', filter=Q(status__in=('pending', 'partially_paid'))),
        overdue=Sum('total_amount', filter=Q(status='overdue')),
    )
    paid = Payment.objects.filter(bill__in=qs, status='success').aggregate(s=Sum('amount'))['s']
    return {
        'total_bills': agg['n'] or 0,
        'total_amount': float(money(agg['total'])),
        'paid_amount': float(money(paid)),
        'pending_amount': float(money(agg['pending'])),
        'overdue_amount': float(money(agg['overdue'])),
    }


def mark_overdue(today=None) -> int:
    today = today or timezone.localdate()
    return Bill.objects.filter(status__in=('pending', 'partially_paid'), due_date__lt=today).update(status='overdue')


# ---------------------------------------------------------------------------
# Online payments keyed by order code
# ---------------------------------------------------------------------------

def create_payment(*, patient: Patient, amount, payment_method: str, description: str = '',
                   bill: Optional[Bill] = None, appointment=None, created_by: Optional[User] = None) -> Payment:
    amount = money(amount)
    if amount <= ZERO:
        raise BusinessRuleError('Payment amount must be positive')
    if bill is not None and bill.patient_id != patient.pk:
        raise BusinessRuleError('Bill belongs to a different patient')
    with transaction.atomic():
        if bill is not None:
            bill = _open_bill(bill.pk)
            _check_remaining(bill, amount)
        payment = Payment.objects.create(
            order_code=new_order_code(),
            patient=patient,
            bill=bill,
            appointment=appointment,
            amount=amount,
            payment_method=payment_method,
            description=description,
            status='pending',
            created_by=created_by,
        )
    logger.info("payment %s created (pending) for %s", payment.order_code, patient.patient_id)
    return payment


def update_payment_status(payment: Payment, new_status: str, *, transaction_id: str = '') -> Payment:
    """Move an online payment along ``PAYMENT_TRANSITIONS``.

    A successful payment settles its bill, which must still be open and
    owe at least the payment amount.
    """
    if new_status not in PAYMENT_TRANSITIONS.get(payment.status, []):
        raise InvalidTransition(f'Cannot change payment from {payment.status} to {new_status}')
    with transaction.atomic():
        current = Payment.objects.select_for_update().filter(pk=payment.pk).values_list('status', flat=True).first()
        if current != payment.status:
            raise InvalidTransition(f'Cannot change payment from {current} to {new_status}')
        bill = None
        if new_status == 'success' and payment.bill_id:
            bill = _open_bill(payment.bill_id)
            _check_remaining(bill, payment.amount)
        payment.status = new_status
        if transaction_id:
            payment.transaction_id = transaction_id
        if new_status == 'success':
            payment.paid_at = timezone.now()
        payment.save()
        if bill is not None:
            bill.status = settled_status(bill)
            bill.save(update_fields=['status', 'updated_at'])
    logger.info("payment %s -> %s", payment.order_code, new_status)
    if new_status == 'success':
        notify(payment.patient.user, title='Payment successful',
               message=f'Payment {payment.order_code} of {payment.amount} succeeded.',
               notification_type='payment', data={'order_code': payment.order_code})
    return payment


def payment_stats(qs) -> dict:
    agg = qs.aggregate(
        n=Count('id'),
        paid=Sum('amount', filter=Q(status='success')),
        ok=Count('id', filter=Q(status='success')),
        pending=Count('id', filter=Q(status='pending')),
    )
    return {
        'totalPayments': agg['n'] or 0,
        'totalAmount': float(money(agg['paid'])),
        'successfulPayments': agg['ok'] or 0,
        'pendingPayments': agg['pending'] or 0,
    }
