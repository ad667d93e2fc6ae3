"""
Billing views: itemised bills, counter payments against a bill and
online payments identified by their numeric order code.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.permissions import IsAuthenticated

from ..models import Bill, Payment
from ..permissions import IsAdminRole, IsStaffRole, current_patient, user_role
from ..responses import created_response, get_or_404, paginated_response, success_response
from ..serializers.billing import (
    BillCreateSerializer,
    BillPaymentSerializer,
    BillQuerySerializer,
    BillUpdateSerializer,
    PaymentCreateSerializer,
    PaymentQuerySerializer,
    PaymentStatusSerializer,
)
from ..services import billing as svc
from ..services.audit import log_action

BILLS = Bill.objects.select_related('patient__user')
PAYMENTS = Payment.objects.select_related('patient__user', 'bill')


def _bills_for(user):
    if user_role(user) == 'patient':
        return BILLS.filter(patient=current_patient(user))
    if user_role(user) in ('admin', 'receptionist', 'doctor'):
        return BILLS
    raise PermissionDenied()


def _payments_for(user):
    if user_role(user) == 'patient':
        return PAYMENTS.filter(patient=current_patient(user))
    if user_role(user) in ('admin', 'receptionist', 'doctor'):
        return PAYMENTS
    raise PermissionDenied()


# ---------------------------------------------------------------------
# Bills
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def bills(request):
    if request.method == 'POST':
        if user_role(request.user) not in ('admin', 'receptionist', 'doctor'):
            raise PermissionDenied('Only staff can create bills')
        s = BillCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        bill = svc.create_bill(created_by=request.user, **s.validated_data)
        log_action(user=request.user, action='bill_create', object_type='bill', object_id=bill.bill_id,
                   detail={'total_amount': str(bill.total_amount)})
        return created_response(svc.format_bill(bill, detail=True), message='Bill created')

    q = BillQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = _bills_for(request.user)
    if vd.get('patient_id'):
        qs = qs.filter(patient_id=vd['patient_id'])
    if vd.get('status'):
        qs = qs.filter(status=vd['status'])
    if vd.get('date_from'):
        qs = qs.filter(created_at__date__gte=vd['date_from'])
    if vd.get('date_to'):
        qs = qs.filter(created_at__date__lte=vd['date_to'])
    return paginated_response(request, qs, svc.format_bill)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def bill_detail(request, bill_id: str):
    bill = get_or_404(_bills_for(request.user), 'Bill', pk=bill_id)
    if request.method == 'GET':
        return success_response(svc.format_bill(bill, detail=True))
    if user_role(request.user) not in ('admin', 'receptionist'):
        raise PermissionDenied('Only front-desk staff can change bills')

    if request.method == 'DELETE':
        svc.cancel_bill(bill)
        log_action(user=request.user, action='bill_cancel', object_type='bill', object_id=bill.bill_id)
        return success_response(svc.format_bill(bill), message='Bill cancelled')

    s = BillUpdateSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    fields = dict(s.validated_data)
    if fields.pop('status', None) == 'cancelled':
        svc.cancel_bill(bill)
    for key, value in fields.items():
        setattr(bill, key, value)
    bill.save()
    if 'discount_amount' in fields or 'insurance_coverage' in fields:
        svc.recalculate_bill(bill)
    log_action(user=request.user, action='bill_update', object_type='bill', object_id=bill.bill_id,
               detail={'fields': sorted(s.validated_data)})
    return success_response(svc.format_bill(bill, detail=True), message='Bill updated')


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def bill_payments(request, bill_id: str):
    bill = get_or_404(BILLS, 'Bill', pk=bill_id)
    s = BillPaymentSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    payment = svc.record_bill_payment(bill, created_by=request.user, **s.validated_data)
    log_action(user=request.user, action='bill_payment', object_type='bill', object_id=bill.bill_id,
               detail={'order_code': payment.order_code, 'amount': str(payment.amount)})
    bill.refresh_from_db()
    return created_response({'payment': svc.format_payment(payment), 'bill': svc.format_bill(bill)},
                            message='Payment recorded')


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def billing_summary(request):
    return success_response(svc.billing_summary())


# ---------------------------------------------------------------------
# Online payments
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def payments(request):
    s = PaymentCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = dict(s.validated_data)
    if user_role(request.user) == 'patient':
        own = current_patient(request.user)
        if vd.get('patient') is not None and vd['patient'].pk != own.pk:
            raise PermissionDenied('You can only pay for yourself')
        vd['patient'] = own
    elif user_role(request.user) not in ('admin', 'receptionist', 'doctor'):
        raise PermissionDenied()
    elif vd.get('patient') is None:
        raise ValidationError({'patient_id': 'Patient not found'})
    payment = svc.create_payment(created_by=request.user, **vd)
    return created_response(svc.format_payment(payment), message='Payment created')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def payment_history(request):
    q = PaymentQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = _payments_for(request.user)
    if vd.get('patient_id') and user_role(request.user) != 'patient':
        qs = qs.filter(patient_id=vd['patient_id'])
    if vd.get('status'):
        qs = qs.filter(status=vd['status'])
    if vd.get('payment_method'):
        qs = qs.filter(payment_method=vd['payment_method'])
    return paginated_response(request, qs, svc.format_payment)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def payment_stats(request):
    return success_response(svc.payment_stats(_payments_for(request.user)))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def payment_detail(request, order_code: int):
    payment = get_or_404(_payments_for(request.user), 'Payment', order_code=order_code)
    return success_response(svc.format_payment(payment))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def payment_status(request, order_code: int):
    payment = get_or_404(PAYMENTS, 'Payment', order_code=order_code)
    s = PaymentStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    previous = payment.status
    svc.update_payment_status(payment, s.validated_data['status'],
                              transaction_id=s.validated_data.get('transaction_id', ''))
    log_action(user=request.user, action='payment_status', object_type='payment',
               object_id=str(payment.order_code), detail={'from': previous, 'to': payment.status})
    return success_response(svc.format_payment(payment), message=f'Payment {payment.status}')
