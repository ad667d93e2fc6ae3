from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from clinic.exceptions import BusinessRuleError, InvalidTransition
from clinic.models import Bill, Payment
from clinic.services import billing as svc

from .factories import make_patient

pytestmark = pytest.mark.django_db

CONSULT = {'item_type': 'consultation', 'description': 'Cardiology consultation', 'unit_price': '300000'}
LAB = {'item_type': 'lab_test', 'description': 'ECG', 'quantity': 2, 'unit_price': '150000'}


def test_compute_totals():
    totals = svc.compute_totals(
        [{'unit_price': Decimal('100.00'), 'quantity': 2}, {'unit_price': Decimal('50.50')}],
        tax_rate=Decimal('0.10'), discount=Decimal('10'), insurance=Decimal('20'),
    )
    assert totals == {'subtotal': Decimal('250.50'), 'tax_amount': Decimal('25.05'),
                      'total_amount': Decimal('245.55')}


def test_total_never_goes_negative():
    totals = svc.compute_totals([{'unit_price': 100}], tax_rate=0, insurance=500)
    assert totals['total_amount'] == Decimal('0.00')


def test_create_bill_uses_default_tax_and_due_date(client_for, receptionist, patient):
    r = client_for(receptionist).post('/api/billing/bills', {
        'patient_id': patient.patient_id, 'items': [CONSULT, LAB], 'discount_amount': '50000',
    }, format='json')
    assert r.status_code == 201
    data = r.json()['data']
    assert data['bill_id'].startswith('BILL-')
    assert data['subtotal'] == 600000
    assert data['tax_amount'] == 60000
    assert data['total_amount'] == 610000
    assert data['remaining_amount'] == 610000
    assert data['status'] == 'pending'
    assert data['due_date'] == (timezone.localdate() + timedelta(days=30)).isoformat()
    assert len(data['items']) == 2


def test_patient_cannot_create_bills(client_for, patient):
    r = client_for(patient.user).post('/api/billing/bills', {'patient_id': patient.patient_id, 'items': [CONSULT]},
                                      format='json')
    assert r.status_code == 403


@pytest.fixture
def bill(patient, receptionist):
    return svc.create_bill(patient=patient, items=[CONSULT], tax_rate=Decimal('0'), created_by=receptionist)


def test_partial_then_full_payment(client_for, receptionist, bill):
    client = client_for(receptionist)
    url = f'/api/billing/bills/{bill.bill_id}/payments'
    r = client.post(url, {'amount': '100000', 'payment_method': 'cash'}, format='json')
    assert r.status_code == 201
    assert r.json()['data']['bill']['status'] == 'partially_paid'
    assert r.json()['data']['payment']['status'] == 'success'

    r = client.post(url, {'amount': '200000', 'payment_method': 'card'}, format='json')
    assert r.json()['data']['bill']['status'] == 'paid'
    assert r.json()['data']['bill']['remaining_amount'] == 0


def test_overpayment_is_refused(client_for, receptionist, bill):
    r = client_for(receptionist).post(f'/api/billing/bills/{bill.bill_id}/payments',
                                      {'amount': '300000.01'}, format='json')
    assert r.status_code == 400
    error = r.json()['error']
    assert error['code'] == 'business_rule'
    assert error['details']['remaining_amount'] == 300000


def test_zero_payment_is_refused(bill):
    with pytest.raises(BusinessRuleError):
        svc.record_bill_payment(bill, amount=0, payment_method='cash')


def test_cancel_refused_after_payment(client_for, receptionist, bill):
    svc.record_bill_payment(bill, amount=Decimal('1000'), payment_method='cash')
    r = client_for(receptionist).delete(f'/api/billing/bills/{bill.bill_id}')
    assert r.status_code == 400
    assert Bill.objects.get(pk=bill.pk).status == 'partially_paid'


def test_cancel_unpaid_bill(client_for, receptionist, bill):
    r = client_for(receptionist).delete(f'/api/billing/bills/{bill.bill_id}')
    assert r.status_code == 200
    assert r.json()['data']['status'] == 'cancelled'
    with pytest.raises(BusinessRuleError):
        svc.record_bill_payment(Bill.objects.get(pk=bill.pk), amount=Decimal('10'), payment_method='cash')


def test_discount_update_recalculates(client_for, receptionist, bill):
    r = client_for(receptionist).put(f'/api/billing/bills/{bill.bill_id}', {'discount_amount': '100000'},
                                     format='json')
    assert r.status_code == 200
    assert r.json()['data']['total_amount'] == 200000


def test_patients_see_only_their_bills(client_for, patient, bill):
    svc.create_bill(patient=make_patient(), items=[CONSULT])
    body = client_for(patient.user).get('/api/billing/bills').json()
    assert [b['bill_id'] for b in body['data']] == [bill.bill_id]


def test_mark_overdue_and_summary(client_for, admin_user, patient):
    late = svc.create_bill(patient=patient, items=[CONSULT], tax_rate=0,
                           due_date=timezone.localdate() - timedelta(days=1))
    svc.create_bill(patient=patient, items=[LAB], tax_rate=0)
    assert svc.mark_overdue() == 1
    assert Bill.objects.get(pk=late.pk).status == 'overdue'

    data = client_for(admin_user).get('/api/billing/summary').json()['data']
    assert data == {'total_bills': 2, 'total_amount': 600000.0, 'paid_amount': 0.0,
                    'pending_amount': 300000.0, 'overdue_amount': 300000.0}


def test_online_payment_lifecycle(client_for, patient, receptionist, bill):
    r = client_for(patient.user).post('/api/payments', {'amount': '300000', 'bill_id': bill.bill_id},
                                      format='json')
    assert r.status_code == 201
    payment = r.json()['data']
    assert payment['status'] == 'pending'
    assert payment['payment_method'] == 'payos'

    r = client_for(receptionist).post(f"/api/payments/{payment['order_code']}/status", {'status': 'success'},
                                      format='json')
    assert r.status_code == 200
    assert Bill.objects.get(pk=bill.pk).status == 'paid'

    r = client_for(receptionist).post(f"/api/payments/{payment['order_code']}/status", {'status': 'failed'},
                                      format='json')
    assert r.status_code == 400
    assert r.json()['error']['code'] == 'invalid_transition'


def test_patient_cannot_pay_for_someone_else(client_for, patient):
    other = make_patient()
    r = client_for(patient.user).post('/api/payments', {'amount': '1000', 'patient_id': other.patient_id},
                                      format='json')
    assert r.status_code == 403


def test_staff_payment_needs_patient(client_for, receptionist):
    r = client_for(receptionist).post('/api/payments', {'amount': '1000'}, format='json')
    assert r.status_code == 400


def test_payment_stats_are_scoped(client_for, patient):
    svc.create_payment(patient=patient, amount=Decimal('1000'), payment_method='cash')
    paid = svc.create_payment(patient=patient, amount=Decimal('2500'), payment_method='momo')
    svc.update_payment_status(paid, 'success')
    svc.create_payment(patient=make_patient(), amount=Decimal('9999'), payment_method='cash')

    data = client_for(patient.user).get('/api/payments/stats').json()['data']
    assert data == {'totalPayments': 2, 'totalAmount': 2500.0, 'successfulPayments': 1, 'pendingPayments': 1}


def test_payment_status_transitions():
    payment = Payment(status='failed')
    with pytest.raises(InvalidTransition):
        svc.update_payment_status(payment, 'success')


def test_payment_history_filters(client_for, patient, receptionist):
    svc.create_payment(patient=patient, amount=Decimal('1000'), payment_method='cash')
    svc.create_payment(patient=patient, amount=Decimal('2000'), payment_method='momo')
    other = make_patient()
    svc.create_payment(patient=other, amount=Decimal('3000'), payment_method='cash')

    own = client_for(patient.user).get('/api/payments/history?patient_id=' + other.patient_id).json()
    assert own['pagination']['total'] == 2

    staff = client_for(receptionist)
    body = staff.get(f'/api/payments/history?patient_id={other.patient_id}').json()
    assert [p['patient_id'] for p in body['data']] == [other.patient_id]
    cash = staff.get('/api/payments/history?payment_method=cash').json()
    assert cash['pagination']['total'] == 2


def test_online_payment_on_cancelled_bill_cannot_succeed(bill):
    payment = svc.create_payment(patient=bill.patient, bill=bill, amount=Decimal('300000'), payment_method='payos')
    svc.cancel_bill(Bill.objects.get(pk=bill.pk))

    with pytest.raises(BusinessRuleError):
        svc.update_payment_status(payment, 'success')
    assert Bill.objects.get(pk=bill.pk).status == 'cancelled'
    assert Payment.objects.get(pk=payment.pk).status == 'pending'


def test_online_payment_refused_for_closed_bills(bill):
    svc.record_bill_payment(bill, amount=Decimal('300000'), payment_method='cash')
    with pytest.raises(BusinessRuleError):
        svc.create_payment(patient=bill.patient, bill=bill, amount=Decimal('1000'), payment_method='payos')

    other = svc.create_bill(patient=bill.patient, items=[CONSULT], tax_rate=0)
    svc.cancel_bill(other)
    with pytest.raises(BusinessRuleError):
        svc.create_payment(patient=bill.patient, bill=other, amount=Decimal('1000'), payment_method='payos')


def test_online_payment_cannot_overpay(client_for, patient, bill):
    r = client_for(patient.user).post('/api/payments', {'amount': '900000', 'bill_id': bill.bill_id},
                                      format='json')
    assert r.status_code == 400
    assert r.json()['error']['details']['remaining_amount'] == 300000


def test_second_online_payment_checked_at_success(bill):
    first = svc.create_payment(patient=bill.patient, bill=bill, amount=Decimal('200000'), payment_method='payos')
    second = svc.create_payment(patient=bill.patient, bill=bill, amount=Decimal('200000'), payment_method='momo')
    svc.update_payment_status(first, 'success')
    assert Bill.objects.get(pk=bill.pk).status == 'partially_paid'

    with pytest.raises(BusinessRuleError):
        svc.update_payment_status(second, 'success')
    assert svc.total_paid(bill) == Decimal('200000.00')


def test_removing_discount_reopens_paid_bill(client_for, receptionist, patient):
    bill = svc.create_bill(patient=patient, items=[CONSULT], tax_rate=0, discount_amount=Decimal('100000'))
    svc.record_bill_payment(bill, amount=Decimal('200000'), payment_method='cash')
    assert Bill.objects.get(pk=bill.pk).status == 'paid'

    r = client_for(receptionist).put(f'/api/billing/bills/{bill.bill_id}', {'discount_amount': '0'}, format='json')
    data = r.json()['data']
    assert data['status'] == 'partially_paid'
    assert data['remaining_amount'] == 100000


def test_insurance_settles_partially_paid_bill(client_for, receptionist, bill):
    svc.record_bill_payment(bill, amount=Decimal('100000'), payment_method='cash')
    r = client_for(receptionist).put(f'/api/billing/bills/{bill.bill_id}', {'insurance_coverage': '200000'},
                                     format='json')
    assert r.json()['data']['status'] == 'paid'
    assert r.json()['data']['remaining_amount'] == 0


def test_fully_covered_bill_is_paid(patient):
    bill = svc.create_bill(patient=patient, items=[CONSULT], tax_rate=0, insurance_coverage=Decimal('300000'))
    assert bill.status == 'paid'

    bill.insurance_coverage = Decimal('0')
    svc.recalculate_bill(bill)
    assert Bill.objects.get(pk=bill.pk).status == 'pending'
