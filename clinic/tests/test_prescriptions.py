import re
from decimal import Decimal

import pytest

from clinic.exceptions import BusinessRuleError
from clinic.models import Medication
from clinic.services import prescriptions as svc

from .factories import make_doctor, make_patient

pytestmark = pytest.mark.django_db


@pytest.fixture
def amoxicillin(db):
    return Medication.objects.create(name='Amoxicillin', strength='500mg', unit_price=Decimal('2500.00'))


def prescribe(client, patient, items, **extra):
    payload = {'patient_id': patient.patient_id, 'items': items}
    payload.update(extra)
    return client.post('/api/prescriptions', payload, format='json')


def test_items_are_priced_from_the_catalogue(client_for, doctor, patient, amoxicillin):
    r = prescribe(client_for(doctor.user), patient, [
        {'medication_id': amoxicillin.id, 'dosage': '500mg', 'frequency': '3x daily', 'quantity': 21},
        {'medication_name': 'Paracetamol', 'dosage': '500mg', 'frequency': 'as needed', 'quantity': 10,
         'unit_price': '1000'},
    ])
    assert r.status_code == 201
    data = r.json()['data']
    assert data['prescription_id'].startswith('CARD-RX-')
    assert data['total_cost'] == 21 * 2500 + 10 * 1000
    items = data['items']
    assert items[0]['medication_name'] == 'Amoxicillin'
    assert re.match(r'^CARD-RX-\d{6}-\d{3}_001$', items[0]['item_id'])
    assert items[1]['item_id'].endswith('_002')


def test_item_needs_a_medication(client_for, doctor, patient):
    r = prescribe(client_for(doctor.user), patient, [{'dosage': '1 tab', 'frequency': 'daily'}])
    assert r.status_code == 400


def test_empty_prescription_is_rejected(client_for, doctor, patient):
    assert prescribe(client_for(doctor.user), patient, []).status_code == 400


def test_receptionist_cannot_prescribe(client_for, receptionist, patient, amoxicillin):
    r = prescribe(client_for(receptionist), patient,
                  [{'medication_id': amoxicillin.id, 'dosage': '1', 'frequency': 'daily'}])
    assert r.status_code == 403


def test_dispense_then_cancel_is_refused(client_for, receptionist, doctor, patient, amoxicillin):
    rx = svc.create_prescription(patient=patient, doctor=doctor, items=[
        {'medication': amoxicillin, 'dosage': '500mg', 'frequency': 'daily', 'quantity': 7},
    ])
    r = client_for(receptionist).post(f'/api/prescriptions/{rx.prescription_id}/dispense')
    assert r.status_code == 200
    assert r.json()['data']['status'] == 'dispensed'
    assert r.json()['data']['dispensed_at']

    r = client_for(doctor.user).delete(f'/api/prescriptions/{rx.prescription_id}')
    assert r.status_code == 400
    assert r.json()['error']['code'] == 'business_rule'


def test_update_replaces_items_and_total(client_for, doctor, patient, amoxicillin):
    rx = svc.create_prescription(patient=patient, doctor=doctor, items=[
        {'medication': amoxicillin, 'dosage': '500mg', 'frequency': 'daily', 'quantity': 7},
    ])
    r = client_for(doctor.user).put(f'/api/prescriptions/{rx.prescription_id}', {'items': [
        {'medication_id': amoxicillin.id, 'dosage': '500mg', 'frequency': 'daily', 'quantity': 2},
    ]}, format='json')
    assert r.status_code == 200
    assert r.json()['data']['total_cost'] == 5000
    assert len(r.json()['data']['items']) == 1


def test_only_active_prescriptions_change(doctor, patient, amoxicillin):
    rx = svc.create_prescription(patient=patient, doctor=doctor, items=[
        {'medication': amoxicillin, 'dosage': '500mg', 'frequency': 'daily'},
    ])
    svc.cancel(rx)
    with pytest.raises(BusinessRuleError):
        svc.dispense(rx)
    with pytest.raises(BusinessRuleError):
        svc.update_prescription(rx, notes='late change')


def test_visibility(client_for, doctor, patient, department, amoxicillin):
    item = {'medication': amoxicillin, 'dosage': '500mg', 'frequency': 'daily'}
    mine = svc.create_prescription(patient=patient, doctor=doctor, items=[item])
    svc.create_prescription(patient=make_patient(), doctor=make_doctor(department), items=[item])

    listed = client_for(patient.user).get('/api/prescriptions').json()['data']
    assert [p['prescription_id'] for p in listed] == [mine.prescription_id]
    listed = client_for(doctor.user).get('/api/prescriptions').json()['data']
    assert [p['prescription_id'] for p in listed] == [mine.prescription_id]


def test_medication_catalogue(client_for, admin_user, patient, amoxicillin):
    r = client_for(admin_user).post('/api/medications', {'name': 'Ibuprofen', 'unit_price': '1800'}, format='json')
    assert r.status_code == 201
    names = [m['name'] for m in client_for(patient.user).get('/api/medications', {'search': 'amox'}).json()['data']]
    assert names == ['Amoxicillin']
    assert client_for(patient.user).post('/api/medications', {'name': 'X'}, format='json').status_code == 403


def test_catalogue_price_wins_over_supplied_price(client_for, doctor, patient, amoxicillin):
    r = prescribe(client_for(doctor.user), patient, [
        {'medication_id': amoxicillin.id, 'dosage': '500mg', 'frequency': '3x daily', 'quantity': 2,
         'unit_price': '1'},
    ])
    assert r.status_code == 201
    assert r.json()['data']['items'][0]['unit_price'] == 2500
    assert r.json()['data']['total_cost'] == 5000
