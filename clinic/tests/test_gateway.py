from datetime import timedelta

import pytest
import requests
from django.utils import timezone

from clinic.services import gateway

from .factories import make_user

pytestmark = pytest.mark.django_db

SERVICES = {
    'auth': 'http://auth-service:3001',
    'doctors': 'http://doctor-service:3002',
    'patients': 'http://patient-service:3003',
    'prescriptions': 'http://prescription-service:3007',
    'billing': 'http://billing-service:3008',
}


@pytest.fixture(autouse=True)
def _services(settings):
    settings.GATEWAY_SERVICES = SERVICES
    settings.DOCTOR_ONLY_MODE = False


class FakeResponse:
    def __init__(self, status_code=200, content=b'{"success": true}', content_type='application/json'):
        self.status_code = status_code
        self.content = content
        self.headers = {'Content-Type': content_type}


@pytest.fixture
def sent(monkeypatch):
    calls = []

    def fake_request(method, url, **kwargs):
        calls.append((method, url, kwargs))
        return FakeResponse(status_code=201, content=b'{"success": true, "data": {"id": 7}}')

    monkeypatch.setattr(gateway.requests, 'request', fake_request)
    return calls


def test_unknown_service_is_404(api_client):
    r = api_client.get('/api/gateway/pharmacy/items')
    assert r.status_code == 404
    assert r.json()['error']['code'] == 'not_found'


def test_forward_passes_status_and_body(api_client, sent):
    r = api_client.post('/api/gateway/doctors/12/reviews?x=1', {'rating': 5}, format='json',
                        HTTP_AUTHORIZATION='Bearer abc')
    assert r.status_code == 201
    assert r.content == b'{"success": true, "data": {"id": 7}}'
    method, url, kwargs = sent[0]
    assert method == 'POST'
    assert url == 'http://doctor-service:3002/api/doctors/12/reviews?x=1'
    assert kwargs['headers']['Authorization'] == 'Bearer abc'
    assert kwargs['data']


def test_aliases_route_to_owning_service(api_client, sent):
    api_client.get('/api/gateway/medications')
    assert sent[0][1] == 'http://prescription-service:3007/api/medications'


def test_doctor_only_mode_blocks_other_services(api_client, sent, settings):
    settings.DOCTOR_ONLY_MODE = True
    r = api_client.get('/api/gateway/patients')
    assert r.status_code == 503
    body = r.json()
    assert body['error']['code'] == 'service_unavailable'
    assert body['error']['details'] == {'mode': 'doctor-only-development', 'availableServices': ['doctors']}
    assert sent == []
    assert api_client.get('/api/gateway/doctors').status_code == 201


def test_downstream_failure_is_503(api_client, monkeypatch):
    def refuse(method, url, **kwargs):
        raise requests.ConnectionError('refused')

    monkeypatch.setattr(gateway.requests, 'request', refuse)
    r = api_client.get('/api/gateway/billing/bills')
    assert r.status_code == 503
    assert r.json()['error']['details'] == {'service': 'billing'}


def test_health_result_goes_stale(monkeypatch, settings):
    monkeypatch.setattr(gateway.requests, 'get', lambda url, timeout: FakeResponse())
    assert gateway.check('doctors').status == 'healthy'
    assert gateway.status_of('doctors').status == 'healthy'
    later = timezone.now() + timedelta(seconds=settings.GATEWAY_HEALTH_INTERVAL * 2 + 1)
    assert gateway.status_of('doctors', now=later).status == 'unknown'


def test_never_checked_service_is_unknown():
    entry = gateway.status_of('billing')
    assert entry.status == 'unknown'
    assert entry.last_check is None


def test_services_health_reports_degraded(api_client, monkeypatch):
    def fake_get(url, timeout):
        if 'billing' in url:
            raise requests.Timeout('slow')
        return FakeResponse()

    monkeypatch.setattr(gateway.requests, 'get', fake_get)
    data = api_client.get('/health/services').json()['data']
    assert data['status'] == 'degraded'
    by_name = {s['name']: s for s in data['services']}
    assert by_name['billing']['status'] == 'unhealthy'
    assert by_name['doctors']['status'] == 'healthy'


def test_unhealthy_on_error_status(monkeypatch):
    monkeypatch.setattr(gateway.requests, 'get', lambda url, timeout: FakeResponse(status_code=500))
    entry = gateway.check('auth')
    assert entry.status == 'unhealthy'
    assert entry.error == 'HTTP 500'


def test_health_endpoints(api_client):
    r = api_client.get('/healthz')
    assert r.status_code == 200
    assert r.json() == {'ok': True, 'db': True}

    body = api_client.get('/health').json()
    assert body['success'] is True
    assert body['data']['status'] == 'healthy'
    assert body['data']['database'] == 'connected'


def test_service_registry_is_admin_only(client_for):
    assert client_for(make_user('doctor')).get('/api/gateway/services').status_code == 403
    r = client_for(make_user('admin')).get('/api/gateway/services')
    assert r.status_code == 200
    assert r.json()['data']['routes']['reviews'] == 'doctors'
    assert {s['name'] for s in r.json()['data']['services']} == set(gateway.services())
