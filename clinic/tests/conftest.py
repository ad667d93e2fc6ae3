import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from clinic.models import Department

from .factories import make_doctor, make_patient, make_user


@pytest.fixture(autouse=True)
def _clear_cache():
    # throttle counters and cached payloads live in the local-memory cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def department(db):
    return Department.objects.create(department_id='DEPT001', code='CARD', name='Cardiology')


@pytest.fixture
def admin_user(db):
    return make_user('admin')


@pytest.fixture
def receptionist(db):
    return make_user('receptionist')


@pytest.fixture
def doctor(department):
    return make_doctor(department)


@pytest.fixture
def patient(db):
    return make_patient()


@pytest.fixture
def client_for(api_client):
    def _as(user):
        api_client.force_authenticate(user=user)
        return api_client
    return _as
