import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from census.constants import ROLE_ADMIN, ROLE_DOCTOR, ROLE_NURSE, ROLE_VIEWER
from census.services import records as record_store

DAY = '2024-03-10'


@pytest.fixture(autouse=True)
def _clear_cache():
    # throttles, feature flag overrides, local copies and audit buffer all live in the cache
    cache.clear()
    yield
    cache.clear()


def _user(django_user_model, username, role):
    return django_user_model.objects.create_user(username=username, password='P@ssw0rd1', role=role)


@pytest.fixture
def admin_user(django_user_model):
    return _user(django_user_model, 'admin1', ROLE_ADMIN)


@pytest.fixture
def nurse(django_user_model):
    return _user(django_user_model, 'nurse1', ROLE_NURSE)


@pytest.fixture
def doctor(django_user_model):
    return _user(django_user_model, 'doctor1', ROLE_DOCTOR)


@pytest.fixture
def viewer(django_user_model):
    return _user(django_user_model, 'viewer1', ROLE_VIEWER)


def client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def nurse_client(nurse):
    return client_for(nurse)


@pytest.fixture
def admin_client(admin_user):
    return client_for(admin_user)


@pytest.fixture
def day(db):
    """An empty census day stored for ``DAY``."""
    return record_store.create_day(DAY)


@pytest.fixture
def admitted_day(day):
    """``DAY`` with a patient in R1 and another in H1C1."""
    return record_store.patch_record(DAY, {
        'beds.R1.patientName': 'Juan Pérez',
        'beds.R1.rut': '12.345.678-5',
        'beds.R1.pathology': 'Neumonía',
        'beds.R1.age': '54',
        'beds.H1C1.patientName': 'Ana Tuki',
        'beds.H1C1.rut': '11.111.111-1',
    })
