# clinic_core/conftest.py
import itertools

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from clinic_core.common.context import Actor
from clinic_core.common.roles import Role
from clinic_core.patients.models import Patient, PatientStatus

PASSWORD = "S3cure-pass!"

_seq = itertools.count(1)


@pytest.fixture
def make_user(db):
    """
    make_user(role, email=None, **extra) -> saved user with PASSWORD.
    """
    def _make(role=Role.FRONTDESK, email=None, **extra):
        n = next(_seq)
        email = email or f"{str(role).lower()}{n}@clinic.test"
        extra.setdefault("first_name", str(role).title())
        extra.setdefault("last_name", f"User{n}")
        return get_user_model().objects.create_user(email=email, password=PASSWORD, role=role, **extra)

    return _make


@pytest.fixture
def superadmin(make_user):
    return make_user(Role.SUPERADMIN)


@pytest.fixture
def admin_user(make_user):
    return make_user(Role.ADMIN)


@pytest.fixture
def doctor(make_user):
    return make_user(Role.DOCTOR)


@pytest.fixture
def nurse(make_user):
    return make_user(Role.NURSE)


@pytest.fixture
def frontdesk(make_user):
    return make_user(Role.FRONTDESK)


@pytest.fixture
def pharmacist(make_user):
    return make_user(Role.PHARMACIST)


@pytest.fixture
def patient_user(make_user):
    return make_user(Role.PATIENT)


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for():
    """client_for(user) -> APIClient authenticated as user (None = anonymous)."""
    def _client(user=None):
        c = APIClient()
        if user is not None:
            c.force_authenticate(user=user)
        return c

    return _client


@pytest.fixture
def actor_for():
    def _actor(user=None):
        if user is None:
            return Actor.system()
        return Actor(user_id=user.id, role=user.role)

    return _actor


@pytest.fixture
def make_patient(db):
    def _make(status=PatientStatus.APPROVED, **extra):
        n = next(_seq)
        extra.setdefault("first_name", "Ada")
        extra.setdefault("last_name", f"Obi{n}")
        extra.setdefault("email", f"patient{n}@mail.test")
        return Patient.objects.create(patient_code=f"PAT-2026-{n:06d}", status=status, **extra)

    return _make


@pytest.fixture
def patient(make_patient):
    return make_patient()


@pytest.fixture
def pending_patient(make_patient):
    return make_patient(status=PatientStatus.PENDING)
