import pytest

from clinic_core.common.permissions import POLICY, capabilities_for, is_allowed
from clinic_core.common.roles import Role


def test_superadmin_is_allowed_everything_in_the_table():
    for resource, actions in POLICY.items():
        for action in actions:
            assert is_allowed(Role.SUPERADMIN, resource, action)


def test_unknown_resource_or_action_is_denied():
    assert not is_allowed(Role.ADMIN, "nope", "list")
    assert not is_allowed(Role.ADMIN, "patients", "nope")
    assert not is_allowed(None, "patients", "list")


def test_purge_is_superadmin_only():
    assert not is_allowed(Role.ADMIN, "users", "purge")
    assert is_allowed(Role.SUPERADMIN, "users", "purge")


@pytest.mark.parametrize(
    "role, resource, action, expected",
    [
        (Role.PHARMACIST, "patients", "list", False),
        (Role.FRONTDESK, "patients", "approve", True),
        (Role.NURSE, "patients", "approve", False),
        (Role.PATIENT, "appointments", "mine", True),
        (Role.DOCTOR, "appointments", "mine", False),
        (Role.NURSE, "clinical_suggestions", "create", True),
        (Role.NURSE, "clinical_suggestions", "approve", False),
        (Role.DOCTOR, "attendance", "clock", True),
        (Role.FRONTDESK, "attendance", "clock", False),
        (Role.FRONTDESK, "appointments", "approve", False),
        (Role.FRONTDESK, "appointments", "partial_update", False),
        (Role.FRONTDESK, "appointments", "cancel", True),
        (Role.PATIENT, "patients", "retrieve", True),
        (Role.PATIENT, "patients", "list", False),
        (Role.FRONTDESK, "medical_records", "create", True),
        (Role.FRONTDESK, "medical_records", "partial_update", False),
        (Role.NURSE, "medical_records", "for_patient", False),
    ],
)
def test_policy_table(role, resource, action, expected):
    assert is_allowed(role, resource, action) is expected


def test_capabilities_are_flattened_and_sorted():
    caps = capabilities_for(Role.PATIENT)
    assert caps == sorted(caps)
    assert "appointments.mine" in caps
    assert "users.list" not in caps


@pytest.mark.django_db
def test_anonymous_gets_401_and_wrong_role_gets_403(client_for, pharmacist):
    assert client_for().get("/api/v1/patients/").status_code == 401
    assert client_for(pharmacist).get("/api/v1/patients/").status_code == 403
