import pyotp
import pytest
from rest_framework.exceptions import AuthenticationFailed, ValidationError

from clinic_core.accounts.services import (
    TWO_FACTOR_BAD_CODE,
    TWO_FACTOR_INCOMPLETE,
    TwoFactorService,
    requires_second_factor,
)
from clinic_core.audit.models import AuditEvent
from clinic_core.common.roles import Role
from clinic_core.conftest import PASSWORD

pytestmark = pytest.mark.django_db

LOGIN = "/api/v1/auth/login/"
SETUP = "/api/v1/auth/2fa/setup/"
ENABLE = "/api/v1/auth/2fa/enable/"
TWO_FACTOR_LOGIN = "/api/v1/auth/2fa/login/"
# never a TOTP value: codes are digits only
WRONG_CODE = "abcdef"


@pytest.fixture
def enrolled_doctor(doctor, actor_for):
    actor = actor_for(doctor)
    secret = TwoFactorService.start_setup(actor=actor)["secret"]
    TwoFactorService.enable(actor=actor, code=pyotp.TOTP(secret).now())
    doctor.refresh_from_db()
    return doctor


def test_setup_returns_provisioning_uri(doctor, actor_for, settings):
    settings.TWO_FACTOR_ISSUER = "Harbor Clinic"

    out = TwoFactorService.start_setup(actor=actor_for(doctor))

    doctor.refresh_from_db()
    assert doctor.two_factor_temp_secret == out["secret"]
    assert doctor.two_factor_enabled is False
    assert out["otpauth_url"].startswith("otpauth://totp/")
    assert "Harbor%20Clinic" in out["otpauth_url"]


def test_enable_without_setup_is_400(doctor, actor_for):
    with pytest.raises(ValidationError) as exc:
        TwoFactorService.enable(actor=actor_for(doctor), code="123456")
    assert TWO_FACTOR_INCOMPLETE in str(exc.value.detail)


def test_enable_with_wrong_code_keeps_it_off(doctor, actor_for):
    actor = actor_for(doctor)
    TwoFactorService.start_setup(actor=actor)

    with pytest.raises(ValidationError) as exc:
        TwoFactorService.enable(actor=actor, code=WRONG_CODE)
    assert TWO_FACTOR_BAD_CODE in str(exc.value.detail)

    doctor.refresh_from_db()
    assert doctor.two_factor_enabled is False


def test_enable_promotes_the_pending_secret(enrolled_doctor):
    assert enrolled_doctor.two_factor_enabled is True
    assert enrolled_doctor.two_factor_secret
    assert enrolled_doctor.two_factor_temp_secret == ""
    assert AuditEvent.objects.filter(action="TWO_FACTOR_ENABLED", entity_id=str(enrolled_doctor.id)).exists()


def test_admins_skip_the_second_factor(make_user):
    assert requires_second_factor(make_user(Role.ADMIN, two_factor_enabled=True)) is False
    assert requires_second_factor(make_user(Role.NURSE, two_factor_enabled=True)) is True
    assert requires_second_factor(make_user(Role.NURSE)) is False


def test_password_login_stops_before_tokens(api_client, enrolled_doctor):
    resp = api_client.post(LOGIN, {"email": enrolled_doctor.email, "password": PASSWORD}, format="json")

    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Two-factor code required"
    assert body["data"]["user"]["two_factor_enabled"] is True
    assert "access" not in body["data"]

    enrolled_doctor.refresh_from_db()
    assert enrolled_doctor.last_login is None


def test_second_step_issues_tokens(api_client, enrolled_doctor):
    code = pyotp.TOTP(enrolled_doctor.two_factor_secret).now()

    resp = api_client.post(TWO_FACTOR_LOGIN, {"email": enrolled_doctor.email, "code": code}, format="json")

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["access"] and data["refresh"]
    enrolled_doctor.refresh_from_db()
    assert enrolled_doctor.last_login is not None


def test_second_step_rejects_bad_code_and_disabled_accounts(api_client, enrolled_doctor, nurse):
    with pytest.raises(AuthenticationFailed):
        TwoFactorService.login(email=nurse.email, code="123456")

    resp = api_client.post(TWO_FACTOR_LOGIN, {"email": enrolled_doctor.email, "code": WRONG_CODE}, format="json")
    assert resp.status_code == 401
    assert resp.json()["message"] == TWO_FACTOR_BAD_CODE


def test_setup_and_enable_over_http(client_for, nurse, api_client):
    client = client_for(nurse)
    assert api_client.post(SETUP).status_code == 401

    secret = client.post(SETUP).json()["data"]["secret"]
    resp = client.post(ENABLE, {"code": pyotp.TOTP(secret).now()}, format="json")

    assert resp.status_code == 200
    assert resp.json()["data"]["two_factor_enabled"] is True
