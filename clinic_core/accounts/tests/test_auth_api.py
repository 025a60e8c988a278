import re

import pytest

from clinic_core.conftest import PASSWORD
from clinic_core.common.roles import Role

pytestmark = pytest.mark.django_db

LOGIN = "/api/v1/auth/login/"
REFRESH = "/api/v1/auth/refresh/"
LOGOUT = "/api/v1/auth/logout/"
ME = "/api/v1/auth/me/"


def login(api_client, email, password=PASSWORD):
    return api_client.post(LOGIN, {"email": email, "password": password}, format="json")


def test_login_returns_tokens_and_user(api_client, doctor):
    resp = login(api_client, doctor.email.upper())

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "Login successful"
    assert body["data"]["user"]["email"] == doctor.email
    assert body["data"]["access"] and body["data"]["refresh"]


def test_login_with_wrong_password_is_401(api_client, doctor):
    resp = login(api_client, doctor.email, "wrong-password")
    assert resp.status_code == 401
    assert resp.json()["success"] is False


def test_bearer_token_reaches_me(api_client, nurse):
    access = login(api_client, nurse.email).json()["data"]["access"]

    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
    resp = api_client.get(ME)

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["user"]["role"] == Role.NURSE
    assert "clinical_suggestions.create" in data["capabilities"]


def test_me_requires_authentication(api_client):
    assert api_client.get(ME).status_code == 401


def test_refresh_rotates_and_blacklists_the_old_token(api_client, doctor):
    refresh = login(api_client, doctor.email).json()["data"]["refresh"]

    first = api_client.post(REFRESH, {"refresh": refresh}, format="json")
    assert first.status_code == 200
    assert first.json()["data"]["refresh"] != refresh

    replay = api_client.post(REFRESH, {"refresh": refresh}, format="json")
    assert replay.status_code == 401


def test_logout_revokes_refresh_token(api_client, doctor):
    refresh = login(api_client, doctor.email).json()["data"]["refresh"]

    assert api_client.post(LOGOUT, {"refresh": refresh}, format="json").status_code == 200
    assert api_client.post(REFRESH, {"refresh": refresh}, format="json").status_code == 401
    assert api_client.post(LOGOUT, {"refresh": refresh}, format="json").status_code == 401


def test_garbage_refresh_token_is_401(api_client):
    assert api_client.post(REFRESH, {"refresh": "not-a-token"}, format="json").status_code == 401


def test_register_is_admin_only(client_for, admin_user, doctor):
    payload = {"email": "new.nurse@clinic.test", "password": PASSWORD, "role": Role.NURSE}

    assert client_for(doctor).post("/api/v1/auth/register/", payload, format="json").status_code == 403

    resp = client_for(admin_user).post("/api/v1/auth/register/", payload, format="json")
    assert resp.status_code == 201
    assert resp.json()["data"]["role"] == Role.NURSE


def test_password_reset_flow(api_client, doctor, mailoutbox, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        resp = api_client.post("/api/v1/auth/forgot-password/", {"email": doctor.email}, format="json")
    assert resp.status_code == 200
    assert len(mailoutbox) == 1

    match = re.search(r"uid=([^&\s]+)&token=(\S+)", mailoutbox[0].body)
    uid, token = match.group(1), match.group(2)

    new_password = "An0ther-secret!"
    resp = api_client.post(
        "/api/v1/auth/reset-password/",
        {"uid": uid, "token": token, "new_password": new_password},
        format="json",
    )
    assert resp.status_code == 200
    assert login(api_client, doctor.email, new_password).status_code == 200

    # single use: the password hash changed, so the token no longer checks out
    reuse = api_client.post(
        "/api/v1/auth/reset-password/",
        {"uid": uid, "token": token, "new_password": "Yet-an0ther-one!"},
        format="json",
    )
    assert reuse.status_code == 403


def test_forgot_password_for_unknown_email_looks_the_same(api_client, mailoutbox, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        resp = api_client.post("/api/v1/auth/forgot-password/", {"email": "ghost@clinic.test"}, format="json")
    assert resp.status_code == 200
    assert mailoutbox == []


def test_soft_deleted_account_cannot_log_in(api_client, make_user):
    from django.utils import timezone
    from rest_framework_simplejwt.token_blacklist.models import OutstandingToken

    # still is_active, so only the deleted_at check stands in the way
    gone = make_user(Role.DOCTOR, deleted_at=timezone.now())

    resp = login(api_client, gone.email)

    assert resp.status_code == 401
    gone.refresh_from_db()
    assert gone.last_login is None
    assert not OutstandingToken.objects.filter(user=gone).exists()
