import pytest

from clinic_core.common.roles import Role

pytestmark = pytest.mark.django_db


def test_list_users_filters_by_role(client_for, admin_user, doctor, nurse):
    resp = client_for(admin_user).get("/api/v1/users/", {"role": Role.DOCTOR})

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert [u["id"] for u in data["data"]] == [doctor.id]
    assert data["meta"]["total"] == 1


def test_users_endpoints_are_admin_only(client_for, doctor):
    assert client_for(doctor).get("/api/v1/users/").status_code == 403


def test_deleted_user_is_404_afterwards(client_for, admin_user, nurse):
    c = client_for(admin_user)
    assert c.delete(f"/api/v1/users/{nurse.id}/").status_code == 200
    assert c.get(f"/api/v1/users/{nurse.id}/").status_code == 404
    assert c.delete(f"/api/v1/users/{nurse.id}/").status_code == 404


def test_purge_is_superadmin_only(client_for, admin_user, superadmin, nurse):
    assert client_for(admin_user).delete(f"/api/v1/users/{nurse.id}/purge/").status_code == 403

    resp = client_for(superadmin).delete(f"/api/v1/users/{nurse.id}/purge/")
    assert resp.status_code == 204


def test_patch_with_empty_body_is_400(client_for, admin_user, nurse):
    resp = client_for(admin_user).patch(f"/api/v1/users/{nurse.id}/", {}, format="json")
    assert resp.status_code == 400
    assert resp.json()["message"] == "At least one field is required."
