import time

import pytest
from jose import jwt

from auth import verify_password
from config import JWT_ALGORITHM, JWT_SECRET
from conftest import user_payload
from messages import translate


@pytest.fixture
def kim(client):
    resp = client.post("/api/users", json=user_payload())
    assert resp.status_code == 201
    return resp.json()


def test_create_user_hashes_password(client, db, kim):
    assert "password" not in kim
    assert kim["user_type"] == "customer"
    stored = db["users"].find_one({"_id": kim["id"]})
    assert stored["password"] != "s3cret-pass"
    assert verify_password("s3cret-pass", stored["password"])


def test_user_type_defaults_to_customer(client):
    resp = client.post("/api/users", json=user_payload(email="lee@example.com", user_type=None))
    assert resp.status_code == 201
    assert resp.json()["user_type"] == "customer"


def test_duplicate_email_conflicts(client, db, kim):
    resp = client.post("/api/users", json=user_payload(name="Someone else"))
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Email already exists"
    assert db["users"].count_documents({}) == 1


@pytest.mark.parametrize("overrides, message", [
    ({"email": "not-an-email"}, "Invalid email format"),
    ({"email": None}, "Email is required"),
    ({"name": ""}, "Name is required"),
    ({"password": None}, "Password is required"),
    ({"user_type": "superuser"}, 'User type must be either "customer" or "admin"'),
])
def test_create_user_validation(client, overrides, message):
    resp = client.post("/api/users", json=user_payload(**overrides))
    assert resp.status_code == 400
    assert message in resp.json()["detail"]["details"]


def test_read_paths_never_return_password(client, kim):
    client.post("/api/users", json=user_payload(email="admin@example.com", user_type="admin"))

    listed = client.get("/api/users").json()
    assert len(listed) == 2
    assert all("password" not in u for u in listed)

    by_email = client.get("/api/users/email/kim@example.com").json()
    assert "password" not in by_email

    by_id = client.get(f"/api/users/{kim['id']}", params={"email": "kim@example.com"}).json()
    assert by_id["name"] == "Kim"
    assert "password" not in by_id


def test_get_user_requires_email_hint(client, kim):
    assert client.get(f"/api/users/{kim['id']}").status_code == 400
    assert client.get(f"/api/users/{kim['id']}", params={"email": "other@example.com"}).status_code == 404
    assert client.get("/api/users/email/nobody@example.com").status_code == 404


def test_patch_user_merges_fields(client, db, kim):
    resp = client.patch(f"/api/users/{kim['id']}", params={"email": "kim@example.com"}, json={"address": "Busan"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["address"] == "Busan"
    assert body["name"] == "Kim"
    assert "password" not in body
    assert verify_password("s3cret-pass", db["users"].find_one({"_id": kim["id"]})["password"])


def test_patch_password_is_rehashed(client, db, kim):
    resp = client.patch(f"/api/users/{kim['id']}", json={"email": "kim@example.com", "password": "new-pass"})
    assert resp.status_code == 200
    stored = db["users"].find_one({"_id": kim["id"]})["password"]
    assert verify_password("new-pass", stored)

    login = client.post("/api/users/login", json={"email": "kim@example.com", "password": "new-pass"})
    assert login.status_code == 200


def test_patch_cannot_change_email(client, kim):
    body = client.patch(f"/api/users/{kim['id']}", json={"email": "kim@example.com", "name": "Kim Minji"}).json()
    assert body["email"] == "kim@example.com"
    assert body["name"] == "Kim Minji"


def test_patch_invalid_user_type(client, kim):
    resp = client.patch(f"/api/users/{kim['id']}", params={"email": "kim@example.com"}, json={"user_type": "root"})
    assert resp.status_code == 400


def test_put_replaces_profile_and_resolves_partition_by_id(client, kim):
    resp = client.put(f"/api/users/{kim['id']}", json={"name": "Kim Admin", "user_type": "admin"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["name"] == "Kim Admin"
    assert body["user_type"] == "admin"
    assert body["address"] == "Seoul"
    assert body["createdAt"] == kim["createdAt"]
    assert "password" not in body


def test_put_keeps_unsent_fields_and_applies_nulls(client, kim):
    kept = client.put(f"/api/users/{kim['id']}", params={"email": "kim@example.com"}, json={"address": "Busan"})
    assert kept.status_code == 200
    assert kept.json()["address"] == "Busan"
    assert kept.json()["name"] == "Kim"
    assert kept.json()["user_type"] == "customer"

    cleared = client.put(f"/api/users/{kim['id']}", json={"address": None})
    assert cleared.status_code == 200
    assert cleared.json()["address"] is None

    resp = client.put(f"/api/users/{kim['id']}", json={"user_type": None})
    assert resp.status_code == 400
    assert "User type is required" in resp.json()["detail"]["details"]


def test_put_unknown_user(client):
    assert client.put("/api/users/nope", json={"name": "X", "user_type": "customer"}).status_code == 404


def test_delete_user(client, kim):
    assert client.delete(f"/api/users/{kim['id']}").status_code == 400
    resp = client.delete(f"/api/users/{kim['id']}", params={"email": "kim@example.com"})
    assert resp.status_code == 200
    assert client.delete(f"/api/users/{kim['id']}", params={"email": "kim@example.com"}).status_code == 404


def test_login_success_issues_token(client, kim):
    resp = client.post("/api/users/login", json={"email": "kim@example.com", "password": "s3cret-pass"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == translate("login.welcome", "ko", name="Kim")
    assert "password" not in body["user"]
    assert body["user"]["id"] == kim["id"]

    claims = jwt.decode(body["token"], JWT_SECRET, algorithms=[JWT_ALGORITHM])
    assert claims["id"] == kim["id"]
    assert claims["email"] == "kim@example.com"
    assert claims["name"] == "Kim"
    assert claims["user_type"] == "customer"
    lifetime = claims["exp"] - time.time()
    assert 86400 - 60 < lifetime <= 86400


def test_wrong_password_and_unknown_email_look_the_same(client, kim):
    wrong_password = client.post("/api/users/login", json={"email": "kim@example.com", "password": "nope"})
    unknown_email = client.post("/api/users/login", json={"email": "ghost@example.com", "password": "nope"})

    assert wrong_password.status_code == 401
    assert unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json()
    assert wrong_password.json() == {"success": False, "error": translate("login.invalid_credentials", "ko")}


def test_login_message_follows_accept_language(client, kim):
    resp = client.post(
        "/api/users/login",
        json={"email": "kim@example.com", "password": "nope"},
        headers={"Accept-Language": "en-US,en;q=0.9"},
    )
    assert resp.status_code == 401
    assert resp.json()["error"] == "The email or password is incorrect. Please try again."


def test_login_requires_both_fields(client):
    resp = client.post("/api/users/login", json={"email": "kim@example.com"})
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": translate("login.missing_fields", "ko")}


def test_me_returns_token_user(client, kim):
    token = client.post("/api/users/login", json={"email": "kim@example.com", "password": "s3cret-pass"}).json()["token"]
    resp = client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    assert resp.json()["id"] == kim["id"]
    assert "password" not in resp.json()

    assert client.get("/api/users/me").status_code == 401
    assert client.get("/api/users/me", headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_reused_user_id_is_reported_as_id_conflict(client, kim):
    resp = client.post("/api/users", json=user_payload(id=kim["id"], email="other@example.com"))
    assert resp.status_code == 409
    assert resp.json()["detail"] == "User id already exists"
