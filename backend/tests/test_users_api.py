"""
API tests for /users: listing, lookups, creation paths (single, explicit id, bulk), updates,
deletes and the admin-only date-window operations.
"""
from datetime import datetime, timezone

from weather_api.models import Role, User
from weather_api.models.types import new_object_id
from weather_api.services.auth import verify_password
from weather_api.services.timeutils import as_utc

from conftest import make_user


def _user_body(email: str, role: str = "student", **extra) -> dict:
    return {"firstName": "New", "lastName": "User", "email": email, "password": "pw-123", "role": role, **extra}


def test_list_users_hides_secrets(client, headers_for, users_by_role):
    r = client.get("/users", headers=headers_for(Role.teacher))
    assert r.status_code == 200
    users = r.json()["users"]
    assert len(users) == len(users_by_role)
    for user in users:
        assert "password" not in user
        assert "authenticationKey" not in user
        assert set(user) >= {"_id", "firstName", "lastName", "email", "role", "createdDate"}


def test_get_user_by_id(client, headers_for, users_by_role):
    student = users_by_role[Role.student]
    headers = headers_for(Role.admin)
    r = client.get(f"/users/{student.id}", headers=headers)
    assert r.status_code == 200
    assert r.json()["user"]["email"] == student.email
    assert client.get(f"/users/{new_object_id()}", headers=headers).status_code == 404
    r = client.get("/users/not-an-id", headers=headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid ID format"


def test_get_user_by_key_needs_no_header(client, users_by_role):
    sensor = users_by_role[Role.sensor]
    r = client.get(f"/users/key/{sensor.authentication_key}")
    assert r.status_code == 200
    assert r.json()["user"]["_id"] == sensor.id
    assert client.get("/users/key/unknown-key").status_code == 404


def test_create_user_hashes_password(client, db, headers_for):
    r = client.post("/users", json=_user_body("sensor-1@example.com", "sensor"), headers=headers_for(Role.teacher))
    assert r.status_code == 200
    created = r.json()["user"]
    assert created["role"] == "sensor"
    assert created["lastLoggedIn"] is None

    stored = db.get(User, created["_id"])
    assert stored.password != "pw-123"
    assert verify_password("pw-123", stored.password)
    assert stored.authentication_key is None

    r = client.post("/users", json=_user_body("sensor-1@example.com"), headers=headers_for(Role.teacher))
    assert r.status_code == 409


def test_create_user_rejects_invalid_role(client, headers_for):
    r = client.post("/users", json=_user_body("x@example.com", "superuser"), headers=headers_for(Role.admin))
    assert r.status_code == 400


def test_create_user_with_id(client, headers_for):
    user_id = new_object_id()
    headers = headers_for(Role.admin)
    r = client.put(f"/users/{user_id}", json=_user_body("first@example.com"), headers=headers)
    assert r.status_code == 200
    assert r.json()["user"]["_id"] == user_id

    # Same id again is rejected, never overwritten
    r = client.put(f"/users/{user_id}", json=_user_body("second@example.com"), headers=headers)
    assert r.status_code == 409
    assert client.get(f"/users/{user_id}", headers=headers).json()["user"]["email"] == "first@example.com"

    assert client.put("/users/short", json=_user_body("third@example.com"), headers=headers).status_code == 400


def test_create_many_users(client, headers_for):
    headers = headers_for(Role.admin)
    body = [_user_body("m1@example.com"), _user_body("m2@example.com", "teacher")]
    r = client.post("/users/many", json=body, headers=headers)
    assert r.status_code == 200
    assert [u["email"] for u in r.json()["users"]] == ["m1@example.com", "m2@example.com"]

    # A repeated email inside the batch rejects the whole batch
    body = [_user_body("m3@example.com"), _user_body("m3@example.com")]
    assert client.post("/users/many", json=body, headers=headers).status_code == 409
    emails = [u["email"] for u in client.get("/users", headers=headers).json()["users"]]
    assert "m3@example.com" not in emails


def test_update_user_keeps_omitted_fields(client, db, headers_for):
    target = make_user(db, Role.student, email="target@example.com")
    key = target.authentication_key
    created = as_utc(target.created_date)
    body = {"_id": target.id, "firstName": "Changed", "lastName": "Name", "email": "target@example.com", "role": "teacher"}
    r = client.patch("/users/update/user", json=body, headers=headers_for(Role.admin))
    assert r.status_code == 200
    user = r.json()["user"]
    assert user["firstName"] == "Changed"
    assert user["role"] == "teacher"

    db.expire_all()
    stored = db.get(User, target.id)
    assert stored.authentication_key == key
    assert as_utc(stored.created_date) == created


def test_update_user_conflicts_and_missing(client, db, headers_for):
    make_user(db, email="taken@example.com")
    target = make_user(db, email="mine@example.com")
    headers = headers_for(Role.teacher)
    body = {"_id": target.id, "firstName": "A", "lastName": "B", "email": "taken@example.com", "role": "student"}
    assert client.patch("/users/update/user", json=body, headers=headers).status_code == 409

    body = {**body, "_id": new_object_id(), "email": "free@example.com"}
    assert client.patch("/users/update/user", json=body, headers=headers).status_code == 404


def test_update_many_users(client, db, headers_for):
    a = make_user(db, email="a@example.com")
    body = [
        {"_id": a.id, "firstName": "Bulk", "lastName": "Edit", "email": "a@example.com", "role": "student"},
        {"_id": new_object_id(), "firstName": "Ghost", "lastName": "User", "email": "ghost@example.com", "role": "student"},
    ]
    r = client.patch("/users/update/many", json=body, headers=headers_for(Role.admin))
    assert r.status_code == 200
    assert r.json()["count"] == 1


def test_update_many_rejects_email_repeated_in_batch(client, db, headers_for):
    a = make_user(db, email="a@example.com")
    b = make_user(db, email="b@example.com")
    headers = headers_for(Role.admin)
    body = [
        {"_id": a.id, "firstName": "A", "lastName": "User", "email": "same@example.com", "role": "student"},
        {"_id": b.id, "firstName": "B", "lastName": "User", "email": "same@example.com", "role": "student"},
    ]
    r = client.patch("/users/update/many", json=body, headers=headers)
    assert r.status_code == 409
    assert r.json()["message"] == "The provided email address is already in use"

    emails = [u["email"] for u in client.get("/users", headers=headers).json()["users"]]
    assert "same@example.com" not in emails
    assert {"a@example.com", "b@example.com"} <= set(emails)


def test_delete_users(client, db, headers_for):
    a = make_user(db)
    b = make_user(db)
    headers = headers_for(Role.admin)
    assert client.delete(f"/users/{a.id}", headers=headers).status_code == 200
    assert client.delete(f"/users/{a.id}", headers=headers).status_code == 404

    r = client.request("DELETE", "/users/delete/many", json={"ids": [a.id, b.id]}, headers=headers)
    assert r.status_code == 200
    assert r.json()["count"] == 1
    r = client.request("DELETE", "/users/delete/many", json={"ids": [b.id]}, headers=headers)
    assert r.status_code == 404


def test_update_roles_by_created_date(client, db, headers_for):
    jan = make_user(db, Role.student, created_date=datetime(2024, 1, 15, tzinfo=timezone.utc))
    make_user(db, Role.student, created_date=datetime(2024, 5, 15, tzinfo=timezone.utc))
    body = {"startDate": "2024-01-01T00:00:00Z", "endDate": "2024-01-31T23:59:59Z", "role": "teacher"}
    r = client.patch("/users/update/usersrole", json=body, headers=headers_for(Role.admin))
    assert r.status_code == 200
    assert r.json()["matchedCount"] == 1
    assert r.json()["modifiedCount"] == 1
    db.expire_all()
    assert db.get(User, jan.id).role == "teacher"

    body = {**body, "startDate": "2019-01-01T00:00:00Z", "endDate": "2019-12-31T00:00:00Z"}
    assert client.patch("/users/update/usersrole", json=body, headers=headers_for(Role.admin)).status_code == 404


def test_delete_by_role_and_last_login(client, db, headers_for):
    old_id = make_user(db, Role.student, last_logged_in=datetime(2023, 3, 1, tzinfo=timezone.utc)).id
    body = {"startDate": "2023-01-01T00:00:00Z", "endDate": "2023-12-31T00:00:00Z", "userRole": "student"}
    r = client.request("DELETE", "/users/delete/deleterolesbydaterange", json=body, headers=headers_for(Role.admin))
    assert r.status_code == 200
    assert r.json()["count"] == 1
    assert client.get(f"/users/{old_id}", headers=headers_for(Role.admin)).status_code == 404

    r = client.request("DELETE", "/users/delete/deleterolesbydaterange", json=body, headers=headers_for(Role.admin))
    assert r.status_code == 404
