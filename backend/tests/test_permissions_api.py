"""
Role allow-lists: every protected route, called as every role. Roles outside the list get 403
with the route's denial message; roles inside it get past the gate (any status but 403).
"""
import pytest

from weather_api.api.permissions import MODIFY_READINGS_DENIED, READ_READINGS_DENIED, USERS_DENIED
from weather_api.models import Role

SOME_ID = "a" * 24
READING_BODY = {"deviceName": "Station_A", "temperature": 20.0}
USER_BODY = {
    "firstName": "New",
    "lastName": "User",
    "email": "new-user@example.com",
    "password": "pw",
    "role": "student",
}
USER_UPDATE_BODY = {**USER_BODY, "_id": SOME_ID}
RANGE = {"startDate": "2024-01-01T00:00:00Z", "endDate": "2024-12-31T00:00:00Z"}

READERS = {Role.admin, Role.teacher, Role.student}
CREATORS = {Role.admin, Role.teacher, Role.sensor}
MODIFIERS = {Role.admin, Role.teacher}
ADMIN = {Role.admin}

# (method, path, json body, allowed roles, denial message)
ROUTES = [
    ("GET", f"/readings/{SOME_ID}", None, READERS, READ_READINGS_DENIED),
    ("GET", "/readings/page/1", None, READERS, READ_READINGS_DENIED),
    ("GET", "/readings/date/2024-01-01T00:00:00/2024-01-31T00:00:00", None, READERS, READ_READINGS_DENIED),
    ("GET", "/readings/maxprecipitation/Station_A", None, READERS, READ_READINGS_DENIED),
    ("GET", "/readings/devicedate/Station_A/2024-01-01T00:00:00", None, READERS, READ_READINGS_DENIED),
    ("GET", "/readings/maxtemperature/2024-01-01T00:00:00/2024-01-31T00:00:00", None, READERS, READ_READINGS_DENIED),
    ("POST", "/readings", READING_BODY, CREATORS, MODIFY_READINGS_DENIED),
    ("POST", "/readings/many", [READING_BODY], CREATORS, MODIFY_READINGS_DENIED),
    ("PATCH", "/readings", {**READING_BODY, "_id": SOME_ID}, MODIFIERS, MODIFY_READINGS_DENIED),
    ("PATCH", "/readings/update/many", [{**READING_BODY, "_id": SOME_ID}], MODIFIERS, MODIFY_READINGS_DENIED),
    ("PATCH", "/readings/update/precipitation", {"_id": SOME_ID, "precipitation": 1.0}, ADMIN, MODIFY_READINGS_DENIED),
    ("DELETE", f"/readings/{SOME_ID}", None, MODIFIERS, MODIFY_READINGS_DENIED),
    ("DELETE", "/readings/delete/many", {"ids": [SOME_ID]}, MODIFIERS, MODIFY_READINGS_DENIED),
    ("GET", "/users", None, MODIFIERS, USERS_DENIED),
    ("GET", f"/users/{SOME_ID}", None, MODIFIERS, USERS_DENIED),
    ("POST", "/users", USER_BODY, MODIFIERS, USERS_DENIED),
    ("POST", "/users/many", [USER_BODY], MODIFIERS, USERS_DENIED),
    ("PUT", f"/users/{SOME_ID}", USER_BODY, MODIFIERS, USERS_DENIED),
    ("PATCH", "/users/update/user", USER_UPDATE_BODY, MODIFIERS, USERS_DENIED),
    ("PATCH", "/users/update/many", [USER_UPDATE_BODY], MODIFIERS, USERS_DENIED),
    ("PATCH", "/users/update/usersrole", {**RANGE, "role": "teacher"}, ADMIN, USERS_DENIED),
    ("DELETE", f"/users/{SOME_ID}", None, MODIFIERS, USERS_DENIED),
    ("DELETE", "/users/delete/many", {"ids": [SOME_ID]}, MODIFIERS, USERS_DENIED),
    ("DELETE", "/users/delete/deleterolesbydaterange", {**RANGE, "userRole": "student"}, ADMIN, USERS_DENIED),
]

CASES = [
    pytest.param(method, path, body, role, role in allowed, message, id=f"{method} {path} as {role.value}")
    for method, path, body, allowed, message in ROUTES
    for role in Role
]


@pytest.mark.parametrize("method,path,body,role,allowed,message", CASES)
def test_role_allow_lists(client, headers_for, method, path, body, role, allowed, message):
    r = client.request(method, path, json=body, headers=headers_for(role))
    if allowed:
        assert r.status_code != 403, r.json()
    else:
        assert r.status_code == 403
        assert r.json() == {"status": 403, "message": message}


@pytest.mark.parametrize("method,path,body", [(m, p, b) for m, p, b, _, _ in ROUTES])
def test_missing_or_unknown_key_is_403(client, method, path, body):
    assert client.request(method, path, json=body).status_code == 403
    r = client.request(method, path, json=body, headers={"X-AUTH-KEY": "no-such-key"})
    assert r.status_code == 403


def test_gate_runs_before_input_validation(client, headers_for):
    """A forbidden caller is told 403 even when the id or body is malformed."""
    r = client.get("/readings/not-an-id", headers=headers_for(Role.sensor))
    assert r.status_code == 403
    r = client.post("/readings/many", json={"unexpected": True}, headers=headers_for(Role.student))
    assert r.status_code == 403
    r = client.get("/readings/page/abc", headers=headers_for(Role.sensor))
    assert r.status_code == 403


def test_gate_answers_bodies_that_are_not_json(client, headers_for):
    """An undecodable body is 403 for a forbidden or unknown caller and still 400 for an allowed one."""
    json_type = {"Content-Type": "application/json"}
    r = client.post("/readings", content=b"{not json", headers={**headers_for(Role.student), **json_type})
    assert r.status_code == 403
    assert r.json() == {"status": 403, "message": MODIFY_READINGS_DENIED}

    r = client.patch("/users/update/usersrole", content=b"{not json", headers={**headers_for(Role.teacher), **json_type})
    assert r.status_code == 403

    r = client.post("/readings", content=b"{not json", headers=json_type)
    assert r.status_code == 403

    r = client.post("/readings", content=b"{not json", headers={**headers_for(Role.sensor), **json_type})
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid request"
