import pytest

from studygroups import create_app, db
from studygroups.config import TestConfig
from studygroups.models import Courses, Users, Groups


def _create(client, course="CS101", name="Algo"):
    return client.post("/api/groups", json={"course_code": course, "group_name": name})


def test_health_and_courses(app):
    client = app.test_client()
    assert client.get("/api/health").get_json() == {"status": "ok"}
    codes = [c["code"] for c in client.get("/api/courses").get_json()["courses"]]
    assert "CS101" in codes and len(codes) == 5
    assert client.get("/api/courses/NOPE").status_code == 404


def test_login_errors(app):
    client = app.test_client()
    res = client.post("/auth/api/login", json={"user_name": "Ghost", "password": "pw"})
    assert res.status_code == 400
    assert res.get_json()["error"] == "USER_NOT_FOUND"

    res = client.post("/auth/api/login", json={"user_name": "<bad>", "password": "pw"})
    assert res.status_code == 400
    assert res.get_json()["error"] == "INVALID_INPUT"
    assert "user_name" in res.get_json()["fields"]


def test_login_returns_token_for_me(app, login):
    login("Alice")
    client = app.test_client()
    res = client.post("/auth/api/login", json={"user_name": "Alice", "password": "secret1"})
    body = res.get_json()
    assert body["user_name"] == "Alice" and body["role"] == "student"

    me = client.get("/auth/api/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.get_json()["user_name"] == "Alice"


def test_writes_require_login(app):
    client = app.test_client()
    res = _create(client)
    assert res.status_code == 401
    assert client.post("/api/groups/1/join", json={}).status_code == 401


def test_group_flow_over_http(app, login):
    alice, bob = login("Alice"), login("Bob")

    res = _create(alice)
    assert res.status_code == 201
    gid = res.get_json()["group"]["id"]

    assert _create(alice, name="Again").get_json()["error"] == "ALREADY_IN_GROUP"
    assert _create(alice, course="NOPE").status_code == 404

    res = bob.post(f"/api/groups/{gid}/join", json={"course_code": "CS101"})
    assert res.status_code == 200
    assert res.get_json()["group"]["members"] == ["Alice", "Bob"]

    res = bob.post(f"/api/groups/{gid}/messages", json={"text": "hi <b>all</b>"})
    assert res.status_code == 201
    body = res.get_json()
    assert body["message"]["text"] == "hi all"
    assert [m["text"] for m in body["messages"]] == ["hi all"]

    detail = alice.get(f"/api/groups/{gid}").get_json()
    assert detail["group"]["size"] == 2
    assert detail["course"]["code"] == "CS101"
    assert detail["messages"][0]["author"] == "Bob"

    mid = body["message"]["id"]
    res = alice.post(f"/api/messages/{mid}/reaction", json={"emoji": "\U0001F44D"})
    assert res.get_json() == {"action": "added"}
    assert bob.post(f"/api/messages/{mid}/delete", json={"group_id": gid}).status_code == 400
    assert alice.post(f"/api/messages/{mid}/delete", json={"group_id": gid}).get_json() == {"success": True}

    assert alice.post(f"/api/groups/{gid}/toggle", json={}).get_json()["group"]["is_open"] is False
    assert login("Carol").post(f"/api/groups/{gid}/join", json={}).get_json()["error"] == "GROUP_CLOSED"

    mine = bob.get("/api/user/groups").get_json()["groups"]
    assert [g["group_id"] for g in mine] == [gid]
    assert bob.get("/api/courses/CS101/my-group").get_json() == {"group_id": gid}


def test_last_leave_removes_group_over_http(app, login):
    alice = login("Alice")
    gid = _create(alice).get_json()["group"]["id"]
    res = alice.post(f"/api/groups/{gid}/leave", json={})
    assert res.get_json() == {"group": None, "archived": True}
    assert alice.get(f"/api/groups/{gid}").status_code == 404
    assert alice.post(f"/api/groups/{gid}/leave", json={}).get_json()["error"] == "NOT_MEMBER"


def test_message_errors_map_to_status(app, login):
    alice = login("Alice")
    gid = _create(alice).get_json()["group"]["id"]
    assert alice.post(f"/api/groups/{gid}/messages", json={"text": "   "}).get_json()["error"] == "EMPTY_MESSAGE"
    assert alice.post("/api/messages/999/report", json={"group_id": gid}).status_code == 404
    assert alice.get("/api/groups/999/messages").status_code == 404
    res = alice.post("/api/messages/1/reaction", json={"emoji": "x"})
    assert res.status_code == 400 and res.get_json()["error"] == "INVALID_EMOJI"


def test_admin_routes_are_role_gated(app, login, admin_client):
    anon = app.test_client()
    assert anon.get("/admin/api/reported-messages").status_code == 401
    assert login("Alice").get("/admin/api/reported-messages").status_code == 403
    assert admin_client.get("/admin/api/reported-messages").get_json() == {"messages": []}


def test_admin_moderation(app, login, admin_client):
    alice, bob = login("Alice"), login("Bob")
    gid = _create(alice).get_json()["group"]["id"]
    bob.post(f"/api/groups/{gid}/join", json={})
    mid = bob.post(f"/api/groups/{gid}/messages", json={"text": "rude"}).get_json()["message"]["id"]
    alice.post(f"/api/messages/{mid}/report", json={"group_id": gid})

    reported = admin_client.get("/admin/api/reported-messages?days=1").get_json()["messages"]
    assert [m["id"] for m in reported] == [mid]

    assert admin_client.post(f"/admin/api/messages/{mid}/resolve").get_json()["success"] is True
    assert admin_client.get("/admin/api/reported-messages").get_json() == {"messages": []}

    assert admin_client.post(f"/admin/api/messages/{mid}/delete").get_json() == {"success": True}
    assert alice.get(f"/api/groups/{gid}/messages").get_json() == {"messages": []}

    actions = [log["action"] for log in admin_client.get("/admin/api/audit-logs?limit=5").get_json()["logs"]]
    assert actions[0] == "MESSAGE_DELETED"


def test_admin_deletes_from_group_route_by_role(app, login, admin_client):
    alice = login("Alice")
    gid = _create(alice).get_json()["group"]["id"]
    mid = alice.post(f"/api/groups/{gid}/messages", json={"text": "x"}).get_json()["message"]["id"]
    res = admin_client.post(f"/api/messages/{mid}/delete", json={"group_id": gid})
    assert res.get_json() == {"success": True}


def test_user_named_admin_gets_no_privilege(app, login):
    # the name alone is not a capability
    fake = login("admin", "whatever1")
    bob = login("Bob")
    gid = _create(bob).get_json()["group"]["id"]
    mid = bob.post(f"/api/groups/{gid}/messages", json={"text": "x"}).get_json()["message"]["id"]
    assert fake.post(f"/api/messages/{mid}/delete", json={"group_id": gid}).get_json()["error"] == "NOT_OWNER"
    assert fake.get("/admin/api/audit-logs").status_code == 403


def test_update_name(app, login):
    alice = login("Alice")
    login("Bob")
    assert alice.post("/auth/api/update-name", json={"new_user_name": "Bob", "password": "secret1"}) \
        .get_json()["error"] == "USERNAME_TAKEN"
    assert alice.post("/auth/api/update-name", json={"new_user_name": "Alice", "password": "secret1"}) \
        .status_code == 400

    res = alice.post("/auth/api/update-name", json={"new_user_name": "Alicia", "password": "secret1"})
    assert res.get_json() == {"user_name": "Alicia"}
    assert alice.get("/").get_json()["user"] == "Alicia"


def test_logout(app, login):
    alice = login("Alice")
    assert alice.post("/auth/logout").get_json() == {"success": True}
    assert _create(alice).status_code == 401


def test_profile_route(app, login):
    alice = login("Alice")
    gid = _create(alice).get_json()["group"]["id"]
    alice.post(f"/api/groups/{gid}/messages", json={"text": "hello"})
    profile = app.test_client().get("/api/users/Alice/profile").get_json()
    assert profile["last_group"]["group_id"] == gid


class MaintenanceConfig(TestConfig):
    MAINTENANCE_MODE = True


class CsrfConfig(TestConfig):
    WTF_CSRF_ENABLED = True


def _fresh_app(config):
    app = create_app(config)
    with app.app_context():
        db.create_all()
        db.session.add(Courses(code="CS101", title="Intro"))
        db.session.commit()
    return app


def test_maintenance_blocks_writes_only():
    app = _fresh_app(MaintenanceConfig)
    client = app.test_client()
    assert client.get("/api/courses").status_code == 200
    res = client.post("/auth/api/login", json={"user_name": "A", "password": "pw", "create_if_missing": True})
    assert res.status_code == 503
    with app.app_context():
        assert Users.query.count() == 0


def test_csrf_header_required_for_session_writes():
    app = _fresh_app(CsrfConfig)
    client = app.test_client()
    res = client.post("/auth/api/login", json={"user_name": "Alice", "password": "pw", "create_if_missing": True})
    assert res.status_code == 200

    assert _create(client).status_code == 400
    token = client.get("/auth/api/csrf").get_json()["csrf_token"]
    res = client.post("/api/groups", json={"course_code": "CS101", "group_name": "Algo"},
                      headers={"X-CSRFToken": token})
    assert res.status_code == 201


def test_seed_command(app):
    result = app.test_cli_runner().invoke(args=["seed"])
    assert "Seed listo." in result.output
    with app.app_context():
        assert Groups.query.filter_by(course_code="CS101").count() == 4
        admin = Users.query.filter_by(user_name=app.config["ADMIN_USER_NAME"]).one()
        assert admin.is_admin
    # second run adds nothing
    app.test_cli_runner().invoke(args=["seed"])
    with app.app_context():
        assert Groups.query.filter_by(course_code="CS101").count() == 4


@pytest.mark.parametrize("path", ["/api/groups/1/join", "/api/groups/1/leave", "/api/groups/1/toggle"])
def test_group_actions_on_missing_group(app, login, path):
    res = login("Alice").post(path, json={})
    assert res.status_code in (400, 404)
