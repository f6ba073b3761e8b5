# locustfile.py
"""
Study Groups Locust test.
- Login por JSON (/auth/api/login, crea la cuenta si falta) -> cookie de sesión + JWT.
- CSRF: se pide a /auth/api/csrf y se manda en X-CSRFToken en cada POST.
- Flujo: cursos -> curso -> grupo -> unirse/crear -> chatear -> reaccionar.
Env:
  STUDYGROUPS_HOST, LOCUST_PASSWORD, LOCUST_COURSE
"""

import os
import random
import uuid
from locust import HttpUser, task, between, tag

STUDYGROUPS_HOST = os.getenv("STUDYGROUPS_HOST", "http://localhost:5000")
LOCUST_PASSWORD = os.getenv("LOCUST_PASSWORD", "student123")
LOCUST_COURSE = os.getenv("LOCUST_COURSE", "CS101")

EMOJIS = ["\U0001F44D", "❤️", "\U0001F4A1"]
LINES = [
    "Anyone up for a review session tonight?",
    "I pushed my notes for chapter 3.",
    "What did you get for problem 4?",
    "Meeting at the library at 5.",
]


class StudyGroupsUser(HttpUser):
    host = STUDYGROUPS_HOST
    wait_time = between(1, 3)

    token = None
    csrf = None
    group_id = None

    def on_start(self):
        self.user_name = f"Load {uuid.uuid4().hex[:8]}"
        try:
            res = self.client.post(
                "/auth/api/login",
                json={"user_name": self.user_name, "password": LOCUST_PASSWORD, "create_if_missing": True},
                name="/auth/api/login",
            )
            if res.status_code == 200:
                self.token = res.json().get("access_token")
            else:
                print(f"[locust] login {res.status_code}: {res.text[:120]}")
        except Exception as e:
            print(f"[locust] Excepción login: {e}")

        try:
            tok = self.client.get("/auth/api/csrf", name="/auth/api/csrf")
            self.csrf = tok.json().get("csrf_token")
        except Exception as e:
            print(f"[locust] Excepción CSRF: {e}")

    def _post(self, path, payload, name):
        headers = {"X-CSRFToken": self.csrf} if self.csrf else {}
        return self.client.post(path, json=payload, headers=headers, name=name)

    def _auth_headers(self):
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    @tag("read")
    @task(2)
    def list_courses(self):
        self.client.get("/api/courses", name="/api/courses")

    @tag("read")
    @task(3)
    def view_course(self):
        self.client.get(f"/api/courses/{LOCUST_COURSE}", name="/api/courses/<code>")

    @tag("read")
    @task(1)
    def api_me(self):
        if self.token:
            self.client.get("/auth/api/me", headers=self._auth_headers(), name="/auth/api/me")

    @tag("groups")
    @task(2)
    def find_group(self):
        """Se une a un grupo abierto con lugar, o crea uno si no hay."""
        if self.group_id:
            self.client.get(f"/api/groups/{self.group_id}", name="/api/groups/<id>")
            return

        r = self.client.get(f"/api/courses/{LOCUST_COURSE}", name="/api/courses/<code> (harvest)")
        if r.status_code != 200:
            return
        candidates = [g for g in r.json().get("groups", []) if g.get("is_open") and g.get("size", 0) < g.get("max_size", 5)]
        if candidates:
            gid = random.choice(candidates)["id"]
            res = self._post(f"/api/groups/{gid}/join", {"course_code": LOCUST_COURSE}, "/api/groups/<id>/join")
        else:
            res = self._post(
                "/api/groups",
                {"course_code": LOCUST_COURSE, "group_name": f"Load group {uuid.uuid4().hex[:6]}"},
                "/api/groups (POST)",
            )
        body = res.json() if res.headers.get("Content-Type", "").startswith("application/json") else {}
        if res.status_code in (200, 201) and body.get("group"):
            self.group_id = body["group"]["id"]
        elif body.get("error") == "ALREADY_IN_GROUP":
            self.group_id = body.get("group_id")

    @tag("chat")
    @task(4)
    def chat(self):
        if not self.group_id:
            return
        self._post(f"/api/groups/{self.group_id}/messages", {"text": random.choice(LINES)},
                   "/api/groups/<id>/messages (POST)")

    @tag("chat")
    @task(2)
    def react(self):
        if not self.group_id:
            return
        r = self.client.get(f"/api/groups/{self.group_id}/messages", name="/api/groups/<id>/messages")
        if r.status_code != 200:
            return
        messages = r.json().get("messages", [])
        if messages:
            mid = random.choice(messages)["id"]
            self._post(f"/api/messages/{mid}/reaction", {"emoji": random.choice(EMOJIS)},
                       "/api/messages/<id>/reaction")
