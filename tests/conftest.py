import pytest

from studygroups import create_app, db
from studygroups.config import TestConfig
from studygroups.models import Courses, ROLE_ADMIN
from studygroups.seed import COURSES, ensure_user


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        for code, title in COURSES:
            db.session.add(Courses(code=code, title=title))
        db.session.commit()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def ctx(app):
    """App context for calling the data layer directly."""
    with app.app_context():
        yield app


@pytest.fixture
def login(app):
    """login("Alice") -> a test client holding Alice's session cookie."""
    def _login(user_name, password="secret1"):
        client = app.test_client()
        res = client.post("/auth/api/login", json={
            "user_name": user_name, "password": password, "create_if_missing": True,
        })
        assert res.status_code == 200, res.get_json()
        return client
    return _login


@pytest.fixture
def admin_client(app, login):
    with app.app_context():
        ensure_user("Root Admin", "adminpw", role=ROLE_ADMIN)
        db.session.commit()
    return login("Root Admin", "adminpw")
