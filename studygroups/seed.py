from flask import current_app
from . import db
from .models import Users, Courses, Groups, ROLE_ADMIN, ROLE_STUDENT
from .data import create_group

COURSES = [
    ("CS101", "Introduction to Computer Science"),
    ("MATH201", "Calculus I"),
    ("PHYS301", "Physics for Engineers"),
    ("ENG101", "English Composition"),
    ("ENGINEERING103", "Introduction to Engineering"),
]

DEMO_PASSWORD = "student123"

CS101_GROUPS = [
    ("Algorithm Masters", "Alice Chen"),
    ("Data Structures Team", "Bob Smith"),
    ("Code Review Squad", "Charlie Brown"),
    ("Study Buddies", "Diana Prince"),
]

def ensure_user(user_name, password, role=ROLE_STUDENT):
    u = Users.query.filter_by(user_name=user_name).first()
    if not u:
        u = Users(user_name=user_name, role=role)
        u.set_password(password)
        db.session.add(u)
    elif u.role != role:
        u.role = role
    return u

def run_seed():
    for code, title in COURSES:
        if not Courses.query.filter_by(code=code).first():
            db.session.add(Courses(code=code, title=title))
    db.session.commit()

    # Usuarios demo
    ensure_user(current_app.config["ADMIN_USER_NAME"], current_app.config["ADMIN_PASSWORD"], role=ROLE_ADMIN)
    ensure_user("Student Demo", DEMO_PASSWORD)
    # demo group owners get accounts so their names cannot be claimed at signup
    for _, creator in CS101_GROUPS:
        ensure_user(creator, DEMO_PASSWORD)
    db.session.commit()

    # Grupos demo de CS101, solo si el curso está vacío
    if not Groups.query.filter_by(course_code="CS101").first():
        for name, creator in CS101_GROUPS:
            create_group("CS101", name, creator)
