from .. import db
from ..models import Courses, RosterEntries, GroupMembers, Groups

STATUS_IN_GROUP, STATUS_OPEN = "IN_GROUP", "OPEN"


def get_all_courses():
    return [c.to_dict() for c in Courses.query.order_by(Courses.code.asc()).all()]


def get_course(course_code):
    c = Courses.query.filter_by(code=course_code).first()
    return c.to_dict() if c else None


def add_to_roster(course_code, user_name):
    """Idempotent upsert; caller commits (runs inside group transactions)."""
    exists = RosterEntries.query.filter_by(course_code=course_code, user_name=user_name).first()
    if not exists:
        db.session.add(RosterEntries(course_code=course_code, user_name=user_name))
        db.session.flush()


def get_roster_with_status(course_code):
    roster = (RosterEntries.query
              .filter_by(course_code=course_code)
              .order_by(RosterEntries.id.asc())
              .all())
    in_groups = {
        name for (name,) in
        db.session.query(GroupMembers.user_name)
        .join(Groups, Groups.id == GroupMembers.group_id)
        .filter(Groups.course_code == course_code)
        .all()
    }
    return [
        {"name": r.user_name, "status": STATUS_IN_GROUP if r.user_name in in_groups else STATUS_OPEN}
        for r in roster
    ]
