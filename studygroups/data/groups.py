"""Group lifecycle: create / join / leave / open-close and read accessors.

Membership is one group per course per user. ``group_members`` carries the
group's course code under a unique (course_code, user_name) constraint, so a
concurrent join that slips past the in-transaction check still fails at
commit and is reported as ALREADY_IN_GROUP.
"""
from sqlalchemy import not_
from sqlalchemy.exc import IntegrityError

from .. import db, audit
from ..errors import fail, ALREADY_IN_GROUP, GROUP_NOT_FOUND, GROUP_CLOSED, GROUP_FULL, NOT_MEMBER
from ..models import Groups, GroupMembers, Courses, MAX_GROUP_SIZE, epoch_ms
from . import transaction, as_id
from .courses import add_to_roster
from .messages import recent_messages


def _group_payload(g, messages=None):
    return {
        "id": g.id,
        "name": g.name,
        "course_code": g.course_code,
        "members": g.member_names,
        "is_open": g.is_open,
        "messages": messages or [],
        "created_at": epoch_ms(g.created_at),
        "creator_name": g.creator_name,
    }


def _membership_in_course(course_code, user_name):
    return GroupMembers.query.filter_by(course_code=course_code, user_name=user_name).first()


def _membership(group_id, user_name):
    return GroupMembers.query.filter_by(group_id=group_id, user_name=user_name).first()


def resolve_group(group_id, hint_course_code=None, lock=False):
    """Find a group by id, trying the caller's course first.

    The hint tolerates stale course context: when the group is not in that
    course it is looked up by id alone. Callers must use ``group.course_code``
    (never the hint) for every invariant check after this.
    """
    gid = as_id(group_id)
    if gid is None:
        return None
    q = Groups.query.with_for_update() if lock else Groups.query
    g = None
    if hint_course_code:
        g = q.filter_by(id=gid, course_code=hint_course_code).first()
    if g is None:
        g = q.filter_by(id=gid).first()
    return g


def _already_in_group_after_race(course_code, user_name):
    existing = _membership_in_course(course_code, user_name)
    return fail(ALREADY_IN_GROUP, group_id=existing.group_id) if existing else None


def create_group(course_code, group_name, creator_name):
    try:
        with transaction():
            existing = _membership_in_course(course_code, creator_name)
            if existing:
                return fail(ALREADY_IN_GROUP, group_id=existing.group_id)

            g = Groups(name=group_name, course_code=course_code, creator_name=creator_name, is_open=True)
            g.members.append(GroupMembers(course_code=course_code, user_name=creator_name))
            db.session.add(g)
            add_to_roster(course_code, creator_name)
            db.session.flush()
            result = {"group": _group_payload(g)}
    except IntegrityError:
        result = _already_in_group_after_race(course_code, creator_name)
        if result is None:
            raise
        return result

    audit.record(creator_name, "GROUP_CREATED", "group", result["group"]["id"], f"Course: {course_code}")
    return result


def join_group(course_code, group_id, user_name):
    actual_course = course_code
    try:
        with transaction():
            g = resolve_group(group_id, course_code, lock=True)
            if g is None:
                return fail(GROUP_NOT_FOUND)
            actual_course = g.course_code

            existing = _membership_in_course(actual_course, user_name)
            if existing:
                return fail(ALREADY_IN_GROUP, group_id=existing.group_id)
            if not g.is_open:
                return fail(GROUP_CLOSED)

            # re-read inside this transaction, never trust an earlier count
            count = GroupMembers.query.filter_by(group_id=g.id).count()
            if count >= MAX_GROUP_SIZE:
                return fail(GROUP_FULL)

            g.members.append(GroupMembers(course_code=actual_course, user_name=user_name))
            add_to_roster(actual_course, user_name)
            db.session.flush()
            result = {"group": _group_payload(g)}
    except IntegrityError:
        result = _already_in_group_after_race(actual_course, user_name)
        if result is None:
            raise
        return result

    audit.record(user_name, "GROUP_JOINED", "group", result["group"]["id"], f"Course: {actual_course}")
    return result


def leave_group(course_code, group_id, user_name):
    with transaction():
        m = _membership(as_id(group_id), user_name)
        if m is None:
            return fail(NOT_MEMBER)
        g = m.group
        actual_course = g.course_code
        g.members.remove(m)
        db.session.flush()

        remaining = GroupMembers.query.filter_by(group_id=g.id).count()
        if remaining == 0:
            gid = g.id
            db.session.delete(g)
            result = {"group": None, "archived": True}
        else:
            result = {"group": _group_payload(g)}

    if result["group"] is None:
        audit.record("system", "GROUP_AUTO_DELETED", "group", gid, f"Course: {actual_course}")
    else:
        audit.record(user_name, "GROUP_LEFT", "group", result["group"]["id"], f"Course: {actual_course}")
    return result


def toggle_group_status(course_code, group_id, user_name):
    gid = as_id(group_id)
    if _membership(gid, user_name) is None:
        return fail(NOT_MEMBER)

    # single UPDATE so the flip is atomic in the store; last write wins
    with transaction():
        Groups.query.filter_by(id=gid).update({Groups.is_open: not_(Groups.is_open)}, synchronize_session=False)

    g = db.session.get(Groups, gid)
    if g is None:
        return fail(GROUP_NOT_FOUND)
    audit.record(user_name, "GROUP_TOGGLED", "group", gid, f"Status: {'OPEN' if g.is_open else 'CLOSED'}")
    return {"group": _group_payload(g)}


def get_group(course_code, group_id):
    g = resolve_group(group_id, course_code)
    if g is None:
        return None
    return _group_payload(g, recent_messages(g.id))


def get_groups(course_code):
    rows = (Groups.query
            .filter_by(course_code=course_code)
            .order_by(Groups.created_at.desc(), Groups.id.desc())
            .all())
    return [{
        "id": g.id,
        "name": g.name,
        "size": len(g.members),
        "max_size": MAX_GROUP_SIZE,
        "is_open": g.is_open,
        "creator_name": g.creator_name,
    } for g in rows]


def is_user_in_group(course_code, user_name):
    m = _membership_in_course(course_code, user_name)
    return m.group_id if m else None


def get_user_groups(user_name):
    rows = (db.session.query(Groups, Courses)
            .join(GroupMembers, GroupMembers.group_id == Groups.id)
            .join(Courses, Courses.code == Groups.course_code)
            .filter(GroupMembers.user_name == user_name)
            .order_by(Groups.created_at.desc(), Groups.id.desc())
            .all())
    return [{
        "group_id": g.id,
        "group_name": g.name,
        "course_code": c.code,
        "course_title": c.title,
        "is_open": g.is_open,
        "size": len(g.members),
        "max_size": MAX_GROUP_SIZE,
    } for g, c in rows]
