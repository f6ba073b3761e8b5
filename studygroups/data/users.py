from sqlalchemy.exc import IntegrityError

from .. import db, audit
from ..errors import fail, USER_NOT_FOUND, INVALID_PASSWORD, USERNAME_TAKEN
from ..models import Users, Groups, GroupMembers, RosterEntries, Messages, Reactions, Courses, ROLE_STUDENT
from . import transaction
from .groups import get_user_groups


def name_in_use(user_name):
    """A name is taken once an account, membership, roster entry or group owner carries it."""
    return any(q.first() is not None for q in (
        Users.query.filter_by(user_name=user_name),
        GroupMembers.query.filter_by(user_name=user_name),
        RosterEntries.query.filter_by(user_name=user_name),
        Groups.query.filter_by(creator_name=user_name),
    ))


def authenticate_user(user_name, password, create_if_missing=False):
    """Check-or-create login. Returns {"user_name"} or a tagged error."""
    user = Users.query.filter_by(user_name=user_name).first()
    if user:
        if not user.check_password(password):
            return fail(INVALID_PASSWORD)
        audit.record(user_name, "USER_LOGIN", "user", user_name)
        return {"user_name": user.user_name}

    if not create_if_missing:
        return fail(USER_NOT_FOUND)
    # members without an account (seeded or renamed away) keep their name
    if name_in_use(user_name):
        return fail(USERNAME_TAKEN)

    try:
        with transaction():
            user = Users(user_name=user_name, role=ROLE_STUDENT)
            user.set_password(password)
            db.session.add(user)
    except IntegrityError:
        return fail(USERNAME_TAKEN)

    audit.record(user_name, "USER_REGISTERED", "user", user_name)
    return {"user_name": user_name}


def update_user_name(old_user_name, new_user_name, password):
    """Rename a user everywhere the name is stored, in one transaction."""
    try:
        with transaction():
            user = Users.query.filter_by(user_name=old_user_name).first()
            if not user:
                return fail(USER_NOT_FOUND, message="User not found.")
            if not user.check_password(password):
                return fail(INVALID_PASSWORD)
            if name_in_use(new_user_name):
                return fail(USERNAME_TAKEN)

            user.user_name = new_user_name
            GroupMembers.query.filter_by(user_name=old_user_name).update(
                {GroupMembers.user_name: new_user_name}, synchronize_session=False)
            RosterEntries.query.filter_by(user_name=old_user_name).update(
                {RosterEntries.user_name: new_user_name}, synchronize_session=False)
            Messages.query.filter_by(author=old_user_name).update(
                {Messages.author: new_user_name}, synchronize_session=False)
            Reactions.query.filter_by(user_name=old_user_name).update(
                {Reactions.user_name: new_user_name}, synchronize_session=False)
            Groups.query.filter_by(creator_name=old_user_name).update(
                {Groups.creator_name: new_user_name}, synchronize_session=False)
    except IntegrityError:
        # a membership or roster row under the new name appeared concurrently
        return fail(USERNAME_TAKEN)

    audit.record(old_user_name, "USER_NAME_CHANGED", "user", old_user_name, f"To: {new_user_name}")
    return {"user_name": new_user_name}


def get_user_profile(user_name):
    last = (db.session.query(Messages, Groups, Courses)
            .join(Groups, Groups.id == Messages.group_id)
            .join(Courses, Courses.code == Groups.course_code)
            .filter(Messages.author == user_name, Messages.deleted.is_(False))
            .order_by(Messages.timestamp.desc(), Messages.id.desc())
            .first())

    last_group = None
    if last:
        m, g, c = last
        last_group = {"group_id": g.id, "group_name": g.name, "course_code": c.code}

    return {
        "user_name": user_name,
        "last_active": last[0].timestamp_ms if last else None,
        "last_group": last_group,
        "current_groups": get_user_groups(user_name),
    }
