"""Data-access layer.

Every write to groups, group_members, roster_entries, messages and reactions
goes through the functions re-exported here; views never touch those tables
directly. Each mutating operation owns exactly one ``transaction()`` block.
"""
from contextlib import contextmanager

from .. import db


@contextmanager
def transaction():
    """Commit everything done inside the block, or nothing."""
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def as_id(value):
    """Route/form ids arrive as str or int; anything else matches nothing."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


from .courses import get_all_courses, get_course, add_to_roster, get_roster_with_status  # noqa: E402
from .groups import (  # noqa: E402
    resolve_group, get_group, get_groups, create_group, join_group, leave_group,
    toggle_group_status, is_user_in_group, get_user_groups,
)
from .messages import (  # noqa: E402
    add_message, get_messages, report_message, delete_message, resolve_message,
    get_reported_messages, toggle_reaction,
)
from .users import authenticate_user, update_user_name, get_user_profile  # noqa: E402
