"""Group chat: append with retention cap, soft-delete, report/resolve, reactions.

A group keeps at most MESSAGE_RETENTION live (non-deleted) messages; older
ones are purged right after each insert. Insert and trim share a transaction
but are not serialized per group, so two concurrent posts can briefly leave
one extra live message; the next post trims it.
"""
from datetime import datetime, timedelta

from sqlalchemy.orm import selectinload

from .. import db, audit
from ..errors import (
    fail, NOT_MEMBER, EMPTY_MESSAGE, GROUP_NOT_FOUND, MESSAGE_NOT_FOUND,
    MESSAGE_DELETED, NOT_OWNER, INVALID_EMOJI,
)
from ..models import Messages, Reactions, Groups, GroupMembers, Courses, MESSAGE_RETENTION, ALLOWED_EMOJIS
from ..sanitize import sanitize_message
from . import transaction, as_id


def _message_payload(m, with_reactions=False):
    out = {
        "id": m.id,
        "author": m.author,
        "text": m.text,
        "timestamp": m.timestamp_ms,
    }
    if with_reactions:
        out["reported"] = m.reported
        out["reactions"] = m.reactions_by_emoji()
    return out


def recent_messages(group_id, limit=MESSAGE_RETENTION, with_reactions=False):
    """Newest ``limit`` live messages, returned oldest first."""
    q = Messages.query.filter_by(group_id=group_id, deleted=False)
    if with_reactions:
        q = q.options(selectinload(Messages.reactions))
    rows = q.order_by(Messages.timestamp.desc(), Messages.id.desc()).limit(limit).all()
    rows.reverse()
    return [_message_payload(m, with_reactions) for m in rows]


def _purge_beyond_retention(group_id):
    live_ids = [mid for (mid,) in
                db.session.query(Messages.id)
                .filter(Messages.group_id == group_id, Messages.deleted.is_(False))
                .order_by(Messages.timestamp.asc(), Messages.id.asc())
                .all()]
    excess = len(live_ids) - MESSAGE_RETENTION
    # ORM delete so the purged messages' reactions cascade with them
    for mid in live_ids[:max(excess, 0)]:
        db.session.delete(db.session.get(Messages, mid))
    return max(excess, 0)


def add_message(group_id, user_name, raw_text):
    gid = as_id(group_id)
    with transaction():
        if GroupMembers.query.filter_by(group_id=gid, user_name=user_name).first() is None:
            return fail(NOT_MEMBER)

        text = sanitize_message(raw_text)
        if not text:
            return fail(EMPTY_MESSAGE)

        m = Messages(group_id=gid, author=user_name, text=text, deleted=False, reported=False)
        db.session.add(m)
        db.session.flush()
        _purge_beyond_retention(gid)
        result = {"message": _message_payload(m)}

    audit.record(user_name, "MESSAGE_POSTED", "message", result["message"]["id"], f"Group: {gid}")
    return result


def get_messages(group_id):
    gid = as_id(group_id)
    if gid is None or db.session.get(Groups, gid) is None:
        return fail(GROUP_NOT_FOUND)
    return {"messages": recent_messages(gid, with_reactions=True)}


def report_message(group_id, message_id, user_name):
    gid, mid = as_id(group_id), as_id(message_id)
    with transaction():
        m = db.session.get(Messages, mid) if mid is not None else None
        if m is None or m.group_id != gid:
            return fail(MESSAGE_NOT_FOUND)
        if m.deleted:
            return fail(MESSAGE_DELETED)
        m.reported = True

    audit.record(user_name, "MESSAGE_REPORTED", "message", mid, f"Group: {gid}")
    return {"success": True}


def delete_message(group_id, message_id, user_name, privileged=False):
    """Soft-delete. ``privileged`` comes from the admin boundary, never from the name."""
    gid, mid = as_id(group_id), as_id(message_id)
    with transaction():
        m = db.session.get(Messages, mid) if mid is not None else None
        if privileged:
            if m is None:
                return fail(MESSAGE_NOT_FOUND)
        else:
            g = db.session.get(Groups, gid) if gid is not None else None
            if g is None:
                return fail(GROUP_NOT_FOUND)
            if g.creator_name != user_name:
                return fail(NOT_OWNER)
            if m is None or m.group_id != g.id:
                return fail(MESSAGE_NOT_FOUND)
        m.deleted = True
        owner_gid = m.group_id

    detail = f"Group: {owner_gid}" + (" (admin)" if privileged else "")
    audit.record(user_name, "MESSAGE_DELETED", "message", mid, detail)
    return {"success": True}


def resolve_message(message_id, user_name="admin"):
    """Moderator clears a report: reported -> active."""
    mid = as_id(message_id)
    with transaction():
        m = db.session.get(Messages, mid) if mid is not None else None
        if m is None:
            return fail(MESSAGE_NOT_FOUND)
        if m.deleted:
            return fail(MESSAGE_DELETED)
        m.reported = False

    audit.record(user_name, "MESSAGE_RESOLVED", "message", mid)
    return {"success": True, "message": "Message marked as resolved"}


def get_reported_messages(days=7):
    since = datetime.utcnow() - timedelta(days=days)
    rows = (db.session.query(Messages, Groups, Courses)
            .join(Groups, Groups.id == Messages.group_id)
            .join(Courses, Courses.code == Groups.course_code)
            .filter(Messages.reported.is_(True), Messages.deleted.is_(False), Messages.timestamp >= since)
            .order_by(Messages.timestamp.desc(), Messages.id.desc())
            .all())
    return [{
        "id": m.id,
        "text": m.text,
        "author": m.author,
        "timestamp": m.timestamp_ms,
        "course_code": c.code,
        "course_title": c.title,
        "group_id": g.id,
        "group_name": g.name,
    } for m, g, c in rows]


def toggle_reaction(message_id, user_name, emoji):
    if emoji not in ALLOWED_EMOJIS:
        return fail(INVALID_EMOJI)

    mid = as_id(message_id)
    with transaction():
        m = db.session.get(Messages, mid) if mid is not None else None
        if m is None or m.deleted:
            return fail(MESSAGE_NOT_FOUND)

        existing = Reactions.query.filter_by(message_id=m.id, user_name=user_name, emoji=emoji).first()
        if existing:
            db.session.delete(existing)
            action = "removed"
        else:
            db.session.add(Reactions(message_id=m.id, user_name=user_name, emoji=emoji))
            action = "added"

    audit.record(user_name, "REACTION_ADDED" if action == "added" else "REACTION_REMOVED",
                 "message", mid, f"Emoji: {emoji}")
    return {"action": action}
