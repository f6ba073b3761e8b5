from datetime import datetime, timezone
from typing import Optional
from flask_login import UserMixin

from . import db, login_manager
from werkzeug.security import generate_password_hash, check_password_hash

ROLE_STUDENT, ROLE_ADMIN = "student", "admin"
MSG_ACTIVE, MSG_REPORTED, MSG_DELETED = "active", "reported", "deleted"

MAX_GROUP_SIZE = 5
MESSAGE_RETENTION = 50
ALLOWED_EMOJIS = ("\U0001F44D", "❤️", "\U0001F4A1")  # thumbs up, heart, bulb

def epoch_ms(dt):
    """Naive UTC datetime -> milliseconds since the epoch."""
    return int(dt.replace(tzinfo=timezone.utc).timestamp() * 1000) if dt else None

class Users(UserMixin, db.Model):
    __tablename__ = "users"
    id = db.Column(db.Integer, primary_key=True)
    user_name = db.Column(db.String(100), unique=True, nullable=False, index=True)
    role = db.Column(db.String(16), nullable=False, default=ROLE_STUDENT)
    hashed_pw = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    def set_password(self, raw): self.hashed_pw = generate_password_hash(raw)
    def check_password(self, raw): return check_password_hash(self.hashed_pw, raw)
    def get_id(self): return str(self.id)

    @property
    def is_admin(self) -> bool:
        return (self.role or ROLE_STUDENT).strip().lower() == ROLE_ADMIN

@login_manager.user_loader
def load_user(user_id: str) -> Optional["Users"]:
    return db.session.get(Users, int(user_id))

class Courses(db.Model):
    __tablename__ = "courses"
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(32), unique=True, nullable=False)
    title = db.Column(db.String(200), nullable=False)

    groups = db.relationship("Groups", back_populates="course", lazy="select")

    def to_dict(self):
        return {"code": self.code, "title": self.title}

class RosterEntries(db.Model):
    __tablename__ = "roster_entries"
    id = db.Column(db.Integer, primary_key=True)
    course_code = db.Column(db.String(32), db.ForeignKey("courses.code", ondelete="CASCADE"), nullable=False, index=True)
    user_name = db.Column(db.String(100), nullable=False, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    __table_args__ = (db.UniqueConstraint("course_code", "user_name", name="uq_roster_course_user"),)

class Groups(db.Model):
    __tablename__ = "groups"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(160), nullable=False)
    course_code = db.Column(db.String(32), db.ForeignKey("courses.code", ondelete="CASCADE"), nullable=False, index=True)
    creator_name = db.Column(db.String(100), nullable=False)
    is_open = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    course = db.relationship("Courses", back_populates="groups")
    # members and messages die with the group
    members = db.relationship(
        "GroupMembers",
        back_populates="group",
        cascade="all, delete-orphan",
        order_by="GroupMembers.id",
        lazy="select",
    )
    messages = db.relationship(
        "Messages",
        back_populates="group",
        cascade="all, delete-orphan",
        order_by="Messages.id",
        lazy="select",
    )

    @property
    def member_names(self):
        return [m.user_name for m in self.members]


class GroupMembers(db.Model):
    __tablename__ = "group_members"
    id = db.Column(db.Integer, primary_key=True)
    group_id = db.Column(db.Integer, db.ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    # copy of groups.course_code so one-group-per-course is a table constraint
    course_code = db.Column(db.String(32), nullable=False)
    user_name = db.Column(db.String(100), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    __table_args__ = (
        db.UniqueConstraint("group_id", "user_name", name="uq_group_members_group_user"),
        db.UniqueConstraint("course_code", "user_name", name="uq_group_members_course_user"),
    )

    group = db.relationship("Groups", back_populates="members")


class Messages(db.Model):
    __tablename__ = "messages"
    id = db.Column(db.Integer, primary_key=True)
    group_id = db.Column(db.Integer, db.ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)
    author = db.Column(db.String(100), nullable=False, index=True)
    text = db.Column(db.String(500), nullable=False)
    timestamp = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    deleted = db.Column(db.Boolean, nullable=False, default=False)
    reported = db.Column(db.Boolean, nullable=False, default=False)
    __table_args__ = (db.Index("ix_messages_group_timestamp", "group_id", "timestamp"),)

    group = db.relationship("Groups", back_populates="messages")
    reactions = db.relationship(
        "Reactions",
        back_populates="message",
        cascade="all, delete-orphan",
        order_by="Reactions.id",
        lazy="select",
    )

    @property
    def state(self) -> str:
        """active -> reported -> active (resolve); active|reported -> deleted (terminal)."""
        if self.deleted:
            return MSG_DELETED
        if self.reported:
            return MSG_REPORTED
        return MSG_ACTIVE

    @property
    def timestamp_ms(self) -> int:
        return epoch_ms(self.timestamp)

    def reactions_by_emoji(self):
        out = {}
        for r in self.reactions:
            out.setdefault(r.emoji, []).append(r.user_name)
        return out


class Reactions(db.Model):
    __tablename__ = "reactions"
    id = db.Column(db.Integer, primary_key=True)
    message_id = db.Column(db.Integer, db.ForeignKey("messages.id", ondelete="CASCADE"), nullable=False, index=True)
    user_name = db.Column(db.String(100), nullable=False)
    emoji = db.Column(db.String(16), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    __table_args__ = (db.UniqueConstraint("message_id", "user_name", "emoji", name="uq_reactions_message_user_emoji"),)

    message = db.relationship("Messages", back_populates="reactions")


class AuditLogs(db.Model):
    __tablename__ = "audit_logs"
    id = db.Column(db.Integer, primary_key=True)
    actor = db.Column(db.String(100), nullable=False)
    action = db.Column(db.String(40), nullable=False, index=True)
    entity_type = db.Column(db.String(20))
    entity_id = db.Column(db.String(64))
    detail = db.Column(db.String(255))
    timestamp = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "actor": self.actor,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "detail": self.detail,
            "timestamp": self.timestamp.isoformat(timespec="seconds") if self.timestamp else None,
        }
