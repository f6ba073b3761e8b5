"""Audit trail: who did what to which group/message/user.

``record`` runs after the primary operation has committed and must never
break it, so every failure is logged and rolled back here.
"""
from flask import current_app

from . import db
from .models import AuditLogs


def record(actor, action, entity_type=None, entity_id=None, detail=None):
    try:
        db.session.add(AuditLogs(
            actor=str(actor)[:100],
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            detail=detail[:255] if detail else None,
        ))
        db.session.commit()
    except Exception:
        current_app.logger.exception("Failed to log audit event %s by %s", action, actor)
        try:
            db.session.rollback()
        except Exception:
            current_app.logger.exception("Rollback after audit failure also failed")


def recent_logs(limit: int = 100):
    limit = max(1, min(int(limit or 100), 500))
    rows = AuditLogs.query.order_by(AuditLogs.timestamp.desc(), AuditLogs.id.desc()).limit(limit).all()
    return [r.to_dict() for r in rows]
