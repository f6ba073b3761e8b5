from flask import abort, request, jsonify
from flask_login import current_user
from . import admin_bp
from .. import data, audit
from ..errors import as_response


# Helpers
def is_admin() -> bool:
    return current_user.is_authenticated and current_user.is_admin


# Guards
@admin_bp.before_request
def guard():
    if not current_user.is_authenticated:
        return abort(401)
    if not is_admin():
        return abort(403)


# Moderation
@admin_bp.route("/api/reported-messages")
def reported_messages():
    days = request.args.get("days", 7, type=int)
    return jsonify(messages=data.get_reported_messages(days=max(1, min(days, 90))))


@admin_bp.post("/api/messages/<int:message_id>/resolve")
def message_resolve(message_id):
    return as_response(data.resolve_message(message_id, current_user.user_name))


@admin_bp.post("/api/messages/<int:message_id>/delete")
def message_delete(message_id):
    # the role check above is the capability; group context is not needed
    return as_response(data.delete_message(None, message_id, current_user.user_name, privileged=True))


# Audit trail
@admin_bp.route("/api/audit-logs")
def audit_logs():
    limit = request.args.get("limit", 100, type=int)
    return jsonify(logs=audit.recent_logs(limit))
