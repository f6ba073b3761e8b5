"""Business-rule failures returned by the data layer.

Data operations never raise for these; they return ``fail(code)`` and the
HTTP layer turns the dict into a 4xx response.
"""
from flask import jsonify

ALREADY_IN_GROUP = "ALREADY_IN_GROUP"
GROUP_NOT_FOUND = "GROUP_NOT_FOUND"
GROUP_CLOSED = "GROUP_CLOSED"
GROUP_FULL = "GROUP_FULL"
NOT_MEMBER = "NOT_MEMBER"
NOT_OWNER = "NOT_OWNER"
MESSAGE_NOT_FOUND = "MESSAGE_NOT_FOUND"
MESSAGE_DELETED = "MESSAGE_DELETED"
EMPTY_MESSAGE = "EMPTY_MESSAGE"
INVALID_EMOJI = "INVALID_EMOJI"
USER_NOT_FOUND = "USER_NOT_FOUND"
INVALID_PASSWORD = "INVALID_PASSWORD"
USERNAME_TAKEN = "USERNAME_TAKEN"

MESSAGES = {
    ALREADY_IN_GROUP: "You're already in a group for this course.",
    GROUP_NOT_FOUND: "Group not found.",
    GROUP_CLOSED: "This group is closed to new members.",
    GROUP_FULL: "This group is full.",
    NOT_MEMBER: "You are not a member of this group.",
    NOT_OWNER: "Only the group owner can do that.",
    MESSAGE_NOT_FOUND: "Message not found.",
    MESSAGE_DELETED: "This message has been deleted.",
    EMPTY_MESSAGE: "Message cannot be empty.",
    INVALID_EMOJI: "That reaction is not allowed.",
    USER_NOT_FOUND: "User not found. Please create an account.",
    INVALID_PASSWORD: "Incorrect password.",
    USERNAME_TAKEN: "This name is already taken. Please choose another.",
}

NOT_FOUND_CODES = (GROUP_NOT_FOUND, MESSAGE_NOT_FOUND)


def fail(code: str, **extra) -> dict:
    out = {"error": code, "message": MESSAGES.get(code, code)}
    out.update(extra)
    return out


def is_error(result) -> bool:
    return isinstance(result, dict) and "error" in result


def as_response(result, status=200):
    """(body, status) for a data-layer result; tagged errors become 400/404."""
    if is_error(result):
        return jsonify(result), 404 if result["error"] in NOT_FOUND_CODES else 400
    return jsonify(result), status
