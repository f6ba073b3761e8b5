from flask import jsonify
from flask_login import login_required, current_user
from . import groups_bp
from .. import data
from ..errors import is_error, as_response
from ..forms import CreateGroupForm, CourseContextForm, MessageForm, MessageActionForm, ReactionForm, invalid
from ..models import MAX_GROUP_SIZE


# ----------------- Groups -----------------
@groups_bp.post("/groups")
@login_required
def group_create():
    form = CreateGroupForm()
    if not form.validate_on_submit():
        return invalid(form)
    course_code = form.course_code.data.strip()
    if not data.get_course(course_code):
        return jsonify(error="Course not found"), 404
    return as_response(data.create_group(course_code, form.group_name.data.strip(), current_user.user_name), 201)


@groups_bp.get("/groups/<int:group_id>")
def group_detail(group_id):
    group = data.get_group(None, group_id)
    if not group:
        return jsonify(error="Group not found"), 404
    course = data.get_course(group["course_code"])
    if not course:
        return jsonify(error="Course not found"), 404
    messages = data.get_messages(group_id)

    group = dict(group, size=len(group["members"]), max_size=MAX_GROUP_SIZE)
    group.pop("messages", None)
    return jsonify(group=group, course=course, messages=messages.get("messages", []))


@groups_bp.post("/groups/<int:group_id>/join")
@login_required
def group_join(group_id):
    form = CourseContextForm()
    if not form.validate_on_submit():
        return invalid(form)
    return as_response(data.join_group(form.course_code.data, group_id, current_user.user_name))


@groups_bp.post("/groups/<int:group_id>/leave")
@login_required
def group_leave(group_id):
    form = CourseContextForm()
    if not form.validate_on_submit():
        return invalid(form)
    return as_response(data.leave_group(form.course_code.data, group_id, current_user.user_name))


@groups_bp.post("/groups/<int:group_id>/toggle")
@login_required
def group_toggle(group_id):
    form = CourseContextForm()
    if not form.validate_on_submit():
        return invalid(form)
    return as_response(data.toggle_group_status(form.course_code.data, group_id, current_user.user_name))


@groups_bp.get("/user/groups")
@login_required
def my_groups():
    return jsonify(groups=data.get_user_groups(current_user.user_name))


# ----------------- Chat -----------------
@groups_bp.get("/groups/<int:group_id>/messages")
def chat_messages(group_id):
    return as_response(data.get_messages(group_id))


@groups_bp.post("/groups/<int:group_id>/messages")
@login_required
def chat_post(group_id):
    form = MessageForm()
    if not form.validate_on_submit():
        return invalid(form)
    result = data.add_message(group_id, current_user.user_name, form.text.data)
    if is_error(result):
        return as_response(result)
    messages = data.get_messages(group_id)
    return jsonify(message=result["message"], messages=messages.get("messages", [])), 201


@groups_bp.post("/messages/<int:message_id>/report")
@login_required
def message_report(message_id):
    form = MessageActionForm()
    if not form.validate_on_submit():
        return invalid(form)
    return as_response(data.report_message(form.group_id.data, message_id, current_user.user_name))


@groups_bp.post("/messages/<int:message_id>/delete")
@login_required
def message_delete(message_id):
    form = MessageActionForm()
    if not form.validate_on_submit():
        return invalid(form)
    return as_response(data.delete_message(
        form.group_id.data, message_id, current_user.user_name, privileged=current_user.is_admin))


@groups_bp.post("/messages/<int:message_id>/reaction")
@login_required
def message_reaction(message_id):
    form = ReactionForm()
    if not form.validate_on_submit():
        return invalid(form)
    return as_response(data.toggle_reaction(message_id, current_user.user_name, form.emoji.data))
