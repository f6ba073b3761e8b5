from flask import jsonify, request
from flask_login import current_user
from . import main_bp
from .. import data


@main_bp.route("/")
def index():
    return jsonify(
        name="Study Groups API",
        user=current_user.user_name if current_user.is_authenticated else None,
        health="/api/health",
    )


@main_bp.route("/api/health")
def health():
    return jsonify(status="ok")


@main_bp.route("/api/courses")
def courses():
    return jsonify(courses=data.get_all_courses())


@main_bp.route("/api/courses/<course_code>")
def course_detail(course_code):
    course = data.get_course(course_code)
    if not course:
        return jsonify(error="Course not found"), 404
    return jsonify(
        course=course,
        groups=data.get_groups(course_code),
        roster=data.get_roster_with_status(course_code),
    )


@main_bp.route("/api/courses/<course_code>/my-group")
def my_group(course_code):
    """Group id the user holds in this course, or null."""
    user_name = request.args.get("user_name") or (
        current_user.user_name if current_user.is_authenticated else None)
    if not user_name:
        return jsonify(group_id=None)
    return jsonify(group_id=data.is_user_in_group(course_code, user_name))


@main_bp.route("/api/users/<user_name>/profile")
def user_profile(user_name):
    return jsonify(data.get_user_profile(user_name))
