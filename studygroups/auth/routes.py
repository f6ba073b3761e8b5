from flask import jsonify
from flask_login import login_user, logout_user, current_user, login_required
from flask_jwt_extended import create_access_token, jwt_required, get_jwt_identity, get_jwt
from flask_wtf.csrf import generate_csrf
from . import auth_bp
from ..forms import LoginForm, UpdateNameForm, invalid
from ..models import Users
from ..errors import is_error, as_response
from .. import csrf, data, db


@auth_bp.route("/api/csrf")
def api_csrf():
    return jsonify(csrf_token=generate_csrf())


@auth_bp.route("/api/login", methods=["POST"])
@csrf.exempt
def api_login():
    form = LoginForm()
    if not form.validate_on_submit():
        return invalid(form)

    user_name = form.user_name.data.strip()
    result = data.authenticate_user(user_name, form.password.data, form.create_if_missing.data)
    if is_error(result):
        return as_response(result)

    user = Users.query.filter_by(user_name=result["user_name"]).first()
    login_user(user, remember=True)

    # 👇 identity como string; metadatos en additional_claims
    token = create_access_token(
        identity=str(user.id),
        additional_claims={"role": user.role, "user_name": user.user_name}
    )
    return jsonify(user_name=user.user_name, role=user.role, access_token=token)


@auth_bp.route("/api/me")
@csrf.exempt
@jwt_required()
def api_me():
    uid = int(get_jwt_identity())
    claims = get_jwt()
    user = db.get_or_404(Users, uid)
    return jsonify(id=uid, role=claims.get("role"), user_name=user.user_name)


@auth_bp.route("/logout", methods=["POST"])
def logout():
    if current_user.is_authenticated:
        logout_user()
    return jsonify(success=True)


@auth_bp.route("/api/update-name", methods=["POST"])
@login_required
def api_update_name():
    form = UpdateNameForm()
    if not form.validate_on_submit():
        return invalid(form)

    new_name = form.new_user_name.data.strip()
    if new_name == current_user.user_name:
        return jsonify(error="INVALID_INPUT", message="New name must be different from current name"), 400

    return as_response(data.update_user_name(current_user.user_name, new_name, form.password.data))
