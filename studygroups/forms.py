from flask import jsonify
from flask_wtf import FlaskForm
from wtforms import StringField, PasswordField, BooleanField, IntegerField
from wtforms.validators import DataRequired, Length, Regexp, Optional

# letras, dígitos, espacios, apóstrofo, punto y guion
NAME_RE = r"^[\w' .-]{1,60}$"
COURSE_RE = r"^[A-Za-z0-9_-]{1,32}$"


class ApiForm(FlaskForm):
    """JSON bodies; CSRF is checked globally from the X-CSRFToken header."""
    class Meta:
        csrf = False


class LoginForm(ApiForm):
    user_name = StringField(
        "Nombre",
        validators=[
            DataRequired(),
            Length(max=60),
            Regexp(NAME_RE, message="Invalid name (letters, digits, spaces, apostrophe, dot or hyphen)."),
        ],
    )
    password = PasswordField("Password", validators=[DataRequired(), Length(max=128)])
    create_if_missing = BooleanField("Create account")


class UpdateNameForm(ApiForm):
    new_user_name = StringField("New name", validators=[DataRequired(), Length(max=60), Regexp(NAME_RE)])
    password = PasswordField("Password", validators=[DataRequired()])


class CreateGroupForm(ApiForm):
    course_code = StringField("Course", validators=[DataRequired(), Regexp(COURSE_RE)])
    group_name = StringField("Group name", validators=[DataRequired(), Length(min=1, max=160)])


class CourseContextForm(ApiForm):
    # optional hint; the group's own course always wins
    course_code = StringField("Course", validators=[Optional(), Regexp(COURSE_RE)])


class MessageForm(ApiForm):
    # emptiness is decided after sanitizing, by the data layer
    text = StringField("Message", validators=[Optional()])


class MessageActionForm(ApiForm):
    group_id = IntegerField("Group", validators=[DataRequired()])


class ReactionForm(ApiForm):
    emoji = StringField("Emoji", validators=[DataRequired(), Length(max=16)])


def invalid(form):
    return jsonify(error="INVALID_INPUT", message="Invalid input.", fields=form.errors), 400
