from flask import jsonify
from flask_login import current_user, login_required

from ..extensions import db
from ..models import Project, UserSettings
from ..projects.forms import ProjectForm
from ..projects.helpers import apply_form, bind_form, form_error_response, json_payload
from ..services.element_tree import ElementTree
from . import bp
from .forms import UserSettingsForm


SETTINGS_FIELDS = ("font_size", "font_family", "theme_mode", "auto_save", "auto_save_interval")


def _project_list_item(project: Project) -> dict:
    item = project.to_dict()
    item["character_count"] = len(project.characters)
    item["word_count"] = ElementTree.from_list(project.file_tree).word_count()
    return item


def _user_settings() -> UserSettings:
    settings = current_user.settings
    if settings is None:
        settings = UserSettings(user=current_user)
        db.session.add(settings)
        db.session.commit()
    return settings


@bp.route("/")
def index():
    if current_user.is_authenticated:
        return jsonify({"user": current_user.to_dict()})
    return jsonify({"user": None})


@bp.route("/dashboard", methods=["GET"])
@login_required
def dashboard():
    projects = (
        Project.query.filter_by(owner_id=current_user.id)
        .order_by(Project.updated_at.desc())
        .all()
    )
    return jsonify({"projects": [_project_list_item(project) for project in projects]})


@bp.route("/dashboard", methods=["POST"])
@login_required
def create_project():
    form = bind_form(ProjectForm, json_payload())
    if not form.validate():
        return form_error_response(form)

    project = Project(owner=current_user, file_tree=[], mind_map=[])
    apply_form(form, project, ("title", "description", "genre", "author"))
    db.session.add(project)
    db.session.commit()
    return jsonify({"project": _project_list_item(project)}), 201


@bp.route("/settings", methods=["GET"])
@login_required
def settings():
    return jsonify({"settings": _user_settings().to_dict()})


@bp.route("/settings", methods=["PUT", "PATCH"])
@login_required
def update_settings():
    user_settings = _user_settings()
    payload = json_payload()
    form = bind_form(UserSettingsForm, payload, obj=user_settings)
    if not form.validate():
        return form_error_response(form)

    apply_form(form, user_settings, SETTINGS_FIELDS, only=payload.keys())
    db.session.commit()
    return jsonify({"settings": user_settings.to_dict()})
