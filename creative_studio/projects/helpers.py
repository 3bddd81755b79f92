"""Request helpers shared by the JSON blueprints."""
from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Type

from flask import abort, current_app, jsonify, request
from flask_login import current_user
from flask_wtf import FlaskForm
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.datastructures import MultiDict

from ..extensions import db
from ..models import Project
from ..services.element_tree import OutcomeStatus


OUTCOME_HTTP_STATUS = {
    OutcomeStatus.OK: 200,
    OutcomeStatus.NOT_FOUND: 404,
    OutcomeStatus.TYPE_MISMATCH: 400,
    OutcomeStatus.DUPLICATE_ID: 409,
}

OUTCOME_MESSAGES = {
    OutcomeStatus.NOT_FOUND: "We couldn't find the requested item.",
    OutcomeStatus.TYPE_MISMATCH: "That action isn't available for this kind of item.",
    OutcomeStatus.DUPLICATE_ID: "An item with that id already exists.",
}


def get_owned_project(project_id: int) -> Project:
    project = Project.query.get_or_404(project_id)
    if project.owner != current_user:
        abort(403)
    return project


def json_payload() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def bind_form(form_class: Type[FlaskForm], payload: Dict[str, Any], obj: Optional[object] = None) -> FlaskForm:
    """Build ``form_class`` from a JSON ``payload``.

    ``None`` values become empty strings so ``Optional`` validators treat them
    as cleared fields, and list values are exposed as repeated keys.
    """

    formdata = MultiDict()
    for key, value in payload.items():
        if value is None:
            formdata.add(key, "")
        elif isinstance(value, (list, tuple)):
            for item in value:
                formdata.add(key, item)
        else:
            formdata.add(key, value)
    return form_class(formdata=formdata, obj=obj)


def apply_form(form: FlaskForm, target: object, fields: Iterable[str], *, only: Optional[Iterable[str]] = None) -> None:
    allowed = set(only) if only is not None else None
    for name in fields:
        if allowed is not None and name not in allowed:
            continue
        value = form[name].data
        if isinstance(value, str):
            value = value.strip() or None
        setattr(target, name, value)


def form_error_response(form: FlaskForm):
    return jsonify({"errors": form.errors}), 400


def outcome_error_response(status: OutcomeStatus):
    return jsonify({"error": OUTCOME_MESSAGES[status], "status": status.value}), OUTCOME_HTTP_STATUS[status]


def commit_or_log(description: str) -> bool:
    """Commit the session; on failure roll back, log and report ``False``.

    The caller's in-memory state is left as it is, so a failed write leaves it
    ahead of the database until the next read.
    """

    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to persist %s", description)
        return False
    return True
