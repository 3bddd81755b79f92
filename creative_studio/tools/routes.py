from __future__ import annotations

from flask import jsonify
from flask_login import login_required

from ..extensions import db
from ..models import NegativeArcPoint, TodoItem
from ..projects.forms import MindMapNodeForm, NegativeArcPointForm, TodoForm
from ..projects.helpers import (
    apply_form,
    bind_form,
    commit_or_log,
    form_error_response,
    get_owned_project,
    json_payload,
    outcome_error_response,
)
from ..services.mind_map import UNSET, MindMap
from . import bp


TODO_FIELDS = ("title", "description", "completed", "priority", "due_date")
ARC_FIELDS = ("phase", "description", "emotional_low")


# Mind map -----------------------------------------------------------------


def _persist_mind_map(project, mind_map: MindMap) -> bool:
    project.mind_map = mind_map.to_list()
    synced = commit_or_log(f"mind map for project {project.id}")
    if synced:
        mind_map.mark_synced()
    return synced


def _mind_map_response(mind_map: MindMap, synced: bool, **extra):
    body = {"mind_map": mind_map.to_list(), "synced": synced, "dirty": mind_map.dirty}
    body.update(extra)
    return jsonify(body)


@bp.route("/mindmap", methods=["GET"])
@login_required
def mind_map(project_id: int):
    project = get_owned_project(project_id)
    return jsonify({"mind_map": MindMap.from_list(project.mind_map).to_list()})


@bp.route("/mindmap", methods=["POST"])
@login_required
def add_mind_map_node(project_id: int):
    project = get_owned_project(project_id)
    form = bind_form(MindMapNodeForm, json_payload())
    if not form.validate():
        return form_error_response(form)

    tree = MindMap.from_list(project.mind_map)
    outcome = tree.add(
        form.title.data.strip(),
        description=(form.description.data or "").strip() or None,
        parent_id=(form.parent_id.data or "").strip() or None,
    )
    if not outcome.ok:
        return outcome_error_response(outcome.status)

    synced = _persist_mind_map(project, tree)
    return _mind_map_response(tree, synced, node=outcome.element.to_dict()), 201


@bp.route("/mindmap/<node_id>", methods=["PATCH"])
@login_required
def update_mind_map_node(project_id: int, node_id: str):
    project = get_owned_project(project_id)
    payload = json_payload()
    title = payload.get("title")
    if title is not None and not str(title).strip():
        return jsonify({"errors": {"title": ["This field is required."]}}), 400

    description = payload.get("description", UNSET)
    if description is not UNSET and description is not None:
        if not isinstance(description, str):
            return jsonify({"errors": {"description": ["Description must be text."]}}), 400
        description = description.strip() or None

    tree = MindMap.from_list(project.mind_map)
    outcome = tree.update(
        node_id,
        title=str(title).strip() if title is not None else None,
        description=description,
    )
    if not outcome.ok:
        return outcome_error_response(outcome.status)

    synced = _persist_mind_map(project, tree)
    return _mind_map_response(tree, synced, node=outcome.element.to_dict())


@bp.route("/mindmap/<node_id>", methods=["DELETE"])
@login_required
def delete_mind_map_node(project_id: int, node_id: str):
    project = get_owned_project(project_id)
    tree = MindMap.from_list(project.mind_map)
    outcome = tree.delete(node_id)
    if not outcome.ok:
        return outcome_error_response(outcome.status)

    synced = _persist_mind_map(project, tree)
    return _mind_map_response(tree, synced, deleted=node_id)


# Todos --------------------------------------------------------------------


@bp.route("/todos", methods=["GET"])
@login_required
def list_todos(project_id: int):
    project = get_owned_project(project_id)
    return jsonify({"todos": [todo.to_dict() for todo in project.todos]})


@bp.route("/todos", methods=["POST"])
@login_required
def create_todo(project_id: int):
    project = get_owned_project(project_id)
    form = bind_form(TodoForm, json_payload())
    if not form.validate():
        return form_error_response(form)

    todo = TodoItem(project=project)
    apply_form(form, todo, TODO_FIELDS)
    db.session.add(todo)
    db.session.commit()
    return jsonify({"todo": todo.to_dict()}), 201


@bp.route("/todos/<int:todo_id>", methods=["PATCH"])
@login_required
def update_todo(project_id: int, todo_id: int):
    project = get_owned_project(project_id)
    todo = TodoItem.query.filter_by(id=todo_id, project_id=project.id).first()
    if not todo:
        return jsonify({"error": "We couldn't find the selected todo."}), 404

    payload = json_payload()
    form = bind_form(TodoForm, payload, obj=todo)
    if not form.validate():
        return form_error_response(form)

    apply_form(form, todo, TODO_FIELDS, only=payload.keys())
    db.session.commit()
    return jsonify({"todo": todo.to_dict()})


@bp.route("/todos/<int:todo_id>/toggle", methods=["POST"])
@login_required
def toggle_todo(project_id: int, todo_id: int):
    project = get_owned_project(project_id)
    todo = TodoItem.query.filter_by(id=todo_id, project_id=project.id).first()
    if not todo:
        return jsonify({"error": "We couldn't find the selected todo."}), 404

    todo.completed = not todo.completed
    db.session.commit()
    return jsonify({"todo": todo.to_dict()})


@bp.route("/todos/<int:todo_id>", methods=["DELETE"])
@login_required
def delete_todo(project_id: int, todo_id: int):
    project = get_owned_project(project_id)
    todo = TodoItem.query.filter_by(id=todo_id, project_id=project.id).first()
    if not todo:
        return jsonify({"error": "We couldn't find the selected todo."}), 404

    db.session.delete(todo)
    db.session.commit()
    return jsonify({"deleted": todo_id})


# Negative arc -------------------------------------------------------------


@bp.route("/negative-arc", methods=["GET"])
@login_required
def negative_arc(project_id: int):
    project = get_owned_project(project_id)
    return jsonify({"negative_arc": [point.to_dict() for point in project.negative_arc]})


@bp.route("/negative-arc", methods=["POST"])
@login_required
def create_arc_point(project_id: int):
    project = get_owned_project(project_id)
    form = bind_form(NegativeArcPointForm, json_payload())
    if not form.validate():
        return form_error_response(form)

    point = NegativeArcPoint(project=project)
    apply_form(form, point, ARC_FIELDS)
    db.session.add(point)
    db.session.commit()
    return jsonify({"point": point.to_dict()}), 201


@bp.route("/negative-arc/<int:point_id>", methods=["PATCH"])
@login_required
def update_arc_point(project_id: int, point_id: int):
    project = get_owned_project(project_id)
    point = NegativeArcPoint.query.filter_by(id=point_id, project_id=project.id).first()
    if not point:
        return jsonify({"error": "We couldn't find the selected arc point."}), 404

    payload = json_payload()
    form = bind_form(NegativeArcPointForm, payload, obj=point)
    if not form.validate():
        return form_error_response(form)

    apply_form(form, point, ARC_FIELDS, only=payload.keys())
    db.session.commit()
    return jsonify({"point": point.to_dict()})


@bp.route("/negative-arc/<int:point_id>", methods=["DELETE"])
@login_required
def delete_arc_point(project_id: int, point_id: int):
    project = get_owned_project(project_id)
    point = NegativeArcPoint.query.filter_by(id=point_id, project_id=project.id).first()
    if not point:
        return jsonify({"error": "We couldn't find the selected arc point."}), 404

    db.session.delete(point)
    db.session.commit()
    return jsonify({"deleted": point_id})
