"""Manuscript file tree endpoints.

The project row stores the whole forest as one JSON snapshot. Each request
loads it, applies a single operation in memory and writes the snapshot back.
"""
from __future__ import annotations

from flask import current_app, jsonify, request
from flask_login import login_required

from ..services.element_tree import ElementTree, OutcomeStatus
from . import bp
from .forms import ElementForm
from .helpers import (
    bind_form,
    commit_or_log,
    form_error_response,
    get_owned_project,
    json_payload,
    outcome_error_response,
)


def _persist_tree(project, tree: ElementTree) -> bool:
    project.file_tree = tree.to_list()
    synced = commit_or_log(f"file tree for project {project.id}")
    if synced:
        tree.mark_synced()
    else:
        current_app.logger.warning(
            "File tree for project %s is ahead of the database until the next reload.",
            project.id,
        )
    return synced


def _tree_response(tree: ElementTree, synced: bool, element=None, status: int = 200):
    body = {"file_tree": tree.to_list(), "synced": synced, "dirty": tree.dirty}
    if element is not None:
        body["element"] = element.to_dict()
    return jsonify(body), status


@bp.route("/<int:project_id>/files", methods=["GET"])
@login_required
def list_files(project_id: int):
    project = get_owned_project(project_id)
    tree = ElementTree.from_list(project.file_tree)
    return jsonify({"file_tree": tree.to_list(), "word_count": tree.word_count()})


@bp.route("/<int:project_id>/files", methods=["POST"])
@login_required
def create_element(project_id: int):
    project = get_owned_project(project_id)
    form = bind_form(ElementForm, json_payload())
    if not form.validate():
        return form_error_response(form)

    tree = ElementTree.from_list(project.file_tree)
    parent_id = (form.parent_id.data or "").strip() or None
    outcome = tree.create(parent_id, form.name.data.strip(), form.is_folder.data)
    if not outcome.ok:
        return outcome_error_response(outcome.status)

    synced = _persist_tree(project, tree)
    return _tree_response(tree, synced, outcome.element, status=201)


@bp.route("/<int:project_id>/files/<element_id>", methods=["PATCH"])
@login_required
def update_element(project_id: int, element_id: str):
    project = get_owned_project(project_id)
    payload = json_payload()
    name = payload.get("name")
    content = payload.get("content")
    if name is None and content is None:
        return jsonify({"error": "Provide a new name or new content."}), 400
    if name is not None and not str(name).strip():
        return jsonify({"errors": {"name": ["This field is required."]}}), 400

    tree = ElementTree.from_list(project.file_tree)
    outcome = None
    if content is not None:
        outcome = tree.update_content(element_id, str(content))
        if not outcome.ok:
            return outcome_error_response(outcome.status)
    if name is not None:
        outcome = tree.rename(element_id, str(name).strip())
        if not outcome.ok:
            return outcome_error_response(outcome.status)

    synced = _persist_tree(project, tree)
    return _tree_response(tree, synced, outcome.element)


@bp.route("/<int:project_id>/files/<element_id>", methods=["DELETE"])
@login_required
def delete_element(project_id: int, element_id: str):
    project = get_owned_project(project_id)
    parent_id = (request.args.get("parent_id") or json_payload().get("parent_id") or "").strip() or None

    tree = ElementTree.from_list(project.file_tree)
    outcome = tree.delete(element_id, parent_id)
    if outcome.status is OutcomeStatus.NOT_FOUND and tree.find(element_id) is not None:
        current_app.logger.info(
            "Delete of %s rejected: %s is not its parent.", element_id, parent_id or "the root"
        )
    if not outcome.ok:
        return outcome_error_response(outcome.status)

    synced = _persist_tree(project, tree)
    return _tree_response(tree, synced, outcome.element)
