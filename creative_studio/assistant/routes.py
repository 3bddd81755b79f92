from __future__ import annotations

from flask import current_app, jsonify
from flask_login import login_required

from ..extensions import db
from ..projects.helpers import commit_or_log, get_owned_project, json_payload
from ..services import somni
from ..services.chat_assistant import ChatAssistant, ChatAssistantError, build_project_context
from ..services.image_generation import ImageGenerationError, generate_image
from ..services.setting_data import build_setting_data
from . import bp


def _source_text(project, payload) -> str:
    raw_text = payload.get("raw_text")
    if isinstance(raw_text, str) and raw_text.strip():
        return raw_text
    return project.world_setting or ""


def _setting_data(project, payload):
    setting_data = payload.get("setting_data")
    if isinstance(setting_data, dict):
        return setting_data
    if project.setting_data:
        return project.setting_data
    return build_setting_data(project.characters)


@bp.route("/<int:project_id>/extract", methods=["POST"])
@login_required
def extract(project_id: int):
    project = get_owned_project(project_id)
    payload = json_payload()
    raw_text = _source_text(project, payload)
    if not raw_text.strip():
        return jsonify({"error": "Add some source text before extracting the setting."}), 400

    try:
        result = somni.extract_setting(raw_text, project.setting_data)
    except somni.SomniAPIError as exc:
        return jsonify({"error": str(exc)}), exc.status_code
    except Exception:  # pragma: no cover - unexpected failures
        current_app.logger.exception("Unexpected error during setting extraction")
        return jsonify({"error": "We couldn't extract the setting right now. Please try again."}), 500

    setting_data = result.get("setting_data", result)
    project.setting_data = setting_data
    if payload.get("raw_text") and not project.world_setting:
        project.world_setting = raw_text
    synced = commit_or_log(f"setting data for project {project.id}")
    return jsonify({"setting_data": setting_data, "result": result, "synced": synced})


@bp.route("/<int:project_id>/consistency", methods=["POST"])
@login_required
def consistency(project_id: int):
    project = get_owned_project(project_id)
    payload = json_payload()
    raw_text = _source_text(project, payload)
    if not raw_text.strip():
        return jsonify({"error": "Add some text to check."}), 400

    try:
        report = somni.check_consistency(raw_text, _setting_data(project, payload))
    except somni.SomniAPIError as exc:
        return jsonify({"error": str(exc)}), exc.status_code
    except Exception:  # pragma: no cover - unexpected failures
        current_app.logger.exception("Unexpected error during consistency check")
        return jsonify({"error": "We couldn't check consistency right now. Please try again."}), 500

    return jsonify(report)


@bp.route("/<int:project_id>/timeline", methods=["POST"])
@login_required
def timeline(project_id: int):
    project = get_owned_project(project_id)
    payload = json_payload()
    raw_text = _source_text(project, payload)
    if not raw_text.strip():
        return jsonify({"error": "Add some source text before extracting a timeline."}), 400

    try:
        result = somni.extract_timeline(raw_text, project.setting_data)
    except somni.SomniAPIError as exc:
        return jsonify({"error": str(exc)}), exc.status_code
    except Exception:  # pragma: no cover - unexpected failures
        current_app.logger.exception("Unexpected error during timeline extraction")
        return jsonify({"error": "We couldn't extract a timeline right now. Please try again."}), 500

    return jsonify(result)


@bp.route("/<int:project_id>/chat", methods=["POST"])
@login_required
def chat(project_id: int):
    project = get_owned_project(project_id)
    payload = json_payload()
    messages = payload.get("messages")
    if not isinstance(messages, list):
        return jsonify({"error": "Send the conversation as a list of messages."}), 400

    try:
        assistant = ChatAssistant.from_app_config()
        result = assistant.reply(messages, build_project_context(project))
    except ChatAssistantError as exc:
        current_app.logger.warning("Chat assistant error for project %s: %s", project.id, exc)
        return jsonify({"error": str(exc)}), 500
    except Exception as exc:  # pragma: no cover - unexpected failures
        current_app.logger.exception("Unexpected chat assistant failure")
        return jsonify({"error": str(exc) or "Unknown error"}), 500

    return jsonify({"reply": result.reply, "model": result.model})


@bp.route("/generate-image", methods=["POST"])
@login_required
def image():
    payload = json_payload()
    try:
        generated = generate_image(payload.get("prompt") or "")
    except ImageGenerationError as exc:
        return jsonify({"error": str(exc)}), exc.status_code

    return jsonify({"image_data": generated.image_data, "mime_type": generated.mime_type})


@bp.route("/<int:project_id>/setting-data/rebuild", methods=["POST"])
@login_required
def rebuild_setting_data(project_id: int):
    project = get_owned_project(project_id)
    project.setting_data = build_setting_data(project.characters)
    db.session.commit()
    return jsonify({"setting_data": project.setting_data})
