from __future__ import annotations

from flask import abort, jsonify
from flask_login import login_required

from ..extensions import db
from ..models import Character, Episode, SceneEvent
from ..services.element_tree import ElementTree
from . import bp
from .forms import CharacterForm, EpisodeForm, ProjectForm, SceneEventForm, WorldSettingForm
from .helpers import (
    apply_form,
    bind_form,
    commit_or_log,
    form_error_response,
    get_owned_project,
    json_payload,
)


PROJECT_FIELDS = ("title", "description", "genre", "author")
CHARACTER_FIELDS = (
    "name",
    "age",
    "role",
    "description",
    "appearance",
    "personality",
    "backstory",
    "goals",
    "image_url",
)
EPISODE_FIELDS = ("title", "summary", "content", "chapter_number")
SCENE_FIELDS = ("title", "description", "timestamp", "episode_id")


def _project_payload(project) -> dict:
    payload = project.to_dict()
    tree = ElementTree.from_list(project.file_tree)
    payload.update(
        {
            "file_tree": tree.to_list(),
            "mind_map": project.mind_map or [],
            "characters": [character.to_dict() for character in project.characters],
            "episodes": [episode.to_dict() for episode in project.episodes],
            "timeline": _timeline_payload(project),
            "todos": [todo.to_dict() for todo in project.todos],
            "negative_arc": [point.to_dict() for point in project.negative_arc],
            "word_count": tree.word_count(),
        }
    )
    return payload


def _timeline_payload(project) -> dict:
    events = sorted(project.scene_events, key=lambda event: (event.timestamp, event.id))
    return {
        "project_id": project.id,
        "events": [event.to_dict() for event in events],
        "total_duration": max((event.timestamp for event in events), default=0),
    }


@bp.route("/<int:project_id>", methods=["GET"])
@login_required
def detail(project_id: int):
    project = get_owned_project(project_id)
    return jsonify(_project_payload(project))


@bp.route("/<int:project_id>", methods=["PATCH"])
@login_required
def update(project_id: int):
    project = get_owned_project(project_id)
    payload = json_payload()
    form = bind_form(ProjectForm, payload, obj=project)
    if not form.validate():
        return form_error_response(form)

    apply_form(form, project, PROJECT_FIELDS, only=payload.keys())
    synced = commit_or_log(f"project {project.id}")
    return jsonify({"project": project.to_dict(), "synced": synced})


@bp.route("/<int:project_id>", methods=["DELETE"])
@login_required
def delete(project_id: int):
    project = get_owned_project(project_id)
    db.session.delete(project)
    db.session.commit()
    return jsonify({"deleted": project_id})


@bp.route("/<int:project_id>/world-setting", methods=["PUT"])
@login_required
def update_world_setting(project_id: int):
    project = get_owned_project(project_id)
    form = bind_form(WorldSettingForm, json_payload())
    if not form.validate():
        return form_error_response(form)

    project.world_setting = (form.world_setting.data or "").strip() or None
    synced = commit_or_log(f"world setting for project {project.id}")
    return jsonify({"world_setting": project.world_setting, "synced": synced})


# Characters ---------------------------------------------------------------


@bp.route("/<int:project_id>/characters", methods=["GET"])
@login_required
def list_characters(project_id: int):
    project = get_owned_project(project_id)
    return jsonify({"characters": [character.to_dict() for character in project.characters]})


@bp.route("/<int:project_id>/characters", methods=["POST"])
@login_required
def create_character(project_id: int):
    project = get_owned_project(project_id)
    form = bind_form(CharacterForm, json_payload())
    if not form.validate():
        return form_error_response(form)

    character = Character(project=project)
    apply_form(form, character, CHARACTER_FIELDS)
    db.session.add(character)
    db.session.commit()
    return jsonify({"character": character.to_dict()}), 201


@bp.route("/<int:project_id>/characters/<int:character_id>", methods=["PATCH"])
@login_required
def update_character(project_id: int, character_id: int):
    project = get_owned_project(project_id)
    character = Character.query.filter_by(id=character_id, project_id=project.id).first()
    if not character:
        return jsonify({"error": "We couldn't find the selected character."}), 404

    payload = json_payload()
    form = bind_form(CharacterForm, payload, obj=character)
    if not form.validate():
        return form_error_response(form)

    apply_form(form, character, CHARACTER_FIELDS, only=payload.keys())
    db.session.commit()
    return jsonify({"character": character.to_dict()})


@bp.route("/<int:project_id>/characters/<int:character_id>", methods=["DELETE"])
@login_required
def delete_character(project_id: int, character_id: int):
    project = get_owned_project(project_id)
    character = Character.query.filter_by(id=character_id, project_id=project.id).first()
    if not character:
        return jsonify({"error": "We couldn't find the selected character."}), 404

    # Scene events keep plain id lists, so drop the reference by hand.
    for event in project.scene_events:
        if character.id in (event.character_ids or []):
            event.character_ids = [cid for cid in event.character_ids if cid != character.id]

    db.session.delete(character)
    db.session.commit()
    return jsonify({"deleted": character_id})


# Episodes -----------------------------------------------------------------


@bp.route("/<int:project_id>/episodes", methods=["GET"])
@login_required
def list_episodes(project_id: int):
    project = get_owned_project(project_id)
    return jsonify({"episodes": [episode.to_dict() for episode in project.episodes]})


@bp.route("/<int:project_id>/episodes", methods=["POST"])
@login_required
def create_episode(project_id: int):
    project = get_owned_project(project_id)
    form = bind_form(EpisodeForm, json_payload())
    if not form.validate():
        return form_error_response(form)

    existing_count = Episode.query.filter_by(project_id=project.id).count()
    episode = Episode(project=project)
    apply_form(form, episode, EPISODE_FIELDS)
    if episode.chapter_number is None:
        episode.chapter_number = existing_count + 1
    db.session.add(episode)
    db.session.commit()
    return jsonify({"episode": episode.to_dict()}), 201


@bp.route("/<int:project_id>/episodes/<int:episode_id>", methods=["PATCH"])
@login_required
def update_episode(project_id: int, episode_id: int):
    project = get_owned_project(project_id)
    episode = Episode.query.filter_by(id=episode_id, project_id=project.id).first()
    if not episode:
        return jsonify({"error": "We couldn't find the selected episode."}), 404

    payload = json_payload()
    form = bind_form(EpisodeForm, payload, obj=episode)
    if not form.validate():
        return form_error_response(form)

    apply_form(form, episode, EPISODE_FIELDS, only=payload.keys())
    db.session.commit()
    return jsonify({"episode": episode.to_dict()})


@bp.route("/<int:project_id>/episodes/<int:episode_id>", methods=["DELETE"])
@login_required
def delete_episode(project_id: int, episode_id: int):
    project = get_owned_project(project_id)
    episode = Episode.query.filter_by(id=episode_id, project_id=project.id).first()
    if not episode:
        return jsonify({"error": "We couldn't find the selected episode."}), 404

    for scene in episode.scenes:
        scene.episode_id = None
    db.session.delete(episode)
    db.session.commit()
    return jsonify({"deleted": episode_id})


# Scene timeline -----------------------------------------------------------


def _validated_character_ids(project, raw_ids):
    if raw_ids is None:
        return []
    if not isinstance(raw_ids, list):
        abort(400)
    known = {character.id for character in project.characters}
    cleaned = []
    for raw in raw_ids:
        try:
            character_id = int(raw)
        except (TypeError, ValueError):
            abort(400)
        if character_id in known and character_id not in cleaned:
            cleaned.append(character_id)
    return cleaned


def _validated_episode(project, episode_id):
    if episode_id is None:
        return True
    return Episode.query.filter_by(id=episode_id, project_id=project.id).first() is not None


@bp.route("/<int:project_id>/timeline", methods=["GET"])
@login_required
def timeline(project_id: int):
    project = get_owned_project(project_id)
    return jsonify(_timeline_payload(project))


@bp.route("/<int:project_id>/scenes", methods=["POST"])
@login_required
def create_scene(project_id: int):
    project = get_owned_project(project_id)
    payload = json_payload()
    scene_fields = {key: value for key, value in payload.items() if key != "character_ids"}
    form = bind_form(SceneEventForm, scene_fields)
    if not form.validate():
        return form_error_response(form)
    if not _validated_episode(project, form.episode_id.data):
        return jsonify({"error": "We couldn't find the selected episode."}), 404

    scene = SceneEvent(project=project)
    apply_form(form, scene, SCENE_FIELDS)
    scene.timestamp = scene.timestamp or 0
    scene.character_ids = _validated_character_ids(project, payload.get("character_ids"))
    db.session.add(scene)
    db.session.commit()
    return jsonify({"scene": scene.to_dict()}), 201


@bp.route("/<int:project_id>/scenes/<int:scene_id>", methods=["PATCH"])
@login_required
def update_scene(project_id: int, scene_id: int):
    project = get_owned_project(project_id)
    scene = SceneEvent.query.filter_by(id=scene_id, project_id=project.id).first()
    if not scene:
        return jsonify({"error": "We couldn't find the selected scene."}), 404

    payload = json_payload()
    scene_fields = {key: value for key, value in payload.items() if key != "character_ids"}
    form = bind_form(SceneEventForm, scene_fields, obj=scene)
    if not form.validate():
        return form_error_response(form)
    if "episode_id" in payload and not _validated_episode(project, form.episode_id.data):
        return jsonify({"error": "We couldn't find the selected episode."}), 404

    apply_form(form, scene, SCENE_FIELDS, only=scene_fields.keys())
    scene.timestamp = scene.timestamp or 0
    if "character_ids" in payload:
        scene.character_ids = _validated_character_ids(project, payload.get("character_ids"))
    db.session.commit()
    return jsonify({"scene": scene.to_dict()})


@bp.route("/<int:project_id>/scenes/<int:scene_id>", methods=["DELETE"])
@login_required
def delete_scene(project_id: int, scene_id: int):
    project = get_owned_project(project_id)
    scene = SceneEvent.query.filter_by(id=scene_id, project_id=project.id).first()
    if not scene:
        return jsonify({"error": "We couldn't find the selected scene."}), 404

    db.session.delete(scene)
    db.session.commit()
    return jsonify({"deleted": scene_id})
