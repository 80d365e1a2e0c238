"""Task file API: tasks stored as markdown files under the epics directory."""
from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify, request

from models.task import TaskFile, render_task_description_html
from routes import json_error, register_api_error_handler
from services.task_files import (
    list_task_files,
    read_task_file,
    render_task_file,
    task_path,
    tasks_dir,
    validate_path_segment,
)

tasks_bp = Blueprint("tasks", __name__, url_prefix="/api/epics/tasks")
register_api_error_handler(tasks_bp)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


def _repository() -> str:
    repository = request.args.get("repository") or current_app.config["DEFAULT_REPOSITORY"]
    return validate_path_segment(repository)


def _tasks_root() -> str:
    return current_app.config["TASKS_ROOT"]


def _file_locks():
    return current_app.extensions["file_locks"]


def _task_payload() -> TaskFile:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict) or not isinstance(payload.get("metadata"), dict):
        raise ValueError("Task metadata is required")
    return TaskFile.from_dict(payload)


@tasks_bp.route("", methods=["GET"])
def list_tasks():
    """Return every task of a repository, most recently updated first."""
    repository = _repository()
    task_files = []
    for path in list_task_files(tasks_dir(_tasks_root(), repository)):
        try:
            task_files.append(read_task_file(path, repository))
        except (OSError, ValueError):
            logging.error("Skipping unreadable task file %s", path, exc_info=True)
    task_files.sort(key=lambda task_file: task_file.metadata.updated_at or "", reverse=True)
    response = jsonify([task_file.to_dict() for task_file in task_files])
    response.headers.update(NO_CACHE_HEADERS)
    return response


@tasks_bp.route("", methods=["POST"])
def create_task():
    repository = _repository()
    task_file = _task_payload()
    if not task_file.metadata.repository:
        task_file.metadata.repository = repository
    path = task_path(_tasks_root(), repository, task_file.metadata.id)
    try:
        _file_locks().create(path, render_task_file(task_file))
    except FileExistsError:
        return json_error("Task file already exists", 409)
    current_app.logger.info("Created task %s in %s", task_file.metadata.id, repository)
    return jsonify(task_file.to_dict()), 201


@tasks_bp.route("/<task_id>", methods=["GET"])
def get_task(task_id: str):
    repository = _repository()
    path = task_path(_tasks_root(), repository, task_id)
    if not path.is_file():
        return json_error("Task not found", 404)
    response = jsonify(read_task_file(path, repository).to_dict())
    response.headers.update(NO_CACHE_HEADERS)
    return response


@tasks_bp.route("/<task_id>/html", methods=["GET"])
def get_task_html(task_id: str):
    repository = _repository()
    path = task_path(_tasks_root(), repository, task_id)
    if not path.is_file():
        return json_error("Task not found", 404)
    task_file = read_task_file(path, repository)
    return jsonify(
        {
            "id": task_file.metadata.id,
            "title": task_file.metadata.title,
            "html": str(render_task_description_html(task_file.content)),
        }
    )


@tasks_bp.route("/<task_id>", methods=["PUT"])
def update_task(task_id: str):
    repository = _repository()
    task_file = _task_payload()
    if task_file.metadata.id != task_id:
        return json_error("Task ID mismatch", 400)
    if not task_file.metadata.repository:
        task_file.metadata.repository = repository
    path = task_path(_tasks_root(), repository, task_id)
    try:
        _file_locks().update(path, render_task_file(task_file))
    except FileNotFoundError:
        return json_error("Task not found", 404)
    return jsonify(task_file.to_dict())


@tasks_bp.route("/<task_id>", methods=["DELETE"])
def delete_task(task_id: str):
    repository = _repository()
    path = task_path(_tasks_root(), repository, task_id)
    try:
        _file_locks().delete(path)
    except FileNotFoundError:
        return json_error("Task not found", 404)
    current_app.logger.info("Deleted task %s from %s", task_id, repository)
    return jsonify({"success": True})
