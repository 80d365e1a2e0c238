"""Daily work-log files: append entries and list the days on record."""
from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from routes import json_error, register_api_error_handler
from services.work_log_files import (
    daily_log_header,
    format_log_entry,
    list_daily_logs,
    log_file_path,
    today,
    validate_repository,
    validate_work_log_entry,
)

work_logs_bp = Blueprint("work_logs", __name__, url_prefix="/api/work-logs")
register_api_error_handler(work_logs_bp)


@work_logs_bp.route("/entry", methods=["POST"])
@work_logs_bp.route("", methods=["POST"])
def append_entry():
    """Append one entry to today's log of the repository.

    The header is written only when the day's file is created; existing
    content is never rewritten.
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    if not payload.get("repository") or not payload.get("entry"):
        return json_error("Repository and entry are required", 400)
    repository = validate_repository(payload["repository"])
    entry = validate_work_log_entry(payload["entry"])

    date = today()
    path = log_file_path(current_app.config["LOGS_ROOT"], repository, date)
    created = current_app.extensions["file_locks"].append(
        path, format_log_entry(entry), header=daily_log_header(repository, date)
    )
    if created:
        current_app.logger.info("Started work log %s for %s", date, repository)
    return jsonify({"success": True, "date": date, "created": created})


@work_logs_bp.route("", methods=["GET"])
def list_logs():
    repository = request.args.get("repository")
    if not repository:
        return json_error("Repository parameter is required", 400)
    logs = list_daily_logs(
        current_app.config["LOGS_ROOT"],
        validate_repository(repository),
        request.args.get("startDate"),
        request.args.get("endDate"),
    )
    return jsonify([log.to_dict() for log in logs])
