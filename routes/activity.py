"""Activity log routes: record, filter, summarize and export events."""
from __future__ import annotations

from datetime import timedelta

from flask import Blueprint, Response, current_app, jsonify, request

from forms import ActivityLogEntryForm, ActivityLogExportForm, ActivityLogQueryForm, first_error
from models.activity import ActivityLevel, ActivityLogFilter, ActivityType, parse_timestamp
from routes import json_error, register_api_error_handler

activity_bp = Blueprint("activity", __name__, url_prefix="/api/activity")
register_api_error_handler(activity_bp)

EXPORT_CONTENT_TYPES = {"json": "application/json", "csv": "text/csv; charset=utf-8"}


def _activity_log():
    return current_app.extensions["activity_log"]


def _parse_date(value: str | None, label: str, *, end_of_day: bool = False):
    if not value:
        return None
    try:
        parsed = parse_timestamp(value)
    except ValueError:
        raise ValueError(f"{label} must be an ISO-8601 date") from None
    # a bare end date covers that whole day
    if end_of_day and len(value) == len("YYYY-MM-DD"):
        parsed += timedelta(days=1, microseconds=-1)
    return parsed


def _filters_from(form: ActivityLogQueryForm) -> ActivityLogFilter:
    return ActivityLogFilter(
        type=None if form.type.data == "all" else ActivityType(form.type.data),
        level=None if form.level.data == "all" else ActivityLevel(form.level.data),
        start=_parse_date(form.startDate.data, "startDate"),
        end=_parse_date(form.endDate.data, "endDate", end_of_day=True),
        search_query=form.q.data or None,
        repository_id=form.repositoryId.data,
    )


@activity_bp.route("", methods=["GET"])
def list_activity():
    form = ActivityLogQueryForm(request.args)
    if not form.validate():
        return json_error(first_error(form), 400)
    logs = _activity_log().get_logs(_filters_from(form))
    return jsonify({"logs": [log.to_dict() for log in logs], "total": len(logs)})


@activity_bp.route("", methods=["POST"])
def record_activity():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    form = ActivityLogEntryForm(data=payload)
    if not form.validate():
        return json_error(first_error(form), 400)
    metadata = payload.get("metadata")
    if metadata is not None and not isinstance(metadata, dict):
        return json_error("Metadata must be an object", 400)
    entry = _activity_log().log(
        form.type.data, form.level.data, form.title.data, form.description.data, metadata
    )
    return jsonify(entry.to_dict()), 201


@activity_bp.route("/statistics", methods=["GET"])
def activity_statistics():
    return jsonify(_activity_log().get_statistics())


@activity_bp.route("/export", methods=["GET"])
def export_activity():
    form = ActivityLogExportForm(request.args)
    if not form.validate():
        return json_error(first_error(form), 400)
    export_format = form.format.data
    body = _activity_log().export_logs(
        export_format, include_metadata=form.includeMetadata.data, filters=_filters_from(form)
    )
    return Response(
        body,
        content_type=EXPORT_CONTENT_TYPES[export_format],
        headers={"Content-Disposition": f"attachment; filename=activity-logs.{export_format}"},
    )


@activity_bp.route("", methods=["DELETE"])
def clear_activity():
    _activity_log().clear_logs()
    return jsonify({"success": True})
