"""Shared helpers for route blueprints."""

from __future__ import annotations

import logging
from urllib.parse import urlparse

from flask import Blueprint, jsonify, redirect, request, url_for
from werkzeug.exceptions import HTTPException

__all__ = ["json_error", "error_status", "register_api_error_handler", "safe_redirect"]


def safe_redirect(referrer: str | None, fallback_endpoint: str, **values):
    """Redirect to referrer when it matches the current host, otherwise fallback."""
    if not referrer:
        return redirect(url_for(fallback_endpoint, **values))
    ref_url = urlparse(request.host_url)
    test_url = urlparse(referrer)
    if test_url.scheme in ("http", "https") and ref_url.netloc == test_url.netloc:
        return redirect(referrer)
    return redirect(url_for(fallback_endpoint, **values))


def json_error(message: str, status: int, **extra):
    return jsonify({"success": False, "message": message, **extra}), status


def error_status(error: Exception) -> int:
    if isinstance(error, FileExistsError):
        return 409
    if isinstance(error, (LookupError, FileNotFoundError)):
        return 404
    if isinstance(error, ValueError):
        return 400
    return 500


def _handle_api_error(error: Exception):
    if isinstance(error, HTTPException):
        return json_error(error.description or error.name, error.code or 500)
    status = error_status(error)
    if status == 500:
        logging.exception("Unhandled API error on %s %s", request.method, request.path)
        return json_error("Internal server error", 500)
    return json_error(str(error), status)


def register_api_error_handler(blueprint: Blueprint) -> None:
    """Answer every failure raised inside ``blueprint`` with the JSON error shape."""
    blueprint.register_error_handler(Exception, _handle_api_error)
