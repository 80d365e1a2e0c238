"""GitHub proxy routes authenticated with the user's provider token."""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify, request, session

from forms import (
    FetchAllRepositoriesForm,
    RepositoriesQueryForm,
    RepositoryEventsForm,
    RepositorySearchForm,
    first_error,
)
from routes import json_error, register_api_error_handler
from services.github_service import (
    MISSING_RESOURCE_STATUS_CODES,
    GitHubError,
    GitHubNetworkError,
    get_all_repositories,
    get_current_user,
    get_rate_limit,
    get_repositories,
    get_repository_events,
    merge_pull_request,
    search_repositories,
    test_connection,
)
from services.issue_comments import post_korean_comment
from services.korean_templates import generate_korean_comment
from utils.github_token import (
    clear_provider_token,
    get_github_token,
    github_token_required,
    resolve_request_token,
    store_provider_token,
)

github_bp = Blueprint("github", __name__, url_prefix="/api")
register_api_error_handler(github_bp)

MERGE_METHODS = {"merge", "squash", "rebase"}


def _github_error_response(error: GitHubError):
    if isinstance(error, GitHubNetworkError):
        status = 504 if error.timeout else 502
        return "Unable to reach GitHub. Please try again.", status
    status = error.status_code or 500
    if status in (401, 403):
        message = "GitHub authentication failed. Please sign in again."
    elif status in MISSING_RESOURCE_STATUS_CODES:
        message = "Requested GitHub resource was not found."
    elif status == 422:
        message = str(error)
    else:
        logging.error("GitHubError encountered: %s", error, exc_info=True)
        message = "An error occurred while communicating with GitHub."
    return message, status


@github_bp.errorhandler(GitHubError)
def _handle_github_error(error: GitHubError):
    if error.status_code == 401:
        clear_provider_token(session)
    message, status = _github_error_response(error)
    return json_error(message, status)


@github_bp.route("/auth/session", methods=["POST"])
def create_session():
    """Keep the provider token handed over by the auth provider."""
    payload = request.get_json(silent=True) or {}
    token = str(payload.get("provider_token") or "").strip()
    if not token:
        return json_error("Provider token is required.", 400)
    if not test_connection(token):
        return json_error("GitHub rejected the provider token.", 401)
    store_provider_token(session, token)
    return jsonify({"success": True})


@github_bp.route("/auth/logout", methods=["POST"])
def logout():
    clear_provider_token(session)
    return jsonify({"success": True})


@github_bp.route("/github/repositories", methods=["GET"])
@github_token_required
def list_repositories(token: str):
    form = RepositoriesQueryForm(request.args)
    if not form.validate():
        return json_error(first_error(form), 400)
    page = get_repositories(
        token,
        page=form.page.data,
        per_page=form.per_page.data,
        sort=form.sort.data,
        direction=form.direction.data,
        type_=form.type.data,
    )
    return jsonify(page.to_dict())


@github_bp.route("/github/repositories", methods=["POST"])
@github_token_required
def repositories_action(token: str):
    payload = request.get_json(silent=True) or {}
    action = payload.get("action")

    if action == "fetchAll":
        form = FetchAllRepositoriesForm(data=payload)
        if not form.validate():
            return json_error(first_error(form), 400)
        repositories = get_all_repositories(
            token,
            sort=form.sort.data,
            direction=form.direction.data,
            type_=form.type.data,
            max_pages=form.maxPages.data,
        )
        return jsonify(
            {
                "repositories": [repo.to_dict() for repo in repositories],
                "total_count": len(repositories),
                "message": f"Fetched {len(repositories)} repositories",
            }
        )

    if action == "search":
        form = RepositorySearchForm(data=payload)
        if not form.validate():
            return json_error(first_error(form), 400)
        result = search_repositories(
            token,
            form.query.data,
            sort=form.sort.data,
            order=form.order.data,
            per_page=form.per_page.data,
            page=form.page.data,
        )
        return jsonify(result.to_dict())

    return json_error("Invalid action. Supported actions: fetchAll, search", 400)


@github_bp.route("/github/rate-limit", methods=["GET"])
@github_token_required
def rate_limit(token: str):
    payload = get_rate_limit(token)
    core = (payload.get("resources") or {}).get("core") or payload.get("rate") or {}
    if "remaining" in core:
        reset_at = datetime.fromtimestamp(int(core.get("reset") or 0), tz=timezone.utc)
        current_app.extensions["activity_log"].log_github_rate_limit(
            int(core["remaining"]), reset_at.isoformat().replace("+00:00", "Z")
        )
    return jsonify(payload)


@github_bp.route("/github/repos/<owner>/<repo>/events", methods=["GET"])
@github_token_required
def repository_events(token: str, owner: str, repo: str):
    form = RepositoryEventsForm(request.args)
    if not form.validate():
        return json_error(first_error(form), 400)
    events = get_repository_events(token, owner, repo, per_page=form.per_page.data)
    current_app.extensions["activity_log"].log_github_api_call(
        f"/repos/{owner}/{repo}/events", "GET"
    )
    return jsonify(events)


@github_bp.route("/github/user", methods=["GET"])
@github_token_required
def current_user(token: str):
    return jsonify(get_current_user(token))


@github_bp.route("/github/repos/<owner>/<repo>/pulls/<int:number>/merge", methods=["PUT"])
@github_token_required
def merge_pull(token: str, owner: str, repo: str, number: int):
    payload = request.get_json(silent=True) or {}
    merge_method = payload.get("merge_method") or "merge"
    if merge_method not in MERGE_METHODS:
        return json_error("merge_method must be one of: merge, squash, rebase", 400)
    result = merge_pull_request(
        token,
        owner,
        repo,
        number,
        commit_title=payload.get("commit_title"),
        commit_message=payload.get("commit_message"),
        merge_method=merge_method,
    )
    current_app.logger.info("Merged %s/%s#%s", owner, repo, number)
    return jsonify(result)


@github_bp.route("/github/repos/<owner>/<repo>/issues/<int:number>/korean-comment", methods=["POST"])
def korean_comment(owner: str, repo: str, number: int):
    """Render a Korean status comment and post it unless ``preview`` is set."""
    payload = request.get_json(silent=True) or {}
    comment_type = payload.get("type")
    variables = payload.get("variables") or {}
    if not isinstance(variables, dict):
        return json_error("variables must be an object", 400)
    try:
        body = generate_korean_comment(comment_type, variables)
    except ValueError as error:
        return json_error(str(error), 400)
    if payload.get("preview"):
        return jsonify({"success": True, "body": body})

    token = resolve_request_token()
    if not token:
        try:
            token = get_github_token()
        except RuntimeError:
            logging.warning("No GitHub App credentials available for posting comments", exc_info=True)
            return json_error("GitHub token not found", 401)
    comment = post_korean_comment(token, f"{owner}/{repo}", number, comment_type, variables)
    return jsonify({"success": True, "body": body, "comment": comment}), 201
