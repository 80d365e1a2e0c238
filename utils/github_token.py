"""
utils/github_token.py
GitHub credentials: the user's OAuth provider token kept (encrypted) in the
session, and a GitHub App installation token with auto-refresh caching.
"""

import logging
import os
import time
from functools import wraps

from flask import jsonify, request, session
from github import GithubIntegration
from github.GithubException import GithubException

from services.github_service import decrypt_token, encrypt_token

PROVIDER_TOKEN_SESSION_KEY = "provider_token"
TOKEN_REFRESH_MARGIN_SECONDS = 60

# In-memory installation token cache (shared across requests)
_installation_token_cache = {"token": None, "expires_at": 0}


def store_provider_token(target_session, token):
    target_session[PROVIDER_TOKEN_SESSION_KEY] = encrypt_token(token)


def clear_provider_token(target_session):
    target_session.pop(PROVIDER_TOKEN_SESSION_KEY, None)


def extract_github_token(target_session):
    """Return the decrypted provider token of a session, or None."""
    if not target_session:
        return None
    return decrypt_token(target_session.get(PROVIDER_TOKEN_SESSION_KEY)) or None


def resolve_request_token():
    """Bearer header first, then the provider token in the session."""
    auth_header = request.headers.get("Authorization", "").strip()
    if auth_header.lower().startswith("bearer "):
        token = auth_header[7:].strip()
        if token:
            return token
    return extract_github_token(session)


def github_token_required(view):
    """Answer 401 unless the request carries a GitHub token.

    The token is passed to the view as the ``token`` keyword argument.
    """

    @wraps(view)
    def wrapper(*args, **kwargs):
        token = resolve_request_token()
        if not token:
            return jsonify({"success": False, "message": "GitHub token not found"}), 401
        return view(*args, token=token, **kwargs)

    return wrapper


def _installation_credentials():
    private_key_path = (os.getenv("GITHUB_PRIVATE_KEY_PATH") or "").strip()
    app_id_raw = (os.getenv("GITHUB_APP_ID") or "").strip()
    installation_id_raw = (os.getenv("GITHUB_INSTALLATION_ID") or "").strip()

    if not private_key_path or not app_id_raw or not installation_id_raw:
        raise RuntimeError(
            "Missing required GitHub App environment variables: "
            "GITHUB_PRIVATE_KEY_PATH, GITHUB_APP_ID, GITHUB_INSTALLATION_ID"
        )
    if not os.path.exists(private_key_path):
        raise RuntimeError(
            f"GitHub App private key file not found at '{private_key_path}'."
        )
    try:
        app_id = int(app_id_raw)
        installation_id = int(installation_id_raw)
    except ValueError as exc:  # pragma: no cover - configuration error
        raise RuntimeError(
            "GITHUB_APP_ID and GITHUB_INSTALLATION_ID must be numeric."
        ) from exc

    with open(private_key_path, "r") as key_file:
        return app_id, installation_id, key_file.read()


def _generate_installation_token():
    app_id, installation_id, private_key = _installation_credentials()
    integration = GithubIntegration(app_id, private_key)
    try:
        token_data = integration.get_access_token(installation_id)
    except GithubException as exc:
        logging.error(
            "GitHub rejected installation token request (status %s): %s",
            getattr(exc, "status", "unknown"),
            getattr(exc, "data", {}),
        )
        raise RuntimeError(
            "Unable to generate GitHub App installation token. "
            "Verify that the app is installed and the installation id is correct."
        ) from exc

    _installation_token_cache["token"] = token_data.token
    _installation_token_cache["expires_at"] = token_data.expires_at.timestamp()
    logging.info("Generated new GitHub App installation token.")
    return token_data.token


def get_github_token():
    """Return a GitHub App installation token, refreshing it shortly before expiry."""
    if (
        _installation_token_cache["token"]
        and time.time() < _installation_token_cache["expires_at"] - TOKEN_REFRESH_MARGIN_SECONDS
    ):
        return _installation_token_cache["token"]
    return _generate_installation_token()
