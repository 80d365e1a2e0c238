"""Utilities for interacting with the GitHub REST API."""

from __future__ import annotations

import base64
import hashlib
import json
import logging
import re
import time
from datetime import datetime, timezone
from http.client import RemoteDisconnected
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib import request as urllib_request, error as urllib_error
from urllib.parse import quote, urlencode

from cryptography.fernet import Fernet, InvalidToken
from flask import current_app

from models.repository import RateLimitInfo, RepositoriesPage, Repository, SearchResult

GITHUB_API_BASE = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
USER_AGENT = "Workbench-Integration/1.0"
REQUEST_TIMEOUT_SECONDS = 20
MISSING_RESOURCE_STATUS_CODES = {404, 410}
DEFAULT_PER_PAGE = 30
MAX_PER_PAGE = 100
MAX_PAGE = 1000
PAGE_FETCH_DELAY_SECONDS = 0.1
_PAGE_PARAM = re.compile(r"[&?]page=(\d+)")


class GitHubError(RuntimeError):
    """Raised when a GitHub API call fails."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response: Optional[Any] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class GitHubNetworkError(GitHubError):
    """GitHub could not be reached or did not answer in time."""

    retryable = True

    def __init__(self, message: str, *, timeout: bool = False):
        super().__init__(message)
        self.timeout = timeout


def _get_fernet() -> Fernet:
    secret_key = current_app.config.get("SECRET_KEY")
    if not secret_key:
        raise RuntimeError("SECRET_KEY is required to encrypt GitHub tokens")
    if isinstance(secret_key, str):
        secret_bytes = secret_key.encode("utf-8")
    else:
        secret_bytes = secret_key
    digest = hashlib.sha256(secret_bytes).digest()
    encoded_key = base64.urlsafe_b64encode(digest)
    return Fernet(encoded_key)


def encrypt_token(token: str) -> str:
    if not token:
        raise ValueError("Token must not be empty")
    fernet = _get_fernet()
    return fernet.encrypt(token.encode("utf-8")).decode("ascii")


def decrypt_token(token_encrypted: Optional[str | bytes]) -> Optional[str]:
    if not token_encrypted:
        return None
    if isinstance(token_encrypted, str):
        token_encrypted = token_encrypted.encode("ascii")
    fernet = _get_fernet()
    try:
        return fernet.decrypt(token_encrypted).decode("utf-8")
    except InvalidToken:  # pragma: no cover - shouldn't happen unless SECRET_KEY rotated
        logging.error("Unable to decrypt GitHub token due to invalid token or key.")
        return None


def _headers(token: str, *, accept: Optional[str] = None) -> Dict[str, str]:
    return {
        "Authorization": f"Bearer {token}",
        "Accept": accept or "application/vnd.github+json",
        "X-GitHub-Api-Version": GITHUB_API_VERSION,
        "User-Agent": USER_AGENT,
        "Content-Type": "application/json",
    }


def _request(
    method: str,
    endpoint: str,
    token: str,
    payload: Optional[dict] = None,
    *,
    params: Optional[Mapping[str, Any]] = None,
    accept: Optional[str] = None,
) -> Tuple[int, Any, Dict[str, str]]:
    url = endpoint if endpoint.startswith("http") else f"{GITHUB_API_BASE}{endpoint}"
    if params:
        url = f"{url}?{urlencode(params)}"
    data = None
    if payload is not None:
        data = json.dumps(payload).encode("utf-8")

    request = urllib_request.Request(
        url,
        data=data,
        headers=_headers(token, accept=accept),
        method=method,
    )
    try:
        with urllib_request.urlopen(request, timeout=REQUEST_TIMEOUT_SECONDS) as response:
            status = response.getcode()
            raw = response.read()
            headers = dict(response.headers.items())
    except urllib_error.HTTPError as error:
        status = error.code
        raw = error.read()
        headers = dict(error.headers.items()) if error.headers else {}
    except TimeoutError as error:
        raise GitHubNetworkError("GitHub did not respond in time.", timeout=True) from error
    except RemoteDisconnected as error:
        raise GitHubNetworkError("GitHub closed the connection unexpectedly.") from error
    except urllib_error.URLError as error:
        if isinstance(error.reason, TimeoutError):
            raise GitHubNetworkError("GitHub did not respond in time.", timeout=True) from error
        raise GitHubNetworkError("Unable to reach GitHub.") from error

    text = raw.decode("utf-8") if raw else ""
    if status >= 400:
        logging.warning(
            "GitHub API call failed",
            extra={"method": method, "url": url, "status": status, "body": text[:500]},
        )
    try:
        body = json.loads(text) if text else {}
    except json.JSONDecodeError:
        body = {"message": text} if status >= 400 else {}
    return status, body, headers


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


def _raise_for_status(status: int, body: Any) -> None:
    if 200 <= status < 300:
        return
    message = body.get("message") if isinstance(body, dict) else None
    raise GitHubError(message or f"GitHub API error: {status}", status, body)


def parse_link_header(link_header: Optional[str]) -> Dict[str, str]:
    """Map each ``rel`` of a ``Link`` header to its URL."""
    links: Dict[str, str] = {}
    if not link_header:
        return links
    for part in link_header.split(","):
        sections = part.split(";")
        if len(sections) < 2:
            continue
        url = sections[0].strip().lstrip("<").rstrip(">")
        for attribute in sections[1:]:
            match = re.search(r'rel="([^"]+)"', attribute)
            if match:
                for rel in match.group(1).split():
                    links[rel] = url
    return links


def extract_page_from_url(url: str) -> int:
    match = _PAGE_PARAM.search(url)
    return int(match.group(1)) if match else 1


def _rate_limit_from_headers(headers: Mapping[str, str]) -> RateLimitInfo:
    try:
        remaining = int(_header(headers, "X-RateLimit-Remaining") or 0)
    except ValueError:
        remaining = 0
    try:
        reset = int(_header(headers, "X-RateLimit-Reset") or 0)
    except ValueError:
        reset = 0
    reset_at = datetime.fromtimestamp(reset, tz=timezone.utc)
    return RateLimitInfo(
        remaining=remaining,
        reset_at=reset_at.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
    )


def estimate_total_count(
    page: int, per_page: int, returned: int, links: Mapping[str, str]
) -> int:
    """Approximate the number of repositories across all pages.

    ``/user/repos`` has no total, so a ``last`` link gives an exact figure and
    otherwise a full page is assumed to have at least one more item after it.
    """
    if "last" in links:
        last_page = extract_page_from_url(links["last"])
        return (last_page - 1) * per_page + returned
    if returned == per_page:
        return page * per_page + 1
    return (page - 1) * per_page + returned


def test_connection(token: str) -> bool:
    try:
        status, _, _ = _request("GET", "/user", token)
    except GitHubNetworkError:
        return False
    return 200 <= status < 300


def get_current_user(token: str) -> Dict[str, Any]:
    status, payload, _ = _request("GET", "/user", token)
    _raise_for_status(status, payload)
    return payload


def get_rate_limit(token: str) -> Dict[str, Any]:
    status, payload, _ = _request("GET", "/rate_limit", token)
    _raise_for_status(status, payload)
    return payload


def get_repositories(
    token: str,
    page: int = 1,
    per_page: int = DEFAULT_PER_PAGE,
    sort: str = "updated",
    direction: str = "desc",
    type_: str = "all",
) -> RepositoriesPage:
    """Fetch one page of the authenticated user's repositories."""
    if page < 1 or page > MAX_PAGE:
        raise ValueError(f"Page must be between 1 and {MAX_PAGE}")
    if per_page < 1:
        raise ValueError(f"Per page must be between 1 and {MAX_PER_PAGE}")
    per_page = min(per_page, MAX_PER_PAGE)

    status, payload, headers = _request(
        "GET",
        "/user/repos",
        token,
        params={
            "page": page,
            "per_page": per_page,
            "sort": sort,
            "direction": direction,
            "type": type_,
        },
    )
    _raise_for_status(status, payload)
    if not isinstance(payload, list):
        raise GitHubError("Unexpected repository listing payload.", status, payload)

    links = parse_link_header(_header(headers, "Link"))
    has_next = "next" in links
    return RepositoriesPage(
        repositories=[Repository.from_github(repo) for repo in payload],
        total_count=estimate_total_count(page, per_page, len(payload), links),
        has_next_page=has_next,
        next_cursor=str(page + 1) if has_next else None,
        rate_limit=_rate_limit_from_headers(headers),
    )


def get_all_repositories(
    token: str,
    sort: str = "updated",
    direction: str = "desc",
    type_: str = "all",
    max_pages: int = 10,
) -> list[Repository]:
    """Walk the repository pages in order, pausing briefly between fetches."""
    repositories: list[Repository] = []
    page = 1
    has_next = True
    while has_next and page <= max_pages:
        result = get_repositories(
            token,
            page=page,
            per_page=MAX_PER_PAGE,
            sort=sort,
            direction=direction,
            type_=type_,
        )
        repositories.extend(result.repositories)
        has_next = result.has_next_page
        page += 1
        if has_next and page <= max_pages:
            time.sleep(PAGE_FETCH_DELAY_SECONDS)
    return repositories


def search_repositories(
    token: str,
    query: str,
    sort: str = "updated",
    order: str = "desc",
    per_page: int = DEFAULT_PER_PAGE,
    page: int = 1,
) -> SearchResult:
    if not query:
        raise ValueError("Search query is required")
    status, payload, _ = _request(
        "GET",
        "/search/repositories",
        token,
        params={
            "q": query,
            "sort": sort,
            "order": order,
            "per_page": min(per_page, MAX_PER_PAGE),
            "page": page,
        },
    )
    _raise_for_status(status, payload)
    return SearchResult(
        repositories=[Repository.from_github(repo) for repo in payload.get("items", [])],
        total_count=payload.get("total_count", 0),
        incomplete_results=bool(payload.get("incomplete_results", False)),
    )


def get_repository(token: str, owner: str, repo: str) -> Repository:
    status, payload, _ = _request("GET", f"/repos/{quote(owner)}/{quote(repo)}", token)
    _raise_for_status(status, payload)
    return Repository.from_github(payload)


def get_repository_events(
    token: str, owner: str, repo: str, per_page: int = DEFAULT_PER_PAGE
) -> list[Dict[str, Any]]:
    """Recent public events of a repository, newest first."""
    if per_page < 1:
        raise ValueError(f"Per page must be between 1 and {MAX_PER_PAGE}")
    status, payload, _ = _request(
        "GET",
        f"/repos/{quote(owner)}/{quote(repo)}/events",
        token,
        params={"per_page": min(per_page, MAX_PER_PAGE)},
    )
    if status in MISSING_RESOURCE_STATUS_CODES:
        raise GitHubError("Repository not found", status, payload)
    _raise_for_status(status, payload)
    return payload or []


def comment_on_issue(token: str, owner: str, repo: str, issue_number: int, body: str) -> Dict[str, Any]:
    status, payload, _ = _request(
        "POST",
        f"/repos/{quote(owner)}/{quote(repo)}/issues/{issue_number}/comments",
        token,
        payload={"body": body},
    )
    if status in MISSING_RESOURCE_STATUS_CODES:
        raise GitHubError("Issue not found", status, payload)
    _raise_for_status(status, payload)
    return payload


def merge_pull_request(
    token: str,
    owner: str,
    repo: str,
    pull_number: int,
    *,
    commit_title: Optional[str] = None,
    commit_message: Optional[str] = None,
    merge_method: str = "merge",
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"merge_method": merge_method or "merge"}
    if commit_title is not None:
        payload["commit_title"] = commit_title
    if commit_message is not None:
        payload["commit_message"] = commit_message

    status, data, _ = _request(
        "PUT",
        f"/repos/{quote(owner)}/{quote(repo)}/pulls/{pull_number}/merge",
        token,
        payload=payload,
    )
    _raise_for_status(status, data)
    return data
