"""HTTP access to the workbench backend API (tasks and work logs)."""

from __future__ import annotations

import json
import logging
from http.client import RemoteDisconnected
from typing import Any, Mapping, Optional, Protocol, Tuple
from urllib import request as urllib_request, error as urllib_error
from urllib.parse import urlencode

DEFAULT_TIMEOUT_SECONDS = 10


class BackendError(RuntimeError):
    """Raised when the backend answers with a non-2xx status."""

    retryable = False

    def __init__(self, message: str, status_code: Optional[int] = None, response: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class BackendNetworkError(BackendError):
    """The backend could not be reached."""

    retryable = True


class BackendTimeoutError(BackendNetworkError):
    """The backend did not answer within the client timeout."""


class Transport(Protocol):
    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        payload: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Tuple[int, Any]: ...


def error_from_response(status: int, body: Any, action: str) -> BackendError:
    message = None
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
    return BackendError(message or f"Failed to {action}: HTTP {status}", status, body)


class BackendClient:
    """urllib based transport used by the task store and work-log client."""

    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT_SECONDS):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        payload: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Tuple[int, Any]:
        url = f"{self.base_url}{path}"
        if params:
            url = f"{url}?{urlencode({k: v for k, v in params.items() if v is not None})}"
        data = None
        request_headers = {"Accept": "application/json", **(headers or {})}
        if payload is not None:
            data = json.dumps(payload).encode("utf-8")
            request_headers["Content-Type"] = "application/json"

        request = urllib_request.Request(url, data=data, headers=request_headers, method=method)
        try:
            with urllib_request.urlopen(request, timeout=self.timeout) as response:
                status = response.getcode()
                raw = response.read()
        except urllib_error.HTTPError as error:
            status = error.code
            raw = error.read()
        except TimeoutError as error:
            raise BackendTimeoutError("Request timeout") from error
        except RemoteDisconnected as error:
            raise BackendNetworkError("Backend closed the connection unexpectedly.") from error
        except urllib_error.URLError as error:
            if isinstance(error.reason, TimeoutError):
                raise BackendTimeoutError("Request timeout") from error
            raise BackendNetworkError("Network connection failed") from error

        text = raw.decode("utf-8") if raw else ""
        if status >= 400:
            logging.warning(
                "Backend API call failed",
                extra={"method": method, "url": url, "status": status, "body": text[:500]},
            )
        try:
            body = json.loads(text) if text else None
        except json.JSONDecodeError:
            body = {"message": text}
        return status, body
