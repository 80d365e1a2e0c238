"""Backend transport that talks to the Flask app through its test client."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Tuple


class FlaskTestTransport:
    """Route backend client calls to ``app.test_client()``.

    Every call is recorded in ``calls`` as ``(method, path, params, payload)``.
    """

    def __init__(self, client, prefix: str = "/api"):
        self.client = client
        self.prefix = prefix
        self.calls: list[tuple[str, str, dict, Any]] = []

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        payload: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Tuple[int, Any]:
        query = {key: value for key, value in (params or {}).items() if value is not None}
        self.calls.append((method, path, query, payload))
        response = self.client.open(
            f"{self.prefix}{path}",
            method=method,
            query_string=query,
            json=payload,
            headers=dict(headers or {}),
        )
        return response.status_code, response.get_json(silent=True)

    def calls_to(self, method: str, path: str) -> list[tuple[str, str, dict, Any]]:
        return [call for call in self.calls if call[0] == method and call[1] == path]
