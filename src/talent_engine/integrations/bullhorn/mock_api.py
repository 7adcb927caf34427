"""
In-process Bullhorn API emulation for tests and local development.

Use as ``httpx.AsyncClient(transport=httpx.MockTransport(api.handler))``.
"""

import json
import re
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

_RESOURCE_PATTERN = re.compile(
    r"/(?P<resource>jobs|candidates|placements)(?:/(?P<item>[^/]+))?(?:/(?P<action>shortlist|submissions))?$"
)


class MockBullhornApi:
    """Emulates the Bullhorn OAuth token endpoint and REST resources."""

    def __init__(
        self,
        jobs: Sequence[Mapping[str, Any]] = (),
        candidates: Sequence[Mapping[str, Any]] = (),
        placements: Sequence[Mapping[str, Any]] = (),
        shortlists: Mapping[str, Sequence[Mapping[str, Any]]] | None = None,
        expires_in: int = 3600,
    ) -> None:
        self._resources: dict[str, list[dict[str, Any]]] = {
            "jobs": [dict(job) for job in jobs],
            "candidates": [dict(candidate) for candidate in candidates],
            "placements": [dict(placement) for placement in placements],
        }
        self._shortlists = {key: list(value) for key, value in (shortlists or {}).items()}
        self._expires_in = expires_in
        self._token_counter = 0
        self._valid_access_tokens: set[str] = set()
        self._valid_refresh_tokens: set[str] = set()
        self._token_failure_status: int | None = None
        self.token_requests: list[dict[str, Any]] = []
        self.resource_requests: list[str] = []
        self.submissions: list[dict[str, Any]] = []

    def revoke_access_tokens(self) -> None:
        """Make every issued access token answer 401."""
        self._valid_access_tokens.clear()

    def fail_token_requests(self, status_code: int | None) -> None:
        """Answer token requests with ``status_code``; None restores normal behaviour."""
        self._token_failure_status = status_code

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/token"):
            return self._handle_token(request)

        match = _RESOURCE_PATTERN.search(request.url.path)
        if match is None:
            return httpx.Response(404, json={"error": "Unknown resource"})

        self.resource_requests.append(request.url.path)
        authorization = request.headers.get("Authorization", "")
        token = authorization.removeprefix("Bearer ").strip()
        if token not in self._valid_access_tokens:
            return httpx.Response(401, json={"error": "invalid_token"})

        resource, item, action = match.group("resource"), match.group("item"), match.group("action")
        if action == "shortlist" and request.method == "GET":
            return httpx.Response(200, json={"data": self._shortlists.get(item or "", [])})
        if action == "submissions" and request.method == "POST":
            body = json.loads(request.content or b"{}")
            self.submissions.append({"job_id": item, **body})
            ids = [f"sub-{item}-{candidate_id}" for candidate_id in body.get("candidateIds", [])]
            return httpx.Response(200, json={"data": {"submissionIds": ids}})
        if item is None:
            return httpx.Response(200, json=self._resources[resource])

        for record in self._resources[resource]:
            if str(record.get("id")) == item:
                return httpx.Response(200, json={"data": record})
        return httpx.Response(404, json={"error": "Not found"})

    def _handle_token(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content or b"{}")
        self.token_requests.append(body)

        if self._token_failure_status is not None:
            return httpx.Response(self._token_failure_status, json={"error": "token_error"})

        grant_type = body.get("grant_type")
        if grant_type == "refresh_token" and body.get("refresh_token") not in self._valid_refresh_tokens:
            return httpx.Response(400, json={"error": "invalid_grant"})
        if grant_type not in ("authorization_code", "refresh_token"):
            return httpx.Response(400, json={"error": "unsupported_grant_type"})

        self._token_counter += 1
        access_token = f"access-{self._token_counter}"
        refresh_token = f"refresh-{self._token_counter}"
        self._valid_access_tokens.add(access_token)
        self._valid_refresh_tokens.add(refresh_token)
        return httpx.Response(
            200,
            json={
                "access_token": access_token,
                "refresh_token": refresh_token,
                "expires_in": self._expires_in,
            },
        )
