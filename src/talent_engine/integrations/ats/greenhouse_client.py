"""
Greenhouse Harvest API client.

Harvest authenticates with HTTP Basic auth: the API key is the username and
the password is empty. Write operations require an ``On-Behalf-Of`` user id.
"""

from collections.abc import Sequence
from typing import Any

import httpx

from talent_engine.integrations.ats.interface import AtsCandidateSummary
from talent_engine.integrations.errors import AtsRequestError
from talent_engine.shared.logging import get_logger

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://harvest.greenhouse.io/v1"
# Largest page Harvest serves.
MAX_PAGE_SIZE = 500


def split_full_name(full_name: str) -> tuple[str, str]:
    """Split a display name into Harvest's required first and last name.

    A single-word name is used for both parts, since Harvest rejects an
    empty ``last_name``.
    """
    first_name, _, last_name = full_name.strip().partition(" ")
    return first_name, last_name.strip() or first_name


class GreenhouseHarvestClient:
    """Async Harvest client returning raw Greenhouse payloads."""

    def __init__(
        self,
        api_key: str,
        on_behalf_of: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 30.0,
    ) -> None:
        self._api_key = api_key
        self._on_behalf_of = on_behalf_of
        self._base_url = base_url.rstrip("/")
        self._http_client = http_client
        self._owns_client = http_client is None
        self._timeout_seconds = timeout_seconds

    def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout_seconds))
        return self._http_client

    async def aclose(self) -> None:
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def _send(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> httpx.Response:
        headers = {}
        if self._on_behalf_of:
            headers["On-Behalf-Of"] = self._on_behalf_of
        try:
            response = await self._get_client().request(
                method,
                url,
                params=params,
                json=json,
                headers=headers,
                auth=(self._api_key, ""),
            )
        except httpx.HTTPError as e:
            raise AtsRequestError(f"Greenhouse request failed: {e!s}", error_code="HTTP_ERROR") from e

        if response.status_code >= 400:
            logger.warning(
                "Greenhouse request failed",
                extra={"path": response.request.url.path, "status_code": response.status_code},
            )
            raise AtsRequestError(
                f"Greenhouse request failed: {response.status_code}",
                error_code="REQUEST_FAILED",
                status_code=response.status_code,
            )
        return response

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        response = await self._send(method, f"{self._base_url}{path}", params=params, json=json)
        return response.json()

    async def fetch_job(self, job_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/jobs/{job_id}")

    async def fetch_applications(self, job_id: str) -> list[dict[str, Any]]:
        """Every application on the job, following Harvest's ``Link: rel="next"`` pages."""
        applications: list[dict[str, Any]] = []
        url: str | None = f"{self._base_url}/applications"
        params: dict[str, Any] | None = {"job_id": job_id, "per_page": MAX_PAGE_SIZE}
        while url:
            response = await self._send("GET", url, params=params)
            applications.extend(response.json())
            # The next link already carries job_id, per_page and page.
            url = response.links.get("next", {}).get("url")
            params = None
        return applications

    async def push_prospects(
        self,
        job_id: str,
        candidates: Sequence[AtsCandidateSummary],
        note: str | None = None,
    ) -> list[str]:
        """Create one prospect per candidate on the job; returns new candidate ids."""
        created: list[str] = []
        for candidate in candidates:
            first_name, last_name = split_full_name(candidate.full_name)
            body: dict[str, Any] = {
                "first_name": first_name,
                "last_name": last_name,
                "job_ids": [int(job_id)] if job_id.isdigit() else [job_id],
            }
            if candidate.email:
                body["email_addresses"] = [{"value": candidate.email, "type": "personal"}]
            if candidate.phone:
                body["phone_numbers"] = [{"value": candidate.phone, "type": "mobile"}]
            if note:
                body["notes"] = note
            data = await self._request("POST", "/prospects", json=body)
            created.append(str(data["id"]))
        return created
