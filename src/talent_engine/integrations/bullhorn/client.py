"""
Bullhorn REST client with OAuth authorization-code and refresh-token flows.
"""

import time
from collections.abc import Sequence
from typing import Any
from urllib.parse import urlencode

import httpx

from talent_engine.integrations.bullhorn.mappings import (
    DEFAULT_MAPPING_CONFIG,
    map_bullhorn_candidate,
    map_bullhorn_job,
    map_bullhorn_placement,
)
from talent_engine.integrations.bullhorn.types import (
    BullhornAuthTokens,
    BullhornMappingConfig,
    MappedCandidate,
    MappedJob,
    MappedPlacement,
)
from talent_engine.integrations.errors import AtsAuthError, AtsRequestError
from talent_engine.shared.logging import get_logger

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://rest.bullhornstaffing.com/mock"
DEFAULT_AUTH_URL = "https://auth.bullhornstaffing.com/oauth"


class BullhornClient:
    """Async Bullhorn REST client.

    Requests refresh the access token first when it is missing or expired.
    A 401 answer triggers exactly one refresh followed by one retry.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        base_url: str = DEFAULT_BASE_URL,
        auth_base_url: str = DEFAULT_AUTH_URL,
        http_client: httpx.AsyncClient | None = None,
        tokens: BullhornAuthTokens | None = None,
        test_mode: bool = False,
        mapping: BullhornMappingConfig = DEFAULT_MAPPING_CONFIG,
        timeout_seconds: float = 30.0,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._redirect_uri = redirect_uri
        self._base_url = base_url.rstrip("/")
        self._auth_base_url = auth_base_url.rstrip("/")
        self._http_client = http_client
        self._owns_client = http_client is None
        self._timeout_seconds = timeout_seconds
        self._tokens = tokens
        self._test_mode = test_mode
        self._mapping = mapping

    @property
    def tokens(self) -> BullhornAuthTokens | None:
        return self._tokens

    def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout_seconds))
        return self._http_client

    async def aclose(self) -> None:
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    def build_auth_url(self, scope: str = "read") -> str:
        """Build the OAuth authorization URL the user is redirected to."""
        params = {
            "client_id": self._client_id,
            "response_type": "code",
            "redirect_uri": self._redirect_uri,
            "scope": scope,
        }
        if self._test_mode:
            params["mode"] = "test"
        return f"{self._auth_base_url}/authorize?{urlencode(params)}"

    async def exchange_code_for_token(self, code: str) -> BullhornAuthTokens:
        """Exchange an authorization code for access and refresh tokens.

        Raises:
            AtsAuthError: If the token endpoint answers with a non-2xx status.
        """
        return await self._request_tokens(
            {
                "grant_type": "authorization_code",
                "code": code,
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "redirect_uri": self._redirect_uri,
            },
            failure="Failed to exchange code for token",
        )

    async def refresh_access_token(self) -> BullhornAuthTokens:
        """Obtain a fresh access token with the stored refresh token.

        Raises:
            AtsAuthError: If no refresh token is stored or the refresh fails.
        """
        if self._tokens is None or not self._tokens.refresh_token:
            raise AtsAuthError("No refresh token available", error_code="NO_REFRESH_TOKEN")
        return await self._request_tokens(
            {
                "grant_type": "refresh_token",
                "refresh_token": self._tokens.refresh_token,
                "client_id": self._client_id,
                "client_secret": self._client_secret,
            },
            failure="Failed to refresh token",
        )

    async def _request_tokens(self, body: dict[str, Any], failure: str) -> BullhornAuthTokens:
        try:
            response = await self._get_client().post(f"{self._auth_base_url}/token", json=body)
        except httpx.HTTPError as e:
            raise AtsAuthError(f"{failure}: {e!s}", error_code="HTTP_ERROR") from e

        if response.status_code >= 400:
            logger.warning(
                "Bullhorn token request failed",
                extra={"grant_type": body["grant_type"], "status_code": response.status_code},
            )
            raise AtsAuthError(
                f"{failure}: {response.status_code}",
                error_code="OAUTH_FAILED",
                status_code=response.status_code,
            )

        data = response.json()
        self._tokens = BullhornAuthTokens(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token") or body.get("refresh_token"),
            expires_at=time.time() + float(data.get("expires_in", 0)),
        )
        return self._tokens

    def _token_expired(self) -> bool:
        if self._tokens is None:
            return True
        return self._tokens.expires_at is not None and self._tokens.expires_at <= time.time()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        allow_not_found: bool = False,
    ) -> Any:
        if self._token_expired():
            await self.refresh_access_token()

        response = await self._send(method, path, json)
        if response.status_code == 401 and self._tokens and self._tokens.refresh_token:
            logger.info("Bullhorn access token rejected; refreshing once", extra={"path": path})
            await self.refresh_access_token()
            response = await self._send(method, path, json)

        if allow_not_found and response.status_code == 404:
            return None
        if response.status_code >= 400:
            raise AtsRequestError(
                f"Bullhorn request failed: {response.status_code}",
                error_code="REQUEST_FAILED",
                status_code=response.status_code,
            )

        payload = response.json()
        if isinstance(payload, dict) and "data" in payload:
            return payload["data"]
        return payload

    async def _send(self, method: str, path: str, json: Any) -> httpx.Response:
        access_token = self._tokens.access_token if self._tokens else "invalid"
        try:
            return await self._get_client().request(
                method,
                f"{self._base_url}{path}",
                json=json,
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.HTTPError as e:
            raise AtsRequestError(f"Bullhorn request failed: {e!s}", error_code="HTTP_ERROR") from e

    async def get_jobs(self) -> list[MappedJob]:
        raw = await self._request("GET", "/jobs")
        return [map_bullhorn_job(job, self._mapping.job) for job in raw]

    async def get_candidates(self) -> list[MappedCandidate]:
        raw = await self._request("GET", "/candidates")
        return [map_bullhorn_candidate(item, self._mapping.candidate) for item in raw]

    async def get_placements(self) -> list[MappedPlacement]:
        raw = await self._request("GET", "/placements")
        return [map_bullhorn_placement(item, self._mapping.placement) for item in raw]

    async def fetch_job(self, job_id: str) -> dict[str, Any]:
        """Return the raw Bullhorn job order."""
        return await self._request("GET", f"/jobs/{job_id}")

    async def fetch_candidate(self, candidate_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/candidates/{candidate_id}")

    async def fetch_placement(self, placement_id: str) -> dict[str, Any] | None:
        return await self._request("GET", f"/placements/{placement_id}", allow_not_found=True)

    async def fetch_shortlist_candidates(self, job_id: str) -> list[dict[str, Any]]:
        return await self._request("GET", f"/jobs/{job_id}/shortlist")

    async def push_shortlist(
        self,
        job_id: str,
        candidates: Sequence[Any],
        note: str | None = None,
    ) -> list[str]:
        """Submit candidates to a job order; returns Bullhorn submission ids."""
        body = {"candidateIds": [candidate.id for candidate in candidates], "note": note}
        raw = await self._request("POST", f"/jobs/{job_id}/submissions", json=body)
        return [str(submission_id) for submission_id in raw.get("submissionIds", [])]
