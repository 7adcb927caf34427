"""Tests for the Greenhouse Harvest client."""

import base64
import json

import httpx
import pytest

from talent_engine.integrations.ats.greenhouse_client import GreenhouseHarvestClient, split_full_name
from talent_engine.integrations.ats.interface import AtsCandidateSummary
from talent_engine.integrations.errors import AtsRequestError


class HarvestRecorder:
    def __init__(self, status_code: int = 200) -> None:
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code >= 400:
            return httpx.Response(self.status_code, json={"errors": ["denied"]})
        if request.url.path == "/v1/prospects":
            return httpx.Response(201, json={"id": 5000 + len(self.requests)})
        if request.url.path == "/v1/applications":
            return httpx.Response(200, json=[{"id": 1, "job_id": 42}])
        return httpx.Response(200, json={"id": 42, "title": "Staff Engineer"})


def make_client(recorder: HarvestRecorder, on_behalf_of: str | None = None) -> GreenhouseHarvestClient:
    return GreenhouseHarvestClient(
        api_key="harvest-key",
        on_behalf_of=on_behalf_of,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(recorder.handler)),
    )


class TestGreenhouseHarvestClient:
    @pytest.mark.asyncio
    async def test_uses_basic_auth_with_api_key(self) -> None:
        recorder = HarvestRecorder()
        client = make_client(recorder)

        job = await client.fetch_job("42")

        assert job["title"] == "Staff Engineer"
        request = recorder.requests[0]
        assert str(request.url) == "https://harvest.greenhouse.io/v1/jobs/42"
        expected = base64.b64encode(b"harvest-key:").decode()
        assert request.headers["Authorization"] == f"Basic {expected}"
        assert "On-Behalf-Of" not in request.headers

    @pytest.mark.asyncio
    async def test_fetch_applications_filters_by_job(self) -> None:
        recorder = HarvestRecorder()
        client = make_client(recorder)

        applications = await client.fetch_applications("42")

        assert applications == [{"id": 1, "job_id": 42}]
        assert recorder.requests[0].url.params["job_id"] == "42"

    @pytest.mark.asyncio
    async def test_push_prospects_creates_one_per_candidate(self) -> None:
        recorder = HarvestRecorder()
        client = make_client(recorder, on_behalf_of="99")
        candidates = [
            AtsCandidateSummary(id="2001", full_name="Ada Lovelace", email="ada@example.com"),
            AtsCandidateSummary(id="2002", full_name="Grace Hopper", phone="+1987654321"),
        ]

        ids = await client.push_prospects("42", candidates, note="shortlist")

        assert ids == ["5001", "5002"]
        first = json.loads(recorder.requests[0].content)
        assert first == {
            "first_name": "Ada",
            "last_name": "Lovelace",
            "job_ids": [42],
            "email_addresses": [{"value": "ada@example.com", "type": "personal"}],
            "notes": "shortlist",
        }
        second = json.loads(recorder.requests[1].content)
        assert second["phone_numbers"] == [{"value": "+1987654321", "type": "mobile"}]
        assert recorder.requests[0].headers["On-Behalf-Of"] == "99"

    @pytest.mark.asyncio
    async def test_error_status_raises(self) -> None:
        client = make_client(HarvestRecorder(status_code=403))

        with pytest.raises(AtsRequestError, match="Greenhouse request failed: 403") as exc_info:
            await client.fetch_job("42")

        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_fetch_applications_follows_next_links(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if request.url.params.get("page") == "2":
                return httpx.Response(200, json=[{"id": 3, "job_id": 42}])
            next_url = "https://harvest.greenhouse.io/v1/applications?job_id=42&per_page=500&page=2"
            return httpx.Response(
                200,
                json=[{"id": 1, "job_id": 42}, {"id": 2, "job_id": 42}],
                headers={"Link": f'<{next_url}>; rel="next"'},
            )

        client = GreenhouseHarvestClient(
            api_key="harvest-key",
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )

        applications = await client.fetch_applications("42")

        assert [application["id"] for application in applications] == [1, 2, 3]
        assert len(requests) == 2
        assert requests[0].url.params["per_page"] == "500"
        assert requests[1].url.params["page"] == "2"
        assert requests[1].url.params["job_id"] == "42"

    @pytest.mark.asyncio
    async def test_single_word_name_fills_last_name(self) -> None:
        recorder = HarvestRecorder()
        client = make_client(recorder, on_behalf_of="99")

        await client.push_prospects("42", [AtsCandidateSummary(id="2003", full_name="Cher")])

        body = json.loads(recorder.requests[0].content)
        assert body["first_name"] == "Cher"
        assert body["last_name"] == "Cher"


class TestSplitFullName:
    def test_splits_on_first_space(self) -> None:
        assert split_full_name("Mary Ann Smith") == ("Mary", "Ann Smith")

    def test_single_word_is_used_for_both_parts(self) -> None:
        assert split_full_name("  Cher ") == ("Cher", "Cher")
