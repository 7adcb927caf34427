"""
ATS adapter interface definition.

Every provider adapter converts provider payloads into the canonical types
below and reports stage changes, outcomes, and shortlist pushes to an
:class:`AtsEventStore`.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Literal, Protocol, Union

from talent_engine.shared.logging import get_logger

logger = get_logger(__name__)

UNSUPPORTED_WEBHOOK_REASON = "Unsupported webhook type"


@dataclass(frozen=True)
class AtsJob:
    id: str
    title: str
    location: str | None
    department: str | None
    status: str
    opened_at: datetime | None
    external_url: str | None = None


@dataclass(frozen=True)
class AtsCandidateSummary:
    id: str
    full_name: str
    email: str | None = None
    phone: str | None = None
    resume_url: str | None = None
    applied_at: datetime | None = None
    stage: str | None = None
    source: str | None = None


@dataclass(frozen=True)
class CandidateIngestResult:
    job: AtsJob
    candidate: AtsCandidateSummary
    received_at: datetime


@dataclass(frozen=True)
class ShortlistIngestResult:
    job: AtsJob
    candidates: list[AtsCandidateSummary]
    received_at: datetime


@dataclass(frozen=True)
class ShortlistPushPayload:
    job_id: str
    candidates: list[AtsCandidateSummary]
    note: str | None = None


@dataclass(frozen=True)
class ShortlistPushResult:
    job_id: str
    pushed: int
    external_candidate_ids: list[str]
    requested_at: datetime
    provider: str | None = None


@dataclass(frozen=True)
class StageChangeEvent:
    job_id: str
    candidate_id: str
    from_stage: str | None
    to_stage: str
    changed_at: datetime
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class OutcomeEvent:
    job_id: str
    candidate_id: str
    outcome: str
    decided_at: datetime
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class StageChangeEnvelope:
    payload: StageChangeEvent
    type: Literal["stage_change"] = "stage_change"


@dataclass(frozen=True)
class OutcomeEnvelope:
    payload: OutcomeEvent
    type: Literal["outcome"] = "outcome"


AtsWebhookEnvelope = Union[StageChangeEnvelope, OutcomeEnvelope]


@dataclass(frozen=True)
class OutcomeReceipt:
    acknowledged: bool
    reason: str | None = None


class AtsEventStore(Protocol):
    """Sink for normalized ATS events."""

    async def record_stage_change(self, event: StageChangeEvent) -> None: ...

    async def record_outcome(self, event: OutcomeEvent) -> None: ...

    async def record_shortlist_push(self, result: ShortlistPushResult) -> None: ...


class AtsAdapter(ABC):
    """Abstract interface for ATS providers.

    Subclasses implement ingestion and shortlist pushes; webhook envelopes
    are handled uniformly by :meth:`receive_outcome`.
    """

    provider: str

    def __init__(self, client: Any, store: AtsEventStore) -> None:
        self._client = client
        self._store = store

    async def aclose(self) -> None:
        """Release the provider client's HTTP resources, if it holds any."""
        close = getattr(self._client, "aclose", None)
        if close is not None:
            await close()

    @abstractmethod
    async def ingest_job(self, job_id: str) -> AtsJob:
        """Fetch a job from the provider in canonical form."""
        ...

    @abstractmethod
    async def ingest_candidate(self, job_id: str, candidate_id: str) -> CandidateIngestResult:
        """Fetch a job and one of its candidates."""
        ...

    @abstractmethod
    async def ingest_shortlist(self, job_id: str) -> ShortlistIngestResult:
        """Fetch a job and its shortlisted candidates."""
        ...

    @abstractmethod
    async def push_shortlist(self, payload: ShortlistPushPayload) -> ShortlistPushResult:
        """Send a shortlist to the provider and record the push."""
        ...

    async def _record_push(
        self,
        job_id: str,
        external_ids: list[str],
        requested_at: datetime,
    ) -> ShortlistPushResult:
        result = ShortlistPushResult(
            job_id=job_id,
            pushed=len(external_ids),
            external_candidate_ids=external_ids,
            requested_at=requested_at,
            provider=self.provider,
        )
        await self._store.record_shortlist_push(result)
        logger.info(
            "Shortlist pushed",
            extra={"provider": self.provider, "job_id": job_id, "pushed": result.pushed},
        )
        return result

    async def receive_outcome(self, envelope: Any) -> OutcomeReceipt:
        """Record a normalized webhook envelope.

        The adapter's provider is stamped into ``metadata["provider"]``
        unless the payload metadata already names one. Unknown envelope
        types are answered with an unacknowledged receipt.
        """
        envelope_type = getattr(envelope, "type", None)

        if envelope_type == "stage_change":
            await self._store.record_stage_change(self._stamp(envelope.payload))
            return OutcomeReceipt(acknowledged=True)

        if envelope_type == "outcome":
            await self._store.record_outcome(self._stamp(envelope.payload))
            return OutcomeReceipt(acknowledged=True)

        logger.warning(
            "Unsupported ATS webhook envelope",
            extra={"provider": self.provider, "envelope_type": envelope_type},
        )
        return OutcomeReceipt(acknowledged=False, reason=UNSUPPORTED_WEBHOOK_REASON)

    def _stamp(self, payload: Any) -> Any:
        return replace(payload, metadata={"provider": self.provider, **(payload.metadata or {})})
