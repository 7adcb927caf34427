"""
ATS event store implementations.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from talent_engine.integrations.ats.interface import (
    OutcomeEvent,
    ShortlistPushResult,
    StageChangeEvent,
)
from talent_engine.integrations.ats.models import AtsEvent, AtsEventKind


class InMemoryAtsEventStore:
    """Event store keeping events in lists, in arrival order."""

    def __init__(self) -> None:
        self.stage_changes: list[StageChangeEvent] = []
        self.outcomes: list[OutcomeEvent] = []
        self.shortlist_pushes: list[ShortlistPushResult] = []

    async def record_stage_change(self, event: StageChangeEvent) -> None:
        self.stage_changes.append(event)

    async def record_outcome(self, event: OutcomeEvent) -> None:
        self.outcomes.append(event)

    async def record_shortlist_push(self, result: ShortlistPushResult) -> None:
        self.shortlist_pushes.append(result)


class SqlAlchemyAtsEventStore:
    """Event store writing :class:`AtsEvent` rows; the caller owns the commit."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def record_stage_change(self, event: StageChangeEvent) -> None:
        await self._add(
            AtsEventKind.STAGE_CHANGE,
            provider=event.metadata.get("provider"),
            job_id=event.job_id,
            candidate_id=event.candidate_id,
            occurred_at=event.changed_at,
            payload={
                "from_stage": event.from_stage,
                "to_stage": event.to_stage,
                "metadata": event.metadata,
            },
        )

    async def record_outcome(self, event: OutcomeEvent) -> None:
        await self._add(
            AtsEventKind.OUTCOME,
            provider=event.metadata.get("provider"),
            job_id=event.job_id,
            candidate_id=event.candidate_id,
            occurred_at=event.decided_at,
            payload={"outcome": event.outcome, "metadata": event.metadata},
        )

    async def record_shortlist_push(self, result: ShortlistPushResult) -> None:
        await self._add(
            AtsEventKind.SHORTLIST_PUSH,
            provider=result.provider,
            job_id=result.job_id,
            candidate_id=None,
            occurred_at=result.requested_at,
            payload={
                "pushed": result.pushed,
                "external_candidate_ids": result.external_candidate_ids,
            },
        )

    async def _add(self, kind: AtsEventKind, **fields: Any) -> None:
        self._session.add(AtsEvent(kind=kind, **fields))
        await self._session.flush()
