"""
Provider-neutral ATS contract: canonical types, adapters, event store,
and webhook endpoints.
"""

from talent_engine.integrations.ats.interface import (
    AtsAdapter,
    AtsCandidateSummary,
    AtsEventStore,
    AtsJob,
    OutcomeEnvelope,
    OutcomeEvent,
    OutcomeReceipt,
    ShortlistPushPayload,
    ShortlistPushResult,
    StageChangeEnvelope,
    StageChangeEvent,
)

__all__ = [
    "AtsAdapter",
    "AtsCandidateSummary",
    "AtsEventStore",
    "AtsJob",
    "OutcomeEnvelope",
    "OutcomeEvent",
    "OutcomeReceipt",
    "ShortlistPushPayload",
    "ShortlistPushResult",
    "StageChangeEnvelope",
    "StageChangeEvent",
]
