"""
SQLAlchemy model for persisted ATS events.
"""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from sqlalchemy import JSON, DateTime, Enum as SQLEnum, String, func
from sqlalchemy.orm import Mapped, mapped_column

from talent_engine.shared.database import Base


class AtsEventKind(str, Enum):
    STAGE_CHANGE = "stage_change"
    OUTCOME = "outcome"
    SHORTLIST_PUSH = "shortlist_push"


class AtsEvent(Base):
    """Normalized stage change, outcome, or shortlist push."""

    __tablename__ = "ats_events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    kind: Mapped[AtsEventKind] = mapped_column(
        SQLEnum(AtsEventKind, name="ats_event_kind", native_enum=False),
        nullable=False,
        index=True,
    )
    provider: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    job_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    candidate_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
