"""
Request schemas for the internal retention endpoints.
"""

from pydantic import BaseModel, Field

from talent_engine.retention.policy import TenantDeletionMode


class TenantDeletionRequest(BaseModel):
    """Offboarding request body."""

    mode: TenantDeletionMode = Field(default=TenantDeletionMode.HARD_DELETE)
