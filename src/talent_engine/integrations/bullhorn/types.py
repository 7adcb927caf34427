"""
Bullhorn mapped entities, mapping configuration, and OAuth tokens.
"""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class JobFieldMapping:
    id: str = "id"
    title: str = "title"
    employment_type: str = "employmentType"
    address: str = "address"
    description: str = "description"
    date_added: str = "dateAdded"
    remote_hint: str = "customText10"
    company: str = "clientCorporation"


@dataclass(frozen=True)
class CandidateFieldMapping:
    id: str = "id"
    first_name: str = "firstName"
    last_name: str = "lastName"
    email: str = "email"
    phone: str = "phone"
    city: str = "city"
    state: str = "state"
    country: str = "country"
    date_added: str = "dateAdded"
    occupation: str = "occupation"
    source: str = "source"


@dataclass(frozen=True)
class PlacementFieldMapping:
    id: str = "id"
    job: str = "jobOrder"
    candidate: str = "candidate"
    start_date: str = "startDate"
    end_date: str = "endDate"
    status: str = "status"


@dataclass(frozen=True)
class BullhornMappingConfig:
    """Raw Bullhorn field names used for each canonical field."""

    job: JobFieldMapping = field(default_factory=JobFieldMapping)
    candidate: CandidateFieldMapping = field(default_factory=CandidateFieldMapping)
    placement: PlacementFieldMapping = field(default_factory=PlacementFieldMapping)


@dataclass(frozen=True)
class MappedJob:
    id: str
    title: str
    employment_type: str | None = None
    location: str | None = None
    description: str | None = None
    posted_at: datetime | None = None
    remote: bool = False
    company: str | None = None


@dataclass(frozen=True)
class MappedCandidate:
    id: str
    full_name: str
    email: str | None = None
    phone: str | None = None
    location: str | None = None
    title: str | None = None
    source: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class MappedPlacement:
    id: str
    job_id: str | None = None
    candidate_id: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    status: str | None = None


@dataclass
class BullhornAuthTokens:
    access_token: str
    refresh_token: str | None = None
    expires_at: float | None = None
