"""
Mapping layer from raw Bullhorn payloads to canonical records.

Field names are configurable per tenant through :class:`BullhornMappingConfig`;
``DEFAULT_MAPPING_CONFIG`` matches Bullhorn's standard entity fields.
"""

import re
from datetime import datetime, timezone
from collections.abc import Mapping
from typing import Any

from talent_engine.integrations.bullhorn.types import (
    BullhornMappingConfig,
    CandidateFieldMapping,
    JobFieldMapping,
    MappedCandidate,
    MappedJob,
    MappedPlacement,
    PlacementFieldMapping,
)

DEFAULT_MAPPING_CONFIG = BullhornMappingConfig()

_REMOTE_PATTERN = re.compile(r"remote", re.IGNORECASE)


def parse_date(value: Any) -> datetime | None:
    """Parse an ISO-8601 string or epoch milliseconds; invalid input gives None."""
    if not value or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def format_location(*parts: Any) -> str | None:
    """Join the non-blank location parts with ", "."""
    present = [str(part) for part in parts if part]
    return ", ".join(present) if present else None


def _text(value: Any) -> str | None:
    return None if value is None else str(value)


def map_bullhorn_job(
    raw: Mapping[str, Any],
    mapping: JobFieldMapping = DEFAULT_MAPPING_CONFIG.job,
) -> MappedJob:
    address = raw.get(mapping.address) or {}
    remote_hint = raw.get(mapping.remote_hint)
    company = raw.get(mapping.company) or {}

    if isinstance(remote_hint, str):
        remote = bool(_REMOTE_PATTERN.search(remote_hint))
    else:
        remote = bool(remote_hint)

    return MappedJob(
        id=str(raw[mapping.id]),
        title=str(raw.get(mapping.title)),
        employment_type=_text(raw.get(mapping.employment_type)),
        location=format_location(address.get("city"), address.get("state"), address.get("country")),
        description=_text(raw.get(mapping.description)),
        posted_at=parse_date(raw.get(mapping.date_added)),
        remote=remote,
        company=company.get("name"),
    )


def map_bullhorn_candidate(
    raw: Mapping[str, Any],
    mapping: CandidateFieldMapping = DEFAULT_MAPPING_CONFIG.candidate,
) -> MappedCandidate:
    first_name = raw.get(mapping.first_name) or ""
    last_name = raw.get(mapping.last_name) or ""
    return MappedCandidate(
        id=str(raw[mapping.id]),
        full_name=f"{first_name} {last_name}".strip(),
        email=_text(raw.get(mapping.email)),
        phone=_text(raw.get(mapping.phone)),
        location=format_location(
            raw.get(mapping.city), raw.get(mapping.state), raw.get(mapping.country)
        ),
        title=_text(raw.get(mapping.occupation)),
        source=_text(raw.get(mapping.source)),
        created_at=parse_date(raw.get(mapping.date_added)),
    )


def map_bullhorn_placement(
    raw: Mapping[str, Any],
    mapping: PlacementFieldMapping = DEFAULT_MAPPING_CONFIG.placement,
) -> MappedPlacement:
    job = raw.get(mapping.job)
    candidate = raw.get(mapping.candidate)
    return MappedPlacement(
        id=str(raw[mapping.id]),
        job_id=str(job["id"]) if job else None,
        candidate_id=str(candidate["id"]) if candidate else None,
        start_date=parse_date(raw.get(mapping.start_date)),
        end_date=parse_date(raw.get(mapping.end_date)),
        status=_text(raw.get(mapping.status)),
    )
