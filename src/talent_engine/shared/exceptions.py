"""
Domain exceptions mapped to HTTP responses by the application.
"""


class TalentEngineError(Exception):
    """Base class for domain errors."""


class NotFoundError(TalentEngineError):
    """Requested entity does not exist."""

