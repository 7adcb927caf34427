"""EDGE Talent Engine backend: tenant data retention and ATS integrations."""

__version__ = "0.1.0"
