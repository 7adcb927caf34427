"""Applicant tracking system integrations."""
