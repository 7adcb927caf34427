"""Bullhorn REST client, field mappings, and sync orchestration."""
