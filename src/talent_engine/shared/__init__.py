"""Shared infrastructure: database, logging, and domain exceptions."""
