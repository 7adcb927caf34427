"""Tenant, user, and tenant-level configuration entities."""
