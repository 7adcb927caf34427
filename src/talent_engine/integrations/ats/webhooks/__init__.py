"""ATS webhook endpoints."""
