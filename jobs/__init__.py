"""Background jobs (Dramatiq)."""
