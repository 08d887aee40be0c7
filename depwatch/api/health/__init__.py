"""Health probe endpoints."""
