"""GitHub repository, import and webhook endpoints."""
